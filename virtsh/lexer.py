#
# Token sources feeding the command parser
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import collections


TK_ARG = "arg"
TK_SUBCMD_END = "subcmd-end"
TK_END = "end"
TK_ERROR = "error"

Token = collections.namedtuple("Token", ["kind", "value"])

_END = Token(TK_END, None)
_SUBCMD_END = Token(TK_SUBCMD_END, None)


class _TokenSource(object):
    """
    Base class for the two lexer flavors. Subclasses implement
    next_token(), which returns a Token and keeps returning TK_END
    once the input is exhausted.
    """
    def next_token(self):
        raise NotImplementedError()

    def __iter__(self):
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind in [TK_END, TK_ERROR]:
                return


class ArgvTokenSource(_TokenSource):
    """
    Tokens from an already split argument vector, like the trailing
    part of sys.argv. Never produces TK_SUBCMD_END.
    """
    def __init__(self, argv):
        self._argv = list(argv)
        self._pos = 0

    def next_token(self):
        if self._pos >= len(self._argv):
            return _END
        ret = self._argv[self._pos]
        self._pos += 1
        return Token(TK_ARG, ret)


class StringTokenSource(_TokenSource):
    """
    Tokens from a single command line with shell-like quoting.

    Single quotes keep their contents verbatim. Outside single quotes
    a backslash escapes the next character, and double quotes group
    text while still honoring backslash. An unquoted ';' ends the
    current command.
    """
    def __init__(self, line):
        self._line = line
        self._pos = 0

    def next_token(self):
        line = self._line
        pos = self._pos
        end = len(line)

        while pos < end and line[pos] in " \t":
            pos += 1
        if pos >= end:
            self._pos = pos
            return _END
        if line[pos] == ";":
            self._pos = pos + 1
            return _SUBCMD_END

        single_quote = False
        double_quote = False
        ret = []
        while pos < end:
            c = line[pos]
            if (not single_quote and not double_quote and
                c in " \t;"):
                break

            if not double_quote and c == "'":
                single_quote = not single_quote
                pos += 1
                continue
            elif not single_quote and c == "\\":
                pos += 1
                if pos >= end:
                    self._pos = end
                    return Token(TK_ERROR, _("dangling \\"))
                c = line[pos]
            elif not single_quote and c == '"':
                double_quote = not double_quote
                pos += 1
                continue

            ret.append(c)
            pos += 1

        self._pos = pos
        if double_quote:
            return Token(TK_ERROR, _("missing \""))
        return Token(TK_ARG, "".join(ret))


def split_line(line):
    """
    Return the list of ARG values of @line with TK_SUBCMD_END
    represented as None. Raises ValueError on a lexing error.
    Used by completion code which wants a simple view of the line.
    """
    ret = []
    for tok in StringTokenSource(line):
        if tok.kind == TK_ERROR:
            raise ValueError(tok.value)
        if tok.kind == TK_ARG:
            ret.append(tok.value)
        elif tok.kind == TK_SUBCMD_END:
            ret.append(None)
    return ret
