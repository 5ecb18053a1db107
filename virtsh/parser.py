#
# Command line parser and typed option accessors
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import re

from . import lexer
from .command import OPT_ARGV, OPT_BOOL, OPT_DATA, OPT_INT
from .logger import log


_INT_RANGE = (-(1 << 31), (1 << 31) - 1)
_UINT_RANGE = (0, (1 << 32) - 1)
_LONGLONG_RANGE = (-(1 << 63), (1 << 63) - 1)
_ULONGLONG_RANGE = (0, (1 << 64) - 1)
_DECIMAL_RE = re.compile(r"^[ \t]*[+-]?[0-9]+\Z")


class CommandParseError(Exception):
    """
    Raised when a line fails to parse. All the collected usage
    messages are in self.messages, in the order they were hit
    """
    def __init__(self, messages):
        self.messages = list(messages)
        Exception.__init__(self, "\n".join(self.messages))


def _parse_decimal(val, valrange):
    if val is None or not _DECIMAL_RE.match(val):
        return None
    ret = int(val, 10)
    if valrange[0] == 0 and ret < 0 and -ret <= _ULONGLONG_RANGE[1]:
        # Unsigned parses negate modulo 2**64, as strtoul does
        ret += 1 << 64
    if ret < valrange[0] or ret > valrange[1]:
        return None
    return ret


class ParsedOption(object):
    def __init__(self, optdef, value):
        self.definition = optdef
        self.value = value

    def __repr__(self):
        return "<ParsedOption %s=%r>" % (self.definition.name, self.value)

    def __eq__(self, other):
        return (isinstance(other, ParsedOption) and
                self.definition is other.definition and
                self.value == other.value)

    @property
    def name(self):
        return self.definition.name


class ParsedCommand(object):
    """
    One command from the input line, with its bound options in the
    order they were given.

    The opt_* accessors return a (status, value) pair:

        status > 0:  option present and value extracted
        status == 0: option absent and not required, value is None
        status < 0:  option absent but required, value malformed,
                     or no such option for this command
    """
    def __init__(self, cmddef, opts=None):
        self.definition = cmddef
        self.opts = opts or []

    def __repr__(self):
        return "<ParsedCommand %s %s>" % (self.definition.name, self.opts)

    def _sorted_opts(self):
        # Definition order, argv values keep their relative order
        return sorted(self.opts,
                key=lambda o: self.definition.option_index(o.definition))

    def __eq__(self, other):
        """
        Commands are equal when they bind the same values, however
        the options were ordered on the line
        """
        return (isinstance(other, ParsedCommand) and
                self.definition is other.definition and
                self._sorted_opts() == other._sorted_opts())

    @property
    def name(self):
        return self.definition.name

    def opt(self, name):
        for opt in self.opts:
            if opt.definition.name == name:
                return 1, opt

        optdef = self.definition.find_option(name)
        if not optdef:
            log.debug("command '%s' has no option '%s'",
                    self.definition.name, name)
            return -1, None
        if optdef.required:
            return -1, None
        return 0, None

    def _opt_number(self, name, valrange):
        ret, opt = self.opt(name)
        if ret <= 0:
            return ret, None
        val = _parse_decimal(opt.value, valrange)
        if val is None:
            return -1, None
        return 1, val

    def opt_int(self, name):
        return self._opt_number(name, _INT_RANGE)

    def opt_uint(self, name):
        return self._opt_number(name, _UINT_RANGE)

    def opt_ul(self, name):
        return self._opt_number(name, _ULONGLONG_RANGE)

    def opt_longlong(self, name):
        return self._opt_number(name, _LONGLONG_RANGE)

    def opt_ulonglong(self, name):
        return self._opt_number(name, _ULONGLONG_RANGE)

    def opt_string(self, name):
        ret, opt = self.opt(name)
        if ret <= 0:
            return ret, None
        if not opt.value and not opt.definition.empty_ok:
            return -1, None
        return 1, opt.value

    def opt_bool(self, name):
        return self.opt(name)[0] == 1

    def opt_argv(self, prev=None):
        """
        Return the ParsedOption of the next argv value after @prev,
        or None when there are no more
        """
        start = 0
        if prev is not None:
            start = self.opts.index(prev) + 1
        for opt in self.opts[start:]:
            if opt.definition.kind == OPT_ARGV:
                return opt
        return None

    def argv_values(self):
        ret = []
        opt = self.opt_argv()
        while opt:
            ret.append(opt.value)
            opt = self.opt_argv(opt)
        return ret


def _lowest_bit(mask):
    return (mask & -mask).bit_length() - 1


class _CommandBuilder(object):
    """
    Parse state for one command of the line
    """
    def __init__(self, cmddef):
        self.cmddef = cmddef
        self.need_arg, self.required = cmddef.option_masks()
        self.seen = 0
        self.opts = []
        self.data_only = False

    def lookup_option(self, name):
        cmddef = self.cmddef
        optdef = cmddef.find_option(name)
        if not optdef or optdef.kind == OPT_ARGV:
            raise CommandParseError(
                [_("command '%s' doesn't support option --%s") %
                 (cmddef.name, name)])

        bit = 1 << cmddef.option_index(optdef)
        if self.seen & bit:
            raise CommandParseError(
                [_("option --%s already seen") % name])
        self.seen |= bit
        return optdef

    def take_data(self, value):
        if not self.need_arg:
            raise CommandParseError([_("unexpected data '%s'") % value])
        idx = _lowest_bit(self.need_arg)
        optdef = self.cmddef.opts[idx]
        if optdef.kind != OPT_ARGV:
            self.need_arg &= ~(1 << idx)
        self.seen |= 1 << idx
        return optdef

    def consumed_value(self, optdef):
        if optdef.kind != OPT_ARGV:
            self.need_arg &= ~(1 << self.cmddef.option_index(optdef))

    def add(self, optdef, value):
        log.info("%s: %s(%s): %s", self.cmddef.name, optdef.name,
                 optdef.kind != OPT_BOOL and _("optdata") or _("bool"),
                 optdef.kind != OPT_BOOL and value or _("(none)"))
        self.opts.append(ParsedOption(optdef, value))

    def finish(self):
        missing = self.required & ~self.seen
        if missing:
            errors = []
            for idx, optdef in enumerate(self.cmddef.opts):
                if not missing & (1 << idx):
                    continue
                if optdef.kind in [OPT_DATA, OPT_ARGV]:
                    fmt = _("command '%s' requires <%s> option")
                else:
                    fmt = _("command '%s' requires --%s option")
                errors.append(fmt % (self.cmddef.name, optdef.name))
            raise CommandParseError(errors)
        return ParsedCommand(self.cmddef, self.opts)


def _is_long_option(tok):
    return len(tok) > 2 and tok.startswith("--") and tok[2].isalnum()


def parse(source, registry):
    """
    Parse everything @source produces into a list of ParsedCommand,
    using command definitions from @registry. Raises CommandParseError
    on the first problem, discarding the whole input.
    """
    ret = []

    while True:
        builder = None

        while True:
            tok = source.next_token()
            if tok.kind == lexer.TK_ERROR:
                raise CommandParseError([tok.value])
            if tok.kind != lexer.TK_ARG:
                break
            data = tok.value

            if builder is None:
                cmddef = registry.find_command(data)
                if not cmddef:
                    raise CommandParseError(
                        [_("unknown command: '%s'") % data])
                builder = _CommandBuilder(cmddef)
                continue

            if builder.data_only:
                optdef = builder.take_data(data)
                builder.add(optdef, data)
                continue

            if _is_long_option(data):
                name = data[2:]
                inline = None
                if "=" in name:
                    name, inline = name.split("=", 1)
                optdef = builder.lookup_option(name)

                value = None
                if optdef.kind != OPT_BOOL:
                    if inline is not None:
                        value = inline
                    else:
                        tok = source.next_token()
                        if tok.kind == lexer.TK_ERROR:
                            raise CommandParseError([tok.value])
                        if tok.kind != lexer.TK_ARG:
                            raise CommandParseError(
                                [_("expected syntax: --%s <%s>") %
                                 (optdef.name, optdef.kind == OPT_INT and
                                  _("number") or _("string"))])
                        value = tok.value
                    builder.consumed_value(optdef)
                elif inline is not None:
                    raise CommandParseError(
                        [_("invalid '=' after option --%s") % optdef.name])
                builder.add(optdef, value)
                continue

            if data == "--":
                builder.data_only = True
                continue

            optdef = builder.take_data(data)
            builder.add(optdef, data)

        if builder:
            ret.append(builder.finish())
        if tok.kind == lexer.TK_END:
            break

    return ret


def parse_argv(argv, registry):
    return parse(lexer.ArgvTokenSource(argv), registry)


def parse_string(line, registry):
    return parse(lexer.StringTokenSource(line), registry)
