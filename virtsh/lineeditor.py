#
# Interactive line input, with or without readline
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os
import sys

from .buildconfig import BuildConfig
from . import lexer
from .logger import log
from . import util


def get_history_path():
    return os.path.join(os.path.expanduser("~"), ".virsh", "history")


class _LineEditor(object):
    """
    Base class. readline() returns None at EOF
    """
    def readline(self, prompt):
        raise NotImplementedError()

    def add_history(self, line):
        pass

    def load_history(self):
        pass

    def save_history(self):
        pass


class DumbEditor(_LineEditor):
    """
    Plain stdin reading, for when readline isn't usable
    """
    def __init__(self, instream=None, outstream=None):
        self._in = instream or sys.stdin
        self._out = outstream or sys.stdout

    def readline(self, prompt):
        self._out.write(prompt)
        self._out.flush()
        line = self._in.readline()
        if not line:
            return None
        return line.rstrip("\n")


class Completer(object):
    """
    Completion over command names at the start of the line, and over
    --option names of the typed command after it
    """
    def __init__(self, registry):
        self.registry = registry

    def _command_names(self, text):
        return [cmd.name for cmd in self.registry.all_commands()
                if cmd.name.startswith(text)]

    def _option_names(self, cmdname, text):
        cmddef = self.registry.find_command(cmdname)
        if not cmddef:
            return []
        ret = []
        for opt in cmddef.opts:
            if opt.is_positional():
                continue
            name = "--%s" % opt.name
            if name.startswith(text):
                ret.append(name)
        return ret

    def matches(self, line, begidx, text):
        """
        All completions for word @text which starts at @begidx of @line
        """
        try:
            words = lexer.split_line(line[:begidx])
        except ValueError:
            return []

        # Only the command after the last ';' matters
        if None in words:
            words = words[len(words) - words[::-1].index(None):]
        if not words:
            return self._command_names(text)
        return self._option_names(words[0], text)


class ReadlineEditor(_LineEditor):
    def __init__(self, registry):
        import readline
        self._readline = readline
        self._completer = Completer(registry)
        self._matches = []

        readline.set_completer(self._complete)
        readline.set_completer_delims(" \t\n")
        readline.parse_and_bind("tab: complete")
        readline.set_history_length(BuildConfig.history_size)

    def _complete(self, text, state):
        if state == 0:
            rl = self._readline
            self._matches = self._completer.matches(rl.get_line_buffer(),
                                                    rl.get_begidx(), text)
        if state < len(self._matches):
            return self._matches[state]
        return None

    def readline(self, prompt):
        try:
            return input(prompt)
        except EOFError:
            return None

    def add_history(self, line):
        # input() already records lines when readline is loaded
        pass

    def load_history(self):
        if util.in_testsuite():
            return
        path = get_history_path()
        if not os.path.exists(path):
            return
        try:
            self._readline.read_history_file(path)
        except OSError as e:
            log.debug("Reading history %s failed: %s", path, e)

    def save_history(self):
        """
        Returns an error message on failure, None otherwise
        """
        if util.in_testsuite():
            return None
        path = get_history_path()
        histdir = os.path.dirname(path)
        try:
            os.makedirs(histdir, 0o755, exist_ok=True)
        except OSError as e:
            return _("Failed to create '%(dir)s': %(err)s") % {
                "dir": histdir, "err": e.strerror}
        try:
            self._readline.write_history_file(path)
        except OSError as e:
            log.debug("Writing history %s failed: %s", path, e)
        return None


def get_line_editor(registry):
    """
    Readline when it is available and stdin is a terminal
    """
    if sys.stdin.isatty():
        try:
            return ReadlineEditor(registry)
        except ImportError:
            log.debug("readline not available, using dumb input")
    return DumbEditor()
