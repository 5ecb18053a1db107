#
# Shell state and command dispatcher
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import signal
import sys
import time

import libvirt

from . import connection
from . import parser
from .logger import DEFAULT_DEBUG_LEVEL, level_from_debug, log
from . import util


PROMPT_RW = "virsh # "
PROMPT_RO = "virsh > "

# Error codes which mean the connection is gone
_TRANSPORT_ERRORS = [
    (libvirt.VIR_ERR_SYSTEM_ERROR, libvirt.VIR_FROM_REMOTE),
    (libvirt.VIR_ERR_RPC, None),
    (libvirt.VIR_ERR_NO_CONNECT, None),
    (libvirt.VIR_ERR_INVALID_CONN, None),
]


class LibvirtErrorInfo(object):
    """
    The parts of a libvirt error the shell cares about
    """
    def __init__(self, code, domain, message):
        self.code = code
        self.domain = domain
        self.message = message

    def __repr__(self):
        return "<LibvirtErrorInfo code=%s domain=%s %r>" % (
            self.code, self.domain, self.message)

    @staticmethod
    def from_tuple(err):
        # virGetLastError/error handler tuple, code, domain, message first
        return LibvirtErrorInfo(err[0], err[1], err[2])

    @staticmethod
    def from_exception(e):
        return LibvirtErrorInfo(e.get_error_code(), e.get_error_domain(),
                                e.get_error_message() or str(e))

    def is_transport_error(self):
        for code, domain in _TRANSPORT_ERRORS:
            if self.code == code and domain in [None, self.domain]:
                return True
        return False


class Shell(object):
    """
    The shell state: connection, flags set by signal handlers, and
    the last library error. Runs parsed commands.

    :param registry: CommandRegistry of all known commands
    :param connect_cb: callable(uri, readonly) returning an open
        connection, replaced by the test suite
    """
    def __init__(self, registry, uri=None, readonly=False,
                 debug=DEFAULT_DEBUG_LEVEL, quiet=False, timing=False,
                 connect_cb=None):
        self.registry = registry
        self.name = uri
        self.readonly = readonly
        self.debug_level = debug
        self.quiet = quiet
        self.timing = timing
        self.interactive = False

        self._connect_cb = connect_cb or connection.getConnection
        self.conn = None

        # Set from signal handlers
        self.disconnected = 0
        self.int_caught = False

        self.last_error = None

        # Cleared on reconnect, so capability fallbacks are probed again
        self.use_legacy_info_probe = False

        self.cmds = []

    ##########
    # Output #
    ##########

    def out(self, msg):
        sys.stdout.write(msg)
        sys.stdout.flush()

    def out_extra(self, msg):
        """
        Informational output, hidden in quiet mode
        """
        if self.quiet:
            return
        self.out(msg)

    def debug(self, level, msg):
        log.log(level_from_debug(level), msg.rstrip("\n"))

    def error(self, msg):
        msg = msg.rstrip("\n")
        log.error(msg)
        sys.stdout.flush()
        sys.stderr.write(_("error: ") + msg + "\n")
        sys.stderr.flush()

    ###########################
    # Library error reporting #
    ###########################

    def _error_handler_cb(self, ignore, err):
        # Store only, the dispatcher decides when to print
        self.last_error = LibvirtErrorInfo.from_tuple(err)
        log.debug("libvirt error: %s", self.last_error.message)

    def record_exception(self, e):
        self.last_error = LibvirtErrorInfo.from_exception(e)

    def install_error_handler(self):
        libvirt.registerErrorHandler(self._error_handler_cb, None)

    def report_error(self):
        """
        Print the last library error and forget it. If nothing was
        recorded the command already said what went wrong
        """
        if self.last_error is None:
            # Errors raised in library utility code don't always go
            # through the callback
            err = libvirt.virGetLastError()
            if not err or err[0] == libvirt.VIR_ERR_OK:
                return
            self.last_error = LibvirtErrorInfo.from_tuple(err)

        if self.last_error.code == libvirt.VIR_ERR_OK:
            self.error(_("unknown error"))
        else:
            self.error(self.last_error.message)
        self.last_error = None
        libvirt.virResetLastError()

    ##############
    # Connection #
    ##############

    def reconnect(self):
        connected = False
        if self.conn:
            connected = True
            try:
                self.conn.close()
            except libvirt.libvirtError as e:
                log.debug("Closing old connection failed: %s", e)
            self.conn = None

        try:
            self.conn = self._connect_cb(self.name, self.readonly)
        except libvirt.libvirtError as e:
            self.last_error = LibvirtErrorInfo.from_exception(e)
            self.conn = None

        if not self.conn:
            if connected:
                self.error(_("Failed to reconnect to the hypervisor"))
            else:
                self.error(_("failed to connect to the hypervisor"))
        elif connected:
            self.error(_("Reconnected to the hypervisor"))

        self.disconnected = 0
        self.use_legacy_info_probe = False

    def open_connection(self, uri, readonly=False):
        """
        Open an extra connection, like the migration destination
        """
        return self._connect_cb(uri, readonly)

    def connection_usable(self):
        if not self.conn:
            self.error(_("no valid connection"))
            return False
        return True

    def close(self):
        """
        Drop the connection. Returns False if references leaked
        """
        if not self.conn:
            return True
        try:
            leaked = self.conn.close()
        except libvirt.libvirtError as e:
            log.debug("Closing connection failed: %s", e)
            leaked = 0
        self.conn = None
        if leaked:
            self.error(_("Failed to disconnect from the hypervisor, "
                         "%d leaked reference(s)") % leaked)
            return False
        return True

    ###########
    # Signals #
    ###########

    def _sigpipe_handler(self, signum, frame):
        ignore = signum
        ignore = frame
        self.disconnected += 1

    def _sigint_handler(self, signum, frame):
        ignore = signum
        ignore = frame
        self.int_caught = True

    def install_signal_handlers(self):
        if util.in_testsuite():
            return
        if hasattr(signal, "SIGPIPE"):
            signal.signal(signal.SIGPIPE, self._sigpipe_handler)

    def catch_sigint(self):
        """
        Route SIGINT to self.int_caught. Returns the previous handler
        for restore_sigint()
        """
        self.int_caught = False
        return signal.signal(signal.SIGINT, self._sigint_handler)

    def restore_sigint(self, oldhandler):
        signal.signal(signal.SIGINT, oldhandler)

    ##############
    # Dispatcher #
    ##############

    def parse_string(self, line):
        try:
            self.cmds = parser.parse_string(line, self.registry)
        except parser.CommandParseError as e:
            self.cmds = []
            for msg in e.messages:
                self.error(msg)
            return False
        return True

    def parse_argv(self, argv):
        try:
            self.cmds = parser.parse_argv(argv, self.registry)
        except parser.CommandParseError as e:
            self.cmds = []
            for msg in e.messages:
                self.error(msg)
            return False
        return True

    def _run_handler(self, cmd):
        try:
            return bool(cmd.definition.handler(self, cmd))
        except libvirt.libvirtError as e:
            log.debug("Command %s raised libvirt error", cmd.name,
                      exc_info=True)
            self.last_error = LibvirtErrorInfo.from_exception(e)
            return False

    def run(self, cmds=None):
        """
        Run the parsed commands in order. Returns the status of the
        last command that ran
        """
        if cmds is None:
            cmds = self.cmds

        ret = True
        for cmd in cmds:
            if ((not self.conn or self.disconnected) and
                not cmd.definition.no_connect):
                self.reconnect()

            self.last_error = None
            before = time.monotonic()
            ret = self._run_handler(cmd)
            after = time.monotonic()

            need_reconnect = False
            if not ret:
                need_reconnect = bool(self.last_error and
                                      self.last_error.is_transport_error())
                self.report_error()
                if self.disconnected:
                    need_reconnect = True
            if need_reconnect:
                self.reconnect()

            if cmd.name in ["quit", "exit"]:
                return ret

            if self.timing:
                self.out(_("\n(Time: %.3f ms)\n\n") %
                         ((after - before) * 1000))
            else:
                self.out_extra("\n")
        return ret

    def run_line(self, line):
        if not self.parse_string(line):
            return False
        return self.run()

    def run_argv(self, argv):
        if not self.parse_argv(argv):
            return False
        return self.run()

    ####################
    # Interactive mode #
    ####################

    def get_prompt(self):
        return self.readonly and PROMPT_RO or PROMPT_RW

    def interactive_loop(self, editor):
        self.interactive = True
        if not self.quiet:
            self.out(_("Welcome to %s, the virtualization interactive "
                       "terminal.\n\n") % "virsh")
            self.out(_("Type:  'help' for help with commands\n"
                       "       'quit' to quit\n\n"))

        editor.load_history()
        line = None
        while self.interactive:
            line = editor.readline(self.get_prompt())
            if line is None:
                break
            if line:
                editor.add_history(line)
                if self.parse_string(line):
                    self.run()

        if line is None:
            # Line break after the lone prompt
            self.out("\n")

        err = editor.save_history()
        if err:
            self.error(err)
        return True
