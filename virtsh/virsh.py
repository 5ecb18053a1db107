#
# The virtualization shell
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os
import sys

from . import cli
from .buildconfig import BuildConfig
from .cli import fail, print_stderr, print_stdout
from . import commands
from . import lineeditor
from .logger import DEFAULT_DEBUG_LEVEL, log
from .shell import Shell


def _usage():
    return _("\n%(prog)s [options]... [<command_string>]"
             "\n%(prog)s [options]... <command> [args...]") % {
        "prog": BuildConfig.progname}


def _description(registry):
    ret = _("  commands (non interactive mode):\n\n")
    for grp in registry.groups:
        ret += grp.format_help() + "\n"
    ret += _("  (specify help <group> for details about the commands in "
             "the group)\n")
    ret += _("\n  (specify help <command> for details about the command)\n")
    return ret


def parse_args(registry):
    parser = cli.setupParser(_usage(), _description(registry))
    cli.autocomplete(parser)
    return parser.parse_args()


def _print_version(which):
    if which == "short":
        print_stdout(BuildConfig.version)
        return
    print_stdout(_("Virsh command line tool of libvirt %s") %
                 BuildConfig.version)
    print_stdout(_("See web site at %s\n") % "https://libvirt.org/")


def _env_debug_level():
    """
    VIRSH_DEBUG, or None if unset or invalid
    """
    val = os.environ.get("VIRSH_DEBUG")
    if val is None:
        return None
    try:
        debug = int(val, 10)
    except ValueError:
        debug = -1
    if debug < 0 or debug > 4:
        print_stderr(_("error: VIRSH_DEBUG not set with a valid numeric "
                       "value"))
        return None
    return debug


def main(conn=None):
    """
    :param conn: an already open connection, used by the test suite
        instead of opening the URI
    """
    registry = commands.get_registry()
    options = parse_args(registry)

    if options.version:
        _print_version(options.version)
        return 0

    debug = options.debug
    if debug is None:
        debug = _env_debug_level()
    if debug is None:
        debug = DEFAULT_DEBUG_LEVEL
    logfile = options.log or os.environ.get("VIRSH_LOG_FILE")
    uri = options.connect or os.environ.get("VIRSH_DEFAULT_CONNECT_URI")

    try:
        cli.setupLogging(BuildConfig.progname, debug, logfile)
    except cli.CLIError as e:
        fail(e)

    # A broken command table is a bug, don't start with it
    registry.validate()

    connect_cb = None
    if conn:
        connect_cb = lambda _uri, _readonly: conn
    shell = Shell(registry, uri=uri, readonly=options.readonly,
                  debug=debug, quiet=options.quiet, timing=options.timing,
                  connect_cb=connect_cb)
    shell.install_error_handler()
    shell.install_signal_handlers()

    if options.command:
        if len(options.command) == 1:
            shell.debug(1, "commands: \"%s\"" % options.command[0])
            ret = shell.run_line(options.command[0])
        else:
            ret = shell.run_argv(options.command)
    else:
        editor = lineeditor.get_line_editor(registry)
        ret = shell.interactive_loop(editor)

    if not shell.close():
        ret = False
    log.debug("Exiting with status %s", ret)
    if ret:
        return 0
    return 1


def runcli():  # pragma: no cover
    try:
        sys.exit(main())
    except SystemExit as sys_e:
        sys.exit(sys_e.code)
    except KeyboardInterrupt:
        log.debug("", exc_info=True)
        print_stderr(_("Aborted at user request"))
    except Exception as main_e:
        fail(main_e)


if __name__ == "__main__":  # pragma: no cover
    runcli()
