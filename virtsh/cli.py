#
# Utility functions for the command line driver
#
# Copyright 2006-2007, 2013, 2014 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import argparse
import logging
import os
import sys
import traceback

from .buildconfig import BuildConfig
from .logger import level_from_debug, log, reset_logging
from . import util


class CLIError(Exception):
    pass


####################
# CLI init helpers #
####################

class VirtHelpFormatter(argparse.RawDescriptionHelpFormatter):
    '''
    Subclass the default help formatter to allow printing newline characters
    in --help output. The way we do this is a huge hack :(

    Inspiration: http://groups.google.com/group/comp.lang.python/browse_thread/thread/6df6e6b541a15bc2/09f28e26af0699b1
    '''
    oldwrap = None

    # pylint: disable=arguments-differ
    def _split_lines(self, *args, **kwargs):
        def return_default():
            return argparse.RawDescriptionHelpFormatter._split_lines(
                self, *args, **kwargs)

        if len(kwargs) != 0 and len(args) != 2:
            return return_default()  # pragma: no cover

        text = args[0]
        if "\n" in text:
            return text.splitlines()
        return return_default()


class _VirshArgumentParser(argparse.ArgumentParser):
    """
    Usage errors exit with status 1
    """
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, _("%(prog)s: error: %(msg)s\n") %
                  {"prog": self.prog, "msg": message})


def _debug_level(val):
    try:
        ret = int(val, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(
            _("invalid debug level '%s'") % val) from None
    if ret < 0 or ret > 4:
        raise argparse.ArgumentTypeError(
            _("debug level must be between 0 and 4")) from None
    return ret


def setupParser(usage, description):
    """
    Top level options. Everything after the first positional is
    left for the command parser, which is what getopt's '+' leader
    did for the C tool
    """
    parser = _VirshArgumentParser(
        usage=usage, description=description,
        formatter_class=VirtHelpFormatter,
        add_help=False)

    parser.add_argument("-c", "--connect", metavar="URI",
            help=_("hypervisor connection URI"))
    parser.add_argument("-r", "--readonly", action="store_true",
            help=_("connect readonly"))
    parser.add_argument("-d", "--debug", type=_debug_level, metavar="NUM",
            help=_("debug level [0-4]"))
    parser.add_argument("-h", "--help", action="help",
            help=_("this help"))
    parser.add_argument("-q", "--quiet", action="store_true",
            help=_("quiet mode"))
    parser.add_argument("-t", "--timing", action="store_true",
            help=_("print timing information"))
    parser.add_argument("-l", "--log", metavar="FILE",
            help=_("output logging to file"))
    parser.add_argument("-v", action="store_const", const="short",
            dest="version", help=_("short version"))
    parser.add_argument("-V", action="store_const", const="long",
            dest="version", help=_("long version"))
    parser.add_argument("--version", nargs="?", const="short",
            choices=["short", "long"], metavar="short|long",
            help=_("print short or long version"))

    parser.add_argument("command", nargs=argparse.REMAINDER,
            help=_("command string, or command and arguments"))
    return parser


def autocomplete(parser):
    if "_ARGCOMPLETE" not in os.environ:
        return

    import argcomplete

    kwargs = {}
    if util.in_testsuite():
        import io
        kwargs["output_stream"] = io.BytesIO()
        kwargs["exit_method"] = sys.exit

    try:
        argcomplete.autocomplete(parser, **kwargs)
    except SystemExit:
        if util.in_testsuite():
            output = kwargs["output_stream"].getvalue().decode("utf-8")
            print(output)
        raise


class _NoErrorFilter(logging.Filter):
    """
    Errors are printed on stderr by the shell, keep them out of the
    stdout debug stream
    """
    def filter(self, record):
        return record.levelno < logging.ERROR


def setupLogging(appname, debug, logfile=None):
    """
    :param debug: virsh debug level 0-4. Messages at or above it are
        printed to stdout
    :param logfile: path to append every message to
    """
    dateFormat = "%Y.%m.%d %H:%M:%S"
    fileFormat = ("[%(asctime)s " + appname + " %(process)d] "
                  "%(levelname)s %(message)s")

    reset_logging()
    log.setLevel(logging.DEBUG)
    log.propagate = False

    if logfile:
        try:
            fileHandler = logging.FileHandler(logfile, "a")
        except OSError as e:
            log.debug("Opening %s failed: %s", logfile, e)
            raise CLIError(_("failed to open the log file")) from None
        fileHandler.setFormatter(logging.Formatter(fileFormat, dateFormat))
        log.addHandler(fileHandler)

    streamHandler = logging.StreamHandler(sys.stdout)
    streamHandler.setLevel(level_from_debug(debug))
    streamHandler.setFormatter(logging.Formatter("%(message)s"))
    streamHandler.addFilter(_NoErrorFilter())
    log.addHandler(streamHandler)

    # Log uncaught exceptions
    def exception_log(typ, val, tb):  # pragma: no cover
        log.debug("Uncaught exception:\n%s",
                  "".join(traceback.format_exception(typ, val, tb)))
        sys.__excepthook__(typ, val, tb)
    sys.excepthook = exception_log

    log.debug("%s %s started", appname, BuildConfig.version)
    log.debug("Launched with command line: %s", " ".join(sys.argv))


##############################
# Misc CLI utility functions #
##############################

def fail(msg, do_exit=True):
    """
    Convenience function when failing in cli app
    """
    log.debug("".join(traceback.format_stack()))
    print_stderr(_("error: %s") % msg)
    if sys.exc_info()[0] is not None:
        log.debug("", exc_info=True)
    if do_exit:
        _fail_exit()


def print_stdout(msg, do_force=False, quiet=False):
    if do_force or not quiet:
        print(msg)


def print_stderr(msg):
    log.debug(msg)
    print(msg, file=sys.stderr)


def _fail_exit():
    sys.exit(1)
