#
# Commands of the shell itself
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os

from .common import CommandDef, OptionDef, OPT_ARGV, OPT_BOOL, OPT_DATA
from .. import util


def cmd_help(shell, cmd):
    ret, name = cmd.opt_string("command")
    if ret <= 0:
        shell.out(shell.registry.format_help())
        return True

    cmddef = shell.registry.find_command(name)
    if cmddef:
        shell.out(cmddef.format_help())
        return True

    group = shell.registry.find_group(name)
    if group:
        shell.out(group.format_help())
        return True

    shell.error(_("command or command group '%s' doesn't exist") % name)
    return False


def format_echo(args, shell_quote=False, xml=False):
    """
    Join @args like 'echo', optionally escaping each one for XML
    and then quoting it for the shell
    """
    ret = []
    for arg in args:
        if xml:
            arg = util.xml_escape(arg)
        if shell_quote and arg:
            arg = util.shell_escape(arg)
        ret.append(arg)
    return " ".join(ret)


def cmd_echo(shell, cmd):
    shell.out(format_echo(cmd.argv_values(),
                          shell_quote=cmd.opt_bool("shell"),
                          xml=cmd.opt_bool("xml")) + "\n")
    return True


def cmd_cd(shell, cmd):
    if not shell.interactive:
        shell.error(_("cd: command valid only in interactive mode"))
        return False

    ret, path = cmd.opt_string("dir")
    if ret <= 0:
        path = os.path.expanduser("~") or "/"

    try:
        os.chdir(path)
    except OSError as e:
        shell.error(_("cd: %(err)s: %(dir)s") %
                    {"err": e.strerror, "dir": path})
        return False
    return True


def cmd_pwd(shell, cmd):
    ignore = cmd
    try:
        cwd = os.getcwd()
    except OSError as e:
        shell.error(_("pwd: cannot get current directory: %s") % e.strerror)
        return False
    shell.out("%s\n" % cwd)
    return True


def cmd_quit(shell, cmd):
    ignore = cmd
    shell.interactive = False
    return True


_QUIT_INFO = {"help": _("quit this interactive terminal"), "desc": ""}

COMMANDS = [
    CommandDef("cd", cmd_cd, [
        OptionDef("dir", OPT_DATA, _("directory to switch to (default: "
                                     "home or else root)")),
    ], {"help": _("change the current directory"),
        "desc": _("Change the current directory.")},
       no_connect=True),

    CommandDef("echo", cmd_echo, [
        OptionDef("shell", OPT_BOOL, _("escape for shell use")),
        OptionDef("xml", OPT_BOOL, _("escape for XML use")),
        OptionDef("string", OPT_ARGV, _("arguments to echo")),
    ], {"help": _("echo arguments"),
        "desc": _("Echo back arguments, possibly with quoting.")},
       no_connect=True),

    CommandDef("exit", cmd_quit, [], _QUIT_INFO, no_connect=True),

    CommandDef("help", cmd_help, [
        OptionDef("command", OPT_DATA,
                  _("Prints global help, command specific help, or help "
                    "for a group of related commands")),
    ], {"help": _("print help"),
        "desc": _("Prints global help, command specific help, or help "
                  "for a\n    group of related commands")},
       no_connect=True),

    CommandDef("pwd", cmd_pwd, [],
        {"help": _("print the current directory"),
         "desc": _("Print the current directory.")},
       no_connect=True),

    CommandDef("quit", cmd_quit, [], _QUIT_INFO, no_connect=True),
]
