# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import pytest

from virtsh import commands
from virtsh.command import (CommandDef, CommandDefError, CommandGroup,
        CommandRegistry, OptionDef, MAX_OPTIONS,
        OPT_ARGV, OPT_BOOL, OPT_DATA, OPT_INT, OPT_STRING)


def _handler(shell, cmd):
    ignore = shell
    ignore = cmd
    return True


def _registry(*cmddefs):
    return CommandRegistry([CommandGroup("Test", "test", cmddefs)])


def test_catalogue_validates():
    """
    The shipped command tables must pass startup validation
    """
    registry = commands.get_registry()
    registry.validate()

    keywords = [g.keyword for g in registry.groups]
    assert keywords == ["domain", "monitor", "host", "interface", "filter",
                        "network", "pool", "volume", "snapshot", "virsh"]
    for cmddef in registry.all_commands():
        assert cmddef.get_info("help"), cmddef.name


def test_catalogue_no_connect():
    registry = commands.get_registry()
    noconnect = sorted(c.name for c in registry.all_commands()
                       if c.no_connect)
    assert noconnect == ["cd", "connect", "domxml-from-native",
                         "domxml-to-native", "echo", "exit", "help",
                         "pwd", "quit"]


def test_masks():
    cmddef = CommandDef("test", _handler, [
        OptionDef("domain", OPT_DATA, "", required=True),
        OptionDef("count", OPT_INT, "", required=True),
        OptionDef("live", OPT_BOOL, ""),
        OptionDef("codeset", OPT_STRING, "", requires_value=True),
        OptionDef("name", OPT_STRING, ""),
        OptionDef("args", OPT_ARGV, ""),
    ])
    need_arg, required = cmddef.option_masks()
    assert need_arg == 0b110011
    assert required == 0b000011


def test_requires_value_required_is_required():
    cmddef = CommandDef("test", _handler, [
        OptionDef("timeout", OPT_INT, "", required=True,
                  requires_value=True),
    ])
    assert cmddef.option_masks() == (0, 1)


def test_invalid_definitions():
    def _check(opts, msg):
        with pytest.raises(CommandDefError) as e:
            _registry(CommandDef("broken", _handler, opts)).validate()
        assert msg in str(e.value)

    _check([OptionDef("force", OPT_BOOL, "", required=True)],
           "bool option 'force' in 'broken' can't be required")
    _check([OptionDef("a", OPT_DATA, ""),
            OptionDef("b", OPT_DATA, "", required=True)],
           "required option 'b' in 'broken' listed after an optional one")
    _check([OptionDef("args", OPT_ARGV, ""),
            OptionDef("b", OPT_DATA, "")],
           "argv option 'args' in 'broken' must be last")
    _check([OptionDef("a", OPT_DATA, ""),
            OptionDef("a", OPT_BOOL, "")],
           "duplicate option 'a' in 'broken'")
    _check([OptionDef("opt%d" % i, OPT_BOOL, "")
            for i in range(MAX_OPTIONS + 1)],
           "has %d options, max is %d" % (MAX_OPTIONS + 1, MAX_OPTIONS))

    with pytest.raises(CommandDefError):
        OptionDef("a", "float", "")


def test_duplicate_command():
    registry = CommandRegistry([
        CommandGroup("One", "one", [CommandDef("dup", _handler)]),
        CommandGroup("Two", "two", [CommandDef("dup", _handler)]),
    ])
    with pytest.raises(CommandDefError) as e:
        registry.validate()
    assert "registered in both 'one' and 'two'" in str(e.value)


def test_max_options_allowed():
    opts = [OptionDef("opt%d" % i, OPT_BOOL, "") for i in range(MAX_OPTIONS)]
    _registry(CommandDef("big", _handler, opts)).validate()


def test_lookup():
    registry = commands.get_registry()
    assert registry.find_command("list").name == "list"
    assert registry.find_command("LIST") is None
    assert registry.find_command("nosuchcommand") is None

    assert registry.find_group("domain").keyword == "domain"
    assert registry.find_group("Domain Management").keyword == "domain"
    assert registry.find_group("domain management") is None


def test_command_help():
    cmddef = CommandDef("setvcpus", _handler, [
        OptionDef("domain", OPT_DATA, "domain name, id or uuid",
                  required=True),
        OptionDef("count", OPT_INT, "number of virtual CPUs",
                  required=True),
        OptionDef("live", OPT_BOOL, "affect running domain"),
        OptionDef("codeset", OPT_STRING, "the codeset"),
    ], {"help": "change number of virtual CPUs",
        "desc": "Change the number of virtual CPUs."})

    expect = (
        "  NAME\n"
        "    setvcpus - change number of virtual CPUs\n"
        "\n"
        "  SYNOPSIS\n"
        "    setvcpus <domain> <count> [--live] [--codeset <string>]\n"
        "\n"
        "  DESCRIPTION\n"
        "    Change the number of virtual CPUs.\n"
        "\n"
        "  OPTIONS\n"
        "    [--domain] <string>  domain name, id or uuid\n"
        "    [--count] <number>  number of virtual CPUs\n"
        "    --live           affect running domain\n"
        "    --codeset <string>  the codeset\n"
        "\n")
    assert cmddef.format_help() == expect


def test_command_help_no_options():
    cmddef = CommandDef("uri", _handler, [],
        {"help": "print the hypervisor canonical URI", "desc": ""})
    assert cmddef.format_help() == (
        "  NAME\n"
        "    uri - print the hypervisor canonical URI\n"
        "\n"
        "  SYNOPSIS\n"
        "    uri\n"
        "\n")


def test_synopsis_kinds():
    assert OptionDef("a", OPT_DATA, "").synopsis() == "[<a>]"
    assert OptionDef("a", OPT_ARGV, "", required=True).synopsis() == "<a>..."
    assert OptionDef("a", OPT_ARGV, "").synopsis() == "[<a>]..."
    assert OptionDef("a", OPT_INT, "").synopsis() == "[--a <number>]"
    assert OptionDef("a", OPT_ARGV, "").usage() == "<a>"


def test_group_help():
    group = CommandGroup("Virsh itself", "virsh", [
        CommandDef("pwd", _handler, [], {"help": "print the current "
                                                 "directory"}),
    ])
    assert group.format_help() == (
        " Virsh itself (help keyword 'virsh'):\n"
        "    pwd                            print the current directory\n")
