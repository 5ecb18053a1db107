# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import pytest

from virtsh import commands
from virtsh import parser
from virtsh.parser import CommandParseError


REGISTRY = commands.get_registry()


def _parse(line):
    return parser.parse_string(line, REGISTRY)


def _parse_one(line):
    cmds = _parse(line)
    assert len(cmds) == 1
    return cmds[0]


def _parse_fail(line):
    with pytest.raises(CommandParseError) as e:
        _parse(line)
    return e.value.messages


def test_option_forms_equal():
    """
    Positional, --opt val and --opt=val bind the same value
    """
    cmd1 = _parse_one("dominfo foo")
    cmd2 = _parse_one("dominfo --domain foo")
    cmd3 = _parse_one("dominfo --domain=foo")
    assert cmd1 == cmd2 == cmd3
    assert cmd1.opt_string("domain") == (1, "foo")

    # '=' only splits once
    cmd = _parse_one("dominfo --domain=a=b")
    assert cmd.opt_string("domain") == (1, "a=b")


def test_option_order():
    cmd1 = _parse_one("setvcpus foo 4 --live")
    cmd2 = _parse_one("setvcpus --live --count 4 foo")
    cmd3 = _parse_one("setvcpus --count=4 --live --domain foo")
    assert cmd1 == cmd2 == cmd3
    assert cmd1.opt_int("count") == (1, 4)
    assert cmd1.opt_bool("live")
    assert not cmd1.opt_bool("config")

    assert _parse_one("setvcpus foo 4") != cmd1
    assert _parse_one("setvcpus foo 5 --live") != cmd1


def test_multiple_commands():
    cmds = _parse("start foo; list --all ;; echo hi")
    assert [c.name for c in cmds] == ["start", "list", "echo"]
    assert cmds[1].opt_bool("all")
    assert cmds[2].argv_values() == ["hi"]

    assert _parse("") == []
    assert _parse(" ; ") == []


def test_data_only():
    cmd = _parse_one("echo -- --xml")
    assert not cmd.opt_bool("xml")
    assert cmd.argv_values() == ["--xml"]

    cmd = _parse_one("echo --xml -- --shell -- a")
    assert cmd.opt_bool("xml")
    assert not cmd.opt_bool("shell")
    assert cmd.argv_values() == ["--shell", "--", "a"]

    # Short forms and lone dashes are data
    cmd = _parse_one("echo -x - ---")
    assert cmd.argv_values() == ["-x", "-", "---"]


def test_argv_walk():
    cmd = _parse_one("send-key foo 30 --holdtime 100 31 --codeset linux 32")
    assert cmd.opt_int("holdtime") == (1, 100)
    assert cmd.opt_string("codeset") == (1, "linux")

    first = cmd.opt_argv()
    assert first.value == "30"
    second = cmd.opt_argv(first)
    assert second.value == "31"
    third = cmd.opt_argv(second)
    assert third.value == "32"
    assert cmd.opt_argv(third) is None
    assert cmd.argv_values() == ["30", "31", "32"]

    # requires_value options are never filled from data
    cmd = _parse_one("send-key foo linux")
    assert cmd.opt_string("codeset") == (0, None)
    assert cmd.argv_values() == ["linux"]


def test_argv_source():
    cmds = parser.parse_argv(["echo", "--shell", "a;b", "c d"], REGISTRY)
    assert len(cmds) == 1
    assert cmds[0].opt_bool("shell")
    assert cmds[0].argv_values() == ["a;b", "c d"]


def test_parse_errors():
    assert _parse_fail("nosuch") == ["unknown command: 'nosuch'"]
    assert _parse_fail("dominfo --bogus") == [
        "command 'dominfo' doesn't support option --bogus"]
    # argv options have no --name form
    assert _parse_fail("echo --string foo") == [
        "command 'echo' doesn't support option --string"]
    assert _parse_fail("dominfo --domain a --domain b") == [
        "option --domain already seen"]
    assert _parse_fail("dominfo a --domain b") == [
        "option --domain already seen"]
    assert _parse_fail("dominfo foo bar") == ["unexpected data 'bar'"]
    assert _parse_fail("dominfo --domain") == [
        "expected syntax: --domain <string>"]
    assert _parse_fail("setvcpus foo --count") == [
        "expected syntax: --count <number>"]
    assert _parse_fail("setvcpus foo --count ; list") == [
        "expected syntax: --count <number>"]
    assert _parse_fail("domstate foo --reason=yes") == [
        "invalid '=' after option --reason"]
    assert _parse_fail('echo "open') == ['missing "']


def test_missing_required():
    assert _parse_fail("dominfo") == [
        "command 'dominfo' requires <domain> option"]
    assert _parse_fail("setvcpus") == [
        "command 'setvcpus' requires <domain> option",
        "command 'setvcpus' requires --count option",
    ]
    assert _parse_fail("send-key foo") == [
        "command 'send-key' requires <keycode> option"]


def test_failure_discards_line():
    # A bad later command takes the good ones down with it
    assert _parse_fail("echo a; nosuch") == ["unknown command: 'nosuch'"]
    assert _parse_fail("a;b") == ["unknown command: 'a'"]


def test_accessors():
    cmd = _parse_one("setvcpus foo abc")
    assert cmd.opt_int("count") == (-1, None)
    assert cmd.opt_string("count") == (1, "abc")

    cmd = _parse_one("setvcpus foo 4")
    assert cmd.opt("count")[0] == 1
    assert cmd.opt("count")[1].name == "count"
    assert cmd.opt("nosuchopt") == (-1, None)
    assert cmd.opt_int("nosuchopt") == (-1, None)
    assert cmd.opt_bool("nosuchopt") is False

    cmd = _parse_one("setvcpus foo -1")
    assert cmd.opt_int("count") == (1, -1)
    assert cmd.opt_uint("count") == (-1, None)
    # Negative unsigned values wrap
    assert cmd.opt_ul("count") == (1, 18446744073709551615)
    assert cmd.opt_ulonglong("count") == (1, 18446744073709551615)

    cmd = _parse_one("setvcpus foo -0")
    assert cmd.opt_uint("count") == (1, 0)

    cmd = _parse_one("setvcpus foo -18446744073709551616")
    assert cmd.opt_ulonglong("count") == (-1, None)

    cmd = _parse_one("setvcpus foo 2147483648")
    assert cmd.opt_int("count") == (-1, None)
    assert cmd.opt_uint("count") == (1, 2147483648)
    assert cmd.opt_longlong("count") == (1, 2147483648)

    cmd = _parse_one("setvcpus foo 18446744073709551615")
    assert cmd.opt_longlong("count") == (-1, None)
    assert cmd.opt_ulonglong("count") == (1, 18446744073709551615)

    # Trailing junk and non-decimal forms are rejected
    for val in ["4x", "0x10", "", "4 "]:
        cmd = _parse_one("setvcpus foo '%s'" % val)
        assert cmd.opt_int("count") == (-1, None), val


def test_accessor_absent():
    cmd = _parse_one("send-key foo 30")
    assert cmd.opt_int("holdtime") == (0, None)
    assert cmd.opt_string("codeset") == (0, None)

    # Empty strings only where the option allows them
    cmd = _parse_one("dominfo ''")
    assert cmd.opt_string("domain") == (-1, None)
    cmd = _parse_one("connect ''")
    assert cmd.opt_string("name") == (1, "")
