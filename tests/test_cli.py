# Copyright (C) 2013, 2014 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import io
import re
import sys

import pytest

from tests import setup_logging
from tests import utils

from virtsh import virsh


@pytest.fixture(autouse=True)
def _restore_logging():
    # main() replaces the log handlers
    yield
    setup_logging()


def _run(monkeypatch, args, conn=None, stdin=None):
    monkeypatch.setattr(sys, "argv", ["virsh"] + args)
    if stdin is not None:
        monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
    return virsh.main(conn=conn)


def _fake_conn():
    return utils.FakeConnection(utils.default_domains())


def test_list_argv(monkeypatch, capsys):
    ret = _run(monkeypatch, ["-q", "-c", "test:///default", "list", "--all"],
               conn=_fake_conn())
    assert ret == 0
    out, err = capsys.readouterr()
    assert out.startswith(" Id    Name" + " " * 27 + "State\n" +
                          "-" * 52 + "\n")
    assert "inactive-guest" in out
    assert err == ""


def test_command_string(monkeypatch, capsys):
    # A single argument is a whole command line
    assert _run(monkeypatch, ["echo a; echo b"]) == 0
    assert capsys.readouterr().out == "a\n\nb\n\n"

    assert _run(monkeypatch, ["-q", "echo a; echo b"]) == 0
    assert capsys.readouterr().out == "a\nb\n"


def test_echo_argv(monkeypatch, capsys):
    assert _run(monkeypatch, ["-q", "echo", "--shell", "hi there"]) == 0
    assert capsys.readouterr().out == "'hi there'\n"

    # Separators in argv are plain data
    assert _run(monkeypatch, ["-q", "echo", "a;b"]) == 0
    assert capsys.readouterr().out == "a;b\n"

    assert _run(monkeypatch, ["-q", "echo", "--xml", "<"]) == 0
    assert capsys.readouterr().out == "&lt;\n"


def test_help(monkeypatch, capsys):
    assert _run(monkeypatch, ["-q", "help", "domain"]) == 0
    out = capsys.readouterr().out
    assert out.startswith(" Domain Management (help keyword 'domain'):\n")

    with pytest.raises(SystemExit) as e:
        _run(monkeypatch, ["--help"])
    assert e.value.code == 0
    out = capsys.readouterr().out
    assert "commands (non interactive mode):" in out
    assert " Virsh itself (help keyword 'virsh'):" in out


def test_failing_command(monkeypatch, capsys):
    assert _run(monkeypatch, ["-q", "nosuch"]) == 1
    assert capsys.readouterr() == ("", "error: unknown command: 'nosuch'\n")

    assert _run(monkeypatch, ["-q", "dominfo", "nosuch"],
                conn=_fake_conn()) == 1
    assert capsys.readouterr().err == "error: failed to get domain 'nosuch'\n"


def test_version(monkeypatch, capsys):
    assert _run(monkeypatch, ["-v"]) == 0
    assert capsys.readouterr().out == "0.9.4\n"

    assert _run(monkeypatch, ["--version=long"]) == 0
    assert capsys.readouterr().out == (
        "Virsh command line tool of libvirt 0.9.4\n"
        "See web site at https://libvirt.org/\n\n")

    assert _run(monkeypatch, ["-V"]) == 0
    assert capsys.readouterr().out.startswith("Virsh command line tool")


def test_bad_options(monkeypatch, capsys):
    for args in [["-d", "9", "list"], ["-d", "x"], ["--bogus"]]:
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch, args)
        assert e.value.code == 1
    err = capsys.readouterr().err
    assert "debug level must be between 0 and 4" in err
    assert "invalid debug level 'x'" in err
    assert "unrecognized arguments: --bogus" in err


def test_env_debug(monkeypatch, capsys):
    monkeypatch.setenv("VIRSH_DEBUG", "abc")
    assert _run(monkeypatch, ["-q", "echo", "hi"]) == 0
    assert capsys.readouterr() == (
        "hi\n", "error: VIRSH_DEBUG not set with a valid numeric value\n")

    monkeypatch.setenv("VIRSH_DEBUG", "0")
    assert _run(monkeypatch, ["-q", "echo", "hi"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "virsh 0.9.4 started" in lines
    assert "hi" in lines
    assert lines[-1] == "Exiting with status True"


def test_log_file(monkeypatch, capsys, tmp_path):
    logfile = tmp_path / "virsh.log"
    assert _run(monkeypatch, ["-q", "-l", str(logfile), "nosuch"]) == 1
    capsys.readouterr()

    lines = logfile.read_text().splitlines()
    assert re.match(r"^\[\d{4}\.\d\d\.\d\d \d\d:\d\d:\d\d virsh \d+\] "
                    r"DEBUG virsh 0\.9\.4 started$", lines[0]), lines[0]
    assert any(line.endswith("] ERROR unknown command: 'nosuch'")
               for line in lines)

    with pytest.raises(SystemExit) as e:
        _run(monkeypatch, ["-l", str(tmp_path / "nodir" / "log"), "pwd"])
    assert e.value.code == 1
    assert capsys.readouterr().err == "error: failed to open the log file\n"


def test_interactive(monkeypatch, capsys):
    assert _run(monkeypatch, ["-q"], stdin="a;b\n") == 0
    assert capsys.readouterr() == (
        "virsh # virsh # \n", "error: unknown command: 'a'\n")

    assert _run(monkeypatch, ["-q", "-r"], stdin="echo hi\nquit\n") == 0
    assert capsys.readouterr().out == "virsh > hi\nvirsh > "
