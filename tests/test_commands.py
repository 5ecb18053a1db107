# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os
import uuid

import libvirt
import pytest

from tests import utils

from virtsh import jobwatch
from virtsh.commands import common
from virtsh.commands.domain import SEND_KEY_MAX_KEYS
from virtsh.commands.shellcmds import format_echo
from virtsh.commands.snapshot import build_snapshot_xml, parse_snapshot_summary


_UUID = "c7a5fdbd-edaf-9455-926a-d65c16db1809"


@pytest.fixture
def conn():
    return utils.FakeConnection(utils.default_domains())


@pytest.fixture
def shell(conn):
    return utils.make_shell(conn, quiet=True)


def _dom(conn, name):
    return conn.lookupByName(name)


def _field(label, value, width=15):
    return label.ljust(width) + " " + value + "\n"


###################
# Domain monitors #
###################

def test_list(shell, capsys):
    header = (" Id    Name" + " " * 27 + "State\n" + "-" * 52 + "\n")

    assert shell.run_line("list --all")
    assert capsys.readouterr().out == (header +
        " 1     test" + " " * 27 + "running\n" +
        " 4     paused-guest" + " " * 19 + "paused\n" +
        " -     inactive-guest" + " " * 17 + "shut off\n")

    assert shell.run_line("list")
    out = capsys.readouterr().out
    assert out.startswith(header)
    assert "inactive-guest" not in out
    assert "paused-guest" in out

    assert shell.run_line("list --inactive")
    assert capsys.readouterr().out == (header +
        " -     inactive-guest" + " " * 17 + "shut off\n")


def test_list_vanished_domain(shell, conn, capsys):
    # Listed, but gone by the time it is looked up
    conn.listDomainsID = lambda: [1, 99]
    assert shell.run_line("list")
    out, err = capsys.readouterr()
    assert " 99 " not in out
    assert err == ""


def test_dominfo(shell, capsys):
    assert shell.run_line("dominfo test")
    assert capsys.readouterr().out == (
        _field("Id:", "1") +
        _field("Name:", "test") +
        _field("UUID:", "4b7e3ba0-36ad-4c3a-b0b0-64e1d8a5b701") +
        _field("OS Type:", "hvm") +
        _field("State:", "running") +
        _field("CPU(s):", "2") +
        _field("CPU time:", "12.5s") +
        _field("Max memory:", "1048576 kB") +
        _field("Used memory:", "524288 kB") +
        _field("Persistent:", "yes") +
        _field("Autostart:", "disable"))

    assert shell.run_line("dominfo inactive-guest")
    assert capsys.readouterr().out.startswith(_field("Id:", "-"))


def test_domain_lookup(shell, capsys):
    # By id, by UUID, then by name
    assert shell.run_line("domname 4")
    assert capsys.readouterr().out == "paused-guest\n"
    assert shell.run_line(
        "domname 4b7e3ba0-36ad-4c3a-b0b0-64e1d8a5b704")
    assert capsys.readouterr().out == "paused-guest\n"
    assert shell.run_line("domuuid test")
    assert capsys.readouterr().out == (
        "4b7e3ba0-36ad-4c3a-b0b0-64e1d8a5b701\n")

    assert shell.run_line("domid test")
    assert capsys.readouterr().out == "1\n"
    assert shell.run_line("domid inactive-guest")
    assert capsys.readouterr().out == "-\n"

    assert not shell.run_line("dominfo nosuch")
    assert capsys.readouterr() == (
        "", "error: failed to get domain 'nosuch'\n")

    # domname doesn't take names
    assert not shell.run_line("domname test")
    assert capsys.readouterr().err == "error: failed to get domain 'test'\n"


def test_domstate(shell, conn, capsys):
    assert shell.run_line("domstate paused-guest --reason")
    assert capsys.readouterr().out == "paused (user)\n"
    assert shell.run_line("domstate inactive-guest")
    assert capsys.readouterr().out == "shut off\n"

    _dom(conn, "test")._reason = libvirt.VIR_DOMAIN_RUNNING_BOOTED
    assert shell.run_line("domstate test --reason")
    assert capsys.readouterr().out == "running (booted)\n"


####################
# Domain lifecycle #
####################

def test_start(shell, conn, capsys):
    assert not shell.run_line("start test")
    assert capsys.readouterr().err == "error: Domain is already active\n"

    dom = _dom(conn, "inactive-guest")
    assert shell.run_line("start inactive-guest")
    assert capsys.readouterr().out == "Domain inactive-guest started\n"
    assert shell.run_line("start inactive-guest --paused")
    assert dom.calls == [
        ("create",),
        ("createWithFlags", libvirt.VIR_DOMAIN_START_PAUSED)]

    # Only names are accepted
    assert not shell.run_line("start 1")
    assert capsys.readouterr().err == "error: failed to get domain '1'\n"


def test_simple_actions(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("destroy test; suspend 1; resume test")
    assert capsys.readouterr().out == (
        "Domain test destroyed\n"
        "Domain 1 suspended\n"
        "Domain test resumed\n")
    assert dom.calls == [("destroy",), ("suspend",), ("resume",)]


def test_undefine(shell, conn, capsys):
    assert not shell.run_line("undefine 1")
    assert capsys.readouterr().err == (
        "error: a running domain like 1 cannot be undefined;\n"
        "to undefine, first shutdown then undefine using its name "
        "or UUID\n")

    dom = _dom(conn, "inactive-guest")
    assert shell.run_line("undefine inactive-guest")
    assert shell.run_line("undefine inactive-guest --managed-save")
    assert capsys.readouterr().out == (
        "Domain inactive-guest has been undefined\n" * 2)
    assert dom.calls == [
        ("undefine",),
        ("undefineFlags", libvirt.VIR_DOMAIN_UNDEFINE_MANAGED_SAVE)]


def test_autostart(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("autostart test")
    assert dom.autostart_value == 1
    assert shell.run_line("autostart test --disable")
    assert dom.autostart_value == 0
    assert capsys.readouterr().out == (
        "Domain test marked as autostarted\n"
        "Domain test unmarked as autostarted\n")


def test_save(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("save test /tmp/test.save")
    assert capsys.readouterr().out == "Domain test saved to /tmp/test.save\n"
    assert dom.calls == [("save", "/tmp/test.save")]


def test_migrate_errors(shell, capsys):
    assert not shell.run_line(
        "migrate --p2p test qemu+ssh://dest/system tcp://dest")
    assert capsys.readouterr().err == (
        "error: migrate: Unexpected migrateuri for peer2peer/direct "
        "migration\n")

    assert not shell.run_line(
        "migrate test qemu+ssh://dest/system --timeout 5")
    assert capsys.readouterr().err == (
        "error: migrate: Unexpected timeout for offline migration\n")

    assert not shell.run_line(
        "migrate --live test qemu+ssh://dest/system --timeout 0")
    assert capsys.readouterr().err == "error: migrate: Invalid timeout\n"


####################
# Domain resources #
####################

def test_setmem(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("setmem test 4096")
    assert shell.run_line("setmem test 8192 --live --config")
    assert dom.calls == [
        ("setMemory", 4096),
        ("setMemoryFlags", 8192,
         libvirt.VIR_DOMAIN_AFFECT_CONFIG | libvirt.VIR_DOMAIN_AFFECT_LIVE)]

    assert not shell.run_line("setmem test 2000000")
    assert capsys.readouterr().err == (
        "error: Requested memory size 2000000 kb is larger than maximum "
        "of 1048576 kb\n")
    assert not shell.run_line("setmem test 0")
    assert capsys.readouterr().err == (
        "error: Invalid value of 0 for memory size\n")
    assert not shell.run_line("setmem test 4096 --current --live")
    assert capsys.readouterr().err == (
        "error: --current must be specified exclusively\n")


def test_setvcpus(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("setvcpus test 3")
    assert shell.run_line("setvcpus test 4 --maximum --config")
    assert dom.calls == [
        ("setVcpus", 3),
        ("setVcpusFlags", 4, libvirt.VIR_DOMAIN_AFFECT_CONFIG |
         libvirt.VIR_DOMAIN_VCPU_MAXIMUM)]

    assert not shell.run_line("setvcpus test 0")
    assert capsys.readouterr().err == (
        "error: Invalid number of virtual CPUs\n")
    assert not shell.run_line("setvcpus test 4 --maximum")
    assert capsys.readouterr().err == (
        "error: --maximum must be used with --config only\n")


def test_vcpucount(shell, capsys):
    assert shell.run_line("vcpucount test")
    assert capsys.readouterr().out == (
        "maximum".ljust(12) + " " + "config".ljust(12) + "   4\n" +
        "maximum".ljust(12) + " " + "live".ljust(12) + "   4\n" +
        "current".ljust(12) + " " + "config".ljust(12) + "   2\n" +
        "current".ljust(12) + " " + "live".ljust(12) + "   2\n")

    assert shell.run_line("vcpucount test --current --live")
    assert capsys.readouterr().out == "2\n"

    assert not shell.run_line("vcpucount test --maximum")
    assert capsys.readouterr().err == (
        "error: when using --maximum, either --config or --live must be "
        "specified\n")
    assert not shell.run_line("vcpucount test --config")
    assert capsys.readouterr().err == (
        "error: when using --config, either --maximum or --current must be "
        "specified\n")
    assert not shell.run_line("vcpucount test --maximum --current")
    assert capsys.readouterr().err == (
        "error: --maximum and --current cannot both be specified\n")


def test_send_key(shell, conn, capsys):
    dom = _dom(conn, "test")
    assert shell.run_line("send-key test KEY_A 30 0x1f --holdtime 50")
    assert dom.calls == [
        ("sendKey", libvirt.VIR_KEYCODE_SET_LINUX, 50, [30, 30, 31], 3, 0)]

    keys = " ".join(["KEY_ESC"] * SEND_KEY_MAX_KEYS)
    assert shell.run_line("send-key test %s" % keys)

    assert not shell.run_line("send-key test %s KEY_ESC" % keys)
    assert capsys.readouterr().err == "error: too many keycodes\n"
    assert not shell.run_line("send-key test KEY_BOGUS")
    assert capsys.readouterr().err == "error: invalid keycode: 'KEY_BOGUS'\n"
    assert not shell.run_line("send-key test 0x10000")
    assert capsys.readouterr().err == "error: invalid keycode: '0x10000'\n"

    # Names are only known for the linux codeset
    assert not shell.run_line("send-key test --codeset xt KEY_A")
    assert capsys.readouterr().err == "error: invalid keycode: 'KEY_A'\n"
    assert shell.run_line("send-key test --codeset xt 30")
    assert dom.calls[-1][1] == libvirt.VIR_KEYCODE_SET_XT

    assert not shell.run_line("send-key test --codeset nosuch 1")
    assert capsys.readouterr().err == "error: unknown codeset: 'nosuch'\n"
    assert not shell.run_line("send-key test --holdtime abc 1")
    assert capsys.readouterr().err == "error: invalid value of --holdtime\n"


###############
# XML editing #
###############

def test_dumpxml(shell, capsys):
    assert shell.run_line("dumpxml test --inactive")
    assert capsys.readouterr().out == "<domain><name>test</name></domain>\n"


def test_edit_unchanged(shell, conn, capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("TMPDIR", str(tmp_path))
    monkeypatch.setenv("VISUAL", "true")
    assert shell.run_line("edit test")
    assert capsys.readouterr().out == (
        "Domain test XML configuration not changed.\n")
    assert conn.defined == []
    assert os.listdir(str(tmp_path)) == []


def test_edit_changed(shell, conn, capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("TMPDIR", str(tmp_path))
    # Arguments mean it runs through sh -c
    monkeypatch.setenv("VISUAL", "sed -i -e s/test/edited/")
    assert shell.run_line("edit test")
    assert capsys.readouterr().out == "Domain test XML configuration edited.\n"
    assert conn.defined == ["<domain><name>edited</name></domain>\n"]
    assert os.listdir(str(tmp_path)) == []


def test_edit_failed(shell, conn, capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("TMPDIR", str(tmp_path))
    monkeypatch.setenv("VISUAL", "false")
    assert not shell.run_line("edit test")
    assert "command exited with non-zero status" in capsys.readouterr().err
    assert conn.defined == []
    assert os.listdir(str(tmp_path)) == []


def test_edit_changed_meanwhile(shell, conn, capsys, monkeypatch, tmp_path):
    monkeypatch.setenv("TMPDIR", str(tmp_path))
    monkeypatch.setenv("VISUAL", "sed -i -e s/test/edited/")
    dom = _dom(conn, "test")
    docs = ["<domain>test</domain>\n", "<domain>other</domain>\n"]
    monkeypatch.setattr(dom, "XMLDesc", lambda flags: docs.pop(0))
    assert not shell.run_line("edit test")
    assert capsys.readouterr().err == (
        "error: ERROR: the XML configuration was changed by another user\n")
    assert conn.defined == []


#######################
# Native config files #
#######################

def test_domxml_from_native(shell, capsys, tmp_path):
    path = tmp_path / "guest.sxpr"
    path.write_text(
        "(domain (domid 3) (name pv) (uuid %s) (memory 256) "
        "(maxmem 256) (vcpus 1) (image (linux (kernel /boot/vmlinuz))))" %
        _UUID)
    assert shell.run_line("domxml-from-native xen-sxpr %s" % path)
    out = capsys.readouterr().out
    assert out.startswith('<domain type="xen" id="3">\n  <name>pv</name>\n')
    assert "<kernel>/boot/vmlinuz</kernel>" in out

    # The xen converter needs no connection
    assert shell.connect_counter.count == 0

    path.write_text("(domain (name pv)")
    assert not shell.run_line("domxml-from-native xen-sxpr %s" % path)
    assert "unterminated list" in capsys.readouterr().err

    missing = tmp_path / "missing"
    assert not shell.run_line("domxml-from-native xen-sxpr %s" % missing)
    assert capsys.readouterr().err == (
        "error: Failed to open file '%s': No such file or directory\n" %
        missing)


def test_domxml_to_native(shell, capsys, tmp_path):
    path = tmp_path / "guest.xml"
    path.write_text(
        "<domain type='xen'><name>pv</name><uuid>%s</uuid>"
        "<memory>262144</memory><vcpu>1</vcpu>"
        "<os><type>linux</type><kernel>/boot/vmlinuz</kernel></os>"
        "</domain>" % _UUID)
    assert shell.run_line("domxml-to-native xen-sxpr %s" % path)
    out = capsys.readouterr().out
    assert out.startswith(
        "(vm (name 'pv')(memory 256)(maxmem 256)(vcpus 1)(uuid '%s')" %
        _UUID)
    assert out.endswith("\n")

    assert not shell.run_line(
        "domxml-to-native xen-sxpr %s --xend-config-version abc" % path)
    assert capsys.readouterr().err == (
        "error: invalid xend config version\n")

    path.write_text("<network/>")
    assert not shell.run_line("domxml-to-native xen-sxpr %s" % path)
    assert capsys.readouterr().err == (
        "error: expected <domain> root, got <network>\n")


def test_domxml_to_native_minimal(shell, capsys, tmp_path, monkeypatch):
    monkeypatch.setattr(uuid, "uuid4", lambda: uuid.UUID(_UUID))
    path = tmp_path / "guest.xml"
    path.write_text(
        "<domain type='xen'><name>g</name><memory>524288</memory>"
        "<vcpu>1</vcpu><os><type>linux</type>"
        "<kernel>/boot/vmlinuz</kernel></os></domain>")
    assert shell.run_line("domxml-to-native xen-sxpr %s" % path)
    out, err = capsys.readouterr()
    assert err == ""
    utils.diff_compare(out, expect_out=(
        "(vm (name 'g')(memory 512)(maxmem 512)(vcpus 1)"
        "(uuid '%s')"
        "(on_poweroff 'destroy')(on_reboot 'restart')"
        "(on_crash 'destroy')"
        "(image (linux (kernel '/boot/vmlinuz'))))\n" % _UUID))


########
# Host #
########

def test_nodeinfo(shell, capsys):
    assert shell.run_line("nodeinfo")
    assert capsys.readouterr().out == (
        _field("CPU model:", "x86_64", 20) +
        _field("CPU(s):", "4", 20) +
        _field("CPU frequency:", "2400 MHz", 20) +
        _field("CPU socket(s):", "2", 20) +
        _field("Core(s) per socket:", "2", 20) +
        _field("Thread(s) per core:", "1", 20) +
        _field("NUMA cell(s):", "1", 20) +
        _field("Memory size:", "3145728 kB", 20))


def test_version(shell, conn, capsys, monkeypatch):
    monkeypatch.setattr(libvirt, "getVersion", lambda *args: 9004)
    assert shell.run_line("version")
    assert capsys.readouterr().out == (
        "Compiled against library: libvirt 0.9.4\n"
        "Using library: libvirt 0.9.4\n"
        "Using API: Test 0.9.4\n"
        "Running hypervisor: Test 0.9.4\n")

    conn.version = 0
    assert shell.run_line("version")
    assert capsys.readouterr().out.endswith(
        "Cannot extract running Test hypervisor version\n")


def test_connect(shell, conn, capsys):
    assert shell.run_line("uri; hostname")
    assert capsys.readouterr().out == (
        "test:///default\nfakehost.example.com\n")

    assert shell.run_line("connect test:///other --readonly")
    assert conn.closed
    assert shell.name == "test:///other"
    assert shell.readonly
    assert shell.connect_counter.count == 2


#################
# Shell helpers #
#################

def test_help(shell, capsys):
    assert shell.run_line("help setvcpus")
    out = capsys.readouterr().out
    assert out.startswith(
        "  NAME\n"
        "    setvcpus - change number of virtual CPUs\n"
        "\n"
        "  SYNOPSIS\n"
        "    setvcpus <domain> <count> [--maximum] [--config] [--live] "
        "[--current]\n"
        "\n"
        "  DESCRIPTION\n")
    assert "    [--domain] <string>  domain name, id or uuid\n" in out

    assert shell.run_line("help domain")
    out = capsys.readouterr().out
    assert out.startswith(" Domain Management (help keyword 'domain'):\n")
    assert "    setvcpus" in out
    assert "    list " not in out

    assert shell.run_line("help")
    out = capsys.readouterr().out
    assert out.startswith("Grouped commands:\n\n Domain Management")
    assert " Virsh itself (help keyword 'virsh'):\n" in out

    assert not shell.run_line("help nosuch")
    assert capsys.readouterr().err == (
        "error: command or command group 'nosuch' doesn't exist\n")

    # None of it needs a connection
    assert shell.connect_counter.count == 0


def test_cd_pwd(shell, capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(str(tmp_path))
    assert not shell.run_line("cd /")
    assert capsys.readouterr().err == (
        "error: cd: command valid only in interactive mode\n")

    subdir = tmp_path / "sub"
    subdir.mkdir()
    shell.interactive = True
    assert shell.run_line("cd %s; pwd" % subdir)
    assert capsys.readouterr().out == "%s\n" % os.getcwd()
    assert os.getcwd() == os.path.realpath(str(subdir))

    missing = tmp_path / "missing"
    assert not shell.run_line("cd %s" % missing)
    assert capsys.readouterr().err == (
        "error: cd: No such file or directory: %s\n" % missing)


def test_echo(shell, capsys):
    assert shell.run_line("echo a 'b c'; echo --shell a 'b c'")
    assert capsys.readouterr().out == "a b c\na 'b c'\n"

    assert format_echo(["<a>", "&"], xml=True) == "&lt;a&gt; &amp;"
    assert format_echo(["it's"], xml=True, shell_quote=True) == (
        "'it&apos;s'")
    assert format_echo(["it's"], shell_quote=True) == "'it'\\''s'"
    # Empty arguments stay empty
    assert format_echo(["", "plain"], shell_quote=True) == " plain"
    assert format_echo([]) == ""


#########
# Misc #
#########

def test_job_progress():
    assert jobwatch.format_progress("Save", 0, 0) is None
    assert jobwatch.format_progress("Save", 50, 100) == "\rSave: [ 50 %]"
    assert jobwatch.format_progress("Save", 0, 100) == "\rSave: [100 %]"
    # Not done until nothing remains
    assert jobwatch.format_progress("Dump", 1, 1000) == "\rDump: [ 99 %]"


def test_job_error():
    shell = utils.make_shell(quiet=True)
    dom = utils.FakeDomain("test", domid=1)

    def _fail():
        raise utils.make_libvirt_error("job failed")

    with pytest.raises(libvirt.libvirtError, match="job failed"):
        jobwatch.watch_job(shell, dom, "Save", _fail)


def test_snapshot_xml():
    assert build_snapshot_xml() == "<domainsnapshot>\n</domainsnapshot>\n"
    assert build_snapshot_xml("a<b", "for & fun") == (
        "<domainsnapshot>\n"
        "  <name>a&lt;b</name>\n"
        "  <description>for &amp; fun</description>\n"
        "</domainsnapshot>\n")

    assert parse_snapshot_summary(
        "<domainsnapshot><name>s1</name><state>running</state>"
        "</domainsnapshot>") == ("", "running")
    assert parse_snapshot_summary("<domainsnapshot/>") == ("", "")


def test_pretty_capacity():
    assert common.pretty_capacity(512) == (512.0, "")
    assert common.pretty_capacity(2048) == (2.0, "KB")
    assert common.pretty_capacity(3 * 1024 ** 3) == (3.0, "GB")
    assert common.pretty_capacity(5 * 1024 ** 4) == (5.0, "TB")


def test_state_strings():
    assert common.state_to_string(libvirt.VIR_DOMAIN_BLOCKED) == "idle"
    assert common.state_to_string(99) == "no state"
    assert common.state_reason_to_string(
        libvirt.VIR_DOMAIN_SHUTOFF,
        libvirt.VIR_DOMAIN_SHUTOFF_DESTROYED) == "destroyed"
    assert common.state_reason_to_string(99, 0) == "unknown"
