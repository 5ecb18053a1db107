# Copyright (C) 2013, 2014 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os

import libvirt

from virtsh import commands
from virtsh import util
from virtsh.shell import Shell


class _TestConfig(object):
    """
    Class containing any bits passed in from the pytest command line
    """
    def __init__(self):
        self.regenerate_output = False
        self.debug = False


TESTCONFIG = _TestConfig()


def diff_compare(actual_out, filename=None, expect_out=None):
    """
    Test suite helper for comparing two strings

    If filename is passed, but the file doesn't exist, we write actual_out
    to it. This makes it easy to populate output for new testcases

    If the --regenerate-output pytest flag was passed, we re-write every
    specified filename.

    @actual_out: Output we generated
    @filename: filename where expected good test output is stored
    @expect_out: expected string to compare against
    """
    # Make sure all test output has trailing newline, simplifies diffing
    if not actual_out.endswith("\n"):
        actual_out += "\n"

    if not expect_out:
        if not os.path.exists(filename) or TESTCONFIG.regenerate_output:
            with open(filename, "w") as f:
                f.write(actual_out)
        with open(filename) as f:
            expect_out = f.read()

    if not expect_out.endswith("\n"):
        expect_out += "\n"

    diff = util.diff(expect_out, actual_out,
            filename or '', "Generated output")
    if diff:
        raise AssertionError("Conversion outputs did not match.\n%s" % diff)


###########################
# Fake libvirt connection #
###########################

def make_libvirt_error(msg, code=libvirt.VIR_ERR_INTERNAL_ERROR,
                       domain=libvirt.VIR_FROM_NONE):
    """
    A libvirtError carrying @code and @domain, as if the library
    raised it
    """
    e = libvirt.libvirtError(msg)
    e.err = (code, domain, msg, libvirt.VIR_ERR_ERROR,
             None, None, None, -1, -1)
    return e


class FakeDomain(object):
    """
    Just enough of virDomain for the command handlers
    """
    def __init__(self, name, domid=-1, uuid=None,
                 state=None, reason=0, maxmem=1048576, memory=524288,
                 vcpus=2, ostype="hvm", xml=None):
        self._name = name
        self._id = domid
        self._uuid = uuid or "4b7e3ba0-36ad-4c3a-b0b0-64e1d8a5b7%02d" % (
            max(domid, 0) % 100)
        if state is None:
            state = (domid >= 0 and libvirt.VIR_DOMAIN_RUNNING or
                     libvirt.VIR_DOMAIN_SHUTOFF)
        self._state = state
        self._reason = reason
        self._maxmem = maxmem
        self._memory = memory
        self._vcpus = vcpus
        self._ostype = ostype
        self._xml = xml or "<domain><name>%s</name></domain>\n" % name
        self.autostart_value = 0
        self.persistent = 1
        self.state_supported = True
        self.calls = []

    def _record(self, *args):
        self.calls.append(args)

    def ID(self):
        return self._id

    def name(self):
        return self._name

    def UUIDString(self):
        return self._uuid

    def OSType(self):
        return self._ostype

    def info(self):
        return [self._state, self._maxmem, self._memory, self._vcpus,
                12500000000]

    def state(self, flags):
        ignore = flags
        if not self.state_supported:
            raise make_libvirt_error("this function is not supported",
                    code=libvirt.VIR_ERR_NO_SUPPORT)
        return [self._state, self._reason]

    def isActive(self):
        return int(self._id >= 0)

    def isPersistent(self):
        return self.persistent

    def autostart(self):
        return self.autostart_value

    def setAutostart(self, val):
        self.autostart_value = val

    def XMLDesc(self, flags):
        ignore = flags
        return self._xml

    def create(self):
        self._record("create")

    def createWithFlags(self, flags):
        self._record("createWithFlags", flags)

    def destroy(self):
        self._record("destroy")

    def suspend(self):
        self._record("suspend")

    def undefine(self):
        self._record("undefine")

    def undefineFlags(self, flags):
        self._record("undefineFlags", flags)

    def resume(self):
        self._record("resume")

    def setMemory(self, kb):
        self._record("setMemory", kb)

    def setMemoryFlags(self, kb, flags):
        self._record("setMemoryFlags", kb, flags)

    def setVcpus(self, count):
        self._record("setVcpus", count)

    def setVcpusFlags(self, count, flags):
        self._record("setVcpusFlags", count, flags)

    def vcpusFlags(self, flags):
        if flags & libvirt.VIR_DOMAIN_VCPU_MAXIMUM:
            return 4
        return self._vcpus

    def sendKey(self, codeset, holdtime, keycodes, nkeycodes, flags):
        self._record("sendKey", codeset, holdtime, list(keycodes),
                     nkeycodes, flags)

    def save(self, path):
        self._record("save", path)

    def abortJob(self):
        self._record("abortJob")

    def jobInfo(self):
        return [libvirt.VIR_DOMAIN_JOB_NONE, 0, 0, 0, 0, 0,
                0, 0, 0, 0, 0, 0]


class FakeConnection(object):
    """
    Stand in for VirshConnection holding a fixed set of domains
    """
    def __init__(self, domains=None, uri="test:///default", leaked=0):
        self.domains = domains or []
        self.uri = uri
        self.leaked = leaked
        self.closed = False
        self.defined = []
        self.info = ["x86_64", 3072, 4, 2400, 1, 2, 2, 1]
        self.version = 9004

    def close(self):
        self.closed = True
        return self.leaked

    def get_conn_for_api_arg(self):
        return self

    def getURI(self):
        return self.uri

    def getType(self):
        return "Test"

    def getVersion(self):
        return self.version

    def getHostname(self):
        return "fakehost.example.com"

    def getInfo(self):
        return self.info

    def getCapabilities(self):
        return "<capabilities/>"

    def listDomainsID(self):
        return [d.ID() for d in self.domains if d.ID() >= 0]

    def listDefinedDomains(self):
        return [d.name() for d in self.domains if d.ID() < 0]

    def _find(self, func, value):
        for dom in self.domains:
            if func(dom) == value:
                return dom
        raise make_libvirt_error(
            "Domain not found: no domain matching '%s'" % value,
            code=libvirt.VIR_ERR_NO_DOMAIN)

    def lookupByID(self, domid):
        if domid < 0:
            raise make_libvirt_error("invalid id",
                    code=libvirt.VIR_ERR_NO_DOMAIN)
        return self._find(lambda d: d.ID(), domid)

    def lookupByName(self, name):
        return self._find(lambda d: d.name(), name)

    def lookupByUUIDString(self, uuidstr):
        return self._find(lambda d: d.UUIDString(), uuidstr)

    def defineXML(self, xml):
        self.defined.append(xml)
        return self.domains and self.domains[0] or None


def default_domains():
    return [FakeDomain("test", domid=1),
            FakeDomain("inactive-guest"),
            FakeDomain("paused-guest", domid=4,
                       state=libvirt.VIR_DOMAIN_PAUSED,
                       reason=libvirt.VIR_DOMAIN_PAUSED_USER)]


class ConnectCounter(object):
    """
    connect_cb for Shell that hands out @conn and counts the calls
    """
    def __init__(self, conn=None, error=None):
        self.conn = conn
        self.error = error
        self.count = 0

    def __call__(self, uri, readonly):
        ignore = uri
        ignore = readonly
        self.count += 1
        if self.error:
            raise self.error
        return self.conn


def make_shell(conn=None, registry=None, **kwargs):
    """
    A Shell using the full command catalogue, connected to @conn
    on first use
    """
    if registry is None:
        registry = commands.get_registry()
    counter = ConnectCounter(conn)
    shell = Shell(registry, connect_cb=counter, **kwargs)
    shell.connect_counter = counter
    return shell
