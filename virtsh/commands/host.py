#
# Host and hypervisor commands
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import (CommandDef, OptionDef, OPT_BOOL, OPT_DATA, print_xml)


def _split_version(version):
    return (version // 1000000, (version // 1000) % 1000, version % 1000)


def _call_or_fail(shell, func, failmsg):
    try:
        return func()
    except libvirt.libvirtError:
        shell.error(failmsg)
        raise


def cmd_capabilities(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    caps = _call_or_fail(shell, shell.conn.getCapabilities,
                         _("failed to get capabilities"))
    print_xml(shell, caps)
    return True


def cmd_connect(shell, cmd):
    if shell.conn:
        leaked = shell.conn.close()
        shell.conn = None
        if leaked:
            shell.error(_("Failed to disconnect from the hypervisor, "
                          "%d leaked reference(s)") % leaked)
            return False

    ret, name = cmd.opt_string("name")
    if ret < 0:
        shell.error(_("Please specify valid connection URI"))
        return False

    shell.name = name
    shell.readonly = cmd.opt_bool("readonly")
    shell.use_legacy_info_probe = False
    try:
        shell.conn = shell.open_connection(shell.name, shell.readonly)
    except libvirt.libvirtError:
        shell.conn = None
        shell.error(_("Failed to connect to the hypervisor"))
        raise
    return True


def cmd_hostname(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    hostname = _call_or_fail(shell, shell.conn.getHostname,
                             _("failed to get hostname"))
    shell.out("%s\n" % hostname)
    return True


def cmd_nodeinfo(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    info = _call_or_fail(shell, shell.conn.getInfo,
                         _("failed to get node information"))
    model, memory, cpus, mhz, nodes, sockets, cores, threads = info[:8]

    shell.out("%-20s %s\n" % (_("CPU model:"), model))
    shell.out("%-20s %d\n" % (_("CPU(s):"), cpus))
    shell.out("%-20s %d MHz\n" % (_("CPU frequency:"), mhz))
    shell.out("%-20s %d\n" % (_("CPU socket(s):"), sockets))
    shell.out("%-20s %d\n" % (_("Core(s) per socket:"), cores))
    shell.out("%-20s %d\n" % (_("Thread(s) per core:"), threads))
    shell.out("%-20s %d\n" % (_("NUMA cell(s):"), nodes))
    # getInfo() reports MiB
    shell.out("%-20s %d kB\n" % (_("Memory size:"), memory * 1024))
    return True


def cmd_sysinfo(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    sysinfo = _call_or_fail(shell, lambda: shell.conn.getSysinfo(0),
                            _("failed to get sysinfo"))
    print_xml(shell, sysinfo)
    return True


def cmd_uri(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    uri = _call_or_fail(shell, shell.conn.getURI, _("failed to get URI"))
    shell.out("%s\n" % uri)
    return True


def cmd_version(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False

    hvtype = _call_or_fail(shell, shell.conn.getType,
                           _("failed to get hypervisor type"))

    libversion = _call_or_fail(shell, libvirt.getVersion,
                               _("failed to get the library version"))
    shell.out(_("Compiled against library: libvirt %d.%d.%d\n") %
              _split_version(libversion))
    shell.out(_("Using library: libvirt %d.%d.%d\n") %
              _split_version(libversion))

    apiversion = _call_or_fail(shell, lambda: libvirt.getVersion(hvtype),
                               _("failed to get the library version"))
    if isinstance(apiversion, (list, tuple)):
        apiversion = apiversion[-1]
    shell.out(_("Using API: %s %d.%d.%d\n") %
              ((hvtype,) + _split_version(apiversion)))

    hvversion = _call_or_fail(shell, shell.conn.getVersion,
                              _("failed to get the hypervisor version"))
    if hvversion == 0:
        shell.out(_("Cannot extract running %s hypervisor version\n") %
                  hvtype)
    else:
        shell.out(_("Running hypervisor: %s %d.%d.%d\n") %
                  ((hvtype,) + _split_version(hvversion)))
    return True


COMMANDS = [
    CommandDef("capabilities", cmd_capabilities, [],
        {"help": _("capabilities"),
         "desc": _("Returns capabilities of hypervisor/driver.")}),

    CommandDef("connect", cmd_connect, [
        OptionDef("name", OPT_DATA, _("hypervisor connection URI"),
                  empty_ok=True),
        OptionDef("readonly", OPT_BOOL, _("read-only connection")),
    ], {"help": _("(re)connect to hypervisor"),
        "desc": _("Connect to local hypervisor. This is built-in command "
                  "after shell start up.")},
       no_connect=True),

    CommandDef("hostname", cmd_hostname, [],
        {"help": _("print the hypervisor hostname"), "desc": ""}),

    CommandDef("nodeinfo", cmd_nodeinfo, [],
        {"help": _("node information"),
         "desc": _("Returns basic information about the node.")}),

    CommandDef("sysinfo", cmd_sysinfo, [],
        {"help": _("print the hypervisor sysinfo"),
         "desc": _("output an XML string for the hypervisor sysinfo, if "
                   "available")}),

    CommandDef("uri", cmd_uri, [],
        {"help": _("print the hypervisor canonical URI"), "desc": ""}),

    CommandDef("version", cmd_version, [],
        {"help": _("show version"),
         "desc": _("Display the system version information.")}),
]
