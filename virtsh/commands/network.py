#
# Virtual network commands
#
# Copyright 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import (CommandDef, OptionDef, OPT_BOOL, OPT_DATA,
        autostart_string, opt_file, persistent_string, print_xml, read_file,
        yes_no)
from .. import connection
from ..connection import lookup_network
from .. import editor
from ..logger import log


_NETWORK_OPT = OptionDef("network", OPT_DATA, _("network name or uuid"),
        required=True)


def _network_action(shell, cmd, action, success_msg, fail_msg,
                    by_name_only=False):
    if not shell.connection_usable():
        return False
    if by_name_only:
        net, name = _lookup_by_name(shell, cmd)
    else:
        net, name = lookup_network(shell, cmd)
    if not net:
        return False

    try:
        action(net)
    except libvirt.libvirtError:
        shell.error(fail_msg % name)
        raise
    shell.out(success_msg % name)
    return True


def _lookup_by_name(shell, cmd):
    name = cmd.opt_string("network")[1]
    net = connection.try_lookup(shell.conn.networkLookupByName, name)
    if not net:
        shell.error(_("failed to get network '%s'") % name)
    return net, name


def _define_from_file(shell, cmd, func, success_msg, fail_msg):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    try:
        net = func(shell.conn, xml)
    except libvirt.libvirtError:
        shell.error(fail_msg % path)
        raise
    shell.out(success_msg % {"name": net.name(), "file": path})
    return True


def cmd_net_autostart(shell, cmd):
    if not shell.connection_usable():
        return False
    net, name = lookup_network(shell, cmd)
    if not net:
        return False

    autostart = not cmd.opt_bool("disable")
    try:
        net.setAutostart(int(autostart))
    except libvirt.libvirtError:
        if autostart:
            shell.error(_("failed to mark network %s as autostarted") % name)
        else:
            shell.error(_("failed to unmark network %s as autostarted") %
                        name)
        raise

    if autostart:
        shell.out(_("Network %s marked as autostarted\n") % name)
    else:
        shell.out(_("Network %s unmarked as autostarted\n") % name)
    return True


def cmd_net_create(shell, cmd):
    return _define_from_file(shell, cmd,
            lambda conn, xml: conn.networkCreateXML(xml),
            _("Network %(name)s created from %(file)s\n"),
            _("Failed to create network from %s"))


def cmd_net_define(shell, cmd):
    return _define_from_file(shell, cmd,
            lambda conn, xml: conn.networkDefineXML(xml),
            _("Network %(name)s defined from %(file)s\n"),
            _("Failed to define network from %s"))


def cmd_net_destroy(shell, cmd):
    return _network_action(shell, cmd, lambda n: n.destroy(),
            _("Network %s destroyed\n"),
            _("Failed to destroy network %s"))


def cmd_net_start(shell, cmd):
    return _network_action(shell, cmd, lambda n: n.create(),
            _("Network %s started\n"),
            _("Failed to start network %s"),
            by_name_only=True)


def cmd_net_undefine(shell, cmd):
    return _network_action(shell, cmd, lambda n: n.undefine(),
            _("Network %s has been undefined\n"),
            _("Failed to undefine network %s"))


def cmd_net_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    net = lookup_network(shell, cmd)[0]
    if not net:
        return False

    print_xml(shell, net.XMLDesc(0))
    return True


def cmd_net_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    net = lookup_network(shell, cmd)[0]
    if not net:
        return False

    return editor.edit_xml(shell, _("Network"), net.name(),
            lambda: net.XMLDesc(libvirt.VIR_NETWORK_XML_INACTIVE),
            shell.conn.networkDefineXML)


def cmd_net_info(shell, cmd):
    if not shell.connection_usable():
        return False
    net = lookup_network(shell, cmd)[0]
    if not net:
        return False

    shell.out("%-15s %s\n" % (_("Name"), net.name()))
    shell.out("%-15s %s\n" % (_("UUID"), net.UUIDString()))
    shell.out("%-15s %s\n" % (_("Active:"), yes_no(net.isActive())))
    shell.out("%-15s %s\n" % (_("Persistent:"), persistent_string(net)))
    shell.out("%-15s %s\n" % (_("Autostart:"), autostart_string(net)))
    try:
        bridge = net.bridgeName()
    except libvirt.libvirtError as e:
        log.debug("No bridge for network %s: %s", net.name(), e)
        bridge = None
    if bridge:
        shell.out("%-15s %s\n" % (_("Bridge:"), bridge))
    shell.last_error = None
    return True


def cmd_net_list(shell, cmd):
    if not shell.connection_usable():
        return False

    showall = cmd.opt_bool("all")
    inactive = cmd.opt_bool("inactive") or showall
    active = not cmd.opt_bool("inactive") or showall
    conn = shell.conn

    rows = []
    if active:
        try:
            names = sorted(conn.listNetworks())
        except libvirt.libvirtError:
            shell.error(_("Failed to list active networks"))
            raise
        rows += [(name, _("active")) for name in names]
    if inactive:
        try:
            names = sorted(conn.listDefinedNetworks())
        except libvirt.libvirtError:
            shell.error(_("Failed to list inactive networks"))
            raise
        rows += [(name, _("inactive")) for name in names]

    shell.out_extra("%-20s %-10s %s\n" %
                    (_("Name"), _("State"), _("Autostart")))
    shell.out_extra("-" * 41 + "\n")
    for name, state in rows:
        net = connection.try_lookup(conn.networkLookupByName, name)
        if not net:
            continue
        shell.out("%-20s %-10s %-10s\n" % (name, state,
                                           autostart_string(net)))
    shell.last_error = None
    return True


def cmd_net_name(shell, cmd):
    if not shell.connection_usable():
        return False
    uuidstr = cmd.opt_string("network-uuid")[1]
    net = connection.try_lookup(shell.conn.networkLookupByUUIDString,
                                uuidstr)
    if not net:
        shell.error(_("failed to get network '%s'") % uuidstr)
        return False

    shell.out("%s\n" % net.name())
    return True


def cmd_net_uuid(shell, cmd):
    if not shell.connection_usable():
        return False
    net = _lookup_by_name(shell, cmd)[0]
    if not net:
        return False

    try:
        shell.out("%s\n" % net.UUIDString())
    except libvirt.libvirtError:
        shell.error(_("failed to get network UUID"))
        raise
    return True


COMMANDS = [
    CommandDef("net-autostart", cmd_net_autostart, [
        _NETWORK_OPT,
        OptionDef("disable", OPT_BOOL, _("disable autostarting")),
    ], {"help": _("autostart a network"),
        "desc": _("Configure a network to be automatically started at "
                  "boot.")}),

    CommandDef("net-create", cmd_net_create, [
        opt_file(_("file containing an XML network description")),
    ], {"help": _("create a network from an XML file"),
        "desc": _("Create a network.")}),

    CommandDef("net-define", cmd_net_define, [
        opt_file(_("file containing an XML network description")),
    ], {"help": _("define (but don't start) a network from an XML file"),
        "desc": _("Define a network.")}),

    CommandDef("net-destroy", cmd_net_destroy, [
        _NETWORK_OPT,
    ], {"help": _("destroy (stop) a network"),
        "desc": _("Forcefully stop a given network.")}),

    CommandDef("net-dumpxml", cmd_net_dumpxml, [
        _NETWORK_OPT,
    ], {"help": _("network information in XML"),
        "desc": _("Output the network information as an XML dump to "
                  "stdout.")}),

    CommandDef("net-edit", cmd_net_edit, [
        _NETWORK_OPT,
    ], {"help": _("edit XML configuration for a network"),
        "desc": _("Edit the XML configuration for a network.")}),

    CommandDef("net-info", cmd_net_info, [
        _NETWORK_OPT,
    ], {"help": _("network information"),
        "desc": _("Returns basic information about the network")}),

    CommandDef("net-list", cmd_net_list, [
        OptionDef("inactive", OPT_BOOL, _("list inactive networks")),
        OptionDef("all", OPT_BOOL, _("list inactive & active networks")),
    ], {"help": _("list networks"),
        "desc": _("Returns list of networks.")}),

    CommandDef("net-name", cmd_net_name, [
        OptionDef("network-uuid", OPT_DATA, _("network uuid"),
                  required=True),
    ], {"help": _("convert a network UUID to network name"),
        "desc": ""}),

    CommandDef("net-start", cmd_net_start, [
        OptionDef("network", OPT_DATA, _("name of the inactive network"),
                  required=True),
    ], {"help": _("start a (previously defined) inactive network"),
        "desc": _("Start a network.")}),

    CommandDef("net-undefine", cmd_net_undefine, [
        _NETWORK_OPT,
    ], {"help": _("undefine an inactive network"),
        "desc": _("Undefine the configuration for an inactive "
                  "network.")}),

    CommandDef("net-uuid", cmd_net_uuid, [
        OptionDef("network", OPT_DATA, _("network name"), required=True),
    ], {"help": _("convert a network name to network UUID"),
        "desc": ""}),
]
