#
# Host interface and network filter commands
#
# Copyright 2009-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import CommandDef, OptionDef, OPT_BOOL, OPT_DATA, print_xml
from .. import connection
from ..connection import lookup_interface, lookup_nwfilter
from .. import editor


_IFACE_OPT = OptionDef("interface", OPT_DATA,
        _("interface name or MAC address"), required=True)
_NWFILTER_OPT = OptionDef("nwfilter", OPT_DATA,
        _("network filter name or uuid"), required=True)


#############
# Interface #
#############

def cmd_iface_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    iface = lookup_interface(shell, cmd)[0]
    if not iface:
        return False

    flags = 0
    if cmd.opt_bool("inactive"):
        flags |= libvirt.VIR_INTERFACE_XML_INACTIVE
    print_xml(shell, iface.XMLDesc(flags))
    return True


def cmd_iface_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    iface = lookup_interface(shell, cmd)[0]
    if not iface:
        return False

    conn = shell.conn
    return editor.edit_xml(shell, _("Interface"), iface.name(),
            lambda: iface.XMLDesc(libvirt.VIR_INTERFACE_XML_INACTIVE),
            lambda xml: conn.interfaceDefineXML(xml, 0))


def cmd_iface_list(shell, cmd):
    if not shell.connection_usable():
        return False

    showall = cmd.opt_bool("all")
    inactive = cmd.opt_bool("inactive") or showall
    active = not cmd.opt_bool("inactive") or showall
    conn = shell.conn

    rows = []
    if active:
        try:
            names = sorted(conn.listInterfaces())
        except libvirt.libvirtError:
            shell.error(_("Failed to list active interfaces"))
            raise
        rows += [(name, _("active")) for name in names]
    if inactive:
        try:
            names = sorted(conn.listDefinedInterfaces())
        except libvirt.libvirtError:
            shell.error(_("Failed to list inactive interfaces"))
            raise
        rows += [(name, _("inactive")) for name in names]

    shell.out_extra("%-20s %-10s %s\n" %
                    (_("Name"), _("State"), _("MAC Address")))
    shell.out_extra("-" * 44 + "\n")
    for name, state in rows:
        iface = connection.try_lookup(conn.interfaceLookupByName, name)
        if not iface:
            continue
        shell.out("%-20s %-10s %s\n" % (name, state, iface.MACString()))
    shell.last_error = None
    return True


##################
# Network filter #
##################

def cmd_nwfilter_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    nwfilter = lookup_nwfilter(shell, cmd)[0]
    if not nwfilter:
        return False

    print_xml(shell, nwfilter.XMLDesc(0))
    return True


def cmd_nwfilter_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    nwfilter = lookup_nwfilter(shell, cmd)[0]
    if not nwfilter:
        return False

    return editor.edit_xml(shell, _("Network filter"), nwfilter.name(),
            lambda: nwfilter.XMLDesc(0),
            shell.conn.nwfilterDefineXML)


def cmd_nwfilter_list(shell, cmd):
    ignore = cmd
    if not shell.connection_usable():
        return False
    conn = shell.conn

    try:
        names = sorted(conn.listNWFilters())
    except libvirt.libvirtError:
        shell.error(_("Failed to list network filters"))
        raise

    shell.out_extra("%-36s  %-20s \n" % (_("UUID"), _("Name")))
    shell.out_extra("-" * 64 + "\n")
    for name in names:
        nwfilter = connection.try_lookup(conn.nwfilterLookupByName, name)
        if not nwfilter:
            continue
        shell.out("%-36s  %-20s\n" % (nwfilter.UUIDString(), name))
    shell.last_error = None
    return True


INTERFACE_COMMANDS = [
    CommandDef("iface-dumpxml", cmd_iface_dumpxml, [
        _IFACE_OPT,
        OptionDef("inactive", OPT_BOOL,
                  _("show inactive defined XML")),
    ], {"help": _("interface information in XML"),
        "desc": _("Output the physical host interface information as an "
                  "XML dump to stdout.")}),

    CommandDef("iface-edit", cmd_iface_edit, [
        _IFACE_OPT,
    ], {"help": _("edit XML configuration for a physical host interface"),
        "desc": _("Edit the XML configuration for a physical host "
                  "interface.")}),

    CommandDef("iface-list", cmd_iface_list, [
        OptionDef("inactive", OPT_BOOL, _("list inactive interfaces")),
        OptionDef("all", OPT_BOOL,
                  _("list inactive & active interfaces")),
    ], {"help": _("list physical host interfaces"),
        "desc": _("Returns list of physical host interfaces.")}),
]

NWFILTER_COMMANDS = [
    CommandDef("nwfilter-dumpxml", cmd_nwfilter_dumpxml, [
        _NWFILTER_OPT,
    ], {"help": _("network filter information in XML"),
        "desc": _("Output the network filter information as an XML dump "
                  "to stdout.")}),

    CommandDef("nwfilter-edit", cmd_nwfilter_edit, [
        _NWFILTER_OPT,
    ], {"help": _("edit XML configuration for a network filter"),
        "desc": _("Edit the XML configuration for a network filter.")}),

    CommandDef("nwfilter-list", cmd_nwfilter_list, [],
        {"help": _("list network filters"),
         "desc": _("Returns list of network filters.")}),
]
