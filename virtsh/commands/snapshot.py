#
# Domain snapshot commands
#
# Copyright 2010-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import time
import xml.etree.ElementTree as ET

import libvirt

from .common import (CommandDef, OptionDef, OPT_BOOL, OPT_DATA,
        opt_domain, print_xml, read_file)
from ..connection import lookup_domain
from .. import editor
from ..logger import log
from .. import util


_SNAPSHOT_OPT = OptionDef("snapshotname", OPT_DATA, _("snapshot name"),
        required=True)


def _lookup_snapshot(shell, cmd, dom):
    name = cmd.opt_string("snapshotname")[1]
    try:
        return dom.snapshotLookupByName(name, 0)
    except libvirt.libvirtError:
        shell.error(_("Failed to get snapshot '%s'") % name)
        raise


def _create_snapshot(shell, dom, xml, flags, fromfile=None):
    snapshot = dom.snapshotCreateXML(xml, flags)
    msg = _("Domain snapshot %s created") % snapshot.getName()
    if fromfile:
        msg += _(" from '%s'") % fromfile
    shell.out(msg + "\n")
    return True


def build_snapshot_xml(name=None, description=None):
    """
    The <domainsnapshot> document for snapshot-create-as
    """
    ret = "<domainsnapshot>\n"
    if name:
        ret += "  <name>%s</name>\n" % util.xml_escape(name)
    if description:
        ret += ("  <description>%s</description>\n" %
                util.xml_escape(description))
    ret += "</domainsnapshot>\n"
    return ret


def cmd_snapshot_create(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    flags = 0
    if cmd.opt_bool("halt"):
        flags |= libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_HALT

    ret, path = cmd.opt_string("xmlfile")
    if ret <= 0:
        return _create_snapshot(shell, dom, "<domainsnapshot/>", flags)

    xml = read_file(shell, path)
    if xml is None:
        return False
    return _create_snapshot(shell, dom, xml, flags, fromfile=path)


def cmd_snapshot_create_as(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    name = cmd.opt_string("name")[1]
    ret, description = cmd.opt_string("description")
    if ret < 0:
        shell.error(_("argument must not be empty"))
        return False
    xml = build_snapshot_xml(name, description)

    if cmd.opt_bool("print-xml"):
        shell.out(xml)
        return True

    flags = 0
    if cmd.opt_bool("halt"):
        flags |= libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_HALT
    return _create_snapshot(shell, dom, xml, flags)


def cmd_snapshot_current(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    if not dom.hasCurrentSnapshot(0):
        return True

    snapshot = dom.snapshotCurrent(0)
    if cmd.opt_bool("name"):
        shell.out("%s\n" % snapshot.getName())
    else:
        flags = 0
        if cmd.opt_bool("security-info"):
            flags |= libvirt.VIR_DOMAIN_XML_SECURE
        print_xml(shell, snapshot.getXMLDesc(flags))
    return True


def cmd_snapshot_delete(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    snapshot = _lookup_snapshot(shell, cmd, dom)
    name = snapshot.getName()

    flags = 0
    if cmd.opt_bool("children"):
        flags |= libvirt.VIR_DOMAIN_SNAPSHOT_DELETE_CHILDREN

    try:
        snapshot.delete(flags)
    except libvirt.libvirtError:
        shell.error(_("Failed to delete snapshot %s") % name)
        raise
    shell.out(_("Domain snapshot %s deleted\n") % name)
    return True


def cmd_snapshot_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    snapshot = _lookup_snapshot(shell, cmd, dom)

    flags = 0
    if cmd.opt_bool("security-info"):
        flags |= libvirt.VIR_DOMAIN_XML_SECURE
    print_xml(shell, snapshot.getXMLDesc(flags))
    return True


def cmd_snapshot_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    snapshot = _lookup_snapshot(shell, cmd, dom)

    return editor.edit_xml(shell, _("Snapshot"), snapshot.getName(),
            lambda: snapshot.getXMLDesc(libvirt.VIR_DOMAIN_XML_SECURE),
            lambda xml: dom.snapshotCreateXML(xml,
                libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_REDEFINE))


def parse_snapshot_summary(xml):
    """
    Return (creation time string, state) from a snapshot's XML
    """
    root = ET.fromstring(xml)
    state = root.findtext("state") or ""
    created = root.findtext("creationTime")
    timestr = ""
    if created:
        timestr = time.strftime("%Y-%m-%d %H:%M:%S %z",
                                time.localtime(int(created)))
    return timestr, state


def cmd_snapshot_list(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    names = sorted(dom.snapshotListNames(0))

    shell.out(" %-20s %-25s %s\n" %
                    (_("Name"), _("Creation Time"), _("State")))
    shell.out("-" * 51 + "\n")
    for name in names:
        try:
            snapshot = dom.snapshotLookupByName(name, 0)
            timestr, state = parse_snapshot_summary(snapshot.getXMLDesc(0))
        except libvirt.libvirtError as e:
            # Deleted after listing
            log.debug("Skipping snapshot %s: %s", name, e)
            continue
        shell.out(" %-20s %-25s %s\n" % (name, timestr, state))
    shell.last_error = None
    return True


def cmd_snapshot_revert(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    snapshot = _lookup_snapshot(shell, cmd, dom)

    dom.revertToSnapshot(snapshot, 0)
    return True


_DOMAIN_OPT = opt_domain()
_SECURE_OPT = OptionDef("security-info", OPT_BOOL,
        _("include security sensitive information in XML dump"))

COMMANDS = [
    CommandDef("snapshot-create", cmd_snapshot_create, [
        _DOMAIN_OPT,
        OptionDef("xmlfile", OPT_DATA, _("domain snapshot XML")),
        OptionDef("halt", OPT_BOOL, _("halt domain after snapshot is "
                                      "created")),
    ], {"help": _("Create a snapshot from XML"),
        "desc": _("Create a snapshot (disk and RAM) from XML")}),

    CommandDef("snapshot-create-as", cmd_snapshot_create_as, [
        _DOMAIN_OPT,
        OptionDef("name", OPT_DATA, _("name of snapshot")),
        OptionDef("description", OPT_DATA, _("description of snapshot")),
        OptionDef("print-xml", OPT_BOOL,
                  _("print XML document rather than create")),
        OptionDef("halt", OPT_BOOL, _("halt domain after snapshot is "
                                      "created")),
    ], {"help": _("Create a snapshot from a set of args"),
        "desc": _("Create a snapshot (disk and RAM) from arguments")}),

    CommandDef("snapshot-current", cmd_snapshot_current, [
        _DOMAIN_OPT,
        OptionDef("name", OPT_BOOL, _("list the name, rather than the full "
                                      "xml")),
        _SECURE_OPT,
    ], {"help": _("Get the current snapshot"),
        "desc": _("Get the current snapshot")}),

    CommandDef("snapshot-delete", cmd_snapshot_delete, [
        _DOMAIN_OPT,
        _SNAPSHOT_OPT,
        OptionDef("children", OPT_BOOL, _("delete snapshot and all "
                                          "children")),
    ], {"help": _("Delete a domain snapshot"),
        "desc": _("Snapshot Delete")}),

    CommandDef("snapshot-dumpxml", cmd_snapshot_dumpxml, [
        _DOMAIN_OPT,
        _SNAPSHOT_OPT,
        _SECURE_OPT,
    ], {"help": _("Dump XML for a domain snapshot"),
        "desc": _("Snapshot Dump XML")}),

    CommandDef("snapshot-edit", cmd_snapshot_edit, [
        _DOMAIN_OPT,
        _SNAPSHOT_OPT,
    ], {"help": _("edit XML for a snapshot"),
        "desc": _("Edit the domain snapshot XML for a named snapshot")}),

    CommandDef("snapshot-list", cmd_snapshot_list, [
        _DOMAIN_OPT,
    ], {"help": _("List snapshots for a domain"),
        "desc": _("Snapshot List")}),

    CommandDef("snapshot-revert", cmd_snapshot_revert, [
        _DOMAIN_OPT,
        _SNAPSHOT_OPT,
    ], {"help": _("Revert a domain to a snapshot"),
        "desc": _("Revert domain to snapshot")}),
]
