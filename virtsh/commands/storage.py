#
# Storage pool and volume commands
#
# Copyright 2008-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import (CommandDef, OptionDef, OPT_BOOL, OPT_DATA, OPT_STRING,
        autostart_string, opt_file, persistent_string, pretty_capacity,
        print_xml, read_file)
from .. import connection
from ..connection import lookup_pool, lookup_volume
from .. import editor


_POOL_OPT = OptionDef("pool", OPT_DATA, _("pool name or uuid"),
        required=True)
_VOL_OPTS = [
    OptionDef("vol", OPT_DATA, _("vol name, key or path"), required=True),
    OptionDef("pool", OPT_STRING, _("pool name or uuid")),
]

_POOL_STATES = {
    libvirt.VIR_STORAGE_POOL_INACTIVE: _("inactive"),
    libvirt.VIR_STORAGE_POOL_BUILDING: _("building"),
    libvirt.VIR_STORAGE_POOL_RUNNING: _("running"),
    libvirt.VIR_STORAGE_POOL_DEGRADED: _("degraded"),
    libvirt.VIR_STORAGE_POOL_INACCESSIBLE: _("inaccessible"),
}


def _format_capacity(label, val):
    val, unit = pretty_capacity(val)
    return "%-15s %2.2f %s\n" % (label, val, unit)


#########
# Pools #
#########

def _pool_action(shell, cmd, action, success_msg, fail_msg):
    if not shell.connection_usable():
        return False
    pool, name = lookup_pool(shell, cmd)
    if not pool:
        return False

    try:
        action(pool)
    except libvirt.libvirtError:
        shell.error(fail_msg % name)
        raise
    shell.out(success_msg % name)
    return True


def cmd_pool_autostart(shell, cmd):
    if not shell.connection_usable():
        return False
    pool, name = lookup_pool(shell, cmd)
    if not pool:
        return False

    autostart = not cmd.opt_bool("disable")
    try:
        pool.setAutostart(int(autostart))
    except libvirt.libvirtError:
        if autostart:
            shell.error(_("failed to mark pool %s as autostarted") % name)
        else:
            shell.error(_("failed to unmark pool %s as autostarted") % name)
        raise

    if autostart:
        shell.out(_("Pool %s marked as autostarted\n") % name)
    else:
        shell.out(_("Pool %s unmarked as autostarted\n") % name)
    return True


def cmd_pool_define(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    try:
        pool = shell.conn.storagePoolDefineXML(xml, 0)
    except libvirt.libvirtError:
        shell.error(_("Failed to define pool from %s") % path)
        raise
    shell.out(_("Pool %(name)s defined from %(file)s\n") %
              {"name": pool.name(), "file": path})
    return True


def cmd_pool_destroy(shell, cmd):
    return _pool_action(shell, cmd, lambda p: p.destroy(),
            _("Pool %s destroyed\n"),
            _("Failed to destroy pool %s"))


def cmd_pool_refresh(shell, cmd):
    return _pool_action(shell, cmd, lambda p: p.refresh(0),
            _("Pool %s refreshed\n"),
            _("Failed to refresh pool %s"))


def cmd_pool_start(shell, cmd):
    return _pool_action(shell, cmd, lambda p: p.create(0),
            _("Pool %s started\n"),
            _("Failed to start pool %s"))


def cmd_pool_undefine(shell, cmd):
    return _pool_action(shell, cmd, lambda p: p.undefine(),
            _("Pool %s has been undefined\n"),
            _("Failed to undefine pool %s"))


def cmd_pool_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    pool = lookup_pool(shell, cmd)[0]
    if not pool:
        return False

    flags = 0
    if cmd.opt_bool("inactive"):
        flags |= libvirt.VIR_STORAGE_XML_INACTIVE
    print_xml(shell, pool.XMLDesc(flags))
    return True


def cmd_pool_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    pool = lookup_pool(shell, cmd)[0]
    if not pool:
        return False

    conn = shell.conn
    return editor.edit_xml(shell, _("Pool"), pool.name(),
            lambda: pool.XMLDesc(libvirt.VIR_STORAGE_XML_INACTIVE),
            lambda xml: conn.storagePoolDefineXML(xml, 0))


def cmd_pool_info(shell, cmd):
    if not shell.connection_usable():
        return False
    pool = lookup_pool(shell, cmd)[0]
    if not pool:
        return False

    shell.out("%-15s %s\n" % (_("Name:"), pool.name()))
    shell.out("%-15s %s\n" % (_("UUID:"), pool.UUIDString()))

    state, capacity, allocation, available = pool.info()[:4]
    shell.out("%-15s %s\n" % (_("State:"),
                              _POOL_STATES.get(state, _("unknown"))))
    shell.out("%-15s %s\n" % (_("Persistent:"), persistent_string(pool)))
    shell.out("%-15s %s\n" % (_("Autostart:"), autostart_string(pool)))

    if state in [libvirt.VIR_STORAGE_POOL_RUNNING,
                 libvirt.VIR_STORAGE_POOL_DEGRADED]:
        shell.out(_format_capacity(_("Capacity:"), capacity))
        shell.out(_format_capacity(_("Allocation:"), allocation))
        shell.out(_format_capacity(_("Available:"), available))
    return True


def cmd_pool_list(shell, cmd):
    if not shell.connection_usable():
        return False

    showall = cmd.opt_bool("all")
    inactive = cmd.opt_bool("inactive") or showall
    active = not cmd.opt_bool("inactive") or showall
    conn = shell.conn

    rows = []
    if active:
        try:
            names = sorted(conn.listStoragePools())
        except libvirt.libvirtError:
            shell.error(_("Failed to list active pools"))
            raise
        rows += [(name, _("active")) for name in names]
    if inactive:
        try:
            names = sorted(conn.listDefinedStoragePools())
        except libvirt.libvirtError:
            shell.error(_("Failed to list inactive pools"))
            raise
        rows += [(name, _("inactive")) for name in names]

    shell.out_extra("%-20s %-10s %-10s\n" %
                    (_("Name"), _("State"), _("Autostart")))
    shell.out_extra("-" * 41 + "\n")
    for name, state in rows:
        pool = connection.try_lookup(conn.storagePoolLookupByName, name)
        if not pool:
            continue
        shell.out("%-20s %-10s %-10s\n" % (name, state,
                                           autostart_string(pool)))
    shell.last_error = None
    return True


###########
# Volumes #
###########

def cmd_vol_delete(shell, cmd):
    if not shell.connection_usable():
        return False
    vol, name = lookup_volume(shell, cmd)
    if not vol:
        return False

    try:
        vol.delete(0)
    except libvirt.libvirtError:
        shell.error(_("Failed to delete vol %s") % name)
        raise
    shell.out(_("Vol %s deleted\n") % name)
    return True


def cmd_vol_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    vol = lookup_volume(shell, cmd)[0]
    if not vol:
        return False

    print_xml(shell, vol.XMLDesc(0))
    return True


def cmd_vol_info(shell, cmd):
    if not shell.connection_usable():
        return False
    vol = lookup_volume(shell, cmd)[0]
    if not vol:
        return False

    shell.out("%-15s %s\n" % (_("Name:"), vol.name()))
    voltype, capacity, allocation = vol.info()[:3]
    if voltype == libvirt.VIR_STORAGE_VOL_FILE:
        typestr = _("file")
    else:
        typestr = _("block")
    shell.out("%-15s %s\n" % (_("Type:"), typestr))
    shell.out(_format_capacity(_("Capacity:"), capacity))
    shell.out(_format_capacity(_("Allocation:"), allocation))
    return True


def cmd_vol_list(shell, cmd):
    if not shell.connection_usable():
        return False
    pool = lookup_pool(shell, cmd)[0]
    if not pool:
        return False

    try:
        names = sorted(pool.listVolumes())
    except libvirt.libvirtError:
        shell.error(_("Failed to list storage volumes"))
        raise

    shell.out_extra("%-20s %-40s\n" % (_("Name"), _("Path")))
    shell.out_extra("-" * 41 + "\n")
    for name in names:
        vol = connection.try_lookup(pool.storageVolLookupByName, name)
        if not vol:
            continue
        shell.out("%-20s %-40s\n" % (name, vol.path()))
    shell.last_error = None
    return True


def cmd_vol_path(shell, cmd):
    if not shell.connection_usable():
        return False
    vol = lookup_volume(shell, cmd)[0]
    if not vol:
        return False

    shell.out("%s\n" % vol.path())
    return True


POOL_COMMANDS = [
    CommandDef("pool-autostart", cmd_pool_autostart, [
        _POOL_OPT,
        OptionDef("disable", OPT_BOOL, _("disable autostarting")),
    ], {"help": _("autostart a pool"),
        "desc": _("Configure a pool to be automatically started at "
                  "boot.")}),

    CommandDef("pool-define", cmd_pool_define, [
        opt_file(_("file containing an XML pool description")),
    ], {"help": _("define (but don't start) a pool from an XML file"),
        "desc": _("Define a pool.")}),

    CommandDef("pool-destroy", cmd_pool_destroy, [
        _POOL_OPT,
    ], {"help": _("destroy (stop) a pool"),
        "desc": _("Forcefully stop a given pool. Raw data in the pool is "
                  "untouched")}),

    CommandDef("pool-dumpxml", cmd_pool_dumpxml, [
        _POOL_OPT,
        OptionDef("inactive", OPT_BOOL,
                  _("show inactive defined XML")),
    ], {"help": _("pool information in XML"),
        "desc": _("Output the pool information as an XML dump to "
                  "stdout.")}),

    CommandDef("pool-edit", cmd_pool_edit, [
        _POOL_OPT,
    ], {"help": _("edit XML configuration for a storage pool"),
        "desc": _("Edit the XML configuration for a storage pool.")}),

    CommandDef("pool-info", cmd_pool_info, [
        _POOL_OPT,
    ], {"help": _("storage pool information"),
        "desc": _("Returns basic information about the storage pool.")}),

    CommandDef("pool-list", cmd_pool_list, [
        OptionDef("inactive", OPT_BOOL, _("list inactive pools")),
        OptionDef("all", OPT_BOOL, _("list inactive & active pools")),
    ], {"help": _("list pools"),
        "desc": _("Returns list of pools.")}),

    CommandDef("pool-refresh", cmd_pool_refresh, [
        _POOL_OPT,
    ], {"help": _("refresh a pool"),
        "desc": _("Refresh a given pool.")}),

    CommandDef("pool-start", cmd_pool_start, [
        OptionDef("pool", OPT_DATA, _("name or uuid of the inactive pool"),
                  required=True),
    ], {"help": _("start a (previously defined) inactive pool"),
        "desc": _("Start a pool.")}),

    CommandDef("pool-undefine", cmd_pool_undefine, [
        _POOL_OPT,
    ], {"help": _("undefine an inactive pool"),
        "desc": _("Undefine the configuration for an inactive pool.")}),
]

VOLUME_COMMANDS = [
    CommandDef("vol-delete", cmd_vol_delete, _VOL_OPTS,
        {"help": _("delete a vol"),
         "desc": _("Delete a given vol.")}),

    CommandDef("vol-dumpxml", cmd_vol_dumpxml, _VOL_OPTS,
        {"help": _("vol information in XML"),
         "desc": _("Output the vol information as an XML dump to "
                   "stdout.")}),

    CommandDef("vol-info", cmd_vol_info, _VOL_OPTS,
        {"help": _("storage vol information"),
         "desc": _("Returns basic information about the storage vol.")}),

    CommandDef("vol-list", cmd_vol_list, [
        _POOL_OPT,
    ], {"help": _("list vols"),
        "desc": _("Returns list of vols by pool.")}),

    CommandDef("vol-path", cmd_vol_path, _VOL_OPTS,
        {"help": _("returns the volume path for a given volume name or "
                   "key"),
         "desc": _("Returns the volume path for a given volume name or "
                   "key")}),
]
