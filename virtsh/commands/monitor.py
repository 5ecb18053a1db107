#
# Domain monitoring commands
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import (CommandDef, OptionDef, OPT_BOOL,
        domain_state, opt_domain, persistent_string, state_reason_to_string,
        state_to_string)
from .. import connection
from ..connection import lookup_domain
from ..logger import log


def cmd_domid(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd,
            by=connection.BY_NAME | connection.BY_UUID)[0]
    if not dom:
        return False

    domid = dom.ID()
    if domid == -1:
        shell.out("-\n")
    else:
        shell.out("%d\n" % domid)
    return True


def cmd_domname(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd,
            by=connection.BY_ID | connection.BY_UUID)[0]
    if not dom:
        return False

    shell.out("%s\n" % dom.name())
    return True


def cmd_domuuid(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd,
            by=connection.BY_ID | connection.BY_NAME)[0]
    if not dom:
        return False

    try:
        shell.out("%s\n" % dom.UUIDString())
    except libvirt.libvirtError:
        shell.error(_("failed to get domain UUID"))
        raise
    return True


def cmd_dominfo(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    domid = dom.ID()
    if domid == -1:
        shell.out("%-15s %s\n" % (_("Id:"), "-"))
    else:
        shell.out("%-15s %d\n" % (_("Id:"), domid))
    shell.out("%-15s %s\n" % (_("Name:"), dom.name()))
    shell.out("%-15s %s\n" % (_("UUID:"), dom.UUIDString()))
    shell.out("%-15s %s\n" % (_("OS Type:"), dom.OSType()))

    state, maxmem, memory, nvcpus, cputime = dom.info()
    shell.out("%-15s %s\n" % (_("State:"), state_to_string(state)))
    shell.out("%-15s %d\n" % (_("CPU(s):"), nvcpus))
    if cputime:
        shell.out("%-15s %.1fs\n" % (_("CPU time:"), cputime / 1000000000.0))
    if maxmem != (1 << 32) - 1:
        shell.out("%-15s %d kB\n" % (_("Max memory:"), maxmem))
    else:
        shell.out("%-15s %s\n" % (_("Max memory:"), _("no limit")))
    shell.out("%-15s %d kB\n" % (_("Used memory:"), memory))

    shell.out("%-15s %s\n" % (_("Persistent:"), persistent_string(dom)))
    try:
        autostart = dom.autostart()
        shell.out("%-15s %s\n" % (_("Autostart:"),
                                 autostart and _("enable") or _("disable")))
    except libvirt.libvirtError as e:
        log.debug("Fetching autostart for %s failed: %s", dom.name(), e)
        shell.last_error = None
    return True


def cmd_domstate(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    state, reason = domain_state(shell, dom)
    if cmd.opt_bool("reason"):
        shell.out("%s (%s)\n" % (state_to_string(state),
                                 state_reason_to_string(state, reason)))
    else:
        shell.out("%s\n" % state_to_string(state))
    return True


def cmd_list(shell, cmd):
    if not shell.connection_usable():
        return False

    showall = cmd.opt_bool("all")
    inactive = cmd.opt_bool("inactive") or showall
    active = not cmd.opt_bool("inactive") or showall
    conn = shell.conn

    ids = []
    if active:
        try:
            ids = sorted(conn.listDomainsID())
        except libvirt.libvirtError:
            shell.error(_("Failed to list active domains"))
            raise

    names = []
    if inactive:
        try:
            names = sorted(conn.listDefinedDomains())
        except libvirt.libvirtError:
            shell.error(_("Failed to list inactive domains"))
            raise

    shell.out(" %-5s %-30s %s\n" % (_("Id"), _("Name"), _("State")))
    shell.out("-" * 52 + "\n")

    for domid in ids:
        dom = connection.try_lookup(conn.lookupByID, domid)
        if not dom:
            # Went away after listing
            continue
        state = domain_state(shell, dom)[0]
        shell.out(" %-5d %-30s %s\n" % (domid, dom.name(),
                                        state_to_string(state)))

    for name in names:
        dom = connection.try_lookup(conn.lookupByName, name)
        if not dom:
            continue
        state = domain_state(shell, dom)[0]
        shell.out(" %-5s %-30s %s\n" % ("-", name, state_to_string(state)))

    # Lookup failures of vanished domains aren't command failures
    shell.last_error = None
    return True


COMMANDS = [
    CommandDef("domid", cmd_domid, [
        opt_domain(_("domain name or uuid")),
    ], {"help": _("convert a domain name or UUID to domain id"),
        "desc": ""}),

    CommandDef("dominfo", cmd_dominfo, [
        opt_domain(),
    ], {"help": _("domain information"),
        "desc": _("Returns basic information about the domain.")}),

    CommandDef("domname", cmd_domname, [
        opt_domain(_("domain id or uuid")),
    ], {"help": _("convert a domain id or UUID to domain name"),
        "desc": ""}),

    CommandDef("domstate", cmd_domstate, [
        opt_domain(),
        OptionDef("reason", OPT_BOOL, _("also print reason for the state")),
    ], {"help": _("domain state"),
        "desc": _("Returns state about a domain.")}),

    CommandDef("domuuid", cmd_domuuid, [
        opt_domain(_("domain id or name")),
    ], {"help": _("convert a domain name or id to domain UUID"),
        "desc": ""}),

    CommandDef("list", cmd_list, [
        OptionDef("inactive", OPT_BOOL, _("list inactive domains")),
        OptionDef("all", OPT_BOOL, _("list inactive & active domains")),
    ], {"help": _("list domains"),
        "desc": _("Returns list of domains.")}),
]
