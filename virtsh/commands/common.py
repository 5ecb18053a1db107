#
# Helpers shared by the command groups
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from ..command import (CommandDef, OptionDef, OPT_ARGV, OPT_BOOL, OPT_DATA,
        OPT_INT, OPT_STRING)
from ..logger import log

__all__ = ["CommandDef", "OptionDef", "OPT_ARGV", "OPT_BOOL", "OPT_DATA",
           "OPT_INT", "OPT_STRING"]

# Guard against reading something silly as an XML document
MAX_XML_FILE = 10 * 1024 * 1024


def opt_domain(helpstr=None):
    return OptionDef("domain", OPT_DATA,
            helpstr or _("domain name, id or uuid"), required=True)


def opt_file(helpstr):
    return OptionDef("file", OPT_DATA, helpstr, required=True)


def read_file(shell, path):
    """
    Return the contents of @path, or None after reporting the error
    """
    try:
        with open(path) as f:
            ret = f.read(MAX_XML_FILE + 1)
    except OSError as e:
        shell.error(_("Failed to open file '%(path)s': %(err)s") %
                    {"path": path, "err": e.strerror})
        return None
    if len(ret) > MAX_XML_FILE:
        shell.error(_("File '%s' is too large") % path)
        return None
    return ret


def print_xml(shell, xml):
    shell.out(xml)
    if not xml.endswith("\n"):
        shell.out("\n")


def pretty_capacity(val):
    """
    Return (value, unit) scaled for display
    """
    for unit in ["", "KB", "MB", "GB"]:
        if val < 1024:
            return float(val), unit
        val /= 1024.0
    return float(val), "TB"


def yes_no(val):
    return val and _("yes") or _("no")


def autostart_string(obj):
    try:
        return yes_no(obj.autostart())
    except libvirt.libvirtError as e:
        log.debug("Fetching autostart failed: %s", e)
        return _("no autostart")


def persistent_string(obj):
    try:
        return yes_no(obj.isPersistent())
    except libvirt.libvirtError as e:
        log.debug("Fetching persistent state failed: %s", e)
        return _("unknown")


################
# Domain state #
################

_DOMAIN_STATES = {
    libvirt.VIR_DOMAIN_RUNNING: _("running"),
    libvirt.VIR_DOMAIN_BLOCKED: _("idle"),
    libvirt.VIR_DOMAIN_PAUSED: _("paused"),
    libvirt.VIR_DOMAIN_SHUTDOWN: _("in shutdown"),
    libvirt.VIR_DOMAIN_SHUTOFF: _("shut off"),
    libvirt.VIR_DOMAIN_CRASHED: _("crashed"),
    libvirt.VIR_DOMAIN_PMSUSPENDED: _("pmsuspended"),
}

_STATE_REASONS = {
    libvirt.VIR_DOMAIN_RUNNING: {
        libvirt.VIR_DOMAIN_RUNNING_BOOTED: _("booted"),
        libvirt.VIR_DOMAIN_RUNNING_MIGRATED: _("migrated"),
        libvirt.VIR_DOMAIN_RUNNING_RESTORED: _("restored"),
        libvirt.VIR_DOMAIN_RUNNING_FROM_SNAPSHOT: _("from snapshot"),
        libvirt.VIR_DOMAIN_RUNNING_UNPAUSED: _("unpaused"),
        libvirt.VIR_DOMAIN_RUNNING_MIGRATION_CANCELED: _("migration canceled"),
        libvirt.VIR_DOMAIN_RUNNING_SAVE_CANCELED: _("save canceled"),
    },
    libvirt.VIR_DOMAIN_PAUSED: {
        libvirt.VIR_DOMAIN_PAUSED_USER: _("user"),
        libvirt.VIR_DOMAIN_PAUSED_MIGRATION: _("migrating"),
        libvirt.VIR_DOMAIN_PAUSED_SAVE: _("saving"),
        libvirt.VIR_DOMAIN_PAUSED_DUMP: _("dumping"),
        libvirt.VIR_DOMAIN_PAUSED_IOERROR: _("I/O error"),
        libvirt.VIR_DOMAIN_PAUSED_WATCHDOG: _("watchdog"),
        libvirt.VIR_DOMAIN_PAUSED_FROM_SNAPSHOT: _("from snapshot"),
        libvirt.VIR_DOMAIN_PAUSED_SHUTTING_DOWN: _("shutting down"),
    },
    libvirt.VIR_DOMAIN_SHUTDOWN: {
        libvirt.VIR_DOMAIN_SHUTDOWN_USER: _("user"),
    },
    libvirt.VIR_DOMAIN_SHUTOFF: {
        libvirt.VIR_DOMAIN_SHUTOFF_SHUTDOWN: _("shutdown"),
        libvirt.VIR_DOMAIN_SHUTOFF_DESTROYED: _("destroyed"),
        libvirt.VIR_DOMAIN_SHUTOFF_CRASHED: _("crashed"),
        libvirt.VIR_DOMAIN_SHUTOFF_MIGRATED: _("migrated"),
        libvirt.VIR_DOMAIN_SHUTOFF_SAVED: _("saved"),
        libvirt.VIR_DOMAIN_SHUTOFF_FAILED: _("failed"),
        libvirt.VIR_DOMAIN_SHUTOFF_FROM_SNAPSHOT: _("from snapshot"),
    },
}


def state_to_string(state):
    return _DOMAIN_STATES.get(state, _("no state"))


def state_reason_to_string(state, reason):
    return _STATE_REASONS.get(state, {}).get(reason, _("unknown"))


def domain_state(shell, dom):
    """
    Return (state, reason). Hypervisors without virDomainGetState
    are remembered, and dom.info() is used for the rest of the
    connection's lifetime
    """
    if not shell.use_legacy_info_probe:
        try:
            state, reason = dom.state(0)[:2]
            return state, reason
        except libvirt.libvirtError as e:
            if e.get_error_code() != libvirt.VIR_ERR_NO_SUPPORT:
                raise
            log.debug("virDomainGetState not supported, using info()")
            shell.use_legacy_info_probe = True
            shell.last_error = None

    return dom.info()[0], 0
