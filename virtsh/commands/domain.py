#
# Domain management commands
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .common import (CommandDef, OptionDef, OPT_ARGV, OPT_BOOL, OPT_DATA,
        OPT_INT, OPT_STRING, opt_domain, opt_file, print_xml, read_file)
from .. import connection
from ..connection import lookup_domain
from .. import domainxml
from .. import editor
from .. import jobwatch
from ..logger import log
from .. import util
from .. import xensxpr

# Default xend config version used by the native format converters
DEFAULT_XEND_CONFIG_VERSION = 4

SEND_KEY_MAX_KEYS = 16

_KEYCODE_SETS = {
    "linux": libvirt.VIR_KEYCODE_SET_LINUX,
    "xt": libvirt.VIR_KEYCODE_SET_XT,
    "atset1": libvirt.VIR_KEYCODE_SET_ATSET1,
    "atset2": libvirt.VIR_KEYCODE_SET_ATSET2,
    "atset3": libvirt.VIR_KEYCODE_SET_ATSET3,
    "os_x": libvirt.VIR_KEYCODE_SET_OSX,
    "xt_kbd": libvirt.VIR_KEYCODE_SET_XT_KBD,
    "usb": libvirt.VIR_KEYCODE_SET_USB,
    "win32": libvirt.VIR_KEYCODE_SET_WIN32,
    "rfb": libvirt.VIR_KEYCODE_SET_RFB,
}


def _build_linux_keynames():
    ret = {"KEY_ESC": 1, "KEY_MINUS": 12, "KEY_EQUAL": 13,
           "KEY_BACKSPACE": 14, "KEY_TAB": 15, "KEY_LEFTBRACE": 26,
           "KEY_RIGHTBRACE": 27, "KEY_ENTER": 28, "KEY_LEFTCTRL": 29,
           "KEY_SEMICOLON": 39, "KEY_APOSTROPHE": 40, "KEY_GRAVE": 41,
           "KEY_LEFTSHIFT": 42, "KEY_BACKSLASH": 43, "KEY_COMMA": 51,
           "KEY_DOT": 52, "KEY_SLASH": 53, "KEY_RIGHTSHIFT": 54,
           "KEY_LEFTALT": 56, "KEY_SPACE": 57, "KEY_CAPSLOCK": 58,
           "KEY_F11": 87, "KEY_F12": 88, "KEY_RIGHTCTRL": 97,
           "KEY_SYSRQ": 99, "KEY_RIGHTALT": 100, "KEY_HOME": 102,
           "KEY_UP": 103, "KEY_PAGEUP": 104, "KEY_LEFT": 105,
           "KEY_RIGHT": 106, "KEY_END": 107, "KEY_DOWN": 108,
           "KEY_PAGEDOWN": 109, "KEY_INSERT": 110, "KEY_DELETE": 111}
    for idx, char in enumerate("1234567890"):
        ret["KEY_%s" % char] = 2 + idx
    for row, start in [("QWERTYUIOP", 16), ("ASDFGHJKL", 30),
                       ("ZXCVBNM", 44)]:
        for idx, char in enumerate(row):
            ret["KEY_%s" % char] = start + idx
    for idx in range(10):
        ret["KEY_F%d" % (idx + 1)] = 59 + idx
    return ret


# Symbolic names are only known for the linux codeset
_LINUX_KEYNAMES = _build_linux_keynames()


def _domain_is_active(dom):
    return bool(dom.isActive())


###########################
# Definition and creation #
###########################

def cmd_create(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    flags = 0
    if cmd.opt_bool("paused"):
        flags |= libvirt.VIR_DOMAIN_START_PAUSED
    if cmd.opt_bool("autodestroy"):
        flags |= libvirt.VIR_DOMAIN_START_AUTODESTROY

    try:
        dom = shell.conn.createXML(xml, flags)
    except libvirt.libvirtError:
        shell.error(_("Failed to create domain from %s") % path)
        raise
    shell.out(_("Domain %(name)s created from %(file)s\n") %
              {"name": dom.name(), "file": path})
    return True


def cmd_define(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    try:
        dom = shell.conn.defineXML(xml)
    except libvirt.libvirtError:
        shell.error(_("Failed to define domain from %s") % path)
        raise
    shell.out(_("Domain %(name)s defined from %(file)s\n") %
              {"name": dom.name(), "file": path})
    return True


def cmd_undefine(shell, cmd):
    if not shell.connection_usable():
        return False

    ret, name = cmd.opt_string("domain")
    if ret > 0:
        domid = connection.parse_id(name)
        if domid is not None:
            dom = connection.try_lookup(shell.conn.lookupByID, domid)
            if dom:
                shell.error(_("a running domain like %s cannot be "
                              "undefined;\nto undefine, first shutdown then "
                              "undefine using its name or UUID") % name)
                return False
            shell.last_error = None

    dom, name = lookup_domain(shell, cmd,
            by=connection.BY_NAME | connection.BY_UUID)
    if not dom:
        return False

    flags = 0
    if cmd.opt_bool("managed-save"):
        flags |= libvirt.VIR_DOMAIN_UNDEFINE_MANAGED_SAVE
    if cmd.opt_bool("snapshots-metadata"):
        flags |= libvirt.VIR_DOMAIN_UNDEFINE_SNAPSHOTS_METADATA

    try:
        if flags:
            dom.undefineFlags(flags)
        else:
            dom.undefine()
    except libvirt.libvirtError:
        shell.error(_("Failed to undefine domain %s") % name)
        raise
    shell.out(_("Domain %s has been undefined\n") % name)
    return True


def cmd_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    flags = (libvirt.VIR_DOMAIN_XML_SECURE |
             libvirt.VIR_DOMAIN_XML_INACTIVE)
    return editor.edit_xml(shell, _("Domain"), dom.name(),
            lambda: dom.XMLDesc(flags),
            shell.conn.defineXML)


def cmd_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    flags = 0
    if cmd.opt_bool("inactive"):
        flags |= libvirt.VIR_DOMAIN_XML_INACTIVE
    if cmd.opt_bool("security-info"):
        flags |= libvirt.VIR_DOMAIN_XML_SECURE
    if cmd.opt_bool("update-cpu"):
        flags |= libvirt.VIR_DOMAIN_XML_UPDATE_CPU

    print_xml(shell, dom.XMLDesc(flags))
    return True


#############
# Lifecycle #
#############

def _simple_domain_action(shell, cmd, action, success_msg, fail_msg,
                          by=connection.BY_ALL):
    if not shell.connection_usable():
        return False
    dom, name = lookup_domain(shell, cmd, by=by)
    if not dom:
        return False

    try:
        action(dom)
    except libvirt.libvirtError:
        shell.error(fail_msg % name)
        raise
    shell.out(success_msg % name)
    return True


def cmd_destroy(shell, cmd):
    return _simple_domain_action(shell, cmd, lambda d: d.destroy(),
            _("Domain %s destroyed\n"),
            _("Failed to destroy domain %s"))


def cmd_reboot(shell, cmd):
    return _simple_domain_action(shell, cmd, lambda d: d.reboot(0),
            _("Domain %s is being rebooted\n"),
            _("Failed to reboot domain %s"))


def cmd_resume(shell, cmd):
    return _simple_domain_action(shell, cmd, lambda d: d.resume(),
            _("Domain %s resumed\n"),
            _("Failed to resume domain %s"))


def cmd_shutdown(shell, cmd):
    return _simple_domain_action(shell, cmd, lambda d: d.shutdown(),
            _("Domain %s is being shutdown\n"),
            _("Failed to shutdown domain %s"))


def cmd_suspend(shell, cmd):
    return _simple_domain_action(shell, cmd, lambda d: d.suspend(),
            _("Domain %s suspended\n"),
            _("Failed to suspend domain %s"))


def cmd_start(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd, by=connection.BY_NAME)[0]
    if not dom:
        return False

    if _domain_is_active(dom):
        shell.error(_("Domain is already active"))
        return False

    flags = 0
    if cmd.opt_bool("paused"):
        flags |= libvirt.VIR_DOMAIN_START_PAUSED
    if cmd.opt_bool("autodestroy"):
        flags |= libvirt.VIR_DOMAIN_START_AUTODESTROY

    try:
        # Prefer the older API unless a flag has to be passed
        if flags:
            dom.createWithFlags(flags)
        else:
            dom.create()
    except libvirt.libvirtError:
        shell.error(_("Failed to start domain %s") % dom.name())
        raise
    shell.out(_("Domain %s started\n") % dom.name())
    return True


def cmd_autostart(shell, cmd):
    if not shell.connection_usable():
        return False
    dom, name = lookup_domain(shell, cmd)
    if not dom:
        return False

    autostart = not cmd.opt_bool("disable")
    try:
        dom.setAutostart(int(autostart))
    except libvirt.libvirtError:
        if autostart:
            shell.error(_("Failed to mark domain %s as autostarted") % name)
        else:
            shell.error(_("Failed to unmark domain %s as autostarted") % name)
        raise

    if autostart:
        shell.out(_("Domain %s marked as autostarted\n") % name)
    else:
        shell.out(_("Domain %s unmarked as autostarted\n") % name)
    return True


##########
# Device #
##########

def _device_flags(cmd, dom):
    """
    None means the plain live-only API, otherwise the flags for the
    *Flags variant
    """
    if not cmd.opt_bool("persistent"):
        return None
    flags = libvirt.VIR_DOMAIN_AFFECT_CONFIG
    if _domain_is_active(dom):
        flags |= libvirt.VIR_DOMAIN_AFFECT_LIVE
    return flags


def cmd_attach_device(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    flags = _device_flags(cmd, dom)
    try:
        if flags is None:
            dom.attachDevice(xml)
        else:
            dom.attachDeviceFlags(xml, flags)
    except libvirt.libvirtError:
        shell.error(_("Failed to attach device from %s") % path)
        raise
    shell.out(_("Device attached successfully\n"))
    return True


def cmd_detach_device(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False
    path = cmd.opt_string("file")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    flags = _device_flags(cmd, dom)
    try:
        if flags is None:
            dom.detachDevice(xml)
        else:
            dom.detachDeviceFlags(xml, flags)
    except libvirt.libvirtError:
        shell.error(_("Failed to detach device from %s") % path)
        raise
    shell.out(_("Device detached successfully\n"))
    return True


def cmd_send_key(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    codeset_name = cmd.opt_string("codeset")[1] or "linux"
    ret, holdtime = cmd.opt_int("holdtime")
    if ret < 0:
        shell.error(_("invalid value of --holdtime"))
        return False
    holdtime = holdtime or 0

    if codeset_name not in _KEYCODE_SETS:
        shell.error(_("unknown codeset: '%s'") % codeset_name)
        return False
    codeset = _KEYCODE_SETS[codeset_name]

    keycodes = []
    for keyname in cmd.argv_values():
        if len(keycodes) == SEND_KEY_MAX_KEYS:
            shell.error(_("too many keycodes"))
            return False

        keycode = util.parse_int_auto(keyname)
        if keycode is None or keycode <= 0 or keycode > 0xffff:
            keycode = None
            if codeset == libvirt.VIR_KEYCODE_SET_LINUX:
                keycode = _LINUX_KEYNAMES.get(keyname)
        if keycode is None:
            shell.error(_("invalid keycode: '%s'") % keyname)
            return False
        keycodes.append(keycode)

    dom.sendKey(codeset, holdtime, keycodes, len(keycodes), 0)
    return True


############
# Resource #
############

def cmd_setmem(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    config = cmd.opt_bool("config")
    live = cmd.opt_bool("live")
    if cmd.opt_bool("current"):
        if live or config:
            shell.error(_("--current must be specified exclusively"))
            return False
        flags = libvirt.VIR_DOMAIN_AFFECT_CURRENT
    elif not live and not config:
        flags = None
    else:
        flags = 0
        if config:
            flags |= libvirt.VIR_DOMAIN_AFFECT_CONFIG
        if live:
            flags |= libvirt.VIR_DOMAIN_AFFECT_LIVE

    ret, kilobytes = cmd.opt_ul("kilobytes")
    if ret < 0:
        shell.error(_("memory size has to be a number"))
        return False
    if kilobytes <= 0:
        shell.error(_("Invalid value of %d for memory size") % kilobytes)
        return False

    try:
        maxmem = dom.info()[1]
    except libvirt.libvirtError:
        shell.error(_("Unable to verify MaxMemorySize"))
        raise
    if kilobytes > maxmem:
        shell.error(_("Requested memory size %(req)d kb is larger than "
                      "maximum of %(max)d kb") %
                    {"req": kilobytes, "max": maxmem})
        return False

    if flags is None:
        dom.setMemory(kilobytes)
    else:
        dom.setMemoryFlags(kilobytes, flags)
    return True


def cmd_setmaxmem(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    ret, kilobytes = cmd.opt_ul("kilobytes")
    if ret < 0:
        shell.error(_("memory size has to be a number"))
        return False
    if kilobytes <= 0:
        shell.error(_("Invalid value of %d for memory size") % kilobytes)
        return False

    try:
        dom.setMaxMemory(kilobytes)
    except libvirt.libvirtError:
        shell.error(_("Unable to change MaxMemorySize"))
        raise
    return True


def cmd_setvcpus(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    maximum = cmd.opt_bool("maximum")
    config = cmd.opt_bool("config")
    live = cmd.opt_bool("live")
    current = cmd.opt_bool("current")

    flags = 0
    if current:
        if live or config:
            shell.error(_("--current must be specified exclusively"))
            return False
        flags = libvirt.VIR_DOMAIN_AFFECT_CURRENT
    else:
        if config:
            flags |= libvirt.VIR_DOMAIN_AFFECT_CONFIG
        if live:
            flags |= libvirt.VIR_DOMAIN_AFFECT_LIVE

    if maximum:
        # --maximum only makes sense for the persistent config
        if live or not config:
            shell.error(_("--maximum must be used with --config only"))
            return False
        flags |= libvirt.VIR_DOMAIN_VCPU_MAXIMUM

    ret, count = cmd.opt_int("count")
    if ret < 0 or count <= 0:
        shell.error(_("Invalid number of virtual CPUs"))
        return False

    if not flags:
        dom.setVcpus(count)
    else:
        dom.setVcpusFlags(count, flags)
    return True


def cmd_vcpucount(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    maximum = cmd.opt_bool("maximum")
    current = cmd.opt_bool("current")
    config = cmd.opt_bool("config")
    live = cmd.opt_bool("live")

    if maximum and current:
        shell.error(_("--maximum and --current cannot both be specified"))
        return False
    if config and live:
        shell.error(_("--config and --live cannot both be specified"))
        return False

    # One option from each pair is needed once any of them is used
    if maximum + current + config + live == 1:
        if maximum or current:
            given = maximum and "maximum" or "current"
            need = ("config", "live")
        else:
            given = config and "config" or "live"
            need = ("maximum", "current")
        shell.error(_("when using --%(given)s, either --%(a)s or --%(b)s "
                      "must be specified") %
                    {"given": given, "a": need[0], "b": need[1]})
        return False
    showall = maximum + current + config + live == 0

    queries = [
        (maximum, config, "maximum", "config",
         libvirt.VIR_DOMAIN_VCPU_MAXIMUM | libvirt.VIR_DOMAIN_AFFECT_CONFIG),
        (maximum, live, "maximum", "live",
         libvirt.VIR_DOMAIN_VCPU_MAXIMUM | libvirt.VIR_DOMAIN_AFFECT_LIVE),
        (current, config, "current", "config",
         libvirt.VIR_DOMAIN_AFFECT_CONFIG),
        (current, live, "current", "live",
         libvirt.VIR_DOMAIN_AFFECT_LIVE),
    ]

    ret = True
    for first, second, label1, label2, flags in queries:
        if not showall and not (first and second):
            continue
        try:
            count = dom.vcpusFlags(flags)
        except libvirt.libvirtError as e:
            log.debug("vcpusFlags(%s) failed: %s", flags, e)
            shell.record_exception(e)
            shell.report_error()
            ret = False
            continue

        if showall:
            shell.out("%-12s %-12s %3d\n" % (_(label1), _(label2), count))
        else:
            shell.out("%d\n" % count)
    return ret


########
# Jobs #
########

def cmd_save(shell, cmd):
    if not shell.connection_usable():
        return False
    dom, name = lookup_domain(shell, cmd)
    if not dom:
        return False
    path = cmd.opt_string("file")[1]

    oldhandler = shell.catch_sigint()
    try:
        jobwatch.watch_job(shell, dom, _("Save"), lambda: dom.save(path),
                           verbose=cmd.opt_bool("verbose"))
    except libvirt.libvirtError:
        shell.error(_("Failed to save domain %(name)s to %(file)s") %
                    {"name": name, "file": path})
        raise
    finally:
        shell.restore_sigint(oldhandler)

    shell.out(_("Domain %(name)s saved to %(file)s\n") %
              {"name": name, "file": path})
    return True


def cmd_managedsave(shell, cmd):
    if not shell.connection_usable():
        return False
    dom, name = lookup_domain(shell, cmd)
    if not dom:
        return False

    oldhandler = shell.catch_sigint()
    try:
        jobwatch.watch_job(shell, dom, _("Managedsave"),
                           lambda: dom.managedSave(0),
                           verbose=cmd.opt_bool("verbose"))
    except libvirt.libvirtError:
        shell.error(_("Failed to save domain %s state") % name)
        raise
    finally:
        shell.restore_sigint(oldhandler)

    shell.out(_("Domain %s state saved by libvirt\n") % name)
    return True


def cmd_dump(shell, cmd):
    if not shell.connection_usable():
        return False
    dom, name = lookup_domain(shell, cmd)
    if not dom:
        return False
    path = cmd.opt_string("file")[1]

    flags = 0
    if cmd.opt_bool("live"):
        flags |= libvirt.VIR_DUMP_LIVE
    if cmd.opt_bool("crash"):
        flags |= libvirt.VIR_DUMP_CRASH
    if cmd.opt_bool("bypass-cache"):
        flags |= libvirt.VIR_DUMP_BYPASS_CACHE

    oldhandler = shell.catch_sigint()
    try:
        jobwatch.watch_job(shell, dom, _("Dump"),
                           lambda: dom.coreDump(path, flags),
                           verbose=cmd.opt_bool("verbose"))
    except libvirt.libvirtError:
        shell.error(_("Failed to core dump domain %(name)s to %(file)s") %
                    {"name": name, "file": path})
        raise
    finally:
        shell.restore_sigint(oldhandler)

    shell.out(_("Domain %(name)s dumped to %(file)s\n") %
              {"name": name, "file": path})
    return True


def cmd_restore(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]

    try:
        shell.conn.restore(path)
    except libvirt.libvirtError:
        shell.error(_("Failed to restore domain from %s") % path)
        raise
    shell.out(_("Domain restored from %s\n") % path)
    return True


def cmd_save_image_dumpxml(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]

    flags = 0
    if cmd.opt_bool("security-info"):
        flags |= libvirt.VIR_DOMAIN_XML_SECURE
    print_xml(shell, shell.conn.saveImageGetXMLDesc(path, flags))
    return True


def cmd_save_image_edit(shell, cmd):
    if not shell.connection_usable():
        return False
    path = cmd.opt_string("file")[1]

    conn = shell.conn
    return editor.edit_xml(shell, _("State file"), path,
            lambda: conn.saveImageGetXMLDesc(path,
                                             libvirt.VIR_DOMAIN_XML_SECURE),
            lambda xml: conn.saveImageDefineXML(path, xml, 0))


def _migration_timeout_cb(shell, dom):
    shell.debug(0, "suspending the domain, since migration timed out")
    dom.suspend()


def _do_migrate(shell, dom, desturi, flags, dname, migrateuri, direct):
    if flags & libvirt.VIR_MIGRATE_PEER2PEER or direct:
        dom.migrateToURI(desturi, flags, dname, 0)
        return

    # Traditional migration talks to the destination host directly
    dconn = shell.open_connection(desturi)
    try:
        dom.migrate(dconn.get_conn_for_api_arg(), flags, dname,
                    migrateuri, 0)
    finally:
        dconn.close()


_MIGRATE_FLAGS = [
    ("live", "VIR_MIGRATE_LIVE"),
    ("p2p", "VIR_MIGRATE_PEER2PEER"),
    ("tunnelled", "VIR_MIGRATE_TUNNELLED"),
    ("persistent", "VIR_MIGRATE_PERSIST_DEST"),
    ("undefinesource", "VIR_MIGRATE_UNDEFINE_SOURCE"),
    ("suspend", "VIR_MIGRATE_PAUSED"),
    ("copy-storage-all", "VIR_MIGRATE_NON_SHARED_DISK"),
    ("copy-storage-inc", "VIR_MIGRATE_NON_SHARED_INC"),
]


def cmd_migrate(shell, cmd):
    if not shell.connection_usable():
        return False
    dom = lookup_domain(shell, cmd)[0]
    if not dom:
        return False

    desturi = cmd.opt_string("desturi")[1]
    dname = cmd.opt_string("dname")[1]
    migrateuri = cmd.opt_string("migrateuri")[1]
    direct = cmd.opt_bool("direct")
    flags = 0
    for optname, flagname in _MIGRATE_FLAGS:
        if cmd.opt_bool(optname):
            flags |= getattr(libvirt, flagname)

    if (flags & libvirt.VIR_MIGRATE_PEER2PEER or direct) and migrateuri:
        # Only one URI is expected, libvirt or hypervisor specific
        shell.error(_("migrate: Unexpected migrateuri for peer2peer/direct "
                      "migration"))
        return False

    ret, timeout = cmd.opt_int("timeout")
    if ret < 0:
        shell.error(_("migrate: Invalid timeout"))
        return False
    if ret > 0:
        if timeout < 1:
            shell.error(_("migrate: Invalid timeout"))
            return False
        if not cmd.opt_bool("live"):
            shell.error(_("migrate: Unexpected timeout for offline "
                          "migration"))
            return False
    else:
        timeout = 0

    oldhandler = shell.catch_sigint()
    try:
        jobwatch.watch_job(shell, dom, _("Migration"),
                lambda: _do_migrate(shell, dom, desturi, flags, dname,
                                    migrateuri, direct),
                verbose=cmd.opt_bool("verbose"), timeout=timeout,
                timeout_cb=_migration_timeout_cb)
    finally:
        shell.restore_sigint(oldhandler)
    return True


########################
# Native config format #
########################

def _bridge_lookup(shell):
    conn = shell.conn
    if not conn:
        return None

    def _lookup(netname):
        net = conn.networkLookupByName(netname)
        return net.bridgeName()
    return _lookup


def _xend_config_version(shell, cmd):
    ret, version = cmd.opt_int("xend-config-version")
    if ret < 0:
        shell.error(_("invalid xend config version"))
        return None
    if ret == 0:
        return DEFAULT_XEND_CONFIG_VERSION
    return version


def _ensure_connection(shell):
    if not shell.conn or shell.disconnected:
        shell.reconnect()
    return shell.connection_usable()


def cmd_domxml_from_native(shell, cmd):
    fmt = cmd.opt_string("format")[1]
    path = cmd.opt_string("config")[1]
    config = read_file(shell, path)
    if config is None:
        return False

    if fmt != "xen-sxpr":
        if not _ensure_connection(shell):
            return False
        print_xml(shell, shell.conn.domainXMLFromNative(fmt, config, 0))
        return True

    version = _xend_config_version(shell, cmd)
    if version is None:
        return False
    try:
        domdef = xensxpr.parse_sxpr_string(config, version)
        xml = domainxml.format_domain_xml(domdef)
    except ValueError as e:
        log.debug("Converting %s failed", path, exc_info=True)
        shell.error(str(e))
        return False
    print_xml(shell, xml)
    return True


def cmd_domxml_to_native(shell, cmd):
    fmt = cmd.opt_string("format")[1]
    path = cmd.opt_string("xml")[1]
    xml = read_file(shell, path)
    if xml is None:
        return False

    if fmt != "xen-sxpr":
        if not _ensure_connection(shell):
            return False
        print_xml(shell, shell.conn.domainXMLToNative(fmt, xml, 0))
        return True

    version = _xend_config_version(shell, cmd)
    if version is None:
        return False
    try:
        domdef = domainxml.parse_domain_xml(xml)
        config = xensxpr.format_sxpr(domdef, version,
                                     bridge_lookup=_bridge_lookup(shell))
    except ValueError as e:
        log.debug("Converting %s failed", path, exc_info=True)
        shell.error(str(e))
        return False
    print_xml(shell, config)
    return True


_DOMAIN_OPT = opt_domain()

COMMANDS = [
    CommandDef("attach-device", cmd_attach_device, [
        _DOMAIN_OPT,
        opt_file(_("XML file")),
        OptionDef("persistent", OPT_BOOL,
                  _("persist device attachment")),
    ], {"help": _("attach device from an XML file"),
        "desc": _("Attach device from an XML <file>.")}),

    CommandDef("autostart", cmd_autostart, [
        _DOMAIN_OPT,
        OptionDef("disable", OPT_BOOL, _("disable autostarting")),
    ], {"help": _("autostart a domain"),
        "desc": _("Configure a domain to be automatically started at "
                  "boot.")}),

    CommandDef("create", cmd_create, [
        opt_file(_("file containing an XML domain description")),
        OptionDef("paused", OPT_BOOL, _("leave the guest paused after "
                                        "creation")),
        OptionDef("autodestroy", OPT_BOOL,
                  _("automatically destroy the guest when virsh "
                    "disconnects")),
    ], {"help": _("create a domain from an XML file"),
        "desc": _("Create a domain.")}),

    CommandDef("define", cmd_define, [
        opt_file(_("file containing an XML domain description")),
    ], {"help": _("define (but don't start) a domain from an XML file"),
        "desc": _("Define a domain.")}),

    CommandDef("destroy", cmd_destroy, [
        _DOMAIN_OPT,
    ], {"help": _("destroy (stop) a domain"),
        "desc": _("Forcefully stop a given domain, but leave its "
                  "resources intact.")}),

    CommandDef("detach-device", cmd_detach_device, [
        _DOMAIN_OPT,
        opt_file(_("XML file")),
        OptionDef("persistent", OPT_BOOL, _("persist device detachment")),
    ], {"help": _("detach device from an XML file"),
        "desc": _("Detach device from an XML <file>")}),

    CommandDef("domxml-from-native", cmd_domxml_from_native, [
        OptionDef("format", OPT_DATA, _("source config data format"),
                  required=True),
        OptionDef("config", OPT_DATA, _("config data file to import from"),
                  required=True),
        OptionDef("xend-config-version", OPT_INT,
                  _("xend config version for the xen-sxpr format"),
                  requires_value=True),
    ], {"help": _("Convert native config to domain XML"),
        "desc": _("Convert native guest configuration format to domain "
                  "XML format.")},
       no_connect=True),

    CommandDef("domxml-to-native", cmd_domxml_to_native, [
        OptionDef("format", OPT_DATA, _("target config data type format"),
                  required=True),
        OptionDef("xml", OPT_DATA, _("xml data file to export from"),
                  required=True),
        OptionDef("xend-config-version", OPT_INT,
                  _("xend config version for the xen-sxpr format"),
                  requires_value=True),
    ], {"help": _("Convert domain XML to native config"),
        "desc": _("Convert domain XML config to a native guest "
                  "configuration format.")},
       no_connect=True),

    CommandDef("dump", cmd_dump, [
        _DOMAIN_OPT,
        OptionDef("file", OPT_DATA, _("where to dump the core"),
                  required=True),
        OptionDef("live", OPT_BOOL, _("perform a live core dump if "
                                      "supported")),
        OptionDef("crash", OPT_BOOL, _("crash the domain after core "
                                       "dump")),
        OptionDef("bypass-cache", OPT_BOOL,
                  _("avoid file system cache when saving")),
        OptionDef("verbose", OPT_BOOL, _("display the progress of dump")),
    ], {"help": _("dump the core of a domain to a file for analysis"),
        "desc": _("Core dump a domain.")}),

    CommandDef("dumpxml", cmd_dumpxml, [
        _DOMAIN_OPT,
        OptionDef("inactive", OPT_BOOL, _("show inactive defined XML")),
        OptionDef("security-info", OPT_BOOL,
                  _("include security sensitive information in XML "
                    "dump")),
        OptionDef("update-cpu", OPT_BOOL,
                  _("update guest CPU according to host CPU")),
    ], {"help": _("domain information in XML"),
        "desc": _("Output the domain information as an XML dump to "
                  "stdout.")}),

    CommandDef("edit", cmd_edit, [
        _DOMAIN_OPT,
    ], {"help": _("edit XML configuration for a domain"),
        "desc": _("Edit the XML configuration for a domain.")}),

    CommandDef("managedsave", cmd_managedsave, [
        _DOMAIN_OPT,
        OptionDef("verbose", OPT_BOOL, _("display the progress of save")),
    ], {"help": _("managed save of a domain state"),
        "desc": _("Save and destroy a running domain, so it can be "
                  "restarted from\n    the same state at a later time.  "
                  "When the virsh 'start'\n    command is next run for the "
                  "domain, it will automatically\n    be started from this "
                  "saved state.")}),

    CommandDef("migrate", cmd_migrate, [
        OptionDef("live", OPT_BOOL, _("live migration")),
        OptionDef("p2p", OPT_BOOL, _("peer-2-peer migration")),
        OptionDef("direct", OPT_BOOL, _("direct migration")),
        OptionDef("tunnelled", OPT_BOOL, _("tunnelled migration")),
        OptionDef("persistent", OPT_BOOL,
                  _("persist VM on destination")),
        OptionDef("undefinesource", OPT_BOOL,
                  _("undefine VM on source")),
        OptionDef("suspend", OPT_BOOL,
                  _("do not restart the domain on the destination host")),
        OptionDef("copy-storage-all", OPT_BOOL,
                  _("migration with non-shared storage with full disk "
                    "copy")),
        OptionDef("copy-storage-inc", OPT_BOOL,
                  _("migration with non-shared storage with incremental "
                    "copy (same base image shared between source and "
                    "destination)")),
        OptionDef("verbose", OPT_BOOL,
                  _("display the progress of migration")),
        _DOMAIN_OPT,
        OptionDef("desturi", OPT_DATA,
                  _("connection URI of the destination host as seen from "
                    "the client(normal migration) or source(p2p "
                    "migration)"), required=True),
        OptionDef("migrateuri", OPT_DATA, _("migration URI, usually can "
                                            "be omitted")),
        OptionDef("dname", OPT_DATA, _("rename to new name during "
                                       "migration (if supported)")),
        OptionDef("timeout", OPT_INT,
                  _("force guest to suspend if live migration exceeds "
                    "timeout (in seconds)"), requires_value=True),
    ], {"help": _("migrate domain to another host"),
        "desc": _("Migrate domain to another host.  Add --live for live "
                  "migration.")}),

    CommandDef("reboot", cmd_reboot, [
        _DOMAIN_OPT,
    ], {"help": _("reboot a domain"),
        "desc": _("Run a reboot command in the target domain.")}),

    CommandDef("restore", cmd_restore, [
        opt_file(_("the state to restore")),
    ], {"help": _("restore a domain from a saved state in a file"),
        "desc": _("Restore a domain.")}),

    CommandDef("resume", cmd_resume, [
        _DOMAIN_OPT,
    ], {"help": _("resume a domain"),
        "desc": _("Resume a previously suspended domain.")}),

    CommandDef("save", cmd_save, [
        _DOMAIN_OPT,
        OptionDef("file", OPT_DATA, _("where to save the data"),
                  required=True),
        OptionDef("verbose", OPT_BOOL, _("display the progress of save")),
    ], {"help": _("save a domain state to a file"),
        "desc": _("Save the RAM state of a running domain.")}),

    CommandDef("save-image-dumpxml", cmd_save_image_dumpxml, [
        opt_file(_("saved state file to read")),
        OptionDef("security-info", OPT_BOOL,
                  _("include security sensitive information in XML "
                    "dump")),
    ], {"help": _("saved state domain information in XML"),
        "desc": _("Output the domain information for a saved state file,"
                  "\n    as an XML dump to stdout.")}),

    CommandDef("save-image-edit", cmd_save_image_edit, [
        opt_file(_("saved state file to edit")),
    ], {"help": _("edit XML for a domain's saved state file"),
        "desc": _("Edit the domain XML associated with a saved state "
                  "file")}),

    CommandDef("send-key", cmd_send_key, [
        _DOMAIN_OPT,
        OptionDef("codeset", OPT_STRING, _("the codeset of keycodes, "
                                           "default:linux"),
                  requires_value=True),
        OptionDef("holdtime", OPT_INT,
                  _("the time (in milliseconds) how long the keys will "
                    "be held"), requires_value=True),
        OptionDef("keycode", OPT_ARGV, _("the key code"), required=True),
    ], {"help": _("Send keycodes to the guest"),
        "desc": _("Send keycodes to the guest, the keycodes must be "
                  "integers\n    or the qemu-style key names")}),

    CommandDef("setmaxmem", cmd_setmaxmem, [
        _DOMAIN_OPT,
        OptionDef("kilobytes", OPT_INT, _("maximum memory in kilobytes"),
                  required=True),
    ], {"help": _("change maximum memory limit"),
        "desc": _("Change the maximum memory allocation limit in the "
                  "guest domain.")}),

    CommandDef("setmem", cmd_setmem, [
        _DOMAIN_OPT,
        OptionDef("kilobytes", OPT_INT, _("number of kilobytes of memory"),
                  required=True),
        OptionDef("config", OPT_BOOL, _("affect next boot")),
        OptionDef("live", OPT_BOOL, _("affect running domain")),
        OptionDef("current", OPT_BOOL, _("affect current domain")),
    ], {"help": _("change memory allocation"),
        "desc": _("Change the current memory allocation in the guest "
                  "domain.")}),

    CommandDef("setvcpus", cmd_setvcpus, [
        _DOMAIN_OPT,
        OptionDef("count", OPT_INT, _("number of virtual CPUs"),
                  required=True),
        OptionDef("maximum", OPT_BOOL, _("set maximum limit on next "
                                         "boot")),
        OptionDef("config", OPT_BOOL, _("affect next boot")),
        OptionDef("live", OPT_BOOL, _("affect running domain")),
        OptionDef("current", OPT_BOOL, _("affect current domain")),
    ], {"help": _("change number of virtual CPUs"),
        "desc": _("Change the number of virtual CPUs in the guest "
                  "domain.")}),

    CommandDef("shutdown", cmd_shutdown, [
        _DOMAIN_OPT,
    ], {"help": _("gracefully shutdown a domain"),
        "desc": _("Run shutdown in the target domain.")}),

    CommandDef("start", cmd_start, [
        OptionDef("domain", OPT_DATA, _("name of the inactive domain"),
                  required=True),
        OptionDef("paused", OPT_BOOL, _("leave the guest paused after "
                                        "creation")),
        OptionDef("autodestroy", OPT_BOOL,
                  _("automatically destroy the guest when virsh "
                    "disconnects")),
    ], {"help": _("start a (previously defined) inactive domain"),
        "desc": _("Start a domain, either from the last managedsave\n"
                  "    state, or via a fresh boot if no managedsave "
                  "state\n    is present.")}),

    CommandDef("suspend", cmd_suspend, [
        _DOMAIN_OPT,
    ], {"help": _("suspend a domain"),
        "desc": _("Suspend a running domain.")}),

    CommandDef("undefine", cmd_undefine, [
        OptionDef("domain", OPT_DATA, _("domain name or uuid"),
                  required=True),
        OptionDef("managed-save", OPT_BOOL, _("remove domain managed state "
                                              "file")),
        OptionDef("snapshots-metadata", OPT_BOOL,
                  _("remove all domain snapshot metadata, if inactive")),
    ], {"help": _("undefine an inactive domain"),
        "desc": _("Undefine the configuration for an inactive domain.")}),

    CommandDef("vcpucount", cmd_vcpucount, [
        _DOMAIN_OPT,
        OptionDef("maximum", OPT_BOOL, _("get maximum cap on vcpus")),
        OptionDef("current", OPT_BOOL, _("get current vcpu usage")),
        OptionDef("config", OPT_BOOL, _("get value to be used on next "
                                        "boot")),
        OptionDef("live", OPT_BOOL, _("get value from running domain")),
    ], {"help": _("domain vcpu counts"),
        "desc": _("Returns the number of virtual CPUs used by the "
                  "domain.")}),
]
