#
# Conversion between xend S-expressions and DomainDef
#
# Copyright (C) 2011 Univention GmbH
# Copyright (C) 2010-2011 Red Hat, Inc.
# Copyright (C) 2005 Anthony Liguori <aliguori@us.ibm.com>
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

"""
Reading and writing of the domain configuration format spoken by the
xend daemon. Layout details changed between xend releases, so most
functions take an xend_config_version:

    1: xen <= 3.0.2
    2: xen 3.0.3
    3: xen 3.0.4 - 3.1.0
    4: xen >= 3.1.0
"""

import re
import uuid

from . import sexpr
from .domaindef import (CharDef, ClockTimer, DiskDef, DomainDef, DomainOS,
        GraphicsDef, HostdevDef, InputDef, NetDef, SoundDef, parse_cpuset,
        format_cpuset)
from .logger import log
from .util import parse_int_auto, popcount


DEFAULT_VIF_SCRIPT = "vif-bridge"

# (type ioemu) breaks paravirt drivers on HVM, newer xend doesn't need it
XEND_CONFIG_MAX_VERS_NET_TYPE_IOEMU = 3
# PV guests use (device (vfb ...)) graphics from this version
XEND_CONFIG_MIN_VERS_PVFB_NEWCONF = 3
# HVM guests use (device (vfb ...)) graphics from this version
XEND_CONFIG_MIN_VERS_HVM_NEWCONF = 4

_BOOT_CHARS = {
    "a": DomainOS.BOOT_FLOPPY,
    "c": DomainOS.BOOT_DISK,
    "d": DomainOS.BOOT_CDROM,
    "n": DomainOS.BOOT_NET,
}
_MAC_RE = re.compile(r"^([0-9a-fA-F]{1,2}:){5}[0-9a-fA-F]{1,2}$")


class SxprConfigError(ValueError):
    pass


def _parse_mac(macstr):
    if not _MAC_RE.match(macstr):
        raise SxprConfigError(_("malformed mac address '%s'") % macstr)
    return ":".join("%02x" % int(b, 16) for b in macstr.split(":"))


def _parse_uuid(uuidstr):
    try:
        return str(uuid.UUID(uuidstr))
    except ValueError:
        raise SxprConfigError(
            _("malformed uuid '%s'") % uuidstr) from None


def _domain_root(root):
    """
    The daemon reports domains as (domain ...) while we write (vm ...)
    for creation. Accept both by presenting a (domain ...) view.
    """
    if isinstance(root, sexpr.Cons) and root.head() == "vm":
        return sexpr.Cons(sexpr.Atom("domain"), root.cdr)
    return root


#################
# Domain id API #
#################

def get_domid(root, xend_config_version):
    """
    Return the domain id from the tree, -1 for an inactive domain.
    Old xend always reports the id, so its absence is an error there
    """
    root = _domain_root(root)
    tmp = sexpr.node(root, "domain/domid")
    if tmp is None:
        if xend_config_version < 3:
            raise SxprConfigError(
                _("domain information incomplete, missing id"))
        return -1
    return sexpr.int_node(root, "domain/domid")


def get_domid_from_string(text, xend_config_version):
    return get_domid(sexpr.string_to_sexpr(text), xend_config_version)


##########
# Reader #
##########

def _parse_os(root, domdef, hvm):
    osdef = domdef.os
    if hvm:
        osdef.loader = sexpr.node(root, "domain/image/hvm/loader")
        if osdef.loader is None:
            osdef.loader = sexpr.node(root, "domain/image/hvm/kernel")
            if osdef.loader is None:
                raise SxprConfigError(
                    _("domain information incomplete, missing HVM loader"))
        else:
            osdef.kernel = sexpr.node(root, "domain/image/hvm/kernel")
            osdef.initrd = sexpr.node(root, "domain/image/hvm/ramdisk")
            osdef.cmdline = sexpr.node(root, "domain/image/hvm/args")
            osdef.root = sexpr.node(root, "domain/image/hvm/root")
    else:
        osdef.kernel = sexpr.node(root, "domain/image/linux/kernel")
        osdef.initrd = sexpr.node(root, "domain/image/linux/ramdisk")
        osdef.cmdline = sexpr.node(root, "domain/image/linux/args")
        osdef.root = sexpr.node(root, "domain/image/linux/root")

    # Old xend reports the HVM loader as the kernel too
    if hvm and osdef.kernel and osdef.kernel == osdef.loader:
        osdef.kernel = None

    if hvm and not osdef.kernel:
        boot = sexpr.node(root, "domain/image/hvm/boot") or ""
        for c in boot:
            if len(osdef.bootorder) >= DomainOS.MAX_BOOT_DEVS:
                break
            if c in _BOOT_CHARS:
                osdef.bootorder.append(_BOOT_CHARS[c])
        if not osdef.bootorder:
            osdef.bootorder.append(DomainOS.BOOT_DISK)

    if not hvm and not osdef.kernel and osdef.bootloader is None:
        raise SxprConfigError(
            _("domain information incomplete, missing kernel & bootloader"))


def parse_char(value, tty=None):
    """
    Parse a xend character device string like 'tcp:host:1234,server'
    into a CharDef. @tty is the pty path for pty devices, if known
    """
    if value.startswith("/"):
        chardef = CharDef(CharDef.TYPE_DEV)
        chardef.path = value
        return chardef

    prefix = value
    if ":" in value:
        prefix, value = value.split(":", 1)

    if prefix.startswith("telnet"):
        chardef = CharDef(CharDef.TYPE_TCP)
        chardef.protocol = CharDef.PROTOCOL_TELNET
    elif prefix in CharDef.TYPES:
        chardef = CharDef(prefix)
    else:
        raise SxprConfigError(_("unknown chr device type '%s'") % prefix)

    if chardef.type == CharDef.TYPE_PTY:
        chardef.path = tty

    elif chardef.type in [CharDef.TYPE_FILE, CharDef.TYPE_PIPE]:
        chardef.path = value

    elif chardef.type == CharDef.TYPE_TCP:
        if ":" not in value:
            raise SxprConfigError(_("malformed char device string"))
        host, rest = value.split(":", 1)
        chardef.host = host or None
        service, sep, opts = rest.partition(",")
        chardef.service = service
        if sep and ",server" in "," + opts:
            chardef.listen = True

    elif chardef.type == CharDef.TYPE_UDP:
        if ":" not in value:
            raise SxprConfigError(_("malformed char device string"))
        host, rest = value.split(":", 1)
        chardef.host = host or None
        if "@" in rest:
            service, bind = rest.split("@", 1)
            chardef.service = service
            if ":" not in bind:
                raise SxprConfigError(_("malformed char device string"))
            bind_host, bind_service = bind.split(":", 1)
            chardef.bind_host = bind_host or None
            chardef.bind_service = bind_service
        else:
            chardef.service = rest

    elif chardef.type == CharDef.TYPE_UNIX:
        path, sep, opts = value.partition(",")
        chardef.path = path
        if sep and ",server" in "," + opts:
            chardef.listen = True

    return chardef


def _parse_disks(root, domdef, hvm, xend_config_version):
    for node in root:
        if sexpr.lookup(node, "device/vbd"):
            kind = "vbd"
        elif sexpr.lookup(node, "device/tap2"):
            kind = "tap2"
        elif sexpr.lookup(node, "device/tap"):
            kind = "tap"
        else:
            continue

        src = sexpr.node(node, sexpr.path("device", kind, "uname"))
        dst = sexpr.node(node, sexpr.path("device", kind, "dev"))
        mode = sexpr.node(node, sexpr.path("device", kind, "mode"))

        disk = DiskDef()
        if dst is None:
            raise SxprConfigError(
                _("domain information incomplete, vbd has no dev"))

        if src is None:
            # CDROM devices without media have no uname
            if (not hvm or ":" not in dst or
                dst[dst.index(":"):] != ":cdrom"):
                raise SxprConfigError(
                    _("domain information incomplete, vbd has no src"))
            disk.type = DiskDef.TYPE_FILE
        else:
            if ":" not in src:
                raise SxprConfigError(
                    _("cannot parse vbd filename, missing driver name"))
            disk.driver_name, src = src.split(":", 1)

            if disk.driver_name in ["tap", "tap2"]:
                if ":" not in src:
                    raise SxprConfigError(
                        _("cannot parse vbd filename, missing driver type"))
                disk.driver_type, src = src.split(":", 1)
                # blktap can serve block devices too, but files are
                # the common case
                disk.type = DiskDef.TYPE_FILE
            elif disk.driver_name == "file":
                disk.type = DiskDef.TYPE_FILE
            else:
                disk.type = DiskDef.TYPE_BLOCK
            disk.source = src

        if dst.startswith("ioemu:"):
            dst = dst[6:]

        if xend_config_version > 1 and ":" in dst:
            dst, suffix = dst.rsplit(":", 1)
            if suffix == "cdrom":
                disk.device = DiskDef.DEVICE_CDROM
            # ':disk' and anything unknown stay a disk

        disk.target = dst
        disk.bus = DiskDef.bus_for_target(dst)
        if mode and "r" in mode:
            disk.readonly = True
        if mode and "!" in mode:
            disk.shareable = True

        domdef.disks.append(disk)


def _parse_nets(root, domdef):
    vif_index = 0
    for node in root:
        if not sexpr.lookup(node, "device/vif"):
            continue

        script = sexpr.node(node, "device/vif/script")
        bridge = sexpr.node(node, "device/vif/bridge")
        model = sexpr.node(node, "device/vif/model")
        nettype = sexpr.node(node, "device/vif/type")

        net = NetDef()
        if bridge is not None or script == DEFAULT_VIF_SCRIPT:
            net.type = NetDef.TYPE_BRIDGE
            net.bridge = bridge
        else:
            net.type = NetDef.TYPE_ETHERNET
        net.script = script
        net.ipaddr = sexpr.node(node, "device/vif/ip")

        ifname = sexpr.node(node, "device/vif/vifname")
        if ifname:
            net.ifname = ifname
        elif domdef.id != -1:
            net.ifname = "vif%d.%d" % (domdef.id, vif_index)

        mac = sexpr.node(node, "device/vif/mac")
        if mac:
            net.macaddr = _parse_mac(mac)

        net.model = model
        if not model and nettype == "netfront":
            net.model = "netfront"

        domdef.nets.append(net)
        vif_index += 1


def _parse_pci(root, domdef):
    devlist = None
    for node in root:
        devlist = sexpr.lookup(node, "device/pci")
        if devlist:
            break
    if not devlist:
        return

    for node in devlist:
        if not sexpr.lookup(node, "dev"):
            continue

        values = []
        for key in ["domain", "bus", "slot", "func"]:
            val = sexpr.node(node, sexpr.path("dev", key))
            if val is None:
                raise SxprConfigError(_("missing PCI %s") % key)
            intval = parse_int_auto(val)
            if intval is None:
                raise SxprConfigError(
                    _("cannot parse PCI %(key)s '%(value)s'") %
                    {"key": key, "value": val})
            values.append(intval)

        domdef.hostdevs.append(HostdevDef(*values, managed=False))


def _parse_graphics_new(root, domdef, vncport):
    for node in root:
        if not sexpr.lookup(node, "device/vfb"):
            continue

        gtype = sexpr.node(node, "device/vfb/type")
        if gtype is None:
            if sexpr.node(node, "device/vfb/vnc"):
                gtype = "vnc"
            elif sexpr.node(node, "device/vfb/sdl"):
                gtype = "sdl"
            else:
                gtype = "unknown"
        if gtype not in [GraphicsDef.TYPE_VNC, GraphicsDef.TYPE_SDL]:
            raise SxprConfigError(_("unknown graphics type '%s'") % gtype)

        gfx = GraphicsDef(gtype)
        if gtype == GraphicsDef.TYPE_SDL:
            gfx.display = sexpr.node(node, "device/vfb/display")
            gfx.xauth = sexpr.node(node, "device/vfb/xauthority")
        else:
            port = vncport
            if port == -1:
                # Port not found in xenstore
                display = sexpr.node(node, "device/vfb/vncdisplay")
                if display is not None:
                    val = parse_int_auto(display)
                    if val is not None:
                        port = val

            unused = sexpr.node(node, "device/vfb/vncunused")
            if unused == "1" or port == -1:
                gfx.autoport = True
            if 0 <= port < 5900:
                port += 5900
            gfx.port = port

            gfx.listen = sexpr.node(node, "device/vfb/vnclisten")
            gfx.passwd = sexpr.node(node, "device/vfb/vncpasswd")
            gfx.keymap = sexpr.node(node, "device/vfb/keymap")

        domdef.graphics = [gfx]
        return


def _parse_graphics_old(root, domdef, hvm, xend_config_version, vncport):
    kind = hvm and "hvm" or "linux"

    def _image_node(name):
        return sexpr.fmt_node(root, "domain/image/%s/%s", kind, name)

    vnc = _image_node("vnc")
    sdl = _image_node("sdl")
    if vnc and vnc[0] == "1":
        gfx = GraphicsDef(GraphicsDef.TYPE_VNC)
        port = vncport
        # xend >= 3.0.3 doesn't use a fixed port mapping. Leave it
        # unknown until the VNC server is up
        if port == -1 and xend_config_version < 2:
            port = 5900 + domdef.id

        unused = _image_node("vncunused")
        if unused == "1" or port == -1:
            gfx.autoport = True
        gfx.port = port
        gfx.listen = _image_node("vnclisten")
        gfx.passwd = _image_node("vncpasswd")
        gfx.keymap = _image_node("keymap")
        domdef.graphics = [gfx]

    elif sdl and sdl[0] == "1":
        gfx = GraphicsDef(GraphicsDef.TYPE_SDL)
        gfx.display = _image_node("display")
        gfx.xauth = _image_node("xauthority")
        domdef.graphics = [gfx]


def _parse_usb(root, domdef):
    image = sexpr.lookup(root, "domain/image/hvm")
    for node in image or []:
        val = sexpr.node(node, "usbdevice")
        if not val:
            continue
        if val in [InputDef.TYPE_TABLET, InputDef.TYPE_MOUSE]:
            domdef.inputs.append(InputDef(val, InputDef.BUS_USB))
        else:
            log.debug("Ignoring unsupported usbdevice '%s'", val)


def _parse_hvm_chars(root, domdef, tty):
    have_multiple_serials = False
    serial_root = sexpr.lookup(root, "domain/image/hvm/serial")
    ports_skipped = 0
    for node in serial_root or []:
        if not isinstance(node, sexpr.Cons):
            continue
        for item in node:
            have_multiple_serials = True
            if not isinstance(item, sexpr.Atom) or item.value == "none":
                ports_skipped += 1
                continue
            chardef = parse_char(item.value, tty)
            chardef.device_type = CharDef.DEVICE_SERIAL
            chardef.target_port = len(domdef.serials) + ports_skipped
            domdef.serials.append(chardef)

    if not have_multiple_serials:
        tmp = sexpr.node(root, "domain/image/hvm/serial")
        if tmp and tmp != "none":
            chardef = parse_char(tmp, tty)
            chardef.device_type = CharDef.DEVICE_SERIAL
            chardef.target_port = 0
            domdef.serials.append(chardef)

    tmp = sexpr.node(root, "domain/image/hvm/parallel")
    if tmp and tmp != "none":
        chardef = parse_char(tmp, None)
        chardef.device_type = CharDef.DEVICE_PARALLEL
        chardef.target_port = 0
        domdef.parallels.append(chardef)


def parse_sound(domdef, value):
    """
    Append SoundDefs for a soundhw string like 'sb16,es1370' or 'all'
    """
    if value == "all":
        # Only the models xen's qemu historically had
        for model in ["sb16", "es1370"]:
            domdef.sounds.append(SoundDef(model))
        return

    for model in value.split(","):
        if model not in SoundDef.MODELS:
            raise SxprConfigError(_("unknown sound model '%s'") % model)
        domdef.sounds.append(SoundDef(model))


def _lifecycle(root, name, valid, default):
    tmp = sexpr.node(root, "domain/%s" % name)
    if tmp is None:
        return default
    if tmp not in valid:
        raise SxprConfigError(_("unknown lifecycle type %s") % tmp)
    return tmp


def parse_sxpr(root, xend_config_version, cpus=None, tty=None, vncport=-1):
    """
    Build a DomainDef from the tree @root

    :param cpus: cpuset string the domain is pinned to, if known
    :param tty: pty path of the guest console, if known
    :param vncport: VNC port found in xenstore, -1 if unknown
    """
    root = _domain_root(root)
    domdef = DomainDef()

    domdef.id = get_domid(root, xend_config_version)

    domdef.name = sexpr.node(root, "domain/name")
    if domdef.name is None:
        raise SxprConfigError(
            _("domain information incomplete, missing name"))

    tmp = sexpr.node(root, "domain/uuid")
    if tmp is None:
        raise SxprConfigError(
            _("domain information incomplete, missing uuid"))
    domdef.uuid = _parse_uuid(tmp)

    domdef.description = sexpr.node(root, "domain/description")

    hvm = bool(sexpr.lookup(root, "domain/image/hvm"))
    if not hvm:
        domdef.os.bootloader = sexpr.node(root, "domain/bootloader")
        if (domdef.os.bootloader is None and
            sexpr.has(root, "domain/bootloader")):
            domdef.os.bootloader = ""
        if domdef.os.bootloader is not None:
            domdef.os.bootloader_args = sexpr.node(root,
                    "domain/bootloader_args")

    domdef.os.os_type = hvm and DomainOS.TYPE_HVM or DomainOS.TYPE_LINUX

    # Domain-0 has no image config worth reporting
    if domdef.id != 0 and sexpr.lookup(root, "domain/image"):
        _parse_os(root, domdef, hvm)

    domdef.max_memory = sexpr.u64_node(root, "domain/maxmem") << 10
    domdef.memory = sexpr.u64_node(root, "domain/memory") << 10
    if domdef.memory > domdef.max_memory:
        domdef.memory = domdef.max_memory

    if cpus is None:
        cpus = sexpr.node(root, "domain/cpus")
    if cpus:
        try:
            domdef.cpumask = parse_cpuset(cpus)
        except ValueError:
            raise SxprConfigError(_("invalid CPU mask %s") % cpus) from None

    domdef.maxvcpus = sexpr.int_node(root, "domain/vcpus")
    avail = sexpr.u64_node(root, "domain/vcpu_avail")
    domdef.vcpus = popcount(avail)
    if not domdef.vcpus or domdef.maxvcpus < domdef.vcpus:
        domdef.vcpus = domdef.maxvcpus

    domdef.on_poweroff = _lifecycle(root, "on_poweroff",
            DomainDef.LIFECYCLE_ACTIONS, DomainDef.LIFECYCLE_DESTROY)
    domdef.on_reboot = _lifecycle(root, "on_reboot",
            DomainDef.LIFECYCLE_ACTIONS, DomainDef.LIFECYCLE_RESTART)
    domdef.on_crash = _lifecycle(root, "on_crash",
            DomainDef.CRASH_ACTIONS, DomainDef.LIFECYCLE_DESTROY)

    if hvm:
        for feature in DomainDef.FEATURES:
            if sexpr.int_node(root, sexpr.path("domain/image/hvm", feature)):
                domdef.features.add(feature)

        # Old xend only allows localtime here for HVM
        if sexpr.int_node(root, "domain/image/hvm/localtime"):
            domdef.clock.offset = domdef.clock.OFFSET_LOCALTIME

        if sexpr.has(root, "domain/image/hvm/hpet"):
            present = sexpr.int_node(root, "domain/image/hvm/hpet")
            domdef.clock.timers.append(
                ClockTimer(ClockTimer.NAME_HPET, present))

    if sexpr.int_node(root, "domain/localtime"):
        domdef.clock.offset = domdef.clock.OFFSET_LOCALTIME

    domdef.emulator = sexpr.node(root, hvm and
            "domain/image/hvm/device_model" or
            "domain/image/linux/device_model")

    _parse_disks(root, domdef, hvm, xend_config_version)
    _parse_nets(root, domdef)
    _parse_pci(root, domdef)

    _parse_graphics_new(root, domdef, vncport)
    if not domdef.graphics:
        _parse_graphics_old(root, domdef, hvm, xend_config_version, vncport)

    # cdrom config from xen <= 3.0.2
    if hvm and xend_config_version == 1:
        tmp = sexpr.node(root, "domain/image/hvm/cdrom")
        if tmp:
            disk = DiskDef()
            disk.source = tmp
            disk.type = DiskDef.TYPE_FILE
            disk.device = DiskDef.DEVICE_CDROM
            disk.target = "hdc"
            disk.driver_name = "file"
            disk.bus = DiskDef.BUS_IDE
            disk.readonly = True
            domdef.disks.append(disk)

    if hvm:
        for fd in ["fda", "fdb"]:
            tmp = sexpr.fmt_node(root, "domain/image/hvm/%s", fd)
            if not tmp:
                continue
            disk = DiskDef()
            disk.source = tmp
            disk.type = DiskDef.TYPE_FILE
            disk.device = DiskDef.DEVICE_FLOPPY
            disk.target = fd
            disk.driver_name = "file"
            disk.bus = DiskDef.BUS_FDC
            domdef.disks.append(disk)

        _parse_usb(root, domdef)
        _parse_hvm_chars(root, domdef, tty)
    else:
        # PV consoles aren't in the sexpr, fake one up
        console = parse_char("pty", tty)
        console.device_type = CharDef.DEVICE_CONSOLE
        console.target_port = 0
        console.target_type = CharDef.CONSOLE_TARGET_XEN
        domdef.console = console

    tmp = hvm and sexpr.node(root, "domain/image/hvm/soundhw")
    if tmp:
        parse_sound(domdef, tmp)

    return domdef


def parse_sxpr_string(text, xend_config_version, tty=None, vncport=-1):
    root = sexpr.string_to_sexpr(text)
    return parse_sxpr(root, xend_config_version, tty=tty, vncport=vncport)


##########
# Writer #
##########

def _quote(value):
    return "'%s'" % sexpr.escape(value)


def _atom(value):
    """
    Write @value bare when the daemon's parser will read it back
    as a single atom, quoted otherwise
    """
    return sexpr.sexpr_to_string(sexpr.Atom(value))


def _format_graphics_new(gfx):
    if gfx.type not in [GraphicsDef.TYPE_VNC, GraphicsDef.TYPE_SDL]:
        raise SxprConfigError(_("unexpected graphics type %s") % gfx.type)

    ret = "(device (vkbd))"
    ret += "(device (vfb "
    if gfx.type == GraphicsDef.TYPE_SDL:
        ret += "(type sdl)"
        if gfx.display:
            ret += "(display %s)" % _quote(gfx.display)
        if gfx.xauth:
            ret += "(xauthority %s)" % _quote(gfx.xauth)
    else:
        ret += "(type vnc)"
        ret += _format_vnc_details(gfx)
    ret += "))"
    return ret


def _format_vnc_details(gfx):
    if gfx.autoport or gfx.port < 0:
        ret = "(vncunused 1)"
    else:
        ret = "(vncunused 0)"
        ret += "(vncdisplay %d)" % (gfx.port - 5900)
    if gfx.listen:
        ret += "(vnclisten %s)" % _quote(gfx.listen)
    if gfx.passwd:
        ret += "(vncpasswd %s)" % _quote(gfx.passwd)
    if gfx.keymap:
        ret += "(keymap %s)" % _quote(gfx.keymap)
    return ret


def _format_graphics_old(gfx, xend_config_version):
    if gfx.type not in [GraphicsDef.TYPE_VNC, GraphicsDef.TYPE_SDL]:
        raise SxprConfigError(_("unexpected graphics type %s") % gfx.type)

    if gfx.type == GraphicsDef.TYPE_SDL:
        ret = "(sdl 1)"
        if gfx.display:
            ret += "(display %s)" % _quote(gfx.display)
        if gfx.xauth:
            ret += "(xauthority %s)" % _quote(gfx.xauth)
        return ret

    ret = "(vnc 1)"
    if xend_config_version >= 2:
        ret += _format_vnc_details(gfx)
    return ret


def format_char(chardef):
    """
    Format a CharDef as a xend character device string
    """
    ctype = chardef.type
    if ctype in [CharDef.TYPE_NULL, CharDef.TYPE_STDIO,
                 CharDef.TYPE_VC, CharDef.TYPE_PTY]:
        return ctype
    if ctype in [CharDef.TYPE_FILE, CharDef.TYPE_PIPE]:
        return "%s:%s" % (ctype, chardef.path or "")
    if ctype == CharDef.TYPE_DEV:
        return chardef.path or ""
    if ctype == CharDef.TYPE_TCP:
        return "%s:%s:%s%s" % (
            chardef.protocol == CharDef.PROTOCOL_RAW and "tcp" or "telnet",
            chardef.host or "", chardef.service or "",
            chardef.listen and ",server,nowait" or "")
    if ctype == CharDef.TYPE_UDP:
        return "udp:%s:%s@%s:%s" % (
            chardef.host or "", chardef.service or "",
            chardef.bind_host or "", chardef.bind_service or "")
    if ctype == CharDef.TYPE_UNIX:
        ret = "unix:%s" % (chardef.path or "")
        if chardef.listen:
            ret += ",server,nowait"
        return ret
    raise SxprConfigError(_("unexpected chr device type %s") % ctype)


def format_disk(disk, hvm, xend_config_version, is_attach=False):
    """
    Format a single disk. Returns "" for disks that live in the
    (image ...) block instead. With @is_attach the outer (device ...)
    wrapper is left off, as device attach expects
    """
    # All xend versions put floppies in the image block
    if hvm and disk.device == DiskDef.DEVICE_FLOPPY:
        if is_attach:
            raise SxprConfigError(
                _("Cannot directly attach floppy %s") % disk.source)
        return ""

    # xend <= 3.0.2 puts the cdrom in the image block
    if (hvm and disk.device == DiskDef.DEVICE_CDROM and
        xend_config_version == 1):
        if is_attach:
            raise SxprConfigError(
                _("Cannot directly attach CDROM %s") % disk.source)
        return ""

    if disk.transient:
        raise SxprConfigError(_("transient disks not supported yet"))

    if disk.driver_name in ["tap", "tap2"]:
        ret = "(%s " % disk.driver_name
    else:
        ret = "(vbd "

    if hvm:
        # xend <= 3.0.2 wants an ioemu: prefix on HVM devices
        if xend_config_version == 1:
            ret += "(dev %s)" % _quote("ioemu:" + disk.target)
        else:
            ret += "(dev %s)" % _quote("%s:%s" % (disk.target,
                disk.device == DiskDef.DEVICE_CDROM and "cdrom" or "disk"))
    elif disk.device == DiskDef.DEVICE_CDROM:
        ret += "(dev %s)" % _quote(disk.target + ":cdrom")
    else:
        ret += "(dev %s)" % _quote(disk.target)

    if disk.source:
        if disk.driver_name in ["tap", "tap2"]:
            uname = "%s:%s:%s" % (disk.driver_name,
                    disk.driver_type or "aio", disk.source)
        elif disk.driver_name:
            uname = "%s:%s" % (disk.driver_name, disk.source)
        elif disk.type == DiskDef.TYPE_FILE:
            uname = "file:%s" % disk.source
        elif disk.type == DiskDef.TYPE_BLOCK:
            if disk.source.startswith("/"):
                uname = "phy:%s" % disk.source
            else:
                uname = "phy:/dev/%s" % disk.source
        else:
            raise SxprConfigError(_("unsupported disk type %s") % disk.type)
        ret += "(uname %s)" % _quote(uname)

    if disk.readonly:
        ret += "(mode 'r')"
    elif disk.shareable:
        ret += "(mode 'w!')"
    else:
        ret += "(mode 'w')"
    ret += ")"

    if not is_attach:
        ret = "(device " + ret + ")"
    return ret


def format_net(net, hvm, xend_config_version, is_attach=False,
               bridge_lookup=None):
    """
    Format a single network interface

    :param bridge_lookup: callable(network_name) returning the bridge
        of an active virtual network, needed for TYPE_NETWORK
    """
    if net.type not in [NetDef.TYPE_BRIDGE, NetDef.TYPE_NETWORK,
                        NetDef.TYPE_ETHERNET]:
        raise SxprConfigError(_("unsupported network type %s") % net.type)

    ret = "(vif "
    if net.macaddr:
        ret += "(mac %s)" % _quote(net.macaddr)

    if net.type == NetDef.TYPE_BRIDGE:
        ret += "(bridge %s)" % _quote(net.bridge or "")
        ret += "(script %s)" % _quote(net.script or DEFAULT_VIF_SCRIPT)
        if net.ipaddr:
            ret += "(ip %s)" % _quote(net.ipaddr)

    elif net.type == NetDef.TYPE_NETWORK:
        if not bridge_lookup:
            raise SxprConfigError(
                _("no way to look up network %s") % net.network)
        bridge = bridge_lookup(net.network)
        if not bridge:
            raise SxprConfigError(
                _("network %s is not active") % net.network)
        ret += "(bridge %s)" % _quote(bridge)
        ret += "(script %s)" % _quote(DEFAULT_VIF_SCRIPT)

    else:
        if net.script:
            ret += "(script %s)" % _quote(net.script)
        if net.ipaddr:
            ret += "(ip %s)" % _quote(net.ipaddr)

    if net.ifname and not net.ifname.startswith("vif"):
        ret += "(vifname %s)" % _quote(net.ifname)

    if not hvm:
        if net.model:
            ret += "(model %s)" % _quote(net.model)
    elif not net.model:
        if xend_config_version <= XEND_CONFIG_MAX_VERS_NET_TYPE_IOEMU:
            ret += "(type ioemu)"
    elif net.model == "netfront":
        ret += "(type netfront)"
    else:
        ret += "(model %s)" % _quote(net.model)
        if xend_config_version <= XEND_CONFIG_MAX_VERS_NET_TYPE_IOEMU:
            ret += "(type ioemu)"
    ret += ")"

    if not is_attach:
        ret = "(device " + ret + ")"
    return ret


def _format_pci_dev(hostdev):
    return ("(dev (domain 0x%04x)(bus 0x%02x)(slot 0x%02x)(func 0x%x))" %
            (hostdev.domain, hostdev.bus, hostdev.slot, hostdev.function))


def format_one_pci(hostdev, detach=False):
    """
    The single device form used for PCI hotplug and unplug
    """
    if hostdev.managed:
        raise SxprConfigError(
            _("managed PCI devices not supported with XenD"))
    return "(pci %s(state %s))" % (_format_pci_dev(hostdev),
            detach and "'Closing'" or "'Initialising'")


def _format_all_pci(domdef):
    if not domdef.hostdevs:
        return ""

    # Unlike other devices, all PCI devices share one (device ...)
    ret = "(device (pci "
    for hostdev in domdef.hostdevs:
        if hostdev.managed:
            raise SxprConfigError(
                _("managed PCI devices not supported with XenD"))
        ret += _format_pci_dev(hostdev)
    ret += "))"
    return ret


def format_sound(domdef):
    for sound in domdef.sounds:
        if sound.model not in SoundDef.MODELS:
            raise SxprConfigError(
                _("unexpected sound model %s") % sound.model)
    return ",".join(sound.model for sound in domdef.sounds)


def _format_input(inputdef):
    if inputdef.bus != InputDef.BUS_USB:
        return ""
    if inputdef.type not in [InputDef.TYPE_MOUSE, InputDef.TYPE_TABLET]:
        raise SxprConfigError(_("unexpected input type %s") % inputdef.type)
    return "(usb 1)(usbdevice %s)" % inputdef.type


def _format_serials(domdef):
    if not domdef.serials:
        return "(serial none)"

    serials = domdef.serials
    if len(serials) == 1 and serials[0].target_port == 0:
        return "(serial %s)" % _atom(format_char(serials[0]))

    maxport = max(s.target_port for s in serials)
    items = []
    for port in range(maxport + 1):
        found = [s for s in serials if s.target_port == port]
        if found:
            items.append(_atom(format_char(found[0])))
        else:
            items.append("none")
    return "(serial (%s))" % " ".join(items)


def _format_hvm_image(domdef, xend_config_version):
    osdef = domdef.os
    ret = ""
    if osdef.kernel:
        ret += "(loader %s)" % _quote(osdef.loader)
    else:
        ret += "(kernel %s)" % _quote(osdef.loader)

    ret += "(vcpus %d)" % domdef.maxvcpus
    if domdef.vcpus < domdef.maxvcpus:
        ret += "(vcpu_avail %d)" % ((1 << domdef.vcpus) - 1)

    bootchars = dict((v, k) for k, v in _BOOT_CHARS.items())
    bootorder = "".join(bootchars.get(dev, "c") for dev in
                        osdef.bootorder[:DomainOS.MAX_BOOT_DEVS])
    if not osdef.kernel:
        ret += "(boot %s)" % (bootorder or "c")

    for disk in domdef.disks:
        if disk.device == DiskDef.DEVICE_CDROM:
            # Only xend <= 3.0.2 wants the cdrom here
            if (xend_config_version == 1 and disk.target == "hdc" and
                disk.source):
                ret += "(cdrom %s)" % _quote(disk.source)
        elif disk.device == DiskDef.DEVICE_FLOPPY:
            ret += "(%s %s)" % (sexpr.escape(disk.target),
                                _quote(disk.source or ""))

    for feature in DomainDef.FEATURES:
        if feature in domdef.features:
            ret += "(%s 1)" % feature

    for inputdef in domdef.inputs:
        ret += _format_input(inputdef)

    if domdef.parallels:
        ret += "(parallel %s)" % _atom(format_char(domdef.parallels[0]))
    else:
        ret += "(parallel none)"
    ret += _format_serials(domdef)

    # Old xend wants localtime in the HVM image
    if domdef.clock.offset == domdef.clock.OFFSET_LOCALTIME:
        ret += "(localtime 1)"

    if domdef.sounds:
        ret += "(soundhw %s)" % _quote(format_sound(domdef))
    return ret


def format_sxpr(domdef, xend_config_version, bridge_lookup=None):
    """
    Format @domdef as a (vm ...) creation S-expression
    """
    log.debug("Formatting domain sexpr")
    hvm = False

    ret = "(vm "
    ret += "(name %s)" % _quote(domdef.name)
    ret += "(memory %d)(maxmem %d)" % (
        (domdef.memory + 1023) // 1024, (domdef.max_memory + 1023) // 1024)
    ret += "(vcpus %d)" % domdef.maxvcpus
    if domdef.vcpus < domdef.maxvcpus:
        ret += "(vcpu_avail %d)" % ((1 << domdef.vcpus) - 1)
    if domdef.cpumask:
        ret += "(cpus %s)" % _quote(format_cpuset(domdef.cpumask))
    if domdef.uuid:
        ret += "(uuid %s)" % _quote(domdef.uuid)
    if domdef.description:
        ret += "(description %s)" % _quote(domdef.description)

    osdef = domdef.os
    if osdef.bootloader is not None:
        if osdef.bootloader:
            ret += "(bootloader %s)" % _quote(osdef.bootloader)
        else:
            ret += "(bootloader)"
        if osdef.bootloader_args:
            ret += "(bootloader_args %s)" % _quote(osdef.bootloader_args)

    for name, value, valid in [
            ("on_poweroff", domdef.on_poweroff, DomainDef.LIFECYCLE_ACTIONS),
            ("on_reboot", domdef.on_reboot, DomainDef.LIFECYCLE_ACTIONS),
            ("on_crash", domdef.on_crash, DomainDef.CRASH_ACTIONS)]:
        if value not in valid:
            raise SxprConfigError(_("unexpected lifecycle value %s") % value)
        ret += "(%s %s)" % (name, _quote(value))

    if domdef.clock.offset == domdef.clock.OFFSET_LOCALTIME:
        ret += "(localtime 1)"
    elif domdef.clock.offset != domdef.clock.OFFSET_UTC:
        raise SxprConfigError(
            _("unsupported clock offset '%s'") % domdef.clock.offset)

    if osdef.bootloader is None:
        hvm = osdef.is_hvm()
        if hvm and not osdef.loader:
            raise SxprConfigError(_("no HVM domain loader"))

        ret += "(image (%s " % (hvm and "hvm" or "linux")
        if osdef.kernel:
            ret += "(kernel %s)" % _quote(osdef.kernel)
        if osdef.initrd:
            ret += "(ramdisk %s)" % _quote(osdef.initrd)
        if osdef.root:
            ret += "(root %s)" % _quote(osdef.root)
        if osdef.cmdline:
            ret += "(args %s)" % _quote(osdef.cmdline)

        if hvm:
            ret += _format_hvm_image(domdef, xend_config_version)

        if domdef.emulator and (hvm or xend_config_version >= 3):
            ret += "(device_model %s)" % _quote(domdef.emulator)

        for timer in domdef.clock.timers:
            if timer.name == ClockTimer.NAME_HPET and timer.present != -1:
                ret += "(hpet %d)" % timer.present
                break

        # PV graphics for xen <= 3.0.4, HVM graphics for xen <= 3.1.0
        if ((not hvm and
             xend_config_version < XEND_CONFIG_MIN_VERS_PVFB_NEWCONF) or
            (hvm and xend_config_version < XEND_CONFIG_MIN_VERS_HVM_NEWCONF)):
            if len(domdef.graphics) == 1:
                ret += _format_graphics_old(domdef.graphics[0],
                                            xend_config_version)
        ret += "))"
    elif osdef.cmdline:
        # PV domains with a bootloader still take kernel args
        ret += "(image (linux (args %s)))" % _quote(osdef.cmdline)

    for disk in domdef.disks:
        ret += format_disk(disk, hvm, xend_config_version)
    for net in domdef.nets:
        ret += format_net(net, hvm, xend_config_version,
                          bridge_lookup=bridge_lookup)
    ret += _format_all_pci(domdef)

    # New style PV graphics for xen >= 3.0.4, HVM for xen >= 3.1.0
    if ((not hvm and
         xend_config_version >= XEND_CONFIG_MIN_VERS_PVFB_NEWCONF) or
        (hvm and xend_config_version >= XEND_CONFIG_MIN_VERS_HVM_NEWCONF)):
        if len(domdef.graphics) == 1:
            ret += _format_graphics_new(domdef.graphics[0])

    ret += ")"
    log.debug("Formatted sexpr: \n%s", ret)
    return ret
