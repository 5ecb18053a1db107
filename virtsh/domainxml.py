#
# DomainDef <-> libvirt domain XML
#
# Copyright 2006-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import uuid
import xml.etree.ElementTree as ET

from .domaindef import (CharDef, ClockTimer, DiskDef, DomainDef, GraphicsDef,
        HostdevDef, InputDef, NetDef, SoundDef, format_cpuset, parse_cpuset)
from .logger import log


class DomainXMLError(ValueError):
    pass


def _yesno(val):
    return val and "yes" or "no"


def _sub(parent, tag, text=None, **attrs):
    elem = ET.SubElement(parent, tag)
    for key, value in attrs.items():
        if value is not None:
            elem.set(key.rstrip("_"), str(value))
    if text is not None:
        elem.text = str(text)
    return elem


def _indent(elem, level=0):
    pad = "\n" + level * "  "
    if len(elem):
        if not elem.text or not elem.text.strip():
            elem.text = pad + "  "
        for child in elem:
            _indent(child, level + 1)
        if not child.tail or not child.tail.strip():
            child.tail = pad
    if level and (not elem.tail or not elem.tail.strip()):
        elem.tail = pad


##########
# Writer #
##########

def _format_os(domdef, root):
    osdef = domdef.os
    if osdef.bootloader is not None:
        _sub(root, "bootloader", osdef.bootloader)
        if osdef.bootloader_args:
            _sub(root, "bootloader_args", osdef.bootloader_args)

    os = _sub(root, "os")
    _sub(os, "type", osdef.os_type)
    for tag, value in [("loader", osdef.loader),
                       ("kernel", osdef.kernel),
                       ("initrd", osdef.initrd),
                       ("cmdline", osdef.cmdline),
                       ("root", osdef.root)]:
        if value is not None:
            _sub(os, tag, value)
    for dev in osdef.bootorder:
        _sub(os, "boot", dev=dev)


def _format_char(parent, chardef):
    elem = _sub(parent, chardef.device_type, type=chardef.type)
    ctype = chardef.type
    if ctype in [CharDef.TYPE_DEV, CharDef.TYPE_FILE, CharDef.TYPE_PIPE,
                 CharDef.TYPE_PTY]:
        if chardef.path:
            _sub(elem, "source", path=chardef.path)
    elif ctype == CharDef.TYPE_TCP:
        _sub(elem, "source", host=chardef.host, service=chardef.service,
             mode=chardef.listen and "bind" or "connect")
        _sub(elem, "protocol", type=chardef.protocol)
    elif ctype == CharDef.TYPE_UDP:
        _sub(elem, "source", mode="connect", host=chardef.host,
             service=chardef.service)
        if chardef.bind_host or chardef.bind_service:
            _sub(elem, "source", mode="bind", host=chardef.bind_host,
                 service=chardef.bind_service)
    elif ctype == CharDef.TYPE_UNIX:
        _sub(elem, "source", path=chardef.path,
             mode=chardef.listen and "bind" or "connect")
    _sub(elem, "target", port=chardef.target_port, type=chardef.target_type)


def _format_devices(domdef, root):
    devices = _sub(root, "devices")
    if domdef.emulator:
        _sub(devices, "emulator", domdef.emulator)

    for disk in domdef.disks:
        elem = _sub(devices, "disk", type=disk.type, device=disk.device)
        if disk.driver_name or disk.driver_type:
            _sub(elem, "driver", name=disk.driver_name, type=disk.driver_type)
        if disk.source:
            if disk.type == DiskDef.TYPE_BLOCK:
                _sub(elem, "source", dev=disk.source)
            else:
                _sub(elem, "source", file=disk.source)
        _sub(elem, "target", dev=disk.target, bus=disk.bus)
        if disk.readonly:
            _sub(elem, "readonly")
        if disk.shareable:
            _sub(elem, "shareable")
        if disk.transient:
            _sub(elem, "transient")

    for net in domdef.nets:
        elem = _sub(devices, "interface", type=net.type)
        if net.macaddr:
            _sub(elem, "mac", address=net.macaddr)
        if net.type == NetDef.TYPE_BRIDGE and net.bridge is not None:
            _sub(elem, "source", bridge=net.bridge)
        elif net.type == NetDef.TYPE_NETWORK:
            _sub(elem, "source", network=net.network)
        if net.script:
            _sub(elem, "script", path=net.script)
        if net.ipaddr:
            _sub(elem, "ip", address=net.ipaddr)
        if net.ifname:
            _sub(elem, "target", dev=net.ifname)
        if net.model:
            _sub(elem, "model", type=net.model)

    for hostdev in domdef.hostdevs:
        elem = _sub(devices, "hostdev", mode="subsystem", type="pci",
                    managed=_yesno(hostdev.managed))
        source = _sub(elem, "source")
        _sub(source, "address",
             domain="0x%04x" % hostdev.domain,
             bus="0x%02x" % hostdev.bus,
             slot="0x%02x" % hostdev.slot,
             function="0x%x" % hostdev.function)

    for chardef in domdef.serials + domdef.parallels:
        _format_char(devices, chardef)
    if domdef.console:
        _format_char(devices, domdef.console)

    for inputdef in domdef.inputs:
        _sub(devices, "input", type=inputdef.type, bus=inputdef.bus)

    for gfx in domdef.graphics:
        if gfx.type == GraphicsDef.TYPE_VNC:
            _sub(devices, "graphics", type=gfx.type, port=gfx.port,
                 autoport=_yesno(gfx.autoport), listen=gfx.listen,
                 passwd=gfx.passwd, keymap=gfx.keymap)
        else:
            _sub(devices, "graphics", type=gfx.type, display=gfx.display,
                 xauth=gfx.xauth)

    for sound in domdef.sounds:
        _sub(devices, "sound", model=sound.model)


def format_domain_xml(domdef):
    """
    Return the libvirt <domain> XML string for @domdef
    """
    root = ET.Element("domain", type=domdef.virt_type)
    if domdef.id != -1:
        root.set("id", str(domdef.id))

    _sub(root, "name", domdef.name)
    if domdef.uuid:
        _sub(root, "uuid", domdef.uuid)
    if domdef.description:
        _sub(root, "description", domdef.description)
    _sub(root, "memory", domdef.max_memory)
    _sub(root, "currentMemory", domdef.memory)

    vcpu = _sub(root, "vcpu", domdef.maxvcpus)
    if domdef.vcpus != domdef.maxvcpus:
        vcpu.set("current", str(domdef.vcpus))
    if domdef.cpumask:
        vcpu.set("cpuset", format_cpuset(domdef.cpumask))

    _format_os(domdef, root)

    if domdef.features:
        features = _sub(root, "features")
        for feature in DomainDef.FEATURES:
            if feature in domdef.features:
                _sub(features, feature)

    clock = _sub(root, "clock", offset=domdef.clock.offset)
    for timer in domdef.clock.timers:
        _sub(clock, "timer", name=timer.name,
             present=timer.present != -1 and _yesno(timer.present) or None)

    _sub(root, "on_poweroff", domdef.on_poweroff)
    _sub(root, "on_reboot", domdef.on_reboot)
    _sub(root, "on_crash", domdef.on_crash)

    _format_devices(domdef, root)

    _indent(root)
    return ET.tostring(root, encoding="unicode") + "\n"


##########
# Reader #
##########

def _text(elem, path, default=None):
    found = elem.find(path)
    if found is None or found.text is None:
        return default
    return found.text


def _int(value, what):
    try:
        return int(value, 0)
    except (TypeError, ValueError):
        raise DomainXMLError(
            _("invalid %(what)s value '%(value)s'") %
            {"what": what, "value": value}) from None


def _parse_char(elem):
    chardef = CharDef(elem.get("type", CharDef.TYPE_PTY))
    chardef.device_type = elem.tag

    for source in elem.findall("source"):
        mode = source.get("mode")
        if chardef.type == CharDef.TYPE_UDP and mode == "bind":
            chardef.bind_host = source.get("host")
            chardef.bind_service = source.get("service")
            continue
        if source.get("path"):
            chardef.path = source.get("path")
        if source.get("host"):
            chardef.host = source.get("host")
        if source.get("service"):
            chardef.service = source.get("service")
        if mode == "bind":
            chardef.listen = True

    protocol = elem.find("protocol")
    if protocol is not None:
        chardef.protocol = protocol.get("type", CharDef.PROTOCOL_RAW)

    target = elem.find("target")
    if target is not None:
        if target.get("port") is not None:
            chardef.target_port = _int(target.get("port"), "target port")
        chardef.target_type = target.get("type")
    return chardef


def _parse_devices(devices, domdef):
    domdef.emulator = _text(devices, "emulator")

    for elem in devices.findall("disk"):
        disk = DiskDef()
        disk.type = elem.get("type", DiskDef.TYPE_FILE)
        disk.device = elem.get("device", DiskDef.DEVICE_DISK)
        driver = elem.find("driver")
        if driver is not None:
            disk.driver_name = driver.get("name")
            disk.driver_type = driver.get("type")
        source = elem.find("source")
        if source is not None:
            disk.source = source.get("file") or source.get("dev")
        target = elem.find("target")
        if target is None or not target.get("dev"):
            raise DomainXMLError(_("missing disk target"))
        disk.target = target.get("dev")
        disk.bus = target.get("bus") or DiskDef.bus_for_target(disk.target)
        disk.readonly = elem.find("readonly") is not None
        disk.shareable = elem.find("shareable") is not None
        disk.transient = elem.find("transient") is not None
        domdef.disks.append(disk)

    for elem in devices.findall("interface"):
        net = NetDef()
        net.type = elem.get("type", NetDef.TYPE_ETHERNET)
        mac = elem.find("mac")
        if mac is not None:
            net.macaddr = mac.get("address")
        source = elem.find("source")
        if source is not None:
            net.bridge = source.get("bridge")
            net.network = source.get("network")
        script = elem.find("script")
        if script is not None:
            net.script = script.get("path")
        ip = elem.find("ip")
        if ip is not None:
            net.ipaddr = ip.get("address")
        target = elem.find("target")
        if target is not None:
            net.ifname = target.get("dev")
        model = elem.find("model")
        if model is not None:
            net.model = model.get("type")
        domdef.nets.append(net)

    for elem in devices.findall("hostdev"):
        if elem.get("type") != "pci":
            log.debug("Ignoring non-PCI hostdev")
            continue
        addr = elem.find("source/address")
        if addr is None:
            raise DomainXMLError(_("missing PCI hostdev address"))
        domdef.hostdevs.append(HostdevDef(
            _int(addr.get("domain", "0"), "PCI domain"),
            _int(addr.get("bus"), "PCI bus"),
            _int(addr.get("slot"), "PCI slot"),
            _int(addr.get("function"), "PCI function"),
            managed=elem.get("managed") == "yes"))

    for elem in devices.findall("serial"):
        domdef.serials.append(_parse_char(elem))
    for elem in devices.findall("parallel"):
        domdef.parallels.append(_parse_char(elem))
    console = devices.find("console")
    if console is not None:
        domdef.console = _parse_char(console)

    for elem in devices.findall("input"):
        domdef.inputs.append(InputDef(elem.get("type"),
                                      elem.get("bus", InputDef.BUS_USB)))

    for elem in devices.findall("graphics"):
        gfx = GraphicsDef(elem.get("type"))
        if gfx.type == GraphicsDef.TYPE_VNC:
            gfx.port = _int(elem.get("port", "-1"), "graphics port")
            gfx.autoport = elem.get("autoport") == "yes"
            gfx.listen = elem.get("listen")
            gfx.passwd = elem.get("passwd")
            gfx.keymap = elem.get("keymap")
        else:
            gfx.display = elem.get("display")
            gfx.xauth = elem.get("xauth")
        domdef.graphics.append(gfx)

    for elem in devices.findall("sound"):
        domdef.sounds.append(SoundDef(elem.get("model")))


def parse_domain_xml(xml):
    """
    Build a DomainDef from libvirt <domain> XML. Elements we don't
    model are ignored
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise DomainXMLError(_("malformed domain XML: %s") % e) from None
    if root.tag != "domain":
        raise DomainXMLError(_("expected <domain> root, got <%s>") % root.tag)

    domdef = DomainDef()
    domdef.virt_type = root.get("type", "xen")
    domdef.id = _int(root.get("id", "-1"), "id")
    domdef.name = _text(root, "name")
    if not domdef.name:
        raise DomainXMLError(_("missing domain name"))
    # A definition without a uuid gets a fresh one
    domdef.uuid = _text(root, "uuid") or str(uuid.uuid4())
    domdef.description = _text(root, "description")

    domdef.max_memory = _int(_text(root, "memory", "0"), "memory")
    domdef.memory = _int(_text(root, "currentMemory",
                               str(domdef.max_memory)), "currentMemory")

    vcpu = root.find("vcpu")
    if vcpu is not None:
        domdef.maxvcpus = _int(vcpu.text, "vcpu")
        domdef.vcpus = _int(vcpu.get("current", vcpu.text), "vcpu current")
        if vcpu.get("cpuset"):
            try:
                domdef.cpumask = parse_cpuset(vcpu.get("cpuset"))
            except ValueError:
                raise DomainXMLError(
                    _("invalid CPU mask %s") % vcpu.get("cpuset")) from None

    osdef = domdef.os
    bootloader = root.find("bootloader")
    if bootloader is not None:
        osdef.bootloader = bootloader.text or ""
        osdef.bootloader_args = _text(root, "bootloader_args")
    os = root.find("os")
    if os is not None:
        osdef.os_type = _text(os, "type", osdef.os_type)
        osdef.loader = _text(os, "loader")
        osdef.kernel = _text(os, "kernel")
        osdef.initrd = _text(os, "initrd")
        osdef.cmdline = _text(os, "cmdline")
        osdef.root = _text(os, "root")
        osdef.bootorder = [b.get("dev") for b in os.findall("boot")]

    features = root.find("features")
    if features is not None:
        for child in features:
            if child.tag in DomainDef.FEATURES:
                domdef.features.add(child.tag)

    clock = root.find("clock")
    if clock is not None:
        domdef.clock.offset = clock.get("offset", domdef.clock.OFFSET_UTC)
        for timer in clock.findall("timer"):
            present = timer.get("present")
            domdef.clock.timers.append(ClockTimer(timer.get("name"),
                present is None and -1 or int(present == "yes")))

    domdef.on_poweroff = _text(root, "on_poweroff", domdef.on_poweroff)
    domdef.on_reboot = _text(root, "on_reboot", domdef.on_reboot)
    domdef.on_crash = _text(root, "on_crash", domdef.on_crash)

    devices = root.find("devices")
    if devices is not None:
        _parse_devices(devices, domdef)
    return domdef
