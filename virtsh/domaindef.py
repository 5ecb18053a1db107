#
# In-memory domain configuration shared by the SEXPR and XML converters
#
# Copyright 2006-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.


class _DefObject(object):
    """
    Base class for definition objects. Equality compares every
    attribute, which is what round trip checks want.
    """
    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        fields = ", ".join("%s=%r" % (k, v) for k, v in
                           sorted(self.__dict__.items()) if v not in [None, []])
        return "<%s %s>" % (self.__class__.__name__, fields)


class DomainOS(_DefObject):
    TYPE_HVM = "hvm"
    TYPE_LINUX = "linux"

    BOOT_FLOPPY = "fd"
    BOOT_DISK = "hd"
    BOOT_CDROM = "cdrom"
    BOOT_NET = "network"
    BOOT_DEVICES = [BOOT_FLOPPY, BOOT_DISK, BOOT_CDROM, BOOT_NET]
    MAX_BOOT_DEVS = len(BOOT_DEVICES)

    def __init__(self):
        self.os_type = self.TYPE_LINUX
        self.kernel = None
        self.initrd = None
        self.cmdline = None
        self.root = None
        self.loader = None
        self.bootorder = []
        self.bootloader = None
        self.bootloader_args = None

    def is_hvm(self):
        return self.os_type == self.TYPE_HVM


class ClockTimer(_DefObject):
    NAME_HPET = "hpet"

    def __init__(self, name, present=-1):
        self.name = name
        # -1 means unspecified
        self.present = present


class DomainClock(_DefObject):
    OFFSET_UTC = "utc"
    OFFSET_LOCALTIME = "localtime"

    def __init__(self):
        self.offset = self.OFFSET_UTC
        self.timers = []


class DiskDef(_DefObject):
    TYPE_FILE = "file"
    TYPE_BLOCK = "block"

    DEVICE_DISK = "disk"
    DEVICE_CDROM = "cdrom"
    DEVICE_FLOPPY = "floppy"

    BUS_XEN = "xen"
    BUS_IDE = "ide"
    BUS_SCSI = "scsi"
    BUS_FDC = "fdc"

    def __init__(self):
        self.type = self.TYPE_FILE
        self.device = self.DEVICE_DISK
        self.driver_name = None
        self.driver_type = None
        self.source = None
        self.target = None
        self.bus = None
        self.readonly = False
        self.shareable = False
        self.transient = False

    @staticmethod
    def bus_for_target(target):
        if target.startswith("xvd"):
            return DiskDef.BUS_XEN
        if target.startswith("hd"):
            return DiskDef.BUS_IDE
        if target.startswith("sd"):
            return DiskDef.BUS_SCSI
        return DiskDef.BUS_IDE


class NetDef(_DefObject):
    TYPE_BRIDGE = "bridge"
    TYPE_ETHERNET = "ethernet"
    TYPE_NETWORK = "network"

    def __init__(self):
        self.type = self.TYPE_ETHERNET
        self.macaddr = None
        self.bridge = None
        self.network = None
        self.script = None
        self.ipaddr = None
        self.ifname = None
        self.model = None


class GraphicsDef(_DefObject):
    TYPE_VNC = "vnc"
    TYPE_SDL = "sdl"

    def __init__(self, gtype):
        self.type = gtype
        # vnc
        self.port = -1
        self.autoport = False
        self.listen = None
        self.passwd = None
        self.keymap = None
        # sdl
        self.display = None
        self.xauth = None


class CharDef(_DefObject):
    TYPE_NULL = "null"
    TYPE_VC = "vc"
    TYPE_PTY = "pty"
    TYPE_DEV = "dev"
    TYPE_FILE = "file"
    TYPE_PIPE = "pipe"
    TYPE_STDIO = "stdio"
    TYPE_UDP = "udp"
    TYPE_TCP = "tcp"
    TYPE_UNIX = "unix"
    TYPES = [TYPE_NULL, TYPE_VC, TYPE_PTY, TYPE_DEV, TYPE_FILE, TYPE_PIPE,
             TYPE_STDIO, TYPE_UDP, TYPE_TCP, TYPE_UNIX]

    PROTOCOL_RAW = "raw"
    PROTOCOL_TELNET = "telnet"

    DEVICE_SERIAL = "serial"
    DEVICE_PARALLEL = "parallel"
    DEVICE_CONSOLE = "console"

    CONSOLE_TARGET_XEN = "xen"

    def __init__(self, ctype):
        self.type = ctype
        self.device_type = None
        self.target_port = 0
        self.target_type = None

        # file, pipe, dev, pty and unix path
        self.path = None
        # tcp host/service, udp connect host/service
        self.host = None
        self.service = None
        self.bind_host = None
        self.bind_service = None
        self.listen = False
        self.protocol = self.PROTOCOL_RAW


class InputDef(_DefObject):
    TYPE_MOUSE = "mouse"
    TYPE_TABLET = "tablet"
    BUS_USB = "usb"

    def __init__(self, itype, bus=BUS_USB):
        self.type = itype
        self.bus = bus


class SoundDef(_DefObject):
    MODELS = ["sb16", "es1370", "pcspk", "ac97", "ich6"]

    def __init__(self, model):
        self.model = model


class HostdevDef(_DefObject):
    """
    PCI passthrough device
    """
    def __init__(self, domain=0, bus=0, slot=0, function=0, managed=False):
        self.domain = domain
        self.bus = bus
        self.slot = slot
        self.function = function
        self.managed = managed


class DomainDef(_DefObject):
    LIFECYCLE_DESTROY = "destroy"
    LIFECYCLE_RESTART = "restart"
    LIFECYCLE_RENAME_RESTART = "rename-restart"
    LIFECYCLE_PRESERVE = "preserve"
    LIFECYCLE_ACTIONS = [LIFECYCLE_DESTROY, LIFECYCLE_RESTART,
                         LIFECYCLE_RENAME_RESTART, LIFECYCLE_PRESERVE]
    CRASH_ACTIONS = LIFECYCLE_ACTIONS + ["coredump-destroy",
                                         "coredump-restart"]

    FEATURE_ACPI = "acpi"
    FEATURE_APIC = "apic"
    FEATURE_PAE = "pae"
    FEATURE_HAP = "hap"
    FEATURE_VIRIDIAN = "viridian"
    FEATURES = [FEATURE_ACPI, FEATURE_APIC, FEATURE_PAE,
                FEATURE_HAP, FEATURE_VIRIDIAN]

    def __init__(self):
        self.virt_type = "xen"
        self.id = -1
        self.name = None
        self.uuid = None
        self.description = None
        self.emulator = None

        # Both in KiB
        self.memory = 0
        self.max_memory = 0

        self.vcpus = 0
        self.maxvcpus = 0
        self.cpumask = None

        self.os = DomainOS()
        self.features = set()
        self.clock = DomainClock()

        self.on_poweroff = self.LIFECYCLE_DESTROY
        self.on_reboot = self.LIFECYCLE_RESTART
        self.on_crash = self.LIFECYCLE_DESTROY

        self.disks = []
        self.nets = []
        self.graphics = []
        self.serials = []
        self.parallels = []
        self.console = None
        self.inputs = []
        self.sounds = []
        self.hostdevs = []


###################
# CPU set helpers #
###################

def parse_cpuset(cpuset, maxcpus=4096):
    """
    Parse a cpuset string like '0-3,^2,8' into a sorted list of
    cpu numbers. Raises ValueError for malformed input
    """
    include = set()
    exclude = set()
    for item in cpuset.split(","):
        item = item.strip()
        if not item:
            raise ValueError("empty cpuset entry in '%s'" % cpuset)
        if item.startswith("^"):
            exclude.add(int(item[1:], 10))
            continue
        if "-" in item:
            start, end = item.split("-", 1)
            start = int(start, 10)
            end = int(end, 10)
            if start > end:
                raise ValueError("invalid cpuset range '%s'" % item)
            include.update(range(start, end + 1))
        else:
            include.add(int(item, 10))

    ret = sorted(include - exclude)
    for cpu in ret:
        if cpu < 0 or cpu >= maxcpus:
            raise ValueError("cpu %d out of range" % cpu)
    if not ret:
        raise ValueError("cpuset '%s' selects no cpus" % cpuset)
    return ret


def format_cpuset(cpus):
    """
    Format a list of cpu numbers as compact ranges
    """
    ranges = []
    start = prev = None
    for cpu in sorted(cpus):
        if start is None:
            start = prev = cpu
        elif cpu == prev + 1:
            prev = cpu
        else:
            ranges.append((start, prev))
            start = prev = cpu
    if start is not None:
        ranges.append((start, prev))

    ret = []
    for start, end in ranges:
        if start == end:
            ret.append(str(start))
        else:
            ret.append("%d-%d" % (start, end))
    return ",".join(ret)
