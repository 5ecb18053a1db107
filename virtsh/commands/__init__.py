#
# The command catalogue
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

from ..command import CommandGroup, CommandRegistry
from . import domain
from . import host
from . import interface
from . import monitor
from . import network
from . import shellcmds
from . import snapshot
from . import storage


def build_groups():
    """
    Command groups in the order 'help' lists them
    """
    return [
        CommandGroup(_("Domain Management"), "domain", domain.COMMANDS),
        CommandGroup(_("Domain Monitoring"), "monitor", monitor.COMMANDS),
        CommandGroup(_("Host and Hypervisor"), "host", host.COMMANDS),
        CommandGroup(_("Interface"), "interface",
                     interface.INTERFACE_COMMANDS),
        CommandGroup(_("Network Filter"), "filter",
                     interface.NWFILTER_COMMANDS),
        CommandGroup(_("Networking"), "network", network.COMMANDS),
        CommandGroup(_("Storage Pool"), "pool", storage.POOL_COMMANDS),
        CommandGroup(_("Storage Volume"), "volume", storage.VOLUME_COMMANDS),
        CommandGroup(_("Snapshot"), "snapshot", snapshot.COMMANDS),
        CommandGroup(_("Virsh itself"), "virsh", shellcmds.COMMANDS),
    ]


def get_registry():
    return CommandRegistry(build_groups())
