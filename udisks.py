"""
UDisks2 hardware-topology client and fixed-disk capacity aggregation.

The managed-objects snapshot has the shape returned by
org.freedesktop.DBus.ObjectManager.GetManagedObjects:

    {object_path: {interface_name: {property_name: value}}}

disk_capacity() only needs that mapping, so it runs against plain dicts in
tests and against dbus-python containers at runtime.
"""

import logging
from typing import Dict, List

from errors import BusError, ParseError

logger = logging.getLogger(__name__)

UDISKS_BUS_NAME = "org.freedesktop.UDisks2"
UDISKS_OBJECT_PATH = "/org/freedesktop/UDisks2"
OBJECT_MANAGER_IFACE = "org.freedesktop.DBus.ObjectManager"
BLOCK_IFACE = "org.freedesktop.UDisks2.Block"
DRIVE_IFACE = "org.freedesktop.UDisks2.Drive"

NO_DRIVE = "/"

ManagedObjects = Dict[str, Dict[str, Dict[str, object]]]


def get_managed_objects(bus=None) -> ManagedObjects:
    """Fetch the UDisks2 object graph.

    *bus* defaults to the system bus, where udisksd is activated.
    """
    try:
        import dbus
    except ImportError as e:
        raise BusError(f"D-Bus bindings unavailable: {e}")

    try:
        if bus is None:
            bus = dbus.SystemBus()
        proxy = bus.get_object(UDISKS_BUS_NAME, UDISKS_OBJECT_PATH)
        manager = dbus.Interface(proxy, OBJECT_MANAGER_IFACE)
        return manager.GetManagedObjects()
    except dbus.exceptions.DBusException as e:
        raise BusError(f"{UDISKS_BUS_NAME}: {e.get_dbus_message()}")


def drive_paths(objects: ManagedObjects) -> List[str]:
    """Distinct drive paths referenced by Block objects, in first-seen order."""
    drives: Dict[str, None] = {}
    for path, interfaces in objects.items():
        block = interfaces.get(BLOCK_IFACE)
        if block is None:
            continue
        drive = block.get("Drive")
        if drive is None:
            continue
        drive = str(drive)
        if drive != NO_DRIVE and drive not in drives:
            drives[drive] = None
    return list(drives)


def disk_capacity(objects: ManagedObjects) -> int:
    """Sum the Size of every distinct non-removable drive, each once."""
    disk_cap = 0
    for drive in drive_paths(objects):
        props = objects.get(drive, {}).get(DRIVE_IFACE)
        if props is None:
            logger.debug(f"Drive '{drive}' has no {DRIVE_IFACE} interface, skipped")
            continue
        try:
            removable = bool(props["Removable"])
            size = int(props["Size"])
        except KeyError as e:
            raise ParseError(f"Drive '{drive}' lacks property {e}")
        if removable:
            logger.debug(f"Drive '{drive}' is removable, skipped")
            continue
        logger.debug(f"Drive '{drive}' counts {size} bytes")
        disk_cap += size
    return disk_cap


def get_disk_cap(bus=None) -> int:
    return disk_capacity(get_managed_objects(bus))
