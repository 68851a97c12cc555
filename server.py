#!/usr/bin/env python3
"""
System Info daemon - publishes SystemInfo on the session bus

One object, com.deepin.daemon.SystemInfo at /com/deepin/daemon/SystemInfo,
exposing the five facts as read-only properties through
org.freedesktop.DBus.Properties.  No methods, no signals.
"""

import logging
from typing import Callable, Optional

from errors import BusError
from system_info import SystemInfo, new_system_info

DBUS_NAME = "com.deepin.daemon.SystemInfo"
DBUS_PATH = "/com/deepin/daemon/SystemInfo"
DBUS_IFACE = "com.deepin.daemon.SystemInfo"

PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"
PROPERTY_READ_ONLY_ERROR = "org.freedesktop.DBus.Error.PropertyReadOnly"
UNKNOWN_PROPERTY_ERROR = "org.freedesktop.DBus.Error.UnknownProperty"
UNKNOWN_INTERFACE_ERROR = "org.freedesktop.DBus.Error.UnknownInterface"

TRACE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(DBUS_NAME)

# Loggers whose records go to the tracing log while the object is published
TRACED_LOGGERS = (DBUS_NAME, "system_info", "udisks")


def dbus_properties(info: SystemInfo) -> dict:
    """Property name → (D-Bus signature, value) for every published fact."""
    return {
        "Version": ("s", info.Version),
        "Processor": ("s", info.Processor),
        "MemoryCap": ("t", info.MemoryCap),
        "SystemType": ("x", info.SystemType),
        "DiskCap": ("t", info.DiskCap),
    }


def _wrap(signature: str, value):
    import dbus

    types = {
        "s": dbus.String,
        "t": dbus.UInt64,
        "x": dbus.Int64,
    }
    return types[signature](value, variant_level=1)


def export_system_info(info: SystemInfo, bus=None):
    """Claim the bus name and export *info*; returns the exported object."""
    try:
        import dbus
        import dbus.service
    except ImportError as e:
        raise BusError(f"D-Bus bindings unavailable: {e}")

    class SystemInfoObject(dbus.service.Object):
        def __init__(self, conn, info):
            self.info = info
            self.bus_name = dbus.service.BusName(DBUS_NAME, conn, do_not_queue=True)
            super().__init__(self.bus_name, DBUS_PATH)

        def _check_iface(self, interface):
            if interface not in (DBUS_IFACE, ""):
                raise dbus.exceptions.DBusException(
                    f"No such interface '{interface}'",
                    name=UNKNOWN_INTERFACE_ERROR,
                )

        @dbus.service.method(PROPERTIES_IFACE, in_signature="ss", out_signature="v")
        def Get(self, interface, prop):
            self._check_iface(interface)
            props = dbus_properties(self.info)
            if prop not in props:
                raise dbus.exceptions.DBusException(
                    f"No such property '{prop}'", name=UNKNOWN_PROPERTY_ERROR
                )
            return _wrap(*props[prop])

        @dbus.service.method(PROPERTIES_IFACE, in_signature="s", out_signature="a{sv}")
        def GetAll(self, interface):
            self._check_iface(interface)
            return {
                name: _wrap(sig, value)
                for name, (sig, value) in dbus_properties(self.info).items()
            }

        @dbus.service.method(PROPERTIES_IFACE, in_signature="ssv")
        def Set(self, interface, prop, value):
            raise dbus.exceptions.DBusException(
                f"Property '{prop}' is read-only", name=PROPERTY_READ_ONLY_ERROR
            )

    try:
        if bus is None:
            bus = dbus.SessionBus()
        return SystemInfoObject(bus, info)
    except dbus.exceptions.DBusException as e:
        raise BusError(f"Install {DBUS_NAME} on session bus failed: {e}")


def unexport_system_info(obj) -> None:
    import dbus

    try:
        obj.remove_from_connection()
        obj.bus_name.get_bus().release_name(DBUS_NAME)
    except (dbus.exceptions.DBusException, LookupError) as e:
        raise BusError(f"Uninstall {DBUS_NAME} failed: {e}")


class SystemInfoDaemon:
    """Owns the single published SystemInfo for the daemon's lifetime.

    The tracing log handler lives exactly as long as the published object.
    """

    def __init__(
        self,
        build: Callable[[], Optional[SystemInfo]] = new_system_info,
        export: Callable = export_system_info,
        unexport: Callable = unexport_system_info,
        trace_handler: logging.Handler = None,
    ):
        self._build = build
        self._export = export
        self._unexport = unexport
        self._trace_handler = trace_handler
        self._tracing = None
        self._saved_levels = {}
        self.info: Optional[SystemInfo] = None
        self.bus_object = None

    @property
    def started(self) -> bool:
        return self.info is not None

    def _begin_tracing(self) -> None:
        handler = self._trace_handler or logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(TRACE_FORMAT))
        self._saved_levels = {}
        for name in TRACED_LOGGERS:
            traced = logging.getLogger(name)
            self._saved_levels[name] = traced.level
            traced.setLevel(logging.DEBUG)
            traced.addHandler(handler)
        self._tracing = handler

    def _end_tracing(self) -> None:
        if self._tracing is None:
            return
        for name in TRACED_LOGGERS:
            traced = logging.getLogger(name)
            traced.removeHandler(self._tracing)
            traced.setLevel(self._saved_levels.get(name, logging.NOTSET))
        self._saved_levels = {}
        self._tracing = None

    def start(self) -> bool:
        """Build and publish the facts; no-op when already started."""
        if self.started:
            return True

        self._begin_tracing()
        try:
            info = self._build()
            if info is None:
                logger.error("System info unavailable, not publishing")
                return False

            try:
                self.bus_object = self._export(info)
            except BusError as e:
                logger.error(str(e))
                return False

            self.info = info
            logger.info(f"Published {DBUS_PATH}")
            return True
        finally:
            if not self.started:
                self._end_tracing()

    def stop(self) -> None:
        """Withdraw the published object; no-op when not started."""
        if not self.started:
            return

        try:
            self._unexport(self.bus_object)
        except BusError as e:
            logger.warning(str(e))
        finally:
            self._end_tracing()
            self.bus_object = None
            self.info = None


def serve(daemon: SystemInfoDaemon = None) -> int:
    """Run the daemon on a GLib main loop until interrupted."""
    try:
        from dbus.mainloop.glib import DBusGMainLoop
        from gi.repository import GLib
    except ImportError as e:
        logger.error(f"D-Bus main loop unavailable: {e}")
        return 1

    DBusGMainLoop(set_as_default=True)
    daemon = daemon or SystemInfoDaemon()
    if not daemon.start():
        return 1

    loop = GLib.MainLoop()
    try:
        loop.run()
    except KeyboardInterrupt:
        pass
    finally:
        daemon.stop()
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(serve())
