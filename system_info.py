#!/usr/bin/env python3
"""
System Info - Collects the read-only facts published by the session daemon

Sources
───────
• Version    → /etc/deepin-version key file (Release.Version + localized
               Release.Type), falling back to DISTRIB_RELEASE in /etc/lsb-release
• Processor  → "model name" lines of /proc/cpuinfo
• MemoryCap  → MemTotal of /proc/meminfo (kB) in bytes
• SystemType → `uname -m`, mapped to 32 / 64 / 0
• DiskCap    → UDisks2 object graph, non-removable drives counted once

Every path is rebased on $DDE_SYSROOT when it is set.
"""

import json
import logging
import subprocess
from typing import Callable, NamedTuple, Optional

import udisks
from errors import NotFoundError, ParseError, SessionHelperError, SubprocessError
from fileutils import is_file_exist, read_key, sysroot_path
from i18n import KeyFile

logger = logging.getLogger(__name__)

DEEPIN_VERSION_FILE = sysroot_path("/etc/deepin-version")
LSB_RELEASE_FILE = sysroot_path("/etc/lsb-release")
CPUINFO_FILE = sysroot_path("/proc/cpuinfo")
MEMINFO_FILE = sysroot_path("/proc/meminfo")

UNAME_CMD = ["/bin/sh", "-c", "/bin/uname -m"]

SYSTEM_TYPE_UNKNOWN = 0
_SYSTEM_TYPE_MAP = {
    "i386": 32,
    "i586": 32,
    "i686": 32,
    "x86_64": 64,
}


class SystemInfo(NamedTuple):
    Version: str
    Processor: str
    MemoryCap: int
    SystemType: int
    DiskCap: int

    def to_json(self) -> str:
        return json.dumps(self._asdict(), indent=2)


def _require_file(path: str) -> None:
    if not is_file_exist(path):
        raise NotFoundError(f"No such file or directory: '{path}'")


def get_cpu_info_from_file(config: str = CPUINFO_FILE) -> str:
    """
    Describe the processor from /proc/cpuinfo.

    The first "model name" value is the description; with several logical
    processors it gets an " x N" suffix.
    """
    _require_file(config)
    with open(config, "r", encoding="utf-8", errors="ignore") as f:
        lines = f.read().splitlines()

    info = ""
    cnt = 0
    for line in lines:
        if "model name" not in line:
            continue
        _, sep, value = line.partition(":")
        if not sep:
            continue
        cnt += 1
        if not info:
            info = value.strip()

    if cnt == 0:
        raise ParseError(f"No 'model name' entry in '{config}'")
    if cnt > 1:
        info = f"{info} x {cnt}"
    return info.strip()


def get_version_from_deepin(config: str = DEEPIN_VERSION_FILE) -> str:
    """Release.Version plus the localized Release.Type, e.g. "20.3 Professional"."""
    _require_file(config)
    kf = KeyFile.load(config)
    version = kf.get_string("Release", "Version")
    release_type = kf.get_locale_string("Release", "Type")
    return f"{version} {release_type}"


def get_version_from_lsb(lsbfile: str = LSB_RELEASE_FILE) -> str:
    _require_file(lsbfile)
    value = read_key(lsbfile, "DISTRIB_RELEASE", "=")
    if not value:
        raise ParseError(f"No DISTRIB_RELEASE in '{lsbfile}'")
    return value


def get_version(config: str = DEEPIN_VERSION_FILE, lsbfile: str = LSB_RELEASE_FILE) -> str:
    try:
        return get_version_from_deepin(config)
    except (NotFoundError, ParseError) as e:
        logger.warning(f"Read deepin version failed, trying lsb-release: {e}")
    return get_version_from_lsb(lsbfile)


def get_memory_cap_from_file(config: str = MEMINFO_FILE) -> int:
    """MemTotal in bytes; the kernel reports kibibytes."""
    _require_file(config)
    value = read_key(config, "MemTotal", ":")
    if not value:
        raise ParseError("Value is null")

    kib = value.split()[0]
    if not kib.isdigit():
        raise ParseError(f"Invalid MemTotal value '{value}' in '{config}'")
    return int(kib) * 1024


def system_type_from_machine(machine: str) -> int:
    machine = machine.strip().lower()
    return _SYSTEM_TYPE_MAP.get(machine, SYSTEM_TYPE_UNKNOWN)


def get_system_type() -> int:
    """Word size of the running kernel from `uname -m`: 32, 64, or 0 if unknown."""
    try:
        result = subprocess.run(UNAME_CMD, capture_output=True, text=True)
    except OSError as e:
        raise SubprocessError(str(e), cmd=UNAME_CMD)
    if result.returncode != 0:
        raise SubprocessError(
            (result.stdout + result.stderr).strip(),
            returncode=result.returncode,
            cmd=UNAME_CMD,
        )
    return system_type_from_machine(result.stdout)


class SystemInfoCollector:
    """Builds a SystemInfo from a set of source files and a disk probe.

    Fields are gathered in a fixed order (version, processor, memory, system
    type, disk); the first failure aborts the whole collection.
    """

    def __init__(
        self,
        deepin_version: str = DEEPIN_VERSION_FILE,
        lsb_release: str = LSB_RELEASE_FILE,
        cpuinfo: str = CPUINFO_FILE,
        meminfo: str = MEMINFO_FILE,
        system_type: Callable[[], int] = get_system_type,
        disk_cap: Callable[[], int] = udisks.get_disk_cap,
    ):
        self.deepin_version = deepin_version
        self.lsb_release = lsb_release
        self.cpuinfo = cpuinfo
        self.meminfo = meminfo
        self.system_type = system_type
        self.disk_cap = disk_cap

    def collect(self) -> SystemInfo:
        version = get_version(self.deepin_version, self.lsb_release)
        processor = get_cpu_info_from_file(self.cpuinfo)
        memory_cap = get_memory_cap_from_file(self.meminfo)
        system_type = self.system_type()
        disk_cap = self.disk_cap()
        return SystemInfo(
            Version=version,
            Processor=processor,
            MemoryCap=memory_cap,
            SystemType=system_type,
            DiskCap=disk_cap,
        )


def new_system_info(collector: SystemInfoCollector = None) -> Optional[SystemInfo]:
    """Collect the system facts, or log the error and return None."""
    collector = collector or SystemInfoCollector()
    try:
        return collector.collect()
    except (SessionHelperError, OSError) as e:
        logger.error(f"Collect system info failed: {e}")
        return None


def main():
    """Print the collected facts"""
    logging.basicConfig(level=logging.INFO)
    info = new_system_info()
    if info is None:
        raise SystemExit(1)
    print(info.to_json())


if __name__ == "__main__":
    main()
