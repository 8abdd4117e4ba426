"""Core data models for avd-resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from avd_resolver.devices.base import DeviceDescriptor

ONE_MB = 1024 * 1024
DEFAULT_PARTITION_MB = 66

# Placeholder written to persisted hardware configs for "no image assigned".
UNSET_PATH = "<init>"


class ImageSlot(Enum):
    KERNEL = "kernel"
    RAMDISK = "ramdisk"
    SYSTEM_INIT = "system-init"
    SYSTEM_RUNTIME = "system-runtime"
    USER_DATA_INIT = "user-data-init"
    USER_DATA_RUNTIME = "user-data-runtime"
    SD_CARD = "sd-card"
    CACHE = "cache"
    SNAPSHOTS = "snapshot-storage"

    @property
    def required(self) -> bool:
        return self in _REQUIRED_SLOTS

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def option_name(self) -> Optional[str]:
        """OptionSet field that can force this slot, if any."""
        return _OPTION_NAMES.get(self)


_REQUIRED_SLOTS = frozenset(
    {ImageSlot.KERNEL, ImageSlot.RAMDISK, ImageSlot.SYSTEM_INIT}
)

_DESCRIPTIONS = {
    ImageSlot.KERNEL: "kernel",
    ImageSlot.RAMDISK: "ramdisk",
    ImageSlot.SYSTEM_INIT: "system",
    ImageSlot.SYSTEM_RUNTIME: "runtime system",
    ImageSlot.USER_DATA_INIT: "initial user data",
    ImageSlot.USER_DATA_RUNTIME: "user data",
    ImageSlot.SD_CARD: "SD Card",
    ImageSlot.CACHE: "cache",
    ImageSlot.SNAPSHOTS: "snapshots",
}

_OPTION_NAMES = {
    ImageSlot.KERNEL: "kernel",
    ImageSlot.RAMDISK: "ramdisk",
    ImageSlot.SYSTEM_INIT: "system",
    ImageSlot.USER_DATA_RUNTIME: "data",
    ImageSlot.CACHE: "cache",
    ImageSlot.SD_CARD: "sdcard",
    ImageSlot.SNAPSHOTS: "snapshot_storage",
}


class DeviceSource(Enum):
    NAMED = "avd"
    IN_BUILD = "in-build"
    SDK = "sdk"


def is_valid_disk_path(path: Optional[object]) -> bool:
    """Return False for unset, empty, or placeholder image paths."""
    if path is None:
        return False
    value = str(path)
    return value != "" and value != UNSET_PATH


@dataclass(frozen=True)
class OptionSet:
    sysdir: Optional[str] = None
    system: Optional[str] = None
    image: Optional[str] = None  # legacy alias of system
    kernel: Optional[str] = None
    ramdisk: Optional[str] = None
    data: Optional[str] = None
    datadir: Optional[str] = None
    cache: Optional[str] = None
    sdcard: Optional[str] = None
    snapshot_storage: Optional[str] = None
    partition_size: Optional[str] = None
    avd: Optional[str] = None
    skin: Optional[str] = None
    skin_dir: Optional[str] = None
    no_skin: bool = False
    wipe_data: bool = False
    no_cache: bool = False
    no_snapshot_storage: bool = False

    def forced_path(self, slot: ImageSlot) -> Optional[str]:
        name = slot.option_name
        if name is None:
            return None
        value = getattr(self, name)
        return value if is_valid_disk_path(value) else None


@dataclass(frozen=True)
class DeviceParams:
    no_cache: bool = False
    wipe_data: bool = False
    wipe_cache: bool = False
    no_snapshots: bool = False

    @classmethod
    def from_options(cls, options: OptionSet) -> DeviceParams:
        return cls(
            no_cache=options.no_cache,
            wipe_data=options.wipe_data,
            wipe_cache=options.wipe_data,
            no_snapshots=options.no_snapshot_storage,
        )


@dataclass
class HardwareConfig:
    paths: dict[ImageSlot, Optional[Path]] = field(
        default_factory=lambda: {slot: None for slot in ImageSlot}
    )
    system_partition_size: int = DEFAULT_PARTITION_MB * ONE_MB
    data_partition_size: int = DEFAULT_PARTITION_MB * ONE_MB
    lcd_width: int = 320
    lcd_height: int = 640
    lcd_depth: int = 16

    def path_for(self, slot: ImageSlot) -> Optional[Path]:
        return self.paths.get(slot)

    def as_ini(self) -> str:
        """Render in the key=value form consumed by the emulation subsystem."""
        keys = {
            ImageSlot.KERNEL: "kernel.path",
            ImageSlot.RAMDISK: "disk.ramdisk.path",
            ImageSlot.SYSTEM_INIT: "disk.systemPartition.initPath",
            ImageSlot.SYSTEM_RUNTIME: "disk.systemPartition.path",
            ImageSlot.USER_DATA_INIT: "disk.dataPartition.initPath",
            ImageSlot.USER_DATA_RUNTIME: "disk.dataPartition.path",
            ImageSlot.SD_CARD: "hw.sdCard.path",
            ImageSlot.CACHE: "disk.cachePartition.path",
            ImageSlot.SNAPSHOTS: "disk.snapStorage.path",
        }
        lines = []
        for slot in ImageSlot:
            path = self.paths.get(slot)
            lines.append(f"{keys[slot]} = {path if path else UNSET_PATH}")
        lines.append(f"disk.systemPartition.size = {self.system_partition_size}")
        lines.append(f"disk.dataPartition.size = {self.data_partition_size}")
        lines.append(f"hw.lcd.width = {self.lcd_width}")
        lines.append(f"hw.lcd.height = {self.lcd_height}")
        lines.append(f"hw.lcd.depth = {self.lcd_depth}")
        return "\n".join(lines) + "\n"


@dataclass
class LocatedDevice:
    descriptor: DeviceDescriptor
    source: DeviceSource
    build_root: Optional[Path] = None
    build_out: Optional[Path] = None

    @property
    def in_build(self) -> bool:
        return self.source == DeviceSource.IN_BUILD
