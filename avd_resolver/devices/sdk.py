"""Descriptor assembled from autodetected SDK image directories."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from avd_resolver.core.models import DeviceParams, DeviceSource, ImageSlot
from avd_resolver.devices.base import DeviceDescriptor, DeviceInfo

KERNEL_FILE = "kernel-qemu"
RAMDISK_FILE = "ramdisk.img"
SYSTEM_FILE = "system.img"
INITDATA_FILE = "userdata.img"
USERDATA_FILE = "userdata-qemu.img"
SDCARD_FILE = "sdcard.img"
SNAPSHOTS_FILE = "snapshots.img"
CACHE_FILE = "cache.img"


class SdkImageDevice(DeviceDescriptor):
    """A system directory plus a data directory, no AVD metadata.

    ``images`` holds the paths the locator discovered on disk; anything not
    listed falls back to the conventional file name in the relevant
    directory.
    """

    def __init__(
        self,
        sysdir: Path,
        datadir: Path,
        images: Optional[dict[ImageSlot, Path]] = None,
        params: Optional[DeviceParams] = None,
    ):
        super().__init__(params)
        self.sysdir = Path(sysdir)
        self.datadir = Path(datadir)
        self.images = dict(images or {})

    def get_info(self) -> DeviceInfo:
        return DeviceInfo(
            name="<sdk>",
            source=DeviceSource.SDK.value,
            content_path=str(self.datadir),
        )

    def image_path_for_slot(self, slot: ImageSlot) -> Optional[Path]:
        if slot in self.images:
            return self.images[slot]
        if slot == ImageSlot.KERNEL:
            return self.sysdir / KERNEL_FILE
        if slot == ImageSlot.RAMDISK:
            return self.sysdir / RAMDISK_FILE
        if slot == ImageSlot.SYSTEM_INIT:
            return self.sysdir / SYSTEM_FILE
        if slot == ImageSlot.USER_DATA_INIT:
            return self._first_existing(
                self.datadir / INITDATA_FILE, self.sysdir / INITDATA_FILE
            )
        if slot == ImageSlot.USER_DATA_RUNTIME:
            return self.datadir / USERDATA_FILE
        if slot == ImageSlot.CACHE:
            return None if self.params.no_cache else self.datadir / CACHE_FILE
        return None
