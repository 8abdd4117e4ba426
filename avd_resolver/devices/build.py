"""Descriptor for a device built from a local platform build-output tree."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from avd_resolver.core.models import DeviceParams, DeviceSource, ImageSlot
from avd_resolver.devices.base import DeviceDescriptor, DeviceInfo

PREBUILT_KERNEL = Path("prebuilt") / "android-arm" / "kernel" / "kernel-qemu"


class BuildTreeDevice(DeviceDescriptor):
    """Images live in the product output directory; the kernel is prebuilt."""

    def __init__(
        self,
        build_root: Path,
        build_out: Path,
        params: Optional[DeviceParams] = None,
    ):
        super().__init__(params)
        self.build_root = Path(build_root)
        self.build_out = Path(build_out)

    def get_info(self) -> DeviceInfo:
        return DeviceInfo(
            name="<build>",
            source=DeviceSource.IN_BUILD.value,
            content_path=str(self.build_out),
        )

    def image_path_for_slot(self, slot: ImageSlot) -> Optional[Path]:
        out = self.build_out
        if slot == ImageSlot.KERNEL:
            return self._first_existing(out / "kernel-qemu") or (
                self.build_root / PREBUILT_KERNEL
            )
        if slot == ImageSlot.RAMDISK:
            return out / "ramdisk.img"
        if slot == ImageSlot.SYSTEM_INIT:
            return out / "system.img"
        if slot == ImageSlot.USER_DATA_INIT:
            return out / "userdata.img"
        if slot == ImageSlot.USER_DATA_RUNTIME:
            return out / "userdata-qemu.img"
        if slot == ImageSlot.CACHE:
            return None if self.params.no_cache else out / "cache.img"
        if slot == ImageSlot.SD_CARD:
            return self._first_existing(out / "sdcard.img")
        return None
