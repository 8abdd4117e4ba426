"""Named virtual device backed by an ``<name>.avd`` content directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from avd_resolver.core.models import DeviceParams, DeviceSource, ImageSlot
from avd_resolver.devices.base import DeviceDescriptor, DeviceInfo, SkinInfo

CONFIG_FILE = "config.ini"
SYSDIR_KEYS = ("image.sysdir.1", "image.sysdir.2")

# slot -> (file name, also searched in the system directories)
_IMAGE_FILES: dict[ImageSlot, tuple[str, bool]] = {
    ImageSlot.KERNEL: ("kernel-qemu", True),
    ImageSlot.RAMDISK: ("ramdisk.img", True),
    ImageSlot.SYSTEM_INIT: ("system.img", True),
    ImageSlot.SYSTEM_RUNTIME: ("system-qemu.img", False),
    ImageSlot.USER_DATA_INIT: ("userdata.img", True),
    ImageSlot.USER_DATA_RUNTIME: ("userdata-qemu.img", False),
    ImageSlot.SD_CARD: ("sdcard.img", False),
    ImageSlot.CACHE: ("cache.img", False),
    ImageSlot.SNAPSHOTS: ("snapshots.img", False),
}


def read_ini(path: Path) -> dict[str, str]:
    """Parse a section-less ``key=value`` file. Later keys win."""
    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith(("#", ";")) or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip()
    return values


class AvdDevice(DeviceDescriptor):
    def __init__(
        self,
        name: str,
        content_path: Path,
        config: Optional[dict[str, str]] = None,
        sdk_root: Optional[Path] = None,
        target: Optional[str] = None,
        params: Optional[DeviceParams] = None,
    ):
        super().__init__(params)
        self.name = name
        self.content_path = Path(content_path)
        self.config = dict(config or {})
        self.sdk_root = Path(sdk_root) if sdk_root else None
        self.target = target

    @classmethod
    def load(
        cls,
        name: str,
        content_path: Path,
        sdk_root: Optional[Path] = None,
        target: Optional[str] = None,
        params: Optional[DeviceParams] = None,
    ) -> AvdDevice:
        config_file = Path(content_path) / CONFIG_FILE
        config = read_ini(config_file) if config_file.is_file() else {}
        return cls(name, content_path, config, sdk_root, target, params)

    def get_info(self) -> DeviceInfo:
        return DeviceInfo(
            name=self.name,
            source=DeviceSource.NAMED.value,
            content_path=str(self.content_path),
            target=self.target,
        )

    def system_dirs(self) -> list[Path]:
        """Search path for read-only images, most specific first."""
        dirs: list[Path] = []
        for key in SYSDIR_KEYS:
            value = self.config.get(key)
            if not value:
                continue
            path = Path(value)
            if not path.is_absolute() and self.sdk_root is not None:
                path = self.sdk_root / path
            dirs.append(path)
        if self.target and self.sdk_root is not None:
            dirs.append(self.sdk_root / "platforms" / self.target / "images")
        return dirs

    def image_path_for_slot(self, slot: ImageSlot) -> Optional[Path]:
        if slot == ImageSlot.CACHE and self.params.no_cache:
            return None
        if slot == ImageSlot.SNAPSHOTS and self.params.no_snapshots:
            return None
        if slot == ImageSlot.SD_CARD and self.config.get("sdcard.path"):
            return Path(self.config["sdcard.path"])

        file_name, in_sysdirs = _IMAGE_FILES[slot]
        local = self.content_path / file_name
        if slot in (ImageSlot.USER_DATA_RUNTIME, ImageSlot.CACHE):
            # created on first boot when missing
            return local
        if local.exists():
            return local
        if in_sysdirs:
            candidates = [d / file_name for d in self.system_dirs()]
            found = self._first_existing(*candidates)
            if found is not None:
                return found
            if slot.required and candidates:
                return candidates[0]
        return None

    def skin_info(self) -> SkinInfo:
        skin_path = self.config.get("skin.path")
        if skin_path:
            path = Path(skin_path)
            if not path.is_absolute() and self.sdk_root is not None:
                path = self.sdk_root / path
            return SkinInfo(name=path.name, directory=str(path.parent))
        name = self.config.get("skin.name")
        if name and self.sdk_root is not None and self.target:
            skins = self.sdk_root / "platforms" / self.target / "skins"
            if os.path.isdir(skins):
                return SkinInfo(name=name, directory=str(skins))
        return SkinInfo(name=name or None)
