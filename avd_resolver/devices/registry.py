"""AVD registry: discovers named virtual devices under the AVD home."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from avd_resolver.core.errors import UnknownDevice
from avd_resolver.core.models import DeviceParams
from avd_resolver.devices.avd import AvdDevice, read_ini

logger = logging.getLogger(__name__)

DEFAULT_AVD_HOME = Path.home() / ".android" / "avd"


class AvdRegistry:
    """Index of ``<name>.ini`` files, each pointing at a content directory."""

    def __init__(
        self,
        avd_home: Optional[Path] = None,
        sdk_root: Optional[Path] = None,
    ):
        self.avd_home = Path(avd_home) if avd_home else DEFAULT_AVD_HOME
        self.sdk_root = Path(sdk_root) if sdk_root else None
        self._entries: dict[str, dict[str, str]] = {}
        self._discovered = False

    def _discover(self) -> None:
        if self._discovered:
            return
        if self.avd_home.is_dir():
            for child in sorted(self.avd_home.iterdir()):
                if child.suffix != ".ini" or not child.is_file():
                    continue
                try:
                    self._entries[child.stem] = read_ini(child)
                except OSError:
                    logger.warning("Failed to read %s", child, exc_info=True)
        else:
            logger.debug("AVD home %s does not exist", self.avd_home)
        self._discovered = True

    def list_devices(self) -> list[str]:
        """Return the names of all registered virtual devices."""
        self._discover()
        return list(self._entries.keys())

    def content_path(self, name: str) -> Optional[Path]:
        self._discover()
        entry = self._entries.get(name)
        if entry is None:
            return None
        path = entry.get("path")
        if path and Path(path).is_dir():
            return Path(path)
        rel = entry.get("path.rel")
        if rel:
            candidate = self.avd_home.parent / rel
            if candidate.is_dir():
                return candidate
        return Path(path) if path else None

    def get(self, name: str, params: Optional[DeviceParams] = None) -> AvdDevice:
        """Return the named device, or raise UnknownDevice."""
        self._discover()
        if name not in self._entries:
            available = ", ".join(self._entries.keys()) or "(none)"
            raise UnknownDevice(
                f"could not find virtual device named {name!r}. "
                f"Available: {available}"
            )
        content = self.content_path(name)
        if content is None or not content.is_dir():
            raise UnknownDevice(
                f"virtual device {name!r} has no content directory "
                f"(looked for {content})"
            )
        target = self._entries[name].get("target")
        logger.debug("found virtual device %s in %s", name, content)
        return AvdDevice.load(
            name, content, sdk_root=self.sdk_root, target=target, params=params
        )
