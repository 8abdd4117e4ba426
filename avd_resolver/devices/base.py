"""DeviceDescriptor: read-only view of a virtual device's default images."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from avd_resolver.core.models import DeviceParams, ImageSlot


@dataclass
class DeviceInfo:
    name: str
    source: str
    content_path: Optional[str] = None
    target: Optional[str] = None


@dataclass
class SkinInfo:
    name: Optional[str] = None
    directory: Optional[str] = None


class DeviceDescriptor(ABC):
    """Capability interface queried (never mutated) by the resolver."""

    def __init__(self, params: Optional[DeviceParams] = None):
        self.params = params or DeviceParams()

    @abstractmethod
    def get_info(self) -> DeviceInfo: ...

    @abstractmethod
    def image_path_for_slot(self, slot: ImageSlot) -> Optional[Path]: ...

    def image_size_for_slot(self, slot: ImageSlot) -> Optional[int]:
        """Return the byte size of the slot's image, or None if absent."""
        path = self.image_path_for_slot(slot)
        if path is None or not os.path.isfile(path):
            return None
        return os.path.getsize(path)

    def skin_info(self) -> SkinInfo:
        return SkinInfo()

    @staticmethod
    def _first_existing(*candidates: Optional[Path]) -> Optional[Path]:
        for candidate in candidates:
            if candidate is not None and candidate.exists():
                return candidate
        return None
