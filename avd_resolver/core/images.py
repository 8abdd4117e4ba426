"""Image path resolution: explicit option first, device default second."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from avd_resolver.core.errors import MissingRequiredImage
from avd_resolver.core.models import (
    HardwareConfig,
    ImageSlot,
    OptionSet,
    is_valid_disk_path,
)
from avd_resolver.devices.base import DeviceDescriptor

logger = logging.getLogger(__name__)


class ImagePathResolver:
    """Fills HardwareConfig.paths for every ImageSlot."""

    def __init__(self, descriptor: DeviceDescriptor, options: OptionSet):
        self.descriptor = descriptor
        self.options = options

    def resolve_slot(self, slot: ImageSlot) -> Optional[Path]:
        forced = self.options.forced_path(slot)
        if forced is not None:
            if slot.required and not os.path.exists(forced):
                raise MissingRequiredImage(
                    f"Cannot find {slot.description} image file: {forced}"
                )
            return Path(forced)

        default = self.descriptor.image_path_for_slot(slot)
        path = Path(default) if is_valid_disk_path(default) else None
        if slot.required and (path is None or not os.path.exists(path)):
            raise MissingRequiredImage(
                f"{slot.description} image path "
                f"{path if path is not None else '<unset>'} is invalid"
            )
        return path

    def resolve(self, hardware: HardwareConfig) -> HardwareConfig:
        for slot in ImageSlot:
            hardware.paths[slot] = self.resolve_slot(slot)
            if hardware.paths[slot] is not None:
                logger.debug("%s image: %s", slot.value, hardware.paths[slot])

        # An absent runtime data image falls back to the initial one.
        if hardware.paths[ImageSlot.USER_DATA_RUNTIME] is None:
            hardware.paths[ImageSlot.USER_DATA_RUNTIME] = hardware.paths[
                ImageSlot.USER_DATA_INIT
            ]
        return hardware
