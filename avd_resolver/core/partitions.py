"""Partition sizing for the system and data images."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from avd_resolver.core.errors import InvalidPartitionSize
from avd_resolver.core.models import (
    DEFAULT_PARTITION_MB,
    ONE_MB,
    HardwareConfig,
    ImageSlot,
    LocatedDevice,
    OptionSet,
)

logger = logging.getLogger(__name__)

MIN_PARTITION_MB = 10
MAX_PARTITION_MB = sys.maxsize // ONE_MB
MAX_MB_COUNT = 0xFFFFFFFF


def round_up_to_mb(size: int) -> int:
    """Whole megabytes needed to hold ``size`` bytes, clamped to 32 bits."""
    if size <= 0:
        return 0
    return min((size + ONE_MB - 1) >> 20, MAX_MB_COUNT)


def mb_to_bytes(megabytes: int) -> int:
    return megabytes << 20


def parse_partition_size(value: str) -> int:
    """Parse a ``-partition-size`` value in MB and return it in bytes."""
    try:
        # int() ignores trailing whitespace; the flag value must not have any
        if value[-1:].isspace():
            raise ValueError(value)
        size_mb = int(value.lstrip(), 0)
    except ValueError:
        raise InvalidPartitionSize(
            "-partition-size must be followed by a positive integer"
        ) from None
    if size_mb < 0:
        raise InvalidPartitionSize(
            "-partition-size must be followed by a positive integer"
        )
    if size_mb < MIN_PARTITION_MB or size_mb > MAX_PARTITION_MB:
        raise InvalidPartitionSize(
            f"partition-size ({size_mb}) must be between "
            f"{MIN_PARTITION_MB}MB and {MAX_PARTITION_MB}MB"
        )
    return mb_to_bytes(size_mb)


def adjust_partition_size(
    description: str,
    image_bytes: int,
    default_bytes: int,
    warn: bool,
) -> int:
    """Grow ``default_bytes`` to fit an existing image, never shrink it."""
    if image_bytes <= default_bytes:
        return default_bytes

    image_mb = round_up_to_mb(image_bytes)
    default_mb = round_up_to_mb(default_bytes)
    if image_mb > default_mb:
        detail = f"({image_mb} MB > {default_mb} MB)"
    else:
        detail = f"({image_bytes} bytes > {default_bytes} bytes)"

    if warn:
        logger.warning(
            "%s partition size adjusted to match image file %s",
            description, detail,
        )
    return mb_to_bytes(image_mb)


class PartitionSizer:
    def __init__(
        self,
        device: LocatedDevice,
        options: OptionSet,
        default_size: Optional[str] = None,
    ):
        self.device = device
        self.options = options
        # Store/environment default, used only when no option was supplied.
        self.default_size = default_size

    def default_bytes(self) -> int:
        value = self.options.partition_size or self.default_size
        if value:
            return parse_partition_size(value)
        return mb_to_bytes(DEFAULT_PARTITION_MB)

    def image_path(self, slot: ImageSlot) -> Optional[Path]:
        """Image that will actually be used for ``slot``: option, then device."""
        forced = self.options.forced_path(slot)
        if forced is not None:
            return Path(forced)
        return self.device.descriptor.image_path_for_slot(slot)

    def system_size(self, default: int) -> int:
        forced = self.options.forced_path(ImageSlot.SYSTEM_INIT)
        if forced is not None:
            image_bytes = (
                os.path.getsize(forced) if os.path.exists(forced) else 0
            )
        else:
            image_bytes = (
                self.device.descriptor.image_size_for_slot(ImageSlot.SYSTEM_INIT)
                or 0
            )
        return adjust_partition_size(
            "system", image_bytes, default, self.device.in_build
        )

    def data_size(self, default: int) -> int:
        data_path = self.image_path(ImageSlot.USER_DATA_RUNTIME)
        if (
            data_path is None
            or not os.path.exists(data_path)
            or self.options.wipe_data
        ):
            data_path = self.image_path(ImageSlot.USER_DATA_INIT)
        if data_path is None or not os.path.exists(data_path):
            return default
        return adjust_partition_size(
            "data", os.path.getsize(data_path), default, self.device.in_build
        )

    def apply(self, hardware: HardwareConfig) -> HardwareConfig:
        default = self.default_bytes()
        hardware.system_partition_size = self.system_size(default)
        hardware.data_partition_size = self.data_size(default)
        logger.debug(
            "partition sizes: system=%d data=%d",
            hardware.system_partition_size, hardware.data_partition_size,
        )
        return hardware
