"""Startup pipeline: normalize → locate → images → partitions → skin."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from avd_resolver.core.images import ImagePathResolver
from avd_resolver.core.locator import DeviceLocator
from avd_resolver.core.models import HardwareConfig, LocatedDevice, OptionSet
from avd_resolver.core.options import normalize_options
from avd_resolver.core.partitions import PartitionSizer
from avd_resolver.core.skin import SkinConfigMerger, SkinResult
from avd_resolver.devices.registry import AvdRegistry

PACKAGE_LOGGER = "avd_resolver"


@dataclass
class StartupConfig:
    options: OptionSet
    device: LocatedDevice
    hardware: HardwareConfig
    skin: SkinResult
    warnings: list[str] = field(default_factory=list)


class _WarningCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


def resolve_startup_config(
    options: OptionSet,
    registry: AvdRegistry,
    app_dir: Path,
    environ: Optional[Mapping[str, str]] = None,
    hardware: Optional[HardwareConfig] = None,
    default_partition_size: Optional[str] = None,
) -> StartupConfig:
    """Run every resolution stage once and return the combined result.

    Raises a ResolutionError subclass on the first fatal condition; nothing
    is partially applied for the caller to clean up.
    """
    collector = _WarningCollector()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.addHandler(collector)
    try:
        options = normalize_options(options)
        device = DeviceLocator(registry, app_dir, environ).locate(options)

        hardware = hardware if hardware is not None else HardwareConfig()
        ImagePathResolver(device.descriptor, options).resolve(hardware)
        PartitionSizer(device, options, default_partition_size).apply(hardware)

        if options.skin:
            skin_name, skin_dir = options.skin, options.skin_dir
        else:
            info = device.descriptor.skin_info()
            skin_name, skin_dir = info.name, info.directory
        merger = SkinConfigMerger(skin_dir)
        skin = merger.load(skin_name)
        merger.merge(skin, hardware)
    finally:
        package_logger.removeHandler(collector)

    return StartupConfig(
        options=options,
        device=device,
        hardware=hardware,
        skin=skin,
        warnings=collector.messages,
    )
