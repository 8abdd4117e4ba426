"""Tests for avd_resolver.core.images — ImagePathResolver."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from avd_resolver.core.errors import MissingRequiredImage
from avd_resolver.core.images import ImagePathResolver
from avd_resolver.core.models import HardwareConfig, ImageSlot, OptionSet
from avd_resolver.devices.base import DeviceDescriptor
from tests.conftest import make_image


def _descriptor(paths: dict[ImageSlot, Path | str | None]) -> MagicMock:
    descriptor = MagicMock(spec=DeviceDescriptor)
    descriptor.image_path_for_slot.side_effect = lambda slot: paths.get(slot)
    return descriptor


@pytest.fixture
def base_images(tmp_path) -> dict[ImageSlot, Path]:
    return {
        ImageSlot.KERNEL: make_image(tmp_path / "kernel-qemu"),
        ImageSlot.RAMDISK: make_image(tmp_path / "ramdisk.img"),
        ImageSlot.SYSTEM_INIT: make_image(tmp_path / "system.img"),
    }


class TestResolveSlot:
    def test_descriptor_default_used(self, base_images):
        resolver = ImagePathResolver(_descriptor(base_images), OptionSet())
        assert resolver.resolve_slot(ImageSlot.KERNEL) == base_images[ImageSlot.KERNEL]

    def test_explicit_option_wins(self, tmp_path, base_images):
        custom = make_image(tmp_path / "custom" / "zImage")
        descriptor = _descriptor(base_images)
        resolver = ImagePathResolver(descriptor, OptionSet(kernel=str(custom)))
        assert resolver.resolve_slot(ImageSlot.KERNEL) == custom

    def test_placeholder_option_falls_back(self, base_images):
        resolver = ImagePathResolver(
            _descriptor(base_images), OptionSet(kernel="<init>")
        )
        assert resolver.resolve_slot(ImageSlot.KERNEL) == base_images[ImageSlot.KERNEL]

    def test_empty_option_falls_back(self, base_images):
        resolver = ImagePathResolver(_descriptor(base_images), OptionSet(ramdisk=""))
        assert resolver.resolve_slot(ImageSlot.RAMDISK) == base_images[ImageSlot.RAMDISK]

    def test_forced_required_image_must_exist(self, tmp_path, base_images):
        resolver = ImagePathResolver(
            _descriptor(base_images),
            OptionSet(system=str(tmp_path / "nope.img")),
        )
        with pytest.raises(MissingRequiredImage, match="Cannot find system image"):
            resolver.resolve_slot(ImageSlot.SYSTEM_INIT)

    def test_forced_optional_image_not_checked(self, tmp_path, base_images):
        missing = tmp_path / "sdcard.img"
        resolver = ImagePathResolver(
            _descriptor(base_images), OptionSet(sdcard=str(missing))
        )
        assert resolver.resolve_slot(ImageSlot.SD_CARD) == missing

    def test_required_slot_unresolved(self):
        resolver = ImagePathResolver(_descriptor({}), OptionSet())
        with pytest.raises(MissingRequiredImage, match="kernel"):
            resolver.resolve_slot(ImageSlot.KERNEL)

    def test_required_slot_placeholder_from_descriptor(self, base_images):
        images = dict(base_images)
        images[ImageSlot.RAMDISK] = "<init>"
        resolver = ImagePathResolver(_descriptor(images), OptionSet())
        with pytest.raises(MissingRequiredImage, match="ramdisk"):
            resolver.resolve_slot(ImageSlot.RAMDISK)

    def test_required_slot_nonexistent_default(self, tmp_path, base_images):
        images = dict(base_images)
        images[ImageSlot.SYSTEM_INIT] = tmp_path / "gone.img"
        resolver = ImagePathResolver(_descriptor(images), OptionSet())
        with pytest.raises(MissingRequiredImage, match="gone.img"):
            resolver.resolve_slot(ImageSlot.SYSTEM_INIT)

    def test_optional_slot_unresolved_is_none(self, base_images):
        resolver = ImagePathResolver(_descriptor(base_images), OptionSet())
        assert resolver.resolve_slot(ImageSlot.CACHE) is None


class TestResolve:
    def test_fills_every_slot(self, tmp_path, base_images):
        images = dict(base_images)
        images[ImageSlot.CACHE] = tmp_path / "cache.img"
        hardware = ImagePathResolver(_descriptor(images), OptionSet()).resolve(
            HardwareConfig()
        )
        assert set(hardware.paths) == set(ImageSlot)
        assert hardware.path_for(ImageSlot.CACHE) == tmp_path / "cache.img"
        assert hardware.path_for(ImageSlot.SD_CARD) is None
        for slot in ImageSlot:
            if slot.required:
                assert hardware.path_for(slot).exists()

    def test_runtime_data_falls_back_to_initial(self, tmp_path, base_images):
        images = dict(base_images)
        images[ImageSlot.USER_DATA_INIT] = make_image(tmp_path / "userdata.img")
        hardware = ImagePathResolver(_descriptor(images), OptionSet()).resolve(
            HardwareConfig()
        )
        assert hardware.path_for(ImageSlot.USER_DATA_RUNTIME) == images[
            ImageSlot.USER_DATA_INIT
        ]

    def test_data_option_forces_runtime_slot(self, tmp_path, base_images):
        data = tmp_path / "mine.img"
        hardware = ImagePathResolver(
            _descriptor(base_images), OptionSet(data=str(data))
        ).resolve(HardwareConfig())
        assert hardware.path_for(ImageSlot.USER_DATA_RUNTIME) == data
