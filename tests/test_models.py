"""Tests for avd_resolver.core.models."""

from __future__ import annotations

from pathlib import Path

import pytest

from avd_resolver.core.models import (
    UNSET_PATH,
    DeviceParams,
    HardwareConfig,
    ImageSlot,
    OptionSet,
    is_valid_disk_path,
)


class TestImageSlot:
    def test_required_slots(self):
        required = {slot for slot in ImageSlot if slot.required}
        assert required == {
            ImageSlot.KERNEL, ImageSlot.RAMDISK, ImageSlot.SYSTEM_INIT,
        }

    def test_option_names_exist_on_option_set(self):
        options = OptionSet()
        for slot in ImageSlot:
            if slot.option_name is not None:
                assert hasattr(options, slot.option_name)

    def test_unforceable_slots(self):
        assert ImageSlot.SYSTEM_RUNTIME.option_name is None
        assert ImageSlot.USER_DATA_INIT.option_name is None


class TestIsValidDiskPath:
    @pytest.mark.parametrize("value", [None, "", UNSET_PATH])
    def test_invalid(self, value):
        assert is_valid_disk_path(value) is False

    @pytest.mark.parametrize("value", ["/a/b.img", Path("/x"), "relative.img"])
    def test_valid(self, value):
        assert is_valid_disk_path(value) is True


class TestOptionSet:
    def test_forced_path(self):
        options = OptionSet(kernel="/k", ramdisk=UNSET_PATH, cache="")
        assert options.forced_path(ImageSlot.KERNEL) == "/k"
        assert options.forced_path(ImageSlot.RAMDISK) is None
        assert options.forced_path(ImageSlot.CACHE) is None
        assert options.forced_path(ImageSlot.SYSTEM_RUNTIME) is None

    def test_frozen(self):
        with pytest.raises(AttributeError):
            OptionSet().avd = "x"


class TestDeviceParams:
    def test_wipe_data_also_wipes_cache(self):
        params = DeviceParams.from_options(OptionSet(wipe_data=True))
        assert params.wipe_data is True
        assert params.wipe_cache is True

    def test_flags(self):
        params = DeviceParams.from_options(
            OptionSet(no_cache=True, no_snapshot_storage=True)
        )
        assert params.no_cache is True
        assert params.no_snapshots is True
        assert params.wipe_cache is False


class TestHardwareConfig:
    def test_defaults(self):
        hardware = HardwareConfig()
        assert all(path is None for path in hardware.paths.values())
        assert hardware.system_partition_size == 66 * 1024 * 1024
        assert (hardware.lcd_width, hardware.lcd_height, hardware.lcd_depth) == (
            320, 640, 16,
        )

    def test_instances_do_not_share_paths(self):
        a, b = HardwareConfig(), HardwareConfig()
        a.paths[ImageSlot.KERNEL] = Path("/k")
        assert b.paths[ImageSlot.KERNEL] is None

    def test_as_ini_uses_placeholder_for_unset(self):
        hardware = HardwareConfig()
        hardware.paths[ImageSlot.KERNEL] = Path("/img/kernel-qemu")
        text = hardware.as_ini()
        assert "kernel.path = /img/kernel-qemu\n" in text
        assert f"hw.sdCard.path = {UNSET_PATH}\n" in text
        assert "hw.lcd.depth = 16\n" in text
