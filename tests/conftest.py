"""Shared test fixtures for avd-resolver tests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from avd_resolver.core.models import ONE_MB, DeviceSource, LocatedDevice
from avd_resolver.data.store import DataStore
from avd_resolver.devices.registry import AvdRegistry
from avd_resolver.devices.sdk import SdkImageDevice


def make_image(path: Path, size: int = 1024) -> Path:
    """Create a sparse file of ``size`` bytes, creating parents as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@dataclass
class SdkLayout:
    root: Path
    app_dir: Path
    images: Path


@pytest.fixture
def sdk_layout(tmp_path) -> SdkLayout:
    """SDK tree with tools/ and one complete platforms/android-8/images."""
    root = tmp_path / "sdk"
    app_dir = root / "tools"
    app_dir.mkdir(parents=True)
    images = root / "platforms" / "android-8" / "images"
    make_image(images / "system.img", 40 * ONE_MB)
    make_image(images / "kernel-qemu")
    make_image(images / "ramdisk.img")
    make_image(images / "userdata.img", 4 * ONE_MB)
    make_image(images / "userdata-qemu.img", 4 * ONE_MB)
    return SdkLayout(root=root, app_dir=app_dir, images=images)


@pytest.fixture
def avd_home(tmp_path, sdk_layout) -> Path:
    """AVD home holding one device, ``pixel``, targeting android-8."""
    home = tmp_path / "avd"
    content = home / "pixel.avd"
    content.mkdir(parents=True)
    (home / "pixel.ini").write_text(
        f"target=android-8\npath={content}\n"
    )
    (content / "config.ini").write_text(
        "image.sysdir.1=platforms/android-8/images/\n"
        "skin.name=HVGA\n"
    )
    make_image(content / "userdata-qemu.img", 8 * ONE_MB)
    return home


@pytest.fixture
def registry(avd_home, sdk_layout) -> AvdRegistry:
    return AvdRegistry(avd_home, sdk_layout.root)


@pytest.fixture
def sdk_device(sdk_layout) -> LocatedDevice:
    descriptor = SdkImageDevice(sdk_layout.images, sdk_layout.images)
    return LocatedDevice(descriptor=descriptor, source=DeviceSource.SDK)


@pytest.fixture
def temp_db(tmp_path):
    """DataStore with a temporary SQLite database."""
    db_path = str(tmp_path / "test.db")
    store = DataStore(db_path=db_path)
    yield store
    store.close()
