"""Device location: named AVD, build tree, or SDK autodetection."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Mapping, Optional

from avd_resolver.core.errors import (
    DeviceNotFound,
    InvalidBuildEnvironment,
    MissingRequiredImage,
)
from avd_resolver.core.models import (
    DeviceParams,
    DeviceSource,
    ImageSlot,
    LocatedDevice,
    OptionSet,
)
from avd_resolver.devices import sdk
from avd_resolver.devices.build import BuildTreeDevice
from avd_resolver.devices.registry import AvdRegistry
from avd_resolver.devices.sdk import SdkImageDevice

logger = logging.getLogger(__name__)

PRODUCT_OUT_VAR = "ANDROID_PRODUCT_OUT"
BUILD_ROOT_DEPTH = 4

# Relative to the program directory, oldest SDK layouts last.
SDK_SEARCH_PATHS = (
    "",
    "lib/images",
    "../platforms/android-1.1/images",
)
PLATFORMS_DIR = "../platforms"

_NO_SYSDIR_HELP = (
    "You did not specify a virtual device name, and the system\n"
    "directory could not be found.\n\n"
    "If you are an SDK user, please use '-avd <name>' to start a given\n"
    "virtual device (see 'avd-resolver list-avds').\n\n"
    "Otherwise, pass -sysdir <path> pointing at a directory of disk images."
)

_NO_USERDATA_HELP = (
    "You did not provide the name of a virtual device with the\n"
    "'-avd <name>' option.\n\n"
    "If you *really* want to *NOT* run an AVD, consider using '-data <file>'\n"
    "to specify a data partition image file."
)


def find_sdk_image_dir(app_dir: Path, file_name: str) -> Optional[Path]:
    """Return the directory containing ``file_name`` in an SDK layout.

    The fixed historical locations are probed first, then every
    ``platforms/<version>/images`` directory in sorted order.
    """
    for rel in SDK_SEARCH_PATHS:
        candidate = app_dir / rel if rel else app_dir
        if (candidate / file_name).exists():
            return candidate

    platforms = app_dir / PLATFORMS_DIR
    if not platforms.is_dir():
        return None
    for child in sorted(platforms.iterdir()):
        images = child / "images"
        if (images / file_name).exists():
            return images
    return None


class DeviceLocator:
    """Produces exactly one LocatedDevice or raises a ResolutionError."""

    def __init__(
        self,
        registry: AvdRegistry,
        app_dir: Path,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.registry = registry
        self.app_dir = Path(app_dir)
        self.environ = os.environ if environ is None else environ

    def locate(self, options: OptionSet) -> LocatedDevice:
        params = DeviceParams.from_options(options)
        strategies: tuple[
            Callable[[OptionSet, DeviceParams], Optional[LocatedDevice]], ...
        ] = (
            self._named_device,
            self._build_tree_device,
            self._sdk_device,
        )
        for strategy in strategies:
            located = strategy(options, params)
            if located is not None:
                return located
        raise DeviceNotFound(_NO_SYSDIR_HELP)

    # ── Strategies ───────────────────────────────────────────────────

    def _named_device(
        self, options: OptionSet, params: DeviceParams
    ) -> Optional[LocatedDevice]:
        if options.avd is None:
            return None
        descriptor = self.registry.get(options.avd, params)
        return LocatedDevice(descriptor=descriptor, source=DeviceSource.NAMED)

    def _build_tree_device(
        self, options: OptionSet, params: DeviceParams
    ) -> Optional[LocatedDevice]:
        out = self.environ.get(PRODUCT_OUT_VAR)
        if not out:
            return None

        if not os.path.exists(out):
            raise InvalidBuildEnvironment(
                f"Can't access {PRODUCT_OUT_VAR} as '{out}'\n"
                "You need to build the Android system before launching the "
                "emulator"
            )

        build_out = Path(out)
        parents = Path(os.path.abspath(out)).parents
        build_root = None
        if len(parents) >= BUILD_ROOT_DEPTH:
            build_root = parents[BUILD_ROOT_DEPTH - 1]
        if build_root is None or not build_root.exists():
            raise InvalidBuildEnvironment(
                f"Can't find the Android build root from '{out}'\n"
                f"Please check the definition of the {PRODUCT_OUT_VAR} "
                "variable.\nIt should point to your product-specific build "
                "output directory."
            )
        logger.debug("found Android build root: %s", build_root)
        logger.debug("found Android build out:  %s", build_out)
        return LocatedDevice(
            descriptor=BuildTreeDevice(build_root, build_out, params),
            source=DeviceSource.IN_BUILD,
            build_root=build_root,
            build_out=build_out,
        )

    def _sdk_device(
        self, options: OptionSet, params: DeviceParams
    ) -> Optional[LocatedDevice]:
        if options.sysdir:
            sysdir = Path(options.sysdir)
        else:
            found = find_sdk_image_dir(self.app_dir, sdk.SYSTEM_FILE)
            if found is None:
                raise DeviceNotFound(_NO_SYSDIR_HELP)
            sysdir = found
            logger.debug("autoconfig: -sysdir %s", sysdir)

        images: dict[ImageSlot, Path] = {}
        for slot, option, file_name in (
            (ImageSlot.SYSTEM_INIT, "-system", sdk.SYSTEM_FILE),
            (ImageSlot.KERNEL, "-kernel", sdk.KERNEL_FILE),
            (ImageSlot.RAMDISK, "-ramdisk", sdk.RAMDISK_FILE),
        ):
            if options.forced_path(slot):
                continue
            path = sysdir / file_name
            if not path.exists():
                raise MissingRequiredImage(
                    f"Your system directory is missing the '{file_name}' "
                    f"image file.\nPlease specify one with the "
                    f"'{option} <filepath>' option",
                    exit_code=2,
                )
            images[slot] = path
            logger.debug("autoconfig: %s %s", option, path)

        if options.datadir:
            datadir = Path(options.datadir)
        else:
            datadir = sysdir
            logger.debug("autoconfig: -datadir %s", datadir)

        if not options.forced_path(ImageSlot.USER_DATA_RUNTIME):
            data = datadir / sdk.USERDATA_FILE
            if not data.exists():
                raise DeviceNotFound(_NO_USERDATA_HELP)
            images[ImageSlot.USER_DATA_RUNTIME] = data
            logger.debug("autoconfig: -data %s", data)

        for slot, file_name, disabled in (
            (ImageSlot.SD_CARD, sdk.SDCARD_FILE, False),
            (ImageSlot.SNAPSHOTS, sdk.SNAPSHOTS_FILE, params.no_snapshots),
        ):
            candidate = datadir / file_name
            if not disabled and candidate.exists():
                images[slot] = candidate
                logger.debug("autoconfig: %s %s", slot.value, candidate)

        return LocatedDevice(
            descriptor=SdkImageDevice(sysdir, datadir, images, params),
            source=DeviceSource.SDK,
        )
