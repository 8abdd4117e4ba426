"""Skin loading and LCD geometry merging."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from avd_resolver.core.config_tree import (
    ConfigNode,
    ConfigParseError,
    load_config_file,
    parse_config,
)
from avd_resolver.core.errors import UnknownSkin
from avd_resolver.core.models import HardwareConfig

logger = logging.getLogger(__name__)

BUILTIN_SKIN_NAME = "<builtin>"
LAYOUT_FILE = "layout"

SKIN_ALIASES = {
    "QVGA-L": "320x240",
    "QVGA-P": "240x320",
    "HVGA-L": "480x320",
    "HVGA-P": "320x480",
    "QVGA": "320x240",
    "HVGA": "320x480",
}

_GEOMETRY_RE = re.compile(r"(\d+)x(\d+)(?:x(\d+))?")

# Display lookup order: version 1 schema, then version 2.
DISPLAY_PATHS = (
    ("display",),
    ("parts", "device", "display"),
)

VALID_DEPTHS = (16, 32)
DEFAULT_DEPTH = 16

BUILTIN_LAYOUT = """\
parts {
    device {
        display {
            width   320
            height  480
            x       0
            y       0
        }
    }
}

layouts {
    portrait {
        width     320
        height    480
        color     0x000000
        event     EV_SW:0:1

        part1 {
            name    device
            x       0
            y       0
        }
    }
    landscape {
        width     480
        height    320
        color     0x000000
        event     EV_SW:0:0

        part1 {
            name    device
            x       0
            y       320
            rotation 3
        }
    }
}
"""


@dataclass
class SkinResult:
    name: str
    tree: ConfigNode
    # None when the skin has no asset directory (built-in or geometry skins).
    base_path: Optional[Path] = None
    network_speed: Optional[str] = None
    network_delay: Optional[str] = None

    @property
    def display(self) -> Optional[ConfigNode]:
        return find_display_node(self.tree)


def find_display_node(tree: ConfigNode) -> Optional[ConfigNode]:
    for path in DISPLAY_PATHS:
        node = tree.find_path(*path)
        if node is not None:
            return node
    return None


def parse_geometry(name: str) -> Optional[tuple[int, int, int]]:
    """Return (width, height, depth) for names like ``320x240x16``."""
    match = _GEOMETRY_RE.fullmatch(name)
    if match is None:
        return None
    width, height, depth = match.groups()
    return int(width), int(height), int(depth) if depth else DEFAULT_DEPTH


def builtin_skin() -> SkinResult:
    logger.debug("parsing built-in skin layout (%d bytes)", len(BUILTIN_LAYOUT))
    return SkinResult(name=BUILTIN_SKIN_NAME, tree=parse_config(BUILTIN_LAYOUT))


class SkinConfigMerger:
    """Resolves a skin name to a SkinResult and merges its LCD geometry."""

    def __init__(self, skin_dir: Optional[str] = None):
        self.skin_dir = Path(skin_dir) if skin_dir else None

    def resolve_alias(self, name: str) -> str:
        if self.skin_dir is not None:
            if os.path.exists(self.skin_dir / name):
                return name
            logger.debug("there is no '%s' skin in '%s'", name, self.skin_dir)
        for alias, target in SKIN_ALIASES.items():
            if alias.lower() == name.lower():
                logger.debug("skin name '%s' aliased to '%s'", name, target)
                return target
        return name

    def load(self, name: Optional[str]) -> SkinResult:
        if not name or name == BUILTIN_SKIN_NAME:
            result = builtin_skin()
        else:
            name = self.resolve_alias(name)
            strategies: tuple[Callable[[str], Optional[SkinResult]], ...] = (
                self._geometry_skin,
                self._directory_skin,
            )
            result = None
            for strategy in strategies:
                result = strategy(name)
                if result is not None:
                    break
            if result is None:
                result = builtin_skin()

        network = result.tree.find("network")
        if network is not None:
            result.network_speed = network.get_str("speed")
            result.network_delay = network.get_str("delay")
        return result

    def _geometry_skin(self, name: str) -> Optional[SkinResult]:
        geometry = parse_geometry(name)
        if geometry is None:
            return None
        width, height, depth = geometry
        tree = ConfigNode("")
        display = tree.add("display")
        display.add("width", str(width))
        display.add("height", str(height))
        display.add("bpp", str(depth))
        logger.debug(
            "found magic skin width=%d height=%d bpp=%d", width, height, depth
        )
        return SkinResult(name=name, tree=tree)

    def _directory_skin(self, name: str) -> Optional[SkinResult]:
        if self.skin_dir is None:
            raise UnknownSkin(f"unknown skin name '{name}'")
        layout = self.skin_dir / name / LAYOUT_FILE
        logger.debug("trying to load skin file '%s'", layout)
        try:
            tree = load_config_file(layout)
        except (OSError, ConfigParseError) as e:
            logger.warning(
                "could not load skin file '%s', using built-in one (%s)",
                layout, e,
            )
            return None
        return SkinResult(name=name, tree=tree, base_path=self.skin_dir / name)

    def merge(self, skin: SkinResult, hardware: HardwareConfig) -> HardwareConfig:
        """Copy the skin's display geometry into ``hardware``."""
        display = skin.display
        if display is None:
            return hardware

        width = display.get_int("width", hardware.lcd_width)
        height = display.get_int("height", hardware.lcd_height)
        depth = display.get_int("bpp", hardware.lcd_depth)

        if width <= 0 or height <= 0:
            logger.warning(
                "ignoring invalid skin LCD dimensions (%dx%dx%d)",
                width, height, depth,
            )
            return hardware

        # The emulated framebuffer wants sizes that are multiples of 4.
        if (width | height) & 3:
            width = (width + 3) & ~3
            height = (height + 3) & ~3
            logger.warning("adjusting LCD dimensions to (%dx%d)", width, height)

        if depth not in VALID_DEPTHS:
            depth = DEFAULT_DEPTH
            logger.warning("adjusting LCD bit depth to %d", depth)

        hardware.lcd_width = width
        hardware.lcd_height = height
        hardware.lcd_depth = depth
        return hardware
