"""Option normalization: rewrites legacy flag combinations to canonical form."""

from __future__ import annotations

import dataclasses
import logging
import os

from avd_resolver.core.errors import ConflictingLegacyOptions, OptionError
from avd_resolver.core.models import OptionSet

logger = logging.getLogger(__name__)

NO_SKIN_GEOMETRY = "320x480"


def normalize_options(options: OptionSet) -> OptionSet:
    """Return the canonical form of ``options``.

    Older launchers took ``-system <dir> -image <file>`` where the current
    surface takes ``-sysdir <dir> -system <file>``; both spellings are
    accepted and rewritten here. Already-canonical options come back equal.
    """
    if options.image is not None:
        if options.system is not None and options.sysdir is not None:
            raise ConflictingLegacyOptions(
                "You can't use -sysdir, -system and -image at the same time.\n"
                "You should probably use '-sysdir <path> -system <file>'.",
                exit_code=2,
            )
        logger.warning(
            "Please note that -image is obsolete and that -system is now used "
            "to point to the system image. Next time, try using "
            "'-sysdir <path> -system <file>' instead."
        )
        options = dataclasses.replace(
            options,
            sysdir=options.system,
            system=options.image,
            image=None,
        )
    elif options.system is not None and os.path.isdir(options.system):
        if options.sysdir is not None:
            raise ConflictingLegacyOptions(
                "Option -system should now be followed by a file path, not a "
                "directory one.\nPlease use '-sysdir <path>' to point to the "
                "system directory."
            )
        logger.warning(
            "Please note that the -system option should now be used to point "
            "to the initial system image (like the obsolete -image option). "
            "To point to the system directory please now use '-sysdir <path>' "
            "instead."
        )
        options = dataclasses.replace(
            options, sysdir=options.system, system=None
        )

    if options.no_skin:
        options = dataclasses.replace(
            options, skin=NO_SKIN_GEOMETRY, skin_dir=None
        )
    if options.skin_dir and not options.skin:
        raise OptionError(
            "the -skin-dir <path> option requires a -skin <name> option"
        )
    return options
