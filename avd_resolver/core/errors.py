"""Fatal resolution errors. The CLI maps each one to a process exit status."""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for conditions that abort startup resolution."""

    exit_code: int = 1

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class OptionError(ResolutionError):
    pass


class ConflictingLegacyOptions(OptionError):
    pass


class UnknownDevice(ResolutionError):
    pass


class InvalidBuildEnvironment(ResolutionError):
    exit_code = 2


class DeviceNotFound(ResolutionError):
    exit_code = 2


class MissingRequiredImage(ResolutionError):
    pass


class InvalidPartitionSize(ResolutionError):
    pass


class UnknownSkin(ResolutionError):
    pass
