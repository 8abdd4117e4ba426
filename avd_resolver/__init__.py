"""avd-resolver - startup configuration resolver for virtual devices."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("avd-resolver")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
