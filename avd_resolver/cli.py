"""CLI entry point for avd-resolver."""

from __future__ import annotations

import logging
import os
import sqlite3
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

import avd_resolver
from avd_resolver.core.errors import ResolutionError
from avd_resolver.core.models import ImageSlot, OptionSet
from avd_resolver.data.store import CONFIG_KEYS, DataStore

app = typer.Typer(
    name="avd-resolver",
    help="Resolve disk images, partition sizes and display geometry for a virtual device.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

_ENV_VARS = {
    "avd_home": "ANDROID_AVD_HOME",
    "sdk_root": "ANDROID_SDK_ROOT",
    "partition_size": "AVD_RESOLVER_PARTITION_SIZE",
}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _open_store() -> DataStore:
    return DataStore()


def _resolve_setting(flag: Optional[str], key: str) -> Optional[str]:
    """Resolve a setting from CLI flag → env var → config store."""
    if flag:
        return flag
    env_value = os.environ.get(_ENV_VARS[key])
    if env_value:
        return env_value
    try:
        store = _open_store()
        value = store.get_config(key)
        store.close()
        return value
    except (OSError, sqlite3.Error):
        logger.debug("config store unavailable", exc_info=True)
        return None


def _resolve_app_dir(app_dir: Optional[str], sdk_root: Optional[str]) -> Path:
    if app_dir:
        return Path(app_dir)
    if sdk_root:
        return Path(sdk_root) / "tools"
    return Path(sys.argv[0]).resolve().parent


def _fail(error: ResolutionError) -> None:
    err_console.print(f"[red]Error:[/] {escape(str(error))}")
    raise typer.Exit(error.exit_code)


@app.command()
def resolve(
    avd: Optional[str] = typer.Option(
        None, "--avd", help="Name of the virtual device to use"
    ),
    sysdir: Optional[str] = typer.Option(
        None, "--sysdir", help="Directory holding the system images"
    ),
    system: Optional[str] = typer.Option(
        None, "--system", help="Initial system image file"
    ),
    image: Optional[str] = typer.Option(
        None, "--image", help="Obsolete alias of --system"
    ),
    kernel: Optional[str] = typer.Option(None, "--kernel", help="Kernel image"),
    ramdisk: Optional[str] = typer.Option(None, "--ramdisk", help="Ramdisk image"),
    data: Optional[str] = typer.Option(None, "--data", help="User data image"),
    datadir: Optional[str] = typer.Option(
        None, "--datadir", help="Directory holding the writable images"
    ),
    cache: Optional[str] = typer.Option(None, "--cache", help="Cache partition image"),
    sdcard: Optional[str] = typer.Option(None, "--sdcard", help="SD card image"),
    snapshot_storage: Optional[str] = typer.Option(
        None, "--snapshot-storage", help="Snapshot storage image"
    ),
    partition_size: Optional[str] = typer.Option(
        None, "--partition-size", help="System/data partition size in MB"
    ),
    skin: Optional[str] = typer.Option(
        None, "--skin", help="Skin name or WIDTHxHEIGHT[xDEPTH]"
    ),
    skin_dir: Optional[str] = typer.Option(
        None, "--skin-dir", help="Directory to search for skins"
    ),
    no_skin: bool = typer.Option(False, "--no-skin", help="Don't use any skin"),
    wipe_data: bool = typer.Option(
        False, "--wipe-data", help="Reset the user data image"
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the cache partition"),
    no_snapshot_storage: bool = typer.Option(
        False, "--no-snapshot-storage", help="Don't mount a snapshot storage image"
    ),
    avd_home: Optional[str] = typer.Option(
        None, "--avd-home", help="Directory holding <name>.ini device files"
    ),
    sdk_root: Optional[str] = typer.Option(
        None, "--sdk-root", help="SDK installation root"
    ),
    app_dir: Optional[str] = typer.Option(
        None, "--app-dir", help="Program directory used for SDK autodetection"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the hardware configuration to this file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Trace each resolution step"),
) -> None:
    """Resolve the startup hardware configuration of a virtual device."""
    from avd_resolver.core.pipeline import resolve_startup_config
    from avd_resolver.devices.registry import AvdRegistry

    _setup_logging(verbose)

    options = OptionSet(
        sysdir=sysdir,
        system=system,
        image=image,
        kernel=kernel,
        ramdisk=ramdisk,
        data=data,
        datadir=datadir,
        cache=cache,
        sdcard=sdcard,
        snapshot_storage=snapshot_storage,
        partition_size=partition_size,
        avd=avd,
        skin=skin,
        skin_dir=skin_dir,
        no_skin=no_skin,
        wipe_data=wipe_data,
        no_cache=no_cache,
        no_snapshot_storage=no_snapshot_storage,
    )

    resolved_home = _resolve_setting(avd_home, "avd_home")
    resolved_sdk = _resolve_setting(sdk_root, "sdk_root")
    registry = AvdRegistry(
        Path(resolved_home) if resolved_home else None,
        Path(resolved_sdk) if resolved_sdk else None,
    )

    try:
        result = resolve_startup_config(
            options,
            registry,
            _resolve_app_dir(app_dir, resolved_sdk),
            default_partition_size=_resolve_setting(None, "partition_size"),
        )
    except ResolutionError as e:
        _fail(e)
        return

    hardware = result.hardware
    if output:
        with open(output, "w") as f:
            f.write(hardware.as_ini())
        console.print(f"[green]Hardware configuration saved to: {output}[/]")
        return

    info = result.device.descriptor.get_info()
    table = Table(title=f"Virtual device: {info.name} ({result.device.source.value})")
    table.add_column("Slot", style="cyan")
    table.add_column("Path", style="green")
    for slot in ImageSlot:
        path = hardware.path_for(slot)
        table.add_row(slot.value, str(path) if path else "[dim](unset)[/]")
    console.print(table)

    console.print(
        f"System partition: {hardware.system_partition_size} bytes\n"
        f"Data partition:   {hardware.data_partition_size} bytes\n"
        f"LCD:              {hardware.lcd_width}x{hardware.lcd_height}"
        f"x{hardware.lcd_depth}\n"
        f"Skin:             {escape(result.skin.name)}"
        + (f" ({result.skin.base_path})" if result.skin.base_path else "")
    )


@app.command("list-avds")
def list_avds(
    avd_home: Optional[str] = typer.Option(
        None, "--avd-home", help="Directory holding <name>.ini device files"
    ),
) -> None:
    """List the virtual devices found in the AVD home."""
    from avd_resolver.devices.registry import AvdRegistry

    resolved_home = _resolve_setting(avd_home, "avd_home")
    registry = AvdRegistry(Path(resolved_home) if resolved_home else None)
    names = registry.list_devices()
    if not names:
        console.print(f"[yellow]No virtual devices found in {registry.avd_home}.[/]")
        raise typer.Exit(0)

    table = Table(title="Virtual Devices")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="green")
    for name in names:
        table.add_row(name, str(registry.content_path(name) or "(missing)"))
    console.print(table)


@app.command("skin")
def show_skin(
    name: Optional[str] = typer.Argument(
        None, help="Skin name, alias, or WIDTHxHEIGHT[xDEPTH]"
    ),
    skin_dir: Optional[str] = typer.Option(
        None, "--skin-dir", help="Directory to search for skins"
    ),
) -> None:
    """Show the display geometry a skin would apply."""
    from avd_resolver.core.models import HardwareConfig
    from avd_resolver.core.skin import SkinConfigMerger

    _setup_logging(False)
    merger = SkinConfigMerger(skin_dir)
    try:
        result = merger.load(name)
    except ResolutionError as e:
        _fail(e)
        return
    hardware = merger.merge(result, HardwareConfig())

    table = Table(title=f"Skin: {escape(result.name)}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Assets", str(result.base_path) if result.base_path else "(none)")
    table.add_row(
        "LCD", f"{hardware.lcd_width}x{hardware.lcd_height}x{hardware.lcd_depth}"
    )
    table.add_row("Network speed", result.network_speed or "(default)")
    table.add_row("Network delay", result.network_delay or "(default)")
    console.print(table)


@app.command()
def config(
    action: str = typer.Argument(
        "get", help="Action: get, set or unset"
    ),
    key: Optional[str] = typer.Argument(
        None, help=f"Config key ({', '.join(CONFIG_KEYS)})"
    ),
    value: Optional[str] = typer.Argument(
        None, help="Value to set"
    ),
) -> None:
    """View or modify persisted defaults."""
    store = _open_store()

    if action == "get":
        if key:
            val = store.get_config(key)
            if val is not None:
                console.print(f"{key} = {val}")
            else:
                console.print(f"[yellow]{key} is not set[/]")
        else:
            for k in CONFIG_KEYS:
                val = store.get_config(k)
                console.print(f"{k} = {val or '(not set)'}")
    elif action in ("set", "unset"):
        if not key or (action == "set" and value is None):
            console.print(
                f"[red]Usage: avd-resolver config {action} <key>"
                f"{' <value>' if action == 'set' else ''}[/]"
            )
            store.close()
            raise typer.Exit(1)
        if key not in CONFIG_KEYS:
            console.print(
                f"[red]Unknown config key: {key}. "
                f"Valid keys: {', '.join(CONFIG_KEYS)}[/]"
            )
            store.close()
            raise typer.Exit(1)
        if action == "unset":
            store.unset_config(key)
            console.print(f"[green]Unset {key}[/]")
        else:
            if key == "partition_size":
                from avd_resolver.core.partitions import parse_partition_size

                try:
                    parse_partition_size(value)
                except ResolutionError as e:
                    store.close()
                    _fail(e)
            store.set_config(key, value)
            console.print(f"[green]Set {key} = {value}[/]")
    else:
        console.print("[red]Unknown action. Use 'get', 'set' or 'unset'.[/]")
        store.close()
        raise typer.Exit(1)

    store.close()


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"avd-resolver {avd_resolver.__version__}")


if __name__ == "__main__":
    app()
