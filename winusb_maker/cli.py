"""Thin CLI wrapper for winusb_maker.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from winusb_maker import __version__
from winusb_maker.config import Settings, get_settings, print_settings_json
from winusb_maker.controller import run_media_creation
from winusb_maker.errors import MediaError
from winusb_maker.media.device import DeviceValidationError, check_disk_info
from winusb_maker.resolver import (
    discover_images,
    format_size,
    latest_by_mtime,
    read_mtimes,
)
from winusb_maker.terminal import TtyTerminal
from winusb_maker.tools.diskutil import DiskUtil

app = typer.Typer(
    name="winusb",
    help="Windows USB Maker - create bootable Windows installer USB sticks on macOS",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def print_error(message: str) -> None:
    """Print the single diagnostic line for a failed run."""
    err_console.print(
        f"ERROR: {message}", style="red", markup=False, highlight=False, soft_wrap=True
    )


def print_json(data: object) -> None:
    """Print JSON unwrapped and without markup processing."""
    console.print(json.dumps(data, indent=2), soft_wrap=True, markup=False)


def load_settings() -> Settings:
    """Load settings, turning invalid configuration into a single error line."""
    try:
        return get_settings()
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        print_error(f"Invalid configuration: {problems}")
        raise typer.Exit(code=1) from None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"winusb-maker version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Windows USB Maker - create bootable Windows installer USB sticks on macOS."""


@app.command()
def create(
    iso: Annotated[
        Path | None,
        typer.Option("--iso", "-i", help="ISO image to write (overrides ISO_PATH)"),
    ] = None,
    disk: Annotated[
        str | None,
        typer.Option(
            "--disk", "-d", help="Target disk, e.g. /dev/disk4 (overrides USB_DISK)"
        ),
    ] = None,
    auto: Annotated[
        bool,
        typer.Option(
            "--auto", "-a", help="Use the newest ISO and the only external disk"
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Erase a USB disk and turn it into a Windows installer.

    The selected disk is PERMANENTLY ERASED. Confirmation is always asked
    on the terminal, even when both the ISO and the disk are given.
    """
    settings = load_settings()
    updates: dict[str, object] = {}
    if iso is not None:
        updates["iso_path"] = iso
    if disk is not None:
        updates["usb_disk"] = disk
    if auto:
        updates["auto"] = True
    if verbose:
        updates["log_level"] = "DEBUG"
    if updates:
        settings = settings.model_copy(update=updates)

    configure_logging(settings.log_level)

    try:
        result = run_media_creation(settings, terminal=TtyTerminal())
    except MediaError as e:
        print_error(e.message)
        raise typer.Exit(code=1) from None

    for warning in result.warnings:
        err_console.print(f"WARNING: {warning}", style="yellow", markup=False)
    console.print("[green]✓ Windows installer USB is ready[/green]")
    console.print(f"  ISO:    {result.image_path}")
    console.print(f"  Disk:   {result.device_id}")
    console.print(f"  Method: {result.plan.value}")


@app.command()
def devices(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List external physical disks and whether they can be erased."""
    settings = load_settings()
    diskutil = DiskUtil(use_sudo=settings.use_sudo)

    try:
        device_ids = diskutil.list_external_physical()
    except MediaError as e:
        print_error(e.message)
        raise typer.Exit(code=1) from None

    rows: list[dict[str, object]] = []
    info_sizes: dict[str, int | None] = {}
    for device_id in device_ids:
        row: dict[str, object] = {"identifier": device_id}
        try:
            info = diskutil.info(device_id)
        except MediaError as e:
            row.update(eligible=False, reason=e.message)
            rows.append(row)
            continue
        info_sizes[device_id] = info.size_bytes
        row.update(
            size_bytes=info.size_bytes,
            name=info.display_name,
            bus=info.bus_protocol,
        )
        try:
            check_disk_info(device_id, info)
            row.update(eligible=True, reason=None)
        except DeviceValidationError as e:
            row.update(eligible=False, reason=e.message)
        rows.append(row)

    if json_output:
        print_json(rows)
        return

    if not rows:
        console.print("[yellow]No external disks detected[/yellow]")
        return

    console.print(f"[bold]Found {len(rows)} external disk(s):[/bold]")
    for row in rows:
        color = "green" if row["eligible"] else "red"
        size = format_size(info_sizes.get(str(row["identifier"])))
        name = row.get("name") or "media"
        console.print(f"  [{color}]{row['identifier']}[/{color}]  {size}  {name}")
        if row["reason"]:
            console.print(f"    {row['reason']}", markup=False)


@app.command()
def images(
    directory: Annotated[
        Path | None,
        typer.Option("--dir", help="Directory to scan (default: ~/Downloads)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List ISO images that `create` would offer."""
    scan_dir = directory or load_settings().downloads_dir
    candidates = discover_images(scan_dir)
    mtimes = read_mtimes(candidates)
    latest = latest_by_mtime(candidates, mtimes)

    if json_output:
        output = [
            {
                "path": str(path),
                "size_bytes": path.stat().st_size if path in mtimes else None,
                "latest": path == latest,
            }
            for path in candidates
        ]
        print_json(output)
        return

    if not candidates:
        console.print(f"[yellow]No ISO images found in {scan_dir}[/yellow]")
        return

    console.print(f"[bold]Found {len(candidates)} ISO image(s) in {scan_dir}:[/bold]")
    for path in candidates:
        marker = " [green](latest)[/green]" if path == latest else ""
        console.print(f"  {path.name}{marker}")


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings: Settings = load_settings()
    if json_output:
        console.print(print_settings_json(settings), soft_wrap=True, markup=False)
        return

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Inputs:[/bold]")
    console.print(f"  ISO path:            {settings.iso_path or '(discover)'}")
    console.print(f"  USB disk:            {settings.usb_disk or '(choose)'}")
    console.print(f"  Auto mode:           {settings.auto}")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Downloads directory: {settings.downloads_dir}")
    console.print(f"  Volumes root:        {settings.volumes_root}")
    console.print()
    console.print("[bold]Media:[/bold]")
    console.print(f"  Volume label:        {settings.volume_label}")
    console.print(f"  Split size (MiB):    {settings.split_size_mib}")
    console.print(f"  Min image bytes:     {settings.min_image_bytes}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Use sudo:            {settings.use_sudo}")
    console.print(f"  Log level:           {settings.log_level}")


if __name__ == "__main__":
    app()
