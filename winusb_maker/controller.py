"""Run controller: the single top-level media creation sequence.

resolve inputs -> size sanity check -> confirm -> erase -> mount ISO
-> copy/split -> flush, detach, eject

Any MediaError aborts the remaining steps. Teardown steps are
best-effort: their failures become warnings on an otherwise successful
run. If a later step fails once the ISO is mounted, the ISO is still
detached (best-effort) before the error propagates; the target disk is
left as is.
"""

import logging
import os
from dataclasses import dataclass, field

from winusb_maker.config import Settings
from winusb_maker.errors import ConfirmationDeclinedError
from winusb_maker.media.formatter import format_device
from winusb_maker.media.image import ImageMounter
from winusb_maker.media.transfer import transfer_payload
from winusb_maker.resolver import resolve_device, resolve_image
from winusb_maker.terminal import Terminal
from winusb_maker.tools.brew import Homebrew
from winusb_maker.tools.diskutil import DiskUtil
from winusb_maker.tools.hdiutil import HdiUtil
from winusb_maker.tools.rsync import Rsync
from winusb_maker.tools.runner import CommandError, refresh_sudo, require_tools
from winusb_maker.tools.wimlib import Wimlib
from winusb_maker.types import RunResult

logger = logging.getLogger(__name__)

# Tools that must exist before anything is touched; wimlib is optional
REQUIRED_TOOLS = ("diskutil", "hdiutil", "rsync")


@dataclass
class Toolbox:
    """The external collaborators one run talks to."""

    diskutil: DiskUtil
    hdiutil: HdiUtil = field(default_factory=HdiUtil)
    rsync: Rsync = field(default_factory=Rsync)
    wimlib: Wimlib = field(default_factory=Wimlib)
    brew: Homebrew = field(default_factory=Homebrew)
    required_tools: tuple[str, ...] = REQUIRED_TOOLS

    @classmethod
    def from_settings(cls, settings: Settings) -> "Toolbox":
        return cls(diskutil=DiskUtil(use_sudo=settings.use_sudo))


def check_image_size(image_size: int, minimum: int) -> str | None:
    """Return a warning if the ISO is implausibly small for a Windows image."""
    if image_size < minimum:
        return f"ISO looks small ({image_size} bytes)."
    return None


def _teardown(mounter: ImageMounter, diskutil: DiskUtil, device_id: str) -> list[str]:
    warnings: list[str] = []

    logger.info("Finalizing...")
    os.sync()

    try:
        mounter.detach()
    except CommandError as e:
        warnings.append(f"Could not detach ISO: {e.message}")

    try:
        diskutil.eject(device_id)
    except CommandError as e:
        warnings.append(f"Could not eject {device_id}: {e.message}")

    for warning in warnings:
        logger.warning(warning)
    return warnings


def run_media_creation(
    settings: Settings,
    *,
    terminal: Terminal,
    toolbox: Toolbox | None = None,
) -> RunResult:
    """Create a bootable Windows installer USB.

    Args:
        settings: Effective settings (overrides, auto flag, label, ...).
        terminal: Where menus, warnings and the confirmation go.
        toolbox: External tool adapters (defaults built from settings).

    Returns:
        RunResult describing the finished run.

    Raises:
        MediaError: Any fatal condition; the message names the failing step.
    """
    if toolbox is None:
        toolbox = Toolbox.from_settings(settings)
    warnings: list[str] = []

    require_tools(toolbox.required_tools)

    image_path = resolve_image(settings, terminal)
    size_warning = check_image_size(image_path.stat().st_size, settings.min_image_bytes)
    if size_warning:
        logger.warning(size_warning)
        terminal.say(f"WARNING: {size_warning}")
        warnings.append(size_warning)

    device = resolve_device(settings, terminal, toolbox.diskutil)

    logger.info("ISO:  %s", image_path)
    logger.info("DISK: %s", device.identifier)
    if not terminal.confirm(
        f"Erase {device.identifier} and create a Windows installer from "
        f"{image_path}? [y/N]: ",
        default=False,
    ):
        raise ConfirmationDeclinedError(device.identifier)

    if settings.use_sudo:
        refresh_sudo()

    volume, format_warnings = format_device(
        device,
        toolbox.diskutil,
        label=settings.volume_label,
        volumes_root=settings.volumes_root,
    )
    warnings.extend(format_warnings)

    mounter = ImageMounter(toolbox.hdiutil, toolbox.diskutil)
    mount = mounter.mount(image_path)

    try:
        plan = transfer_payload(
            mount.mount_point,
            volume,
            rsync=toolbox.rsync,
            wimlib=toolbox.wimlib,
            brew=toolbox.brew,
            terminal=terminal,
            split_size_mib=settings.split_size_mib,
        )
    except Exception:
        try:
            mounter.detach()
        except CommandError as e:
            logger.warning("Could not detach ISO after failure: %s", e.message)
        raise

    warnings.extend(_teardown(mounter, toolbox.diskutil, device.identifier))
    logger.info("Done. Windows installer USB is ready.")

    return RunResult(
        image_path=image_path,
        device_id=device.identifier,
        volume_path=volume,
        mount_point=mount.mount_point,
        plan=plan,
        warnings=warnings,
    )


__all__ = ["REQUIRED_TOOLS", "Toolbox", "check_image_size", "run_media_creation"]
