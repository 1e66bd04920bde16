"""Resolution of the two run inputs: the ISO image and the target disk.

Both follow the same pattern:
1. An explicit override (ISO_PATH / USB_DISK or CLI flag) wins.
2. In auto mode an unambiguous candidate is picked without asking.
3. Otherwise a numbered menu is shown on the terminal; 0 means
   "let me type it in".

The choice heuristics (latest_by_mtime, pick_auto_device) are pure
functions over candidate lists so they can be tested without a Mac.
"""

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from winusb_maker.config import Settings
from winusb_maker.errors import (
    ImageNotReadableError,
    InvalidSelectionError,
    NoEligibleDeviceError,
    SelectionOutOfRangeError,
    ToolError,
)
from winusb_maker.media.device import validate_device
from winusb_maker.terminal import Terminal
from winusb_maker.tools.diskutil import DiskInfo, DiskUtil
from winusb_maker.types import TargetDevice

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = ".iso"


def discover_images(directory: Path) -> list[Path]:
    """List *.iso files (any case) in ``directory``, sorted by name.

    The sorted order is the scan order used to break mtime ties.
    """
    if not directory.is_dir():
        logger.debug("Image directory does not exist: %s", directory)
        return []
    return sorted(
        path
        for path in directory.iterdir()
        if path.suffix.lower() == IMAGE_SUFFIX and path.is_file()
    )


def latest_by_mtime(
    candidates: Sequence[Path], mtimes: Mapping[Path, float]
) -> Path | None:
    """Pick the candidate with the newest modification time.

    Ties go to the candidate that comes last in ``candidates``. Candidates
    without an entry in ``mtimes`` are skipped.

    Returns:
        The latest candidate, or None if there is none.
    """
    latest: Path | None = None
    latest_mtime = 0.0
    for candidate in candidates:
        mtime = mtimes.get(candidate)
        if mtime is None:
            continue
        if latest is None or mtime >= latest_mtime:
            latest = candidate
            latest_mtime = mtime
    return latest


def read_mtimes(candidates: Sequence[Path]) -> dict[Path, float]:
    """Stat each candidate; unreadable ones are left out."""
    mtimes: dict[Path, float] = {}
    for candidate in candidates:
        try:
            mtimes[candidate] = candidate.stat().st_mtime
        except OSError as e:
            logger.warning("Cannot stat %s: %s", candidate, e)
    return mtimes


def pick_auto_device(candidates: Sequence[str], auto: bool) -> str | None:
    """Return the device to use without prompting, if the choice is unambiguous."""
    if auto and len(candidates) == 1:
        return candidates[0]
    return None


def format_size(size_bytes: int | None) -> str:
    """Human-readable capacity in decimal units, as Finder and diskutil show it."""
    if size_bytes is None:
        return "unknown"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1000:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1000
    return f"{size:.1f} TB"


def parse_selection(answer: str, count: int) -> int:
    """Validate a menu answer.

    Args:
        answer: Raw text typed by the operator.
        count: Number of numbered entries (1..count); 0 is manual entry.

    Returns:
        The selected number, 0 meaning manual entry.

    Raises:
        InvalidSelectionError: Answer is not a number.
        SelectionOutOfRangeError: Number outside 0..count.
    """
    answer = answer.strip()
    if not (answer.isascii() and answer.isdigit()):
        raise InvalidSelectionError(answer)
    selection = int(answer)
    if selection > count:
        raise SelectionOutOfRangeError(selection, count)
    return selection


def _clean_manual_path(raw: str) -> Path:
    # Paths dragged into Terminal arrive quoted or with escaped spaces
    text = raw.strip().strip("'\"").replace("\\ ", " ")
    return Path(text).expanduser()


def check_readable(path: Path) -> Path:
    """Ensure the image path is a readable file.

    Raises:
        ImageNotReadableError: Missing, not a file, or unreadable.
    """
    if not (path.is_file() and os.access(path, os.R_OK)):
        logger.error("ISO not readable: %s", path)
        raise ImageNotReadableError(str(path))
    return path


def _ask_image_path(terminal: Terminal) -> Path:
    return check_readable(_clean_manual_path(terminal.ask("Enter full ISO path: ")))


def resolve_image(settings: Settings, terminal: Terminal) -> Path:
    """Determine which ISO to write.

    Raises:
        ImageNotReadableError: The chosen path cannot be read.
        InvalidSelectionError: Menu answer not a number.
        SelectionOutOfRangeError: Menu answer out of range.
    """
    if settings.iso_path is not None:
        logger.info("Using ISO from override: %s", settings.iso_path)
        return check_readable(settings.iso_path.expanduser())

    candidates = discover_images(settings.downloads_dir)
    if not candidates:
        logger.info("No ISO files found in %s", settings.downloads_dir)
        return _ask_image_path(terminal)

    if settings.auto:
        latest = latest_by_mtime(candidates, read_mtimes(candidates))
        if latest is None:
            raise ImageNotReadableError(str(settings.downloads_dir))
        logger.info("AUTO -> Using latest ISO: %s", latest)
        return check_readable(latest)

    terminal.say("Found ISOs:")
    for number, candidate in enumerate(candidates, start=1):
        terminal.say(f"  {number:2d}) {candidate}")
    terminal.say("   0) Enter a different path")
    selection = parse_selection(
        terminal.ask(f"Select ISO [1-{len(candidates)} or 0]: "), len(candidates)
    )
    if selection == 0:
        return _ask_image_path(terminal)
    return check_readable(candidates[selection - 1])


def _describe_quietly(diskutil: DiskUtil, device_id: str) -> DiskInfo | None:
    try:
        return diskutil.info(device_id)
    except ToolError as e:
        logger.warning("Cannot describe %s: %s", device_id, e.message)
        return None


def resolve_device(
    settings: Settings, terminal: Terminal, diskutil: DiskUtil
) -> TargetDevice:
    """Determine which disk to erase; the result is always validated.

    Raises:
        NoEligibleDeviceError: No external physical disks.
        InvalidSelectionError: Menu answer not a number.
        SelectionOutOfRangeError: Menu answer out of range.
        DeviceValidationError: The chosen disk failed the safety checks.
    """
    if settings.usb_disk:
        logger.info("Using disk from override: %s", settings.usb_disk)
        return validate_device(settings.usb_disk, diskutil)

    candidates = diskutil.list_external_physical()
    if not candidates:
        raise NoEligibleDeviceError()

    picked = pick_auto_device(candidates, settings.auto)
    if picked is not None:
        logger.info("AUTO -> Using %s", picked)
        return validate_device(picked, diskutil)

    terminal.say("External disks:")
    for number, device_id in enumerate(candidates, start=1):
        info = _describe_quietly(diskutil, device_id)
        size = format_size(info.size_bytes if info else None)
        name = (info.display_name if info else None) or "media"
        terminal.say(f"  {number:2d}) {device_id:<12}  {size:<18}  {name}")
    terminal.say("   0) Enter disk id manually")
    selection = parse_selection(
        terminal.ask(
            f"Select target DISK (WILL BE ERASED) [1-{len(candidates)} or 0]: "
        ),
        len(candidates),
    )
    if selection == 0:
        device_id = terminal.ask("Enter /dev/diskN (e.g., /dev/disk4): ").strip()
    else:
        device_id = candidates[selection - 1]
    return validate_device(device_id, diskutil)


__all__ = [
    "IMAGE_SUFFIX",
    "check_readable",
    "discover_images",
    "format_size",
    "latest_by_mtime",
    "parse_selection",
    "pick_auto_device",
    "read_mtimes",
    "resolve_device",
    "resolve_image",
]
