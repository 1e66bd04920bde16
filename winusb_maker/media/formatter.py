"""Erasing the target disk as GPT + FAT32.

FAT32 ("MS-DOS FAT32" to diskutil) is the one filesystem every UEFI
firmware can boot from, which is why install.wim has to be split later.
"""

import logging
from pathlib import Path

from winusb_maker.errors import ToolError
from winusb_maker.tools.diskutil import DiskUtil
from winusb_maker.tools.runner import CommandError
from winusb_maker.types import TargetDevice

logger = logging.getLogger(__name__)

FAT32_FORMAT = "MS-DOS FAT32"
PARTITION_SCHEME = "GPT"


class FormatError(ToolError):
    """Erasing or formatting the target disk failed."""

    def __init__(self, device_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to erase {device_id} as {PARTITION_SCHEME} + FAT32: {reason}",
            error_code="FORMAT_FAILED",
        )
        self.device_id = device_id
        self.reason = reason


def format_device(
    device: TargetDevice,
    diskutil: DiskUtil,
    *,
    label: str,
    volumes_root: Path,
) -> tuple[Path, list[str]]:
    """Erase ``device`` into a single FAT32 partition labelled ``label``.

    Args:
        device: Validated target disk.
        diskutil: Device-management adapter.
        label: FAT32 volume label.
        volumes_root: Directory the new volume mounts under.

    Returns:
        Tuple of (volume root path, warnings).

    Raises:
        FormatError: eraseDisk failed or the volume did not appear.
    """
    warnings: list[str] = []

    logger.info("Unmounting anything on %s...", device.identifier)
    try:
        diskutil.unmount_disk(device.identifier, force=True)
    except CommandError as e:
        # Usually nothing was mounted
        message = f"Could not unmount {device.identifier}: {e.message}"
        logger.warning(message)
        warnings.append(message)

    logger.info(
        "Erasing %s as %s + FAT32 (label %s)...",
        device.identifier,
        PARTITION_SCHEME,
        label,
    )
    try:
        diskutil.erase_disk(device.identifier, FAT32_FORMAT, label, PARTITION_SCHEME)
    except CommandError as e:
        raise FormatError(device.identifier, e.message) from e

    volume = volumes_root / label
    if not volume.is_dir():
        raise FormatError(device.identifier, f"volume {volume} did not mount")

    logger.info("Formatted volume mounted at %s", volume)
    return volume, warnings


__all__ = ["FAT32_FORMAT", "PARTITION_SCHEME", "FormatError", "format_device"]
