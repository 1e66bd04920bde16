"""Device safety validation before erasing.

A target disk is only eligible when diskutil reports it as:
- a whole disk (not a slice like /dev/disk4s1)
- external (never the Mac's own drive)
- not itself an attached disk image

Every identifier goes through validate_device, whether it was picked
from the menu, typed in by hand, or supplied through the environment.
"""

import logging

from winusb_maker.errors import DEVICE_ERROR, MediaError
from winusb_maker.tools.diskutil import DiskInfo, DiskUtil
from winusb_maker.tools.runner import CommandError
from winusb_maker.types import TargetDevice

logger = logging.getLogger(__name__)

# BusProtocol diskutil reports for attached .dmg/.iso images
DISK_IMAGE_BUS = "Disk Image"


class DeviceValidationError(MediaError):
    """Base exception for device validation errors."""

    def __init__(self, message: str, error_code: str = DEVICE_ERROR) -> None:
        super().__init__(message, error_code=error_code)


class DeviceNotFoundError(DeviceValidationError):
    """diskutil cannot describe the identifier."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"Bad disk id: {device_id} (diskutil cannot describe it)",
            error_code="DEVICE_NOT_FOUND",
        )
        self.device_id = device_id


class PartitionDeviceError(DeviceValidationError):
    """Identifier names a slice, not a whole disk."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"{device_id} is not a whole disk. "
            "Pick the whole disk (e.g., /dev/disk4), not a slice (/dev/disk4s1).",
            error_code="PARTITION_NOT_ALLOWED",
        )
        self.device_id = device_id


class InternalDeviceError(DeviceValidationError):
    """Disk is internal to the machine."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"{device_id} is an internal disk. Refusing to erase it.",
            error_code="INTERNAL_DEVICE",
        )
        self.device_id = device_id


class DiskImageDeviceError(DeviceValidationError):
    """Disk is an attached disk image, not physical media."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"{device_id} is a mounted disk image, not a physical USB disk.",
            error_code="DISK_IMAGE_DEVICE",
        )
        self.device_id = device_id


def check_disk_info(device_id: str, info: DiskInfo) -> TargetDevice:
    """Apply the safety rules to an already fetched DiskInfo.

    Args:
        device_id: Identifier as given by the caller (used in messages).
        info: Parsed diskutil info for that identifier.

    Returns:
        TargetDevice for an eligible disk.

    Raises:
        PartitionDeviceError: Not a whole disk.
        InternalDeviceError: Internal disk.
        DiskImageDeviceError: Attached disk image.
    """
    if not info.whole_disk:
        logger.error("Device is not a whole disk: %s", device_id)
        raise PartitionDeviceError(device_id)

    if info.internal:
        logger.error("Device is internal: %s", device_id)
        raise InternalDeviceError(device_id)

    if info.bus_protocol == DISK_IMAGE_BUS:
        logger.error("Device is a disk image: %s", device_id)
        raise DiskImageDeviceError(device_id)

    return TargetDevice(
        identifier=device_id,
        is_whole_device=info.whole_disk,
        is_internal=info.internal,
        bus_kind=info.bus_protocol,
        size_bytes=info.size_bytes,
        name=info.display_name,
    )


def describe_device(device_id: str, diskutil: DiskUtil) -> DiskInfo:
    """Fetch diskutil info, mapping "unknown identifier" to DeviceNotFoundError."""
    try:
        return diskutil.info(device_id)
    except CommandError as e:
        logger.error("diskutil info failed for %s: %s", device_id, e.message)
        raise DeviceNotFoundError(device_id) from e


def validate_device(device_id: str, diskutil: DiskUtil) -> TargetDevice:
    """Validate a disk identifier as an erase target.

    Args:
        device_id: Disk identifier (e.g., '/dev/disk4').
        diskutil: Device-management adapter to query.

    Returns:
        TargetDevice describing the eligible disk.

    Raises:
        DeviceNotFoundError: Identifier does not resolve to any device.
        PartitionDeviceError: Device is a slice.
        InternalDeviceError: Device is internal.
        DiskImageDeviceError: Device is an attached disk image.
    """
    logger.debug("Validating device: %s", device_id)

    device = check_disk_info(device_id, describe_device(device_id, diskutil))

    logger.info(
        "Device validated: %s (bus=%s, size=%s, name=%s)",
        device.identifier,
        device.bus_kind,
        device.size_bytes,
        device.name,
    )
    return device


__all__ = [
    "DISK_IMAGE_BUS",
    "DeviceNotFoundError",
    "DeviceValidationError",
    "DiskImageDeviceError",
    "InternalDeviceError",
    "PartitionDeviceError",
    "check_disk_info",
    "describe_device",
    "validate_device",
]
