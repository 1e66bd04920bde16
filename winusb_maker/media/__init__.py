"""USB media preparation.

This module handles:
- Device validation (whole, external, physical disks only)
- Robust ISO mounting across UDF / ISO 9660 layouts
- Erasing the target as GPT + FAT32
- Copying the ISO with install.wim split to fit FAT32
"""

from winusb_maker.media.device import (
    DeviceNotFoundError,
    DeviceValidationError,
    DiskImageDeviceError,
    InternalDeviceError,
    PartitionDeviceError,
    validate_device,
)
from winusb_maker.media.formatter import FormatError, format_device
from winusb_maker.media.image import ImageMounter, MountResolutionError
from winusb_maker.media.transfer import (
    CopyError,
    PackageInstallError,
    PackageManagerMissingError,
    SplitError,
    SplitToolDeclinedError,
    choose_plan,
    ensure_split_tool,
    transfer_payload,
)

__all__ = [
    # Device validation
    "DeviceNotFoundError",
    "DeviceValidationError",
    "DiskImageDeviceError",
    "InternalDeviceError",
    "PartitionDeviceError",
    "validate_device",
    # Formatting
    "FormatError",
    "format_device",
    # Mounting
    "ImageMounter",
    "MountResolutionError",
    # Transfer
    "CopyError",
    "PackageInstallError",
    "PackageManagerMissingError",
    "SplitError",
    "SplitToolDeclinedError",
    "choose_plan",
    "ensure_split_tool",
    "transfer_payload",
]
