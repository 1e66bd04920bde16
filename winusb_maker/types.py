"""Shared type definitions for winusb_maker.

This module contains enums and dataclasses shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class MountStrategy(str, Enum):
    """Which stage of the mount fallback produced the mount point."""

    DIRECT = "direct"
    WHOLE_ENTRY = "whole-entry"
    CONTENT_HINT = "content-hint"


class TransferPlan(str, Enum):
    """How the install image is carried onto the FAT32 volume."""

    SPLIT_WIM = "split-wim"
    COPY_ESD = "copy-esd"


@dataclass
class TargetDevice:
    """A whole external disk that passed the safety checks.

    Attributes:
        identifier: Device node (e.g., '/dev/disk4').
        is_whole_device: Whether this is a whole disk (not a slice).
        is_internal: Whether the disk is internal to the machine.
        bus_kind: Bus protocol reported by diskutil (e.g., 'USB').
        size_bytes: Capacity in bytes (if reported).
        name: Descriptive media name (if reported).
    """

    identifier: str
    is_whole_device: bool
    is_internal: bool
    bus_kind: str
    size_bytes: int | None = None
    name: str | None = None


@dataclass
class MountResult:
    """A verified directory where the attached image's content is readable."""

    mount_point: Path
    device_entry: str | None
    strategy: MountStrategy


@dataclass
class RunResult:
    """Result of a full media creation run.

    Attributes:
        image_path: ISO that was written.
        device_id: Disk that was erased.
        volume_path: Root of the formatted FAT32 volume.
        mount_point: Where the ISO was mounted during the copy.
        plan: Which payload branch ran.
        warnings: Non-fatal problems (small image, teardown failures, ...).
    """

    image_path: Path
    device_id: str
    volume_path: Path
    mount_point: Path
    plan: TransferPlan
    warnings: list[str] = field(default_factory=list)


__all__ = [
    "MountResult",
    "MountStrategy",
    "RunResult",
    "TargetDevice",
    "TransferPlan",
]
