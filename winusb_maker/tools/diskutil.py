"""Adapter for the macOS device-management service (diskutil).

All queries use diskutil's -plist output, parsed with plistlib into
pydantic models, so nothing depends on the human-readable text layout.
The live mount table is read from `mount`, which has no plist mode.
"""

from __future__ import annotations

import logging
import plistlib
import re
from dataclasses import dataclass
from pathlib import Path
from xml.parsers.expat import ExpatError

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from winusb_maker.errors import ToolError
from winusb_maker.tools.runner import run_command

logger = logging.getLogger(__name__)

# `mount` lines look like: /dev/disk5s1 on /Volumes/CCCOMA (udf, local, ...)
_MOUNT_LINE = re.compile(r"^(?P<device>\S+) on (?P<mount_point>.+?) \(")


class DiskInfo(BaseModel):
    """Subset of `diskutil info -plist` used for safety checks and menus."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    device_identifier: str = Field(alias="DeviceIdentifier")
    device_node: str | None = Field(default=None, alias="DeviceNode")
    whole_disk: bool = Field(default=False, alias="WholeDisk")
    internal: bool = Field(default=False, alias="Internal")
    bus_protocol: str = Field(default="", alias="BusProtocol")
    total_size: int | None = Field(default=None, alias="TotalSize")
    size: int | None = Field(default=None, alias="Size")
    media_name: str | None = Field(default=None, alias="MediaName")
    registry_name: str | None = Field(default=None, alias="IORegistryEntryName")
    mount_point: str | None = Field(default=None, alias="MountPoint")

    @property
    def size_bytes(self) -> int | None:
        """Capacity in bytes; older macOS reports Size instead of TotalSize."""
        return self.total_size if self.total_size is not None else self.size

    @property
    def display_name(self) -> str | None:
        """Best descriptive name for menus."""
        return self.media_name or self.registry_name


@dataclass
class MountEntry:
    """One line of the live mount table."""

    device: str
    mount_point: Path


def _load_plist(data: bytes, what: str) -> dict:
    try:
        parsed = plistlib.loads(data)
    except (ExpatError, ValueError) as e:
        raise ToolError(
            f"Could not parse {what} output: {e}", error_code="PLIST_PARSE_ERROR"
        ) from e
    if not isinstance(parsed, dict):
        raise ToolError(
            f"Unexpected {what} output: top level is not a dictionary",
            error_code="PLIST_PARSE_ERROR",
        )
    return parsed


def parse_disk_info(data: bytes) -> DiskInfo:
    """Parse `diskutil info -plist` output.

    Raises:
        ToolError: Output is not a valid plist or lacks DeviceIdentifier.
    """
    try:
        return DiskInfo.model_validate(_load_plist(data, "diskutil info"))
    except ValidationError as e:
        raise ToolError(
            f"Unexpected diskutil info output: {e}", error_code="PLIST_PARSE_ERROR"
        ) from e


def parse_whole_disks(data: bytes) -> list[str]:
    """Parse `diskutil list -plist` output into /dev/diskN identifiers."""
    whole_disks = _load_plist(data, "diskutil list").get("WholeDisks", [])
    return [f"/dev/{name}" for name in whole_disks if isinstance(name, str)]


def parse_mount_table(text: str) -> list[MountEntry]:
    """Parse `mount` output into entries, skipping lines it cannot read."""
    entries: list[MountEntry] = []
    for line in text.splitlines():
        match = _MOUNT_LINE.match(line)
        if match:
            entries.append(
                MountEntry(
                    device=match.group("device"),
                    mount_point=Path(match.group("mount_point")),
                )
            )
    return entries


def _is_slice_of(device: str, whole: str) -> bool:
    # /dev/disk5s1 is a slice of /dev/disk5, /dev/disk50 is not
    return (
        device.startswith(whole)
        and len(device) > len(whole)
        and device[len(whole)] == "s"
    )


def find_mount_point(
    entries: list[MountEntry], device: str, *, include_slices: bool = False
) -> Path | None:
    """Return the first mount point of a device (or one of its slices)."""
    for entry in entries:
        if entry.device == device:
            return entry.mount_point
        if include_slices and _is_slice_of(entry.device, device):
            return entry.mount_point
    return None


class DiskUtil:
    """Thin wrapper around diskutil.

    Destructive verbs (unmountDisk, eraseDisk, eject) go through sudo when
    ``use_sudo`` is set.
    """

    def __init__(self, *, use_sudo: bool = True) -> None:
        self.use_sudo = use_sudo

    def list_external_physical(self) -> list[str]:
        """Identifiers of all external physical whole disks."""
        result = run_command(["diskutil", "list", "-plist", "external", "physical"])
        disks = parse_whole_disks(result.stdout)
        logger.debug("External physical disks: %s", disks)
        return disks

    def info(self, device: str) -> DiskInfo:
        """Describe a device.

        Raises:
            CommandError: diskutil does not know the device.
            ToolError: Output could not be parsed.
        """
        result = run_command(["diskutil", "info", "-plist", device])
        return parse_disk_info(result.stdout)

    def unmount_disk(self, device: str, *, force: bool = True) -> None:
        cmd = ["diskutil", "unmountDisk"]
        if force:
            cmd.append("force")
        run_command([*cmd, device], sudo=self.use_sudo)

    def erase_disk(self, device: str, filesystem: str, label: str, scheme: str) -> None:
        run_command(
            ["diskutil", "eraseDisk", filesystem, label, scheme, device],
            capture=False,
            sudo=self.use_sudo,
        )

    def mount_disk(self, device: str) -> None:
        """Mount every mountable volume of a whole disk."""
        run_command(["diskutil", "mountDisk", device])

    def mount(self, device: str) -> None:
        """Mount a single volume."""
        run_command(["diskutil", "mount", device])

    def eject(self, device: str) -> None:
        run_command(["diskutil", "eject", device], sudo=self.use_sudo)

    def mount_table(self) -> list[MountEntry]:
        result = run_command(["mount"])
        return parse_mount_table(result.stdout.decode("utf-8", "replace"))


__all__ = [
    "DiskInfo",
    "DiskUtil",
    "MountEntry",
    "find_mount_point",
    "parse_disk_info",
    "parse_mount_table",
    "parse_whole_disks",
]
