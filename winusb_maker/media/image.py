"""Mounting Windows ISO images.

A single `hdiutil attach` reports a mount point for most images, but
hybrid and multi-volume ISOs (UDF + ISO 9660) often attach without one.
ImageMounter falls back through progressively narrower strategies:

1. Use a mount point reported directly by the attach.
2. Mount the whole primary device entry and look it up in the mount table.
3. Mount the entry whose content hint is udf or cd9660 and look it up.

If nothing works the image is detached and treated as corrupt or
unsupported; an empty mount is never returned.
"""

import logging
from pathlib import Path

from winusb_maker.errors import ToolError
from winusb_maker.tools.diskutil import DiskUtil, find_mount_point
from winusb_maker.tools.hdiutil import AttachReport, HdiUtil
from winusb_maker.tools.runner import CommandError
from winusb_maker.types import MountResult, MountStrategy

logger = logging.getLogger(__name__)

# Content hints of the filesystems a Windows ISO carries
ISO_CONTENT_HINTS = {"udf", "cd9660"}


class MountResolutionError(ToolError):
    """Every mount strategy failed for the image."""

    def __init__(self, image_path: str) -> None:
        super().__init__(
            f"Failed to mount ISO {image_path}: no strategy produced a mount point. "
            "The image may be corrupt or in an unsupported format.",
            error_code="MOUNT_FAILED",
        )
        self.image_path = image_path


class ImageMounter:
    """Attach an ISO and resolve the directory its files are readable at.

    Attributes:
        report: Attach report of the current image (None before mount()).
        result: Resolved mount (None before a successful mount()).
    """

    def __init__(self, hdiutil: HdiUtil, diskutil: DiskUtil) -> None:
        self.hdiutil = hdiutil
        self.diskutil = diskutil
        self.report: AttachReport | None = None
        self.result: MountResult | None = None

    def mount(self, image_path: Path) -> MountResult:
        """Attach ``image_path`` and return a verified mount.

        Raises:
            AttachError: hdiutil attach failed.
            MountResolutionError: All strategies failed; the image has
                been detached (best-effort).
        """
        logger.info("Attaching %s", image_path)
        report = self.hdiutil.attach(image_path)
        self.report = report

        result = self._resolve(report)
        if result is None:
            logger.error("Could not resolve a mount point for %s", image_path)
            self._release(report)
            raise MountResolutionError(str(image_path))

        logger.info(
            "ISO mounted at %s (strategy=%s)", result.mount_point, result.strategy.value
        )
        self.result = result
        return result

    def _resolve(self, report: AttachReport) -> MountResult | None:
        # Strategy 1: direct mount point
        for mount_point in report.mount_points():
            if mount_point.is_dir():
                return MountResult(
                    mount_point=mount_point,
                    device_entry=report.primary_entry,
                    strategy=MountStrategy.DIRECT,
                )

        primary = report.primary_entry
        if primary is None:
            logger.warning("Attach report has no device entries")
            return None

        # Strategy 2: mount the whole entry
        logger.debug("No direct mount point, mounting %s", primary)
        self._try_mount(self.diskutil.mount_disk, primary)
        mount_point = self._lookup(primary, include_slices=True)
        if mount_point is not None:
            return MountResult(
                mount_point=mount_point,
                device_entry=primary,
                strategy=MountStrategy.WHOLE_ENTRY,
            )

        # Strategy 3: mount the UDF/ISO 9660 entry specifically
        entry = report.entry_with_hint(ISO_CONTENT_HINTS)
        if entry is None:
            logger.debug("No entry with content hint in %s", sorted(ISO_CONTENT_HINTS))
            return None

        logger.debug("Mounting content-hint entry %s", entry)
        self._try_mount(self.diskutil.mount, entry)
        mount_point = self._lookup(entry, include_slices=False)
        if mount_point is not None:
            return MountResult(
                mount_point=mount_point,
                device_entry=entry,
                strategy=MountStrategy.CONTENT_HINT,
            )
        return None

    @staticmethod
    def _try_mount(mount, device: str) -> None:
        # A failed mount is judged by the mount table lookup that follows
        try:
            mount(device)
        except CommandError as e:
            logger.warning("Mounting %s failed: %s", device, e.message)

    def _lookup(self, device: str, *, include_slices: bool) -> Path | None:
        mount_point = find_mount_point(
            self.diskutil.mount_table(), device, include_slices=include_slices
        )
        if mount_point is not None and mount_point.is_dir():
            return mount_point
        return None

    def _release(self, report: AttachReport) -> None:
        # Attached but unusable; detach by device entry, best-effort
        if report.primary_entry is None:
            return
        try:
            self.hdiutil.detach(report.primary_entry)
        except CommandError as e:
            logger.warning("Could not detach %s: %s", report.primary_entry, e.message)

    def detach(self) -> None:
        """Detach the mounted image by its mount path.

        Raises:
            CommandError: hdiutil detach failed.
        """
        if self.result is None:
            return
        logger.info("Detaching %s", self.result.mount_point)
        self.hdiutil.detach(self.result.mount_point)
        self.result = None


__all__ = ["ISO_CONTENT_HINTS", "ImageMounter", "MountResolutionError"]
