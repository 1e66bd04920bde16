"""Adapter for the macOS disk-image attach service (hdiutil).

`hdiutil attach -plist` reports one dictionary per logical entry under
``system-entities``. The report is parsed strictly into AttachReport so
the mount fallback logic works on records, not on text.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from xml.parsers.expat import ExpatError

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from winusb_maker.errors import ToolError
from winusb_maker.tools.runner import CommandError, run_command

logger = logging.getLogger(__name__)


class AttachError(ToolError):
    """hdiutil could not attach the image or returned an unusable report."""

    def __init__(self, image_path: str, reason: str) -> None:
        super().__init__(
            f"hdiutil attach failed for {image_path}: {reason}",
            error_code="ATTACH_FAILED",
        )
        self.image_path = image_path
        self.reason = reason


class AttachEntity(BaseModel):
    """One logical entry produced by an attach."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    dev_entry: str = Field(alias="dev-entry")
    mount_point: str | None = Field(default=None, alias="mount-point")
    content_hint: str | None = Field(default=None, alias="content-hint")


class AttachReport(BaseModel):
    """Structured result of `hdiutil attach -plist`."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    system_entities: list[AttachEntity] = Field(
        default_factory=list, alias="system-entities"
    )

    @property
    def primary_entry(self) -> str | None:
        """Device entry of the first entity (the whole attached disk)."""
        if not self.system_entities:
            return None
        return self.system_entities[0].dev_entry

    def mount_points(self) -> list[Path]:
        return [
            Path(entity.mount_point)
            for entity in self.system_entities
            if entity.mount_point
        ]

    def entry_with_hint(self, hints: set[str]) -> str | None:
        """Device entry of the first entity whose content hint is in ``hints``.

        Hints are compared case-insensitively.
        """
        wanted = {hint.lower() for hint in hints}
        for entity in self.system_entities:
            if entity.content_hint and entity.content_hint.lower() in wanted:
                return entity.dev_entry
        return None


def parse_attach_report(data: bytes) -> AttachReport:
    """Parse raw plist bytes from hdiutil attach.

    Raises:
        ValueError: Not a plist, or not shaped like an attach report.
    """
    try:
        parsed = plistlib.loads(data)
    except ExpatError as e:
        raise ValueError(f"invalid plist: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("attach report is not a dictionary")
    try:
        return AttachReport.model_validate(parsed)
    except ValidationError as e:
        raise ValueError(f"unexpected attach report: {e}") from e


class HdiUtil:
    """Thin wrapper around hdiutil."""

    def attach(self, image_path: Path) -> AttachReport:
        """Attach an image read-only without showing it in Finder.

        Raises:
            AttachError: Attach failed or its report could not be parsed.
        """
        cmd = [
            "hdiutil",
            "attach",
            "-nobrowse",
            "-noverify",
            "-readonly",
            "-plist",
            str(image_path),
        ]
        try:
            result = run_command(cmd)
        except CommandError as e:
            raise AttachError(str(image_path), e.message) from e

        try:
            report = parse_attach_report(result.stdout)
        except ValueError as e:
            raise AttachError(str(image_path), str(e)) from e

        logger.debug(
            "Attach report for %s: %d entities", image_path, len(report.system_entities)
        )
        return report

    def detach(self, target: Path | str) -> None:
        """Detach by mount point or device entry."""
        run_command(["hdiutil", "detach", str(target)])


__all__ = [
    "AttachEntity",
    "AttachError",
    "AttachReport",
    "HdiUtil",
    "parse_attach_report",
]
