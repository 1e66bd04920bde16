"""Adapter for the bulk copy tool (rsync)."""

import logging
from collections.abc import Sequence
from pathlib import Path

from winusb_maker.tools.runner import run_command

logger = logging.getLogger(__name__)


class Rsync:
    """Recursive copies that keep structure and, where FAT32 allows, times."""

    def __init__(self, *, progress: bool = True) -> None:
        self.progress = progress

    def _base_cmd(self) -> list[str]:
        cmd = ["rsync", "-a"]
        if self.progress:
            cmd.append("--progress")
        return cmd

    def copy_tree(
        self, source: Path, destination: Path, exclude: Sequence[str] = ()
    ) -> None:
        """Copy the contents of ``source`` into ``destination``.

        Exclude patterns are relative to ``source``.

        Raises:
            CommandError: rsync failed.
        """
        cmd = self._base_cmd()
        cmd.extend(f"--exclude={pattern}" for pattern in exclude)
        # Trailing slashes copy directory contents, not the directory itself
        cmd.extend([f"{source}/", f"{destination}/"])
        run_command(cmd, capture=False)

    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a single file to an explicit destination path.

        Raises:
            CommandError: rsync failed.
        """
        run_command([*self._base_cmd(), str(source), str(destination)], capture=False)


__all__ = ["Rsync"]
