"""Adapter for wimlib-imagex, the size-limited WIM splitter."""

import logging
from pathlib import Path

from winusb_maker.tools.runner import run_command, tool_available

logger = logging.getLogger(__name__)

# Homebrew formula that provides wimlib-imagex
WIMLIB_FORMULA = "wimlib"


class Wimlib:
    """Split WIM files into install.swm, install2.swm, ... chunks."""

    executable = "wimlib-imagex"

    def available(self) -> bool:
        return tool_available(self.executable)

    def split(self, wim_path: Path, swm_path: Path, max_size_mib: int) -> None:
        """Split ``wim_path`` into chunks of at most ``max_size_mib`` MiB.

        The first chunk is written to ``swm_path``; wimlib numbers the rest
        (install2.swm, install3.swm, ...) next to it.

        Raises:
            CommandError: wimlib-imagex failed.
        """
        run_command(
            [self.executable, "split", str(wim_path), str(swm_path), str(max_size_mib)],
            capture=False,
        )


__all__ = ["WIMLIB_FORMULA", "Wimlib"]
