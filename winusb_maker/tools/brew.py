"""Adapter for the Homebrew package manager."""

import logging

from winusb_maker.tools.runner import run_command, tool_available

logger = logging.getLogger(__name__)


class Homebrew:
    """Query and install Homebrew formulae."""

    executable = "brew"

    def available(self) -> bool:
        """Whether brew itself is installed."""
        return tool_available(self.executable)

    def is_installed(self, formula: str) -> bool:
        """Whether a formula is installed (`brew list --versions` prints it)."""
        result = run_command(
            [self.executable, "list", "--versions", formula], check=False
        )
        return result.returncode == 0 and bool(result.stdout.strip())

    def install(self, formula: str) -> None:
        """Install a formula, streaming brew's output.

        Raises:
            CommandError: brew install failed.
        """
        logger.info("Installing %s with Homebrew...", formula)
        run_command([self.executable, "install", formula], capture=False)


__all__ = ["Homebrew"]
