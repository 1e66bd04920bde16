"""Subprocess helpers shared by the tool adapters.

This module handles:
- Running external commands with logging of the exact command line
- Converting process failures into CommandError
- Checking that required tools are on PATH
- Refreshing sudo credentials before destructive steps

Calls block until the tool exits; there are no timeouts.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from collections.abc import Iterable, Sequence

from winusb_maker.errors import ToolError

logger = logging.getLogger(__name__)


class CommandError(ToolError):
    """Raised when an external command fails or cannot be started."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "command_failed",
    ) -> None:
        super().__init__(message, error_code=code)
        self.exit_code = exit_code


class MissingToolError(ToolError):
    """A required command-line tool is not installed."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Missing required tool: {tool}", error_code="MISSING_TOOL")
        self.tool = tool


def run_command(
    cmd: Sequence[str],
    *,
    capture: bool = True,
    check: bool = True,
    sudo: bool = False,
) -> subprocess.CompletedProcess[bytes]:
    """Run an external command.

    Args:
        cmd: Command and arguments.
        capture: Capture stdout/stderr as bytes. When False the tool writes
            straight to the inherited streams (progress output).
        check: Raise CommandError on a non-zero exit.
        sudo: Prefix the command with sudo.

    Returns:
        CompletedProcess with raw bytes output (plists are bytes).

    Raises:
        CommandError: Command failed (when check) or could not be started.
    """
    argv = ["sudo", *cmd] if sudo else list(cmd)
    cmd_str = shlex.join(argv)
    logger.debug("Executing: %s", cmd_str)

    try:
        result = subprocess.run(argv, capture_output=capture, check=False)
    except OSError as e:
        logger.error("Failed to execute %s: %s", cmd_str, e)
        raise CommandError(
            f"Failed to execute {argv[0]}: {e}", code="execution_error"
        ) from e

    if check and result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", "replace").strip()
        message = f"{cmd_str} failed with exit code {result.returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        logger.error(message)
        raise CommandError(message, exit_code=result.returncode)

    return result


def tool_available(tool: str) -> bool:
    """Check whether a tool is on PATH."""
    return shutil.which(tool) is not None


def require_tools(tools: Iterable[str]) -> None:
    """Ensure all tools are installed.

    Raises:
        MissingToolError: Naming the first missing tool.
    """
    for tool in tools:
        if not tool_available(tool):
            logger.error("Required tool not found on PATH: %s", tool)
            raise MissingToolError(tool)


def refresh_sudo() -> None:
    """Prompt for (or refresh) sudo credentials up front.

    Raises:
        CommandError: sudo refused.
    """
    logger.info("Requesting administrator privileges...")
    run_command(["sudo", "-v"], capture=False)


__all__ = [
    "CommandError",
    "MissingToolError",
    "refresh_sudo",
    "require_tools",
    "run_command",
    "tool_available",
]
