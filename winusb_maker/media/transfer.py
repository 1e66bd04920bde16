"""Copying the ISO contents onto the FAT32 volume.

FAT32 cannot hold files of 4 GiB or more, and install.wim on current
Windows 11 ISOs is larger than that. The transfer therefore:

1. Copies everything except sources/install.wim.
2. Splits install.wim into install.swm chunks (Windows Setup reads
   split images natively), or
3. Copies sources/install.esd when the ISO ships that instead.

When an image has both files the split branch wins.
"""

import logging
from pathlib import Path

from winusb_maker.errors import PayloadNotFoundError, ToolError
from winusb_maker.terminal import Terminal
from winusb_maker.tools.brew import Homebrew
from winusb_maker.tools.rsync import Rsync
from winusb_maker.tools.runner import CommandError
from winusb_maker.tools.wimlib import WIMLIB_FORMULA, Wimlib
from winusb_maker.types import TransferPlan

logger = logging.getLogger(__name__)

INSTALL_WIM = "sources/install.wim"
INSTALL_ESD = "sources/install.esd"
INSTALL_SWM = "sources/install.swm"


class CopyError(ToolError):
    """rsync failed while copying image files."""

    def __init__(self, what: str, reason: str) -> None:
        super().__init__(f"Copying {what} failed: {reason}", error_code="COPY_FAILED")
        self.reason = reason


class SplitError(ToolError):
    """wimlib-imagex failed to split install.wim."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Splitting {INSTALL_WIM} failed: {reason}", error_code="SPLIT_FAILED"
        )
        self.reason = reason


class SplitToolDeclinedError(ToolError):
    """Operator declined installing wimlib."""

    def __init__(self) -> None:
        super().__init__(
            "wimlib not installed: wimlib-imagex is required to split "
            f"{INSTALL_WIM} and installation was declined",
            error_code="SPLIT_TOOL_DECLINED",
        )


class PackageManagerMissingError(ToolError):
    """Homebrew is needed to install wimlib but is not present."""

    def __init__(self) -> None:
        super().__init__(
            "Homebrew is required to install wimlib but `brew` was not found. "
            "Install Homebrew from https://brew.sh or install wimlib manually.",
            error_code="PACKAGE_MANAGER_MISSING",
        )


class PackageInstallError(ToolError):
    """brew install wimlib failed."""

    def __init__(self, formula: str, reason: str) -> None:
        super().__init__(
            f"Installing {formula} failed: {reason}",
            error_code="PACKAGE_INSTALL_FAILED",
        )
        self.formula = formula
        self.reason = reason


def choose_plan(mount_point: Path) -> TransferPlan:
    """Decide how the install image is carried over.

    Raises:
        PayloadNotFoundError: Neither install.wim nor install.esd exists.
    """
    if (mount_point / INSTALL_WIM).is_file():
        return TransferPlan.SPLIT_WIM
    if (mount_point / INSTALL_ESD).is_file():
        return TransferPlan.COPY_ESD
    raise PayloadNotFoundError(str(mount_point))


def ensure_split_tool(wimlib: Wimlib, brew: Homebrew, terminal: Terminal) -> None:
    """Make sure wimlib-imagex is installed, offering to install it.

    Raises:
        SplitToolDeclinedError: Operator said no.
        PackageManagerMissingError: brew is not installed.
        PackageInstallError: wimlib is installed but not on PATH, brew install
            failed, or the install did not provide the tool.
    """
    if wimlib.available():
        return

    logger.info("%s not found", wimlib.executable)
    if brew.available() and brew.is_installed(WIMLIB_FORMULA):
        # Installed but not linked into PATH
        raise PackageInstallError(
            WIMLIB_FORMULA,
            f"formula is installed but {wimlib.executable} is not on PATH "
            f"(try `brew link {WIMLIB_FORMULA}`)",
        )

    if not terminal.confirm(
        f"{wimlib.executable} is needed to split {INSTALL_WIM}. "
        f"Install {WIMLIB_FORMULA} with Homebrew now? [Y/n]: ",
        default=True,
    ):
        raise SplitToolDeclinedError()

    if not brew.available():
        raise PackageManagerMissingError()

    try:
        brew.install(WIMLIB_FORMULA)
    except CommandError as e:
        raise PackageInstallError(WIMLIB_FORMULA, e.message) from e

    if not wimlib.available():
        raise PackageInstallError(
            WIMLIB_FORMULA, f"{wimlib.executable} still not on PATH after install"
        )


def transfer_payload(
    mount_point: Path,
    volume: Path,
    *,
    rsync: Rsync,
    wimlib: Wimlib,
    brew: Homebrew,
    terminal: Terminal,
    split_size_mib: int,
) -> TransferPlan:
    """Copy the mounted ISO onto the formatted volume.

    Args:
        mount_point: Root of the mounted ISO.
        volume: Root of the FAT32 volume.
        rsync: Bulk copy adapter.
        wimlib: WIM splitter adapter.
        brew: Package manager used if wimlib is missing.
        terminal: Where the install prompt goes.
        split_size_mib: Maximum chunk size for install.swm files.

    Returns:
        The branch that ran.

    Raises:
        CopyError: A copy failed.
        SplitError: Splitting failed.
        PayloadNotFoundError: No install image in the ISO.
        SplitToolDeclinedError, PackageManagerMissingError, PackageInstallError:
            wimlib could not be made available.
    """
    logger.info("Copying files (excluding %s)...", INSTALL_WIM)
    try:
        rsync.copy_tree(mount_point, volume, exclude=[INSTALL_WIM])
    except CommandError as e:
        raise CopyError(f"{mount_point} to {volume}", e.message) from e

    plan = choose_plan(mount_point)

    if plan is TransferPlan.SPLIT_WIM:
        ensure_split_tool(wimlib, brew, terminal)
        swm_path = volume / INSTALL_SWM
        swm_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Splitting install.wim -> install.swm (<= %d MiB)...", split_size_mib
        )
        try:
            wimlib.split(mount_point / INSTALL_WIM, swm_path, split_size_mib)
        except CommandError as e:
            raise SplitError(e.message) from e
    else:
        logger.info("Copying install.esd...")
        esd_path = volume / INSTALL_ESD
        esd_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            rsync.copy_file(mount_point / INSTALL_ESD, esd_path)
        except CommandError as e:
            raise CopyError(INSTALL_ESD, e.message) from e

    return plan


__all__ = [
    "INSTALL_ESD",
    "INSTALL_SWM",
    "INSTALL_WIM",
    "CopyError",
    "PackageInstallError",
    "PackageManagerMissingError",
    "SplitError",
    "SplitToolDeclinedError",
    "choose_plan",
    "ensure_split_tool",
    "transfer_payload",
]
