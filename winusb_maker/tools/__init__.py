"""Adapters for the external macOS tools the workflow drives.

Each adapter is a small class so the media pipeline can be exercised
with fakes in tests:
- DiskUtil: enumerate, describe, erase, mount and eject disks
- HdiUtil: attach and detach disk images
- Homebrew: query and install formulae
- Rsync: bulk copies with exclusions
- Wimlib: split oversized WIM files
"""

from winusb_maker.tools.brew import Homebrew
from winusb_maker.tools.diskutil import DiskInfo, DiskUtil, MountEntry
from winusb_maker.tools.hdiutil import AttachEntity, AttachError, AttachReport, HdiUtil
from winusb_maker.tools.rsync import Rsync
from winusb_maker.tools.runner import (
    CommandError,
    MissingToolError,
    refresh_sudo,
    require_tools,
    run_command,
    tool_available,
)
from winusb_maker.tools.wimlib import WIMLIB_FORMULA, Wimlib

__all__ = [
    "WIMLIB_FORMULA",
    "AttachEntity",
    "AttachError",
    "AttachReport",
    "CommandError",
    "DiskInfo",
    "DiskUtil",
    "HdiUtil",
    "Homebrew",
    "MissingToolError",
    "MountEntry",
    "Rsync",
    "Wimlib",
    "refresh_sudo",
    "require_tools",
    "run_command",
    "tool_available",
]
