"""Windows USB installer maker - bootable FAT32 installer media on macOS.

This package orchestrates the macOS disk tools (diskutil, hdiutil, rsync)
and wimlib to turn a Windows installation ISO into a bootable USB stick.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
