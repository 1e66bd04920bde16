"""Shared fixtures and fake tool adapters.

The fakes record every call so tests can assert which external commands
a run would have issued, without touching real disks.
"""

from pathlib import Path

import pytest

from winusb_maker.config import Settings
from winusb_maker.controller import Toolbox
from winusb_maker.tools.diskutil import DiskInfo, MountEntry
from winusb_maker.tools.hdiutil import AttachReport
from winusb_maker.tools.runner import CommandError

OVERRIDE_ENV_VARS = [
    "ISO_PATH",
    "USB_DISK",
    "AUTO",
    "WINUSB_ISO_PATH",
    "WINUSB_USB_DISK",
    "WINUSB_AUTO",
]


@pytest.fixture(autouse=True)
def _clean_override_env(monkeypatch):
    """Keep the developer's own ISO_PATH/USB_DISK/AUTO out of tests."""
    for name in OVERRIDE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def disk_info(
    identifier: str,
    *,
    whole: bool = True,
    internal: bool = False,
    bus: str = "USB",
    size: int | None = 32_000_000_000,
    name: str | None = "SanDisk Ultra",
) -> dict:
    """Build a `diskutil info -plist` style dictionary."""
    info: dict = {
        "DeviceIdentifier": identifier.removeprefix("/dev/"),
        "DeviceNode": identifier,
        "WholeDisk": whole,
        "Internal": internal,
        "BusProtocol": bus,
    }
    if size is not None:
        info["TotalSize"] = size
    if name is not None:
        info["MediaName"] = name
    return info


class FakeDiskUtil:
    """In-memory stand-in for tools.diskutil.DiskUtil."""

    def __init__(
        self,
        infos: dict[str, dict] | None = None,
        external: list[str] | None = None,
        *,
        volumes_root: Path | None = None,
        mount_table: list[MountEntry] | None = None,
        on_mount: dict[str, MountEntry] | None = None,
        fail_unmount: bool = False,
        fail_erase: bool = False,
        fail_eject: bool = False,
    ) -> None:
        self.infos = infos or {}
        self.external = external if external is not None else list(self.infos)
        self.volumes_root = volumes_root
        self.entries = list(mount_table or [])
        self.on_mount = on_mount or {}
        self.fail_unmount = fail_unmount
        self.fail_erase = fail_erase
        self.fail_eject = fail_eject
        self.calls: list[tuple] = []

    def verbs(self) -> list[str]:
        return [call[0] for call in self.calls]

    def list_external_physical(self) -> list[str]:
        self.calls.append(("list",))
        return list(self.external)

    def info(self, device: str) -> DiskInfo:
        self.calls.append(("info", device))
        if device not in self.infos:
            raise CommandError(
                f"diskutil info -plist {device} failed with exit code 1", exit_code=1
            )
        return DiskInfo.model_validate(self.infos[device])

    def unmount_disk(self, device: str, *, force: bool = True) -> None:
        self.calls.append(("unmountDisk", device, force))
        if self.fail_unmount:
            raise CommandError("Unmount of disk failed: not mounted", exit_code=1)

    def erase_disk(self, device: str, filesystem: str, label: str, scheme: str) -> None:
        self.calls.append(("eraseDisk", device, filesystem, label, scheme))
        if self.fail_erase:
            raise CommandError("Error: -69877: Couldn't open device", exit_code=1)
        if self.volumes_root is not None:
            (self.volumes_root / label).mkdir(parents=True, exist_ok=True)

    def _mount(self, verb: str, device: str) -> None:
        self.calls.append((verb, device))
        if device in self.on_mount:
            self.entries.append(self.on_mount[device])

    def mount_disk(self, device: str) -> None:
        self._mount("mountDisk", device)

    def mount(self, device: str) -> None:
        self._mount("mount", device)

    def eject(self, device: str) -> None:
        self.calls.append(("eject", device))
        if self.fail_eject:
            raise CommandError("Disk eject failed: busy", exit_code=1)

    def mount_table(self) -> list[MountEntry]:
        return list(self.entries)


class FakeHdiUtil:
    """Stand-in for tools.hdiutil.HdiUtil returning a canned report."""

    def __init__(self, report: AttachReport, *, fail_detach: bool = False) -> None:
        self.report = report
        self.fail_detach = fail_detach
        self.attached: list[Path] = []
        self.detached: list[str] = []

    def attach(self, image_path: Path) -> AttachReport:
        self.attached.append(image_path)
        return self.report

    def detach(self, target) -> None:
        self.detached.append(str(target))
        if self.fail_detach:
            raise CommandError("hdiutil: detach failed - Resource busy", exit_code=16)


class FakeRsync:
    """Records copies instead of running rsync."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.tree_copies: list[tuple[Path, Path, list[str]]] = []
        self.file_copies: list[tuple[Path, Path]] = []

    def copy_tree(self, source: Path, destination: Path, exclude=()) -> None:
        self.tree_copies.append((source, destination, list(exclude)))
        if self.fail:
            raise CommandError("rsync error: some files could not be transferred")

    def copy_file(self, source: Path, destination: Path) -> None:
        self.file_copies.append((source, destination))


class FakeWimlib:
    """Records splits; ``installed`` controls available()."""

    executable = "wimlib-imagex"

    def __init__(self, *, installed: bool = True, fail: bool = False) -> None:
        self.installed = installed
        self.fail = fail
        self.splits: list[tuple[Path, Path, int]] = []

    def available(self) -> bool:
        return self.installed

    def split(self, wim_path: Path, swm_path: Path, max_size_mib: int) -> None:
        self.splits.append((wim_path, swm_path, max_size_mib))
        if self.fail:
            raise CommandError("wimlib-imagex split failed", exit_code=1)


class FakeBrew:
    """Homebrew stand-in; a successful install makes the wimlib fake available."""

    def __init__(
        self,
        wimlib: FakeWimlib,
        *,
        present: bool = True,
        fail: bool = False,
        formulae: tuple[str, ...] = (),
    ) -> None:
        self.wimlib = wimlib
        self.present = present
        self.fail = fail
        self.formulae = set(formulae)
        self.installed: list[str] = []

    def available(self) -> bool:
        return self.present

    def is_installed(self, formula: str) -> bool:
        return formula in self.formulae

    def install(self, formula: str) -> None:
        self.installed.append(formula)
        if self.fail:
            raise CommandError("Error: wimlib: no bottle available", exit_code=1)
        self.formulae.add(formula)
        self.wimlib.installed = True


def attach_report(*entities: dict) -> AttachReport:
    """Build an AttachReport from hdiutil-style entity dictionaries."""
    return AttachReport.model_validate({"system-entities": list(entities)})


@pytest.fixture
def iso_root(tmp_path: Path) -> Path:
    """A mounted-ISO directory with a typical Windows layout and install.wim."""
    root = tmp_path / "CCCOMA_X64FRE"
    (root / "sources").mkdir(parents=True)
    (root / "efi" / "boot").mkdir(parents=True)
    (root / "setup.exe").write_bytes(b"MZ")
    (root / "efi" / "boot" / "bootx64.efi").write_bytes(b"EFI")
    (root / "sources" / "install.wim").write_bytes(b"MSWIM\x00\x00\x00")
    return root


@pytest.fixture
def fake_iso(tmp_path: Path) -> Path:
    """A readable (tiny) ISO file."""
    iso = tmp_path / "fake.iso"
    iso.write_bytes(b"\x00" * 2048)
    return iso


@pytest.fixture
def base_settings(tmp_path: Path) -> Settings:
    """Settings pointing every path into tmp_path, without sudo."""
    return Settings(
        downloads_dir=tmp_path / "Downloads",
        volumes_root=tmp_path / "Volumes",
        use_sudo=False,
    )


def make_toolbox(
    diskutil: FakeDiskUtil,
    hdiutil: FakeHdiUtil,
    *,
    rsync: FakeRsync | None = None,
    wimlib: FakeWimlib | None = None,
    brew: FakeBrew | None = None,
) -> Toolbox:
    """Assemble a Toolbox of fakes with no PATH preflight."""
    wimlib = wimlib or FakeWimlib()
    return Toolbox(
        diskutil=diskutil,
        hdiutil=hdiutil,
        rsync=rsync or FakeRsync(),
        wimlib=wimlib,
        brew=brew or FakeBrew(wimlib),
        required_tools=(),
    )
