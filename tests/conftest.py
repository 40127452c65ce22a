"""
Pytest configuration og shared fixtures.

Fakes stand in for the outside world: FakeCommandRunner records every
external command instead of running it, FakeMounter keeps an in-memory
mount table over real temporary directories.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from nas_backup.config import Settings
from nas_backup.dependencies import reset_singletons
from nas_backup.models import CommandResult
from nas_backup.services.command_runner import CommandRunner
from nas_backup.services.network_mount.base_mounter import BaseMounter

SETTINGS_ENV_KEYS = [name.upper() for name in Settings.model_fields] + [
    "SMBVERSION",
    "NAS_BACKUP_ENV_FILE",
]


@dataclass
class RecordedCall:
    argv: list
    env: dict
    timeout: Optional[float]


@dataclass
class FakeCommandRunner(CommandRunner):
    """CommandRunner that dispatches on argv[0] to a handler instead of spawning processes."""

    handlers: Dict[str, Callable[[list], CommandResult]] = field(default_factory=dict)
    missing_tools: set = field(default_factory=set)
    calls: list = field(default_factory=list)

    async def run(self, argv, *, timeout=None, env=None) -> CommandResult:
        argv = [str(arg) for arg in argv]
        self.calls.append(RecordedCall(argv=argv, env=dict(env or {}), timeout=timeout))
        handler = self.handlers.get(argv[0])
        if handler is None:
            return CommandResult(argv=argv, returncode=0)
        return handler(argv)

    def which(self, program: str) -> Optional[str]:
        return None if program in self.missing_tools else f"/usr/bin/{program}"

    def commands(self, program: str) -> list:
        return [call.argv for call in self.calls if call.argv[0] == program]


class FakeMounter(BaseMounter):
    """
    In-memory mount table. Mounting fills the mount point with the share's
    remote files; unmounting empties it again, as detaching a real share would.
    """

    def __init__(self, remote_files=None, fail_shares=(), fail_unmounts=()):
        self.remote_files: Dict[str, Dict[str, str]] = remote_files or {}
        self.fail_shares = set(fail_shares)
        self.fail_unmounts = set(fail_unmounts)
        self.mounted: Dict[Path, str] = {}
        self.mount_calls: list = []
        self.unmount_calls: list = []

    async def attempt_mount(self, share: str, mount_point: Path) -> CommandResult:
        self.mount_calls.append((share, mount_point))
        if share in self.fail_shares:
            return CommandResult(
                argv=["mount", share], returncode=32, stderr="mount error(13): Permission denied"
            )
        self.mounted[mount_point] = share
        for relative, content in self.remote_files.get(share, {}).items():
            target = mount_point / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return CommandResult(argv=["mount", share], returncode=0)

    async def unmount(self, mount_point: Path) -> CommandResult:
        self.unmount_calls.append(mount_point)
        if mount_point.name in self.fail_unmounts:
            return CommandResult(
                argv=["umount", str(mount_point)], returncode=32, stderr="target is busy"
            )
        self.mounted.pop(mount_point, None)
        for child in mount_point.iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()
        return CommandResult(argv=["umount", str(mount_point)], returncode=0)

    async def is_mount_point(self, path: Path) -> bool:
        return path in self.mounted

    def get_platform_name(self) -> str:
        return "Fake"


def ok(argv, stdout=""):
    return CommandResult(argv=argv, returncode=0, stdout=stdout)


def rsync_copy(argv) -> CommandResult:
    """Handler that performs the mirror with shutil instead of rsync. Honors top-level excludes."""
    source, staging = Path(argv[-2]), Path(argv[-1])
    excluded = {arg.split("=", 1)[1].strip("/") for arg in argv if arg.startswith("--exclude=")}

    def ignore(directory, names):
        return [name for name in names if Path(directory) == source and name in excluded]

    shutil.copytree(source, staging, ignore=ignore, dirs_exist_ok=True)
    return ok(argv)


def seven_zip_write(argv) -> CommandResult:
    """Handler that writes a placeholder archive where 7z would."""
    archive, source = Path(argv[5]), Path(argv[6])
    archive.write_text(f"archive of {source.name}")
    return ok(argv)


def smbclient_listing(*shares: str) -> Callable[[list], CommandResult]:
    lines = ["Disk|" + share + "|" for share in shares]
    lines += ["IPC|IPC$|IPC Service (NAS)", "Disk|ADMIN$|Remote Admin"]
    return lambda argv: ok(argv, stdout="\n".join(lines) + "\n")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real NAS_* variables from leaking into Settings, reset singletons per test."""
    for key in SETTINGS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = dict(
            nas_ip="192.168.1.10",
            nas_user="backup",
            nas_password="s3cret",
            source_dir=tmp_path / "source",
            backup_dir=tmp_path / "backup",
            backup_dir_weekly=tmp_path / "weekly",
            log_file_path=str(tmp_path / "logs" / "nas_backup.log"),
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def fake_runner():
    return FakeCommandRunner()


@pytest.fixture
def fake_mounter():
    return FakeMounter()
