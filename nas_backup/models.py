from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class StepStatus(str, Enum):
    """Outcome of one pipeline step, used in the closing summary."""

    PENDING = "Pending"
    OK = "OK"
    SKIPPED = "Skipped"  # Step not needed this run (e.g. not the archive day)
    PARTIAL = "Partial"  # Step finished but some shares failed
    FAILED = "Failed"


@dataclass
class CommandResult:
    argv: list[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    elapsed_seconds: float = 0.0
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.returncode == 0

    @property
    def program(self) -> str:
        return self.argv[0] if self.argv else ""

    def describe_failure(self) -> str:
        if self.timed_out:
            return f"{self.program} timed out after {self.elapsed_seconds:.0f}s"
        detail = self.stderr.strip() or self.stdout.strip() or "no output"
        return f"{self.program} exited with status {self.returncode}: {detail}"


@dataclass
class MountReport:
    mounted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def all_mounted(self) -> bool:
        return not self.failed


@dataclass
class CleanupReport:
    unmounted: list[Path] = field(default_factory=list)
    unmount_failures: dict[Path, str] = field(default_factory=dict)
    removed_directories: list[Path] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.unmount_failures


@dataclass
class RetentionReport:
    relocated: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)


@dataclass
class ArchiveReport:
    triggered: bool = False
    created: list[Path] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    retention: RetentionReport = field(default_factory=RetentionReport)

    @property
    def status(self) -> StepStatus:
        if not self.triggered:
            return StepStatus.SKIPPED
        if self.failed:
            return StepStatus.PARTIAL if self.created else StepStatus.FAILED
        return StepStatus.OK


@dataclass
class RunReport:
    started_at: datetime
    shares: list[str] = field(default_factory=list)
    mounts: MountReport = field(default_factory=MountReport)
    synced: bool = False
    archive: ArchiveReport = field(default_factory=ArchiveReport)
    cleanup: Optional[CleanupReport] = None
    finished_at: Optional[datetime] = None

    @property
    def has_share_failures(self) -> bool:
        return bool(self.mounts.failed or self.archive.failed)

    @property
    def left_mounted(self) -> list[Path]:
        """Mount points the post-run cleanup could not detach."""
        if self.cleanup is None:
            return []
        return list(self.cleanup.unmount_failures)

    def get_summary(self) -> str:
        archive_part = (
            f"{len(self.archive.created)} archive(s) created"
            if self.archive.triggered
            else "no archive day"
        )
        return (
            f"{len(self.shares)} share(s) discovered, "
            f"{len(self.mounts.mounted)} mounted, "
            f"{len(self.mounts.failed)} mount failure(s), "
            f"sync {'completed' if self.synced else 'not completed'}, "
            f"{archive_part}, "
            f"{len(self.archive.failed)} archive failure(s)"
        )
