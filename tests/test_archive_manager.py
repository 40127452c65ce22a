"""
Tests for ArchiveManager.

Covers the weekday trigger, retention boundaries (exactly 5 and exactly 30
days are kept), archive creation per staged share and per-share failures.
"""

import os
from datetime import date, datetime

import pytest

from conftest import seven_zip_write
from nas_backup.core.exceptions import ToolMissing
from nas_backup.models import CommandResult, StepStatus
from nas_backup.services.archive_manager import ArchiveManager

FRIDAY = datetime(2026, 10, 16, 12, 0, 0)
SATURDAY = datetime(2026, 10, 17, 12, 0, 0)
DAY = 86400


def age_file(path, now, seconds):
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(path.name)
    mtime = now.timestamp() - seconds
    os.utime(path, (mtime, mtime))


def stage_shares(settings, *shares):
    for share in shares:
        share_dir = settings.staging_path / share
        share_dir.mkdir(parents=True, exist_ok=True)
        (share_dir / "file.txt").write_text(share)


@pytest.fixture
def archive_runner(fake_runner):
    fake_runner.handlers["7z"] = seven_zip_write
    return fake_runner


@pytest.fixture
def manager(settings, archive_runner):
    return ArchiveManager(settings, archive_runner, clock=lambda: FRIDAY)


class TestTrigger:
    """Test the weekday trigger."""

    @pytest.mark.parametrize("day", range(12, 19))
    @pytest.mark.parametrize("weekday", range(1, 8))
    def test_fires_only_on_configured_weekday(self, make_settings, fake_runner, day, weekday):
        today = date(2026, 10, day)  # 12th is a Monday
        manager = ArchiveManager(make_settings(archive_weekday=weekday), fake_runner)

        assert manager.is_trigger_day(today) is (today.isoweekday() == weekday)

    def test_trigger_day_name(self, manager):
        assert manager.trigger_day_name == "Friday"

    @pytest.mark.asyncio
    async def test_non_trigger_day_does_nothing(self, settings, archive_runner):
        stage_shares(settings, "docs")
        old_archive = settings.backup_dir / "docs.7z"
        age_file(old_archive, SATURDAY, 10 * DAY)
        manager = ArchiveManager(settings, archive_runner)

        report = await manager.run(SATURDAY)

        assert report.triggered is False
        assert report.status == StepStatus.SKIPPED
        assert archive_runner.calls == []
        assert old_archive.exists()


class TestRetention:
    """Test relocation and deletion thresholds."""

    @pytest.mark.asyncio
    async def test_relocation_boundary(self, settings, manager):
        at_threshold = settings.backup_dir / "docs.7z"
        past_threshold = settings.backup_dir / "media.7z"
        age_file(at_threshold, FRIDAY, 5 * DAY)
        age_file(past_threshold, FRIDAY, 5 * DAY + 1)

        report = await manager.enforce_retention(FRIDAY)

        assert at_threshold.exists()
        assert not past_threshold.exists()
        assert (settings.backup_dir_weekly / "media.7z").exists()
        assert report.relocated == [settings.backup_dir_weekly / "media.7z"]

    @pytest.mark.asyncio
    async def test_deletion_boundary(self, settings, manager):
        at_threshold = settings.backup_dir_weekly / "docs.7z"
        past_threshold = settings.backup_dir_weekly / "media.7z"
        age_file(at_threshold, FRIDAY, 30 * DAY)
        age_file(past_threshold, FRIDAY, 30 * DAY + 1)

        report = await manager.enforce_retention(FRIDAY)

        assert at_threshold.exists()
        assert not past_threshold.exists()
        assert report.deleted == [past_threshold]

    @pytest.mark.asyncio
    async def test_relocation_keeps_mtime_and_older_copies(self, settings, manager):
        existing = settings.backup_dir_weekly / "docs.7z"
        age_file(existing, FRIDAY, 12 * DAY)
        moving = settings.backup_dir / "docs.7z"
        age_file(moving, FRIDAY, 6 * DAY)
        expected_mtime = moving.stat().st_mtime

        await manager.enforce_retention(FRIDAY)

        relocated = settings.backup_dir_weekly / "docs_1.7z"
        assert existing.exists()
        assert relocated.stat().st_mtime == expected_mtime

    @pytest.mark.asyncio
    async def test_only_archives_are_touched(self, settings, manager):
        other = settings.backup_dir / "notes.txt"
        age_file(other, FRIDAY, 90 * DAY)

        await manager.enforce_retention(FRIDAY)

        assert other.exists()

    @pytest.mark.asyncio
    async def test_retention_disabled_without_weekly_dir(self, make_settings, archive_runner):
        settings = make_settings(backup_dir_weekly="")
        old_archive = settings.backup_dir / "docs.7z"
        age_file(old_archive, FRIDAY, 90 * DAY)

        report = await ArchiveManager(settings, archive_runner).enforce_retention(FRIDAY)

        assert old_archive.exists()
        assert report.relocated == [] and report.deleted == []


class TestArchiveCreation:
    """Test archive creation on the trigger day."""

    @pytest.mark.asyncio
    async def test_one_archive_per_staged_share(self, settings, manager, archive_runner):
        stage_shares(settings, "docs", "media", "photos")

        report = await manager.run(FRIDAY)

        assert report.status == StepStatus.OK
        assert report.created == [settings.backup_dir / f"{s}.7z" for s in ("docs", "media", "photos")]
        assert all(path.exists() for path in report.created)
        assert not list(settings.backup_dir.glob("*.tmp"))
        assert archive_runner.commands("7z")[0] == [
            "7z", "a", "-t7z", "-mx=9", "-mmt=on",
            str(settings.backup_dir / "docs.7z.tmp"),
            str(settings.staging_path / "docs"),
        ]

    @pytest.mark.asyncio
    async def test_no_staged_shares_is_not_an_error(self, settings, manager, archive_runner):
        settings.staging_path.mkdir(parents=True)

        report = await manager.run(FRIDAY)

        assert report.triggered is True
        assert report.created == []
        assert report.failed == {}
        assert archive_runner.commands("7z") == []

    @pytest.mark.asyncio
    async def test_missing_staging_directory_is_not_an_error(self, manager):
        report = await manager.run(FRIDAY)

        assert report.created == []

    @pytest.mark.asyncio
    async def test_existing_archive_replaced(self, settings, manager):
        stage_shares(settings, "docs")
        archive = settings.backup_dir / "docs.7z"
        archive.parent.mkdir(parents=True, exist_ok=True)
        archive.write_text("last week")

        await manager.run(FRIDAY)

        assert archive.read_text() == "archive of docs"

    @pytest.mark.asyncio
    async def test_stale_temp_file_removed_before_archiving(self, settings, archive_runner):
        stage_shares(settings, "docs")
        stale = settings.backup_dir / "docs.7z.tmp"
        stale.parent.mkdir(parents=True, exist_ok=True)
        stale.write_text("half written")
        seen = []

        def check_tmp(argv):
            seen.append(stale.exists())
            return seven_zip_write(argv)

        archive_runner.handlers["7z"] = check_tmp
        await ArchiveManager(settings, archive_runner).run(FRIDAY)

        assert seen == [False]

    @pytest.mark.asyncio
    async def test_failed_share_does_not_stop_others(self, settings, archive_runner):
        stage_shares(settings, "docs", "media")

        def fail_docs(argv):
            if argv[-1].endswith("docs"):
                return CommandResult(argv=argv, returncode=2, stderr="Fatal error")
            return seven_zip_write(argv)

        archive_runner.handlers["7z"] = fail_docs
        previous = settings.backup_dir / "docs.7z"
        previous.parent.mkdir(parents=True, exist_ok=True)
        previous.write_text("previous good archive")

        report = await ArchiveManager(settings, archive_runner).run(FRIDAY)

        assert report.status == StepStatus.PARTIAL
        assert list(report.failed) == ["docs"]
        assert report.created == [settings.backup_dir / "media.7z"]
        assert previous.read_text() == "previous good archive"
        assert not (settings.backup_dir / "docs.7z.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_7z_is_fatal(self, settings, archive_runner):
        stage_shares(settings, "docs")
        archive_runner.missing_tools.add("7z")

        with pytest.raises(ToolMissing):
            await ArchiveManager(settings, archive_runner).run(FRIDAY)

    @pytest.mark.asyncio
    async def test_retention_runs_before_creation(self, settings, manager):
        stage_shares(settings, "docs")
        last_week = settings.backup_dir / "docs.7z"
        age_file(last_week, FRIDAY, 7 * DAY)

        report = await manager.run(FRIDAY)

        assert (settings.backup_dir_weekly / "docs.7z").read_text() == "docs.7z"
        assert (settings.backup_dir / "docs.7z").read_text() == "archive of docs"
        assert report.retention.relocated == [settings.backup_dir_weekly / "docs.7z"]
