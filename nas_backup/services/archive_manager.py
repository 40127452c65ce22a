"""
Weekly archive creation and archive retention.

On the configured weekday every staged share directory is compressed into
``BACKUP_DIR/<share>.7z``. Before that, archives older than the relocation
threshold move to the weekly root and weekly archives older than the delete
threshold are removed.
"""

import asyncio
import calendar
import logging
import shutil
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

import aiofiles.os

from ..config import Settings
from ..core.exceptions import ArchiveFailed
from ..models import ArchiveReport, RetentionReport
from ..utils.file_operations import (
    ARCHIVE_SUFFIX,
    archive_path_for,
    create_temp_file_path,
    generate_conflict_free_path,
    is_older_than,
)
from .command_runner import CommandRunner


class ArchiveManager:
    """Creates per-share 7z archives on the trigger day and enforces archive retention."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings
        self._runner = runner
        self._clock = clock

    def is_trigger_day(self, today: date) -> bool:
        return today.isoweekday() == self._settings.archive_weekday

    @property
    def trigger_day_name(self) -> str:
        return calendar.day_name[self._settings.archive_weekday - 1]

    def build_archive_command(self, archive: Path, source: Path) -> list[str]:
        return ["7z", "a", "-t7z", "-mx=9", "-mmt=on", str(archive), str(source)]

    # ------------------------------------------------------------------
    async def _archives_in(self, directory: Path) -> list[Path]:
        if not await aiofiles.os.path.isdir(directory):
            return []
        archives = []
        for name in sorted(await aiofiles.os.listdir(directory)):
            path = directory / name
            if name.endswith(ARCHIVE_SUFFIX) and await aiofiles.os.path.isfile(path):
                archives.append(path)
        return archives

    async def relocate_old_archives(self, now: datetime, report: RetentionReport) -> None:
        weekly_root = self._settings.backup_dir_weekly
        days = self._settings.relocate_after_days
        await aiofiles.os.makedirs(weekly_root, exist_ok=True)

        loop = asyncio.get_running_loop()
        for archive in await self._archives_in(self._settings.backup_dir):
            stat = await aiofiles.os.stat(archive)
            if not is_older_than(stat.st_mtime, now, days):
                continue
            destination = await loop.run_in_executor(
                None, generate_conflict_free_path, weekly_root / archive.name
            )
            try:
                # shutil.move keeps mtime across filesystems, so weekly ageing continues
                await loop.run_in_executor(None, shutil.move, str(archive), str(destination))
            except OSError as e:
                logging.warning(f"Could not move {archive} to {destination}: {e}")
                continue
            logging.info(f"Moved archive older than {days} days: {archive} -> {destination}")
            report.relocated.append(destination)

    async def delete_expired_archives(self, now: datetime, report: RetentionReport) -> None:
        days = self._settings.delete_after_days
        for archive in await self._archives_in(self._settings.backup_dir_weekly):
            stat = await aiofiles.os.stat(archive)
            if not is_older_than(stat.st_mtime, now, days):
                continue
            try:
                await aiofiles.os.remove(archive)
            except OSError as e:
                logging.warning(f"Could not delete {archive}: {e}")
                continue
            logging.info(f"Deleted weekly archive older than {days} days: {archive}")
            report.deleted.append(archive)

    async def enforce_retention(self, now: datetime) -> RetentionReport:
        report = RetentionReport()
        if not self._settings.weekly_retention_enabled:
            logging.debug("BACKUP_DIR_WEEKLY not set - archive retention disabled")
            return report
        await self.relocate_old_archives(now, report)
        await self.delete_expired_archives(now, report)
        return report

    # ------------------------------------------------------------------
    async def list_staged_shares(self) -> list[str]:
        staging = self._settings.staging_path
        if not await aiofiles.os.path.isdir(staging):
            return []
        shares = []
        for name in sorted(await aiofiles.os.listdir(staging)):
            path = staging / name
            if await aiofiles.os.path.isdir(path) and not await aiofiles.os.path.islink(path):
                shares.append(name)
        return shares

    async def create_archive(self, share: str) -> Path:
        """Compress one staged share. The previous archive is replaced only on success."""
        source = self._settings.staging_path / share
        archive = archive_path_for(self._settings.backup_dir, share)
        temp_archive = create_temp_file_path(archive)

        # 7z would append to a leftover from an interrupted run
        if await aiofiles.os.path.exists(temp_archive):
            await aiofiles.os.remove(temp_archive)

        logging.info(f"Creating 7z archive for share: {share}")
        result = await self._runner.run(
            self.build_archive_command(temp_archive, source),
            timeout=self._settings.archive_timeout_seconds,
        )
        if not result.succeeded:
            if await aiofiles.os.path.exists(temp_archive):
                await aiofiles.os.remove(temp_archive)
            raise ArchiveFailed(share, f"7z could not write {archive}", result)

        await aiofiles.os.replace(temp_archive, archive)
        logging.info(f"Archive created: {archive}")
        return archive

    async def run(self, now: Optional[datetime] = None) -> ArchiveReport:
        now = now or self._clock()
        report = ArchiveReport()

        if not self.is_trigger_day(now.date()):
            logging.info(
                f"Today is {calendar.day_name[now.weekday()]}, weekly archives are "
                f"created on {self.trigger_day_name}. Skipping 7z archive creation."
            )
            return report

        report.triggered = True
        logging.info(f"Today is {self.trigger_day_name}, creating weekly backup")
        report.retention = await self.enforce_retention(now)
        self._runner.require_tools("7z")

        shares = await self.list_staged_shares()
        if not shares:
            logging.info(
                f"No shares found in {self._settings.staging_path}. Skipping 7z archive creation."
            )
            return report

        logging.info(f"Shares found: {', '.join(shares)}")

        for share in shares:
            try:
                report.created.append(await self.create_archive(share))
            except ArchiveFailed as e:
                logging.error(str(e))
                report.failed[share] = str(e)
        return report
