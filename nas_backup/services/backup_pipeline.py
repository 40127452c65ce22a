"""Backup pipeline - one complete discover, mount, sync, archive and cleanup run."""

import logging
from datetime import datetime
from typing import Callable

import aiofiles.os

from ..config import Settings
from ..models import RunReport
from .archive_manager import ArchiveManager
from .cleanup_service import MountCleanupService
from .command_runner import CommandRunner
from .network_mount.base_mounter import BaseMounter
from .network_mount.mount_service import NetworkMountService
from .run_lock import RunLock
from .share_discovery import ShareDiscoveryService
from .sync_engine import RsyncSyncEngine

REQUIRED_TOOLS = ("smbclient", "mount", "umount", "rsync")


class BackupPipeline:
    """Runs the steps strictly in order. Mounts never outlive run()."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        mounter: BaseMounter,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings
        self._runner = runner
        self._clock = clock
        self.discovery = ShareDiscoveryService(settings, runner)
        self.mount_service = NetworkMountService(settings, mounter)
        self.cleanup_service = MountCleanupService(settings, mounter)
        self.sync_engine = RsyncSyncEngine(settings, runner)
        self.archive_manager = ArchiveManager(settings, runner, clock)

    async def _prepare_directories(self) -> None:
        for label, path in (
            ("Source", self._settings.source_dir),
            ("Destination backup", self._settings.backup_dir),
        ):
            if await aiofiles.os.path.isdir(path):
                logging.info(f"{label} folder: {path}")
            else:
                logging.info(f"{label} folder does not exist. Creating {path}")
                await aiofiles.os.makedirs(path, exist_ok=True)

    async def _backup_shares(self, report: RunReport) -> None:
        report.mounts = await self.mount_service.mount_shares(report.shares)

        await self.sync_engine.sync(excluded_shares=report.mounts.failed)
        report.synced = True

        logging.info("Starting backup process")
        report.archive = await self.archive_manager.run(self._clock())

    async def run(self) -> RunReport:
        report = RunReport(started_at=self._clock())

        # Nothing is touched until tools and directories are confirmed
        self._runner.require_tools(*REQUIRED_TOOLS)
        await self._prepare_directories()

        with RunLock(self._settings.lock_path):
            await self.cleanup_service.cleanup("pre-run")

            async with self.cleanup_service.mount_guard(report):
                report.shares = await self.discovery.discover_shares()
                if report.shares:
                    await self._backup_shares(report)
                else:
                    # rsync --delete from an empty root would erase the whole mirror
                    logging.warning(
                        f"No shares to back up. Leaving {self._settings.staging_path} untouched."
                    )

        report.finished_at = self._clock()
        logging.info(f"Backup directory: {self._settings.backup_dir}")
        logging.info(f"Backup source directory: {self._settings.source_dir}")
        logging.info(f"Run summary: {report.get_summary()}")
        return report
