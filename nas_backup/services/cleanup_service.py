"""
Unmount and cleanup of the source root.

Runs before mounting, to clear whatever a crashed run left behind, and again
from ``mount_guard`` on every way out of the pipeline.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import aiofiles.os

from ..config import Settings
from ..models import CleanupReport, RunReport
from .network_mount.base_mounter import BaseMounter

PROBE_TIMEOUT_SECONDS = 10.0


class MountCleanupService:
    """Unmounts every mount point under the source root and prunes empty directories."""

    def __init__(self, settings: Settings, mounter: BaseMounter):
        self._settings = settings
        self._mounter = mounter

    @property
    def source_root(self) -> Path:
        return self._settings.source_dir

    async def _subdirectories(self, directory: Path) -> list[Path]:
        try:
            names = await aiofiles.os.listdir(directory)
        except (FileNotFoundError, NotADirectoryError):
            return []
        children = []
        for name in sorted(names):
            child = directory / name
            if await self._is_real_directory(child):
                children.append(child)
        return children

    async def _is_real_directory(self, path: Path) -> bool:
        try:
            return await asyncio.wait_for(self._stat_directory(path), timeout=PROBE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            # A stat that hangs means a dead CIFS mount; let the mount check decide
            logging.warning(f"Directory probe timed out for {path} - treating as directory")
            return True

    async def _stat_directory(self, path: Path) -> bool:
        if await aiofiles.os.path.islink(path):
            return False
        return await aiofiles.os.path.isdir(path)

    async def find_mount_points(self) -> list[Path]:
        """Mount points below the root, deepest first. Mounted trees are not descended into."""
        found: list[Path] = []
        pending = await self._subdirectories(self.source_root)
        while pending:
            directory = pending.pop()
            if await self._mounter.is_mount_point(directory):
                found.append(directory)
                continue
            pending.extend(await self._subdirectories(directory))
        return sorted(found, key=lambda path: len(path.parts), reverse=True)

    async def unmount_all(self, report: CleanupReport) -> None:
        for mount_point in await self.find_mount_points():
            result = await self._mounter.unmount(mount_point)
            if result.succeeded:
                report.unmounted.append(mount_point)
            else:
                logging.error(f"Failed to unmount {mount_point}: {result.describe_failure()}")
                report.unmount_failures[mount_point] = result.describe_failure()

    async def _prune(self, directory: Path, report: CleanupReport) -> None:
        if await self._mounter.is_mount_point(directory):
            return
        for child in await self._subdirectories(directory):
            await self._prune(child, report)

        if directory == self.source_root:
            return
        try:
            if await aiofiles.os.listdir(directory):
                return
            await aiofiles.os.rmdir(directory)
        except OSError as e:
            logging.warning(f"Could not remove empty directory {directory}: {e}")
            return
        report.removed_directories.append(directory)

    async def remove_empty_directories(self, report: CleanupReport) -> None:
        for child in await self._subdirectories(self.source_root):
            await self._prune(child, report)

    async def cleanup(self, reason: str = "") -> CleanupReport:
        """Idempotent: on a clean root this finds nothing and changes nothing."""
        report = CleanupReport()
        if not await aiofiles.os.path.isdir(self.source_root):
            return report

        label = f" ({reason})" if reason else ""
        logging.info(f"{self.source_root}: Unmounting all CIFS type directories{label}")
        await self.unmount_all(report)

        logging.info(f"{self.source_root}: Removing empty folders{label}")
        await self.remove_empty_directories(report)

        if report.unmounted or report.removed_directories:
            logging.info(
                f"Cleanup{label}: unmounted {len(report.unmounted)}, "
                f"removed {len(report.removed_directories)} empty folder(s)"
            )
        return report

    @asynccontextmanager
    async def mount_guard(self, run_report: Optional[RunReport] = None):
        """Scope in which shares may be mounted. Cleanup runs on every exit from it."""
        try:
            yield self
        finally:
            report = await self.cleanup("post-run")
            if run_report is not None:
                run_report.cleanup = report
