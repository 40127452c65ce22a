"""Network Mount Service - attaches every discovered share under the source root."""

import logging
from pathlib import Path
from typing import Iterable

import aiofiles.os

from ...config import Settings
from ...core.exceptions import MountFailed
from ...models import MountReport
from ...utils.file_operations import mount_point_for
from .base_mounter import BaseMounter


class NetworkMountService:
    """Orchestrates share mounting and applies the mount failure policy."""

    def __init__(self, settings: Settings, mounter: BaseMounter):
        self._settings = settings
        self._mounter = mounter

    @property
    def abort_on_failure(self) -> bool:
        return self._settings.mount_failure_policy == "abort"

    async def mount_share(self, share: str) -> Path:
        """Create the mount point if needed and attach the share. Raises MountFailed."""
        try:
            mount_point = mount_point_for(self._settings.source_dir, share)
        except ValueError as e:
            raise MountFailed(share, str(e)) from e

        if await self._mounter.is_mount_point(mount_point):
            logging.info(f"Share already mounted: {share} -> {mount_point}")
            return mount_point

        try:
            await aiofiles.os.makedirs(mount_point, exist_ok=True)
        except OSError as e:
            raise MountFailed(share, f"cannot create mount point {mount_point}: {e}") from e

        result = await self._mounter.attempt_mount(share, mount_point)
        if not result.succeeded:
            raise MountFailed(share, f"could not attach at {mount_point}", result)

        logging.info(f"Successfully mounted {share} at {mount_point}")
        return mount_point

    async def mount_shares(self, shares: Iterable[str]) -> MountReport:
        report = MountReport()
        for share in shares:
            try:
                await self.mount_share(share)
            except MountFailed as e:
                if self.abort_on_failure:
                    logging.error(f"{e} - aborting run (MOUNT_FAILURE_POLICY=abort)")
                    raise
                logging.warning(f"{e} - skipping share")
                report.failed[share] = str(e)
                continue
            report.mounted.append(share)

        logging.info(
            f"Mounted {len(report.mounted)} share(s) using {self._mounter.get_platform_name()}"
            + (f", {len(report.failed)} failed" if report.failed else "")
        )
        return report
