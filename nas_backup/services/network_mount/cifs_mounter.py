"""Linux CIFS Mounter - mount/umount via util-linux and cifs-utils."""

import asyncio
import logging
from pathlib import Path

import aiofiles.os

from ...models import CommandResult
from ..command_runner import CommandRunner
from .base_mounter import BaseMounter
from .mount_config import MountConfigHandler

MOUNT_CHECK_TIMEOUT_SECONDS = 10.0


class CifsMounter(BaseMounter):
    """Linux-specific CIFS mount implementation."""

    def __init__(self, runner: CommandRunner, config: MountConfigHandler):
        self._runner = runner
        self._config = config

    def build_mount_command(self, share: str, mount_point: Path) -> list[str]:
        return [
            "mount",
            "-t",
            "cifs",
            self._config.get_share_unc(share),
            str(mount_point),
            "-o",
            self._config.build_mount_options(),
        ]

    def build_unmount_command(self, mount_point: Path) -> list[str]:
        return ["umount", "-t", "cifs", str(mount_point)]

    async def attempt_mount(self, share: str, mount_point: Path) -> CommandResult:
        logging.info(f"Mounting NAS share: {share} at {mount_point}")
        return await self._runner.run(
            self.build_mount_command(share, mount_point),
            timeout=self._config.mount_timeout,
            env=self._config.get_credentials_env(),
        )

    async def unmount(self, mount_point: Path) -> CommandResult:
        logging.info(f"Unmounting {mount_point}")
        return await self._runner.run(
            self.build_unmount_command(mount_point),
            timeout=self._config.unmount_timeout,
        )

    async def is_mount_point(self, path: Path) -> bool:
        try:
            return await asyncio.wait_for(
                aiofiles.os.path.ismount(str(path)),
                timeout=MOUNT_CHECK_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            # A stat that hangs means a dead CIFS mount is still attached
            logging.warning(f"Mount check timed out for {path} - treating as mounted")
            return True

    def get_platform_name(self) -> str:
        """Get platform name for logging."""
        return "Linux CIFS"
