"""Sync engine - rsync mirror of the mounted shares into the staging directory."""

import logging
import re
from typing import Iterable

import aiofiles.os

from ..config import Settings
from ..core.exceptions import SyncFailed
from ..models import CommandResult
from .command_runner import CommandRunner

# rsync only honours backslash escapes in patterns that contain a wildcard
_RSYNC_WILDCARDS = re.compile(r"[*?\[]")
_RSYNC_SPECIAL = re.compile(r"([*?\[\\])")


def escape_rsync_pattern(name: str) -> str:
    if not _RSYNC_WILDCARDS.search(name):
        return name
    return _RSYNC_SPECIAL.sub(r"\\\1", name)


class RsyncSyncEngine:
    """Mirrors SOURCE_DIR into the staging directory, deleting what vanished remotely."""

    def __init__(self, settings: Settings, runner: CommandRunner):
        self._settings = settings
        self._runner = runner

    def build_command(self, excluded_shares: Iterable[str] = ()) -> list[str]:
        # Trailing slashes: copy the contents of the source root, not the root itself
        source = str(self._settings.source_dir).rstrip("/") + "/"
        staging = str(self._settings.staging_path).rstrip("/") + "/"
        # Excluded paths are also protected from --delete, so an unmounted
        # share keeps its last good mirror instead of being emptied
        excludes = [f"--exclude=/{escape_rsync_pattern(share)}/" for share in excluded_shares]
        return ["rsync", "-zar", "--delete", *excludes, source, staging]

    async def sync(self, excluded_shares: Iterable[str] = ()) -> CommandResult:
        staging = self._settings.staging_path
        await aiofiles.os.makedirs(staging, exist_ok=True)

        excluded_shares = list(excluded_shares)
        if excluded_shares:
            logging.warning(
                f"Keeping previous mirror for unmounted share(s): {', '.join(excluded_shares)}"
            )

        logging.info(f"Syncing {self._settings.source_dir} -> {staging}")
        result = await self._runner.run(
            self.build_command(excluded_shares),
            timeout=self._settings.sync_timeout_seconds,
        )
        if not result.succeeded:
            logging.error("Rsync failed. Exiting.")
            raise SyncFailed("Rsync failed", result)

        logging.info(f"Rsync completed successfully in {result.elapsed_seconds:.1f}s")
        return result
