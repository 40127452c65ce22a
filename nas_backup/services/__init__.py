"""
Services for the NAS Backup Agent.

Each step of a backup run lives in its own module and talks to the outside
world only through CommandRunner (external programs) or a BaseMounter.
"""

from .archive_manager import ArchiveManager
from .backup_pipeline import BackupPipeline
from .cleanup_service import MountCleanupService
from .command_runner import CommandRunner
from .run_lock import RunLock
from .share_discovery import ShareDiscoveryService
from .sync_engine import RsyncSyncEngine

__all__ = [
    "ArchiveManager",
    "BackupPipeline",
    "CommandRunner",
    "MountCleanupService",
    "RsyncSyncEngine",
    "RunLock",
    "ShareDiscoveryService",
]
