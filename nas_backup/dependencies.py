from functools import lru_cache
from typing import Any, Dict

from .config import Settings, load_settings
from .services.backup_pipeline import BackupPipeline
from .services.command_runner import CommandRunner
from .services.network_mount import MountConfigHandler, PlatformFactory
from .services.network_mount.base_mounter import BaseMounter

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Hent Settings singleton instance."""
    return load_settings()


def get_command_runner() -> CommandRunner:
    if "command_runner" not in _singletons:
        _singletons["command_runner"] = CommandRunner()
    return _singletons["command_runner"]


def get_mounter() -> BaseMounter:
    if "mounter" not in _singletons:
        _singletons["mounter"] = PlatformFactory().create_mounter(
            get_command_runner(), MountConfigHandler(get_settings())
        )
    return _singletons["mounter"]


def get_backup_pipeline() -> BackupPipeline:
    if "backup_pipeline" not in _singletons:
        _singletons["backup_pipeline"] = BackupPipeline(
            settings=get_settings(),
            runner=get_command_runner(),
            mounter=get_mounter(),
        )
    return _singletons["backup_pipeline"]


def reset_singletons() -> None:
    """Drop cached instances so the next getter call builds fresh ones (tests)."""
    _singletons.clear()
    get_settings.cache_clear()
