"""Platform Factory - platform detection and mounter creation."""

import logging
import platform

from ..command_runner import CommandRunner
from .base_mounter import BaseMounter
from .mount_config import MountConfigHandler


class UnsupportedPlatformError(Exception):
    """Raised when platform is not supported for network mounting."""
    pass


class PlatformFactory:
    """Factory for creating platform-specific mount implementations."""

    def detect_platform(self) -> str:
        """Detect current platform. Returns: macos, windows, or linux."""
        system = platform.system().lower()

        if system == "darwin":
            return "macos"
        elif system == "windows":
            return "windows"
        elif system == "linux":
            return "linux"
        else:
            raise UnsupportedPlatformError(f"Platform {system} not supported for network mounting")

    def create_mounter(self, runner: CommandRunner, config: MountConfigHandler) -> BaseMounter:
        """Create platform-specific mounter instance."""
        platform_name = self.detect_platform()
        logging.debug(f"Detected platform: {platform_name}")

        if platform_name == "linux":
            from .cifs_mounter import CifsMounter
            logging.debug(f"Mount configuration: {config.get_platform_config()}")
            return CifsMounter(runner, config)
        raise UnsupportedPlatformError(
            f"No mounter implementation for platform: {platform_name} (CIFS mounts need Linux)"
        )
