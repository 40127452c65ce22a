"""Abstract Base Mounter - platform-independent mount interface."""

from abc import ABC, abstractmethod
from pathlib import Path

from ...models import CommandResult


class BaseMounter(ABC):
    """Abstract base class for platform-specific mount operations."""

    @abstractmethod
    async def attempt_mount(self, share: str, mount_point: Path) -> CommandResult:
        """Attach a NAS share at an existing local directory."""
        pass

    @abstractmethod
    async def unmount(self, mount_point: Path) -> CommandResult:
        """Detach whatever is mounted at mount_point."""
        pass

    @abstractmethod
    async def is_mount_point(self, path: Path) -> bool:
        """True if path currently has a filesystem mounted on it."""
        pass

    @abstractmethod
    def get_platform_name(self) -> str:
        """Get platform name for logging."""
        pass
