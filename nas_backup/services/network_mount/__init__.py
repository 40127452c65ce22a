"""
Network Mount Module

Attaches NAS shares below the source root and detaches them again.

Components:
- NetworkMountService: mounts every discovered share, applies failure policy
- BaseMounter: abstract interface for platform mount operations
- CifsMounter: Linux `mount -t cifs` implementation
- PlatformFactory: platform detection and mounter creation
- MountConfigHandler: mount options and credentials from Settings
"""

from .base_mounter import BaseMounter
from .mount_config import MountConfigHandler
from .mount_service import NetworkMountService
from .platform_factory import PlatformFactory, UnsupportedPlatformError

__all__ = [
    "NetworkMountService",
    "BaseMounter",
    "PlatformFactory",
    "MountConfigHandler",
    "UnsupportedPlatformError",
]
