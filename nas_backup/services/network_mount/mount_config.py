"""Mount Configuration Handler - turns Settings into mount arguments."""

from ...config import Settings


class MountConfigHandler:
    """Builds CIFS device names, option strings and credential environment from Settings."""

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def mount_timeout(self) -> int:
        return self._settings.mount_timeout_seconds

    @property
    def unmount_timeout(self) -> int:
        return self._settings.unmount_timeout_seconds

    def get_share_unc(self, share: str) -> str:
        """Remote device for mount, e.g. //192.168.1.10/docs."""
        return f"//{self._settings.nas_ip}/{share}"

    def build_mount_options(self) -> str:
        """Options for `mount -t cifs -o`. The password travels in PASSWD, never here."""
        options = [
            f"username={self._settings.nas_user}",
            f"vers={self._settings.smb_version}",
            f"uid={self._settings.mount_uid}",
            f"gid={self._settings.mount_gid}",
            "noperm",
        ]
        return ",".join(options)

    def get_credentials_env(self) -> dict[str, str]:
        return {"PASSWD": self._settings.nas_password}

    def get_platform_config(self) -> dict:
        """Mount configuration safe for logging (no password)."""
        return {
            "nas_ip": self._settings.nas_ip,
            "username": self._settings.nas_user,
            "smb_version": self._settings.smb_version,
            "source_dir": str(self._settings.source_dir),
            "failure_policy": self._settings.mount_failure_policy,
        }
