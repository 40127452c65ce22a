import logging
import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationInvalid, ConfigurationMissing
from .utils.file_operations import normalize_directory
from .utils.host_config import DEFAULT_ENV_FILE, get_settings_file, list_all_settings_files

EXAMPLE_ENV = """\
NAS_IP=127.0.0.1
SOURCE_DIR=/mnt/source
BACKUP_DIR=/mnt/backup
BACKUP_DIR_WEEKLY=/mnt/backup-weekly
NAS_USER=backup
NAS_PASSWORD=your_password
SMBVERSION=3.0"""

WEEKDAY_NAMES = {
    "monday": 1, "mon": 1,
    "tuesday": 2, "tue": 2,
    "wednesday": 3, "wed": 3,
    "thursday": 4, "thu": 4,
    "friday": 5, "fri": 5,
    "saturday": 6, "sat": 6,
    "sunday": 7, "sun": 7,
}

_SMB_VERSION_PATTERN = re.compile(r"^(default|\d+(\.\d+)*)$")
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    # NAS forbindelse
    nas_ip: str
    nas_user: str
    nas_password: str
    smb_version: str = Field(
        default="3.0", validation_alias=AliasChoices("SMBVERSION", "smb_version")
    )

    # Directories
    source_dir: Path
    backup_dir: Path
    backup_dir_weekly: Optional[Path] = None  # Weekly retention disabled when unset
    staging_dir: Optional[Path] = None  # Defaults to <backup_dir>/sync

    # Mount options
    mount_uid: int = Field(default=1000, ge=0)
    mount_gid: int = Field(default=1000, ge=0)
    mount_failure_policy: Literal["continue", "abort"] = "continue"

    # Weekly archive + retention
    archive_weekday: int = Field(default=5, ge=1, le=7)  # ISO weekday, 5 = Friday
    relocate_after_days: int = Field(default=5, ge=0)
    delete_after_days: int = Field(default=30, ge=0)

    # Timeouts in seconds, 0 disables the timeout
    discovery_timeout_seconds: int = Field(default=60, ge=0)
    mount_timeout_seconds: int = Field(default=60, ge=0)
    unmount_timeout_seconds: int = Field(default=60, ge=0)
    sync_timeout_seconds: int = Field(default=43200, ge=0)
    archive_timeout_seconds: int = Field(default=0, ge=0)

    # Run lock
    lock_file: Optional[Path] = None  # Defaults to <backup_dir>/.nas_backup.lock

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/nas_backup.log"
    log_retention_days: int = Field(default=30, ge=0)

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("nas_ip", "nas_user", mode="before")
    @classmethod
    def _strip_required(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("must not be empty")
        return str(value).strip()

    @field_validator("nas_password", mode="before")
    @classmethod
    def _password_present(cls, value):
        if value is None or value == "":
            raise ValueError("must not be empty")
        return value

    @field_validator("source_dir", "backup_dir", mode="before")
    @classmethod
    def _required_directory(cls, value):
        if value is None:
            raise ValueError("must not be empty")
        return normalize_directory(str(value))

    @field_validator("backup_dir_weekly", "staging_dir", "lock_file", mode="before")
    @classmethod
    def _optional_directory(cls, value):
        if value is None or not str(value).strip():
            return None
        return normalize_directory(str(value))

    @field_validator("smb_version", mode="before")
    @classmethod
    def _smb_version_shape(cls, value):
        value = str(value).strip() or "3.0"
        if not _SMB_VERSION_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a protocol version such as 3.0 or 2.1")
        return value

    @field_validator("archive_weekday", mode="before")
    @classmethod
    def _weekday_from_name(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            if key in WEEKDAY_NAMES:
                return WEEKDAY_NAMES[key]
        return value

    @field_validator("mount_failure_policy", mode="before")
    @classmethod
    def _lower_policy(cls, value):
        return str(value).strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        level = str(value).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return level

    @model_validator(mode="after")
    def _staging_outside_source(self):
        # rsync would mirror its own output if staging lived inside the mounts
        for name, path in (("BACKUP_DIR", self.backup_dir), ("STAGING_DIR", self.staging_path)):
            if path == self.source_dir or self.source_dir in path.parents:
                raise ValueError(f"{name} must not be inside SOURCE_DIR")
        return self

    @property
    def staging_path(self) -> Path:
        return self.staging_dir or self.backup_dir / "sync"

    @property
    def lock_path(self) -> Path:
        return self.lock_file or self.backup_dir / ".nas_backup.lock"

    @property
    def weekly_retention_enabled(self) -> bool:
        return self.backup_dir_weekly is not None

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent


def describe_validation_errors(error: ValidationError) -> list[str]:
    problems = []
    for item in error.errors():
        name = str(item["loc"][0]).upper() if item.get("loc") else "CONFIGURATION"
        problems.append(f"{name}: {item['msg']}")
    return problems


def log_example_env(env_file: str) -> None:
    logging.error(
        f"Env file {env_file} doesn't exist. "
        "Make sure you have created it and filled it with correct values."
    )
    logging.error("Example .env file:")
    for line in EXAMPLE_ENV.splitlines():
        logging.error(line)
    logging.error("Exiting")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Load and validate the configuration from an env file.

    Raises ConfigurationMissing when the file is absent and
    ConfigurationInvalid when a setting is empty or malformed.
    """
    env_file = env_file or get_settings_file()
    logging.info("Configuration loading")

    if not Path(env_file).is_file():
        available = list_all_settings_files(Path(env_file).parent)
        if available:
            logging.error(f"Env files present in {Path(env_file).parent}: {', '.join(available)}")
        log_example_env(env_file)
        raise ConfigurationMissing(env_file)

    try:
        settings = Settings(_env_file=env_file)
    except ValidationError as e:
        raise ConfigurationInvalid(describe_validation_errors(e)) from e

    logging.info(f"Configuration loaded from: {env_file}")
    return settings
