from datetime import datetime, timedelta
from pathlib import Path, PurePosixPath

ARCHIVE_SUFFIX = ".7z"


def normalize_directory(value: str) -> Path:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")

    path = PurePosixPath(value)
    if not path.is_absolute():
        raise ValueError(f"must be an absolute path, got '{value}'")

    # PurePosixPath drops trailing slashes and collapses "//" runs
    return Path(str(path))


def validate_share_name(share: str) -> str:
    if not share or share in (".", ".."):
        raise ValueError(f"Invalid share name: '{share}'")
    if "/" in share or "\\" in share or "\0" in share:
        raise ValueError(f"Share name contains a path separator: '{share}'")
    return share


def mount_point_for(source_root: Path, share: str) -> Path:
    return source_root / validate_share_name(share)


def archive_path_for(backup_root: Path, share: str) -> Path:
    return backup_root / f"{validate_share_name(share)}{ARCHIVE_SUFFIX}"


def create_temp_file_path(dest_path: Path) -> Path:
    return dest_path.with_suffix(dest_path.suffix + ".tmp")


def generate_conflict_free_path(dest_path: Path) -> Path:
    if not dest_path.exists():
        return dest_path

    # Handle complex extensions like .tar.gz properly
    name = dest_path.name
    parent = dest_path.parent

    if "." in name:
        base_name, extensions = name.split(".", 1)
        extensions = "." + extensions
    else:
        base_name = name
        extensions = ""

    counter = 1
    while True:
        new_path = parent / f"{base_name}_{counter}{extensions}"

        if not new_path.exists():
            return new_path

        counter += 1

        if counter > 9999:
            raise RuntimeError(
                f"Could not resolve name conflict after 9999 attempts: {dest_path}"
            )


def file_age_seconds(mtime: float, now: datetime) -> float:
    return now.timestamp() - mtime


def is_older_than(mtime: float, now: datetime, days: int) -> bool:
    """True only when the age is strictly greater than ``days``."""
    return file_age_seconds(mtime, now) > timedelta(days=days).total_seconds()
