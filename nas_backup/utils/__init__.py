"""
Utilities package for the NAS Backup Agent.

Pure path helpers and configuration file lookup used by the services.
"""

from .file_operations import (
    archive_path_for,
    create_temp_file_path,
    generate_conflict_free_path,
    is_older_than,
    mount_point_for,
    normalize_directory,
    validate_share_name,
)

__all__ = [
    "archive_path_for",
    "create_temp_file_path",
    "generate_conflict_free_path",
    "is_older_than",
    "mount_point_for",
    "normalize_directory",
    "validate_share_name",
]
