"""NAS Backup Agent - mount, mirror and archive NAS shares."""

__version__ = "0.1.0"
