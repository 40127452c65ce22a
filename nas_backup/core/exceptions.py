# nas_backup/core/exceptions.py

from typing import Optional


class BackupError(Exception):
    """Base exception for every failure the backup run can report."""
    pass


class ConfigurationMissing(BackupError):
    """Raised when the env file holding the configuration does not exist."""
    def __init__(self, env_file: str):
        self.env_file = env_file
        super().__init__(
            f"Env file {env_file} doesn't exist. Make sure you have created it "
            f"and filled it with correct values."
        )


class ConfigurationInvalid(BackupError):
    """Raised when a required setting is empty or a path is not absolute."""
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class ToolMissing(BackupError):
    """Raised when a required external utility is not on PATH."""
    def __init__(self, tool: str, hint: Optional[str] = None):
        self.tool = tool
        message = f"{tool} command not found."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class CommandError(BackupError):
    """Base for failures of an external command. Carries the CommandResult."""
    def __init__(self, message: str, result=None):
        self.result = result
        if result is not None:
            message = f"{message} ({result.describe_failure()})"
        super().__init__(message)


class DiscoveryUnreachable(CommandError):
    """Raised when the NAS cannot be contacted or rejects the credentials."""
    pass


class MountFailed(CommandError):
    """Raised when a single share cannot be attached at its mount point."""
    def __init__(self, share: str, message: str, result=None):
        self.share = share
        super().__init__(f"Mount of share '{share}' failed: {message}", result)


class SyncFailed(CommandError):
    """Raised when the mirror into the staging directory does not complete."""
    pass


class ArchiveFailed(CommandError):
    """Raised when a single share cannot be compressed."""
    def __init__(self, share: str, message: str, result=None):
        self.share = share
        super().__init__(f"Archive of share '{share}' failed: {message}", result)


class RunLocked(BackupError):
    """Raised when another backup run already holds the run lock."""
    def __init__(self, lock_file: str):
        self.lock_file = lock_file
        super().__init__(
            f"Another backup run holds the lock {lock_file}. Exiting."
        )
