"""
Exception hierarchy for skillsync.

Per-artifact I/O problems are plain OSError subclasses (FileNotFoundError,
PermissionError, ...) and are folded into the sync outcome. Everything here
is fatal to the operation that raised it.
"""

__all__ = [
    "ConfigError",
    "GitError",
    "LedgerError",
    "SyncError",
    "UnsupportedShellError",
]


class SyncError(Exception):
    """Base error for skillsync."""

    pass


class LedgerError(SyncError):
    """The sync ledger could not be loaded or persisted.

    Without a reliable ledger the no-clobber guarantee does not hold,
    so the pass that raised it must not be reported as successful.
    """

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Sync ledger {path}: {reason}")


class ConfigError(SyncError):
    """The configuration file is unreadable or invalid."""

    pass


class GitError(SyncError):
    """A git command failed."""

    pass


class UnsupportedShellError(SyncError):
    """Shell hooks cannot be installed for the current shell."""

    pass
