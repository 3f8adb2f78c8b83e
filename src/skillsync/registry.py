"""
Repository registry — the list of repositories skills are synced into.

Stored in the configuration file (``repos``). Every operation reloads the
file so several shells can register repositories without clobbering each
other's entries.
"""

from datetime import datetime, timezone
from pathlib import Path

import structlog

from .config.loader import ConfigStore
from .config.schema import RepoEntry

logger = structlog.get_logger()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_repo_path(path: str | Path) -> str:
    """Absolute, resolved form used as the registry key."""
    return str(Path(path).expanduser().resolve())


class RepoRegistry:
    """Registers, lists and unregisters repositories."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def register(self, repo_path: str | Path) -> bool:
        """Register a repository.

        Returns:
            True if it was added, False if it was already registered.
        """
        key = normalize_repo_path(repo_path)
        config = self.store.load()
        if config.find_repo(key):
            return False

        config.repos.append(RepoEntry(path=key, registered=_now_iso()))
        self.store.save(config)
        logger.info("registry.registered", repo=key)
        return True

    def unregister(self, repo_path: str | Path) -> bool:
        """Remove a repository.

        Returns:
            True if it was registered and has been removed.
        """
        key = normalize_repo_path(repo_path)
        config = self.store.load()
        remaining = [r for r in config.repos if r.path != key]
        if len(remaining) == len(config.repos):
            return False

        config.repos = remaining
        self.store.save(config)
        logger.info("registry.unregistered", repo=key)
        return True

    def list(self) -> list[RepoEntry]:
        return list(self.store.load().repos)

    def get(self, repo_path: str | Path) -> RepoEntry | None:
        return self.store.load().find_repo(normalize_repo_path(repo_path))

    def is_registered(self, repo_path: str | Path) -> bool:
        return self.get(repo_path) is not None

    def update_last_sync(self, repo_path: str | Path) -> None:
        """Stamp a registered repository with the current time. No-op otherwise."""
        key = normalize_repo_path(repo_path)
        config = self.store.load()
        repo = config.find_repo(key)
        if repo is None:
            return
        repo.last_sync = _now_iso()
        self.store.save(config)
