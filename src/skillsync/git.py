"""
Git helper — stage synced skills in the destination repository.

All calls go through ``git`` subprocesses run in the repository root.
"""

import subprocess
from pathlib import Path

import structlog

from .errors import GitError

logger = structlog.get_logger()


class GitHelper:
    """Thin wrapper around the git commands used after a sync."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout
        self.log = logger.bind(component="git_helper")

    def _run(self, repo_path: str | Path, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=self.timeout,
        )

    def is_git_repo(self, repo_path: str | Path) -> bool:
        return (Path(repo_path) / ".git").exists()

    def is_clean(self, repo_path: str | Path, rel_path: str) -> bool:
        """True if ``rel_path`` has no uncommitted changes. False on any git failure."""
        try:
            result = self._run(repo_path, "status", "--porcelain", "--", rel_path)
        except (OSError, subprocess.TimeoutExpired):
            return False
        if result.returncode != 0:
            return False
        return result.stdout.strip() == ""

    def is_detached_head(self, repo_path: str | Path) -> bool:
        """True unless HEAD is a symbolic ref to a branch."""
        try:
            result = self._run(repo_path, "symbolic-ref", "-q", "HEAD")
        except (OSError, subprocess.TimeoutExpired):
            return True
        return result.returncode != 0

    def stage_files(self, repo_path: str | Path, rel_path: str) -> None:
        """Run ``git add`` on a path.

        Raises:
            GitError: If git cannot be run or exits non-zero.
        """
        try:
            result = self._run(repo_path, "add", "--", rel_path)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise GitError(f"Failed to stage {rel_path}: {e}") from e

        if result.returncode != 0:
            raise GitError(f"Failed to stage {rel_path}: {result.stderr.strip()[:200]}")

        self.log.debug("git.staged", repo=str(repo_path), path=rel_path)
