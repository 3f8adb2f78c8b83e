"""
Repository runner — sync every skill source into registered repositories.

For each repository:
1. Make sure ledger files are git-ignored.
2. Sync the user's skills into ``<repo>/.claude/skills``.
3. Sync each plugin's skills into ``<repo>/.claude/skills/<plugin>``.
4. Stage ``.claude/skills`` in git (unless HEAD is detached).

Each destination tree has its own ledger, so passes into different
repositories share nothing and can run on a thread pool. Registry updates
and user-facing output happen on the calling thread, in input order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from .config.schema import SyncConfig
from .core.ledger import LEDGER_FILENAME
from .core.outcome import SyncOutcome
from .core.synchronizer import Synchronizer
from .errors import GitError, SyncError
from .git import GitHelper
from .logging import HumanLog
from .plugins import Plugin, find_plugins
from .registry import RepoRegistry

logger = structlog.get_logger()
_hlog = HumanLog(logger)

__all__ = [
    "SKILLS_DIR",
    "RepoSyncReport",
    "RepoSyncer",
    "ensure_gitignore",
]

SKILLS_DIR = ".claude/skills"


@dataclass
class RepoSyncReport:
    """Result of syncing one repository."""

    repo: str
    outcome: SyncOutcome = field(default_factory=SyncOutcome)
    error: str | None = None
    missing: bool = False
    staged: bool = False
    detached: bool = False

    @property
    def status(self) -> str:
        """'failed' (pass aborted), 'partial' (some artifacts errored) or 'success'."""
        if self.error is not None:
            return "failed"
        if self.outcome.has_errors:
            return "partial"
        return "success"


def ensure_gitignore(repo_root: str | Path) -> bool:
    """Add the ledger file name to the repository's .gitignore.

    Returns:
        True if .gitignore was modified.
    """
    gitignore = Path(repo_root) / ".gitignore"
    # Bytes: .gitignore files are not always UTF-8
    content = gitignore.read_bytes() if gitignore.exists() else b""
    entry = LEDGER_FILENAME.encode()
    if any(line.strip() == entry for line in content.splitlines()):
        return False

    if content and not content.endswith(b"\n"):
        content += b"\n"
    gitignore.write_bytes(content + entry + b"\n")
    logger.debug("gitignore.updated", path=str(gitignore))
    return True


class RepoSyncer:
    """Syncs the configured skill sources into repositories."""

    def __init__(
        self,
        config: SyncConfig,
        registry: RepoRegistry | None = None,
        git: GitHelper | None = None,
        plugins: list[Plugin] | None = None,
        stage: bool = True,
    ):
        """
        Args:
            config: Effective configuration (sources, artifact pattern).
            registry: If given, repositories are stamped with their last sync time.
            git: Git helper; a default one is created if omitted.
            plugins: Pre-discovered plugins; discovered from config when omitted.
            stage: Stage synced skills in git.
        """
        self.config = config
        self.registry = registry
        self.git = git or GitHelper()
        self.stage = stage
        self.synchronizer = Synchronizer(pattern=config.artifact_pattern)
        self._plugins = plugins
        self.log = logger.bind(component="repo_syncer")

    @property
    def plugins(self) -> list[Plugin]:
        """Plugins to sync, without the excluded ones. Discovered once."""
        if self._plugins is None:
            sources = self.config.sources
            found = find_plugins([sources.plugin_scan_path, *sources.custom_plugin_paths])
            excluded = set(sources.exclude_plugins)
            self._plugins = [p for p in found if p.name not in excluded]
        return self._plugins

    @property
    def user_skills(self) -> Path:
        return Path(self.config.sources.user_skills).expanduser()

    def sync_repository(self, repo_path: str | Path) -> RepoSyncReport:
        """Sync all sources into one repository.

        Never raises for expected failures (missing repository, ledger or
        I/O errors); they are recorded in the report's ``error``.
        """
        repo = Path(repo_path)
        report = RepoSyncReport(repo=str(repo))

        if not repo.is_dir():
            report.error = "Repository not found"
            report.missing = True
            self.log.warning("sync.repo.missing", repo=str(repo))
            return report

        skills_root = repo / SKILLS_DIR
        try:
            ensure_gitignore(repo)

            if self.user_skills.is_dir():
                report.outcome.merge(self.synchronizer.sync(self.user_skills, skills_root))
            else:
                self.log.debug("sync.user_skills.missing", path=str(self.user_skills))

            for plugin in self.plugins:
                outcome = self.synchronizer.sync(plugin.skills_path, skills_root / plugin.name)
                report.outcome.merge(outcome, prefix=plugin.name)
        except (SyncError, OSError, ValueError) as e:
            report.error = str(e)
            self.log.error("sync.repo.failed", repo=str(repo), error=str(e))
            return report

        if self.stage and report.outcome.synced > 0:
            self._stage(repo, report)

        self.log.info(
            "sync.repo.complete",
            repo=str(repo),
            copied=report.outcome.copied,
            updated=report.outcome.updated,
            skipped=report.outcome.skipped,
            errors=len(report.outcome.errors),
        )
        return report

    def sync_repositories(self, repos: list[str | Path], jobs: int = 1) -> list[RepoSyncReport]:
        """Sync several repositories, optionally in parallel.

        Args:
            repos: Repository roots.
            jobs: Worker threads; 1 runs sequentially.

        Returns:
            One report per repository, in input order.
        """
        if jobs > 1 and len(repos) > 1:
            # Discover before fanning out so workers share one plugin list
            self.plugins
            with ThreadPoolExecutor(max_workers=jobs) as executor:
                reports = list(executor.map(self.sync_repository, repos))
            for report in reports:
                self._finish(report)
            return reports

        reports = []
        for repo in repos:
            report = self.sync_repository(repo)
            self._finish(report)
            reports.append(report)
        return reports

    def _stage(self, repo: Path, report: RepoSyncReport) -> None:
        if not self.git.is_git_repo(repo):
            return
        if self.git.is_detached_head(repo):
            report.detached = True
            return
        try:
            self.git.stage_files(repo, SKILLS_DIR)
        except GitError as e:
            self.log.warning("sync.git.stage_failed", repo=str(repo), error=str(e))
            return
        report.staged = True

    def _finish(self, report: RepoSyncReport) -> None:
        """Stamp the registry and print the human summary for one repository."""
        if report.missing:
            _hlog.repo_missing(report.repo)
            return

        _hlog.repo_start(report.repo)
        if report.error is not None:
            _hlog.repo_failed(report.repo, report.error)
            return

        if self.registry is not None:
            try:
                self.registry.update_last_sync(report.repo)
            except SyncError as e:
                self.log.warning("registry.update_failed", repo=report.repo, error=str(e))

        outcome = report.outcome
        _hlog.repo_complete(report.repo, outcome.copied, outcome.updated)
        if outcome.skipped_paths:
            _hlog.repo_skipped(report.repo, outcome.skipped_paths)
        if outcome.errors:
            _hlog.repo_errors(
                report.repo,
                [{"path": e.path, "message": e.message} for e in outcome.errors],
            )
        if report.detached:
            _hlog.git_detached(report.repo)
        elif report.staged:
            _hlog.git_staged(report.repo)
