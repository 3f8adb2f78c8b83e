"""
Pydantic models for skillsync configuration.

The configuration file doubles as the repository registry. Field aliases
keep the on-disk keys in camelCase (``userSkills``, ``lastSync``...) so
files written by earlier releases of the tool load unchanged; Python code
uses the snake_case names.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from ..core.synchronizer import DEFAULT_ARTIFACT_PATTERN


def _default_user_skills() -> str:
    return str(Path.home() / ".claude" / "skills")


def _default_plugin_scan_path() -> str:
    return str(Path.home() / ".claude" / "plugins" / "cache" / "*" / "skills")


class RepoEntry(BaseModel):
    """A repository registered for syncing."""

    path: str
    registered: str = Field(description="ISO timestamp of registration")
    last_sync: str | None = Field(
        default=None,
        alias="lastSync",
        description="ISO timestamp of the last completed sync",
    )

    model_config = {"extra": "ignore", "populate_by_name": True}


class SourcesConfig(BaseModel):
    """Where skills come from."""

    user_skills: str = Field(
        default_factory=_default_user_skills,
        alias="userSkills",
        description="Directory with the user's own skills, synced into .claude/skills",
    )
    plugin_scan_path: str = Field(
        default_factory=_default_plugin_scan_path,
        alias="pluginScanPath",
        description="Glob of plugin skill directories; the parent dir name is the plugin name",
    )
    exclude_plugins: list[str] = Field(
        default_factory=list,
        alias="excludePlugins",
        description="Plugin names never synced",
    )
    custom_plugin_paths: list[str] = Field(
        default_factory=list,
        alias="customPluginPaths",
        description="Extra glob patterns of plugin skill directories",
    )

    model_config = {"extra": "ignore", "populate_by_name": True}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "human", "warn", "error"] = "human"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class SyncConfig(BaseModel):
    """Complete application configuration.

    Root of the configuration tree: registered repos, skill sources and
    logging. Unknown top-level keys are ignored so hand-edited files do not
    break the tool.
    """

    repos: list[RepoEntry] = Field(default_factory=list)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    artifact_pattern: str = Field(
        default=DEFAULT_ARTIFACT_PATTERN,
        alias="artifactPattern",
        description="Glob selecting the files that are synced",
    )

    model_config = {"extra": "ignore", "populate_by_name": True}

    def find_repo(self, path: str) -> RepoEntry | None:
        for repo in self.repos:
            if repo.path == path:
                return repo
        return None
