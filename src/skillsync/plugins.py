"""
Plugin discovery — locate plugin skill directories by glob pattern.

A plugin is any directory matched by a scan pattern such as
``~/.claude/plugins/cache/*/skills``; its name is the name of the
matched directory's parent:

    ~/.claude/plugins/cache/superpowers/skills  ->  plugin "superpowers"
"""

import glob
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class Plugin:
    """A named source collection of skills."""

    name: str
    skills_path: Path


def find_plugins(patterns: str | list[str]) -> list[Plugin]:
    """Expand scan patterns into plugins.

    Patterns that match nothing (including patterns under a missing
    directory) contribute no plugins. Results are sorted by name, then path,
    and each directory appears once.

    Args:
        patterns: One glob pattern or a list of them. ``~`` is expanded.
    """
    if isinstance(patterns, str):
        patterns = [patterns]

    seen: set[Path] = set()
    plugins: list[Plugin] = []
    for pattern in patterns:
        if not pattern:
            continue
        expanded = str(Path(pattern).expanduser())
        for match in glob.glob(expanded):
            path = Path(match).resolve()
            if not path.is_dir() or path in seen:
                continue
            seen.add(path)
            plugins.append(Plugin(name=path.parent.name, skills_path=path))

    plugins.sort(key=lambda p: (p.name, str(p.skills_path)))
    logger.debug("plugins.discovered", count=len(plugins), names=[p.name for p in plugins])
    return plugins
