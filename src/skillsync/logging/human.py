"""
Human Log — Formatter y helper para la salida legible del sync.

Produce las líneas que ve el usuario mientras se sincronizan las skills,
un bloque por repositorio:

    Syncing /home/me/project...
    ✓ Synced 12 skills (3 new, 9 updated)
    ⚠ Skipped 1 files (locally modified):
      - debugging/SKILL.md
      Staged changes in git
"""

import logging
import sys

from .levels import HUMAN

# Claves añadidas por la cadena de processors de structlog, nunca son payload
_META_KEYS = frozenset({
    "event", "level", "timestamp", "logger", "_record", "_from_structlog",
})


class HumanFormatter:
    """Convierte eventos estructurados del sync en texto legible.

    Cada tipo de evento tiene su propio formato. Los eventos desconocidos
    devuelven None y no se imprimen.
    """

    def format_event(self, event: str, **kw) -> str | None:
        match event:

            # ── Pases por repositorio ────────────────────────────────────
            case "sync.repo.start":
                return f"\nSyncing {kw.get('repo', '?')}..."

            case "sync.repo.complete":
                copied = kw.get("copied", 0)
                updated = kw.get("updated", 0)
                return f"✓ Synced {copied + updated} skills ({copied} new, {updated} updated)"

            case "sync.repo.skipped":
                paths = kw.get("paths") or []
                lines = [f"⚠ Skipped {len(paths)} files (locally modified):"]
                lines.extend(f"  - {p}" for p in paths)
                return "\n".join(lines)

            case "sync.repo.errors":
                errors = kw.get("errors") or []
                lines = [f"⚠ {len(errors)} files could not be synced:"]
                lines.extend(f"  - {e.get('path', '?')}: {e.get('message', '')}" for e in errors)
                return "\n".join(lines)

            case "sync.repo.missing":
                return f"✗ Repository not found: {kw.get('repo', '?')}"

            case "sync.repo.failed":
                return f"✗ Failed to sync {kw.get('repo', '?')}: {kw.get('error', 'unknown error')}"

            # ── Git ──────────────────────────────────────────────────────
            case "sync.git.staged":
                return "  Staged changes in git"

            case "sync.git.detached":
                return "⚠ Repo in detached HEAD state - files updated but not staged"

            case _:
                return None


class HumanLogHandler(logging.Handler):
    """Handler de logging que solo formatea registros HUMAN.

    Escribe en stderr para no ensuciar stdout en pipes. Sin stream explícito,
    sys.stderr se resuelve en cada emit.
    """

    def __init__(self, stream=None) -> None:
        super().__init__(level=HUMAN)
        self._stream = stream
        self.formatter_inst = HumanFormatter()

    @property
    def stream(self):
        return self._stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno != HUMAN:
                return

            # structlog (wrap_for_formatter) pasa el event dict como msg
            if isinstance(record.msg, dict):
                event = record.msg.get("event", "")
                kw = {k: v for k, v in record.msg.items() if k not in _META_KEYS}
            else:
                event = record.getMessage()
                kw = {}

            formatted = self.formatter_inst.format_event(str(event), **kw)
            if formatted is not None:
                self.stream.write(formatted + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


class HumanLog:
    """Helper tipado para emitir eventos de nivel HUMAN.

    Uso:
        hlog = HumanLog(structlog.get_logger())
        hlog.repo_start("/home/me/project")
    """

    def __init__(self, logger) -> None:
        self._log = logger

    def repo_start(self, repo: str) -> None:
        self._log.log(HUMAN, "sync.repo.start", repo=repo)

    def repo_complete(self, repo: str, copied: int, updated: int) -> None:
        self._log.log(HUMAN, "sync.repo.complete", repo=repo, copied=copied, updated=updated)

    def repo_skipped(self, repo: str, paths: list[str]) -> None:
        self._log.log(HUMAN, "sync.repo.skipped", repo=repo, paths=paths)

    def repo_errors(self, repo: str, errors: list[dict]) -> None:
        self._log.log(HUMAN, "sync.repo.errors", repo=repo, errors=errors)

    def repo_missing(self, repo: str) -> None:
        self._log.log(HUMAN, "sync.repo.missing", repo=repo)

    def repo_failed(self, repo: str, error: str) -> None:
        self._log.log(HUMAN, "sync.repo.failed", repo=repo, error=error)

    def git_staged(self, repo: str) -> None:
        self._log.log(HUMAN, "sync.git.staged", repo=repo)

    def git_detached(self, repo: str) -> None:
        self._log.log(HUMAN, "sync.git.detached", repo=repo)
