"""
Sync Ledger — per-destination record of what skillsync last wrote.

Each destination tree owns one ledger, persisted as a hidden JSON file at
the root of that tree:

    <destination>/.sync-metadata.json

    {
      "files": {
        "debugging/SKILL.md": {"hash": "<sha256>", "syncedAt": "<iso>"}
      },
      "lastSync": "<iso>"
    }

The recorded fingerprint plays the role of the common ancestor in a
three-way comparison: a destination file whose current fingerprint still
matches its entry has not been touched since the last sync.

A missing ledger file is an empty ledger (first sync). A ledger that exists
but cannot be read or parsed raises LedgerError. Saving writes to a
temporary sibling and renames it over the target, so an interrupted save
leaves the previous ledger intact.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from ..errors import LedgerError
from .atomic import atomic_write_text

logger = structlog.get_logger()

__all__ = [
    "LEDGER_FILENAME",
    "LedgerEntry",
    "SyncLedger",
    "ledger_path",
]

LEDGER_FILENAME = ".sync-metadata.json"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ledger_path(location: str | Path) -> Path:
    """Return the ledger file for a destination root."""
    return Path(location) / LEDGER_FILENAME


@dataclass
class LedgerEntry:
    """Fingerprint of an artifact at the moment skillsync wrote it."""

    fingerprint: str
    synced_at: str

    def to_dict(self) -> dict[str, str]:
        return {"hash": self.fingerprint, "syncedAt": self.synced_at}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerEntry":
        return cls(fingerprint=data["hash"], synced_at=data.get("syncedAt", ""))


class SyncLedger:
    """In-memory view of one destination tree's ledger.

    No locking is done. At most one sync pass may run against a given
    destination at a time.
    """

    def __init__(
        self,
        entries: dict[str, LedgerEntry] | None = None,
        last_sync: str | None = None,
    ) -> None:
        self._entries: dict[str, LedgerEntry] = dict(entries or {})
        self.last_sync = last_sync

    @classmethod
    def load(cls, location: str | Path) -> "SyncLedger":
        """Load the ledger of a destination root.

        Args:
            location: Destination root directory.

        Returns:
            The persisted ledger, or an empty one if none exists yet.

        Raises:
            LedgerError: If the ledger file exists but is unreadable or malformed.
        """
        path = ledger_path(location)
        if not path.exists():
            logger.debug("ledger.empty", path=str(path))
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise LedgerError(path, f"cannot read: {e}") from e
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LedgerError(path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("files", {}), dict):
            raise LedgerError(path, "unexpected format")

        entries: dict[str, LedgerEntry] = {}
        for rel_path, raw in data.get("files", {}).items():
            if not isinstance(raw, dict) or not isinstance(raw.get("hash"), str):
                raise LedgerError(path, f"malformed entry for {rel_path!r}")
            entries[rel_path] = LedgerEntry.from_dict(raw)

        logger.debug("ledger.loaded", path=str(path), entries=len(entries))
        return cls(entries, last_sync=data.get("lastSync"))

    def get(self, rel_path: str) -> str | None:
        """Return the last recorded fingerprint for a path, or None."""
        entry = self._entries.get(rel_path)
        return entry.fingerprint if entry else None

    def set(self, rel_path: str, fingerprint: str) -> None:
        """Record (or overwrite) the fingerprint written for a path."""
        self._entries[rel_path] = LedgerEntry(fingerprint=fingerprint, synced_at=_now_iso())

    def remove(self, rel_path: str) -> None:
        """Forget a path. Used when an artifact is retired."""
        self._entries.pop(rel_path, None)

    def entry(self, rel_path: str) -> LedgerEntry | None:
        return self._entries.get(rel_path)

    def paths(self) -> list[str]:
        """Recorded relative paths, sorted."""
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, rel_path: object) -> bool:
        return rel_path in self._entries

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": {p: self._entries[p].to_dict() for p in sorted(self._entries)},
            "lastSync": self.last_sync,
        }

    def save(self, location: str | Path) -> Path:
        """Persist the ledger atomically and stamp the last-sync time.

        Args:
            location: Destination root directory (created if missing).

        Returns:
            Path of the written ledger file.

        Raises:
            LedgerError: If the ledger cannot be written.
        """
        path = ledger_path(location)
        self.last_sync = _now_iso()
        payload = json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

        try:
            atomic_write_text(path, payload)
        except OSError as e:
            raise LedgerError(path, f"cannot write: {e}") from e

        logger.debug("ledger.saved", path=str(path), entries=len(self._entries))
        return path
