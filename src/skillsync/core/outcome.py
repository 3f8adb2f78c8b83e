"""
SyncOutcome — what a sync pass did.

Skipped artifacts are the expected result when a destination has local
edits; they are not errors. Per-artifact I/O failures are collected in
``errors`` so the caller can report them without the pass aborting.
"""

from dataclasses import dataclass, field


@dataclass
class ArtifactError:
    """An artifact that could not be processed during a pass."""

    path: str
    message: str


@dataclass
class SyncOutcome:
    """Aggregate counts for one (or several merged) sync passes."""

    copied: int = 0
    updated: int = 0
    skipped: int = 0
    skipped_paths: list[str] = field(default_factory=list)
    errors: list[ArtifactError] = field(default_factory=list)

    @property
    def synced(self) -> int:
        """Artifacts written during the pass (new + updated)."""
        return self.copied + self.updated

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def record_skip(self, rel_path: str) -> None:
        self.skipped += 1
        self.skipped_paths.append(rel_path)

    def record_error(self, rel_path: str, error: Exception | str) -> None:
        self.errors.append(ArtifactError(path=rel_path, message=str(error)))

    def merge(self, other: "SyncOutcome", prefix: str = "") -> None:
        """Fold another outcome into this one.

        Args:
            other: Outcome to add.
            prefix: Prepended (with '/') to the other outcome's paths, used when
                the other pass wrote into a subdirectory of this destination.
        """

        def _qualify(p: str) -> str:
            return f"{prefix}/{p}" if prefix else p

        self.copied += other.copied
        self.updated += other.updated
        self.skipped += other.skipped
        self.skipped_paths.extend(_qualify(p) for p in other.skipped_paths)
        self.errors.extend(
            ArtifactError(path=_qualify(e.path), message=e.message) for e in other.errors
        )

    def to_dict(self) -> dict:
        return {
            "copied": self.copied,
            "updated": self.updated,
            "skipped": self.skipped,
            "skipped_paths": list(self.skipped_paths),
            "errors": [{"path": e.path, "message": e.message} for e in self.errors],
        }
