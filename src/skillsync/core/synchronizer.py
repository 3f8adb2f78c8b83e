"""
Synchronizer — one sync pass over a (source tree, destination tree) pair.

Decision per artifact (three-way comparison of fingerprints):

    source fp | destination fp | ledger fp      -> state
    ----------+----------------+----------------+-----------
    any       | (missing)      | any            -> NEW       copy
    S         | D              | D, S == D      -> CURRENT   nothing to do
    S         | D              | D, S != D      -> UPDATE    overwrite
    any       | D              | != D / missing -> DIVERGED  skip, keep local

A destination file is overwritten only when it still holds exactly what
skillsync wrote last time. Anything else is a local edit and wins over the
incoming source. An existing file with no ledger entry is never adopted.

Per-artifact I/O errors are logged and collected in the outcome; the pass
continues. Ledger errors (load or save) propagate to the caller.
"""

from enum import Enum
from pathlib import Path

import structlog

from .atomic import atomic_write_bytes
from .fingerprint import fingerprint_bytes, fingerprint_file
from .ledger import SyncLedger
from .outcome import SyncOutcome

logger = structlog.get_logger()

__all__ = [
    "DEFAULT_ARTIFACT_PATTERN",
    "ArtifactState",
    "Synchronizer",
    "classify",
    "discover_artifacts",
]

DEFAULT_ARTIFACT_PATTERN = "**/*.md"


class ArtifactState(Enum):
    """Relationship between a source artifact and its destination copy."""

    NEW = "new"
    CURRENT = "current"
    UPDATE = "update"
    DIVERGED = "diverged"


def classify(
    source_fp: str,
    destination_fp: str | None,
    recorded_fp: str | None,
) -> ArtifactState:
    """Decide what a pass must do with one artifact.

    Pure function: takes precomputed fingerprints, touches no files.

    Args:
        source_fp: Fingerprint of the source artifact.
        destination_fp: Fingerprint of the destination artifact, None if absent.
        recorded_fp: Fingerprint in the destination's ledger, None if never recorded.
    """
    if destination_fp is None:
        return ArtifactState.NEW
    if recorded_fp is None or recorded_fp != destination_fp:
        return ArtifactState.DIVERGED
    if source_fp == destination_fp:
        return ArtifactState.CURRENT
    return ArtifactState.UPDATE


def discover_artifacts(root: str | Path, pattern: str = DEFAULT_ARTIFACT_PATTERN) -> list[str]:
    """List artifacts under ``root`` matching a glob pattern.

    Hidden files and anything under a hidden directory are ignored.

    Returns:
        Sorted relative paths with '/' separators.
    """
    root = Path(root)
    found: set[str] = set()
    for path in root.glob(pattern):
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.is_file():
            found.add(rel.as_posix())
    return sorted(found)


class Synchronizer:
    """Propagates artifacts from a source tree into a destination tree.

    Holds no per-pass state: each call to sync() loads the destination's
    ledger, processes every artifact and saves the ledger once at the end.
    Passes over distinct destinations are independent and may run in
    parallel.
    """

    def __init__(self, pattern: str = DEFAULT_ARTIFACT_PATTERN) -> None:
        self.pattern = pattern
        self.log = logger.bind(component="synchronizer")

    def sync(self, source_root: str | Path, destination_root: str | Path) -> SyncOutcome:
        """Run one sync pass.

        Args:
            source_root: Existing directory holding the reference artifacts.
            destination_root: Tree to update; created on demand.

        Returns:
            SyncOutcome with copied/updated/skipped counts and per-artifact errors.

        Raises:
            FileNotFoundError: If source_root does not exist.
            NotADirectoryError: If source_root is not a directory.
            LedgerError: If the destination ledger cannot be loaded or saved.
        """
        source = Path(source_root)
        destination = Path(destination_root)

        if not source.exists():
            raise FileNotFoundError(f"Source directory not found: {source}")
        if not source.is_dir():
            raise NotADirectoryError(f"Source is not a directory: {source}")

        ledger = SyncLedger.load(destination)
        outcome = SyncOutcome()

        for rel_path in discover_artifacts(source, self.pattern):
            try:
                self._sync_artifact(rel_path, source, destination, ledger, outcome)
            except OSError as e:
                self.log.warning(
                    "sync.artifact.error",
                    path=rel_path,
                    destination=str(destination),
                    error=str(e),
                )
                outcome.record_error(rel_path, e)

        ledger.save(destination)

        self.log.info(
            "sync.pass.complete",
            source=str(source),
            destination=str(destination),
            copied=outcome.copied,
            updated=outcome.updated,
            skipped=outcome.skipped,
            errors=len(outcome.errors),
        )
        return outcome

    def _sync_artifact(
        self,
        rel_path: str,
        source: Path,
        destination: Path,
        ledger: SyncLedger,
        outcome: SyncOutcome,
    ) -> ArtifactState:
        # Read once so the recorded fingerprint matches exactly the bytes written
        data = (source / rel_path).read_bytes()
        source_fp = fingerprint_bytes(data)

        target = destination / rel_path
        try:
            destination_fp: str | None = fingerprint_file(target)
        except FileNotFoundError:
            destination_fp = None

        state = classify(source_fp, destination_fp, ledger.get(rel_path))

        if state is ArtifactState.NEW:
            atomic_write_bytes(target, data)
            ledger.set(rel_path, source_fp)
            outcome.copied += 1
            self.log.debug("sync.artifact.copied", path=rel_path)
        elif state is ArtifactState.UPDATE:
            atomic_write_bytes(target, data)
            ledger.set(rel_path, source_fp)
            outcome.updated += 1
            self.log.debug("sync.artifact.updated", path=rel_path)
        elif state is ArtifactState.DIVERGED:
            outcome.record_skip(rel_path)
            self.log.info("sync.artifact.skipped", path=rel_path, reason="locally_modified")

        return state
