"""
Sync core — fingerprints, per-destination ledger and the three-way synchronizer.
"""

from .fingerprint import fingerprint_bytes, fingerprint_file
from .ledger import LEDGER_FILENAME, LedgerEntry, SyncLedger
from .outcome import ArtifactError, SyncOutcome
from .synchronizer import (
    DEFAULT_ARTIFACT_PATTERN,
    ArtifactState,
    Synchronizer,
    classify,
    discover_artifacts,
)

__all__ = [
    "DEFAULT_ARTIFACT_PATTERN",
    "LEDGER_FILENAME",
    "ArtifactError",
    "ArtifactState",
    "LedgerEntry",
    "SyncLedger",
    "SyncOutcome",
    "Synchronizer",
    "classify",
    "discover_artifacts",
    "fingerprint_bytes",
    "fingerprint_file",
]
