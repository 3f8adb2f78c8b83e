"""
HUMAN logging level -- readable sync progress.

Custom level between INFO (20) and WARNING (30). It does not indicate
severity; it marks the events a user wants to read while skills sync
(repository started, files skipped, results) without technical noise.

Hierarchy:
    debug  (10) -> per-artifact decisions, ledger reads/writes
    info   (20) -> system operations (config loaded, pass complete)
    human  (25) -> * what the sync did, per repository
    warn   (30) -> non-fatal problems (artifact errors, staging failures)
    error  (40) -> errors
"""

import logging

import structlog

HUMAN = 25
logging.addLevelName(HUMAN, "HUMAN")


def _human_method(self, message, *args, **kwargs):
    if self.isEnabledFor(HUMAN):
        self._log(HUMAN, message, args, **kwargs)


logging.Logger.human = _human_method

# structlog needs the level name or BoundLogger.log() raises KeyError: 25
structlog.stdlib.LEVEL_TO_NAME[HUMAN] = "human"
structlog.stdlib.NAME_TO_LEVEL["human"] = HUMAN

# Before configure_logging() runs structlog prints through PrintLogger
structlog.PrintLogger.human = structlog.PrintLogger.msg
