"""Reporter that logs resolver progress through the standard logging module."""

from __future__ import annotations

import logging
from typing import Any, Optional

from resolvelib.reporters import BaseReporter

logger = logging.getLogger(__name__)


class LoggingReporter(BaseReporter):
    """Logs every round at debug level, one line per hook."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def starting(self) -> None:
        self._log.debug("[resolve] starting")

    def starting_round(self, index: int) -> None:
        self._log.debug("[resolve] loop %d", index)

    def rejecting_candidate(self, record: Any, candidate: Any) -> None:
        """`record` is the UsageRecord that refused the candidate, not a resolvelib Criterion."""
        self._log.debug(
            "[resolve] skipping %s. Already used for %s",
            candidate.source,
            ", ".join(record.pending),
        )

    def pinning(self, candidate: Any) -> None:
        self._log.debug(
            "[resolve] using %s (%d / %d)",
            candidate.source,
            candidate.match_count,
            candidate.complexity_count,
        )

    def ending_round(self, index: int, state: Any) -> None:
        self._log.debug("[resolve] loop %d done, %d ids pending", index, len(state.pending))

    def ending(self, state: Any) -> None:
        self._log.debug(
            "[resolve] %d ids resolved in %d rounds", len(state.resolved), state.rounds
        )
