"""Progress reporting for optimizer runs and flow sessions."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from redraft.models.results import HistoryEntry


@dataclass(frozen=True, slots=True)
class AttemptEvent:
    """Immutable event emitted after each scored optimizer attempt.

    Attributes:
        attempt: One-based attempt number.
        max_attempts: Attempts the run may make at most.
        intensity: Intensity used for this attempt.
        score: Detector score of this attempt.
        best_score: Lowest score seen so far, this attempt included.
    """

    attempt: int
    max_attempts: int
    intensity: int
    score: float
    best_score: float


class ProgressReporter:
    """Rich-based progress display for optimizer attempts.

    Prints one line per attempt on a TTY; falls back to log messages when
    stderr is not a terminal.
    """

    def __init__(
        self,
        console: Console,
        verbose: bool = False,
        quiet: bool = False,
    ) -> None:
        self._console = console
        self._verbose = verbose
        self._quiet = quiet
        self._is_tty: bool = sys.stderr.isatty()
        self._logger: logging.Logger = logging.getLogger("redraft.progress")

    def callback(self, event: AttemptEvent) -> None:
        """Handle an optimizer event."""
        if self._quiet:
            return

        line = (
            f"attempt {event.attempt}/{event.max_attempts} "
            f"intensity={event.intensity} score={event.score:.1f} "
            f"best={event.best_score:.1f}"
        )
        if self._is_tty or self._verbose:
            self._console.print(f"  [dim]{line}[/dim]")
        else:
            self._logger.info(line)

    def history_table(self, history: Sequence[HistoryEntry], limit: int | None = None) -> None:
        """Print flow history, most recent first."""
        if self._quiet:
            return

        entries = list(history)
        if limit is not None:
            if limit <= 0:
                return
            entries = entries[-limit:]

        table = Table(title="Flow History", show_header=True)
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Action", style="green")
        table.add_column("Time", style="blue")
        for entry in reversed(entries):
            table.add_row(
                str(entry.sequence_number),
                entry.action_label,
                entry.timestamp.strftime("%H:%M:%S"),
            )
        self._console.print(table)
