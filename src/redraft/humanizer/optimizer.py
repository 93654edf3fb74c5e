"""Rewrite-and-rescore loop driving a detector score below a fixed threshold.

The first attempt honors the caller's intensity. While the best score stays at
or above the threshold, further attempts escalate the intensity in fixed steps
up to the ceiling. The best (lowest-scoring) candidate is always returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redraft.config import OptimizerConfig
from redraft.core.errors import InvalidInput
from redraft.markup import decode, plain_text
from redraft.models.results import AttemptRecord, OptimizationResult
from redraft.progress import AttemptEvent

if TYPE_CHECKING:
    from collections.abc import Callable

    from redraft.core.protocols import Detector, Transformer
    from redraft.humanizer.styles import Tone

logger = logging.getLogger(__name__)

MIN_INTENSITY = 1
MAX_INTENSITY = 100


def escalation_schedule(initial: int, config: OptimizerConfig) -> list[int]:
    """Return the intensity used by each possible attempt.

    The first entry is ``initial`` unchanged; each following entry adds
    ``config.intensity_step``, clamped to ``config.max_intensity``.

    >>> escalation_schedule(50, OptimizerConfig())
    [50, 75, 100, 100]
    """
    schedule = [initial]
    current = initial
    for _ in range(config.max_escalations):
        current = min(config.max_intensity, current + config.intensity_step)
        schedule.append(current)
    return schedule


class Optimizer:
    """Drive a transformer/detector pair toward a target score.

    Holds only its collaborators and configuration; every :meth:`humanize`
    call is independent.

    Args:
        transformer: Rewriting collaborator.
        detector: Scoring collaborator.
        config: Threshold and escalation settings.
    """

    def __init__(
        self,
        transformer: Transformer,
        detector: Detector,
        config: OptimizerConfig | None = None,
    ) -> None:
        self._transformer = transformer
        self._detector = detector
        self._config = config or OptimizerConfig()

    @property
    def threshold(self) -> float:
        return self._config.threshold

    async def humanize(
        self,
        text: str,
        tone: Tone,
        intensity: int,
        progress_callback: Callable[[AttemptEvent], None] | None = None,
    ) -> OptimizationResult:
        """Rewrite ``text`` until its score drops below the threshold.

        Makes between 1 and ``1 + max_escalations`` attempts, each one rewrite
        followed by one score of the markup-stripped text. Attempts run
        strictly one after another.

        Args:
            text: Source text to humanize.
            tone: Tone hint forwarded to the transformer.
            intensity: Starting intensity, 1..100. Used as-is on the first attempt.
            progress_callback: Optional callback invoked after each scored attempt.

        Returns:
            OptimizationResult holding the lowest-scoring candidate.

        Raises:
            InvalidInput: ``intensity`` is outside 1..100.
            CollaboratorUnavailable: Any transformer or detector failure. The
                run is abandoned; no partial result is returned.
        """
        if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
            raise InvalidInput(
                f"intensity must be in [{MIN_INTENSITY}, {MAX_INTENSITY}], got {intensity}"
            )

        schedule = escalation_schedule(intensity, self._config)
        attempts: list[AttemptRecord] = []
        best_raw = ""
        best_score = 0.0
        best_intensity = intensity

        for index, level in enumerate(schedule):
            raw = await self._transformer.rewrite(text, tone, level)
            scored = await self._detector.score(plain_text(decode(raw)))
            attempts.append(AttemptRecord(intensity=level, score=scored.score))
            logger.debug(
                "Attempt %d/%d at intensity %d scored %.1f",
                index + 1,
                len(schedule),
                level,
                scored.score,
            )

            if index == 0 or scored.score < best_score:
                best_raw, best_score, best_intensity = raw, scored.score, level

            if progress_callback is not None:
                progress_callback(
                    AttemptEvent(
                        attempt=index + 1,
                        max_attempts=len(schedule),
                        intensity=level,
                        score=scored.score,
                        best_score=best_score,
                    )
                )

            if best_score < self._config.threshold:
                logger.info(
                    "Converged after %d attempt(s) (score=%.1f, threshold=%.1f)",
                    index + 1,
                    best_score,
                    self._config.threshold,
                )
                break
        else:
            logger.info(
                "Threshold %.1f not reached after %d attempts; best score %.1f",
                self._config.threshold,
                len(schedule),
                best_score,
            )

        return OptimizationResult(
            markup=decode(best_raw),
            score=best_score,
            attempts_used=len(attempts),
            raw=best_raw,
            intensity=best_intensity,
            attempts=attempts,
        )
