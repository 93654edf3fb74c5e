"""Result data models for scoring, optimization, research, and flow history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from redraft.markup import MarkupSpan

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(value: float) -> float:
    """Clamp a detector score into [0, 100]."""
    return max(SCORE_MIN, min(SCORE_MAX, float(value)))


@dataclass
class ScoredText:
    """Detector verdict for a text.

    Args:
        text: The text that was scored.
        score: Likelihood of machine generation, clamped to [0, 100].
            Lower is more human.
        explanation: Detector rationale.
        flagged_spans: Sentences the detector found most suspicious.
    """

    text: str
    score: float
    explanation: str = ""
    flagged_spans: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "text": self.text,
            "score": self.score,
            "explanation": self.explanation,
            "flagged_spans": list(self.flagged_spans),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoredText:
        """Deserialize from dictionary."""
        return cls(
            text=data["text"],
            score=data["score"],
            explanation=data.get("explanation", ""),
            flagged_spans=list(data.get("flagged_spans", [])),
        )


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """One rewrite-and-score round trip of the optimizer."""

    intensity: int
    score: float


@dataclass
class OptimizationResult:
    """Best candidate found by an optimizer run.

    Args:
        markup: Decoded spans of the best-scoring rewrite.
        score: Lowest score observed across all attempts.
        attempts_used: Number of rewrite/score round trips made (1..4).
        raw: Raw markup string of the best rewrite.
        intensity: Intensity that produced the best rewrite.
        attempts: Per-attempt trace in the order the attempts were made.
    """

    markup: list[MarkupSpan]
    score: float
    attempts_used: int
    raw: str = ""
    intensity: int = 0
    attempts: list[AttemptRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.attempts_used < 1:
            raise ValueError(f"attempts_used must be >= 1, got {self.attempts_used}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "markup": [s.to_dict() for s in self.markup],
            "score": self.score,
            "attempts_used": self.attempts_used,
            "raw": self.raw,
            "intensity": self.intensity,
            "attempts": [{"intensity": a.intensity, "score": a.score} for a in self.attempts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OptimizationResult:
        """Deserialize from dictionary."""
        return cls(
            markup=[MarkupSpan.from_dict(s) for s in data.get("markup", [])],
            score=data["score"],
            attempts_used=data["attempts_used"],
            raw=data.get("raw", ""),
            intensity=data.get("intensity", 0),
            attempts=[
                AttemptRecord(intensity=a["intensity"], score=a["score"])
                for a in data.get("attempts", [])
            ],
        )


@dataclass(frozen=True, slots=True)
class ResearchSource:
    """A web source backing a research summary or plagiarism hit."""

    uri: str
    title: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"uri": self.uri, "title": self.title}


@dataclass
class ResearchResult:
    """Topic summary with its sources."""

    summary: str
    sources: list[ResearchSource] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"summary": self.summary, "sources": [s.to_dict() for s in self.sources]}


@dataclass(frozen=True, slots=True)
class TextAnalytics:
    """Readability, tone, and length of a text."""

    readability: str
    tone: str
    word_count: int


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One committed action application within a flow session.

    Args:
        sequence_number: 1-based, strictly increasing, never reused.
        action_id: Registry id of the applied action.
        action_label: Human-readable description (e.g. ``Paraphrased to "Formal"``).
        result_summary: Raw result of the action (markup, report, or appended text).
        timestamp: UTC time the entry was committed.
    """

    sequence_number: int
    action_id: str
    action_label: str
    result_summary: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.sequence_number < 1:
            raise ValueError(f"sequence_number must be >= 1, got {self.sequence_number}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "sequence_number": self.sequence_number,
            "action_id": self.action_id,
            "action_label": self.action_label,
            "result_summary": self.result_summary,
            "timestamp": self.timestamp.isoformat(),
        }
