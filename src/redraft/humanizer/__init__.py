"""Closed-loop humanization: rewrite, re-score, escalate."""

from __future__ import annotations

from redraft.humanizer.optimizer import Optimizer, escalation_schedule
from redraft.humanizer.styles import CitationStyle, ParaphraseMode, SummaryFormat, Tone

__all__ = [
    "CitationStyle",
    "Optimizer",
    "ParaphraseMode",
    "SummaryFormat",
    "Tone",
    "escalation_schedule",
]
