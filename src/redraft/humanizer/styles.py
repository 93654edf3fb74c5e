"""Enumerated style hints passed to rewriting collaborators."""

from __future__ import annotations

from enum import Enum


class Tone(str, Enum):
    """Humanizer tone."""

    NEUTRAL = "Neutral"
    FRIENDLY = "Friendly"
    PROFESSIONAL = "Professional"
    CONFIDENT = "Confident"


class ParaphraseMode(str, Enum):
    """Paraphraser mode, passed to the transformer in place of a tone."""

    SIMPLER = "Simpler"
    BALANCED = "Balanced"
    FORMAL = "Formal"
    CREATIVE = "Creative"
    EXPAND = "Expand"
    SHORTEN = "Shorten"


class SummaryFormat(str, Enum):
    """Output shape of a summary."""

    PARAGRAPH = "Paragraph"
    BULLET_POINTS = "Bullet Points"


class CitationStyle(str, Enum):
    """Supported citation styles."""

    APA = "APA"
    MLA = "MLA"
    CHICAGO = "Chicago"
