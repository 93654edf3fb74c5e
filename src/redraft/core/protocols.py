"""Interface contracts for redraft's external collaborators.

The optimizer and the flow handlers depend only on these protocols, so any
backend (the bundled Ollama services, a remote API, a test double) can be
injected at construction time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from redraft.humanizer.styles import CitationStyle, ParaphraseMode, SummaryFormat, Tone
    from redraft.models.results import ResearchResult, ResearchSource, ScoredText, TextAnalytics


@runtime_checkable
class Detector(Protocol):
    """Score a text for the likelihood of being machine-generated (0-100)."""

    async def score(self, text: str) -> ScoredText: ...


@runtime_checkable
class Transformer(Protocol):
    """Rewrite a text, returning ``~~deleted~~**inserted**`` markup."""

    async def rewrite(self, text: str, tone: Tone | ParaphraseMode, intensity: int) -> str: ...


@runtime_checkable
class ResearchProvider(Protocol):
    """Summarize a topic with supporting sources."""

    async def lookup(self, topic: str) -> ResearchResult: ...


@runtime_checkable
class CitationProvider(Protocol):
    """Format source information as a citation in a given style."""

    async def format(self, style: CitationStyle, source_data: Mapping[str, str]) -> str: ...


@runtime_checkable
class Summarizer(Protocol):
    """Condense a text to roughly ``word_count`` words."""

    async def summarize(self, text: str, fmt: SummaryFormat, word_count: int) -> str: ...


@runtime_checkable
class Proofreader(Protocol):
    """Correct grammar and spelling, returning change markup."""

    async def proofread(self, text: str) -> str: ...


@runtime_checkable
class Completer(Protocol):
    """Continue a text with one or two new paragraphs."""

    async def complete(self, text: str) -> str: ...


@runtime_checkable
class Analyzer(Protocol):
    """Describe readability, tone, and length of a text."""

    async def analyze(self, text: str) -> TextAnalytics: ...


@runtime_checkable
class SourceFinder(Protocol):
    """Find places where a text may already appear."""

    async def find_sources(self, text: str) -> list[ResearchSource]: ...
