"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pytest

from redraft.config import RedraftConfig, load_config
from redraft.core.errors import CollaboratorUnavailable
from redraft.models.results import ResearchResult, ResearchSource, ScoredText, TextAnalytics


@pytest.fixture
def default_config(tmp_path) -> RedraftConfig:
    """Load default config (balanced profile), ignoring any real user config."""
    return load_config(profile="balanced", user_config_path=tmp_path / "missing.toml")


# ---------------------------------------------------------------------------
# Scripted collaborators
# ---------------------------------------------------------------------------


class ScriptedTransformer:
    """Returns queued markup strings and records every call."""

    def __init__(self, responses: list[str | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, Any, int]] = []

    async def rewrite(self, text: str, tone: Any, intensity: int) -> str:
        self.calls.append((text, tone, intensity))
        response = self._responses[min(len(self.calls), len(self._responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class ScriptedDetector:
    """Returns queued scores and records every scored text."""

    def __init__(self, scores: list[float | Exception], explanation: str = "") -> None:
        self._scores = list(scores)
        self._explanation = explanation
        self.calls: list[str] = []

    async def score(self, text: str) -> ScoredText:
        self.calls.append(text)
        value = self._scores[min(len(self.calls), len(self._scores)) - 1]
        if isinstance(value, Exception):
            raise value
        return ScoredText(text=text, score=value, explanation=self._explanation)


class FakeBackend:
    """Implements every collaborator protocol with canned answers."""

    def __init__(
        self,
        rewrite: str = "~~The cat sat.~~**The feline was seated.**",
        score: float = 12.0,
        fail: bool = False,
    ) -> None:
        self.rewrite_response = rewrite
        self.score_value = score
        self.fail = fail
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def __aenter__(self) -> FakeBackend:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.fail:
            raise CollaboratorUnavailable(f"{name} is down")

    async def check_ready(self) -> None:
        self._record("check_ready")

    async def score(self, text: str) -> ScoredText:
        self._record("score", text)
        return ScoredText(text=text, score=self.score_value, explanation="Looks human.")

    async def rewrite(self, text: str, tone: Any, intensity: int) -> str:
        self._record("rewrite", text, tone, intensity)
        return self.rewrite_response

    async def lookup(self, topic: str) -> ResearchResult:
        self._record("lookup", topic)
        return ResearchResult(
            summary=f"About {topic}.",
            sources=[ResearchSource(uri="https://example.org/a", title="Example")],
        )

    async def format(self, style: Any, source_data: Mapping[str, str]) -> str:
        self._record("format", style, dict(source_data))
        return "Doe, J. (2024). Example."

    async def summarize(self, text: str, fmt: Any, word_count: int) -> str:
        self._record("summarize", text, fmt, word_count)
        return "A short summary."

    async def proofread(self, text: str) -> str:
        self._record("proofread", text)
        return "I ~~is~~**am** happy."

    async def complete(self, text: str) -> str:
        self._record("complete", text)
        return "More words follow."

    async def analyze(self, text: str) -> TextAnalytics:
        self._record("analyze", text)
        return TextAnalytics(readability="Easy to Read", tone="Neutral", word_count=3)

    async def find_sources(self, text: str) -> list[ResearchSource]:
        self._record("find_sources", text)
        return []


@pytest.fixture
def make_transformer() -> Callable[[list[str | Exception]], ScriptedTransformer]:
    return ScriptedTransformer


@pytest.fixture
def make_detector() -> Callable[..., ScriptedDetector]:
    return ScriptedDetector


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    return FakeBackend
