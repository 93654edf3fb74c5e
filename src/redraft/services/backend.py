"""Collaborator implementations backed by a local Ollama server.

:class:`OllamaServices` satisfies every protocol in
:mod:`redraft.core.protocols`. Transport and response failures are mapped to
the matching :class:`~redraft.core.errors.CollaboratorUnavailable` subclass so
callers never see Ollama-specific exceptions.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Self

from redraft.core.errors import (
    AssistantUnavailable,
    CitationUnavailable,
    CollaboratorUnavailable,
    DetectorUnavailable,
    ResearchUnavailable,
    TransformerUnavailable,
)
from redraft.humanizer.styles import ParaphraseMode, Tone
from redraft.models.results import ResearchResult, ResearchSource, ScoredText, TextAnalytics
from redraft.services import prompts
from redraft.services.ollama import GenerateOptions, OllamaClient, OllamaError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from redraft.config import RedraftConfig
    from redraft.humanizer.styles import CitationStyle, SummaryFormat
    from redraft.services.prompts import Prompt

logger = logging.getLogger(__name__)

__all__ = ["OllamaServices"]


class OllamaServices:
    """All text collaborators over one Ollama connection.

    Usage::

        async with OllamaServices.from_config(config) as services:
            scored = await services.score("Some text")

    Args:
        client: Ollama client; opened and closed with this object.
        model: Model tag used for every request.
        max_retries: Transport attempts per request.
    """

    def __init__(self, client: OllamaClient, model: str, max_retries: int = 1) -> None:
        self._client = client
        self._model = model
        self._max_retries = max_retries

    @classmethod
    def from_config(cls, config: RedraftConfig) -> OllamaServices:
        """Build services for the configured host and active profile's model."""
        client = OllamaClient(
            host=config.ollama.host,
            timeout=float(config.ollama.timeout_seconds),
        )
        return cls(client, config.model, max_retries=config.ollama.max_retries)

    async def __aenter__(self) -> Self:
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._client.__aexit__(*exc)

    @property
    def model(self) -> str:
        return self._model

    async def check_ready(self) -> None:
        """Verify the server is up and the model is pulled.

        Raises:
            CollaboratorUnavailable: Server unreachable or model missing.
        """
        if not await self._client.health_check():
            raise CollaboratorUnavailable("Ollama server is not reachable")
        try:
            available = await self._client.is_model_available(self._model)
        except OllamaError as exc:
            raise CollaboratorUnavailable(str(exc)) from exc
        if not available:
            raise CollaboratorUnavailable(
                f"Model {self._model!r} is not pulled. Run: ollama pull {self._model}"
            )

    # -- Transport helpers -----------------------------------------------------

    async def _complete(
        self, prompt: Prompt, error_cls: type[CollaboratorUnavailable], what: str
    ) -> str:
        try:
            result = await self._client.generate(
                prompt.user,
                self._model,
                system=prompt.system,
                options=GenerateOptions(temperature=prompt.temperature),
                json_mode=prompt.json_mode,
                max_retries=self._max_retries,
            )
        except OllamaError as exc:
            logger.warning("Ollama call failed during %s: %s", what, exc)
            raise error_cls(f"Failed to {what}: {exc}") from exc
        return result.text

    async def _complete_json(
        self, prompt: Prompt, error_cls: type[CollaboratorUnavailable], what: str
    ) -> dict[str, Any]:
        text = await self._complete(prompt, error_cls, what)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise error_cls(f"Failed to {what}: model returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise error_cls(f"Failed to {what}: expected a JSON object")
        return data

    # -- Detector ----------------------------------------------------------------

    async def score(self, text: str) -> ScoredText:
        data = await self._complete_json(
            prompts.build_detect(text), DetectorUnavailable, "detect AI text"
        )
        try:
            score = float(data["score"])
        except (KeyError, TypeError, ValueError) as exc:
            raise DetectorUnavailable("Detector response has no numeric 'score'") from exc
        return ScoredText(
            text=text,
            score=score,
            explanation=str(data.get("explanation", "")),
            flagged_spans=[str(s) for s in data.get("suspiciousSentences", [])],
        )

    # -- Transformer -------------------------------------------------------------

    async def rewrite(self, text: str, tone: Tone | ParaphraseMode, intensity: int) -> str:
        if isinstance(tone, ParaphraseMode):
            prompt = prompts.build_paraphrase(text, tone)
        else:
            prompt = prompts.build_humanize(text, Tone(tone), intensity)
        return await self._complete(prompt, TransformerUnavailable, "rewrite text")

    # -- Research, citation, sources ---------------------------------------------

    async def lookup(self, topic: str) -> ResearchResult:
        data = await self._complete_json(
            prompts.build_research(topic), ResearchUnavailable, "research topic"
        )
        return ResearchResult(
            summary=str(data.get("summary", "")),
            sources=_parse_sources(data.get("sources", [])),
        )

    async def find_sources(self, text: str) -> list[ResearchSource]:
        data = await self._complete_json(
            prompts.build_find_sources(text), ResearchUnavailable, "check for plagiarism"
        )
        return _parse_sources(data.get("sources", []))

    async def format(self, style: CitationStyle, source_data: Mapping[str, str]) -> str:
        return await self._complete(
            prompts.build_citation(style, source_data),
            CitationUnavailable,
            f"generate {style.value} citation",
        )

    # -- Assistant ---------------------------------------------------------------

    async def summarize(self, text: str, fmt: SummaryFormat, word_count: int) -> str:
        return await self._complete(
            prompts.build_summarize(text, fmt, word_count), AssistantUnavailable, "summarize text"
        )

    async def proofread(self, text: str) -> str:
        return await self._complete(
            prompts.build_proofread(text), AssistantUnavailable, "check grammar"
        )

    async def complete(self, text: str) -> str:
        return await self._complete(
            prompts.build_complete(text), AssistantUnavailable, "complete text"
        )

    async def analyze(self, text: str) -> TextAnalytics:
        data = await self._complete_json(
            prompts.build_analyze(text), AssistantUnavailable, "analyze text"
        )
        try:
            word_count = int(data.get("wordCount", len(text.split())))
        except (TypeError, ValueError):
            word_count = len(text.split())
        return TextAnalytics(
            readability=str(data.get("readability", "")),
            tone=str(data.get("tone", "")),
            word_count=word_count,
        )


def _parse_sources(raw: Any) -> list[ResearchSource]:
    """Keep only entries that carry a URI."""
    sources: list[ResearchSource] = []
    if not isinstance(raw, list):
        return sources
    for item in raw:
        if isinstance(item, dict) and item.get("uri"):
            sources.append(ResearchSource(uri=str(item["uri"]), title=str(item.get("title", ""))))
    return sources
