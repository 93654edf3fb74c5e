"""Action handlers: one coroutine per :class:`~redraft.flow.registry.ActionId`.

Each handler receives a snapshot of the document and the action's parameters
and returns an :class:`ActionOutcome`. Handlers never touch the document
buffer; the orchestrator commits the outcome according to its
:class:`CommitMode`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from redraft.config import FlowConfig, OptimizerConfig
from redraft.core.errors import NotConfiguredError
from redraft.flow.registry import ActionId
from redraft.humanizer.optimizer import Optimizer
from redraft.markup import plain_text_from_raw

if TYPE_CHECKING:
    from redraft.core.protocols import (
        Analyzer,
        CitationProvider,
        Completer,
        Detector,
        Proofreader,
        ResearchProvider,
        SourceFinder,
        Summarizer,
        Transformer,
    )
    from redraft.progress import AttemptEvent

logger = logging.getLogger(__name__)


class CommitMode(enum.Enum):
    """How an outcome changes the document."""

    REPLACE = "replace"
    APPEND = "append"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of a handler run.

    Attributes:
        result_text: Raw action output (markup, report, or new text). Recorded
            in history.
        history_label: Human-readable description for the history entry.
        commit: How the document is updated.
        document_text: Text to replace with or append; ignored for ``NONE``.
    """

    result_text: str
    history_label: str
    commit: CommitMode
    document_text: str = ""

    @property
    def replaces_document(self) -> bool:
        return self.commit is CommitMode.REPLACE


@dataclass
class FlowServices:
    """Collaborators injected into a flow. Any may be left unset."""

    transformer: Transformer | None = None
    detector: Detector | None = None
    research: ResearchProvider | None = None
    citation: CitationProvider | None = None
    summarizer: Summarizer | None = None
    proofreader: Proofreader | None = None
    completer: Completer | None = None
    analyzer: Analyzer | None = None
    source_finder: SourceFinder | None = None

    @classmethod
    def from_backend(cls, backend: Any) -> FlowServices:
        """Use one object implementing every protocol for all roles."""
        return cls(
            transformer=backend,
            detector=backend,
            research=backend,
            citation=backend,
            summarizer=backend,
            proofreader=backend,
            completer=backend,
            analyzer=backend,
            source_finder=backend,
        )


Handler = Callable[[str, Mapping[str, Any]], Awaitable[ActionOutcome]]


class ActionHandlers:
    """Dispatch table from action id to handler coroutine.

    Args:
        services: Injected collaborators.
        optimizer_config: Settings for the humanize action's optimizer.
        flow_config: Flow settings (default paraphrase intensity).
        progress_callback: Forwarded to optimizer runs.
    """

    def __init__(
        self,
        services: FlowServices,
        optimizer_config: OptimizerConfig | None = None,
        flow_config: FlowConfig | None = None,
        progress_callback: Callable[[AttemptEvent], None] | None = None,
    ) -> None:
        self._services = services
        self._optimizer_config = optimizer_config or OptimizerConfig()
        self._flow_config = flow_config or FlowConfig()
        self._progress_callback = progress_callback
        self._table: dict[ActionId, Handler] = {
            ActionId.RESEARCH: self.research,
            ActionId.WRITE_ASSIST: self.write_assist,
            ActionId.PARAPHRASE: self.paraphrase,
            ActionId.SUMMARIZE: self.summarize,
            ActionId.HUMANIZE: self.humanize,
            ActionId.GRAMMAR: self.grammar,
            ActionId.ANALYTICS: self.analytics,
            ActionId.DETECT: self.detect,
            ActionId.PLAGIARISM: self.plagiarism,
            ActionId.CITATION: self.citation,
        }

    def __getitem__(self, action_id: ActionId) -> Handler:
        return self._table[action_id]

    def _require(self, name: str) -> Any:
        collaborator = getattr(self._services, name)
        if collaborator is None:
            raise NotConfiguredError(name)
        return collaborator

    # -- Document-replacing actions -------------------------------------------

    async def paraphrase(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        transformer: Transformer = self._require("transformer")
        mode = params["mode"]
        raw = await transformer.rewrite(text, mode, self._flow_config.paraphrase_intensity)
        return ActionOutcome(
            result_text=raw,
            history_label=f'Paraphrased to "{mode.value}"',
            commit=CommitMode.REPLACE,
            document_text=plain_text_from_raw(raw),
        )

    async def summarize(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        summarizer: Summarizer = self._require("summarizer")
        fmt, word_count = params["format"], params["word_count"]
        summary = await summarizer.summarize(text, fmt, word_count)
        return ActionOutcome(
            result_text=summary,
            history_label=f"Summarized ({fmt.value}, {word_count} words)",
            commit=CommitMode.REPLACE,
            document_text=plain_text_from_raw(summary),
        )

    async def grammar(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        proofreader: Proofreader = self._require("proofreader")
        raw = await proofreader.proofread(text)
        return ActionOutcome(
            result_text=raw,
            history_label="Checked Grammar",
            commit=CommitMode.REPLACE,
            document_text=plain_text_from_raw(raw),
        )

    async def humanize(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        optimizer = Optimizer(
            self._require("transformer"),
            self._require("detector"),
            self._optimizer_config,
        )
        tone, level = params["tone"], params["level"]
        result = await optimizer.humanize(
            text, tone, level, progress_callback=self._progress_callback
        )
        logger.info(
            "Humanize finished: score=%.1f after %d attempt(s)",
            result.score,
            result.attempts_used,
        )
        return ActionOutcome(
            result_text=result.raw,
            history_label=f"Humanized ({tone.value}, Level {level})",
            commit=CommitMode.REPLACE,
            document_text=plain_text_from_raw(result.raw),
        )

    # -- Appending action ------------------------------------------------------

    async def write_assist(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        completer: Completer = self._require("completer")
        completion = await completer.complete(text)
        return ActionOutcome(
            result_text=completion,
            history_label="Completed Text",
            commit=CommitMode.APPEND,
            document_text=completion,
        )

    # -- Report-only actions ---------------------------------------------------

    async def detect(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        detector: Detector = self._require("detector")
        scored = await detector.score(text)
        report = f"AI Detection Score: {scored.score:g}%.\nExplanation: {scored.explanation}"
        return ActionOutcome(
            result_text=report,
            history_label=f"Detected AI Content ({scored.score:g}%)",
            commit=CommitMode.NONE,
        )

    async def plagiarism(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        finder: SourceFinder = self._require("source_finder")
        sources = await finder.find_sources(text)
        if sources:
            lines = [f"Found {len(sources)} potential sources:"]
            lines.extend(f"- {s.title or 'Untitled Source'} ({s.uri})" for s in sources)
            report = "\n".join(lines)
        else:
            report = "No potential sources found."
        return ActionOutcome(
            result_text=report,
            history_label="Checked for Plagiarism",
            commit=CommitMode.NONE,
        )

    async def analytics(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        analyzer: Analyzer = self._require("analyzer")
        analysis = await analyzer.analyze(text)
        return ActionOutcome(
            result_text=(
                f"Readability: {analysis.readability}\n"
                f"Tone: {analysis.tone}\n"
                f"Word Count: {analysis.word_count}"
            ),
            history_label="Analyzed Text",
            commit=CommitMode.NONE,
        )

    async def research(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        provider: ResearchProvider = self._require("research")
        query = params["query"].strip()
        result = await provider.lookup(query)
        sources = "\n".join(f"[{s.title or 'Untitled Source'}]({s.uri})" for s in result.sources)
        return ActionOutcome(
            result_text=f'Summary for "{query}":\n{result.summary}\n\nSources:\n{sources}',
            history_label=f'Researched: "{query}"',
            commit=CommitMode.NONE,
        )

    async def citation(self, text: str, params: Mapping[str, Any]) -> ActionOutcome:
        provider: CitationProvider = self._require("citation")
        style, source = params["style"], params["source"].strip()
        key = "url" if source.startswith(("http://", "https://")) else "details"
        formatted = await provider.format(style, {key: source})
        return ActionOutcome(
            result_text=formatted,
            history_label=f"Generated {style.value} Citation",
            commit=CommitMode.NONE,
        )
