"""Tests for individual action handlers."""

from __future__ import annotations

import pytest

from redraft.config import FlowConfig, OptimizerConfig
from redraft.core.errors import NotConfiguredError
from redraft.flow.handlers import ActionHandlers, CommitMode, FlowServices
from redraft.flow.registry import ActionId
from redraft.humanizer.styles import CitationStyle, ParaphraseMode, SummaryFormat, Tone
from redraft.models.results import ResearchSource


@pytest.fixture
def handlers(backend) -> ActionHandlers:
    return ActionHandlers(FlowServices.from_backend(backend))


class TestReplacingActions:
    async def test_paraphrase(self, handlers, backend) -> None:
        outcome = await handlers.paraphrase("The cat sat.", {"mode": ParaphraseMode.FORMAL})

        assert outcome.commit is CommitMode.REPLACE
        assert outcome.replaces_document
        assert outcome.history_label == 'Paraphrased to "Formal"'
        assert outcome.result_text == "~~The cat sat.~~**The feline was seated.**"
        assert outcome.document_text == "The feline was seated."
        assert backend.calls == [("rewrite", ("The cat sat.", ParaphraseMode.FORMAL, 50))]

    async def test_paraphrase_uses_configured_intensity(self, backend) -> None:
        handlers = ActionHandlers(
            FlowServices.from_backend(backend), flow_config=FlowConfig(paraphrase_intensity=70)
        )
        await handlers.paraphrase("x", {"mode": ParaphraseMode.SIMPLER})
        assert backend.calls[0][1][2] == 70

    async def test_summarize(self, handlers, backend) -> None:
        outcome = await handlers.summarize(
            "Long text.", {"format": SummaryFormat.BULLET_POINTS, "word_count": 40}
        )
        assert outcome.history_label == "Summarized (Bullet Points, 40 words)"
        assert outcome.document_text == "A short summary."
        assert backend.calls == [("summarize", ("Long text.", SummaryFormat.BULLET_POINTS, 40))]

    async def test_grammar(self, handlers) -> None:
        outcome = await handlers.grammar("I is happy.", {})
        assert outcome.history_label == "Checked Grammar"
        assert outcome.result_text == "I ~~is~~**am** happy."
        assert outcome.document_text == "I am happy."

    async def test_humanize_runs_optimizer(self, backend) -> None:
        events = []
        handlers = ActionHandlers(
            FlowServices.from_backend(backend),
            optimizer_config=OptimizerConfig(threshold=30.0),
            progress_callback=events.append,
        )
        outcome = await handlers.humanize("The cat sat.", {"tone": Tone.FRIENDLY, "level": 60})

        assert outcome.history_label == "Humanized (Friendly, Level 60)"
        assert outcome.document_text == "The feline was seated."
        assert [name for name, _ in backend.calls] == ["rewrite", "score"]
        assert len(events) == 1

    async def test_humanize_escalates_while_score_stays_high(self, make_backend) -> None:
        backend = make_backend(score=90.0)
        handlers = ActionHandlers(FlowServices.from_backend(backend))
        await handlers.humanize("x", {"tone": Tone.NEUTRAL, "level": 50})
        assert [name for name, _ in backend.calls].count("rewrite") == 4


class TestAppendingAction:
    async def test_write_assist(self, handlers) -> None:
        outcome = await handlers.write_assist("Start.", {})
        assert outcome.commit is CommitMode.APPEND
        assert outcome.document_text == "More words follow."
        assert outcome.history_label == "Completed Text"


class TestReportActions:
    async def test_detect(self, handlers) -> None:
        outcome = await handlers.detect("Some text.", {})
        assert outcome.commit is CommitMode.NONE
        assert outcome.history_label == "Detected AI Content (12%)"
        assert outcome.result_text == "AI Detection Score: 12%.\nExplanation: Looks human."

    async def test_plagiarism_none_found(self, handlers) -> None:
        outcome = await handlers.plagiarism("Original.", {})
        assert outcome.result_text == "No potential sources found."
        assert outcome.history_label == "Checked for Plagiarism"

    async def test_plagiarism_sources_listed(self, handlers, backend) -> None:
        async def find_sources(text: str) -> list[ResearchSource]:
            return [
                ResearchSource(uri="https://example.org/a", title="A"),
                ResearchSource(uri="https://example.org/b"),
            ]

        backend.find_sources = find_sources
        outcome = await handlers.plagiarism("Copied.", {})
        assert outcome.result_text == (
            "Found 2 potential sources:\n"
            "- A (https://example.org/a)\n"
            "- Untitled Source (https://example.org/b)"
        )

    async def test_analytics(self, handlers) -> None:
        outcome = await handlers.analytics("One two three.", {})
        assert outcome.result_text == "Readability: Easy to Read\nTone: Neutral\nWord Count: 3"
        assert outcome.commit is CommitMode.NONE

    async def test_research(self, handlers, backend) -> None:
        outcome = await handlers.research("", {"query": "  tides  "})
        assert outcome.history_label == 'Researched: "tides"'
        assert "About tides." in outcome.result_text
        assert "[Example](https://example.org/a)" in outcome.result_text
        assert backend.calls == [("lookup", ("tides",))]

    @pytest.mark.parametrize(
        ("source", "key"),
        [("https://example.org/paper", "url"), ("Doe, J. Example Book, 2024", "details")],
    )
    async def test_citation(self, handlers, backend, source, key) -> None:
        outcome = await handlers.citation("", {"style": CitationStyle.CHICAGO, "source": source})
        assert outcome.history_label == "Generated Chicago Citation"
        assert outcome.result_text == "Doe, J. (2024). Example."
        assert backend.calls == [("format", (CitationStyle.CHICAGO, {key: source}))]


class TestDispatch:
    def test_every_action_has_a_handler(self, handlers) -> None:
        for action_id in ActionId:
            assert callable(handlers[action_id])

    async def test_missing_collaborator(self) -> None:
        handlers = ActionHandlers(FlowServices())
        with pytest.raises(NotConfiguredError) as exc_info:
            await handlers.detect("text", {})
        assert exc_info.value.collaborator == "detector"

    async def test_humanize_needs_both_collaborators(self, backend) -> None:
        handlers = ActionHandlers(FlowServices(transformer=backend))
        with pytest.raises(NotConfiguredError, match="detector"):
            await handlers.humanize("x", {"tone": Tone.NEUTRAL, "level": 50})
        assert backend.calls == []
