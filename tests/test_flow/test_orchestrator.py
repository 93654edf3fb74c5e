"""Tests for the flow orchestrator state machine and commit rules."""

from __future__ import annotations

import asyncio

import pytest

from redraft.core.errors import (
    CollaboratorUnavailable,
    FlowBusyError,
    FlowStateError,
    InvalidInput,
    NotConfiguredError,
)
from redraft.flow.handlers import ActionHandlers, FlowServices
from redraft.flow.orchestrator import FlowOrchestrator, FlowState, _append
from redraft.flow.registry import ActionId
from redraft.humanizer.styles import ParaphraseMode, Tone


@pytest.fixture
def flow(backend) -> FlowOrchestrator:
    return FlowOrchestrator(ActionHandlers(FlowServices.from_backend(backend)))


class TestStateMachine:
    def test_starts_idle(self, flow: FlowOrchestrator) -> None:
        assert flow.state is FlowState.IDLE
        assert flow.active_action is None
        assert flow.get_document() == ""
        assert flow.get_history() == []
        assert flow.can_apply() == "No action selected"

    def test_select_resets_parameters(self, flow: FlowOrchestrator) -> None:
        flow.select_action(ActionId.HUMANIZE)
        flow.set_parameter("level", 90)
        flow.select_action("humanize")
        assert flow.state is FlowState.CONFIGURING
        assert flow.parameters == {"tone": Tone.NEUTRAL, "level": 50}

    def test_set_parameter_without_action(self, flow: FlowOrchestrator) -> None:
        with pytest.raises(FlowStateError):
            flow.set_parameter("level", 50)

    def test_unknown_parameter(self, flow: FlowOrchestrator) -> None:
        flow.select_action(ActionId.GRAMMAR)
        with pytest.raises(InvalidInput, match="no parameter 'level'"):
            flow.set_parameter("level", 50)

    def test_parameters_returns_copy(self, flow: FlowOrchestrator) -> None:
        flow.select_action(ActionId.HUMANIZE)
        flow.parameters["level"] = 1
        assert flow.parameters["level"] == 50

    async def test_back_to_configuring_after_apply(self, flow: FlowOrchestrator) -> None:
        flow.set_document("Some text.")
        flow.select_action(ActionId.DETECT)
        await flow.apply()
        assert flow.state is FlowState.CONFIGURING
        assert flow.active_action is not None
        assert flow.active_action.id is ActionId.DETECT


class TestApply:
    async def test_paraphrase_replaces_document(self, flow: FlowOrchestrator, backend) -> None:
        flow.set_document("The cat sat.")
        flow.select_action(ActionId.PARAPHRASE)
        flow.set_parameter("mode", "Formal")
        entry = await flow.apply()

        assert flow.get_document() == "The feline was seated."
        assert entry.sequence_number == 1
        assert entry.action_id == "paraphrase"
        assert entry.action_label == 'Paraphrased to "Formal"'
        assert entry.result_summary == "~~The cat sat.~~**The feline was seated.**"
        assert flow.get_history() == [entry]
        assert backend.calls == [("rewrite", ("The cat sat.", ParaphraseMode.FORMAL, 50))]

    async def test_paraphrase_commits_plain_text_when_pair_is_spaced(self, make_backend) -> None:
        backend = make_backend(rewrite="I ~~is~~ **am** happy.")
        flow = FlowOrchestrator(ActionHandlers(FlowServices.from_backend(backend)))
        flow.set_document("I is happy.")
        flow.select_action(ActionId.PARAPHRASE)
        entry = await flow.apply()

        assert flow.get_document() == "I am happy."
        assert entry.result_summary == "I ~~is~~ **am** happy."

    async def test_report_action_leaves_document(self, flow: FlowOrchestrator) -> None:
        flow.set_document("Keep me.")
        flow.select_action(ActionId.RESEARCH)
        flow.set_parameter("query", "tides")
        entry = await flow.apply()

        assert flow.get_document() == "Keep me."
        assert entry.action_label == 'Researched: "tides"'
        assert len(flow.get_history()) == 1

    async def test_research_on_empty_document(self, flow: FlowOrchestrator) -> None:
        flow.select_action(ActionId.RESEARCH)
        flow.set_parameter("query", "tides")
        await flow.apply()
        assert flow.get_document() == ""

    @pytest.mark.parametrize(
        ("document", "expected"),
        [
            ("Start.", "Start.\n\nMore words follow."),
            ("Start.\n\n\n", "Start.\n\nMore words follow."),
        ],
    )
    async def test_write_assist_appends(self, flow, document, expected) -> None:
        flow.set_document(document)
        flow.select_action(ActionId.WRITE_ASSIST)
        await flow.apply()
        assert flow.get_document() == expected

    async def test_sequence_numbers_increase(self, flow: FlowOrchestrator) -> None:
        flow.set_document("I is happy.")
        flow.select_action(ActionId.GRAMMAR)
        first = await flow.apply()
        flow.select_action(ActionId.DETECT)
        second = await flow.apply()
        flow.select_action(ActionId.GRAMMAR)
        third = await flow.apply()

        assert [first.sequence_number, second.sequence_number, third.sequence_number] == [1, 2, 3]
        assert flow.actions_used() == ["grammar", "detect"]
        assert flow.recent_history(2) == [second, third]
        assert flow.recent_history(0) == []

    async def test_manual_edit_not_recorded(self, flow: FlowOrchestrator) -> None:
        flow.set_document("I is happy.")
        flow.select_action(ActionId.GRAMMAR)
        await flow.apply()
        flow.set_document("Hand edited text here.")

        assert flow.get_document() == "Hand edited text here."
        assert flow.word_count() == 4
        assert len(flow.get_history()) == 1

    async def test_history_copy_is_detached(self, flow: FlowOrchestrator) -> None:
        flow.set_document("Text.")
        flow.select_action(ActionId.DETECT)
        await flow.apply()
        flow.get_history().clear()
        assert len(flow.get_history()) == 1


class TestRejection:
    async def test_no_action(self, flow: FlowOrchestrator) -> None:
        with pytest.raises(FlowStateError, match="No action selected"):
            await flow.apply()

    async def test_missing_text_blocks_handler(self, flow: FlowOrchestrator, backend) -> None:
        flow.set_document("   ")
        flow.select_action(ActionId.HUMANIZE)
        assert flow.can_apply() == "AI Humanizer needs text in the document"
        with pytest.raises(InvalidInput, match="needs text"):
            await flow.apply()
        assert backend.calls == []
        assert flow.get_history() == []

    async def test_missing_required_parameter(self, flow: FlowOrchestrator, backend) -> None:
        flow.select_action(ActionId.CITATION)
        with pytest.raises(InvalidInput, match="'source'"):
            await flow.apply()
        assert backend.calls == []

    async def test_invalid_parameter_value(self, flow: FlowOrchestrator) -> None:
        flow.select_action(ActionId.SUMMARIZE)
        with pytest.raises(InvalidInput):
            flow.set_parameter("word_count", 5)
        assert flow.parameters["word_count"] == 100


class TestFailure:
    async def test_failure_leaves_state_untouched(self, make_backend) -> None:
        backend = make_backend(fail=True)
        flow = FlowOrchestrator(ActionHandlers(FlowServices.from_backend(backend)))
        flow.set_document("The cat sat.")
        flow.select_action(ActionId.PARAPHRASE)

        with pytest.raises(CollaboratorUnavailable, match="rewrite is down"):
            await flow.apply()

        assert flow.get_document() == "The cat sat."
        assert flow.get_history() == []
        assert flow.state is FlowState.CONFIGURING
        assert isinstance(flow.last_error, CollaboratorUnavailable)

    async def test_failure_does_not_consume_sequence_number(self, make_backend) -> None:
        backend = make_backend(fail=True)
        flow = FlowOrchestrator(ActionHandlers(FlowServices.from_backend(backend)))
        flow.set_document("Text.")
        flow.select_action(ActionId.DETECT)
        with pytest.raises(CollaboratorUnavailable):
            await flow.apply()

        backend.fail = False
        entry = await flow.apply()
        assert entry.sequence_number == 1
        assert flow.last_error is None

    async def test_not_configured(self) -> None:
        flow = FlowOrchestrator(ActionHandlers(FlowServices()))
        flow.set_document("Text.")
        flow.select_action(ActionId.GRAMMAR)
        with pytest.raises(NotConfiguredError, match="proofreader"):
            await flow.apply()
        assert flow.get_history() == []


class TestConcurrency:
    async def test_second_apply_rejected_while_busy(self, backend) -> None:
        release = asyncio.Event()

        async def slow_proofread(text: str) -> str:
            await release.wait()
            return "I ~~is~~**am** happy."

        backend.proofread = slow_proofread
        flow = FlowOrchestrator(ActionHandlers(FlowServices.from_backend(backend)))
        flow.set_document("I is happy.")
        flow.select_action(ActionId.GRAMMAR)

        first = asyncio.create_task(flow.apply())
        await asyncio.sleep(0)
        assert flow.state is FlowState.APPLYING
        assert flow.can_apply() == "An action is already being applied"

        with pytest.raises(FlowBusyError):
            await flow.apply()
        with pytest.raises(FlowBusyError):
            flow.set_document("edited mid-flight")
        with pytest.raises(FlowBusyError):
            flow.select_action(ActionId.DETECT)

        release.set()
        entry = await first
        assert entry.sequence_number == 1
        assert flow.get_document() == "I am happy."
        assert len(flow.get_history()) == 1


class TestFromConfig:
    async def test_uses_config(self, backend, default_config) -> None:
        flow = FlowOrchestrator.from_config(FlowServices.from_backend(backend), default_config)
        flow.set_document("x")
        flow.select_action(ActionId.PARAPHRASE)
        await flow.apply()
        assert backend.calls[0][1][2] == default_config.flow.paraphrase_intensity


@pytest.mark.parametrize(
    ("document", "addition", "expected"),
    [
        ("", "New.", "New."),
        ("  \n", "New.", "New."),
        ("Old.", "New.", "Old.\n\nNew."),
        ("Old.  \n", "New.", "Old.\n\nNew."),
    ],
)
def test_append(document: str, addition: str, expected: str) -> None:
    assert _append(document, addition) == expected
