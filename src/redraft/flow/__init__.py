"""Chainable actions over a shared document with replayable history."""

from __future__ import annotations

from redraft.flow.handlers import ActionHandlers, ActionOutcome, CommitMode, FlowServices
from redraft.flow.orchestrator import FlowOrchestrator, FlowState
from redraft.flow.registry import ActionDefinition, ActionId, ActionRegistry, ParameterSpec

__all__ = [
    "ActionDefinition",
    "ActionHandlers",
    "ActionId",
    "ActionOutcome",
    "ActionRegistry",
    "CommitMode",
    "FlowOrchestrator",
    "FlowServices",
    "FlowState",
    "ParameterSpec",
]
