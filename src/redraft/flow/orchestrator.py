"""Flow orchestrator: one document, chained actions, append-only history.

State machine::

    IDLE --select_action--> CONFIGURING --apply--> APPLYING
                                 ^                    |
                                 +---- success/fail --+

The document changes only through :meth:`FlowOrchestrator.set_document` or
an atomic commit at the end of a successful :meth:`FlowOrchestrator.apply`.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any

from redraft.core.errors import FlowBusyError, FlowStateError, InvalidInput
from redraft.flow.handlers import ActionHandlers, ActionOutcome, CommitMode, FlowServices
from redraft.flow.registry import ActionId, ActionRegistry
from redraft.models.results import HistoryEntry

if TYPE_CHECKING:
    from collections.abc import Callable

    from redraft.config import RedraftConfig
    from redraft.flow.registry import ActionDefinition
    from redraft.progress import AttemptEvent

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    """Lifecycle states of a flow session."""

    IDLE = "IDLE"
    CONFIGURING = "CONFIGURING"
    APPLYING = "APPLYING"


class FlowOrchestrator:
    """Owns the flow document and its history for one session.

    Args:
        handlers: Dispatch table of action handlers.
        registry: Action definitions. Defaults to the full action set.
    """

    def __init__(self, handlers: ActionHandlers, registry: ActionRegistry | None = None) -> None:
        self._handlers = handlers
        self._registry = registry or ActionRegistry()
        self._state = FlowState.IDLE
        self._document = ""
        self._history: list[HistoryEntry] = []
        self._next_sequence = 1
        self._active: ActionDefinition | None = None
        self._params: dict[str, Any] = {}
        self.last_error: Exception | None = None

    @classmethod
    def from_config(
        cls,
        services: FlowServices,
        config: RedraftConfig,
        progress_callback: Callable[[AttemptEvent], None] | None = None,
    ) -> FlowOrchestrator:
        """Build an orchestrator whose handlers use ``config``."""
        handlers = ActionHandlers(
            services,
            optimizer_config=config.optimizer,
            flow_config=config.flow,
            progress_callback=progress_callback,
        )
        return cls(handlers)

    # -- State -----------------------------------------------------------------

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    @property
    def active_action(self) -> ActionDefinition | None:
        return self._active

    @property
    def parameters(self) -> dict[str, Any]:
        """Copy of the active action's parameters."""
        return dict(self._params)

    def _ensure_not_applying(self, operation: str) -> None:
        if self._state is FlowState.APPLYING:
            raise FlowBusyError(f"Cannot {operation} while an action is being applied")

    # -- Configuration ---------------------------------------------------------

    def select_action(self, action_id: ActionId | str) -> None:
        """Select an action and reset its parameters to their defaults."""
        self._ensure_not_applying("select an action")
        definition = self._registry.get(action_id)
        self._active = definition
        self._params = definition.defaults()
        self.last_error = None
        self._state = FlowState.CONFIGURING

    def set_parameter(self, key: str, value: Any) -> None:
        """Set one parameter of the active action.

        Raises:
            FlowStateError: No action is selected, or an apply is in flight.
            InvalidInput: Unknown key or unacceptable value.
        """
        self._ensure_not_applying("change parameters")
        if self._active is None:
            raise FlowStateError("Select an action before setting parameters")
        spec = self._active.parameter_schema.get(key)
        if spec is None:
            raise InvalidInput(f"{self._active.label} has no parameter {key!r}")
        self._params[key] = spec.coerce(value)

    def can_apply(self) -> str | None:
        """Return why :meth:`apply` would be rejected, or None if it may run."""
        if self._state is FlowState.APPLYING:
            return "An action is already being applied"
        if self._active is None:
            return "No action selected"
        return self._registry.blocking_reason(self._active.id, self._document, self._params)

    # -- Document --------------------------------------------------------------

    def get_document(self) -> str:
        return self._document

    def set_document(self, text: str) -> None:
        """Replace the whole document. Manual edits are not recorded in history."""
        self._ensure_not_applying("edit the document")
        self._document = text

    def word_count(self) -> int:
        return len(self._document.split())

    # -- History ---------------------------------------------------------------

    def get_history(self) -> list[HistoryEntry]:
        """All entries, oldest first."""
        return list(self._history)

    def recent_history(self, n: int) -> list[HistoryEntry]:
        """The last ``n`` entries, oldest first."""
        if n <= 0:
            return []
        return self._history[-n:]

    def actions_used(self) -> list[str]:
        """Distinct action ids in order of first use."""
        return list(dict.fromkeys(entry.action_id for entry in self._history))

    # -- Apply -----------------------------------------------------------------

    async def apply(self) -> HistoryEntry:
        """Run the active action and commit its outcome.

        Returns:
            The history entry appended for this application.

        Raises:
            FlowBusyError: Another apply is in flight.
            FlowStateError: No action selected.
            InvalidInput: Input text or a required parameter is missing. The
                handler is not invoked.
            CollaboratorUnavailable: Propagated from the handler. Document and
                history are left unchanged.
        """
        if self._state is FlowState.APPLYING:
            raise FlowBusyError("An action is already being applied")
        if self._active is None:
            raise FlowStateError("No action selected")
        reason = self._registry.blocking_reason(self._active.id, self._document, self._params)
        if reason is not None:
            raise InvalidInput(reason)

        definition = self._active
        snapshot = self._document
        params = dict(self._params)
        self._state = FlowState.APPLYING
        self.last_error = None
        try:
            outcome = await self._handlers[definition.id](snapshot, params)
        except Exception as exc:
            self.last_error = exc
            logger.warning("Action %s failed: %s", definition.id.value, exc)
            raise
        finally:
            self._state = FlowState.CONFIGURING

        return self._commit(definition.id, outcome)

    def _commit(self, action_id: ActionId, outcome: ActionOutcome) -> HistoryEntry:
        """Apply the outcome to the document and append a history entry."""
        if outcome.commit is CommitMode.REPLACE:
            document = outcome.document_text
        elif outcome.commit is CommitMode.APPEND:
            document = _append(self._document, outcome.document_text)
        else:
            document = self._document

        entry = HistoryEntry(
            sequence_number=self._next_sequence,
            action_id=action_id.value,
            action_label=outcome.history_label,
            result_summary=outcome.result_text,
        )
        self._document = document
        self._history.append(entry)
        self._next_sequence += 1
        logger.info("Committed #%d: %s", entry.sequence_number, entry.action_label)
        return entry


def _append(document: str, addition: str) -> str:
    """Append ``addition`` after exactly one blank line, if there is existing text."""
    existing = document.rstrip()
    if not existing.strip():
        return addition
    return f"{existing}\n\n{addition}"
