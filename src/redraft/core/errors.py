"""Exception hierarchy for redraft.

Collaborator failures are propagated verbatim to the caller; input problems
are raised at the flow boundary before any handler runs. Malformed markup is
never an error (see :mod:`redraft.markup`).
"""

from __future__ import annotations


class RedraftError(Exception):
    """Base exception for all redraft errors."""


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------


class CollaboratorUnavailable(RedraftError):
    """An external collaborator call failed (network, quota, policy rejection)."""


class DetectorUnavailable(CollaboratorUnavailable):
    """The detector could not score the text."""


class TransformerUnavailable(CollaboratorUnavailable):
    """The transformer could not rewrite the text."""


class ResearchUnavailable(CollaboratorUnavailable):
    """The research or source lookup failed."""


class CitationUnavailable(CollaboratorUnavailable):
    """The citation could not be generated."""


class AssistantUnavailable(CollaboratorUnavailable):
    """A summarize/proofread/complete/analyze call failed."""


class NotConfiguredError(CollaboratorUnavailable):
    """The collaborator an action needs was never injected.

    Attributes:
        collaborator: Name of the missing collaborator (e.g. ``"detector"``).
    """

    def __init__(self, collaborator: str) -> None:
        self.collaborator = collaborator
        super().__init__(
            f"{collaborator} is not configured. Start the Ollama server or "
            f"inject a {collaborator} implementation."
        )


# ---------------------------------------------------------------------------
# Input and state errors
# ---------------------------------------------------------------------------


class InvalidInput(RedraftError, ValueError):
    """Missing or invalid text/parameter for an action or optimizer run."""


class FlowStateError(RedraftError):
    """Operation not permitted in the flow's current state."""


class FlowBusyError(FlowStateError):
    """``apply()`` was called while another action is still in flight."""
