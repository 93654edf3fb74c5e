"""Closed set of chainable actions and their parameter schemas."""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from redraft.core.errors import InvalidInput
from redraft.humanizer.styles import CitationStyle, ParaphraseMode, SummaryFormat, Tone


class ActionId(enum.Enum):
    """Every action a flow can apply."""

    RESEARCH = "research"
    WRITE_ASSIST = "write_assist"
    PARAPHRASE = "paraphrase"
    SUMMARIZE = "summarize"
    HUMANIZE = "humanize"
    GRAMMAR = "grammar"
    ANALYTICS = "analytics"
    DETECT = "detect"
    PLAGIARISM = "plagiarism"
    CITATION = "citation"


class ParameterKind(enum.Enum):
    """Value type of an action parameter."""

    CHOICE = "choice"
    INTEGER = "integer"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """Schema for one action parameter.

    Attributes:
        name: Parameter key.
        kind: Value type.
        default: Value set when the action is selected.
        choices: Allowed values for ``CHOICE`` parameters.
        minimum: Inclusive lower bound for ``INTEGER`` parameters.
        maximum: Inclusive upper bound for ``INTEGER`` parameters.
        required: ``TEXT`` parameter must be non-blank before applying.
    """

    name: str
    kind: ParameterKind
    default: Any
    choices: tuple[Any, ...] = ()
    minimum: int | None = None
    maximum: int | None = None
    required: bool = False

    def coerce(self, value: Any) -> Any:
        """Validate ``value`` and convert it to the parameter's type.

        Raises:
            InvalidInput: Value is not acceptable for this parameter.
        """
        if self.kind is ParameterKind.CHOICE:
            for choice in self.choices:
                if value == choice:
                    return choice
            allowed = ", ".join(c.value for c in self.choices)
            raise InvalidInput(f"{self.name} must be one of: {allowed}; got {value!r}")

        if self.kind is ParameterKind.INTEGER:
            if isinstance(value, bool):
                raise InvalidInput(f"{self.name} must be an integer, got {value!r}")
            try:
                number = int(value)
            except (TypeError, ValueError) as exc:
                raise InvalidInput(f"{self.name} must be an integer, got {value!r}") from exc
            if self.minimum is not None and number < self.minimum:
                raise InvalidInput(f"{self.name} must be >= {self.minimum}, got {number}")
            if self.maximum is not None and number > self.maximum:
                raise InvalidInput(f"{self.name} must be <= {self.maximum}, got {number}")
            return number

        if not isinstance(value, str):
            raise InvalidInput(f"{self.name} must be text, got {type(value).__name__}")
        return value


@dataclass(frozen=True, slots=True)
class ActionDefinition:
    """Immutable description of a chainable action."""

    id: ActionId
    label: str
    requires_input_text: bool
    parameter_schema: Mapping[str, ParameterSpec] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def defaults(self) -> dict[str, Any]:
        """Fresh parameter dict holding every default."""
        return {name: spec.default for name, spec in self.parameter_schema.items()}


def _schema(*specs: ParameterSpec) -> Mapping[str, ParameterSpec]:
    return MappingProxyType({spec.name: spec for spec in specs})


# Display order matches the action panel.
_DEFINITIONS: tuple[ActionDefinition, ...] = (
    ActionDefinition(
        ActionId.RESEARCH,
        "Web Research",
        requires_input_text=False,
        parameter_schema=_schema(
            ParameterSpec("query", ParameterKind.TEXT, "", required=True),
        ),
    ),
    ActionDefinition(ActionId.WRITE_ASSIST, "Complete Text", requires_input_text=True),
    ActionDefinition(
        ActionId.PARAPHRASE,
        "Paraphrase",
        requires_input_text=True,
        parameter_schema=_schema(
            ParameterSpec(
                "mode",
                ParameterKind.CHOICE,
                ParaphraseMode.BALANCED,
                choices=tuple(ParaphraseMode),
            ),
        ),
    ),
    ActionDefinition(
        ActionId.SUMMARIZE,
        "Summarize",
        requires_input_text=True,
        parameter_schema=_schema(
            ParameterSpec(
                "format",
                ParameterKind.CHOICE,
                SummaryFormat.PARAGRAPH,
                choices=tuple(SummaryFormat),
            ),
            ParameterSpec("word_count", ParameterKind.INTEGER, 100, minimum=20, maximum=2000),
        ),
    ),
    ActionDefinition(
        ActionId.HUMANIZE,
        "AI Humanizer",
        requires_input_text=True,
        parameter_schema=_schema(
            ParameterSpec("tone", ParameterKind.CHOICE, Tone.NEUTRAL, choices=tuple(Tone)),
            ParameterSpec("level", ParameterKind.INTEGER, 50, minimum=1, maximum=100),
        ),
    ),
    ActionDefinition(ActionId.GRAMMAR, "Check Grammar", requires_input_text=True),
    ActionDefinition(ActionId.ANALYTICS, "Analyze Text", requires_input_text=True),
    ActionDefinition(ActionId.DETECT, "AI Detector", requires_input_text=True),
    ActionDefinition(ActionId.PLAGIARISM, "Plagiarism Check", requires_input_text=True),
    ActionDefinition(
        ActionId.CITATION,
        "Cite Source",
        requires_input_text=False,
        parameter_schema=_schema(
            ParameterSpec(
                "style", ParameterKind.CHOICE, CitationStyle.APA, choices=tuple(CitationStyle)
            ),
            ParameterSpec("source", ParameterKind.TEXT, "", required=True),
        ),
    ),
)


class ActionRegistry:
    """Lookup and validation over the fixed action set."""

    def __init__(self) -> None:
        self._definitions: dict[ActionId, ActionDefinition] = {d.id: d for d in _DEFINITIONS}

    def __iter__(self) -> Iterator[ActionDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._definitions

    def get(self, action_id: ActionId | str) -> ActionDefinition:
        """Return the definition for ``action_id``.

        Raises:
            InvalidInput: Unknown action id.
        """
        try:
            return self._definitions[ActionId(action_id)]
        except ValueError as exc:
            known = ", ".join(a.value for a in ActionId)
            raise InvalidInput(f"Unknown action {action_id!r}. Known actions: {known}") from exc

    def blocking_reason(
        self, action_id: ActionId, document: str, params: Mapping[str, Any]
    ) -> str | None:
        """Explain why the action cannot be applied, or return None.

        Checks that input text is present for actions that need it and that
        every required parameter is non-blank.
        """
        definition = self.get(action_id)
        if definition.requires_input_text and not document.strip():
            return f"{definition.label} needs text in the document"
        for name, spec in definition.parameter_schema.items():
            if spec.required and not str(params.get(name, "")).strip():
                return f"{definition.label} needs a value for {name!r}"
        return None
