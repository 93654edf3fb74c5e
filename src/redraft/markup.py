"""Decoding of the inline change markup emitted by rewriting collaborators.

Rewrites mark every edit as a deletion immediately followed by its
replacement::

    I ~~is~~**am** happy.

:func:`decode` turns that string into an ordered list of :class:`MarkupSpan`.
A deletion may be separated from its replacement by whitespace
(``~~is~~ **am**``). Markers that do not form a ``~~...~~**...**`` pair are
kept as literal unchanged text, so decoding never fails.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

DELETE_MARKER = "~~"
INSERT_MARKER = "**"

# Deleted content may not contain "~~" and inserted content may not contain
# "**"; otherwise a stray opening marker would swallow the following pair.
# Whitespace between the two halves of a pair is allowed and dropped.
_PAIR_RE = re.compile(
    r"~~(?P<deleted>(?:(?!~~).)*?)~~\s*\*\*(?P<inserted>(?:(?!\*\*).)*?)\*\*",
    re.DOTALL,
)


class SpanKind(enum.Enum):
    """Classification of a markup fragment."""

    UNCHANGED = "unchanged"
    DELETED = "deleted"
    INSERTED = "inserted"


@dataclass(frozen=True, slots=True)
class MarkupSpan:
    """A typed fragment of a rewritten text."""

    kind: SpanKind
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"kind": self.kind.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarkupSpan:
        """Deserialize from dictionary."""
        return cls(kind=SpanKind(data["kind"]), content=data["content"])


def decode(raw: str) -> list[MarkupSpan]:
    """Split raw markup into unchanged, deleted and inserted spans.

    Every well-formed pair yields a ``DELETED`` span followed by an
    ``INSERTED`` span, even when either side is empty. Whitespace inside the
    markers and between the two halves of a pair is dropped; text between
    pairs is kept verbatim.

    Args:
        raw: Markup string as returned by a transformer or proofreader.

    Returns:
        Spans in document order. Empty input yields an empty list.
    """
    spans: list[MarkupSpan] = []
    pos = 0
    for match in _PAIR_RE.finditer(raw):
        if match.start() > pos:
            spans.append(MarkupSpan(SpanKind.UNCHANGED, raw[pos : match.start()]))
        spans.append(MarkupSpan(SpanKind.DELETED, match.group("deleted").strip()))
        spans.append(MarkupSpan(SpanKind.INSERTED, match.group("inserted").strip()))
        pos = match.end()
    if pos < len(raw):
        spans.append(MarkupSpan(SpanKind.UNCHANGED, raw[pos:]))
    return spans


def encode(spans: Iterable[MarkupSpan]) -> str:
    """Render spans back into the marker format.

    A deleted span without a following inserted span (and vice versa) is
    still emitted as a complete pair, with the missing side left empty.
    """
    parts: list[str] = []
    pending_delete: str | None = None
    for span in spans:
        if span.kind is SpanKind.DELETED:
            if pending_delete is not None:
                parts.append(_pair(pending_delete, ""))
            pending_delete = span.content
            continue
        if span.kind is SpanKind.INSERTED:
            parts.append(_pair(pending_delete or "", span.content))
            pending_delete = None
            continue
        if pending_delete is not None:
            parts.append(_pair(pending_delete, ""))
            pending_delete = None
        parts.append(span.content)
    if pending_delete is not None:
        parts.append(_pair(pending_delete, ""))
    return "".join(parts)


def _pair(deleted: str, inserted: str) -> str:
    return f"{DELETE_MARKER}{deleted}{DELETE_MARKER}{INSERT_MARKER}{inserted}{INSERT_MARKER}"


def plain_text(spans: Iterable[MarkupSpan]) -> str:
    """Return the human-facing text: unchanged and inserted content in order."""
    return "".join(s.content for s in spans if s.kind is not SpanKind.DELETED)


def plain_text_from_raw(raw: str) -> str:
    """Decode ``raw`` and return its human-facing text."""
    return plain_text(decode(raw))


def original_text(spans: Iterable[MarkupSpan]) -> str:
    """Approximate the pre-edit text: unchanged and deleted content in order."""
    return "".join(s.content for s in spans if s.kind is not SpanKind.INSERTED)


def count_changes(spans: Iterable[MarkupSpan]) -> int:
    """Number of deletion/insertion pairs in ``spans``."""
    return sum(1 for s in spans if s.kind is SpanKind.DELETED)
