"""Output formatting for optimizer results and flow sessions."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from rich.text import Text

from redraft import __version__
from redraft.markup import SpanKind, count_changes

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from redraft.config import RedraftConfig
    from redraft.markup import MarkupSpan
    from redraft.models.results import HistoryEntry, OptimizationResult, ScoredText

_SPAN_STYLES: dict[SpanKind, str] = {
    SpanKind.UNCHANGED: "",
    SpanKind.DELETED: "strike red",
    SpanKind.INSERTED: "bold green",
}


class OutputFormatter:
    """Format results as rich diffs, plain text reports, or JSON."""

    def render_markup(self, spans: Iterable[MarkupSpan]) -> Text:
        """Render spans with deletions struck through and insertions in bold."""
        text = Text()
        for span in spans:
            text.append(span.content, style=_SPAN_STYLES[span.kind])
        return text

    def format_optimization_json(
        self, result: OptimizationResult, config: RedraftConfig
    ) -> str:
        """Serialize a humanize run as a JSON report."""
        report: dict[str, Any] = {
            "redraft_version": __version__,
            "profile": config.general.profile,
            "threshold": config.optimizer.threshold,
            "timestamp": datetime.now(UTC).isoformat(),
            "changes": count_changes(result.markup),
            "result": result.to_dict(),
        }
        return json.dumps(report, indent=2)

    def format_detection_text(self, scored: ScoredText) -> str:
        """Human-readable detector verdict."""
        lines = [f"AI Detection Score: {scored.score:g}%", "", scored.explanation]
        if scored.flagged_spans:
            lines.append("")
            lines.append("Suspicious sentences:")
            lines.extend(f"  - {s}" for s in scored.flagged_spans)
        return "\n".join(lines)

    def format_history_json(self, document: str, history: Sequence[HistoryEntry]) -> str:
        """Serialize a flow session's final document and history."""
        report: dict[str, Any] = {
            "redraft_version": __version__,
            "document": document,
            "history": [entry.to_dict() for entry in history],
        }
        return json.dumps(report, indent=2)
