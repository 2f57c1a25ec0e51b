"""Render change records for logs, step summaries, and telemetry."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ..structured import ChangeRecord, PatchAction, PatchOperation

__all__ = [
    "ChangeReporter",
    "emit_event",
    "format_change",
    "format_changes",
    "format_hunk",
    "format_summary",
]

LOGGER = logging.getLogger(__name__)
TELEMETRY_LOGGER = logging.getLogger("linepatch.telemetry")


def _prefixed(prefix: str, text: str) -> list[str]:
    return [f"{prefix} {line}" for line in text.split("\n")]


def format_change(change: ChangeRecord) -> str:
    """Return the diff body (without header) for one change record.

    REPLACE and REMOVE always show the full previous slot as removed. INSERT
    and APPEND only add lines: the new block is marked at ``change.offset`` and
    the rest of the slot is kept as context around it.
    """
    before = change.before
    if change.operation is PatchAction.REMOVE:
        return "\n".join(_prefixed("-", before or ""))
    if change.operation is PatchAction.REPLACE:
        return "\n".join(_prefixed("-", before or "") + _prefixed("+", change.after or ""))
    if before is None:
        return "\n".join(_prefixed("+", change.after or ""))

    after_lines = (change.after or "").split("\n")
    start = change.offset
    end = start + len((change.new_content or "").split("\n"))
    lines = [f"  {line}" for line in after_lines[:start]]
    lines += [f"+ {line}" for line in after_lines[start:end]]
    lines += [f"  {line}" for line in after_lines[end:]]
    return "\n".join(lines)


def format_hunk(change: ChangeRecord) -> str:
    return f"@@ {change.address} @@\n{format_change(change)}"


def format_changes(changes: Iterable[ChangeRecord]) -> str:
    """Render every change record as consecutive diff hunks."""
    return "\n".join(format_hunk(change) for change in changes)


def format_summary(
    path: str,
    changes: Sequence[ChangeRecord],
    *,
    line_count: int,
    operations: Sequence[PatchOperation] | None = None,
) -> str:
    """Build the Markdown block appended to the CI step summary."""
    parts = [f"### 🔧 Edit a file ({line_count} lines)", "", path, ""]
    if operations:
        requested = json.dumps([operation.to_dict() for operation in operations], indent=2)
        parts += ["```json", requested, "```", ""]
    for change in changes:
        parts += ["```diff", format_hunk(change), "```", ""]
    return "\n".join(parts)


def _serialise_event_value(value: Any) -> Any:
    """Convert telemetry payload values into JSON-friendly representations."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (ChangeRecord, PatchOperation)):
        return value.to_dict()
    if isinstance(value, (list, tuple, set)):
        return [_serialise_event_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _serialise_event_value(child) for key, child in value.items()}
    return str(value)


def emit_event(event: str, **fields: Any) -> None:
    """Log a structured telemetry event as compact JSON."""
    payload = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat()}
    for key, value in fields.items():
        payload[key] = _serialise_event_value(value)
    TELEMETRY_LOGGER.info(json.dumps(payload, separators=(",", ":"), ensure_ascii=True))


@dataclass(slots=True)
class ChangeReporter:
    """Surface an applied batch through logging and an optional summary file."""

    summary_path: Path | None = None
    include_request: bool = True

    def report(
        self,
        path: str,
        changes: Sequence[ChangeRecord],
        *,
        line_count: int,
        operations: Sequence[PatchOperation] | None = None,
        written: bool = True,
    ) -> str:
        """Log the batch and, when it was written, append it to the summary file.

        A dry run (``written=False``) is logged as a preview and never reaches
        the summary file.
        """
        LOGGER.info("%s %s (%d lines)", "Edited" if written else "Would edit", path, line_count)
        for change in changes:
            LOGGER.debug("%s", format_hunk(change))

        summary = format_summary(
            path,
            changes,
            line_count=line_count,
            operations=operations if self.include_request else None,
        )
        if written and self.summary_path is not None:
            self._append_summary(self.summary_path, summary)

        emit_event(
            "edit_applied" if written else "edit_previewed",
            path=path,
            line_count=line_count,
            changes=list(changes),
        )
        return summary

    @staticmethod
    def _append_summary(summary_path: Path, summary: str) -> None:
        try:
            summary_path.parent.mkdir(parents=True, exist_ok=True)
            with summary_path.open("a", encoding="utf-8") as handle:
                handle.write(summary)
                handle.write("\n")
        except OSError as error:
            LOGGER.warning("Could not write step summary %s: %s", summary_path, error)

    def report_failure(self, path: str, error: Exception) -> None:
        details = getattr(error, "details", {}) or {}
        LOGGER.warning("Failed to edit %s: %s", path, error)
        emit_event(
            "edit_failed",
            path=path,
            kind=getattr(error, "kind", type(error).__name__),
            message=str(error),
            details=details,
        )
