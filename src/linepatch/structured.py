"""Typed payloads that describe line patches and the changes they produce."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class PatchAction(str, Enum):
    """Supported line-level operations."""

    REPLACE = "REPLACE"
    INSERT = "INSERT"
    APPEND = "APPEND"
    REMOVE = "REMOVE"

    @property
    def takes_content(self) -> bool:
        return self is not PatchAction.REMOVE


@dataclass(slots=True, frozen=True)
class PatchOperation:
    """Single edit addressed at a line of the original buffer."""

    address: int
    operation: PatchAction
    new_content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"address": self.address, "operation": self.operation.value}
        if self.new_content is not None:
            payload["newContent"] = self.new_content
        return payload


@dataclass(slots=True, frozen=True)
class ChangeRecord:
    """Before/after snapshot of one applied operation.

    ``before`` is ``None`` when the slot was already a tombstone and ``after``
    is ``None`` when the operation removed the slot. ``offset`` is the line
    index within ``after`` where ``new_content`` starts.
    """

    address: int
    operation: PatchAction
    before: str | None
    after: str | None
    new_content: str | None = None
    offset: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "operation": self.operation.value,
            "before": self.before,
            "after": self.after,
            "newContent": self.new_content,
            "offset": self.offset,
        }


__all__ = ["ChangeRecord", "PatchAction", "PatchOperation"]
