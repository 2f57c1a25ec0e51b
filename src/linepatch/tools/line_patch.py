"""Address-based line patching for the edit-file tool.

Addresses identify lines of the *original* buffer. Inserted and appended
content is stored inside the slot it is anchored to, and removed lines are
left behind as tombstones, so no operation ever shifts another address within
a batch. The net change in line count only materialises when the buffer is
rendered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..structured import ChangeRecord, PatchAction, PatchOperation

__all__ = [
    "InvalidAddressError",
    "LineBuffer",
    "LinePatchError",
    "OutOfRangeError",
    "PatchValidationError",
    "apply",
    "apply_batch",
    "load",
    "render",
    "validate_operation",
]


class LinePatchError(RuntimeError):
    """Raised when a line patch cannot be validated or applied."""

    kind = "patch"

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class PatchValidationError(LinePatchError):
    """Raised for operations whose content does not match their tag."""

    kind = "validation"


class OutOfRangeError(LinePatchError):
    """Raised when an address lies beyond the end of the buffer."""

    kind = "out_of_range"


class InvalidAddressError(LinePatchError):
    """Raised when an operation requires a line that was already removed."""

    kind = "invalid_address"


@dataclass(slots=True)
class LineBuffer:
    """Fixed-length slots holding line content, ``None`` marking a tombstone.

    ``anchors`` holds, per slot, the length of the prefix created by INSERT
    operations so later inserts land directly above the addressed line.
    """

    slots: list[str | None] = field(default_factory=list)
    anchors: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.anchors) != len(self.slots):
            self.anchors = [0] * len(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def get(self, address: int) -> str | None:
        return self.slots[address]

    def is_removed(self, address: int) -> bool:
        return self.slots[address] is None


def load(content: str) -> LineBuffer:
    """Split ``content`` on ``\\n`` into one slot per original line."""
    return LineBuffer(slots=list(content.split("\n")))


def render(buffer: LineBuffer) -> str:
    """Join the surviving slots back into text."""
    return "\n".join(slot for slot in buffer.slots if slot is not None)


def validate_operation(operation: PatchOperation) -> None:
    """Check an operation in isolation, before it touches any buffer."""
    action = operation.operation
    if not isinstance(action, PatchAction):
        raise PatchValidationError(f"Unknown operation: {action!r}")
    if isinstance(operation.address, bool) or not isinstance(operation.address, int):
        raise PatchValidationError(
            f"address must be an integer but got {type(operation.address).__name__}",
            details={"operation": action.value},
        )
    if operation.address < 0:
        raise PatchValidationError(
            f"address must be >= 0 but got {operation.address}",
            details={"address": operation.address, "operation": action.value},
        )
    if action.takes_content and operation.new_content is None:
        raise PatchValidationError(
            f"newContent must be defined for {action.value} operation",
            details={"address": operation.address, "operation": action.value},
        )
    if not action.takes_content and operation.new_content is not None:
        raise PatchValidationError(
            f"newContent must be undefined for {action.value} operation",
            details={"address": operation.address, "operation": action.value},
        )


def apply(buffer: LineBuffer, operation: PatchOperation) -> ChangeRecord:
    """Apply a single operation in place and return what changed."""
    validate_operation(operation)
    address = operation.address
    action = operation.operation
    details = {"address": address, "operation": action.value}

    if address >= len(buffer):
        raise OutOfRangeError(
            f"address {address} is out of range (buffer has {len(buffer)} lines)",
            details={**details, "length": len(buffer)},
        )

    original = buffer.get(address)
    if original is None and action in (PatchAction.REPLACE, PatchAction.REMOVE):
        raise InvalidAddressError(f"address {address} is already removed", details=details)

    anchor = buffer.anchors[address]
    new_content = operation.new_content
    offset = 0
    if action is PatchAction.REMOVE:
        updated = None
        anchor = 0
    elif action is PatchAction.REPLACE or original is None:
        # A tombstone has no addressed line left, so a later INSERT lands above this content.
        updated = new_content
        anchor = 0
    elif action is PatchAction.INSERT:
        inserted = f"{new_content}\n"
        offset = original[:anchor].count("\n")
        updated = original[:anchor] + inserted + original[anchor:]
        anchor += len(inserted)
    else:
        offset = original.count("\n") + 1
        updated = f"{original}\n{new_content}"

    buffer.slots[address] = updated
    buffer.anchors[address] = anchor
    return ChangeRecord(
        address=address,
        operation=action,
        before=original,
        after=updated,
        new_content=new_content,
        offset=offset,
    )


def apply_batch(buffer: LineBuffer, operations: Iterable[PatchOperation]) -> list[ChangeRecord]:
    """Apply ``operations`` in order, stopping at the first failure.

    Operations that succeeded before the failure stay applied to ``buffer``;
    callers must discard the buffer rather than render it.
    """
    batch = list(operations)
    if not batch:
        raise PatchValidationError("patch batch must contain at least one operation")

    for index, operation in enumerate(batch):
        try:
            validate_operation(operation)
        except LinePatchError as error:
            error.details.setdefault("index", index)
            raise

    changes: list[ChangeRecord] = []
    for index, operation in enumerate(batch):
        try:
            changes.append(apply(buffer, operation))
        except LinePatchError as error:
            error.details.setdefault("index", index)
            raise
    return changes
