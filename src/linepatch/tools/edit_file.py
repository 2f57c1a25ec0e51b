"""Edit-file tool: apply a batch of line patches to one workspace file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..structured import ChangeRecord, PatchAction, PatchOperation
from .change_report import ChangeReporter, format_changes
from .file_store import FileStore
from .line_patch import LinePatchError, PatchValidationError, apply_batch, load, render

__all__ = [
    "EditFileRequest",
    "EditFileResult",
    "EditFileTool",
    "PatchOperationModel",
    "format_validation_error",
]


EDIT_FILE_DESCRIPTION = (
    "Manipulate the lines of an existing file.\n"
    "This tool applies the patches in order and finally writes the lines to the file.\n"
)


class PatchOperationModel(BaseModel):
    """Wire format of a single patch as sent by the agent."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    address: int = Field(
        ge=0,
        strict=True,
        description=(
            "0-based address of the line in the file. Address 0 is the first line.\n"
            "An address is immutable, it always points to the same line even if lines "
            "are added or removed before it."
        ),
    )
    operation: PatchAction = Field(
        description=(
            "REPLACE: Replace the line at the address with the new content.\n"
            "INSERT: Insert a new line before the line at the address.\n"
            "APPEND: Insert a new line after the line at the address.\n"
            "REMOVE: Mark the line at the address as removed. The line will be removed "
            "after all patches are applied."
        ),
    )
    new_content: str | None = Field(
        default=None,
        alias="newContent",
        description="The new content for the operation.",
    )

    @model_validator(mode="after")
    def _check_content(self) -> "PatchOperationModel":
        if self.operation.takes_content and self.new_content is None:
            raise ValueError(f"newContent must be defined for {self.operation.value} operation")
        if not self.operation.takes_content and self.new_content is not None:
            raise ValueError(f"newContent must be undefined for {self.operation.value} operation")
        return self

    def to_operation(self) -> PatchOperation:
        return PatchOperation(address=self.address, operation=self.operation, new_content=self.new_content)


class EditFileRequest(BaseModel):
    """Arguments accepted by the edit-file tool."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1, description="The path to the file in the repository. The file must exist.")
    patches: List[PatchOperationModel] = Field(
        min_length=1,
        description="An array of patches. The patches are applied in order.",
    )

    def operations(self) -> list[PatchOperation]:
        return [patch.to_operation() for patch in self.patches]


@dataclass(slots=True)
class EditFileResult:
    """Outcome of a successful edit."""

    path: str
    content: str
    changes: list[ChangeRecord] = field(default_factory=list)
    line_count: int = 0
    written: bool = False
    summary: str = ""

    @property
    def diff(self) -> str:
        return format_changes(self.changes)

    def to_response(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "lineCount": self.line_count,
            "written": self.written,
            "diff": self.diff,
        }


def format_validation_error(error: ValidationError) -> str:
    """Collapse a pydantic error into one line the agent can act on."""
    messages = []
    for entry in error.errors():
        location = ".".join(str(part) for part in entry.get("loc", ()))
        message = str(entry.get("msg", "invalid value"))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or str(error)


def parse_request(payload: EditFileRequest | Mapping[str, Any]) -> EditFileRequest:
    if isinstance(payload, EditFileRequest):
        return payload
    try:
        return EditFileRequest.model_validate(payload)
    except ValidationError as error:
        raise PatchValidationError(
            f"Invalid edit request: {format_validation_error(error)}",
            details={"errors": error.errors(include_url=False)},
        ) from error


def _requested_path(payload: EditFileRequest | Mapping[str, Any]) -> str:
    if isinstance(payload, EditFileRequest):
        return payload.path
    path = payload.get("path") if isinstance(payload, Mapping) else None
    return path if isinstance(path, str) else ""


class EditFileTool:
    """Read a file, apply a patch batch in memory, then write the result once."""

    name = "editFile"
    description = EDIT_FILE_DESCRIPTION

    def __init__(
        self,
        store: FileStore,
        reporter: ChangeReporter | None = None,
        *,
        dry_run: bool = False,
    ) -> None:
        self.store = store
        self.reporter = reporter or ChangeReporter()
        self.dry_run = dry_run

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": EditFileRequest.model_json_schema(by_alias=True),
        }

    def run(self, payload: EditFileRequest | Mapping[str, Any]) -> EditFileResult:
        """Apply the request; any error leaves the file untouched and propagates."""
        try:
            request = parse_request(payload)
        except PatchValidationError as error:
            self.reporter.report_failure(_requested_path(payload), error)
            raise
        operations = request.operations()
        try:
            original = self.store.read(request.path)
            buffer = load(original)
            changes = apply_batch(buffer, operations)
            content = render(buffer)
        except LinePatchError as error:
            error.details.setdefault("path", request.path)
            self.reporter.report_failure(request.path, error)
            raise

        line_count = len(content.split("\n"))
        if not self.dry_run:
            self.store.write(request.path, content)
        summary = self.reporter.report(
            request.path,
            changes,
            line_count=line_count,
            operations=operations,
            written=not self.dry_run,
        )
        return EditFileResult(
            path=request.path,
            content=content,
            changes=changes,
            line_count=line_count,
            written=not self.dry_run,
            summary=summary,
        )

    def invoke(self, args: Mapping[str, Any]) -> dict[str, Any]:
        """Tool-call entry point: errors become a response the agent can read."""
        try:
            result = self.run(args)
        except LinePatchError as error:
            return {"error": str(error), "kind": error.kind}
        return result.to_response()
