"""Read-file tool exposing the addresses the edit-file tool patches against."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .change_report import emit_event
from .edit_file import format_validation_error
from .file_store import FileStore
from .line_patch import LinePatchError, PatchValidationError

__all__ = ["ReadFileRequest", "ReadFileTool"]

LOGGER = logging.getLogger(__name__)


class ReadFileRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1, description="The path to the file. The file must already exist.")


class ReadFileTool:
    """Return every line of a file paired with its 0-based address."""

    name = "readFile"
    description = "Read a file in the workspace. Each line is returned with its 0-based address."

    def __init__(self, store: FileStore) -> None:
        self.store = store

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": ReadFileRequest.model_json_schema(),
        }

    def run(self, payload: ReadFileRequest | Mapping[str, Any]) -> list[tuple[int, str]]:
        if isinstance(payload, ReadFileRequest):
            request = payload
        else:
            try:
                request = ReadFileRequest.model_validate(payload)
            except ValidationError as error:
                raise PatchValidationError(f"Invalid read request: {format_validation_error(error)}") from error

        lines = self.store.read_numbered(request.path)
        LOGGER.info("Reading %s (%d lines)", request.path, len(lines))
        emit_event("file_read", path=request.path, line_count=len(lines))
        return lines

    def invoke(self, args: Mapping[str, Any]) -> dict[str, Any]:
        try:
            lines = self.run(args)
        except LinePatchError as error:
            return {"error": str(error), "kind": error.kind}
        return {"lines": [{"address": address, "line": line} for address, line in lines]}
