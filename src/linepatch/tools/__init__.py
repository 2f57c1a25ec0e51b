"""Editing tools exposed to the coding agent."""

from .change_report import ChangeReporter, format_changes, format_summary
from .edit_file import EditFileRequest, EditFileResult, EditFileTool, PatchOperationModel
from .file_store import FileStore, FileStoreError, InMemoryFileStore, LocalFileStore
from .line_patch import (
    InvalidAddressError,
    LineBuffer,
    LinePatchError,
    OutOfRangeError,
    PatchValidationError,
    apply,
    apply_batch,
    load,
    render,
)
from .read_file import ReadFileRequest, ReadFileTool
from .registry import Tool, ToolNotFoundError, ToolRegistry

__all__ = [
    "ChangeReporter",
    "EditFileRequest",
    "EditFileResult",
    "EditFileTool",
    "FileStore",
    "FileStoreError",
    "InMemoryFileStore",
    "InvalidAddressError",
    "LineBuffer",
    "LinePatchError",
    "LocalFileStore",
    "OutOfRangeError",
    "PatchOperationModel",
    "PatchValidationError",
    "ReadFileRequest",
    "ReadFileTool",
    "Tool",
    "ToolNotFoundError",
    "ToolRegistry",
    "apply",
    "apply_batch",
    "format_changes",
    "format_summary",
    "load",
    "render",
]
