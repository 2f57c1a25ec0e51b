"""Per-run registry of the tools offered to the coding agent."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from .change_report import ChangeReporter
from .edit_file import EditFileTool
from .file_store import FileStore, LocalFileStore
from .read_file import ReadFileTool

__all__ = ["Tool", "ToolNotFoundError", "ToolRegistry"]

LOGGER = logging.getLogger(__name__)


class Tool(Protocol):
    name: str
    description: str

    def declaration(self) -> dict[str, Any]: ...

    def invoke(self, args: Mapping[str, Any]) -> dict[str, Any]: ...


class ToolNotFoundError(KeyError):
    """Raised when the agent calls a tool that is not registered."""

    def __str__(self) -> str:
        return f"no such function {self.args[0]}"


class ToolRegistry:
    """Explicitly constructed set of tools scoped to one task run."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    @classmethod
    def for_workspace(
        cls,
        root: Path | str,
        *,
        store: FileStore | None = None,
        reporter: ChangeReporter | None = None,
        dry_run: bool = False,
    ) -> "ToolRegistry":
        """Build the default editing toolset bound to ``root``."""
        file_store = store or LocalFileStore(root)
        return cls(
            [
                ReadFileTool(file_store),
                EditFileTool(file_store, reporter, dry_run=dry_run),
            ]
        )

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError as error:
            raise ToolNotFoundError(name) from error

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def declarations(self) -> list[dict[str, Any]]:
        return [tool.declaration() for tool in self._tools.values()]

    def call(self, name: str, args: Mapping[str, Any] | None = None) -> dict[str, Any]:
        tool = self.get(name)
        LOGGER.info("Calling the function: %s", name)
        return tool.invoke(dict(args or {}))
