"""File access for the editing tools, confined to a workspace root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .line_patch import LinePatchError, load

__all__ = ["FileStore", "FileStoreError", "InMemoryFileStore", "LocalFileStore"]

LOGGER = logging.getLogger(__name__)


class FileStoreError(LinePatchError):
    """Raised when a file cannot be located, read, or written."""

    kind = "file_store"


class FileStore(Protocol):
    def read(self, path: str) -> str: ...

    def write(self, path: str, content: str) -> None: ...

    def read_numbered(self, path: str) -> list[tuple[int, str]]: ...


class LocalFileStore:
    """Read and write UTF-8 text files beneath ``root``."""

    def __init__(self, root: Path | str = ".") -> None:
        self.root = Path(root).resolve()

    def resolve(self, path: str | Path) -> Path:
        """Return the absolute path for ``path``, rejecting workspace escapes."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise FileStoreError(
                f"Path escapes the workspace: {path}",
                details={"path": str(path), "root": self.root.as_posix()},
            )
        return resolved

    def read(self, path: str) -> str:
        target = self.resolve(path)
        if not target.is_file():
            raise FileStoreError(f"File does not exist: {path}", details={"path": str(path)})
        try:
            # newline="" keeps CRLF sequences intact so writes round-trip verbatim.
            with target.open("r", encoding="utf-8", newline="") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as error:
            raise FileStoreError(f"Unable to read {path}: {error}", details={"path": str(path)}) from error

    def write(self, path: str, content: str) -> None:
        target = self.resolve(path)
        try:
            with target.open("w", encoding="utf-8", newline="") as handle:
                handle.write(content)
        except OSError as error:
            raise FileStoreError(f"Unable to write {path}: {error}", details={"path": str(path)}) from error
        LOGGER.debug("Wrote %d character(s) to %s", len(content), target)

    def read_numbered(self, path: str) -> list[tuple[int, str]]:
        """Return ``(address, line)`` pairs using the patch engine's split."""
        buffer = load(self.read(path))
        return [(address, slot or "") for address, slot in enumerate(buffer.slots)]


class InMemoryFileStore:
    """Dictionary-backed store used for dry runs and tests."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.writes: list[str] = []

    def read(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError as error:
            raise FileStoreError(f"File does not exist: {path}", details={"path": path}) from error

    def write(self, path: str, content: str) -> None:
        self.files[path] = content
        self.writes.append(path)

    def read_numbered(self, path: str) -> list[tuple[int, str]]:
        buffer = load(self.read(path))
        return [(address, slot or "") for address, slot in enumerate(buffer.slots)]
