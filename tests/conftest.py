from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from linepatch.tools.file_store import LocalFileStore  # noqa: E402


@dataclass(slots=True)
class Workspace:
    """Fixture payload representing a checked-out repository."""

    root: Path
    store: LocalFileStore

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    def read(self, relative: str) -> str:
        return (self.root / relative).read_bytes().decode("utf-8")


@pytest.fixture()
def workspace(tmp_path: Path) -> Workspace:
    """Create a small workspace with one source file."""

    root = tmp_path / "workspace"
    root.mkdir()
    ws = Workspace(root=root, store=LocalFileStore(root))
    ws.write("src/app.py", "import os\n\ndef main():\n    return 1\n")
    return ws
