from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from linepatch.tools.change_report import ChangeReporter
from linepatch.tools.edit_file import EditFileRequest, EditFileTool
from linepatch.tools.file_store import FileStoreError, InMemoryFileStore
from linepatch.tools.line_patch import InvalidAddressError, OutOfRangeError, PatchValidationError


def test_edit_file_applies_batch_and_writes_once() -> None:
    store = InMemoryFileStore({"notes.txt": "alpha\nbeta\ngamma\n"})
    tool = EditFileTool(store)

    result = tool.run(
        {
            "path": "notes.txt",
            "patches": [
                {"address": 0, "operation": "INSERT", "newContent": "# header"},
                {"address": 1, "operation": "REMOVE"},
                {"address": 2, "operation": "REPLACE", "newContent": "GAMMA"},
            ],
        }
    )

    assert store.files["notes.txt"] == "# header\nalpha\nGAMMA\n"
    assert store.writes == ["notes.txt"]
    assert result.written is True
    assert result.line_count == 4
    assert [change.address for change in result.changes] == [0, 1, 2]


def test_edit_file_on_disk_preserves_trailing_newline(workspace) -> None:
    tool = EditFileTool(workspace.store)

    tool.run(
        {
            "path": "src/app.py",
            "patches": [
                {"address": 0, "operation": "APPEND", "newContent": "import sys"},
                {"address": 3, "operation": "REPLACE", "newContent": "    return 0"},
            ],
        }
    )

    assert workspace.read("src/app.py") == "import os\nimport sys\n\ndef main():\n    return 0\n"


@pytest.mark.parametrize(
    ("patches", "error_type"),
    [
        ([{"address": 9, "operation": "REPLACE", "newContent": "x"}], OutOfRangeError),
        (
            [
                {"address": 0, "operation": "REPLACE", "newContent": "changed"},
                {"address": 1, "operation": "REMOVE"},
                {"address": 1, "operation": "REPLACE", "newContent": "x"},
            ],
            InvalidAddressError,
        ),
    ],
)
def test_edit_file_failure_leaves_file_untouched(workspace, patches, error_type) -> None:
    tool = EditFileTool(workspace.store)
    before = workspace.read("src/app.py")

    with pytest.raises(error_type) as excinfo:
        tool.run({"path": "src/app.py", "patches": patches})

    assert workspace.read("src/app.py") == before
    assert excinfo.value.details["path"] == "src/app.py"


@pytest.mark.parametrize(
    "payload",
    [
        {"path": "notes.txt", "patches": []},
        {"path": "notes.txt", "patches": [{"address": 0, "operation": "REMOVE", "newContent": "x"}]},
        {"path": "notes.txt", "patches": [{"address": 0, "operation": "REPLACE"}]},
        {"path": "notes.txt", "patches": [{"address": -1, "operation": "REMOVE"}]},
        {"path": "notes.txt", "patches": [{"address": 0, "operation": "DELETE"}]},
        {"path": "notes.txt", "patches": [{"address": "0", "operation": "REMOVE"}]},
        {"patches": [{"address": 0, "operation": "REMOVE"}]},
    ],
)
def test_edit_file_rejects_malformed_requests(payload) -> None:
    store = InMemoryFileStore({"notes.txt": "alpha"})
    tool = EditFileTool(store)

    with pytest.raises(PatchValidationError):
        tool.run(payload)

    assert store.writes == []


def test_edit_file_request_accepts_python_field_names() -> None:
    request = EditFileRequest.model_validate(
        {"path": "a.txt", "patches": [{"address": 0, "operation": "APPEND", "new_content": "x"}]}
    )

    assert request.operations()[0].new_content == "x"


def test_invoke_reports_errors_to_the_agent() -> None:
    store = InMemoryFileStore({"notes.txt": "alpha"})
    tool = EditFileTool(store)

    response = tool.invoke(
        {
            "path": "notes.txt",
            "patches": [
                {"address": 0, "operation": "REMOVE"},
                {"address": 0, "operation": "REMOVE"},
            ],
        }
    )

    assert response == {"error": "address 0 is already removed", "kind": "invalid_address"}
    assert store.files["notes.txt"] == "alpha"


def test_invoke_reports_missing_file() -> None:
    tool = EditFileTool(InMemoryFileStore())

    response = tool.invoke({"path": "missing.txt", "patches": [{"address": 0, "operation": "REMOVE"}]})

    assert response["kind"] == "file_store"
    assert "missing.txt" in response["error"]


def test_invoke_returns_diff_trail() -> None:
    tool = EditFileTool(InMemoryFileStore({"notes.txt": "a\nb"}))

    response = tool.invoke({"path": "notes.txt", "patches": [{"address": 1, "operation": "INSERT", "newContent": "x"}]})

    assert response == {
        "path": "notes.txt",
        "lineCount": 3,
        "written": True,
        "diff": "@@ 1 @@\n+ x\n  b",
    }


def test_dry_run_skips_write() -> None:
    store = InMemoryFileStore({"notes.txt": "a\nb"})
    tool = EditFileTool(store, dry_run=True)

    result = tool.run({"path": "notes.txt", "patches": [{"address": 0, "operation": "REMOVE"}]})

    assert result.content == "b"
    assert result.written is False
    assert store.files["notes.txt"] == "a\nb"
    assert store.writes == []


def test_dry_run_is_previewed_not_summarised(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    summary_path = tmp_path / "summary.md"
    tool = EditFileTool(
        InMemoryFileStore({"a.txt": "a"}),
        ChangeReporter(summary_path=summary_path),
        dry_run=True,
    )

    with caplog.at_level(logging.INFO, logger="linepatch"):
        tool.run({"path": "a.txt", "patches": [{"address": 0, "operation": "REMOVE"}]})

    assert not summary_path.exists()
    assert "Would edit a.txt (1 lines)" in caplog.text
    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "linepatch.telemetry"]
    assert [event["event"] for event in events] == ["edit_previewed"]


def test_summary_write_failure_still_returns_a_response(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = InMemoryFileStore({"a.txt": "a\nb"})
    tool = EditFileTool(store, ChangeReporter(summary_path=blocker / "summary.md"))

    response = tool.invoke({"path": "a.txt", "patches": [{"address": 0, "operation": "REMOVE"}]})

    assert response["written"] is True
    assert store.files["a.txt"] == "b"


def test_malformed_request_emits_failure_event(caplog: pytest.LogCaptureFixture) -> None:
    tool = EditFileTool(InMemoryFileStore({"notes.txt": "alpha"}))

    with caplog.at_level(logging.INFO, logger="linepatch.telemetry"):
        response = tool.invoke({"path": "notes.txt", "patches": [{"address": 0, "operation": "REPLACE"}]})

    assert response["kind"] == "validation"
    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "linepatch.telemetry"]
    assert [(event["event"], event["path"], event["kind"]) for event in events] == [
        ("edit_failed", "notes.txt", "validation")
    ]


def test_summary_file_receives_markdown(tmp_path: Path) -> None:
    summary_path = tmp_path / "summary.md"
    tool = EditFileTool(
        InMemoryFileStore({"notes.txt": "a\nb\nc"}),
        ChangeReporter(summary_path=summary_path),
    )

    tool.run({"path": "notes.txt", "patches": [{"address": 1, "operation": "REPLACE", "newContent": "B"}]})

    summary = summary_path.read_text(encoding="utf-8")
    assert summary.startswith("### 🔧 Edit a file (3 lines)")
    assert '"operation": "REPLACE"' in summary
    assert "```diff\n@@ 1 @@\n- b\n+ B\n```" in summary


def test_telemetry_events_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    tool = EditFileTool(InMemoryFileStore({"notes.txt": "a"}))

    with caplog.at_level(logging.INFO, logger="linepatch.telemetry"):
        tool.invoke({"path": "notes.txt", "patches": [{"address": 0, "operation": "APPEND", "newContent": "b"}]})
        tool.invoke({"path": "notes.txt", "patches": [{"address": 5, "operation": "REMOVE"}]})

    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "linepatch.telemetry"]
    assert [event["event"] for event in events] == ["edit_applied", "edit_failed"]
    assert events[0]["changes"][0]["after"] == "a\nb"
    assert events[1]["kind"] == "out_of_range"
    assert events[1]["details"]["index"] == 0


def test_file_store_errors_propagate_from_run() -> None:
    tool = EditFileTool(InMemoryFileStore())

    with pytest.raises(FileStoreError):
        tool.run({"path": "nope.txt", "patches": [{"address": 0, "operation": "REMOVE"}]})


def test_declaration_exposes_wire_names() -> None:
    declaration = EditFileTool(InMemoryFileStore()).declaration()

    assert declaration["name"] == "editFile"
    schema = json.dumps(declaration["parameters"])
    assert "newContent" in schema
    assert "REPLACE" in schema
