"""Tests for ResultWriter."""

import json

from mboxsort.models.diagnostic import Diagnostic, ErrorKind
from mboxsort.services.pipeline.coordinator import PipelineResult
from mboxsort.storage.result_writer import ResultWriter


def _result(message):
    return PipelineResult(
        buckets={"sender:example.com": [message]},
        diagnostics=[Diagnostic(99, ErrorKind.TRUNCATED_PAYLOAD, "Truncated base64 payload")],
        attempted=2,
        messages=[message],
    )


class TestResultWriter:
    """Test JSON export."""

    def test_write_creates_parent_directory(self, tmp_path, make_message, decode):
        """Test writing the export into a new directory."""
        output = tmp_path / "out" / "result.json"
        message = decode(make_message(subject="Hi", message_id="<hi@example.com>"), offset=5)

        ResultWriter(output).write(_result(message))

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["summary"]["attempted"] == 2
        assert data["summary"]["failed"] == 1
        assert data["buckets"]["sender:example.com"] == [
            {
                "offset": 5,
                "message_id": "<hi@example.com>",
                "date": "2024-03-04T10:00:00+00:00",
                "sender": "alice@example.com",
                "subject": "Hi",
                "parts": ["text/plain"],
                "warnings": list(message.warnings),
            }
        ]
        assert data["diagnostics"] == [
            {"frame_offset": 99, "error_kind": "truncated_payload", "message": "Truncated base64 payload"}
        ]

    def test_append_diagnostics(self, tmp_path):
        """Test that diagnostics are appended as JSON lines across runs."""
        log_path = tmp_path / "logs" / "diagnostics.jsonl"
        diagnostics = [
            Diagnostic(0, ErrorKind.FORMAT_ERROR, "Skipped 4 bytes"),
            Diagnostic(80, ErrorKind.MALFORMED_HEADER, "Bad header"),
        ]

        ResultWriter.append_diagnostics(log_path, tmp_path / "a.mbox", diagnostics)
        ResultWriter.append_diagnostics(log_path, tmp_path / "a.mbox", diagnostics[:1])

        events = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
        assert len(events) == 3
        assert events[1]["error_kind"] == "malformed_header"
        assert events[1]["frame_offset"] == 80
        assert events[0]["archive"].endswith("a.mbox")
        assert "timestamp" in events[2]
