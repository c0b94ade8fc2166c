"""JSON export of pipeline results and diagnostics."""

import json
from datetime import datetime
from pathlib import Path
from typing import Iterable

from mboxsort.models.diagnostic import Diagnostic
from mboxsort.models.message import Message


class ResultWriter:
    """Write pipeline results to disk for downstream tools."""

    def __init__(self, output_path: Path):
        """
        Initialize writer.

        Args:
            output_path: Path of the JSON export file
        """
        self.output_path = output_path
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, result) -> None:
        """
        Export a PipelineResult as one JSON document.

        Args:
            result: PipelineResult of a run
        """
        with open(self.output_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(result), f, indent=2, ensure_ascii=False)

    @staticmethod
    def to_dict(result) -> dict:
        return {
            "exported_at": datetime.now().isoformat(),
            "summary": result.summary(),
            "buckets": {
                name: [ResultWriter.message_entry(message) for message in messages]
                for name, messages in result.buckets.items()
            },
            "diagnostics": [diagnostic.to_dict() for diagnostic in result.diagnostics],
        }

    @staticmethod
    def message_entry(message: Message) -> dict:
        return {
            "offset": message.source_offset,
            "message_id": message.message_id,
            "date": message.date.isoformat() if message.date else None,
            "sender": message.sender_address,
            "subject": message.subject,
            "parts": [part.content_type for part in message.walk()],
            "warnings": list(message.warnings),
        }

    @staticmethod
    def append_diagnostics(log_path: Path, archive: Path, diagnostics: Iterable[Diagnostic]) -> None:
        """
        Append diagnostics to a JSON-lines log, one event per line.

        Args:
            log_path: Path to the log file
            archive: Archive the diagnostics belong to
            diagnostics: Diagnostics of the run
        """
        log_path.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().isoformat()
        with open(log_path, "a", encoding="utf-8") as f:
            for diagnostic in diagnostics:
                event = {"timestamp": timestamp, "archive": str(archive), **diagnostic.to_dict()}
                f.write(json.dumps(event, ensure_ascii=False) + "\n")
