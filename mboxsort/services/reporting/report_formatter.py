"""Plain-text report formatting for pipeline results."""

from typing import Iterable, List, Optional, Sequence, Tuple

from mboxsort.config.app_config import ReportConfig
from mboxsort.models.diagnostic import Diagnostic
from mboxsort.models.message import Message
from mboxsort.utils.unicode_utils import truncate_subject


class ReportFormatter:
    """Format messages, buckets, diagnostics and run summaries for display."""

    def __init__(self, config: Optional[ReportConfig] = None):
        """
        Initialize formatter with configuration.

        Args:
            config: Display templates and limits (defaults if omitted)
        """
        self.config = config or ReportConfig()

    def format_message(self, message: Message) -> str:
        """
        Format one message line.

        Args:
            message: Decoded message

        Returns:
            Line rendered from the ``message_line`` template
        """
        if message.date is not None:
            date_str = message.date.strftime(self.config.date_format)
        else:
            date_str = self.config.undated_label

        subject_preview = truncate_subject(message.subject, max_length=self.config.subject_max_length)

        return self.config.message_line.format(
            date=date_str,
            sender=message.sender or message.sender_address or "(unknown sender)",
            subject=subject_preview,
            offset=message.source_offset,
        )

    def format_bucket(self, name: str, messages: Sequence[Message]) -> List[str]:
        lines = [f"## {name} ({len(messages)})"]
        lines.extend(f"  {self.format_message(message)}" for message in messages)
        return lines

    def format_summary(self, attempted: int, succeeded: int, failed: int) -> str:
        return f"Processed {attempted} messages: {succeeded} sorted, {failed} failed"

    def format_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> List[str]:
        return [
            f"  offset {diagnostic.frame_offset}: [{diagnostic.error_kind.value}] {diagnostic.message}"
            for diagnostic in diagnostics
        ]

    def format_top_senders(self, counts: Sequence[Tuple[str, int]]) -> List[str]:
        lines = [f"--- Top {len(counts)} Senders by Email Count ---"]
        for rank, (address, count) in enumerate(counts, 1):
            lines.append(f"{rank:2d}. Count: {count:6d} | Sender: {address}")
        return lines

    def format_report(self, result) -> str:
        """
        Render a full PipelineResult.

        Args:
            result: PipelineResult of a run

        Returns:
            Report text: buckets, summary, then diagnostics if any
        """
        lines: List[str] = []
        for name, messages in result.buckets.items():
            lines.extend(self.format_bucket(name, messages))
            lines.append("")

        lines.append("---")
        lines.append(self.format_summary(result.attempted, result.succeeded, result.failed))
        if result.diagnostics:
            lines.append(f"{len(result.diagnostics)} diagnostics:")
            lines.extend(self.format_diagnostics(result.diagnostics))
        return "\n".join(lines)
