"""Pipeline wiring frame splitting, decoding and classification."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional

from mboxsort.config.app_config import AppConfig
from mboxsort.errors import DecodeError
from mboxsort.models.diagnostic import Diagnostic, DiagnosticsSink
from mboxsort.models.message import Message
from mboxsort.models.raw_frame import RawFrame
from mboxsort.services.classification.classifier import Classifier
from mboxsort.services.email_parser.frame_splitter import FrameSplitter
from mboxsort.services.email_parser.message_decoder import MessageDecoder

logger = logging.getLogger(__name__)

# Frames in flight per worker when decoding in parallel
WINDOW_FACTOR = 4


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    Attributes:
        buckets: Bucket name -> messages in sorted order
        diagnostics: Failures ordered by frame offset
        attempted: Number of frames handed to the decoder
        messages: Successfully decoded messages in archive order
    """

    buckets: Dict[str, List[Message]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    attempted: int = 0
    messages: List[Message] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.messages)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def summary(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "buckets": len(self.buckets),
            "diagnostics": len(self.diagnostics),
        }


class PipelineCoordinator:
    """
    Drives frames through the decoder and hands surviving messages to the classifier.

    A DecodeError drops only the offending message; it is recorded in the
    diagnostics sink keyed by frame offset. Decoding may run on a thread
    pool; results are always reassembled in archive order.
    """

    def __init__(
        self,
        decoder: MessageDecoder,
        classifier: Classifier,
        diagnostics: Optional[DiagnosticsSink] = None,
        max_workers: int = 1,
        progress_interval: int = 1000,
    ):
        """
        Initialize coordinator.

        Args:
            decoder: Frame decoder
            classifier: Bucket classifier
            diagnostics: Sink shared with the frame splitter (created if omitted)
            max_workers: Decode worker threads; 1 decodes inline
            progress_interval: Log progress every N frames
        """
        if max_workers < 1:
            raise ValueError("max_workers must be positive")
        self.decoder = decoder
        self.classifier = classifier
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsSink()
        self.max_workers = max_workers
        self.progress_interval = progress_interval

    def run(self, frames: Iterable[RawFrame]) -> PipelineResult:
        """
        Process every frame and classify the decoded messages.

        Args:
            frames: Frame source, typically a FrameSplitter built with this
                coordinator's diagnostics sink

        Returns:
            PipelineResult with buckets, diagnostics and counts
        """
        self.diagnostics.clear()
        messages: List[Message] = []
        attempted = 0

        for message in self._decode_all(frames):
            attempted += 1
            if message is not None:
                messages.append(message)
            if attempted % self.progress_interval == 0:
                logger.info("Processed %d messages...", attempted)

        logger.info("Decoded %d of %d messages", len(messages), attempted)

        classification = self.classifier.classify(messages)
        return PipelineResult(
            buckets=classification.as_mapping(),
            diagnostics=self.diagnostics.snapshot(),
            attempted=attempted,
            messages=messages,
        )

    def _decode_all(self, frames: Iterable[RawFrame]) -> Iterator[Optional[Message]]:
        if self.max_workers == 1:
            for frame in frames:
                yield self._decode_one(frame)
            return

        window_size = self.max_workers * WINDOW_FACTOR
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            window: List[RawFrame] = []
            for frame in frames:
                window.append(frame)
                if len(window) >= window_size:
                    yield from pool.map(self._decode_one, window)
                    window = []
            if window:
                yield from pool.map(self._decode_one, window)

    def _decode_one(self, frame: RawFrame) -> Optional[Message]:
        try:
            return self.decoder.decode(frame)
        except DecodeError as e:
            logger.warning("Failed to decode message at offset %d: %s", frame.offset, e)
            self.diagnostics.append(Diagnostic(frame_offset=frame.offset, error_kind=e.kind, message=str(e)))
            return None


def sort_mailbox(stream: BinaryIO, config: Optional[AppConfig] = None) -> PipelineResult:
    """
    Split, decode and classify an mbox stream with the given AppConfig.

    The classifier is built before any byte is read, so configuration
    errors surface before parsing starts.

    Raises:
        ConfigurationError: If the classification configuration is invalid
        FormatError: If ``config.decoder.strict_format`` is set and the
            stream does not start with an envelope line
    """
    config = config or AppConfig()
    classifier = Classifier.from_config(config.classification)
    decoder = MessageDecoder.from_config(config.decoder)
    diagnostics = DiagnosticsSink()
    splitter = FrameSplitter(stream, diagnostics=diagnostics, strict=config.decoder.strict_format)
    coordinator = PipelineCoordinator(
        decoder,
        classifier,
        diagnostics=diagnostics,
        max_workers=config.pipeline.max_workers,
        progress_interval=config.pipeline.progress_interval,
    )
    return coordinator.run(splitter)
