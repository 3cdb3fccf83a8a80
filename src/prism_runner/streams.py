"""
Line-oriented consumers for the external command's output streams.
"""

import logging
import sys
from dataclasses import dataclass
from typing import IO, Any, BinaryIO, Callable, Iterator, Optional, TextIO

from .events import decode_event
from .exceptions import EventDecodeError
from .results import ResultAggregator

logger = logging.getLogger(__name__)


@dataclass
class ConsumeStats:
    """Counters for one pass over the structured stream."""

    lines: int = 0
    applied: int = 0
    discarded: int = 0
    malformed: int = 0


def iter_lines(stream: BinaryIO) -> Iterator[str]:
    """
    Lazily yield decoded text lines from a binary stream until EOF.

    Invalid UTF-8 is replaced rather than rejected, and line terminators
    are stripped.
    """
    for raw in iter(stream.readline, b""):
        yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


def consume_events(stream: BinaryIO, aggregator: ResultAggregator) -> ConsumeStats:
    """
    Read the structured stream and feed every test event to the aggregator.

    Lines that fail to decode are logged and skipped; they never stop the
    rest of the stream from being aggregated.

    Args:
        stream: Binary stream carrying JSON event lines
        aggregator: Aggregator that owns the result model

    Returns:
        ConsumeStats describing what was read
    """
    stats = ConsumeStats()
    try:
        for line in iter_lines(stream):
            stats.lines += 1
            if not line.strip():
                continue
            try:
                event = decode_event(line)
            except EventDecodeError as e:
                stats.malformed += 1
                logger.warning("%s", e)
                continue

            if event.is_scope_level:
                stats.discarded += 1
                continue

            aggregator.apply(event)
            stats.applied += 1
    except OSError as e:
        logger.error("Error reading structured stream: %s", e)

    logger.debug(
        "Structured stream drained: %d lines, %d applied, %d discarded, %d malformed",
        stats.lines,
        stats.applied,
        stats.discarded,
        stats.malformed,
    )
    return stats


def forward_lines(stream: BinaryIO, sink: Optional[TextIO] = None) -> int:
    """
    Forward every line of a stream verbatim to ``sink``.

    Without a sink the raw bytes go to ``sys.stderr.buffer``, so invalid
    UTF-8 and line endings reach the terminal untouched. A text sink gets
    each line decoded with replacement characters, terminator included.

    Args:
        stream: Binary stream carrying unstructured diagnostics
        sink: Text stream to write to (default: sys.stderr)

    Returns:
        Number of lines forwarded
    """
    # Resolved at call time so that a replaced sys.stderr is honoured.
    if sink is None:
        buffer = getattr(sys.stderr, "buffer", None)
        if buffer is not None:
            return _forward(stream, buffer, lambda raw: raw)
        sink = sys.stderr
    return _forward(stream, sink, lambda raw: raw.decode("utf-8", errors="replace"))


def _forward(stream: BinaryIO, out: IO[Any], convert: Callable[[bytes], Any]) -> int:
    count = 0
    try:
        for raw in iter(stream.readline, b""):
            out.write(convert(raw))
            out.flush()
            count += 1
    except OSError as e:
        logger.error("Error reading diagnostic stream: %s", e)
    return count
