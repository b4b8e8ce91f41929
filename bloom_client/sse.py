"""
Incremental decoder turning an SSE byte stream of chat-completion chunks into
assistant text deltas.

The decoder is a small state machine:

* ACCUMULATING - bytes are appended and every complete line is processed.
* AWAITING_MORE - a ``data:`` line failed to parse; it was put back at the
  front of the buffer and processing stops until more bytes arrive. When
  they do the line is tried once more and dropped if it still fails.
* DONE - ``data: [DONE]`` was seen (or the stream was flushed); anything
  else is ignored.
"""
import codecs
import enum
import json
import logging
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class DecoderState(enum.Enum):
    ACCUMULATING = "accumulating"
    AWAITING_MORE = "awaiting_more"
    DONE = "done"


class _Line(enum.Enum):
    SKIP = "skip"
    DONE = "done"
    DATA = "data"


def classify_line(line: str) -> Tuple[_Line, str]:
    """Split one SSE line into its kind and, for data lines, the trimmed payload."""
    if line.endswith("\r"):
        line = line[:-1]
    if line.startswith(":") or not line.strip():
        return _Line.SKIP, ""
    if not line.startswith(DATA_PREFIX):
        return _Line.SKIP, ""
    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return _Line.DONE, payload
    return _Line.DATA, payload


def extract_delta(chunk: Any) -> Optional[str]:
    """``choices[0].delta.content`` of a chat-completion chunk, if it is non-empty text."""
    try:
        content = chunk["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(content, str) and content:
        return content
    return None


class SSEDeltaDecoder:
    def __init__(self, on_malformed: Optional[Callable[[str], None]] = None):
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._retrying = False
        self.on_malformed = on_malformed
        self.state = DecoderState.ACCUMULATING

    @property
    def done(self) -> bool:
        return self.state is DecoderState.DONE

    @property
    def pending(self) -> str:
        """Text received but not yet consumed."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[str]:
        """Add raw bytes and return the deltas of every line completed so far."""
        if self.done:
            return []
        text = self._text.decode(chunk)
        if not text:
            return []
        self._buffer += text
        return self._scan()

    def flush(self) -> List[str]:
        """
        Best-effort pass over whatever is left once the stream has ended,
        including a final line without a trailing newline.
        """
        if self.done:
            return []
        self._buffer += self._text.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        self.state = DecoderState.DONE

        deltas = []
        for line in remaining.split("\n"):
            kind, payload = classify_line(line)
            if kind is _Line.SKIP:
                continue
            if kind is _Line.DONE:
                break
            try:
                chunk = json.loads(payload)
            except ValueError:
                self._malformed(line)
                continue
            delta = extract_delta(chunk)
            if delta:
                deltas.append(delta)
        return deltas

    def _scan(self) -> List[str]:
        deltas = []
        self.state = DecoderState.ACCUMULATING
        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            retrying, self._retrying = self._retrying, False

            kind, payload = classify_line(line)
            if kind is _Line.SKIP:
                continue
            if kind is _Line.DONE:
                self.state = DecoderState.DONE
                self._buffer = ""
                break

            try:
                chunk = json.loads(payload)
            except ValueError:
                if retrying:
                    self._malformed(line)
                    continue
                # Put the frame back and wait for the rest of it.
                self._buffer = line + "\n" + self._buffer
                self._retrying = True
                self.state = DecoderState.AWAITING_MORE
                break

            delta = extract_delta(chunk)
            if delta:
                deltas.append(delta)
        return deltas

    def _malformed(self, line: str) -> None:
        logger.debug(f"Dropping malformed SSE frame: {line[:200]}")
        if self.on_malformed is not None:
            self.on_malformed(line)
