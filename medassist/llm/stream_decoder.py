"""
Incremental decoder for OpenAI-compatible server-sent event streams.

The upstream transport hands us bytes in arbitrary chunks: a ``data:``
frame, or even a single multi-byte character, may be split across two
reads. ``StreamDecoder`` keeps the carry-over state between reads so each
call to ``feed`` returns only the deltas that are complete so far.
"""

import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..utils.logging import log_event
from .exceptions import MalformedFrameError

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class StreamDelta:
    """One incremental fragment of assistant text."""

    text: str


def extract_delta_content(frame: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` from a parsed frame, if present."""
    if not isinstance(frame, dict):
        return None
    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamDecoder:
    """
    Stateful SSE frame decoder with rollback on unparseable frames.

    One instance per response stream; never share across requests.

    Example::

        decoder = StreamDecoder()
        async for chunk in stream.iter_chunks():
            for delta in decoder.feed(chunk):
                print(delta.text, end="")
        decoder.finish()
    """

    def __init__(self):
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._done = False
        self._rolled_back_line: Optional[str] = None
        self.frames_decoded = 0

    @property
    def done(self) -> bool:
        """True once the ``[DONE]`` sentinel has been seen."""
        return self._done

    @property
    def pending(self) -> str:
        """Text buffered but not yet decoded into deltas."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[StreamDelta]:
        """
        Decode one transport chunk.

        Args:
            chunk: Raw bytes exactly as read from the upstream response

        Returns:
            Deltas completed by this chunk, in arrival order (possibly empty)
        """
        if self._done:
            return []

        self._buffer += self._text_decoder.decode(chunk)
        return self._drain()

    def finish(self) -> List[StreamDelta]:
        """
        Signal end-of-data.

        Flushes the text decoder and discards whatever partial frame is left
        in the buffer. An unterminated trailing frame is logged, not raised.
        """
        if not self._done:
            self._buffer += self._text_decoder.decode(b"", final=True)

        if self._buffer.strip():
            log_event(
                "stream_decoder_discarded",
                {
                    "discarded_chars": len(self._buffer),
                    "preview": self._buffer[:100],
                },
                level=logging.DEBUG,
            )
        self._buffer = ""
        return []

    def _drain(self) -> List[StreamDelta]:
        deltas: List[StreamDelta] = []

        while not self._done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break

            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1 :]

            if line.endswith("\r"):
                line = line[:-1]

            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX) :].strip()
            if payload == DONE_SENTINEL:
                self._done = True
                self._buffer = ""
                break

            try:
                content = self._parse_frame(payload)
            except MalformedFrameError as e:
                if self._should_skip(line):
                    log_event(
                        "stream_frame_skipped",
                        {"error": e.message, "payload": payload[:100]},
                        level=logging.WARNING,
                    )
                    continue
                # Put the line back untouched and wait for more bytes.
                self._buffer = line + "\n" + self._buffer
                self._rolled_back_line = line
                break

            self._rolled_back_line = None
            self.frames_decoded += 1
            if content:
                deltas.append(StreamDelta(text=content))

        return deltas

    def _should_skip(self, line: str) -> bool:
        """
        A frame that already failed once and now has complete frames queued
        behind it can never become valid; drop it instead of stalling.
        """
        return line == self._rolled_back_line and "\n" in self._buffer

    @staticmethod
    def _parse_frame(payload: str) -> Optional[str]:
        try:
            frame = json.loads(payload)
        except ValueError as e:
            raise MalformedFrameError(
                f"Unparseable stream frame: {e}", payload=payload
            ) from e
        return extract_delta_content(frame)
