"""
Server-sent event decoding for streamed chat completions.

Providers send ``data: {...}`` lines terminated by ``data: [DONE]``. Network
chunks do not respect line boundaries, so text is buffered until a newline
arrives. Content deltas come out in the order they were received.
"""

import json
import logging
from typing import AsyncIterator, List, Optional

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"


def extract_delta(payload: dict) -> Optional[str]:
    """``choices[0].delta.content`` of one stream event, if present."""
    try:
        return payload["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


class SSEDecoder:
    """Incremental decoder: feed text chunks, get content deltas back."""

    def __init__(self):
        self._buffer = ""
        self.done = False
        self.skipped = 0

    def _handle_line(self, line: str) -> Optional[str]:
        line = line.strip()
        # Blank lines separate events, ':' lines are keep-alive comments
        if not line or line.startswith(":") or not line.startswith("data:"):
            return None

        data = line[len("data:"):].strip()
        if data == DONE_MARKER:
            self.done = True
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            self.skipped += 1
            logger.debug(f"Skipping malformed stream chunk: {data[:100]}")
            return None
        return extract_delta(payload)

    def feed(self, text: str) -> List[str]:
        deltas = []
        if self.done:
            return deltas

        self._buffer += text
        while not self.done:
            line_end = self._buffer.find("\n")
            if line_end == -1:
                break
            line = self._buffer[:line_end]
            self._buffer = self._buffer[line_end + 1:]
            content = self._handle_line(line)
            if content:
                deltas.append(content)
        return deltas

    def flush(self) -> List[str]:
        """Process a trailing line that arrived without a newline."""
        if self.done or not self._buffer:
            return []
        line, self._buffer = self._buffer, ""
        content = self._handle_line(line)
        return [content] if content else []


async def iter_stream_content(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """Yield content deltas from an async stream of text chunks until [DONE]."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for delta in decoder.feed(chunk):
            yield delta
        if decoder.done:
            return
    for delta in decoder.flush():
        yield delta
