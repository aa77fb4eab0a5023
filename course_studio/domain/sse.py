"""Server-sent event line framing for streamed chat completions."""
from __future__ import annotations

import codecs

DATA_PREFIX = "data:"
DONE_PAYLOAD = "[DONE]"


class SseLineFramer:
    """Turn raw byte chunks into ``data:`` payload strings.

    Multi-byte characters split across chunks are held in an incremental
    decoder and an unterminated trailing line is kept until the next chunk
    (or ``flush``). Once the ``data: [DONE]`` line is seen the framer is
    ``done`` and ignores everything after it.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[str]:
        if self.done or not chunk:
            return []
        self._pending += self._decoder.decode(chunk)
        lines = self._pending.split("\n")
        self._pending = lines.pop()
        return self._collect(lines)

    def flush(self) -> list[str]:
        """Decode what is left once the byte source is exhausted."""
        if self.done:
            return []
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return self._collect(tail.split("\n"))

    def _collect(self, lines: list[str]) -> list[str]:
        payloads: list[str] = []
        for line in lines:
            text = line.strip()
            if not text or not text.startswith(DATA_PREFIX):
                continue
            payload = text[len(DATA_PREFIX):].strip()
            if payload == DONE_PAYLOAD:
                self.done = True
                break
            if payload:
                payloads.append(payload)
        return payloads
