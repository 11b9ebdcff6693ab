"""
Line-buffering decoder for the gateway's event stream.

Each frame the gateway sends is a line `data: {"text": "<fragment>"}`. Network
reads can split a line (or a multi-byte character) anywhere, so bytes are
decoded incrementally and the trailing partial line is held for the next read.
Lines without the `data: ` prefix, JSON that fails to parse and payloads
without a non-empty string `text` are skipped.
"""

from __future__ import annotations

import codecs
import json
from typing import List, Optional, Union

DATA_PREFIX = "data: "


def parse_data_line(line: str) -> Optional[str]:
    """Return the text fragment carried by one line, or None if the line carries none."""
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    try:
        payload = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    text = payload.get("text")
    if isinstance(text, str) and text:
        return text
    return None


class SSEDecoder:
    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Consume one network read; return the fragments of every line it completed."""
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [fragment for fragment in map(parse_data_line, lines) if fragment]

    def flush(self) -> List[str]:
        """End of stream: decode whatever is left as a final line."""
        rest = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        fragment = parse_data_line(rest)
        return [fragment] if fragment else []
