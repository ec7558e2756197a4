# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Streaming helpers: server-sent-event parsing and a cancellable text stream."""

import json
import logging
from typing import Callable, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE_MARKER = "[DONE]"

ChunkCallback = Callable[[str, str], None]


def iter_sse_events(lines: Iterable) -> Iterator[dict]:
    """
    Parses ``data:`` lines of a server-sent-event stream into JSON objects.

    Lines that are not data lines, the ``[DONE]`` marker and payloads that do
    not parse are skipped.
    """
    for raw_line in lines:
        if not raw_line:
            continue
        line = raw_line.decode("utf-8") if isinstance(raw_line, bytes) else raw_line
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            continue
        payload = line[len(SSE_DATA_PREFIX) :].strip()
        if not payload or payload == SSE_DONE_MARKER:
            continue
        try:
            yield json.loads(payload)
        except ValueError:
            logger.debug("Skipping unparsable SSE payload: %s", payload[:200])


class TextStream:
    """
    Iterator of text deltas from a streaming generation.

    Terminal states are explicit: ``done`` once the provider finished,
    ``error`` holds the exception that ended the stream, and ``cancelled``
    is set by ``cancel()``. ``text`` always holds everything received so far.
    """

    def __init__(
        self,
        deltas: Iterable[str],
        on_chunk: Optional[ChunkCallback] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self._deltas = iter(deltas)
        self._on_chunk = on_chunk
        self._on_close = on_close
        self._closed = False
        self.text = ""
        self.done = False
        self.cancelled = False
        self.error: Optional[BaseException] = None

    def __iter__(self) -> "TextStream":
        return self

    def __next__(self) -> str:
        if self.done or self.cancelled or self.error is not None:
            raise StopIteration
        try:
            delta = next(self._deltas)
        except StopIteration:
            self.done = True
            self._close()
            raise
        except Exception as exc:
            self.error = exc
            self._close()
            raise
        self.text += delta
        if self._on_chunk:
            self._on_chunk(delta, self.text)
        return delta

    def cancel(self) -> None:
        """Stops the stream; a late delta from the provider is dropped."""
        if self.done or self.cancelled:
            return
        self.cancelled = True
        self._close()

    def read(self) -> str:
        """Drains the stream and returns the full text."""
        for _ in self:
            pass
        return self.text

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._deltas, "close", None)
        if close:
            close()
        if self._on_close:
            self._on_close()

    def __enter__(self) -> "TextStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not (self.done or self.error is not None):
            self.cancel()
