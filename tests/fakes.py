"""
Test doubles for the HTTP session, clock and cancellation token.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional
from urllib.parse import urlsplit

from lexrt.services.loader import CancellationToken

WORDS_PAYLOAD = {
    "trialWords": [
        {"word": "A", "emotion": "positive", "language": "tr"},
        {"word": "B", "emotion": "negative", "language": "tr"},
    ],
    "testWords": [
        {"word": "C", "emotion": "positive", "language": "tr"},
    ],
}

_NO_BODY = object()


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, body: Any = _NO_BODY, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self) -> Any:
        if self._body is _NO_BODY:
            # Same failure mode as requests on a non-JSON body
            return json.loads(self._text or "")
        return self._body


class FakeSession:
    """
    Scripted ``requests.Session``.

    Each queued item is returned by the next call, or raised if it is an
    exception. The last item repeats once the queue is drained.
    """

    def __init__(self, get: Optional[List[Any]] = None, post: Optional[List[Any]] = None):
        self.get_queue = list(get or [])
        self.post_queue = list(post or [])
        self.calls: List[tuple] = []
        self.closed = False

    @staticmethod
    def _next(queue: List[Any]) -> Any:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url, headers=None, timeout=None):
        self.calls.append(("GET", url, None))
        return self._next(self.get_queue)

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append(("POST", url, json))
        return self._next(self.post_queue)

    def close(self):
        self.closed = True


class FakeClock:
    """Monotonic nanosecond clock advanced by hand."""

    def __init__(self, start_ns: int = 1_000_000_000):
        self.now = start_ns

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += int(ms * 1_000_000)


class RecordingToken(CancellationToken):
    """Cancellation token that records backoff waits instead of sleeping."""

    def __init__(self, cancel_on_wait: Optional[int] = None):
        super().__init__()
        self.waits: List[float] = []
        self.cancel_on_wait = cancel_on_wait

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self.cancel_on_wait is not None and len(self.waits) >= self.cancel_on_wait:
            self.cancel()
        return self.cancelled


class FlaskSession:
    """Routes ``requests``-style calls to a Flask test client."""

    def __init__(self, app):
        self.client = app.test_client()
        self.calls: List[tuple] = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(("GET", url))
        return _FlaskResponse(self.client.get(urlsplit(url).path, headers=headers))

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append(("POST", url))
        return _FlaskResponse(self.client.post(urlsplit(url).path, json=json, headers=headers))

    def close(self):
        pass


class _FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self._data = response.get_data(as_text=True)

    def json(self) -> Any:
        return json.loads(self._data)
