"""Shared fixtures for the wordfuzz tests."""
import threading

from collections import deque
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from wordfuzz.config.runtime_config import FuzzerRuntimeConfig
from wordfuzz.config.static_config import FuzzerStaticConfig
from wordfuzz.core.transport import TransportMessage
from wordfuzz.fuzzer import Fuzzer
from wordfuzz.utility.configuration import Configuration


class FakeHandle:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeTransport:
    """
    In-memory transport. Every perform() call finishes up to per_perform
    requests, newest first, so completions arrive out of admission order.
    """

    def __init__(self, responder=None, per_perform=None):
        self.responder = responder or (lambda request: (200, b"hello world\n"))
        self.per_perform = per_perform
        self.requests = []
        self.inflight = {}
        self.max_inflight = 0
        self.messages = deque()
        self.closed = False

    def new_handle(self):
        return FakeHandle()

    def add(self, handle, request, write_callback, user_data):
        assert handle not in self.inflight
        self.inflight[handle] = (request, write_callback, user_data)
        self.requests.append(request)
        self.max_inflight = max(self.max_inflight, len(self.inflight))

    def remove(self, handle):
        self.inflight.pop(handle, None)

    def perform(self):
        finished = list(self.inflight.items())[::-1]
        if self.per_perform is not None:
            finished = finished[: self.per_perform]

        for handle, (request, write_callback, user_data) in finished:
            del self.inflight[handle]
            status, body = self.responder(request)
            if status is None:
                self.messages.append(TransportMessage(handle, duration_ms=3, error=body))
                continue
            write_callback(body, user_data)
            self.messages.append(TransportMessage(handle, status_code=status, duration_ms=3))
        return len(self.inflight)

    def wait(self, timeout_ms):
        return len(self.messages)

    def info_read(self):
        return self.messages.popleft() if self.messages else None

    def close(self):
        self.closed = True


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def wordlist(tmp_path):
    """Write a word-list file and return its path."""
    counter = {"n": 0}

    def _write(*words, trailing_newline=True):
        counter["n"] += 1
        path = tmp_path / f"words{counter['n']}.txt"
        content = "\n".join(words)
        if trailing_newline:
            content += "\n"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_fuzzer():
    """Build a Fuzzer from ordered template fields on top of a fake transport."""

    def _make(fields, transport=None, filters=(), clock=None, sleep=None, **runtime):
        configuration = Configuration(fields=fields, filters=list(filters))
        config = FuzzerStaticConfig.build_fuzzer_config(configuration)
        runtime.setdefault("poll_timeout_ms", 10)
        runtime_config = FuzzerRuntimeConfig(**runtime)
        timing = {}
        if clock is not None:
            timing["clock"] = clock
        if sleep is not None:
            timing["sleep"] = sleep
        return Fuzzer(
            config=config,
            runtime_config=runtime_config,
            transport=transport if transport is not None else FakeTransport(),
            **timing,
        )

    return _make


class _Handler(BaseHTTPRequestHandler):
    def _respond(self):
        length = int(self.headers.get("Content-Length") or 0)
        if length:
            self.rfile.read(length)

        if self.path == "/admin":
            body = b"welcome admin\nsecond line\n"
            self.send_response(200)
        elif self.path == "/old":
            body = b""
            self.send_response(301)
            self.send_header("Location", "/admin")
        else:
            body = b"not found"
            self.send_response(404)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    do_GET = _respond
    do_POST = _respond

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    """Local HTTP server: /admin -> 200, /old -> 301, anything else -> 404."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
