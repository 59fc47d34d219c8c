"""
tests/test_transport.py
RequestsTransport against a local HTTP server.
"""
import socket

import pytest

from wordfuzz.core.errors import EngineError
from wordfuzz.core.template import FuzzRequest
from wordfuzz.core.transport import RequestsTransport


def run_until_done(transport, expected):
    messages = []
    while len(messages) < expected:
        transport.perform()
        while True:
            message = transport.info_read()
            if message is None:
                break
            messages.append(message)
        if len(messages) < expected:
            transport.wait(200)
    return messages


def test_completions_carry_status_and_body(http_server):
    transport = RequestsTransport(max_workers=2, timeout=5)
    handles = [transport.new_handle(), transport.new_handle()]
    received = {0: b"", 1: b""}

    def write(chunk, key):
        received[key] += chunk

    try:
        transport.add(handles[0], FuzzRequest(url=f"{http_server}/admin"), write, 0)
        transport.add(handles[1], FuzzRequest(url=f"{http_server}/x", body="a=1"), write, 1)

        messages = run_until_done(transport, 2)
    finally:
        transport.close()
        for handle in handles:
            handle.close()

    by_handle = {m.handle: m for m in messages}
    assert by_handle[handles[0]].status_code == 200
    assert by_handle[handles[0]].error is None
    assert by_handle[handles[1]].status_code == 404
    assert received[0] == b"welcome admin\nsecond line\n"
    assert received[1] == b"not found"


def test_redirects_are_not_followed(http_server):
    transport = RequestsTransport(max_workers=1, timeout=5)
    handle = transport.new_handle()
    try:
        transport.add(handle, FuzzRequest(url=f"{http_server}/old"), lambda c, u: None, None)
        (message,) = run_until_done(transport, 1)
    finally:
        transport.close()
        handle.close()

    assert message.status_code == 301


def test_connection_errors_become_messages():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    transport = RequestsTransport(max_workers=1, timeout=2)
    handle = transport.new_handle()
    try:
        transport.add(handle, FuzzRequest(url=f"http://127.0.0.1:{port}/"), lambda c, u: None, None)
        (message,) = run_until_done(transport, 1)
    finally:
        transport.close()
        handle.close()

    assert message.status_code == 0
    assert message.error.startswith("Connection failed")


def test_busy_handle_cannot_be_added_twice(http_server):
    transport = RequestsTransport(max_workers=1, timeout=5)
    handle = transport.new_handle()
    try:
        transport.add(handle, FuzzRequest(url=f"{http_server}/admin"), lambda c, u: None, None)
        with pytest.raises(RuntimeError):
            transport.add(handle, FuzzRequest(url=f"{http_server}/admin"), lambda c, u: None, None)
        run_until_done(transport, 1)
    finally:
        transport.close()
        handle.close()


def test_wait_without_requests_returns_immediately():
    transport = RequestsTransport(max_workers=1)
    try:
        assert transport.wait(5000) == 0
        assert transport.perform() == 0
        assert transport.info_read() is None
    finally:
        transport.close()


def test_invalid_worker_count_is_fatal():
    with pytest.raises(EngineError):
        RequestsTransport(max_workers=0)
