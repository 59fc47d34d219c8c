"""
tests/test_pool.py
Request context claim/release cycle.
"""
import pytest

from wordfuzz.core.errors import EngineError
from wordfuzz.core.pool import ContextState, RequestContextPool
from wordfuzz.core.template import FuzzRequest


def test_claim_until_saturated(fake_transport):
    pool = RequestContextPool(3, fake_transport, slots=1)

    claimed = [pool.claim() for _ in range(3)]

    assert all(ctx is not None for ctx in claimed)
    assert pool.in_use == 3
    assert pool.claim() is None


def test_release_resets_statistics(fake_transport):
    pool = RequestContextPool(1, fake_transport, slots=1)

    ctx = pool.claim()
    ctx.values[0] = "admin"
    pool.submit(ctx, FuzzRequest(url="http://target/admin"))
    fake_transport.perform()
    message = fake_transport.info_read()
    assert pool.lookup(message.handle) is ctx

    ctx.stats.status_code = message.status_code
    ctx.stats.duration_ms = message.duration_ms
    assert ctx.stats.size_bytes == len(b"hello world\n")

    pool.release(ctx)

    again = pool.claim()
    assert again is ctx
    assert again.state is ContextState.IN_USE
    assert again.request is None
    assert again.stats.status_code == 0
    assert again.stats.size_bytes == 0
    assert again.stats.word_count == 0
    assert again.stats.line_count == 0
    assert again.stats.duration_ms == 0
    assert again.stats.transport_error is None


def test_handles_are_reused(fake_transport):
    pool = RequestContextPool(2, fake_transport, slots=0)
    handles = [ctx.handle for ctx in pool.contexts]

    ctx = pool.claim()
    pool.release(ctx)

    assert [c.handle for c in pool.contexts] == handles


def test_close_closes_handles(fake_transport):
    pool = RequestContextPool(2, fake_transport, slots=0)
    pool.close()
    assert all(ctx.handle.closed for ctx in pool.contexts)


def test_empty_pool_is_fatal(fake_transport):
    with pytest.raises(EngineError):
        RequestContextPool(0, fake_transport, slots=1)
