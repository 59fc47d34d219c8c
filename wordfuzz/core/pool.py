from enum import Enum
from typing import List, Optional

from wordfuzz.core.errors import EngineError
from wordfuzz.core.filters import ResponseStats
from wordfuzz.core.template import FuzzRequest
from wordfuzz.core.transport import RequestsTransport, TransportHandle

"""
Request context pool
"""


class ContextState(Enum):
    FREE = 0
    IN_USE = 1


class RequestContext:
    """
    One in-flight request slot

    The transport handle is owned by the pool and reused. The resolved
    values and the rendered request belong to the current use of the slot
    and are dropped on release.
    """

    def __init__(self, slot: int, handle: TransportHandle, slots: int) -> None:
        self.slot = slot
        self.handle = handle
        self.state = ContextState.FREE
        self.values: List[str] = [""] * slots
        self.request: Optional[FuzzRequest] = None
        self.stats = ResponseStats()

    @property
    def in_use(self) -> bool:
        return self.state is ContextState.IN_USE

    def write(self, chunk: bytes) -> None:
        self.stats.feed(chunk)

    def reset(self) -> None:
        self.state = ContextState.FREE
        self.request = None
        self.stats.reset()

    def __repr__(self) -> str:
        return f"RequestContext(slot={self.slot}, state={self.state.name})"


def write_callback(chunk: bytes, ctx: RequestContext) -> None:
    ctx.write(chunk)


class RequestContextPool:
    """
    Fixed number of request contexts, one per allowed concurrent request

    Args:
    - size (int): Pool size, equal to the concurrency limit
    - transport (RequestsTransport): Creates and later runs the handles
    - slots (int): Placeholder values held by every context
    """

    def __init__(self, size: int, transport: RequestsTransport, slots: int) -> None:
        if size < 1:
            raise EngineError(f"Request pool needs at least one context, got {size}")

        self.transport = transport
        self.contexts = [
            RequestContext(i, transport.new_handle(), slots) for i in range(size)
        ]
        self._by_handle = {ctx.handle: ctx for ctx in self.contexts}

    @property
    def size(self) -> int:
        return len(self.contexts)

    @property
    def in_use(self) -> int:
        return sum(1 for ctx in self.contexts if ctx.in_use)

    def claim(self) -> Optional[RequestContext]:
        """
        Returns:
        - RequestContext: The first free context, now marked in use, or
          None when every context is busy
        """

        for ctx in self.contexts:
            if not ctx.in_use:
                ctx.state = ContextState.IN_USE
                return ctx
        return None

    def submit(self, ctx: RequestContext, request: FuzzRequest) -> None:
        ctx.request = request
        self.transport.add(ctx.handle, request, write_callback, ctx)

    def release(self, ctx: RequestContext) -> None:
        self.transport.remove(ctx.handle)
        ctx.reset()

    def lookup(self, handle: TransportHandle) -> Optional[RequestContext]:
        return self._by_handle.get(handle)

    def close(self) -> None:
        for ctx in self.contexts:
            self.transport.remove(ctx.handle)
            ctx.reset()
            ctx.handle.close()
