import concurrent.futures
import time

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

import requests

from wordfuzz.config.constants import Constants
from wordfuzz.core.errors import EngineError
from wordfuzz.core.template import FuzzRequest
from wordfuzz.utility.logger import LoggerManager

"""
Non-blocking HTTP transport
"""

logger = LoggerManager(__name__).get_logger()

WriteCallback = Callable[[bytes, Any], None]


class TransportHandle:
    """
    One reusable request slot with its own HTTP session

    Handles belong to the request context pool and live as long as the
    transport does; the session keeps connections alive between requests.
    """

    def __init__(self, session: requests.Session) -> None:
        self.session = session

    def close(self) -> None:
        self.session.close()


@dataclass
class TransportMessage:
    handle: TransportHandle
    status_code: int = 0
    duration_ms: int = 0
    error: Optional[str] = None


class RequestsTransport:
    """
    Multi-handle style front end over requests

    Requests added with add() run on a worker pool; the caller drives
    progress with perform() and wait() and collects finished requests one
    at a time with info_read(). Nothing here blocks except wait(), which is
    bounded by its timeout.

    Args:
    - max_workers (int): Maximum number of requests in flight
    - timeout (float): Per-request timeout in seconds
    - verify (bool): Verify TLS certificates
    - proxies (Dict[str, str]): requests style proxy mapping
    - method (str): Forced HTTP method, otherwise GET or POST with a body
    """

    def __init__(
        self,
        max_workers: int,
        timeout: float = Constants.TIMEOUT,
        verify: bool = False,
        proxies: Optional[Dict[str, str]] = None,
        method: Optional[str] = None,
    ) -> None:
        try:
            self.executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="wordfuzz-transport"
            )
        except ValueError as e:
            raise EngineError(f"Failed to create transport: {e}") from e

        self.timeout = timeout
        self.verify = verify
        self.proxies = proxies or {}
        self.method = method.upper() if method else None

        self._inflight: Dict[TransportHandle, concurrent.futures.Future] = {}
        self._messages: Deque[TransportMessage] = deque()

    def new_handle(self) -> TransportHandle:
        session = requests.Session()
        session.verify = self.verify
        # proxies come from -x only, not from the environment
        session.trust_env = False
        if self.proxies:
            session.proxies.update(self.proxies)
        return TransportHandle(session)

    def add(
        self,
        handle: TransportHandle,
        request: FuzzRequest,
        write_callback: WriteCallback,
        user_data: Any,
    ) -> None:
        """
        Start a request on handle

        Args:
        - handle (TransportHandle): A handle that is not currently in flight
        - request (FuzzRequest): The substituted request
        - write_callback (WriteCallback): Receives each body chunk and user_data
        - user_data (Any): Opaque object passed back to write_callback
        """

        if handle in self._inflight:
            raise RuntimeError("Transport handle is already in flight")

        self._inflight[handle] = self.executor.submit(
            self._execute, handle, request, write_callback, user_data
        )

    def remove(self, handle: TransportHandle) -> None:
        self._inflight.pop(handle, None)

    def perform(self) -> int:
        """
        Move finished requests to the message queue

        Returns:
        - int: Number of requests still running
        """

        running = 0
        for handle, future in list(self._inflight.items()):
            if not future.done():
                running += 1
                continue
            del self._inflight[handle]
            self._messages.append(future.result())
        return running

    def wait(self, timeout_ms: int) -> int:
        """
        Block until a request finishes or timeout_ms elapses

        Returns:
        - int: Number of finished requests ready to be read
        """

        if self._messages:
            return len(self._messages)

        pending = list(self._inflight.values())
        if not pending:
            return 0

        done, _ = concurrent.futures.wait(
            pending,
            timeout=max(timeout_ms, 0) / 1000,
            return_when=concurrent.futures.FIRST_COMPLETED,
        )
        return len(done)

    def info_read(self) -> Optional[TransportMessage]:
        if not self._messages:
            return None
        return self._messages.popleft()

    def close(self) -> None:
        self.executor.shutdown(wait=True)
        self._inflight.clear()
        self._messages.clear()

    def _execute(
        self,
        handle: TransportHandle,
        request: FuzzRequest,
        write_callback: WriteCallback,
        user_data: Any,
    ) -> TransportMessage:
        method = self.method or ("POST" if request.body is not None else "GET")
        headers = request.header_dict()
        data = None
        if request.body is not None:
            data = request.body.encode("utf-8")
            headers.setdefault("Content-Type", "application/x-www-form-urlencoded")

        start = time.monotonic()
        try:
            with handle.session.request(
                method=method,
                url=request.url,
                headers=headers,
                data=data,
                timeout=self.timeout,
                allow_redirects=False,
                stream=True,
            ) as response:
                for chunk in response.iter_content(chunk_size=Constants.STREAM_CHUNK_SIZE):
                    write_callback(chunk, user_data)
                status_code = response.status_code

        except requests.Timeout:
            return self._failure(handle, start, f"Timeout ({self.timeout}s)")

        except requests.ConnectionError as e:
            return self._failure(handle, start, f"Connection failed: {str(e)[:100]}")

        except requests.RequestException as e:
            return self._failure(handle, start, f"Request error: {str(e)[:100]}")

        except ValueError as e:
            # non latin-1 header values end up here
            return self._failure(handle, start, f"Invalid request: {str(e)[:100]}")

        return TransportMessage(
            handle=handle,
            status_code=status_code,
            duration_ms=self._elapsed_ms(start),
        )

    def _failure(self, handle: TransportHandle, start: float, error: str) -> TransportMessage:
        logger.debug(error)
        return TransportMessage(handle=handle, duration_ms=self._elapsed_ms(start), error=error)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
