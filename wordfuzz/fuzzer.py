import random
import time

from typing import Callable, List, Optional

from wordfuzz.config.constants import Constants
from wordfuzz.config.runtime_config import FuzzerRuntimeConfig
from wordfuzz.config.static_config import FuzzerStaticConfig
from wordfuzz.core.errors import EngineError
from wordfuzz.core.filters import FilterEvaluator
from wordfuzz.core.pool import RequestContext, RequestContextPool
from wordfuzz.core.progress import ProgressTracker, RateLimiter
from wordfuzz.core.strategy import build_strategy
from wordfuzz.core.transport import RequestsTransport
from wordfuzz.utility.logger import LoggerManager


class Fuzzer:
    """
    Runs the fuzzer engine from the static and runtime config initialization

    One loop owns every piece of engine state: it admits requests into free
    pool contexts, drives the transport and harvests completed requests.
    """

    def __init__(
        self,
        config: FuzzerStaticConfig,
        runtime_config: FuzzerRuntimeConfig,
        transport: Optional[RequestsTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.logger = LoggerManager(__name__).get_logger()
        self.config = config
        self.runtime_config = runtime_config
        self.clock = clock
        self.sleep = sleep

        self.strategy = build_strategy(
            runtime_config.mode, config.cursors, config.template.fuzz_count
        )
        self.evaluator = FilterEvaluator(config.filter_rules, runtime_config.no_filter)

        if transport is None:
            transport = RequestsTransport(
                max_workers=runtime_config.num_threads,
                timeout=runtime_config.timeout,
                verify=runtime_config.verify_ssl,
                proxies=config.proxy,
                method=runtime_config.method,
            )
        self.transport = transport
        self.pool = RequestContextPool(
            runtime_config.num_threads, self.transport, self.strategy.slots
        )

        self.progress = ProgressTracker(self.strategy.cardinality(), clock=clock)
        self.rate_limiter = RateLimiter(runtime_config.rate, clock=clock)

        self.results: List[str] = []
        self.logged_count = 0
        self.admitted = 0
        self.time_hit_logged = False
        self.scan_start_time = None
        self._last_progress_log = 0.0
        self._rate_blocked = False

    # === ADMISSION ===

    def _is_timeout_global(self) -> bool:
        """
        Check global timeout

        Returns:
        - bool: True if elapsed minutes is bigger than global timeout
        """

        if self.runtime_config.time is None or self.scan_start_time is None:
            return False

        elapsed_minutes = (self.clock() - self.scan_start_time) / 60
        if elapsed_minutes > self.runtime_config.time:
            self._log_timeout_once(
                f"Global time limit exceeded: {elapsed_minutes:.2f}min > {self.runtime_config.time}min"
            )
            return True
        return False

    def _admission_closed(self) -> bool:
        return self.strategy.exhausted or self._is_timeout_global()

    def _apply_delay(self) -> None:
        """
        Pace admissions by the configured delay (microseconds)
        """

        low, high = self.runtime_config.delay
        if high <= 0:
            return
        delay = low if low == high else random.uniform(low, high)
        self.sleep(delay / 1_000_000)

    def _admit(self) -> None:
        """
        Fill free contexts with new requests while limits allow
        """

        self._rate_blocked = False
        while not self._admission_closed():
            if not self.rate_limiter.allow():
                self._rate_blocked = True
                break

            ctx = self.pool.claim()
            if ctx is None:
                break

            self._apply_delay()
            self.strategy.load_next(ctx.values)
            self.pool.submit(ctx, self.config.template.render(ctx.values))
            self.rate_limiter.admit()
            self.admitted += 1

    # === COMPLETION ===

    def _drain(self) -> None:
        """
        Classify, report and recycle every finished request
        """

        while True:
            message = self.transport.info_read()
            if message is None:
                break

            ctx = self.pool.lookup(message.handle)
            if ctx is None:
                raise EngineError("Completed transport handle has no request context")

            ctx.stats.status_code = message.status_code
            ctx.stats.duration_ms = message.duration_ms
            ctx.stats.transport_error = message.error

            if self.evaluator.should_report(ctx.stats):
                self._report(ctx)

            self.progress.record(error=message.error is not None)
            self.pool.release(ctx)

    def _format_result(self, ctx: RequestContext) -> str:
        label = ", ".join(ctx.values) if ctx.values else ctx.request.url
        stats = ctx.stats

        if stats.transport_error is not None:
            return f"{label:<24} [Error: {stats.transport_error}]"

        return (
            f"{label:<24} [Status: {stats.status_code}, Size: {stats.size_bytes}, "
            f"Words: {stats.words}, Lines: {stats.lines}, "
            f"Duration: {stats.duration_ms}ms]"
        )

    def _report(self, ctx: RequestContext) -> None:
        result = self._format_result(ctx)
        self.logged_count += 1

        if len(self.results) < Constants.MAX_RESULT:
            self.results.append(result)
        elif len(self.results) == Constants.MAX_RESULT:
            self.logger.warning(f"Result limit ({Constants.MAX_RESULT}) exceeded")
            self.results.append(result)

        line = self.config.color_status_code(ctx.stats.status_code, result)
        if ctx.stats.transport_error is not None:
            self.logger.warning(line)
        else:
            self.logger.info(line)

    # === LOOP ===

    def _poll_timeout(self) -> int:
        poll = self.runtime_config.poll_timeout_ms
        if self._rate_blocked:
            remaining = self.rate_limiter.remaining() * 1000
            poll = min(poll, int(remaining) + 1)
        return poll

    def _finished(self) -> bool:
        return self._admission_closed() and self.pool.in_use == 0

    def _tick(self) -> None:
        self._admit()
        self.transport.perform()
        self._drain()
        self._log_progress()

        if self._finished():
            return

        if self.pool.in_use == 0 and self._rate_blocked:
            self.sleep(self.rate_limiter.remaining())
            return

        self.transport.wait(self._poll_timeout())

    def _shutdown(self) -> None:
        self.transport.close()
        self.pool.close()
        for cursor in self.strategy.cursors:
            cursor.close()
        self.config.close()

    # === LOGGING ===

    def _display_configuration(self) -> None:
        """
        Display detailed fuzzer configuration
        """

        template = self.config.template

        self.logger.info("=" * 50)
        self.logger.info("FUZZER CONFIGURATION")
        self.logger.info("=" * 50)

        self.logger.info(f"Target URL: {template.url}")
        if template.body is not None:
            self.logger.info(f"Body: {template.body}")
        for header in template.headers:
            self.logger.info(f"Header: {header}")

        self.logger.info(f"Mode: {self.strategy.mode.value}")
        self.logger.info(f"Placeholders: {template.fuzz_count}")
        for cursor in self.strategy.cursors:
            self.logger.info(f"Word-list: {cursor.source} ({cursor.total_count} words)")
        self.logger.info(f"Total requests: {self.strategy.cardinality()}")

        self.logger.info(f"Concurrency: {self.pool.size} requests in flight")
        rate = self.runtime_config.rate
        self.logger.info(f"Rate limit: {f'{rate:g} req/sec' if rate > 0 else 'None'}")

        low, high = self.runtime_config.delay
        if high > 0:
            delay = f"{low}us" if low == high else f"{low}-{high}us"
            self.logger.info(f"Request delay: {delay}")
        if self.runtime_config.time:
            self.logger.info(f"Global time limit: {self.runtime_config.time} minutes")

        self.logger.info(f"SSL verification: {self.runtime_config.verify_ssl}")
        self.logger.info(f"Request timeout: {self.runtime_config.timeout}s")
        if self.config.proxy:
            self.logger.info(f"Proxy: {self.config.proxy.get('http')}")

        rules = self.evaluator.describe()
        self.logger.info(f"Filters: {', '.join(rules) if rules else 'None'}")

        if self.runtime_config.output_file:
            self.logger.info(f"Output file: {self.runtime_config.output_file}")

        self.logger.info("=" * 50)

    def _log_progress(self, force: bool = False) -> None:
        """
        Log the progress line at intervals

        Args:
        - force (bool): Log regardless of the interval
        """

        now = self.clock()
        if not force and now - self._last_progress_log < Constants.PROGRESS_LOG_INTERVAL:
            return
        self._last_progress_log = now

        line = self.progress.status_line()
        rate = self.progress.rate()
        remaining = self.progress.state.total_requests - self.progress.state.completed
        if rate > 0 and remaining > 0:
            eta = self.config.format_time_remaining(remaining / rate)
            line = f"{line} :: Est. {eta} remaining"
        self.logger.info(line)

    def _log_timeout_once(self, message: str) -> None:
        if not self.time_hit_logged:
            self.logger.info(message)
            self.time_hit_logged = True

    def _finalize_results(self) -> List[str]:
        """
        Write results to file and log summary

        Returns:
        - List[str]: Reported results
        """

        self._log_progress(force=True)
        self.logger.info(
            f"Requests sent: {self.admitted}, reported: {self.logged_count}, "
            f"errors: {self.progress.state.errors}"
        )

        if self.runtime_config.output_file:
            self.config.write_results_to_file(self.results, self.runtime_config.output_file)

        return self.results

    # === MAIN EXECUTION ===

    def run(self) -> List[str]:
        """
        Main execution method, runs until every combination has been sent
        and answered

        Returns:
        - List[str]: Reported result lines
        """

        self.scan_start_time = self.clock()
        self._last_progress_log = self.scan_start_time
        self._display_configuration()

        try:
            while not self._finished():
                self._tick()
        finally:
            self._shutdown()

        return self._finalize_results()
