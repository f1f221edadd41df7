"""
Report status poller.

Polls a report until it fails or has an artifact, on a fixed interval or
with exponential backoff.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator

from planpdf.logging_config import get_logger
from planpdf.models.job import JobStatus

# Auth failures will not fix themselves by waiting
FATAL_STATUS_CODES = (401, 403)


class PollTimeout(Exception):
    """The report did not finish within the policy's timeout."""

    def __init__(self, elapsed: float, timeout: float):
        super().__init__(f"Report not ready after {elapsed:.1f}s (timeout {timeout:.0f}s)")
        self.elapsed = elapsed
        self.timeout = timeout


@dataclass
class FixedInterval:
    interval: float = 3.0
    timeout: float | None = None

    def delays(self) -> Iterator[float]:
        while True:
            yield self.interval


@dataclass
class ExponentialBackoff:
    initial: float = 3.0
    multiplier: float = 1.5
    maximum: float = 20.0
    timeout: float | None = 600.0

    def delays(self) -> Iterator[float]:
        delay = self.initial
        while True:
            yield min(delay, self.maximum)
            delay *= self.multiplier


@dataclass
class PollOutcome:
    """Final state of a polled report."""
    report_id: str
    status: JobStatus
    preview_path: str | None = None
    full_path: str | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != JobStatus.FAILED


def outcome_from_status(report_id: str, data: dict) -> PollOutcome | None:
    """Final outcome for a status response, or None while still running."""
    status = JobStatus.parse(data.get("status") or JobStatus.QUEUED.value)
    preview = data.get("previewPdfPath")
    full = data.get("fullPdfPath")

    if status == JobStatus.FAILED:
        return PollOutcome(report_id, status, preview, full, data.get("errorMessage"))
    if preview or full or status == JobStatus.COMPLETED:
        return PollOutcome(report_id, JobStatus.COMPLETED, preview, full)
    return None


class ReportStatusPoller:
    """
    Polls fetch_status until the report finishes.

    Usage:
        poller = ReportStatusPoller(report_id, partial(client.get_status, report_id))
        outcome = await poller.start()
    """

    def __init__(
        self,
        report_id: str,
        fetch_status: Callable[[], Awaitable[dict]],
        policy: FixedInterval | ExponentialBackoff | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.report_id = report_id
        self.fetch_status = fetch_status
        self.policy = policy or ExponentialBackoff()
        self.sleep = sleep
        self.clock = clock
        self._task: asyncio.Task | None = None

    async def run(self) -> PollOutcome:
        """
        Poll until done.

        The policy timeout is a hard limit: a sleep is cut short at the
        deadline and a hung fetch is abandoned there.

        Raises:
            PollTimeout: if the policy timeout passes first
            Exception: the fetch error itself when it carries a 401/403
        """
        timeout = self.policy.timeout
        if timeout is None:
            return await self._poll(None)
        try:
            async with asyncio.timeout(timeout):
                return await self._poll(timeout)
        except TimeoutError:
            raise PollTimeout(timeout, timeout) from None

    async def _poll(self, timeout: float | None) -> PollOutcome:
        log = get_logger(report_id=self.report_id)
        started = self.clock()
        delays = self.policy.delays()

        while True:
            outcome = None
            try:
                outcome = outcome_from_status(self.report_id, await self.fetch_status())
            except Exception as e:
                if getattr(e, "status_code", None) in FATAL_STATUS_CODES:
                    log.warning("status_poll_rejected", status_code=e.status_code)
                    raise
                # The row may not be visible yet, or the network blipped
                log.warning("status_poll_failed", error=str(e))

            if outcome is not None:
                log.info("status_poll_finished", status=outcome.status.value)
                return outcome

            delay = next(delays)
            if timeout is not None:
                elapsed = self.clock() - started
                if elapsed >= timeout:
                    raise PollTimeout(elapsed, timeout)
                delay = min(delay, timeout - elapsed)
            await self.sleep(delay)

    def start(self) -> asyncio.Task:
        """Start polling in a task; a running poll is returned as-is."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def restart(self) -> asyncio.Task:
        """Cancel any running poll and start over from the first delay."""
        self.cancel()
        return self.start()
