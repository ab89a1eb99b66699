"""HTTP probes and check runs with threaded health checks."""

import logging
import socket
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from http import HTTPStatus

import requests

from .config import TargetConfig
from .models import CheckRun, Outcome, ProbeResult, classify_status

logger = logging.getLogger(__name__)

USER_AGENT = "statuspulse/0.1"

# Body chunks are read and discarded; only the status line matters.
DRAIN_CHUNK_SIZE = 1024

TIMEOUT_TEXT = "Request timeout"


class _DeadlineExceeded(Exception):
    """Raised internally when a check runs past its wall-clock budget."""


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _reason_phrase(response: requests.Response) -> str:
    """Return the response reason, falling back to the standard phrase."""
    if response.reason:
        return str(response.reason)
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return ""


def _drain(response: requests.Response, deadline: float) -> None:
    """Read and discard the body, aborting once the deadline passes."""
    for _ in response.iter_content(chunk_size=DRAIN_CHUNK_SIZE):
        if time.monotonic() > deadline:
            raise _DeadlineExceeded()


def _shutdown_connection(response: requests.Response) -> None:
    """Shut down the socket under a streamed response."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("Socket already closed for %s: %s", response.url, e)


class _Transfer:
    """One streamed GET run on its own thread so it can be cut off.

    The caller waits on ``done`` for at most the target's budget. If the
    budget runs out first, ``abort`` shuts the socket down, which unblocks
    whatever body read the transfer thread is stuck in. A transfer still
    connecting or waiting for headers ends on its own socket timeout and
    discards the response as soon as it arrives.
    """

    def __init__(self, url: str, timeout_s: float, deadline: float) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.deadline = deadline
        self.status_code: int | None = None
        self.status_text = ""
        self.error: Exception | None = None
        self.done = threading.Event()
        self._response: requests.Response | None = None
        self._aborted = False
        self._lock = threading.Lock()

    def run(self) -> None:
        response = None
        try:
            response = requests.get(
                self.url,
                headers={"User-Agent": USER_AGENT},
                timeout=(self.timeout_s, self.timeout_s),
                stream=True,
                allow_redirects=True,
            )
            with self._lock:
                self._response = response
                aborted = self._aborted
            if aborted:
                return
            self.status_code = response.status_code
            self.status_text = _reason_phrase(response)
            _drain(response, self.deadline)
        except Exception as e:
            self.error = e
        finally:
            if response is not None:
                response.close()
            self.done.set()

    def abort(self) -> None:
        with self._lock:
            self._aborted = True
            response = self._response
        if response is not None:
            _shutdown_connection(response)


def _failure(
    target: TargetConfig,
    observed_at: datetime,
    start: float,
    status_text: str,
    error: str,
    status_code: int | None = None,
) -> ProbeResult:
    return ProbeResult(
        name=target.name,
        url=target.url,
        outcome=Outcome.DOWN,
        status_code=status_code,
        status_text=status_text,
        response_time_ms=_elapsed_ms(start),
        error=error,
        observed_at=observed_at,
    )


def check_target(target: TargetConfig, down_status_threshold: int = 400) -> ProbeResult:
    """Perform a single HTTP health check on a target.

    Never raises: timeouts, DNS, connection and TLS failures are returned as
    DOWN results with ``error`` populated. ``timeout_ms`` is a wall-clock
    limit on the whole request: the call returns once it passes, and a body
    still being received has its connection shut down.

    Args:
        target: Target to check.
        down_status_threshold: Status codes at or above this are DOWN.

    Returns:
        ProbeResult with outcome, status and timing information.
    """
    timeout_s = target.timeout_ms / 1000
    observed_at = datetime.now(UTC)
    start = time.monotonic()

    transfer = _Transfer(target.url, timeout_s, start + timeout_s)
    worker = threading.Thread(target=transfer.run, name=f"transfer-{target.name}", daemon=True)
    worker.start()

    if not transfer.done.wait(timeout_s):
        transfer.abort()
        logger.debug("%s: aborted after %dms", target.name, _elapsed_ms(start))
        return _failure(target, observed_at, start, TIMEOUT_TEXT, TIMEOUT_TEXT, transfer.status_code)

    status_code = transfer.status_code
    error = transfer.error
    if isinstance(error, (_DeadlineExceeded, requests.exceptions.Timeout)):
        return _failure(target, observed_at, start, TIMEOUT_TEXT, TIMEOUT_TEXT, status_code)
    if isinstance(error, requests.exceptions.SSLError):
        return _failure(target, observed_at, start, "SSL error", str(error), status_code)
    if isinstance(error, requests.exceptions.ConnectionError) and status_code is None:
        return _failure(target, observed_at, start, "Connection error", str(error))
    if error is not None:
        return _failure(target, observed_at, start, transfer.status_text or "Request failed", str(error), status_code)

    elapsed_ms = _elapsed_ms(start)
    if elapsed_ms > target.timeout_ms:
        return _failure(target, observed_at, start, TIMEOUT_TEXT, TIMEOUT_TEXT, status_code)

    return ProbeResult(
        name=target.name,
        url=target.url,
        outcome=classify_status(status_code, down_status_threshold),
        status_code=status_code,
        status_text=transfer.status_text,
        response_time_ms=elapsed_ms,
        error=None,
        observed_at=observed_at,
    )


Prober = Callable[[TargetConfig, int], ProbeResult]


def _guarded_probe(
    probe: Prober,
    target: TargetConfig,
    down_status_threshold: int,
    observed_at: datetime,
) -> ProbeResult:
    """Run a probe; one that raises anyway becomes a DOWN result."""
    try:
        return probe(target, down_status_threshold)
    except Exception as e:
        logger.error("Failed to check %s: %s", target.name, e)
        return ProbeResult(
            name=target.name,
            url=target.url,
            outcome=Outcome.DOWN,
            status_code=None,
            status_text="Check failed",
            response_time_ms=0,
            error=str(e),
            observed_at=observed_at,
        )


def run_checks(
    targets: Sequence[TargetConfig],
    concurrent: bool = True,
    max_workers: int | None = None,
    down_status_threshold: int = 400,
    probe: Prober = check_target,
) -> CheckRun:
    """Probe every target once and assemble a timestamped check run.

    Targets run concurrently by default, with no ordering dependency between
    them. Results always follow configuration order.

    Args:
        targets: Targets in configuration order.
        concurrent: Probe targets in parallel threads.
        max_workers: Optional cap on parallel probes (default: one per target).
        down_status_threshold: Status codes at or above this are DOWN.
        probe: Probe function, replaceable for testing.

    Returns:
        CheckRun whose ``observed_at`` was captured before the first probe.
    """
    observed_at = datetime.now(UTC)

    if not targets:
        return CheckRun(observed_at=observed_at, results=())

    if concurrent:
        workers = min(len(targets), max_workers or len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as executor:
            futures = [
                executor.submit(_guarded_probe, probe, target, down_status_threshold, observed_at)
                for target in targets
            ]
            results = [future.result() for future in futures]
    else:
        results = [_guarded_probe(probe, target, down_status_threshold, observed_at) for target in targets]

    for result in results:
        status = "UP" if result.is_up else "DOWN"
        logger.info("%s: %s (%dms)", result.name, status, result.response_time_ms)
        if result.error:
            logger.debug("%s error: %s", result.name, result.error)

    return CheckRun(observed_at=observed_at, results=tuple(results))
