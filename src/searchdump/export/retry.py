from __future__ import annotations

import threading
from typing import Callable, Optional

from searchdump.config.settings import backoff_delay
from searchdump.core.exceptions import FetchError, PartitionSkipped, RunCancelled, TransientFetchError
from searchdump.core.models import Batch, RetryState
from .observer import ExportObserver, LoggingObserver
from .pager import CursorPager


class RetryingFetcher:
    """Bounded retry around a CursorPager.

    Transient failures (server status, transport) are retried with
    ``delay(attempt)`` seconds of backoff up to ``max_retries`` times; any
    other fetch failure abandons the partition at once.
    """

    def __init__(
        self,
        pager: CursorPager,
        *,
        max_retries: int = 2,
        stop: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], object]] = None,
        delay: Callable[[int], float] = backoff_delay,
        observer: Optional[ExportObserver] = None,
    ):
        self.pager = pager
        self.max_retries = max_retries
        self.stop = stop or threading.Event()
        # Waiting on the stop event lets a cancellation cut a backoff short.
        self.sleep = sleep or self.stop.wait
        self.delay = delay
        self.observer = observer or LoggingObserver()
        self.state = RetryState()
        self.total_retries = 0

    @property
    def partition(self) -> str:
        return self.pager.partition

    def fetch(self) -> Batch:
        while True:
            try:
                batch = self.pager.fetch()
            except TransientFetchError as e:
                if self.state.attempts >= self.max_retries:
                    raise PartitionSkipped(
                        self.partition,
                        f"last retry failed ({self.state.attempts}/{self.max_retries})",
                        e,
                    ) from e
                attempt = self.state.record(e)
                self.total_retries += 1
                wait = self.delay(attempt)
                self.observer.retry_scheduled(self.partition, attempt, self.max_retries, wait, e)
                self._backoff(wait)
                continue
            except FetchError as e:
                raise PartitionSkipped(self.partition, type(e).__name__, e) from e

            self.state.reset()
            return batch

    def _backoff(self, wait: float) -> None:
        if self.stop.is_set():
            raise RunCancelled(f"stopped before retrying {self.partition}")
        self.sleep(wait)
        if self.stop.is_set():
            raise RunCancelled(f"stopped while backing off on {self.partition}")
