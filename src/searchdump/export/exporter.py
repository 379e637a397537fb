from __future__ import annotations

import threading
from typing import Callable, List, Optional

from searchdump.config.settings import backoff_delay
from searchdump.core.exceptions import PartitionSkipped
from searchdump.core.models import Artifact, Document, PartitionStats
from searchdump.sources.base import Source
from .observer import ExportObserver, LoggingObserver
from .pager import CursorPager
from .retry import RetryingFetcher


class PartitionExporter:
    """Drains one partition into a single JSON-array artifact."""

    def __init__(
        self,
        source: Source,
        *,
        page_size: int = 50,
        max_retries: int = 2,
        stop: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], object]] = None,
        delay: Callable[[int], float] = backoff_delay,
        observer: Optional[ExportObserver] = None,
    ):
        self.source = source
        self.page_size = page_size
        self.max_retries = max_retries
        self.stop = stop or threading.Event()
        self.sleep = sleep
        self.delay = delay
        self.observer = observer or LoggingObserver()
        self.last_stats = PartitionStats()

    def export_partition(self, partition: str) -> Artifact:
        """Return the artifact for ``partition``.

        Raises PartitionSkipped when the traversal is abandoned; nothing is
        emitted for that partition.
        """
        self.observer.partition_started(partition)
        stats = PartitionStats()
        self.last_stats = stats

        pager = CursorPager(self.source, partition, self.page_size)
        fetcher = RetryingFetcher(
            pager,
            max_retries=self.max_retries,
            stop=self.stop,
            sleep=self.sleep,
            delay=self.delay,
            observer=self.observer,
        )

        documents: List[Document] = []
        try:
            while True:
                batch = fetcher.fetch()
                stats.retries = fetcher.total_retries
                if not batch.documents:
                    break
                documents.extend(batch.documents)
                stats.pages += 1
                self.observer.page_fetched(partition, stats.pages, len(batch.documents))
                if not batch.next_cursor:
                    break
        except PartitionSkipped as e:
            stats.retries = fetcher.total_retries
            self.observer.partition_skipped(partition, e.reason, e.cause)
            raise
        finally:
            pager.close()

        stats.documents = len(documents)
        artifact = Artifact.for_partition(partition, documents)
        self.observer.partition_exported(partition, stats.documents, stats.pages)
        return artifact
