from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from searchdump.config.logging import get_logger
from searchdump.config.settings import Settings
from searchdump.core.exceptions import SearchDumpError
from searchdump.dest.base import Destination
from searchdump.export.channel import Channel
from searchdump.export.driver import PipelineDriver
from searchdump.export.enumerator import PartitionEnumerator
from searchdump.export.exporter import PartitionExporter
from searchdump.export.observer import ExportObserver, LoggingObserver
from searchdump.export.sink import SinkConsumer
from searchdump.registry import build_destination, build_source
from searchdump.sources.base import Source

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_EMPTY_EXPORT = 3


@dataclass
class RunResult:
    status: str
    exit_code: int
    partitions_total: int = 0
    artifacts_committed: int = 0
    partitions_skipped: int = 0
    documents_exported: int = 0
    bytes_written: int = 0
    committed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.exit_code == EXIT_FAILED


class ExportRunner:
    """Runs one export: producer thread for the source, consumer on the caller's thread."""

    def __init__(
        self,
        *,
        source: Source,
        destination: Destination,
        settings: Settings,
        observer: Optional[ExportObserver] = None,
        sleep: Optional[Callable[[float], object]] = None,
        poll_interval: float = 0.5,
    ) -> None:
        self.source = source
        self.destination = destination
        self.settings = settings
        self.observer = observer or LoggingObserver()
        self.sleep = sleep
        self.poll_interval = poll_interval

    def run(self) -> RunResult:
        logger.info("source: %s", self.source.describe())
        logger.info("dest: %s", self.destination.describe())

        stop = threading.Event()
        channel: Channel = Channel(stop=stop, poll_interval=self.poll_interval)
        exporter = PartitionExporter(
            self.source,
            page_size=self.settings.page_size,
            max_retries=self.settings.max_retries,
            stop=stop,
            sleep=self.sleep,
            observer=self.observer,
        )
        driver = PipelineDriver(
            PartitionEnumerator(self.source, observer=self.observer),
            exporter,
            channel,
            filter_pattern=self.settings.index_filter,
        )
        consumer = SinkConsumer(self.destination, channel, observer=self.observer)

        driver.start()
        consumed = consumer.run()
        produced = driver.join()

        result = RunResult(
            status="SUCCESS",
            exit_code=EXIT_OK,
            partitions_total=len(produced.partitions),
            artifacts_committed=len(consumed.committed),
            partitions_skipped=len(produced.skipped),
            documents_exported=consumed.documents,
            bytes_written=consumed.bytes_written,
            committed=list(consumed.committed),
            skipped=list(produced.skipped),
        )

        error: Optional[BaseException] = consumed.error or produced.error
        if error is not None:
            result.status = "FAILED"
            result.exit_code = EXIT_FAILED
            result.error = error
        elif produced.partitions and not consumed.committed:
            result.status = "EMPTY"
            result.exit_code = EXIT_EMPTY_EXPORT
        elif not produced.partitions:
            logger.warning("no partitions matched filter %r; nothing to export", self.settings.index_filter)

        self.observer.run_finished(
            result.status,
            partitions_total=result.partitions_total,
            artifacts_committed=result.artifacts_committed,
            partitions_skipped=result.partitions_skipped,
            skipped=result.skipped,
            documents_exported=result.documents_exported,
            bytes_written=result.bytes_written,
            error=str(error) if error else None,
            error_type=type(error).__name__ if error else None,
        )
        return result


def run_export(settings: Settings, **kwargs) -> RunResult:
    """Build source and destination from ``settings`` and run one export.

    Construction failures are reported as a failed run, not raised.
    """
    observer = kwargs.pop("observer", None) or LoggingObserver()
    try:
        source = build_source(settings)
        destination = build_destination(settings)
    except SearchDumpError as e:
        observer.run_finished("FAILED", error=str(e), error_type=type(e).__name__)
        return RunResult(status="FAILED", exit_code=EXIT_FAILED, error=e)

    try:
        return ExportRunner(source=source, destination=destination, settings=settings, observer=observer, **kwargs).run()
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            close()
