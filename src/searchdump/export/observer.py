from __future__ import annotations

import logging
from typing import Protocol

from searchdump.config.logging import get_logger, log_json


class ExportObserver(Protocol):
    """Receives progress events from the export pipeline."""

    def partitions_listed(self, partitions: list[str]) -> None: ...

    def partition_started(self, partition: str) -> None: ...

    def page_fetched(self, partition: str, page: int, documents: int) -> None: ...

    def retry_scheduled(self, partition: str, attempt: int, max_retries: int, delay: float, error: BaseException) -> None: ...

    def partition_exported(self, partition: str, documents: int, pages: int) -> None: ...

    def partition_skipped(self, partition: str, reason: str, error: BaseException | None) -> None: ...

    def artifact_committed(self, name: str, size: int) -> None: ...

    def commit_failed(self, name: str, error: BaseException) -> None: ...

    def run_finished(self, status: str, **stats: object) -> None: ...


class LoggingObserver:
    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_logger("searchdump.export")

    def partitions_listed(self, partitions: list[str]) -> None:
        log_json(self.logger, logging.INFO, "partitions_listed", count=len(partitions), partitions=partitions)

    def partition_started(self, partition: str) -> None:
        log_json(self.logger, logging.INFO, "partition_started", partition=partition)

    def page_fetched(self, partition: str, page: int, documents: int) -> None:
        log_json(self.logger, logging.DEBUG, "page_fetched", partition=partition, page=page, documents=documents)

    def retry_scheduled(self, partition: str, attempt: int, max_retries: int, delay: float, error: BaseException) -> None:
        log_json(
            self.logger,
            logging.WARNING,
            "retry_scheduled",
            partition=partition,
            attempt=attempt,
            max_retries=max_retries,
            delay_sec=delay,
            error=str(error),
        )

    def partition_exported(self, partition: str, documents: int, pages: int) -> None:
        log_json(self.logger, logging.INFO, "partition_exported", partition=partition, documents=documents, pages=pages)

    def partition_skipped(self, partition: str, reason: str, error: BaseException | None) -> None:
        log_json(
            self.logger,
            logging.ERROR,
            "partition_skipped",
            partition=partition,
            reason=reason,
            error=str(error) if error else None,
            error_type=type(error).__name__ if error else None,
        )

    def artifact_committed(self, name: str, size: int) -> None:
        log_json(self.logger, logging.INFO, "artifact_committed", name=name, bytes=size)

    def commit_failed(self, name: str, error: BaseException) -> None:
        log_json(self.logger, logging.ERROR, "commit_failed", name=name, error=str(error))

    def run_finished(self, status: str, **stats: object) -> None:
        level = logging.INFO if status == "SUCCESS" else logging.ERROR
        log_json(self.logger, level, "run_finished", status=status, **stats)
