from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from searchdump.config.logging import get_logger, log_json
from searchdump.core.exceptions import PartitionSkipped, RunCancelled
from searchdump.core.models import Artifact
from .channel import Channel
from .enumerator import PartitionEnumerator
from .exporter import PartitionExporter

logger = get_logger(__name__)


@dataclass
class ProducerResult:
    partitions: List[str] = field(default_factory=list)
    exported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    cancelled: bool = False
    error: Optional[BaseException] = None


class PipelineDriver:
    """Producer side: enumerate, export each partition in order, publish."""

    def __init__(
        self,
        enumerator: PartitionEnumerator,
        exporter: PartitionExporter,
        channel: Channel[Artifact],
        *,
        filter_pattern: str = "",
    ):
        self.enumerator = enumerator
        self.exporter = exporter
        self.channel = channel
        self.filter_pattern = filter_pattern
        self.result = ProducerResult()
        self._thread: Optional[threading.Thread] = None
        self._ran = False

    @property
    def stop(self) -> threading.Event:
        return self.channel.stop

    def run(self) -> ProducerResult:
        if self._ran:
            raise RuntimeError("PipelineDriver.run() is not restartable")
        self._ran = True
        res = self.result
        try:
            res.partitions = self.enumerator.list_partitions(self.filter_pattern)
            for partition in res.partitions:
                if self.stop.is_set():
                    raise RunCancelled(f"stopped before exporting {partition}")
                try:
                    artifact = self.exporter.export_partition(partition)
                except PartitionSkipped:
                    res.skipped.append(partition)
                    continue
                self.channel.send(artifact)
                res.exported.append(partition)
        except RunCancelled as e:
            res.cancelled = True
            log_json(logger, logging.WARNING, "producer_cancelled", reason=str(e))
        except Exception as e:
            res.error = e
            log_json(logger, logging.ERROR, "producer_failed", error=str(e), error_type=type(e).__name__)
        finally:
            self.channel.close()
        return res

    def start(self) -> threading.Thread:
        if self._ran or self._thread is not None:
            raise RuntimeError("PipelineDriver.start() is not restartable")
        self._thread = threading.Thread(target=self.run, name="searchdump-producer", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> ProducerResult:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.result
