from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from searchdump.core.exceptions import SinkCommitError
from searchdump.core.models import Artifact
from searchdump.dest.base import Destination
from .channel import Channel
from .observer import ExportObserver, LoggingObserver


@dataclass
class ConsumerResult:
    committed: List[str] = field(default_factory=list)
    documents: int = 0
    bytes_written: int = 0
    error: Optional[SinkCommitError] = None


class SinkConsumer:
    """Consumer side: commits artifacts until the channel closes.

    The first failed commit cancels the channel, which stops the producer.
    """

    def __init__(self, destination: Destination, channel: Channel[Artifact], observer: Optional[ExportObserver] = None):
        self.destination = destination
        self.channel = channel
        self.observer = observer or LoggingObserver()
        self.result = ConsumerResult()

    def run(self) -> ConsumerResult:
        res = self.result
        for artifact in self.channel:
            try:
                self.destination.commit(artifact.name, artifact.content)
            except Exception as e:
                err = e if isinstance(e, SinkCommitError) else SinkCommitError(artifact.name, e)
                res.error = err
                self.observer.commit_failed(artifact.name, err)
                self.channel.cancel()
                self.channel.task_done()
                break
            res.committed.append(artifact.name)
            res.documents += artifact.document_count
            res.bytes_written += len(artifact.content)
            self.observer.artifact_committed(artifact.name, len(artifact.content))
            self.channel.task_done()
        return res
