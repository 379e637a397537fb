from __future__ import annotations

import re
from typing import List, Optional

from searchdump.core.exceptions import EnumerationError, FetchError, InvalidFilter, SourceUnavailable
from searchdump.sources.base import Source
from .observer import ExportObserver, LoggingObserver


def compile_filter(filter_pattern: str) -> Optional[re.Pattern[str]]:
    if not filter_pattern:
        return None
    try:
        return re.compile(filter_pattern)
    except re.error as e:
        raise InvalidFilter(f"unable to compile index filter {filter_pattern!r}: {e}") from e


class PartitionEnumerator:
    """Produces the fixed, sorted partition list for one run."""

    def __init__(self, source: Source, observer: Optional[ExportObserver] = None):
        self.source = source
        self.observer = observer or LoggingObserver()

    def list_partitions(self, filter_pattern: str = "") -> List[str]:
        rx = compile_filter(filter_pattern)
        try:
            names = self.source.list_partitions()
        except EnumerationError:
            raise
        except FetchError as e:
            raise SourceUnavailable(f"unable to fetch indices: {e}") from e

        partitions = sorted({n for n in names if rx is None or rx.search(n)})
        self.observer.partitions_listed(partitions)
        return partitions
