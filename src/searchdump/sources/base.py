from __future__ import annotations

from typing import List, Protocol

from searchdump.core.models import Batch, Cursor


class Source(Protocol):
    """Capability set the export pipeline needs from a document store."""

    def describe(self) -> str: ...

    def list_partitions(self) -> List[str]:
        """Return the full partition catalog, unfiltered and in any order."""
        ...

    def fetch_page(self, partition: str, page_size: int, cursor: Cursor) -> Batch:
        """Open (empty cursor) or continue a traversal of ``partition``.

        Must raise ServerError, TransportError or DecodeError so the retry
        loop can classify the failure.
        """
        ...

    def release_cursor(self, cursor: Cursor) -> None: ...
