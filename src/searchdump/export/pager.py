from __future__ import annotations

from searchdump.core.models import Batch, Cursor
from searchdump.sources.base import Source


class CursorPager:
    """Walks one partition page by page through a server-side cursor.

    The cursor only advances when a fetch succeeds, so a failed call can be
    repeated with exactly the same request.
    """

    def __init__(self, source: Source, partition: str, page_size: int):
        self.source = source
        self.partition = partition
        self.page_size = page_size
        self.cursor = Cursor()

    def fetch(self) -> Batch:
        batch = self.source.fetch_page(self.partition, self.page_size, self.cursor)
        if batch.next_cursor:
            self.cursor = batch.next_cursor
        return batch

    def close(self) -> None:
        if self.cursor:
            cursor, self.cursor = self.cursor, Cursor()
            self.source.release_cursor(cursor)
