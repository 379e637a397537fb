from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlsplit

import requests

from searchdump.config.logging import get_logger, log_json
from searchdump.core.exceptions import (
    ConfigError,
    CursorExpired,
    DecodeError,
    FetchError,
    ServerError,
    SourceUnavailable,
)
from searchdump.core.models import Batch, Cursor, Document
from .http_client import HttpClient, HttpConfig

logger = get_logger(__name__)

SEARCH_TYPES = ("search", "elasticsearch", "opensearch")


@dataclass
class SearchInfo:
    name: str = ""
    cluster_name: str = ""
    version_number: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchInfo":
        version = d.get("version") or {}
        return cls(
            name=str(d.get("name") or ""),
            cluster_name=str(d.get("cluster_name") or ""),
            version_number=str(version.get("number") or ""),
        )


@dataclass
class SearchParams:
    scroll_keep_alive: str = "2m"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    user_agent: str = "searchdump/0.1"


class SearchSource:
    """Elasticsearch/OpenSearch source using the scroll API over HTTP."""

    def __init__(
        self,
        from_url: str,
        params: Optional[SearchParams] = None,
        *,
        session: Optional[requests.Session] = None,
    ):
        self.params = params or SearchParams()
        self._major: Optional[int] = None

        u = urlsplit(from_url)
        if u.scheme not in ("http", "https") or not u.hostname:
            raise ConfigError(f"unable to parse source URL {from_url!r}: expected http(s)://host[:port]")

        auth = None
        if u.username:
            auth = (u.username, u.password or "")

        host = u.hostname if u.port is None else f"{u.hostname}:{u.port}"
        self.client = HttpClient(
            HttpConfig(
                base_url=f"{u.scheme}://{host}",
                user_agent=self.params.user_agent,
                auth=auth,
                connect_timeout=self.params.connect_timeout,
                read_timeout=self.params.read_timeout,
            ),
            session=session,
        )
        self.info = self._fetch_info()

    def __str__(self) -> str:
        return self.describe()

    def describe(self) -> str:
        return f"{self.info.name} ({self.info.cluster_name}) - {self.info.version_number}"

    def _fetch_info(self) -> SearchInfo:
        try:
            data = self.client.request_json("GET", "/")
        except FetchError as e:
            raise SourceUnavailable(f"cannot fetch search info: {e}") from e
        if not isinstance(data, dict):
            raise SourceUnavailable("cannot fetch search info: unexpected response body")
        return SearchInfo.from_dict(data)

    def version_major(self) -> int:
        if self._major is not None:
            return self._major

        parts = self.info.version_number.split(".")
        if len(parts) < 2:
            return -1
        try:
            self._major = int(parts[0])
        except ValueError:
            return -1
        return self._major

    def list_partitions(self) -> List[str]:
        try:
            stats = self.client.request_json("GET", "/_stats")
        except FetchError as e:
            raise SourceUnavailable(f"unable to fetch indices: {e}") from e

        indices = stats.get("indices") if isinstance(stats, dict) else None
        if not isinstance(indices, dict):
            raise SourceUnavailable("unable to fetch indices: response has no 'indices' object")

        return list(indices)

    def fetch_page(self, partition: str, page_size: int, cursor: Cursor) -> Batch:
        keep_alive = cursor.keep_alive if cursor else self.params.scroll_keep_alive

        if not cursor:
            # Scroll requests are fastest when sorted by _doc.
            data = self.client.request_json(
                "POST",
                f"/{quote(partition, safe='')}/_search",
                params={"scroll": keep_alive, "size": page_size, "sort": "_doc"},
            )
        else:
            try:
                data = self.client.request_json(
                    "POST",
                    "/_search/scroll",
                    json={"scroll": keep_alive, "scroll_id": cursor.token},
                )
            except ServerError as e:
                if e.status == 404:
                    raise CursorExpired(f"scroll for {partition} expired or unknown") from e
                raise

        return _parse_batch(data, keep_alive)

    def release_cursor(self, cursor: Cursor) -> None:
        if not cursor:
            return
        try:
            self.client.request_json("DELETE", "/_search/scroll", json={"scroll_id": [cursor.token]})
        except FetchError as e:
            log_json(logger, logging.WARNING, "scroll_clear_failed", error=str(e))

    def close(self) -> None:
        self.client.close()


def _parse_batch(data: Any, keep_alive: str) -> Batch:
    try:
        hits = data["hits"]["hits"]
        documents = [Document.from_obj(h["_source"]) for h in hits]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"unexpected search response shape: {e!r}") from e

    token = data.get("_scroll_id") or ""
    return Batch(documents=documents, next_cursor=Cursor(token=str(token), keep_alive=keep_alive))
