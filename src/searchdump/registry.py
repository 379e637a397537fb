from __future__ import annotations

from searchdump.config.settings import Settings
from searchdump.core.exceptions import ConfigError, DestinationError
from searchdump.dest.base import Destination, NoneDestination
from searchdump.dest.local import LocalDirectoryDestination
from searchdump.dest.s3 import S3Destination, S3Params
from searchdump.sources.base import Source
from searchdump.sources.search import SEARCH_TYPES, SearchParams, SearchSource

DEST_TYPES = ("s3", "local", "file", "none")


def build_source(settings: Settings) -> Source:
    kind = settings.from_type.lower()
    if kind in SEARCH_TYPES:
        return SearchSource(
            settings.from_url,
            SearchParams(
                scroll_keep_alive=settings.keep_alive(),
                connect_timeout=settings.connect_timeout,
                read_timeout=settings.read_timeout,
                user_agent=settings.user_agent,
            ),
        )
    raise ConfigError(f"unknown from type {settings.from_type!r}. Available: {', '.join(SEARCH_TYPES)}")


def build_destination(settings: Settings) -> Destination:
    kind = settings.to_type.lower()
    if kind == "s3":
        s3 = settings.s3
        return S3Destination(
            S3Params(
                url=settings.to_url,
                access_key=s3.access_key,
                secret_access_key=s3.secret_access_key,
                endpoint=s3.endpoint,
                region=s3.region,
                force_path_style=s3.force_path_style,
            )
        )
    if kind in ("local", "file"):
        return LocalDirectoryDestination(settings.to_url)
    if kind in ("", "none"):
        return NoneDestination()
    raise DestinationError(f"unknown to type {settings.to_type!r}. Available: {', '.join(DEST_TYPES)}")
