from __future__ import annotations


class SearchDumpError(Exception):
    """Root of every error raised by searchdump."""


class ConfigError(SearchDumpError, ValueError):
    """Raised when run settings are missing or inconsistent."""


class EnumerationError(SearchDumpError):
    """Partition catalog could not be produced. Fatal to the run."""


class SourceUnavailable(EnumerationError):
    pass


class InvalidFilter(EnumerationError):
    pass


class FetchError(SearchDumpError):
    """Base for errors raised by a single page fetch."""

    retryable = False


class TransientFetchError(FetchError):
    retryable = True


class ServerError(TransientFetchError):
    def __init__(self, status: int, body: str | None = None):
        self.status = status
        self.body = body
        super().__init__(f"server returned {status}")


class TransportError(TransientFetchError):
    pass


class DecodeError(FetchError):
    pass


class CursorExpired(FetchError):
    """The scroll id is no longer known to the server."""


class PartitionSkipped(SearchDumpError):
    """A partition was abandoned. The run continues with the next one."""

    def __init__(self, partition: str, reason: str, cause: BaseException | None = None):
        self.partition = partition
        self.reason = reason
        self.cause = cause
        super().__init__(f"partition {partition} skipped: {reason}")


class DestinationError(SearchDumpError):
    """Destination could not be constructed."""


class SinkCommitError(SearchDumpError):
    def __init__(self, name: str, cause: BaseException | None = None):
        self.name = name
        self.cause = cause
        msg = f"unable to write {name}"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)


class RunCancelled(SearchDumpError):
    """The producer observed the stop signal."""
