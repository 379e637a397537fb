from __future__ import annotations

from typing import Protocol

from searchdump.core.exceptions import SinkCommitError


class Destination(Protocol):
    """Durable store for artifacts.

    ``commit`` must tolerate receiving the same name and content twice.
    """

    def describe(self) -> str: ...

    def commit(self, name: str, content: bytes) -> None: ...


class NoneDestination:
    def describe(self) -> str:
        return "none"

    def commit(self, name: str, content: bytes) -> None:
        raise SinkCommitError(name, RuntimeError("no destination configured"))
