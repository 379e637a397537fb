from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


@dataclass(frozen=True)
class Document:
    """A source document kept in its compact serialized form."""

    raw: bytes

    @classmethod
    def from_obj(cls, obj: Any) -> "Document":
        return cls(raw=json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8"))

    def to_obj(self) -> Any:
        return json.loads(self.raw)


@dataclass(frozen=True)
class Cursor:
    token: str = ""
    keep_alive: str = "2m"

    def __bool__(self) -> bool:
        return bool(self.token)


@dataclass
class Batch:
    documents: List[Document]
    next_cursor: Cursor


@dataclass(frozen=True)
class Artifact:
    name: str
    content: bytes
    partition: str
    document_count: int = 0

    @classmethod
    def for_partition(cls, partition: str, documents: Sequence[Document]) -> "Artifact":
        return cls(
            name=artifact_name(partition),
            content=serialize_documents(documents),
            partition=partition,
            document_count=len(documents),
        )


@dataclass
class RetryState:
    attempts: int = 0
    last_error: Optional[BaseException] = None

    def record(self, err: BaseException) -> int:
        self.attempts += 1
        self.last_error = err
        return self.attempts

    def reset(self) -> None:
        self.attempts = 0
        self.last_error = None


@dataclass
class PartitionStats:
    pages: int = 0
    documents: int = 0
    retries: int = 0


def artifact_name(partition: str) -> str:
    return f"{partition}.json"


def serialize_documents(documents: Sequence[Document]) -> bytes:
    return b"[" + b",".join(d.raw for d in documents) + b"]"
