from __future__ import annotations

import os
import tempfile
from pathlib import Path
from urllib.parse import unquote, urlsplit

from searchdump.core.exceptions import DestinationError, SinkCommitError


def _dir_from_url(url: str) -> Path:
    u = urlsplit(url)
    if u.scheme == "file":
        return Path(unquote(u.path))
    if u.scheme and len(u.scheme) > 1:
        raise DestinationError(f"scheme must be file, got {u.scheme!r}")
    return Path(url)


class LocalDirectoryDestination:
    """Writes each artifact to ``<root>/<name>``."""

    def __init__(self, url: str):
        self.root = _dir_from_url(url)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationError(f"unable to create {self.root}: {e}") from e

    def describe(self) -> str:
        return f"local ({self.root})"

    def commit(self, name: str, content: bytes) -> None:
        target = self.root / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".searchdump-", dir=target.parent)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                os.replace(tmp, target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SinkCommitError(name, e) from e
