from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import requests

from searchdump.core.exceptions import DecodeError, ServerError, TransportError


@dataclass
class HttpConfig:
    base_url: str
    user_agent: str = "searchdump/0.1"
    auth: Optional[Tuple[str, str]] = None
    connect_timeout: float = 10.0
    read_timeout: float = 30.0


class HttpClient:
    """Single-attempt JSON client. Retrying is the caller's job."""

    def __init__(self, cfg: HttpConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": cfg.user_agent, "Accept": "application/json"})
        if cfg.auth:
            self.session.auth = cfg.auth

    def url(self, path: str) -> str:
        return f"{self.cfg.base_url.rstrip('/')}/{path.lstrip('/')}"

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        timeout = kwargs.pop("timeout", (self.cfg.connect_timeout, self.cfg.read_timeout))
        try:
            return self.session.request(method, self.url(path), timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path}: {e}") from e

    def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = self.request(method, path, **kwargs)
        if not 200 <= resp.status_code < 300:
            raise ServerError(resp.status_code, _snippet(resp))
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"{method} {path}: unable to decode JSON: {e}") from e

    def close(self) -> None:
        self.session.close()


def _snippet(resp: requests.Response, limit: int = 200) -> str:
    return (resp.text or "")[:limit]
