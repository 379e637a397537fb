from __future__ import annotations

import io
import posixpath
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from searchdump.core.exceptions import DestinationError, SinkCommitError

DEFAULT_REGION = "eu-central-1"
TRANSFER_CONFIG = TransferConfig(multipart_threshold=64 * 1024 * 1024, multipart_chunksize=64 * 1024 * 1024)


@dataclass
class S3Params:
    url: str
    access_key: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint: Optional[str] = None
    region: str = DEFAULT_REGION
    force_path_style: bool = False


class S3Destination:
    """Uploads artifacts to ``s3://<bucket>/<prefix>/<name>``."""

    def __init__(self, params: S3Params, *, client: Any = None):
        u = urlsplit(params.url)
        if u.scheme != "s3":
            raise DestinationError("scheme must be s3")
        if not u.netloc:
            raise DestinationError(f"missing bucket in {params.url!r}")

        if not params.region:
            params.region = DEFAULT_REGION

        self.params = params
        self.bucket = u.netloc
        self.prefix = u.path.strip("/")
        self.client = client or self._make_client(params)

    @staticmethod
    def _make_client(params: S3Params) -> Any:
        cfg = Config(s3={"addressing_style": "path" if params.force_path_style else "auto"})
        try:
            return boto3.session.Session().client(
                "s3",
                aws_access_key_id=params.access_key or None,
                aws_secret_access_key=params.secret_access_key or None,
                region_name=params.region,
                endpoint_url=params.endpoint or None,
                config=cfg,
            )
        except (BotoCoreError, ValueError) as e:
            raise DestinationError(f"cannot create S3 client: {e}") from e

    def __str__(self) -> str:
        return self.describe()

    def describe(self) -> str:
        return (
            f"S3 (endpoint={self.params.endpoint or 'default'}, "
            f"accessKey={self.params.access_key or ''}, region={self.params.region})"
        )

    def key_for(self, name: str) -> str:
        return posixpath.join(self.prefix, name) if self.prefix else name

    def commit(self, name: str, content: bytes) -> None:
        # Managed transfer: switches to multipart above the threshold, so one
        # artifact is not capped at the single PUT limit.
        try:
            self.client.upload_fileobj(
                io.BytesIO(content),
                self.bucket,
                self.key_for(name),
                ExtraArgs={"ContentType": "application/json"},
                Config=TRANSFER_CONFIG,
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            raise SinkCommitError(name, e) from e
