from __future__ import annotations

import json
import logging
from typing import Any, Optional


# Client libraries that log every request at INFO/DEBUG.
NOISY_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


def setup_logging(level: str = "INFO") -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    # Only --debug lets request-level chatter from the S3 and HTTP clients through.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)


def get_logger(name: str = "searchdump", *, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper(), logger.level))
    return logger


def log_json(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, ensure_ascii=False))
