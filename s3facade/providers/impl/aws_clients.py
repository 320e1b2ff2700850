from __future__ import annotations

from typing import Any, Dict

import boto3
from botocore.config import Config

from s3facade.core.settings import S3Settings


def client_config(settings: S3Settings) -> Config:
    # Timeouts and retries are explicit; nothing is left to botocore defaults
    return Config(
        region_name=settings.region,
        signature_version="s3v4",
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
    )


def build_client(service: str, settings: S3Settings):
    """
    One client per service per Settings. boto3 clients are thread-safe, so
    the same handle is shared by every façade built from these settings.
    """
    kwargs: Dict[str, Any] = {"config": client_config(settings)}
    if settings.access_key_id and settings.secret_access_key:
        kwargs["aws_access_key_id"] = settings.access_key_id
        kwargs["aws_secret_access_key"] = settings.secret_access_key
    # Custom endpoints (MinIO, R2, localstack) only apply to S3 itself
    if settings.endpoint_url and service == "s3":
        kwargs["endpoint_url"] = settings.endpoint_url
    return boto3.client(service, **kwargs)
