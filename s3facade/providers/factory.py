from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from s3facade.core.settings import Settings, get_settings
from s3facade.providers.access import AccessPolicy
from s3facade.providers.cdn import DistributionProvider
from s3facade.providers.impl.aws_clients import build_client
from s3facade.providers.impl.cdn_cloudfront import CloudFrontDistributions
from s3facade.providers.impl.cdn_disabled import DisabledDistributions
from s3facade.providers.impl.storage_s3 import S3ObjectStore
from s3facade.providers.storage import ObjectStore


@dataclass(frozen=True)
class Providers:
    """
    The three façades built from one Settings value, sharing one S3 client.
    """
    settings: Settings
    storage: ObjectStore
    access: AccessPolicy
    cdn: DistributionProvider


def build_distributions(settings: Settings, cloudfront_client: Optional[Any] = None) -> DistributionProvider:
    if settings.cdn.provider == "cloudfront":
        return CloudFrontDistributions(cloudfront_client or build_client("cloudfront", settings.s3))
    return DisabledDistributions()


def build_providers(
    settings: Optional[Settings] = None,
    s3_client: Optional[Any] = None,
    cloudfront_client: Optional[Any] = None,
) -> Providers:
    """
    Composition root. Nothing here is cached or global: callers hold the
    returned Providers and pass it where it is needed.

    settings defaults to the environment (get_settings()); clients default
    to boto3 clients built from settings.s3.
    """
    settings = settings or get_settings()
    cdn = build_distributions(settings, cloudfront_client)
    storage = S3ObjectStore(
        s3_client or build_client("s3", settings.s3),
        settings=settings.s3,
        distributions=cdn,
        invalidate_on_upload=settings.cdn.invalidate_on_upload,
    )
    return Providers(settings=settings, storage=storage, access=storage.access, cdn=cdn)
