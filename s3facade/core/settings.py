from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class S3Settings:
    """
    Object store client configuration.

    Credentials are optional: when both keys are empty the boto3 credential
    chain (env, profile, IRSA / instance role) is used.
    """
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: str = ""
    secret_access_key: str = ""

    max_attempts: int = 8
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 60.0

    presign_ttl_seconds: int = 900
    list_page_size: int = 1000

    # Buckets whose sanitized name starts with this prefix are public web sites
    public_site_prefix: str = "www."
    website_index: str = "index.html"


@dataclass(frozen=True)
class CDNSettings:
    """
    provider:
      - "disabled"   -> DisabledDistributions
      - "cloudfront" -> CloudFrontDistributions
    """
    provider: str = "disabled"
    invalidate_on_upload: bool = False


@dataclass(frozen=True)
class Settings:
    s3: S3Settings = field(default_factory=S3Settings)
    cdn: CDNSettings = field(default_factory=CDNSettings)


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _load_s3_settings() -> S3Settings:
    region = (_env("S3_REGION", "") or _env("AWS_REGION", "") or _env("AWS_DEFAULT_REGION", "")).strip() or None
    endpoint_url = (_env("S3_ENDPOINT_URL", "") or "").strip().rstrip("/") or None

    access_key_id = (_env("S3_ACCESS_KEY_ID", "") or "").strip()
    secret_access_key = (_env("S3_SECRET_ACCESS_KEY", "") or "").strip()

    max_attempts = _env_int("S3_MAX_ATTEMPTS", 8)
    connect_timeout_seconds = _env_float("S3_CONNECT_TIMEOUT_SECONDS", 10.0)
    read_timeout_seconds = _env_float("S3_READ_TIMEOUT_SECONDS", 60.0)
    presign_ttl_seconds = _env_int("S3_PRESIGN_TTL_SECONDS", 900)
    list_page_size = _env_int("S3_LIST_PAGE_SIZE", 1000)

    public_site_prefix = (_env("S3_PUBLIC_SITE_PREFIX", "") or "www.").strip().lower()
    website_index = (_env("S3_WEBSITE_INDEX", "") or "index.html").strip()

    # S3 caps a listing page at 1000 keys and a presigned URL at 7 days
    max_attempts = max(1, min(int(max_attempts), 10))
    connect_timeout_seconds = max(1.0, float(connect_timeout_seconds))
    read_timeout_seconds = max(1.0, float(read_timeout_seconds))
    presign_ttl_seconds = max(1, min(int(presign_ttl_seconds), 7 * 24 * 3600))
    list_page_size = max(1, min(int(list_page_size), 1000))

    return S3Settings(
        region=region,
        endpoint_url=endpoint_url,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        max_attempts=max_attempts,
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        presign_ttl_seconds=presign_ttl_seconds,
        list_page_size=list_page_size,
        public_site_prefix=public_site_prefix,
        website_index=website_index,
    )


def _normalize_cdn_provider(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("cloudfront", "cf", "aws"):
        return "cloudfront"
    return "disabled"


def _load_cdn_settings() -> CDNSettings:
    provider = _normalize_cdn_provider(_env("CDN_PROVIDER", ""))
    invalidate_on_upload = _env_bool("CDN_INVALIDATE_ON_UPLOAD", False)
    return CDNSettings(provider=provider, invalidate_on_upload=invalidate_on_upload)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        s3=_load_s3_settings(),
        cdn=_load_cdn_settings(),
    )
