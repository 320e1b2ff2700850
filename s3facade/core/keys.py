from __future__ import annotations

import re
from typing import Optional, Tuple

from s3facade.core.errors import ValidationError

_SLASH_RUN = re.compile(r"/{2,}")
_BUCKET_INVALID = re.compile(r"[^a-z0-9.]")


def normalize_key(key: Optional[str]) -> str:
    """
    Object keys are relative paths: strip every leading "/" and collapse
    runs of "/" into one. S3 web sites prepend a slash to keys, and keys
    with a leading slash cannot be fetched by browsers.

        normalize_key("//a//b") -> "a/b"
    """
    key = key or ""
    return _SLASH_RUN.sub("/", key).lstrip("/")


# Same operation; reads better when the caller is turning a URL path into a key
relativize = normalize_key


def require_key(key: Optional[str], bucket: Optional[str] = None) -> str:
    k = normalize_key(key)
    if not k:
        raise ValidationError(f"Object key is empty after normalization: {key!r}", bucket=bucket, key=key)
    return k


def sanitize_bucket_name(name: Optional[str]) -> str:
    """
    Lowercase and drop everything outside [a-z0-9.].
    S3 also accepts "-", but the site naming convention relies on dots only.
    """
    return _BUCKET_INVALID.sub("", (name or "").lower())


def validate_bucket_name(name: str) -> str:
    if not 3 <= len(name) <= 63:
        raise ValidationError(f"Bucket name must be 3 to 63 characters: {name!r}", bucket=name)
    if name.startswith(".") or name.endswith(".") or ".." in name:
        raise ValidationError(f"Bucket name has misplaced dots: {name!r}", bucket=name)
    return name


def is_public_site_name(name: str, prefix: str = "www.") -> bool:
    return bool(prefix) and name.startswith(prefix)


def safe_names_for(bucket: str) -> Tuple[str, str]:
    """(lowercase bucket name, CloudFront origin id)"""
    lc = (bucket or "").lower()
    return lc, f"S3-{lc}"


def join_key(prefix: str, name: str) -> str:
    prefix = normalize_key(prefix)
    name = normalize_key(name)
    if not prefix:
        return name
    return normalize_key(f"{prefix}/{name}")
