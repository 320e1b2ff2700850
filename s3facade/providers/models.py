from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ObjectSummary(_Frozen):
    """
    Read-only projection of one entry of a bucket listing.
    """
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: str = ""
    storage_class: Optional[str] = None

    @classmethod
    def from_listing(cls, raw: Dict[str, Any]) -> "ObjectSummary":
        return cls(
            key=raw.get("Key") or "",
            size=int(raw.get("Size") or 0),
            last_modified=raw.get("LastModified"),
            etag=(raw.get("ETag") or "").strip('"'),
            storage_class=raw.get("StorageClass"),
        )


class UploadResult(_Frozen):
    """
    timestamp_synced is False when the remote LastModified could not be
    read back or applied to the local file; the upload itself succeeded.
    """
    bucket: str
    key: str
    etag: str = ""
    version_id: Optional[str] = None
    last_modified: Optional[datetime] = None
    timestamp_synced: bool = False


class MoveResult(_Frozen):
    """
    copied=True, source_deleted=False means the object now exists at both
    the source and the destination.
    """
    src_bucket: str
    src_key: str
    dst_bucket: str
    dst_key: str
    copied: bool
    source_deleted: bool
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.copied and self.source_deleted


class BulkResult(_Frozen):
    """
    Outcome of a multi-object operation. Partial completion is a valid
    terminal state: failed maps each key to its error message.
    """
    succeeded: Tuple[str, ...] = ()
    failed: Dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return not self.failed

    def __hash__(self) -> int:
        return hash((self.succeeded, tuple(sorted(self.failed.items()))))


class PresignedPost(_Frozen):
    """Form target for a browser upload: POST `fields` plus the file to `url`."""
    url: str
    fields: Dict[str, str]


class DistributionSummary(_Frozen):
    id: str
    domain_name: str
    origin_domains: Tuple[str, ...] = ()
    enabled: bool = True
    status: str = ""
    last_modified: Optional[datetime] = None

    @classmethod
    def from_listing(cls, raw: Dict[str, Any]) -> "DistributionSummary":
        origins: List[str] = []
        for o in ((raw.get("Origins") or {}).get("Items") or []):
            domain = (o or {}).get("DomainName")
            if domain:
                origins.append(domain)
        return cls(
            id=raw.get("Id") or "",
            domain_name=raw.get("DomainName") or "",
            origin_domains=tuple(origins),
            enabled=bool(raw.get("Enabled", True)),
            status=raw.get("Status") or "",
            last_modified=raw.get("LastModifiedTime"),
        )


class DistributionUpdate(_Frozen):
    id: str
    enabled: bool
    etag: str = ""
    changed: bool = True
