from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, List, Optional, Sequence

from s3facade.core.errors import translate_errors
from s3facade.providers.cdn import DistributionProvider
from s3facade.providers.models import DistributionSummary, DistributionUpdate

logger = logging.getLogger(__name__)


_S3_ORIGIN = re.compile(r"^(?P<bucket>.+)\.s3(?:[.-][a-z0-9-]+)*\.amazonaws\.com(?:\.cn)?$")


def _bucket_from_origin(domain: str) -> Optional[str]:
    # mybucket.s3.amazonaws.com, mybucket.s3.us-west-2.amazonaws.com,
    # mybucket.s3-website-us-east-1.amazonaws.com
    # Custom origins (anything not on amazonaws.com) never name a bucket
    m = _S3_ORIGIN.match((domain or "").lower())
    return m.group("bucket") if m else None


class CloudFrontDistributions(DistributionProvider):
    """
    CloudFront distributions whose origin is an S3 bucket.
    """

    def __init__(self, client: Any):
        self.client = client

    def _all_distributions(self) -> List[DistributionSummary]:
        out: List[DistributionSummary] = []
        marker: Optional[str] = None

        while True:
            kwargs: Dict[str, Any] = {}
            if marker:
                kwargs["Marker"] = marker

            with translate_errors():
                resp = self.client.list_distributions(**kwargs)
            dist_list = resp.get("DistributionList") or {}
            for raw in dist_list.get("Items") or []:
                out.append(DistributionSummary.from_listing(raw))

            marker = dist_list.get("NextMarker")
            if not dist_list.get("IsTruncated") or not marker:
                break

        return out

    def distributions_for(self, bucket: str) -> List[DistributionSummary]:
        return [
            d for d in self._all_distributions()
            if any(_bucket_from_origin(o) == bucket for o in d.origin_domains)
        ]

    def bucket_names_with_distributions(self) -> List[str]:
        names = set()
        for d in self._all_distributions():
            for origin in d.origin_domains:
                name = _bucket_from_origin(origin)
                if name:
                    names.add(name)
        return sorted(names)

    def invalidate(self, bucket: str, paths: Sequence[str]) -> int:
        """
        Distribution paths are absolute ("/index.html", "/assets/*"), unlike
        object keys. Returns the number of invalidations submitted.
        """
        items = ["/" + p.lstrip("/") for p in paths if p is not None]
        if not items:
            return 0

        count = 0
        for d in self.distributions_for(bucket):
            batch = {
                "Paths": {"Quantity": len(items), "Items": items},
                "CallerReference": f"{bucket}-{time.time_ns()}",
            }
            with translate_errors(bucket):
                self.client.create_invalidation(DistributionId=d.id, InvalidationBatch=batch)
            logger.info("[CloudFront] invalidation submitted distribution=%s paths=%s", d.id, len(items))
            count += 1
        return count

    def _set_enabled(self, distribution_id: str, enabled: bool) -> DistributionUpdate:
        with translate_errors():
            resp = self.client.get_distribution_config(Id=distribution_id)
        config = resp["DistributionConfig"]
        etag = resp.get("ETag") or ""

        if bool(config.get("Enabled")) == enabled:
            return DistributionUpdate(id=distribution_id, enabled=enabled, etag=etag, changed=False)

        config["Enabled"] = enabled
        with translate_errors():
            updated = self.client.update_distribution(Id=distribution_id, IfMatch=etag, DistributionConfig=config)
        logger.info("[CloudFront] distribution=%s enabled=%s", distribution_id, enabled)
        return DistributionUpdate(id=distribution_id, enabled=enabled, etag=updated.get("ETag") or "", changed=True)

    def enable_all(self, bucket: str, enabled: bool = True) -> List[DistributionUpdate]:
        return [self._set_enabled(d.id, enabled) for d in self.distributions_for(bucket)]

    def enable_last(self, bucket: str, enabled: bool = True) -> Optional[DistributionUpdate]:
        """Most recently modified distribution for the bucket only."""
        dists = self.distributions_for(bucket)
        if not dists:
            return None
        last = max(dists, key=lambda d: d.last_modified.timestamp() if d.last_modified else 0.0)
        return self._set_enabled(last.id, enabled)
