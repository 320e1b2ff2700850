from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import unquote, urlparse

from s3facade.core.errors import NotFoundError, translate_errors
from s3facade.core.keys import normalize_key, require_key
from s3facade.core.settings import S3Settings
from s3facade.providers.access import AccessPolicy, PolicyInput
from s3facade.providers.models import PresignedPost
from s3facade.providers.policy import policy_from_statements, same_policy

logger = logging.getLogger(__name__)

CORS_METHODS = ("GET", "HEAD", "PUT", "POST", "DELETE")


class S3AccessPolicy(AccessPolicy):
    """
    Bucket policy, CORS and presigning on top of a boto3 S3 client.

    Writes fail loud with StorageError subclasses. apply_policy reads the
    current policy first and skips the write when nothing would change.
    """

    def __init__(self, client: Any, settings: Optional[S3Settings] = None):
        self.client = client
        self.settings = settings or S3Settings()

    # -----------------------------
    # Bucket policy
    # -----------------------------

    def get_policy(self, bucket: str) -> Optional[str]:
        try:
            with translate_errors(bucket):
                resp = self.client.get_bucket_policy(Bucket=bucket)
        except NotFoundError as e:
            # A missing bucket is still an error; only a missing policy means "none"
            if e.code == "NoSuchBucket":
                raise
            return None
        return resp.get("Policy")

    def apply_policy(self, bucket: str, policy: PolicyInput) -> bool:
        """
        Idempotent. Returns True when the remote policy was changed.
        """
        policy_json = policy if isinstance(policy, str) else policy_from_statements(list(policy))

        current = self.get_policy(bucket)
        if same_policy(current, policy_json):
            logger.debug("[S3] policy unchanged bucket=%s", bucket)
            return False

        with translate_errors(bucket):
            self.client.put_bucket_policy(Bucket=bucket, Policy=policy_json)
        logger.info("[S3] policy applied bucket=%s", bucket)
        return True

    def delete_policy(self, bucket: str) -> None:
        with translate_errors(bucket):
            self.client.delete_bucket_policy(Bucket=bucket)

    def remove_public_access_block(self, bucket: str) -> None:
        """
        New buckets block public policies by default; a public site has to
        lift the block before the public-read policy is accepted.
        """
        with translate_errors(bucket):
            self.client.delete_public_access_block(Bucket=bucket)

    # -----------------------------
    # CORS
    # -----------------------------

    def enable_cors(self, bucket: str, origins: Sequence[str] = ("*",)) -> None:
        rule = {
            "AllowedMethods": list(CORS_METHODS),
            "AllowedOrigins": list(origins) or ["*"],
            "AllowedHeaders": ["*"],
        }
        with translate_errors(bucket):
            self.client.put_bucket_cors(Bucket=bucket, CORSConfiguration={"CORSRules": [rule]})

    def disable_cors(self, bucket: str) -> None:
        with translate_errors(bucket):
            self.client.delete_bucket_cors(Bucket=bucket)

    # -----------------------------
    # Signed access
    # -----------------------------

    def presign_url(self, bucket: str, key: str, expires_in: Optional[int] = None) -> str:
        """
        A new signature on every call; the URL stops working after
        expires_in seconds (default: settings.presign_ttl_seconds).
        """
        k = require_key(key, bucket)
        ttl = self.settings.presign_ttl_seconds if expires_in is None else int(expires_in)
        with translate_errors(bucket, k):
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": k},
                ExpiresIn=max(1, ttl),
            )

    def sign_url(self, bucket: str, url: str, minutes_valid: int = 60) -> str:
        key = normalize_key(unquote(urlparse(url).path))
        # Path-style URLs carry the bucket as the first path segment
        if key.startswith(f"{bucket}/"):
            key = key[len(bucket) + 1:]
        return self.presign_url(bucket, key, expires_in=max(1, int(minutes_valid)) * 60)

    def presign_post(
        self,
        bucket: str,
        key: str,
        content_length: int,
        acl: str = "private",
        expires_in: int = 3600,
    ) -> PresignedPost:
        """
        Browser upload form limited to one key, one ACL and at most
        content_length bytes.
        """
        k = require_key(key, bucket)
        fields: Dict[str, str] = {"acl": acl}
        conditions: List[Any] = [
            {"acl": acl},
            ["content-length-range", 0, max(0, int(content_length))],
        ]
        with translate_errors(bucket, k):
            resp = self.client.generate_presigned_post(
                Bucket=bucket,
                Key=k,
                Fields=fields,
                Conditions=conditions,
                ExpiresIn=max(1, int(expires_in)),
            )
        return PresignedPost(url=resp["url"], fields={str(a): str(b) for a, b in resp["fields"].items()})
