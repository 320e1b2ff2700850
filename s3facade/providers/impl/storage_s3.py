from __future__ import annotations

import logging
import os
import posixpath
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple
from urllib.parse import quote

from s3facade.core.content_types import guess_content_type
from s3facade.core.errors import (
    AlreadyExistsError,
    NotFoundError,
    ProviderError,
    StorageError,
    ValidationError,
    translate_errors,
)
from s3facade.core.keys import (
    is_public_site_name,
    join_key,
    normalize_key,
    require_key,
    safe_names_for,
    sanitize_bucket_name,
    validate_bucket_name,
)
from s3facade.core.settings import S3Settings, Settings, get_settings
from s3facade.providers.cdn import DistributionProvider
from s3facade.providers.impl.access_s3 import S3AccessPolicy
from s3facade.providers.impl.aws_clients import build_client
from s3facade.providers.models import BulkResult, MoveResult, ObjectSummary, UploadResult
from s3facade.providers.policy import build_public_read_policy
from s3facade.providers.storage import ObjectStore, PathLike

logger = logging.getLogger(__name__)


class S3ObjectStore(ObjectStore):
    """
    Bucket and object operations over a boto3 S3 client.

    Keys:
      - Leading slashes are removed from every key and prefix; S3 web sites
        add one, and objects stored with one can't be fetched by browsers.

    Errors:
      - Mutating calls raise NotFoundError / AlreadyExistsError /
        ValidationError / ProviderError.
      - Syncing the local mtime after an upload is best effort (logged,
        reported in UploadResult.timestamp_synced).
      - delete_prefix / empty_bucket / upload_tree / download_tree report
        per-key outcomes in a BulkResult; nothing is rolled back.
      - move() is copy-then-delete. If the delete fails the object exists
        in both places and MoveResult says so.
    """

    def __init__(
        self,
        client: Any,
        settings: Optional[S3Settings] = None,
        access: Optional[S3AccessPolicy] = None,
        distributions: Optional[DistributionProvider] = None,
        invalidate_on_upload: bool = False,
    ):
        self.client = client
        self.settings = settings or S3Settings()
        self.access = access or S3AccessPolicy(client, self.settings)
        self.distributions = distributions
        self.invalidate_on_upload = invalidate_on_upload

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        distributions: Optional[DistributionProvider] = None,
    ) -> "S3ObjectStore":
        client = build_client("s3", settings.s3)
        return cls(
            client,
            settings=settings.s3,
            distributions=distributions,
            invalidate_on_upload=settings.cdn.invalidate_on_upload,
        )

    @classmethod
    def from_env(cls) -> "S3ObjectStore":
        return cls.from_settings(get_settings())

    # -----------------------------
    # Buckets
    # -----------------------------

    def bucket_names(self) -> List[str]:
        with translate_errors():
            resp = self.client.list_buckets()
        return [b.get("Name") for b in resp.get("Buckets") or [] if b.get("Name")]

    def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.bucket_names()

    def bucket_location(self, bucket: str) -> str:
        with translate_errors(bucket):
            resp = self.client.get_bucket_location(Bucket=bucket)
        # us-east-1 is reported as a null constraint
        return resp.get("LocationConstraint") or "us-east-1"

    def create_bucket(self, name: str, public_site: Optional[bool] = None) -> str:
        """
        Returns the sanitized bucket name actually created.

        public_site=None follows the naming convention: names starting with
        settings.public_site_prefix ("www.") get the public-read policy and
        website hosting. Pass True/False to decide explicitly.
        """
        sanitized = sanitize_bucket_name(name)
        if sanitized != name:
            logger.warning("[S3] invalid characters removed from bucket name; %r -> %r", name, sanitized)
        validate_bucket_name(sanitized)

        if self.bucket_exists(sanitized):
            raise AlreadyExistsError(f"Bucket '{sanitized}' exists.", bucket=sanitized)

        kwargs: Dict[str, Any] = {"Bucket": sanitized}
        # Without an explicit region, the client resolved one from the AWS profile
        region = self.settings.region or getattr(getattr(self.client, "meta", None), "region_name", None)
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        with translate_errors(sanitized):
            self.client.create_bucket(**kwargs)
        logger.info("[S3] bucket created bucket=%s", sanitized)

        if public_site is None:
            public_site = is_public_site_name(sanitized, self.settings.public_site_prefix)
        if public_site:
            self.access.remove_public_access_block(sanitized)
            self.access.apply_policy(sanitized, build_public_read_policy(sanitized))
            self.enable_website(sanitized)

        return sanitized

    def empty_bucket(self, bucket: str) -> BulkResult:
        return self.delete_prefix(bucket, "")

    def delete_bucket(self, bucket: str) -> None:
        """Empties the bucket first; raises if any object could not be deleted."""
        result = self.empty_bucket(bucket)
        if not result.ok:
            raise ProviderError(
                f"Bucket '{bucket}' not deleted; {len(result.failed)} object(s) remain: "
                + ", ".join(sorted(result.failed)[:10]),
                bucket=bucket,
            )
        with translate_errors(bucket):
            self.client.delete_bucket(Bucket=bucket)
        logger.info("[S3] bucket deleted bucket=%s", bucket)

    def enable_website(self, bucket: str, error_page: Optional[str] = None) -> None:
        config: Dict[str, Any] = {"IndexDocument": {"Suffix": self.settings.website_index}}
        if error_page:
            config["ErrorDocument"] = {"Key": normalize_key(error_page)}
        with translate_errors(bucket):
            self.client.put_bucket_website(Bucket=bucket, WebsiteConfiguration=config)

    def disable_website(self, bucket: str) -> None:
        with translate_errors(bucket):
            self.client.delete_bucket_website(Bucket=bucket)

    def is_website_enabled(self, bucket: str) -> bool:
        try:
            with translate_errors(bucket):
                self.client.get_bucket_website(Bucket=bucket)
        except NotFoundError as e:
            if e.code == "NoSuchBucket":
                raise
            return False
        return True

    # -----------------------------
    # Listing
    # -----------------------------

    def list_by_prefix(self, bucket: str, prefix: Optional[str] = "") -> List[ObjectSummary]:
        """
        Every object under the prefix, in page order. Pages are fetched one
        after another until the listing is no longer truncated.
        """
        pre = normalize_key(prefix)
        out: List[ObjectSummary] = []
        token: Optional[str] = None

        while True:
            kwargs: Dict[str, Any] = {
                "Bucket": bucket,
                "Prefix": pre,
                "MaxKeys": self.settings.list_page_size,
            }
            if token:
                kwargs["ContinuationToken"] = token

            with translate_errors(bucket, pre):
                resp = self.client.list_objects_v2(**kwargs)
            for raw in resp.get("Contents") or []:
                out.append(ObjectSummary.from_listing(raw))

            token = resp.get("NextContinuationToken")
            if not resp.get("IsTruncated") or not token:
                break

        return out

    def list_keys(self, bucket: str, prefix: Optional[str] = "", show_size: bool = True) -> List[str]:
        if show_size:
            return [f"{s.key} (size = {s.size})" for s in self.list_by_prefix(bucket, prefix)]
        return [s.key for s in self.list_by_prefix(bucket, prefix)]

    def one_object(self, bucket: str, key: str) -> Optional[ObjectSummary]:
        """Summary of the object stored at exactly this key, if any."""
        k = require_key(key, bucket)
        with translate_errors(bucket, k):
            resp = self.client.list_objects_v2(Bucket=bucket, Prefix=k, MaxKeys=1)
        for raw in resp.get("Contents") or []:
            if raw.get("Key") == k:
                return ObjectSummary.from_listing(raw)
        return None

    # -----------------------------
    # Uploads
    # -----------------------------

    def _put(self, bucket: str, key: str, body: Any, length: Optional[int] = None) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": guess_content_type(key),
            "ContentEncoding": "utf-8",
        }
        if length is not None:
            kwargs["ContentLength"] = int(length)
        with translate_errors(bucket, key):
            resp = self.client.put_object(**kwargs)
        self._after_write(bucket, key)
        return resp

    def _after_write(self, bucket: str, key: str) -> None:
        if not (self.invalidate_on_upload and self.distributions):
            return
        try:
            self.distributions.invalidate(bucket, [key])
        except StorageError:
            # The object is stored; a stale CDN copy is not an upload failure
            logger.exception("[S3] CDN invalidation failed bucket=%s key=%s", bucket, key)

    def _sync_local_mtime(self, bucket: str, key: str, path: Path) -> Tuple[Optional[datetime], bool]:
        """
        S3 ignores the Last-Modified sent with an upload and stamps its own
        time. Copy the remote time onto the local file so both sides match.
        Returns (remote LastModified or None, synced).
        """
        try:
            with translate_errors(bucket, key):
                head = self.client.head_object(Bucket=bucket, Key=key)
            remote = head.get("LastModified")
            if remote is None:
                return None, False
            atime = path.stat().st_atime
            os.utime(path, (atime, remote.timestamp()))
            return remote, True
        except (ProviderError, NotFoundError, OSError) as e:
            logger.warning("[S3] could not sync local mtime bucket=%s key=%s path=%s: %s", bucket, key, path, e)
            return None, False

    def upload(self, bucket: str, key: str, source: PathLike) -> UploadResult:
        k = require_key(key, bucket)
        path = Path(source)
        with path.open("rb") as f:
            resp = self._put(bucket, k, f)

        remote, synced = self._sync_local_mtime(bucket, k, path)
        return UploadResult(
            bucket=bucket,
            key=k,
            etag=(resp.get("ETag") or "").strip('"'),
            version_id=resp.get("VersionId"),
            last_modified=remote,
            timestamp_synced=synced,
        )

    def upload_string(self, bucket: str, key: str, contents: str) -> UploadResult:
        k = require_key(key, bucket)
        data = (contents or "").encode("utf-8")
        resp = self._put(bucket, k, data, length=len(data))
        return UploadResult(bucket=bucket, key=k, etag=(resp.get("ETag") or "").strip('"'), version_id=resp.get("VersionId"))

    def upload_stream(self, bucket: str, key: str, stream: BinaryIO, length: int) -> UploadResult:
        k = require_key(key, bucket)
        resp = self._put(bucket, k, stream, length=length)
        return UploadResult(bucket=bucket, key=k, etag=(resp.get("ETag") or "").strip('"'), version_id=resp.get("VersionId"))

    def upload_tree(self, bucket: str, dest: str, path: PathLike) -> BulkResult:
        """
        Upload a file, or a directory recursively. Each file is stored at
        dest/<path relative to the directory>; a single file at dest/<name>.
        """
        root = Path(path)
        if root.is_file():
            files = [(root, root.name)]
        elif root.is_dir():
            files = [(p, p.relative_to(root).as_posix()) for p in sorted(root.rglob("*")) if p.is_file()]
        else:
            raise FileNotFoundError(str(root))

        succeeded: List[str] = []
        failed: Dict[str, str] = {}
        for file_path, rel in files:
            k = join_key(dest, rel)
            try:
                self.upload(bucket, k, file_path)
                succeeded.append(k)
            except (StorageError, OSError) as e:
                logger.warning("[S3] upload failed bucket=%s key=%s: %s", bucket, k, e)
                failed[k] = str(e)
        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    # -----------------------------
    # Downloads
    # -----------------------------

    def download(self, bucket: str, key: str):
        """
        botocore StreamingBody read straight off the connection. Single pass;
        read it to the end or close() it to release the connection.
        """
        k = require_key(key, bucket)
        with translate_errors(bucket, k):
            resp = self.client.get_object(Bucket=bucket, Key=k)
        return resp["Body"]

    def download_as_string(self, bucket: str, key: str) -> str:
        body = self.download(bucket, key)
        try:
            with translate_errors(bucket, key):
                return body.read().decode("utf-8")
        finally:
            body.close()

    def download_tree(self, bucket: str, prefix: str, dest_dir: PathLike) -> BulkResult:
        """
        Download every object under prefix to dest_dir, keeping the key
        layout below the prefix.

        A prefix without a trailing "/" names a folder: "site" covers
        "site/a" and the object "site" itself, never "sitea".
        """
        pre = normalize_key(prefix)
        root = Path(dest_dir).resolve()
        succeeded: List[str] = []
        failed: Dict[str, str] = {}
        written: Dict[Path, str] = {}

        for summary in self.list_by_prefix(bucket, pre):
            key = summary.key
            if key.endswith("/"):
                continue  # folder placeholder
            if pre and not pre.endswith("/") and key != pre and key[len(pre)] != "/":
                continue  # sibling of the folder, e.g. "sitemap.xml" for "site"
            rel = key[len(pre):].lstrip("/") or posixpath.basename(key)
            target = (root / rel).resolve()
            if root not in target.parents:
                failed[key] = f"key escapes destination directory: {target}"
                continue
            if target in written:
                failed[key] = f"target {target} already written from key {written[target]!r}"
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                body = self.download(bucket, key)
                try:
                    with translate_errors(bucket, key), target.open("wb") as f:
                        for chunk in iter(lambda: body.read(1024 * 1024), b""):
                            f.write(chunk)
                finally:
                    body.close()
                succeeded.append(key)
                written[target] = key
            except (StorageError, OSError) as e:
                logger.warning("[S3] download failed bucket=%s key=%s: %s", bucket, key, e)
                failed[key] = str(e)

        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    # -----------------------------
    # Delete / move
    # -----------------------------

    def delete_object(self, bucket: str, key: str) -> None:
        """Unless the bucket is versioned there is no undelete."""
        k = require_key(key, bucket)
        with translate_errors(bucket, k):
            self.client.delete_object(Bucket=bucket, Key=k)

    def delete_prefix(self, bucket: str, prefix: str) -> BulkResult:
        """
        Best-effort bulk delete: every key under the prefix is deleted one
        at a time. A listing failure raises; per-key failures are collected.
        """
        succeeded: List[str] = []
        failed: Dict[str, str] = {}

        for summary in self.list_by_prefix(bucket, prefix):
            try:
                with translate_errors(bucket, summary.key):
                    self.client.delete_object(Bucket=bucket, Key=summary.key)
                succeeded.append(summary.key)
            except StorageError as e:
                logger.warning("[S3] delete failed bucket=%s key=%s: %s", bucket, summary.key, e)
                failed[summary.key] = str(e)

        if failed:
            logger.warning(
                "[S3] delete_prefix partial bucket=%s prefix=%s deleted=%s failed=%s",
                bucket, prefix, len(succeeded), len(failed),
            )
        return BulkResult(succeeded=tuple(succeeded), failed=failed)

    def move(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> MoveResult:
        """
        Copy then delete; metadata is copied with the object. Not atomic: a
        failed delete leaves the object at both keys (source_deleted=False).
        """
        sk = require_key(src_key, src_bucket)
        dk = require_key(dst_key, dst_bucket)
        if (src_bucket, sk) == (dst_bucket, dk):
            raise ValidationError(
                f"Cannot move {src_bucket}/{sk} onto itself.", bucket=src_bucket, key=sk,
            )

        with translate_errors(dst_bucket, dk):
            self.client.copy_object(
                CopySource={"Bucket": src_bucket, "Key": sk},
                Bucket=dst_bucket,
                Key=dk,
                MetadataDirective="COPY",
            )

        try:
            with translate_errors(src_bucket, sk):
                self.client.delete_object(Bucket=src_bucket, Key=sk)
        except (ProviderError, NotFoundError) as e:
            logger.warning(
                "[S3] move copied but source not deleted; object exists at both %s/%s and %s/%s: %s",
                src_bucket, sk, dst_bucket, dk, e,
            )
            return MoveResult(
                src_bucket=src_bucket, src_key=sk, dst_bucket=dst_bucket, dst_key=dk,
                copied=True, source_deleted=False, error=str(e),
            )

        self._after_write(dst_bucket, dk)
        return MoveResult(
            src_bucket=src_bucket, src_key=sk, dst_bucket=dst_bucket, dst_key=dk,
            copied=True, source_deleted=True,
        )

    # -----------------------------
    # Names / URLs
    # -----------------------------

    def resource_url(self, bucket: str, key: str) -> str:
        """Unsigned URL; only fetchable when the object is public."""
        k = quote(normalize_key(key))
        if self.settings.endpoint_url:
            return f"{self.settings.endpoint_url.rstrip('/')}/{bucket}/{k}"
        region = self.settings.region
        if region and region != "us-east-1":
            return f"https://{bucket}.s3.{region}.amazonaws.com/{k}"
        return f"https://{bucket}.s3.amazonaws.com/{k}"

    def safe_names_for(self, bucket: str) -> Tuple[str, str]:
        return safe_names_for(bucket)
