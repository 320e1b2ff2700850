from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol, Tuple, Union, runtime_checkable

from s3facade.providers.models import BulkResult, MoveResult, ObjectSummary, UploadResult

PathLike = Union[str, Path]


@runtime_checkable
class ObjectStore(Protocol):
    """
    Bucket and object lifecycle.

    Keys and prefixes are normalized (leading slashes stripped) before they
    reach the provider. Bulk operations are not transactional and report
    per-key outcomes.
    """

    # Buckets

    def create_bucket(self, name: str, public_site: Optional[bool] = None) -> str: ...

    def delete_bucket(self, bucket: str) -> None: ...

    def empty_bucket(self, bucket: str) -> BulkResult: ...

    def bucket_exists(self, bucket: str) -> bool: ...

    def bucket_names(self) -> List[str]: ...

    def bucket_location(self, bucket: str) -> str: ...

    def enable_website(self, bucket: str, error_page: Optional[str] = None) -> None: ...

    def disable_website(self, bucket: str) -> None: ...

    def is_website_enabled(self, bucket: str) -> bool: ...

    # Listing

    def list_by_prefix(self, bucket: str, prefix: Optional[str] = "") -> List[ObjectSummary]: ...

    def list_keys(self, bucket: str, prefix: Optional[str] = "", show_size: bool = True) -> List[str]: ...

    def one_object(self, bucket: str, key: str) -> Optional[ObjectSummary]: ...

    # Objects

    def upload(self, bucket: str, key: str, source: PathLike) -> UploadResult: ...

    def upload_string(self, bucket: str, key: str, contents: str) -> UploadResult: ...

    def upload_stream(self, bucket: str, key: str, stream: BinaryIO, length: int) -> UploadResult: ...

    def upload_tree(self, bucket: str, dest: str, path: PathLike) -> BulkResult: ...

    def download(self, bucket: str, key: str): ...

    def download_as_string(self, bucket: str, key: str) -> str: ...

    def download_tree(self, bucket: str, prefix: str, dest_dir: PathLike) -> BulkResult: ...

    def delete_object(self, bucket: str, key: str) -> None: ...

    def delete_prefix(self, bucket: str, prefix: str) -> BulkResult: ...

    def move(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> MoveResult: ...

    def resource_url(self, bucket: str, key: str) -> str: ...

    def safe_names_for(self, bucket: str) -> Tuple[str, str]: ...
