from __future__ import annotations

from typing import Optional, Protocol, Sequence, Union, runtime_checkable

from s3facade.providers.models import PresignedPost
from s3facade.providers.policy import PolicyStatement

PolicyInput = Union[str, Sequence[PolicyStatement]]


@runtime_checkable
class AccessPolicy(Protocol):
    """
    Bucket policies, CORS, and signed access to objects.
    """

    def apply_policy(self, bucket: str, policy: PolicyInput) -> bool: ...

    def get_policy(self, bucket: str) -> Optional[str]: ...

    def delete_policy(self, bucket: str) -> None: ...

    def remove_public_access_block(self, bucket: str) -> None: ...

    def enable_cors(self, bucket: str, origins: Sequence[str] = ("*",)) -> None: ...

    def disable_cors(self, bucket: str) -> None: ...

    def presign_url(self, bucket: str, key: str, expires_in: Optional[int] = None) -> str: ...

    def sign_url(self, bucket: str, url: str, minutes_valid: int = 60) -> str: ...

    def presign_post(
        self,
        bucket: str,
        key: str,
        content_length: int,
        acl: str = "private",
        expires_in: int = 3600,
    ) -> PresignedPost: ...
