from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from s3facade.providers.models import DistributionSummary, DistributionUpdate


@runtime_checkable
class DistributionProvider(Protocol):
    """
    CDN distributions fronting a bucket.

    Injected into the object store; never required by it.
    """

    def invalidate(self, bucket: str, paths: Sequence[str]) -> int: ...

    def distributions_for(self, bucket: str) -> List[DistributionSummary]: ...

    def enable_all(self, bucket: str, enabled: bool = True) -> List[DistributionUpdate]: ...

    def enable_last(self, bucket: str, enabled: bool = True) -> Optional[DistributionUpdate]: ...

    def bucket_names_with_distributions(self) -> List[str]: ...
