from __future__ import annotations

from typing import List, Optional, Sequence

from s3facade.providers.cdn import DistributionProvider
from s3facade.providers.models import DistributionSummary, DistributionUpdate


class DisabledDistributions(DistributionProvider):
    def invalidate(self, bucket: str, paths: Sequence[str]) -> int:
        return 0

    def distributions_for(self, bucket: str) -> List[DistributionSummary]:
        return []

    def enable_all(self, bucket: str, enabled: bool = True) -> List[DistributionUpdate]:
        return []

    def enable_last(self, bucket: str, enabled: bool = True) -> Optional[DistributionUpdate]:
        return None

    def bucket_names_with_distributions(self) -> List[str]:
        return []
