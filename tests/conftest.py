import sys
from pathlib import Path

import pytest

# Ensure repo root is importable for local runs and CI without an install
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fakes import FakeS3Client  # noqa: E402
from s3facade.core.settings import S3Settings  # noqa: E402
from s3facade.providers.impl.storage_s3 import S3ObjectStore  # noqa: E402


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def store(s3_client: FakeS3Client) -> S3ObjectStore:
    return S3ObjectStore(s3_client, settings=S3Settings(region="us-east-1"))
