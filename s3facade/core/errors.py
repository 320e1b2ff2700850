"""Error taxonomy shared by every façade, plus the one place SDK errors are mapped."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for all façade operations."""

    def __init__(
        self,
        message: str,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        code: str = "",
        cause: Optional[Exception] = None,
    ):
        self.bucket = bucket
        self.key = key
        self.code = code
        self.cause = cause
        super().__init__(message)


class NotFoundError(StorageError):
    """Bucket, object, or bucket sub-resource does not exist."""


class AlreadyExistsError(StorageError):
    """Bucket name collision."""


class ProviderError(StorageError):
    """Transport, auth, or service failure."""


class ValidationError(StorageError):
    """Invalid key or bucket name."""


_ERROR_CODE_MAP = {
    "NoSuchKey": NotFoundError,
    "NoSuchBucket": NotFoundError,
    "NoSuchBucketPolicy": NotFoundError,
    "NoSuchWebsiteConfiguration": NotFoundError,
    "NoSuchCORSConfiguration": NotFoundError,
    "NoSuchPublicAccessBlockConfiguration": NotFoundError,
    "NoSuchDistribution": NotFoundError,
    "NotFound": NotFoundError,
    "404": NotFoundError,
    "BucketAlreadyExists": AlreadyExistsError,
    "BucketAlreadyOwnedByYou": AlreadyExistsError,
    "InvalidBucketName": ValidationError,
    "KeyTooLongError": ValidationError,
}


def error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", "") or "")
    return ""


def translate_error(
    exc: Exception,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
) -> StorageError:
    if isinstance(exc, StorageError):
        return exc
    code = error_code(exc)
    exc_cls = _ERROR_CODE_MAP.get(code, ProviderError)
    return exc_cls(str(exc), bucket=bucket, key=key, code=code, cause=exc)


@contextmanager
def translate_errors(bucket: Optional[str] = None, key: Optional[str] = None) -> Iterator[None]:
    """
    Façade boundary: SDK exceptions leave as StorageError subclasses.

        with translate_errors(bucket, key):
            client.head_object(Bucket=bucket, Key=key)
    """
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        err = translate_error(e, bucket=bucket, key=key)
        logger.debug("%s bucket=%s key=%s code=%s", type(err).__name__, bucket, key, err.code)
        raise err from e
