"""
Bucket policy documents.

Everything here is pure: documents are built from the bucket name and
statement values only, and serialize the same way every time so they can
be compared against the policy already on a bucket.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

PUBLIC_READ_VERSION = "2008-10-17"
DEFAULT_POLICY_VERSION = "2012-10-17"

Principal = Union[str, Dict[str, Any]]


class PolicyStatement(BaseModel):
    """
    One element of a policy's Statement list.

    principals accepts "*" (anyone), an account/user ARN string, or a raw
    principal mapping such as {"Service": "cloudfront.amazonaws.com"}.
    """
    model_config = ConfigDict(frozen=True)

    sid: str
    effect: Literal["Allow", "Deny"] = "Allow"
    principals: Tuple[Principal, ...] = ("*",)
    actions: Tuple[str, ...]
    resources: Tuple[str, ...]
    condition: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "Sid": self.sid,
            "Effect": self.effect,
            "Principal": _render_principals(self.principals),
            "Action": _one_or_many(self.actions),
            "Resource": _one_or_many(self.resources),
        }
        if self.condition:
            out["Condition"] = self.condition
        return out


def _one_or_many(values: Sequence[str]) -> Union[str, List[str]]:
    return values[0] if len(values) == 1 else list(values)


def _render_principals(principals: Sequence[Principal]) -> Any:
    aws: List[str] = []
    merged: Dict[str, Any] = {}
    for p in principals:
        if isinstance(p, dict):
            merged.update(p)
        else:
            aws.append(str(p))
    if aws:
        merged["AWS"] = _one_or_many(aws)
    return merged


def bucket_arn(bucket: str) -> str:
    return f"arn:aws:s3:::{bucket}"


def objects_arn(bucket: str) -> str:
    return f"arn:aws:s3:::{bucket}/*"


def dumps_policy(doc: Dict[str, Any]) -> str:
    return json.dumps(doc, indent=2)


def build_public_read_policy(bucket: str) -> str:
    """Anyone may GET any object in the bucket."""
    doc = {
        "Version": PUBLIC_READ_VERSION,
        "Statement": [
            {
                "Sid": "AddPerm",
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Action": "s3:GetObject",
                "Resource": objects_arn(bucket),
            }
        ],
    }
    return dumps_policy(doc)


def policy_from_statements(
    statements: Sequence[PolicyStatement],
    version: str = DEFAULT_POLICY_VERSION,
) -> str:
    if not statements:
        raise ValueError("A bucket policy needs at least one statement")
    return dumps_policy({
        "Version": version,
        "Statement": [s.to_dict() for s in statements],
    })


def allow_all_statement(bucket: str, principals: Sequence[Principal], sid: str) -> PolicyStatement:
    """Every s3 action on the bucket and its objects."""
    return PolicyStatement(
        sid=sid,
        principals=tuple(principals),
        actions=("s3:*",),
        resources=(bucket_arn(bucket), objects_arn(bucket)),
    )


def allow_some_statement(
    bucket: str,
    principals: Sequence[Principal],
    actions: Sequence[str],
    sid: str,
) -> PolicyStatement:
    """
    Object-level actions (s3:GetObject, s3:PutObject, ...) apply to
    bucket/*; bucket-level actions (s3:ListBucket, ...) to the bucket ARN.
    Both resources are listed so either kind works.
    """
    if not actions:
        raise ValueError("allow_some_statement needs at least one action")
    return PolicyStatement(
        sid=sid,
        principals=tuple(principals),
        actions=tuple(a if a.startswith("s3:") else f"s3:{a}" for a in actions),
        resources=(bucket_arn(bucket), objects_arn(bucket)),
    )


def same_policy(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two policy documents ignoring whitespace and key order."""
    if a is None or b is None:
        return a is b
    try:
        return json.loads(a) == json.loads(b)
    except ValueError:
        return a.strip() == b.strip()
