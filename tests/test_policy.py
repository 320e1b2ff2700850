import json

import pytest

from s3facade.providers.policy import (
    PolicyStatement,
    allow_all_statement,
    allow_some_statement,
    build_public_read_policy,
    policy_from_statements,
    same_policy,
)


def test_public_read_policy_is_valid_json_for_bucket():
    text = build_public_read_policy("mybucket")
    doc = json.loads(text)

    assert '"Resource": "arn:aws:s3:::mybucket/*"' in text
    assert doc["Version"] == "2008-10-17"
    stmt = doc["Statement"][0]
    assert stmt["Sid"] == "AddPerm"
    assert stmt["Effect"] == "Allow"
    assert stmt["Principal"] == {"AWS": "*"}
    assert stmt["Action"] == "s3:GetObject"


def test_public_read_policy_is_deterministic():
    assert build_public_read_policy("b1") == build_public_read_policy("b1")
    assert build_public_read_policy("b1") != build_public_read_policy("b2")


def test_allow_all_statement_covers_bucket_and_objects():
    stmt = allow_all_statement("data", ["arn:aws:iam::123456789012:user/alice"], "AllowAlice")
    d = stmt.to_dict()
    assert d["Sid"] == "AllowAlice"
    assert d["Action"] == "s3:*"
    assert d["Resource"] == ["arn:aws:s3:::data", "arn:aws:s3:::data/*"]
    assert d["Principal"] == {"AWS": "arn:aws:iam::123456789012:user/alice"}


def test_allow_some_statement_prefixes_actions():
    stmt = allow_some_statement("data", ["*"], ["GetObject", "s3:PutObject"], "Uploads")
    assert stmt.actions == ("s3:GetObject", "s3:PutObject")
    assert stmt.to_dict()["Action"] == ["s3:GetObject", "s3:PutObject"]


def test_allow_some_statement_requires_actions():
    with pytest.raises(ValueError):
        allow_some_statement("data", ["*"], [], "Nothing")


def test_service_principal_is_rendered_as_mapping():
    stmt = PolicyStatement(
        sid="CDN",
        principals=[{"Service": "cloudfront.amazonaws.com"}],
        actions=["s3:GetObject"],
        resources=["arn:aws:s3:::site/*"],
        condition={"StringEquals": {"AWS:SourceArn": "arn:aws:cloudfront::1:distribution/E1"}},
    )
    d = stmt.to_dict()
    assert d["Principal"] == {"Service": "cloudfront.amazonaws.com"}
    assert "Condition" in d


def test_policy_from_statements():
    doc = json.loads(policy_from_statements([allow_all_statement("b", ["*"], "All")]))
    assert doc["Version"] == "2012-10-17"
    assert len(doc["Statement"]) == 1

    with pytest.raises(ValueError):
        policy_from_statements([])


def test_same_policy_ignores_formatting():
    compact = json.dumps(json.loads(build_public_read_policy("b")))
    assert same_policy(compact, build_public_read_policy("b"))
    assert not same_policy(None, build_public_read_policy("b"))
    assert same_policy(None, None)
