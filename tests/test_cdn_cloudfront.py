from datetime import datetime, timezone

from fakes import FakeCloudFrontClient, distribution
from s3facade.providers.impl.cdn_cloudfront import CloudFrontDistributions
from s3facade.providers.impl.cdn_disabled import DisabledDistributions


def _cdn(pages):
    client = FakeCloudFrontClient(pages)
    return client, CloudFrontDistributions(client)


def test_distributions_for_follows_markers():
    client, cdn = _cdn([
        [distribution("E1", "site"), distribution("E2", "other")],
        [distribution("E3", "site")],
    ])

    found = cdn.distributions_for("site")

    assert [d.id for d in found] == ["E1", "E3"]
    assert len(client.calls_to("list_distributions")) == 2
    assert client.calls_to("list_distributions")[1] == {"Marker": "1"}


def test_bucket_names_with_distributions():
    _, cdn = _cdn([[distribution("E1", "site"), distribution("E2", "blog"), distribution("E3", "site")]])
    assert cdn.bucket_names_with_distributions() == ["blog", "site"]


def test_invalidate_adds_leading_slash_per_distribution():
    client, cdn = _cdn([[distribution("E1", "site"), distribution("E2", "site"), distribution("E3", "other")]])

    count = cdn.invalidate("site", ["index.html", "/css/*"])

    assert count == 2
    calls = client.calls_to("create_invalidation")
    assert [c["DistributionId"] for c in calls] == ["E1", "E2"]
    assert calls[0]["InvalidationBatch"]["Paths"] == {"Quantity": 2, "Items": ["/index.html", "/css/*"]}


def test_invalidate_without_paths_or_distributions_is_zero():
    client, cdn = _cdn([[distribution("E1", "site")]])
    assert cdn.invalidate("site", []) == 0
    assert cdn.invalidate("nobody", ["/x"]) == 0
    assert client.calls_to("create_invalidation") == []


def test_enable_all_updates_only_changed_distributions():
    client, cdn = _cdn([[distribution("E1", "site", enabled=True), distribution("E2", "site", enabled=False)]])

    results = cdn.enable_all("site", enabled=False)

    assert [(r.id, r.changed) for r in results] == [("E1", True), ("E2", False)]
    [update] = client.calls_to("update_distribution")
    assert update["Id"] == "E1"
    assert update["IfMatch"] == "E-E1"
    assert update["DistributionConfig"]["Enabled"] is False


def test_enable_last_picks_most_recently_modified():
    older = datetime(2020, 1, 1, tzinfo=timezone.utc)
    newer = datetime(2022, 1, 1, tzinfo=timezone.utc)
    client, cdn = _cdn([[
        distribution("E1", "site", enabled=False, modified=newer),
        distribution("E2", "site", enabled=False, modified=older),
    ]])

    result = cdn.enable_last("site")

    assert result.id == "E1"
    assert result.enabled is True
    assert [c["Id"] for c in client.calls_to("update_distribution")] == ["E1"]


def test_enable_last_without_distributions():
    _, cdn = _cdn([[]])
    assert cdn.enable_last("site") is None


def test_disabled_distributions_do_nothing():
    cdn = DisabledDistributions()
    assert cdn.invalidate("b", ["/x"]) == 0
    assert cdn.distributions_for("b") == []
    assert cdn.enable_all("b") == []
    assert cdn.enable_last("b") is None
    assert cdn.bucket_names_with_distributions() == []


def test_custom_origins_are_not_bucket_origins():
    client, cdn = _cdn([[
        distribution("E1", "api", origin="api.s3cure-payments.com"),
        distribution("E2", "api", origin="api.s3.eu-west-1.amazonaws.com"),
        distribution("E3", "www.example.com", origin="www.example.com.s3-website-us-east-1.amazonaws.com"),
    ]])

    assert [d.id for d in cdn.distributions_for("api")] == ["E2"]
    assert cdn.bucket_names_with_distributions() == ["api", "www.example.com"]

    cdn.enable_all("api", enabled=False)
    assert [c["Id"] for c in client.calls_to("update_distribution")] == ["E2"]
