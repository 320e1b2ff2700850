from unittest.mock import patch

from fakes import FakeCloudFrontClient, FakeS3Client, distribution
from s3facade.core.settings import CDNSettings, S3Settings, Settings
from s3facade.providers.access import AccessPolicy
from s3facade.providers.cdn import DistributionProvider
from s3facade.providers.factory import build_providers
from s3facade.providers.impl.aws_clients import build_client, client_config
from s3facade.providers.impl.cdn_cloudfront import CloudFrontDistributions
from s3facade.providers.impl.cdn_disabled import DisabledDistributions
from s3facade.providers.storage import ObjectStore


def test_build_providers_shares_one_client():
    client = FakeS3Client()
    providers = build_providers(Settings(), s3_client=client)

    assert isinstance(providers.storage, ObjectStore)
    assert isinstance(providers.access, AccessPolicy)
    assert isinstance(providers.cdn, DistributionProvider)
    assert isinstance(providers.cdn, DisabledDistributions)
    assert providers.storage.client is client
    assert providers.access.client is client


def test_cloudfront_provider_is_injected_into_store():
    s3 = FakeS3Client()
    s3.buckets["site"] = {}
    cf = FakeCloudFrontClient([[distribution("E1", "site")]])
    settings = Settings(cdn=CDNSettings(provider="cloudfront", invalidate_on_upload=True))

    providers = build_providers(settings, s3_client=s3, cloudfront_client=cf)
    providers.storage.upload_string("site", "/index.html", "hi")

    assert isinstance(providers.cdn, CloudFrontDistributions)
    [inv] = cf.calls_to("create_invalidation")
    assert inv["InvalidationBatch"]["Paths"]["Items"] == ["/index.html"]


def test_client_config_carries_explicit_timeouts_and_retries():
    cfg = client_config(S3Settings(region="us-west-2", max_attempts=3, connect_timeout_seconds=2, read_timeout_seconds=7))
    assert cfg.region_name == "us-west-2"
    assert cfg.connect_timeout == 2
    assert cfg.read_timeout == 7
    assert cfg.retries == {"max_attempts": 3, "mode": "standard"}
    assert cfg.signature_version == "s3v4"


def test_build_client_passes_endpoint_and_keys_to_boto3():
    settings = S3Settings(endpoint_url="http://minio:9000", access_key_id="ak", secret_access_key="sk")
    with patch("s3facade.providers.impl.aws_clients.boto3") as boto3:
        build_client("s3", settings)
        build_client("cloudfront", settings)

    s3_call, cf_call = boto3.client.call_args_list
    assert s3_call.args == ("s3",)
    assert s3_call.kwargs["endpoint_url"] == "http://minio:9000"
    assert s3_call.kwargs["aws_access_key_id"] == "ak"
    assert s3_call.kwargs["aws_secret_access_key"] == "sk"
    assert "endpoint_url" not in cf_call.kwargs


def test_build_client_uses_credential_chain_without_keys():
    with patch("s3facade.providers.impl.aws_clients.boto3") as boto3:
        build_client("s3", S3Settings())
    kwargs = boto3.client.call_args.kwargs
    assert "aws_access_key_id" not in kwargs
    assert "endpoint_url" not in kwargs
