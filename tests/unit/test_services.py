"""Unit tests for the secret provider and the source image fetcher."""

from unittest.mock import Mock, patch

import pytest

from image_request.core.exceptions import S3Error, SecretError
from image_request.core.formats import ImageFormat
from image_request.core.models import ImageRequestInfo
from image_request.core.services import (
    S3SourceImageFetcher,
    SecretsManagerSecretProvider,
    detect_format,
)
from image_request.testing.fakes import (
    FakeLogger,
    FakeSecretsManagerClient,
    create_test_image,
    setup_test_s3_environment,
)


def _info(bucket="validBucket", key="validKey"):
    return ImageRequestInfo(bucket=bucket, key=key, cache_control="max-age=1")


class TestSecretsManagerSecretProvider:
    """Tests for SecretsManagerSecretProvider."""

    def test_get_secret(self):
        client = FakeSecretsManagerClient({"image-handler-secret": "s3cr3t"})
        provider = SecretsManagerSecretProvider(client, FakeLogger())

        assert provider.get_secret("image-handler-secret") == "s3cr3t"
        assert client.call_count == 1

    def test_unknown_secret(self):
        provider = SecretsManagerSecretProvider(FakeSecretsManagerClient(), FakeLogger())

        with pytest.raises(SecretError) as exc_info:
            provider.get_secret("missing")

        assert "ResourceNotFoundException" in str(exc_info.value)

    def test_binary_secret_is_unavailable(self):
        client = Mock()
        client.get_secret_value.return_value = {"Name": "binary", "SecretBinary": b"\x00"}
        provider = SecretsManagerSecretProvider(client, FakeLogger())

        with pytest.raises(SecretError):
            provider.get_secret("binary")

    def test_single_attempt(self):
        """Test that the provider does not retry on its own."""
        client = FakeSecretsManagerClient()
        provider = SecretsManagerSecretProvider(client, FakeLogger())

        with pytest.raises(SecretError):
            provider.get_secret("missing")
        assert client.call_count == 1


class TestDetectFormat:
    """Tests for format detection from bytes."""

    @pytest.mark.parametrize(
        "pillow_format,expected",
        [("JPEG", ImageFormat.JPEG), ("PNG", ImageFormat.PNG), ("GIF", ImageFormat.GIF), ("WEBP", ImageFormat.WEBP)],
    )
    def test_detects_image_formats(self, pillow_format, expected):
        assert detect_format(create_test_image(8, 8, pillow_format)) is expected

    def test_unsupported_format(self):
        assert detect_format(create_test_image(8, 8, "BMP")) is None

    def test_not_an_image(self):
        assert detect_format(b"This is not an image") is None


class TestS3SourceImageFetcher:
    """Tests for S3SourceImageFetcher."""

    def test_fetch_jpeg(self):
        fake_s3 = setup_test_s3_environment()
        fetcher = S3SourceImageFetcher(fake_s3, FakeLogger())

        original = fetcher.fetch(_info())

        assert original.format is ImageFormat.JPEG
        assert original.content_type == "image/jpeg"
        assert original.body == fake_s3.get_bucket("validBucket").get_object("validKey").body
        assert fake_s3.calls == [{"Bucket": "validBucket", "Key": "validKey"}]

    def test_fetch_png_with_nested_key(self):
        fetcher = S3SourceImageFetcher(setup_test_s3_environment(), FakeLogger())

        original = fetcher.fetch(_info(key="photos/cat.png"))

        assert original.format is ImageFormat.PNG
        assert original.content_type == "image/png"

    def test_fetch_non_image_keeps_s3_content_type(self):
        fetcher = S3SourceImageFetcher(setup_test_s3_environment(), FakeLogger())

        original = fetcher.fetch(_info(key="docs/readme.txt"))

        assert original.format is None
        assert original.content_type == "text/plain"

    def test_cache_control_metadata(self):
        fake_s3 = setup_test_s3_environment()
        fake_s3.get_bucket("validBucket").get_object("validKey").cache_control = "max-age=60"

        original = S3SourceImageFetcher(fake_s3, FakeLogger()).fetch(_info())

        assert original.cache_control == "max-age=60"

    @pytest.mark.parametrize("bucket,key", [("validBucket", "missing.jpg"), ("noBucket", "validKey")])
    def test_missing_object(self, bucket, key):
        fake_s3 = setup_test_s3_environment()
        fetcher = S3SourceImageFetcher(fake_s3, FakeLogger())

        with pytest.raises(S3Error):
            fetcher.fetch(_info(bucket, key))
        assert len(fake_s3.calls) == 1

    @patch("time.sleep", return_value=None)
    def test_throttling_is_retried(self, mock_sleep):
        fake_s3 = setup_test_s3_environment()
        fake_s3.set_failure_mode("SlowDown", times=2)
        fetcher = S3SourceImageFetcher(fake_s3, FakeLogger())

        original = fetcher.fetch(_info())

        assert original.format is ImageFormat.JPEG
        assert len(fake_s3.calls) == 3
        assert mock_sleep.call_count == 2

    @patch("time.sleep", return_value=None)
    def test_throttling_exhausts_attempts(self, mock_sleep):
        fake_s3 = setup_test_s3_environment()
        fake_s3.set_failure_mode("ThrottlingException", times=5)

        with pytest.raises(S3Error):
            S3SourceImageFetcher(fake_s3, FakeLogger()).fetch(_info())
        assert len(fake_s3.calls) == 3
