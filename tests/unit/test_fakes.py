"""Tests for fake implementations to ensure they work correctly."""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError

from image_request.core.exceptions import SecretError
from image_request.testing.fakes import (
    FakeLogger,
    FakeS3Client,
    FakeSecretProvider,
    FakeSecretsManagerClient,
    S3Bucket,
    S3Object,
    create_test_image,
    encode_default_request,
    expires_in,
    format_expires,
    setup_test_s3_environment,
)


class TestFakeS3Client:
    """Tests for FakeS3Client to ensure it behaves correctly."""

    def test_create_bucket(self):
        client = FakeS3Client()

        bucket = client.create_bucket("test-bucket")

        assert bucket.name == "test-bucket"
        assert len(bucket.objects) == 0
        assert client.get_bucket("test-bucket") is bucket

    def test_get_object_success(self):
        """Test successful object retrieval."""
        client = FakeS3Client()
        client.create_bucket("test-bucket").add_object("test.jpg", b"test image data")

        response = client.get_object(Bucket="test-bucket", Key="test.jpg")

        assert response["Body"].read() == b"test image data"
        assert response["ContentType"] == "image/jpeg"
        assert response["ContentLength"] == len(b"test image data")
        assert "CacheControl" not in response

    @pytest.mark.parametrize(
        "bucket,key,code",
        [("missing", "test.jpg", "NoSuchBucket"), ("test-bucket", "missing.jpg", "NoSuchKey")],
    )
    def test_get_object_errors(self, bucket, key, code):
        client = FakeS3Client()
        client.create_bucket("test-bucket")

        with pytest.raises(ClientError) as exc_info:
            client.get_object(Bucket=bucket, Key=key)

        assert exc_info.value.response["Error"]["Code"] == code

    def test_failure_mode(self):
        client = FakeS3Client()
        client.create_bucket("test-bucket").add_object("a.jpg", b"data")
        client.set_failure_mode("SlowDown", times=1)

        with pytest.raises(ClientError) as exc_info:
            client.get_object(Bucket="test-bucket", Key="a.jpg")
        assert exc_info.value.response["Error"]["Code"] == "SlowDown"

        assert client.get_object(Bucket="test-bucket", Key="a.jpg")["Body"].read() == b"data"
        assert len(client.calls) == 2


class TestFakeSecrets:
    """Tests for the secret fakes."""

    def test_secrets_manager_client(self):
        client = FakeSecretsManagerClient({"name": "value"})

        assert client.get_secret_value(SecretId="name")["SecretString"] == "value"
        with pytest.raises(ClientError):
            client.get_secret_value(SecretId="other")
        assert client.call_count == 2

    def test_secret_provider(self):
        provider = FakeSecretProvider({"name": "value"})

        assert provider.get_secret("name") == "value"
        with pytest.raises(SecretError):
            FakeSecretProvider({"name": "value"}, should_fail=True).get_secret("name")
        assert provider.requested == ["name"]


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_logging_levels(self):
        logger = FakeLogger()

        logger.debug("Debug message")
        logger.info("Info message", extra="value")
        logger.warning("Warning message")
        logger.error("Error message")

        assert [log["level"] for log in logger.get_logs()] == ["DEBUG", "INFO", "WARNING", "ERROR"]
        assert logger.get_logs("INFO")[0]["extra"] == "value"

        logger.clear_logs()
        assert logger.get_logs() == []


class TestHelpers:
    """Tests for request building helpers."""

    def test_create_test_image(self):
        assert create_test_image(10, 10)[:2] == b"\xff\xd8"
        assert create_test_image(10, 10, "PNG")[:4] == b"\x89PNG"

    def test_encode_default_request(self):
        path = encode_default_request("validBucket", "validKey", edits={"grayscale": True}, output_format="png")

        assert path.startswith("/")
        assert json.loads(base64.b64decode(path[1:])) == {
            "bucket": "validBucket",
            "key": "validKey",
            "edits": {"grayscale": True},
            "outputFormat": "png",
        }

    def test_expiry_helpers(self):
        now = datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert format_expires(now) == "20300102T030405Z"
        assert expires_in(timedelta(seconds=1), now=now) == "20300102T030406Z"

    def test_setup_test_s3_environment(self):
        client = setup_test_s3_environment()

        assert isinstance(client.get_bucket("validBucket"), S3Bucket)
        assert isinstance(client.get_bucket("validBucket").get_object("validKey"), S3Object)
        assert client.get_bucket("fallbackBucket").get_object("fallback.jpg") is not None
