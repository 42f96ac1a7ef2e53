"""Testing utilities and fakes for the image request pipeline."""

from .fakes import (
    FakeS3Client,
    FakeSecretsManagerClient,
    FakeSecretProvider,
    FakeLogger,
    S3Object,
    S3Bucket,
    create_test_image,
    encode_default_request,
    expires_in,
    format_expires,
    setup_test_s3_environment,
    sign_path,
)

__all__ = [
    "FakeS3Client",
    "FakeSecretsManagerClient",
    "FakeSecretProvider",
    "FakeLogger",
    "S3Object",
    "S3Bucket",
    "create_test_image",
    "encode_default_request",
    "expires_in",
    "format_expires",
    "setup_test_s3_environment",
    "sign_path",
]
