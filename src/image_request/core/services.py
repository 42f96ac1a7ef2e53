"""Collaborators around the request pipeline: secret store and S3 fetch."""

import io
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from .error_handling import retry_s3_operation, with_error_handling
from .exceptions import S3Error, SecretError
from .formats import ImageFormat
from .models import ImageRequestInfo, OriginalImage
from .protocols import LoggerProtocol, S3ClientProtocol, SecretsManagerClientProtocol


class SecretsManagerSecretProvider:
    """Reads signing secrets from AWS Secrets Manager."""

    def __init__(self, client: SecretsManagerClientProtocol, logger: LoggerProtocol):
        self._client = client
        self._logger = logger

    @with_error_handling(SecretError)
    def _get_secret_value(self, name: str) -> Dict[str, Any]:
        return self._client.get_secret_value(SecretId=name)

    def get_secret(self, name: str) -> str:
        """Return the SecretString of `name`.

        Raises:
            SecretError: If the lookup fails or the secret has no string value.
        """
        self._logger.debug(f"Fetching secret {name}")
        response = self._get_secret_value(name)
        secret = response.get("SecretString")
        if not secret:
            raise SecretError(f"Secret {name} has no string value")
        return secret


def detect_format(body: bytes) -> Optional[ImageFormat]:
    """Identify the image format from its bytes, None when Pillow cannot tell."""
    try:
        with Image.open(io.BytesIO(body)) as image:
            return ImageFormat.from_pillow(image.format)
    except (UnidentifiedImageError, OSError):
        return None


class S3SourceImageFetcher:
    """Fetches the object an assembled request points at."""

    def __init__(self, s3_client: S3ClientProtocol, logger: LoggerProtocol):
        self._s3_client = s3_client
        self._logger = logger

    @retry_s3_operation()
    @with_error_handling(S3Error)
    def _get_object(self, bucket: str, key: str) -> Dict[str, Any]:
        return self._s3_client.get_object(Bucket=bucket, Key=key)

    def fetch(self, info: ImageRequestInfo) -> OriginalImage:
        """Download the original bytes and detect their format."""
        self._logger.debug(f"Downloading s3://{info.bucket}/{info.key}")
        response = self._get_object(info.bucket, info.key)
        body = response["Body"].read()

        image_format = detect_format(body)
        content_type = (
            image_format.content_type
            if image_format
            else response.get("ContentType", "application/octet-stream")
        )
        return OriginalImage(
            body=body,
            format=image_format,
            content_type=content_type,
            cache_control=response.get("CacheControl"),
            last_modified=response.get("LastModified"),
        )
