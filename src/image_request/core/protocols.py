"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Protocol

from .models import ImageRequestInfo, OriginalImage


class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations the fetcher needs."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...


class SecretsManagerClientProtocol(Protocol):
    """Protocol for the Secrets Manager client operations the provider needs."""

    def get_secret_value(self, SecretId: str) -> Dict[str, Any]:
        """Get secret value from Secrets Manager."""
        ...


class SecretProviderProtocol(Protocol):
    """Source of the signing secret."""

    def get_secret(self, name: str) -> str:
        """Return the secret string, raising SecretError on failure."""
        ...


class SourceImageFetcherProtocol(Protocol):
    """Fetches the original object an assembled request points at."""

    def fetch(self, info: ImageRequestInfo) -> OriginalImage:
        """Fetch the original image bytes."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        ...
