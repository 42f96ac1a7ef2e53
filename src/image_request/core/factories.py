"""Factory classes for creating configured pipeline instances."""

from typing import Any, Optional

import boto3
from botocore.config import Config

from ..pipeline import ImageRequestPipeline
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    LoggerProtocol,
    S3ClientProtocol,
    SecretProviderProtocol,
    SecretsManagerClientProtocol,
)
from .services import S3SourceImageFetcher, SecretsManagerSecretProvider
from .settings import HandlerSettings, load_settings


class AwsClientFactory:
    """Factory for the boto3 clients used by the collaborators."""

    @staticmethod
    def create_s3_client(**kwargs: Any) -> S3ClientProtocol:
        """Create S3 client with optional configuration."""
        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore

    @staticmethod
    def create_secrets_manager_client(timeout_seconds: float, **kwargs: Any) -> SecretsManagerClientProtocol:
        """Create a Secrets Manager client with a bounded timeout and one attempt."""
        config = Config(
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        )
        session = boto3.Session()
        return session.client("secretsmanager", config=config, **kwargs)  # type: ignore


class ImageRequestPipelineFactory:
    """Factory for creating the complete request pipeline."""

    @staticmethod
    def create_pipeline(
        settings: Optional[HandlerSettings] = None,
        secrets_client: Optional[SecretsManagerClientProtocol] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        secret_provider: Optional[SecretProviderProtocol] = None,
    ) -> ImageRequestPipeline:
        """
        Create a fully configured pipeline.

        Settings default to the environment. AWS clients are only created
        for the features that need them: Secrets Manager when signing is
        enabled, S3 always (for `setup`).
        """
        if settings is None:
            settings = load_settings()

        if logger is None:
            logger = StructuredLogger("image_request")

        if secret_provider is None and settings.enable_signature:
            if secrets_client is None:
                secrets_client = AwsClientFactory.create_secrets_manager_client(
                    settings.secret_timeout_seconds
                )
            secret_provider = SecretsManagerSecretProvider(secrets_client, logger)

        if s3_client is None:
            s3_client = AwsClientFactory.create_s3_client()
        fetcher = S3SourceImageFetcher(s3_client, logger)

        return ImageRequestPipeline(
            settings=settings,
            logger=logger,
            secret_provider=secret_provider,
            fetcher=fetcher,
            metrics_collector=metrics_collector,
        )
