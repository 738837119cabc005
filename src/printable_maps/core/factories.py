"""Factory classes for creating configured service instances."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import boto3

from ..processors.background import BackgroundBatchRunner
from .exceptions import ConfigurationError
from .models import AppConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    ArtifactStore,
    BatchJobRepository,
    BatchRunner,
    LoggerProtocol,
    ProjectRepository,
    S3ClientProtocol,
)
from .services import BatchJobService, MapProjectService
from .storage import (
    InMemoryBatchJobRepository,
    InMemoryProjectRepository,
    LocalArtifactStore,
    S3ArtifactStore,
)


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: int = logging.INFO) -> LoggerProtocol:
        """Create a structured logger accepting a LogContext."""
        return StructuredLogger(name, level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(**kwargs: Any) -> S3ClientProtocol:
        """Create S3 client with optional configuration."""
        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore


class ArtifactStoreFactory:
    """Factory for the configured document store."""

    @staticmethod
    def create_store(
        config: AppConfig, s3_client: Optional[S3ClientProtocol] = None
    ) -> ArtifactStore:
        if config.artifact_backend == "s3":
            if not config.s3_bucket:
                raise ConfigurationError("The s3 backend requires an S3 bucket")
            if s3_client is None:
                s3_client = S3ClientFactory.create_s3_client()
            return S3ArtifactStore(s3_client, config.s3_bucket, config.s3_prefix)
        return LocalArtifactStore(config.output_dir)


@dataclass
class ServiceBundle:
    """Everything a host needs to serve map and batch operations."""

    projects: ProjectRepository
    jobs: BatchJobRepository
    artifacts: ArtifactStore
    runner: BatchRunner
    project_service: MapProjectService
    batch_service: BatchJobService
    metrics: Optional[MetricsCollector] = None


class PrintableMapsFactory:
    """Factory wiring repositories, storage and services together."""

    @staticmethod
    def create_services(
        config: Optional[AppConfig] = None,
        logger: Optional[LoggerProtocol] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        runner: Optional[BatchRunner] = None,
        projects: Optional[ProjectRepository] = None,
        jobs: Optional[BatchJobRepository] = None,
        artifacts: Optional[ArtifactStore] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> ServiceBundle:
        """Create a fully configured set of services."""
        config = config or AppConfig()

        if logger is None:
            level = logging.DEBUG if config.debug else logging.INFO
            logger = LoggerFactory.create_logger("printable-maps.services", level)

        if projects is None:
            projects = InMemoryProjectRepository()
        if jobs is None:
            jobs = InMemoryBatchJobRepository()
        if artifacts is None:
            artifacts = ArtifactStoreFactory.create_store(config, s3_client)
        if runner is None:
            runner = BackgroundBatchRunner()

        project_service = MapProjectService(
            projects,
            artifacts,
            logger,
            metrics_collector=metrics_collector,
        )
        batch_service = BatchJobService(jobs, projects, project_service, runner, logger)

        return ServiceBundle(
            projects=projects,
            jobs=jobs,
            artifacts=artifacts,
            runner=runner,
            project_service=project_service,
            batch_service=batch_service,
            metrics=metrics_collector,
        )
