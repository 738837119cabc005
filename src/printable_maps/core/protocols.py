"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Protocol

from .models import BatchJob, MapProject


class S3ClientProtocol(Protocol):
    """Protocol for S3 client operations."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...

    def delete_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Delete object from S3."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        ...


class ProjectRepository(ABC):
    """Persistence for map projects."""

    @abstractmethod
    def add(self, project: MapProject) -> MapProject:
        ...

    @abstractmethod
    def get(self, project_id: str) -> MapProject:
        """Return the project or raise NotFoundError."""
        ...

    @abstractmethod
    def save(self, project: MapProject) -> MapProject:
        ...

    @abstractmethod
    def delete(self, project_id: str) -> None:
        ...

    @abstractmethod
    def list(self) -> List[MapProject]:
        ...


class BatchJobRepository(ABC):
    """Persistence for batch jobs."""

    @abstractmethod
    def add(self, job: BatchJob) -> BatchJob:
        ...

    @abstractmethod
    def get(self, job_id: str) -> BatchJob:
        """Return the job or raise NotFoundError."""
        ...

    @abstractmethod
    def save(self, job: BatchJob) -> BatchJob:
        ...

    @abstractmethod
    def delete(self, job_id: str) -> None:
        ...

    @abstractmethod
    def list(self) -> List[BatchJob]:
        ...


class ArtifactStore(ABC):
    """Storage for generated documents."""

    @abstractmethod
    def save(self, key: str, data: bytes) -> str:
        """Store ``data`` under ``key`` and return an opaque reference."""
        ...

    @abstractmethod
    def load(self, ref: str) -> bytes:
        ...

    @abstractmethod
    def delete(self, ref: str) -> None:
        ...


class BatchRunner(ABC):
    """Executes batch loops independently of the caller that started them."""

    @abstractmethod
    def submit(self, job_id: str, fn: Callable[[], Any]) -> Future:
        ...

    def forget(self, job_id: str) -> None:
        """Drop whatever the runner still holds for a finished job."""
