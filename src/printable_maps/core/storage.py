"""In-memory repositories and artifact stores."""

import pathlib
import threading
from typing import Dict, Generic, List, TypeVar

from pydantic import BaseModel

from .error_handling import retry_s3_operation, with_storage_error_handling
from .exceptions import NotFoundError, StorageError
from .models import BatchJob, MapProject
from .protocols import (
    ArtifactStore,
    BatchJobRepository,
    ProjectRepository,
    S3ClientProtocol,
)

M = TypeVar("M", bound=BaseModel)


class _InMemoryStore(Generic[M]):
    """Thread-safe map of id -> model that hands out deep copies.

    Callers only ever see snapshots, so a change becomes visible to other
    readers when it is saved.
    """

    kind = "Record"

    def __init__(self) -> None:
        self._records: Dict[str, M] = {}
        self._lock = threading.Lock()

    def add(self, record: M) -> M:
        with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
        return record

    def get(self, record_id: str) -> M:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFoundError(f"{self.kind} {record_id} not found")
            return record.model_copy(deep=True)

    def save(self, record: M) -> M:
        with self._lock:
            if record.id not in self._records:
                raise NotFoundError(f"{self.kind} {record.id} not found")
            self._records[record.id] = record.model_copy(deep=True)
        return record

    def delete(self, record_id: str) -> None:
        with self._lock:
            if self._records.pop(record_id, None) is None:
                raise NotFoundError(f"{self.kind} {record_id} not found")

    def list(self) -> List[M]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]


class InMemoryProjectRepository(_InMemoryStore[MapProject], ProjectRepository):
    kind = "Map project"


class InMemoryBatchJobRepository(_InMemoryStore[BatchJob], BatchJobRepository):
    kind = "Batch job"


class LocalArtifactStore(ArtifactStore):
    """Stores documents as files under one directory."""

    def __init__(self, directory: str) -> None:
        self._directory = pathlib.Path(directory)

    def save(self, key: str, data: bytes) -> str:
        path = self._directory / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        return str(path)

    def load(self, ref: str) -> bytes:
        path = pathlib.Path(ref)
        if not path.is_file():
            raise NotFoundError(f"Document {ref} not found")
        return path.read_bytes()

    def delete(self, ref: str) -> None:
        pathlib.Path(ref).unlink(missing_ok=True)


class S3ArtifactStore(ArtifactStore):
    """Stores documents as objects in an S3 bucket."""

    def __init__(self, s3_client: S3ClientProtocol, bucket: str, prefix: str = "") -> None:
        self._s3_client = s3_client
        self._bucket = bucket
        self._prefix = prefix.strip("/")

    def _key(self, key: str) -> str:
        if self._prefix:
            return f"{self._prefix}/{key}"
        return key

    def _split_ref(self, ref: str) -> str:
        expected = f"s3://{self._bucket}/"
        if not ref.startswith(expected):
            raise NotFoundError(f"Document {ref} is not stored in bucket {self._bucket}")
        return ref[len(expected):]

    @retry_s3_operation()
    @with_storage_error_handling
    def save(self, key: str, data: bytes) -> str:
        object_key = self._key(key)
        self._s3_client.put_object(
            Bucket=self._bucket,
            Key=object_key,
            Body=data,
            ContentType="application/pdf",
        )
        return f"s3://{self._bucket}/{object_key}"

    @retry_s3_operation()
    @with_storage_error_handling
    def load(self, ref: str) -> bytes:
        response = self._s3_client.get_object(Bucket=self._bucket, Key=self._split_ref(ref))
        return response["Body"].read()

    @retry_s3_operation()
    @with_storage_error_handling
    def delete(self, ref: str) -> None:
        self._s3_client.delete_object(Bucket=self._bucket, Key=self._split_ref(ref))
