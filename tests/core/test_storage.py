"""Tests for repositories and artifact stores."""

from unittest import mock

import pytest

from printable_maps.core.exceptions import NotFoundError, StorageError
from printable_maps.core.models import BatchJob, Calibration, MapProject
from printable_maps.core.storage import (
    InMemoryBatchJobRepository,
    InMemoryProjectRepository,
    LocalArtifactStore,
    S3ArtifactStore,
)
from printable_maps.testing.fakes import FakeS3Client


def make_project():
    return MapProject(
        file_name="map.png", image_data=b"png", image_width=100, image_height=100
    )


class TestInMemoryProjectRepository:
    """Tests for InMemoryProjectRepository."""

    def test_add_and_get(self):
        repository = InMemoryProjectRepository()
        project = repository.add(make_project())

        stored = repository.get(project.id)

        assert stored == project
        assert stored is not project

    def test_changes_are_invisible_until_saved(self):
        repository = InMemoryProjectRepository()
        project = repository.add(make_project())

        project.calibrate(Calibration(scale=2.0))
        assert repository.get(project.id).scale == 1.0

        repository.save(project)
        assert repository.get(project.id).scale == 2.0

    def test_get_missing(self):
        with pytest.raises(NotFoundError, match="Map project missing not found"):
            InMemoryProjectRepository().get("missing")

    def test_save_missing(self):
        with pytest.raises(NotFoundError):
            InMemoryProjectRepository().save(make_project())

    def test_delete(self):
        repository = InMemoryProjectRepository()
        project = repository.add(make_project())

        repository.delete(project.id)

        with pytest.raises(NotFoundError):
            repository.get(project.id)
        with pytest.raises(NotFoundError):
            repository.delete(project.id)

    def test_list(self):
        repository = InMemoryProjectRepository()
        first = repository.add(make_project())
        second = repository.add(make_project())

        assert {project.id for project in repository.list()} == {first.id, second.id}


class TestInMemoryBatchJobRepository:
    """Tests for InMemoryBatchJobRepository."""

    def test_round_trip(self):
        repository = InMemoryBatchJobRepository()
        job = repository.add(BatchJob(name="job", project_ids=("a", "b")))

        job.start()
        job.record_success()
        repository.save(job)

        stored = repository.get(job.id)
        assert stored.status == job.status
        assert stored.processed_files == 1

    def test_get_missing(self):
        with pytest.raises(NotFoundError, match="Batch job"):
            InMemoryBatchJobRepository().get("missing")


class TestLocalArtifactStore:
    """Tests for LocalArtifactStore."""

    def test_save_load_delete(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path / "documents"))

        ref = store.save("abc.pdf", b"%PDF-1.4")

        assert ref == str(tmp_path / "documents" / "abc.pdf")
        assert store.load(ref) == b"%PDF-1.4"
        store.delete(ref)
        with pytest.raises(NotFoundError):
            store.load(ref)

    def test_delete_missing_is_ignored(self, tmp_path):
        LocalArtifactStore(str(tmp_path)).delete(str(tmp_path / "missing.pdf"))

    def test_write_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = LocalArtifactStore(str(blocker))

        with pytest.raises(StorageError):
            store.save("abc.pdf", b"%PDF")


class TestS3ArtifactStore:
    """Tests for S3ArtifactStore."""

    def test_save_load_delete(self):
        client = FakeS3Client()
        bucket = client.create_bucket("maps")
        store = S3ArtifactStore(client, "maps", "documents/")

        ref = store.save("abc.pdf", b"%PDF-1.4")

        assert ref == "s3://maps/documents/abc.pdf"
        assert bucket.objects["documents/abc.pdf"].content_type == "application/pdf"
        assert store.load(ref) == b"%PDF-1.4"
        store.delete(ref)
        assert "documents/abc.pdf" not in bucket.objects

    def test_without_prefix(self):
        client = FakeS3Client()
        client.create_bucket("maps")

        assert S3ArtifactStore(client, "maps").save("abc.pdf", b"%PDF") == "s3://maps/abc.pdf"

    def test_load_missing_object(self):
        client = FakeS3Client()
        client.create_bucket("maps")
        store = S3ArtifactStore(client, "maps")

        with pytest.raises(StorageError):
            store.load("s3://maps/missing.pdf")

    def test_ref_from_other_bucket(self):
        client = FakeS3Client()
        client.create_bucket("maps")
        store = S3ArtifactStore(client, "maps")

        with pytest.raises(NotFoundError):
            store.load("s3://other/abc.pdf")

    @mock.patch("time.sleep", return_value=None)
    def test_throttled_save_is_retried(self, mock_sleep):
        client = FakeS3Client()
        client.create_bucket("maps")
        client.set_failure_mode("SlowDown", times=2)
        store = S3ArtifactStore(client, "maps")

        ref = store.save("abc.pdf", b"%PDF")

        assert ref == "s3://maps/abc.pdf"
        assert client.operation_count == 3
        assert mock_sleep.call_count == 2

    def test_access_denied_is_not_retried(self):
        client = FakeS3Client()
        client.create_bucket("maps")
        client.set_failure_mode("AccessDenied")
        store = S3ArtifactStore(client, "maps")

        with pytest.raises(StorageError):
            store.save("abc.pdf", b"%PDF")
        assert client.operation_count == 1
