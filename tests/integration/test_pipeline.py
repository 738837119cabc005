"""Integration tests for the complete document pipeline."""

import io

import pytest
from pypdf import PdfReader

from printable_maps.core.exceptions import ConfigurationError
from printable_maps.core.factories import ArtifactStoreFactory, PrintableMapsFactory
from printable_maps.core.models import AppConfig, BatchStatus, ProjectStatus, UploadedImage
from printable_maps.core.observability import MetricsCollector
from printable_maps.core.storage import LocalArtifactStore, S3ArtifactStore
from printable_maps.processors.background import BackgroundBatchRunner, InlineBatchRunner
from printable_maps.testing.fakes import (
    FakeLogger,
    create_test_image,
    create_truncated_image,
    setup_test_s3_environment,
)


def read_pages(data):
    return PdfReader(io.BytesIO(data)).pages


class TestPipelineIntegration:
    """Integration tests for the complete map pipeline."""

    def test_single_map_to_s3(self):
        fake_s3 = setup_test_s3_environment("maps")
        metrics = MetricsCollector()
        services = PrintableMapsFactory.create_services(
            AppConfig(artifact_backend="s3", s3_bucket="maps", s3_prefix="documents"),
            logger=FakeLogger(),
            s3_client=fake_s3,
            runner=InlineBatchRunner(),
            metrics_collector=metrics,
        )
        project_service = services.project_service

        project = project_service.upload("castle.png", create_test_image(1600, 1200))
        project_service.calibrate(project.id, 1.0)
        project = project_service.generate_document(project.id)

        assert project.output_ref == f"s3://maps/documents/{project.id}.pdf"
        assert f"documents/{project.id}.pdf" in fake_s3.get_bucket("maps").objects

        pages = read_pages(project_service.load_document(project.id))
        assert len(pages) == 12
        assert pages[1].extract_text().strip() == "1"
        assert pages[3].extract_text().strip() == "2"
        assert "Assembly Guide" in pages[-1].extract_text()
        assert metrics.get_summary()["successful_operations"] == 1

    def test_batch_with_one_broken_map(self, tmp_path):
        logger = FakeLogger()
        services = PrintableMapsFactory.create_services(
            AppConfig(output_dir=str(tmp_path)), logger=logger, runner=InlineBatchRunner()
        )
        uploads = [
            UploadedImage(file_name="level1.png", data=create_test_image(800, 600)),
            UploadedImage(file_name="broken.png", data=create_truncated_image()),
            UploadedImage(file_name="level2.png", data=create_test_image(300, 300)),
        ]

        job = services.batch_service.create_job(uploads, {"outlineStyle": "dotted"}, "Levels")
        services.batch_service.start_job(job.id)

        job = services.batch_service.get_job(job.id)
        assert job.status is BatchStatus.COMPLETED
        assert (job.processed_files, job.failed_files) == (2, 1)
        statuses = {
            services.projects.get(pid).file_name: services.projects.get(pid).status
            for pid in job.project_ids
        }
        assert statuses == {
            "level1.png": ProjectStatus.COMPLETED,
            "broken.png": ProjectStatus.UPLOADED,
            "level2.png": ProjectStatus.COMPLETED,
        }
        assert len(list(tmp_path.glob("*.pdf"))) == 2

    def test_batch_in_background(self, tmp_path):
        runner = BackgroundBatchRunner()
        services = PrintableMapsFactory.create_services(
            AppConfig(output_dir=str(tmp_path)), logger=FakeLogger(), runner=runner
        )
        uploads = [
            UploadedImage(file_name=f"map{index}.png", data=create_test_image(200, 200))
            for index in range(4)
        ]

        try:
            job = services.batch_service.create_job(uploads)
            services.batch_service.start_job(job.id)
            runner.wait(job.id, timeout=60)
        finally:
            runner.shutdown()

        job = services.batch_service.get_job(job.id)
        assert job.status is BatchStatus.COMPLETED
        assert job.processed_files == 4
        assert job.is_terminal

    def test_batch_of_broken_maps_fails(self, tmp_path):
        services = PrintableMapsFactory.create_services(
            AppConfig(output_dir=str(tmp_path)), logger=FakeLogger(), runner=InlineBatchRunner()
        )
        uploads = [
            UploadedImage(file_name=f"broken{index}.png", data=create_truncated_image())
            for index in range(3)
        ]

        job = services.batch_service.create_job(uploads)
        services.batch_service.start_job(job.id)

        job = services.batch_service.get_job(job.id)
        assert job.status is BatchStatus.FAILED
        assert (job.processed_files, job.failed_files) == (0, 3)
        assert job.error_message == "All files failed to process"


class TestArtifactStoreFactory:
    """Tests for ArtifactStoreFactory."""

    def test_local_store(self, tmp_path):
        store = ArtifactStoreFactory.create_store(AppConfig(output_dir=str(tmp_path)))
        assert isinstance(store, LocalArtifactStore)

    def test_s3_store(self):
        store = ArtifactStoreFactory.create_store(
            AppConfig(artifact_backend="s3", s3_bucket="maps"),
            setup_test_s3_environment("maps"),
        )
        assert isinstance(store, S3ArtifactStore)

    def test_s3_store_requires_bucket(self):
        with pytest.raises(ConfigurationError):
            ArtifactStoreFactory.create_store(AppConfig(artifact_backend="s3"))
