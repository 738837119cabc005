"""Tests for fake implementations to ensure they work correctly."""

import io

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from printable_maps.core.models import MapProject, MapSettings
from printable_maps.core.observability import LogContext
from printable_maps.core.exceptions import ProcessingError
from printable_maps.testing.fakes import (
    FailingDocumentBuilder,
    FakeLogger,
    FakeS3Client,
    create_test_image,
    create_truncated_image,
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

    def test_get_nonexistent_bucket(self):
        assert FakeS3Client().get_bucket("nonexistent") is None

    def test_put_and_get_object(self):
        client = setup_test_s3_environment("maps")

        client.put_object(Bucket="maps", Key="a.pdf", Body=b"%PDF", ContentType="application/pdf")
        response = client.get_object(Bucket="maps", Key="a.pdf")

        assert response["Body"].read() == b"%PDF"
        assert response["ContentType"] == "application/pdf"
        assert response["ContentLength"] == 4

    def test_get_missing_object(self):
        client = setup_test_s3_environment("maps")

        with pytest.raises(ClientError) as exc_info:
            client.get_object(Bucket="maps", Key="missing.pdf")

        assert exc_info.value.response["Error"]["Code"] == "NoSuchKey"

    def test_missing_bucket(self):
        with pytest.raises(ClientError) as exc_info:
            FakeS3Client().put_object(Bucket="nope", Key="a", Body=b"", ContentType="x")
        assert exc_info.value.response["Error"]["Code"] == "NoSuchBucket"

    def test_delete_object(self):
        client = setup_test_s3_environment("maps")
        client.put_object(Bucket="maps", Key="a.pdf", Body=b"%PDF", ContentType="application/pdf")

        client.delete_object(Bucket="maps", Key="a.pdf")

        assert client.get_bucket("maps").objects == {}

    def test_failure_mode(self):
        client = setup_test_s3_environment("maps")
        client.set_failure_mode("SlowDown", times=1)

        with pytest.raises(ClientError) as exc_info:
            client.delete_object(Bucket="maps", Key="a.pdf")
        assert exc_info.value.response["Error"]["Code"] == "SlowDown"

        client.delete_object(Bucket="maps", Key="a.pdf")
        assert client.operation_count == 2


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_records_levels(self):
        logger = FakeLogger()

        logger.info("one")
        logger.error("two")

        assert [log["message"] for log in logger.get_logs()] == ["one", "two"]
        assert [log["message"] for log in logger.get_logs("ERROR")] == ["two"]

    def test_records_context(self):
        logger = FakeLogger()
        context = LogContext(operation="generate_document").with_metadata(project_id="p1")

        logger.debug("working", context, pages=4)

        log = logger.get_logs("DEBUG")[0]
        assert log["operation"] == "generate_document"
        assert log["project_id"] == "p1"
        assert log["pages"] == 4
        assert log["correlation_id"] == context.correlation_id


class TestImageHelpers:
    """Tests for the image helpers."""

    def test_create_test_image(self):
        with Image.open(io.BytesIO(create_test_image(64, 32, format="JPEG"))) as image:
            assert image.format == "JPEG"
            assert image.size == (64, 32)

    def test_truncated_image_keeps_header(self):
        with Image.open(io.BytesIO(create_truncated_image(40, 30))) as image:
            assert image.size == (40, 30)
            with pytest.raises(OSError):
                image.load()


class TestFailingDocumentBuilder:
    """Tests for FailingDocumentBuilder."""

    def test_fails_only_for_chosen_names(self):
        builder = FailingDocumentBuilder(fail_for={"bad.png"})
        good = MapProject(
            file_name="good.png",
            image_data=create_test_image(50, 50),
            image_width=50,
            image_height=50,
        )
        bad = good.model_copy(update={"file_name": "bad.png"})

        assert builder.build(good, MapSettings()).startswith(b"%PDF")
        with pytest.raises(ProcessingError):
            builder.build(bad, MapSettings())
        assert builder.built == ["good.png", "bad.png"]
