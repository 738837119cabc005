"""Testing utilities and fakes for printable maps."""

from .fakes import (
    FailingDocumentBuilder,
    FakeLogger,
    FakeS3Client,
    S3Bucket,
    S3Object,
    create_test_image,
    create_truncated_image,
    setup_test_s3_environment,
)

__all__ = [
    "FailingDocumentBuilder",
    "FakeLogger",
    "FakeS3Client",
    "S3Bucket",
    "S3Object",
    "create_test_image",
    "create_truncated_image",
    "setup_test_s3_environment",
]
