"""
Name: Blob Storage / OCR Adapter Tests

Responsibilities:
  - Validate S3 adapter uses boto3 client correctly (mocked client)
  - SDK errors surface as StorageError
  - Download URLs are presigned get_object requests
  - In-memory storage and fake OCR behave deterministically
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from healthdoc.crosscutting.exceptions import StorageError
from healthdoc.infrastructure.services import FakeOcrService, InMemoryBlobStorage
from healthdoc.infrastructure.services.fake_ocr_service import OcrProviderError
from healthdoc.infrastructure.storage import S3BlobStorage, S3Config

pytestmark = pytest.mark.unit


def _make_adapter(mock_client: MagicMock) -> S3BlobStorage:
    return S3BlobStorage(
        S3Config(
            bucket="bucket",
            access_key="key",
            secret_key="secret",
            region="us-east-1",
            endpoint_url="http://minio:9000",
        ),
        client=mock_client,
    )


def test_upload_file_uses_put_object():
    mock_client = MagicMock()
    adapter = _make_adapter(mock_client)

    uri = adapter.upload_file("documents/abc", b"data", "application/pdf")

    assert uri == "s3://bucket/documents/abc"
    mock_client.put_object.assert_called_once_with(
        Bucket="bucket",
        Key="documents/abc",
        Body=b"data",
        ContentType="application/pdf",
    )


def test_delete_file_uses_delete_object():
    mock_client = MagicMock()
    adapter = _make_adapter(mock_client)

    adapter.delete_file("s3://bucket/documents/abc")

    mock_client.delete_object.assert_called_once_with(
        Bucket="bucket",
        Key="documents/abc",
    )


def test_delete_rejects_foreign_uri():
    adapter = _make_adapter(MagicMock())

    with pytest.raises(StorageError):
        adapter.delete_file("s3://other-bucket/documents/abc")


def test_client_error_is_storage_error():
    mock_client = MagicMock()
    mock_client.put_object.side_effect = ClientError(
        {"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "PutObject"
    )
    adapter = _make_adapter(mock_client)

    with pytest.raises(StorageError, match="NoSuchBucket"):
        adapter.upload_file("documents/abc", b"data", "application/pdf")


def test_connection_error_is_storage_error():
    mock_client = MagicMock()
    mock_client.delete_object.side_effect = EndpointConnectionError(
        endpoint_url="http://minio:9000"
    )
    adapter = _make_adapter(mock_client)

    with pytest.raises(StorageError):
        adapter.delete_file("s3://bucket/documents/abc")


def test_empty_bucket_is_rejected():
    with pytest.raises(StorageError):
        S3BlobStorage(
            S3Config(bucket=" ", access_key="", secret_key=""), client=MagicMock()
        )


def test_in_memory_storage_roundtrip():
    storage = InMemoryBlobStorage()

    uri = storage.upload_file("documents/abc", b"data", "application/pdf")
    assert storage.exists(uri)

    storage.delete_file(uri)
    storage.delete_file(uri)
    assert not storage.exists(uri)


def test_fake_ocr_is_deterministic():
    ocr = FakeOcrService()

    first = ocr.extract("memory://documents/abc", "application/pdf")
    second = ocr.extract("memory://documents/abc", "application/pdf")

    assert first == second
    assert 1 <= first.page_count <= 5
    assert 0.8 <= first.confidence < 1.0


def test_fake_ocr_simulates_failures():
    ocr = FakeOcrService(failing_uris=["memory://documents/bad"])
    ocr.fail_for("memory://documents/worse")

    for uri in ("memory://documents/bad", "memory://documents/worse"):
        with pytest.raises(OcrProviderError):
            ocr.extract(uri, "application/pdf")


def test_download_url_is_presigned_get_object():
    mock_client = MagicMock()
    mock_client.generate_presigned_url.return_value = "https://signed"
    adapter = _make_adapter(mock_client)

    url = adapter.generate_download_url(
        "s3://bucket/documents/abc", expires_in_seconds=600, filename='lab "a".pdf'
    )

    assert url == "https://signed"
    mock_client.generate_presigned_url.assert_called_once_with(
        ClientMethod="get_object",
        Params={
            "Bucket": "bucket",
            "Key": "documents/abc",
            "ResponseContentDisposition": "attachment; filename=\"lab 'a'.pdf\"",
        },
        ExpiresIn=600,
    )


def test_download_url_presign_error_is_storage_error():
    mock_client = MagicMock()
    mock_client.generate_presigned_url.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject"
    )
    adapter = _make_adapter(mock_client)

    with pytest.raises(StorageError, match="presign"):
        adapter.generate_download_url(
            "s3://bucket/documents/abc", expires_in_seconds=600
        )


def test_in_memory_download_url():
    storage = InMemoryBlobStorage()
    uri = storage.upload_file("documents/abc", b"data", "application/pdf")

    assert storage.generate_download_url(uri, expires_in_seconds=60) == (
        "memory://documents/abc?expires_in=60"
    )
    with pytest.raises(StorageError):
        storage.generate_download_url("s3://bucket/abc", expires_in_seconds=60)
