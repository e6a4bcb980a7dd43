"""
Name: Container Wiring + Retention Job Tests

Responsibilities:
  - Test env wires in-memory adapters and the fake OCR
  - Missing OCR provider outside tests -> ServiceUnavailableError
  - Purge job exit code reflects failed documents
"""

from unittest.mock import Mock, patch

import pytest

from healthdoc import container, jobs
from healthdoc.application.usecases import (
    GetDownloadUrlUseCase,
    PurgeExpiredDocumentsUseCase,
    PurgeResult,
)
from healthdoc.crosscutting.config import Settings
from healthdoc.crosscutting.exceptions import ServiceUnavailableError
from healthdoc.infrastructure.repositories.in_memory import (
    InMemoryAccessGrantRepository,
    InMemoryDocumentRepository,
)
from healthdoc.infrastructure.services import FakeOcrService, InMemoryBlobStorage

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clear_container_caches():
    cached = (
        container.get_access_grant_repository,
        container.get_document_repository,
        container.get_manager_repository,
        container.get_audit_repository,
        container.get_blob_storage,
        container.get_ocr_service,
    )
    for factory in cached:
        factory.cache_clear()
    yield
    for factory in cached:
        factory.cache_clear()


def test_test_env_uses_in_memory_adapters():
    assert isinstance(container.get_document_repository(), InMemoryDocumentRepository)
    assert isinstance(
        container.get_access_grant_repository(), InMemoryAccessGrantRepository
    )
    assert isinstance(container.get_blob_storage(), InMemoryBlobStorage)
    assert isinstance(container.get_ocr_service(), FakeOcrService)


def test_repositories_are_singletons():
    assert container.get_document_repository() is container.get_document_repository()


def test_use_case_factories_build():
    upload = container.get_upload_document_use_case()
    purge = container.get_purge_expired_documents_use_case()
    download = container.get_download_url_use_case()

    assert upload is not None
    assert isinstance(purge, PurgeExpiredDocumentsUseCase)
    assert isinstance(download, GetDownloadUrlUseCase)


def test_ocr_without_provider_is_unavailable():
    settings = Settings(app_env="development", fake_ocr=False)

    with patch("healthdoc.container.get_settings", return_value=settings):
        with pytest.raises(ServiceUnavailableError):
            container.get_ocr_service()


def test_fake_ocr_flag_outside_tests():
    settings = Settings(app_env="development", fake_ocr=True)

    with patch("healthdoc.container.get_settings", return_value=settings):
        assert isinstance(container.get_ocr_service(), FakeOcrService)


@pytest.mark.parametrize("failed,exit_code", [(0, 0), (2, 1)])
def test_purge_job_exit_code(failed, exit_code):
    use_case = Mock(spec=PurgeExpiredDocumentsUseCase)
    use_case.execute.return_value = PurgeResult(purged=3, failed=failed)

    with patch(
        "healthdoc.jobs.get_purge_expired_documents_use_case", return_value=use_case
    ), patch("healthdoc.jobs.init_pool") as init_pool:
        assert jobs.main() == exit_code

    init_pool.assert_not_called()
    use_case.execute.assert_called_once()
