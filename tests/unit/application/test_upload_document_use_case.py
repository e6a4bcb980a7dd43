"""
Name: Upload Document Use Case Unit Tests

Responsibilities:
  - Blob first, row second, row lands in STORED (never PROCESSING)
  - Origin manager resolution for manager and user uploads
  - Storage failure leaves no row; save failure discards the blob
"""

from unittest.mock import Mock

import pytest

from healthdoc.application.usecases import UploadDocumentUseCase
from healthdoc.crosscutting.exceptions import (
    BadRequestError,
    DatabaseError,
    ForbiddenError,
    StorageError,
)
from healthdoc.domain.audit import AuditEventKind
from healthdoc.domain.entities import (
    Actor,
    ActorType,
    DocumentStatus,
    ManagerVerificationStatus,
)
from healthdoc.domain.repositories import DocumentRepository
from healthdoc.domain.services import BlobStoragePort

pytestmark = pytest.mark.unit

USER_7 = Actor(ActorType.USER, 7)
MANAGER_50 = Actor(ActorType.MANAGER, 50)


def _use_case(world, **overrides) -> UploadDocumentUseCase:
    kwargs = dict(
        document_repository=world.documents,
        manager_repository=world.managers,
        blob_storage=world.storage,
        audit_repository=world.audit,
        max_upload_bytes=64,
    )
    kwargs.update(overrides)
    return UploadDocumentUseCase(**kwargs)


def _upload(use_case, actor=USER_7, **kwargs):
    params = dict(
        actor=actor,
        content=b"%PDF-1.4 scan",
        file_name="scan.pdf",
        mime_type="application/pdf",
    )
    params.update(kwargs)
    return use_case.execute(**params)


def test_self_managed_upload_is_stored(world):
    document = _upload(_use_case(world))

    stored = world.documents.find_by_id(document.id)
    assert stored.status == DocumentStatus.STORED
    assert stored.origin_manager_id is None
    assert stored.origin_user_context_id == 7
    assert stored.file_size == len(b"%PDF-1.4 scan")
    assert world.storage.exists(stored.raw_file_uri)


def test_manager_upload_uses_own_record(world):
    world.add_manager(manager_id=3, user_id=50)

    document = _upload(_use_case(world), actor=MANAGER_50)

    assert document.origin_manager_id == 3
    assert document.origin_user_context_id == 50


def test_unverified_manager_cannot_upload(world):
    world.add_manager(
        manager_id=3, user_id=50, status=ManagerVerificationStatus.PENDING
    )

    with pytest.raises(ForbiddenError):
        _upload(_use_case(world), actor=MANAGER_50)


def test_user_can_name_verified_origin_manager(world):
    world.add_manager(manager_id=3, user_id=50)

    document = _upload(_use_case(world), origin_manager_user_id=50)

    assert document.origin_manager_id == 3
    assert document.origin_user_context_id == 7


def test_user_naming_unverified_manager_is_bad_request(world):
    world.add_manager(
        manager_id=3, user_id=50, status=ManagerVerificationStatus.SUSPENDED
    )

    with pytest.raises(BadRequestError):
        _upload(_use_case(world), origin_manager_user_id=50)


def test_admin_cannot_upload(world):
    with pytest.raises(ForbiddenError):
        _upload(_use_case(world), actor=Actor(ActorType.ADMIN, 1))


@pytest.mark.parametrize(
    "overrides",
    [
        {"content": b""},
        {"content": b"x" * 65},
        {"file_name": "  "},
        {"mime_type": ""},
    ],
)
def test_invalid_payload_is_bad_request(world, overrides):
    with pytest.raises(BadRequestError):
        _upload(_use_case(world), **overrides)


def test_storage_failure_leaves_no_row(world):
    storage = Mock(spec=BlobStoragePort)
    storage.upload_file.side_effect = StorageError("bucket unavailable")
    documents = Mock(spec=DocumentRepository)

    with pytest.raises(StorageError):
        _upload(_use_case(world, blob_storage=storage, document_repository=documents))

    documents.save.assert_not_called()
    events = world.audit.list_events(event_kind=AuditEventKind.DOCUMENT_UPLOADED)
    assert events[-1].success is False


def test_save_failure_discards_blob(world):
    storage = Mock(spec=BlobStoragePort)
    storage.upload_file.return_value = "memory://documents/x"
    documents = Mock(spec=DocumentRepository)
    documents.save.side_effect = DatabaseError("insert failed")

    with pytest.raises(DatabaseError):
        _upload(_use_case(world, blob_storage=storage, document_repository=documents))

    storage.delete_file.assert_called_once_with("memory://documents/x")


def test_upload_audit_metadata_has_no_file_name(world):
    _upload(_use_case(world), file_name="maria-lopez-hiv-panel.pdf")

    for event in world.audit.list_events():
        assert "file_name" not in event.metadata
        assert "maria" not in str(event.metadata)
