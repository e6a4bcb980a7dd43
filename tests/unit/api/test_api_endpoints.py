"""
Name: HTTP Endpoint Tests (documents + access grants)

Responsibilities:
  - Routers delegate to application services and serialize responses
  - Typed errors map to RFC7807 problem+json with the right status
  - Multipart upload honors the size limit (413)

Notes:
  - Dependencies are overridden with an in-memory world (no DB, no JWT)
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from healthdoc import container
from healthdoc.application.usecases import (
    AssignManagerUseCase,
    DeleteDocumentUseCase,
    GetDownloadUrlUseCase,
    ListAccessGrantsUseCase,
    ResetFailedDocumentUseCase,
    TriggerOcrUseCase,
    UploadDocumentUseCase,
)
from healthdoc.crosscutting.config import Settings
from healthdoc.crosscutting.exceptions import (
    DatabaseError,
    ServiceUnavailableError,
)
from healthdoc.domain.entities import Actor, ActorType, DocumentStatus
from healthdoc.interfaces.api.http.dependencies import get_current_actor
from healthdoc.interfaces.api.http.exception_handlers import (
    register_exception_handlers,
)
from healthdoc.interfaces.api.http.routers import (
    access_grants_router,
    documents_router,
)

pytestmark = pytest.mark.unit

PROBLEM_JSON = "application/problem+json"

USER_7 = Actor(ActorType.USER, 7)
USER_42 = Actor(ActorType.USER, 42)
MANAGER_50 = Actor(ActorType.MANAGER, 50)
ADMIN_1 = Actor(ActorType.ADMIN, 1)


def _build_app(world, session) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(documents_router, prefix="/v1")
    app.include_router(access_grants_router, prefix="/v1")

    overrides = app.dependency_overrides
    overrides[get_current_actor] = lambda: session.actor
    overrides[container.get_document_access_service] = lambda: world.access_service
    overrides[container.get_access_grant_service] = lambda: world.grant_service
    overrides[container.get_list_access_grants_use_case] = (
        lambda: ListAccessGrantsUseCase(
            grant_service=world.grant_service,
            access_service=world.access_service,
            authority_resolver=world.resolver,
        )
    )
    overrides[container.get_upload_document_use_case] = lambda: UploadDocumentUseCase(
        document_repository=world.documents,
        manager_repository=world.managers,
        blob_storage=world.storage,
        audit_repository=world.audit,
    )
    overrides[container.get_trigger_ocr_use_case] = lambda: TriggerOcrUseCase(
        document_repository=world.documents,
        access_service=world.access_service,
        ocr=world.ocr,
        audit_repository=world.audit,
    )
    overrides[container.get_reset_failed_document_use_case] = (
        lambda: ResetFailedDocumentUseCase(
            document_repository=world.documents,
            access_service=world.access_service,
            audit_repository=world.audit,
        )
    )
    overrides[container.get_assign_manager_use_case] = lambda: AssignManagerUseCase(
        document_repository=world.documents,
        manager_repository=world.managers,
        grant_repository=world.grants,
        grant_service=world.grant_service,
        audit_repository=world.audit,
    )
    overrides[container.get_delete_document_use_case] = lambda: DeleteDocumentUseCase(
        document_repository=world.documents,
        access_service=world.access_service,
        audit_repository=world.audit,
        retention_years=8,
    )
    overrides[container.get_download_url_use_case] = lambda: GetDownloadUrlUseCase(
        access_service=world.access_service,
        blob_storage=world.storage,
        audit_repository=world.audit,
        ttl_seconds=600,
    )
    return app


@pytest.fixture
def session():
    return SimpleNamespace(actor=USER_7)


@pytest.fixture
def app(world, session) -> FastAPI:
    return _build_app(world, session)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def _assert_problem(response, status_code: int, code: str) -> dict:
    assert response.status_code == status_code
    assert response.headers["content-type"].startswith(PROBLEM_JSON)
    body = response.json()
    assert body["status"] == status_code
    assert body["code"] == code
    assert "title" in body and "detail" in body
    return body


# =============================================================================
# Documents
# =============================================================================


def test_upload_creates_stored_document(client, world):
    response = client.post(
        "/v1/documents",
        files={"file": ("lab-results.pdf", b"%PDF-1.4 scan", "application/pdf")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "STORED"
    assert body["origin_manager_id"] is None
    assert body["origin_user_context_id"] == 7
    assert body["file_name"] == "lab-results.pdf"
    assert "raw_file_uri" not in body


def test_upload_with_origin_manager_form_field(client, world):
    world.add_manager(manager_id=3, user_id=50)

    response = client.post(
        "/v1/documents",
        files={"file": ("scan.pdf", b"%PDF-1.4", "application/pdf")},
        data={"origin_manager_user_id": "50"},
    )

    assert response.status_code == 201
    assert response.json()["origin_manager_id"] == 3


def test_upload_over_limit_is_413(client, monkeypatch):
    monkeypatch.setattr(
        "healthdoc.interfaces.api.http.routers.documents.get_settings",
        lambda: Settings(app_env="test", max_upload_bytes=8),
    )

    response = client.post(
        "/v1/documents",
        files={"file": ("scan.pdf", b"x" * 9, "application/pdf")},
    )

    _assert_problem(response, 413, "PAYLOAD_TOO_LARGE")


def test_get_document_by_origin(client, world):
    document = world.add_document(origin_user_context_id=7)

    response = client.get(f"/v1/documents/{document.id}")

    assert response.status_code == 200
    assert response.json()["id"] == str(document.id)


def test_get_document_without_access_is_404(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    session.actor = USER_42

    response = client.get(f"/v1/documents/{document.id}")

    body = _assert_problem(response, 404, "NOT_FOUND")
    assert body["errors"][0]["error_id"]


def test_get_missing_document_is_indistinguishable(client, world, session):
    hidden = world.add_document(origin_user_context_id=7)
    session.actor = USER_42

    missing = client.get("/v1/documents/00000000-0000-0000-0000-000000000000")
    denied = client.get(f"/v1/documents/{hidden.id}")

    assert missing.status_code == denied.status_code == 404
    assert missing.json()["detail"] == denied.json()["detail"]


def test_admin_get_document_is_403(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    session.actor = ADMIN_1

    _assert_problem(client.get(f"/v1/documents/{document.id}"), 403, "FORBIDDEN")


def test_list_documents_for_manager_with_status_filter(client, world, session):
    world.add_manager(manager_id=3, user_id=50)
    world.add_document(origin_manager_id=3)
    world.add_document(origin_manager_id=3, status=DocumentStatus.FAILED)
    world.add_document(origin_manager_id=3, status=DocumentStatus.FAILED)
    session.actor = MANAGER_50

    response = client.get("/v1/documents", params={"status": "FAILED", "limit": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["limit"] == 1
    assert len(body["data"]) == 1
    assert body["data"][0]["status"] == "FAILED"


def test_document_status_reports_progress(client, world):
    document = world.add_document(
        origin_user_context_id=7, status=DocumentStatus.PROCESSING
    )

    response = client.get(f"/v1/documents/{document.id}/status")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(document.id)
    assert body["status"] == "PROCESSING"
    assert body["progress"] == 50
    assert body["error_message"] is None


def test_document_status_without_access_is_404(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    session.actor = USER_42

    response = client.get(f"/v1/documents/{document.id}/status")

    _assert_problem(response, 404, "NOT_FOUND")


def test_grantee_gets_download_url(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    client.post(
        "/v1/access-grants",
        json={"document_id": str(document.id), "subject_type": "user", "subject_id": 42},
    )
    session.actor = USER_42

    response = client.get(f"/v1/documents/{document.id}/download")

    assert response.status_code == 200
    body = response.json()
    assert body["download_url"].startswith(document.raw_file_uri)
    assert body["expires_in"] == 600


def test_stranger_download_is_404(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    session.actor = USER_42

    response = client.get(f"/v1/documents/{document.id}/download")

    _assert_problem(response, 404, "NOT_FOUND")


def test_list_documents_invalid_status_is_422(client):
    response = client.get("/v1/documents", params={"status": "BOGUS"})

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert body["errors"]


def test_trigger_ocr_then_delete(client, world):
    document = world.add_document(origin_user_context_id=7)

    processed = client.post(f"/v1/documents/{document.id}/ocr/trigger")
    assert processed.status_code == 200
    assert processed.json()["status"] == "PROCESSED"

    deleted = client.delete(f"/v1/documents/{document.id}")
    assert deleted.status_code == 200
    assert deleted.json()["deleted"] is True
    assert deleted.json()["scheduled_deletion_at"]

    _assert_problem(client.get(f"/v1/documents/{document.id}"), 404, "NOT_FOUND")


def test_trigger_ocr_on_processing_document_is_400(client, world):
    document = world.add_document(
        origin_user_context_id=7, status=DocumentStatus.PROCESSING
    )

    response = client.post(f"/v1/documents/{document.id}/ocr/trigger")

    _assert_problem(response, 400, "BAD_REQUEST")


def test_reset_failed_document(client, world):
    document = world.add_document(
        origin_user_context_id=7, status=DocumentStatus.FAILED
    )

    response = client.post(f"/v1/documents/{document.id}/reset")

    assert response.status_code == 200
    assert response.json()["status"] == "STORED"


def test_assign_manager(client, world):
    world.add_manager(manager_id=3, user_id=50)
    document = world.add_document(origin_user_context_id=7)

    response = client.post(
        f"/v1/documents/{document.id}/assign-manager", json={"manager_id": 3}
    )

    assert response.status_code == 200
    assert response.json()["origin_manager_id"] == 3


def test_assign_manager_rejects_non_positive_id(client, world):
    document = world.add_document(origin_user_context_id=7)

    response = client.post(
        f"/v1/documents/{document.id}/assign-manager", json={"manager_id": 0}
    )

    _assert_problem(response, 422, "VALIDATION_ERROR")


# =============================================================================
# Access grants
# =============================================================================


def test_grant_list_and_revoke(client, world, session):
    document = world.add_document(origin_user_context_id=7)

    created = client.post(
        "/v1/access-grants",
        json={"document_id": str(document.id), "subject_type": "user", "subject_id": 42},
    )
    assert created.status_code == 201
    grant = created.json()
    assert grant["grant_type"] == "delegated"
    assert grant["granted_by_type"] == "user"
    assert grant["revoked_at"] is None

    listed = client.get("/v1/access-grants", params={"document_id": str(document.id)})
    assert listed.status_code == 200
    assert [g["id"] for g in listed.json()["data"]] == [grant["id"]]
    assert listed.json()["has_next_page"] is False

    session.actor = USER_42
    mine = client.get("/v1/access-grants/mine")
    assert [g["id"] for g in mine.json()["data"]] == [grant["id"]]
    assert client.get(f"/v1/documents/{document.id}").status_code == 200

    session.actor = USER_7
    revoked = client.delete(f"/v1/access-grants/{grant['id']}")
    assert revoked.status_code == 204

    session.actor = USER_42
    _assert_problem(client.get(f"/v1/documents/{document.id}"), 404, "NOT_FOUND")


def test_duplicate_grant_is_400(client, world):
    document = world.add_document(origin_user_context_id=7)
    payload = {"document_id": str(document.id), "subject_type": "user", "subject_id": 42}

    assert client.post("/v1/access-grants", json=payload).status_code == 201

    _assert_problem(client.post("/v1/access-grants", json=payload), 400, "BAD_REQUEST")


def test_admin_cannot_grant(client, world, session):
    document = world.add_document(origin_user_context_id=7)
    session.actor = ADMIN_1

    response = client.post(
        "/v1/access-grants",
        json={"document_id": str(document.id), "subject_type": "user", "subject_id": 42},
    )

    _assert_problem(response, 403, "FORBIDDEN")


# =============================================================================
# Infra errors
# =============================================================================


def test_ocr_provider_not_configured_is_503(app, world):
    def _unavailable():
        raise ServiceUnavailableError("No OCR provider is configured")

    app.dependency_overrides[container.get_trigger_ocr_use_case] = _unavailable
    document = world.add_document(origin_user_context_id=7)

    response = TestClient(app).post(f"/v1/documents/{document.id}/ocr/trigger")

    _assert_problem(response, 503, "SERVICE_UNAVAILABLE")


def test_database_error_is_503(app, world):
    failing = Mock(spec=DeleteDocumentUseCase)
    failing.execute.side_effect = DatabaseError("pool exhausted")
    app.dependency_overrides[container.get_delete_document_use_case] = lambda: failing
    document = world.add_document(origin_user_context_id=7)

    response = TestClient(app).delete(f"/v1/documents/{document.id}")

    _assert_problem(response, 503, "DATABASE_ERROR")


def test_unhandled_error_is_500(app, world):
    failing = Mock(spec=ResetFailedDocumentUseCase)
    failing.execute.side_effect = RuntimeError("boom")
    app.dependency_overrides[container.get_reset_failed_document_use_case] = (
        lambda: failing
    )
    document = world.add_document(origin_user_context_id=7)

    response = TestClient(app, raise_server_exceptions=False).post(
        f"/v1/documents/{document.id}/reset"
    )

    _assert_problem(response, 500, "INTERNAL_ERROR")
