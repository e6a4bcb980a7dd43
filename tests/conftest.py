"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Force the test environment (in-memory adapters, no .env file)
  - Provide an in-memory wiring of repositories, services and use cases
  - Provide document / manager factories

Notes:
  - Every fixture is function-scoped: each test gets a fresh world
"""

import os

os.environ.setdefault("APP_ENV", "test")

from dataclasses import dataclass  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Optional  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402

from healthdoc.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from healthdoc.application import (  # noqa: E402
    AccessGrantService,
    DocumentAccessService,
    ManagerAuthorityResolver,
)
from healthdoc.domain.entities import (  # noqa: E402
    Document,
    DocumentStatus,
    Manager,
    ManagerVerificationStatus,
)
from healthdoc.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryAccessGrantRepository,
    InMemoryAuditEventRepository,
    InMemoryDocumentRepository,
    InMemoryManagerRepository,
)
from healthdoc.infrastructure.services import (  # noqa: E402
    FakeOcrService,
    InMemoryBlobStorage,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# In-memory world
# ============================================================================


@dataclass
class World:
    documents: InMemoryDocumentRepository
    grants: InMemoryAccessGrantRepository
    managers: InMemoryManagerRepository
    audit: InMemoryAuditEventRepository
    storage: InMemoryBlobStorage
    ocr: FakeOcrService
    resolver: ManagerAuthorityResolver
    grant_service: AccessGrantService
    access_service: DocumentAccessService

    def add_manager(
        self,
        manager_id: int,
        user_id: int,
        status: ManagerVerificationStatus = ManagerVerificationStatus.VERIFIED,
    ) -> Manager:
        record = Manager(id=manager_id, user_id=user_id, verification_status=status)
        self.managers.add(record)
        return record

    def add_document(
        self,
        *,
        origin_manager_id: Optional[int] = None,
        origin_user_context_id: Optional[int] = None,
        status: DocumentStatus = DocumentStatus.STORED,
        document_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
        retry_count: int = 0,
    ) -> Document:
        now = created_at or datetime.now(timezone.utc)
        document_id = document_id or uuid4()
        document = Document(
            id=document_id,
            origin_manager_id=origin_manager_id,
            origin_user_context_id=origin_user_context_id,
            status=status,
            raw_file_uri=f"memory://documents/{document_id}",
            file_name="scan.pdf",
            file_size=10,
            mime_type="application/pdf",
            retry_count=retry_count,
            uploaded_at=now,
            created_at=now,
            updated_at=now,
        )
        self.documents.save(document)
        return document


@pytest.fixture
def world() -> World:
    documents = InMemoryDocumentRepository()
    grants = InMemoryAccessGrantRepository()
    managers = InMemoryManagerRepository()
    audit = InMemoryAuditEventRepository()
    resolver = ManagerAuthorityResolver(managers)
    grant_service = AccessGrantService(
        grant_repository=grants,
        document_repository=documents,
        authority_resolver=resolver,
        audit_repository=audit,
    )
    access_service = DocumentAccessService(
        document_repository=documents,
        grant_service=grant_service,
        authority_resolver=resolver,
        audit_repository=audit,
    )
    return World(
        documents=documents,
        grants=grants,
        managers=managers,
        audit=audit,
        storage=InMemoryBlobStorage(),
        ocr=FakeOcrService(),
        resolver=resolver,
        grant_service=grant_service,
        access_service=access_service,
    )
