"""
Name: Access Grant Service Unit Tests

Responsibilities:
  - Origin implicit access (self-managed and managed documents)
  - Admin hard-deny even when grant data matches
  - Grant create / revoke round-trip, duplicate and double-revoke rejection
  - Revocation authority (origin or grantor only) and audit trail
"""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from healthdoc.application import AccessGrantService, CreateAccessGrantInput
from healthdoc.application.authority import ManagerAuthorityResolver
from healthdoc.crosscutting.exceptions import (
    BadRequestError,
    DuplicateActiveGrantError,
    ForbiddenError,
    NotFoundError,
)
from healthdoc.domain.audit import AuditEventKind
from healthdoc.domain.entities import (
    Actor,
    ActorType,
    Document,
    GrantType,
    SubjectType,
)
from healthdoc.domain.repositories import (
    AccessGrantRepository,
    DocumentRepository,
    ManagerRepository,
)

pytestmark = pytest.mark.unit

USER_7 = Actor(ActorType.USER, 7)
USER_42 = Actor(ActorType.USER, 42)
USER_99 = Actor(ActorType.USER, 99)


def _grant_input(document_id, subject_id, subject_type=SubjectType.USER):
    return CreateAccessGrantInput(
        document_id=document_id,
        subject_type=subject_type,
        subject_id=subject_id,
        grant_type=GrantType.DELEGATED,
    )


# =============================================================================
# has_access
# =============================================================================


def test_self_managed_origin_has_implicit_access(world):
    document = world.add_document(origin_user_context_id=7)

    assert world.grant_service.has_access(document.id, ActorType.USER, 7) is True
    assert world.grant_service.has_access(document.id, ActorType.USER, 8) is False
    assert world.grants.find_by_document_id(document.id) == []


def test_managed_origin_has_implicit_access_through_directory(world):
    world.add_manager(manager_id=3, user_id=50)
    world.add_manager(manager_id=4, user_id=60)
    document = world.add_document(origin_manager_id=3, origin_user_context_id=7)

    assert world.grant_service.has_access(document.id, ActorType.MANAGER, 50) is True
    assert world.grant_service.has_access(document.id, ActorType.MANAGER, 60) is False
    # El id de registro (3) no es un user id.
    assert world.grant_service.has_access(document.id, ActorType.MANAGER, 3) is False


def test_admin_denied_even_with_matching_grant_row():
    document = Document(id=uuid4(), origin_user_context_id=7)
    documents = Mock(spec=DocumentRepository)
    documents.find_by_id.return_value = document
    grants = Mock(spec=AccessGrantRepository)
    grants.find_active.return_value = Mock(is_active=True)
    service = AccessGrantService(
        grant_repository=grants,
        document_repository=documents,
        authority_resolver=ManagerAuthorityResolver(Mock(spec=ManagerRepository)),
    )

    assert service.has_access(document.id, ActorType.ADMIN, 7) is False
    grants.find_active.assert_not_called()


def test_missing_document_has_no_access(world):
    assert world.grant_service.has_access(uuid4(), ActorType.USER, 7) is False


def test_soft_deleted_document_has_no_access(world):
    document = world.add_document(origin_user_context_id=7)
    world.documents.soft_delete(
        document.id,
        deleted_at=document.created_at,
        scheduled_deletion_at=document.created_at,
    )

    assert world.grant_service.has_access(document.id, ActorType.USER, 7) is False


# =============================================================================
# create_grant / revoke_grant
# =============================================================================


def test_grant_round_trip(world):
    document = world.add_document(origin_user_context_id=7)

    grant = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    assert world.grant_service.has_access(document.id, ActorType.USER, 42) is True
    assert grant.granted_by_type == ActorType.USER
    assert grant.granted_by_id == 7
    assert [g.id for g in world.grant_service.get_active_grants(document.id)] == [grant.id]
    assert [
        g.id
        for g in world.grant_service.get_active_grants_for_subject(SubjectType.USER, 42)
    ] == [grant.id]

    world.grant_service.revoke_grant(grant.id, USER_7)
    assert world.grant_service.has_access(document.id, ActorType.USER, 42) is False
    assert world.grant_service.get_active_grants(document.id) == []
    assert world.grant_service.get_grant_by_id(grant.id).revoked_at is not None
    assert world.grant_service.get_grant_by_id(999) is None


def test_duplicate_active_grant_rejected(world):
    document = world.add_document(origin_user_context_id=7)
    world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)

    with pytest.raises(BadRequestError):
        world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)

    assert len(world.grants.find_by_document_id(document.id)) == 1


def test_regrant_after_revoke_creates_new_row(world):
    document = world.add_document(origin_user_context_id=7)
    first = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    world.grant_service.revoke_grant(first.id, USER_7)

    second = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)

    assert second.id != first.id
    assert len(world.grants.find_by_document_id(document.id, active_only=False)) == 2


def test_double_revoke_rejected_and_revoked_at_unchanged(world):
    document = world.add_document(origin_user_context_id=7)
    grant = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    world.grant_service.revoke_grant(grant.id, USER_7)
    first_revoked_at = world.grants.find_by_id(grant.id).revoked_at

    with pytest.raises(BadRequestError, match="already revoked"):
        world.grant_service.revoke_grant(grant.id, USER_7)

    assert world.grants.find_by_id(grant.id).revoked_at == first_revoked_at


def test_create_grant_for_missing_document(world):
    with pytest.raises(NotFoundError):
        world.grant_service.create_grant(_grant_input(uuid4(), 42), USER_7)


def test_grantor_without_access_is_forbidden(world):
    document = world.add_document(origin_user_context_id=7)

    with pytest.raises(ForbiddenError):
        world.grant_service.create_grant(_grant_input(document.id, 42), USER_99)


def test_admin_cannot_grant(world):
    document = world.add_document(origin_user_context_id=7)

    with pytest.raises(ForbiddenError):
        world.grant_service.create_grant(
            _grant_input(document.id, 42), Actor(ActorType.ADMIN, 1)
        )


def test_grant_naming_origin_manager_rejected(world):
    world.add_manager(manager_id=3, user_id=50)
    document = world.add_document(origin_manager_id=3, origin_user_context_id=7)

    with pytest.raises(BadRequestError, match="origin manager"):
        world.grant_service.create_grant(
            _grant_input(document.id, 50, SubjectType.MANAGER),
            Actor(ActorType.MANAGER, 50),
        )


def test_grantee_can_delegate_further(world):
    document = world.add_document(origin_user_context_id=7)
    world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)

    grant = world.grant_service.create_grant(_grant_input(document.id, 43), USER_42)

    assert grant.granted_by_id == 42
    assert world.grant_service.has_access(document.id, ActorType.USER, 43) is True


def test_revocation_is_not_cascading(world):
    document = world.add_document(origin_user_context_id=7)
    parent = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    world.grant_service.create_grant(_grant_input(document.id, 43), USER_42)

    world.grant_service.revoke_grant(parent.id, USER_7)

    assert world.grant_service.has_access(document.id, ActorType.USER, 43) is True


def test_grantor_can_revoke_own_grant(world):
    document = world.add_document(origin_user_context_id=7)
    world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    grant = world.grant_service.create_grant(_grant_input(document.id, 43), USER_42)

    world.grant_service.revoke_grant(grant.id, USER_42)

    revoked = world.grants.find_by_id(grant.id)
    assert revoked.revoked_by_type == ActorType.USER
    assert revoked.revoked_by_id == 42


def test_revoke_unknown_grant_is_not_found(world):
    with pytest.raises(NotFoundError):
        world.grant_service.revoke_grant(12345, USER_7)


def test_store_level_duplicate_is_audited_and_reraised(world):
    document = world.add_document(origin_user_context_id=7)
    grants = Mock(spec=AccessGrantRepository)
    grants.find_active.return_value = None
    grants.create.side_effect = DuplicateActiveGrantError("race")
    service = AccessGrantService(
        grant_repository=grants,
        document_repository=world.documents,
        authority_resolver=world.resolver,
        audit_repository=world.audit,
    )

    with pytest.raises(DuplicateActiveGrantError):
        service.create_grant(_grant_input(document.id, 42), USER_7)

    events = world.audit.list_events(event_kind=AuditEventKind.ACCESS_GRANTED)
    assert events[-1].success is False
    assert events[-1].metadata["reason"] == "duplicate_grant"


def test_grant_and_revoke_are_audited(world):
    document = world.add_document(origin_user_context_id=7)
    grant = world.grant_service.create_grant(_grant_input(document.id, 42), USER_7)
    world.grant_service.revoke_grant(grant.id, USER_7)

    granted = world.audit.list_events(event_kind=AuditEventKind.ACCESS_GRANTED)
    revoked = world.audit.list_events(event_kind=AuditEventKind.ACCESS_REVOKED)
    assert [e.success for e in granted] == [True]
    assert [e.success for e in revoked] == [True]
    assert granted[0].metadata["document_id"] == str(document.id)
    assert granted[0].actor_type == "user"
    assert granted[0].actor_id == 7


# =============================================================================
# Example scenario
# =============================================================================


def test_delegation_scenario(world):
    d1 = world.add_document(origin_user_context_id=7)

    grant = world.grant_service.create_grant(_grant_input(d1.id, 42), USER_7)
    assert world.grant_service.has_access(d1.id, ActorType.USER, 42) is True

    with pytest.raises(BadRequestError):
        world.grant_service.create_grant(_grant_input(d1.id, 7), USER_42)

    with pytest.raises(ForbiddenError):
        world.grant_service.revoke_grant(grant.id, USER_99)

    assert world.grants.find_by_id(grant.id).is_active is True
