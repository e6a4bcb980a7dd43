"""
Name: List Access Grants Use Case Unit Tests

Responsibilities:
  - Origin sees every active grant on a document, grantees only their own
  - "mine" listing, subject_type filter, page-based pagination
  - Admin forbidden, strangers get 404 on a document listing
"""

import pytest

from healthdoc.application import CreateAccessGrantInput
from healthdoc.application.usecases import ListAccessGrantsUseCase
from healthdoc.crosscutting.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
)
from healthdoc.domain.entities import Actor, ActorType, SubjectType

pytestmark = pytest.mark.unit

USER_7 = Actor(ActorType.USER, 7)
USER_42 = Actor(ActorType.USER, 42)


@pytest.fixture
def use_case(world) -> ListAccessGrantsUseCase:
    return ListAccessGrantsUseCase(
        grant_service=world.grant_service,
        access_service=world.access_service,
        authority_resolver=world.resolver,
        default_limit=2,
    )


def _grant(world, document_id, subject_id, grantor, subject_type=SubjectType.USER):
    return world.grant_service.create_grant(
        CreateAccessGrantInput(
            document_id=document_id, subject_type=subject_type, subject_id=subject_id
        ),
        grantor,
    )


def test_origin_sees_all_grants_for_document(world, use_case):
    document = world.add_document(origin_user_context_id=7)
    _grant(world, document.id, 42, USER_7)
    _grant(world, document.id, 50, USER_7, SubjectType.MANAGER)

    page = use_case.execute(actor=USER_7, document_id=document.id, limit=10)

    assert {(g.subject_type, g.subject_id) for g in page.data} == {
        (SubjectType.USER, 42),
        (SubjectType.MANAGER, 50),
    }
    assert page.has_next_page is False


def test_grantee_sees_only_own_grant(world, use_case):
    document = world.add_document(origin_user_context_id=7)
    _grant(world, document.id, 42, USER_7)
    _grant(world, document.id, 43, USER_7)

    page = use_case.execute(actor=USER_42, document_id=document.id)

    assert [g.subject_id for g in page.data] == [42]


def test_stranger_gets_not_found(world, use_case):
    document = world.add_document(origin_user_context_id=7)

    with pytest.raises(NotFoundError):
        use_case.execute(actor=USER_42, document_id=document.id)


def test_admin_is_forbidden(use_case):
    with pytest.raises(ForbiddenError):
        use_case.execute(actor=Actor(ActorType.ADMIN, 1))


def test_my_grants_and_pagination(world, use_case):
    for _ in range(3):
        document = world.add_document(origin_user_context_id=7)
        _grant(world, document.id, 42, USER_7)

    first = use_case.get_my_grants(actor=USER_42)
    second = use_case.get_my_grants(actor=USER_42, page=2)

    assert len(first.data) == 2
    assert first.has_next_page is True
    assert len(second.data) == 1
    assert second.has_next_page is False


def test_subject_type_filter(world, use_case):
    document = world.add_document(origin_user_context_id=7)
    _grant(world, document.id, 42, USER_7)
    _grant(world, document.id, 50, USER_7, SubjectType.MANAGER)

    page = use_case.execute(
        actor=USER_7, document_id=document.id, subject_type=SubjectType.MANAGER
    )

    assert [g.subject_id for g in page.data] == [50]


def test_revoked_grants_are_not_listed(world, use_case):
    document = world.add_document(origin_user_context_id=7)
    grant = _grant(world, document.id, 42, USER_7)
    world.grant_service.revoke_grant(grant.id, USER_7)

    assert use_case.get_my_grants(actor=USER_42).data == []


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
def test_invalid_pagination(use_case, page, limit):
    with pytest.raises(BadRequestError):
        use_case.execute(actor=USER_7, page=page, limit=limit)
