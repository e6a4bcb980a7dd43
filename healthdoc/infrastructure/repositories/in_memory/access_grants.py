"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/access_grants.py
============================================================
Class: InMemoryAccessGrantRepository

Responsibilities:
  - Almacenar grants en memoria (tests / local dev).
  - Replicar el índice único parcial de Postgres: a lo sumo un grant
    activo por (document_id, subject_type, subject_id).
  - Revocación condicional (solo si sigue activo).

Collaborators:
  - domain.repositories.AccessGrantRepository (contrato)
  - crosscutting.exceptions.DuplicateActiveGrantError

Constraints / Notes:
  - Thread-safe: chequeo de duplicado + insert bajo el MISMO lock.
  - Copias defensivas: el caller nunca recibe el objeto interno.
  - Repo puro: NO decide autorización.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from itertools import count
from threading import Lock
from typing import Dict, List, Optional
from uuid import UUID

from ....crosscutting.exceptions import DuplicateActiveGrantError
from ....domain.entities import AccessGrant, ActorType, NewAccessGrant, SubjectType


class InMemoryAccessGrantRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._grants: Dict[int, AccessGrant] = {}
        self._ids = count(1)

    def _find_active_unlocked(
        self, document_id: UUID, subject_type: SubjectType, subject_id: int
    ) -> Optional[AccessGrant]:
        for grant in self._grants.values():
            if (
                grant.is_active
                and grant.document_id == document_id
                and grant.subject_type == subject_type
                and grant.subject_id == subject_id
            ):
                return grant
        return None

    def find_active(
        self, document_id: UUID, subject_type: SubjectType, subject_id: int
    ) -> Optional[AccessGrant]:
        with self._lock:
            grant = self._find_active_unlocked(document_id, subject_type, subject_id)
            return replace(grant) if grant else None

    def find_by_document_id(
        self, document_id: UUID, *, active_only: bool = True
    ) -> List[AccessGrant]:
        with self._lock:
            return [
                replace(g)
                for g in self._grants.values()
                if g.document_id == document_id and (g.is_active or not active_only)
            ]

    def find_by_subject(
        self, subject_type: SubjectType, subject_id: int, *, active_only: bool = True
    ) -> List[AccessGrant]:
        with self._lock:
            return [
                replace(g)
                for g in self._grants.values()
                if g.subject_type == subject_type
                and g.subject_id == subject_id
                and (g.is_active or not active_only)
            ]

    def find_by_id(self, grant_id: int) -> Optional[AccessGrant]:
        with self._lock:
            grant = self._grants.get(grant_id)
            return replace(grant) if grant else None

    def create(self, grant: NewAccessGrant) -> AccessGrant:
        with self._lock:
            if self._find_active_unlocked(
                grant.document_id, grant.subject_type, grant.subject_id
            ):
                raise DuplicateActiveGrantError(
                    "Active grant already exists for this document and subject"
                )
            stored = AccessGrant(
                id=next(self._ids),
                document_id=grant.document_id,
                subject_type=grant.subject_type,
                subject_id=grant.subject_id,
                grant_type=grant.grant_type,
                granted_by_type=grant.granted_by_type,
                granted_by_id=grant.granted_by_id,
                created_at=datetime.now(timezone.utc),
            )
            self._grants[stored.id] = stored
            return replace(stored)

    def revoke(
        self, grant_id: int, revoked_by_type: ActorType, revoked_by_id: int
    ) -> bool:
        with self._lock:
            grant = self._grants.get(grant_id)
            if grant is None or not grant.is_active:
                return False
            self._grants[grant_id] = replace(
                grant,
                revoked_at=datetime.now(timezone.utc),
                revoked_by_type=revoked_by_type,
                revoked_by_id=revoked_by_id,
            )
            return True
