"""
TARJETA CRC — infrastructure/repositories/postgres/managers.py

Manager Directory sobre la tabla managers (solo lectura desde este servicio).
"""

from __future__ import annotations

from typing import Optional

from ....domain.entities import Manager, ManagerVerificationStatus
from .base import PostgresRepositoryBase

_COLUMNS = "id, user_id, display_name, verification_status, created_at"


class PostgresManagerRepository(PostgresRepositoryBase):
    _SQL_FIND_BY_USER_ID = f"SELECT {_COLUMNS} FROM managers WHERE user_id = %s"
    _SQL_FIND_BY_ID = f"SELECT {_COLUMNS} FROM managers WHERE id = %s"

    @staticmethod
    def _row_to_manager(row: tuple) -> Manager:
        return Manager(
            id=row[0],
            user_id=row[1],
            display_name=row[2] or "",
            verification_status=ManagerVerificationStatus(row[3]),
            created_at=row[4],
        )

    def find_by_user_id(self, user_id: int) -> Optional[Manager]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_USER_ID,
            params=[user_id],
            context_msg="PostgresManagerRepository: Failed to get manager by user",
            extra={"user_id": user_id},
        )
        return self._row_to_manager(row) if row else None

    def find_by_id(self, manager_id: int) -> Optional[Manager]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_ID,
            params=[manager_id],
            context_msg="PostgresManagerRepository: Failed to get manager",
            extra={"manager_id": manager_id},
        )
        return self._row_to_manager(row) if row else None
