"""
TARJETA CRC — infrastructure/repositories/in_memory/managers.py

Manager Directory en memoria (tests / local dev). `add` es un helper de
seed: el alta real de managers vive fuera de este servicio.
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, Optional

from ....domain.entities import Manager


class InMemoryManagerRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._managers: Dict[int, Manager] = {}

    def add(self, manager: Manager) -> None:
        with self._lock:
            self._managers[manager.id] = replace(manager)

    def find_by_user_id(self, user_id: int) -> Optional[Manager]:
        with self._lock:
            for manager in self._managers.values():
                if manager.user_id == user_id:
                    return replace(manager)
            return None

    def find_by_id(self, manager_id: int) -> Optional[Manager]:
        with self._lock:
            manager = self._managers.get(manager_id)
            return replace(manager) if manager else None
