"""
===============================================================================
TARJETA CRC — healthdoc/jobs.py (Entrypoints estables de jobs)
===============================================================================

Responsabilidades:
  - Exponer el barrido de retención con un path de import estable para
    schedulers externos (cron, k8s CronJob).
  - Abrir/cerrar el pool cuando el job corre fuera del proceso de la API.

Colaboradores:
  - container.get_purge_expired_documents_use_case
  - infrastructure.db.pool
===============================================================================
"""

from __future__ import annotations

from .application.usecases import PurgeResult
from .container import get_purge_expired_documents_use_case
from .crosscutting.config import get_settings
from .infrastructure.db.pool import close_pool, init_pool


def purge_expired_documents_job() -> PurgeResult:
    """Un barrido. Asume el pool ya inicializado (o entorno de test)."""
    return get_purge_expired_documents_use_case().execute()


def main() -> int:
    settings = get_settings()
    uses_database = not settings.is_test()
    if uses_database:
        init_pool(
            database_url=settings.database_url,
            min_size=1,
            max_size=settings.db_pool_max_size,
        )
    try:
        result = purge_expired_documents_job()
    finally:
        if uses_database:
            close_pool()
    return 1 if result.failed else 0


__all__ = ["main", "purge_expired_documents_job"]


if __name__ == "__main__":
    raise SystemExit(main())
