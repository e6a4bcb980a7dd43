"""
===============================================================================
TARJETA CRC — exception_handlers.py (Error interno -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir HealthDocError y derivadas a respuestas RFC7807.
  - Centralizar logging de errores con error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Mapeo:
  - NotFoundError            -> 404 NOT_FOUND
  - ForbiddenError           -> 403 FORBIDDEN
  - BadRequestError          -> 400 BAD_REQUEST (incluye grant duplicado)
  - DatabaseError            -> 503 DATABASE_ERROR
  - StorageError             -> 503 STORAGE_ERROR
  - ServiceUnavailableError  -> 503 SERVICE_UNAVAILABLE
  - HealthDocError (base)    -> 500 INTERNAL_ERROR
  - Exception                -> 500 INTERNAL_ERROR (mensaje genérico en prod)

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions
===============================================================================
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ....crosscutting.config import get_settings
from ....crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ....crosscutting.exceptions import (
    BadRequestError,
    DatabaseError,
    ForbiddenError,
    HealthDocError,
    NotFoundError,
    ServiceUnavailableError,
    StorageError,
)
from ....crosscutting.logger import logger


async def _handle_service_error(
    request: Request,
    *,
    exc: HealthDocError,
    code: ErrorCode,
    status_code: int,
) -> JSONResponse:
    """Helper común para errores tipados."""
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Request failed",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "status": status_code,
            "path": request.url.path,
        },
    )

    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.NOT_FOUND, status_code=404
    )


async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.FORBIDDEN, status_code=403
    )


async def bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.BAD_REQUEST, status_code=400
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.DATABASE_ERROR, status_code=503
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.STORAGE_ERROR, status_code=503
    )


async def service_unavailable_handler(
    request: Request, exc: ServiceUnavailableError
) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.SERVICE_UNAVAILABLE, status_code=503
    )


async def healthdoc_error_handler(request: Request, exc: HealthDocError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    app_exc = AppHTTPException(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Request validation failed",
        errors=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ],
    )
    return await app_exception_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log completo (stacktrace) y respuesta genérica."""
    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={"path": request.url.path},
    )

    detail = "Error interno."
    if not get_settings().is_production():
        detail = str(exc) or detail

    app_exc = AppHTTPException(
        status_code=500, code=ErrorCode.INTERNAL_ERROR, detail=detail
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registra handlers en la app FastAPI.

    Starlette resuelve por MRO: las subclases ganan sobre HealthDocError.
    """
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ForbiddenError, forbidden_handler)
    app.add_exception_handler(BadRequestError, bad_request_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(ServiceUnavailableError, service_unavailable_handler)
    app.add_exception_handler(HealthDocError, healthdoc_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
