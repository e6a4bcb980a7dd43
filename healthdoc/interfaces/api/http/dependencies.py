"""
===============================================================================
TARJETA CRC — dependencies.py (Identidad del actor + helpers de borde)
===============================================================================

Responsabilidades:
  - Resolver el Actor autenticado desde un JWT de acceso (HS256).
  - Extraer el token desde `Authorization: Bearer` o cookie.
  - Leer UploadFile con límite duro (anti OOM).
  - Sanitizar filenames de upload.

Colaboradores:
  - crosscutting.config.get_settings: secreto JWT y nombre de cookie.
  - crosscutting.error_responses: unauthorized / payload_too_large.
  - domain.entities.Actor / ActorType

Notas:
  - Este backend NO emite tokens: solo los verifica.
  - Claims mínimos: sub (id de usuario), role (user | manager | admin), exp.
  - Nunca loguear el token.
===============================================================================
"""

from __future__ import annotations

import os
from typing import Final

import jwt
from fastapi import Header, Request, UploadFile

from ....crosscutting.config import get_settings
from ....crosscutting.error_responses import payload_too_large, unauthorized
from ....crosscutting.logger import logger
from ....domain.entities import Actor, ActorType

JWT_ALGORITHM: Final[str] = "HS256"

CLAIM_SUB: Final[str] = "sub"
CLAIM_ROLE: Final[str] = "role"
CLAIM_EXP: Final[str] = "exp"

_UPLOAD_CHUNK_SIZE: Final[int] = 1024 * 1024  # 1MB


# =============================================================================
# JWT -> Actor
# =============================================================================


def decode_access_token(token: str, secret: str | None = None) -> Actor:
    """
    Decodifica y valida un JWT de acceso.

    Errores:
        - 401 si expiró, la firma es inválida o faltan claims.
        - 401 si role no es un tipo de actor conocido o sub no es entero.
    """
    key = secret if secret is not None else get_settings().jwt_secret

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token inválido.") from exc

    try:
        actor_type = ActorType(str(payload[CLAIM_ROLE]).lower())
        actor_id = int(payload[CLAIM_SUB])
    except (ValueError, TypeError) as exc:
        logger.warning("Rejected token with invalid actor claims")
        raise unauthorized("Token inválido.") from exc

    return Actor(type=actor_type, id=actor_id)


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Resuelve token desde Authorization o cookie."""
    token = _extract_bearer_token(authorization)
    if token:
        return token
    cookie_name = get_settings().jwt_cookie_name or ""
    return request.cookies.get(cookie_name) if cookie_name else None


async def get_current_actor(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Actor:
    """Dependencia FastAPI: exige un actor autenticado."""
    token = extract_access_token(request, authorization)
    if not token:
        raise unauthorized("Falta token Bearer.")
    return decode_access_token(token)


# =============================================================================
# Upload helpers
# =============================================================================


def sanitize_filename(filename: str | None) -> str:
    """Nos quedamos con el basename."""
    if not filename:
        return "upload"
    return os.path.basename(filename) or "upload"


async def read_upload_bytes(file: UploadFile, *, max_bytes: int | None = None) -> bytes:
    """
    Lee un UploadFile en memoria respetando un límite duro.

    Fail-fast con RFC7807 413 en cuanto se supera el límite.
    """
    limit = max_bytes if max_bytes is not None else get_settings().max_upload_bytes

    data = bytearray()
    while True:
        piece = await file.read(_UPLOAD_CHUNK_SIZE)
        if not piece:
            break
        data.extend(piece)
        if len(data) > limit:
            raise payload_too_large(f"{limit} bytes")

    return bytes(data)
