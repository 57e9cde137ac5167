from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union
import logging
import os

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger("repairshop.security")

# Los tokens los emite el proveedor de identidad externo; aqui solo se verifican
SECRET_KEY = os.environ.get("AUTH_JWT_SECRET", "dev-secret")
ALGORITHM = os.environ.get("AUTH_JWT_ALGORITHM", "HS256")
AUDIENCE = os.environ.get("AUTH_JWT_AUDIENCE") or None
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

GUEST_TENANT_ID = "guest"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Authenticated:
    tenant_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Guest:
    tenant_id: str = GUEST_TENANT_ID


AuthContext = Union[Authenticated, Guest]


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Token firmado con la clave compartida. Lo usan los scripts de desarrollo y los tests."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    if AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = AUDIENCE
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            options={"verify_aud": AUDIENCE is not None},
        )
    except JWTError:
        return None


def resolve_auth_context(token: Optional[str]) -> AuthContext:
    if not token:
        return Guest()
    payload = decode_access_token(token)
    if not payload:
        logger.debug("invalid or expired token, falling back to guest")
        return Guest()
    subject = payload.get("sub")
    if not subject:
        logger.debug("token without subject, falling back to guest")
        return Guest()
    return Authenticated(tenant_id=str(subject), email=payload.get("email"))


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthContext:
    """
    Dependency: nunca falla. Sin token valido la peticion sigue como Guest
    y solo puede leer los datos del tenant "guest".
    """
    token = credentials.credentials if credentials else None
    return resolve_auth_context(token)


def require_tenant(ctx: AuthContext = Depends(get_auth_context)) -> Authenticated:
    """Dependency para endpoints que escriben: rechaza Guest con 401."""
    if isinstance(ctx, Authenticated):
        return ctx
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Se requiere iniciar sesión",
        headers={"WWW-Authenticate": "Bearer"},
    )
