import os
import uuid
import logging
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger("repairshop.storage")

UPLOAD_DIR = os.path.abspath(os.getenv("UPLOAD_DIR", "./uploads"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
UPLOADS_ROUTE = "/uploads"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg"}


class UploadRejected(ValueError):
    pass


def ensure_upload_dir() -> str:
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    return UPLOAD_DIR


def _extension(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return ext if ext in ALLOWED_EXTENSIONS else ".bin"


def check_image(content_type: Optional[str], size: int) -> None:
    if not (content_type or "").startswith("image/"):
        raise UploadRejected("Solo se permiten archivos de imagen")
    if size > MAX_UPLOAD_BYTES:
        raise UploadRejected("El archivo es demasiado grande. Máximo 10MB por archivo")


async def read_image(upload: UploadFile) -> bytes:
    """Lee la imagen sin pasar de MAX_UPLOAD_BYTES + 1 bytes en memoria."""
    check_image(upload.content_type, upload.size or 0)
    data = await upload.read(MAX_UPLOAD_BYTES + 1)
    check_image(upload.content_type, len(data))
    return data


def save_image(tenant_id: str, filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
    """Guarda la imagen bajo el directorio del tenant y devuelve su URL publica."""
    check_image(content_type, len(data))
    # el tenant viene del token; se limpia por si trae separadores
    safe_tenant = "".join(c for c in tenant_id if c.isalnum() or c in "-_") or "tenant"
    tenant_dir = os.path.join(ensure_upload_dir(), safe_tenant)
    os.makedirs(tenant_dir, exist_ok=True)
    name = f"{uuid.uuid4().hex}{_extension(filename)}"
    with open(os.path.join(tenant_dir, name), "wb") as fh:
        fh.write(data)
    logger.info("Stored upload %s/%s (%d bytes)", safe_tenant, name, len(data))
    return f"{PUBLIC_BASE_URL}{UPLOADS_ROUTE}/{safe_tenant}/{name}"
