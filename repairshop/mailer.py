import os
import html
import logging
from typing import Dict, Any, List, Optional

from fastapi import UploadFile
from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

logger = logging.getLogger("repairshop.mailer")

MAIL_USERNAME = os.getenv("MAIL_USERNAME")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
MAIL_FROM = os.getenv("MAIL_FROM", MAIL_USERNAME)
MAIL_SERVER = os.getenv("MAIL_SERVER")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "RepairShop")

MAIL_STARTTLS = os.getenv("MAIL_TLS", "true").lower() in ("1", "true", "yes")
MAIL_SSL_TLS = os.getenv("MAIL_SSL", "false").lower() in ("1", "true", "yes")

SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", MAIL_FROM or "")
SUPPORT_SUBJECT = "Solicitud de Soporte - RepairShop"


def mail_configured() -> bool:
    return bool(MAIL_SERVER and MAIL_USERNAME and MAIL_PASSWORD and SUPPORT_EMAIL)


def _connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=MAIL_USERNAME,
        MAIL_PASSWORD=MAIL_PASSWORD,
        MAIL_FROM=MAIL_FROM,
        MAIL_FROM_NAME=MAIL_FROM_NAME,
        MAIL_PORT=MAIL_PORT,
        MAIL_SERVER=MAIL_SERVER,
        MAIL_STARTTLS=MAIL_STARTTLS,
        MAIL_SSL_TLS=MAIL_SSL_TLS,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )


def render_support_body(message: str, tenant_id: str, image_names: List[str]) -> str:
    body = f"<p>{html.escape(message).replace(chr(10), '<br>')}</p>"
    body += f"<p><small>Cuenta: {html.escape(tenant_id)}</small></p>"
    if image_names:
        body += "<hr><h3>Imágenes adjuntas:</h3><ul>"
        body += "".join(f"<li>{html.escape(n)}</li>" for n in image_names)
        body += "</ul>"
    return body


async def send_support_request(message: str, tenant_id: str, images: Optional[List[UploadFile]] = None) -> Dict[str, Any]:
    images = images or []
    names = [img.filename or f"imagen-{i + 1}.jpg" for i, img in enumerate(images)]
    html_body = render_support_body(message, tenant_id, names)

    # sin configuracion de correo no se rompe: se registra y se informa el estado
    if not mail_configured():
        logger.warning(
            "Mail not configured (MAIL_SERVER/MAIL_USERNAME/MAIL_PASSWORD/SUPPORT_EMAIL). Support request from %s not sent",
            tenant_id,
        )
        return {"status": "not_configured", "to": SUPPORT_EMAIL}

    message_schema = MessageSchema(
        subject=SUPPORT_SUBJECT,
        recipients=[SUPPORT_EMAIL],
        body=html_body,
        subtype=MessageType.html,
        attachments=list(images),
    )

    try:
        fm = FastMail(_connection_config())
        await fm.send_message(message_schema)
        logger.info("Support request from %s sent to %s (%d images)", tenant_id, SUPPORT_EMAIL, len(images))
        return {"status": "sent", "to": SUPPORT_EMAIL}
    except Exception as e:
        logger.exception("Failed sending support request from %s: %s", tenant_id, e)
        return {"status": "failed", "to": SUPPORT_EMAIL, "error": str(e)}
