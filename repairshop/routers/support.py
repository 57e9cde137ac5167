from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from repairshop import mailer
from repairshop.security import AuthContext, get_auth_context
from repairshop.storage import UploadRejected, read_image

router = APIRouter(prefix="/api/support", tags=["support"])

MAX_IMAGES = 5
MIN_MESSAGE_LENGTH = 10


@router.post("")
async def send_support(
    message: str = Form(""),
    images: Optional[List[UploadFile]] = File(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    if len(message.strip()) < MIN_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail="El mensaje debe tener al menos 10 caracteres")
    images = images or []
    if len(images) > MAX_IMAGES:
        raise HTTPException(status_code=400, detail="Demasiados archivos. Máximo 5 imágenes")
    for img in images:
        try:
            await read_image(img)
        except UploadRejected as e:
            raise HTTPException(status_code=400, detail=str(e))
        await img.seek(0)

    result = await mailer.send_support_request(message.strip(), ctx.tenant_id, images)
    if result["status"] == "not_configured":
        raise HTTPException(status_code=503, detail="El correo de soporte no está configurado")
    if result["status"] != "sent":
        raise HTTPException(status_code=500, detail="Error al enviar el mensaje")
    return {"success": True, "message": "Mensaje enviado correctamente"}
