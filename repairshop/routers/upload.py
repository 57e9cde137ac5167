from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from repairshop.security import Authenticated, require_tenant
from repairshop.storage import UploadRejected, read_image, save_image

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("")
async def upload_file(file: UploadFile = File(...), user: Authenticated = Depends(require_tenant)):
    try:
        data = await read_image(file)
        url = save_image(user.tenant_id, file.filename, file.content_type, data)
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"url": url}
