from fastapi import APIRouter, HTTPException, Depends, status, Query
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, get_owned
from repairshop.models import Client, Device, LOCK_TYPES
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/devices", tags=["devices"])


class DeviceFields(BaseModel):
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    imei: str = ""
    serial_number: str = ""
    color: str = ""
    condition: str = ""
    lock_type: str = ""
    lock_value: str = ""

    @field_validator("lock_type")
    @classmethod
    def _check_lock_type(cls, v: str) -> str:
        v = (v or "").strip()
        if v.lower() == "none":
            v = ""
        if v not in LOCK_TYPES:
            raise ValueError(f"lock_type debe ser uno de {', '.join(t for t in LOCK_TYPES if t)} o vacío")
        return v


class DeviceCreate(DeviceFields):
    client_id: int


def create_device_for(session: Session, tenant_id: str, client_id: int, fields: DeviceFields) -> Device:
    """Alta de equipo sin commit; la usan tambien las ordenes con equipo inline."""
    if not get_owned(session, Client, client_id, tenant_id):
        raise HTTPException(status_code=400, detail="Cliente no existe")
    device = Device(tenant_id=tenant_id, client_id=client_id, **fields.model_dump(exclude={"client_id"}))
    session.add(device)
    return device


def _devices_for(session: Session, tenant_id: str, client_id: Optional[int]) -> List[Device]:
    q = select(Device).where(Device.tenant_id == tenant_id)
    if client_id is not None:
        q = q.where(Device.client_id == client_id)
    return session.exec(q).all()


@router.get("", response_model=List[Device])
def list_devices(
    client_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        return _devices_for(session, ctx.tenant_id, client_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/{client_id}", response_model=List[Device])
def list_client_devices(client_id: int, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        return _devices_for(session, ctx.tenant_id, client_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Device, status_code=status.HTTP_201_CREATED)
def create_device(device_in: DeviceCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        device = create_device_for(session, user.tenant_id, device_in.client_id, device_in)
        session.commit()
        session.refresh(device)
        return device
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
