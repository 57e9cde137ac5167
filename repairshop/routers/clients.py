from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from pydantic import BaseModel, Field
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, get_owned
from repairshop.models import Client, RepairOrder
from repairshop.routers.orders import order_details
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/clients", tags=["clients"])


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    dni: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    who_picks_up: str = ""
    notes: str = ""


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    dni: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    who_picks_up: Optional[str] = None
    notes: Optional[str] = None


@router.get("", response_model=List[Client])
def list_clients(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        q = select(Client).where(Client.tenant_id == ctx.tenant_id).order_by(Client.name)
        return session.exec(q).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/{client_id}", response_model=Client)
def get_client(client_id: int, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        client = get_owned(session, Client, client_id, ctx.tenant_id)
        if not client:
            raise HTTPException(status_code=404, detail="Cliente no encontrado")
        return client
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/{client_id}/orders")
def list_client_orders(client_id: int, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        client = get_owned(session, Client, client_id, ctx.tenant_id)
        if not client:
            raise HTTPException(status_code=404, detail="Cliente no encontrado")
        q = (
            select(RepairOrder)
            .where(RepairOrder.tenant_id == ctx.tenant_id, RepairOrder.client_id == client_id)
            .order_by(RepairOrder.created_at.desc())
        )
        return [order_details(session, o) for o in session.exec(q).all()]
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
def create_client(client_in: ClientCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        client = Client(tenant_id=user.tenant_id, **client_in.model_dump())
        session.add(client)
        session.commit()
        session.refresh(client)
        return client
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.patch("/{client_id}", response_model=Client)
def update_client(
    client_id: int,
    client_in: ClientUpdate,
    session: Session = Depends(get_session),
    user: Authenticated = Depends(require_tenant),
):
    try:
        client = get_owned(session, Client, client_id, user.tenant_id)
        if not client:
            raise HTTPException(status_code=404, detail="Cliente no encontrado")
        for field, value in client_in.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(client, field, value)
        session.add(client)
        session.commit()
        session.refresh(client)
        return client
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
