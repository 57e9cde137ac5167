from fastapi import APIRouter, HTTPException, Depends, status
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, get_owned
from repairshop.finance import order_balance
from repairshop.ledger import order_payments
from repairshop.models import (
    ChecklistAnswer,
    Client,
    Device,
    OrderPriority,
    OrderStatus,
    RepairOrder,
    to_naive_utc,
    utcnow,
)
from repairshop.routers.devices import DeviceFields, create_device_for
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/orders", tags=["orders"])

RECENT_LIMIT = 6


class OrderCreate(BaseModel):
    client_id: int
    device_id: Optional[int] = None
    # equipo nuevo cargado en el mismo formulario de la orden
    device: Optional[DeviceFields] = None
    status: OrderStatus = "recibido"
    problem: str = Field(..., min_length=1)
    diagnosis: str = ""
    solution: str = ""
    technician_name: str = ""
    estimated_cost: float = Field(0.0, ge=0)
    final_cost: float = Field(0.0, ge=0)
    priority: OrderPriority = "normal"
    estimated_date: Optional[datetime] = None
    notes: str = ""
    intake_checklist: Dict[str, Optional[ChecklistAnswer]] = Field(default_factory=dict)

    @field_validator("estimated_date")
    @classmethod
    def _naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def _device_required(self):
        if self.device_id is None and self.device is None:
            raise ValueError("Se requiere device_id o device")
        return self


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    problem: Optional[str] = Field(None, min_length=1)
    diagnosis: Optional[str] = None
    solution: Optional[str] = None
    technician_name: Optional[str] = None
    estimated_cost: Optional[float] = Field(None, ge=0)
    final_cost: Optional[float] = Field(None, ge=0)
    estimated_date: Optional[datetime] = None
    priority: Optional[OrderPriority] = None
    notes: Optional[str] = None

    @field_validator("estimated_date")
    @classmethod
    def _naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


def apply_status(order: RepairOrder, new_status: str, now: Optional[datetime] = None) -> None:
    """Cambia el estado y completa las fechas de finalizacion/entrega si faltan."""
    now = now or utcnow()
    order.status = new_status
    if new_status == "listo" and order.completed_at is None:
        order.completed_at = now
    if new_status == "entregado" and order.delivered_at is None:
        order.delivered_at = now


def order_details(session: Session, order: RepairOrder) -> Dict[str, Any]:
    payments = order_payments(session, order.id)
    out = order.model_dump()
    out["client"] = session.get(Client, order.client_id)
    out["device"] = session.get(Device, order.device_id)
    out["payments"] = payments
    out["balance"] = order_balance(order, payments).as_dict()
    return out


def _list_orders(session: Session, tenant_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    q = (
        select(RepairOrder)
        .where(RepairOrder.tenant_id == tenant_id)
        .order_by(RepairOrder.created_at.desc(), RepairOrder.id.desc())
    )
    if limit:
        q = q.limit(limit)
    return [order_details(session, o) for o in session.exec(q).all()]


# /recent antes de /{order_id}
@router.get("/recent")
def recent_orders(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        return _list_orders(session, ctx.tenant_id, limit=RECENT_LIMIT)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("")
def list_orders(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        return _list_orders(session, ctx.tenant_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/{order_id}")
def get_order(order_id: int, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        order = get_owned(session, RepairOrder, order_id, ctx.tenant_id)
        if not order:
            raise HTTPException(status_code=404, detail="Orden no encontrada")
        return order_details(session, order)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=RepairOrder, status_code=status.HTTP_201_CREATED)
def create_order(order_in: OrderCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        if not get_owned(session, Client, order_in.client_id, user.tenant_id):
            raise HTTPException(status_code=400, detail="Cliente no existe")

        if order_in.device is not None:
            device = create_device_for(session, user.tenant_id, order_in.client_id, order_in.device)
            session.flush()
        else:
            device = get_owned(session, Device, order_in.device_id, user.tenant_id)
            if not device:
                raise HTTPException(status_code=400, detail="Equipo no existe")
        if device.client_id != order_in.client_id:
            raise HTTPException(status_code=400, detail="El equipo no pertenece al cliente")

        data = order_in.model_dump(exclude={"device", "device_id", "status"})
        order = RepairOrder(tenant_id=user.tenant_id, device_id=device.id, **data)
        apply_status(order, order_in.status)
        session.add(order)
        session.commit()
        session.refresh(order)
        return order
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.patch("/{order_id}", response_model=RepairOrder)
def update_order(
    order_id: int,
    order_in: OrderUpdate,
    session: Session = Depends(get_session),
    user: Authenticated = Depends(require_tenant),
):
    try:
        order = get_owned(session, RepairOrder, order_id, user.tenant_id)
        if not order:
            raise HTTPException(status_code=404, detail="Orden no encontrada")
        updates = order_in.model_dump(exclude_unset=True)
        new_status = updates.pop("status", None)
        for field, value in updates.items():
            # estimated_date admite null para borrarla
            if value is None and field != "estimated_date":
                continue
            setattr(order, field, value)
        if new_status:
            apply_status(order, new_status)
        session.add(order)
        session.commit()
        session.refresh(order)
        return order
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
