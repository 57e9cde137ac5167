from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from pydantic import BaseModel, Field
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, tenant_settings
from repairshop.finance import PaymentValidationError, compute_surcharge
from repairshop.ledger import OrderNotFoundError, record_payment
from repairshop.models import Payment, PaymentItem, PaymentMethod, RepairOrder
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/payments", tags=["payments"])


class PaymentCreate(BaseModel):
    order_id: Optional[int] = None
    # con items: total esperado (incluye recargo), se verifica contra el calculado.
    # sin items: monto base de la reparacion de order_id
    amount: Optional[float] = Field(None, gt=0)
    method: PaymentMethod
    notes: str = ""
    items: List[PaymentItem] = Field(default_factory=list)


class QuoteIn(BaseModel):
    base_amount: float = Field(..., ge=0)
    method: PaymentMethod


@router.get("")
def list_payments(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        q = select(Payment).where(Payment.tenant_id == ctx.tenant_id).order_by(Payment.date.desc())
        out = []
        for p in session.exec(q).all():
            row = p.model_dump()
            row["order"] = session.get(RepairOrder, p.order_id) if p.order_id else None
            out.append(row)
        return out
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Payment, status_code=status.HTTP_201_CREATED)
def create_payment(payment_in: PaymentCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        return record_payment(
            session,
            user.tenant_id,
            method=payment_in.method,
            items=payment_in.items,
            order_id=payment_in.order_id,
            amount=payment_in.amount,
            notes=payment_in.notes,
        )
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PaymentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("/quote")
def quote_payment(quote_in: QuoteIn, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    """Calcula el recargo sin registrar nada."""
    try:
        quote = compute_surcharge(quote_in.base_amount, quote_in.method, tenant_settings(session, ctx.tenant_id))
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {
        "base_amount": quote.base_amount,
        "percent": quote.percent,
        "surcharge": quote.surcharge,
        "final_amount": quote.final_amount,
    }
