from fastapi import APIRouter, HTTPException, Depends
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session
from repairshop.models import Expense, Payment, RepairOrder
from repairshop.security import AuthContext, get_auth_context
from repairshop.stats import compute_stats

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("")
def get_stats(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    """Numeros de las tarjetas del dashboard."""
    try:
        orders = session.exec(select(RepairOrder).where(RepairOrder.tenant_id == ctx.tenant_id)).all()
        payments = session.exec(select(Payment).where(Payment.tenant_id == ctx.tenant_id)).all()
        expenses = session.exec(select(Expense).where(Expense.tenant_id == ctx.tenant_id)).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return compute_stats(orders, payments, expenses)
