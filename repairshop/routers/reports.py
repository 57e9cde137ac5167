from typing import Any, Dict, List, Tuple
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session
from repairshop.models import Expense, Payment, RepairOrder, to_local, utcnow
from repairshop.reports import (
    build_transactions,
    export_csv,
    filter_transactions,
    group_by_month,
    monthly_summary,
    summarize,
)
from repairshop.security import AuthContext, get_auth_context

logger = logging.getLogger("repairshop.reports")

router = APIRouter(prefix="/api/reports", tags=["reports"])

PERIOD_PATTERN = "^(today|month|all)$"


def _load(session: Session, tenant_id: str) -> Tuple[List[Payment], List[Expense]]:
    try:
        payments = session.exec(select(Payment).where(Payment.tenant_id == tenant_id)).all()
        expenses = session.exec(select(Expense).where(Expense.tenant_id == tenant_id)).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return payments, expenses


@router.get("/transactions")
def transactions(
    period: str = Query("month", pattern=PERIOD_PATTERN),
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(get_auth_context),
) -> Dict[str, Any]:
    """
    Ingresos y egresos unificados para el periodo pedido.
    Con period=all se agregan ademas los grupos por mes (yyyy-MM).
    """
    payments, expenses = _load(session, ctx.tenant_id)
    txs = filter_transactions(build_transactions(payments, expenses), period, utcnow())
    out: Dict[str, Any] = {
        "period": period,
        "transactions": [t.as_dict() for t in txs],
        "totals": summarize(txs),
    }
    if period == "all":
        out["months"] = {
            key: {"transactions": [t.as_dict() for t in group], "totals": summarize(group)}
            for key, group in sorted(group_by_month(txs).items(), reverse=True)
        }
    return out


@router.get("/monthly")
def monthly(
    months: int = Query(6, ge=1, le=24),
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(get_auth_context),
):
    payments, expenses = _load(session, ctx.tenant_id)
    try:
        orders = session.exec(select(RepairOrder).where(RepairOrder.tenant_id == ctx.tenant_id)).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return monthly_summary(payments, expenses, orders, utcnow(), months=months)


@router.get("/export")
def export(
    period: str = Query("month", pattern=PERIOD_PATTERN),
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(get_auth_context),
):
    payments, expenses = _load(session, ctx.tenant_id)
    now = utcnow()
    txs = filter_transactions(build_transactions(payments, expenses), period, now)
    filename = f"reporte-{period}-{to_local(now).strftime('%Y-%m-%d')}.csv"
    logger.info("CSV export tenant=%s period=%s rows=%d", ctx.tenant_id, period, len(txs))
    return Response(
        content=export_csv(txs),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
