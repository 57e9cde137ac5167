from calendar import monthrange
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, Optional, Tuple

from repairshop.finance import credited_amount
from repairshop.models import to_local, utcnow


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Primer y ultimo instante del mes calendario de `now` (ambos inclusivos)."""
    last_day = monthrange(now.year, now.month)[1]
    start = datetime(now.year, now.month, 1)
    end = datetime(now.year, now.month, last_day, 23, 59, 59, 999999)
    return start, end


def compute_stats(
    orders: Iterable[Any],
    payments: Iterable[Any],
    expenses: Iterable[Any],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, Any]:
    # mes y dia calendario en la hora local del negocio
    now = to_local(now or utcnow(), tz)
    start, end = month_bounds(now)
    today = now.date()

    active = 0
    pending_diagnosis = 0
    ready = 0
    for o in orders:
        if o.status != "entregado":
            active += 1
        if o.status in ("recibido", "diagnostico"):
            pending_diagnosis += 1
        if o.status == "listo":
            ready += 1

    monthly_revenue = 0.0
    monthly_income = 0.0
    daily_income = 0.0
    for p in payments:
        local = to_local(p.date, tz)
        if start <= local <= end:
            monthly_income += float(p.amount or 0)
            if p.order_id:
                monthly_revenue += credited_amount(p)
        if local.date() == today:
            daily_income += float(p.amount or 0)

    monthly_expenses = 0.0
    daily_expenses = 0.0
    for e in expenses:
        local = to_local(e.date, tz)
        if start <= local <= end:
            monthly_expenses += float(e.amount or 0)
        if local.date() == today:
            daily_expenses += float(e.amount or 0)

    return {
        "active_orders": active,
        "pending_diagnosis": pending_diagnosis,
        "ready_for_pickup": ready,
        "monthly_revenue": round(monthly_revenue, 2),
        "monthly_income": round(monthly_income, 2),
        "monthly_expenses": round(monthly_expenses, 2),
        "net_balance": round(monthly_income - monthly_expenses, 2),
        "daily_income": round(daily_income, 2),
        "daily_expenses": round(daily_expenses, 2),
        "cash_in_box": round(daily_income - daily_expenses, 2),
    }
