from datetime import datetime, timedelta, timezone

from repairshop.models import Expense, Payment, RepairOrder
from repairshop.stats import compute_stats, month_bounds

NOW = datetime(2026, 4, 30, 20, 0)


def _order(status):
    return RepairOrder(tenant_id="t", client_id=1, device_id=1, problem="x", status=status)


def _dataset():
    orders = [_order(s) for s in ("recibido", "diagnostico", "en_curso", "listo", "listo", "entregado")]
    payments = [
        # reparacion con recargo: 100 credito + 10 recargo
        Payment(tenant_id="t", order_id=1, amount=110, method="tarjeta", date=datetime(2026, 4, 1, 0, 0),
                items=[{"type": "repair", "name": "R", "quantity": 1, "price": 100},
                       {"type": "other", "name": "Recargo tarjeta (10%)", "quantity": 1, "price": 10}]),
        Payment(tenant_id="t", order_id=None, amount=40, method="efectivo", date=datetime(2026, 4, 30, 23, 59, 59)),
        Payment(tenant_id="t", order_id=2, amount=500, method="efectivo", date=datetime(2026, 3, 31, 23, 59, 59)),
    ]
    expenses = [
        Expense(tenant_id="t", amount=25, category="Insumos", description="Flux", date=datetime(2026, 4, 30, 9, 0)),
        Expense(tenant_id="t", amount=99, category="Insumos", description="Otro mes", date=datetime(2026, 5, 1, 0, 0)),
    ]
    return orders, payments, expenses


def test_month_bounds_inclusive():
    start, end = month_bounds(NOW)
    assert start == datetime(2026, 4, 1)
    assert end.date() == datetime(2026, 4, 30).date()
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_order_counters():
    stats = compute_stats(*_dataset(), now=NOW)
    assert stats["active_orders"] == 5
    assert stats["pending_diagnosis"] == 2
    assert stats["ready_for_pickup"] == 2


def test_monthly_figures():
    stats = compute_stats(*_dataset(), now=NOW)
    assert stats["monthly_income"] == 150.0
    assert stats["monthly_revenue"] == 100.0
    assert stats["monthly_expenses"] == 25.0
    assert stats["net_balance"] == 125.0
    assert stats["daily_income"] == 40.0
    assert stats["daily_expenses"] == 25.0
    assert stats["cash_in_box"] == 15.0


def test_stats_are_idempotent():
    data = _dataset()
    assert compute_stats(*data, now=NOW) == compute_stats(*data, now=NOW)


def test_daily_figures_use_shop_timezone():
    shop = timezone(timedelta(hours=-3))
    # 01:00 UTC del 1 de mayo = 22:00 del 30 de abril en el local
    late = Payment(tenant_id="t", order_id=None, amount=70, method="efectivo", date=datetime(2026, 5, 1, 1, 0))
    now = datetime(2026, 5, 1, 2, 0)
    utc_stats = compute_stats([], [late], [], now=now)
    local_stats = compute_stats([], [late], [], now=now, tz=shop)
    assert utc_stats["daily_income"] == 70.0
    assert local_stats["daily_income"] == 70.0
    assert local_stats["monthly_income"] == 70.0
    assert compute_stats([], [late], [], now=datetime(2026, 5, 1, 12, 0), tz=shop)["daily_income"] == 0.0
