from types import SimpleNamespace

import pytest

from repairshop.finance import (
    PaymentValidationError,
    compute_surcharge,
    credited_amount,
    order_balance,
    surcharge_item,
    validate_base_amount,
)
from repairshop.models import Payment, RepairOrder, Settings


def _order(estimated=0.0, final=0.0):
    return RepairOrder(tenant_id="t", client_id=1, device_id=1, problem="x", estimated_cost=estimated, final_cost=final)


def _payment(amount, items=None):
    return Payment(tenant_id="t", amount=amount, method="tarjeta", items=items or [])


def test_surcharge_items_do_not_reduce_debt():
    p = _payment(110.0, [
        {"type": "repair", "id": 1, "name": "Reparación #1", "quantity": 1, "price": 100.0},
        {"type": "other", "name": "Recargo tarjeta (10%)", "quantity": 1, "price": 10.0},
    ])
    assert credited_amount(p) == 100.0


def test_untyped_legacy_items_filtered_by_name():
    p = _payment(125.0, [
        {"name": "Cambio de pantalla", "quantity": 1, "price": 100.0},
        {"name": "RECARGO transferencia", "quantity": 1, "price": 20.0},
        {"name": "Surcharge card", "quantity": 1, "price": 5.0},
    ])
    assert credited_amount(p) == 100.0


def test_product_and_other_items_only_count_when_typed_repair():
    p = _payment(60.0, [
        {"type": "product", "id": 3, "name": "Funda", "quantity": 2, "price": 10.0},
        {"type": "other", "name": "Mano de obra extra", "quantity": 1, "price": 15.0},
        {"type": "repair", "id": 1, "name": "Reparación", "quantity": 1, "price": 25.0},
    ])
    assert credited_amount(p) == 25.0


def test_payment_without_items_counts_full_amount():
    assert credited_amount(_payment(40.0)) == 40.0


def test_final_cost_supersedes_estimate():
    bal = order_balance(_order(estimated=100.0, final=150.0), [_payment(50.0)])
    assert bal.total_cost == 150.0
    assert bal.total_paid == 50.0
    assert bal.pending_balance == 100.0
    assert bal.is_cost_defined


def test_pending_balance_never_negative():
    bal = order_balance(_order(estimated=80.0), [_payment(50.0), _payment(50.0)])
    assert bal.total_paid == 100.0
    assert bal.pending_balance == 0.0


def test_cost_not_defined_when_both_costs_zero():
    bal = order_balance(_order(), [])
    assert not bal.is_cost_defined
    assert bal.pending_balance == 0.0


def test_balance_accepts_plain_dicts():
    order = {"estimated_cost": 200, "final_cost": 0}
    payments = [{"amount": 55, "items": [{"type": "repair", "name": "R", "quantity": 1, "price": 50}, {"type": "other", "name": "Recargo", "price": 5}]}]
    assert order_balance(order, payments).pending_balance == 150.0


def test_card_surcharge():
    settings = Settings(tenant_id="t", card_surcharge=10, transfer_surcharge=5)
    quote = compute_surcharge(100, "tarjeta", settings)
    assert quote.surcharge == 10
    assert quote.final_amount == 110


def test_transfer_surcharge():
    settings = Settings(tenant_id="t", card_surcharge=10, transfer_surcharge=5)
    quote = compute_surcharge(200, "transferencia", settings)
    assert quote.percent == 5
    assert quote.surcharge == 10
    assert quote.final_amount == 210


def test_cash_never_surcharged():
    settings = SimpleNamespace(card_surcharge=99, transfer_surcharge=99)
    quote = compute_surcharge(100, "efectivo", settings)
    assert quote.surcharge == 0
    assert quote.final_amount == 100


def test_base_amount_tolerance():
    validate_base_amount(100.05, 100.0)
    with pytest.raises(PaymentValidationError):
        validate_base_amount(100.06, 100.0)


def test_surcharge_item_is_excluded_from_credit():
    settings = Settings(tenant_id="t", card_surcharge=7.5)
    quote = compute_surcharge(100, "tarjeta", settings)
    item = surcharge_item(quote, "tarjeta")
    assert item.type == "other"
    assert item.name == "Recargo tarjeta (7.5%)"
    assert item.price == 7.5
    p = _payment(107.5, [{"type": "repair", "name": "R", "quantity": 1, "price": 100.0}, item.model_dump()])
    assert credited_amount(p) == 100.0
