"""
Registro de cobros.

Un cobro puede venir de la caja (carrito con productos y/o una reparacion) o
del dialogo de pago de una orden. El descuento de stock y el alta del cobro
van en la misma transaccion: si algo falla no queda ni uno ni otro.
"""
from typing import List, Optional
import logging

from sqlmodel import Session, select

from repairshop.database import get_owned, tenant_settings
from repairshop.finance import (
    BASE_AMOUNT_TOLERANCE,
    PaymentValidationError,
    compute_surcharge,
    is_repair_credit,
    item_total,
    order_balance,
    surcharge_item,
    validate_base_amount,
)
from repairshop.models import Payment, PaymentItem, Product, RepairOrder

logger = logging.getLogger("repairshop.ledger")


class OrderNotFoundError(LookupError):
    pass


def _resolve_order_id(order_id: Optional[int], items: List[PaymentItem]) -> Optional[int]:
    # un cobro acredita a una sola orden: no se mezclan reparaciones de ordenes distintas
    repair_ids = {item.id for item in items if item.type == "repair" and item.id}
    if order_id:
        repair_ids.add(order_id)
    if len(repair_ids) > 1:
        raise PaymentValidationError("El cobro mezcla reparaciones de distintas órdenes")
    return order_id or next(iter(repair_ids), None)


def order_payments(db: Session, order_id: int) -> List[Payment]:
    return db.exec(select(Payment).where(Payment.order_id == order_id).order_by(Payment.date)).all()


def record_payment(
    db: Session,
    tenant_id: str,
    method: str,
    items: Optional[List[PaymentItem]] = None,
    order_id: Optional[int] = None,
    amount: Optional[float] = None,
    notes: str = "",
) -> Payment:
    items = list(items or [])
    target_id = _resolve_order_id(order_id, items)

    order: Optional[RepairOrder] = None
    if target_id is not None:
        order = get_owned(db, RepairOrder, target_id, tenant_id)
        if order is None:
            raise OrderNotFoundError(f"Orden {target_id} no encontrada")

    if not items:
        if order is None or amount is None:
            raise PaymentValidationError("El cobro no tiene items")
        items = [PaymentItem(type="repair", id=order.id, name=f"Reparación #{order.id}", quantity=1, price=amount)]
        amount = None

    if order is not None:
        balance = order_balance(order, order_payments(db, order.id))
        if not balance.is_cost_defined:
            raise PaymentValidationError("La orden no tiene costo definido")
        repair_base = round(sum(item_total(i) for i in items if is_repair_credit(i)), 2)
        if repair_base < 0:
            raise PaymentValidationError("El monto de la reparación no puede ser negativo")
        validate_base_amount(repair_base, balance.pending_balance)

    base = round(sum(item_total(i) for i in items), 2)
    if base <= 0:
        raise PaymentValidationError("El monto debe ser mayor a 0")

    quote = compute_surcharge(base, method, tenant_settings(db, tenant_id))
    if quote.surcharge > 0:
        items.append(surcharge_item(quote, method))

    if amount is not None and abs(amount - quote.final_amount) > BASE_AMOUNT_TOLERANCE:
        raise PaymentValidationError(
            f"El monto ({amount:.2f}) no coincide con el total calculado ({quote.final_amount:.2f})"
        )

    for item in items:
        if item.type != "product" or not item.id:
            continue
        prod = get_owned(db, Product, item.id, tenant_id)
        if prod is None:
            raise PaymentValidationError(f"Producto {item.id} no existe")
        if prod.quantity < item.quantity:
            raise PaymentValidationError(f"Stock insuficiente para {prod.name}")
        prod.quantity = prod.quantity - item.quantity
        db.add(prod)

    payment = Payment(
        tenant_id=tenant_id,
        order_id=order.id if order is not None else None,
        amount=quote.final_amount,
        method=method,
        notes=notes or "",
        items=[i.model_dump() for i in items],
    )
    db.add(payment)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(payment)
    logger.info(
        "Recorded payment %s tenant=%s order=%s amount=%.2f surcharge=%.2f",
        payment.id, tenant_id, payment.order_id, payment.amount, quote.surcharge,
    )
    return payment
