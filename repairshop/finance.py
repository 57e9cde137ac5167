"""
Calculo de saldos y recargos.

Todas las vistas que muestran lo pagado o lo pendiente de una orden pasan por
`order_balance`. Los recargos por tarjeta/transferencia se guardan como una
linea aparte del cobro y nunca descuentan deuda de la reparacion.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union, Any

from repairshop.models import PaymentItem

BASE_AMOUNT_TOLERANCE = 0.05
SURCHARGE_MARKERS = ("recargo", "surcharge")

METHOD_LABELS = {
    "efectivo": "efectivo",
    "tarjeta": "tarjeta",
    "transferencia": "transferencia",
}


class PaymentValidationError(ValueError):
    """El cobro no respeta el saldo de la orden."""


@dataclass(frozen=True)
class OrderBalance:
    total_cost: float
    total_paid: float
    pending_balance: float
    is_cost_defined: bool

    def as_dict(self) -> dict:
        return {
            "total_cost": self.total_cost,
            "total_paid": self.total_paid,
            "pending_balance": self.pending_balance,
            "is_cost_defined": self.is_cost_defined,
        }


@dataclass(frozen=True)
class SurchargeQuote:
    base_amount: float
    percent: float
    surcharge: float
    final_amount: float


def _get(obj: Any, name: str, default=None):
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _as_float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def is_surcharge_name(name: Optional[str]) -> bool:
    lowered = (name or "").lower()
    return any(marker in lowered for marker in SURCHARGE_MARKERS)


def is_repair_credit(item: Union[PaymentItem, Mapping]) -> bool:
    """
    Una linea descuenta deuda si es de tipo "repair", o si no tiene tipo
    (registros viejos) y su nombre no indica recargo.
    """
    item_type = _get(item, "type")
    if item_type == "repair":
        return True
    if not item_type:
        return not is_surcharge_name(_get(item, "name"))
    return False


def item_total(item: Union[PaymentItem, Mapping]) -> float:
    quantity = _get(item, "quantity")
    if quantity is None:
        quantity = 1
    return _as_float(_get(item, "price")) * _as_float(quantity)


def credited_amount(payment: Any) -> float:
    """Parte del cobro que cuenta como pago de la reparacion."""
    items = _get(payment, "items") or []
    if items:
        return round(sum(item_total(i) for i in items if is_repair_credit(i)), 2)
    # cobros sin detalle: cuenta el monto completo
    return round(_as_float(_get(payment, "amount")), 2)


def order_total_cost(order: Any) -> float:
    final_cost = _as_float(_get(order, "final_cost"))
    if final_cost > 0:
        return final_cost
    return _as_float(_get(order, "estimated_cost"))


def order_balance(order: Any, payments: Iterable[Any]) -> OrderBalance:
    total_cost = round(order_total_cost(order), 2)
    total_paid = round(sum(credited_amount(p) for p in payments), 2)
    pending = round(max(0.0, total_cost - total_paid), 2)
    return OrderBalance(
        total_cost=total_cost,
        total_paid=total_paid,
        pending_balance=pending,
        is_cost_defined=total_cost > 0,
    )


def surcharge_percent(method: str, settings: Any) -> float:
    if method == "tarjeta":
        return _as_float(_get(settings, "card_surcharge"))
    if method == "transferencia":
        return _as_float(_get(settings, "transfer_surcharge"))
    # efectivo nunca lleva recargo
    return 0.0


def compute_surcharge(base_amount: float, method: str, settings: Any) -> SurchargeQuote:
    base = _as_float(base_amount)
    percent = surcharge_percent(method, settings)
    surcharge = round(base * (percent / 100), 2)
    return SurchargeQuote(
        base_amount=round(base, 2),
        percent=percent,
        surcharge=surcharge,
        final_amount=round(base + surcharge, 2),
    )


def validate_base_amount(base_amount: float, pending_balance: float) -> None:
    """Solo se valida la base; el recargo puede superar el saldo pendiente."""
    if base_amount > pending_balance + BASE_AMOUNT_TOLERANCE:
        raise PaymentValidationError(
            f"El monto ({base_amount:.2f}) supera el saldo pendiente ({pending_balance:.2f})"
        )


def surcharge_item(quote: SurchargeQuote, method: str) -> PaymentItem:
    label = METHOD_LABELS.get(method, method)
    percent = f"{quote.percent:g}"
    return PaymentItem(
        type="other",
        name=f"Recargo {label} ({percent}%)",
        quantity=1,
        price=quote.surcharge,
    )
