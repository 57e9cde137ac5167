from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional
import csv
import io

from repairshop.models import to_local, utcnow

PERIODS = ("today", "month", "all")
CSV_HEADER = ["Fecha", "Tipo", "Categoría", "Descripción", "Método", "Monto"]
CSV_DATE_FORMAT = "%Y-%m-%d %H:%M"

KIND_LABELS = {"income": "Ingreso", "expense": "Egreso"}
KIND_FROM_LABEL = {v: k for k, v in KIND_LABELS.items()}


@dataclass(frozen=True)
class Transaction:
    date: datetime
    kind: str  # "income" | "expense"
    category: str
    description: str
    method: str
    amount: float

    @property
    def signed_amount(self) -> float:
        return -self.amount if self.kind == "expense" else self.amount

    def as_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "kind": self.kind,
            "category": self.category,
            "description": self.description,
            "method": self.method,
            "amount": self.amount,
        }


def _payment_description(payment: Any) -> str:
    notes = (getattr(payment, "notes", "") or "").strip()
    if notes:
        return notes
    names = [str(i.get("name", "")) for i in (getattr(payment, "items", None) or []) if i.get("name")]
    return ", ".join(names)


def build_transactions(payments: Iterable[Any], expenses: Iterable[Any]) -> List[Transaction]:
    """Une cobros (ingresos) y gastos (egresos) en una sola lista, mas reciente primero."""
    txs: List[Transaction] = []
    for p in payments:
        txs.append(
            Transaction(
                date=p.date,
                kind="income",
                category="Reparación" if p.order_id else "Venta",
                description=_payment_description(p),
                method=p.method or "",
                amount=round(float(p.amount or 0), 2),
            )
        )
    for e in expenses:
        txs.append(
            Transaction(
                date=e.date,
                kind="expense",
                category=e.category or "",
                description=e.description or "",
                method="",
                amount=round(float(e.amount or 0), 2),
            )
        )
    txs.sort(key=lambda t: t.date, reverse=True)
    return txs


def filter_transactions(
    txs: Iterable[Transaction],
    mode: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> List[Transaction]:
    """`today` y `month` se cuentan en la hora local del negocio, no en UTC."""
    local_now = to_local(now or utcnow(), tz)
    if mode == "today":
        return [t for t in txs if to_local(t.date, tz).date() == local_now.date()]
    if mode == "month":
        return [t for t in txs if month_key(to_local(t.date, tz)) == month_key(local_now)]
    if mode == "all":
        return list(txs)
    raise ValueError(f"unknown period: {mode!r}")


def summarize(txs: Iterable[Transaction]) -> Dict[str, float]:
    income = 0.0
    expense = 0.0
    for t in txs:
        if t.kind == "expense":
            expense += t.amount
        else:
            income += t.amount
    return {
        "income": round(income, 2),
        "expense": round(expense, 2),
        "balance": round(income - expense, 2),
    }


def month_key(ts: datetime) -> str:
    return ts.strftime("%Y-%m")


def group_by_month(txs: Iterable[Transaction], tz: Optional[tzinfo] = None) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = defaultdict(list)
    for t in txs:
        grouped[month_key(to_local(t.date, tz))].append(t)
    return dict(grouped)


def trailing_month_keys(now: datetime, months: int) -> List[str]:
    """Keys yyyy-MM de los ultimos `months` meses (orden ascendente, incluye el actual)."""
    keys: List[str] = []
    for i in range(months - 1, -1, -1):
        m = now.month - i
        y = now.year
        while m <= 0:
            m += 12
            y -= 1
        keys.append(f"{y}-{m:02d}")
    return keys


def monthly_summary(
    payments: Iterable[Any],
    expenses: Iterable[Any],
    orders: Iterable[Any],
    now: Optional[datetime] = None,
    months: int = 6,
    tz: Optional[tzinfo] = None,
) -> List[Dict[str, Any]]:
    keys = trailing_month_keys(to_local(now or utcnow(), tz), months)
    buckets = {k: {"month": k, "income": 0.0, "expense": 0.0, "balance": 0.0, "orders": 0} for k in keys}

    for p in payments:
        b = buckets.get(month_key(to_local(p.date, tz)))
        if b is not None:
            b["income"] += float(p.amount or 0)
    for e in expenses:
        b = buckets.get(month_key(to_local(e.date, tz)))
        if b is not None:
            b["expense"] += float(e.amount or 0)
    for o in orders:
        b = buckets.get(month_key(to_local(o.created_at, tz)))
        if b is not None:
            b["orders"] += 1

    result = []
    for k in keys:
        b = buckets[k]
        b["income"] = round(b["income"], 2)
        b["expense"] = round(b["expense"], 2)
        b["balance"] = round(b["income"] - b["expense"], 2)
        result.append(b)
    return result


def export_csv(txs: Iterable[Transaction]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADER)
    for t in txs:
        writer.writerow([
            t.date.strftime(CSV_DATE_FORMAT),
            KIND_LABELS.get(t.kind, t.kind),
            t.category,
            t.description,
            t.method,
            f"{t.signed_amount:.2f}",
        ])
    return buf.getvalue()


def parse_csv(text: str) -> List[Transaction]:
    """Lee un CSV generado por `export_csv`."""
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header != CSV_HEADER:
        raise ValueError("unexpected CSV header")
    txs: List[Transaction] = []
    for row in reader:
        if not row:
            continue
        fecha, tipo, categoria, descripcion, metodo, monto = row
        kind = KIND_FROM_LABEL.get(tipo, "income")
        txs.append(
            Transaction(
                date=datetime.strptime(fecha, CSV_DATE_FORMAT),
                kind=kind,
                category=categoria,
                description=descripcion,
                method=metodo,
                amount=abs(float(monto)),
            )
        )
    return txs
