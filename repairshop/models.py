from typing import Optional, List, Dict, Literal, get_args
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo
import os

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

OrderStatus = Literal["recibido", "diagnostico", "en_curso", "listo", "entregado"]
OrderPriority = Literal["normal", "urgente"]
PaymentMethod = Literal["efectivo", "tarjeta", "transferencia"]
ItemType = Literal["repair", "product", "other"]
PrintFormat = Literal["a4", "ticket"]
ChecklistAnswer = Literal["yes", "no"]

ORDER_STATUSES = get_args(OrderStatus)
PAYMENT_METHODS = get_args(PaymentMethod)
LOCK_TYPES = ("PIN", "PATRON", "PASSWORD", "")

DEFAULT_CHECKLIST = [
    "¿Carga?",
    "¿Enciende?",
    "¿Golpeado?",
    "¿Mojado?",
    "¿Abierto previamente?",
    "¿En garantía?",
    "¿Micro SD?",
    "¿Porta SIM?",
    "¿Tarjeta SIM?",
]
MAX_CHECKLIST_OPTIONS = 12


def utcnow() -> datetime:
    # naive UTC, igual que lo guarda la base
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# zona horaria del local: define que es "hoy" y "este mes" en reportes y stats
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "UTC")


def shop_tz(name: Optional[str] = None) -> tzinfo:
    name = name or SHOP_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_local(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Fecha naive UTC (como se guarda) a hora local del local, naive."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz or shop_tz()).replace(tzinfo=None)


class PaymentItem(SQLModel):
    """Linea de un cobro. `type` puede faltar en registros viejos."""
    type: Optional[ItemType] = None
    id: Optional[int] = None
    name: str
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0)


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    name: str
    dni: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    who_picks_up: str = ""
    notes: str = ""


class Device(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    client_id: int = Field(index=True, foreign_key="client.id")
    brand: str
    model: str
    imei: str = ""
    serial_number: str = ""
    color: str = ""
    condition: str = ""
    lock_type: str = ""
    lock_value: str = ""


class RepairOrder(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    client_id: int = Field(index=True, foreign_key="client.id")
    device_id: int = Field(foreign_key="device.id")
    status: str = Field(default="recibido")
    problem: str
    diagnosis: str = ""
    solution: str = ""
    technician_name: str = ""
    estimated_cost: float = 0.0
    final_cost: float = 0.0
    priority: str = Field(default="normal")
    created_at: datetime = Field(default_factory=utcnow)
    estimated_date: Optional[datetime] = Field(default=None, nullable=True)
    completed_at: Optional[datetime] = Field(default=None, nullable=True)
    delivered_at: Optional[datetime] = Field(default=None, nullable=True)
    notes: str = ""
    intake_checklist: Dict[str, Optional[str]] = Field(default_factory=dict, sa_column=Column(JSON))


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    order_id: Optional[int] = Field(default=None, index=True, nullable=True, foreign_key="repairorder.id")
    amount: float
    method: str
    date: datetime = Field(default_factory=utcnow)
    notes: str = ""
    # lista de PaymentItem serializada
    items: List[dict] = Field(default_factory=list, sa_column=Column(JSON))


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    name: str
    sku: str = ""
    category: str = "General"
    cost: float = 0.0
    price: float
    quantity: int = 0
    low_stock_threshold: int = 5
    description: str = ""


class Expense(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    amount: float
    description: str
    category: str
    date: datetime = Field(default_factory=utcnow)


class Settings(SQLModel, table=True):
    """
    Configuracion del taller, una fila por tenant.
    Si el tenant nunca guardo nada se devuelven los valores por defecto.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True, unique=True)
    shop_name: str = "Mi Taller"
    address: str = ""
    phone: str = ""
    email: str = ""
    whatsapp: str = ""
    landline: str = ""
    logo_url: str = ""
    card_surcharge: float = 0.0
    transfer_surcharge: float = 0.0
    checklist_options: List[str] = Field(default_factory=lambda: list(DEFAULT_CHECKLIST), sa_column=Column(JSON))
    receipt_disclaimer: str = "Garantía de 30 días."
    ticket_footer: str = "Gracias por su compra.\nConserve este ticket para garantía."
    print_format: str = "a4"
    updated_at: Optional[datetime] = Field(default=None, nullable=True)
