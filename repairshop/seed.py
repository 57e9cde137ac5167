from datetime import timedelta

from sqlmodel import Session, select

from repairshop.database import engine
from repairshop.models import Client, Device, Product, RepairOrder, utcnow
from repairshop.security import GUEST_TENANT_ID

# datos de muestra visibles sin iniciar sesion
MOCK_PRODUCTS = [
    {"name": "Templado 9H universal", "sku": "TMP-001", "category": "Accesorios", "cost": 1.5, "price": 5.0, "quantity": 40},
    {"name": "Cable USB-C 1m", "sku": "CBL-USBC", "category": "Accesorios", "cost": 2.0, "price": 6.5, "quantity": 12},
    {"name": "Batería genérica 3000mAh", "sku": "BAT-3000", "category": "Repuestos", "cost": 8.0, "price": 20.0, "quantity": 3},
]


def seed(tenant_id: str = GUEST_TENANT_ID) -> bool:
    """Carga datos de ejemplo si el tenant no tiene clientes. Devuelve True si sembro."""
    with Session(engine) as session:
        exists = session.exec(select(Client).where(Client.tenant_id == tenant_id)).first()
        if exists:
            return False
        for p in MOCK_PRODUCTS:
            session.add(Product(tenant_id=tenant_id, **p))

        client = Client(tenant_id=tenant_id, name="Cliente Demo", phone="555-0100")
        session.add(client)
        session.flush()
        device = Device(tenant_id=tenant_id, client_id=client.id, brand="Samsung", model="A52", color="Negro", lock_type="PIN", lock_value="1234")
        session.add(device)
        session.flush()
        session.add(
            RepairOrder(
                tenant_id=tenant_id,
                client_id=client.id,
                device_id=device.id,
                problem="Pantalla rota",
                estimated_cost=80.0,
                created_at=utcnow() - timedelta(days=1),
                intake_checklist={"¿Carga?": "yes", "¿Enciende?": "yes", "¿Mojado?": "no"},
            )
        )
        session.commit()
        return True


if __name__ == "__main__":
    seed()
