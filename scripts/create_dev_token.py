"""
Genera un token de prueba firmado con AUTH_JWT_SECRET.
En produccion los tokens los emite el proveedor de identidad.

Uso:
  python scripts/create_dev_token.py <tenant_id> [email]
"""
import os
import sys
from datetime import timedelta

HERE = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.abspath(os.path.join(HERE, ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from repairshop.security import create_access_token  # noqa: E402


def create_dev_token(tenant_id="dev-tenant", email=None, hours=12):
    claims = {"sub": tenant_id}
    if email:
        claims["email"] = email
    return create_access_token(claims, expires_delta=timedelta(hours=hours))


if __name__ == "__main__":
    tenant = sys.argv[1] if len(sys.argv) > 1 else "dev-tenant"
    email = sys.argv[2] if len(sys.argv) > 2 else None
    print(create_dev_token(tenant, email))
