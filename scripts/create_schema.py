"""
Crea (o verifica) las tablas en la base de DATABASE_URL.

Uso:
  python scripts/create_schema.py [--seed]

--seed carga ademas los datos demo del tenant invitado.
"""
import os
import sys

HERE = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.abspath(os.path.join(HERE, ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from sqlmodel import SQLModel  # noqa: E402

from repairshop.database import DATABASE_URL, init_db  # noqa: E402
from repairshop import seed  # noqa: E402


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    print("Usando DATABASE_URL:", DATABASE_URL.split("@")[-1])
    init_db()
    tables = sorted(SQLModel.metadata.tables)
    print("Tablas creadas/verificadas:", ", ".join(tables))
    if "--seed" in argv:
        print("Datos demo cargados." if seed.seed() else "El tenant demo ya tenia datos.")
    return tables


if __name__ == "__main__":
    main()
