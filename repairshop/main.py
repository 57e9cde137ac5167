from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles

from dotenv import load_dotenv
import os
import logging

# carga .env de la raiz del proyecto
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("repairshop")

from repairshop.database import init_db  # noqa: E402
from repairshop.routers import (  # noqa: E402
    clients,
    devices,
    expenses,
    orders,
    payments,
    products,
    reports,
    settings,
    stats,
    support,
    upload,
)
from repairshop import seed  # noqa: E402
from repairshop.storage import UPLOADS_ROUTE, ensure_upload_dir  # noqa: E402


def _mask(v: str | None) -> str | None:
    if not v:
        return None
    s = str(v)
    return s if len(s) <= 6 else f"{s[:3]}...{s[-3:]}"


logger.info("ENV check: FRONTEND_URL=%s DATABASE_URL=%s MAIL_SERVER=%s AUTH_JWT_SECRET=%s",
            os.getenv("FRONTEND_URL"),
            _mask(os.getenv("DATABASE_URL")),
            _mask(os.getenv("MAIL_SERVER")),
            _mask(os.getenv("AUTH_JWT_SECRET")))

app = FastAPI(title="RepairShop API")

# Configurar CORS usando FRONTEND_URL (comma-separated)
frontend_env = os.getenv("FRONTEND_URL", "").strip()
if frontend_env:
    origins = [u.strip() for u in frontend_env.split(",") if u.strip()]
else:
    # En desarrollo mantenemos localhost para Vite
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(clients.router)
app.include_router(devices.router)
app.include_router(orders.router)
app.include_router(payments.router)
app.include_router(expenses.router)
app.include_router(products.router)
app.include_router(settings.router)
app.include_router(stats.router)
app.include_router(reports.router)
app.include_router(upload.router)
app.include_router(support.router)

app.mount(UPLOADS_ROUTE, StaticFiles(directory=ensure_upload_dir()), name="uploads")


@app.on_event("startup")
def on_startup():
    init_db()
    if os.getenv("SEED_DEMO", "true").lower() in ("1", "true", "yes"):
        try:
            seed.seed()
        except Exception:
            logger.exception("demo seed failed")
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(sorted(route.methods))
            logger.debug("Route: %s  methods: %s", route.path, methods)
