import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.calls.router import router as calls_router
from app.carriers.router import router as carriers_router
from app.config import settings
from app.dashboard.router import router as dashboard_router
from app.database import connect_db, disconnect_db, ensure_indexes, get_database
from app.errors import CarrierSalesError, StorageUnavailable
from app.loads.router import router as loads_router
from app.negotiations.router import router as negotiation_router
from app.seed import seed_if_empty

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Carrier Sales API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_db()
    db = get_database()
    await ensure_indexes(db)
    if settings.AUTO_SEED:
        await seed_if_empty(db)
    if not settings.FMCSA_API_KEY:
        logger.warning("FMCSA_API_KEY is not set; carrier verification will fail upstream")
    yield
    await disconnect_db()


app = FastAPI(
    title=SERVICE_NAME,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
    openapi_url="/openapi.json" if settings.DOCS_ENABLED else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CarrierSalesError)
async def carrier_sales_error_handler(request: Request, exc: CarrierSalesError):
    if isinstance(exc, StorageUnavailable):
        # Driver details stay in the logs
        detail = "A storage error occurred. Please retry later."
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query params answer 400, not FastAPI's default 422."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "invalid_argument", "detail": errors})


app.include_router(carriers_router)
app.include_router(loads_router)
app.include_router(negotiation_router)
app.include_router(calls_router)
app.include_router(dashboard_router)


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": SERVICE_NAME,
    }
