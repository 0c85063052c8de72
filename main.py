import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import close_db, init_db
from api.agents import router as agents_router
from api.applications import router as applications_router
from api.intake import router as intake_router
from api.public import router as public_router
from services.errors import DomainValidationError, RecordNotFoundError
from utils.logs import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    await init_db()
    logger.info("%s started", settings.app_name)
    yield
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Rental application intake, review and landlord decision API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    logger.info("%s %s: %s %r not found", request.method, request.url.path, exc.kind, exc.key)
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DomainValidationError)
async def validation_handler(request: Request, exc: DomainValidationError):
    logger.info("%s %s rejected: %s %s", request.method, request.url.path, exc, exc.errors)
    return JSONResponse(status_code=400, content={"detail": exc.to_detail()})


app.include_router(agents_router)
app.include_router(applications_router)
app.include_router(intake_router)
app.include_router(public_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
