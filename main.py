import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import AsyncSessionLocal, dispose_db, init_db
from logging_setup import setup_logging
from api.applications import router as applications_router
from api.auth import router as auth_router
from api.demo import router as demo_router
from api.documents import router as documents_router
from api.kyc import router as kyc_router
from api.notifications import router as notifications_router
from services.container import LoanServices, build_services
from services.errors import (
    AuthenticationError,
    IneligibleStateError,
    LoanServiceError,
    NotFoundError,
    ValidationError,
)
from services.store import SqlKeyValueStore

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[LoanServiceError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    IneligibleStateError: 409,
    AuthenticationError: 401,
}


async def handle_service_error(request: Request, exc: LoanServiceError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS_CODES.items() if isinstance(exc, cls)),
        400,
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"detail": exc.message}, headers=headers)


def create_app(services: Optional[LoanServices] = None) -> FastAPI:
    """Build the API. Pass `services` to run against a pre-built container (tests, scripts)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = services is None
        if owns_database:
            await init_db()
            app.state.services = build_services(SqlKeyValueStore(AsyncSessionLocal), settings)
        else:
            app.state.services = services
        logger.info("%s started", settings.app_name)
        yield
        await app.state.services.shutdown()
        if owns_database:
            await dispose_db()

    app = FastAPI(
        title=settings.app_name,
        description="Consumer loan application workflow API",
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
    app.add_exception_handler(LoanServiceError, handle_service_error)

    app.include_router(auth_router)
    app.include_router(kyc_router)
    app.include_router(applications_router)
    app.include_router(documents_router)
    app.include_router(notifications_router)
    app.include_router(demo_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


setup_logging()
app = create_app()
