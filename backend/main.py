"""
FastAPI application for the Zanai Flowise bridge.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.routes import api_router
from app.core.config import settings
from app.core.database import create_tables
from app.core.exceptions import (
    generic_exception_handler,
    validation_exception_handler,
    zanai_exception_handler,
)
from app.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from app.services.decision_service import get_decision_service
from app.utils.exceptions import ZanaiException


APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Zanai Flowise bridge {APP_VERSION} (Flowise at {settings.FLOWISE_BASE_URL})")
    await create_tables()

    yield

    logger.info("Shutting down, closing the decision client")
    await get_decision_service().close()


def create_app() -> FastAPI:
    application = FastAPI(
        title="Zanai Flowise Bridge API",
        description="Import, analyze and export Flowise workflow graphs",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    # Starlette wraps in reverse order: the last middleware added runs first
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(ZanaiException, zanai_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(Exception, generic_exception_handler)

    application.include_router(api_router, prefix="/api/v1")

    @application.get("/health")
    async def health_check():
        return {"status": "healthy", "version": APP_VERSION}

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
    )
