"""AdOrchestrator — FastAPI Application Entry Point.

Backend for an ad-operations dashboard: conversion tracking, creative
assets, ad-platform sync configs, brand extraction and a chat assistant.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adorchestrator.config import settings, validate_env
from adorchestrator.database import init_db, ping_database
from adorchestrator.scheduler.jobs import start_scheduler, stop_scheduler
from adorchestrator.api.asset_routes import router as asset_router
from adorchestrator.api.auth_routes import router as auth_router
from adorchestrator.api.brand_routes import router as brand_router
from adorchestrator.api.campaign_routes import router as campaign_router
from adorchestrator.api.capi_routes import router as capi_router
from adorchestrator.api.chat_routes import router as chat_router
from adorchestrator.api.conversion_routes import router as conversion_router
from adorchestrator.api.data_source_routes import router as data_source_router
from adorchestrator.api.product_routes import router as product_router
from adorchestrator.api.trigger_rule_routes import router as trigger_rule_router
from adorchestrator.api.usage_routes import router as usage_router
from adorchestrator.core.auth import SupabaseAuthClient, session_gate
from adorchestrator.core.errors import register_exception_handlers
from adorchestrator.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("AdOrchestrator starting up...")
    validate_env()
    for name in settings.missing_optional():
        logger.warning(f"{name} is not set; the features that need it are disabled")

    if ping_database():
        init_db()
    else:
        logger.error("Database NOT connected; endpoints will fail")

    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("AdOrchestrator shut down")


app = FastAPI(
    title="AdOrchestrator",
    description="Ad dashboard backend: conversions, assets, CAPI sync, brand extraction and chat.",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.auth_client = SupabaseAuthClient()

register_exception_handlers(app)

# Session gate runs inside CORS so preflight requests are answered first.
app.middleware("http")(session_gate)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(conversion_router)
app.include_router(asset_router)
app.include_router(capi_router)
app.include_router(brand_router)
app.include_router(product_router)
app.include_router(campaign_router)
app.include_router(chat_router)
app.include_router(usage_router)
app.include_router(data_source_router)
app.include_router(trigger_rule_router)


@app.get("/", tags=["System"])
async def root():
    return {"service": "adorchestrator", "version": "1.0.0"}


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adorchestrator",
        "version": "1.0.0",
    }
