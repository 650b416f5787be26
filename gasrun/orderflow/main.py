"""FastAPI entrypoint for orderflow.

Exposes a health check and the orders router. Business logic lives in the
services modules.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderflow.routers.orders import router as orders_router
from orderflow.utils.logger import logger

APP_NAME = os.getenv("APP_NAME", "orderflow")

app = FastAPI(title="Orderflow", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict:
    """Simple health endpoint to verify service readiness."""
    logger.debug("Health check requested")
    return {
        "status": "ok",
        "app": APP_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(orders_router, prefix="/orders", tags=["orders"])
