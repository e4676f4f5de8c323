# ortho_orders/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ortho_orders import __version__
from ortho_orders.api.routers.health import router as health_router
from ortho_orders.api.routers.orders import router as orders_router
from ortho_orders.api.routers.shadow_supplies import router as shadow_supplies_router
from ortho_orders.core.config import get_settings
from ortho_orders.core.logging import setup_logging
from ortho_orders.db.base import init_models
from ortho_orders.db.session import close_engines
from ortho_orders.http_problem_handlers import register_exception_handlers
from ortho_orders.metrics import router as metrics_router

logger = logging.getLogger("orthoorders")

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_models()
    logger.info("ortho-orders starting: env=%s", settings.ENV)
    yield
    await close_engines()


app = FastAPI(
    title="Ortho Orders",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(orders_router)
app.include_router(shadow_supplies_router)
app.include_router(metrics_router)
