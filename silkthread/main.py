# silkthread/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from silkthread.core.auth import CART_SESSION_HEADER
from silkthread.core.config import get_settings

# Routers
from silkthread.routers.cart import router as cart_router
from silkthread.routers.checkout import router as checkout_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Report where carts are persisted.

    Shutdown:
      - No special cleanup needed; every cart change is already written.
    """
    logger.info(f"🛒 Startup: cart store backend = {settings.CART_STORE_BACKEND}")
    if settings.CART_STORE_BACKEND == "memory":
        logger.warning("⚠️ Carts are kept in memory only and will not survive a restart.")
    if not settings.STORE_WHATSAPP_NUMBER:
        logger.warning("⚠️ STORE_WHATSAPP_NUMBER is not set; checkout is disabled.")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Silk Thread Storefront API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CART_SESSION_HEADER],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(cart_router, prefix=settings.API_V1_STR)
app.include_router(checkout_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "silkthread-backend"}
