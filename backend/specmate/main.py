"""
SpecMate Report Service
FastAPI backend that turns completed material analyses into Markdown and
paginated PDF reports.
"""
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env before config reads the environment
load_dotenv()

from specmate import config  # noqa: E402
from specmate.api.log_routes import router as log_router  # noqa: E402
from specmate.api.report_routes import get_preview_registry, router as report_router  # noqa: E402
from specmate.services.logging_config import setup_logging  # noqa: E402
from specmate.services.middleware import RequestTimingMiddleware  # noqa: E402

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("specmate-api")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        os.makedirs(config.PREVIEW_DIR, exist_ok=True)
    except OSError as e:
        logger.warning(f"Preview directory unavailable ({config.PREVIEW_DIR}): {e}; previews disabled")
    logger.info(f"{config.PRODUCT_NAME} report service started")
    yield
    released = get_preview_registry().release_all()
    if released:
        logger.info(f"Released {released} open previews on shutdown")


app = FastAPI(
    title=f"{config.PRODUCT_NAME} Report Service",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
    expose_headers=["Content-Disposition", "X-Page-Count", "X-Request-ID"],
)
app.add_middleware(RequestTimingMiddleware)

app.include_router(report_router)
app.include_router(log_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": VERSION,
        "product": config.PRODUCT_NAME,
        "open_previews": len(get_preview_registry()),
    }
