"""
FastAPI Main Application
Offering checkout: calculation, investor onboarding, payment hand-off
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from pathlib import Path
import logging
from typing import AsyncGenerator

from app.config import settings
from app.core.logging import setup_logging
from app.domain.services.config_engine import ConfigEngine
from app.infrastructure.dealmaker.client import DealMakerClient
from app.services.onboarding_service import InvestorOnboardingService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def build_onboarding_service() -> InvestorOnboardingService:
    client = DealMakerClient(
        api_base_url=settings.DEALMAKER_API_URL,
        auth_base_url=settings.DEALMAKER_AUTH_URL,
        client_id=settings.DEALMAKER_CLIENT_ID,
        client_secret=settings.DEALMAKER_CLIENT_SECRET,
        timeout=settings.DEALMAKER_TIMEOUT_SECONDS,
    )
    return InvestorOnboardingService(client, settings.DEALMAKER_DEAL_ID)


def build_config_engine() -> ConfigEngine:
    path = settings.OFFERING_CONFIG_PATH
    if path and not Path(path).is_absolute():
        path = Path(__file__).parent.parent / path
    config_engine = ConfigEngine(Path(path) if path else None)
    config_engine.load_all()
    return config_engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Loads offering terms and wires the onboarding service
    """
    logger.info("=" * 60)
    logger.info("Starting Offering Checkout")
    logger.info("=" * 60)

    # 1. Offering terms
    if getattr(app.state, "config_engine", None) is None:
        app.state.config_engine = build_config_engine()
    offering = app.state.config_engine.offering
    logger.info(
        f"Offering loaded: share price {offering.share_price}, "
        f"min {offering.min_investment}, {len(offering.bonus_tiers)} bonus tiers"
    )

    # 2. Onboarding
    if getattr(app.state, "onboarding_service", None) is None:
        app.state.onboarding_service = build_onboarding_service()
    if app.state.onboarding_service.is_configured:
        logger.info("DealMaker onboarding configured")
    else:
        logger.warning("DealMaker is not configured; /api/investor will return 503")

    yield

    logger.info("Offering Checkout shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Offering Checkout",
    description="Investment amount, investor details and payment hand-off",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Offering Checkout",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from app.api.routes import health, investor, offering

app.include_router(health.router, tags=["Health"])
app.include_router(offering.router, prefix="/api/offering", tags=["Offering"])
app.include_router(investor.router, prefix="/api", tags=["Investor Onboarding"])
app.add_exception_handler(RequestValidationError, investor.investor_validation_handler)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
