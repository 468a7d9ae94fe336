from decimal import Decimal
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from httpx import AsyncClient, ASGITransport

from app.api.routes import health, investor, offering
from app.domain.models import BonusTier, InvestmentConfig
from app.domain.services.config_engine import ConfigEngine
from app.services.onboarding_service import InvestorOnboardingService

from tests.fakes import FakeDealMakerClient


@pytest.fixture()
def offering_config() -> InvestmentConfig:
    return InvestmentConfig(
        share_price=Decimal("1"),
        min_investment=Decimal("500"),
        max_investment=Decimal("100000"),
        security_type="Common Stock",
        bonus_tiers=(
            BonusTier(threshold_amount=Decimal("1000"), bonus_percent=Decimal("5")),
            BonusTier(threshold_amount=Decimal("5000"), bonus_percent=Decimal("10")),
        ),
    )


@pytest.fixture()
def dealmaker_client() -> FakeDealMakerClient:
    return FakeDealMakerClient()


@pytest.fixture()
def onboarding_service(dealmaker_client) -> InvestorOnboardingService:
    return InvestorOnboardingService(dealmaker_client, deal_id="deal_42")


@pytest.fixture()
def app(onboarding_service, offering_config) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(offering.router, prefix="/api/offering", tags=["Offering"])
    app.include_router(investor.router, prefix="/api", tags=["Investor Onboarding"])
    app.add_exception_handler(RequestValidationError, investor.investor_validation_handler)

    config_engine = ConfigEngine()
    config_engine._offering = offering_config
    app.state.config_engine = config_engine
    app.state.onboarding_service = onboarding_service

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
