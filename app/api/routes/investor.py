"""
Investor Onboarding Routes
Create the DealMaker investor and hand back the payment link
"""

from fastapi import APIRouter, Depends, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
import logging

from app.domain.errors import OnboardingError, OnboardingErrorCategory
from app.domain.models import InvestorCreateRequest, InvestorType
from app.services.onboarding_service import InvestorOnboardingService

logger = logging.getLogger(__name__)
router = APIRouter()


# ------------------------------------------------------------------
# Request / Response Models
# ------------------------------------------------------------------

class CreateInvestorBody(BaseModel):
    email: Optional[str] = ""
    firstName: Optional[str] = ""
    lastName: Optional[str] = ""
    investorType: InvestorType = InvestorType.INDIVIDUAL
    investmentAmount: Decimal = Decimal('0')


class CreateInvestorResponse(BaseModel):
    investorId: str
    subscriptionId: Optional[str] = None
    state: Optional[str] = None
    paymentUrl: Optional[str] = None


class UpdateInvestorBody(BaseModel):
    investorId: str
    currentStep: str


class UpdateInvestorResponse(BaseModel):
    investorId: str
    state: Optional[str] = None
    currentStep: Optional[str] = None


def get_onboarding_service(request: Request) -> InvestorOnboardingService:
    return request.app.state.onboarding_service


NOT_CONFIGURED_UPDATE = "DealMaker is not configured"


def _error_response(exc: OnboardingError, not_configured_message: Optional[str] = None) -> JSONResponse:
    if exc.category == OnboardingErrorCategory.CONFIGURATION_MISSING:
        return JSONResponse(
            status_code=503,
            content={"error": not_configured_message or exc.message, "category": exc.category.value},
        )
    return JSONResponse(
        status_code=500,
        content={"error": exc.message, "category": exc.category.value},
    )


async def investor_validation_handler(request: Request, exc: RequestValidationError):
    """
    Malformed /investor bodies answer with the same {error, category} envelope
    as upstream failures. Other routes keep the default 422.
    """
    if not request.url.path.endswith("/investor"):
        return await request_validation_exception_handler(request, exc)

    fields = [e.get("loc") for e in exc.errors()]
    logger.warning(f"Rejected {request.method} {request.url.path} body fields: {fields}")
    if request.method == "PATCH":
        category = OnboardingErrorCategory.UPDATE_FAILED
    else:
        category = OnboardingErrorCategory.VALIDATION_REJECTED
    return _error_response(OnboardingError.of(category))


# ------------------------------------------------------------------
# CREATE
# ------------------------------------------------------------------

@router.post("/investor", response_model=CreateInvestorResponse)
async def create_investor(
    body: CreateInvestorBody,
    service: InvestorOnboardingService = Depends(get_onboarding_service),
):
    """
    Create an investor for the configured deal

    - 503 when DealMaker is not configured
    - 500 with a classified {"error"} message when creation fails
    - paymentUrl is null when the access link could not be fetched
    """
    request = InvestorCreateRequest(
        email=(body.email or "").strip(),
        first_name=(body.firstName or "").strip(),
        last_name=(body.lastName or "").strip(),
        investment_amount=body.investmentAmount,
        investor_type=body.investorType,
    )

    try:
        created = await service.create_investor(request)
    except OnboardingError as exc:
        return _error_response(exc)

    return CreateInvestorResponse(
        investorId=created.investor_id,
        subscriptionId=created.subscription_id,
        state=created.state,
        paymentUrl=created.payment_url,
    )


# ------------------------------------------------------------------
# UPDATE
# ------------------------------------------------------------------

@router.patch("/investor", response_model=UpdateInvestorResponse)
async def update_investor(
    body: UpdateInvestorBody,
    service: InvestorOnboardingService = Depends(get_onboarding_service),
):
    """
    Move an investor to another checkout step
    """
    try:
        updated = await service.update_investor(body.investorId, body.currentStep)
    except OnboardingError as exc:
        return _error_response(exc, NOT_CONFIGURED_UPDATE)

    return UpdateInvestorResponse(
        investorId=updated.investor_id,
        state=updated.state,
        currentStep=updated.current_step,
    )
