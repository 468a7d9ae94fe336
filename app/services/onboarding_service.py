"""
Investor onboarding against DealMaker.

create_investor = create record (primary) + fetch access link (best effort).
Primary failures are classified into OnboardingErrorCategory; access-link
failures are logged and leave payment_url empty.
"""

import logging
from decimal import Decimal
from typing import Awaitable, Callable, Optional, TypeVar

from app.domain.errors import OnboardingError, OnboardingErrorCategory
from app.domain.models import InvestorCreated, InvestorCreateRequest, InvestorUpdated
from app.infrastructure.dealmaker.client import (
    DealMakerAPIError,
    DealMakerClient,
    DealMakerTransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_create_failure(
    error: Exception,
    request: InvestorCreateRequest,
) -> OnboardingErrorCategory:
    """
    Map a failed create call to a category. First match wins:
    422/unprocessable, 409/conflict/already, 401/auth, 404, otherwise unknown.
    Errors carrying a structured status are matched on that status; plain
    errors fall back to status tokens in the lowercased message text.
    """
    message = str(error).lower()
    status = getattr(error, "status_code", None)

    def signals(code: int, *words: str) -> bool:
        if status is not None:
            matched = status == code
        else:
            matched = str(code) in message
        return matched or any(w in message for w in words)

    if signals(422, "unprocessable"):
        if request.missing_fields:
            return OnboardingErrorCategory.VALIDATION_MISSING_FIELDS
        return OnboardingErrorCategory.VALIDATION_REJECTED
    if signals(409, "conflict", "already"):
        return OnboardingErrorCategory.DUPLICATE_INVESTOR
    if signals(401, "auth"):
        return OnboardingErrorCategory.AUTH_FAILURE
    if signals(404):
        return OnboardingErrorCategory.DEAL_NOT_FOUND
    return OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE


async def best_effort(
    call: Callable[[], Awaitable[T]],
    description: str,
) -> Optional[T]:
    """Run a secondary call; any failure is logged and becomes None."""
    try:
        return await call()
    except Exception as exc:
        logger.error(f"{description} failed: {exc}")
        return None


class InvestorOnboardingService:
    """
    Onboarding for a single deal.
    Every operation short-circuits with CONFIGURATION_MISSING when the deal
    id or API credentials are absent.
    """

    def __init__(self, client: DealMakerClient, deal_id: Optional[str]):
        self.client = client
        self.deal_id = (deal_id or "").strip() or None

    @property
    def is_configured(self) -> bool:
        return bool(self.deal_id and self.client.has_credentials)

    def _require_configured(self) -> str:
        if not self.is_configured:
            raise OnboardingError.of(OnboardingErrorCategory.CONFIGURATION_MISSING)
        return self.deal_id

    async def create_investor(self, request: InvestorCreateRequest) -> InvestorCreated:
        deal_id = self._require_configured()

        payload = {
            "email": request.email,
            "first_name": request.first_name,
            "last_name": request.last_name,
            "investment_value": _as_number(request.investment_amount),
            "allocation_unit": "amount",
        }

        try:
            investor = await self.client.create_investor(deal_id, payload)
        except DealMakerTransportError as exc:
            # Unreachable upstream carries no status to classify
            logger.error(f"Failed to create investor: {exc}")
            raise OnboardingError.of(OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE) from exc
        except DealMakerAPIError as exc:
            logger.error(f"Failed to create investor: {exc}")
            category = classify_create_failure(exc, request)
            raise OnboardingError.of(category) from exc

        if investor.get("id") is None:
            logger.error("Failed to create investor: response has no investor id")
            raise OnboardingError.of(OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE)
        investor_id = str(investor["id"])

        access = await best_effort(
            lambda: self.client.get_investor_access_link(deal_id, investor_id),
            "Fetching investor access link",
        )
        payment_url = (access or {}).get("access_link") or None

        return InvestorCreated(
            investor_id=investor_id,
            subscription_id=_as_optional_str(investor.get("subscription_id")),
            state=investor.get("state"),
            payment_url=payment_url,
        )

    async def update_investor(self, investor_id: str, current_step: str) -> InvestorUpdated:
        deal_id = self._require_configured()

        try:
            updated = await self.client.update_investor(
                deal_id, investor_id, {"current_step": current_step}
            )
        except (DealMakerAPIError, DealMakerTransportError) as exc:
            logger.error(f"Failed to update investor: {exc}")
            raise OnboardingError.of(OnboardingErrorCategory.UPDATE_FAILED) from exc

        return InvestorUpdated(
            investor_id=str(updated.get("id", investor_id)),
            state=updated.get("state"),
            current_step=updated.get("current_step"),
        )


def _as_number(amount: Decimal):
    """JSON number for the API: integral amounts as int, else float"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _as_optional_str(value) -> Optional[str]:
    return None if value is None else str(value)
