"""
Checkout client for the /investor endpoints.

Used by a wizard session that talks to the service over HTTP rather than
in-process. Server errors carry their classified message in {"error": ...};
unreachable transport maps to NETWORK_FAILURE.
"""

import logging
from typing import Optional

import httpx

from app.domain.errors import OnboardingError, OnboardingErrorCategory, USER_MESSAGES
from app.domain.models import InvestorCreated, InvestorCreateRequest, InvestorUpdated

logger = logging.getLogger(__name__)


class CheckoutClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _send(self, method: str, payload: dict) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, "/investor", json=payload)
        except httpx.TransportError as exc:
            logger.warning(f"Checkout request failed: {exc}")
            raise OnboardingError.of(OnboardingErrorCategory.NETWORK_FAILURE) from exc

    @staticmethod
    def _error_from(response: httpx.Response, fallback: OnboardingErrorCategory) -> OnboardingError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code == 503:
            category = OnboardingErrorCategory.CONFIGURATION_MISSING
        else:
            try:
                category = OnboardingErrorCategory(body.get("category"))
            except ValueError:
                category = fallback
        message = body.get("error") or USER_MESSAGES[category]
        return OnboardingError(category=category, message=message)

    async def create_investor(self, request: InvestorCreateRequest) -> InvestorCreated:
        response = await self._send("POST", {
            "email": request.email,
            "firstName": request.first_name,
            "lastName": request.last_name,
            "investorType": request.investor_type.value,
            "investmentAmount": float(request.investment_amount),
        })
        if response.status_code != 200:
            raise self._error_from(response, OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE)

        data = response.json()
        return InvestorCreated(
            investor_id=data["investorId"],
            subscription_id=data.get("subscriptionId"),
            state=data.get("state"),
            payment_url=data.get("paymentUrl"),
        )

    async def update_investor(self, investor_id: str, current_step: str) -> InvestorUpdated:
        response = await self._send("PATCH", {
            "investorId": investor_id,
            "currentStep": current_step,
        })
        if response.status_code != 200:
            raise self._error_from(response, OnboardingErrorCategory.UPDATE_FAILED)

        data = response.json()
        return InvestorUpdated(
            investor_id=data["investorId"],
            state=data.get("state"),
            current_step=data.get("currentStep"),
        )
