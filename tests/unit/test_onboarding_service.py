from decimal import Decimal

import httpx
import pytest

from app.domain.errors import OnboardingError, OnboardingErrorCategory
from app.domain.models import InvestorCreateRequest
from app.infrastructure.dealmaker.client import (
    DealMakerAPIError,
    DealMakerClient,
    DealMakerTransportError,
)
from app.services.onboarding_service import (
    InvestorOnboardingService,
    best_effort,
    classify_create_failure,
)

from tests.fakes import FakeDealMakerClient


def _request(email="jane@example.com", first="Jane", last="Doe", amount="1000"):
    return InvestorCreateRequest(
        email=email,
        first_name=first,
        last_name=last,
        investment_amount=Decimal(amount),
    )


@pytest.mark.parametrize(
    "error,expected",
    [
        (Exception("Request failed with 422"), OnboardingErrorCategory.VALIDATION_REJECTED),
        (Exception("Unprocessable Entity"), OnboardingErrorCategory.VALIDATION_REJECTED),
        (Exception("409 conflict already"), OnboardingErrorCategory.DUPLICATE_INVESTOR),
        (Exception("Investor ALREADY exists"), OnboardingErrorCategory.DUPLICATE_INVESTOR),
        (Exception("401 Unauthorized"), OnboardingErrorCategory.AUTH_FAILURE),
        (Exception("auth token expired"), OnboardingErrorCategory.AUTH_FAILURE),
        (Exception("404 Not Found"), OnboardingErrorCategory.DEAL_NOT_FOUND),
        (Exception("boom"), OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE),
    ],
)
def test_classification_table(error, expected):
    assert classify_create_failure(error, _request()) == expected


def test_unprocessable_with_blank_fields_asks_for_missing_fields():
    category = classify_create_failure(Exception("422"), _request(first="  "))
    assert category == OnboardingErrorCategory.VALIDATION_MISSING_FIELDS


def test_validation_wins_over_duplicate():
    error = Exception("422 unprocessable: email already taken")
    assert classify_create_failure(error, _request()) == OnboardingErrorCategory.VALIDATION_REJECTED


def test_structured_status_takes_precedence_over_digits_in_body():
    error = DealMakerAPIError(500, "internal error ref 4221")
    assert classify_create_failure(error, _request()) == OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE

    error = DealMakerAPIError(409, "duplicate")
    assert classify_create_failure(error, _request()) == OnboardingErrorCategory.DUPLICATE_INVESTOR


@pytest.mark.asyncio
async def test_create_investor_success(onboarding_service, dealmaker_client):
    created = await onboarding_service.create_investor(_request())

    assert created.investor_id == "inv_1"
    assert created.subscription_id == "sub_1"
    assert created.state == "created"
    assert created.payment_url == "https://pay.dealmaker.test/otp?token=abc"

    kind, deal_id, payload = dealmaker_client.calls[0]
    assert (kind, deal_id) == ("create", "deal_42")
    assert payload == {
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "investment_value": 1000,
        "allocation_unit": "amount",
    }
    assert dealmaker_client.calls[1] == ("access_link", "deal_42", "inv_1")


@pytest.mark.asyncio
async def test_access_link_failure_is_not_fatal(onboarding_service, dealmaker_client, caplog):
    dealmaker_client.access_error = DealMakerAPIError(500, "upstream down")

    created = await onboarding_service.create_investor(_request())

    assert created.investor_id == "inv_1"
    assert created.payment_url is None
    assert "access link failed" in caplog.text


@pytest.mark.asyncio
async def test_empty_access_link_becomes_none(onboarding_service, dealmaker_client):
    dealmaker_client.access_result = {"access_link": ""}
    created = await onboarding_service.create_investor(_request())
    assert created.payment_url is None


@pytest.mark.asyncio
async def test_create_failure_is_classified(onboarding_service, dealmaker_client):
    dealmaker_client.create_error = DealMakerAPIError(409, "Investor already exists")

    with pytest.raises(OnboardingError) as exc_info:
        await onboarding_service.create_investor(_request())

    assert exc_info.value.category == OnboardingErrorCategory.DUPLICATE_INVESTOR
    assert "different email" in exc_info.value.message
    # No access link attempt after a failed create
    assert [c[0] for c in dealmaker_client.calls] == ["create"]


@pytest.mark.asyncio
async def test_transport_failure_on_create_is_unknown(onboarding_service, dealmaker_client):
    dealmaker_client.create_error = DealMakerTransportError("connection refused")

    with pytest.raises(OnboardingError) as exc_info:
        await onboarding_service.create_investor(_request())

    assert exc_info.value.category == OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE


@pytest.mark.asyncio
async def test_not_configured_short_circuits():
    client = FakeDealMakerClient(has_credentials=False)
    service = InvestorOnboardingService(client, deal_id="deal_42")

    with pytest.raises(OnboardingError) as exc_info:
        await service.create_investor(_request())
    assert exc_info.value.category == OnboardingErrorCategory.CONFIGURATION_MISSING

    with pytest.raises(OnboardingError):
        await service.update_investor("inv_1", "payment")
    assert client.calls == []


@pytest.mark.asyncio
async def test_missing_deal_id_is_not_configured():
    service = InvestorOnboardingService(FakeDealMakerClient(), deal_id="  ")
    assert service.is_configured is False


@pytest.mark.asyncio
async def test_update_investor(onboarding_service, dealmaker_client):
    updated = await onboarding_service.update_investor("inv_1", "payment")

    assert updated.investor_id == "inv_1"
    assert updated.state == "signed"
    assert updated.current_step == "payment"
    assert dealmaker_client.calls[0] == ("update", "deal_42", "inv_1", {"current_step": "payment"})


@pytest.mark.asyncio
async def test_update_failure_is_undifferentiated(onboarding_service, dealmaker_client):
    dealmaker_client.update_error = DealMakerAPIError(409, "conflict")

    with pytest.raises(OnboardingError) as exc_info:
        await onboarding_service.update_investor("inv_1", "payment")

    assert exc_info.value.category == OnboardingErrorCategory.UPDATE_FAILED
    assert exc_info.value.message == "Failed to update investor record"


@pytest.mark.asyncio
async def test_best_effort_returns_none_on_failure():
    async def fails():
        raise RuntimeError("nope")

    async def works():
        return 7

    assert await best_effort(fails, "Side call") is None
    assert await best_effort(works, "Side call") == 7


def _service_over(handler, deal_id):
    client = DealMakerClient(
        api_base_url="https://api.dealmaker.test",
        auth_base_url="https://app.dealmaker.test",
        client_id="cid",
        client_secret="csecret",
        transport=httpx.MockTransport(handler),
    )
    return InvestorOnboardingService(client, deal_id=deal_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("deal_id", ["14221", "4090", "24015", "1404"])
async def test_unreachable_api_is_unknown_whatever_the_deal_id(deal_id):
    def handler(request: httpx.Request):
        if request.url.path == "/oauth/token":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        raise httpx.ConnectError("connection refused", request=request)

    service = _service_over(handler, deal_id)

    with pytest.raises(OnboardingError) as exc_info:
        await service.create_investor(_request())

    assert exc_info.value.category == OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE


@pytest.mark.asyncio
async def test_non_json_create_response_is_classified():
    def handler(request: httpx.Request):
        if request.url.path == "/oauth/token":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        return httpx.Response(200, text="<html>gateway</html>")

    service = _service_over(handler, "deal_42")

    with pytest.raises(OnboardingError) as exc_info:
        await service.create_investor(_request())

    assert exc_info.value.category == OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE


@pytest.mark.asyncio
async def test_create_response_without_id_is_unknown(onboarding_service, dealmaker_client):
    dealmaker_client.create_result = {"state": "created"}

    with pytest.raises(OnboardingError) as exc_info:
        await onboarding_service.create_investor(_request())

    assert exc_info.value.category == OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE
    assert [c[0] for c in dealmaker_client.calls] == ["create"]
