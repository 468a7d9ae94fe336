"""
DealMaker API Client
Investor records and one-time access links for a deal.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class DealMakerAPIError(Exception):
    """Non-2xx response. str() always carries the HTTP status token."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"DealMaker API error {status_code}: {body}".rstrip(": "))


class DealMakerTransportError(Exception):
    """The DealMaker API could not be reached."""


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    """Decode a 2xx body that must be a JSON object."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        raise DealMakerAPIError(response.status_code, "invalid response body")
    return payload


class DealMakerClient:
    def __init__(
        self,
        api_base_url: str,
        auth_base_url: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.auth_base_url = auth_base_url.rstrip("/")
        self.client_id = (client_id or "").strip() or None
        self.client_secret = (client_secret or "").strip() or None
        self.timeout = timeout
        self._transport = transport
        self._token_cache: tuple[float, Optional[str]] = (0.0, None)

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_access_token(self) -> str:
        expires_at, cached = self._token_cache
        if cached and time.time() < expires_at:
            return cached

        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id or "",
            "client_secret": self.client_secret or "",
            "scope": "deals.investors.manage",
        }
        try:
            async with self._client() as client:
                response = await client.post(f"{self.auth_base_url}/oauth/token", data=data)
        except httpx.TransportError as exc:
            raise DealMakerTransportError(f"Token request failed: {exc}") from exc

        if response.status_code != 200:
            raise DealMakerAPIError(response.status_code, f"authentication failed: {response.text}")

        payload = _json_object(response)
        token = payload.get("access_token")
        if not token:
            raise DealMakerAPIError(response.status_code, "authentication failed: no access_token")

        # Refresh a minute early
        ttl = float(payload.get("expires_in") or 3600)
        self._token_cache = (time.time() + max(ttl - 60, 0), token)
        return token

    async def _request_json(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
    ) -> Dict[str, Any]:
        token = await self._get_access_token()
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }
        url = f"{self.api_base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.request(method, url, headers=headers, json=json)
        except httpx.TransportError as exc:
            logger.debug(f"DealMaker {method} {path} unreachable: {exc}")
            raise DealMakerTransportError(f"DealMaker {method} request failed: {exc}") from exc

        if response.status_code == 401:
            # Stale token; next call fetches a new one
            self._token_cache = (0.0, None)

        if response.status_code >= 400:
            logger.debug(f"DealMaker API {response.status_code}: {response.text}")
            raise DealMakerAPIError(response.status_code, response.text)

        if not response.content:
            return {}
        return _json_object(response)

    # ------------------------------------------------------------------
    # INVESTORS
    # ------------------------------------------------------------------

    async def create_investor(self, deal_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_json("POST", f"/deals/{deal_id}/investors", json=payload)

    async def update_investor(
        self,
        deal_id: str,
        investor_id: str,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        return await self._request_json(
            "PATCH", f"/deals/{deal_id}/investors/{investor_id}", json=payload
        )

    async def get_investor_access_link(self, deal_id: str, investor_id: str) -> Dict[str, Any]:
        return await self._request_json(
            "GET", f"/deals/{deal_id}/investors/{investor_id}/otp_access_link"
        )
