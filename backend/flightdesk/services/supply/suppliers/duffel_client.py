"""Minimal async client for the Duffel REST API."""

import logging
from typing import Any

import httpx

from flightdesk.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class DuffelApiError(Exception):
    """Non-2xx Duffel response. ``errors`` is Duffel's error list as returned."""

    def __init__(self, message: str, status: int, errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors or []

    @property
    def code(self) -> str | None:
        return self.errors[0].get("code") if self.errors else None


class DuffelClient:
    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self._settings = settings or default_settings
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            token = self._settings.duffel_token
            if not token:
                raise DuffelApiError("Duffel API token must be set", 401)
            self._client = httpx.AsyncClient(
                base_url=self._settings.duffel_base_url,
                timeout=self._settings.supplier_http_timeout_seconds,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Duffel-Version": self._settings.duffel_api_version,
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> dict:
        client = await self._get_client()
        try:
            resp = await client.request(method, path, params=params, json=json_body)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                body = e.response.json()
            except ValueError:
                body = {}
            errors = body.get("errors") or []
            message = (errors[0].get("message") or errors[0].get("title")) if errors else None
            logger.error(f"Duffel {method} {path} failed: {e.response.status_code} {errors}")
            raise DuffelApiError(
                message or f"Duffel request failed ({e.response.status_code})",
                e.response.status_code,
                errors,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Duffel {method} {path} request error: {e}")
            raise DuffelApiError(f"Duffel request failed: {e}", 503) from e

        return resp.json().get("data") or {}

    async def create_offer_request(self, slices: list[dict], passengers: list[dict], cabin_class: str | None) -> dict:
        body: dict[str, Any] = {"slices": slices, "passengers": passengers}
        if cabin_class:
            body["cabin_class"] = cabin_class
        return await self._request(
            "POST", "/air/offer_requests", params={"return_offers": "true"}, json_body={"data": body}
        )

    async def get_offer(self, offer_id: str) -> dict:
        return await self._request("GET", f"/air/offers/{offer_id}")

    async def create_order(self, body: dict) -> dict:
        return await self._request("POST", "/air/orders", json_body={"data": body})

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/air/orders/{order_id}")

    async def create_order_cancellation(self, order_id: str) -> dict:
        return await self._request(
            "POST", "/air/order_cancellations", json_body={"data": {"order_id": order_id}}
        )

    async def confirm_order_cancellation(self, cancellation_id: str) -> dict:
        return await self._request("POST", f"/air/order_cancellations/{cancellation_id}/actions/confirm")

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
