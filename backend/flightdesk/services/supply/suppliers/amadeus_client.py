"""Amadeus Self-Service API client with OAuth2 token caching and retries."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from flightdesk.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class AmadeusApiError(Exception):
    def __init__(self, message: str, status: int, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


def _error_from_response(resp: httpx.Response) -> AmadeusApiError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    errors = body.get("errors") or [{}]
    first = errors[0] if isinstance(errors, list) and errors else {}
    detail = first.get("detail") or body.get("error_description") or resp.reason_phrase
    code = first.get("code")
    return AmadeusApiError(str(detail), resp.status_code, str(code) if code is not None else None)


class AmadeusClient:
    """Thin async wrapper over the Amadeus REST API."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        backoff_base: float = 1.0,
    ):
        self._settings = settings or default_settings
        self._client = client
        self._backoff_base = backoff_base
        self._token: str | None = None
        self._token_expires: datetime | None = None
        self._token_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(10)  # 10 req/s rate limit

    @property
    def has_credentials(self) -> bool:
        return bool(self._settings.amadeus_client_id and self._settings.amadeus_client_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.amadeus_base_url,
                timeout=self._settings.supplier_http_timeout_seconds,
            )
        return self._client

    def _token_is_valid(self) -> bool:
        return bool(
            self._token
            and self._token_expires
            and datetime.now(timezone.utc) < self._token_expires
        )

    async def _ensure_token(self) -> str:
        """Get or refresh the OAuth2 token (refreshed 60s before expiry)."""
        async with self._token_lock:
            if self._token_is_valid():
                return self._token

            if not self.has_credentials:
                raise AmadeusApiError("Amadeus client id and secret must be set", 401, "MISSING_CREDENTIALS")

            client = await self._get_client()
            try:
                resp = await client.post(
                    "/v1/security/oauth2/token",
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self._settings.amadeus_client_id,
                        "client_secret": self._settings.amadeus_client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
            except httpx.RequestError as e:
                raise AmadeusApiError(f"Amadeus token request failed: {e}", 503) from e

            if resp.status_code != 200:
                raise AmadeusApiError(
                    f"Amadeus token request failed ({resp.status_code}): {resp.text}",
                    resp.status_code,
                )

            data = resp.json()
            self._token = data["access_token"]
            self._token_expires = datetime.now(timezone.utc) + timedelta(
                seconds=int(data.get("expires_in", 1799)) - 60
            )
            logger.info("Amadeus token refreshed")
            return self._token

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expires = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> dict:
        """Authenticated request; retries on 401 (fresh token), 429 and 5xx."""
        max_retries = self._settings.supplier_max_retries
        client = await self._get_client()

        async with self._semaphore:
            for attempt in range(max_retries + 1):
                token = await self._ensure_token()
                try:
                    resp = await client.request(
                        method,
                        path,
                        params=params,
                        json=json_body,
                        headers={"Authorization": f"Bearer {token}"},
                    )
                except httpx.RequestError as e:
                    logger.error(f"Amadeus request error: {e}")
                    if attempt < max_retries:
                        await asyncio.sleep(self._backoff_base * 2 ** attempt)
                        continue
                    raise AmadeusApiError(f"Amadeus request failed: {e}", 503) from e

                # Token expired mid-flight
                if resp.status_code == 401:
                    self.invalidate_token()
                    if attempt < max_retries:
                        continue

                if (resp.status_code == 429 or resp.status_code >= 500) and attempt < max_retries:
                    await asyncio.sleep(self._backoff_base * 2 ** attempt)
                    continue

                if resp.is_error:
                    logger.error(f"Amadeus {method} {path} error: {resp.status_code}")
                    raise _error_from_response(resp)

                return resp.json()

        raise AmadeusApiError("Max retries exceeded", 503)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict:
        return await self._request("GET", path, params=params)

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
