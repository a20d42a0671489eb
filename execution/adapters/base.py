# SPDX-License-Identifier: MIT
"""Foundational primitives for authenticated, read-only exchange handles."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

import httpx

from core.utils.logging import get_logger
from domain import ExchangeCredentials

from ..errors import ExchangeTransportError

DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=30.0)


def parse_float(value: Any, default: float = 0.0) -> float:
    """Coerce a venue numeric field, tolerating ``None`` and empty strings.

    Raises:
        ValueError: If ``value`` is present but not a number.
    """

    if value is None or value == "":
        return default
    try:
        return float(value)
    except TypeError as exc:
        raise ValueError(f"not a number: {value!r}") from exc


class RESTExchangeHandle:
    """Base class for venue handles built on :class:`httpx.AsyncClient`.

    Subclasses provide request signing and the endpoints used for balances,
    account information and tickers. Handles return raw payloads; mapping onto
    domain entities happens in the venue module's ``parse_*`` functions.
    """

    exchange: str = ""

    def __init__(
        self,
        *,
        base_url: str,
        credentials: ExchangeCredentials | None,
        sandbox: bool = True,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> None:
        self.sandbox = sandbox
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._logger = get_logger(f"execution.adapters.{self.exchange}", exchange=self.exchange)

    # ------------------------------------------------------------------
    # Abstract hooks for subclasses
    def _sign_request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any],
        headers: Dict[str, str],
    ) -> tuple[Dict[str, Any], Dict[str, str], Any | None]:
        """Return signed ``(params, headers, form_body)`` for a private request."""

        raise NotImplementedError

    def _balance_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        raise NotImplementedError

    def _account_endpoint(self) -> tuple[str, str, Dict[str, Any]]:
        raise NotImplementedError

    def _ticker_endpoint(self, symbol: str) -> tuple[str, Dict[str, Any]]:
        raise NotImplementedError

    def _check_payload(self, payload: Mapping[str, Any] | list) -> Mapping[str, Any] | list:
        """Raise when a successful HTTP response still reports a venue error."""

        return payload

    # ------------------------------------------------------------------
    # Credentials
    @property
    def api_key(self) -> str:
        if self._credentials is None:
            raise ExchangeTransportError("credentials are required for private endpoints", exchange=self.exchange)
        return self._credentials.api_key

    @property
    def api_secret(self) -> str:
        if self._credentials is None:
            raise ExchangeTransportError("credentials are required for private endpoints", exchange=self.exchange)
        return self._credentials.api_secret.get_secret_value()

    # ------------------------------------------------------------------
    # REST helpers
    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._http_client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        signed: bool = False,
    ) -> Mapping[str, Any] | list:
        request_params = dict(params or {})
        headers: Dict[str, str] = {}
        body = None
        if signed:
            request_params, headers, body = self._sign_request(
                method, path, params=request_params, headers=headers
            )
        try:
            response = await self._client().request(
                method, path, params=request_params or None, data=body, headers=headers
            )
        except httpx.HTTPError as exc:
            raise ExchangeTransportError(f"{method} {path} failed", exchange=self.exchange, cause=exc) from exc
        if response.status_code == 429:
            raise ExchangeTransportError("HTTP 429: rate limited", exchange=self.exchange)
        if 500 <= response.status_code < 600:
            raise ExchangeTransportError(
                f"HTTP {response.status_code}: transient server error", exchange=self.exchange
            )
        if response.is_error:
            raise ExchangeTransportError(
                f"HTTP {response.status_code}: {response.text}", exchange=self.exchange
            )
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise ExchangeTransportError("Invalid JSON response from exchange", exchange=self.exchange, cause=exc) from exc
        if not isinstance(payload, (Mapping, list)):
            raise ExchangeTransportError("Unexpected response payload type", exchange=self.exchange)
        self._logger.debug("Exchange request completed", method=method, path=path, status=response.status_code)
        return self._check_payload(payload)

    # ------------------------------------------------------------------
    # ExchangeHandle API
    async def fetch_balance(self) -> Mapping[str, Any] | list:
        method, path, params = self._balance_endpoint()
        return await self._request(method, path, params=params, signed=True)

    async def fetch_private_account_info(self) -> Mapping[str, Any] | list:
        method, path, params = self._account_endpoint()
        return await self._request(method, path, params=params, signed=True)

    async def fetch_ticker(self, symbol: str) -> Mapping[str, Any]:
        path, params = self._ticker_endpoint(symbol)
        payload = await self._request("GET", path, params=params)
        if not isinstance(payload, Mapping):
            raise ExchangeTransportError("Ticker payload must be an object", exchange=self.exchange, symbol=symbol)
        return payload

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "RESTExchangeHandle":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["DEFAULT_TIMEOUT", "RESTExchangeHandle", "parse_float"]
