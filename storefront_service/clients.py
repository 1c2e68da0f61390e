"""
This module provides the client for the remote commerce platform (Square REST API v2).

`CommerceClient` owns a single `httpx.AsyncClient` and exposes one small class per
remote resource (catalog, locations, orders, payments, invoices). Every method is a
direct pass-through: it sends the request it is given and returns the decoded body.
There are no retries and no local validation. Failed calls are raised as
`ServiceError` with the platform's error list attached.
"""

import logging
from typing import Optional

import httpx

from .config import Settings
from .encoding import loads
from .errors import ErrorKind, ServiceError

BASE_URLS = {
    "sandbox": "https://connect.squareupsandbox.com",
    "production": "https://connect.squareup.com",
}

log = logging.getLogger(__name__)


def classify_error(status_code: int, errors: list) -> ErrorKind:
    """
    Maps a failed remote response to an `ErrorKind`.

    A stale order version is reported by the platform either as 409 or as a 400
    carrying the VERSION_MISMATCH code; both are conflicts.
    """
    codes = {e.get("code") for e in errors if isinstance(e, dict)}
    if status_code == 409 or "VERSION_MISMATCH" in codes:
        return ErrorKind.CONFLICT
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    return ErrorKind.UPSTREAM


class CommerceClient:
    """
    Handle to the remote commerce API. Built once per process and shared by all
    requests; it holds no mutable state besides the connection pool.
    """

    def __init__(
            self,
            access_token: str,
            environment: str = "sandbox",
            api_version: str = "2021-05-13",
            timeout: float = 10.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            access_token (str): Bearer token for the platform.
            environment (str): "sandbox" or "production"; selects the base URL.
            api_version (str): Value of the Square-Version header.
            timeout (float): Transport timeout in seconds.
            transport: Optional httpx transport (tests pass an `httpx.MockTransport`).
        """
        if environment not in BASE_URLS:
            raise ServiceError(ErrorKind.CONFIGURATION, f"Unknown environment: {environment!r}")
        self.environment = environment
        self._http = httpx.AsyncClient(
            base_url=BASE_URLS[environment],
            headers={
                "Authorization": f"Bearer {access_token}",
                "Square-Version": api_version,
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self.catalog = CatalogApi(self)
        self.locations = LocationsApi(self)
        self.orders = OrdersApi(self)
        self.payments = PaymentsApi(self)
        self.invoices = InvoicesApi(self)

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Builds the client for the configured environment.

        Raises:
            ServiceError: (CONFIGURATION) if the access token is missing.
        """
        return cls(
            access_token=settings.require_access_token(),
            environment=settings.square_environment,
            api_version=settings.square_api_version,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def aclose(self):
        await self._http.aclose()

    async def request(self, method: str, path: str, *, json: Optional[dict] = None,
                      params: Optional[dict] = None) -> dict:
        """
        Sends one request and returns the decoded JSON body.

        Raises:
            ServiceError: TRANSPORT if the platform could not be reached, otherwise the
                classified remote failure with the platform's `errors` list attached.
        """
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            log.error(f"{method} {path} failed before a response was received: {e!r}")
            raise ServiceError(ErrorKind.TRANSPORT, f"Commerce API unreachable: {e}") from e

        try:
            body = loads(response.content) if response.content else {}
        except ValueError as e:
            log.error(f"{method} {path} -> HTTP {response.status_code} with a body that is not JSON.")
            raise ServiceError(
                ErrorKind.UPSTREAM,
                f"Commerce API returned an unreadable body for {method} {path} (HTTP {response.status_code})",
                upstream_details=[{"category": "API_ERROR", "detail": response.text}],
            ) from e

        if response.is_error:
            errors = body.get("errors", []) if isinstance(body, dict) else []
            kind = classify_error(response.status_code, errors)
            if kind in (ErrorKind.AUTHENTICATION, ErrorKind.UPSTREAM):
                log.error(f"{method} {path} -> HTTP {response.status_code}: {errors}")
            else:
                log.warning(f"{method} {path} -> HTTP {response.status_code}: {errors}")
            http_status = None if kind in (ErrorKind.AUTHENTICATION, ErrorKind.UPSTREAM) else response.status_code
            raise ServiceError(
                kind,
                f"Commerce API rejected {method} {path} (HTTP {response.status_code})",
                http_status=http_status,
                upstream_details=errors,
            )
        return body


class _Resource:
    def __init__(self, client: CommerceClient):
        self._client = client


class CatalogApi(_Resource):
    async def list(self, cursor: Optional[str] = None, types: Optional[str] = None) -> dict:
        """One page of catalog objects; `types` is a comma separated list, e.g. "ITEM,IMAGE"."""
        params = {}
        if cursor:
            params["cursor"] = cursor
        if types:
            params["types"] = types
        return await self._client.request("GET", "/v2/catalog/list", params=params)


class LocationsApi(_Resource):
    async def list(self) -> dict:
        return await self._client.request("GET", "/v2/locations")


class OrdersApi(_Resource):
    async def create(self, body: dict) -> dict:
        return await self._client.request("POST", "/v2/orders", json=body)

    async def update(self, order_id: str, body: dict) -> dict:
        return await self._client.request("PUT", f"/v2/orders/{order_id}", json=body)

    async def retrieve(self, order_id: str) -> dict:
        return await self._client.request("GET", f"/v2/orders/{order_id}")

    async def pay(self, order_id: str, body: dict) -> dict:
        return await self._client.request("POST", f"/v2/orders/{order_id}/pay", json=body)


class PaymentsApi(_Resource):
    async def create(self, body: dict) -> dict:
        return await self._client.request("POST", "/v2/payments", json=body)


class InvoicesApi(_Resource):
    async def create(self, body: dict) -> dict:
        return await self._client.request("POST", "/v2/invoices", json=body)
