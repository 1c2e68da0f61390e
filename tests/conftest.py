"""Shared fixtures: an in-memory stand-in for the remote commerce API.

`FakeSquare.handle` is plugged into `httpx.MockTransport`, so the real
`CommerceClient` (and everything above it) runs unchanged against it.
"""

import itertools
import json
import re

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront_service.clients import CommerceClient
from storefront_service.config import Settings
from storefront_service.main import create_app


class FakeSquare:
    def __init__(self):
        self.orders = {}
        self.prices = {}
        self.default_price = 500
        self.catalog_pages = [[]]
        self.locations = [{"id": "L1", "name": "Main Street"}]
        self.calls = []
        self.failures = {}
        self._ids = itertools.count(1)

    # -- helpers used by tests --------------------------------------------
    def fail(self, method, path_pattern, status, errors):
        """Make the next matching call fail with `errors`."""
        self.failures[(method, path_pattern)] = (status, errors)

    def calls_to(self, method, path_pattern):
        return [c for c in self.calls if c[0] == method and re.fullmatch(path_pattern, c[1])]

    def seed_order(self, total, location_id="L1", version=1, customer_id=None):
        order_id = f"ORDER-{next(self._ids)}"
        self.orders[order_id] = {
            "id": order_id,
            "location_id": location_id,
            "version": version,
            "state": "OPEN",
            "line_items": [],
            "total_money": {"amount": total, "currency": "USD"},
        }
        if customer_id:
            self.orders[order_id]["customer_id"] = customer_id
        return order_id

    # -- transport ----------------------------------------------------------
    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append((method, path, body, dict(request.url.params)))

        for (f_method, pattern), (status, errors) in list(self.failures.items()):
            if f_method == method and re.fullmatch(pattern, path):
                del self.failures[(f_method, pattern)]
                return httpx.Response(status, json={"errors": errors})

        if method == "GET" and path == "/v2/locations":
            return httpx.Response(200, json={"locations": self.locations})
        if method == "GET" and path == "/v2/catalog/list":
            return self._list_catalog(request.url.params.get("cursor"))
        if method == "POST" and path == "/v2/orders":
            return self._create_order(body)
        if method == "POST" and path == "/v2/payments":
            return self._create_payment(body)
        if method == "POST" and path == "/v2/invoices":
            return self._create_invoice(body)

        match = re.fullmatch(r"/v2/orders/([^/]+)(/pay)?", path)
        if match:
            order = self.orders.get(match.group(1))
            if order is None:
                return self._error(404, "NOT_FOUND", "Order not found.")
            if match.group(2) and method == "POST":
                order["state"] = "COMPLETED"
                return httpx.Response(200, json={"order": order})
            if method == "GET":
                return httpx.Response(200, json={"order": order})
            if method == "PUT":
                return self._update_order(order, body)
        return self._error(404, "NOT_FOUND", f"No route for {method} {path}")

    def _error(self, status, code, detail, category="INVALID_REQUEST_ERROR"):
        return httpx.Response(status, json={"errors": [{"category": category, "code": code, "detail": detail}]})

    def _line_item(self, requested):
        price = self.prices.get(requested["catalog_object_id"], self.default_price)
        return {
            "uid": f"li-{next(self._ids)}",
            "catalog_object_id": requested["catalog_object_id"],
            "quantity": requested["quantity"],
            "base_price_money": {"amount": price, "currency": "USD"},
        }

    def _recompute(self, order):
        total = sum(
            li["base_price_money"]["amount"] * int(li["quantity"]) for li in order["line_items"]
        )
        order["total_money"] = {"amount": total, "currency": "USD"}

    def _create_order(self, body):
        if not body.get("idempotency_key"):
            return self._error(400, "MISSING_REQUIRED_PARAMETER", "idempotency_key is required")
        requested = body["order"]
        order_id = f"ORDER-{next(self._ids)}"
        order = {
            "id": order_id,
            "location_id": requested["location_id"],
            "version": 1,
            "state": "OPEN",
            "line_items": [self._line_item(li) for li in requested.get("line_items", [])],
        }
        self._recompute(order)
        self.orders[order_id] = order
        return httpx.Response(200, json={"order": order})

    def _update_order(self, order, body):
        if not body.get("idempotency_key"):
            return self._error(400, "MISSING_REQUIRED_PARAMETER", "idempotency_key is required")
        requested = body["order"]
        if requested.get("version") is not None and requested["version"] != order["version"]:
            return self._error(400, "VERSION_MISMATCH", "Order version is stale.")
        for li in requested.get("line_items", []):
            if "uid" in li:
                existing = next((x for x in order["line_items"] if x["uid"] == li["uid"]), None)
                if existing is None:
                    return self._error(400, "INVALID_VALUE", f"Unknown line item {li['uid']}")
                existing["quantity"] = li["quantity"]
            else:
                order["line_items"].append(self._line_item(li))
        if "fulfillments" in requested:
            order["fulfillments"] = requested["fulfillments"]
        order["version"] += 1
        self._recompute(order)
        return httpx.Response(200, json={"order": order})

    def _create_payment(self, body):
        if body["amount_money"]["amount"] <= 0:
            return self._error(400, "INVALID_VALUE", "amount_money must be greater than 0")
        payment = {
            "id": f"PAY-{next(self._ids)}",
            "status": "COMPLETED",
            "amount_money": body["amount_money"],
            "order_id": body["order_id"],
            "source_type": "CARD",
        }
        return httpx.Response(200, json={"payment": payment})

    def _create_invoice(self, body):
        invoice = dict(body["invoice"], id=f"INV-{next(self._ids)}", version=0, status="DRAFT")
        return httpx.Response(200, json={"invoice": invoice})

    def _list_catalog(self, cursor):
        # Cursors are opaque; only the ones handed out below resolve to a page
        cursors = {str(i): i for i in range(1, len(self.catalog_pages))}
        if cursor and cursor not in cursors:
            return httpx.Response(200, json={"objects": []})
        index = cursors[cursor] if cursor else 0
        page = {"objects": self.catalog_pages[index]}
        if index + 1 < len(self.catalog_pages):
            page["cursor"] = str(index + 1)
        return httpx.Response(200, json=page)


@pytest.fixture
def square():
    return FakeSquare()


@pytest.fixture
def commerce(square):
    return CommerceClient("test-token", "sandbox", transport=httpx.MockTransport(square.handle))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        square_environment="sandbox",
        square_sandbox_access_token="test-token",
        square_sandbox_application_id="sandbox-app",
        well_known_dir=str(tmp_path / ".well-known"),
    )


@pytest.fixture
def client(settings, commerce):
    app = create_app(settings, commerce)
    return TestClient(app, raise_server_exceptions=False)
