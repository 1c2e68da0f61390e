"""
cart.py — Translation between storefront cart actions and remote order requests

The builders are pure functions that return the request body for the remote
Orders API. `OrderTranslator` sends them through the `CommerceClient` and
normalizes the returned order for JSON output.

Every body carries its own idempotency key so a duplicated submission is applied
only once by the platform. Updates carry the order `version` the storefront last
saw; a stale version is rejected remotely as a conflict and is not retried here.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .clients import CommerceClient
from .encoding import normalize

log = logging.getLogger(__name__)


def new_idempotency_key() -> str:
    """Fresh random key (36 characters, within the 45 character remote limit)."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class LineItemRequest:
    catalog_object_id: str
    quantity: int


@dataclass(frozen=True)
class Recipient:
    display_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class Address:
    address_line_1: str
    locality: str
    postal_code: str
    administrative_district_level_1: Optional[str] = None


def _order_update(location_id: str, version: int, **fields) -> dict:
    order = {"location_id": location_id, "version": version, **fields}
    return {"idempotency_key": new_idempotency_key(), "order": order}


def build_create_order_request(location_id: str, items: Iterable[LineItemRequest]) -> dict:
    return {
        "idempotency_key": new_idempotency_key(),
        "order": {
            "location_id": location_id,
            "line_items": [
                {"quantity": str(item.quantity), "catalog_object_id": item.catalog_object_id}
                for item in items
            ],
        },
    }


def build_add_item_request(location_id: str, catalog_object_id: str, quantity: int,
                           version: int) -> dict:
    # Line items without a uid are appended to the order
    return _order_update(
        location_id,
        version,
        line_items=[{"quantity": str(quantity), "catalog_object_id": catalog_object_id}],
    )


def build_set_quantity_request(location_id: str, line_item_uid: str, quantity: int,
                               version: int) -> dict:
    # Addressed by uid; quantity "0" leaves the line item in place
    return _order_update(
        location_id,
        version,
        line_items=[{"uid": line_item_uid, "quantity": str(quantity)}],
    )


def build_delivery_details_request(location_id: str, recipient: Recipient, address: Address,
                                   version: int, ship_at: Optional[str] = None) -> dict:
    address_fields = {
        "address_line_1": address.address_line_1,
        "locality": address.locality,
        "administrative_district_level_1": address.administrative_district_level_1,
        "postal_code": address.postal_code,
    }
    recipient_fields = {
        "display_name": recipient.display_name,
        "phone_number": recipient.phone_number,
        "email_address": recipient.email,
        "address": {k: v for k, v in address_fields.items() if v is not None},
    }
    shipment_details = {"recipient": {k: v for k, v in recipient_fields.items() if v is not None}}
    if ship_at:
        shipment_details["expected_shipped_at"] = ship_at

    return _order_update(
        location_id,
        version,
        fulfillments=[{
            "type": "SHIPMENT",
            "state": "PROPOSED",
            "shipment_details": shipment_details,
        }],
    )


class OrderTranslator:
    """
    Cart and order operations used by the storefront routes.

    Every method returns the order as normalized JSON (camelCase keys, exact amounts).
    Remote failures propagate as `ServiceError`.
    """

    def __init__(self, client: CommerceClient):
        self.client = client

    async def create_order(self, location_id: str, items: List[LineItemRequest]) -> dict:
        body = build_create_order_request(location_id, items)
        result = await self.client.orders.create(body)
        order = result.get("order", {})
        log.info(f"[Order: {order.get('id')}] Created at location {location_id} with {len(items)} line item(s).")
        return normalize(order)

    async def add_item(self, order_id: str, location_id: str, catalog_object_id: str, quantity: int,
                       version: int) -> dict:
        body = build_add_item_request(location_id, catalog_object_id, quantity, version)
        return await self._update(order_id, body, f"added {quantity} x {catalog_object_id}")

    async def set_item_quantity(self, order_id: str, location_id: str, line_item_uid: str, quantity: int,
                                version: int) -> dict:
        body = build_set_quantity_request(location_id, line_item_uid, quantity, version)
        return await self._update(order_id, body, f"line item {line_item_uid} set to {quantity}")

    async def add_delivery_details(self, order_id: str, location_id: str, recipient: Recipient,
                                   address: Address, version: int,
                                   ship_at: Optional[str] = None) -> dict:
        body = build_delivery_details_request(location_id, recipient, address, version, ship_at)
        return await self._update(order_id, body, "shipment fulfillment proposed")

    async def retrieve_order(self, order_id: str) -> dict:
        result = await self.client.orders.retrieve(order_id)
        return normalize(result.get("order", {}))

    async def _update(self, order_id: str, body: dict, what: str) -> dict:
        result = await self.client.orders.update(order_id, body)
        order = result.get("order", {})
        log.info(f"[Order: {order_id}] Updated ({what}), now at version {order.get('version')}.")
        return normalize(order)
