"""
catalog.py — Storefront listing built from raw catalog objects

The remote catalog returns items, variations and images as separate objects that
reference each other by id. `project()` flattens them into one entry per item.
"""

import logging
from typing import List, Optional

from .clients import CommerceClient
from .encoding import normalize

log = logging.getLogger(__name__)

LISTING_TYPES = "ITEM,IMAGE"


def _image_id(item_data: dict) -> Optional[str]:
    image_ids = item_data.get("image_ids") or []
    if image_ids:
        return image_ids[0]
    return item_data.get("image_id")


def _project_variation(variation: dict) -> dict:
    data = variation.get("item_variation_data", {})
    price = data.get("price_money") or {}
    return {
        "id": variation.get("id"),
        "name": data.get("name"),
        "priceAmount": price.get("amount"),
        "priceCurrency": price.get("currency"),
    }


def project(raw_objects: List[dict]) -> List[dict]:
    """
    Joins ITEM objects to their IMAGE objects.

    Items keep their input order. An image id that matches no IMAGE object gives
    `imageUrl: None`; an item without variations gets an empty `variations` list.
    Objects of any other type are ignored.
    """
    image_urls = {
        obj.get("id"): obj.get("image_data", {}).get("url")
        for obj in raw_objects
        if obj.get("type") == "IMAGE"
    }

    items = []
    for obj in raw_objects:
        if obj.get("type") != "ITEM":
            continue
        data = obj.get("item_data", {})
        items.append({
            "id": obj.get("id"),
            "name": data.get("name"),
            "description": data.get("description"),
            "imageUrl": image_urls.get(_image_id(data)),
            "variations": [_project_variation(v) for v in data.get("variations") or []],
        })
    # Prices may exceed the JavaScript safe integer range
    return normalize(items, camelize=False)


async def list_all_catalog(client: CommerceClient, types: str = LISTING_TYPES) -> List[dict]:
    """Collects every page of catalog objects by following the remote cursor."""
    objects = []
    cursor = None
    while True:
        page = await client.catalog.list(cursor=cursor, types=types)
        objects.extend(page.get("objects") or [])
        cursor = page.get("cursor")
        if not cursor:
            break
    log.info(f"Fetched {len(objects)} catalog object(s) of types {types}.")
    return objects
