"""
routes.py — HTTP routes of the storefront service

Three route groups, each handler stateless:
    • storefront_router: catalog listing and order creation
    • cart_router (/cart): order info and cart mutations
    • checkout_router (/checkout): delivery details, invoice and payment

Handlers only translate request bodies and delegate. Failures propagate as
`ServiceError` to the application's exception handlers.
"""

from fastapi import APIRouter, Depends, Request

from .cart import Address, LineItemRequest, OrderTranslator, Recipient
from .catalog import list_all_catalog, project
from .clients import CommerceClient
from .config import Settings
from .errors import ErrorKind, ServiceError
from .models import (
    AddItemRequest,
    CreateInvoiceRequest,
    CreateOrderRequest,
    DeliveryDetailsRequest,
    OrderInfoRequest,
    PaymentRequest,
    UpdateItemQuantityRequest,
)
from .workflow import InvoicePolicy, create_invoice, process_payment


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_client(request: Request) -> CommerceClient:
    return request.app.state.commerce


def get_translator(client: CommerceClient = Depends(get_client)) -> OrderTranslator:
    return OrderTranslator(client)


# ---------------------------------------------------------------------------
# Storefront
# ---------------------------------------------------------------------------
storefront_router = APIRouter(tags=["storefront"])


@storefront_router.get("/")
async def list_storefront(client: CommerceClient = Depends(get_client)):
    """
    Returns the first location id and the catalog listing (items with images and
    variations). Only the first location is used by the storefront.
    """
    locations = (await client.locations.list()).get("locations") or []
    if not locations:
        raise ServiceError(ErrorKind.CONFIGURATION, "No locations are configured for this account.")
    objects = await list_all_catalog(client)
    return {
        "locationId": locations[0]["id"],
        "items": project(objects),
    }


@storefront_router.post("/create-order")
async def create_order(body: CreateOrderRequest, translator: OrderTranslator = Depends(get_translator)):
    order = await translator.create_order(
        body.locationId,
        [LineItemRequest(catalog_object_id=body.itemVarId, quantity=body.itemQuantity)],
    )
    return {"result": "Success! Order created!", "order": order}


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.post("/order-info")
async def order_info(body: OrderInfoRequest, translator: OrderTranslator = Depends(get_translator)):
    """Current order snapshot; used to refresh the cart and on the confirmation page."""
    return {"orderInfo": await translator.retrieve_order(body.orderId)}


@cart_router.post("/update-order-add-item")
async def add_item(body: AddItemRequest, translator: OrderTranslator = Depends(get_translator)):
    order = await translator.add_item(
        body.orderId, body.locationId, body.itemVarId, body.itemQuantity, body.version,
    )
    return {"result": "Success! Order updated!", "order": order}


@cart_router.post("/update-order-item-quantity")
async def update_item_quantity(body: UpdateItemQuantityRequest,
                               translator: OrderTranslator = Depends(get_translator)):
    """
    Sets the total quantity of a line item already in the cart. Quantity 0 does not
    remove the line item; it keeps its uid so the customer can add it again later.
    """
    order = await translator.set_item_quantity(
        body.orderId, body.locationId, body.itemUid, body.itemQuantity, body.version,
    )
    return {"result": "Success! Order updated!", "updatedOrder": order}


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/add-delivery-details")
async def add_delivery_details(body: DeliveryDetailsRequest,
                               translator: OrderTranslator = Depends(get_translator)):
    """Attaches a proposed SHIPMENT fulfillment with the recipient's contact and address."""
    order = await translator.add_delivery_details(
        body.orderId,
        body.locationId,
        Recipient(display_name=body.deliveryName, email=body.deliveryEmail, phone_number=body.deliveryNumber),
        Address(
            address_line_1=body.deliveryAddress,
            locality=body.deliveryCity,
            administrative_district_level_1=body.deliveryState,
            postal_code=body.deliveryPostal,
        ),
        body.version,
        ship_at=body.deliveryTime,
    )
    return {"result": "Success! Delivery details added!", "order": order}


@checkout_router.post("/create-invoice")
async def create_order_invoice(body: CreateInvoiceRequest,
                               client: CommerceClient = Depends(get_client),
                               settings: Settings = Depends(get_settings)):
    policy = InvoicePolicy(
        weekday=settings.invoice_due_weekday,
        reminder_days=settings.invoice_reminder_days,
        reminder_message=settings.invoice_reminder_message,
    )
    result = await create_invoice(client, body.orderId, policy)
    return {"result": "Success! Invoice created!", "invoice": result["invoice"], "order": result["order"]}


@checkout_router.post("/payment")
async def pay_order(body: PaymentRequest, client: CommerceClient = Depends(get_client)):
    result = await process_payment(client, body.orderId, body.nonce, body.idempotencyKey)
    return {"result": "Success! Order paid!", "payment": result["payment"], "order": result["order"]}
