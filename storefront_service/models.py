"""
models.py — Request bodies accepted by the storefront routes

Field names are the ones the storefront front end already sends (camelCase).
Quantities must be whole numbers; only the quantity-update route accepts 0,
which keeps the line item in the cart.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    """
    Attributes:
        itemVarId (str): Catalog id of the item variation to buy.
        itemQuantity (int): Quantity, greater than zero.
        locationId (str): Location the order belongs to.
    """
    itemVarId: str
    itemQuantity: int = Field(..., gt=0)
    locationId: str


class OrderInfoRequest(BaseModel):
    orderId: str


class AddItemRequest(BaseModel):
    orderId: str
    itemVarId: str
    itemQuantity: int = Field(..., gt=0)
    locationId: str
    version: int


class UpdateItemQuantityRequest(BaseModel):
    """
    Attributes:
        itemUid (str): Uid of the line item already in the order (not the catalog id).
        itemQuantity (int): New total quantity; 0 keeps the line item with quantity 0.
    """
    locationId: str
    orderId: str
    itemUid: str
    itemQuantity: int = Field(..., ge=0)
    version: int


class DeliveryDetailsRequest(BaseModel):
    orderId: str
    locationId: str
    deliveryName: str
    deliveryEmail: Optional[str] = None
    deliveryNumber: Optional[str] = None
    deliveryAddress: str
    deliveryCity: str
    deliveryState: Optional[str] = None
    deliveryPostal: str
    deliveryTime: Optional[str] = None  # RFC 3339 timestamp
    version: int


class CreateInvoiceRequest(BaseModel):
    orderId: str


class PaymentRequest(BaseModel):
    """
    Attributes:
        orderId (str): Order to pay.
        nonce (str): Single-use card token created by the payment form.
        idempotencyKey (str, optional): Reused when the storefront retries the same payment.
    """
    orderId: str
    nonce: str
    idempotencyKey: Optional[str] = Field(None, min_length=1, max_length=45)
