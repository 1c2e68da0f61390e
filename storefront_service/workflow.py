"""
workflow.py — Checkout flows: payment and invoicing

An order moves OPEN → (delivery details set) → INVOICED or PAID. Each step here is
a short sequence of remote calls:

Payment:
    1. Re-read the order so the charged amount is the current total
       (the price may have changed from another session).
    2. Total > 0 → create one payment for exactly that total.
       Total == 0 → settle the order with the pay-order call; a zero-amount
       payment would be rejected.

Invoice:
    1. Read the order.
    2. Create an unpublished invoice with one BALANCE payment request, due on
       the next weekly fulfillment day, with one reminder before it is due.
    3. Re-read the order so the caller gets the synchronized snapshot.

A failing remote call aborts the flow and its error is propagated unchanged.
Nothing is compensated locally; the platform is the system of record.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from .cart import new_idempotency_key
from .clients import CommerceClient
from .encoding import normalize

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoicePolicy:
    """
    Attributes:
        weekday (int): Due weekday, Monday = 0 ... Sunday = 6.
        reminder_days (int): Days before the due date the reminder is sent.
        reminder_message (str): Text of the reminder.
    """
    weekday: int = 4
    reminder_days: int = 1
    reminder_message: str = "Your invoice is due tomorrow."


def next_due_date(reference: date, weekday: int) -> date:
    """
    Next date falling on `weekday` strictly after `reference`.

    A reference date that already is that weekday yields the same weekday one
    week later, never the reference date itself.
    """
    days_ahead = (weekday - reference.weekday()) % 7 or 7
    return reference + timedelta(days=days_ahead)


def build_payment_request(order: dict, source_id: str, idempotency_key: str) -> dict:
    return {
        "source_id": source_id,
        "idempotency_key": idempotency_key,
        "amount_money": order["total_money"],
        "order_id": order["id"],
    }


def build_invoice_request(order: dict, due: date, policy: InvoicePolicy) -> dict:
    invoice = {
        "location_id": order.get("location_id"),
        "order_id": order["id"],
        "payment_requests": [{
            "request_type": "BALANCE",
            "due_date": due.isoformat(),
            "reminders": [{
                "relative_scheduled_days": -policy.reminder_days,
                "message": policy.reminder_message,
            }],
        }],
        "delivery_method": "SHARE_MANUALLY",
        "accepted_payment_methods": {"card": True},
    }
    if order.get("customer_id"):
        invoice["primary_recipient"] = {"customer_id": order["customer_id"]}
    return {"idempotency_key": new_idempotency_key(), "invoice": invoice}


async def process_payment(client: CommerceClient, order_id: str, source_id: str,
                          idempotency_key: Optional[str] = None) -> dict:
    """
    Pays an order with a single-use card token.

    Args:
        client (CommerceClient): Remote API handle.
        order_id (str): Order to pay.
        source_id (str): Card nonce from the payment form.
        idempotency_key (str, optional): Caller-supplied key for a retried submission.
            A fresh key is generated when omitted.

    Returns:
        dict: {"payment": normalized payment or None, "order": normalized order}.
            `payment` is None when a zero-total order was settled without a payment.

    Raises:
        ServiceError: Any remote failure, unchanged.
    """
    log_prefix = f"[Order: {order_id}]"
    key = idempotency_key or new_idempotency_key()

    result = await client.orders.retrieve(order_id)
    order = result["order"]
    total = order.get("total_money") or {}
    amount = total.get("amount") or 0

    if amount > 0:
        log.info(f"{log_prefix} Creating payment for {amount} {total.get('currency')}.")
        payment_result = await client.payments.create(build_payment_request(order, source_id, key))
        payment = payment_result.get("payment", {})
        log.info(f"{log_prefix} Payment {payment.get('id')} status {payment.get('status')}.")
        return {"payment": normalize(payment), "order": normalize(order)}

    log.info(f"{log_prefix} Total is zero, settling with pay-order instead of a payment.")
    body = {"idempotency_key": key}
    if order.get("version") is not None:
        body["order_version"] = order["version"]
    paid = await client.orders.pay(order_id, body)
    return {"payment": None, "order": normalize(paid.get("order", order))}


async def create_invoice(client: CommerceClient, order_id: str, policy: InvoicePolicy,
                         today: Optional[date] = None) -> dict:
    """
    Creates an unpublished invoice for the order's balance.

    The due date is counted from `today`, which defaults to the server's local
    date. The platform reads `due_date` in the location's time zone, so callers
    near midnight in a different zone should pass the location's date.

    Returns:
        dict: {"invoice": normalized invoice, "order": normalized order re-read after creation}.

    Raises:
        ServiceError: Any remote failure, unchanged.
    """
    log_prefix = f"[Order: {order_id}]"
    result = await client.orders.retrieve(order_id)
    order = result["order"]

    due = next_due_date(today or date.today(), policy.weekday)
    invoice_result = await client.invoices.create(build_invoice_request(order, due, policy))
    invoice = invoice_result.get("invoice", {})
    log.info(f"{log_prefix} Invoice {invoice.get('id')} created as draft, due {due.isoformat()}.")

    refreshed = await client.orders.retrieve(order_id)
    return {"invoice": normalize(invoice), "order": normalize(refreshed.get("order", {}))}
