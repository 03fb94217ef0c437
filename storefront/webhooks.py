"""
Stripe webhook dispatch.

Events are routed through an ``EventType``-keyed handler table. Only checkout
session events produce a fulfillment record; everything else is logged.
Nothing here is persisted or deduplicated, so a redelivered event is handled
again from scratch.
"""
from enum import Enum
from types import MappingProxyType
from typing import Callable, Optional

import structlog

from storefront.timeutil import to_iso

logger = structlog.get_logger(__name__)


class EventType(str, Enum):
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    CHECKOUT_SESSION_EXPIRED = "checkout.session.expired"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_INTENT_PAYMENT_FAILED = "payment_intent.payment_failed"
    PAYMENT_INTENT_REQUIRES_ACTION = "payment_intent.requires_action"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


def log_order_fulfillment(record: dict) -> dict:
    # Stand-in for writing the order somewhere durable
    logger.info("order_fulfillment_logged", **record)
    return record


def handle_checkout_session_completed(session) -> dict:
    customer_details = session.get("customer_details") or {}
    logger.info("checkout_session_completed", session_id=session["id"],
                payment_status=session.get("payment_status"))
    return log_order_fulfillment({
        "sessionId": session["id"],
        "customerEmail": customer_details.get("email"),
        "amount": session.get("amount_total"),
        "currency": session.get("currency"),
        "status": "completed",
        "metadata": session.get("metadata"),
    })


def handle_checkout_session_expired(session) -> dict:
    logger.info("checkout_session_expired", session_id=session["id"])
    return log_order_fulfillment({
        "sessionId": session["id"],
        "status": "expired",
        "expiredAt": to_iso(),
    })


def handle_payment_intent_succeeded(intent) -> None:
    logger.info("payment_intent_succeeded", payment_intent_id=intent["id"],
                amount=intent.get("amount"), currency=intent.get("currency"),
                customer_id=intent.get("customer"))


def handle_payment_intent_failed(intent) -> None:
    error = intent.get("last_payment_error") or {}
    logger.info("payment_intent_failed", payment_intent_id=intent["id"],
                error_type=error.get("type"), error_code=error.get("code"),
                error_message=error.get("message"), decline_code=error.get("decline_code"))


def handle_payment_intent_requires_action(intent) -> None:
    next_action = intent.get("next_action") or {}
    logger.info("payment_intent_requires_action", payment_intent_id=intent["id"],
                status=intent.get("status"), next_action=next_action.get("type"))


def handle_invoice_payment_succeeded(invoice) -> None:
    logger.info("invoice_payment_succeeded", invoice_id=invoice["id"],
                subscription_id=invoice.get("subscription"), customer_id=invoice.get("customer"),
                amount_paid=invoice.get("amount_paid"))


def handle_invoice_payment_failed(invoice) -> None:
    logger.info("invoice_payment_failed", invoice_id=invoice["id"],
                subscription_id=invoice.get("subscription"), customer_id=invoice.get("customer"),
                attempt_count=invoice.get("attempt_count"))


def handle_subscription_created(subscription) -> None:
    logger.info("subscription_created", subscription_id=subscription["id"],
                customer_id=subscription.get("customer"), status=subscription.get("status"),
                current_period_start=subscription.get("current_period_start"),
                current_period_end=subscription.get("current_period_end"))


def handle_subscription_updated(subscription) -> None:
    logger.info("subscription_updated", subscription_id=subscription["id"],
                status=subscription.get("status"),
                cancel_at_period_end=subscription.get("cancel_at_period_end"))


def handle_subscription_deleted(subscription) -> None:
    logger.info("subscription_deleted", subscription_id=subscription["id"],
                customer_id=subscription.get("customer"),
                canceled_at=subscription.get("canceled_at"))


HANDLERS: "MappingProxyType[EventType, Callable]" = MappingProxyType({
    EventType.CHECKOUT_SESSION_COMPLETED: handle_checkout_session_completed,
    EventType.CHECKOUT_SESSION_EXPIRED: handle_checkout_session_expired,
    EventType.PAYMENT_INTENT_SUCCEEDED: handle_payment_intent_succeeded,
    EventType.PAYMENT_INTENT_PAYMENT_FAILED: handle_payment_intent_failed,
    EventType.PAYMENT_INTENT_REQUIRES_ACTION: handle_payment_intent_requires_action,
    EventType.INVOICE_PAYMENT_SUCCEEDED: handle_invoice_payment_succeeded,
    EventType.INVOICE_PAYMENT_FAILED: handle_invoice_payment_failed,
    EventType.SUBSCRIPTION_CREATED: handle_subscription_created,
    EventType.SUBSCRIPTION_UPDATED: handle_subscription_updated,
    EventType.SUBSCRIPTION_DELETED: handle_subscription_deleted,
})

_unhandled = set(EventType) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"No webhook handler registered for: {sorted(t.value for t in _unhandled)}")


def dispatch_event(event) -> Optional[dict]:
    """Run the handler for ``event`` and return its fulfillment record, if any."""
    try:
        event_type = EventType(event["type"])
    except ValueError:
        logger.info("webhook_event_unhandled", event_type=event["type"])
        event_type = None

    record = None
    if event_type is not None:
        record = HANDLERS[event_type](event["data"]["object"])

    logger.info("webhook_event_processed", event_id=event.get("id"), event_type=event["type"],
                created=event.get("created"))
    return record
