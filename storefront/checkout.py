import time
from typing import Optional

import stripe
import structlog

from storefront.catalog import get_product_by_id
from storefront.config import Settings
from storefront.errors import Expired, InvalidRequest, NotFound, UpstreamError
from storefront.status import classify_payment_status
from storefront.timeutil import to_iso

logger = structlog.get_logger(__name__)

SESSION_TTL_SECONDS = 30 * 60
PAYMENT_METHOD_TYPES = ["card"]
CHECKOUT_MODE = "payment"


def create_checkout(gateway, settings: Settings, product_id: Optional[str], quantity: int = 1,
                    now: Optional[float] = None) -> dict:
    if not product_id:
        raise InvalidRequest("Product ID is required")

    product = get_product_by_id(product_id)
    if product is None:
        raise NotFound("Product not found")

    now = time.time() if now is None else now

    try:
        session = gateway.create_checkout_session(
            payment_method_types=PAYMENT_METHOD_TYPES,
            mode=CHECKOUT_MODE,
            line_items=[
                {
                    "price_data": {
                        "currency": product.currency,
                        "product_data": {
                            "name": product.name,
                            "description": product.description,
                        },
                        "unit_amount": product.price,
                    },
                    "quantity": quantity,
                }
            ],
            success_url=settings.success_url,
            cancel_url=settings.cancel_url,
            expires_at=int(now) + SESSION_TTL_SECONDS,
            metadata={"productId": product.id, "quantity": str(quantity)},
            customer_creation="always",
            billing_address_collection="required",
        )
    except stripe.StripeError as e:
        logger.error("checkout_session_failed", product_id=product.id, error=str(e))
        raise UpstreamError("Failed to create checkout session", details=provider_message(e))

    logger.info("checkout_session_created", session_id=session["id"], product_id=product.id,
                quantity=quantity)
    return {"url": session["url"]}


def get_session_summary(gateway, session_id: Optional[str], now: Optional[float] = None) -> dict:
    if not session_id:
        raise InvalidRequest("Session ID is required")

    try:
        session = gateway.retrieve_checkout_session(session_id, expand=["line_items", "payment_intent"])
    except stripe.InvalidRequestError as e:
        if e.code == "resource_missing":
            raise NotFound("Session not found")
        logger.warning("session_lookup_rejected", session_id=session_id, error=str(e))
        raise InvalidRequest("Invalid session ID")
    except stripe.StripeError as e:
        logger.error("session_lookup_failed", session_id=session_id, error=str(e))
        raise UpstreamError("Failed to retrieve session", details=provider_message(e))

    if not session:
        raise NotFound("Session not found")

    now = time.time() if now is None else now
    expires_at = session.get("expires_at")
    if expires_at and expires_at < now:
        raise Expired("Session has expired", expired_at=to_iso(expires_at))

    return {"session": project_session(session)}


def get_payment_status(gateway, payment_intent_id: Optional[str] = None,
                       session_id: Optional[str] = None) -> dict:
    if not payment_intent_id and not session_id:
        raise InvalidRequest("Payment Intent ID or Session ID is required")

    session = None
    payment_intent = None
    try:
        if payment_intent_id:
            payment_intent = gateway.retrieve_payment_intent(payment_intent_id)
        else:
            session = gateway.retrieve_checkout_session(session_id)
            reference = payment_intent_reference(session)
            if reference:
                payment_intent = gateway.retrieve_payment_intent(reference)
    except stripe.InvalidRequestError as e:
        if e.code != "resource_missing":
            logger.error("payment_status_check_failed", error=str(e))
            raise UpstreamError("Failed to check payment status", details=provider_message(e))
        # a missing session or intent is reported below as not found
    except stripe.StripeError as e:
        logger.error("payment_status_check_failed", error=str(e))
        raise UpstreamError("Failed to check payment status", details=provider_message(e))

    if not payment_intent:
        raise NotFound("Payment Intent not found")

    last_error = payment_intent.get("last_payment_error")
    decline_code = last_error.get("decline_code") if last_error else None
    status_info = classify_payment_status(payment_intent["status"], decline_code)

    return {
        "payment_intent": {
            "id": payment_intent["id"],
            "status": payment_intent["status"],
            "amount": payment_intent.get("amount"),
            "currency": payment_intent.get("currency"),
            "created": payment_intent.get("created"),
            "client_secret": payment_intent.get("client_secret"),
        },
        "session": {
            "id": session["id"],
            "status": session.get("status"),
            "payment_status": session.get("payment_status"),
            "expires_at": session.get("expires_at"),
        } if session else None,
        "status_info": status_info.to_dict(),
        "last_payment_error": {
            "type": last_error.get("type"),
            "code": last_error.get("code"),
            "message": last_error.get("message"),
            "decline_code": last_error.get("decline_code"),
        } if last_error else None,
    }


def project_session(session) -> dict:
    customer_details = session.get("customer_details") or {}
    fields = {
        "id": session.get("id"),
        "status": session.get("status"),
        "payment_status": session.get("payment_status"),
        "customer_email": customer_details.get("email"),
        "amount_total": session.get("amount_total"),
        "currency": session.get("currency"),
        "expires_at": session.get("expires_at"),
        "created": session.get("created"),
        "metadata": session.get("metadata"),
    }
    line_items = session.get("line_items")
    if line_items:
        fields["line_items"] = [
            {
                "description": item.get("description"),
                "quantity": item.get("quantity"),
                "amount_total": item.get("amount_total"),
            }
            for item in line_items.get("data", [])
        ]
    # Never report a field the upstream object did not carry
    return {key: value for key, value in fields.items() if value is not None}


def payment_intent_reference(session) -> Optional[str]:
    reference = session.get("payment_intent") if session else None
    if isinstance(reference, str):
        return reference
    if reference:
        return reference.get("id")
    return None


def provider_message(error: stripe.StripeError) -> str:
    return error.user_message or str(error)
