from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.catalog import list_products
from storefront.checkout import create_checkout, get_payment_status, get_session_summary
from storefront.config import Settings, get_settings
from storefront.stripe_service import StripeGateway, get_gateway

router = APIRouter()


class CheckoutRequest(BaseModel):
    productId: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


@router.get("/products")
def products_api():
    return {"products": [product.to_dict() for product in list_products()]}


@router.post("/checkout")
def create_checkout_api(
    request: CheckoutRequest,
    gateway: StripeGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    return create_checkout(gateway, settings, request.productId, request.quantity)


@router.get("/checkout/session")
def checkout_session_api(session_id: Optional[str] = None, gateway: StripeGateway = Depends(get_gateway)):
    return get_session_summary(gateway, session_id)


@router.get("/payment/status")
def payment_status_api(
    payment_intent_id: Optional[str] = None,
    session_id: Optional[str] = None,
    gateway: StripeGateway = Depends(get_gateway),
):
    return get_payment_status(gateway, payment_intent_id=payment_intent_id, session_id=session_id)


@router.get("/config")
def client_config(settings: Settings = Depends(get_settings)):
    return {"publishableKey": settings.stripe_publishable_key}


@router.get("/health")
def health():
    return {"status": "ok"}


# Stripe redirects the customer back to these two after checkout
@router.get("/success")
def checkout_success(session_id: Optional[str] = None, gateway: StripeGateway = Depends(get_gateway)):
    return {"message": "Payment Successful!", **get_session_summary(gateway, session_id)}


@router.get("/cancel")
def checkout_cancelled(settings: Settings = Depends(get_settings)):
    return {
        "message": "Your payment was cancelled. No charges have been made to your account.",
        "home_url": f"{settings.app_url}/",
    }
