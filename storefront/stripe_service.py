from typing import Optional

from fastapi import Depends
import stripe
import structlog

from storefront.config import Settings, get_settings
from storefront.errors import InvalidRequest, InvalidSignature

logger = structlog.get_logger(__name__)


class StripeGateway:
    """Thin wrapper over the stripe library; the only place that talks to Stripe."""

    def __init__(self, secret_key: str, webhook_secret: str):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def create_checkout_session(self, **params):
        return stripe.checkout.Session.create(api_key=self.secret_key, **params)

    def retrieve_checkout_session(self, session_id: str, expand: Optional[list] = None):
        params = {"expand": expand} if expand else {}
        return stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key, **params)

    def retrieve_payment_intent(self, payment_intent_id: str):
        return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.secret_key)

    def construct_event(self, payload: bytes, signature: Optional[str]):
        if not signature:
            raise InvalidSignature("Missing Stripe-Signature header")
        if not self.webhook_secret:
            logger.error("webhook_secret_not_configured")
            raise InvalidSignature("Webhook signature verification failed")

        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError:
            raise InvalidRequest("Invalid payload")
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise InvalidSignature("Webhook signature verification failed")


def get_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
