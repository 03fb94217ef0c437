import pytest
import stripe
from fastapi.testclient import TestClient

from storefront.config import Settings, get_settings
from storefront.main import app as fastapi_app
from storefront.stripe_service import get_gateway
from storefront.errors import InvalidSignature


TEST_SETTINGS = Settings(
    stripe_publishable_key="pk_test_123",
    stripe_secret_key="sk_test_123",
    stripe_webhook_secret="whsec_test_123",
    app_url="https://shop.example.com",
)


def missing(kind, object_id):
    return stripe.InvalidRequestError(
        f"No such {kind}: '{object_id}'", "id", code="resource_missing", http_status=404
    )


class FakeGateway:
    """In-memory stand-in for StripeGateway."""

    def __init__(self):
        self.sessions = {}
        self.payment_intents = {}
        self.created = []
        self.event = None
        self.create_error = None

    def create_checkout_session(self, **params):
        if self.create_error:
            raise self.create_error
        self.created.append(params)
        return {"id": "cs_test_new", "url": "https://checkout.stripe.com/c/pay/cs_test_new"}

    def retrieve_checkout_session(self, session_id, expand=None):
        if session_id not in self.sessions:
            raise missing("checkout.session", session_id)
        return self.sessions[session_id]

    def retrieve_payment_intent(self, payment_intent_id):
        if payment_intent_id not in self.payment_intents:
            raise missing("payment_intent", payment_intent_id)
        return self.payment_intents[payment_intent_id]

    def construct_event(self, payload, signature):
        if signature != "valid_sig":
            raise InvalidSignature("Webhook signature verification failed")
        return self.event


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    fastapi_app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    fastapi_app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
