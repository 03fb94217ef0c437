import pytest
from structlog.testing import capture_logs

from storefront import webhooks
from storefront.webhooks import EventType, HANDLERS, dispatch_event


COMPLETED_EVENT = {
    "id": "evt_completed",
    "type": "checkout.session.completed",
    "created": 1700000000,
    "data": {
        "object": {
            "id": "cs_test_123",
            "customer_details": {"email": "ada@example.com"},
            "amount_total": 4999,
            "currency": "usd",
            "payment_status": "paid",
            "metadata": {"productId": "prod_1", "quantity": "1"},
        }
    },
}


def test_every_event_type_has_a_handler():
    assert set(HANDLERS) == set(EventType)


def test_completed_session_emits_fulfillment():
    record = dispatch_event(COMPLETED_EVENT)

    assert record == {
        "sessionId": "cs_test_123",
        "customerEmail": "ada@example.com",
        "amount": 4999,
        "currency": "usd",
        "status": "completed",
        "metadata": {"productId": "prod_1", "quantity": "1"},
    }


def test_expired_session_emits_fulfillment():
    event = {
        "id": "evt_expired",
        "type": "checkout.session.expired",
        "created": 1700000000,
        "data": {"object": {"id": "cs_test_456"}},
    }

    record = dispatch_event(event)

    assert record["sessionId"] == "cs_test_456"
    assert record["status"] == "expired"
    assert record["expiredAt"].endswith("Z")


@pytest.mark.parametrize("event_type,obj", [
    ("payment_intent.succeeded", {"id": "pi_1", "amount": 100, "currency": "usd"}),
    ("payment_intent.payment_failed", {"id": "pi_1", "last_payment_error": {"code": "card_declined"}}),
    ("payment_intent.requires_action", {"id": "pi_1", "status": "requires_action"}),
    ("invoice.payment_succeeded", {"id": "in_1", "amount_paid": 500}),
    ("invoice.payment_failed", {"id": "in_1", "attempt_count": 2}),
    ("customer.subscription.created", {"id": "sub_1", "status": "active"}),
    ("customer.subscription.updated", {"id": "sub_1", "cancel_at_period_end": True}),
    ("customer.subscription.deleted", {"id": "sub_1", "canceled_at": 1700000000}),
])
def test_log_only_events_emit_nothing(event_type, obj):
    event = {"id": "evt_1", "type": event_type, "created": 1700000000, "data": {"object": obj}}

    with capture_logs() as logs:
        assert dispatch_event(event) is None

    assert not any(entry["event"] == "order_fulfillment_logged" for entry in logs)
    assert logs[-1]["event"] == "webhook_event_processed"


def test_unhandled_event_is_logged():
    event = {"id": "evt_x", "type": "charge.refunded", "created": 1, "data": {"object": {"id": "ch_1"}}}

    with capture_logs() as logs:
        assert dispatch_event(event) is None

    assert [entry["event"] for entry in logs] == ["webhook_event_unhandled", "webhook_event_processed"]


def test_webhook_endpoint_acknowledges(client, gateway):
    gateway.event = COMPLETED_EVENT

    response = client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "valid_sig"})

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_webhook_invalid_signature_does_not_dispatch(client, gateway, mocker):
    gateway.event = COMPLETED_EVENT
    spy = mocker.patch("storefront.main.dispatch_event")

    response = client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "forged"})

    assert response.status_code == 400
    assert response.json() == {"error": "Webhook signature verification failed"}
    spy.assert_not_called()


def test_webhook_unrecognized_type_is_acknowledged(client, gateway):
    gateway.event = {"id": "evt_x", "type": "radar.early_fraud_warning.created", "data": {"object": {}}}

    response = client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "valid_sig"})

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_webhook_handler_fault_returns_500(client, gateway, mocker):
    gateway.event = COMPLETED_EVENT
    mocker.patch.object(webhooks, "log_order_fulfillment", side_effect=RuntimeError("boom"))

    response = client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "valid_sig"})

    assert response.status_code == 500
    assert response.json() == {"error": "Webhook processing failed"}


def test_redelivered_completed_event_fulfills_twice(client, gateway):
    gateway.event = COMPLETED_EVENT

    with capture_logs() as logs:
        for _ in range(2):
            response = client.post("/webhooks/stripe", content=b"{}", headers={"stripe-signature": "valid_sig"})
            assert response.status_code == 200

    fulfillments = [entry for entry in logs if entry["event"] == "order_fulfillment_logged"]
    assert len(fulfillments) == 2
    assert all(entry["sessionId"] == "cs_test_123" for entry in fulfillments)
