from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
import structlog

from storefront.config import get_settings
from storefront.errors import ProcessingFailed, register_exception_handlers
from storefront.log_config import configure_logging
from storefront.routes import router
from storefront.stripe_service import StripeGateway, get_gateway
from storefront.webhooks import dispatch_event

logger = structlog.get_logger(__name__)

settings = get_settings()
configure_logging(settings.log_level, settings.log_json)

app = FastAPI(title="Storefront Checkout Service")

app.include_router(router)
register_exception_handlers(app)


@app.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    gateway: StripeGateway = Depends(get_gateway),
):
    payload = await request.body()

    event = gateway.construct_event(payload, stripe_signature)

    try:
        dispatch_event(event)
    except Exception:
        logger.exception("webhook_processing_failed", event_id=event.get("id"), event_type=event.get("type"))
        raise ProcessingFailed("Webhook processing failed")

    return {"received": True}
