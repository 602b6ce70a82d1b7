from typing import Awaitable, Callable, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from app.dependencies import get_handlers, get_metrics, get_rate_limiter
from app.logging_config import get_logger
from app.schemas.viber import ViberWebhookRequest, WebhookAck, extract_actor, rate_limit_key
from app.services.event_handlers import WebhookHandlers
from app.services.helpers import log_webhook_event
from app.services.metrics_service import MetricsCollector
from app.services.rate_limiter import RateLimiter

logger = get_logger("webhook")

router = APIRouter()

RATE_LIMIT_FALLBACK_KEY = "unknown"

EVENT_CONVERSATION_STARTED = "conversation_started"
EVENT_MESSAGE = "message"
EVENT_SUBSCRIBED = "subscribed"
EVENT_UNSUBSCRIBED = "unsubscribed"


def _handler_table(
    handlers: WebhookHandlers,
    payload: ViberWebhookRequest,
) -> Dict[str, Callable[[], Awaitable[None]]]:
    actor = extract_actor(payload)
    return {
        EVENT_CONVERSATION_STARTED: lambda: handlers.handle_conversation_started(actor),
        EVENT_MESSAGE: lambda: handlers.handle_message(actor, payload.message, payload.message_token),
        EVENT_SUBSCRIBED: lambda: handlers.handle_subscribed(actor),
        EVENT_UNSUBSCRIBED: lambda: handlers.handle_unsubscribed(actor),
    }


async def process_webhook_event(
    payload: ViberWebhookRequest,
    handlers: WebhookHandlers,
    rate_limiter: RateLimiter,
    metrics: MetricsCollector,
) -> bool:
    """Rate-limit and dispatch one callback. Returns True if a handler ran."""
    log_webhook_event(payload.event, payload.model_dump(exclude_none=True))

    rate_key = rate_limit_key(payload, RATE_LIMIT_FALLBACK_KEY)
    if not rate_limiter.is_allowed(rate_key):
        logger.warning("Webhook rate limited", extra={"context": {"key": rate_key, "event": payload.event}})
        return False

    handler = _handler_table(handlers, payload).get(payload.event)
    if handler is None:
        logger.info(f"Unhandled Viber event: {payload.event}")
        return False

    try:
        await handler()
    except Exception as e:
        logger.exception(f"Webhook processing error: {e}")
        metrics.record_database_error()
    return True


@router.post("/webhook", response_model=WebhookAck)
async def viber_webhook(
    request: Request,
    handlers: WebhookHandlers = Depends(get_handlers),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    metrics: MetricsCollector = Depends(get_metrics),
):
    """Viber callback endpoint. Always acknowledges, or Viber retries the delivery."""
    try:
        raw = await request.json()
        payload = ViberWebhookRequest.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid webhook payload: {e}")
        return WebhookAck()

    try:
        await process_webhook_event(payload, handlers, rate_limiter, metrics)
    except Exception as e:
        logger.exception(f"Webhook handler error: {e}")
        metrics.record_database_error()

    return WebhookAck()
