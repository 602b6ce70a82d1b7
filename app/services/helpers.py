"""Text helpers for log previews and webhook event logging."""

from typing import Any, Mapping, Optional

from app.logging_config import get_logger

logger = get_logger("helpers")

PREVIEW_LENGTH = 50


def truncate_text(text: Optional[str], max_length: int = 100) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def message_preview(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def log_webhook_event(event: str, payload: Mapping[str, Any]) -> dict:
    """Log a one-line summary of an inbound webhook; returns the logged context."""
    sender = payload.get("sender") or payload.get("user") or {}
    message = payload.get("message") or {}
    context = {
        "event": event,
        "sender_id": sender.get("id"),
        "sender_name": sender.get("name"),
        "message_preview": message_preview(message.get("text")),
        "message_type": message.get("type") or "N/A",
    }
    logger.info(f"Webhook: {event}", extra={"context": context})
    return context
