from app.schemas.realtime import AdminSendMessage, RealtimeFrame
from app.schemas.viber import (
    Actor,
    OutboundContent,
    PlainText,
    StructuredMessage,
    ViberWebhookRequest,
    WebhookAck,
)

__all__ = [
    "Actor",
    "AdminSendMessage",
    "OutboundContent",
    "PlainText",
    "RealtimeFrame",
    "StructuredMessage",
    "ViberWebhookRequest",
    "WebhookAck",
]
