from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.schemas.realtime import AdminSendMessage
from app.services import message_service
from app.services.helpers import truncate_text
from app.services.message_service import SENDER_ADMIN, message_to_dict
from app.services.metrics_service import MetricsCollector
from app.services.realtime import ADMIN_ROOM, NEW_ADMIN_MESSAGE, Broadcaster
from app.services.result import PROVIDER_ERROR, VALIDATION_ERROR, Result
from app.services.viber_service import ViberService

logger = get_logger("admin_message_service")


async def send_admin_message(
    db: Session,
    request: AdminSendMessage,
    dispatcher: ViberService,
    broadcaster: Broadcaster,
    metrics: MetricsCollector,
) -> Result[dict]:
    """Send an operator's raw text to a customer and mirror it to the admin room."""
    if not request.customer_viber_id or not request.customer_id or not request.message_text:
        return Result.failure(
            "Missing required fields: customerViberId, customerId, or messageText",
            VALIDATION_ERROR,
        )

    try:
        customer_uuid = UUID(request.customer_id)
    except ValueError:
        return Result.failure(f"Invalid customerId: {request.customer_id}", VALIDATION_ERROR)

    logger.info(
        "Admin sending message",
        extra={
            "context": {
                "viber_id": request.customer_viber_id,
                "preview": truncate_text(request.message_text, 50),
            }
        },
    )

    dispatch = await dispatcher.send_text(request.customer_viber_id, request.message_text)
    if not dispatch.success:
        metrics.record_viber_api_error()
        return Result.failure(f"Viber API error: {dispatch.error}", PROVIDER_ERROR)

    metrics.record_message_sent()

    saved = message_service.insert_message(db, customer_uuid, SENDER_ADMIN, request.message_text)
    if saved.ok:
        message = message_to_dict(saved.value)
    else:
        metrics.record_database_error()
        message = {
            "message_text": request.message_text,
            "sender_type": SENDER_ADMIN,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    payload = {
        "customer_id": request.customer_id,
        "viber_id": request.customer_viber_id,
        "message": message,
    }
    await broadcaster.publish(ADMIN_ROOM, NEW_ADMIN_MESSAGE, payload)
    return Result.success(payload)
