from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import Message
from app.services.result import VALIDATION_ERROR, Result

logger = get_logger("message_service")

NON_TEXT_SENTINEL = "[Non-text message]"

SENDER_CUSTOMER = "customer"
SENDER_SYSTEM = "system"
SENDER_ADMIN = "admin"
SENDER_TYPES = (SENDER_CUSTOMER, SENDER_SYSTEM, SENDER_ADMIN)


def insert_message(
    db: Session,
    customer_id: UUID,
    sender_type: str,
    text: Optional[str],
    viber_message_id: Optional[str] = None,
) -> Result[Message]:
    """Append one message to the customer's conversation log."""
    if sender_type not in SENDER_TYPES:
        return Result.failure(f"Invalid sender_type: {sender_type}", VALIDATION_ERROR)

    message = Message(
        customer_id=customer_id,
        sender_type=sender_type,
        message_text=text or NON_TEXT_SENTINEL,
        viber_message_id=viber_message_id,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(message)
        db.commit()
        return Result.success(message)
    except Exception as e:
        db.rollback()
        logger.error(
            "Message insert failed",
            extra={"context": {"customer_id": str(customer_id), "sender_type": sender_type, "error": str(e)}},
        )
        return Result.from_exception(e)


def message_to_dict(message: Message) -> dict:
    return {
        "id": str(message.id) if message.id else None,
        "customer_id": str(message.customer_id),
        "sender_type": message.sender_type,
        "message_text": message.message_text,
        "viber_message_id": message.viber_message_id,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
