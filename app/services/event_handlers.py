"""Per-event orchestration for Viber webhook callbacks.

Each handler follows the same order: upsert the customer, persist messages,
send the bot reply, then publish to the admin room. Failures are logged and
counted on the metrics collector; nothing is raised to the router.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import Customer
from app.schemas.viber import Actor, OutboundContent, PlainText, ViberMessage
from app.services import customer_service, message_service, templates
from app.services.message_service import SENDER_CUSTOMER, SENDER_SYSTEM, message_to_dict
from app.services.metrics_service import MetricsCollector
from app.services.realtime import (
    ADMIN_ROOM,
    NEW_CUSTOMER_MESSAGE,
    NEW_SUBSCRIBER,
    USER_UNSUBSCRIBED,
    Broadcaster,
)
from app.services.result import Result
from app.services.viber_service import ViberService

logger = get_logger("event_handlers")

UNKNOWN_USER = "Unknown User"


class WebhookHandlers:
    def __init__(
        self,
        db: Session,
        dispatcher: ViberService,
        broadcaster: Broadcaster,
        metrics: MetricsCollector,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster
        self.metrics = metrics

    def _upsert(self, actor: Actor) -> Result[Customer]:
        result = customer_service.upsert_customer(self.db, actor.id, actor.name)
        if not result.ok:
            self.metrics.record_database_error()
        return result

    def _persist(self, customer_id, sender_type: str, text: Optional[str], token: Optional[str] = None):
        result = message_service.insert_message(self.db, customer_id, sender_type, text, token)
        if not result.ok:
            self.metrics.record_database_error()
        return result

    async def _reply(self, customer: Customer, actor: Actor, content: OutboundContent, text: str) -> bool:
        """Send a bot message and log it as a system message if it was delivered."""
        dispatch = await self.dispatcher.send(actor.id, content)
        if not dispatch.success:
            self.metrics.record_viber_api_error()
            logger.error(
                "Bot reply not delivered",
                extra={"context": {"viber_id": actor.id, "error": dispatch.error}},
            )
            return False

        self.metrics.record_message_sent()
        self._persist(customer.id, SENDER_SYSTEM, text)
        return True

    async def handle_conversation_started(self, actor: Optional[Actor]) -> None:
        try:
            if actor is None or not actor.id:
                logger.warning("conversation_started without user id, skipping")
                return

            upsert = self._upsert(actor)
            if not upsert.ok:
                return

            content = templates.build_welcome_content()
            await self._reply(upsert.value, actor, content, content.text)
        except Exception as e:
            logger.exception(f"conversation_started handler failed: {e}")
            self.metrics.record_database_error()

    async def handle_message(
        self,
        actor: Optional[Actor],
        message: Optional[ViberMessage],
        message_token: Optional[str] = None,
    ) -> None:
        try:
            if actor is None or not actor.id:
                logger.warning("message event without sender id, skipping")
                return

            upsert = self._upsert(actor)
            if not upsert.ok:
                return
            customer = upsert.value

            received_text = message.text if message else None
            saved = self._persist(customer.id, SENDER_CUSTOMER, received_text, message_token)
            if not saved.ok:
                logger.warning(
                    "Inbound message not stored, continuing with reply",
                    extra={"context": {"viber_id": actor.id}},
                )

            reply_text = templates.reply_for_command(received_text)
            await self._reply(customer, actor, PlainText(reply_text), reply_text)

            await self.broadcaster.publish(
                ADMIN_ROOM,
                NEW_CUSTOMER_MESSAGE,
                {
                    "customer_id": str(customer.id),
                    "customer_name": actor.name,
                    "viber_id": actor.id,
                    "message": message_to_dict(saved.value) if saved.ok else None,
                },
            )
        except Exception as e:
            logger.exception(f"message handler failed: {e}")
            self.metrics.record_database_error()

    async def handle_subscribed(self, actor: Optional[Actor]) -> None:
        try:
            if actor is None or not actor.id:
                logger.warning("subscribed event without sender id, skipping")
                return

            upsert = self._upsert(actor)
            if not upsert.ok:
                return
            customer = upsert.value

            await self.broadcaster.publish(
                ADMIN_ROOM,
                NEW_SUBSCRIBER,
                {
                    "customer_id": str(customer.id),
                    "customer_name": actor.name,
                    "viber_id": actor.id,
                },
            )

            welcome_text = templates.get_welcome_message()
            await self._reply(customer, actor, PlainText(welcome_text), welcome_text)
        except Exception as e:
            logger.exception(f"subscribed handler failed: {e}")
            self.metrics.record_database_error()

    async def handle_unsubscribed(self, actor: Optional[Actor]) -> None:
        # Viber refuses messages to unsubscribed users, so nothing is sent here
        try:
            viber_id = actor.id if actor else None
            customer_name = (actor.name if actor else None) or UNKNOWN_USER

            if not viber_id:
                logger.warning("unsubscribed event without sender id, notifying admins only")
                await self.broadcaster.publish(
                    ADMIN_ROOM,
                    USER_UNSUBSCRIBED,
                    {"customer_name": customer_name, "viber_id": None},
                )
                return

            now = datetime.now(timezone.utc)
            updated = customer_service.update_customer(self.db, viber_id, last_active_at=now, updated_at=now)
            if not updated.ok:
                self.metrics.record_database_error()

            await self.broadcaster.publish(
                ADMIN_ROOM,
                USER_UNSUBSCRIBED,
                {"customer_name": customer_name, "viber_id": viber_id},
            )
        except Exception as e:
            logger.exception(f"unsubscribed handler failed: {e}")
            self.metrics.record_database_error()
