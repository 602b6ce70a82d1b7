import asyncio
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.schemas.viber import Actor, PlainText, StructuredMessage, ViberMessage
from app.services.event_handlers import WebhookHandlers
from app.services.message_service import NON_TEXT_SENTINEL
from app.services.realtime import ADMIN_ROOM
from app.services.result import Result
from app.services.templates import BOTH, get_welcome_message, render_template
from app.services.viber_service import DispatchResult

FAILED_DISPATCH = DispatchResult(success=False, error={"status": 6, "status_message": "notSubscribed"})


@pytest.fixture
def handlers(db_session, dispatcher, broadcaster, metrics):
    return WebhookHandlers(db_session, dispatcher, broadcaster, metrics)


def _stored_message(customer_id, sender_type="customer", text="hello"):
    return SimpleNamespace(
        id=uuid4(),
        customer_id=customer_id,
        sender_type=sender_type,
        message_text=text,
        viber_message_id="77",
        created_at=None,
    )


class TestConversationStarted:
    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_sends_welcome_with_keyboard(self, mock_upsert, mock_insert, handlers, dispatcher, metrics, customer):
        mock_upsert.return_value = Result.success(customer)
        mock_insert.return_value = Result.success(_stored_message(customer.id, "system"))

        asyncio.run(handlers.handle_conversation_started(Actor("u1", "Daw Aye")))

        mock_upsert.assert_called_once_with(handlers.db, "u1", "Daw Aye")
        receiver, content = dispatcher.send.call_args[0]
        assert receiver == "u1"
        assert isinstance(content, StructuredMessage)
        assert content.keyboard["Type"] == "keyboard"
        assert content.text == render_template("welcome_base", BOTH)
        mock_insert.assert_called_once_with(handlers.db, customer.id, "system", content.text, None)
        assert metrics.messages_sent == 1

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_missing_user_id_makes_no_store_calls(self, mock_upsert, handlers, dispatcher, db_session):
        asyncio.run(handlers.handle_conversation_started(Actor(None, "Ghost")))
        asyncio.run(handlers.handle_conversation_started(None))

        mock_upsert.assert_not_called()
        dispatcher.send.assert_not_called()
        assert db_session.method_calls == []

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_dispatch_failure_persists_nothing(self, mock_upsert, mock_insert, handlers, dispatcher, metrics, customer):
        mock_upsert.return_value = Result.success(customer)
        dispatcher.send.return_value = FAILED_DISPATCH

        asyncio.run(handlers.handle_conversation_started(Actor("u1", "Daw Aye")))

        mock_insert.assert_not_called()
        assert metrics.viber_api_errors == 1
        assert metrics.messages_sent == 0

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_upsert_failure_aborts(self, mock_upsert, handlers, dispatcher, metrics):
        mock_upsert.return_value = Result.failure("db down")

        asyncio.run(handlers.handle_conversation_started(Actor("u1", "Daw Aye")))

        dispatcher.send.assert_not_called()
        assert metrics.database_errors == 1


class TestMessage:
    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_known_command_gets_canned_reply(
        self, mock_upsert, mock_insert, handlers, dispatcher, broadcaster, metrics, customer
    ):
        inbound = _stored_message(customer.id, text="1_SEARCH_MEDICINES")
        mock_upsert.return_value = Result.success(customer)
        mock_insert.side_effect = [Result.success(inbound), Result.success(_stored_message(customer.id, "system"))]

        asyncio.run(
            handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(type="text", text="1_SEARCH_MEDICINES"), "77")
        )

        expected_reply = render_template("search_medicines_reply", BOTH)
        assert dispatcher.send.call_args[0] == ("u1", PlainText(expected_reply))
        first, second = mock_insert.call_args_list
        assert first[0][1:] == (customer.id, "customer", "1_SEARCH_MEDICINES", "77")
        assert second[0][1:] == (customer.id, "system", expected_reply, None)
        assert metrics.messages_sent == 1

        [(room, event, payload)] = broadcaster.events
        assert room == ADMIN_ROOM
        assert event == "new_customer_message"
        assert payload["customer_id"] == str(customer.id)
        assert payload["customer_name"] == "Daw Aye"
        assert payload["viber_id"] == "u1"
        assert payload["message"]["message_text"] == "1_SEARCH_MEDICINES"
        assert payload["message"]["id"] == str(inbound.id)

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_other_text_gets_default_reply(self, mock_upsert, mock_insert, handlers, dispatcher, customer):
        mock_upsert.return_value = Result.success(customer)
        mock_insert.return_value = Result.success(_stored_message(customer.id))

        asyncio.run(handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(text="do you have aspirin?")))

        assert dispatcher.send.call_args[0][1] == PlainText(render_template("default_reply", BOTH))

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_non_text_message_is_logged_with_sentinel(self, mock_upsert, handlers, customer):
        mock_upsert.return_value = Result.success(customer)

        with patch("app.services.event_handlers.message_service.insert_message") as mock_insert:
            mock_insert.return_value = Result.success(_stored_message(customer.id, text=NON_TEXT_SENTINEL))
            asyncio.run(handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(type="picture"), "88"))

        # text is None here; insert_message substitutes the sentinel
        assert mock_insert.call_args_list[0][0][3] is None

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_inbound_store_failure_still_replies_and_publishes(
        self, mock_upsert, mock_insert, handlers, dispatcher, broadcaster, metrics, customer
    ):
        mock_upsert.return_value = Result.success(customer)
        mock_insert.side_effect = [Result.failure("db down"), Result.success(_stored_message(customer.id, "system"))]

        asyncio.run(handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(text="hi")))

        dispatcher.send.assert_called_once()
        assert metrics.database_errors == 1
        [(_, event, payload)] = broadcaster.events
        assert event == "new_customer_message"
        assert payload["message"] is None

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_dispatch_failure_still_publishes(
        self, mock_upsert, mock_insert, handlers, dispatcher, broadcaster, metrics, customer
    ):
        mock_upsert.return_value = Result.success(customer)
        mock_insert.return_value = Result.success(_stored_message(customer.id))
        dispatcher.send.return_value = FAILED_DISPATCH

        asyncio.run(handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(text="hi")))

        assert mock_insert.call_count == 1
        assert metrics.viber_api_errors == 1
        assert broadcaster.named("new_customer_message")

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_missing_sender_aborts(self, mock_upsert, handlers, dispatcher, broadcaster):
        asyncio.run(handlers.handle_message(None, ViberMessage(text="hi")))

        mock_upsert.assert_not_called()
        dispatcher.send.assert_not_called()
        assert broadcaster.events == []

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_unexpected_exception_is_contained(self, mock_upsert, handlers, metrics):
        mock_upsert.side_effect = RuntimeError("boom")

        asyncio.run(handlers.handle_message(Actor("u1", "Daw Aye"), ViberMessage(text="hi")))

        assert metrics.database_errors == 1


class TestSubscribed:
    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_subscribe_end_to_end(self, mock_upsert, mock_insert, handlers, dispatcher, broadcaster, metrics):
        customer = SimpleNamespace(id=uuid4(), viber_id="u1", name="Daw Aye")
        mock_upsert.return_value = Result.success(customer)
        mock_insert.return_value = Result.success(_stored_message(customer.id, "system"))

        asyncio.run(handlers.handle_subscribed(Actor("u1", "Daw Aye")))

        mock_upsert.assert_called_once_with(handlers.db, "u1", "Daw Aye")
        welcome = get_welcome_message(BOTH)
        assert dispatcher.send.call_args[0] == ("u1", PlainText(welcome))
        mock_insert.assert_called_once_with(handlers.db, customer.id, "system", welcome, None)
        assert metrics.messages_sent == 1

        [payload] = broadcaster.named("new_subscriber")
        assert payload == {"customer_id": str(customer.id), "customer_name": "Daw Aye", "viber_id": "u1"}

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_publishes_before_dispatch(self, mock_upsert, mock_insert, handlers, dispatcher, broadcaster, customer):
        mock_upsert.return_value = Result.success(customer)
        mock_insert.return_value = Result.success(_stored_message(customer.id, "system"))
        published_before_send = []
        dispatcher.send.side_effect = lambda *args: published_before_send.append(len(broadcaster.events)) or (
            DispatchResult(success=True)
        )

        asyncio.run(handlers.handle_subscribed(Actor("u1", "Daw Aye")))

        assert published_before_send == [1]

    @patch("app.services.event_handlers.message_service.insert_message")
    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_dispatch_failure(self, mock_upsert, mock_insert, handlers, dispatcher, metrics, customer):
        mock_upsert.return_value = Result.success(customer)
        dispatcher.send.return_value = FAILED_DISPATCH

        asyncio.run(handlers.handle_subscribed(Actor("u1", "Daw Aye")))

        mock_insert.assert_not_called()
        assert metrics.viber_api_errors == 1

    @patch("app.services.event_handlers.customer_service.upsert_customer")
    def test_upsert_failure_publishes_nothing(self, mock_upsert, handlers, broadcaster, metrics):
        mock_upsert.return_value = Result.failure("db down")

        asyncio.run(handlers.handle_subscribed(Actor("u1", "Daw Aye")))

        assert broadcaster.events == []
        assert metrics.database_errors == 1


class TestUnsubscribed:
    @patch("app.services.event_handlers.customer_service.update_customer")
    def test_updates_customer_and_notifies(self, mock_update, handlers, dispatcher, broadcaster):
        mock_update.return_value = Result.success(1)

        asyncio.run(handlers.handle_unsubscribed(Actor("u1", "Daw Aye")))

        args, kwargs = mock_update.call_args
        assert args == (handlers.db, "u1")
        assert set(kwargs) == {"last_active_at", "updated_at"}
        dispatcher.send.assert_not_called()
        assert broadcaster.named("user_unsubscribed") == [{"customer_name": "Daw Aye", "viber_id": "u1"}]

    @patch("app.services.event_handlers.customer_service.update_customer")
    def test_missing_sender_still_notifies(self, mock_update, handlers, broadcaster):
        asyncio.run(handlers.handle_unsubscribed(None))

        mock_update.assert_not_called()
        assert broadcaster.named("user_unsubscribed") == [{"customer_name": "Unknown User", "viber_id": None}]

    @patch("app.services.event_handlers.customer_service.update_customer")
    def test_missing_name_falls_back(self, mock_update, handlers, broadcaster):
        mock_update.return_value = Result.success(1)

        asyncio.run(handlers.handle_unsubscribed(Actor("u9", None)))

        assert broadcaster.named("user_unsubscribed") == [{"customer_name": "Unknown User", "viber_id": "u9"}]

    @patch("app.services.event_handlers.customer_service.update_customer")
    def test_update_failure_counts_error(self, mock_update, handlers, broadcaster, metrics):
        mock_update.return_value = Result.failure("db down")

        asyncio.run(handlers.handle_unsubscribed(Actor("u1", "Daw Aye")))

        assert metrics.database_errors == 1
        assert broadcaster.named("user_unsubscribed")
