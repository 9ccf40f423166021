"""Tests for the OrderMessage aggregate."""

import pytest
from protean.exceptions import ValidationError

from storefront.thread.events import OrderMessagePosted
from storefront.thread.message import AuthorType, OrderMessage


class TestPostMessage:
    def test_payload_carries_text_and_type(self):
        message = OrderMessage.post("order-1", AuthorType.USER, "  Where is my order?  ", author_id="user-1")
        assert message.content == {"type": "text", "message": "Where is my order?"}
        assert message.text == "Where is my order?"
        assert message.author_type == "USER"
        assert message.author_id == "user-1"
        assert message.created_at is not None
        assert message.read_at is None

    def test_context_is_merged_into_payload(self):
        message = OrderMessage.post("order-1", "ADMIN", "On its way", context={"eta": "20m", "type": "ignored"})
        assert message.content == {"eta": "20m", "type": "text", "message": "On its way"}
        assert message.author_id is None

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_rejected(self, text):
        with pytest.raises(ValidationError) as exc:
            OrderMessage.post("order-1", "USER", text)
        assert "message" in exc.value.messages

    def test_unknown_author_type_rejected(self):
        with pytest.raises(ValidationError):
            OrderMessage.post("order-1", "ROBOT", "hello")

    def test_post_raises_event(self):
        message = OrderMessage.post("order-1", "USER", "hello")
        event = message._events[0]
        assert isinstance(event, OrderMessagePosted)
        assert event.order_id == "order-1"
        assert event.author_type == "USER"

    def test_plain_text_payload_is_readable(self):
        message = OrderMessage(order_id="order-1", author_type="USER", payload="legacy note")
        assert message.content == {"type": "text", "message": "legacy note"}
