import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.thread.message import OrderMessage
from storefront.thread.posting import PostOrderMessage


def _post(order_id, text, author_type="USER", author_id=None, context=None):
    return current_domain.process(
        PostOrderMessage(
            order_id=order_id,
            author_type=author_type,
            author_id=author_id,
            text=text,
            context=json.dumps(context) if context is not None else None,
        ),
        asynchronous=False,
    )


class TestPostOrderMessage:
    def test_thread_is_read_oldest_first(self, place_order, register_customer):
        user_id = register_customer()
        order_id = place_order(user_id=user_id)

        _post(order_id, "¿Cuánto falta?", author_id=user_id)
        _post(order_id, "  Diez minutos  ", author_type="ADMIN")

        messages = current_domain.repository_for(OrderMessage).list_for_order(order_id)
        assert [message.text for message in messages] == ["¿Cuánto falta?", "Diez minutos"]
        assert [message.author_type for message in messages] == ["USER", "ADMIN"]
        assert messages[0].author_id == user_id
        assert messages[1].author_id is None

    def test_context_is_kept_with_the_message(self, place_order):
        order_id = place_order()
        message_id = _post(order_id, "Sin cebolla", context={"item": "Combo A"})

        message = current_domain.repository_for(OrderMessage).get(message_id)
        assert message.content == {"item": "Combo A", "type": "text", "message": "Sin cebolla"}

    def test_blank_text_is_rejected(self, place_order):
        order_id = place_order()
        with pytest.raises(ValidationError):
            _post(order_id, "   ")
        assert current_domain.repository_for(OrderMessage).list_for_order(order_id) == []

    def test_unknown_author_type_is_rejected(self, place_order):
        with pytest.raises(ValidationError):
            _post(place_order(), "Hola", author_type="BOT")

    def test_invalid_context_is_rejected(self, place_order):
        with pytest.raises(ValidationError):
            current_domain.process(
                PostOrderMessage(order_id=place_order(), author_type="USER", text="Hola", context="{not json"),
                asynchronous=False,
            )

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _post("missing", "Hola")


class TestListForOrder:
    def test_take_limits_the_thread(self, place_order):
        order_id = place_order()
        for index in range(4):
            _post(order_id, f"Mensaje {index}")

        messages = current_domain.repository_for(OrderMessage).list_for_order(order_id, take=2)
        assert [message.text for message in messages] == ["Mensaje 0", "Mensaje 1"]

    def test_threads_do_not_mix(self, place_order):
        first = place_order()
        second = place_order()
        _post(first, "Uno")
        _post(second, "Dos")

        assert [m.text for m in current_domain.repository_for(OrderMessage).list_for_order(second)] == ["Dos"]

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(OrderMessage).list_for_order("missing")
