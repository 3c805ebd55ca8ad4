"""Tests for the event bus."""

from pumping_iron.events import READINESS_UPDATED, EventBus


class TestEventBus:

    def test_publish_delivers_in_order(self):
        bus = EventBus()
        received = []
        bus.subscribe(READINESS_UPDATED, lambda p: received.append(('a', p)))
        bus.subscribe(READINESS_UPDATED, lambda p: received.append(('b', p)))

        payload = {'readiness': {'readiness_score': 6}}
        assert bus.publish(READINESS_UPDATED, payload) == 2
        assert received == [('a', payload), ('b', payload)]

    def test_no_subscribers(self):
        assert EventBus().publish('nothing.here', {}) == 0

    def test_none_payload_becomes_empty_dict(self):
        bus = EventBus()
        received = []
        bus.subscribe(READINESS_UPDATED, received.append)
        bus.publish(READINESS_UPDATED)
        assert received == [{}]

    def test_failing_handler_does_not_block_others(self, caplog):
        bus = EventBus()
        received = []

        def broken(payload):
            raise RuntimeError("handler exploded")

        bus.subscribe(READINESS_UPDATED, broken)
        bus.subscribe(READINESS_UPDATED, received.append)

        assert bus.publish(READINESS_UPDATED, {'x': 1}) == 1
        assert received == [{'x': 1}]
        assert "handler exploded" in caplog.text

    def test_unsubscribe(self):
        bus = EventBus()
        handler = lambda p: None
        unsubscribe = bus.subscribe(READINESS_UPDATED, handler)

        assert bus.subscriber_count(READINESS_UPDATED) == 1
        assert unsubscribe() is True
        assert bus.subscriber_count(READINESS_UPDATED) == 0
        assert bus.unsubscribe(READINESS_UPDATED, handler) is False
