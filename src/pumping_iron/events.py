"""
Lightweight Event Bus

Instance-scoped publish/subscribe used to push readiness updates into the
adaptation engine. Handlers run synchronously in subscription order; a
failing handler is logged and does not stop delivery to the others.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Topic names
READINESS_UPDATED = 'readiness.updated'
AESTHETIC_FOCUS_UPDATED = 'aesthetic_focus.updated'

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """
    Publish/subscribe hub.

    Payload for READINESS_UPDATED::

        {"readiness": {"readiness_score": 7}}
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """
        Subscribe a handler to a topic.

        Args:
            topic: Topic name (e.g., READINESS_UPDATED)
            handler: Callable receiving the payload dict

        Returns:
            Zero-argument callable that removes the subscription
        """
        self._handlers.setdefault(topic, []).append(handler)
        logger.debug(f"Subscribed handler to topic: {topic}")
        return lambda: self.unsubscribe(topic, handler)

    def unsubscribe(self, topic: str, handler: Handler) -> bool:
        handlers = self._handlers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, topic: str, payload: Optional[Dict[str, Any]] = None) -> int:
        """
        Deliver a payload to every handler subscribed to ``topic``.

        Returns:
            Number of handlers that completed without error
        """
        delivered = 0
        for handler in list(self._handlers.get(topic, [])):
            try:
                handler(payload or {})
                delivered += 1
            except Exception as e:
                logger.error(f"Error in event handler for {topic}: {e}", exc_info=True)
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))
