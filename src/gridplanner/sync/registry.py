"""Publish/subscribe registry keyed by project id."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Protocol, Set

from ..core.errors import TransportFailure
from ..core.model import Project

LOGGER = logging.getLogger(__name__)


class Subscriber(Protocol):
    """A live connection that receives whole project documents."""

    def send(self, document: Project) -> None:
        """Deliver a document.

        Raises:
            TransportFailure: If the connection is gone.
        """
        ...

    def close(self) -> None:
        ...


class SubscriptionRegistry:
    """Subscribers grouped by topic (project id).

    A subscriber whose ``send`` fails is dropped from its topic.
    """

    def __init__(self):
        self._topics: Dict[str, Set[Subscriber]] = {}
        self._lock = threading.Lock()

    def add(self, topic: str, subscriber: Subscriber) -> None:
        with self._lock:
            self._topics.setdefault(topic, set()).add(subscriber)

    def remove(self, topic: str, subscriber: Subscriber) -> None:
        with self._lock:
            subscribers = self._topics.get(topic)
            if subscribers is None:
                return
            subscribers.discard(subscriber)
            if not subscribers:
                del self._topics[topic]

    def subscribers(self, topic: str) -> List[Subscriber]:
        with self._lock:
            return list(self._topics.get(topic, ()))

    def broadcast(self, topic: str, document: Project) -> int:
        """Send a document to every subscriber of a topic.

        Returns:
            The number of subscribers that received it.
        """
        delivered = 0
        for subscriber in self.subscribers(topic):
            try:
                subscriber.send(document)
            except TransportFailure as e:
                LOGGER.warning("Dropping subscriber of %s: %s", topic, e)
                self.remove(topic, subscriber)
                continue
            delivered += 1
        return delivered

    def close_topic(self, topic: str) -> None:
        """Close and forget every subscriber of a topic."""
        with self._lock:
            subscribers = self._topics.pop(topic, set())
        for subscriber in subscribers:
            subscriber.close()
