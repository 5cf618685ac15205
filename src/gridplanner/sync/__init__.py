"""Project synchronization.

This module provides the versioned project hub with publish/subscribe
broadcast, its storage backends and HTTP server, and the asyncio client.
"""

from .client import ClientSubscriber, HttpTransport, LocalTransport, ProjectClient, SubmitOutcome, SubmitStatus
from .hub import ProjectHub
from .registry import SubscriptionRegistry
from .store import InMemoryProjectStore, JsonDirectoryStore

__all__ = [
    "ClientSubscriber",
    "HttpTransport",
    "InMemoryProjectStore",
    "JsonDirectoryStore",
    "LocalTransport",
    "ProjectClient",
    "ProjectHub",
    "SubmitOutcome",
    "SubmitStatus",
    "SubscriptionRegistry",
]
