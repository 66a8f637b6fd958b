"""Abstract interface for client-facing transports."""

from abc import ABC, abstractmethod
from typing import Callable

# Callback signature: (connection_id, request) -> response
RequestHandler = Callable[[str, dict], dict]

# PyPubSub topic published when a client connection or HTTP session goes away.
CONNECTION_CLOSED_TOPIC = "bbsd.connection.closed"


class MessageTransport(ABC):
    """Abstract interface for receiving requests and returning responses."""

    @abstractmethod
    def on_message(self, callback: RequestHandler) -> None:
        """Register the request handler.

        The callback receives (connection_id, request) and returns the
        response envelope to deliver to that connection.
        """
        pass

    @abstractmethod
    def connect(self) -> None:
        """Start listening."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Stop listening and release resources."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if currently listening."""
        pass
