"""Client-facing transports for the text BBS daemon."""

from .http_transport import HttpTransport
from .unix_socket_transport import UnixSocketTransport

__all__ = ["HttpTransport", "UnixSocketTransport"]
