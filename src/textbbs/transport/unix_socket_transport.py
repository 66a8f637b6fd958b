"""JSON-lines transport over a Unix domain socket."""

import logging
import os
import socketserver
import stat
import threading
import uuid
from pathlib import Path

from pubsub import pub

from ..interfaces import CONNECTION_CLOSED_TOPIC, MessageTransport, RequestHandler
from ..protocol import (
    BAD_JSON,
    INTERNAL,
    ProtocolError,
    decode_json_line,
    encode_json_line,
    error_response,
    screen_of,
    wants_exit,
)

logger = logging.getLogger(__name__)


def remove_stale_socket(path: Path) -> None:
    """
    Remove a socket file left behind by a previous daemon.

    Raises:
        FileExistsError: If the path exists and is not a socket.
    """
    try:
        mode = path.lstat().st_mode
    except FileNotFoundError:
        return
    if not stat.S_ISSOCK(mode):
        raise FileExistsError(f"{path} exists and is not a socket")
    path.unlink()


class _JsonLineHandler(socketserver.StreamRequestHandler):
    """Serves one client connection: one request line, one response line."""

    def handle(self) -> None:
        transport: "UnixSocketTransport" = self.server.transport
        connection_id = uuid.uuid4().hex
        logger.info(f"[{connection_id}] Client connected")

        try:
            for raw in self.rfile:
                if not raw.strip():
                    continue
                response = transport.handle_line(connection_id, raw)
                self.wfile.write(encode_json_line(response))
                self.wfile.flush()
                if wants_exit(screen_of(response)):
                    break
        except OSError as e:
            logger.debug(f"[{connection_id}] Connection error: {e}")
        finally:
            logger.info(f"[{connection_id}] Client disconnected")
            pub.sendMessage(CONNECTION_CLOSED_TOPIC, connection_id=connection_id)


class _Server(socketserver.ThreadingUnixStreamServer):
    daemon_threads = True

    def __init__(self, path: str, transport: "UnixSocketTransport"):
        self.transport = transport
        super().__init__(path, _JsonLineHandler)


class UnixSocketTransport(MessageTransport):
    """Message transport speaking newline-delimited JSON on a Unix socket.

    Each connection gets its own id; the registered handler maps
    ``(connection_id, request)`` to a response envelope. The connection is
    closed after a response whose screen carries the exit action, and a
    ``bbsd.connection.closed`` message is published when it goes away.
    """

    def __init__(self, socket_path: str | Path, mode: int = 0o660):
        """
        Initialize the transport.

        Args:
            socket_path: Filesystem path of the listening socket.
            mode: Permission bits applied to the socket file.
        """
        self.socket_path = Path(socket_path)
        self.mode = mode
        self._handler: RequestHandler | None = None
        self._server: _Server | None = None
        self._thread: threading.Thread | None = None

    def on_message(self, callback: RequestHandler) -> None:
        """
        Register the request handler.

        Args:
            callback: Function receiving (connection_id, request) and
                      returning the response envelope.
        """
        self._handler = callback

    def handle_line(self, connection_id: str, line: bytes | str) -> dict:
        """
        Turn one request line into one response envelope.

        Args:
            connection_id: Id of the connection the line arrived on.
            line: Raw JSON request line.

        Returns:
            The response envelope; never raises.
        """
        try:
            request = decode_json_line(line)
        except ProtocolError as e:
            logger.warning(f"[{connection_id}] Bad JSON: {e.message}")
            return error_response(None, BAD_JSON, e.message)

        if self._handler is None:
            return error_response(None, INTERNAL, "No request handler registered")

        try:
            return self._handler(connection_id, request)
        except Exception as e:
            # Don't let one request failure break the connection
            logger.exception(f"[{connection_id}] Handler failed")
            request_id = request.get("id") if isinstance(request, dict) else None
            return error_response(request_id, INTERNAL, str(e))

    def connect(self) -> None:
        """
        Bind the socket and start serving in a background thread.

        Raises:
            FileExistsError: If the socket path is occupied by a non-socket.
        """
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        remove_stale_socket(self.socket_path)

        self._server = _Server(str(self.socket_path), self)
        os.chmod(self.socket_path, self.mode)

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="unix-socket-transport",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Listening on {self.socket_path}")

    def disconnect(self) -> None:
        """Stop serving and remove the socket file."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
            self._thread = None
            try:
                remove_stale_socket(self.socket_path)
            except FileExistsError:
                logger.warning(f"{self.socket_path} was replaced by a non-socket; leaving it")

    def is_connected(self) -> bool:
        """Check if currently listening."""
        return self._server is not None
