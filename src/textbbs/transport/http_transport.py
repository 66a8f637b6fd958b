"""JSON-over-HTTP session transport."""

import itertools
import json
import logging
import re
import threading
import uuid
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from pubsub import pub

from ..interfaces import CONNECTION_CLOSED_TOPIC, MessageTransport, RequestHandler
from ..protocol import (
    BAD_JSON,
    BAD_REQUEST,
    EVENT,
    HELLO,
    INTERNAL,
    NOT_FOUND,
    PAYLOAD_TOO_LARGE,
    ProtocolError,
    screen_of,
)

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 64 * 1024

STATUS_BY_CODE = {
    BAD_JSON: HTTPStatus.BAD_REQUEST,
    BAD_REQUEST: HTTPStatus.BAD_REQUEST,
    NOT_FOUND: HTTPStatus.NOT_FOUND,
    PAYLOAD_TOO_LARGE: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
    INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
}

_EVENTS_PATH = re.compile(r"^/api/sessions/([A-Za-z0-9_-]+)/events$")
_SESSION_PATH = re.compile(r"^/api/sessions/([A-Za-z0-9_-]+)$")


class _ApiHandler(BaseHTTPRequestHandler):
    server_version = "textbbs"

    @property
    def transport(self) -> "HttpTransport":
        return self.server.transport

    def log_message(self, format, *args) -> None:
        logger.debug(f"{self.address_string()} {format % args}")

    def _send_json(self, status: int, body: dict) -> None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _send_error(self, error: ProtocolError) -> None:
        status = STATUS_BY_CODE.get(error.code, HTTPStatus.INTERNAL_SERVER_ERROR)
        self._send_json(status, {"error": {"code": error.code, "message": error.message}})

    def _read_json(self):
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_BODY_BYTES:
            raise ProtocolError(PAYLOAD_TOO_LARGE, f"Body exceeds {MAX_BODY_BYTES} bytes")
        raw = self.rfile.read(length) if length else b""
        if not raw.strip():
            return {}
        try:
            return json.loads(raw.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise ProtocolError(BAD_JSON, str(e)) from e

    def do_GET(self) -> None:
        if self.path == "/health":
            self._send_json(HTTPStatus.OK, {"ok": True})
            return
        self._send_error(ProtocolError(NOT_FOUND, "Not found"))

    def do_POST(self) -> None:
        try:
            if self.path == "/api/sessions":
                self._send_json(HTTPStatus.OK, self.transport.create_session(self._read_json()))
                return
            match = _EVENTS_PATH.match(self.path)
            if match:
                self._send_json(HTTPStatus.OK, self.transport.send_event(match.group(1), self._read_json()))
                return
            raise ProtocolError(NOT_FOUND, "Not found")
        except ProtocolError as e:
            self._send_error(e)

    def do_DELETE(self) -> None:
        match = _SESSION_PATH.match(self.path)
        if not match:
            self._send_error(ProtocolError(NOT_FOUND, "Not found"))
            return
        self.transport.close_session(match.group(1))
        self._send_json(HTTPStatus.OK, {"ok": True})


class _Server(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], transport: "HttpTransport"):
        self.transport = transport
        super().__init__(address, _ApiHandler)


class HttpTransport(MessageTransport):
    """Message transport exposing sessions as HTTP resources.

    Each ``POST /api/sessions`` allocates a session id and sends a hello
    request through the registered handler; events for that id are sent
    as event requests. Handler error envelopes become HTTP error statuses.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8080):
        """
        Initialize the transport.

        Args:
            host: Interface to bind.
            port: TCP port to bind (0 picks a free port).
        """
        self.host = host
        self.port = port
        self._handler: RequestHandler | None = None
        self._server: _Server | None = None
        self._thread: threading.Thread | None = None
        self._request_ids = itertools.count(1)

    def on_message(self, callback: RequestHandler) -> None:
        """Register the request handler."""
        self._handler = callback

    def _call(self, session_id: str, request_type: str, payload) -> dict:
        if self._handler is None:
            raise ProtocolError(INTERNAL, "No request handler registered")
        request = {"id": next(self._request_ids), "type": request_type, "payload": payload}
        try:
            response = self._handler(session_id, request)
        except Exception as e:
            logger.exception(f"[{session_id}] Handler failed")
            raise ProtocolError(INTERNAL, str(e)) from e
        if not response.get("ok"):
            error = response.get("error") or {}
            raise ProtocolError(error.get("code", INTERNAL), error.get("message", "Request failed"))
        return screen_of(response)

    def create_session(self, body) -> dict:
        """
        Open a new session.

        Args:
            body: Parsed request body ``{nickname|user, rows?, cols?, pageSize?}``.

        Returns:
            ``{"sessionId", "screen"}``.

        Raises:
            ProtocolError: If the body is invalid or the handler fails.
        """
        if not isinstance(body, dict):
            raise ProtocolError(BAD_REQUEST, "Body must be an object")
        payload = {key: body[key] for key in ("rows", "cols", "pageSize") if key in body}
        payload["user"] = body.get("nickname", body.get("user"))

        session_id = uuid.uuid4().hex
        screen = self._call(session_id, HELLO, payload)
        logger.info(f"[{session_id}] HTTP session opened")
        return {"sessionId": session_id, "screen": screen}

    def send_event(self, session_id: str, body) -> dict:
        """
        Deliver one input event to a session.

        Returns:
            ``{"screen"}``.

        Raises:
            ProtocolError: If the body is invalid, the session is unknown,
                           or the handler fails.
        """
        if not isinstance(body, dict):
            raise ProtocolError(BAD_REQUEST, "Body must be an object")
        return {"screen": self._call(session_id, EVENT, body)}

    def close_session(self, session_id: str) -> None:
        """Drop a session; unknown ids are ignored."""
        logger.info(f"[{session_id}] HTTP session closed")
        pub.sendMessage(CONNECTION_CLOSED_TOPIC, connection_id=session_id)

    def connect(self) -> None:
        """Bind the HTTP server and start serving in a background thread."""
        self._server = _Server((self.host, self.port), self)
        self.port = self._server.server_address[1]
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="http-transport",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"HTTP listening on http://{self.host}:{self.port}")

    def disconnect(self) -> None:
        """Stop serving."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
            self._thread = None

    def is_connected(self) -> bool:
        """Check if currently listening."""
        return self._server is not None
