"""BbsServer - Main orchestrator for the text BBS daemon."""

import logging
import threading

from pubsub import pub

from .config import Config
from .core import BbsSession, ScreenModel, SessionManager
from .core.text import sanitize_plain_text
from .interfaces import CONNECTION_CLOSED_TOPIC, BbsRepository, MessageTransport
from .protocol import (
    BAD_REQUEST,
    EVENT,
    HELLO,
    INTERNAL,
    NOT_FOUND,
    ProtocolError,
    error_response,
    ok_response,
)

logger = logging.getLogger(__name__)

JANITOR_INTERVAL_SECONDS = 30.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_number(payload: dict, key: str):
    value = payload.get(key)
    if value is not None and not _is_number(value):
        raise ProtocolError(BAD_REQUEST, f"payload.{key} must be a number")
    return value


class BbsServer:
    """Main server orchestrating all components.

    Validates protocol requests coming from any number of transports,
    routes them to per-connection sessions and maps failures to error
    envelopes. Requests for one session are serialized by that session's
    lock; different sessions run concurrently.
    """

    def __init__(
        self,
        repository: BbsRepository,
        transports: list[MessageTransport],
        config: Config | None = None,
    ):
        """
        Initialize the BBS server.

        Args:
            repository: Storage shared by every session.
            transports: Transports delivering client requests.
            config: Server configuration (uses defaults if None).
        """
        self.repository = repository
        self.transports = list(transports)
        self.config = config or Config()

        self.session_manager = SessionManager(
            timeout_seconds=self.config.session_timeout_minutes * 60
        )
        self._stopping = threading.Event()
        self._janitor: threading.Thread | None = None

        # Register request handler
        for transport in self.transports:
            transport.on_message(self._handle_request)

    def start(self) -> None:
        """Start the server by connecting every transport."""
        logger.info("Starting BBS server...")
        pub.subscribe(self._on_connection_closed, CONNECTION_CLOSED_TOPIC)
        for transport in self.transports:
            transport.connect()

        self._stopping.clear()
        self._janitor = threading.Thread(target=self._prune_loop, name="session-janitor", daemon=True)
        self._janitor.start()
        logger.info("Server started and listening for requests")

    def stop(self) -> None:
        """Stop the server by disconnecting every transport."""
        logger.info("Stopping BBS server...")
        self._stopping.set()
        if self._janitor is not None:
            self._janitor.join(timeout=5)
            self._janitor = None

        for transport in self.transports:
            transport.disconnect()
        pub.unsubscribe(self._on_connection_closed, CONNECTION_CLOSED_TOPIC)
        logger.info("Server stopped")

    def _prune_loop(self) -> None:
        while not self._stopping.wait(JANITOR_INTERVAL_SECONDS):
            removed = self.session_manager.cleanup_expired()
            if removed:
                logger.info(f"Expired {removed} idle session(s)")

    def _on_connection_closed(self, connection_id: str) -> None:
        if self.session_manager.remove_session(connection_id):
            logger.info(f"[{connection_id}] Session closed")

    def _handle_request(self, connection_id: str, request) -> dict:
        """
        Handle one protocol request from a connection.

        Args:
            connection_id: Connection id or HTTP session id.
            request: Decoded request envelope.

        Returns:
            The response envelope. Never raises.
        """
        request_id = None
        if isinstance(request, dict) and _is_number(request.get("id")):
            request_id = request["id"]

        try:
            request_type, payload = self._parse_envelope(request)
            logger.debug(f"[{connection_id}] Request {request_id}: {request_type}")

            if request_type == HELLO:
                screen = self._hello(connection_id, payload)
            else:
                screen = self._event(connection_id, payload)

            return ok_response(request_id, {"screen": screen.to_dict()})

        except ProtocolError as e:
            logger.warning(f"[{connection_id}] {e.code}: {e.message}")
            return error_response(request_id, e.code, e.message)

        except Exception as e:
            logger.exception(f"[{connection_id}] Error handling request {request_id}")
            return error_response(request_id, INTERNAL, str(e))

    def _parse_envelope(self, request) -> tuple[str, dict]:
        """
        Validate the request envelope.

        Returns:
            Tuple of (request_type, payload).

        Raises:
            ProtocolError: BAD_REQUEST for any malformed envelope.
        """
        if not isinstance(request, dict):
            raise ProtocolError(BAD_REQUEST, "Request must be an object")

        if not _is_number(request.get("id")):
            raise ProtocolError(BAD_REQUEST, "Missing numeric 'id'")

        request_type = request.get("type")
        payload = request.get("payload")
        if not isinstance(request_type, str):
            raise ProtocolError(BAD_REQUEST, "Missing string 'type'")
        if not isinstance(payload, dict):
            raise ProtocolError(BAD_REQUEST, "Missing object 'payload'")
        if request_type not in (HELLO, EVENT):
            raise ProtocolError(BAD_REQUEST, f"Unknown request type: {request_type}")

        return request_type, payload

    def _hello(self, connection_id: str, payload: dict) -> ScreenModel:
        user = payload.get("user")
        if user is not None:
            if not isinstance(user, str):
                raise ProtocolError(BAD_REQUEST, "payload.user must be a string")
            user = sanitize_plain_text(user)
            if len(user) > self.config.max_user_length:
                raise ProtocolError(
                    BAD_REQUEST,
                    f"payload.user must be at most {self.config.max_user_length} characters",
                )

        rows = _optional_number(payload, "rows")
        cols = _optional_number(payload, "cols")
        page_size = _optional_number(payload, "pageSize")

        session = BbsSession(self.repository, limits=self.config.limits, title=self.config.title)
        screen = session.handle_hello(user=user, rows=rows, cols=cols, page_size=page_size)
        self.session_manager.create_session(connection_id, session)
        logger.info(f"[{connection_id}] Session opened for {session.user!r}")
        return screen

    def _event(self, connection_id: str, payload: dict) -> ScreenModel:
        text = payload.get("input")
        if not isinstance(text, str):
            raise ProtocolError(BAD_REQUEST, "payload.input must be a string")
        text = sanitize_plain_text(text)
        if len(text) > self.config.max_input_length:
            raise ProtocolError(
                BAD_REQUEST,
                f"payload.input must be at most {self.config.max_input_length} characters",
            )
        rows = _optional_number(payload, "rows")
        cols = _optional_number(payload, "cols")

        entry = self.session_manager.get_session(connection_id)
        if entry is None:
            raise ProtocolError(NOT_FOUND, "Session not found")

        with entry.lock:
            screen = entry.session.handle_event(text, rows=rows, cols=cols)

        if screen.wants_exit():
            self.session_manager.remove_session(connection_id)
            logger.info(f"[{connection_id}] Session ended by user")
        return screen
