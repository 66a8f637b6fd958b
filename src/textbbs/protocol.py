"""Request/response envelopes of the daemon's JSON-lines protocol."""

import json

from .core.screen import EXIT_ACTION

HELLO = "ui.hello"
EVENT = "ui.event"

BAD_JSON = "BAD_JSON"
BAD_REQUEST = "BAD_REQUEST"
NOT_FOUND = "NOT_FOUND"
INTERNAL = "INTERNAL"
PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"


class ProtocolError(Exception):
    """A request that cannot be served, with its wire error code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def ok_response(request_id, payload: dict) -> dict:
    return {"id": request_id, "ok": True, "payload": payload}


def error_response(request_id, code: str, message: str) -> dict:
    return {"id": request_id, "ok": False, "error": {"code": code, "message": message}}


def encode_json_line(value: dict) -> bytes:
    """Serialize one envelope as a UTF-8 JSON line."""
    return (json.dumps(value, ensure_ascii=False) + "\n").encode("utf-8")


def decode_json_line(line: bytes | str):
    """
    Parse one JSON line.

    Raises:
        ProtocolError: BAD_JSON if the line is not valid JSON.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    try:
        return json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(BAD_JSON, str(e)) from e


def screen_of(response: dict) -> dict | None:
    """The screen carried by a successful response, if any."""
    if not response.get("ok"):
        return None
    payload = response.get("payload") or {}
    return payload.get("screen")


def wants_exit(screen: dict | None) -> bool:
    """Check whether a wire screen asks the transport to end the session."""
    if not screen:
        return False
    return any(action.get("type") == EXIT_ACTION for action in screen.get("actions") or ())
