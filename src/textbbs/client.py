"""Line-mode terminal client for the text BBS daemon."""

import getpass
import itertools
import logging
import shutil
import socket
import sys
from pathlib import Path
from typing import TextIO

from .core.screen import ScreenModel
from .protocol import EVENT, HELLO, ProtocolError, decode_json_line, encode_json_line

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\x1b[2J\x1b[H"


class ConnectionClosed(Exception):
    """The daemon closed the connection before answering."""


def terminal_size() -> tuple[int, int]:
    """Current terminal size as (rows, cols), 24x80 when unknown."""
    size = shutil.get_terminal_size((80, 24))
    return size.lines, size.columns


def default_user() -> str:
    """Login name of the local user, or ``"unknown"``."""
    try:
        return getpass.getuser().strip() or "unknown"
    except (KeyError, OSError):
        return "unknown"


def render_screen(screen: ScreenModel, out: TextIO) -> None:
    """
    Draw one screen: title, toast, body lines and hints.

    Args:
        screen: Screen returned by the daemon.
        out: Stream to draw on.
    """
    out.write(CLEAR_SCREEN)
    out.write(f"== {screen.title} ==\n\n")
    if screen.toast:
        out.write(f"{screen.toast}\n\n")
    for line in screen.lines:
        out.write(line + "\n")
    if screen.hints:
        out.write("\n")
        for hint in screen.hints:
            out.write(hint + "\n")
    out.flush()


class BbsClient:
    """Speaks the JSON-lines protocol over the daemon's Unix socket.

    Requests are strictly sequential: every request waits for its
    response before the next one is sent.
    """

    def __init__(self, socket_path: str | Path):
        self.socket_path = Path(socket_path)
        self._sock: socket.socket | None = None
        self._reader = None
        self._ids = itertools.count(1)

    def connect(self) -> None:
        """Open the connection to the daemon."""
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.connect(str(self.socket_path))
        self._reader = self._sock.makefile("rb")

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def request(self, request_type: str, payload: dict) -> ScreenModel:
        """
        Send one request and wait for its screen.

        Args:
            request_type: ``ui.hello`` or ``ui.event``.
            payload: Request payload.

        Returns:
            The screen carried by the response.

        Raises:
            ConnectionClosed: If the daemon hung up.
            ProtocolError: If the daemon answered with an error.
        """
        if self._sock is None:
            raise ConnectionClosed("Not connected")

        request_id = next(self._ids)
        self._sock.sendall(encode_json_line({"id": request_id, "type": request_type, "payload": payload}))

        while True:
            raw = self._reader.readline()
            if not raw:
                raise ConnectionClosed("Connection closed by daemon")
            if not raw.strip():
                continue
            response = decode_json_line(raw)
            if response.get("id") not in (request_id, None):
                logger.debug(f"Ignoring response for request {response.get('id')}")
                continue
            break

        if not response.get("ok"):
            error = response.get("error") or {}
            raise ProtocolError(error.get("code", "INTERNAL"), error.get("message", "Request failed"))
        return ScreenModel.from_dict(response["payload"]["screen"])

    def hello(self, user: str, page_size: int | None = None) -> ScreenModel:
        rows, cols = terminal_size()
        payload = {"user": user, "rows": rows, "cols": cols}
        if page_size is not None:
            payload["pageSize"] = page_size
        return self.request(HELLO, payload)

    def send(self, text: str) -> ScreenModel:
        rows, cols = terminal_size()
        return self.request(EVENT, {"input": text, "rows": rows, "cols": cols})


def run_client(
    client: BbsClient,
    user: str,
    page_size: int | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """
    Drive an interactive session until exit, EOF or disconnect.

    Args:
        client: Connected client.
        user: User name sent with the hello request.
        page_size: Preferred post list page size.
        stdin: Input stream (defaults to ``sys.stdin``).
        stdout: Output stream (defaults to ``sys.stdout``).

    Returns:
        Process exit code.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    try:
        screen = client.hello(user, page_size)
    except ProtocolError as e:
        print(f"[bbs] {e.code}: {e.message}", file=sys.stderr)
        return 1
    except (ConnectionClosed, OSError) as e:
        print(f"[bbs] connection error: {e}", file=sys.stderr)
        return 1

    while True:
        render_screen(screen, stdout)
        if screen.wants_exit():
            return 0

        stdout.write(screen.prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            return 0

        try:
            screen = client.send(line.rstrip("\r\n"))
        except ProtocolError as e:
            stdout.write(CLEAR_SCREEN)
            print(f"[bbs] {e.code}: {e.message}", file=sys.stderr)
            return 1
        except (ConnectionClosed, OSError) as e:
            stdout.write(CLEAR_SCREEN)
            print(f"[bbs] connection error: {e}", file=sys.stderr)
            return 1
