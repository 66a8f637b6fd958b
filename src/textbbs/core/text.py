"""Plain-text helpers: sanitizing, hard wrapping and pagination."""

import re
from dataclasses import dataclass, field
from typing import Sequence, TypeVar

T = TypeVar("T")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\x1b]")


def sanitize_plain_text(value: str) -> str:
    """Strip control and escape characters so text is safe to print."""
    return _CONTROL_CHARS.sub("", value)


def wrap_line(line: str, width: int) -> list[str]:
    """
    Hard-wrap a single line into chunks of exactly ``width`` characters.

    The last chunk may be shorter. No word-boundary awareness.

    Args:
        line: The line to wrap (must not contain newlines).
        width: Maximum characters per chunk. ``<= 0`` disables wrapping.

    Returns:
        List of chunks, at least one.
    """
    if width <= 0 or len(line) <= width:
        return [line]
    return [line[i : i + width] for i in range(0, len(line), width)]


def wrap_text(text: str, width: int) -> list[str]:
    """
    Sanitize and hard-wrap multi-line text into display lines.

    ``\\r\\n`` is normalized to ``\\n`` and every line is wrapped
    independently, so original line breaks are preserved.
    """
    safe_text = sanitize_plain_text(text).replace("\r\n", "\n")
    lines: list[str] = []
    for line in safe_text.split("\n"):
        lines.extend(wrap_line(line, width))
    return lines


def split_plain_lines(text: str) -> list[str]:
    """Split stored text into sanitized lines without wrapping."""
    if not text:
        return []
    return sanitize_plain_text(text).replace("\r\n", "\n").split("\n")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """
    Split a sequence into pages of ``size`` items.

    Returns a single page with everything when ``size <= 0`` and a single
    empty page when ``items`` is empty, so there is always at least one page.
    """
    if size <= 0:
        return [list(items)]
    pages = [list(items[i : i + size]) for i in range(0, len(items), size)]
    return pages or [[]]


def format_date(iso: str) -> str:
    """Render an ISO-8601 UTC timestamp as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    if not iso:
        return ""
    return iso.replace("T", " ").replace("Z", "")


@dataclass(frozen=True)
class Pagination:
    """Pages of display lines plus the requested 1-based page number."""

    pages: tuple[tuple[str, ...], ...] = field(default_factory=lambda: ((),))
    requested_page: int = 1

    @classmethod
    def for_text(cls, text: str, width: int, height: int, requested_page: int) -> "Pagination":
        """Wrap ``text`` to ``width`` and split it into pages of ``height`` lines."""
        pages = chunk(wrap_text(text, width), height)
        return cls(pages=tuple(tuple(p) for p in pages), requested_page=requested_page)

    def total_pages(self) -> int:
        """Get total number of pages (never zero)."""
        return max(len(self.pages), 1)

    @property
    def page(self) -> int:
        """The requested page clamped into ``[1, total_pages]``."""
        return min(max(self.requested_page, 1), self.total_pages())

    @property
    def was_clamped(self) -> bool:
        """True when the requested page was out of range."""
        return self.page != self.requested_page

    def current_lines(self) -> tuple[str, ...]:
        """Lines of the (clamped) current page."""
        if not self.pages:
            return ()
        return self.pages[self.page - 1]
