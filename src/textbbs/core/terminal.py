"""Terminal context normalization for a session."""

import math
from dataclasses import dataclass

DEFAULT_USER = "anonymous"

ROWS_RANGE = (10, 200)
COLS_RANGE = (20, 240)
PAGE_SIZE_RANGE = (1, 50)

DEFAULT_ROWS = 24
DEFAULT_COLS = 80
DEFAULT_PAGE_SIZE = 10


def _clamp_int(value, bounds: tuple[int, int], default: int) -> int:
    # bool is an int subclass; JSON true/false is not a size
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    low, high = bounds
    return min(high, max(low, int(value)))


@dataclass(frozen=True)
class TerminalContext:
    """Resolved user name and terminal geometry for one session."""

    user: str = DEFAULT_USER
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    posts_page_size: int = DEFAULT_PAGE_SIZE

    def resized(self, rows=None, cols=None) -> "TerminalContext":
        """
        Return a copy with a newly reported terminal size.

        Dimensions that are absent keep their last known value; the user
        name and page size never change after hello.
        """
        return TerminalContext(
            user=self.user,
            rows=self.rows if rows is None else _clamp_int(rows, ROWS_RANGE, DEFAULT_ROWS),
            cols=self.cols if cols is None else _clamp_int(cols, COLS_RANGE, DEFAULT_COLS),
            posts_page_size=self.posts_page_size,
        )


def normalize_terminal_context(user=None, rows=None, cols=None, page_size=None) -> TerminalContext:
    """
    Build a TerminalContext from untrusted client values.

    Invalid or missing values silently fall back to defaults; numbers are
    truncated and clamped into their allowed range. Never raises.

    Args:
        user: Reported user name.
        rows: Terminal height in lines.
        cols: Terminal width in characters.
        page_size: Number of posts per posts-list page.

    Returns:
        The normalized context.
    """
    name = user.strip() if isinstance(user, str) else ""
    return TerminalContext(
        user=name or DEFAULT_USER,
        rows=_clamp_int(rows, ROWS_RANGE, DEFAULT_ROWS),
        cols=_clamp_int(cols, COLS_RANGE, DEFAULT_COLS),
        posts_page_size=_clamp_int(page_size, PAGE_SIZE_RANGE, DEFAULT_PAGE_SIZE),
    )
