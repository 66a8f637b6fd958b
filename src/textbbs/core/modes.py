"""Navigation modes of a BBS session.

Every mode is a frozen dataclass carrying only what its own input handling
and rendering need. A transition replaces the whole value; wizard steps
that capture a multi-line body keep the captured lines on the mode itself,
so cancelling or completing the wizard drops the buffer with the mode.
"""

from abc import ABC
from dataclasses import dataclass, field, replace

from ..interfaces import Board, Conference, MenuItem, Post, PostSummary


class Mode(ABC):
    """Base class for all session modes."""

    pass


@dataclass(frozen=True)
class BodyCapture:
    """Mixin for modes that accumulate raw body lines until ``.``."""

    lines: tuple[str, ...] = field(default_factory=tuple, kw_only=True)

    def with_line(self, line: str):
        """Return a copy with ``line`` appended to the capture buffer."""
        return replace(self, lines=self.lines + (line,))

    def body(self) -> str:
        """The captured body: lines joined by newlines, trailing whitespace removed."""
        return "\n".join(self.lines).rstrip()


# Conference management (root only)


@dataclass(frozen=True)
class ConferenceManageMode(Mode):
    conferences: tuple[Conference, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConferenceAddMode(Mode):
    pass


@dataclass(frozen=True)
class ConferenceRenameMode(Mode):
    conference: Conference


# Welcome screen


@dataclass(frozen=True)
class WelcomeMode(Mode):
    conference: Conference


@dataclass(frozen=True)
class WelcomeEditTitleMode(Mode):
    conference: Conference


@dataclass(frozen=True)
class WelcomeEditBodyMode(BodyCapture, Mode):
    conference: Conference
    title: str


# Menu browsing and custom menu design


@dataclass(frozen=True)
class MenuMode(Mode):
    conference: Conference
    items: tuple[MenuItem, ...] = field(default_factory=tuple)

    def visible_items(self) -> tuple[MenuItem, ...]:
        """Non-hidden items in menu order; position + 1 is the menu number."""
        return tuple(item for item in self.items if not item.hidden)


@dataclass(frozen=True)
class MenuDesignTitleMode(Mode):
    conference: Conference


@dataclass(frozen=True)
class MenuDesignBodyMode(BodyCapture, Mode):
    conference: Conference
    title: str


# Menu item management


@dataclass(frozen=True)
class MenuEditMode(Mode):
    conference: Conference
    items: tuple[MenuItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MenuEditLabelMode(Mode):
    conference: Conference
    item: MenuItem


@dataclass(frozen=True)
class MenuEditDisplayNoMode(Mode):
    conference: Conference
    item: MenuItem


@dataclass(frozen=True)
class MenuEditDisplayTypeMode(Mode):
    conference: Conference
    item: MenuItem


@dataclass(frozen=True)
class MenuEditBoardSelectMode(Mode):
    conference: Conference
    item: MenuItem
    boards: tuple[Board, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MenuEditConferenceSelectMode(Mode):
    conference: Conference
    item: MenuItem
    conferences: tuple[Conference, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MenuEditLinkMode(Mode):
    conference: Conference
    item: MenuItem


@dataclass(frozen=True)
class MenuEditPageTitleMode(Mode):
    conference: Conference
    item: MenuItem


@dataclass(frozen=True)
class MenuEditPageBodyMode(BodyCapture, Mode):
    conference: Conference
    item: MenuItem
    title: str


@dataclass(frozen=True)
class MenuAddTypeMode(Mode):
    conference: Conference


@dataclass(frozen=True)
class MenuAddLabelMode(Mode):
    conference: Conference
    action_type: str


@dataclass(frozen=True)
class MenuAddBoardSelectMode(Mode):
    conference: Conference
    label: str
    boards: tuple[Board, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MenuAddConferenceSelectMode(Mode):
    conference: Conference
    label: str
    conferences: tuple[Conference, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MenuAddPageTitleMode(Mode):
    conference: Conference
    label: str


@dataclass(frozen=True)
class MenuAddPageBodyMode(BodyCapture, Mode):
    conference: Conference
    label: str
    title: str


@dataclass(frozen=True)
class MenuAddLinkMode(Mode):
    conference: Conference
    label: str


# Board management (non-root conferences)


@dataclass(frozen=True)
class BoardManageMode(Mode):
    conference: Conference
    boards: tuple[Board, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BoardAddMode(Mode):
    conference: Conference


@dataclass(frozen=True)
class BoardRenameMode(Mode):
    conference: Conference
    board: Board


# Reading and writing posts


@dataclass(frozen=True)
class PostsMode(Mode):
    conference: Conference
    board: Board
    page: int = 1
    posts: tuple[PostSummary, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PostMode(Mode):
    conference: Conference
    board: Board
    post: Post
    posts_return_page: int = 1
    page: int = 1


@dataclass(frozen=True)
class WriteTitleMode(Mode):
    conference: Conference
    board: Board
    posts_return_page: int = 1


@dataclass(frozen=True)
class WriteBodyMode(BodyCapture, Mode):
    conference: Conference
    board: Board
    posts_return_page: int
    title: str


# Static content from menu items


@dataclass(frozen=True)
class PageMode(Mode):
    conference: Conference
    item: MenuItem
    page: int = 1


@dataclass(frozen=True)
class LinkMode(Mode):
    conference: Conference
    item: MenuItem
