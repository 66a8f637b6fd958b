"""Abstract interface for BBS storage and the entities it returns."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ActionType:
    """Menu item action types."""

    BOARD = "board"
    PAGE = "page"
    LINK = "link"
    CONFERENCE = "conference"

    ALL = (BOARD, PAGE, LINK, CONFERENCE)


@dataclass(frozen=True)
class Conference:
    """A conference: a menu plus the boards it owns."""

    id: int
    name: str
    slug: str | None = None
    sort_order: int = 0
    is_root: bool = False
    welcome_title: str = ""
    welcome_body: str = ""
    menu_title: str = ""
    menu_body: str = ""
    updated_at: str = ""
    updated_by: str = ""


@dataclass(frozen=True)
class MenuItem:
    """A selectable entry in a conference menu."""

    id: int
    conference_id: int
    label: str
    action_type: str
    action_ref: str
    display_no: str = ""
    display_type: str = ""
    body: str = ""
    sort_order: int = 0
    hidden: bool = False
    updated_at: str = ""
    updated_by: str = ""


@dataclass(frozen=True)
class Board:
    """A named collection of posts inside one conference."""

    id: int
    name: str
    conference_id: int
    sort_order: int = 0


@dataclass(frozen=True)
class PostSummary:
    """Post fields shown in a posts listing."""

    id: int
    title: str
    author: str
    created_at: str


@dataclass(frozen=True)
class Post:
    """An immutable authored message."""

    id: int
    board_id: int
    title: str
    body: str
    author: str
    created_at: str


class BbsRepository(ABC):
    """Abstract interface for conference, menu, board and post storage.

    Implementations own referential integrity: deleting a board removes its
    posts, deleting a conference removes its menu items, boards and posts,
    and the root conference can be neither renamed nor deleted.
    """

    # Conferences

    @abstractmethod
    def list_conferences(self) -> list[Conference]:
        """List non-root conferences ordered by sort order, then id."""
        pass

    @abstractmethod
    def get_conference(self, conference_id: int) -> Conference | None:
        """Get a conference by id."""
        pass

    @abstractmethod
    def get_root_conference(self) -> Conference | None:
        """Get the root conference, if one has been seeded."""
        pass

    @abstractmethod
    def create_conference(self, name: str, updated_by: str) -> int:
        """Create a non-root conference and return its id."""
        pass

    @abstractmethod
    def rename_conference(self, conference_id: int, name: str, updated_by: str) -> bool:
        """Rename a non-root conference. Returns False if nothing changed."""
        pass

    @abstractmethod
    def delete_conference(self, conference_id: int) -> bool:
        """Delete a non-root conference and everything it owns."""
        pass

    @abstractmethod
    def update_welcome(self, conference_id: int, title: str, body: str, updated_by: str) -> None:
        """Replace the welcome title and body of a conference."""
        pass

    @abstractmethod
    def update_menu(self, conference_id: int, title: str, body: str, updated_by: str) -> None:
        """Replace the custom menu title and body of a conference."""
        pass

    # Menu items

    @abstractmethod
    def list_menu_items(self, conference_id: int) -> list[MenuItem]:
        """List all menu items (hidden included) ordered by sort order, then id."""
        pass

    @abstractmethod
    def get_menu_item(self, conference_id: int, item_id: int) -> MenuItem | None:
        """Get a menu item belonging to a conference."""
        pass

    @abstractmethod
    def create_menu_item(
        self,
        conference_id: int,
        label: str,
        action_type: str,
        action_ref: str,
        updated_by: str,
        body: str = "",
        display_no: str = "",
        display_type: str = "",
        sort_order: int = 0,
        hidden: bool = False,
    ) -> int:
        """Create a menu item and return its id."""
        pass

    @abstractmethod
    def delete_menu_item(self, conference_id: int, item_id: int) -> bool:
        """Delete a menu item."""
        pass

    @abstractmethod
    def set_hidden(self, conference_id: int, item_id: int, hidden: bool, updated_by: str) -> bool:
        """Show or hide a menu item."""
        pass

    @abstractmethod
    def update_meta(
        self,
        conference_id: int,
        item_id: int,
        label: str,
        display_no: str,
        display_type: str,
        updated_by: str,
    ) -> bool:
        """Update the label and display fields of a menu item."""
        pass

    @abstractmethod
    def update_content(
        self,
        conference_id: int,
        item_id: int,
        action_ref: str,
        body: str,
        updated_by: str,
    ) -> bool:
        """Update the target reference and page body of a menu item."""
        pass

    @abstractmethod
    def set_order(self, conference_id: int, ordered_ids: list[int], updated_by: str) -> None:
        """Assign sort orders 1..N following ``ordered_ids`` in one batch."""
        pass

    # Boards

    @abstractmethod
    def list_boards(self, conference_id: int) -> list[Board]:
        """List boards of a conference ordered by sort order, then id."""
        pass

    @abstractmethod
    def get_board(self, board_id: int) -> Board | None:
        """Get a board by id."""
        pass

    @abstractmethod
    def create_board(self, conference_id: int, name: str) -> int:
        """Create a board and return its id."""
        pass

    @abstractmethod
    def rename_board(self, conference_id: int, board_id: int, name: str) -> bool:
        """Rename a board of a conference."""
        pass

    @abstractmethod
    def delete_board(self, conference_id: int, board_id: int) -> bool:
        """Delete a board and its posts."""
        pass

    # Posts

    @abstractmethod
    def list_posts(self, board_id: int, page: int, page_size: int) -> list[PostSummary]:
        """List one page (1-based) of a board's posts, newest first."""
        pass

    @abstractmethod
    def get_post(self, post_id: int) -> Post | None:
        """Get a post by id."""
        pass

    @abstractmethod
    def create_post(self, board_id: int, title: str, body: str, author: str) -> int:
        """Create a post and return its id."""
        pass
