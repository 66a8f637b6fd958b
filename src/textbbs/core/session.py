"""BbsSession - per-user navigation state machine."""

import logging
from dataclasses import replace
from typing import Callable, Iterable

from ..config import FieldLimits
from ..interfaces import ActionType, BbsRepository, Board, Conference, MenuItem
from .command_parser import (
    CancelCommand,
    Command,
    CommandParser,
    IndexedCommand,
    LetterCommand,
    MoveCommand,
    SelectCommand,
)
from .modes import (
    BoardAddMode,
    BoardManageMode,
    BoardRenameMode,
    ConferenceAddMode,
    ConferenceManageMode,
    ConferenceRenameMode,
    LinkMode,
    MenuAddBoardSelectMode,
    MenuAddConferenceSelectMode,
    MenuAddLabelMode,
    MenuAddLinkMode,
    MenuAddPageBodyMode,
    MenuAddPageTitleMode,
    MenuAddTypeMode,
    MenuDesignBodyMode,
    MenuDesignTitleMode,
    MenuEditBoardSelectMode,
    MenuEditConferenceSelectMode,
    MenuEditDisplayNoMode,
    MenuEditDisplayTypeMode,
    MenuEditLabelMode,
    MenuEditLinkMode,
    MenuEditMode,
    MenuEditPageBodyMode,
    MenuEditPageTitleMode,
    MenuMode,
    Mode,
    PageMode,
    PostMode,
    PostsMode,
    WelcomeEditBodyMode,
    WelcomeEditTitleMode,
    WelcomeMode,
    WriteBodyMode,
    WriteTitleMode,
)
from .renderer import ScreenRenderer
from .screen import ScreenModel
from .terminal import TerminalContext, normalize_terminal_context

logger = logging.getLogger(__name__)

CANCEL = "0"
END_OF_BODY = "."
MAX_ROW_ID = 2**63 - 1

ADD_TYPES = {
    "B": ActionType.BOARD,
    "P": ActionType.PAGE,
    "L": ActionType.LINK,
    "C": ActionType.CONFERENCE,
}


def next_sort_order(items: Iterable[MenuItem]) -> int:
    """Sort order that places a new item after every existing one."""
    return max((item.sort_order for item in items), default=0) + 1


def _parse_ref(action_ref: str) -> int | None:
    """Positive integer id stored in a menu item's action_ref, if any."""
    try:
        value = int(action_ref.strip())
    except (AttributeError, ValueError):
        return None
    return value if value >= 1 else None


class BbsSession:
    """One user's navigation through conferences, menus, boards and posts.

    The session holds the terminal context, the current mode and a pending
    toast. ``handle_hello`` starts it; each ``handle_event`` interprets one
    input line against the current mode, performs at most one repository
    mutation and returns the next screen.

    Handlers return the next mode, or None when the session has ended.
    """

    def __init__(
        self,
        repository: BbsRepository,
        limits: FieldLimits | None = None,
        title: str = "text-bbs",
    ):
        """
        Initialize a session.

        Args:
            repository: Storage for conferences, menus, boards and posts.
            limits: Field length caps (uses defaults if None).
            title: Title shown on every screen.
        """
        self.repository = repository
        self.limits = limits or FieldLimits()
        self.parser = CommandParser()
        self.renderer = ScreenRenderer(title)
        self.ctx = TerminalContext()
        self.mode: Mode | None = None
        self._toast: str | None = None

        self._handlers: dict[type, Callable[[Mode, str], Mode | None]] = {
            ConferenceManageMode: self._on_conference_manage,
            ConferenceAddMode: self._on_conference_add,
            ConferenceRenameMode: self._on_conference_rename,
            WelcomeMode: self._on_welcome,
            WelcomeEditTitleMode: self._on_welcome_edit_title,
            WelcomeEditBodyMode: self._on_welcome_edit_body,
            MenuMode: self._on_menu,
            MenuDesignTitleMode: self._on_menu_design_title,
            MenuDesignBodyMode: self._on_menu_design_body,
            MenuEditMode: self._on_menu_edit,
            MenuEditLabelMode: self._on_menu_edit_label,
            MenuEditDisplayNoMode: self._on_menu_edit_display_no,
            MenuEditDisplayTypeMode: self._on_menu_edit_display_type,
            MenuEditBoardSelectMode: self._on_menu_edit_board_select,
            MenuEditConferenceSelectMode: self._on_menu_edit_conference_select,
            MenuEditLinkMode: self._on_menu_edit_link,
            MenuEditPageTitleMode: self._on_menu_edit_page_title,
            MenuEditPageBodyMode: self._on_menu_edit_page_body,
            MenuAddTypeMode: self._on_menu_add_type,
            MenuAddLabelMode: self._on_menu_add_label,
            MenuAddBoardSelectMode: self._on_menu_add_board_select,
            MenuAddConferenceSelectMode: self._on_menu_add_conference_select,
            MenuAddPageTitleMode: self._on_menu_add_page_title,
            MenuAddPageBodyMode: self._on_menu_add_page_body,
            MenuAddLinkMode: self._on_menu_add_link,
            BoardManageMode: self._on_board_manage,
            BoardAddMode: self._on_board_add,
            BoardRenameMode: self._on_board_rename,
            PostsMode: self._on_posts,
            PostMode: self._on_post,
            WriteTitleMode: self._on_write_title,
            WriteBodyMode: self._on_write_body,
            PageMode: self._on_page,
            LinkMode: self._on_link,
        }

    @property
    def user(self) -> str:
        return self.ctx.user

    # Public API

    def handle_hello(self, user=None, rows=None, cols=None, page_size=None) -> ScreenModel:
        """
        Start the session and return the entry screen.

        Enters the root conference's welcome screen, or the flat
        conference list when no root conference exists yet.

        Args:
            user: Reported user name.
            rows: Terminal height.
            cols: Terminal width.
            page_size: Posts per posts-list page.

        Returns:
            The first screen.
        """
        self.ctx = normalize_terminal_context(user=user, rows=rows, cols=cols, page_size=page_size)
        self._toast = None

        root = self.repository.get_root_conference()
        if root is not None:
            self.mode = WelcomeMode(conference=root)
        else:
            logger.warning("No root conference; falling back to conference list")
            self.mode = self._conference_manage()

        logger.info(f"Session started for {self.ctx.user!r} ({self.ctx.cols}x{self.ctx.rows})")
        return self._render()

    def handle_event(self, input=None, rows=None, cols=None) -> ScreenModel:
        """
        Interpret one input line and return the next screen.

        Args:
            input: The raw input line. Non-strings are treated as empty.
            rows: Current terminal height, if reported.
            cols: Current terminal width, if reported.

        Returns:
            The next screen. A screen with an ``exit`` action ends the session.

        Raises:
            RuntimeError: If called before handle_hello.
        """
        if self.mode is None:
            raise RuntimeError("Session has not been started")

        self.ctx = self.ctx.resized(rows=rows, cols=cols)
        raw = input if isinstance(input, str) else ""

        handler = self._handlers[type(self.mode)]
        next_mode = handler(self.mode, raw)

        if next_mode is None:
            logger.info(f"Session ended for {self.ctx.user!r}")
            self._toast = None
            return self.renderer.exit_screen()

        if type(next_mode) is not type(self.mode):
            logger.debug(f"{type(self.mode).__name__} -> {type(next_mode).__name__}")
        self.mode = next_mode
        return self._render()

    # Toast slot

    def _say(self, message: str) -> None:
        self._toast = message

    def _take_toast(self) -> str | None:
        toast, self._toast = self._toast, None
        return toast

    def _render(self) -> ScreenModel:
        screen, self.mode = self.renderer.render(self.mode, self.ctx, self._take_toast())
        return screen

    # Validation

    def _check_text(self, value: str, limit: int, noun: str, required: bool = True) -> str | None:
        """
        Validate a trimmed free-text value against a length cap.

        Args:
            value: Trimmed input.
            limit: Maximum length in characters.
            noun: Field name used in the toast ("Name", "Title"...).
            required: Whether an empty value is rejected.

        Returns:
            The error toast, or None when the value is acceptable.
        """
        if required and not value:
            return f"{noun} cannot be empty."
        if len(value) > limit:
            return f"{noun} must be <= {limit} chars."
        return None

    def _reject(self, value: str, limit: int, noun: str, required: bool = True) -> bool:
        error = self._check_text(value, limit, noun, required)
        if error:
            self._say(error)
            return True
        return False

    def _parse(self, raw: str) -> Command:
        command = self.parser.parse(raw)
        logger.debug(f"[{self.ctx.user}] {type(self.mode).__name__}: {command!r}")
        return command

    # Navigation helpers

    def _conference_manage(self) -> ConferenceManageMode:
        return ConferenceManageMode(conferences=tuple(self.repository.list_conferences()))

    def _menu(self, conference: Conference) -> MenuMode:
        return MenuMode(conference=conference, items=tuple(self.repository.list_menu_items(conference.id)))

    def _menu_edit(self, conference: Conference) -> MenuEditMode:
        return MenuEditMode(conference=conference, items=tuple(self.repository.list_menu_items(conference.id)))

    def _board_manage(self, conference: Conference) -> BoardManageMode:
        return BoardManageMode(conference=conference, boards=tuple(self.repository.list_boards(conference.id)))

    def _root_menu(self) -> MenuMode | None:
        root = self.repository.get_root_conference()
        if root is None:
            return None
        return self._menu(root)

    def _posts(self, conference: Conference, board_id: int, page: int) -> Mode:
        """Open a posts page, falling back to the menu when the board is gone."""
        board = self.repository.get_board(board_id)
        if board is None or board.conference_id != conference.id:
            logger.warning(f"Board {board_id} vanished from conference {conference.id}")
            self._say("Board not found.")
            return self._menu(conference)
        posts = self.repository.list_posts(board.id, page, self.ctx.posts_page_size)
        return PostsMode(conference=conference, board=board, page=page, posts=tuple(posts))

    def _conference_targets(self, conference: Conference) -> tuple[Conference, ...]:
        """Conferences a menu item in this conference may open; never itself."""
        return tuple(c for c in self.repository.list_conferences() if c.id != conference.id)

    def _fresh_item(self, conference: Conference, item: MenuItem) -> MenuItem | None:
        fresh = self.repository.get_menu_item(conference.id, item.id)
        if fresh is None:
            logger.warning(f"Menu item {item.id} vanished from conference {conference.id}")
            self._say("Menu item not found.")
        return fresh

    # Conference management

    def _on_conference_manage(self, mode: ConferenceManageMode, raw: str) -> Mode | None:
        command = self._parse(raw)

        # A bare number leaves the list the same way 0 does
        if isinstance(command, (CancelCommand, SelectCommand)):
            return self._root_menu()

        if isinstance(command, LetterCommand) and command.letter == "A":
            return ConferenceAddMode()

        if isinstance(command, IndexedCommand) and command.letter in ("R", "D"):
            if not 1 <= command.index <= len(mode.conferences):
                self._say("Invalid conference number.")
                return mode
            conference = mode.conferences[command.index - 1]

            if command.letter == "R":
                return ConferenceRenameMode(conference=conference)

            deleted = self.repository.delete_conference(conference.id)
            if deleted:
                logger.info(f"{self.user} deleted conference {conference.id}")
            self._say("Conference deleted." if deleted else "Unable to delete conference.")
            return self._conference_manage()

        self._say("Commands: A, R <n>, D <n>, 0")
        return mode

    def _on_conference_add(self, mode: ConferenceAddMode, raw: str) -> Mode:
        name = raw.strip()
        if name == CANCEL:
            return self._conference_manage()
        if self._reject(name, self.limits.conference_name, "Name"):
            return mode

        conference_id = self.repository.create_conference(name, self.user)
        logger.info(f"{self.user} created conference {conference_id} {name!r}")
        self._say("Conference created.")
        return self._conference_manage()

    def _on_conference_rename(self, mode: ConferenceRenameMode, raw: str) -> Mode:
        name = raw.strip()
        if name == CANCEL:
            return self._conference_manage()
        if self._reject(name, self.limits.conference_name, "Name"):
            return mode

        if self.repository.rename_conference(mode.conference.id, name, self.user):
            logger.info(f"{self.user} renamed conference {mode.conference.id} to {name!r}")
            self._say("Conference renamed.")
        else:
            self._say("Conference not found.")
        return self._conference_manage()

    # Welcome

    def _on_welcome(self, mode: WelcomeMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, LetterCommand) and command.letter == "E":
            return WelcomeEditTitleMode(conference=mode.conference)
        return self._menu(mode.conference)

    def _on_welcome_edit_title(self, mode: WelcomeEditTitleMode, raw: str) -> Mode:
        title = raw.strip()
        if title == CANCEL:
            return WelcomeMode(conference=mode.conference)
        if self._reject(title, self.limits.title, "Title"):
            return mode
        return WelcomeEditBodyMode(conference=mode.conference, title=title)

    def _on_welcome_edit_body(self, mode: WelcomeEditBodyMode, raw: str) -> Mode:
        marker = raw.strip()
        if marker == CANCEL:
            return WelcomeMode(conference=mode.conference)
        if marker != END_OF_BODY:
            return mode.with_line(raw)

        self.repository.update_welcome(mode.conference.id, mode.title, mode.body(), self.user)
        logger.info(f"{self.user} updated welcome of conference {mode.conference.id}")
        conference = self.repository.get_conference(mode.conference.id) or mode.conference
        self._say("Welcome updated.")
        return WelcomeMode(conference=conference)

    # Menu

    def _on_menu(self, mode: MenuMode, raw: str) -> Mode | None:
        command = self._parse(raw)

        if isinstance(command, CancelCommand):
            if mode.conference.is_root:
                return None
            return self._root_menu()

        if isinstance(command, LetterCommand) and command.letter == "E":
            return MenuDesignTitleMode(conference=mode.conference)

        if isinstance(command, LetterCommand) and command.letter == "I":
            return self._menu_edit(mode.conference)

        visible = mode.visible_items()
        if not isinstance(command, SelectCommand) or command.index > len(visible):
            self._say("Select a menu number.")
            return mode

        return self._activate(mode, visible[command.index - 1])

    def _activate(self, mode: MenuMode, item: MenuItem) -> Mode:
        """Open whatever a menu item points at."""
        if item.action_type == ActionType.BOARD:
            board_id = _parse_ref(item.action_ref)
            if board_id is None:
                self._say("Menu item has invalid board.")
                return mode
            board = self.repository.get_board(board_id)
            if board is None or board.conference_id != mode.conference.id:
                logger.warning(f"Menu item {item.id} points at missing board {board_id}")
                self._say("Board not found for this conference.")
                return mode
            posts = self.repository.list_posts(board.id, 1, self.ctx.posts_page_size)
            return PostsMode(conference=mode.conference, board=board, page=1, posts=tuple(posts))

        if item.action_type == ActionType.PAGE:
            return PageMode(conference=mode.conference, item=item)

        if item.action_type == ActionType.LINK:
            return LinkMode(conference=mode.conference, item=item)

        if item.action_type == ActionType.CONFERENCE:
            conference_id = _parse_ref(item.action_ref)
            if conference_id is None:
                self._say("Menu item has invalid conference.")
                return mode
            conference = self.repository.get_conference(conference_id)
            if conference is None or conference.is_root:
                logger.warning(f"Menu item {item.id} points at missing conference {conference_id}")
                self._say("Conference not found.")
                return mode
            return WelcomeMode(conference=conference)

        self._say("Unsupported menu item.")
        return mode

    def _on_menu_design_title(self, mode: MenuDesignTitleMode, raw: str) -> Mode:
        title = raw.strip()
        if title == CANCEL:
            return self._menu(mode.conference)
        if self._reject(title, self.limits.title, "Title", required=False):
            return mode
        return MenuDesignBodyMode(conference=mode.conference, title=title)

    def _on_menu_design_body(self, mode: MenuDesignBodyMode, raw: str) -> Mode:
        marker = raw.strip()
        if marker == CANCEL:
            return self._menu(mode.conference)
        if marker != END_OF_BODY:
            return mode.with_line(raw)

        self.repository.update_menu(mode.conference.id, mode.title, mode.body(), self.user)
        logger.info(f"{self.user} updated menu of conference {mode.conference.id}")
        conference = self.repository.get_conference(mode.conference.id) or mode.conference
        self._say("Menu updated.")
        return self._menu(conference)

    # Menu item management

    def _on_menu_edit(self, mode: MenuEditMode, raw: str) -> Mode:
        command = self._parse(raw)
        conference = mode.conference

        if isinstance(command, CancelCommand):
            return self._menu(conference)

        if isinstance(command, LetterCommand):
            if command.letter == "A":
                return MenuAddTypeMode(conference=conference)
            if command.letter == "B":
                if conference.is_root:
                    self._say("Boards are not available for root.")
                    return mode
                return self._board_manage(conference)
            if command.letter == "C":
                if not conference.is_root:
                    self._say("Conference management is only available in root.")
                    return mode
                return self._conference_manage()

        if isinstance(command, MoveCommand):
            return self._move_item(mode, command)

        if isinstance(command, IndexedCommand) and command.letter in "DHLNYU":
            if not 1 <= command.index <= len(mode.items):
                self._say("Invalid item number.")
                return mode
            item = self._fresh_item(conference, mode.items[command.index - 1])
            if item is None:
                return self._menu_edit(conference)
            return self._edit_item(mode, command.letter, item)

        self._say("Commands: A, L <n>, N <n>, Y <n>, U <n>, H <n>, D <n>, M <from> <to>, 0")
        return mode

    def _edit_item(self, mode: MenuEditMode, letter: str, item: MenuItem) -> Mode:
        conference = mode.conference

        if letter == "D":
            self.repository.delete_menu_item(conference.id, item.id)
            logger.info(f"{self.user} deleted menu item {item.id}")
            self._say("Menu item deleted.")
            return self._menu_edit(conference)

        if letter == "H":
            self.repository.set_hidden(conference.id, item.id, not item.hidden, self.user)
            self._say("Menu item shown." if item.hidden else "Menu item hidden.")
            return self._menu_edit(conference)

        if letter == "L":
            return MenuEditLabelMode(conference=conference, item=item)
        if letter == "N":
            return MenuEditDisplayNoMode(conference=conference, item=item)
        if letter == "Y":
            return MenuEditDisplayTypeMode(conference=conference, item=item)

        # U: edit the target, by action type
        if item.action_type == ActionType.BOARD:
            boards = tuple(self.repository.list_boards(conference.id))
            if not boards:
                self._say("No boards available.")
                return mode
            return MenuEditBoardSelectMode(conference=conference, item=item, boards=boards)
        if item.action_type == ActionType.CONFERENCE:
            conferences = self._conference_targets(conference)
            if not conferences:
                self._say("No conferences available.")
                return mode
            return MenuEditConferenceSelectMode(conference=conference, item=item, conferences=conferences)
        if item.action_type == ActionType.LINK:
            return MenuEditLinkMode(conference=conference, item=item)
        return MenuEditPageTitleMode(conference=conference, item=item)

    def _move_item(self, mode: MenuEditMode, command: MoveCommand) -> Mode:
        """
        Move one item and renumber the conference's menu densely.

        The snapshot in the mode only identifies which item moves; the order
        written is computed from a fresh listing so concurrent additions and
        deletions keep their place.
        """
        count = len(mode.items)
        if not (1 <= command.source <= count and 1 <= command.target <= count):
            self._say("Usage: M <from> <to>")
            return mode

        conference = mode.conference
        if command.source != command.target:
            moved_id = mode.items[command.source - 1].id
            ordered_ids = [item.id for item in self.repository.list_menu_items(conference.id)]
            if moved_id not in ordered_ids:
                self._say("Menu item not found.")
                return self._menu_edit(conference)
            ordered_ids.remove(moved_id)
            ordered_ids.insert(min(command.target, len(ordered_ids) + 1) - 1, moved_id)
            self.repository.set_order(conference.id, ordered_ids, self.user)
            logger.info(f"{self.user} moved menu item {moved_id} to {command.target}")

        self._say("Menu order updated.")
        return self._menu_edit(conference)

    def _save_meta(self, mode, label: str, display_no: str, display_type: str, toast: str) -> Mode:
        updated = self.repository.update_meta(
            mode.conference.id, mode.item.id, label, display_no, display_type, self.user
        )
        self._say(toast if updated else "Menu item not found.")
        return self._menu_edit(mode.conference)

    def _save_content(self, mode, action_ref: str, body: str, toast: str) -> Mode:
        updated = self.repository.update_content(mode.conference.id, mode.item.id, action_ref, body, self.user)
        self._say(toast if updated else "Menu item not found.")
        return self._menu_edit(mode.conference)

    def _on_menu_edit_label(self, mode: MenuEditLabelMode, raw: str) -> Mode:
        label = raw.strip()
        if label == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(label, self.limits.menu_label, "Label"):
            return mode
        return self._save_meta(mode, label, mode.item.display_no, mode.item.display_type, "Menu label updated.")

    def _on_menu_edit_display_no(self, mode: MenuEditDisplayNoMode, raw: str) -> Mode:
        display_no = raw.strip()
        if display_no == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(display_no, self.limits.display_no, "Display number", required=False):
            return mode
        return self._save_meta(mode, mode.item.label, display_no, mode.item.display_type, "Display number updated.")

    def _on_menu_edit_display_type(self, mode: MenuEditDisplayTypeMode, raw: str) -> Mode:
        display_type = raw.strip()
        if display_type == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(display_type, self.limits.display_type, "Display type", required=False):
            return mode
        return self._save_meta(mode, mode.item.label, mode.item.display_no, display_type, "Display type updated.")

    def _on_menu_edit_board_select(self, mode: MenuEditBoardSelectMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, CancelCommand):
            return self._menu_edit(mode.conference)
        if not isinstance(command, SelectCommand) or command.index > len(mode.boards):
            self._say("Select a board number.")
            return mode
        board = mode.boards[command.index - 1]
        return self._save_content(mode, str(board.id), mode.item.body, "Menu target updated.")

    def _on_menu_edit_conference_select(self, mode: MenuEditConferenceSelectMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, CancelCommand):
            return self._menu_edit(mode.conference)
        if not isinstance(command, SelectCommand) or command.index > len(mode.conferences):
            self._say("Select a conference number.")
            return mode
        target = mode.conferences[command.index - 1]
        return self._save_content(mode, str(target.id), mode.item.body, "Menu target updated.")

    def _on_menu_edit_link(self, mode: MenuEditLinkMode, raw: str) -> Mode:
        url = raw.strip()
        if url == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(url, self.limits.link_url, "URL"):
            return mode
        return self._save_content(mode, url, mode.item.body, "Menu link updated.")

    def _on_menu_edit_page_title(self, mode: MenuEditPageTitleMode, raw: str) -> Mode:
        title = raw.strip()
        if title == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(title, self.limits.title, "Title"):
            return mode
        return MenuEditPageBodyMode(conference=mode.conference, item=mode.item, title=title)

    def _on_menu_edit_page_body(self, mode: MenuEditPageBodyMode, raw: str) -> Mode:
        marker = raw.strip()
        if marker == CANCEL:
            return self._menu_edit(mode.conference)
        if marker != END_OF_BODY:
            return mode.with_line(raw)
        return self._save_content(mode, mode.title, mode.body(), "Menu page updated.")

    # Menu item creation

    def _create_item(self, conference: Conference, label: str, action_type: str, action_ref: str, body: str = ""):
        sort_order = next_sort_order(self.repository.list_menu_items(conference.id))
        item_id = self.repository.create_menu_item(
            conference.id,
            label,
            action_type,
            action_ref,
            self.user,
            body=body,
            sort_order=sort_order,
            hidden=False,
        )
        logger.info(f"{self.user} added {action_type} menu item {item_id} to conference {conference.id}")
        return item_id

    def _on_menu_add_type(self, mode: MenuAddTypeMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, CancelCommand):
            return self._menu_edit(mode.conference)
        if isinstance(command, LetterCommand) and command.letter in ADD_TYPES:
            return MenuAddLabelMode(conference=mode.conference, action_type=ADD_TYPES[command.letter])
        self._say("Select type: B, P, L, C, 0")
        return mode

    def _on_menu_add_label(self, mode: MenuAddLabelMode, raw: str) -> Mode:
        label = raw.strip()
        conference = mode.conference
        if label == CANCEL:
            return self._menu_edit(conference)
        if self._reject(label, self.limits.menu_label, "Label"):
            return mode

        if mode.action_type == ActionType.BOARD:
            boards = tuple(self.repository.list_boards(conference.id))
            if not boards:
                self._say("No boards available.")
                return self._menu_edit(conference)
            return MenuAddBoardSelectMode(conference=conference, label=label, boards=boards)

        if mode.action_type == ActionType.CONFERENCE:
            conferences = self._conference_targets(conference)
            if not conferences:
                self._say("No conferences available.")
                return self._menu_edit(conference)
            return MenuAddConferenceSelectMode(conference=conference, label=label, conferences=conferences)

        if mode.action_type == ActionType.PAGE:
            return MenuAddPageTitleMode(conference=conference, label=label)

        return MenuAddLinkMode(conference=conference, label=label)

    def _on_menu_add_board_select(self, mode: MenuAddBoardSelectMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, CancelCommand):
            return self._menu_edit(mode.conference)
        if not isinstance(command, SelectCommand) or command.index > len(mode.boards):
            self._say("Select a board number.")
            return mode
        board = mode.boards[command.index - 1]
        self._create_item(mode.conference, mode.label, ActionType.BOARD, str(board.id))
        self._say("Menu item added.")
        return self._menu_edit(mode.conference)

    def _on_menu_add_conference_select(self, mode: MenuAddConferenceSelectMode, raw: str) -> Mode:
        command = self._parse(raw)
        if isinstance(command, CancelCommand):
            return self._menu_edit(mode.conference)
        if not isinstance(command, SelectCommand) or command.index > len(mode.conferences):
            self._say("Select a conference number.")
            return mode
        target = mode.conferences[command.index - 1]
        self._create_item(mode.conference, mode.label, ActionType.CONFERENCE, str(target.id))
        self._say("Menu item added.")
        return self._menu_edit(mode.conference)

    def _on_menu_add_page_title(self, mode: MenuAddPageTitleMode, raw: str) -> Mode:
        title = raw.strip()
        if title == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(title, self.limits.title, "Title"):
            return mode
        return MenuAddPageBodyMode(conference=mode.conference, label=mode.label, title=title)

    def _on_menu_add_page_body(self, mode: MenuAddPageBodyMode, raw: str) -> Mode:
        marker = raw.strip()
        if marker == CANCEL:
            return self._menu_edit(mode.conference)
        if marker != END_OF_BODY:
            return mode.with_line(raw)
        self._create_item(mode.conference, mode.label, ActionType.PAGE, mode.title, body=mode.body())
        self._say("Menu page added.")
        return self._menu_edit(mode.conference)

    def _on_menu_add_link(self, mode: MenuAddLinkMode, raw: str) -> Mode:
        url = raw.strip()
        if url == CANCEL:
            return self._menu_edit(mode.conference)
        if self._reject(url, self.limits.link_url, "URL"):
            return mode
        self._create_item(mode.conference, mode.label, ActionType.LINK, url)
        self._say("Menu link added.")
        return self._menu_edit(mode.conference)

    # Board management

    def _on_board_manage(self, mode: BoardManageMode, raw: str) -> Mode:
        command = self._parse(raw)
        conference = mode.conference

        if isinstance(command, CancelCommand):
            return self._menu_edit(conference)

        if isinstance(command, LetterCommand) and command.letter == "A":
            return BoardAddMode(conference=conference)

        if isinstance(command, IndexedCommand) and command.letter in ("R", "D"):
            if not 1 <= command.index <= len(mode.boards):
                self._say("Invalid board number.")
                return mode
            board = mode.boards[command.index - 1]

            if command.letter == "R":
                return BoardRenameMode(conference=conference, board=board)

            deleted = self.repository.delete_board(conference.id, board.id)
            if deleted:
                logger.info(f"{self.user} deleted board {board.id}")
            self._say("Board deleted." if deleted else "Board not found.")
            return self._board_manage(conference)

        self._say("Commands: A, R <n>, D <n>, 0")
        return mode

    def _on_board_add(self, mode: BoardAddMode, raw: str) -> Mode:
        name = raw.strip()
        if name == CANCEL:
            return self._board_manage(mode.conference)
        if self._reject(name, self.limits.board_name, "Name"):
            return mode

        board_id = self.repository.create_board(mode.conference.id, name)
        logger.info(f"{self.user} created board {board_id} {name!r}")
        self._say("Board added.")
        return self._board_manage(mode.conference)

    def _on_board_rename(self, mode: BoardRenameMode, raw: str) -> Mode:
        name = raw.strip()
        if name == CANCEL:
            return self._board_manage(mode.conference)
        if self._reject(name, self.limits.board_name, "Name"):
            return mode

        renamed = self.repository.rename_board(mode.conference.id, mode.board.id, name)
        self._say("Board renamed." if renamed else "Board not found.")
        return self._board_manage(mode.conference)

    # Posts

    def _on_posts(self, mode: PostsMode, raw: str) -> Mode:
        command = self._parse(raw)

        if isinstance(command, CancelCommand):
            return self._menu(mode.conference)

        if isinstance(command, LetterCommand) and command.letter == "N":
            board = self.repository.get_board(mode.board.id)
            if board is None:
                return self._posts(mode.conference, mode.board.id, mode.page)
            posts = self.repository.list_posts(board.id, mode.page + 1, self.ctx.posts_page_size)
            if not posts:
                self._say("No more posts.")
                return mode
            return replace(mode, page=mode.page + 1, posts=tuple(posts))

        if isinstance(command, LetterCommand) and command.letter == "P":
            if mode.page <= 1:
                self._say("Already at first page.")
                return mode
            return self._posts(mode.conference, mode.board.id, mode.page - 1)

        if isinstance(command, LetterCommand) and command.letter == "W":
            return WriteTitleMode(conference=mode.conference, board=mode.board, posts_return_page=mode.page)

        if isinstance(command, LetterCommand) and command.letter == "R":
            self._say("Usage: R <postId>")
            return mode

        if isinstance(command, IndexedCommand) and command.letter == "R":
            if command.index < 1:
                self._say("Usage: R <postId>")
                return mode
            post = self.repository.get_post(command.index) if command.index <= MAX_ROW_ID else None
            if post is None or post.board_id != mode.board.id:
                self._say(f"Post not found: {command.index}")
                return mode
            return PostMode(
                conference=mode.conference,
                board=mode.board,
                post=post,
                posts_return_page=mode.page,
            )

        self._say("Commands: N, P, R <id>, W, 0")
        return mode

    def _on_post(self, mode: PostMode, raw: str) -> Mode:
        command = self._parse(raw)

        if isinstance(command, CancelCommand):
            return self._posts(mode.conference, mode.board.id, mode.posts_return_page)

        # Out-of-range pages are clamped by the renderer with an "End of post." toast.
        if isinstance(command, LetterCommand) and command.letter == "N":
            return replace(mode, page=mode.page + 1)
        if isinstance(command, LetterCommand) and command.letter == "P":
            return replace(mode, page=mode.page - 1)

        self._say("Commands: N, P, 0")
        return mode

    def _on_write_title(self, mode: WriteTitleMode, raw: str) -> Mode:
        title = raw.strip()
        if title == CANCEL:
            return self._posts(mode.conference, mode.board.id, mode.posts_return_page)
        if self._reject(title, self.limits.post_title, "Title"):
            return mode
        return WriteBodyMode(
            conference=mode.conference,
            board=mode.board,
            posts_return_page=mode.posts_return_page,
            title=title,
        )

    def _on_write_body(self, mode: WriteBodyMode, raw: str) -> Mode:
        marker = raw.strip()
        if marker == CANCEL:
            return self._posts(mode.conference, mode.board.id, mode.posts_return_page)
        if marker != END_OF_BODY:
            return mode.with_line(raw)

        body = mode.body()
        if not body.strip():
            self._say("Body cannot be empty.")
            return mode

        board: Board | None = self.repository.get_board(mode.board.id)
        if board is None:
            return self._posts(mode.conference, mode.board.id, 1)

        post_id = self.repository.create_post(board.id, mode.title, body, self.user)
        logger.info(f"{self.user} posted #{post_id} on board {board.id}")
        posts_mode = self._posts(mode.conference, board.id, 1)
        self._say(f"Posted #{post_id}")
        return posts_mode

    # Static content

    def _on_page(self, mode: PageMode, raw: str) -> Mode:
        command = self._parse(raw)

        if isinstance(command, CancelCommand):
            return self._menu(mode.conference)
        if isinstance(command, LetterCommand) and command.letter == "N":
            return replace(mode, page=mode.page + 1)
        if isinstance(command, LetterCommand) and command.letter == "P":
            return replace(mode, page=mode.page - 1)

        self._say("Commands: N, P, 0")
        return mode

    def _on_link(self, mode: LinkMode, raw: str) -> Mode:
        if raw.strip() == CANCEL:
            return self._menu(mode.conference)
        self._say("Press 0 to return.")
        return mode
