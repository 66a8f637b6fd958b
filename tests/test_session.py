"""Tests for the BbsSession state machine."""

import pytest
from textbbs.config import FieldLimits
from textbbs.core.modes import (
    BoardManageMode,
    ConferenceAddMode,
    ConferenceManageMode,
    LinkMode,
    MenuDesignBodyMode,
    MenuEditBoardSelectMode,
    MenuEditConferenceSelectMode,
    MenuEditLinkMode,
    MenuEditMode,
    MenuEditPageBodyMode,
    MenuEditPageTitleMode,
    MenuMode,
    PageMode,
    PostMode,
    PostsMode,
    WelcomeEditBodyMode,
    WelcomeMode,
    WriteBodyMode,
    WriteTitleMode,
)
from textbbs.core.session import BbsSession, next_sort_order
from textbbs.interfaces import ActionType

MAIN_ID = 2
GENERAL_ID = 1


def send(session, *inputs):
    """Feed input lines to a session and return the last screen."""
    screen = None
    for line in inputs:
        screen = session.handle_event(line)
    return screen


def to_main_menu(session):
    """Root welcome -> root menu -> Main welcome -> Main menu."""
    return send(session, "", "1", "")


def to_board(session):
    """Open the General board from the Main menu."""
    to_main_menu(session)
    return send(session, "1")


def add_posts(repo, count, board_id=GENERAL_ID):
    return [repo.create_post(board_id, f"Post {i}", f"Body {i}", "bob") for i in range(1, count + 1)]


class TestHello:
    """Tests for session start."""

    def test_hello_enters_root_welcome(self, seeded_repo, make_session):
        """With a root conference the session starts on its welcome."""
        session = make_session(seeded_repo)
        assert isinstance(session.mode, WelcomeMode)
        assert session.mode.conference.is_root

    def test_hello_normalizes_terminal(self, seeded_repo):
        """hello clamps the reported geometry."""
        session = BbsSession(seeded_repo)
        session.handle_hello(user="  carol ", rows=3, cols=1000, page_size=99)
        assert session.user == "carol"
        assert (session.ctx.rows, session.ctx.cols, session.ctx.posts_page_size) == (10, 240, 50)

    def test_event_before_hello_raises(self, seeded_repo):
        """handle_event needs a started session."""
        with pytest.raises(RuntimeError):
            BbsSession(seeded_repo).handle_event("1")

    def test_non_string_input_is_empty(self, seeded_repo, make_session):
        """Non-string input is treated as an empty line."""
        session = make_session(seeded_repo)
        session.handle_event(None)
        assert isinstance(session.mode, MenuMode)

    def test_event_resizes_terminal(self, seeded_repo, make_session):
        """Sizes reported with an event update the context."""
        session = make_session(seeded_repo)
        session.handle_event("", rows=50, cols=132)
        assert (session.ctx.rows, session.ctx.cols) == (50, 132)
        session.handle_event("")
        assert (session.ctx.rows, session.ctx.cols) == (50, 132)

    def test_scenario_a_no_root(self, repo, make_session):
        """Without a root the session lands on conference management."""
        session = make_session(repo)
        assert session.mode == ConferenceManageMode(conferences=())

        send(session, "A")
        assert isinstance(session.mode, ConferenceAddMode)

        screen = send(session, "Docs")
        assert isinstance(session.mode, ConferenceManageMode)
        assert [c.name for c in session.mode.conferences] == ["Docs"]
        assert screen.toast == "Conference created."
        assert "1) Docs" in screen.lines

    def test_no_root_cancel_exits(self, repo, make_session):
        """0 on the fallback conference list ends the session."""
        session = make_session(repo)
        assert send(session, "0").wants_exit()


class TestToast:
    """Tests for the one-shot toast."""

    def test_toast_shown_once(self, seeded_repo, make_session):
        """A toast is delivered with exactly one screen."""
        session = make_session(seeded_repo)
        send(session, "")
        screen = send(session, "9")
        assert screen.toast == "Select a menu number."
        screen = send(session, "9x")
        assert screen.toast == "Select a menu number."
        screen = send(session, "1")
        assert screen.toast is None


class TestWelcome:
    """Tests for the welcome screen and its editor."""

    def test_any_input_opens_menu(self, seeded_repo, make_session):
        """Anything but E continues to the menu."""
        session = make_session(seeded_repo)
        send(session, "x")
        assert isinstance(session.mode, MenuMode)

    def test_edit_welcome(self, seeded_repo, make_session):
        """E edits title then body; '.' saves both."""
        session = make_session(seeded_repo)
        send(session, "e", "Hi all", "line a", "line b")
        assert isinstance(session.mode, WelcomeEditBodyMode)
        assert session.mode.lines == ("line a", "line b")

        screen = send(session, ".")
        assert screen.toast == "Welcome updated."
        root = seeded_repo.get_root_conference()
        assert root.welcome_title == "Hi all"
        assert root.welcome_body == "line a\nline b"
        assert root.updated_by == "alice"
        assert session.mode == WelcomeMode(conference=root)

    def test_cancel_body_discards(self, seeded_repo, make_session):
        """0 during the body drops the captured lines."""
        session = make_session(seeded_repo)
        send(session, "E", "Title", "draft", "0")
        assert isinstance(session.mode, WelcomeMode)
        assert seeded_repo.get_root_conference().welcome_title == "Welcome"

    def test_title_too_long(self, seeded_repo, make_session):
        """Titles over the cap are rejected with a toast."""
        session = make_session(seeded_repo)
        screen = send(session, "E", "x" * 61)
        assert screen.toast == "Title must be <= 60 chars."


class TestMenu:
    """Tests for menu navigation."""

    def test_root_zero_exits(self, seeded_repo, make_session):
        """0 in the root menu ends the session."""
        session = make_session(seeded_repo)
        screen = send(session, "", "0")
        assert screen.wants_exit()
        assert screen.actions[0].type == "exit"

    def test_conference_item_opens_welcome(self, seeded_repo, make_session):
        """A conference item opens that conference's welcome."""
        session = make_session(seeded_repo)
        send(session, "", "1")
        assert isinstance(session.mode, WelcomeMode)
        assert session.mode.conference.id == MAIN_ID

    def test_non_root_zero_returns_to_root(self, seeded_repo, make_session):
        """0 in a conference menu goes back to the root menu."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "0")
        assert isinstance(session.mode, MenuMode)
        assert session.mode.conference.is_root

    def test_board_item_opens_posts(self, seeded_repo, make_session):
        """A board item opens page 1 of the board."""
        session = make_session(seeded_repo)
        to_board(session)
        assert isinstance(session.mode, PostsMode)
        assert session.mode.board.id == GENERAL_ID
        assert session.mode.page == 1

    def test_out_of_range_selection(self, seeded_repo, make_session):
        """Numbers past the visible items are rejected."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "2")
        assert screen.toast == "Select a menu number."
        assert isinstance(session.mode, MenuMode)

    def test_visible_numbering(self, seeded_repo, make_session):
        """Hidden items get no number; the edit list still reaches them."""
        seeded_repo.create_menu_item(MAIN_ID, "Secret", ActionType.PAGE, "Secret", "sys", sort_order=2, hidden=True)
        seeded_repo.create_menu_item(MAIN_ID, "Docs", ActionType.LINK, "https://example.org", "sys", sort_order=3)

        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "2")
        assert isinstance(session.mode, LinkMode)
        assert session.mode.item.label == "Docs"

        send(session, "0", "I", "U 2")
        assert isinstance(session.mode, MenuEditPageTitleMode)
        assert session.mode.item.label == "Secret"

    def test_hide_toggle_renumbers(self, seeded_repo, make_session):
        """Hiding an item shifts the numbers of later visible items."""
        seeded_repo.create_menu_item(MAIN_ID, "Docs", ActionType.LINK, "https://example.org", "sys", sort_order=2)
        session = make_session(seeded_repo)
        to_main_menu(session)

        screen = send(session, "I", "H 1")
        assert screen.toast == "Menu item hidden."
        assert seeded_repo.list_menu_items(MAIN_ID)[0].hidden

        send(session, "0", "1")
        assert isinstance(session.mode, LinkMode)

        screen = send(session, "0", "I", "H 1")
        assert screen.toast == "Menu item shown."
        assert not seeded_repo.list_menu_items(MAIN_ID)[0].hidden

    def test_missing_board_target(self, seeded_repo, make_session):
        """A board item whose board is gone stays on the menu."""
        seeded_repo.create_menu_item(MAIN_ID, "Ghost", ActionType.BOARD, "999", "sys", sort_order=2)
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "2")
        assert screen.toast == "Board not found for this conference."
        assert isinstance(session.mode, MenuMode)

    def test_invalid_board_ref(self, seeded_repo, make_session):
        """A non-numeric board ref is reported."""
        seeded_repo.create_menu_item(MAIN_ID, "Broken", ActionType.BOARD, "abc", "sys", sort_order=2)
        session = make_session(seeded_repo)
        to_main_menu(session)
        assert send(session, "2").toast == "Menu item has invalid board."

    def test_page_item(self, seeded_repo, make_session):
        """A page item opens the reader."""
        seeded_repo.create_menu_item(
            MAIN_ID, "About", ActionType.PAGE, "About us", "sys", body="We are here.", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "2")
        assert isinstance(session.mode, PageMode)
        assert "We are here." in screen.lines

        screen = send(session, "N")
        assert screen.toast == "End of page."
        assert session.mode.page == 1

        send(session, "0")
        assert isinstance(session.mode, MenuMode)

    def test_link_mode_only_accepts_zero(self, seeded_repo, make_session):
        """Link mode waits for 0."""
        seeded_repo.create_menu_item(MAIN_ID, "Site", ActionType.LINK, "https://example.org", "sys", sort_order=2)
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "2", "hello")
        assert screen.toast == "Press 0 to return."
        assert isinstance(session.mode, LinkMode)

    def test_menu_design(self, seeded_repo, make_session):
        """E designs a custom menu text; an empty title is allowed."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "E", "")
        assert isinstance(session.mode, MenuDesignBodyMode)

        screen = send(session, "== MAIN ==", "  1) Boards", ".")
        assert screen.toast == "Menu updated."
        assert seeded_repo.get_conference(MAIN_ID).menu_body == "== MAIN ==\n  1) Boards"
        assert "  1) Boards" in screen.lines
        assert isinstance(session.mode, MenuMode)


class TestMenuEdit:
    """Tests for menu item management."""

    def test_edit_label(self, seeded_repo, make_session):
        """L <n> renames the item."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "L 1", "Boards")
        assert screen.toast == "Menu label updated."
        assert seeded_repo.get_menu_item(MAIN_ID, 1).label == "Boards"
        assert isinstance(session.mode, MenuEditMode)

    def test_edit_display_fields(self, seeded_repo, make_session):
        """N <n> and Y <n> set display number and type."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "N 1", "A1", "Y 1", "[board]")
        item = seeded_repo.get_menu_item(MAIN_ID, 1)
        assert (item.display_no, item.display_type, item.label) == ("A1", "[board]", "General")

    def test_label_required(self, seeded_repo, make_session):
        """An empty label is rejected."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "L 1", "   ")
        assert screen.toast == "Label cannot be empty."

    def test_edit_board_target(self, seeded_repo, make_session):
        """U <n> on a board item picks another board."""
        other = seeded_repo.create_board(MAIN_ID, "Other")
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 1")
        assert isinstance(session.mode, MenuEditBoardSelectMode)

        screen = send(session, "2")
        assert screen.toast == "Menu target updated."
        assert seeded_repo.get_menu_item(MAIN_ID, 1).action_ref == str(other)

    def test_edit_board_target_without_boards(self, seeded_repo, make_session):
        """U <n> on a board item needs at least one board."""
        seeded_repo.delete_board(MAIN_ID, GENERAL_ID)
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "U 1")
        assert screen.toast == "No boards available."
        assert isinstance(session.mode, MenuEditMode)

    def test_edit_conference_target(self, seeded_repo, make_session):
        """U <n> on a conference item picks another conference."""
        alpha = seeded_repo.create_conference("Alpha", "alice")
        session = make_session(seeded_repo)
        send(session, "", "I", "U 1")
        assert isinstance(session.mode, MenuEditConferenceSelectMode)
        assert [c.name for c in session.mode.conferences] == ["Main", "Alpha"]

        assert send(session, "9").toast == "Select a conference number."
        screen = send(session, "2")
        assert screen.toast == "Menu target updated."
        assert isinstance(session.mode, MenuEditMode)
        root_id = seeded_repo.get_root_conference().id
        assert seeded_repo.get_menu_item(root_id, 2).action_ref == str(alpha)

    def test_edit_conference_target_cancel(self, seeded_repo, make_session):
        """0 leaves the conference pick list unchanged."""
        session = make_session(seeded_repo)
        send(session, "", "I", "U 1", "0")
        assert isinstance(session.mode, MenuEditMode)
        root_id = seeded_repo.get_root_conference().id
        assert seeded_repo.get_menu_item(root_id, 2).action_ref == str(MAIN_ID)

    def test_conference_targets_exclude_own_conference(self, seeded_repo, make_session):
        """A conference item never offers the conference it lives in."""
        seeded_repo.create_conference("Alpha", "alice")
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "Elsewhere", ActionType.CONFERENCE, "3", "alice", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2")
        assert isinstance(session.mode, MenuEditConferenceSelectMode)
        assert session.mode.item.id == item_id
        assert [c.name for c in session.mode.conferences] == ["Alpha"]

    def test_add_conference_item_without_other_conferences(self, seeded_repo, make_session):
        """Main cannot link to itself, so there is nothing to pick."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "A", "C", "Loop")
        assert screen.toast == "No conferences available."
        assert isinstance(session.mode, MenuEditMode)

    def test_edit_link_target(self, seeded_repo, make_session):
        """U <n> on a link item captures a new URL."""
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "Site", ActionType.LINK, "https://old.example", "alice", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2")
        assert isinstance(session.mode, MenuEditLinkMode)

        assert send(session, "  ").toast == "URL cannot be empty."
        assert send(session, "x" * 201).toast == "URL must be <= 200 chars."
        assert isinstance(session.mode, MenuEditLinkMode)

        screen = send(session, "https://new.example")
        assert screen.toast == "Menu link updated."
        assert isinstance(session.mode, MenuEditMode)
        assert seeded_repo.get_menu_item(MAIN_ID, item_id).action_ref == "https://new.example"

    def test_edit_link_target_cancel(self, seeded_repo, make_session):
        """0 keeps the old URL."""
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "Site", ActionType.LINK, "https://old.example", "alice", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2", "0")
        assert isinstance(session.mode, MenuEditMode)
        assert seeded_repo.get_menu_item(MAIN_ID, item_id).action_ref == "https://old.example"

    def test_edit_page_target(self, seeded_repo, make_session):
        """U <n> on a page item runs the title and body wizard."""
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "About", ActionType.PAGE, "Old title", "alice", body="old", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2")
        assert isinstance(session.mode, MenuEditPageTitleMode)

        assert send(session, "").toast == "Title cannot be empty."
        assert send(session, "x" * 61).toast == "Title must be <= 60 chars."
        send(session, "New title")
        assert isinstance(session.mode, MenuEditPageBodyMode)

        screen = send(session, "line 1", "line 2", ".")
        assert screen.toast == "Menu page updated."
        assert isinstance(session.mode, MenuEditMode)
        item = seeded_repo.get_menu_item(MAIN_ID, item_id)
        assert (item.action_ref, item.body) == ("New title", "line 1\nline 2")

    def test_edit_page_title_cancel(self, seeded_repo, make_session):
        """0 at the title step leaves the page alone."""
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "About", ActionType.PAGE, "Old title", "alice", body="old", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2", "0")
        assert isinstance(session.mode, MenuEditMode)
        assert seeded_repo.get_menu_item(MAIN_ID, item_id).action_ref == "Old title"

    def test_edit_page_body_cancel_discards_buffer(self, seeded_repo, make_session):
        """0 in the body step drops the captured lines."""
        item_id = seeded_repo.create_menu_item(
            MAIN_ID, "About", ActionType.PAGE, "Old title", "alice", body="old", sort_order=2
        )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I", "U 2", "New title", "draft line", "0")
        assert isinstance(session.mode, MenuEditMode)
        item = seeded_repo.get_menu_item(MAIN_ID, item_id)
        assert (item.action_ref, item.body) == ("Old title", "old")

        send(session, "U 2", "Second try")
        assert session.mode.lines == ()
        send(session, ".")
        assert seeded_repo.get_menu_item(MAIN_ID, item_id).body == ""

    def test_delete_item(self, seeded_repo, make_session):
        """D <n> deletes the item."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "D 1")
        assert screen.toast == "Menu item deleted."
        assert seeded_repo.list_menu_items(MAIN_ID) == []

    def test_invalid_index(self, seeded_repo, make_session):
        """Indices outside the list are rejected."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        assert send(session, "I", "D 5").toast == "Invalid item number."

    def test_stale_item(self, seeded_repo, make_session):
        """An item deleted elsewhere is reported and the list refreshed."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I")
        seeded_repo.delete_menu_item(MAIN_ID, 1)

        screen = send(session, "L 1")
        assert screen.toast == "Menu item not found."
        assert session.mode == MenuEditMode(conference=session.mode.conference, items=())

    def test_boards_only_outside_root(self, seeded_repo, make_session):
        """B is refused in the root conference."""
        session = make_session(seeded_repo)
        screen = send(session, "", "I", "B")
        assert screen.toast == "Boards are not available for root."

    def test_conferences_only_in_root(self, seeded_repo, make_session):
        """C is refused outside the root conference."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "C")
        assert screen.toast == "Conference management is only available in root."


class TestReorder:
    """Tests for M <from> <to>."""

    @pytest.fixture
    def session(self, seeded_repo, make_session):
        """Main conference with items General, B, C, D in menu edit."""
        for sort_order, label in enumerate(("B", "C", "D"), 2):
            seeded_repo.create_menu_item(
                MAIN_ID, label, ActionType.LINK, "https://example.org", "sys", sort_order=sort_order
            )
        session = make_session(seeded_repo)
        to_main_menu(session)
        send(session, "I")
        return session

    def _labels(self, repo):
        return [item.label for item in repo.list_menu_items(MAIN_ID)]

    def test_move_down(self, session, seeded_repo):
        """Moving 1 to 3 shifts the items in between up."""
        screen = send(session, "M 1 3")
        assert screen.toast == "Menu order updated."
        assert self._labels(seeded_repo) == ["B", "C", "General", "D"]
        assert [i.sort_order for i in seeded_repo.list_menu_items(MAIN_ID)] == [1, 2, 3, 4]

    def test_move_up(self, session, seeded_repo):
        """Moving 4 to 1 keeps the rest in order."""
        send(session, "M 4 1")
        assert self._labels(seeded_repo) == ["D", "General", "B", "C"]
        assert [i.sort_order for i in seeded_repo.list_menu_items(MAIN_ID)] == [1, 2, 3, 4]

    def test_out_of_range(self, session, seeded_repo):
        """Positions outside the list are a usage error."""
        screen = send(session, "M 1 9")
        assert screen.toast == "Usage: M <from> <to>"
        assert self._labels(seeded_repo) == ["General", "B", "C", "D"]

    def test_concurrent_addition_keeps_place(self, session, seeded_repo):
        """Items added after the snapshot keep their relative position."""
        seeded_repo.create_menu_item(MAIN_ID, "E", ActionType.LINK, "https://example.org", "sys", sort_order=5)
        send(session, "M 1 2")
        assert self._labels(seeded_repo) == ["B", "General", "C", "D", "E"]
        assert [i.sort_order for i in seeded_repo.list_menu_items(MAIN_ID)] == [1, 2, 3, 4, 5]


class TestMenuAdd:
    """Tests for the add-item wizard."""

    def test_scenario_d_board_item(self, seeded_repo, make_session):
        """A -> B -> label -> board creates a visible board item."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "A", "B", "General", "1")
        assert screen.toast == "Menu item added."

        item = seeded_repo.list_menu_items(MAIN_ID)[-1]
        assert item.action_type == "board"
        assert item.action_ref == str(GENERAL_ID)
        assert item.hidden is False
        assert item.sort_order == 2
        assert item.updated_by == "alice"

    def test_page_item(self, seeded_repo, make_session):
        """A -> P -> label -> title -> body creates a page."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "A", "P", "About", "About us", "We are", "here.", ".")
        assert screen.toast == "Menu page added."
        item = seeded_repo.list_menu_items(MAIN_ID)[-1]
        assert (item.action_type, item.action_ref, item.body) == ("page", "About us", "We are\nhere.")

    def test_link_item(self, seeded_repo, make_session):
        """A -> L -> label -> URL creates a link."""
        session = make_session(seeded_repo)
        to_main_menu(session)
        screen = send(session, "I", "A", "L", "Site", "https://example.org")
        assert screen.toast == "Menu link added."
        assert seeded_repo.list_menu_items(MAIN_ID)[-1].action_ref == "https://example.org"

    def test_conference_item(self, seeded_repo, make_session):
        """A -> C -> label -> conference creates a conference link."""
        session = make_session(seeded_repo)
        send(session, "", "I", "A", "C", "Main again", "1")
        root = seeded_repo.get_root_conference()
        item = seeded_repo.list_menu_items(root.id)[-1]
        assert (item.action_type, item.action_ref) == ("conference", str(MAIN_ID))

    def test_board_item_without_boards(self, seeded_repo, make_session):
        """Root has no boards, so a board item cannot be added there."""
        session = make_session(seeded_repo)
        screen = send(session, "", "I", "A", "B", "Nothing")
        assert screen.toast == "No boards available."
        assert isinstance(session.mode, MenuEditMode)

    def test_invalid_type(self, seeded_repo, make_session):
        """Unknown type letters are rejected."""
        session = make_session(seeded_repo)
        assert send(session, "", "I", "A", "X").toast == "Select type: B, P, L, C, 0"

    def test_next_sort_order(self, seeded_repo):
        """New items go after the highest sort order."""
        assert next_sort_order([]) == 1
        assert next_sort_order(seeded_repo.list_menu_items(MAIN_ID)) == 2


class TestConferenceManage:
    """Tests for conference management from the root."""

    def _open(self, session):
        send(session, "", "I", "C")
        assert isinstance(session.mode, ConferenceManageMode)

    def test_number_enters_root_menu(self, seeded_repo, make_session):
        """A bare number returns to the root menu like 0."""
        session = make_session(seeded_repo)
        self._open(session)
        send(session, "1")
        assert isinstance(session.mode, MenuMode)
        assert session.mode.conference.is_root

    def test_number_without_root_exits(self, repo, make_session):
        """Without a root a bare number ends the session like 0."""
        session = make_session(repo)
        send(session, "A", "Docs")
        assert send(session, "1").wants_exit()

    def test_rename(self, seeded_repo, make_session):
        """R <n> renames a conference."""
        session = make_session(seeded_repo)
        self._open(session)
        screen = send(session, "R 1", "General Chat")
        assert screen.toast == "Conference renamed."
        assert seeded_repo.get_conference(MAIN_ID).name == "General Chat"

    def test_delete_cascades(self, seeded_repo, make_session):
        """D <n> removes the conference with its boards and posts."""
        add_posts(seeded_repo, 2)
        session = make_session(seeded_repo)
        self._open(session)
        screen = send(session, "D 1")
        assert screen.toast == "Conference deleted."
        assert seeded_repo.list_conferences() == []
        assert seeded_repo.get_board(GENERAL_ID) is None
        assert seeded_repo.list_posts(GENERAL_ID, 1, 10) == []

    def test_name_limits(self, seeded_repo, make_session):
        """Names are required and capped."""
        session = make_session(seeded_repo)
        self._open(session)
        assert send(session, "A", "").toast == "Name cannot be empty."
        assert send(session, "x" * 41).toast == "Name must be <= 40 chars."
        assert send(session, "x" * 40).toast == "Conference created."

    def test_configured_limits(self, seeded_repo):
        """Caps come from the session's FieldLimits."""
        session = BbsSession(seeded_repo, limits=FieldLimits(conference_name=5))
        session.handle_hello(user="alice")
        self._open(session)
        assert send(session, "A", "Toolong").toast == "Name must be <= 5 chars."

    def test_back_to_root_menu(self, seeded_repo, make_session):
        """0 returns to the root menu."""
        session = make_session(seeded_repo)
        self._open(session)
        send(session, "0")
        assert isinstance(session.mode, MenuMode)
        assert session.mode.conference.is_root


class TestBoardManage:
    """Tests for board management."""

    def _open(self, session):
        to_main_menu(session)
        send(session, "I", "B")
        assert isinstance(session.mode, BoardManageMode)

    def test_add_rename_delete(self, seeded_repo, make_session):
        """A, R <n> and D <n> manage boards."""
        session = make_session(seeded_repo)
        self._open(session)

        assert send(session, "A", "News").toast == "Board added."
        assert [b.name for b in session.mode.boards] == ["General", "News"]

        assert send(session, "R 2", "Headlines").toast == "Board renamed."
        assert [b.name for b in session.mode.boards] == ["General", "Headlines"]

        assert send(session, "D 2").toast == "Board deleted."
        assert [b.name for b in session.mode.boards] == ["General"]

    def test_delete_removes_posts(self, seeded_repo, make_session):
        """Deleting a board deletes its posts."""
        post_ids = add_posts(seeded_repo, 3)
        session = make_session(seeded_repo)
        self._open(session)
        send(session, "D 1")
        assert all(seeded_repo.get_post(post_id) is None for post_id in post_ids)

    def test_back_to_menu_edit(self, seeded_repo, make_session):
        """0 returns to the menu edit screen."""
        session = make_session(seeded_repo)
        self._open(session)
        send(session, "0")
        assert isinstance(session.mode, MenuEditMode)


class TestPosts:
    """Tests for reading and writing posts."""

    def test_scenario_b_already_first_page(self, seeded_repo, make_session):
        """P on page 1 keeps the mode and explains why."""
        add_posts(seeded_repo, 10)
        session = make_session(seeded_repo)
        to_board(session)
        before = session.mode

        screen = send(session, "P")
        assert screen.toast == "Already at first page."
        assert session.mode == before

    def test_newest_first_and_paging(self, seeded_repo, make_session):
        """Posts are listed newest first, page size at a time."""
        ids = add_posts(seeded_repo, 15)
        session = make_session(seeded_repo)
        to_board(session)
        assert [p.id for p in session.mode.posts] == ids[::-1][:10]

        send(session, "N")
        assert session.mode.page == 2
        assert [p.id for p in session.mode.posts] == ids[::-1][10:]

        screen = send(session, "N")
        assert screen.toast == "No more posts."
        assert session.mode.page == 2

        send(session, "P")
        assert session.mode.page == 1

    def test_page_size_from_hello(self, seeded_repo, make_session):
        """The hello page size controls the listing."""
        add_posts(seeded_repo, 5)
        session = make_session(seeded_repo, page_size=2)
        to_board(session)
        assert len(session.mode.posts) == 2

    def test_scenario_c_write_post(self, seeded_repo, make_session):
        """W -> title -> body -> '.' creates the post."""
        session = make_session(seeded_repo)
        to_board(session)
        send(session, "W")
        assert isinstance(session.mode, WriteTitleMode)
        send(session, "Hello", "line one", "line two")
        assert isinstance(session.mode, WriteBodyMode)

        screen = send(session, ".")
        post_id = seeded_repo.list_posts(GENERAL_ID, 1, 10)[0].id
        post = seeded_repo.get_post(post_id)
        assert post.title == "Hello"
        assert post.body == "line one\nline two"
        assert post.author == "alice"
        assert screen.toast == f"Posted #{post_id}"
        assert isinstance(session.mode, PostsMode)
        assert session.mode.page == 1

    def test_empty_body_rejected(self, seeded_repo, make_session):
        """A whitespace-only body is not posted."""
        session = make_session(seeded_repo)
        to_board(session)
        screen = send(session, "W", "Hello", "   ", ".")
        assert screen.toast == "Body cannot be empty."
        assert isinstance(session.mode, WriteBodyMode)
        assert seeded_repo.list_posts(GENERAL_ID, 1, 10) == []

    def test_title_required(self, seeded_repo, make_session):
        """An empty post title is rejected."""
        session = make_session(seeded_repo)
        to_board(session)
        assert send(session, "W", "").toast == "Title cannot be empty."
        assert isinstance(session.mode, WriteTitleMode)

    def test_cancel_write(self, seeded_repo, make_session):
        """0 in the body wizard returns to the list without posting."""
        session = make_session(seeded_repo)
        to_board(session)
        send(session, "W", "Hello", "draft", "0")
        assert isinstance(session.mode, PostsMode)
        assert seeded_repo.list_posts(GENERAL_ID, 1, 10) == []

    def test_read_post(self, seeded_repo, make_session):
        """R <id> opens a post of this board."""
        (post_id,) = add_posts(seeded_repo, 1)
        session = make_session(seeded_repo)
        to_board(session)
        screen = send(session, f"R {post_id}")
        assert isinstance(session.mode, PostMode)
        assert "Body 1" in screen.lines

    def test_bare_r_usage(self, seeded_repo, make_session):
        """R without an id explains usage."""
        session = make_session(seeded_repo)
        to_board(session)
        assert send(session, "R").toast == "Usage: R <postId>"

    def test_scenario_e_post_from_other_board(self, seeded_repo, make_session):
        """A post of another board is not found here."""
        other = seeded_repo.create_board(MAIN_ID, "Other")
        (post_id,) = add_posts(seeded_repo, 1, board_id=other)
        session = make_session(seeded_repo)
        to_board(session)

        screen = send(session, f"R {post_id}")
        assert screen.toast == f"Post not found: {post_id}"
        assert isinstance(session.mode, PostsMode)
        assert session.mode.board.id == GENERAL_ID

    def test_post_id_beyond_integer_range(self, seeded_repo, make_session):
        """Ids too large for the database are simply not found."""
        session = make_session(seeded_repo)
        to_board(session)

        screen = send(session, "R 99999999999999999999")
        assert screen.toast == "Post not found: 99999999999999999999"
        assert isinstance(session.mode, PostsMode)

    def test_post_reader_pages(self, seeded_repo, make_session):
        """N and P move through the post; the ends are clamped."""
        body = "\n".join(f"L{i}" for i in range(1, 41))
        post_id = seeded_repo.create_post(GENERAL_ID, "Long", body, "bob")
        session = make_session(seeded_repo)
        to_board(session)
        send(session, f"R {post_id}", "N")
        assert session.mode.page == 2

        screen = send(session, "N", "N")
        assert screen.toast == "End of post."
        assert session.mode.page == 3

        screen = send(session, "P", "P", "P")
        assert screen.toast == "End of post."
        assert session.mode.page == 1

    def test_post_back_returns_to_list_page(self, seeded_repo, make_session):
        """0 from a post returns to the list page it was opened from."""
        ids = add_posts(seeded_repo, 12)
        session = make_session(seeded_repo)
        to_board(session)
        send(session, "N", f"R {ids[0]}", "0")
        assert isinstance(session.mode, PostsMode)
        assert session.mode.page == 2

    def test_board_deleted_while_reading(self, seeded_repo, make_session):
        """Returning to a vanished board falls back to the menu."""
        (post_id,) = add_posts(seeded_repo, 1)
        session = make_session(seeded_repo)
        to_board(session)
        send(session, f"R {post_id}")
        seeded_repo.delete_board(MAIN_ID, GENERAL_ID)

        screen = send(session, "0")
        assert screen.toast == "Board not found."
        assert isinstance(session.mode, MenuMode)
