"""Screen renderer: maps a session mode to a ScreenModel."""

from dataclasses import dataclass, replace

from ..interfaces import ActionType, MenuItem
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
from .screen import EXIT_ACTION, INPUT_LINE, INPUT_MULTILINE, ScreenAction, ScreenModel
from .terminal import TerminalContext
from .text import Pagination, format_date, split_plain_lines, wrap_line, wrap_text
from .text import sanitize_plain_text as clean

# Header/footer lines around a paginated body (post and page views).
READER_OVERHEAD = 9
# Header/footer lines around a multi-line capture preview.
CAPTURE_OVERHEAD = 10
MIN_BODY_HEIGHT = 5

BODY_PROMPT = "Enter body. '.' on its own line to finish. '0' to cancel."
MENU_BODY_PROMPT = "Enter menu text. '.' on its own line to finish. '0' to cancel."

MANAGE_HINT = "Commands: A=Add  R <n>=Rename  D <n>=Delete  0=Back"
READER_HINT = "Commands: N=Next page  P=Prev page  0=Back"
MENU_EDIT_HINT = (
    "Commands: A=Add  L <n>=Label  N <n>=No  Y <n>=Type  U <n>=Target  "
    "H <n>=Hide  D <n>=Delete  M <from> <to>=Move  0=Back"
)


@dataclass
class _Body:
    """Mode-specific part of a screen produced by one renderer method."""

    lines: list[str]
    hints: list[str] | None = None
    input_mode: str = INPUT_LINE
    # Set by the paginated readers when the stored page had to be clamped.
    mode: Mode | None = None
    toast: str | None = None


def _rule(cols: int) -> str:
    return "-" * min(cols, 80)


def _numbered(names: list[str]) -> list[str]:
    return [f"{i}) {clean(name)}" for i, name in enumerate(names, 1)]


def _target_detail(item: MenuItem) -> str:
    if item.action_type == ActionType.BOARD:
        return f"board:{item.action_ref}"
    if item.action_type == ActionType.PAGE:
        return f"page:{clean(item.action_ref or '-')}"
    if item.action_type == ActionType.CONFERENCE:
        return f"conference:{item.action_ref}"
    return f"link:{clean(item.action_ref)}"


class ScreenRenderer:
    """Renders session modes as screens.

    Rendering is pure apart from one correction: the post and page readers
    clamp a page number that no longer fits the terminal, so ``render``
    returns the (possibly corrected) mode alongside the screen.
    """

    def __init__(self, title: str = "text-bbs"):
        self.title = title
        self._renderers = {
            ConferenceManageMode: self._conference_manage,
            ConferenceAddMode: self._conference_add,
            ConferenceRenameMode: self._conference_rename,
            WelcomeMode: self._welcome,
            WelcomeEditTitleMode: self._welcome_edit_title,
            WelcomeEditBodyMode: self._welcome_edit_body,
            MenuMode: self._menu,
            MenuDesignTitleMode: self._menu_design_title,
            MenuDesignBodyMode: self._menu_design_body,
            MenuEditMode: self._menu_edit,
            MenuEditLabelMode: self._menu_edit_label,
            MenuEditDisplayNoMode: self._menu_edit_display_no,
            MenuEditDisplayTypeMode: self._menu_edit_display_type,
            MenuEditBoardSelectMode: self._menu_edit_board_select,
            MenuEditConferenceSelectMode: self._menu_edit_conference_select,
            MenuEditLinkMode: self._menu_edit_link,
            MenuEditPageTitleMode: self._menu_edit_page_title,
            MenuEditPageBodyMode: self._menu_edit_page_body,
            MenuAddTypeMode: self._menu_add_type,
            MenuAddLabelMode: self._menu_add_label,
            MenuAddBoardSelectMode: self._menu_add_board_select,
            MenuAddConferenceSelectMode: self._menu_add_conference_select,
            MenuAddPageTitleMode: self._menu_add_page_title,
            MenuAddPageBodyMode: self._menu_add_page_body,
            MenuAddLinkMode: self._menu_add_link,
            BoardManageMode: self._board_manage,
            BoardAddMode: self._board_add,
            BoardRenameMode: self._board_rename,
            PostsMode: self._posts,
            PostMode: self._post,
            WriteTitleMode: self._write_title,
            WriteBodyMode: self._write_body,
            PageMode: self._page,
            LinkMode: self._link,
        }

    def render(self, mode: Mode, ctx: TerminalContext, toast: str | None = None) -> tuple[ScreenModel, Mode]:
        """
        Render a mode for the given terminal.

        Args:
            mode: Current session mode.
            ctx: Terminal context (user, rows, cols).
            toast: Pending one-shot message, shown on this screen only.

        Returns:
            Tuple of (screen, mode). The mode differs from the input only
            when a reader page had to be clamped.

        Raises:
            TypeError: If the mode has no renderer.
        """
        renderer = self._renderers.get(type(mode))
        if renderer is None:
            raise TypeError(f"No renderer for mode {type(mode).__name__}")

        body = renderer(mode, ctx)
        if isinstance(body, list):
            body = _Body(body)
        if body.mode is not None:
            mode = body.mode
        if body.toast:
            toast = body.toast

        screen = ScreenModel(
            title=self.title,
            lines=tuple(body.lines),
            prompt="> ",
            input_mode=body.input_mode,
            hints=tuple(body.hints) if body.hints else None,
            toast=toast or None,
        )
        return screen, mode

    def exit_screen(self, toast: str | None = None) -> ScreenModel:
        """Render the goodbye screen that tells the transport to close."""
        return ScreenModel(
            title="Bye",
            lines=("Session ended.",),
            prompt="",
            input_mode=INPUT_LINE,
            toast=toast or None,
            actions=(ScreenAction(type=EXIT_ACTION),),
        )

    # Shared pieces

    def _header(self, ctx: TerminalContext) -> list[str]:
        return [f"user={clean(ctx.user)}", ""]

    def _prompt_screen(self, ctx: TerminalContext, *lines: str):
        return self._header(ctx) + list(lines)

    def _capture(
        self,
        ctx: TerminalContext,
        heading: list[str],
        captured: tuple[str, ...],
        prompt: str = BODY_PROMPT,
        wrap: bool = True,
    ) -> _Body:
        preview_height = max(ctx.rows - CAPTURE_OVERHEAD, MIN_BODY_HEIGHT)
        lines = self._header(ctx) + heading
        lines.append("")
        lines.append(prompt)
        lines.append(_rule(ctx.cols))
        for line in captured[-preview_height:]:
            if wrap:
                lines.extend(wrap_line(clean(line), ctx.cols))
            else:
                lines.append(clean(line))
        lines.append(_rule(ctx.cols))
        return _Body(lines, input_mode=INPUT_MULTILINE)

    def _conference_tag(self, mode) -> str:
        return f"[Conference: {clean(mode.conference.name)}]"

    def _board_tag(self, mode) -> str:
        return f"{self._conference_tag(mode)} [Board: {clean(mode.board.name)}]"

    # Conferences

    def _conference_manage(self, mode: ConferenceManageMode, ctx: TerminalContext):
        lines = self._header(ctx) + ["Conferences:", ""]
        if mode.conferences:
            lines.extend(_numbered([c.name for c in mode.conferences]))
        else:
            lines.append("(no conferences)")
        return _Body(lines, hints=["Commands: A=Add  R <n>=Rename  D <n>=Delete  <n> or 0=Root menu"])

    def _conference_add(self, mode: ConferenceAddMode, ctx: TerminalContext):
        return self._prompt_screen(ctx, "Add Conference", "", "Enter name (0 to cancel):")

    def _conference_rename(self, mode: ConferenceRenameMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            "Rename Conference",
            "",
            f"Current: {clean(mode.conference.name)}",
            "Enter new name (0 to cancel):",
        )

    # Welcome

    def _welcome(self, mode: WelcomeMode, ctx: TerminalContext):
        conference = mode.conference
        lines = self._header(ctx) + [self._conference_tag(mode), ""]

        if conference.welcome_title:
            lines.extend([clean(conference.welcome_title), ""])

        if conference.welcome_body:
            lines.extend(wrap_text(conference.welcome_body, ctx.cols))
            lines.append("")
        elif not conference.welcome_title:
            lines.extend(["(no welcome message)", ""])

        updated_by = clean(conference.updated_by) if conference.updated_by else "unknown"
        updated_at = format_date(conference.updated_at)
        lines.append(f"Last updated: {updated_by}" + (f" @ {updated_at}" if updated_at else ""))
        lines.append("")
        lines.append("Press any key to continue.")
        return _Body(lines, hints=["Commands: E=Edit welcome  <any>=Continue"])

    def _welcome_edit_title(self, mode: WelcomeEditTitleMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Welcome Edit",
            "",
            f"Current title: {clean(mode.conference.welcome_title or '(none)')}",
            "",
            "Enter new title (0 to cancel):",
        )

    def _welcome_edit_body(self, mode: WelcomeEditBodyMode, ctx: TerminalContext):
        heading = [f"{self._conference_tag(mode)} Welcome Edit", f"Title: {clean(mode.title)}"]
        return self._capture(ctx, heading, mode.lines)

    # Menu

    def _menu(self, mode: MenuMode, ctx: TerminalContext):
        conference = mode.conference
        back_label = "Exit" if conference.is_root else "Back"
        hints = [f"Commands: <num>=Open  E=Design  I=Items  0={back_label}"]

        if conference.menu_body.strip():
            return _Body(self._header(ctx) + split_plain_lines(conference.menu_body), hints=hints)

        menu_title = clean(conference.menu_title) if conference.menu_title else "Menu"
        lines = self._header(ctx) + [f"{self._conference_tag(mode)} {menu_title}", ""]

        visible = mode.visible_items()
        if not visible:
            lines.append("(no menu items)")
        for number, item in enumerate(visible, 1):
            label = clean(item.label)
            parts = [part for part in (clean(item.display_no), label, clean(item.display_type)) if part]
            detail = " ".join(parts) if parts else label
            lines.append(f"{number}) {detail}")

        return _Body(lines, hints=hints)

    def _menu_design_title(self, mode: MenuDesignTitleMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Menu Design",
            "",
            f"Current title: {clean(mode.conference.menu_title or '(none)')}",
            "Enter new title (0 to cancel):",
        )

    def _menu_design_body(self, mode: MenuDesignBodyMode, ctx: TerminalContext):
        heading = [f"{self._conference_tag(mode)} Menu Design", f"Title: {clean(mode.title or '(none)')}"]
        return self._capture(ctx, heading, mode.lines, prompt=MENU_BODY_PROMPT, wrap=False)

    # Menu item management

    def _menu_edit(self, mode: MenuEditMode, ctx: TerminalContext):
        lines = self._header(ctx) + [f"{self._conference_tag(mode)} Menu Edit", ""]

        if not mode.items:
            lines.append("(no menu items)")
        for i, item in enumerate(mode.items, 1):
            status = "hidden" if item.hidden else "show"
            display_no = f"no={clean(item.display_no)}" if item.display_no else "no=-"
            display_type = f"type={clean(item.display_type)}" if item.display_type else "type=-"
            lines.append(
                f"{i}) [{status}] {display_no} {display_type} {clean(item.label)} ({_target_detail(item)})"
            )

        hints = [MENU_EDIT_HINT]
        hints.append("Extra: C=Conferences" if mode.conference.is_root else "Extra: B=Boards")
        return _Body(lines, hints=hints)

    def _menu_edit_label(self, mode: MenuEditLabelMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Edit Label",
            f"Current: {clean(mode.item.label)}",
            "Enter new label (0 to cancel):",
        )

    def _menu_edit_display_no(self, mode: MenuEditDisplayNoMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Edit Display No",
            f"Current: {clean(mode.item.display_no or '(none)')}",
            "Enter new display number (0 to cancel):",
        )

    def _menu_edit_display_type(self, mode: MenuEditDisplayTypeMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Edit Display Type",
            f"Current: {clean(mode.item.display_type or '(none)')}",
            "Enter new display type (0 to cancel):",
        )

    def _select_list(self, ctx, heading: str, context_line: str, noun: str, names: list[str]):
        lines = self._header(ctx) + [heading, context_line, "", f"Select a {noun}:", ""]
        lines.extend(_numbered(names))
        lines.append("0) Cancel")
        return lines

    def _menu_edit_board_select(self, mode: MenuEditBoardSelectMode, ctx: TerminalContext):
        return self._select_list(
            ctx,
            f"{self._conference_tag(mode)} Edit Board Target",
            f"Label: {clean(mode.item.label)}",
            "board",
            [b.name for b in mode.boards],
        )

    def _menu_edit_conference_select(self, mode: MenuEditConferenceSelectMode, ctx: TerminalContext):
        return self._select_list(
            ctx,
            f"{self._conference_tag(mode)} Edit Conference Target",
            f"Label: {clean(mode.item.label)}",
            "conference",
            [c.name for c in mode.conferences],
        )

    def _menu_edit_link(self, mode: MenuEditLinkMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Edit Link",
            f"Current: {clean(mode.item.action_ref)}",
            "Enter new URL (0 to cancel):",
        )

    def _menu_edit_page_title(self, mode: MenuEditPageTitleMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Edit Page",
            f"Current title: {clean(mode.item.action_ref or '(none)')}",
            "Enter new title (0 to cancel):",
        )

    def _menu_edit_page_body(self, mode: MenuEditPageBodyMode, ctx: TerminalContext):
        heading = [f"{self._conference_tag(mode)} Edit Page", f"Title: {clean(mode.title)}"]
        return self._capture(ctx, heading, mode.lines)

    def _menu_add_type(self, mode: MenuAddTypeMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Add Menu Item",
            "",
            "Select type:",
            "B) Board",
            "P) Page",
            "L) Link",
            "C) Conference",
            "0) Cancel",
        )

    def _menu_add_label(self, mode: MenuAddLabelMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Add Menu Item",
            "",
            f"Type: {mode.action_type}",
            "Enter label (0 to cancel):",
        )

    def _menu_add_board_select(self, mode: MenuAddBoardSelectMode, ctx: TerminalContext):
        return self._select_list(
            ctx,
            f"{self._conference_tag(mode)} Add Menu Item",
            f"Label: {clean(mode.label)}",
            "board",
            [b.name for b in mode.boards],
        )

    def _menu_add_conference_select(self, mode: MenuAddConferenceSelectMode, ctx: TerminalContext):
        return self._select_list(
            ctx,
            f"{self._conference_tag(mode)} Add Menu Item",
            f"Label: {clean(mode.label)}",
            "conference",
            [c.name for c in mode.conferences],
        )

    def _menu_add_page_title(self, mode: MenuAddPageTitleMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Add Page",
            f"Label: {clean(mode.label)}",
            "",
            "Enter page title (0 to cancel):",
        )

    def _menu_add_page_body(self, mode: MenuAddPageBodyMode, ctx: TerminalContext):
        heading = [
            f"{self._conference_tag(mode)} Add Page",
            f"Label: {clean(mode.label)}",
            f"Title: {clean(mode.title)}",
        ]
        return self._capture(ctx, heading, mode.lines)

    def _menu_add_link(self, mode: MenuAddLinkMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Add Link",
            f"Label: {clean(mode.label)}",
            "",
            "Enter URL (0 to cancel):",
        )

    # Boards

    def _board_manage(self, mode: BoardManageMode, ctx: TerminalContext):
        lines = self._header(ctx) + [f"{self._conference_tag(mode)} Board Manage", ""]
        if mode.boards:
            lines.extend(_numbered([b.name for b in mode.boards]))
        else:
            lines.append("(no boards)")
        return _Body(lines, hints=[MANAGE_HINT])

    def _board_add(self, mode: BoardAddMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx, f"{self._conference_tag(mode)} Add Board", "", "Enter board name (0 to cancel):"
        )

    def _board_rename(self, mode: BoardRenameMode, ctx: TerminalContext):
        return self._prompt_screen(
            ctx,
            f"{self._conference_tag(mode)} Rename Board",
            "",
            f"Current: {clean(mode.board.name)}",
            "Enter new name (0 to cancel):",
        )

    # Posts

    def _posts(self, mode: PostsMode, ctx: TerminalContext):
        lines = self._header(ctx) + [f"{self._board_tag(mode)} Page {mode.page}", ""]
        if not mode.posts:
            lines.append("(no posts)")
        for post in mode.posts:
            lines.append(f"{post.id}\t{clean(post.title)}\t({clean(post.author)}, {format_date(post.created_at)})")
        return _Body(lines, hints=["Commands: N=Next  P=Prev  R <id>=Read  W=Write  0=Menu"])

    def _reader_pagination(self, text: str, requested_page: int, ctx: TerminalContext) -> Pagination:
        height = max(ctx.rows - READER_OVERHEAD, MIN_BODY_HEIGHT)
        return Pagination.for_text(text, ctx.cols, height, requested_page)

    def _post(self, mode: PostMode, ctx: TerminalContext):
        pagination = self._reader_pagination(mode.post.body, mode.page, ctx)
        page, total = pagination.page, pagination.total_pages()

        lines = self._header(ctx)
        lines.append(f"{self._board_tag(mode)} Post #{mode.post.id} ({page}/{total})")
        lines.append(f"Title: {clean(mode.post.title)}")
        lines.append(f"Author: {clean(mode.post.author)}")
        lines.append(f"Date: {format_date(mode.post.created_at)}")
        lines.append(_rule(ctx.cols))
        lines.extend(pagination.current_lines())
        lines.append(_rule(ctx.cols))

        if pagination.was_clamped:
            return _Body(lines, hints=[READER_HINT], mode=replace(mode, page=page), toast="End of post.")
        return _Body(lines, hints=[READER_HINT])

    def _write_title(self, mode: WriteTitleMode, ctx: TerminalContext):
        return self._prompt_screen(ctx, f"{self._board_tag(mode)} Write Post", "", "Enter title (0 to cancel):")

    def _write_body(self, mode: WriteBodyMode, ctx: TerminalContext):
        heading = [f"{self._board_tag(mode)} Write Post", f"Title: {clean(mode.title)}"]
        return self._capture(ctx, heading, mode.lines)

    # Static content

    def _page(self, mode: PageMode, ctx: TerminalContext):
        pagination = self._reader_pagination(mode.item.body, mode.page, ctx)
        page, total = pagination.page, pagination.total_pages()

        lines = self._header(ctx)
        lines.append(f"{self._conference_tag(mode)} Page ({page}/{total})")
        lines.append(f"Title: {clean(mode.item.action_ref or mode.item.label)}")
        lines.append(_rule(ctx.cols))
        lines.extend(pagination.current_lines())
        lines.append(_rule(ctx.cols))

        if pagination.was_clamped:
            return _Body(lines, hints=[READER_HINT], mode=replace(mode, page=page), toast="End of page.")
        return _Body(lines, hints=[READER_HINT])

    def _link(self, mode: LinkMode, ctx: TerminalContext):
        lines = self._header(ctx)
        lines.append(f"{self._conference_tag(mode)} Link")
        lines.append(f"Label: {clean(mode.item.label)}")
        lines.append("URL:")
        lines.extend(wrap_line(clean(mode.item.action_ref), ctx.cols))
        lines.append("")
        lines.append("Open this URL in your browser.")
        return _Body(lines, hints=["Commands: 0=Back"])

