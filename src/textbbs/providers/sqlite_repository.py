"""SQLite-backed BBS repository."""

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from ..interfaces import ActionType, BbsRepository, Board, Conference, MenuItem, Post, PostSummary

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

SCHEMA = """
CREATE TABLE IF NOT EXISTS conferences (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT,
    name TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    is_root INTEGER NOT NULL DEFAULT 0,
    welcome_title TEXT NOT NULL DEFAULT '',
    welcome_body TEXT NOT NULL DEFAULT '',
    menu_title TEXT NOT NULL DEFAULT '',
    menu_body TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL,
    updated_by TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS conference_menu_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    conference_id INTEGER NOT NULL REFERENCES conferences(id),
    label TEXT NOT NULL,
    display_no TEXT NOT NULL DEFAULT '',
    display_type TEXT NOT NULL DEFAULT '',
    action_type TEXT NOT NULL,
    action_ref TEXT NOT NULL,
    body TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0,
    hidden INTEGER NOT NULL DEFAULT 0,
    enabled INTEGER NOT NULL DEFAULT 1,
    updated_at TEXT NOT NULL,
    updated_by TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS boards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    conference_id INTEGER REFERENCES conferences(id)
);

CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    board_id INTEGER NOT NULL REFERENCES boards(id),
    title TEXT NOT NULL,
    body TEXT NOT NULL,
    author TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_boards_conference_sort
    ON boards(conference_id, sort_order, id);

CREATE INDEX IF NOT EXISTS idx_menu_items_conference_sort
    ON conference_menu_items(conference_id, sort_order, id);

CREATE INDEX IF NOT EXISTS idx_posts_board_id_id_desc
    ON posts(board_id, id DESC);
"""

CONFERENCE_COLUMNS = (
    "id, slug, name, sort_order, is_root, welcome_title, welcome_body, "
    "menu_title, menu_body, updated_at, updated_by"
)
MENU_ITEM_COLUMNS = (
    "id, conference_id, label, display_no, display_type, action_type, action_ref, "
    "body, sort_order, hidden, updated_at, updated_by"
)


def utc_now() -> str:
    """Current time as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _conference(row: sqlite3.Row) -> Conference:
    return Conference(
        id=row["id"],
        slug=row["slug"],
        name=row["name"],
        sort_order=row["sort_order"],
        is_root=bool(row["is_root"]),
        welcome_title=row["welcome_title"],
        welcome_body=row["welcome_body"],
        menu_title=row["menu_title"],
        menu_body=row["menu_body"],
        updated_at=row["updated_at"],
        updated_by=row["updated_by"],
    )


def _menu_item(row: sqlite3.Row) -> MenuItem:
    return MenuItem(
        id=row["id"],
        conference_id=row["conference_id"],
        label=row["label"],
        display_no=row["display_no"],
        display_type=row["display_type"],
        action_type=row["action_type"],
        action_ref=row["action_ref"],
        body=row["body"],
        sort_order=row["sort_order"],
        hidden=bool(row["hidden"]),
        updated_at=row["updated_at"],
        updated_by=row["updated_by"],
    )


def _board(row: sqlite3.Row) -> Board:
    return Board(
        id=row["id"],
        name=row["name"],
        conference_id=row["conference_id"],
        sort_order=row["sort_order"],
    )


class SqliteRepository(BbsRepository):
    """BBS repository stored in a single SQLite database.

    One connection is shared by every thread; a lock serializes access to
    it. Multi-statement mutations (conference delete, menu reorder) run in
    one transaction.
    """

    def __init__(self, db_path: str | Path = ":memory:"):
        """
        Open (creating if needed) the database and its schema.

        Args:
            db_path: Database file, or ``":memory:"`` for a private in-memory store.
        """
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        # Return rows as dictionaries
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.init_schema()

    def init_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        with self._lock:
            if self.db_path != ":memory:":
                self.conn.execute("PRAGMA journal_mode = WAL")
            self.conn.executescript(SCHEMA)
            self.conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.conn.close()
        logger.debug(f"Closed database {self.db_path}")

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def _query_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock, self.conn:
            return self.conn.execute(sql, params)

    # Bootstrap

    def seed_defaults(self) -> None:
        """
        Create the default conferences, board and menu items if missing.

        Idempotent: a root conference ("Lobby"), a first conference ("Main")
        with a "General" board, a board menu item in Main for each of its
        boards, and a root menu item pointing at the first conference.
        """
        now = utc_now()
        with self._lock, self.conn:
            cur = self.conn.cursor()

            root = self.get_root_conference()
            if root is None:
                cur.execute(
                    "INSERT INTO conferences (slug, name, sort_order, is_root, welcome_title, menu_title, "
                    "updated_at, updated_by) VALUES ('root', 'Lobby', 0, 1, 'Welcome', 'Menu', ?, ?)",
                    (now, SYSTEM_USER),
                )
                root_id = cur.lastrowid
                logger.info(f"Seeded root conference {root_id}")
            else:
                root_id = root.id

            conferences = self.list_conferences()
            if conferences:
                main_id = conferences[0].id
            else:
                cur.execute(
                    "INSERT INTO conferences (slug, name, sort_order, is_root, welcome_title, menu_title, "
                    "updated_at, updated_by) VALUES ('main', 'Main', 1, 0, 'Welcome', 'Menu', ?, ?)",
                    (now, SYSTEM_USER),
                )
                main_id = cur.lastrowid
                logger.info(f"Seeded conference {main_id}")

            # Boards from before conferences existed belong to the first conference.
            cur.execute("UPDATE boards SET conference_id = ? WHERE conference_id IS NULL", (main_id,))

            if not self.list_boards(main_id):
                cur.execute(
                    "INSERT INTO boards (name, sort_order, conference_id) VALUES ('General', 1, ?)",
                    (main_id,),
                )

            if not self.list_menu_items(main_id):
                for sort_order, board in enumerate(self.list_boards(main_id), 1):
                    self._insert_menu_item(
                        cur, main_id, board.name, ActionType.BOARD, str(board.id), "", sort_order, now
                    )

            if not self.list_menu_items(root_id):
                first = self.list_conferences()[0]
                self._insert_menu_item(
                    cur, root_id, first.name, ActionType.CONFERENCE, str(first.id), "", 1, now
                )

    # Conferences

    def list_conferences(self) -> list[Conference]:
        rows = self._query(
            f"SELECT {CONFERENCE_COLUMNS} FROM conferences WHERE is_root = 0 ORDER BY sort_order, id"
        )
        return [_conference(row) for row in rows]

    def get_conference(self, conference_id: int) -> Conference | None:
        row = self._query_one(f"SELECT {CONFERENCE_COLUMNS} FROM conferences WHERE id = ?", (conference_id,))
        return _conference(row) if row else None

    def get_root_conference(self) -> Conference | None:
        row = self._query_one(
            f"SELECT {CONFERENCE_COLUMNS} FROM conferences WHERE is_root = 1 ORDER BY id LIMIT 1"
        )
        return _conference(row) if row else None

    def create_conference(self, name: str, updated_by: str) -> int:
        with self._lock, self.conn:
            row = self.conn.execute("SELECT COALESCE(MAX(sort_order), 0) FROM conferences").fetchone()
            cur = self.conn.execute(
                "INSERT INTO conferences (slug, name, sort_order, is_root, welcome_title, menu_title, "
                "updated_at, updated_by) VALUES (NULL, ?, ?, 0, 'Welcome', 'Menu', ?, ?)",
                (name, row[0] + 1, utc_now(), updated_by),
            )
            return cur.lastrowid

    def rename_conference(self, conference_id: int, name: str, updated_by: str) -> bool:
        cur = self._write(
            "UPDATE conferences SET name = ?, updated_at = ?, updated_by = ? WHERE id = ? AND is_root = 0",
            (name, utc_now(), updated_by, conference_id),
        )
        return cur.rowcount > 0

    def delete_conference(self, conference_id: int) -> bool:
        with self._lock, self.conn:
            row = self.conn.execute(
                "SELECT id FROM conferences WHERE id = ? AND is_root = 0", (conference_id,)
            ).fetchone()
            if row is None:
                return False
            self.conn.execute(
                "DELETE FROM posts WHERE board_id IN (SELECT id FROM boards WHERE conference_id = ?)",
                (conference_id,),
            )
            self.conn.execute("DELETE FROM boards WHERE conference_id = ?", (conference_id,))
            self.conn.execute("DELETE FROM conference_menu_items WHERE conference_id = ?", (conference_id,))
            self.conn.execute("DELETE FROM conferences WHERE id = ?", (conference_id,))
        logger.info(f"Deleted conference {conference_id} with its boards and menu")
        return True

    def update_welcome(self, conference_id: int, title: str, body: str, updated_by: str) -> None:
        self._write(
            "UPDATE conferences SET welcome_title = ?, welcome_body = ?, updated_at = ?, updated_by = ? "
            "WHERE id = ?",
            (title, body, utc_now(), updated_by, conference_id),
        )

    def update_menu(self, conference_id: int, title: str, body: str, updated_by: str) -> None:
        self._write(
            "UPDATE conferences SET menu_title = ?, menu_body = ?, updated_at = ?, updated_by = ? WHERE id = ?",
            (title, body, utc_now(), updated_by, conference_id),
        )

    # Menu items

    def _insert_menu_item(
        self,
        cur: sqlite3.Cursor,
        conference_id: int,
        label: str,
        action_type: str,
        action_ref: str,
        body: str,
        sort_order: int,
        updated_at: str,
        updated_by: str = SYSTEM_USER,
        display_no: str = "",
        display_type: str = "",
        hidden: bool = False,
    ) -> int:
        cur.execute(
            "INSERT INTO conference_menu_items (conference_id, label, display_no, display_type, action_type, "
            "action_ref, body, sort_order, hidden, enabled, updated_at, updated_by) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                conference_id,
                label,
                display_no,
                display_type,
                action_type,
                action_ref,
                body,
                sort_order,
                int(hidden),
                int(not hidden),
                updated_at,
                updated_by,
            ),
        )
        return cur.lastrowid

    def list_menu_items(self, conference_id: int) -> list[MenuItem]:
        rows = self._query(
            f"SELECT {MENU_ITEM_COLUMNS} FROM conference_menu_items WHERE conference_id = ? ORDER BY sort_order, id",
            (conference_id,),
        )
        return [_menu_item(row) for row in rows]

    def get_menu_item(self, conference_id: int, item_id: int) -> MenuItem | None:
        row = self._query_one(
            f"SELECT {MENU_ITEM_COLUMNS} FROM conference_menu_items WHERE id = ? AND conference_id = ?",
            (item_id, conference_id),
        )
        return _menu_item(row) if row else None

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
        if action_type not in ActionType.ALL:
            raise ValueError(f"Unknown menu action type: {action_type}")
        with self._lock, self.conn:
            return self._insert_menu_item(
                self.conn.cursor(),
                conference_id,
                label,
                action_type,
                action_ref,
                body,
                sort_order,
                utc_now(),
                updated_by=updated_by,
                display_no=display_no,
                display_type=display_type,
                hidden=hidden,
            )

    def delete_menu_item(self, conference_id: int, item_id: int) -> bool:
        cur = self._write(
            "DELETE FROM conference_menu_items WHERE id = ? AND conference_id = ?", (item_id, conference_id)
        )
        return cur.rowcount > 0

    def set_hidden(self, conference_id: int, item_id: int, hidden: bool, updated_by: str) -> bool:
        cur = self._write(
            "UPDATE conference_menu_items SET hidden = ?, enabled = ?, updated_at = ?, updated_by = ? "
            "WHERE id = ? AND conference_id = ?",
            (int(hidden), int(not hidden), utc_now(), updated_by, item_id, conference_id),
        )
        return cur.rowcount > 0

    def update_meta(
        self,
        conference_id: int,
        item_id: int,
        label: str,
        display_no: str,
        display_type: str,
        updated_by: str,
    ) -> bool:
        cur = self._write(
            "UPDATE conference_menu_items SET label = ?, display_no = ?, display_type = ?, updated_at = ?, "
            "updated_by = ? WHERE id = ? AND conference_id = ?",
            (label, display_no, display_type, utc_now(), updated_by, item_id, conference_id),
        )
        return cur.rowcount > 0

    def update_content(
        self,
        conference_id: int,
        item_id: int,
        action_ref: str,
        body: str,
        updated_by: str,
    ) -> bool:
        cur = self._write(
            "UPDATE conference_menu_items SET action_ref = ?, body = ?, updated_at = ?, updated_by = ? "
            "WHERE id = ? AND conference_id = ?",
            (action_ref, body, utc_now(), updated_by, item_id, conference_id),
        )
        return cur.rowcount > 0

    def set_order(self, conference_id: int, ordered_ids: list[int], updated_by: str) -> None:
        now = utc_now()
        with self._lock, self.conn:
            self.conn.executemany(
                "UPDATE conference_menu_items SET sort_order = ?, updated_at = ?, updated_by = ? "
                "WHERE id = ? AND conference_id = ?",
                [
                    (sort_order, now, updated_by, item_id, conference_id)
                    for sort_order, item_id in enumerate(ordered_ids, 1)
                ],
            )

    # Boards

    def list_boards(self, conference_id: int) -> list[Board]:
        rows = self._query(
            "SELECT id, name, sort_order, conference_id FROM boards WHERE conference_id = ? ORDER BY sort_order, id",
            (conference_id,),
        )
        return [_board(row) for row in rows]

    def get_board(self, board_id: int) -> Board | None:
        row = self._query_one("SELECT id, name, sort_order, conference_id FROM boards WHERE id = ?", (board_id,))
        return _board(row) if row else None

    def create_board(self, conference_id: int, name: str) -> int:
        with self._lock, self.conn:
            row = self.conn.execute(
                "SELECT COALESCE(MAX(sort_order), 0) FROM boards WHERE conference_id = ?", (conference_id,)
            ).fetchone()
            cur = self.conn.execute(
                "INSERT INTO boards (name, sort_order, conference_id) VALUES (?, ?, ?)",
                (name, row[0] + 1, conference_id),
            )
            return cur.lastrowid

    def rename_board(self, conference_id: int, board_id: int, name: str) -> bool:
        cur = self._write(
            "UPDATE boards SET name = ? WHERE id = ? AND conference_id = ?", (name, board_id, conference_id)
        )
        return cur.rowcount > 0

    def delete_board(self, conference_id: int, board_id: int) -> bool:
        with self._lock, self.conn:
            row = self.conn.execute(
                "SELECT id FROM boards WHERE id = ? AND conference_id = ?", (board_id, conference_id)
            ).fetchone()
            if row is None:
                return False
            self.conn.execute("DELETE FROM posts WHERE board_id = ?", (board_id,))
            self.conn.execute("DELETE FROM boards WHERE id = ?", (board_id,))
        return True

    # Posts

    def list_posts(self, board_id: int, page: int, page_size: int) -> list[PostSummary]:
        offset = max(page - 1, 0) * page_size
        rows = self._query(
            "SELECT id, title, author, created_at FROM posts WHERE board_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
            (board_id, page_size, offset),
        )
        return [
            PostSummary(id=row["id"], title=row["title"], author=row["author"], created_at=row["created_at"])
            for row in rows
        ]

    def get_post(self, post_id: int) -> Post | None:
        row = self._query_one(
            "SELECT id, board_id, title, body, author, created_at FROM posts WHERE id = ?", (post_id,)
        )
        if row is None:
            return None
        return Post(
            id=row["id"],
            board_id=row["board_id"],
            title=row["title"],
            body=row["body"],
            author=row["author"],
            created_at=row["created_at"],
        )

    def create_post(self, board_id: int, title: str, body: str, author: str) -> int:
        cur = self._write(
            "INSERT INTO posts (board_id, title, body, author, created_at) VALUES (?, ?, ?, ?, ?)",
            (board_id, title, body, author, utc_now()),
        )
        return cur.lastrowid
