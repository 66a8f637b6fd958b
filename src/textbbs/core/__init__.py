"""Core components for the text BBS daemon."""

from .command_parser import (
    CancelCommand,
    Command,
    CommandParser,
    IndexedCommand,
    InvalidCommand,
    LetterCommand,
    MoveCommand,
    SelectCommand,
)
from .renderer import ScreenRenderer
from .screen import ScreenAction, ScreenModel
from .session import BbsSession
from .session_manager import SessionEntry, SessionManager
from .terminal import TerminalContext, normalize_terminal_context

__all__ = [
    "CancelCommand",
    "Command",
    "CommandParser",
    "IndexedCommand",
    "InvalidCommand",
    "LetterCommand",
    "MoveCommand",
    "SelectCommand",
    "ScreenRenderer",
    "ScreenAction",
    "ScreenModel",
    "BbsSession",
    "SessionEntry",
    "SessionManager",
    "TerminalContext",
    "normalize_terminal_context",
]
