"""Command parser for interpreting browse-mode input."""

import re
from abc import ABC
from dataclasses import dataclass


class Command(ABC):
    """Base class for all commands."""

    pass


@dataclass(frozen=True)
class CancelCommand(Command):
    """The universal ``0`` cancel/back command."""

    pass


@dataclass(frozen=True)
class SelectCommand(Command):
    """Command to select an item by number."""

    index: int


@dataclass(frozen=True)
class LetterCommand(Command):
    """A single-letter command such as ``A`` or ``N``."""

    letter: str


@dataclass(frozen=True)
class IndexedCommand(Command):
    """A letter followed by a number, e.g. ``R 3`` or ``D 2``."""

    letter: str
    index: int


@dataclass(frozen=True)
class MoveCommand(Command):
    """Reorder command ``M <from> <to>``."""

    source: int
    target: int


@dataclass(frozen=True)
class InvalidCommand(Command):
    """Represents an invalid or unrecognized command."""

    original_input: str
    reason: str = "Unknown command"


class CommandParser:
    """Parses user input strings into Command objects.

    Letters are upper-cased so callers compare against ``"A"``, ``"R"``...
    A bare letter that normally takes an argument (``R``) parses as a
    LetterCommand; the mode decides whether that is a usage error.
    """

    _LETTER = re.compile(r"^([A-Z])$")
    _INDEXED = re.compile(r"^([A-Z])\s+(\d+)$")
    _MOVE = re.compile(r"^M\s+(\d+)\s+(\d+)$")
    _NUMBER = re.compile(r"^\d+$")

    def parse(self, input_str: str) -> Command:
        """
        Parse a user input string into a Command object.

        Args:
            input_str: The raw input line from the user.

        Returns:
            A Command object representing the parsed input.
        """
        cleaned = input_str.strip().upper()

        if not cleaned:
            return InvalidCommand(original_input=input_str, reason="Empty input")

        if cleaned == "0":
            return CancelCommand()

        if self._NUMBER.match(cleaned):
            number = int(cleaned)
            if number < 1:
                return InvalidCommand(
                    original_input=input_str,
                    reason="Selection must be positive",
                )
            return SelectCommand(index=number)

        match = self._LETTER.match(cleaned)
        if match:
            return LetterCommand(letter=match.group(1))

        match = self._MOVE.match(cleaned)
        if match:
            return MoveCommand(source=int(match.group(1)), target=int(match.group(2)))

        match = self._INDEXED.match(cleaned)
        if match:
            return IndexedCommand(letter=match.group(1), index=int(match.group(2)))

        return InvalidCommand(original_input=input_str, reason="Unknown command")
