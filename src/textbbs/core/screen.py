"""Screen model returned to clients after every request."""

from dataclasses import dataclass

INPUT_LINE = "line"
INPUT_MULTILINE = "multiline"

EXIT_ACTION = "exit"


@dataclass(frozen=True)
class ScreenAction:
    """A terminal-side action; ``exit`` tears the session down."""

    type: str

    def to_dict(self) -> dict:
        return {"type": self.type}


@dataclass(frozen=True)
class ScreenModel:
    """One rendered screen.

    Attributes:
        title: Window/screen title.
        lines: Body lines, already sanitized and wrapped.
        prompt: Prompt string shown before the input cursor.
        input_mode: ``"line"`` or ``"multiline"``.
        hints: Static command legends for the current mode.
        toast: One-shot status message.
        actions: Terminal actions to perform after displaying.
    """

    title: str
    lines: tuple[str, ...]
    prompt: str = "> "
    input_mode: str = INPUT_LINE
    hints: tuple[str, ...] | None = None
    toast: str | None = None
    actions: tuple[ScreenAction, ...] | None = None

    def wants_exit(self) -> bool:
        """Check whether the transport must end the session after this screen."""
        return any(action.type == EXIT_ACTION for action in self.actions or ())

    def to_dict(self) -> dict:
        """Serialize to the JSON wire shape (optional keys omitted when empty)."""
        data: dict = {
            "title": self.title,
            "lines": list(self.lines),
            "prompt": self.prompt,
            "inputMode": self.input_mode,
        }
        if self.hints:
            data["hints"] = list(self.hints)
        if self.toast:
            data["toast"] = self.toast
        if self.actions:
            data["actions"] = [action.to_dict() for action in self.actions]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScreenModel":
        """Build a ScreenModel from its wire shape (used by the client)."""
        actions = data.get("actions")
        return cls(
            title=str(data.get("title", "")),
            lines=tuple(str(line) for line in data.get("lines", [])),
            prompt=str(data.get("prompt", "> ")),
            input_mode=str(data.get("inputMode", INPUT_LINE)),
            hints=tuple(data["hints"]) if data.get("hints") else None,
            toast=data.get("toast") or None,
            actions=tuple(ScreenAction(type=str(a.get("type", ""))) for a in actions) if actions else None,
        )
