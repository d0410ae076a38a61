"""Console output for release steps.

Steps never print directly: they receive a ConsoleProtocol from the caller.
Status lines are rendered as "[tag] message". Errors and captured command
output belong on stderr, everything else on stdout.

RichConsole renders for a terminal, MockConsole records what would have been
written so tests can assert on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    """Visual role of a line; the value is the Rich style it renders with."""

    DEFAULT = ""
    SUCCESS = "green"
    ERROR = "red bold"
    INFO = "dim"
    DIM = "dim italic"
    HEADER = "blue bold"

    def __str__(self) -> str:
        return self.name.lower()


# style -> (tag, goes to stderr)
_TAGS: dict[Style, tuple[str, bool]] = {
    Style.SUCCESS: ("success", False),
    Style.ERROR: ("error", True),
    Style.INFO: ("info", False),
}


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def dump(self, text: str) -> None:
        """Write captured command output verbatim to stderr."""
        ...


class RichConsole:
    """Terminal console backed by two Rich consoles (stdout and stderr)."""

    def __init__(self) -> None:
        from rich.console import Console
        from rich.text import Text

        self._text = Text
        self._out = Console()
        self._err = Console(stderr=True)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._out.print(message, style=style.value or None, markup=False)

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self._out.print()
        self._out.print(message, style=Style.HEADER.value, markup=False)

    def dump(self, text: str) -> None:
        self._err.print(text, markup=False, highlight=False)

    def _status(self, style: Style, message: str) -> None:
        tag, to_stderr = _TAGS[style]
        line = self._text.assemble("[", (tag, style.value), "] ", message)
        (self._err if to_stderr else self._out).print(line, highlight=False)


@dataclass
class OutputRecord:
    message: str
    style: Style
    stderr: bool = False


def _no_records() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Records output instead of writing it."""

    outputs: list[OutputRecord] = field(default_factory=_no_records)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def dump(self, text: str) -> None:
        self.outputs.append(OutputRecord(text, Style.DEFAULT, stderr=True))

    def _status(self, style: Style, message: str) -> None:
        tag, to_stderr = _TAGS[style]
        self.outputs.append(OutputRecord(f"[{tag}] {message}", style, stderr=to_stderr))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def stderr_text(self) -> str:
        return "\n".join(o.message for o in self.outputs if o.stderr)

    def find(self, substring: str) -> list[OutputRecord]:
        """Records whose message contains substring."""
        return [o for o in self.outputs if substring in o.message]
