"""Interactive I/O for prompts and confirmations.

Prompts are written to and answers read from the controlling terminal,
never stdout/stderr, so tool output and logs can be redirected without
swallowing a question. Tests use ScriptedTerminal instead.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from winusb_maker.errors import TerminalError

logger = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"


class Terminal(ABC):
    """Interface used by the resolver and controller to talk to the operator."""

    @abstractmethod
    def say(self, message: str) -> None:
        """Show a line of text to the operator."""

    @abstractmethod
    def ask(self, prompt: str) -> str:
        """Show a prompt and return the operator's answer without newline."""

    def confirm(self, prompt: str, *, default: bool = False) -> bool:
        """Ask a yes/no question.

        An empty answer returns ``default``; only y or Y is yes.
        """
        answer = self.ask(prompt).strip()
        if not answer:
            return default
        return answer in ("y", "Y")


class TtyTerminal(Terminal):
    """Terminal bound to /dev/tty."""

    def __init__(self, tty_path: str = TTY_PATH) -> None:
        self.tty_path = tty_path

    def say(self, message: str) -> None:
        try:
            with open(self.tty_path, "w") as tty:
                tty.write(message + "\n")
        except OSError as e:
            raise TerminalError(f"Cannot write to {self.tty_path}: {e}") from e

    def ask(self, prompt: str) -> str:
        try:
            with open(self.tty_path, "r+") as tty:
                tty.write(prompt)
                tty.flush()
                line = tty.readline()
        except OSError as e:
            raise TerminalError(f"Cannot read from {self.tty_path}: {e}") from e
        if not line:
            raise TerminalError(f"No answer read from {self.tty_path}")
        return line.rstrip("\r\n")


class ScriptedTerminal(Terminal):
    """Terminal that replays pre-scripted answers and records everything shown.

    Attributes:
        answers: Remaining answers, consumed in order by ask().
        prompts: Every prompt passed to ask().
        lines: Every line passed to say().
    """

    def __init__(self, answers: Iterable[str] = ()) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.lines: list[str] = []

    def say(self, message: str) -> None:
        self.lines.append(message)

    def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise TerminalError(f"No scripted answer left for prompt: {prompt!r}")
        answer = self.answers.pop(0)
        logger.debug("Scripted answer %r for prompt %r", answer, prompt)
        return answer

    @property
    def transcript(self) -> str:
        """All output and prompts joined, for substring assertions."""
        return "\n".join(self.lines + self.prompts)


__all__ = ["TTY_PATH", "ScriptedTerminal", "Terminal", "TtyTerminal"]
