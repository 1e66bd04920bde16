"""Tests for terminal.py - prompt I/O."""

import pytest

from winusb_maker.errors import TerminalError
from winusb_maker.terminal import ScriptedTerminal, Terminal, TtyTerminal


class TestScriptedTerminal:
    """Tests for the scripted test terminal."""

    def test_answers_in_order(self):
        """Answers are consumed first to last."""
        terminal = ScriptedTerminal(["1", "y"])
        assert terminal.ask("Select: ") == "1"
        assert terminal.ask("Sure? ") == "y"
        assert terminal.prompts == ["Select: ", "Sure? "]

    def test_records_lines(self):
        """say() output is recorded."""
        terminal = ScriptedTerminal()
        terminal.say("Found ISOs:")
        assert terminal.lines == ["Found ISOs:"]
        assert "Found ISOs:" in terminal.transcript

    def test_runs_out_of_answers(self):
        """Asking past the script is an error, not a hang."""
        terminal = ScriptedTerminal()
        with pytest.raises(TerminalError):
            terminal.ask("Select: ")


class TestConfirm:
    """Tests for Terminal.confirm."""

    @pytest.mark.parametrize("answer", ["y", "Y", " y "])
    def test_yes(self, answer):
        """A single y confirms."""
        assert ScriptedTerminal([answer]).confirm("Erase? [y/N]: ") is True

    @pytest.mark.parametrize("answer", ["n", "N", "no", "yes", "yy", "1"])
    def test_no(self, answer):
        """Anything else declines."""
        assert ScriptedTerminal([answer]).confirm("Erase? [y/N]: ") is False

    def test_empty_uses_default(self):
        """An empty answer falls back to the default."""
        assert ScriptedTerminal([""]).confirm("Install? [Y/n]: ", default=True)
        assert not ScriptedTerminal([""]).confirm("Erase? [y/N]: ", default=False)


class TestTtyTerminal:
    """Tests for TtyTerminal against a regular file standing in for the tty."""

    def test_say_writes_line(self, tmp_path):
        """say() writes one line to the tty."""
        tty = tmp_path / "tty"
        tty.write_text("")
        terminal = TtyTerminal(str(tty))
        terminal.say("hello")
        assert tty.read_text() == "hello\n"

    def test_ask_without_answer(self, tmp_path):
        """An empty read is reported as a terminal error."""
        tty = tmp_path / "tty"
        tty.write_text("")
        terminal = TtyTerminal(str(tty))
        with pytest.raises(TerminalError, match="No answer"):
            terminal.ask("Select: ")

    def test_missing_tty(self, tmp_path):
        """An unusable tty path raises TerminalError."""
        terminal = TtyTerminal(str(tmp_path / "missing" / "tty"))
        with pytest.raises(TerminalError, match="Cannot read"):
            terminal.ask("Select: ")


class TestTerminalInterface:
    """Tests for the abstract Terminal."""

    def test_partial_implementation_rejected(self):
        """A terminal that cannot ask fails at construction, not mid-run."""

        class SayOnly(Terminal):
            def say(self, message: str) -> None:
                pass

        with pytest.raises(TypeError):
            SayOnly()
