"""
Interactive input for hum.

Passphrases and passwords are read one key at a time and echoed as '*';
backspace erases the last character and Enter ends the input.
"""

from typing import Callable, Optional

import typer
from rich.prompt import Prompt

from .logger import console

BACKSPACE_KEYS = ("\x7f", "\b")
ENTER_KEYS = ("\r", "\n")


def read_masked(
    read_key: Callable[[], str],
    write: Callable[[str], None],
) -> str:
    """
    Read a secret from single keystrokes.

    Args:
        read_key: Returns the next key pressed
        write: Echo sink for '*' and erase sequences

    Returns:
        The entered text (without the terminating Enter)
    """
    buffer = []
    while True:
        key = read_key()
        if key in ENTER_KEYS:
            write("\n")
            break
        if key in BACKSPACE_KEYS:
            if buffer:
                buffer.pop()
                write("\b \b")
            continue
        if key == "\x03":
            raise KeyboardInterrupt
        if len(key) != 1 or not key.isprintable():
            continue
        buffer.append(key)
        write("*")
    return "".join(buffer)


def _echo(text: str) -> None:
    typer.echo(text, nl=False)


class Prompter:
    """Console prompts. Swap the callables to script input in tests."""

    def __init__(
        self,
        read_key: Callable[[], str] = typer.getchar,
        write: Callable[[str], None] = _echo,
        read_line: Optional[Callable[[str], str]] = None,
    ):
        self._read_key = read_key
        self._write = write
        self._read_line = read_line or (lambda prompt: Prompt.ask(prompt, console=console, default=""))

    def ask(self, prompt: str, default: str = "") -> str:
        """Prompt for a line of text; an empty answer keeps the default."""
        label = f"{prompt} [{default}]" if default else prompt
        answer = self._read_line(label).strip()
        return answer or default

    def ask_secret(self, prompt: str) -> str:
        """Prompt for a passphrase/password with masked echo."""
        self._write(f"{prompt}: ")
        return read_masked(self._read_key, self._write)

    def confirm(self, prompt: str) -> bool:
        """Yes/no question; only 'y' or 'yes' count as yes."""
        answer = self._read_line(f"{prompt} (y/n)").strip().lower()
        return answer in ("y", "yes")
