"""Interactive collection of the new account's username and password.

Both loops read from an InputSource so they can be driven by a terminal
or by a scripted sequence of answers in tests.
"""
import re
from typing import Iterable, List, Optional, Protocol

import typer

from labprep.core.errors import CredentialError

USERNAME_PATTERN = re.compile(r"[a-z][-a-z0-9_]*")

USERNAME_PROMPT = "Enter a username you want to login as: "
PASSWORD_PROMPT = "Enter a password for that user: "
CONFIRM_PROMPT = "Confirm password: "

INVALID_USERNAME_MESSAGE = (
    "⚠️  Invalid username. Use lowercase letters, digits, underscores; "
    "must start with a letter."
)
PASSWORD_MISMATCH_MESSAGE = "⚠️  Passwords do not match. Please try again."


class InputSource(Protocol):
    """Where answers to the credential prompts come from."""

    def ask(self, prompt: str) -> str:
        ...

    def ask_secret(self, prompt: str) -> str:
        ...

    def notify(self, message: str) -> None:
        ...


class TerminalInput:
    """Reads answers from the controlling terminal."""

    def ask(self, prompt: str) -> str:
        return typer.prompt(prompt, default="", show_default=False, prompt_suffix="")

    def ask_secret(self, prompt: str) -> str:
        return typer.prompt(
            prompt,
            default="",
            show_default=False,
            prompt_suffix="",
            hide_input=True,
        )

    def notify(self, message: str) -> None:
        typer.echo(message)


class ScriptedInput:
    """Feeds a fixed sequence of answers, recording prompts and messages.

    Raises EOFError once the answers run out, the same way an interrupted
    terminal ends an unbounded prompt loop.
    """

    def __init__(self, answers: Iterable[str]):
        self._answers = list(answers)
        self.prompts: List[str] = []
        self.messages: List[str] = []

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            raise EOFError(f"No scripted answer left for prompt: {prompt!r}")
        return self._answers.pop(0)

    def ask(self, prompt: str) -> str:
        return self._next(prompt)

    def ask_secret(self, prompt: str) -> str:
        return self._next(prompt)

    def notify(self, message: str) -> None:
        self.messages.append(message)


def is_valid_username(name: str) -> bool:
    """Return True if name starts with a lowercase letter followed only by
    lowercase letters, digits, hyphens or underscores."""
    return USERNAME_PATTERN.fullmatch(name) is not None


def passwords_match(first: str, second: str) -> bool:
    """Return True if both entries are identical and non-empty."""
    return first == second and first != ""


def collect_username(source: InputSource, max_attempts: Optional[int] = None) -> str:
    """Prompt until a valid username is entered.

    Args:
        source: Input source to read from
        max_attempts: Give up after this many tries (None = never)

    Raises:
        CredentialError: If max_attempts is reached
    """
    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        username = source.ask(USERNAME_PROMPT)
        if is_valid_username(username):
            return username
        source.notify(INVALID_USERNAME_MESSAGE)

    raise CredentialError(f"No valid username after {max_attempts} attempts")


def collect_password(source: InputSource, max_attempts: Optional[int] = None) -> str:
    """Prompt for a password and its confirmation until they match.

    Args:
        source: Input source to read from (input is not echoed)
        max_attempts: Give up after this many tries (None = never)

    Raises:
        CredentialError: If max_attempts is reached
    """
    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        first = source.ask_secret(PASSWORD_PROMPT)
        second = source.ask_secret(CONFIRM_PROMPT)
        if passwords_match(first, second):
            return first
        source.notify(PASSWORD_MISMATCH_MESSAGE)

    raise CredentialError(f"Passwords did not match after {max_attempts} attempts")
