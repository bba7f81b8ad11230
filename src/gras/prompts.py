"""Interactive prompts used when a value is not given on the command line."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TypeVar

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .errors import PromptAbortedError

T = TypeVar("T")


class Prompter:
    """Rich-based prompt primitives.

    Every prompt turns a closed input stream or Ctrl-C into
    `PromptAbortedError`, which aborts the whole run.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def _guard(self, label: str, ask: Callable[[], T]) -> T:
        try:
            return ask()
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptAbortedError(
                "Prompt cancelled", details=f"No answer was given for: {label}"
            ) from e

    def ask(self, label: str, *, default: str = "", password: bool = False) -> str:
        """Ask for free text. Returns `default` when the answer is empty."""
        answer = self._guard(
            label,
            lambda: Prompt.ask(
                f"[cyan]{label}",
                default=default,
                password=password,
                show_default=bool(default),
                console=self.console,
            ),
        )
        return (answer or "").strip()

    def choose(self, label: str, choices: list[str], *, default: str | None = None) -> str:
        """Ask for one of a fixed list of choices."""
        if not choices:
            raise PromptAbortedError(
                "Prompt cancelled", details=f"There is nothing to choose for: {label}"
            )
        return self._guard(
            label,
            lambda: Prompt.ask(
                f"[cyan]{label}",
                choices=choices,
                default=default or choices[0],
                console=self.console,
            ),
        )

    def confirm(self, label: str, *, default: bool = False) -> bool:
        return self._guard(
            label,
            lambda: Confirm.ask(f"[cyan]{label}", default=default, console=self.console),
        )

    def ask_matching(self, label: str, pattern: re.Pattern[str], error: str) -> str:
        """Ask until the answer matches `pattern`."""
        while True:
            answer = self.ask(label)
            if pattern.match(answer):
                return answer
            self.console.print(f"[red]{error}[/red]")

    def ask_non_empty(self, label: str, error: str = "Value cannot be empty") -> str:
        while True:
            answer = self.ask(label)
            if answer:
                return answer
            self.console.print(f"[red]{error}[/red]")
