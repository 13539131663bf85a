"""Keyed interactive prompts with pre-supplied answers."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import typer

logger = logging.getLogger(__name__)

_TRUE = {"y", "yes", "true", "1", "on"}
_FALSE = {"n", "no", "false", "0", "off", ""}


def parse_yes_no(value: Any, *, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return default if lowered == "" else False
    raise typer.BadParameter(f"Expected yes or no, got: {value!r}")


class Prompter:
    """Ask questions on the terminal unless an answer was supplied up front.

    Every question has a stable key. Answers found under that key are used
    as-is and the question is not shown. With ``interactive=False`` the
    default is taken for any unanswered question instead of blocking.
    """

    def __init__(
        self, answers: Mapping[str, Any] | None = None, *, interactive: bool = True
    ) -> None:
        self.answers = dict(answers or {})
        self.interactive = interactive

    def _lookup(self, key: str) -> tuple[bool, Any]:
        if key in self.answers:
            logger.debug(f"Answer for '{key}' taken from answers file")
            return True, self.answers[key]
        return False, None

    def text(self, key: str, message: str, default: str = "") -> str:
        found, value = self._lookup(key)
        if found:
            return "" if value is None else str(value).strip()
        if not self.interactive:
            return default
        answer = typer.prompt(message, default=default, show_default=bool(default))
        return str(answer).strip()

    def confirm(self, key: str, message: str, default: bool = False) -> bool:
        found, value = self._lookup(key)
        if found:
            return parse_yes_no(value, default=default)
        if not self.interactive:
            return default
        return typer.confirm(message, default=default)

    def integer(self, key: str, message: str, default: int = 1, minimum: int = 1) -> int:
        found, value = self._lookup(key)
        if found:
            if value in (None, ""):
                return default
            try:
                number = int(value)
            except (TypeError, ValueError) as e:
                raise typer.BadParameter(f"{key}: expected an integer, got {value!r}") from e
            if number < minimum:
                raise typer.BadParameter(f"{key}: must be at least {minimum}, got {number}")
            return number
        if not self.interactive:
            return default
        while True:
            number = typer.prompt(message, default=default, type=int)
            if number >= minimum:
                return number
            typer.echo(f"Please enter a number of at least {minimum}.", err=True)
