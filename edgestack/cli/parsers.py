"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def load_answers(path: Path | None) -> dict[str, Any]:
    """Load a YAML mapping of prompt keys to answers."""
    if path is None:
        return {}
    if not path.is_file():
        raise typer.BadParameter(f"Answers file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise typer.BadParameter(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise typer.BadParameter(
            f"Answers file must contain a mapping of prompt keys, got {type(data).__name__}"
        )
    return {str(key): value for key, value in data.items()}
