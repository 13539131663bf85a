from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from typing import Iterable, Literal

logger = logging.getLogger(__name__)


def is_root() -> bool:
    return os.geteuid() == 0


def sudo_prefix() -> list[str]:
    """``["sudo"]`` unless the process already runs as root."""
    return [] if is_root() else ["sudo"]


def privileged(cmd: Iterable[str]) -> list[str]:
    return [*sudo_prefix(), *cmd]


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def run_logged(
    cmd: Iterable[str],
    *,
    capture_output: bool = False,
    text: bool = True,
    check: bool = True,
    echo: Literal["always", "on_error", "never"] = "always",
    **kwargs: object,
) -> subprocess.CompletedProcess[str]:
    """
    Run an external command exactly once, mirroring captured output to the caller.
    Returns the CompletedProcess; raises CalledProcessError when check=True.
    """
    cmd_list = list(cmd)
    logger.debug("$ %s", " ".join(cmd_list))
    result = subprocess.run(
        cmd_list,
        capture_output=capture_output,
        text=text,
        **kwargs,  # type: ignore[arg-type]
    )
    if capture_output and (
        echo == "always" or (echo == "on_error" and result.returncode != 0)
    ):
        if result.stdout:
            sys.stdout.write(result.stdout)
        if result.stderr:
            sys.stderr.write(result.stderr)
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, result.args, output=result.stdout, stderr=result.stderr
        )
    return result


def ensure(commands: Iterable[str]) -> None:
    """Abort the run when any of ``commands`` is not on PATH."""
    for name in commands:
        if not command_exists(name):
            sys.stderr.write(f"Missing required command: {name}\n")
            sys.exit(1)
