from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..collection.prompts import Prompter
from ._utils import command_exists, privileged, run_logged

logger = logging.getLogger(__name__)


def network_exists(name: str) -> bool:
    result = run_logged(
        ["docker", "network", "inspect", name],
        capture_output=True,
        check=False,
        echo="never",
    )
    return result.returncode == 0


def ensure_proxy_network(name: str) -> bool:
    """Create the shared proxy network unless it exists.

    Returns:
        True when the network was created by this call
    """
    if network_exists(name):
        logger.debug(f"Docker network '{name}' already exists")
        return False
    logger.info(f"Creating shared proxy network '{name}' for Nginx/Xray interop...")
    run_logged(privileged(["docker", "network", "create", name]))
    return True


def compose_up(compose_file: Path) -> None:
    run_logged(privileged(["docker", "compose", "-f", str(compose_file), "up", "-d"]))


def launch_manifest(
    manifest: Sequence[Path], prompter: Prompter, *, proxy_network: str
) -> list[Path]:
    """Offer to bring up each generated compose stack.

    Every entry is confirmed on its own. A failing `docker compose` aborts the
    run like any other external command.

    Returns:
        Compose files that were launched
    """
    if not manifest:
        return []
    if not command_exists("docker"):
        logger.info("docker not found; skipping stack launch.")
        return []

    ensure_proxy_network(proxy_network)

    if not prompter.confirm("launch_stacks", "Run any rendered docker-compose stacks now?"):
        return []

    launched: list[Path] = []
    for compose_file in manifest:
        if not compose_file.is_file():
            logger.warning(f"{compose_file} no longer exists; skipping.")
            continue
        stack = compose_file.parent.name
        if not prompter.confirm(
            f"launch_{stack}", f"Launch stack from {compose_file.resolve()}?"
        ):
            continue
        compose_up(compose_file)
        launched.append(compose_file)

    return launched
