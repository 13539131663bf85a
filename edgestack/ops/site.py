from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..rendering.io import atomic_write_text, is_empty_dir
from ..settings import PACKAGE_TEMPLATES
from ._utils import command_exists, run_logged

logger = logging.getLogger(__name__)

PLACEHOLDER_PAGE = PACKAGE_TEMPLATES / "site" / "index.html"


def seed_web_root(dest: Path, *, sample_repo: str | None = None) -> None:
    """Give the reverse proxy something to serve from ``dest``.

    With ``sample_repo`` the static site is cloned, unless ``dest`` already has
    content or git is missing. Otherwise a placeholder ``index.html`` is written
    when none exists. Existing content is never replaced.
    """
    dest.mkdir(parents=True, exist_ok=True)

    if sample_repo:
        if not command_exists("git"):
            logger.warning(f"git not found; place your site content under {dest} manually.")
            return
        if not is_empty_dir(dest):
            logger.info(f"Directory {dest} already has content; skipping download.")
            return
        try:
            run_logged(["git", "clone", sample_repo, str(dest)])
        except subprocess.CalledProcessError:
            logger.error(
                f"Failed to clone sample site; leave or place your own content in {dest}"
            )
            return
        logger.info(f"Seeded web root {dest} from {sample_repo}")
        return

    index = dest / "index.html"
    if index.exists():
        return
    atomic_write_text(index, PLACEHOLDER_PAGE.read_text(encoding="utf-8"))
    logger.debug(f"Wrote placeholder page {index}")
