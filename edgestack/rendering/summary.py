"""Human-readable summary of a rendering run."""

from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from .groups import RenderRun
from .io import atomic_write_text

logger = logging.getLogger(__name__)

SUMMARY_TEMPLATE = Path(__file__).resolve().parent / "summary.txt.j2"
SUMMARY_NAME = "SUMMARY.txt"


def load_summary_template(template_path: Path = SUMMARY_TEMPLATE) -> Template:
    loader = FileSystemLoader(str(template_path.parent))
    env = Environment(
        loader=loader,
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    return env.get_template(template_path.name)


def render_summary(run: RenderRun) -> str:
    """Summarize the plan, manifest, credentials and skipped groups of ``run``.

    Auto-generated values are flagged so they can be rotated before the
    stacks go to production.
    """
    template = load_summary_template()
    return template.render(
        plan=run.plan,
        output_dir=run.config.dest_root,
        manifest=run.manifest,
        credential_sets=run.credential_sets,
        keys=run.keys,
        skipped=run.skipped,
    )


def write_summary(run: RenderRun, file_mode: int = 0o600) -> Path:
    path = run.config.dest_root / SUMMARY_NAME
    atomic_write_text(path, render_summary(run), mode=file_mode)
    logger.info(f"Wrote summary to {path}")
    return path
