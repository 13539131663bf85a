"""Placeholder template rendering engine."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

from ..core.errors import MissingTemplate
from ..core.models import GeneratedArtifact, RenderConfig, RenderTask, TemplateSpec
from .io import atomic_write_text

logger = logging.getLogger(__name__)

RenderContext = Mapping[str, str]

PLACEHOLDER = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")


def load_template(template_path: Path, source: str | None = None) -> TemplateSpec:
    """Load a template from a file path.

    Args:
        template_path: Path to the template file
        source: Identifier recorded on the template (defaults to the path)

    Returns:
        Immutable template

    Raises:
        MissingTemplate: The file does not exist
    """
    if not template_path.is_file():
        raise MissingTemplate(f"Template not found: {template_path}")

    return TemplateSpec(
        source=source or str(template_path),
        text=template_path.read_text(encoding="utf-8"),
    )


def render(template: TemplateSpec, context: RenderContext) -> str:
    """Substitute ``{{KEY}}`` tokens in a single pass over the template text.

    Replacement values are inserted literally and never scanned again, so a
    value that itself contains ``{{OTHER}}`` is left as is. Tokens without a
    context entry are kept verbatim.
    """

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in context:
            return context[key]
        return match.group(0)

    return PLACEHOLDER.sub(_substitute, template.text)


def unresolved_keys(text: str) -> list[str]:
    """Placeholder names still present in rendered text, in first-seen order."""
    seen: list[str] = []
    for match in PLACEHOLDER.finditer(text):
        if match.group(1) not in seen:
            seen.append(match.group(1))
    return seen


def render_to_file(
    template: TemplateSpec,
    context: RenderContext,
    destination: Path,
    file_mode: int = 0o644,
) -> GeneratedArtifact:
    """Render ``template`` and write it to ``destination``, overwriting it.

    Args:
        template: Template to render
        context: Placeholder values
        destination: Output file path; parent directories are created
        file_mode: File permissions

    Returns:
        The written artifact
    """
    content = render(template, context)
    atomic_write_text(destination, content, mode=file_mode)

    missing = unresolved_keys(content)
    if missing:
        logger.warning(
            f"{destination} still contains unresolved placeholders: {', '.join(missing)}"
        )

    return GeneratedArtifact(path=destination, content=content)


def render_all(
    tasks: list[RenderTask], context: RenderContext, config: RenderConfig
) -> list[GeneratedArtifact]:
    """Render a group of tasks sharing one context.

    Every template is loaded before anything is written, so a missing
    template leaves the group's output untouched.

    Args:
        tasks: Render tasks, in output order
        context: Template context shared by the group
        config: Template and output roots, default file mode

    Returns:
        Written artifacts, in task order

    Raises:
        MissingTemplate: One of the templates does not exist
    """
    templates = [
        load_template(
            config.template_dir / task.template_path,
            source=task.template_path.as_posix(),
        )
        for task in tasks
    ]

    artifacts: list[GeneratedArtifact] = []
    for task, template in zip(tasks, templates):
        output_path = task.output_path
        if not output_path.is_absolute():
            output_path = config.dest_root / output_path

        logger.debug(f"Rendering template: {template.source}")
        mode = task.file_mode if task.file_mode is not None else config.file_mode
        artifacts.append(render_to_file(template, context, output_path, file_mode=mode))
        logger.info(f"Rendered {task.template_path} → {output_path}")

    return artifacts
