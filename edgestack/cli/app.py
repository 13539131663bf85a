"""Main CLI application."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from .. import wizard
from ..collection.prompts import Prompter
from ..core.errors import SetupError
from ..core.roles import assign_roles
from ..rendering.groups import RenderRun
from ..rendering.summary import render_summary, write_summary
from ..settings import Settings
from .parsers import load_answers, parse_file_mode

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="edgestack",
    help="Bootstrap a host and render CDN / direct proxy stacks from templates.",
    no_args_is_help=True,
)

AnswersOption = Annotated[
    Optional[Path],
    typer.Option(
        "--answers",
        help="YAML file mapping prompt keys to answers; answered prompts are not shown.",
        metavar="FILE",
    ),
]
TemplateDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--template-dir",
        help="Template tree to render (default: packaged templates).",
        metavar="DIR",
    ),
]
OutputDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--output-dir",
        help="Directory for generated files (default: ./generated).",
        metavar="DIR",
    ),
]
ModeOption = Annotated[
    str,
    typer.Option(
        "--mode",
        help="Permissions in octal for non-secret generated files.",
        metavar="OCTAL",
    ),
]
NonInteractiveOption = Annotated[
    bool,
    typer.Option(
        "--non-interactive",
        help="Use defaults for prompts missing from the answers file instead of asking.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _build_settings(
    template_dir: Path | None, output_dir: Path | None, file_mode: str
) -> Settings:
    overrides: dict[str, Any] = {"file_mode": parse_file_mode(file_mode)}
    if template_dir is not None:
        overrides["template_dir"] = template_dir
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    return Settings(**overrides)


def _finish(settings: Settings, run: RenderRun | None) -> None:
    if run is None or not run.artifacts:
        return
    write_summary(run, file_mode=settings.secret_file_mode)
    typer.echo(render_summary(run))


def _abort(exc: Exception) -> typer.Exit:
    if isinstance(exc, subprocess.CalledProcessError):
        command = " ".join(str(part) for part in exc.cmd)
        logger.error(f"Command failed (exit {exc.returncode}): {command}")
        return typer.Exit(code=exc.returncode or 1)
    logger.error(str(exc))
    return typer.Exit(code=1)


@app.command()
def setup(
    answers: AnswersOption = None,
    template_dir: TemplateDirOption = None,
    output_dir: OutputDirOption = None,
    file_mode: ModeOption = "0644",
    non_interactive: NonInteractiveOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Prepare the host, render the selected stacks and offer to launch them."""
    _configure_logging(verbose)
    settings = _build_settings(template_dir, output_dir, file_mode)
    prompter = Prompter(load_answers(answers), interactive=not non_interactive)

    try:
        target_user = wizard.prepare_host(settings, prompter)
        run = wizard.render_stacks(settings, prompter)
        _finish(settings, run)
        wizard.launch(settings, prompter, run)
    except (subprocess.CalledProcessError, OSError) as exc:
        raise _abort(exc) from exc

    typer.echo(
        "Setup complete. You may need to re-login for group changes to take effect "
        f"({target_user} -> sudo)."
    )


@app.command()
def render(
    answers: AnswersOption = None,
    template_dir: TemplateDirOption = None,
    output_dir: OutputDirOption = None,
    file_mode: ModeOption = "0644",
    non_interactive: NonInteractiveOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Render the selected stacks and offer to launch them."""
    _configure_logging(verbose)
    settings = _build_settings(template_dir, output_dir, file_mode)
    prompter = Prompter(load_answers(answers), interactive=not non_interactive)

    try:
        run = wizard.render_stacks(settings, prompter, ask=False)
        _finish(settings, run)
        wizard.launch(settings, prompter, run)
    except (subprocess.CalledProcessError, OSError) as exc:
        raise _abort(exc) from exc


@app.command()
def plan(
    domains: Annotated[
        list[str],
        typer.Option(
            "--domain",
            "-d",
            help="Domain to include. Repeatable.",
            metavar="DOMAIN",
        ),
    ],
    choice: Annotated[
        str,
        typer.Option("--choice", help="Role for a single domain: cdn or direct."),
    ] = "",
    cdn: Annotated[
        str,
        typer.Option("--cdn", help="Domain for the CDN role (two or more domains)."),
    ] = "",
    direct: Annotated[
        str,
        typer.Option("--direct", help="Domain for the direct role (two or more domains)."),
    ] = "",
    verbose: VerboseOption = False,
) -> None:
    """Show how domains map to the CDN and direct roles."""
    _configure_logging(verbose)

    try:
        role_plan = assign_roles(
            domains, single_choice=choice, cdn_pick=cdn, direct_pick=direct
        )
    except SetupError as exc:
        typer.echo(f"{type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"cdn_domain: {role_plan.cdn_domain or '-'}")
    typer.echo(f"direct_domain: {role_plan.direct_domain or '-'}")
    typer.echo(f"domains_args: {role_plan.domains_args}")
    typer.echo(f"primary_domain: {role_plan.primary_domain}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
