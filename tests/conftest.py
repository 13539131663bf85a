"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from edgestack.collection import credentials
from edgestack.collection.prompts import Prompter
from edgestack.core.models import RenderConfig
from edgestack.ops import docker, site
from edgestack.rendering.groups import RenderRun
from edgestack.settings import PACKAGE_TEMPLATES, Settings


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "generated"


@pytest.fixture
def settings(output_dir: Path) -> Settings:
    """Settings rendering the packaged templates into a temporary directory."""
    return Settings(template_dir=PACKAGE_TEMPLATES, output_dir=output_dir)


@pytest.fixture
def render_run(settings: Settings) -> RenderRun:
    config = RenderConfig(
        template_dir=settings.template_dir,
        dest_root=settings.output_dir,
        file_mode=settings.file_mode,
    )
    return RenderRun(config=config, settings=settings)


@pytest.fixture
def make_prompter():
    """Build a non-interactive prompter from keyword answers."""

    def _make(**answers) -> Prompter:
        return Prompter(answers, interactive=False)

    return _make


@pytest.fixture
def no_external_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend docker and git are not installed."""
    monkeypatch.setattr(credentials, "command_exists", lambda name: False)
    monkeypatch.setattr(docker, "command_exists", lambda name: False)
    monkeypatch.setattr(site, "command_exists", lambda name: False)
