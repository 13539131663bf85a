"""Interactive setup flow: host preparation, rendering and launch."""

from __future__ import annotations

import logging

from .collection.domains import collect_domains, collect_role_plan
from .collection.params import collect_cdn_params, collect_direct_params
from .collection.prompts import Prompter
from .core.errors import SetupError
from .core.models import RenderConfig, RolePlan
from .ops import docker, system
from .rendering import groups
from .rendering.groups import RenderRun, StackSelection
from .settings import Settings

logger = logging.getLogger(__name__)


def build_render_config(settings: Settings) -> RenderConfig:
    return RenderConfig(
        template_dir=settings.template_dir,
        dest_root=settings.output_dir,
        file_mode=settings.file_mode,
    )


def collect_plan(prompter: Prompter) -> RolePlan | None:
    """Collect domains and roles; a role error is reported and yields no plan."""
    logger.info("Collecting domain information (supports multiple domains)...")
    try:
        domains = collect_domains(prompter)
        return collect_role_plan(prompter, domains)
    except SetupError as exc:
        logger.error(f"{exc} Skipping certificate, CDN and Direct stacks.")
        return None


def collect_selection(prompter: Prompter, plan: RolePlan | None) -> StackSelection:
    cdn = direct = False
    if plan is not None and plan.cdn_domain:
        cdn = prompter.confirm(
            "render_cdn",
            f"Generate CDN VLESS+WS stack for {plan.cdn_domain} (Cloudflare-friendly)?",
        )
    if plan is not None and plan.direct_domain:
        direct = prompter.confirm(
            "render_direct",
            f"Generate Direct stack (Hysteria2 + Vision + XHTTP Reality) for {plan.direct_domain}?",
        )
    health = prompter.confirm(
        "render_health",
        "Generate a lightweight health ping container (curl every 5 minutes)?",
    )
    return StackSelection(cdn=cdn, direct=direct, health=health)


def render_stacks(
    settings: Settings, prompter: Prompter, *, ask: bool = True
) -> RenderRun | None:
    """Collect parameters and render every selected group.

    Returns:
        The run, or None when rendering was declined or templates are missing
    """
    config = build_render_config(settings)
    if not config.template_dir.is_dir():
        logger.info("Template directory not found; skipping template rendering.")
        return None

    if ask and not prompter.confirm(
        "render_templates", "Do you want to render docker-compose templates now?"
    ):
        return None

    config.dest_root.mkdir(parents=True, exist_ok=True)
    run = RenderRun(config=config, settings=settings)
    run.plan = collect_plan(prompter)
    plan = run.plan

    email = ""
    if plan is not None:
        email = prompter.text(
            "cert_email", "Contact email for certificates (used by Certbot/Nginx)"
        )

    selection = collect_selection(prompter, plan)
    if not selection.any:
        logger.info("No stacks selected for rendering.")
        return run

    if plan is not None:
        groups.run_group(run, "ssl-renewal", lambda: groups.certificate_group(plan, email))

    if selection.cdn and plan is not None and plan.cdn_domain:
        cdn_domain = plan.cdn_domain
        groups.run_group(
            run,
            "cdn",
            lambda: groups.cdn_group(
                settings,
                collect_cdn_params(prompter, settings, cdn_domain),
                direct_enabled=selection.direct,
            ),
        )

    if selection.direct and plan is not None and plan.direct_domain:
        direct_domain = plan.direct_domain
        groups.run_group(
            run,
            "direct",
            lambda: groups.direct_group(
                settings,
                collect_direct_params(prompter, settings, direct_domain),
                cdn_domain=plan.cdn_domain if selection.cdn else None,
            ),
        )

    if selection.health:
        groups.run_group(
            run,
            "healthcheck",
            lambda: groups.health_group(
                prompter.text("healthcheck_url", "Healthcheck URL to ping")
            ),
        )

    logger.info(
        f"Templates rendered under {config.dest_root}. Update ports/paths as needed and run "
        "'docker compose up -d' inside each directory."
    )
    return run


def prepare_host(settings: Settings, prompter: Prompter) -> str:
    """Optionally update the host and ensure the target user.

    Returns:
        The user that should own sudo group membership
    """
    target_user = system.current_user()
    do_system = prompter.confirm(
        "prepare_system",
        "Run system updates, locale, timezone, and sudo user setup?",
    )

    if do_system:
        system.refresh_sudo()
        target_user = prompter.text(
            "target_user",
            "Username to create/ensure sudo access for",
            default=target_user,
        ) or target_user
        system.update_system()
        system.install_common_packages()
        system.configure_locale_timezone(settings.locale, settings.timezone)
        system.ensure_user(target_user)
        return target_user

    target_user = prompter.text(
        "target_user",
        "Username to use for the deployment",
        default=target_user,
    ) or target_user
    if system.user_exists(target_user):
        return target_user

    if prompter.confirm(
        "create_user", f"User '{target_user}' does not exist. Create it now?"
    ):
        system.refresh_sudo()
        system.ensure_user(target_user)
        return target_user

    fallback = system.current_user()
    logger.info(f"User '{target_user}' not found; continuing as current user '{fallback}'.")
    return fallback


def launch(settings: Settings, prompter: Prompter, run: RenderRun | None) -> None:
    if run is None or not run.manifest:
        return
    docker.launch_manifest(run.manifest, prompter, proxy_network=settings.proxy_network)
