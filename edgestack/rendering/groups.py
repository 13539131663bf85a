"""Template groups and the per-run rendering state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from ..collection.params import CdnParams, DirectParams, json_array
from ..core.errors import MissingRequiredInput, MissingTemplate
from ..core.models import (
    ClientCredentialSet,
    GeneratedArtifact,
    RealityKeyPair,
    RenderConfig,
    RenderTask,
    RolePlan,
)
from ..ops import site
from ..settings import Settings
from .engine import render_all

logger = logging.getLogger(__name__)

CDN_ONLY_HTTPS_PORT = "443"
CDN_BEHIND_ROUTER_HTTPS_PORT = "6443"


@dataclass(frozen=True)
class StackSelection:
    cdn: bool = False
    direct: bool = False
    health: bool = False

    @property
    def any(self) -> bool:
        return self.cdn or self.direct or self.health


@dataclass(frozen=True)
class RenderGroup:
    name: str
    tasks: list[RenderTask]
    context: dict[str, str]
    web_roots: tuple[Path, ...] = ()
    seed_sample_site: bool = False
    credential_sets: tuple[ClientCredentialSet, ...] = ()
    keys: RealityKeyPair | None = None


@dataclass(frozen=True)
class GroupOutcome:
    name: str
    status: Literal["rendered", "skipped", "failed"]
    detail: str = ""


@dataclass
class RenderRun:
    """State accumulated by one rendering run."""

    config: RenderConfig
    settings: Settings
    plan: RolePlan | None = None
    manifest: list[Path] = field(default_factory=list)
    artifacts: list[GeneratedArtifact] = field(default_factory=list)
    credential_sets: list[ClientCredentialSet] = field(default_factory=list)
    keys: RealityKeyPair | None = None
    outcomes: list[GroupOutcome] = field(default_factory=list)

    def common_context(self) -> dict[str, str]:
        context = {"PROXY_NETWORK": self.settings.proxy_network}
        if self.plan is not None:
            context["PRIMARY_DOMAIN"] = self.plan.primary_domain
        return context

    @property
    def skipped(self) -> list[GroupOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status != "rendered"]


def certificate_group(plan: RolePlan, email: str) -> RenderGroup:
    return RenderGroup(
        name="ssl-renewal",
        tasks=[
            RenderTask(
                template_path=Path("ssl-renewal/docker-compose.yml.template"),
                output_path=Path("ssl-renewal/docker-compose.yml"),
                compose=True,
            )
        ],
        context={"DOMAINS": plan.domains_args, "CERT_EMAIL": email},
    )


def cdn_group(settings: Settings, params: CdnParams, *, direct_enabled: bool) -> RenderGroup:
    https_port = CDN_BEHIND_ROUTER_HTTPS_PORT if direct_enabled else CDN_ONLY_HTTPS_PORT
    return RenderGroup(
        name="cdn",
        tasks=[
            RenderTask(
                template_path=Path("nginx/nginx.conf.template"),
                output_path=Path("nginx/nginx.conf"),
            ),
            RenderTask(
                template_path=Path("nginx/docker-compose.yml.template"),
                output_path=Path("nginx/docker-compose.yml"),
                compose=True,
            ),
            RenderTask(
                template_path=Path("vless-cdn/config.json.template"),
                output_path=Path("vless-cdn/config.json"),
                file_mode=settings.secret_file_mode,
            ),
            RenderTask(
                template_path=Path("vless-cdn/docker-compose.yml.template"),
                output_path=Path("vless-cdn/docker-compose.yml"),
                compose=True,
            ),
        ],
        context={
            "PRIMARY_DOMAIN": params.domain,
            "CDN_DOMAIN": params.domain,
            "CDN_PROXY_HOST": settings.cdn_proxy_host,
            "TLS_CERT_PATH": params.tls.cert,
            "TLS_KEY_PATH": params.tls.key,
            "VLESS_UPSTREAM": settings.vless_cdn_upstream,
            "NGINX_HTTPS_PORT": https_port,
            "VLESS_CLIENTS": params.clients.to_json(),
        },
        web_roots=(Path("nginx/www"),),
        seed_sample_site=params.seed_sample_site,
        credential_sets=(params.clients,),
    )


def direct_group(
    settings: Settings, params: DirectParams, *, cdn_domain: str | None
) -> RenderGroup:
    """SNI router, VLESS Vision/XHTTP Reality and Hysteria2 for the direct domain.

    ``cdn_domain`` is set when the CDN group is rendered in the same run, in
    which case the router forwards that server name to the CDN reverse proxy.
    """
    if cdn_domain:
        cdn_map_entry = f"{cdn_domain} cdn;"
        cdn_upstream = (
            f"upstream cdn {{ server {settings.cdn_proxy_host}:{CDN_BEHIND_ROUTER_HTTPS_PORT}; }}"
        )
    else:
        cdn_map_entry = "# CDN domain not configured"
        cdn_upstream = "# No CDN upstream configured"

    secret = settings.secret_file_mode
    return RenderGroup(
        name="direct",
        tasks=[
            RenderTask(
                template_path=Path("gateway/nginx.conf.template"),
                output_path=Path("gateway/nginx.conf"),
            ),
            RenderTask(
                template_path=Path("gateway/docker-compose.yml.template"),
                output_path=Path("gateway/docker-compose.yml"),
                compose=True,
            ),
            RenderTask(
                template_path=Path("vless-direct/config.json.template"),
                output_path=Path("vless-direct/config.json"),
                file_mode=secret,
            ),
            RenderTask(
                template_path=Path("vless-direct/docker-compose.yml.template"),
                output_path=Path("vless-direct/docker-compose.yml"),
                compose=True,
            ),
            RenderTask(
                template_path=Path("hysteria2/config.yaml.template"),
                output_path=Path("hysteria2/config.yaml"),
                file_mode=secret,
            ),
            RenderTask(
                template_path=Path("hysteria2/docker-compose.yml.template"),
                output_path=Path("hysteria2/docker-compose.yml"),
                compose=True,
            ),
        ],
        context={
            "PRIMARY_DOMAIN": params.domain,
            "DIRECT_DOMAIN": params.domain,
            "CDN_MAP_ENTRY": cdn_map_entry,
            "CDN_UPSTREAM_BLOCK": cdn_upstream,
            "VLESS_DIRECT_HOST": settings.vless_direct_host,
            "DIRECT_TLS_CERT": params.tls.cert,
            "DIRECT_TLS_KEY": params.tls.key,
            "VISION_CLIENTS": params.vision_clients.to_json(),
            "REALITY_CLIENTS": params.reality_clients.to_json(),
            "XHTTP_PATH": params.xhttp_path,
            "FALLBACK_DEST": settings.fallback_dest,
            "REALITY_TARGET": params.reality_target,
            "REALITY_SERVERNAMES": json_array(params.server_names),
            "REALITY_SHORT_IDS": json_array(params.short_ids),
            "REALITY_PRIVATE_KEY": params.keys.private_key,
            "HYSTERIA_USERS": params.hysteria_users.to_json(),
            "HYSTERIA_USERPASS": params.hysteria_users.to_userpass_json(),
            "MASQUERADE": params.masquerade,
        },
        web_roots=(Path("gateway/www"),),
        seed_sample_site=params.seed_sample_site,
        credential_sets=(
            params.vision_clients,
            params.reality_clients,
            params.hysteria_users,
        ),
        keys=params.keys,
    )


def health_group(url: str) -> RenderGroup:
    if not url.strip():
        raise MissingRequiredInput("Healthcheck URL is required when enabling the pinger.")
    return RenderGroup(
        name="healthcheck",
        tasks=[
            RenderTask(
                template_path=Path("healthcheck/docker-compose.yml.template"),
                output_path=Path("healthcheck/docker-compose.yml"),
                compose=True,
            )
        ],
        context={"HEALTHCHECK_URL": url.strip()},
    )


def render_group(run: RenderRun, group: RenderGroup) -> list[GeneratedArtifact]:
    """Render one group and record its outputs on ``run``."""
    context = run.common_context()
    context.update(group.context)

    artifacts = render_all(group.tasks, context, run.config)

    for web_root in group.web_roots:
        site.seed_web_root(
            run.config.dest_root / web_root,
            sample_repo=run.settings.sample_site_repo if group.seed_sample_site else None,
        )

    run.artifacts.extend(artifacts)
    run.manifest.extend(
        artifact.path for task, artifact in zip(group.tasks, artifacts) if task.compose
    )
    run.credential_sets.extend(group.credential_sets)
    if group.keys is not None:
        run.keys = group.keys
    return artifacts


def run_group(
    run: RenderRun, name: str, build: Callable[[], RenderGroup]
) -> bool:
    """Build and render a group; template and input errors only skip the group.

    Returns:
        True when the group was rendered
    """
    try:
        group = build()
        render_group(run, group)
    except MissingTemplate as exc:
        logger.debug(f"Skipping {name}: {exc}")
        run.outcomes.append(GroupOutcome(name=name, status="skipped", detail=str(exc)))
        return False
    except MissingRequiredInput as exc:
        logger.error(f"{exc} Skipping {name}.")
        run.outcomes.append(GroupOutcome(name=name, status="failed", detail=str(exc)))
        return False

    run.outcomes.append(GroupOutcome(name=name, status="rendered"))
    return True
