"""Domain collection and role prompts."""

from __future__ import annotations

import logging

from ..core.errors import MissingRequiredInput
from ..core.models import DomainSet, RolePlan
from ..core.roles import assign_roles
from .prompts import Prompter

logger = logging.getLogger(__name__)


def collect_domains(prompter: Prompter) -> DomainSet:
    """Ask for domains until a blank answer; an answers-file list is used as-is."""
    preset = prompter.answers.get("domains")
    if isinstance(preset, (list, tuple)):
        names = [str(item) for item in preset]
    else:
        names = []
        index = 1
        while True:
            domain = prompter.text(
                f"domain_{index}", "Enter a domain to include (leave blank to finish)"
            )
            if not domain:
                break
            names.append(domain)
            index += 1

    names = [name.strip() for name in names if name.strip()]
    if not names:
        raise MissingRequiredInput("At least one domain is required.")
    return DomainSet(names=tuple(names))


def collect_role_plan(prompter: Prompter, domains: DomainSet) -> RolePlan:
    if len(domains) == 1:
        domain = domains.names[0]
        choice = prompter.text(
            "role_choice",
            f"Single domain '{domain}' detected. Use it for CDN (VLESS+WS via Cloudflare) "
            "or Direct (Hysteria2 + Vision + XHTTP Reality)? [cdn/direct]",
            default="cdn",
        )
        return assign_roles(domains, single_choice=choice)

    logger.info(f"You entered: {' '.join(domains.names)}")
    cdn_pick = prompter.text(
        "cdn_domain",
        "Pick the CDN domain for VLESS+WS (Cloudflare-friendly). Leave blank to skip CDN",
    )
    direct_pick = prompter.text(
        "direct_domain",
        "Pick the Direct domain for Hysteria2 + Vision + XHTTP Reality (no CDN). "
        "Leave blank to skip direct",
    )
    return assign_roles(domains, cdn_pick=cdn_pick, direct_pick=direct_pick)
