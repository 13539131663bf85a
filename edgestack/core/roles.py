"""CDN / direct role assignment."""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import ValidationError

from .errors import DomainNotListed, InvalidChoice, MissingRequiredInput, NoRoleSelected
from .models import DomainSet, RolePlan

logger = logging.getLogger(__name__)

CDN = "cdn"
DIRECT = "direct"


def _resolve_single(domain: str, choice: str | None) -> RolePlan:
    normalized = (choice or "").strip().lower()
    if normalized in ("", CDN):
        return RolePlan(cdn_domain=domain)
    if normalized == DIRECT:
        return RolePlan(direct_domain=domain)
    raise InvalidChoice(f"Invalid choice {choice!r}. Use 'cdn' or 'direct'.")


def _resolve_pick(domains: DomainSet, pick: str | None, role: str) -> str | None:
    value = (pick or "").strip()
    if not value:
        return None
    if value not in domains:
        raise DomainNotListed(
            f"{role} domain '{value}' not in provided list: {', '.join(domains.names)}"
        )
    return value


def assign_roles(
    domains: DomainSet | Iterable[str],
    single_choice: str | None = None,
    cdn_pick: str | None = None,
    direct_pick: str | None = None,
) -> RolePlan:
    """Decide which domain serves the CDN profile and which the direct profile.

    Args:
        domains: Collected domains (at least one)
        single_choice: "cdn" or "direct"; only used with a single domain
        cdn_pick: Domain for the CDN role, empty to skip (two or more domains)
        direct_pick: Domain for the direct role, empty to skip (two or more domains)

    Returns:
        Validated role plan

    Raises:
        InvalidChoice: Unrecognized single-domain choice, or one domain picked twice
        DomainNotListed: A pick is not one of the collected domains
        NoRoleSelected: Both roles were skipped
        MissingRequiredInput: No non-blank domain was given
    """
    if isinstance(domains, DomainSet):
        domain_set = domains
    else:
        try:
            domain_set = DomainSet(names=tuple(domains))
        except ValidationError as exc:
            raise MissingRequiredInput("At least one domain is required.") from exc

    if len(domain_set) == 1:
        plan = _resolve_single(domain_set.names[0], single_choice)
        logger.debug(f"Single domain resolved to {plan!r}")
        return plan

    cdn_domain = _resolve_pick(domain_set, cdn_pick, "CDN")
    direct_domain = _resolve_pick(domain_set, direct_pick, "Direct")

    if cdn_domain is None and direct_domain is None:
        raise NoRoleSelected("At least one role (CDN or Direct) must be selected.")

    if cdn_domain is not None and cdn_domain == direct_domain:
        raise InvalidChoice(
            f"Domain '{cdn_domain}' cannot serve both the CDN and the Direct role."
        )

    plan = RolePlan(cdn_domain=cdn_domain, direct_domain=direct_domain)
    logger.debug(f"Resolved role plan: {plan!r}")
    return plan
