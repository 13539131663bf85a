"""Per-role parameter collection."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Sequence

from ..core.models import ClientCredentialSet, RealityKeyPair
from ..settings import Settings
from .credentials import collect_client_set, collect_reality_keys, collect_user_set
from .prompts import Prompter

logger = logging.getLogger(__name__)

DEFAULT_XHTTP_PATH = "/somepath"
DEFAULT_REALITY_TARGET = "microsoft.com:443"
DEFAULT_SERVER_NAMES = "www.microsoft.com,microsoft.com"
DEFAULT_SHORT_IDS = ",0123456789abcdef"
DEFAULT_MASQUERADE = "https://news.ycombinator.com"


@dataclass(frozen=True)
class TlsPaths:
    cert: str
    key: str


@dataclass(frozen=True)
class CdnParams:
    domain: str
    tls: TlsPaths
    clients: ClientCredentialSet
    seed_sample_site: bool = False


@dataclass(frozen=True)
class DirectParams:
    domain: str
    tls: TlsPaths
    vision_clients: ClientCredentialSet
    reality_clients: ClientCredentialSet
    hysteria_users: ClientCredentialSet
    keys: RealityKeyPair
    xhttp_path: str = DEFAULT_XHTTP_PATH
    reality_target: str = DEFAULT_REALITY_TARGET
    server_names: tuple[str, ...] = ("www.microsoft.com", "microsoft.com")
    short_ids: tuple[str, ...] = ("", "0123456789abcdef")
    masquerade: str = DEFAULT_MASQUERADE
    seed_sample_site: bool = False


def split_csv(value: str, *, keep_empty: bool = False) -> list[str]:
    """Split a comma-separated answer.

    With ``keep_empty`` an empty item is kept as a distinct element, so
    ``",abc"`` yields ``["", "abc"]``.
    """
    items = [item.strip() for item in value.split(",")]
    if keep_empty:
        return items
    return [item for item in items if item]


def json_array(items: Sequence[str]) -> str:
    return json.dumps(list(items), separators=(",", ":"))


def default_tls_paths(cert_root: str, domain: str) -> TlsPaths:
    root = cert_root.rstrip("/")
    return TlsPaths(
        cert=f"{root}/{domain}/fullchain.pem",
        key=f"{root}/{domain}/privkey.pem",
    )


def collect_tls_paths(prompter: Prompter, key: str, label: str, defaults: TlsPaths) -> TlsPaths:
    cert = prompter.text(
        f"{key}_tls_cert",
        f"Path to TLS certificate for {label} domain",
        default=defaults.cert,
    )
    private_key = prompter.text(
        f"{key}_tls_key",
        f"Path to TLS private key for {label} domain",
        default=defaults.key,
    )
    return TlsPaths(cert=cert or defaults.cert, key=private_key or defaults.key)


def collect_seed_choice(prompter: Prompter, key: str) -> bool:
    return prompter.confirm(
        f"{key}_seed_sample_site",
        "Download sample 2048 static site into Nginx web root?",
    )


def collect_cdn_params(prompter: Prompter, settings: Settings, domain: str) -> CdnParams:
    tls = collect_tls_paths(
        prompter, "cdn", "CDN", default_tls_paths(settings.cert_root, domain)
    )
    clients = collect_client_set(prompter, "cdn_clients", "VLESS over WebSocket")
    return CdnParams(
        domain=domain,
        tls=tls,
        clients=clients,
        seed_sample_site=collect_seed_choice(prompter, "cdn"),
    )


def collect_direct_params(
    prompter: Prompter, settings: Settings, domain: str
) -> DirectParams:
    tls = collect_tls_paths(
        prompter, "direct", "Direct", default_tls_paths(settings.cert_root, domain)
    )
    vision_clients = collect_client_set(
        prompter, "vision_clients", "VLESS Vision (XTLS)", settings.vision_flow
    )
    reality_clients = collect_client_set(
        prompter, "reality_clients", "VLESS XHTTP Reality", settings.vision_flow
    )
    hysteria_users = collect_user_set(prompter, "hysteria_users", "Hysteria2")

    xhttp_path = prompter.text("xhttp_path", "XHTTP path", default=DEFAULT_XHTTP_PATH)
    reality_target = prompter.text(
        "reality_target", "Reality target", default=DEFAULT_REALITY_TARGET
    )
    server_names = split_csv(
        prompter.text(
            "reality_server_names",
            "Reality SNI server names (comma-separated)",
            default=DEFAULT_SERVER_NAMES,
        )
        or DEFAULT_SERVER_NAMES
    )
    short_ids = split_csv(
        prompter.text(
            "reality_short_ids",
            "Reality short IDs (comma-separated, include an empty entry to allow blank)",
            default=DEFAULT_SHORT_IDS,
        )
        or DEFAULT_SHORT_IDS,
        keep_empty=True,
    )
    keys = collect_reality_keys(prompter, settings.xray_image)
    masquerade = prompter.text(
        "hysteria_masquerade",
        "Masquerade site for Hysteria2",
        default=DEFAULT_MASQUERADE,
    )

    return DirectParams(
        domain=domain,
        tls=tls,
        vision_clients=vision_clients,
        reality_clients=reality_clients,
        hysteria_users=hysteria_users,
        keys=keys,
        xhttp_path=xhttp_path or DEFAULT_XHTTP_PATH,
        reality_target=reality_target or DEFAULT_REALITY_TARGET,
        server_names=tuple(server_names),
        short_ids=tuple(short_ids),
        masquerade=masquerade or DEFAULT_MASQUERADE,
        seed_sample_site=collect_seed_choice(prompter, "gateway"),
    )
