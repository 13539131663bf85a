"""Client credential and keypair collection."""

from __future__ import annotations

import logging
import re
import secrets
import subprocess
import uuid
from typing import Sequence

from ..core.models import (
    ClientCredential,
    ClientCredentialSet,
    RealityKeyPair,
    UserCredential,
)
from ..ops._utils import command_exists, run_logged
from .prompts import Prompter

logger = logging.getLogger(__name__)

PUBLIC_KEY_SENTINEL = "REPLACE_WITH_PUBLIC_KEY"

# "Private key: X" / "Public key: Y" on older xray, "PrivateKey: X" / "Password: Y" on newer.
_PRIVATE_PATTERN = re.compile(r"^\s*Private\s*key:\s*(\S+)", re.IGNORECASE | re.MULTILINE)
_PUBLIC_PATTERN = re.compile(
    r"^\s*(?:Public\s*key|Password):\s*(\S+)", re.IGNORECASE | re.MULTILINE
)


def new_client_id() -> str:
    return str(uuid.uuid4())


def new_password() -> str:
    return secrets.token_hex(12)


def build_client_set(
    label: str, ids: Sequence[str], flow: str | None = None
) -> ClientCredentialSet:
    """Client set from user-supplied IDs; blank slots get a fresh UUID v4."""
    entries = []
    for value in ids:
        client_id = value.strip()
        entries.append(
            ClientCredential(
                id=client_id or new_client_id(),
                flow=flow or None,
                generated=not client_id,
            )
        )
    return ClientCredentialSet(label=label, entries=tuple(entries))


def build_user_set(
    label: str, users: Sequence[tuple[str, str]]
) -> ClientCredentialSet:
    """User set from (name, password) pairs; blank passwords are generated.

    Names must be unique in a userpass map, so a repeated name gets the
    entry's position appended (``user2`` twice becomes ``user2``, ``user2-2``).
    """
    entries = []
    taken: set[str] = set()
    for index, (name, password) in enumerate(users, start=1):
        secret = password.strip()
        username = name.strip() or f"user{index}"
        if username in taken:
            unique = f"{username}-{index}"
            suffix = index
            while unique in taken:
                suffix += 1
                unique = f"{username}-{suffix}"
            logger.warning(f"{label} username '{username}' is repeated; using '{unique}'")
            username = unique
        taken.add(username)
        entries.append(
            UserCredential(
                name=username,
                password=secret or new_password(),
                generated=not secret,
            )
        )
    return ClientCredentialSet(label=label, entries=tuple(entries))


def collect_client_set(
    prompter: Prompter, key: str, label: str, flow: str | None = None
) -> ClientCredentialSet:
    count = prompter.integer(f"{key}_count", f"How many VLESS accounts for {label}?")
    ids = [
        prompter.text(
            f"{key}_uuid_{index}",
            f"UUID for {label} user {index} (leave blank to auto-generate)",
        )
        for index in range(1, count + 1)
    ]
    return build_client_set(label, ids, flow)


def collect_user_set(prompter: Prompter, key: str, label: str) -> ClientCredentialSet:
    count = prompter.integer(f"{key}_count", f"How many {label} users do you want?")
    users: list[tuple[str, str]] = []
    for index in range(1, count + 1):
        name = prompter.text(
            f"{key}_name_{index}",
            f"Username for {label} user {index}",
            default=f"user{index}",
        )
        password = prompter.text(
            f"{key}_password_{index}",
            f"Password for {name} (leave blank to auto-generate)",
        )
        users.append((name, password))
    return build_user_set(label, users)


def parse_x25519_output(output: str) -> tuple[str, str] | None:
    private = _PRIVATE_PATTERN.search(output)
    public = _PUBLIC_PATTERN.search(output)
    if private is None or public is None:
        return None
    return private.group(1), public.group(1)


def generate_reality_keys(xray_image: str) -> RealityKeyPair:
    """Generate an x25519 keypair with xray, falling back to placeholders.

    The fallback private key is random hex and the public key is a sentinel
    that must be replaced before clients can connect.
    """
    if command_exists("docker"):
        try:
            result = run_logged(
                ["docker", "run", "--rm", xray_image, "xray", "x25519"],
                capture_output=True,
                echo="never",
            )
        except subprocess.CalledProcessError as exc:
            logger.warning(f"xray x25519 failed (exit {exc.returncode}); using fallback keys")
        else:
            parsed = parse_x25519_output(result.stdout)
            if parsed is not None:
                private_key, public_key = parsed
                return RealityKeyPair(
                    private_key=private_key, public_key=public_key, source="xray"
                )
            logger.warning("Could not parse xray x25519 output; using fallback keys")
    else:
        logger.warning("docker not found; cannot run xray x25519, using fallback keys")

    return RealityKeyPair(
        private_key=secrets.token_hex(32),
        public_key=PUBLIC_KEY_SENTINEL,
        source="random",
    )


def apply_key_overrides(
    generated: RealityKeyPair, private_key: str, public_key: str
) -> RealityKeyPair:
    """Prefer user-supplied keys over the generated ones, slot by slot."""
    private_key = private_key.strip()
    public_key = public_key.strip()
    if not private_key and not public_key:
        return generated
    both = bool(private_key and public_key)
    if not both:
        supplied = "private" if private_key else "public"
        logger.warning(
            f"Only the Reality {supplied} key was supplied; the other key was generated "
            "separately and will not match it. Supply both keys or neither."
        )
    return RealityKeyPair(
        private_key=private_key or generated.private_key,
        public_key=public_key or generated.public_key,
        source="user" if both else generated.source,
        private_generated=not private_key,
        public_generated=not public_key,
    )


def collect_reality_keys(prompter: Prompter, xray_image: str) -> RealityKeyPair:
    private_key = prompter.text(
        "reality_private_key", "Reality private key (leave blank to generate)"
    )
    public_key = prompter.text(
        "reality_public_key", "Reality public key (leave blank to generate)"
    )
    if private_key and public_key:
        return apply_key_overrides(
            RealityKeyPair(private_key="", public_key="", source="user"),
            private_key,
            public_key,
        )
    return apply_key_overrides(generate_reality_keys(xray_image), private_key, public_key)
