"""Domain models for role planning, credentials and rendering."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DomainSet(BaseModel):
    """Domains entered by the user, in entry order."""

    model_config = ConfigDict(frozen=True)

    names: tuple[str, ...] = Field(..., min_length=1, description="Domain names")

    @field_validator("names", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(
                item.strip() for item in value if isinstance(item, str) and item.strip()
            )
        return value

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, domain: object) -> bool:
        return domain in self.names


class RolePlan(BaseModel):
    """Which domain serves the CDN profile and which serves the direct one."""

    model_config = ConfigDict(frozen=True)

    cdn_domain: str | None = Field(default=None, description="CDN-fronted domain")
    direct_domain: str | None = Field(default=None, description="Direct domain")

    @model_validator(mode="after")
    def _at_least_one_role(self) -> "RolePlan":
        if not self.cdn_domain and not self.direct_domain:
            raise ValueError("At least one role (CDN or Direct) must be set")
        return self

    @property
    def domains(self) -> list[str]:
        """Deduplicated union of the assigned domains, CDN first."""
        ordered: list[str] = []
        for domain in (self.cdn_domain, self.direct_domain):
            if domain and domain not in ordered:
                ordered.append(domain)
        return ordered

    @property
    def domains_args(self) -> str:
        return " ".join(f"-d {domain}" for domain in self.domains)

    @property
    def primary_domain(self) -> str:
        return self.cdn_domain or self.direct_domain or ""


class ClientCredential(BaseModel):
    """A tunnel client identifier with an optional flow tag."""

    model_config = ConfigDict(frozen=True)

    id: str
    flow: str | None = None
    generated: bool = False

    def to_payload(self) -> dict[str, str]:
        payload = {"id": self.id}
        if self.flow:
            payload["flow"] = self.flow
        return payload


class UserCredential(BaseModel):
    """A username/password pair."""

    model_config = ConfigDict(frozen=True)

    name: str
    password: str
    generated: bool = False

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "password": self.password}


Credential = Union[ClientCredential, UserCredential]


class ClientCredentialSet(BaseModel):
    """Ordered credentials for one transport, serialized as a JSON array."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Human readable transport label")
    entries: tuple[Credential, ...] = Field(..., min_length=1)

    def to_json(self) -> str:
        return json.dumps(
            [entry.to_payload() for entry in self.entries], separators=(",", ":")
        )

    def to_userpass_json(self) -> str:
        """Username to password mapping, as expected by userpass auth blocks."""
        return json.dumps(
            {
                entry.name: entry.password
                for entry in self.entries
                if isinstance(entry, UserCredential)
            },
            separators=(",", ":"),
        )

    @property
    def generated_count(self) -> int:
        return sum(1 for entry in self.entries if entry.generated)


class RealityKeyPair(BaseModel):
    """x25519 keypair used by the REALITY inbound."""

    model_config = ConfigDict(frozen=True)

    private_key: str
    public_key: str
    source: Literal["user", "xray", "random"]
    private_generated: bool = True
    public_generated: bool = True


class TemplateSpec(BaseModel):
    """A static template text with ``{{KEY}}`` placeholders."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Template identifier (relative path)")
    text: str


class RenderTask(BaseModel):
    """A single template rendering task."""

    template_path: Path = Field(..., description="Template path, relative to template dir")
    output_path: Path = Field(..., description="Output path, relative to output dir")
    compose: bool = Field(default=False, description="Output is a compose descriptor")
    file_mode: int | None = Field(default=None, description="Override file permissions")


class RenderConfig(BaseModel):
    """Configuration for the rendering process."""

    template_dir: Path = Field(..., description="Template tree root")
    dest_root: Path = Field(
        default_factory=lambda: Path.cwd() / "generated",
        description="Base output directory",
    )
    file_mode: int = Field(default=0o644, description="File permissions (octal)")


class GeneratedArtifact(BaseModel):
    """A rendered file written to disk."""

    model_config = ConfigDict(frozen=True)

    path: Path
    content: str
