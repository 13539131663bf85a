from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_TEMPLATES = Path(__file__).resolve().parent / "templates"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EDGESTACK_", case_sensitive=False)

    template_dir: Path = PACKAGE_TEMPLATES
    output_dir: Path = Field(default_factory=lambda: Path.cwd() / "generated")
    cert_root: str = "/certs/live"
    proxy_network: str = "proxy_net"
    xray_image: str = "teddysun/xray:latest"
    vision_flow: str = "xtls-rprx-vision"
    fallback_dest: str = "gateway:20002"
    vless_cdn_upstream: str = "vless-cdn:10000"
    cdn_proxy_host: str = "cdn-proxy"
    vless_direct_host: str = "vless-direct"
    sample_site_repo: str = "https://github.com/jinnotgin/2048.git"
    locale: str = "en_US.UTF-8"
    timezone: str = "Asia/Singapore"
    file_mode: int = 0o644
    secret_file_mode: int = 0o600
