"""
Tests for group rendering, the manifest, and per-group error recovery.
"""

import json
import os
import shutil
import stat

import pytest
import yaml

from edgestack.collection.credentials import build_client_set, build_user_set
from edgestack.collection.params import CdnParams, DirectParams, TlsPaths
from edgestack.core.models import RealityKeyPair, RenderConfig, RolePlan
from edgestack.rendering import groups
from edgestack.rendering.engine import unresolved_keys
from edgestack.rendering.groups import RenderRun


def _cdn_params(domain: str = "a.com") -> CdnParams:
    return CdnParams(
        domain=domain,
        tls=TlsPaths(cert=f"/certs/live/{domain}/fullchain.pem", key=f"/certs/live/{domain}/privkey.pem"),
        clients=build_client_set("VLESS over WebSocket", ["", ""]),
    )


def _direct_params(domain: str = "b.com") -> DirectParams:
    return DirectParams(
        domain=domain,
        tls=TlsPaths(cert="/certs/live/b.com/fullchain.pem", key="/certs/live/b.com/privkey.pem"),
        vision_clients=build_client_set("Vision", [""], flow="xtls-rprx-vision"),
        reality_clients=build_client_set("Reality", ["r-1"], flow="xtls-rprx-vision"),
        hysteria_users=build_user_set("Hysteria2", [("alice", "")]),
        keys=RealityKeyPair(private_key="PRIV", public_key="PUB", source="xray"),
        short_ids=("", "0123456789abcdef"),
    )


def _render_everything(run: RenderRun, settings) -> None:
    run.plan = RolePlan(cdn_domain="a.com", direct_domain="b.com")
    groups.run_group(run, "ssl-renewal", lambda: groups.certificate_group(run.plan, "ops@a.com"))
    groups.run_group(
        run, "cdn", lambda: groups.cdn_group(settings, _cdn_params(), direct_enabled=True)
    )
    groups.run_group(
        run, "direct", lambda: groups.direct_group(settings, _direct_params(), cdn_domain="a.com")
    )
    groups.run_group(run, "healthcheck", lambda: groups.health_group("https://hc.example/ping"))


class TestFullRun:
    def test_manifest_order(self, render_run, settings, output_dir):
        _render_everything(render_run, settings)
        assert render_run.manifest == [
            output_dir / "ssl-renewal" / "docker-compose.yml",
            output_dir / "nginx" / "docker-compose.yml",
            output_dir / "vless-cdn" / "docker-compose.yml",
            output_dir / "gateway" / "docker-compose.yml",
            output_dir / "vless-direct" / "docker-compose.yml",
            output_dir / "hysteria2" / "docker-compose.yml",
            output_dir / "healthcheck" / "docker-compose.yml",
        ]
        assert all(path.is_file() for path in render_run.manifest)
        assert [o.status for o in render_run.outcomes] == ["rendered"] * 4

    def test_packaged_templates_fully_resolve(self, render_run, settings):
        _render_everything(render_run, settings)
        for artifact in render_run.artifacts:
            assert unresolved_keys(artifact.content) == [], artifact.path

    def test_generated_configs_parse(self, render_run, settings, output_dir):
        _render_everything(render_run, settings)
        vless_cdn = json.loads((output_dir / "vless-cdn" / "config.json").read_text())
        assert len(vless_cdn["inbounds"][0]["settings"]["clients"]) == 2

        vless_direct = json.loads((output_dir / "vless-direct" / "config.json").read_text())
        vision, reality = vless_direct["inbounds"]
        assert vision["settings"]["clients"][0]["flow"] == "xtls-rprx-vision"
        assert reality["settings"]["clients"] == [{"id": "r-1", "flow": "xtls-rprx-vision"}]
        assert reality["streamSettings"]["realitySettings"]["shortIds"] == ["", "0123456789abcdef"]
        assert reality["streamSettings"]["realitySettings"]["privateKey"] == "PRIV"

        hysteria = yaml.safe_load((output_dir / "hysteria2" / "config.yaml").read_text())
        assert list(hysteria["auth"]["userpass"]) == ["alice"]

        for compose in render_run.manifest:
            assert "services" in yaml.safe_load(compose.read_text())

    def test_certificate_domains(self, render_run, settings, output_dir):
        _render_everything(render_run, settings)
        text = (output_dir / "ssl-renewal" / "docker-compose.yml").read_text()
        assert "--email ops@a.com -d a.com -d b.com" in text

    def test_secret_files_are_private(self, render_run, settings, output_dir):
        _render_everything(render_run, settings)
        for name in ("vless-cdn/config.json", "vless-direct/config.json", "hysteria2/config.yaml"):
            assert stat.S_IMODE(os.stat(output_dir / name).st_mode) == 0o600

    def test_web_roots_seeded(self, render_run, settings, output_dir):
        _render_everything(render_run, settings)
        assert (output_dir / "nginx" / "www" / "index.html").is_file()
        assert (output_dir / "gateway" / "www" / "index.html").is_file()

    def test_run_collects_credentials(self, render_run, settings):
        _render_everything(render_run, settings)
        assert len(render_run.credential_sets) == 4
        assert render_run.keys is not None and render_run.keys.private_key == "PRIV"


class TestCdnPort:
    def test_cdn_only_uses_443(self, render_run, settings, output_dir):
        groups.run_group(
            render_run, "cdn", lambda: groups.cdn_group(settings, _cdn_params(), direct_enabled=False)
        )
        conf = (output_dir / "nginx" / "nginx.conf").read_text()
        assert "listen 443 ssl;" in conf
        assert "6443" not in (output_dir / "nginx" / "docker-compose.yml").read_text()

    def test_cdn_behind_router_uses_6443(self, render_run, settings, output_dir):
        groups.run_group(
            render_run, "cdn", lambda: groups.cdn_group(settings, _cdn_params(), direct_enabled=True)
        )
        assert "listen 6443 ssl;" in (output_dir / "nginx" / "nginx.conf").read_text()


class TestGatewayRouting:
    def test_with_cdn(self, settings):
        group = groups.direct_group(settings, _direct_params(), cdn_domain="a.com")
        assert group.context["CDN_MAP_ENTRY"] == "a.com cdn;"
        assert group.context["CDN_UPSTREAM_BLOCK"] == "upstream cdn { server cdn-proxy:6443; }"

    def test_without_cdn(self, settings):
        group = groups.direct_group(settings, _direct_params(), cdn_domain=None)
        assert group.context["CDN_MAP_ENTRY"].startswith("#")
        assert group.context["CDN_UPSTREAM_BLOCK"].startswith("#")


class TestGroupErrors:
    def test_empty_health_url_is_reported_and_skipped(self, render_run, settings, caplog):
        render_run.plan = RolePlan(direct_domain="b.com")
        assert not groups.run_group(render_run, "healthcheck", lambda: groups.health_group("  "))
        assert groups.run_group(
            render_run, "ssl-renewal", lambda: groups.certificate_group(render_run.plan, "x@y.z")
        )
        assert render_run.outcomes[0].status == "failed"
        assert "Healthcheck URL is required" in caplog.text
        assert len(render_run.manifest) == 1

    def test_missing_template_skips_group(self, tmp_path, settings):
        templates = tmp_path / "templates"
        shutil.copytree(settings.template_dir, templates)
        (templates / "vless-cdn" / "config.json.template").unlink()
        custom = settings.model_copy(update={"template_dir": templates})
        run = RenderRun(
            config=RenderConfig(template_dir=templates, dest_root=settings.output_dir),
            settings=custom,
        )
        rendered = groups.run_group(
            run, "cdn", lambda: groups.cdn_group(custom, _cdn_params(), direct_enabled=False)
        )
        assert rendered is False
        assert run.outcomes[0].status == "skipped"
        assert run.manifest == []
        assert not (settings.output_dir / "nginx" / "nginx.conf").exists()

        assert groups.run_group(run, "healthcheck", lambda: groups.health_group("https://x"))
        assert len(run.manifest) == 1

    def test_permission_errors_propagate(self, render_run, monkeypatch):
        def denied(*args, **kwargs):
            raise PermissionError("denied: /generated")

        monkeypatch.setattr(groups, "render_all", denied)
        with pytest.raises(PermissionError):
            groups.run_group(render_run, "healthcheck", lambda: groups.health_group("https://x"))
