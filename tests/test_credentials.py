"""
Tests for client credential sets and REALITY keypair generation.
"""

import json
import subprocess
import uuid

import pytest
from pydantic import ValidationError

from edgestack.collection import credentials
from edgestack.collection.credentials import (
    PUBLIC_KEY_SENTINEL,
    apply_key_overrides,
    build_client_set,
    build_user_set,
    collect_client_set,
    collect_reality_keys,
    collect_user_set,
    generate_reality_keys,
    parse_x25519_output,
)
from edgestack.core.models import ClientCredentialSet, RealityKeyPair


class TestClientSets:
    def test_blank_ids_get_distinct_uuids(self):
        client_set = build_client_set("ws", ["", "", ""])
        payload = json.loads(client_set.to_json())
        assert len(payload) == 3
        ids = [entry["id"] for entry in payload]
        assert len(set(ids)) == 3
        for value in ids:
            assert uuid.UUID(value).version == 4
        assert client_set.generated_count == 3

    def test_supplied_ids_are_kept(self):
        client_set = build_client_set("ws", ["my-id", " "])
        first, second = client_set.entries
        assert first.id == "my-id"
        assert first.generated is False
        assert second.generated is True

    def test_flow_tag(self):
        client_set = build_client_set("vision", ["abc"], flow="xtls-rprx-vision")
        assert client_set.to_json() == '[{"id":"abc","flow":"xtls-rprx-vision"}]'

    def test_no_flow_tag(self):
        assert build_client_set("ws", ["abc"]).to_json() == '[{"id":"abc"}]'

    def test_requires_one_entry(self):
        with pytest.raises(ValidationError):
            ClientCredentialSet(label="empty", entries=())

    def test_collect_with_answers(self, make_prompter):
        prompter = make_prompter(ws_count=2, ws_uuid_1="fixed")
        client_set = collect_client_set(prompter, "ws", "VLESS over WebSocket")
        assert len(client_set.entries) == 2
        assert client_set.entries[0].id == "fixed"
        assert client_set.entries[1].generated

    def test_collect_defaults_to_one(self, make_prompter):
        client_set = collect_client_set(make_prompter(), "ws", "VLESS over WebSocket")
        assert len(client_set.entries) == 1


class TestUserSets:
    def test_blank_passwords_are_generated(self):
        user_set = build_user_set("hy2", [("alice", ""), ("bob", "secret")])
        alice, bob = user_set.entries
        assert len(alice.password) == 24
        int(alice.password, 16)
        assert alice.generated is True
        assert bob.password == "secret"
        assert bob.generated is False

    def test_blank_names_get_a_default(self):
        user_set = build_user_set("hy2", [("", "pw")])
        assert user_set.entries[0].name == "user1"

    def test_serialization(self):
        user_set = build_user_set("hy2", [("alice", "a"), ("bob", "b")])
        assert user_set.to_json() == (
            '[{"name":"alice","password":"a"},{"name":"bob","password":"b"}]'
        )
        assert json.loads(user_set.to_userpass_json()) == {"alice": "a", "bob": "b"}

    def test_collect(self, make_prompter):
        prompter = make_prompter(hy_count=2, hy_name_2="carol", hy_password_2="pw")
        user_set = collect_user_set(prompter, "hy", "Hysteria2")
        names = [entry.name for entry in user_set.entries]
        assert names == ["user1", "carol"]
        assert user_set.entries[1].password == "pw"

    def test_repeated_default_name_is_made_unique(self, make_prompter):
        prompter = make_prompter(hy_count=2, hy_name_1="user2", hy_password_1="first")
        user_set = collect_user_set(prompter, "hy", "Hysteria2")
        names = [entry.name for entry in user_set.entries]
        assert names == ["user2", "user2-2"]
        userpass = json.loads(user_set.to_userpass_json())
        assert len(userpass) == 2
        assert userpass["user2"] == "first"

    def test_repeated_names_never_collide(self):
        user_set = build_user_set("hy2", [("a", "1"), ("a-2", "2"), ("a", "3")])
        names = [entry.name for entry in user_set.entries]
        assert len(set(names)) == 3
        assert json.loads(user_set.to_userpass_json())["a"] == "1"


class TestRealityKeys:
    def test_parse_legacy_output(self):
        output = "Private key: PRIV123\nPublic key: PUB456\n"
        assert parse_x25519_output(output) == ("PRIV123", "PUB456")

    def test_parse_current_output(self):
        output = "PrivateKey: PRIV123\nPassword: PUB456\nHash32: xyz\n"
        assert parse_x25519_output(output) == ("PRIV123", "PUB456")

    def test_parse_garbage(self):
        assert parse_x25519_output("error: no such image") is None

    def test_fallback_without_docker(self, monkeypatch):
        monkeypatch.setattr(credentials, "command_exists", lambda name: False)
        keys = generate_reality_keys("teddysun/xray:latest")
        assert keys.source == "random"
        assert keys.public_key == PUBLIC_KEY_SENTINEL
        assert len(keys.private_key) == 64

    def test_uses_xray(self, monkeypatch):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout="Private key: P\nPublic key: Q\n")

        monkeypatch.setattr(credentials, "command_exists", lambda name: True)
        monkeypatch.setattr(credentials, "run_logged", fake_run)
        keys = generate_reality_keys("img:tag")
        assert calls == [["docker", "run", "--rm", "img:tag", "xray", "x25519"]]
        assert (keys.private_key, keys.public_key, keys.source) == ("P", "Q", "xray")

    def test_xray_failure_falls_back(self, monkeypatch):
        def failing_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(125, cmd)

        monkeypatch.setattr(credentials, "command_exists", lambda name: True)
        monkeypatch.setattr(credentials, "run_logged", failing_run)
        keys = generate_reality_keys("img:tag")
        assert keys.source == "random"
        assert keys.public_key == PUBLIC_KEY_SENTINEL

    def test_overrides(self):
        generated = RealityKeyPair(private_key="gp", public_key="gq", source="xray")
        keys = apply_key_overrides(generated, "mine", "")
        assert keys.private_key == "mine"
        assert keys.public_key == "gq"
        assert keys.private_generated is False
        assert keys.public_generated is True
        assert apply_key_overrides(generated, "", "") is generated

    def test_collect_user_keys_skip_generation(self, make_prompter, monkeypatch):
        def boom(image):
            raise AssertionError("should not generate")

        monkeypatch.setattr(credentials, "generate_reality_keys", boom)
        prompter = make_prompter(reality_private_key="p", reality_public_key="q")
        keys = collect_reality_keys(prompter, "img")
        assert keys.source == "user"
        assert not keys.private_generated and not keys.public_generated

    def test_single_override_warns_about_mismatch(self, caplog):
        generated = RealityKeyPair(private_key="gp", public_key="gq", source="xray")
        apply_key_overrides(generated, "mine", "")
        assert "will not match" in caplog.text

    def test_full_override_does_not_warn(self, caplog):
        generated = RealityKeyPair(private_key="gp", public_key="gq", source="xray")
        apply_key_overrides(generated, "mine", "theirs")
        assert "will not match" not in caplog.text
