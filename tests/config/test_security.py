"""
Unit tests for config.security module.

Credentials must come from the environment only, overriding anything in YAML.
"""

import pytest

from sipbridge.config.security import (
    _is_nonempty_string,
    inject_agent_api_key,
    inject_messaging_token,
    inject_trunk_credentials,
)

SECRET_VARS = ("SIP_USERNAME", "SIP_PASSWORD", "RETELL_AUTH", "RETELL_API_KEY", "FB_ACCESS_TOKEN")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in SECRET_VARS:
        monkeypatch.delenv(name, raising=False)


class TestIsNonemptyString:
    def test_values(self):
        assert _is_nonempty_string("x") is True
        assert _is_nonempty_string("  ") is False
        assert _is_nonempty_string(None) is False
        assert _is_nonempty_string(42) is False


class TestInjectTrunkCredentials:
    def test_env_values_injected(self, monkeypatch):
        monkeypatch.setenv("SIP_USERNAME", "4822123")
        monkeypatch.setenv("SIP_PASSWORD", "trunk-secret")
        config_data = {"trunk": {"realm": "203.0.113.10"}}

        inject_trunk_credentials(config_data)

        assert config_data["trunk"] == {"realm": "203.0.113.10", "username": "4822123", "password": "trunk-secret"}

    def test_yaml_password_is_discarded(self):
        config_data = {"trunk": {"username": "from-yaml", "password": "from-yaml"}}

        inject_trunk_credentials(config_data)

        assert config_data["trunk"]["username"] is None
        assert config_data["trunk"]["password"] is None

    def test_missing_section_created(self):
        config_data = {}
        inject_trunk_credentials(config_data)
        assert "trunk" in config_data


class TestInjectApiKeys:
    def test_agent_api_key(self, monkeypatch):
        monkeypatch.setenv("RETELL_AUTH", "key_live")
        config_data = {"agent": {"api_key": "yaml-key"}}

        inject_agent_api_key(config_data)

        assert config_data["agent"]["api_key"] == "key_live"

    def test_agent_api_key_alternate_name(self, monkeypatch):
        monkeypatch.setenv("RETELL_API_KEY", "key_alt")
        config_data = {}

        inject_agent_api_key(config_data)

        assert config_data["agent"]["api_key"] == "key_alt"

    def test_messaging_token(self, monkeypatch):
        monkeypatch.setenv("FB_ACCESS_TOKEN", "  EAAtoken  ")
        config_data = {}

        inject_messaging_token(config_data)

        assert config_data["messaging"]["access_token"] == "EAAtoken"
