"""
Security-critical configuration injection.

SECURITY POLICY:
- Trunk passwords, API keys and access tokens MUST NEVER be in YAML files
- All credentials come from environment variables only; any YAML value is overwritten
"""

import os
from typing import Any, Dict


def _is_nonempty_string(val: Any) -> bool:
    return isinstance(val, str) and val.strip() != ""


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    block = config_data.get(name)
    if not isinstance(block, dict):
        block = {}
        config_data[name] = block
    return block


def _env_or_none(*names: str):
    for name in names:
        value = os.getenv(name)
        if _is_nonempty_string(value):
            return value.strip()
    return None


def inject_trunk_credentials(config_data: Dict[str, Any]) -> None:
    """
    Inject trunk registration credentials.

    Environment variables:
    - SIP_USERNAME (required)
    - SIP_PASSWORD (required)
    """
    trunk = _section(config_data, "trunk")
    trunk["username"] = _env_or_none("SIP_USERNAME")
    trunk["password"] = _env_or_none("SIP_PASSWORD")


def inject_agent_api_key(config_data: Dict[str, Any]) -> None:
    """Inject the agent-platform API key from RETELL_AUTH (or RETELL_API_KEY)."""
    _section(config_data, "agent")["api_key"] = _env_or_none("RETELL_AUTH", "RETELL_API_KEY")


def inject_messaging_token(config_data: Dict[str, Any]) -> None:
    """Inject the messaging page access token from FB_ACCESS_TOKEN."""
    _section(config_data, "messaging")["access_token"] = _env_or_none("FB_ACCESS_TOKEN")
