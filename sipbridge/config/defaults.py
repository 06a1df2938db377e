"""
Default value application for configuration.

Values already present in YAML win; otherwise the environment is consulted,
then the built-in default. Empty strings left behind by ``${VAR}`` expansion
count as absent.
"""

import os
from typing import Any, Dict, Optional


def _setdefault(block: Dict[str, Any], key: str, value: Any) -> None:
    if block.get(key) in (None, ""):
        if value not in (None, ""):
            block[key] = value
        else:
            block.pop(key, None)


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    block = config_data.get(name)
    if not isinstance(block, dict):
        block = {}
        config_data[name] = block
    return block


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value not in (None, "") else default


def apply_trunk_defaults(config_data: Dict[str, Any]) -> None:
    """
    Trunk address defaults.

    Environment variables:
    - SIP_REALM: registration domain
    - SIP_IPV4: address REGISTER requests are routed to
    - SIP_PORT: signaling port of that address (default: 5060)
    - SIP_TRUSTED_ADDRESS: source address INVITEs must arrive from (default: SIP_REALM)
    """
    trunk = _section(config_data, "trunk")
    _setdefault(trunk, "realm", _env("SIP_REALM"))
    _setdefault(trunk, "host", _env("SIP_IPV4"))
    _setdefault(trunk, "port", _env("SIP_PORT", "5060"))
    _setdefault(trunk, "trusted_address", _env("SIP_TRUSTED_ADDRESS", trunk.get("realm")))


def apply_agent_defaults(config_data: Dict[str, Any]) -> None:
    agent = _section(config_data, "agent")
    _setdefault(agent, "agent_id", _env("RETELL_AGENT_ID"))
    _setdefault(agent, "number", _env("RETELL_NUMBER"))


def apply_messaging_defaults(config_data: Dict[str, Any]) -> None:
    messaging = _section(config_data, "messaging")
    _setdefault(messaging, "api_version", _env("FB_API_VERSION"))
    _setdefault(messaging, "page_id", _env("FB_PAGE_ID"))


def apply_recipient_defaults(config_data: Dict[str, Any]) -> None:
    """
    Seed the recipient directory when YAML defines none.

    Environment variables:
    - MANAGER_ID: recipient id of the event manager
    - RECEPTION_ID: recipient id of the reception desk
    """
    if config_data.get("recipients"):
        return
    config_data["recipients"] = {
        "event_manager": {"label": "Event Manager", "recipient_id": _env("MANAGER_ID")},
        "recepcja": {"label": "Recepcja", "recipient_id": _env("RECEPTION_ID")},
    }


def apply_http_defaults(config_data: Dict[str, Any]) -> None:
    http = _section(config_data, "http")
    _setdefault(http, "port", _env("PORT", "8080"))


def apply_logging_defaults(config_data: Dict[str, Any]) -> None:
    logging_cfg = _section(config_data, "logging")
    _setdefault(logging_cfg, "level", _env("LOGLEVEL", "info"))
