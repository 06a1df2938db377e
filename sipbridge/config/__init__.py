"""
Configuration loading for the bridge.

load_config runs in phases: read YAML with env expansion, inject secrets from
the environment, apply defaults, then build the frozen BridgeConfig.
"""

import os
from typing import List, Optional, Tuple

from sipbridge.config.defaults import (
    apply_agent_defaults,
    apply_http_defaults,
    apply_logging_defaults,
    apply_messaging_defaults,
    apply_recipient_defaults,
    apply_trunk_defaults,
)
from sipbridge.config.loaders import (
    DEFAULT_CONFIG_PATH,
    load_yaml_with_env_expansion,
    resolve_config_path,
)
from sipbridge.config.models import (
    AgentPlatformConfig,
    BridgeConfig,
    HttpConfig,
    LoggingConfig,
    MessagingConfig,
    NotificationConfig,
    RecipientConfig,
    RegistrationConfig,
    SignalingConfig,
    TrunkConfig,
)
from sipbridge.config.security import (
    inject_agent_api_key,
    inject_messaging_token,
    inject_trunk_credentials,
)

__all__ = [
    "AgentPlatformConfig",
    "BridgeConfig",
    "HttpConfig",
    "LoggingConfig",
    "MessagingConfig",
    "NotificationConfig",
    "RecipientConfig",
    "RegistrationConfig",
    "SignalingConfig",
    "TrunkConfig",
    "load_config",
    "validate_production_config",
]


def load_config(path: Optional[str] = None) -> BridgeConfig:
    """
    Load and validate configuration.

    Args:
        path: YAML file (absolute or relative to project root). Defaults to
            $SIPBRIDGE_CONFIG, then config/bridge.yaml.

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If values have the wrong shape
    """
    path = resolve_config_path(path or os.getenv("SIPBRIDGE_CONFIG") or DEFAULT_CONFIG_PATH)
    config_data = load_yaml_with_env_expansion(path)

    inject_trunk_credentials(config_data)
    inject_agent_api_key(config_data)
    inject_messaging_token(config_data)

    apply_trunk_defaults(config_data)
    apply_agent_defaults(config_data)
    apply_messaging_defaults(config_data)
    apply_recipient_defaults(config_data)
    apply_http_defaults(config_data)
    apply_logging_defaults(config_data)

    return BridgeConfig(**config_data)


def validate_production_config(config: BridgeConfig) -> Tuple[List[str], List[str]]:
    """Check a loaded config for deployment readiness.

    Returns:
        (errors, warnings). Errors block startup, warnings are logged only.
    """
    errors: List[str] = []
    warnings: List[str] = []

    trunk = config.trunk
    if not trunk.username or not trunk.password:
        errors.append("Trunk credentials missing (set SIP_USERNAME and SIP_PASSWORD)")
    if not trunk.realm:
        errors.append("Trunk realm missing (set SIP_REALM)")
    if not trunk.host:
        errors.append("Trunk registrar address missing (set SIP_IPV4)")
    if not trunk.trusted_address:
        errors.append("No trusted source address; every inbound call would be rejected")

    if not config.agent.api_key:
        errors.append("Agent platform API key missing (set RETELL_AUTH)")
    if not config.agent.agent_id:
        errors.append("Agent id missing (set RETELL_AGENT_ID)")
    if not config.agent.number:
        errors.append("Agent number missing (set RETELL_NUMBER)")

    if not config.signaling.adapter:
        errors.append("No signaling adapter configured (signaling.adapter)")

    if not config.messaging.access_token:
        warnings.append("FB_ACCESS_TOKEN not set; call summaries will not be delivered")
    if not config.messaging.page_id:
        warnings.append("FB_PAGE_ID not set; call summaries will not be delivered")
    for tag, entry in config.recipients.items():
        if not entry.recipient_id:
            warnings.append(f"Recipient '{tag}' has no recipient id and will be skipped")
    if config.notifications.cc_tag not in config.recipients:
        warnings.append(f"CC recipient '{config.notifications.cc_tag}' is not in the recipient directory")

    return errors, warnings
