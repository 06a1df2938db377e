import pytest

from sipbridge.config.models import (
    AgentPlatformConfig,
    BridgeConfig,
    MessagingConfig,
    RecipientConfig,
    RegistrationConfig,
    TrunkConfig,
)
from tests.fakes import TRUNK_ADDRESS


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig(
        trunk=TrunkConfig(
            realm=TRUNK_ADDRESS,
            host="198.51.100.5",
            port=5060,
            username="4822123",
            password="trunk-secret",
            trusted_address=TRUNK_ADDRESS,
        ),
        registration=RegistrationConfig(expires_seconds=3600, retry_interval_seconds=30, response_timeout_seconds=1),
        agent=AgentPlatformConfig(api_key="key_test", agent_id="agent_42", number="+48221234567"),
        messaging=MessagingConfig(page_id="1029384756", access_token="EAAtoken"),
        recipients={
            "event_manager": RecipientConfig(label="Event Manager", recipient_id="111"),
            "recepcja": RecipientConfig(label="Recepcja", recipient_id="222"),
        },
    )
