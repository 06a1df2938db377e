"""Immutable configuration structures handed to each component at construction."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _FrozenModel(BaseModel):
    # Numeric-looking ids (page ids, recipient ids, phone numbers) arrive from
    # YAML as ints; they are identifiers, not numbers.
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True, extra="ignore")


class TrunkConfig(_FrozenModel):
    realm: str = ""
    host: str = ""
    port: int = Field(default=5060, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    # Source address every inbound INVITE must come from.
    trusted_address: str = ""

    @property
    def address_of_record(self) -> str:
        return f"sip:{self.username}@{self.realm}"

    @property
    def proxy(self) -> str:
        return f"sip:{self.host}:{self.port}"


class RegistrationConfig(_FrozenModel):
    expires_seconds: int = Field(default=3600, gt=0)
    retry_interval_seconds: float = Field(default=30.0, gt=0)
    response_timeout_seconds: float = Field(default=10.0, gt=0)


class AgentPlatformConfig(_FrozenModel):
    base_url: str = "https://api.retellai.com"
    api_key: Optional[str] = None
    agent_id: str = ""
    # Number the agent is reachable on; sent as to_number for every call.
    number: str = ""
    sip_domain: str = "sip.retellai.com"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    def destination_for(self, call_id: str) -> str:
        return f"sip:{call_id}@{self.sip_domain}"


class MessagingConfig(_FrozenModel):
    base_url: str = "https://graph.facebook.com"
    api_version: str = "v19.0"
    page_id: str = ""
    access_token: Optional[str] = None
    messaging_type: str = "MESSAGE_TAG"
    tag: str = "ACCOUNT_UPDATE"
    request_timeout_seconds: float = Field(default=10.0, gt=0)


class RecipientConfig(_FrozenModel):
    label: str
    recipient_id: Optional[str] = None


class NotificationConfig(_FrozenModel):
    cc_tag: str = "event_manager"
    summary_placeholder: str = "Brak podsumowania"
    analyzed_event: str = "call_analyzed"


class HttpConfig(_FrozenModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    webhook_path: str = "/webhook-retell"


class SignalingConfig(_FrozenModel):
    # Dotted path "package.module:ClassName" of the SignalingClient implementation.
    adapter: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class LoggingConfig(_FrozenModel):
    level: str = "info"
    format: str = "json"
    file: Optional[str] = None


class BridgeConfig(_FrozenModel):
    trunk: TrunkConfig = Field(default_factory=TrunkConfig)
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    agent: AgentPlatformConfig = Field(default_factory=AgentPlatformConfig)
    messaging: MessagingConfig = Field(default_factory=MessagingConfig)
    recipients: Dict[str, RecipientConfig] = Field(default_factory=dict)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    signaling: SignalingConfig = Field(default_factory=SignalingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
