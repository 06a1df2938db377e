"""
Client for the voice-agent platform's call registration API.

Before an inbound call is dialed into the agent platform it must be
registered there; the platform answers with the call id that the outbound
leg's SIP URI is built from.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict

import aiohttp

from sipbridge.clients.http import JsonHttpClient
from sipbridge.config.models import AgentPlatformConfig
from sipbridge.exceptions import RemoteAdmissionRejected, TransportFailure
from sipbridge.logging_config import get_logger

logger = get_logger(__name__)

REGISTER_PHONE_CALL_PATH = "/v2/register-phone-call"


@dataclass(frozen=True)
class AgentCallRegistration:
    external_call_id: str
    raw: Dict[str, Any]


class AgentPlatformClient(JsonHttpClient):
    def __init__(self, config: AgentPlatformConfig):
        super().__init__(
            config.base_url,
            config.request_timeout_seconds,
            headers={"Authorization": f"Bearer {config.api_key or ''}"},
        )
        self._config = config

    async def register_call(self, from_number: str, to_number: str, direction: str = "inbound") -> AgentCallRegistration:
        """Register an inbound call with the agent.

        Raises:
            RemoteAdmissionRejected: the platform answered with an error status
                (capacity, concurrency limit, validation) or without a call id.
            TransportFailure: the request did not complete.
        """
        payload = {
            "agent_id": self._config.agent_id,
            "from_number": from_number,
            "to_number": to_number,
            "direction": direction,
        }
        url = f"{self.base_url}{REGISTER_PHONE_CALL_PATH}"
        try:
            async with self._ensure_session().post(url, json=payload) as response:
                if response.status >= 400:
                    reason = await response.text()
                    logger.warning(
                        "Agent platform declined call registration",
                        status=response.status,
                        reason=reason[:500],
                        from_number=from_number,
                    )
                    raise RemoteAdmissionRejected(
                        f"register-phone-call returned {response.status}",
                        http_status=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"register-phone-call request failed: {exc!r}") from exc
        except ValueError as exc:
            raise RemoteAdmissionRejected(f"register-phone-call returned invalid JSON: {exc}") from exc

        call_id = data.get("call_id") if isinstance(data, dict) else None
        if not call_id:
            raise RemoteAdmissionRejected("register-phone-call response carried no call_id")
        logger.info("Agent call registered", external_call_id=call_id, from_number=from_number)
        return AgentCallRegistration(external_call_id=str(call_id), raw=data)
