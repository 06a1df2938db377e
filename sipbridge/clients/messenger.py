"""Messenger Send API client used for post-call summaries."""

import asyncio
from typing import Any, Dict

import aiohttp

from sipbridge.clients.http import JsonHttpClient
from sipbridge.config.models import MessagingConfig
from sipbridge.exceptions import NotificationDeliveryFailed
from sipbridge.logging_config import get_logger

logger = get_logger(__name__)


class MessengerClient(JsonHttpClient):
    def __init__(self, config: MessagingConfig):
        super().__init__(config.base_url, config.request_timeout_seconds)
        self._config = config

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self._config.api_version}/{self._config.page_id}/messages"

    def build_payload(self, recipient_id: str, text: str) -> Dict[str, Any]:
        return {
            "recipient": {"id": recipient_id},
            "messaging_type": self._config.messaging_type,
            "tag": self._config.tag,
            "message": {"text": text},
            "access_token": self._config.access_token,
        }

    async def send_message(self, recipient_id: str, text: str) -> Dict[str, Any]:
        """Send one text message. Raises NotificationDeliveryFailed on any failure."""
        if not self._config.access_token or not self._config.page_id:
            raise NotificationDeliveryFailed("messaging page id or access token not configured")
        try:
            async with self._ensure_session().post(self.messages_url, json=self.build_payload(recipient_id, text)) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise NotificationDeliveryFailed(
                        f"send API returned {response.status}: {body[:300]}",
                        http_status=response.status,
                    )
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NotificationDeliveryFailed(f"send API request failed: {exc!r}") from exc
        logger.debug("Messenger send acknowledged", recipient_id=recipient_id, message_id=(data or {}).get("message_id"))
        return data if isinstance(data, dict) else {}
