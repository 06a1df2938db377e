"""
Post-call summary routing.

Each analyzed call becomes one Messenger text sent to the recipient named by
the call's receiver_type, plus a copy to the CC recipient (the event manager)
whenever the primary recipient is someone else.
"""

from sipbridge.clients.messenger import MessengerClient
from sipbridge.config.models import NotificationConfig
from sipbridge.core.models import CallAnalysisEvent, RecipientDirectory, RecipientEntry
from sipbridge.exceptions import NotificationDeliveryFailed
from sipbridge.logging_config import get_logger
from sipbridge.metrics import NOTIFICATIONS

logger = get_logger(__name__)

MESSAGE_TEMPLATE = (
    "📞 Numer: {from_number}\n"
    "🏢 Odbiorca: {label}\n"
    "📝 Podsumowanie: {summary}\n"
    "\n"
    "▶️ Nagranie: {recording_url}"
)
MISSING_RECORDING = "-"


class NotificationRouter:
    def __init__(self, messenger: MessengerClient, directory: RecipientDirectory, settings: NotificationConfig):
        self._messenger = messenger
        self._directory = directory
        self._settings = settings

    def compose_message(self, event: CallAnalysisEvent, recipient: RecipientEntry) -> str:
        return MESSAGE_TEMPLATE.format(
            from_number=event.from_number,
            label=recipient.label,
            summary=event.call_summary or self._settings.summary_placeholder,
            recording_url=event.recording_url or MISSING_RECORDING,
        )

    async def route(self, event: CallAnalysisEvent) -> int:
        """Deliver the summary; returns how many sends succeeded.

        Unknown receiver types send nothing. Failures are logged, never raised.
        """
        recipient = self._directory.get(event.recipient_type_tag)
        if recipient is None:
            logger.info(
                "No recipient for call summary, skipping",
                receiver_type=event.recipient_type_tag,
                from_number=event.from_number,
            )
            return 0

        body = self.compose_message(event, recipient)
        delivered = int(await self._send(recipient, body, role="primary"))

        cc_tag = self._settings.cc_tag
        if recipient.tag != cc_tag:
            cc = self._directory.get(cc_tag)
            if cc is None:
                logger.warning("CC recipient not configured", cc_tag=cc_tag)
            else:
                delivered += int(await self._send(cc, body, role="cc"))
        return delivered

    async def _send(self, recipient: RecipientEntry, body: str, *, role: str) -> bool:
        try:
            await self._messenger.send_message(recipient.recipient_id, body)
        except NotificationDeliveryFailed as exc:
            NOTIFICATIONS.labels(role, "failed").inc()
            logger.error("Call summary delivery failed", recipient=recipient.tag, role=role, error=str(exc))
            return False
        except Exception as exc:
            NOTIFICATIONS.labels(role, "failed").inc()
            logger.error("Unexpected error delivering call summary", recipient=recipient.tag, role=role, error=str(exc), exc_info=True)
            return False
        NOTIFICATIONS.labels(role, "sent").inc()
        logger.info("📨 Call summary sent", recipient=recipient.tag, role=role)
        return True
