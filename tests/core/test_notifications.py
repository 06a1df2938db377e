"""
Tests for post-call summary routing.

The CC rule: every summary goes to the recipient named by receiver_type and,
unless that recipient is the event manager, a copy goes to the event manager.
"""

import pytest

from sipbridge.config.models import NotificationConfig, RecipientConfig
from sipbridge.core.models import CallAnalysisEvent, RecipientDirectory
from sipbridge.core.notifications import NotificationRouter
from tests.fakes import FakeMessenger


def _event(tag="recepcja", summary="Klient pyta o rezerwacje sali na 40 osob.", recording="https://rec.example/r/1.wav"):
    return CallAnalysisEvent(
        from_number="+48600100200",
        call_summary=summary,
        recipient_type_tag=tag,
        recording_url=recording,
        call_id="call_8f2e41",
    )


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def router(bridge_config, messenger):
    directory = RecipientDirectory.from_config(bridge_config.recipients)
    return NotificationRouter(messenger, directory, bridge_config.notifications)


class TestRouting:
    @pytest.mark.asyncio
    async def test_reception_summary_is_copied_to_event_manager(self, router, messenger):
        delivered = await router.route(_event("recepcja"))

        assert delivered == 2
        assert [recipient for recipient, _ in messenger.sent] == ["222", "111"]
        assert messenger.sent[0][1] == messenger.sent[1][1]

    @pytest.mark.asyncio
    async def test_event_manager_summary_sent_once(self, router, messenger):
        delivered = await router.route(_event("event_manager"))

        assert delivered == 1
        assert [recipient for recipient, _ in messenger.sent] == ["111"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", ["kuchnia", None, ""])
    async def test_unknown_receiver_sends_nothing(self, router, messenger, tag):
        assert await router.route(_event(tag)) == 0
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_cc_still_sent_when_primary_fails(self, bridge_config):
        messenger = FakeMessenger(failing_ids={"222"})
        router = NotificationRouter(
            messenger, RecipientDirectory.from_config(bridge_config.recipients), bridge_config.notifications
        )

        delivered = await router.route(_event("recepcja"))

        assert delivered == 1
        assert [recipient for recipient, _ in messenger.sent] == ["222", "111"]

    @pytest.mark.asyncio
    async def test_failures_are_not_raised(self, bridge_config):
        messenger = FakeMessenger(failing_ids={"111", "222"})
        router = NotificationRouter(
            messenger, RecipientDirectory.from_config(bridge_config.recipients), bridge_config.notifications
        )

        assert await router.route(_event("recepcja")) == 0

    @pytest.mark.asyncio
    async def test_missing_cc_recipient_sends_primary_only(self, messenger):
        directory = RecipientDirectory.from_config({"recepcja": RecipientConfig(label="Recepcja", recipient_id="222")})
        router = NotificationRouter(messenger, directory, NotificationConfig())

        assert await router.route(_event("recepcja")) == 1
        assert [recipient for recipient, _ in messenger.sent] == ["222"]


class TestMessageBody:
    def test_message_layout(self, router):
        recipient = RecipientDirectory.from_config(
            {"recepcja": RecipientConfig(label="Recepcja", recipient_id="222")}
        ).get("recepcja")

        body = router.compose_message(_event(), recipient)

        assert body == (
            "📞 Numer: +48600100200\n"
            "🏢 Odbiorca: Recepcja\n"
            "📝 Podsumowanie: Klient pyta o rezerwacje sali na 40 osob.\n"
            "\n"
            "▶️ Nagranie: https://rec.example/r/1.wav"
        )

    @pytest.mark.asyncio
    async def test_missing_summary_uses_placeholder(self, router, messenger):
        await router.route(_event("event_manager", summary=None, recording=None))

        body = messenger.sent[0][1]
        assert "📝 Podsumowanie: Brak podsumowania" in body
        assert body.endswith("▶️ Nagranie: -")

    @pytest.mark.asyncio
    async def test_cc_copy_keeps_primary_label(self, router, messenger):
        await router.route(_event("recepcja"))

        assert all("🏢 Odbiorca: Recepcja" in text for _, text in messenger.sent)


class TestRecipientDirectory:
    def test_entries_without_recipient_id_are_skipped(self):
        directory = RecipientDirectory.from_config({
            "event_manager": RecipientConfig(label="Event Manager", recipient_id="111"),
            "recepcja": RecipientConfig(label="Recepcja", recipient_id=None),
        })

        assert "event_manager" in directory
        assert "recepcja" not in directory
        assert len(directory) == 1
        assert directory.get("recepcja") is None

    def test_lookup_returns_label_and_id_together(self, bridge_config):
        entry = RecipientDirectory.from_config(bridge_config.recipients).get("event_manager")
        assert (entry.label, entry.recipient_id) == ("Event Manager", "111")
