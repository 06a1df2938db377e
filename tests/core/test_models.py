"""Tests for webhook payload parsing into CallAnalysisEvent."""

from sipbridge.core.models import CallAnalysisEvent


def _payload(**call_overrides):
    call = {
        "call_id": "call_8f2e41",
        "from_number": "+48600100200",
        "recording_url": "https://rec.example/r/1.wav",
        "call_analysis": {
            "call_summary": "Pytanie o cennik.",
            "custom_analysis_data": {"receiver_type": "recepcja"},
        },
    }
    call.update(call_overrides)
    return {"event": "call_analyzed", "call": call}


class TestFromWebhook:
    def test_analyzed_call_is_parsed(self):
        event = CallAnalysisEvent.from_webhook(_payload())

        assert event == CallAnalysisEvent(
            from_number="+48600100200",
            call_summary="Pytanie o cennik.",
            recipient_type_tag="recepcja",
            recording_url="https://rec.example/r/1.wav",
            call_id="call_8f2e41",
        )

    def test_other_event_types_are_ignored(self):
        payload = _payload()
        payload["event"] = "call_ended"
        assert CallAnalysisEvent.from_webhook(payload) is None

    def test_missing_caller_number_is_ignored(self):
        assert CallAnalysisEvent.from_webhook(_payload(from_number=None)) is None
        assert CallAnalysisEvent.from_webhook(_payload(from_number="")) is None

    def test_missing_analysis_fields_become_none(self):
        event = CallAnalysisEvent.from_webhook(_payload(call_analysis=None, recording_url=None))

        assert event.call_summary is None
        assert event.recipient_type_tag is None
        assert event.recording_url is None

    def test_non_dict_payloads_are_ignored(self):
        assert CallAnalysisEvent.from_webhook([]) is None
        assert CallAnalysisEvent.from_webhook({"event": "call_analyzed", "call": "x"}) is None

    def test_custom_event_name(self):
        payload = _payload()
        payload["event"] = "analysis_done"
        assert CallAnalysisEvent.from_webhook(payload, analyzed_event="analysis_done") is not None
