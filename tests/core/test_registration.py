"""
Tests for the trunk registration keepalive.

Covers renewal scheduling on success, fixed-interval retry on every kind of
failure, and the self-rescheduling loop.
"""

import asyncio

import pytest

from sipbridge.config.models import RegistrationConfig
from sipbridge.core.models import RegistrationStatus
from sipbridge.core.registration import RegistrationManager
from sipbridge.exceptions import TransportFailure
from sipbridge.signaling.base import SignalingResponse
from tests.fakes import FakeSignalingClient


def _manager(bridge_config, signaling, **kwargs):
    return RegistrationManager(signaling, bridge_config.trunk, bridge_config.registration, **kwargs)


class TestRegisterSuccess:
    @pytest.mark.asyncio
    async def test_success_schedules_renewal_at_half_granted_expiry(self, bridge_config):
        signaling = FakeSignalingClient([SignalingResponse(200, "OK", {"Expires": "3600"})])
        manager = _manager(bridge_config, signaling)

        delay = await manager.register()

        assert delay == 1800
        assert manager.state.status is RegistrationStatus.REGISTERED
        assert manager.state.expiry_seconds == 3600
        assert manager.state.retry_count == 0
        assert manager.is_registered

    @pytest.mark.asyncio
    async def test_granted_expiry_from_contact_parameter(self, bridge_config):
        response = SignalingResponse(200, "OK", {"contact": "<sip:4822123@203.0.113.10>;expires=600"})
        manager = _manager(bridge_config, FakeSignalingClient([response]))

        assert await manager.register() == 300
        assert manager.state.expiry_seconds == 600

    @pytest.mark.asyncio
    async def test_requested_expiry_used_when_response_has_none(self, bridge_config):
        manager = _manager(bridge_config, FakeSignalingClient([SignalingResponse(200, "OK")]))

        assert await manager.register() == 1800
        assert manager.state.expiry_seconds == 3600

    @pytest.mark.asyncio
    async def test_success_resets_retry_count(self, bridge_config):
        signaling = FakeSignalingClient([
            SignalingResponse(503, "Service Unavailable"),
            SignalingResponse(503, "Service Unavailable"),
            SignalingResponse(200, "OK", {"Expires": "1200"}),
        ])
        manager = _manager(bridge_config, signaling)

        await manager.register()
        await manager.register()
        assert manager.state.retry_count == 2

        assert await manager.register() == 600
        assert manager.state.retry_count == 0

    @pytest.mark.asyncio
    async def test_register_request_shape(self, bridge_config):
        signaling = FakeSignalingClient()
        manager = _manager(bridge_config, signaling)

        await manager.register()

        sent = signaling.requests[0]
        assert sent["method"] == "REGISTER"
        assert sent["target"] == "sip:4822123@203.0.113.10"
        assert sent["proxy"] == "sip:198.51.100.5:5060"
        assert sent["headers"]["Contact"] == "<sip:4822123@203.0.113.10>;expires=3600"
        assert sent["headers"]["Expires"] == "3600"
        assert sent["headers"]["From"] == "<sip:4822123@203.0.113.10>"
        assert sent["auth"].username == "4822123"
        assert sent["auth"].password == "trunk-secret"

    @pytest.mark.asyncio
    async def test_status_stays_registered_while_renewal_in_flight(self, bridge_config):
        release = asyncio.Event()
        in_flight = asyncio.Event()

        async def delayed_ok():
            in_flight.set()
            await release.wait()
            return SignalingResponse(200, "OK", {"Expires": "3600"})

        signaling = FakeSignalingClient([SignalingResponse(200, "OK", {"Expires": "3600"}), delayed_ok])
        manager = _manager(bridge_config, signaling)
        await manager.register()

        renewal = asyncio.create_task(manager.register())
        await asyncio.wait_for(in_flight.wait(), timeout=1)

        assert manager.state.status is RegistrationStatus.REGISTERED
        assert manager.is_registered

        release.set()
        assert await renewal == 1800
        assert manager.is_registered

    @pytest.mark.asyncio
    async def test_first_attempt_is_pending_until_answered(self, bridge_config):
        release = asyncio.Event()
        in_flight = asyncio.Event()

        async def delayed_ok():
            in_flight.set()
            await release.wait()
            return SignalingResponse(200, "OK")

        manager = _manager(bridge_config, FakeSignalingClient([delayed_ok]))

        attempt = asyncio.create_task(manager.register())
        await asyncio.wait_for(in_flight.wait(), timeout=1)

        assert manager.state.status is RegistrationStatus.PENDING
        assert not manager.is_registered

        release.set()
        await attempt
        assert manager.is_registered


class TestRegisterFailure:
    @pytest.mark.asyncio
    async def test_non_success_status_fails_with_fixed_retry(self, bridge_config):
        manager = _manager(bridge_config, FakeSignalingClient([SignalingResponse(500, "Server Error")]))

        delay = await manager.register()

        assert delay == 30
        assert manager.state.status is RegistrationStatus.FAILED
        assert manager.state.retry_count == 1
        assert "500" in manager.state.last_error

    @pytest.mark.asyncio
    async def test_auth_rejection_is_retried_like_transport_failure(self, bridge_config):
        manager = _manager(bridge_config, FakeSignalingClient([SignalingResponse(403, "Forbidden")]))

        assert await manager.register() == 30
        assert manager.state.status is RegistrationStatus.FAILED
        assert "403" in manager.state.last_error

    @pytest.mark.asyncio
    async def test_transport_failure(self, bridge_config):
        manager = _manager(bridge_config, FakeSignalingClient([TransportFailure("connection refused")]))

        assert await manager.register() == 30
        assert manager.state.status is RegistrationStatus.FAILED
        assert manager.state.last_error == "connection refused"

    @pytest.mark.asyncio
    async def test_unexpected_adapter_error_does_not_escape(self, bridge_config):
        manager = _manager(bridge_config, FakeSignalingClient([RuntimeError("adapter bug")]))

        assert await manager.register() == 30
        assert manager.state.status is RegistrationStatus.FAILED

    @pytest.mark.asyncio
    async def test_no_response_counts_as_failure(self, bridge_config):
        async def never_answers():
            await asyncio.Event().wait()

        config = bridge_config.model_copy(
            update={"registration": RegistrationConfig(response_timeout_seconds=0.05)}
        )
        manager = RegistrationManager(FakeSignalingClient([never_answers]), config.trunk, config.registration)

        assert await manager.register() == 30
        assert manager.state.status is RegistrationStatus.FAILED
        assert "no final response" in manager.state.last_error

    @pytest.mark.asyncio
    async def test_retry_interval_never_backs_off(self, bridge_config):
        failures = [SignalingResponse(408, "Request Timeout") for _ in range(6)]
        manager = _manager(bridge_config, FakeSignalingClient(failures))

        delays = [await manager.register() for _ in range(6)]

        assert delays == [30] * 6
        assert manager.state.retry_count == 6


class TestRegistrationLoop:
    @pytest.mark.asyncio
    async def test_loop_reschedules_after_each_cycle(self, bridge_config):
        signaling = FakeSignalingClient([
            SignalingResponse(200, "OK", {"Expires": "3600"}),
            SignalingResponse(500, "Server Error"),
            SignalingResponse(200, "OK", {"Expires": "120"}),
        ])
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)
            if len(delays) == 3:
                raise asyncio.CancelledError()

        manager = _manager(bridge_config, signaling, sleep=fake_sleep)

        with pytest.raises(asyncio.CancelledError):
            await manager.run()

        assert delays == [1800, 30, 60]
        assert len(signaling.requests) == 3

    @pytest.mark.asyncio
    async def test_start_and_stop(self, bridge_config):
        slept = asyncio.Event()

        async def fake_sleep(seconds):
            slept.set()
            await asyncio.Event().wait()

        manager = _manager(bridge_config, FakeSignalingClient(), sleep=fake_sleep)
        manager.start()
        await asyncio.wait_for(slept.wait(), timeout=1)

        assert manager.is_registered
        await manager.stop()
        await manager.stop()
