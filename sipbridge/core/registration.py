"""
Trunk registration keepalive.

One REGISTER per cycle. A 2xx schedules the renewal at half the granted
expiry; anything else (timeout, transport error, rejected credentials,
other final status) schedules a retry after a fixed interval. The loop has
no terminal state and runs until the task is cancelled.
"""

import asyncio
import re
import time
from typing import Awaitable, Callable, Dict, Optional

from sipbridge.config.models import RegistrationConfig, TrunkConfig
from sipbridge.core.models import RegistrationState, RegistrationStatus
from sipbridge.exceptions import AuthRejected, TransportFailure
from sipbridge.logging_config import get_logger
from sipbridge.metrics import REGISTRATION_ATTEMPTS, TRUNK_REGISTERED
from sipbridge.signaling.base import DigestCredentials, SignalingClient, SignalingResponse

logger = get_logger(__name__)

_CONTACT_EXPIRES = re.compile(r"expires\s*=\s*(\d+)", re.IGNORECASE)
_AUTH_FAILURE_STATUSES = (401, 403, 407)

Sleeper = Callable[[float], Awaitable[None]]


class RegistrationManager:
    def __init__(
        self,
        signaling: SignalingClient,
        trunk: TrunkConfig,
        settings: RegistrationConfig,
        *,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._signaling = signaling
        self._trunk = trunk
        self._settings = settings
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.state = RegistrationState()
        self.next_delay: Optional[float] = None

    @property
    def is_registered(self) -> bool:
        return self.state.status is RegistrationStatus.REGISTERED

    def request_headers(self) -> Dict[str, str]:
        aor = self._trunk.address_of_record
        expires = self._settings.expires_seconds
        return {
            "From": f"<{aor}>",
            "To": f"<{aor}>",
            "Contact": f"<{aor}>;expires={expires}",
            "Expires": str(expires),
        }

    async def register(self) -> float:
        """Run one registration cycle and return the delay before the next one."""
        requested = self._settings.expires_seconds
        timeout = self._settings.response_timeout_seconds
        # A renewal leaves a current binding Registered until its response arrives.
        if self.state.status is not RegistrationStatus.REGISTERED:
            self.state.status = RegistrationStatus.PENDING
        self.state.last_attempt_at = time.time()

        logger.debug(
            "Sending REGISTER",
            aor=self._trunk.address_of_record,
            proxy=self._trunk.proxy,
            expires=requested,
        )
        try:
            response = await asyncio.wait_for(
                self._signaling.send_request(
                    self._trunk.address_of_record,
                    "REGISTER",
                    headers=self.request_headers(),
                    auth=DigestCredentials(self._trunk.username or "", self._trunk.password or ""),
                    proxy=self._trunk.proxy,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return self._on_failure("timeout", f"no final response within {timeout}s")
        except TransportFailure as exc:
            return self._on_failure("transport", str(exc) or type(exc).__name__)
        except Exception as exc:
            # An adapter bug must not end the keepalive loop.
            logger.error("Unexpected error sending REGISTER", error=str(exc), exc_info=True)
            return self._on_failure("transport", str(exc) or type(exc).__name__)

        if response.ok:
            return self._on_success(self._granted_expiry(response, requested))
        if response.status in _AUTH_FAILURE_STATUSES:
            return self._on_failure("rejected", str(AuthRejected(response.status)))
        return self._on_failure("rejected", f"{response.status} {response.reason}".strip())

    def _granted_expiry(self, response: SignalingResponse, requested: int) -> int:
        candidates = [response.header("Expires")]
        contact = response.header("Contact")
        if contact:
            match = _CONTACT_EXPIRES.search(contact)
            if match:
                candidates.append(match.group(1))
        for raw in candidates:
            try:
                value = int(str(raw).strip())
            except (TypeError, ValueError):
                continue
            if value > 0:
                return value
        return requested

    def _on_success(self, granted: int) -> float:
        self.state.status = RegistrationStatus.REGISTERED
        self.state.expiry_seconds = granted
        self.state.retry_count = 0
        self.state.last_error = None
        self.next_delay = granted / 2
        REGISTRATION_ATTEMPTS.labels("success").inc()
        TRUNK_REGISTERED.set(1)
        logger.info(
            "✅ Trunk registration accepted",
            aor=self._trunk.address_of_record,
            expires=granted,
            renew_in=self.next_delay,
        )
        return self.next_delay

    def _on_failure(self, outcome: str, error: str) -> float:
        self.state.status = RegistrationStatus.FAILED
        self.state.retry_count += 1
        self.state.last_error = error
        self.next_delay = self._settings.retry_interval_seconds
        REGISTRATION_ATTEMPTS.labels(outcome).inc()
        TRUNK_REGISTERED.set(0)
        logger.warning(
            "Trunk registration failed",
            aor=self._trunk.address_of_record,
            outcome=outcome,
            error=error,
            retry_count=self.state.retry_count,
            retry_in=self.next_delay,
        )
        return self.next_delay

    async def run(self) -> None:
        """Register, wait, repeat. Only cancellation ends the loop."""
        while True:
            delay = await self.register()
            await self._sleep(delay)

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self.run(), name="trunk-registration")
        logger.info("Registration keepalive started", aor=self._trunk.address_of_record)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if not task:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        TRUNK_REGISTERED.set(0)
