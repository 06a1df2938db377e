"""
Two-leg bridge between the trunk and the agent platform.

For each admitted INVITE: register the call with the agent platform, dial
the platform's SIP endpoint as leg B with leg A's SDP offer, then keep the
two legs paired so that whichever side hangs up, the other is hung up too.
"""

import time
import uuid
from typing import Dict, Mapping

from sipbridge.clients.agent_platform import AgentPlatformClient
from sipbridge.config.models import AgentPlatformConfig
from sipbridge.core.models import (
    BridgeResult,
    CallSession,
    InboundCallAttempt,
    LegState,
    SessionState,
)
from sipbridge.exceptions import (
    BridgeCreationFailed,
    BridgeError,
    RemoteAdmissionRejected,
    TransportFailure,
)
from sipbridge.logging_config import get_logger
from sipbridge.metrics import ACTIVE_SESSIONS, INBOUND_CALLS, SESSION_DURATION
from sipbridge.signaling.base import ResponseSink, SignalingClient

logger = get_logger(__name__)

_OTHER_LEG = {"a": "b", "b": "a"}


class CallBridgeOrchestrator:
    def __init__(
        self,
        signaling: SignalingClient,
        agent_platform: AgentPlatformClient,
        agent_config: AgentPlatformConfig,
    ):
        self._signaling = signaling
        self._agent_platform = agent_platform
        self._agent_config = agent_config
        self._sessions: Dict[str, CallSession] = {}

    @property
    def sessions(self) -> Mapping[str, CallSession]:
        return dict(self._sessions)

    async def bridge(self, attempt: InboundCallAttempt, sink: ResponseSink) -> BridgeResult:
        """Bridge an admitted call to the agent platform.

        No CallSession exists unless both the platform registration and the
        B2BUA dial succeed. On failure the inbound INVITE is answered with 503
        (platform declined or unreachable) or 500 (bridge could not be set up).
        """
        request = attempt.request
        try:
            registration = await self._agent_platform.register_call(
                from_number=attempt.calling_number,
                to_number=self._agent_config.number,
                direction="inbound",
            )
        except (RemoteAdmissionRejected, TransportFailure) as exc:
            logger.warning("Agent platform unavailable for call", error=str(exc))
            return await self._reject(sink, RemoteAdmissionRejected, "unavailable", str(exc))
        except Exception as exc:
            logger.error("Unexpected error registering call with agent platform", error=str(exc), exc_info=True)
            return await self._reject(sink, RemoteAdmissionRejected, "unavailable", str(exc))

        destination = self._agent_config.destination_for(registration.external_call_id)
        logger.info("Dialing agent leg", destination=destination, external_call_id=registration.external_call_id)
        try:
            leg_a, leg_b = await self._signaling.create_bridge(
                request, sink, destination, offer_body=request.body
            )
        except BridgeError as exc:
            logger.warning("Bridge creation failed", destination=destination, error=str(exc))
            return await self._reject(sink, BridgeCreationFailed, "bridge_failed", str(exc))
        except Exception as exc:
            logger.error("Unexpected error creating bridge", destination=destination, error=str(exc), exc_info=True)
            return await self._reject(sink, BridgeCreationFailed, "bridge_failed", str(exc))

        session = CallSession(
            session_id=uuid.uuid4().hex,
            leg_a=leg_a,
            leg_b=leg_b,
            external_call_id=registration.external_call_id,
            signaling_call_id=request.call_id,
            calling_number=attempt.calling_number,
        )
        self._sessions[session.session_id] = session
        ACTIVE_SESSIONS.set(len(self._sessions))
        INBOUND_CALLS.labels("bridged").inc()

        # Installed last: a leg that already ended fires its callback right away,
        # which needs the session registered above.
        leg_a.on_terminated(lambda: self.handle_leg_terminated(session, "a"))
        leg_b.on_terminated(lambda: self.handle_leg_terminated(session, "b"))

        logger.info(
            "🔗 Call bridged",
            session_id=session.session_id,
            call_id=session.signaling_call_id,
            external_call_id=session.external_call_id,
            active_sessions=len(self._sessions),
        )
        return BridgeResult(state=session.state, status_code=200, session=session)

    async def _reject(self, sink: ResponseSink, error_cls: type, outcome: str, detail: str) -> BridgeResult:
        INBOUND_CALLS.labels(outcome).inc()
        if not sink.final_response_sent:
            try:
                await sink.send(error_cls.status_code, error_cls.reason)
            except Exception:
                logger.error("Failed to send final response on inbound leg", status=error_cls.status_code, exc_info=True)
        return BridgeResult(state=SessionState.REJECTED, status_code=error_cls.status_code, error=detail)

    def handle_leg_terminated(self, session: CallSession, leg_name: str) -> None:
        """Leg-ended notification: hang up the other leg once and drop the session."""
        if session.leg_state(leg_name) is LegState.TERMINATED:
            return
        session.mark_terminated(leg_name)
        if session.state is not SessionState.BRIDGED:
            return

        session.state = SessionState.TERMINATING
        other = _OTHER_LEG[leg_name]
        logger.info("Leg ended, tearing down peer", session_id=session.session_id, ended_leg=leg_name, peer_leg=other)
        self._terminate_leg(session, other)
        self._finish(session)

    def _terminate_leg(self, session: CallSession, leg_name: str) -> None:
        if session.leg_state(leg_name) is LegState.TERMINATED:
            return
        try:
            session.leg(leg_name).terminate()
        except Exception:
            logger.error("Failed to terminate leg", session_id=session.session_id, leg=leg_name, exc_info=True)
        session.mark_terminated(leg_name)

    def _finish(self, session: CallSession) -> None:
        session.state = SessionState.TERMINATED
        session.ended_at = time.time()
        self._sessions.pop(session.session_id, None)
        ACTIVE_SESSIONS.set(len(self._sessions))
        SESSION_DURATION.observe(max(0.0, session.ended_at - session.created_at))
        logger.info(
            "Call session ended",
            session_id=session.session_id,
            duration_seconds=round(session.ended_at - session.created_at, 2),
        )

    def shutdown(self) -> None:
        """Hang up both legs of every live session (process shutdown)."""
        for session in list(self._sessions.values()):
            session.state = SessionState.TERMINATING
            self._terminate_leg(session, "a")
            self._terminate_leg(session, "b")
            self._finish(session)
