"""
Core data models for the bridge.

Registration, per-call and per-event state as explicit typed structures,
each mutated only by the component that owns it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional
import time

from sipbridge.signaling.base import InboundRequest, Leg


class RegistrationStatus(str, Enum):
    UNREGISTERED = "unregistered"
    PENDING = "pending"
    REGISTERED = "registered"
    FAILED = "failed"


@dataclass
class RegistrationState:
    """Trunk registration state. One per process, owned by RegistrationManager."""
    status: RegistrationStatus = RegistrationStatus.UNREGISTERED
    expiry_seconds: int = 0
    retry_count: int = 0
    last_error: Optional[str] = None
    last_attempt_at: Optional[float] = None


@dataclass
class InboundCallAttempt:
    source_address: str
    calling_number: str
    request: InboundRequest

    @classmethod
    def from_request(cls, request: InboundRequest) -> "InboundCallAttempt":
        return cls(
            source_address=request.source_address,
            calling_number=request.calling_number,
            request=request,
        )


class LegState(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class SessionState(str, Enum):
    NEGOTIATING = "negotiating"
    BRIDGED = "bridged"
    TERMINATING = "terminating"
    TERMINATED = "terminated"
    REJECTED = "rejected"


@dataclass
class CallSession:
    """A live two-leg bridge: leg A from the trunk, leg B to the agent platform."""
    session_id: str
    leg_a: Leg
    leg_b: Leg
    external_call_id: str
    signaling_call_id: str = ""
    calling_number: str = ""
    leg_a_state: LegState = LegState.ACTIVE
    leg_b_state: LegState = LegState.ACTIVE
    state: SessionState = SessionState.BRIDGED
    created_at: float = field(default_factory=time.time)
    ended_at: Optional[float] = None

    def leg(self, name: str) -> Leg:
        return self.leg_a if name == "a" else self.leg_b

    def leg_state(self, name: str) -> LegState:
        return self.leg_a_state if name == "a" else self.leg_b_state

    def mark_terminated(self, name: str) -> None:
        if name == "a":
            self.leg_a_state = LegState.TERMINATED
        else:
            self.leg_b_state = LegState.TERMINATED


@dataclass
class BridgeResult:
    """Outcome of one bridge attempt. ``session`` is set only when bridged."""
    state: SessionState
    status_code: Optional[int] = None
    session: Optional[CallSession] = None
    error: Optional[str] = None

    @property
    def bridged(self) -> bool:
        return self.session is not None


@dataclass(frozen=True)
class CallAnalysisEvent:
    """Post-call analysis for one call, as delivered by the agent platform webhook."""
    from_number: str
    call_summary: Optional[str]
    recipient_type_tag: Optional[str]
    recording_url: Optional[str]
    call_id: Optional[str] = None

    @classmethod
    def from_webhook(cls, payload: Any, analyzed_event: str = "call_analyzed") -> Optional["CallAnalysisEvent"]:
        """Build an event from a webhook body.

        Returns None unless the payload is a fully analyzed call with a caller number.
        """
        if not isinstance(payload, dict) or payload.get("event") != analyzed_event:
            return None
        call = payload.get("call")
        if not isinstance(call, dict) or not call.get("from_number"):
            return None
        analysis = call.get("call_analysis") or {}
        if not isinstance(analysis, dict):
            analysis = {}
        custom = analysis.get("custom_analysis_data") or {}
        if not isinstance(custom, dict):
            custom = {}
        return cls(
            from_number=str(call["from_number"]),
            call_summary=analysis.get("call_summary") or None,
            recipient_type_tag=custom.get("receiver_type") or None,
            recording_url=call.get("recording_url") or None,
            call_id=call.get("call_id"),
        )


@dataclass(frozen=True)
class RecipientEntry:
    tag: str
    label: str
    recipient_id: str


class RecipientDirectory:
    """Read-only tag -> recipient mapping, built once at startup."""

    def __init__(self, entries: Mapping[str, RecipientEntry]):
        self._entries: Dict[str, RecipientEntry] = dict(entries)

    @classmethod
    def from_config(cls, recipients: Mapping[str, Any]) -> "RecipientDirectory":
        """Build from config entries; tags without a recipient id are left out."""
        entries = {}
        for tag, entry in recipients.items():
            if entry.recipient_id:
                entries[tag] = RecipientEntry(tag=tag, label=entry.label, recipient_id=entry.recipient_id)
        return cls(entries)

    def get(self, tag: Optional[str]) -> Optional[RecipientEntry]:
        if not tag:
            return None
        return self._entries.get(tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def tags(self):
        return sorted(self._entries)
