"""
Call-signaling interface.

The bridge never speaks SIP on the wire itself. A signaling adapter (a
drachtio/SIP stack binding, loaded by dotted path from configuration)
implements these classes; the core only ever talks to them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Tuple


@dataclass(frozen=True)
class DigestCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"DigestCredentials(username={self.username!r}, password='***')"


@dataclass
class SignalingResponse:
    """Final response to a request sent through the signaling interface."""

    status: int
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class InboundRequest:
    """An incoming call-setup request as handed over by the adapter."""

    call_id: str
    source_address: str
    calling_number: str
    called_number: str = ""
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    # Adapter-native request object, passed back untouched on bridge creation.
    native: object = None


class ResponseSink(ABC):
    """Where responses to an inbound request are written."""

    @property
    @abstractmethod
    def final_response_sent(self) -> bool:
        ...

    @abstractmethod
    async def send(self, status: int, reason: str = "") -> None:
        ...


class Leg(ABC):
    """One established call leg of a bridge."""

    @abstractmethod
    def on_terminated(self, callback: Callable[[], None]) -> None:
        """Register a callback run once when the leg ends, whichever side ended it.

        If the leg has already ended the callback runs immediately.
        """

    @abstractmethod
    def terminate(self) -> None:
        """Start tearing the leg down (BYE). Must be safe to call more than once."""


IncomingCallHandler = Callable[[InboundRequest, ResponseSink], Awaitable[None]]


class SignalingClient(ABC):
    """Connection to the SIP stack."""

    async def start(self) -> None:
        """Connect to the stack. Default is a no-op for in-process adapters."""

    async def stop(self) -> None:
        """Disconnect from the stack."""

    @abstractmethod
    async def send_request(
        self,
        target: str,
        method: str,
        *,
        headers: Dict[str, str],
        auth: Optional[DigestCredentials] = None,
        proxy: Optional[str] = None,
    ) -> SignalingResponse:
        """Send an out-of-dialog request and wait for its final response.

        Digest challenges are answered by the adapter using ``auth``.
        Raises TransportFailure when no final response can be obtained.
        """

    @abstractmethod
    def on_incoming_call(self, handler: IncomingCallHandler) -> None:
        ...

    @abstractmethod
    async def create_bridge(
        self,
        request: InboundRequest,
        sink: ResponseSink,
        destination: str,
        *,
        offer_body: str,
    ) -> Tuple[Leg, Leg]:
        """Dial ``destination`` and connect it to the inbound leg (B2BUA).

        ``offer_body`` is used unchanged as the outbound leg's SDP offer.
        Returns (leg_a, leg_b); raises BridgeCreationFailed on failure.
        """
