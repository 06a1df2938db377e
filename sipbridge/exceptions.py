"""Error taxonomy for the bridge.

Every failure the bridge knows how to handle is one of these. Classes that
end in an answer to the trunk carry the signaling status code they map to.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for all handled bridge failures."""

    status_code: Optional[int] = None
    reason: str = "Bridge Error"


class ConfigurationError(BridgeError):
    """Configuration is missing or invalid; raised before the engine starts."""


class TransportFailure(BridgeError):
    """A signaling or HTTP request did not complete."""


class AuthRejected(TransportFailure):
    """The trunk refused the registration credentials.

    Subclasses TransportFailure because the registration loop retries both
    the same way.
    """

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"credentials rejected with status {status}")
        self.status = status


class UntrustedSource(BridgeError):
    status_code = 403
    reason = "Forbidden"


class RemoteAdmissionRejected(BridgeError):
    """The agent platform declined to take the call."""

    status_code = 503
    reason = "Service Unavailable"

    def __init__(self, message: str, *, http_status: Optional[int] = None):
        super().__init__(message)
        self.http_status = http_status


class BridgeCreationFailed(BridgeError):
    status_code = 500
    reason = "Internal Server Error"


class NotificationDeliveryFailed(BridgeError):
    """A messaging send failed. Logged by the router, never retried."""

    def __init__(self, message: str, *, http_status: Optional[int] = None):
        super().__init__(message)
        self.http_status = http_status
