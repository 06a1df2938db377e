"""Core bridge components: registration, admission, bridging and notifications."""

from sipbridge.core.admission import Accepted, CallAdmissionGate, Rejected
from sipbridge.core.bridge import CallBridgeOrchestrator
from sipbridge.core.notifications import NotificationRouter
from sipbridge.core.registration import RegistrationManager

__all__ = [
    "Accepted",
    "CallAdmissionGate",
    "CallBridgeOrchestrator",
    "NotificationRouter",
    "Rejected",
    "RegistrationManager",
]
