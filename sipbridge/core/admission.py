"""Source-address call admission."""

import ipaddress
from dataclasses import dataclass
from typing import Union

from sipbridge.core.models import InboundCallAttempt
from sipbridge.exceptions import UntrustedSource
from sipbridge.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Accepted:
    pass


@dataclass(frozen=True)
class Rejected:
    reason: str
    code: int


AdmissionVerdict = Union[Accepted, Rejected]


def _normalize(address: str) -> str:
    address = (address or "").strip()
    try:
        return str(ipaddress.ip_address(address.strip("[]")))
    except ValueError:
        return address.lower()


class CallAdmissionGate:
    """Accepts an INVITE only when it arrives from the trunk provider's address.

    Stateless; the verdict depends on the attempt and the configured address alone.
    """

    def __init__(self, trusted_address: str):
        self._trusted = _normalize(trusted_address)

    def admit(self, attempt: InboundCallAttempt) -> AdmissionVerdict:
        source = _normalize(attempt.source_address)
        if not self._trusted or source != self._trusted:
            logger.warning(
                "🚫 Blocked INVITE from untrusted source",
                source_address=attempt.source_address,
                calling_number=attempt.calling_number,
            )
            return Rejected(reason="untrusted source", code=UntrustedSource.status_code)
        return Accepted()
