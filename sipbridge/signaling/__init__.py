"""Signaling interface and adapter loading."""

import importlib
from typing import Any, Dict, Optional

from sipbridge.exceptions import ConfigurationError
from sipbridge.signaling.base import (
    DigestCredentials,
    IncomingCallHandler,
    InboundRequest,
    Leg,
    ResponseSink,
    SignalingClient,
    SignalingResponse,
)

__all__ = [
    "DigestCredentials",
    "IncomingCallHandler",
    "InboundRequest",
    "Leg",
    "ResponseSink",
    "SignalingClient",
    "SignalingResponse",
    "load_signaling_client",
]


def load_signaling_client(adapter: Optional[str], options: Optional[Dict[str, Any]] = None) -> SignalingClient:
    """Instantiate the adapter named ``package.module:ClassName`` with ``options`` as kwargs."""
    if not adapter:
        raise ConfigurationError("signaling.adapter is not configured")
    module_name, sep, class_name = adapter.partition(":")
    if not sep or not module_name or not class_name:
        raise ConfigurationError(f"signaling.adapter must look like 'module:Class', got {adapter!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"cannot import signaling adapter module {module_name!r}: {exc}") from exc
    cls = getattr(module, class_name, None)
    if cls is None:
        raise ConfigurationError(f"{module_name!r} has no attribute {class_name!r}")
    if not (isinstance(cls, type) and issubclass(cls, SignalingClient)):
        raise ConfigurationError(f"{adapter!r} is not a SignalingClient implementation")
    return cls(**(options or {}))
