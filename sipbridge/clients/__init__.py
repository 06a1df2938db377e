"""HTTP clients for the remote services the bridge calls."""

from sipbridge.clients.agent_platform import AgentCallRegistration, AgentPlatformClient
from sipbridge.clients.messenger import MessengerClient

__all__ = ["AgentCallRegistration", "AgentPlatformClient", "MessengerClient"]
