"""
Process wiring for the bridge.

The Engine owns one of each component, connects the signaling adapter's
incoming-call events to admission and bridging, keeps the trunk registration
alive and serves the webhook/health HTTP endpoints.
"""

import asyncio
import os
import signal
from typing import Optional

from dotenv import load_dotenv

from sipbridge.clients.agent_platform import AgentPlatformClient
from sipbridge.clients.messenger import MessengerClient
from sipbridge.config import BridgeConfig, load_config, validate_production_config
from sipbridge.core.admission import CallAdmissionGate, Rejected
from sipbridge.core.bridge import CallBridgeOrchestrator
from sipbridge.core.models import BridgeResult, InboundCallAttempt, RecipientDirectory
from sipbridge.core.notifications import NotificationRouter
from sipbridge.core.registration import RegistrationManager
from sipbridge.exceptions import ConfigurationError, UntrustedSource
from sipbridge.http_server import BridgeHttpServer
from sipbridge.logging_config import configure_logging, get_logger, set_correlation_id
from sipbridge.metrics import INBOUND_CALLS
from sipbridge.signaling import InboundRequest, ResponseSink, SignalingClient, load_signaling_client

logger = get_logger(__name__)


class Engine:
    def __init__(
        self,
        config: BridgeConfig,
        *,
        signaling: Optional[SignalingClient] = None,
        agent_platform: Optional[AgentPlatformClient] = None,
        messenger: Optional[MessengerClient] = None,
    ):
        self.config = config
        self.signaling = signaling or load_signaling_client(config.signaling.adapter, config.signaling.options)
        self.agent_platform = agent_platform or AgentPlatformClient(config.agent)
        self.messenger = messenger or MessengerClient(config.messaging)

        self.directory = RecipientDirectory.from_config(config.recipients)
        self.registration = RegistrationManager(self.signaling, config.trunk, config.registration)
        self.admission = CallAdmissionGate(config.trunk.trusted_address)
        self.orchestrator = CallBridgeOrchestrator(self.signaling, self.agent_platform, config.agent)
        self.notifications = NotificationRouter(self.messenger, self.directory, config.notifications)
        self.http_server = BridgeHttpServer(config.http, config.notifications, self.notifications, self.registration)

    async def start(self) -> None:
        logger.info(
            "Starting SIP bridge",
            aor=self.config.trunk.address_of_record,
            trusted_address=self.config.trunk.trusted_address,
            recipients=self.directory.tags(),
        )
        await self.signaling.start()
        self.signaling.on_incoming_call(self.handle_incoming_call)
        self.registration.start()
        await self.http_server.start()
        logger.info("✅ SIP bridge ready")

    async def stop(self) -> None:
        logger.info("Stopping SIP bridge", active_sessions=len(self.orchestrator.sessions))
        await self.registration.stop()
        await self.http_server.stop()
        self.orchestrator.shutdown()
        await self.agent_platform.close()
        await self.messenger.close()
        try:
            await self.signaling.stop()
        except Exception:
            logger.error("Error disconnecting signaling adapter", exc_info=True)
        logger.info("SIP bridge stopped")

    async def handle_incoming_call(self, request: InboundRequest, sink: ResponseSink) -> Optional[BridgeResult]:
        """INVITE entry point: admission first, bridge only for trusted sources."""
        set_correlation_id(request.call_id)
        attempt = InboundCallAttempt.from_request(request)
        try:
            verdict = self.admission.admit(attempt)
            if isinstance(verdict, Rejected):
                INBOUND_CALLS.labels("untrusted").inc()
                try:
                    await sink.send(verdict.code, UntrustedSource.reason)
                except Exception:
                    logger.error("Failed to send rejection response", status=verdict.code, exc_info=True)
                return None
            logger.info(
                "📞 Inbound call admitted",
                calling_number=attempt.calling_number,
                called_number=request.called_number,
            )
            return await self.orchestrator.bridge(attempt, sink)
        except Exception as exc:
            INBOUND_CALLS.labels("error").inc()
            logger.error("Unhandled error processing inbound call", error=str(exc), exc_info=True)
            if not sink.final_response_sent:
                try:
                    await sink.send(500, "Internal Server Error")
                except Exception:
                    logger.error("Failed to send error response", exc_info=True)
            return None


async def main() -> None:
    # Process environment wins over the file.
    load_dotenv(os.getenv("SIPBRIDGE_ENV_FILE", ".env"))
    config = load_config()
    configure_logging(
        log_level=config.logging.level,
        log_format=config.logging.format,
        log_to_file=bool(config.logging.file),
        log_file_path=config.logging.file or "sip-bridge.log",
    )

    errors, warnings = validate_production_config(config)
    if errors:
        logger.error("❌ Configuration validation FAILED", errors=errors, warnings=warnings)
        raise ConfigurationError(f"Configuration errors: {errors}")
    if warnings:
        logger.warning("⚠️  Configuration warnings", warnings=warnings)

    engine = Engine(config)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    await engine.start()
    try:
        await shutdown_event.wait()
    finally:
        await engine.stop()


def run() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
    finally:
        logger.info("SIP bridge has shut down.")


if __name__ == "__main__":
    run()
