"""
HTTP surface: agent platform webhook, health/readiness probes and metrics.
"""

import asyncio
from typing import Optional, Set

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from sipbridge.config.models import HttpConfig, NotificationConfig
from sipbridge.core.models import CallAnalysisEvent
from sipbridge.core.notifications import NotificationRouter
from sipbridge.core.registration import RegistrationManager
from sipbridge.logging_config import get_logger, set_correlation_id
from sipbridge.metrics import WEBHOOK_EVENTS

logger = get_logger(__name__)


class BridgeHttpServer:
    def __init__(
        self,
        settings: HttpConfig,
        notification_settings: NotificationConfig,
        router: NotificationRouter,
        registration: Optional[RegistrationManager] = None,
    ):
        self._settings = settings
        self._notification_settings = notification_settings
        self._router = router
        self._registration = registration
        self._runner: Optional[web.AppRunner] = None
        # Strong references so routing tasks are not garbage collected mid-flight.
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._pending)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self._settings.webhook_path, self._webhook_handler)
        app.router.add_get("/health", self._health_handler)
        app.router.add_get("/ready", self._ready_handler)
        app.router.add_get("/metrics", self._metrics_handler)
        return app

    async def start(self) -> None:
        runner = web.AppRunner(self.build_app(), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._settings.host, self._settings.port)
        await site.start()
        self._runner = runner
        logger.info(
            "HTTP server started",
            host=self._settings.host,
            port=self._settings.port,
            webhook_path=self._settings.webhook_path,
        )

    async def stop(self, drain_timeout: float = 5.0) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        await self.drain(drain_timeout)

    async def drain(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for in-flight summary deliveries."""
        if not self._pending:
            return
        _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("Abandoned undelivered call summaries on shutdown", count=len(still_running))

    async def _webhook_handler(self, request: web.Request) -> web.Response:
        """Acknowledge with 204 at once; routing runs in a background task."""
        try:
            payload = await request.json()
        except ValueError:
            WEBHOOK_EVENTS.labels("invalid").inc()
            logger.warning("Webhook body is not valid JSON", remote=request.remote)
            return web.Response(status=204)

        event = CallAnalysisEvent.from_webhook(payload, analyzed_event=self._notification_settings.analyzed_event)
        if event is None:
            WEBHOOK_EVENTS.labels("ignored").inc()
            logger.debug(
                "Webhook event ignored",
                event_type=payload.get("event") if isinstance(payload, dict) else None,
            )
            return web.Response(status=204)

        WEBHOOK_EVENTS.labels("routed").inc()
        task = asyncio.create_task(self._route(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return web.Response(status=204)

    async def _route(self, event: CallAnalysisEvent) -> None:
        set_correlation_id(event.call_id)
        try:
            await self._router.route(event)
        except Exception as exc:
            logger.error("Call summary routing failed", error=str(exc), exc_info=True)

    async def _health_handler(self, request: web.Request) -> web.Response:
        """Liveness: the process is up and serving."""
        return web.json_response({"status": "ok"})

    async def _ready_handler(self, request: web.Request) -> web.Response:
        """Readiness: 200 only while the trunk registration is current."""
        if self._registration is None:
            return web.json_response({"ready": False, "registration": None}, status=503)
        state = self._registration.state
        ready = self._registration.is_registered
        return web.json_response(
            {
                "ready": ready,
                "registration": state.status.value,
                "retry_count": state.retry_count,
                "expiry_seconds": state.expiry_seconds,
            },
            status=200 if ready else 503,
        )

    async def _metrics_handler(self, request: web.Request) -> web.Response:
        # aiohttp rejects 'charset=' inside content_type; pass the full header instead.
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})
