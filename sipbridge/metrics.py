"""Prometheus metrics exported on /metrics."""

from prometheus_client import Counter, Gauge, Histogram

REGISTRATION_ATTEMPTS = Counter(
    "sip_bridge_registration_attempts_total",
    "Trunk REGISTER cycles by outcome",
    labelnames=("outcome",),  # success | rejected | transport | timeout
)
TRUNK_REGISTERED = Gauge(
    "sip_bridge_trunk_registered",
    "1 while the trunk registration is current, else 0",
)
INBOUND_CALLS = Counter(
    "sip_bridge_inbound_calls_total",
    "Inbound call-setup requests by outcome",
    labelnames=("outcome",),  # bridged | untrusted | unavailable | bridge_failed | error
)
ACTIVE_SESSIONS = Gauge(
    "sip_bridge_active_sessions",
    "Bridged call sessions currently alive",
)
SESSION_DURATION = Histogram(
    "sip_bridge_session_duration_seconds",
    "Lifetime of a bridged session",
    buckets=(5, 15, 30, 60, 120, 300, 600, 1200, 3600),
)
NOTIFICATIONS = Counter(
    "sip_bridge_notifications_total",
    "Messenger sends by recipient role and outcome",
    labelnames=("role", "outcome"),  # role: primary | cc ; outcome: sent | failed
)
WEBHOOK_EVENTS = Counter(
    "sip_bridge_webhook_events_total",
    "Agent platform webhook deliveries",
    labelnames=("disposition",),  # routed | ignored | invalid
)
