"""
Prometheus metrics for the session client.

Metrics are module-level so every session in the process reports into
the same registry.  Call ``start_metrics_server`` from a long-running
host to expose them over HTTP; library users that do not need an
endpoint can ignore it.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)


LOGIN_TOTAL = Counter(
    "betfair_login_total", "Login attempts by login method and result", labelnames=["method", "result"]
)
KEEP_ALIVE_TOTAL = Counter(
    "betfair_keep_alive_total", "Keep-alive calls by result", labelnames=["result"]
)
REQUESTS_IN_FLIGHT = Gauge(
    "betfair_requests_in_flight", "Authenticated exchanges currently holding a pool permit"
)


def start_metrics_server(port: int) -> bool:
    """Expose metrics on ``port``; returns False if the server failed to start."""
    try:
        start_http_server(port)
    except OSError as exc:
        logger.warning("Failed to start Prometheus server on port %d: %s", port, exc)
        return False
    logger.info("Prometheus metrics exposed on port %d", port)
    return True


__all__ = ["LOGIN_TOTAL", "KEEP_ALIVE_TOTAL", "REQUESTS_IN_FLIGHT", "start_metrics_server"]
