"""Request latency logging middleware."""

import logging
import re
import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

_HEALTH_PATHS = ("/health", "/health/ready", "/health/latency")
_UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


class LatencyStats:
    """In-memory tracker for recent request latencies, reported by /health/latency."""

    def __init__(self, max_samples: int = 1000):
        self._samples: list[tuple[str, float]] = []
        self._max_samples = max_samples

    def record(self, path: str, latency_ms: float) -> None:
        self._samples.append((_UUID_PATTERN.sub("{id}", path), latency_ms))
        if len(self._samples) > self._max_samples:
            self._samples = self._samples[-self._max_samples:]

    def get_stats(self) -> dict:
        """Get aggregated stats across all paths."""
        if not self._samples:
            return {"total_requests": 0, "avg_latency_ms": 0, "p50_latency_ms": 0, "p95_latency_ms": 0}

        latencies = sorted(s[1] for s in self._samples)
        total = len(latencies)
        return {
            "total_requests": total,
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p50_latency_ms": round(latencies[int(total * 0.5)], 2),
            "p95_latency_ms": round(latencies[min(int(total * 0.95), total - 1)], 2),
        }

    def get_stats_by_path(self) -> dict:
        """Get stats grouped by path, with order and notification ids collapsed to {id}."""
        by_path: dict[str, list[float]] = defaultdict(list)
        for path, latency in self._samples:
            by_path[path].append(latency)

        result = {}
        for path, latencies in by_path.items():
            total = len(latencies)
            result[path] = {
                "count": total,
                "avg_ms": round(sum(latencies) / total, 2),
                "max_ms": round(max(latencies), 2),
            }
        return result


_latency_stats: LatencyStats | None = None


def get_latency_stats() -> LatencyStats:
    """Get or create the global latency stats instance."""
    global _latency_stats
    if _latency_stats is None:
        _latency_stats = LatencyStats()
    return _latency_stats


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log request timing and record it for the latency endpoint.

    Slow requests are logged at elevated levels. Health probes are only
    logged at debug level and are not recorded.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path
    is_health_check = path in _HEALTH_PATHS

    response = None
    error_occurred = False

    try:
        response = await call_next(request)
        return response
    except Exception:
        error_occurred = True
        raise
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500

        if not is_health_check:
            get_latency_stats().record(path, latency_ms)

        log_msg = "%s %s - %d - %.2fms"
        args = (method, path, status_code, latency_ms)

        if is_health_check:
            logger.debug(log_msg, *args)
        elif error_occurred or status_code >= 500:
            logger.error(log_msg, *args)
        elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
            logger.error("VERY SLOW REQUEST: " + log_msg, *args)
        elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning("SLOW REQUEST: " + log_msg, *args)
        elif status_code >= 400:
            logger.warning(log_msg, *args)
        else:
            logger.info(log_msg, *args)
