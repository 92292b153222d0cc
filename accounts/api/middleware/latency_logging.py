"""Request latency logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 500
VERY_SLOW_REQUEST_THRESHOLD_MS = 2000


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency of every request.

    Slow and failing requests are logged at elevated levels.
    """
    start_time = time.perf_counter()

    method = request.method
    path = request.url.path
    is_health_check = path.startswith("/health")

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

        log_data = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
            "error": error_occurred,
        }
        log_msg = "%s %s - %d - %.2fms"
        args = (method, path, status_code, latency_ms)

        if is_health_check:
            logger.debug(log_msg, *args, extra=log_data)
        elif error_occurred or status_code >= 500:
            logger.error(log_msg, *args, extra=log_data)
        elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
            logger.error("VERY SLOW REQUEST: " + log_msg, *args, extra=log_data)
        elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning("SLOW REQUEST: " + log_msg, *args, extra=log_data)
        elif status_code >= 400:
            logger.warning(log_msg, *args, extra=log_data)
        else:
            logger.info(log_msg, *args, extra=log_data)
