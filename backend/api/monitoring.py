"""
Prometheus metrics for the game server.
"""
import asyncio
import time
from functools import wraps
from typing import Callable

from fastapi import Request
from prometheus_client import Counter, Histogram, Gauge

from .logging_config import get_logger

logger = get_logger("monitoring")

# Paths that are neither logged nor counted
UNTRACKED_PATHS = {"/", "/health", "/metrics", "/metrics/"}

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

websocket_connections = Gauge(
    'websocket_connections_total',
    'Currently open game sockets'
)

lobby_waiting = Gauge(
    'lobby_waiting_total',
    'Connections waiting in the lobby for a game'
)

active_games = Gauge(
    'active_games_total',
    'Games currently in progress'
)

game_messages_total = Counter(
    'game_messages_total',
    'Inbound game messages by name',
    ['message']
)

game_errors_total = Counter(
    'game_errors_total',
    'Game messages rejected, by error reason',
    ['error']
)

message_duration_seconds = Histogram(
    'game_message_duration_seconds',
    'Time to apply one inbound message and flush its output',
    ['function']
)


async def http_metrics_middleware(request: Request, call_next):
    """Count and time HTTP requests, logging each one."""
    path = request.url.path
    if path in UNTRACKED_PATHS:
        return await call_next(request)

    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error("http_request_error", method=request.method, path=path,
                     duration=time.perf_counter() - start, error=str(e))
        raise

    duration = time.perf_counter() - start
    http_requests_total.labels(method=request.method, endpoint=path, status=response.status_code).inc()
    http_request_duration_seconds.labels(method=request.method, endpoint=path).observe(duration)
    logger.info(
        "http_request",
        method=request.method,
        path=path,
        status_code=response.status_code,
        duration=duration,
        client_ip=request.client.host if request.client else None,
    )
    return response


def track_performance(func: Callable) -> Callable:
    """Time a handler into ``game_message_duration_seconds``."""
    def record(start: float, error: Exception = None):
        duration = time.perf_counter() - start
        if error is None:
            message_duration_seconds.labels(function=func.__name__).observe(duration)
            logger.debug("function_performance", function=func.__name__, duration=duration)
        else:
            logger.error("function_performance", function=func.__name__, duration=duration,
                         error=str(error))

    if asyncio.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                record(start, e)
                raise
            record(start)
            return result
        return async_wrapper

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            record(start, e)
            raise
        record(start)
        return result
    return sync_wrapper
