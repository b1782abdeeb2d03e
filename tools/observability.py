"""Observability helpers for instrumenting store gateway calls."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from wardrobe_app.logging_config import current_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _preview_args(signature: inspect.Signature, args: tuple, kwargs: dict) -> dict:
    # Scalar arguments by parameter name; JsonFormatter redacts user ids and URLs.
    bound = signature.bind_partial(*args, **kwargs)
    return {
        name: value
        for name, value in bound.arguments.items()
        if name != "self" and isinstance(value, (str, int, float))
    }


def instrument_gateway(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a store method to emit structured start/complete/fail logs with timing."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = current_correlation_id()
            start = time.perf_counter()
            log_event(
                LOGGER,
                logging.DEBUG,
                "gateway_call_started",
                gateway=operation,
                correlation_id=correlation_id,
                call_args=_preview_args(signature, args, kwargs),
            )
            try:
                result = func(*args, **kwargs)
            except Exception:
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "gateway_call_failed",
                    gateway=operation,
                    correlation_id=correlation_id,
                    duration_ms=duration_ms,
                    exc_info=True,
                )
                raise
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            log_event(
                LOGGER,
                logging.DEBUG,
                "gateway_call_completed",
                gateway=operation,
                correlation_id=correlation_id,
                duration_ms=duration_ms,
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_gateway"]
