import time
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional

from flask import current_app, has_app_context

# Fallbacks when no app is pushed (scripts, bare service use)
DEFAULT_THRESHOLDS_MS = {
    'SLOW_QUERY_THRESHOLD_MS': 100.0,
    'PERMISSION_QUERY_THRESHOLD_MS': 50.0,
}

performance_logger = logging.getLogger('performance')
permission_logger = logging.getLogger('performance.permissions')


def _threshold_ms(operation_type: str) -> float:
    key = 'PERMISSION_QUERY_THRESHOLD_MS' if operation_type == "permission" else 'SLOW_QUERY_THRESHOLD_MS'
    if has_app_context():
        return float(current_app.config.get(key, DEFAULT_THRESHOLDS_MS[key]))
    return DEFAULT_THRESHOLDS_MS[key]


def _debug_enabled() -> bool:
    return has_app_context() and bool(current_app.config.get('ENABLE_PERFORMANCE_DEBUG'))


def performance_monitor(operation_name: Optional[str] = None, operation_type: str = "general"):
    """
    Time a resolver or listing call and warn when it runs past its threshold.

    Args:
        operation_name: Label used in the log line, defaults to module.function
        operation_type: "permission" for share resolution and accessible-set
            work (permission logger and threshold), anything else for the
            general performance logger
    """
    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        logger = permission_logger if operation_type == "permission" else performance_logger

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(f"ERROR - {op_name} failed after {elapsed:.2f}ms - {e}")
                raise

            elapsed = (time.perf_counter() - start) * 1000
            threshold = _threshold_ms(operation_type)
            if elapsed >= threshold:
                logger.warning(f"SLOW_{operation_type.upper()} - {op_name} took {elapsed:.2f}ms "
                               f"(threshold: {threshold}ms)")
            elif _debug_enabled():
                logger.debug(f"{op_name} took {elapsed:.2f}ms")
            return result

        return wrapper
    return decorator


class PerformanceTracker:
    """
    Context manager timing one phase of a computation.

    Counters recorded with ``count`` are reported in the closing log line,
    e.g. how many share roots seeded a flood.
    """

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.counters: Dict[str, int] = {}
        self.start_time = None
        self.end_time = None

    def count(self, name: str, value: int) -> None:
        self.counters[name] = value

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        counters = ", ".join(f"{k}={v}" for k, v in self.counters.items())

        if exc_type is not None:
            performance_logger.error(
                f"ERROR - {self.operation_name} failed after {self.duration_ms:.2f}ms - {exc_val}"
            )
        elif _debug_enabled():
            performance_logger.debug(f"{self.operation_name} took {self.duration_ms:.2f}ms [{counters}]")

    @property
    def duration_ms(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000


def log_accessible_set_stats(user_id: int, resource_type: str, resource_count: int,
                             duration_ms: float, share_count: int = 0):
    """
    One line per accessible-set computation.

    Args:
        user_id: User whose set was computed
        resource_type: 'folder' or 'document'
        resource_count: Size of the resulting set
        duration_ms: Time spent computing it
        share_count: Direct shares that seeded the computation
    """
    threshold = _threshold_ms("permission")
    message = (f"ACCESSIBLE_SET - user_id: {user_id}, type: {resource_type}, shares: {share_count}, "
               f"count: {resource_count}, duration: {duration_ms:.2f}ms")

    if duration_ms >= threshold:
        permission_logger.warning(f"SLOW - {message}")
    else:
        permission_logger.info(message)
