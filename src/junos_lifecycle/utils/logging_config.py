"""Logging configuration for junos-lifecycle.

Provides configurable logging with:
- Console output and a rotating log file
- Performance timing of device round trips (connect, lock, load, commit)
- Aggregated timing statistics per operation

Environment Variables:
    JUNOS_LIFECYCLE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    JUNOS_LIFECYCLE_LOG_FILE: Path to log file (default: ~/.junos-lifecycle/junos-lifecycle.log)
    JUNOS_LIFECYCLE_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    JUNOS_LIFECYCLE_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from junos_lifecycle.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("commit")
    async def commit(self, message):
        ...

    async with timed_section("create", target="192.0.2.1", resource="junos_application"):
        ...
"""
import asyncio
import functools
import logging
import os
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

LOGGER_NAME = "junos_lifecycle"

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger(f"{LOGGER_NAME}.perf")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("JUNOS_LIFECYCLE_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".junos-lifecycle" / "junos-lifecycle.log"
    return Path(os.environ.get("JUNOS_LIFECYCLE_LOG_FILE", str(default_path)))


def setup_logging() -> None:
    """Configure the package loggers.

    Sets up:
    - Console handler at the configured level
    - Rotating file handler at DEBUG level
    - Performance file next to the main log file
    """
    log_level = get_log_level()
    log_file = get_log_file()
    max_bytes = int(os.environ.get("JUNOS_LIFECYCLE_LOG_MAX_SIZE", "10")) * 1024 * 1024
    backup_count = int(os.environ.get("JUNOS_LIFECYCLE_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-30s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "junos-lifecycle-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Perf lines go to their own file only
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.addHandler(perf_handler)

    root_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")
    perf_logger.info(f"Performance logging to: {perf_log_file}")


def _log_timing(operation: str, target: Optional[str], start: float, error: Optional[Exception] = None,
                extra: str = "") -> None:
    elapsed = (time.perf_counter() - start) * 1000
    global_stats.record(operation, elapsed)
    status = "OK" if error is None else f"FAIL: {error}"
    msg = f"{operation:20s} | {target or 'N/A':15s} | {elapsed:8.2f}ms | {status}"
    if extra:
        msg += f" | {extra}"
    if error is None:
        perf_logger.info(msg)
    else:
        perf_logger.warning(msg)


def timed(operation: str, target: Optional[str] = None):
    """Decorator to log execution time of sync/async functions.

    Args:
        operation: Name of the operation (e.g., "connect", "commit")
        target: Device address, inferred from ``self.target`` when omitted
    """
    def decorator(func: Callable) -> Callable:
        def resolve_target(args: tuple) -> Optional[str]:
            if target is None and args and hasattr(args[0], "target"):
                return args[0].target
            return target

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, resolve_target(args), start, e)
                raise
            _log_timing(operation, resolve_target(args), start)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, resolve_target(args), start, e)
                raise
            _log_timing(operation, resolve_target(args), start)
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


@asynccontextmanager
async def timed_section(operation: str, target: Optional[str] = None, **extra):
    """Async context manager for timing code sections.

    Usage:
        async with timed_section("delete", target="192.0.2.1", resource="junos_snmp"):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items())
    try:
        yield
    except Exception as e:
        _log_timing(operation, target, start, e, extra_str)
        raise
    _log_timing(operation, target, start, extra=extra_str)


class PerfStats:
    """Collect and report performance statistics."""

    def __init__(self):
        self._data: dict[str, list[float]] = {}

    def record(self, operation: str, duration_ms: float) -> None:
        """Record a timing measurement."""
        self._data.setdefault(operation, []).append(duration_ms)

    def count(self, operation: str) -> int:
        return len(self._data.get(operation, []))

    def summary(self) -> str:
        """Generate summary statistics."""
        lines = ["Performance Summary", "=" * 60]
        for op, times in sorted(self._data.items()):
            if not times:
                continue
            avg = sum(times) / len(times)
            lines.append(
                f"{op:20s} | count={len(times):4d} | "
                f"avg={avg:8.2f}ms | min={min(times):8.2f}ms | max={max(times):8.2f}ms"
            )
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all recorded data."""
        self._data.clear()


# Global stats instance fed by timed() and timed_section()
global_stats = PerfStats()
