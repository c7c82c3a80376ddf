"""Utility modules for logging, connection retry and auditing."""
from .connection import with_retry, RETRYABLE_EXCEPTIONS
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
    PerfStats,
    global_stats,
)
from .audit_log import (
    setup_audit_logging,
    log_transaction,
    get_recent_transactions,
    TransactionRecord,
)

__all__ = [
    "with_retry",
    "RETRYABLE_EXCEPTIONS",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "PerfStats",
    "global_stats",
    "setup_audit_logging",
    "log_transaction",
    "get_recent_transactions",
    "TransactionRecord",
]
