"""Audit trail of configuration transactions.

Each create, update or delete that reaches the device writes one JSON line:
the statements loaded, the commit message and the outcome. The trail is
enabled by ``ProviderSettings.audit_log_path`` (JUNOS_LOG_PATH).
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

audit_logger = logging.getLogger("junos_lifecycle.audit")
# Records only go to the audit file, never to the main logs
audit_logger.propagate = False

AUDIT_FILE_NAME = "transactions.log"


def setup_audit_logging(log_dir: str, file_mode: int = 0o644) -> str:
    """Configure the audit logger to write into ``log_dir``.

    Args:
        log_dir: Directory for the audit file, created if missing
        file_mode: Permission bits applied to the audit file

    Returns:
        Path of the audit file
    """
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = os.path.join(log_dir, AUDIT_FILE_NAME)

    for handler in list(audit_logger.handlers):
        if getattr(handler, "baseFilename", None) == os.path.abspath(audit_file):
            return audit_file
        audit_logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(audit_file, maxBytes=10 * 1024 * 1024, backupCount=10)
    handler.setFormatter(logging.Formatter("%(message)s"))
    os.chmod(audit_file, file_mode)

    audit_logger.setLevel(logging.INFO)
    audit_logger.addHandler(handler)
    return audit_file


@dataclass
class TransactionRecord:
    """Record of one configuration transaction."""
    timestamp: str
    target: str
    operation: str  # create, update, delete
    resource_type: str
    resource_id: str
    success: bool
    statements: list[str] = field(default_factory=list)
    commit_message: str = ""
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, json_str: str) -> "TransactionRecord":
        return cls(**json.loads(json_str))


def log_transaction(
    target: str,
    operation: str,
    resource_type: str,
    resource_id: str,
    success: bool,
    statements: list[str],
    commit_message: str = "",
    warnings: Optional[list[str]] = None,
    error: Optional[str] = None,
) -> TransactionRecord:
    """Write a transaction to the audit trail.

    Records are dropped silently by the logging module when no handler is
    configured, so callers do not need to check whether the trail is on.
    """
    record = TransactionRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        target=target,
        operation=operation,
        resource_type=resource_type,
        resource_id=resource_id,
        success=success,
        statements=list(statements),
        commit_message=commit_message,
        warnings=list(warnings or []),
        error=error,
    )
    audit_logger.info(record.to_json())
    return record


def get_recent_transactions(
    log_file: str,
    target: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = 100,
) -> list[TransactionRecord]:
    """Read recent transactions from the audit file.

    Args:
        log_file: Path to the audit file
        target: Filter by device address
        resource_type: Filter by resource type
        limit: Maximum number of records to return

    Returns:
        List of TransactionRecords, most recent first
    """
    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = TransactionRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if target and record.target != target:
                continue
            if resource_type and record.resource_type != resource_type:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
