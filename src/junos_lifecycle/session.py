"""Configuration session on one device.

States: CLOSED -> OPENED -> (LOCKED <-> OPENED) -> CLOSED.

A session owns one transport connection and at most one transaction at a
time. Sessions over non-transactional transports (set files, simulators)
keep the same state machine but lock, unlock and commit do not reach the
device; ``non_transactional`` exposes that mode.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .codec.statement import Statement, unquote
from .errors import (
    CLEAR_WARNING,
    CLOSE_WARNING,
    COMMIT_WARNING,
    SET_WARNING,
    UNLOCK_WARNING,
    CommandError,
    ConfigCommitError,
    ConfigLockError,
    ConfigSetError,
    DeviceWarning,
    LifecycleError,
    SessionStartError,
    SessionStateError,
)
from .transport.base import DeviceTransport, SystemInformation
from .utils.logging_config import timed

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CLOSED = "closed"
    OPENED = "opened"
    LOCKED = "locked"


@dataclass
class Transaction:
    """Statements submitted between lock and unlock, and the commit outcome."""
    statements: list[Statement] = field(default_factory=list)
    commit_message: Optional[str] = None
    committed: bool = False
    warnings: list[DeviceWarning] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def lines(self) -> list[str]:
        return [s.text for s in self.statements]


def _origin_of(statements: list[Statement], bad_element: Optional[str]) -> Optional[str]:
    """Attribute path of the statement a device error points at."""
    if len(statements) == 1:
        return statements[0].origin
    if not bad_element:
        return None
    for statement in statements:
        if bad_element in (unquote(a) for a in statement.args):
            return statement.origin
    # Keywords are shared by many statements; only the last one is specific
    for statement in statements:
        if statement.path and statement.path[-1] == bad_element:
            return statement.origin
    return None


def _warnings(summary: str, messages: Iterable[str]) -> list[DeviceWarning]:
    return [DeviceWarning(summary, m) for m in messages]


class Session:
    """Device configuration session.

    Usage:
        async with Session(transport) as session:
            await session.lock()
            try:
                await session.submit(statements)
                warnings = await session.commit("create resource junos_application")
            finally:
                warnings += await session.unlock()
    """

    def __init__(
        self,
        transport: DeviceTransport,
        sleep_short_ms: int = 0,
        commit_confirmed: Optional[int] = None,
        commit_confirmed_wait_s: float = 0.0,
    ):
        self.transport = transport
        self.sleep_short_ms = sleep_short_ms
        self.commit_confirmed = commit_confirmed
        self.commit_confirmed_wait_s = commit_confirmed_wait_s
        self.state = SessionState.CLOSED
        self.system_information: Optional[SystemInformation] = None
        self.transaction: Optional[Transaction] = None
        self._uncommitted = False

    @property
    def target(self) -> str:
        return self.transport.target

    @property
    def non_transactional(self) -> bool:
        return not self.transport.transactional

    async def __aenter__(self) -> "Session":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        for warning in await self.close():
            logger.warning(f"{self.target}: {warning}")

    async def open(self) -> None:
        """Connect and gather device facts.

        Raises:
            SessionStartError: If the connection or fact gathering fails
        """
        if self.state != SessionState.CLOSED:
            raise SessionStateError(f"session to {self.target} is already open")
        await self.transport.open()
        self.state = SessionState.OPENED
        if self.non_transactional:
            return
        try:
            self.system_information = await self.transport.system_information()
        except CommandError as e:
            await self.close()
            raise SessionStartError(f"gathering facts of {self.target}: {e.message}") from e
        logger.debug(
            f"Opened session to {self.target} "
            f"({self.system_information.hardware_model} {self.system_information.os_version})"
        )

    @timed("lock")
    async def lock(self) -> None:
        """Lock the candidate configuration and start a transaction.

        Raises:
            ConfigLockError: If this session already holds the lock or the
                device refuses it (another session holds it)
        """
        if self.state == SessionState.LOCKED:
            raise ConfigLockError(f"candidate configuration of {self.target} is already locked by this session")
        if self.state == SessionState.CLOSED:
            raise ConfigLockError(f"session to {self.target} is closed")
        if not self.non_transactional and not await self.transport.lock():
            raise ConfigLockError(f"candidate configuration of {self.target} is locked by another session")
        self.state = SessionState.LOCKED
        self.transaction = Transaction()
        self._uncommitted = False

    @timed("submit")
    async def submit(self, statements: list[Statement]) -> list[DeviceWarning]:
        """Load statements into the candidate, in order.

        Raises:
            ConfigSetError: If the device rejects a statement; carries the
                attribute path of the rejected statement when known
        """
        if self.state != SessionState.LOCKED:
            raise ConfigSetError(f"submitting to {self.target} requires a locked candidate configuration")
        if not statements:
            return []
        self.transaction.statements.extend(statements)
        self._uncommitted = True
        lines = [s.text for s in statements]
        logger.debug(f"Loading {len(lines)} lines on {self.target}:\n" + "\n".join(lines))
        try:
            messages = await self.transport.load_set(lines)
        except ConfigSetError as e:
            if e.path is None:
                e.path = _origin_of(statements, e.bad_element)
            self.transaction.error = e.message
            raise
        warnings = _warnings(SET_WARNING, messages)
        self.transaction.warnings.extend(warnings)
        return warnings

    @timed("commit")
    async def commit(self, message: str) -> list[DeviceWarning]:
        """Commit the candidate configuration.

        Returns:
            Device warnings of a successful commit

        Raises:
            ConfigCommitError: With warnings of every commit step attached
        """
        if self.state != SessionState.LOCKED:
            raise ConfigCommitError(f"commit on {self.target} requires a locked candidate configuration")
        self.transaction.commit_message = message
        if self.non_transactional:
            self.transaction.committed = True
            self._uncommitted = False
            return []

        if self.sleep_short_ms:
            await asyncio.sleep(self.sleep_short_ms / 1000)

        messages: list[str] = []
        try:
            if self.commit_confirmed:
                messages += await self.transport.commit(message, self.commit_confirmed)
                logger.info(
                    f"Commit confirmed on {self.target}, confirming in {self.commit_confirmed_wait_s:.0f}s"
                )
                await asyncio.sleep(self.commit_confirmed_wait_s)
                messages += await self.transport.commit_check()
            else:
                messages += await self.transport.commit(message)
        except ConfigCommitError as e:
            e.warnings[:0] = _warnings(COMMIT_WARNING, messages)
            self.transaction.warnings.extend(e.warnings)
            self.transaction.error = e.message
            raise

        self._uncommitted = False
        self.transaction.committed = True
        warnings = _warnings(COMMIT_WARNING, messages)
        for warning in warnings:
            logger.warning(f"{self.target}: {warning}")
        self.transaction.warnings.extend(warnings)
        return warnings

    async def unlock(self) -> list[DeviceWarning]:
        """Release the lock, discarding uncommitted changes first.

        Never raises for device failures: they are returned as warnings.
        """
        if self.state != SessionState.LOCKED:
            return []
        warnings: list[DeviceWarning] = []
        if not self.non_transactional:
            if self._uncommitted:
                warnings += _warnings(CLEAR_WARNING, await self._quietly(self.transport.discard_changes))
            warnings += _warnings(UNLOCK_WARNING, await self._quietly(self.transport.unlock))
        self.state = SessionState.OPENED
        self._uncommitted = False
        for warning in warnings:
            logger.warning(f"{self.target}: {warning}")
        return warnings

    async def _quietly(self, call) -> list[str]:
        try:
            return await call()
        except (LifecycleError, OSError) as e:
            return [str(e)]

    async def command(self, text: str) -> str:
        """Run a read-only command.

        Raises:
            CommandError: If the command fails or the session is closed
        """
        if self.state == SessionState.CLOSED:
            raise CommandError(f"session to {self.target} is closed")
        return await self.transport.command(text)

    async def close(self) -> list[DeviceWarning]:
        """Unlock if needed and close the connection. Idempotent."""
        if self.state == SessionState.CLOSED:
            return []
        warnings = await self.unlock()
        warnings += _warnings(CLOSE_WARNING, await self._quietly(self.transport.close))
        self.state = SessionState.CLOSED
        logger.debug(f"Closed session to {self.target}")
        return warnings
