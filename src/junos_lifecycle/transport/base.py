"""Device transport abstraction.

A transport carries the raw primitives of the device line protocol: candidate
lock and unlock, loading ``set``/``delete`` lines, commit and read-only
commands. Session bookkeeping (state, warnings, transaction record) lives in
``junos_lifecycle.session``.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Optional

SECURITY_MODEL_PREFIXES = ("srx", "vsrx")


@dataclass
class SystemInformation:
    """Facts gathered from the device when a session opens."""
    hardware_model: str = ""
    os_name: str = ""
    os_version: str = ""
    serial_number: str = ""
    host_name: str = ""
    cluster_node: bool = False

    def is_security_platform(self) -> bool:
        return self.hardware_model.lower().startswith(SECURITY_MODEL_PREFIXES)

    def to_dict(self) -> dict:
        return asdict(self)


class DeviceTransport(ABC):
    """Abstract transport to one device.

    ``transactional`` is False for transports that apply statements directly
    without lock or commit (set file output, simulators).
    """

    transactional: bool = True

    def __init__(self, target: str):
        self.target = target

    @abstractmethod
    async def open(self) -> None:
        """Establish the connection.

        Raises:
            SessionStartError: If the device cannot be reached
        """

    @abstractmethod
    async def close(self) -> list[str]:
        """Close the connection, returning error messages."""

    @abstractmethod
    async def lock(self) -> bool:
        """Lock the candidate configuration. False when the device refuses."""

    @abstractmethod
    async def unlock(self) -> list[str]:
        """Unlock the candidate configuration, returning error messages."""

    @abstractmethod
    async def discard_changes(self) -> list[str]:
        """Drop uncommitted candidate changes, returning error messages."""

    @abstractmethod
    async def load_set(self, lines: list[str]) -> list[str]:
        """Load configuration lines into the candidate, returning warnings.

        Raises:
            ConfigSetError: If the device rejects a line
        """

    @abstractmethod
    async def commit(self, message: str, confirmed_minutes: Optional[int] = None) -> list[str]:
        """Commit the candidate, returning warning messages.

        Raises:
            ConfigCommitError: With any warnings attached
        """

    @abstractmethod
    async def commit_check(self) -> list[str]:
        """Validate the candidate (confirms a pending confirmed commit)."""

    @abstractmethod
    async def command(self, text: str) -> str:
        """Run a read-only command and return its text output.

        Raises:
            CommandError: If the command fails
        """

    @abstractmethod
    async def system_information(self) -> SystemInformation:
        """Gather device facts."""
