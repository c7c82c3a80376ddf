"""Shared fixtures: an in-memory Junos device and a transport speaking to it."""
from typing import Optional

import pytest

from junos_lifecycle.client import DeviceClient
from junos_lifecycle.config.settings import ProviderSettings
from junos_lifecycle.errors import ConfigCommitError, ConfigSetError, DeviceWarning, SessionStartError
from junos_lifecycle.transport.base import DeviceTransport, SystemInformation


class FakeDevice:
    """Candidate/committed configuration store with a single candidate lock.

    Configuration lines are kept as committed (``set`` stripped). Scripted
    failures: ``reject`` (substring of a line to refuse), ``commit_error``,
    ``commit_warnings``, ``unlock_errors``, ``command_error``.
    """

    def __init__(self, hardware_model: str = "vsrx"):
        self.hardware_model = hardware_model
        self.config: list[str] = []
        self.candidate: list[str] = []
        self.lock_holder: Optional[object] = None
        self.reject: Optional[str] = None
        self.commit_error: Optional[str] = None
        self.commit_warnings: list[str] = []
        self.unlock_errors: list[str] = []
        self.command_error: Optional[str] = None
        self.unreachable = False
        self.loaded: list[str] = []
        self.commits: list[str] = []
        self.commands: list[str] = []
        self.lock_calls = 0
        self.unlock_calls = 0
        self.discard_calls = 0
        self.close_calls = 0

    def preload(self, *lines: str) -> None:
        """Seed committed configuration with ``set`` lines."""
        for line in lines:
            self._apply(self.config, line)
        self.candidate = list(self.config)

    @staticmethod
    def _apply(store: list[str], line: str) -> None:
        verb, _, path = line.partition(" ")
        if verb == "set":
            if path not in store:
                store.append(path)
        elif verb == "delete":
            store[:] = [s for s in store if s != path and not s.startswith(path + " ")]

    def load(self, lines: list[str]) -> None:
        for line in lines:
            if self.reject and self.reject in line:
                raise ConfigSetError(f"syntax error: {self.reject}", bad_element=self.reject)
            self.loaded.append(line)
            self._apply(self.candidate, line)

    def show(self, command: str) -> str:
        """Answer ``show configuration <path> | display set [relative]``."""
        body, _, pipe = command.partition(" | ")
        path = body[len("show configuration "):].strip()
        relative = pipe.strip() == "display set relative"
        lines = []
        for entry in self.config:
            if not path or entry == path or entry.startswith(path + " "):
                shown = entry[len(path):].strip() if relative and path else entry
                if shown:
                    lines.append(f"set {shown}")
        return "\n<configuration-output>\n" + "".join(f"{l}\n" for l in lines) + "</configuration-output>\n"


class FakeTransport(DeviceTransport):
    """Transport bound to a FakeDevice."""

    def __init__(self, device: FakeDevice, target: str = "192.0.2.1"):
        super().__init__(target)
        self.device = device

    async def open(self) -> None:
        if self.device.unreachable:
            raise SessionStartError(f"connecting to {self.target}: unreachable")

    async def close(self) -> list[str]:
        self.device.close_calls += 1
        return []

    async def lock(self) -> bool:
        self.device.lock_calls += 1
        if self.device.lock_holder is not None and self.device.lock_holder is not self:
            return False
        self.device.lock_holder = self
        return True

    async def unlock(self) -> list[str]:
        self.device.unlock_calls += 1
        if self.device.unlock_errors:
            return list(self.device.unlock_errors)
        if self.device.lock_holder is self:
            self.device.lock_holder = None
        return []

    async def discard_changes(self) -> list[str]:
        self.device.discard_calls += 1
        self.device.candidate = list(self.device.config)
        return []

    async def load_set(self, lines: list[str]) -> list[str]:
        self.device.load(lines)
        return []

    async def commit(self, message: str, confirmed_minutes: Optional[int] = None) -> list[str]:
        if self.device.commit_error:
            error = ConfigCommitError(self.device.commit_error)
            error.warnings.extend(DeviceWarning("Config Commit Warning", w) for w in self.device.commit_warnings)
            raise error
        self.device.config = list(self.device.candidate)
        self.device.commits.append(message)
        return list(self.device.commit_warnings)

    async def commit_check(self) -> list[str]:
        self.device.commits.append("check")
        return []

    async def command(self, text: str) -> str:
        from junos_lifecycle.errors import CommandError

        self.device.commands.append(text)
        if self.device.command_error:
            raise CommandError(self.device.command_error)
        return self.device.show(text)

    async def system_information(self) -> SystemInformation:
        return SystemInformation(hardware_model=self.device.hardware_model, os_name="junos")


@pytest.fixture
def device():
    """In-memory device with an SRX hardware model."""
    return FakeDevice()


@pytest.fixture
def settings():
    """Settings without pauses."""
    return ProviderSettings(host="192.0.2.1", sleep_short_ms=0)


@pytest.fixture
def client(device, settings):
    """Client whose sessions talk to the fake device."""
    return DeviceClient(settings, transport_factory=lambda s: FakeTransport(device, s.host))
