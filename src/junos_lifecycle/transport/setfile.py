"""Non-transactional transport appending statements to a set file.

Used to generate configuration without a device (JUNOS_FAKECREATE_SETFILE).
Lock, unlock and commit are no-ops; nothing can be read back.
"""
import logging
import os
from typing import Optional

from ..errors import CommandError, SessionStartError
from .base import DeviceTransport, SystemInformation

logger = logging.getLogger(__name__)


class SetFileTransport(DeviceTransport):
    """Writes every loaded line to ``path``."""

    transactional = False

    def __init__(self, path: str, file_mode: int = 0o644):
        super().__init__(f"setfile:{os.path.basename(path)}")
        self.path = path
        self.file_mode = file_mode

    async def open(self) -> None:
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, self.file_mode)
        except OSError as e:
            raise SessionStartError(f"opening set file {self.path}: {e}") from e
        os.close(fd)

    async def close(self) -> list[str]:
        return []

    async def lock(self) -> bool:
        return True

    async def unlock(self) -> list[str]:
        return []

    async def discard_changes(self) -> list[str]:
        return []

    async def load_set(self, lines: list[str]) -> list[str]:
        with open(self.path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
        logger.debug(f"Appended {len(lines)} lines to {self.path}")
        return []

    async def commit(self, message: str, confirmed_minutes: Optional[int] = None) -> list[str]:
        return []

    async def commit_check(self) -> list[str]:
        return []

    async def command(self, text: str) -> str:
        raise CommandError(f"set file transport cannot run {text!r}")

    async def system_information(self) -> SystemInformation:
        return SystemInformation()
