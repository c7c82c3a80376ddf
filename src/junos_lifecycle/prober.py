"""Existence checks through scoped ``show configuration`` queries."""
import logging
from typing import Iterable

from .codec.schema import ConfigObject
from .codec.statement import is_empty_dump
from .session import Session

logger = logging.getLogger(__name__)

SHOW_CONFIG = "show configuration"
PIPE_DISPLAY_SET = "| display set"
PIPE_DISPLAY_SET_RELATIVE = "| display set relative"


def show_command(path: Iterable[str], relative: bool = False) -> str:
    """``show configuration <path> | display set [relative]``."""
    pipe = PIPE_DISPLAY_SET_RELATIVE if relative else PIPE_DISPLAY_SET
    return " ".join((SHOW_CONFIG, *path, pipe))


async def exists(path: Iterable[str], session: Session) -> bool:
    """True when the device holds any configuration under ``path``.

    An empty dump means absent; command failures propagate as CommandError.
    """
    command = show_command(path)
    dump = await session.command(command)
    found = not is_empty_dump(dump)
    logger.debug(f"{command!r} on {session.target}: {'found' if found else 'absent'}")
    return found


async def object_exists(obj: ConfigObject, session: Session) -> bool:
    return await exists(obj.root_path(), session)
