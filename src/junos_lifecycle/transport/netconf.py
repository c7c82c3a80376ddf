"""NETCONF over SSH transport for Junos devices.

Uses ncclient for the NETCONF session (paramiko underneath) and lxml to read
replies. ncclient calls block, so they run in the default executor.
"""
import asyncio
import io
import logging
import os
import tempfile
from typing import Callable, Optional

import paramiko
from lxml import etree
from ncclient import NCClientError, manager
from ncclient.operations import RaiseMode
from ncclient.transport.errors import AuthenticationError, SSHError

from ..config.settings import ProviderSettings
from ..errors import (
    COMMIT_WARNING,
    CommandError,
    ConfigCommitError,
    ConfigLockError,
    ConfigSetError,
    DeviceWarning,
    LifecycleError,
    SessionStartError,
)
from ..utils.connection import RETRYABLE_EXCEPTIONS, with_retry
from ..utils.logging_config import perf_logger, timed
from .base import DeviceTransport, SystemInformation

logger = logging.getLogger(__name__)

ERROR_SEVERITY = "error"
_CANDIDATE = "<target><candidate/></target>"

RPC_LOCK = f"<lock>{_CANDIDATE}</lock>"
RPC_UNLOCK = f"<unlock>{_CANDIDATE}</unlock>"
RPC_CLEAR_CANDIDATE = f"<delete-config>{_CANDIDATE}</delete-config>"
RPC_COMMIT_CHECK = "<commit-configuration><check/></commit-configuration>"
RPC_SYSTEM_INFORMATION = "<get-system-information/>"

CONNECT_EXCEPTIONS = RETRYABLE_EXCEPTIONS + (SSHError,)
PRIVATE_KEY_TYPES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


# === Request builders ===

def load_set_rpc(lines: list[str]) -> etree._Element:
    rpc = etree.Element("load-configuration", action="set", format="text")
    etree.SubElement(rpc, "configuration-set").text = "\n".join(lines)
    return rpc


def commit_rpc(message: str, confirmed_minutes: Optional[int] = None) -> etree._Element:
    rpc = etree.Element("commit-configuration")
    if confirmed_minutes:
        etree.SubElement(rpc, "confirmed")
        etree.SubElement(rpc, "confirm-timeout").text = str(confirmed_minutes)
    etree.SubElement(rpc, "log").text = message
    return rpc


def command_rpc(text: str) -> etree._Element:
    rpc = etree.Element("command", format="text")
    rpc.text = text
    return rpc


# === Reply readers ===

def _localname(node: etree._Element) -> str:
    if not isinstance(node.tag, str):
        return ""
    return etree.QName(node).localname


def _find(node: etree._Element, name: str) -> Optional[etree._Element]:
    for child in node.iter():
        if _localname(child) == name:
            return child
    return None


def _find_text(node: etree._Element, name: str) -> str:
    child = _find(node, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def parse_reply(xml: str) -> etree._Element:
    return etree.fromstring(xml.encode("utf-8"))


def format_rpc_error(node: etree._Element) -> str:
    message = _find_text(node, "error-message") or "unknown error"
    bad_element = _find_text(node, "bad-element")
    if bad_element:
        message = f"{message} (bad element: {bad_element})"
    path = _find_text(node, "error-path")
    if path:
        message = f"{message} at {path}"
    return message


def split_rpc_errors(reply: etree._Element) -> tuple[list[str], list[str]]:
    """Split ``rpc-error`` entries into errors and warnings by severity.

    Entries nested in ``<commit-results>`` are included.
    """
    errors, warnings = [], []
    for node in reply.iter():
        if _localname(node) != "rpc-error":
            continue
        severity = _find_text(node, "error-severity") or ERROR_SEVERITY
        if severity == ERROR_SEVERITY:
            errors.append(format_rpc_error(node))
        else:
            warnings.append(format_rpc_error(node))
    return errors, warnings


def bad_element(reply: etree._Element) -> Optional[str]:
    return _find_text(reply, "bad-element") or None


def command_output(reply: etree._Element) -> str:
    """Text of a ``<command format="text">`` reply, empty when there is none."""
    for name in ("configuration-output", "output"):
        node = _find(reply, name)
        if node is not None:
            return node.text or ""
    return ""


def read_system_information(reply: etree._Element) -> SystemInformation:
    info = _find(reply, "system-information")
    if info is None:
        return SystemInformation()
    cluster = _find(info, "cluster-node")
    return SystemInformation(
        hardware_model=_find_text(info, "hardware-model"),
        os_name=_find_text(info, "os-name"),
        os_version=_find_text(info, "os-version"),
        serial_number=_find_text(info, "serial-number"),
        host_name=_find_text(info, "host-name"),
        cluster_node=cluster is not None and (cluster.text or "").strip().lower() != "false",
    )


def load_private_key(data: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Load a PEM/OpenSSH private key of any supported type."""
    for key_class in PRIVATE_KEY_TYPES:
        try:
            return key_class.from_private_key(io.StringIO(data), password=passphrase)
        except paramiko.SSHException:
            continue
    raise SessionStartError("unsupported or invalid SSH private key")


class NetconfTransport(DeviceTransport):
    """Junos NETCONF session (port 830 by default)."""

    def __init__(self, settings: ProviderSettings):
        super().__init__(settings.host)
        self.settings = settings
        self._manager: Optional[manager.Manager] = None
        self._key_path: Optional[str] = None

    async def _run(self, func: Callable, *args):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, func, *args)

    def _key_filename(self) -> Optional[str]:
        """Path of a passphrase-free key file for ncclient, if key auth is set."""
        pem = self.settings.key_pem
        if pem is None and self.settings.key_file and self.settings.key_pass:
            with open(self.settings.key_file) as f:
                pem = f.read()
        if pem is None:
            return self.settings.key_file

        key = load_private_key(pem, self.settings.key_pass)
        fd, path = tempfile.mkstemp(prefix="junos-key-")
        os.close(fd)
        key.write_private_key_file(path)
        self._key_path = path
        return path

    def _remove_key_file(self) -> None:
        if self._key_path and os.path.exists(self._key_path):
            os.remove(self._key_path)
        self._key_path = None

    @with_retry(attempts=lambda self: self.settings.ssh_retry, exceptions=CONNECT_EXCEPTIONS)
    async def _connect(self, key_filename: Optional[str]) -> manager.Manager:
        return await self._run(lambda: manager.connect_ssh(
            host=self.settings.host,
            port=self.settings.port,
            username=self.settings.username,
            password=self.settings.password,
            key_filename=key_filename,
            timeout=self.settings.ssh_timeout_s,
            hostkey_verify=False,
            allow_agent=False,
            look_for_keys=False,
            device_params={"name": "junos"},
        ))

    @timed("connect")
    async def open(self) -> None:
        if not self.settings.host:
            raise SessionStartError("host is not set")
        try:
            key_filename = self._key_filename()
            self._manager = await self._connect(key_filename)
        except AuthenticationError as e:
            self._remove_key_file()
            raise SessionStartError(f"authentication to {self.target} failed: {e}") from e
        except (NCClientError, OSError, EOFError) as e:
            self._remove_key_file()
            raise SessionStartError(f"connecting to {self.target}:{self.settings.port}: {e}") from e
        except LifecycleError:
            self._remove_key_file()
            raise
        self._manager.raise_mode = RaiseMode.NONE
        logger.info(f"NETCONF session {self._manager.session_id} opened to {self.target}")

    async def close(self) -> list[str]:
        if self._manager is None:
            return []
        errors = []
        try:
            await self._run(self._manager.close_session)
        except (NCClientError, OSError) as e:
            errors.append(f"closing NETCONF session: {e}")
        finally:
            self._manager = None
            self._remove_key_file()
        if self.settings.sleep_closed_s:
            await asyncio.sleep(self.settings.sleep_closed_s)
        return errors

    async def _rpc(self, rpc, error_class: type[LifecycleError]) -> etree._Element:
        """Send one RPC and return the parsed reply.

        Transport failures are raised as ``error_class``.
        """
        if self._manager is None:
            raise error_class(f"no NETCONF session to {self.target}")
        if isinstance(rpc, str):
            rpc = etree.fromstring(rpc)
        try:
            reply = await self._run(self._manager.dispatch, rpc)
        except (NCClientError, OSError) as e:
            raise error_class(f"NETCONF exchange with {self.target} failed: {e}") from e
        return parse_reply(reply.xml)

    async def lock(self) -> bool:
        reply = await self._rpc(RPC_LOCK, ConfigLockError)
        errors, _ = split_rpc_errors(reply)
        if errors:
            logger.debug(f"Lock refused by {self.target}: {'; '.join(errors)}")
            return False
        return True

    async def unlock(self) -> list[str]:
        try:
            reply = await self._rpc(RPC_UNLOCK, CommandError)
        except CommandError as e:
            return [e.message]
        errors, _ = split_rpc_errors(reply)
        return errors

    async def discard_changes(self) -> list[str]:
        try:
            reply = await self._rpc(RPC_CLEAR_CANDIDATE, CommandError)
        except CommandError as e:
            return [e.message]
        errors, _ = split_rpc_errors(reply)
        return errors

    async def load_set(self, lines: list[str]) -> list[str]:
        reply = await self._rpc(load_set_rpc(lines), ConfigSetError)
        errors, warnings = split_rpc_errors(reply)
        if errors:
            raise ConfigSetError("\n".join(errors), bad_element=bad_element(reply))
        return warnings

    async def _commit(self, rpc, step: str) -> list[str]:
        reply = await self._rpc(rpc, ConfigCommitError)
        errors, warnings = split_rpc_errors(reply)
        if errors:
            error = ConfigCommitError(f"{step}: " + "\n".join(errors))
            error.warnings.extend(DeviceWarning(COMMIT_WARNING, w) for w in warnings)
            raise error
        return warnings

    async def commit(self, message: str, confirmed_minutes: Optional[int] = None) -> list[str]:
        step = "commit-configuration"
        if confirmed_minutes:
            step = f"commit-configuration (confirmed {confirmed_minutes})"
        return await self._commit(commit_rpc(message, confirmed_minutes), step)

    async def commit_check(self) -> list[str]:
        return await self._commit(etree.fromstring(RPC_COMMIT_CHECK), "commit-configuration (check)")

    async def command(self, text: str) -> str:
        reply = await self._rpc(command_rpc(text), CommandError)
        errors, _ = split_rpc_errors(reply)
        if errors:
            raise CommandError(f"command {text!r}: " + "\n".join(errors))
        output = command_output(reply)
        perf_logger.debug(f"{'command':20s} | {self.target:15s} | {len(output):8d}ch | cmd={text[:50]}")
        return output

    async def system_information(self) -> SystemInformation:
        reply = await self._rpc(RPC_SYSTEM_INFORMATION, CommandError)
        errors, _ = split_rpc_errors(reply)
        if errors:
            raise CommandError("get-system-information: " + "\n".join(errors))
        return read_system_information(reply)
