"""Provider settings: device connection, session pacing and test modes.

Environment variables:
- JUNOS_HOST, JUNOS_PORT (830), JUNOS_USERNAME ("netconf"), JUNOS_PASSWORD
- JUNOS_KEYPEM, JUNOS_KEYFILE, JUNOS_KEYPASS: SSH private key authentication
- JUNOS_SLEEP_SHORT: Milliseconds to pause before each commit (default: 100)
- JUNOS_SLEEP_SSH_CLOSED: Seconds to pause after closing a session (default: 0)
- JUNOS_SSH_TIMEOUT_TO_ESTABLISH: SSH connect timeout in seconds (default: 30)
- JUNOS_SSH_RETRY_TO_ESTABLISH: Connect attempts, clamped to 1..10 (default: 1)
- JUNOS_COMMIT_CONFIRMED: Commit with confirmation timeout in minutes
- JUNOS_COMMIT_CONFIRMED_WAIT_PERCENT: Share of the timeout to wait before
  confirming (default: 90)
- JUNOS_FILE_PERMISSION: Octal mode for files written (default: "644")
- JUNOS_LOG_PATH: Directory for the transaction audit log
- JUNOS_NO_DECODE_SECRETS: "true" keeps secrets encoded when reading
- JUNOS_FAKECREATE_SETFILE: Append create statements to this file instead of
  committing them on a device
- JUNOS_FAKEUPDATE_ALSO, JUNOS_FAKEDELETE_ALSO: Extend the set file mode to
  updates and deletes
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 830
DEFAULT_USERNAME = "netconf"
MIN_SSH_RETRY = 1
MAX_SSH_RETRY = 10

_ENV_NAMES = {
    "host": "JUNOS_HOST",
    "port": "JUNOS_PORT",
    "username": "JUNOS_USERNAME",
    "password": "JUNOS_PASSWORD",
    "key_pem": "JUNOS_KEYPEM",
    "key_file": "JUNOS_KEYFILE",
    "key_pass": "JUNOS_KEYPASS",
    "sleep_short_ms": "JUNOS_SLEEP_SHORT",
    "sleep_closed_s": "JUNOS_SLEEP_SSH_CLOSED",
    "ssh_timeout_s": "JUNOS_SSH_TIMEOUT_TO_ESTABLISH",
    "ssh_retry": "JUNOS_SSH_RETRY_TO_ESTABLISH",
    "commit_confirmed": "JUNOS_COMMIT_CONFIRMED",
    "commit_confirmed_wait_percent": "JUNOS_COMMIT_CONFIRMED_WAIT_PERCENT",
    "file_permission": "JUNOS_FILE_PERMISSION",
    "audit_log_path": "JUNOS_LOG_PATH",
    "no_decode_secrets": "JUNOS_NO_DECODE_SECRETS",
    "fake_create_setfile": "JUNOS_FAKECREATE_SETFILE",
    "fake_update_also": "JUNOS_FAKEUPDATE_ALSO",
    "fake_delete_also": "JUNOS_FAKEDELETE_ALSO",
}


@dataclass
class ProviderSettings:
    """Settings shared by every session opened for one device."""
    host: str = ""
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    password: Optional[str] = None
    key_pem: Optional[str] = None
    key_file: Optional[str] = None
    key_pass: Optional[str] = None
    sleep_short_ms: int = 100
    sleep_closed_s: int = 0
    ssh_timeout_s: int = 30
    ssh_retry: int = 1
    commit_confirmed: Optional[int] = None
    commit_confirmed_wait_percent: int = 90
    file_permission: str = "644"
    audit_log_path: Optional[str] = None
    no_decode_secrets: bool = False
    fake_create_setfile: Optional[str] = None
    fake_update_also: bool = False
    fake_delete_also: bool = False

    def __post_init__(self):
        self.ssh_retry = min(max(self.ssh_retry, MIN_SSH_RETRY), MAX_SSH_RETRY)
        if self.key_file:
            self.key_file = os.path.expanduser(self.key_file)
        if self.fake_create_setfile:
            self.fake_create_setfile = os.path.expanduser(self.fake_create_setfile)

    @property
    def file_mode(self) -> int:
        return int(self.file_permission, 8)

    @property
    def commit_confirmed_wait_s(self) -> float:
        """Seconds between a confirmed commit and its confirmation."""
        if not self.commit_confirmed:
            return 0.0
        return self.commit_confirmed * 60 * self.commit_confirmed_wait_percent / 100

    def validate(self) -> None:
        """Reject inconsistent settings.

        Raises:
            ConfigurationError: On the first invalid setting
        """
        if (self.fake_update_also or self.fake_delete_also) and not self.fake_create_setfile:
            raise ConfigurationError(
                "fake_update_also and fake_delete_also need fake_create_setfile to be set"
            )
        if self.commit_confirmed is not None and not 1 <= self.commit_confirmed <= 65535:
            raise ConfigurationError(
                f"commit_confirmed must be in range 1..65535, got {self.commit_confirmed}"
            )
        if not 0 <= self.commit_confirmed_wait_percent <= 99:
            raise ConfigurationError(
                "commit_confirmed_wait_percent must be in range 0..99, "
                f"got {self.commit_confirmed_wait_percent}"
            )
        try:
            mode = self.file_mode
        except ValueError as e:
            raise ConfigurationError(f"file_permission {self.file_permission!r} is not octal") from e
        if not 0 <= mode <= 0o777:
            raise ConfigurationError(f"file_permission {self.file_permission!r} out of range")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "ProviderSettings":
        """Load settings from JUNOS_* environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name, env_name in _ENV_NAMES.items():
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            values[name] = _convert(name, raw, env_name)
        settings = cls(**values)
        settings.validate()
        return settings

    @classmethod
    def from_yaml(cls, path: str) -> "ProviderSettings":
        """Load settings from a YAML file.

        ```yaml
        defaults:
          username: netconf
          sleep_short_ms: 100
        device:
          host: 192.0.2.1
          password: secret
        ```
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        values = dict(data.get("defaults") or {})
        values.update(data.get("device") or {})
        unknown = set(values) - {f.name for f in fields(cls)}
        if unknown:
            raise ConfigurationError(f"unknown settings in {path}: {', '.join(sorted(unknown))}")
        settings = cls(**{k: _convert(k, v, k) for k, v in values.items()})
        settings.validate()
        logger.info(f"Loaded settings for {settings.host or 'set file mode'} from {path}")
        return settings

    def to_dict(self) -> dict[str, Any]:
        """Settings without credentials, for logs."""
        hidden = {"password", "key_pem", "key_pass"}
        return {
            f.name: ("***" if f.name in hidden and getattr(self, f.name) else getattr(self, f.name))
            for f in fields(self)
        }


_INT_FIELDS = {
    "port",
    "sleep_short_ms",
    "sleep_closed_s",
    "ssh_timeout_s",
    "ssh_retry",
    "commit_confirmed",
    "commit_confirmed_wait_percent",
}
_BOOL_FIELDS = {"no_decode_secrets", "fake_update_also", "fake_delete_also"}


def _convert(name: str, raw: Any, source: str) -> Any:
    if name in _INT_FIELDS:
        if isinstance(raw, int):
            return raw
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"converting value of {source} ({raw!r}) to integer") from e
    if name in _BOOL_FIELDS:
        if isinstance(raw, bool):
            return raw
        return str(raw).lower() == "true"
    if name == "file_permission":
        return str(raw)
    return raw


def default_settings_path() -> Optional[Path]:
    """First settings file found in the usual places."""
    search_paths = [
        Path.cwd() / "configs" / "junos.yaml",
        Path.cwd() / "junos.yaml",
        Path.home() / ".config" / "junos-lifecycle" / "junos.yaml",
        Path("/etc/junos-lifecycle/junos.yaml"),
    ]
    for path in search_paths:
        if path.exists():
            return path
    return None


def load_settings(path: Optional[str] = None) -> ProviderSettings:
    """Settings from an explicit or discovered YAML file, else the environment."""
    if path is None:
        found = default_settings_path()
        if found is None:
            return ProviderSettings.from_env()
        path = str(found)
    return ProviderSettings.from_yaml(path)
