"""Device client: builds sessions for one device from provider settings.

A client is passed explicitly to every controller call; nothing is shared
through module globals.
"""
import logging
from typing import Callable, Optional

from .codec.parse import SecretDecoder
from .codec.secrets import decode_secret
from .config.settings import ProviderSettings
from .session import Session
from .transport.base import DeviceTransport
from .transport.netconf import NetconfTransport
from .transport.setfile import SetFileTransport
from .utils.audit_log import setup_audit_logging

logger = logging.getLogger(__name__)

TransportFactory = Callable[[ProviderSettings], DeviceTransport]


class DeviceClient:
    """Session factory for one device."""

    def __init__(
        self,
        settings: ProviderSettings,
        transport_factory: Optional[TransportFactory] = None,
        decoder: Optional[SecretDecoder] = decode_secret,
    ):
        settings.validate()
        self.settings = settings
        self._transport_factory = transport_factory or NetconfTransport
        self._decoder = decoder
        self.audit_file: Optional[str] = None
        if settings.audit_log_path:
            self.audit_file = setup_audit_logging(settings.audit_log_path, settings.file_mode)
            logger.info(f"Transaction audit log: {self.audit_file}")

    @property
    def target(self) -> str:
        return self.settings.host

    @property
    def decoder(self) -> Optional[SecretDecoder]:
        """Secret decoder for reads, None when secrets stay encoded."""
        if self.settings.no_decode_secrets:
            return None
        return self._decoder

    @property
    def fake_create(self) -> bool:
        return bool(self.settings.fake_create_setfile)

    @property
    def fake_update(self) -> bool:
        return self.fake_create and self.settings.fake_update_also

    @property
    def fake_delete(self) -> bool:
        return self.fake_create and self.settings.fake_delete_also

    def new_session(self) -> Session:
        """Transactional session on the device."""
        return Session(
            self._transport_factory(self.settings),
            sleep_short_ms=self.settings.sleep_short_ms,
            commit_confirmed=self.settings.commit_confirmed,
            commit_confirmed_wait_s=self.settings.commit_confirmed_wait_s,
        )

    def new_fake_session(self) -> Session:
        """Non-transactional session appending to the fake set file."""
        return Session(SetFileTransport(self.settings.fake_create_setfile, self.settings.file_mode))
