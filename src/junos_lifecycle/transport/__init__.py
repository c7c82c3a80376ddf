"""Device transports."""
from .base import DeviceTransport, SystemInformation
from .netconf import NetconfTransport
from .setfile import SetFileTransport

__all__ = [
    "DeviceTransport",
    "SystemInformation",
    "NetconfTransport",
    "SetFileTransport",
]
