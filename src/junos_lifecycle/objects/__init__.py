"""Configuration object types."""
from .application import Application, ApplicationSet, ApplicationTerm
from .applications import Applications
from .radius import RadiusServer
from .snmp import Snmp, SnmpHealthMonitor

__all__ = [
    "Application",
    "ApplicationSet",
    "ApplicationTerm",
    "Applications",
    "RadiusServer",
    "Snmp",
    "SnmpHealthMonitor",
]
