"""Global SNMP options (``snmp``).

SNMP communities, views and v3 users live under the same root but are
managed by other object types, so this object only owns the options below
and is removed option by option.
"""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..codec.schema import (
    ConfigBlock,
    ConfigObject,
    container,
    flag,
    leaf,
    leaf_set,
    local,
    number,
)
from ..errors import IssueKind, ValidationIssue


def _requires(path: str, other: str) -> ValidationIssue:
    name = path.rsplit(".", 1)[-1]
    return ValidationIssue(IssueKind.MISSING, path, f"{name} requires {other} to be set")


@dataclass
class SnmpHealthMonitor(ConfigBlock):
    keyword: ClassVar[str] = "health-monitor"

    falling_threshold: Optional[int] = number("falling-threshold")
    idp: bool = flag("idp")
    idp_falling_threshold: Optional[int] = number("idp falling-threshold", implies="idp")
    idp_interval: Optional[int] = number("idp interval", implies="idp")
    idp_rising_threshold: Optional[int] = number("idp rising-threshold", implies="idp")
    interval: Optional[int] = number("interval")
    rising_threshold: Optional[int] = number("rising-threshold")

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        prefix = f"{path}." if path else ""
        if self.idp:
            return []
        return [
            _requires(f"{prefix}{name}", "idp")
            for name in ("idp_falling_threshold", "idp_interval", "idp_rising_threshold")
            if getattr(self, name) is not None
        ]


@dataclass
class Snmp(ConfigObject):
    root: ClassVar[tuple[str, ...]] = ("snmp",)
    resource_type: ClassVar[str] = "junos_snmp"
    retract_options: ClassVar[bool] = True

    clean_on_destroy: bool = local(False)
    arp: bool = flag("arp")
    arp_host_name_resolution: bool = flag("arp host-name-resolution", implies="arp")
    contact: Optional[str] = leaf("contact", quoted=True)
    description: Optional[str] = leaf("description", quoted=True)
    engine_id: Optional[str] = leaf("engine-id")
    filter_duplicates: bool = flag("filter-duplicates")
    filter_interfaces: set[str] = leaf_set("filter-interfaces interfaces", quoted=True)
    filter_internal_interfaces: bool = flag("filter-interfaces all-internal-interfaces")
    if_count_with_filter_interfaces: bool = flag("if-count-with-filter-interfaces")
    interface: set[str] = leaf_set("interface")
    location: Optional[str] = leaf("location", quoted=True)
    routing_instance_access: bool = flag("routing-instance-access")
    routing_instance_access_list: set[str] = leaf_set(
        "routing-instance-access access-list", quoted=True, implies="routing_instance_access"
    )
    health_monitor: Optional[SnmpHealthMonitor] = container("health-monitor", SnmpHealthMonitor)

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        issues = []
        if self.arp_host_name_resolution and not self.arp:
            issues.append(_requires("arp_host_name_resolution", "arp"))
        if self.routing_instance_access_list and not self.routing_instance_access:
            issues.append(_requires("routing_instance_access_list", "routing_instance_access"))
        return issues
