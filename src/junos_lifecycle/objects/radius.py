"""RADIUS servers (``system radius-server <address>``)."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..codec.schema import ConfigObject, identifier, leaf, number
from ..codec.schema import secret as secret_leaf
from ..errors import IssueKind, ValidationIssue


@dataclass
class RadiusServer(ConfigObject):
    root: ClassVar[tuple[str, ...]] = ("system", "radius-server")
    resource_type: ClassVar[str] = "junos_system_radius_server"

    address: str = identifier()
    secret: Optional[str] = secret_leaf("secret")
    accounting_port: Optional[int] = number("accounting-port")
    accounting_retry: Optional[int] = number("accounting-retry")
    accounting_timeout: Optional[int] = number("accounting-timeout")
    dynamic_request_port: Optional[int] = number("dynamic-request-port")
    max_outstanding_requests: Optional[int] = number("max-outstanding-requests")
    port: Optional[int] = number("port")
    preauthentication_port: Optional[int] = number("preauthentication-port")
    preauthentication_secret: Optional[str] = secret_leaf("preauthentication-secret")
    retry: Optional[int] = number("retry")
    routing_instance: Optional[str] = leaf("routing-instance")
    source_address: Optional[str] = leaf("source-address")
    timeout: Optional[int] = number("timeout")

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        if not self.secret:
            return [ValidationIssue(IssueKind.MISSING, "secret", "secret must be set")]
        return []
