"""Application and application-set objects (``applications`` hierarchy)."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..codec.schema import (
    ConfigBlock,
    ConfigObject,
    blocks,
    flag,
    identifier,
    leaf,
    leaf_list,
    number,
)
from ..errors import IssueKind, ValidationIssue


def _inactivity_issues(block, path: str) -> list[ValidationIssue]:
    if block.inactivity_timeout is not None and block.inactivity_timeout_never:
        return [ValidationIssue(
            IssueKind.CONFLICT,
            path,
            "only one of inactivity_timeout or inactivity_timeout_never can be set",
        )]
    return []


@dataclass
class ApplicationTerm(ConfigBlock):
    """Term of a multi-term application."""
    keyword: ClassVar[str] = "term"

    name: str = identifier()
    alg: Optional[str] = leaf("alg")
    destination_port: Optional[str] = leaf("destination-port", quoted=True)
    icmp_code: Optional[str] = leaf("icmp-code")
    icmp_type: Optional[str] = leaf("icmp-type")
    icmp6_code: Optional[str] = leaf("icmp6-code")
    icmp6_type: Optional[str] = leaf("icmp6-type")
    inactivity_timeout: Optional[int] = number("inactivity-timeout")
    inactivity_timeout_never: bool = flag("inactivity-timeout never")
    protocol: Optional[str] = leaf("protocol")
    rpc_program_number: Optional[str] = leaf("rpc-program-number")
    source_port: Optional[str] = leaf("source-port", quoted=True)
    uuid: Optional[str] = leaf("uuid")

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        issues = _inactivity_issues(self, path)
        if not self.protocol:
            issues.append(ValidationIssue(
                IssueKind.MISSING, f"{path}.protocol" if path else "protocol", "protocol of term is required"
            ))
        return issues


@dataclass
class Application(ConfigObject):
    """``applications application <name>``."""
    keyword: ClassVar[str] = "application"
    root: ClassVar[tuple[str, ...]] = ("applications", "application")
    resource_type: ClassVar[str] = "junos_application"

    name: str = identifier()
    application_protocol: Optional[str] = leaf("application-protocol")
    description: Optional[str] = leaf("description", quoted=True)
    destination_port: Optional[str] = leaf("destination-port", quoted=True)
    do_not_translate_a_query_to_aaaa_query: bool = flag("do-not-translate-A-query-to-AAAA-query")
    do_not_translate_aaaa_query_to_a_query: bool = flag("do-not-translate-AAAA-query-to-A-query")
    ether_type: Optional[str] = leaf("ether-type")
    icmp_code: Optional[str] = leaf("icmp-code")
    icmp_type: Optional[str] = leaf("icmp-type")
    icmp6_code: Optional[str] = leaf("icmp6-code")
    icmp6_type: Optional[str] = leaf("icmp6-type")
    inactivity_timeout: Optional[int] = number("inactivity-timeout")
    inactivity_timeout_never: bool = flag("inactivity-timeout never")
    protocol: Optional[str] = leaf("protocol")
    rpc_program_number: Optional[str] = leaf("rpc-program-number")
    source_port: Optional[str] = leaf("source-port", quoted=True)
    term: list[ApplicationTerm] = blocks("term", ApplicationTerm)
    uuid: Optional[str] = leaf("uuid")

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        issues = _inactivity_issues(self, path)
        if self.term and self.protocol:
            issues.append(ValidationIssue(
                IssueKind.CONFLICT, path or self.name, "protocol and term cannot be set together"
            ))
        return issues


@dataclass
class ApplicationSet(ConfigObject):
    """``applications application-set <name>``."""
    keyword: ClassVar[str] = "application-set"
    root: ClassVar[tuple[str, ...]] = ("applications", "application-set")
    resource_type: ClassVar[str] = "junos_application_set"

    name: str = identifier()
    applications: list[str] = leaf_list("application")
    application_set: list[str] = leaf_list("application-set")
    description: Optional[str] = leaf("description", quoted=True)
