"""The whole ``applications`` hierarchy managed as one global object."""
from dataclasses import dataclass
from typing import ClassVar

from ..codec.schema import ConfigObject, blocks
from ..errors import IssueKind, ValidationIssue
from .application import Application, ApplicationSet


@dataclass
class Applications(ConfigObject):
    root: ClassVar[tuple[str, ...]] = ("applications",)
    resource_type: ClassVar[str] = "junos_applications"

    application: list[Application] = blocks("application", Application)
    application_set: list[ApplicationSet] = blocks("application-set", ApplicationSet)

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        names = {app.name for app in self.application}
        return [
            ValidationIssue(
                IssueKind.CONFLICT,
                f"application_set[{index}]",
                f"application and application_set blocks with the same name {app_set.name!r}",
            )
            for index, app_set in enumerate(self.application_set)
            if app_set.name in names
        ]
