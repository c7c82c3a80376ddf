"""Resource type registry.

Optional behaviors of an object type (existence checks, option retraction,
clean-on-destroy, computed read) are resolved once here into a capability
set, so the controller never inspects object types at run time.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from .codec.schema import ConfigObject, Kind, schema_of
from .errors import CommandError, DuplicateConfigError, NotFoundError, PostCheckError, PreCheckError
from .objects import Application, Applications, ApplicationSet, RadiusServer, Snmp
from .prober import object_exists
from .session import Session

logger = logging.getLogger(__name__)

CheckHook = Callable[[Session, ConfigObject], Awaitable[None]]


class Capability(str, Enum):
    PRE_CHECK = "pre_check"
    POST_CHECK = "post_check"
    DELETE_OPTIONS = "delete_options"
    CLEAN_ON_DESTROY = "clean_on_destroy"
    COMPUTED_READ = "computed_read"
    SECURITY_PLATFORM = "security_platform"


async def check_absent(session: Session, obj: ConfigObject) -> None:
    """Reject creating an object that already exists on the device."""
    try:
        found = await object_exists(obj, session)
    except CommandError as e:
        raise PreCheckError(f"checking {obj.resource_type} {obj.id()!r}: {e.message}") from e
    if found:
        raise DuplicateConfigError(f"{obj.resource_type} {obj.id()!r} already exists")


async def check_present(session: Session, obj: ConfigObject) -> None:
    """Reject a commit that did not produce the object."""
    try:
        found = await object_exists(obj, session)
    except CommandError as e:
        raise PostCheckError(f"checking {obj.resource_type} {obj.id()!r}: {e.message}") from e
    if not found:
        raise NotFoundError(
            f"{obj.resource_type} {obj.id()!r} does not exist after commit => check your config"
        )


@dataclass(frozen=True)
class ResourceType:
    """An object type with its resolved capabilities and hooks."""
    name: str
    object_type: type
    capabilities: frozenset = field(default_factory=frozenset)
    pre_check: Optional[CheckHook] = None
    post_check: Optional[CheckHook] = None

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities


_DEFAULT = object()


class Registry:
    """Resource types by name."""

    def __init__(self):
        self._types: dict[str, ResourceType] = {}

    def register(self, object_type: type, pre_check=_DEFAULT, post_check=_DEFAULT) -> ResourceType:
        """Register an object type.

        Identified object types get existence checks by default; pass None
        to disable a check or a coroutine function to replace it. Global
        object types have no default checks.
        """
        identified = not object_type.is_global()
        if pre_check is _DEFAULT:
            pre_check = check_absent if identified else None
        if post_check is _DEFAULT:
            post_check = check_present if identified else None

        specs = schema_of(object_type).fields
        capabilities = set()
        if pre_check is not None:
            capabilities.add(Capability.PRE_CHECK)
        if post_check is not None:
            capabilities.add(Capability.POST_CHECK)
        if object_type.retract_options:
            capabilities.add(Capability.DELETE_OPTIONS)
        if any(s.kind == Kind.LOCAL and s.name == "clean_on_destroy" for s in specs):
            capabilities.add(Capability.CLEAN_ON_DESTROY)
        if any(s.kind == Kind.COMPUTED for s in specs):
            capabilities.add(Capability.COMPUTED_READ)
        if object_type.requires_security_platform:
            capabilities.add(Capability.SECURITY_PLATFORM)

        resource_type = ResourceType(
            name=object_type.resource_type,
            object_type=object_type,
            capabilities=frozenset(capabilities),
            pre_check=pre_check,
            post_check=post_check,
        )
        self._types[resource_type.name] = resource_type
        logger.debug(
            f"Registered {resource_type.name}: {sorted(c.value for c in resource_type.capabilities)}"
        )
        return resource_type

    def get(self, name: str) -> ResourceType:
        if name not in self._types:
            raise KeyError(f"Unknown resource type: {name}")
        return self._types[name]

    def names(self) -> list[str]:
        return list(self._types)


def default_registry() -> Registry:
    """Registry holding every built-in object type."""
    registry = Registry()
    for object_type in (Application, ApplicationSet, Applications, RadiusServer, Snmp):
        registry.register(object_type)
    return registry
