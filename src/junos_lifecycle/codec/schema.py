"""Declarative field tables for configuration objects and nested blocks.

Object types are dataclasses whose fields are declared with the helpers in
this module (``leaf``, ``number``, ``flag``, ``blocks``, ...). The declaration
order is the render order. ``schema_of`` resolves the table once per type.

Example:

    @dataclass
    class Term(ConfigBlock):
        keyword: ClassVar[str] = "term"

        name: str = identifier()
        protocol: Optional[str] = leaf("protocol")
        destination_port: Optional[str] = leaf("destination-port", quoted=True)
"""
import dataclasses
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, Optional

from ..errors import ValidationIssue
from .statement import format_identifier

SPEC_KEY = "junos"

# Joins identifier values in object IDs
ID_SEPARATOR = "_-_"


class Kind(str, Enum):
    """How a field maps to configuration lines."""
    IDENTIFIER = "identifier"
    STRING = "string"
    INTEGER = "integer"
    FLAG = "flag"
    LIST = "list"
    SET = "set"
    SECRET = "secret"
    COMPUTED = "computed"
    LOCAL = "local"
    BLOCKS = "blocks"
    BLOCK = "block"


@dataclass(frozen=True)
class FieldSpec:
    """Mapping of one dataclass field to a configuration keyword."""
    kind: Kind
    keyword: str = ""
    quoted: bool = False
    numeric: bool = False
    block_type: Optional[type] = None
    # Flag set as well whenever this field is read from the device
    implies: str = ""
    name: str = ""

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(self.keyword.split())

    @property
    def is_option(self) -> bool:
        """True for fields rendered to and parsed from the device."""
        return self.kind not in (Kind.IDENTIFIER, Kind.COMPUTED, Kind.LOCAL)


def _spec(kind: Kind, keyword: str = "", **kwargs) -> dict:
    return {SPEC_KEY: FieldSpec(kind=kind, keyword=keyword, **kwargs)}


def identifier() -> Any:
    return dataclasses.field(default="", metadata=_spec(Kind.IDENTIFIER))


def leaf(keyword: str, quoted: bool = False) -> Any:
    return dataclasses.field(default=None, metadata=_spec(Kind.STRING, keyword, quoted=quoted))


def number(keyword: str, implies: str = "") -> Any:
    return dataclasses.field(default=None, metadata=_spec(Kind.INTEGER, keyword, implies=implies))


def flag(keyword: str, implies: str = "") -> Any:
    """Presence keyword.

    ``implies`` names a parent flag the device folds into this line, as in
    ``arp host-name-resolution`` standing for ``arp`` too.
    """
    return dataclasses.field(default=False, metadata=_spec(Kind.FLAG, keyword, implies=implies))


def leaf_list(keyword: str, quoted: bool = False) -> Any:
    """Ordered collection, one line per element in list order."""
    return dataclasses.field(default_factory=list, metadata=_spec(Kind.LIST, keyword, quoted=quoted))


def leaf_set(keyword: str, quoted: bool = False, implies: str = "") -> Any:
    """Unordered collection, rendered in sorted order."""
    return dataclasses.field(
        default_factory=set, metadata=_spec(Kind.SET, keyword, quoted=quoted, implies=implies)
    )


def secret(keyword: str) -> Any:
    return dataclasses.field(default=None, metadata=_spec(Kind.SECRET, keyword, quoted=True))


def computed(keyword: str, numeric: bool = False) -> Any:
    """Value assigned by the device; parsed but never rendered."""
    return dataclasses.field(
        default=None, compare=False, metadata=_spec(Kind.COMPUTED, keyword, numeric=numeric)
    )


def local(default: Any = None) -> Any:
    """Host-side setting that never reaches the device."""
    return dataclasses.field(default=default, metadata=_spec(Kind.LOCAL))


def blocks(keyword: str, block_type: type) -> Any:
    """List of identifier-keyed nested blocks."""
    return dataclasses.field(
        default_factory=list, metadata=_spec(Kind.BLOCKS, keyword, block_type=block_type)
    )


def container(keyword: str, block_type: type) -> Any:
    """Single optional nested block without identifier."""
    return dataclasses.field(
        default=None, metadata=_spec(Kind.BLOCK, keyword, block_type=block_type)
    )


def is_absent(value: Any) -> bool:
    """True when a field value produces no configuration line."""
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, set, frozenset, tuple)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class ObjectSchema:
    """Resolved field table of one object or block type."""
    fields: tuple[FieldSpec, ...]
    identifiers: tuple[str, ...]
    matchers: tuple[FieldSpec, ...]

    @property
    def options(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.is_option)

    def is_empty(self, block: Any) -> bool:
        return all(is_absent(getattr(block, f.name)) for f in self.options)


@lru_cache(maxsize=None)
def schema_of(block_type: type) -> ObjectSchema:
    """Resolve the field table of a dataclass object type."""
    specs = []
    for fld in dataclasses.fields(block_type):
        spec = fld.metadata.get(SPEC_KEY)
        if spec is None:
            continue
        specs.append(dataclasses.replace(spec, name=fld.name))

    identifiers = tuple(s.name for s in specs if s.kind == Kind.IDENTIFIER)
    # Longest keyword first so "inactivity-timeout never" wins over
    # "inactivity-timeout <n>"
    matchers = sorted(
        (s for s in specs if s.kind not in (Kind.IDENTIFIER, Kind.LOCAL)),
        key=lambda s: len(s.keyword),
        reverse=True,
    )
    return ObjectSchema(fields=tuple(specs), identifiers=identifiers, matchers=tuple(matchers))


class ConfigBlock:
    """Base class for nested blocks. Subclasses are dataclasses."""

    keyword: ClassVar[str] = ""

    def identity(self) -> tuple[str, ...]:
        return tuple(getattr(self, name) for name in schema_of(type(self)).identifiers)

    def is_empty(self) -> bool:
        """True when nothing beyond the identifier is set."""
        return schema_of(type(self)).is_empty(self)

    def extra_issues(self, path: str) -> list[ValidationIssue]:
        """Type-specific validation, called before render."""
        return []


class ConfigObject(ConfigBlock):
    """Root entity for one manageable unit of device configuration.

    ``root`` is the configuration path above the identifier fields, for
    example ``("applications", "application")``. Objects without identifier
    fields represent global device state.
    """

    root: ClassVar[tuple[str, ...]] = ()
    resource_type: ClassVar[str] = ""
    # Retract absent options with targeted deletes on update
    retract_options: ClassVar[bool] = False
    # Only valid on SRX security platforms
    requires_security_platform: ClassVar[bool] = False

    def root_path(self) -> tuple[str, ...]:
        return self.root + tuple(format_identifier(v) for v in self.identity())

    def id(self) -> str:
        """Identifier string reported to the host runtime."""
        identity = self.identity()
        if not identity:
            return self.resource_type
        return ID_SEPARATOR.join(identity)

    @classmethod
    def is_global(cls) -> bool:
        return not schema_of(cls).identifiers
