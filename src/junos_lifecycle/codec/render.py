"""Render configuration objects into ordered statements.

Validation runs over the whole object graph before the first statement is
produced, so a render either returns every statement or raises.
"""
import logging
from typing import Iterator

from ..errors import IssueKind, ValidationError, ValidationIssue
from .schema import ConfigBlock, ConfigObject, FieldSpec, Kind, is_absent, schema_of
from .statement import Statement, delete_statement, format_identifier, quote, set_statement

logger = logging.getLogger(__name__)


def validate(obj: ConfigObject) -> list[ValidationIssue]:
    """Collect every validation issue of an object and its nested blocks."""
    issues: list[ValidationIssue] = []
    schema = schema_of(type(obj))

    for name in schema.identifiers:
        if not getattr(obj, name):
            issues.append(ValidationIssue(IssueKind.MISSING, name, f"{name} argument is empty"))
    if schema.identifiers and obj.is_empty():
        names = ", ".join(f"`{n}`" for n in schema.identifiers)
        issues.append(ValidationIssue(
            IssueKind.MISSING,
            "",
            f"at least one of arguments need to be set (in addition to {names})",
        ))

    _validate_children(obj, "", issues)
    return issues


def _validate_children(block: ConfigBlock, path: str, issues: list[ValidationIssue]) -> None:
    for spec in schema_of(type(block)).fields:
        value = getattr(block, spec.name)
        if spec.kind == Kind.BLOCKS:
            _validate_block_list(spec, value, f"{path}{spec.name}", issues)
        elif spec.kind == Kind.BLOCK and value is not None:
            child_path = f"{path}{spec.name}"
            if value.is_empty():
                issues.append(ValidationIssue(
                    IssueKind.EMPTY_BLOCK, child_path, f"{spec.keyword} block is empty"
                ))
            _validate_children(value, f"{child_path}.", issues)
    issues.extend(block.extra_issues(path.rstrip(".")))


def _validate_block_list(
    spec: FieldSpec, items: list, path: str, issues: list[ValidationIssue]
) -> None:
    seen: set[tuple[str, ...]] = set()
    for index, item in enumerate(items):
        item_path = f"{path}[{index}]"
        identity = item.identity()
        if not all(identity):
            issues.append(ValidationIssue(
                IssueKind.MISSING, item_path, f"identifier of {spec.keyword} block is empty"
            ))
        elif identity in seen:
            issues.append(ValidationIssue(
                IssueKind.DUPLICATE,
                item_path,
                f"multiple {spec.keyword} blocks with the same identifier {' '.join(identity)!r}",
            ))
        seen.add(identity)
        if item.is_empty():
            issues.append(ValidationIssue(
                IssueKind.EMPTY_BLOCK, item_path, f"{spec.keyword} block {' '.join(identity)!r} is empty"
            ))
        _validate_children(item, f"{item_path}.", issues)


def render(obj: ConfigObject) -> list[Statement]:
    """Render an object into ``set`` statements in declared field order.

    Raises:
        ValidationError: (or a subclass) carrying every issue found
    """
    issues = validate(obj)
    if issues:
        raise ValidationError.from_issues(issues)
    statements = list(_render_block(obj, obj.root_path(), ""))
    logger.debug(f"Rendered {len(statements)} statements for {obj.resource_type} {obj.id()}")
    return statements


def _render_block(block: ConfigBlock, prefix: tuple[str, ...], origin: str) -> Iterator[Statement]:
    for spec in schema_of(type(block)).fields:
        if not spec.is_option:
            continue
        value = getattr(block, spec.name)
        if is_absent(value):
            continue
        path = prefix + spec.tokens
        field_origin = f"{origin}{spec.name}"

        if spec.kind == Kind.FLAG:
            yield set_statement(path, origin=field_origin)
        elif spec.kind == Kind.INTEGER:
            yield set_statement(path, str(value), origin=field_origin)
        elif spec.kind in (Kind.STRING, Kind.SECRET):
            yield set_statement(path, _format(spec, value), origin=field_origin)
        elif spec.kind == Kind.LIST:
            for item in value:
                yield set_statement(path, _format(spec, item), origin=field_origin)
        elif spec.kind == Kind.SET:
            for item in sorted(value):
                yield set_statement(path, _format(spec, item), origin=field_origin)
        elif spec.kind == Kind.BLOCKS:
            for index, item in enumerate(value):
                item_path = path + tuple(format_identifier(v) for v in item.identity())
                yield from _render_block(item, item_path, f"{field_origin}[{index}].")
        elif spec.kind == Kind.BLOCK:
            yield from _render_block(value, path, f"{field_origin}.")


def _format(spec: FieldSpec, value: str) -> str:
    if spec.quoted:
        return quote(value)
    return value


def delete_statements(obj: ConfigObject) -> list[Statement]:
    """Statements removing an object from the device.

    Identified objects are removed with one delete of their root path. Global
    objects only own some options under a shared root, so each owned
    top-level keyword is deleted instead.
    """
    if not obj.is_global():
        return [delete_statement(obj.root_path())]

    statements = []
    seen: set[str] = set()
    for spec in schema_of(type(obj)).options:
        head = spec.tokens[0]
        if head in seen:
            continue
        seen.add(head)
        statements.append(delete_statement(obj.root_path() + (head,), origin=spec.name))
    return statements


def delete_option_statements(obj: ConfigObject) -> list[Statement]:
    """Statements retracting options before the planned object is set again.

    Computed from the planned object only: every option absent from the plan
    is deleted, and so is every collection, since setting a collection adds
    to what the device already holds.
    """
    statements = []
    for spec in schema_of(type(obj)).options:
        value = getattr(obj, spec.name)
        collection = spec.kind in (Kind.LIST, Kind.SET, Kind.BLOCKS, Kind.BLOCK)
        if is_absent(value) or collection:
            statements.append(delete_statement(obj.root_path() + spec.tokens, origin=spec.name))
    return statements
