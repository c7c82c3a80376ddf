"""Parse device configuration dumps back into configuration objects.

Dumps are the text of ``show configuration <root> | display set relative``.
Each line is matched against the object's keyword table, longest keyword
first. Lines naming a nested block are routed to the block with the same
identifier, so attributes of one block need not be contiguous in the dump.
"""
import logging
from typing import Any, Callable, Optional, TypeVar

from ..errors import DecodeError, ParseError
from .schema import ConfigBlock, ConfigObject, FieldSpec, Kind, schema_of
from .statement import SET_PREFIX, cut_prefix, dump_lines, first_element, unquote

logger = logging.getLogger(__name__)

SecretDecoder = Callable[[str], str]
O = TypeVar("O", bound=ConfigObject)
B = TypeVar("B", bound=ConfigBlock)


def find_block(items: list[B], identity: tuple[str, ...]) -> Optional[B]:
    """Return the block with the given identifier, if already started."""
    for item in items:
        if item.identity() == identity:
            return item
    return None


def get_or_append_block(items: list[B], identity: tuple[str, ...], block_type: type[B]) -> B:
    """Return the block with the given identifier, starting a new one if needed."""
    block = find_block(items, identity)
    if block is None:
        names = schema_of(block_type).identifiers
        block = block_type(**dict(zip(names, identity)))
        items.append(block)
    return block


def parse(
    dump: str,
    object_type: type[O],
    identity: tuple[str, ...] = (),
    decoder: Optional[SecretDecoder] = None,
) -> O:
    """Parse a relative ``display set`` dump into a new object.

    Args:
        dump: Device reply text, optionally wrapped by output markers
        object_type: ConfigObject subclass to build
        identity: Values of the object's identifier fields
        decoder: Applied to secret fields; None keeps the raw text

    Raises:
        ParseError: On a malformed numeric field
        DecodeError: When the decoder rejects a secret
    """
    names = schema_of(object_type).identifiers
    obj = object_type(**dict(zip(names, identity)))
    for line in dump_lines(dump):
        matched, remainder = cut_prefix(line, SET_PREFIX)
        if not matched:
            continue
        parse_line(obj, remainder, decoder)
    return obj


def parse_line(block: ConfigBlock, line: str, decoder: Optional[SecretDecoder] = None, path: str = "") -> bool:
    """Apply one relative configuration line to a block.

    Returns:
        False when no keyword of the block matches the line
    """
    for spec in schema_of(type(block)).matchers:
        if spec.kind == Kind.FLAG:
            if line == spec.keyword:
                setattr(block, spec.name, True)
                _set_implied(block, spec)
                return True
            continue

        if spec.kind == Kind.BLOCK and line == spec.keyword:
            _ensure_container(block, spec)
            return True

        matched, remainder = cut_prefix(line, spec.keyword + " ")
        if not matched:
            continue

        field_path = f"{path}{spec.name}"
        if spec.kind == Kind.BLOCK:
            child = _ensure_container(block, spec)
            return parse_line(child, remainder, decoder, f"{field_path}.")
        if spec.kind == Kind.BLOCKS:
            return _parse_block_line(block, spec, remainder, decoder, field_path)

        _assign(block, spec, remainder, decoder, field_path)
        return True

    logger.debug(f"Unhandled line for {type(block).__name__}: {line!r}")
    return False


def _ensure_container(block: ConfigBlock, spec: FieldSpec) -> ConfigBlock:
    child = getattr(block, spec.name)
    if child is None:
        child = spec.block_type()
        setattr(block, spec.name, child)
    return child


def _parse_block_line(
    block: ConfigBlock, spec: FieldSpec, line: str, decoder: Optional[SecretDecoder], path: str
) -> bool:
    identity = []
    remainder = line
    for _ in schema_of(spec.block_type).identifiers:
        element, remainder = first_element(remainder)
        identity.append(unquote(element))
    child = get_or_append_block(getattr(block, spec.name), tuple(identity), spec.block_type)
    if not remainder:
        return True
    return parse_line(child, remainder, decoder, f"{path}[{' '.join(identity)}].")


def _assign(
    block: ConfigBlock, spec: FieldSpec, raw: str, decoder: Optional[SecretDecoder], path: str
) -> None:
    value: Any = unquote(raw)
    if spec.kind == Kind.INTEGER or (spec.kind == Kind.COMPUTED and spec.numeric):
        value = _to_int(value, path)
    elif spec.kind == Kind.SECRET and decoder is not None:
        try:
            value = decoder(value)
        except DecodeError as e:
            raise DecodeError(f"decoding {path}: {e.message}", path=path) from e

    if spec.kind == Kind.LIST:
        getattr(block, spec.name).append(value)
    elif spec.kind == Kind.SET:
        getattr(block, spec.name).add(value)
    else:
        setattr(block, spec.name, value)
    _set_implied(block, spec)


def _set_implied(block: ConfigBlock, spec: FieldSpec) -> None:
    if spec.implies:
        setattr(block, spec.implies, True)


def _to_int(value: str, path: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ParseError(f"converting value {value!r} of {path} to integer: {e}", path=path) from e
