"""Line codec: render objects to statements and parse device dumps back."""
from .statement import (
    Statement,
    Verb,
    START_MARKER,
    END_MARKER,
    set_statement,
    delete_statement,
    cut_prefix,
    first_element,
    dump_lines,
    is_empty_dump,
    quote,
    unquote,
)
from .schema import (
    ConfigBlock,
    ConfigObject,
    FieldSpec,
    ID_SEPARATOR,
    Kind,
    schema_of,
    identifier,
    leaf,
    number,
    flag,
    leaf_list,
    leaf_set,
    secret,
    computed,
    local,
    blocks,
    container,
)
from .render import render, validate, delete_statements, delete_option_statements
from .parse import parse, parse_line, find_block, get_or_append_block, SecretDecoder
from .secrets import decode_secret, decode_type9, encode_type9

__all__ = [
    # Statements
    "Statement",
    "Verb",
    "START_MARKER",
    "END_MARKER",
    "set_statement",
    "delete_statement",
    "cut_prefix",
    "first_element",
    "dump_lines",
    "is_empty_dump",
    "quote",
    "unquote",
    # Schema
    "ConfigBlock",
    "ConfigObject",
    "FieldSpec",
    "ID_SEPARATOR",
    "Kind",
    "schema_of",
    "identifier",
    "leaf",
    "number",
    "flag",
    "leaf_list",
    "leaf_set",
    "secret",
    "computed",
    "local",
    "blocks",
    "container",
    # Render / parse
    "render",
    "validate",
    "delete_statements",
    "delete_option_statements",
    "parse",
    "parse_line",
    "find_block",
    "get_or_append_block",
    "SecretDecoder",
    # Secrets
    "decode_secret",
    "decode_type9",
    "encode_type9",
]
