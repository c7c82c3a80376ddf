"""Junos type-9 reversible secret encoding.

Devices display configured secrets in the ``$9$`` obfuscated form. The scheme
is a keyless substitution: each plaintext byte is split into weighted gaps
between characters of a fixed 65 character alphabet.
"""
import random
import re
from typing import Optional

from ..errors import DecodeError

MAGIC = "$9$"

FAMILY = [
    "QzF3n6/9CAtpu0O",
    "B1IREhcSyrleKvMW8LXx",
    "7N-dVbwsY2g4oaJZGUDj",
    "iHkq.mPf5T",
]
EXTRA = {c: 3 - i for i, fam in enumerate(FAMILY) for c in fam}
NUM_ALPHA = "".join(FAMILY)
ALPHA_NUM = {c: i for i, c in enumerate(NUM_ALPHA)}
ENCODING = [
    [1, 4, 32],
    [1, 16, 32],
    [1, 8, 32],
    [1, 64],
    [1, 32],
    [1, 4, 16, 128],
    [1, 32, 64],
]

_SCHEME = re.compile(r"^\$(\d+)\$")


def _gap(first: str, second: str) -> int:
    return (ALPHA_NUM[second] - ALPHA_NUM[first]) % len(NUM_ALPHA) - 1


def decode_type9(encoded: str) -> str:
    """Decode a ``$9$`` secret.

    Raises:
        DecodeError: If the text is not a well-formed type-9 secret
    """
    if not encoded.startswith(MAGIC):
        raise DecodeError(f"not a type-9 secret: {encoded!r}")
    chars = encoded[len(MAGIC):]
    unknown = [c for c in chars if c not in ALPHA_NUM]
    if unknown:
        raise DecodeError(f"invalid character {unknown[0]!r} in type-9 secret")
    if not chars:
        raise DecodeError("empty type-9 secret")

    first = chars[0]
    pos = 1 + EXTRA[first]
    if pos > len(chars):
        raise DecodeError("type-9 secret ran out of characters")
    prev = first
    decoded = []
    while pos < len(chars):
        weights = ENCODING[len(decoded) % len(ENCODING)]
        nibble = chars[pos:pos + len(weights)]
        if len(nibble) < len(weights):
            raise DecodeError("type-9 secret ran out of characters")
        pos += len(weights)
        total = 0
        for char, weight in zip(nibble, weights):
            total += _gap(prev, char) * weight
            prev = char
        decoded.append(chr(total % 256))
    return "".join(decoded)


def encode_type9(plain: str, salt: Optional[str] = None, padding: Optional[str] = None) -> str:
    """Encode a plaintext secret in the ``$9$`` form.

    Args:
        plain: Secret to encode
        salt: First alphabet character, random when omitted
        padding: Filler characters following the salt, random when omitted
    """
    if salt is None:
        salt = random.choice(NUM_ALPHA)
    if padding is None:
        padding = "".join(random.choice(NUM_ALPHA) for _ in range(EXTRA[salt]))
    if len(padding) != EXTRA[salt]:
        raise ValueError(f"salt {salt!r} needs {EXTRA[salt]} padding characters")

    encoded = [MAGIC, salt, padding]
    prev = salt
    for index, char in enumerate(plain):
        value = ord(char)
        gaps = []
        for weight in reversed(ENCODING[index % len(ENCODING)]):
            gaps.insert(0, value // weight)
            value %= weight
        for gap in gaps:
            prev = NUM_ALPHA[(gap + ALPHA_NUM[prev] + 1) % len(NUM_ALPHA)]
            encoded.append(prev)
    return "".join(encoded)


def decode_secret(value: str) -> str:
    """Default secret decoder used when reading device dumps.

    ``$9$`` values are decoded and plain values are returned unchanged.
    Other ``$N$`` schemes cannot be reversed locally and raise DecodeError.
    """
    match = _SCHEME.match(value)
    if match is None:
        return value
    if match.group(1) != "9":
        raise DecodeError(f"unsupported secret scheme ${match.group(1)}$")
    return decode_type9(value)
