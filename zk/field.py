"""
BN254 scalar field element codec.

Values travel between snarkjs, Python and the EVM as big-integer strings.
snarkjs writes decimal strings in proof/public JSON files and 0x-prefixed hex
in its Solidity calldata export; contracts take uint256 words.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Union

from .errors import FormatError

# BN254 scalar field prime
PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

UINT256_MAX = 2 ** 256 - 1

_DECIMAL_RE = re.compile(r'^[+-]?[0-9]+$')
_HEX_RE = re.compile(r'^0[xX][0-9a-fA-F]+$')


@dataclass(frozen=True, order=True)
class FieldElement:
    """Integer in [0, PRIME). Construction always reduces."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise FormatError(
                f"Field element requires an int, got {type(self.value).__name__}")
        object.__setattr__(self, 'value', self.value % PRIME)

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __add__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement(self.value + _as_int(other))

    def __mul__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement(self.value * _as_int(other))


def _as_int(value: Union['FieldElement', int]) -> int:
    if isinstance(value, FieldElement):
        return value.value
    return value


def reduce(value: Union[int, FieldElement]) -> FieldElement:
    """Modular reduction into [0, PRIME)"""
    if isinstance(value, FieldElement):
        return value
    return FieldElement(value)


def equals(a: Union[int, FieldElement], b: Union[int, FieldElement]) -> bool:
    """Equality in the field; both operands are reduced first"""
    return reduce(a).value == reduce(b).value


def to_decimal_string(element: Union[int, FieldElement]) -> str:
    return str(reduce(element).value)


def from_decimal_string(text: str) -> FieldElement:
    """Parse a base-10 integer string"""
    if not isinstance(text, str):
        raise FormatError(f"Expected a string, got {type(text).__name__}")
    stripped = text.strip()
    if not _DECIMAL_RE.match(stripped):
        raise FormatError(f"Not a decimal integer: {text!r}")
    return FieldElement(int(stripped, 10))


def parse_integer_literal(text: str) -> FieldElement:
    """Parse a decimal or 0x-prefixed hexadecimal integer string"""
    if not isinstance(text, str):
        raise FormatError(f"Expected a string, got {type(text).__name__}")
    stripped = text.strip()
    if _HEX_RE.match(stripped):
        return FieldElement(int(stripped, 16))
    return from_decimal_string(stripped)


def to_field_element(value: Any) -> FieldElement:
    """Coerce a JSON leaf (int, numeric string or FieldElement)"""
    if isinstance(value, FieldElement):
        return value
    if isinstance(value, bool):
        raise FormatError("Booleans are not field elements")
    if isinstance(value, int):
        return FieldElement(value)
    if isinstance(value, str):
        return parse_integer_literal(value)
    raise FormatError(f"Cannot convert {type(value).__name__} to a field element")


def to_field_elements(values: Iterable[Any]) -> List[FieldElement]:
    return [to_field_element(v) for v in values]


def to_uint256(value: Any) -> int:
    """Integer value for an ABI uint256 slot, without field reduction"""
    if isinstance(value, FieldElement):
        return value.value
    if isinstance(value, bool):
        raise FormatError("Booleans are not uint256 values")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if _HEX_RE.match(stripped):
            number = int(stripped, 16)
        elif _DECIMAL_RE.match(stripped):
            number = int(stripped, 10)
        else:
            raise FormatError(f"Not an integer literal: {value!r}")
    else:
        raise FormatError(f"Cannot encode {type(value).__name__} as uint256")

    if number < 0 or number > UINT256_MAX:
        raise FormatError(f"Value out of uint256 range: {number}")
    return number
