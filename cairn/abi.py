# This is the whole point of this module.
# ruff: noqa: A001

"""Aliases for various Cairo types."""

from collections.abc import Mapping

from ._cairo_types import (
    Array,
    Bool,
    Bytes31,
    ContractAddress,
    Enum,
    EthAddress,
    Felt,
    Int,
    Struct,
    Tuple,
    Type,
    U256,
    UInt,
)

_PyInt = int


def uint(bits: _PyInt) -> UInt:
    """Returns the ``u<bits>`` type (for ``bits`` up to 128)."""
    return UInt(bits)


def int(bits: _PyInt) -> Int:
    """Returns the signed ``i<bits>`` type (for ``bits`` up to 128)."""
    return Int(bits)


def array(element_type: Type) -> Array:
    """Returns the array type with the given element type."""
    return Array(element_type)


def tuple_(*members: Type) -> Tuple:
    """Returns the unnamed tuple type with the given member types."""
    return Tuple([(None, tp) for tp in members])


def struct(name: str, **kwargs: Type) -> Struct:
    """Returns the structure type with given fields."""
    return Struct(name, kwargs)


def enum(name: str, variants: Mapping[str, Type]) -> Enum:
    """Returns the enum type with given variants (use :py:data:`unit` for unit variants)."""
    return Enum(name, variants)


felt: Felt = Felt()
"""``felt252`` type."""

u256: U256 = U256()
"""``u256`` type."""

bool: Bool = Bool()
"""``bool`` type."""

address: ContractAddress = ContractAddress()
"""``ContractAddress`` type."""

eth_address: EthAddress = EthAddress()
"""``EthAddress`` type."""

bytes31: Bytes31 = Bytes31()
"""``bytes31`` type."""

unit: Tuple = Tuple([])
"""The unit type ``()``."""
