import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from functools import cached_property
from typing import Any

from ._utils import FIELD_PRIME, encode_short_string, parse_felt_string


class ValidationError(Exception):
    """
    Raised when a value (or a list of call arguments)
    does not match the declared Cairo type (or the function inputs).
    """


class ABIDecodingError(Exception):
    """Raised on an error when decoding values from a flat list of felts."""


_NUMERIC_RE = re.compile(r"0[xX][0-9a-fA-F]+|\d+")


def _to_integer(val: Any, canonical_form: str) -> int:
    # `bool` is a subclass of `int`, but we would rather be more strict
    # and prevent possible bugs.
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    if isinstance(val, str) and _NUMERIC_RE.fullmatch(val):
        return parse_felt_string(val)
    raise ValidationError(
        f"`{canonical_form}` must correspond to an integer or a numeric string, "
        f"got {type(val).__name__}"
    )


class FeltReader:
    """Sequential reader over a flat list of felts."""

    def __init__(self, felts: Sequence[int]):
        self._felts = felts
        self._position = 0

    def read(self) -> int:
        if self._position >= len(self._felts):
            raise ABIDecodingError(
                f"Unexpected end of data: tried to read felt #{self._position}, "
                f"but only {len(self._felts)} are available"
            )
        value = self._felts[self._position]
        self._position += 1
        return value

    @property
    def remaining(self) -> int:
        return len(self._felts) - self._position


class Type(ABC):
    """The base type for Cairo types."""

    @property
    @abstractmethod
    def canonical_form(self) -> str:
        """Returns the type as a string."""
        ...

    @abstractmethod
    def validate(self, val: Any) -> None:
        """
        Checks that the value can be encoded as this type.
        Raises :py:class:`ValidationError` otherwise.
        """
        ...

    @abstractmethod
    def _encode(self, val: Any) -> list[int]:
        """Encodes a value that was already validated."""
        ...

    @abstractmethod
    def decode(self, reader: FeltReader) -> Any:
        """Consumes the felts belonging to a value of this type and returns the value."""
        ...

    def encode(self, val: Any) -> list[int]:
        """Encodes the given value into a flat list of felts."""
        self.validate(val)
        return self._encode(val)

    def __str__(self) -> str:
        return self.canonical_form


class Felt(Type):
    """
    Corresponds to the Cairo ``felt`` (``felt252``) type.

    Besides integers and numeric strings, accepts ASCII strings
    of at most 31 characters which are packed into a single felt.
    """

    @property
    def canonical_form(self) -> str:
        return "felt252"

    def _to_int(self, val: Any) -> int:
        if isinstance(val, str) and not _NUMERIC_RE.fullmatch(val):
            try:
                return encode_short_string(val)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
        return _to_integer(val, self.canonical_form)

    def validate(self, val: Any) -> None:
        int_val = self._to_int(val)
        if int_val < 0 or int_val >= FIELD_PRIME:
            raise ValidationError(f"`felt252` must be within [0, P), got {int_val}")

    def _encode(self, val: Any) -> list[int]:
        return [self._to_int(val)]

    def decode(self, reader: FeltReader) -> int:
        return reader.read()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Felt)

    def __hash__(self) -> int:
        return hash(Felt)


class UInt(Type):
    """Corresponds to the Cairo ``u<bits>`` types that fit into a single felt."""

    def __init__(self, bits: int):
        if bits not in (8, 16, 32, 64, 128):
            raise ValueError(f"Incorrect `uint` bit size: {bits}")
        self._bits = bits

    @property
    def canonical_form(self) -> str:
        return f"u{self._bits}"

    def validate(self, val: Any) -> None:
        int_val = _to_integer(val, self.canonical_form)
        if int_val < 0 or int_val >> self._bits != 0:
            raise ValidationError(
                f"`{self.canonical_form}` must correspond to an unsigned integer "
                f"under {self._bits} bits, got {int_val}"
            )

    def _encode(self, val: Any) -> list[int]:
        return [_to_integer(val, self.canonical_form)]

    def decode(self, reader: FeltReader) -> int:
        value = reader.read()
        if value >> self._bits != 0:
            raise ABIDecodingError(f"Value {value} does not fit into `{self.canonical_form}`")
        return value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UInt) and self._bits == other._bits

    def __hash__(self) -> int:
        return hash((UInt, self._bits))


class Int(Type):
    """
    Corresponds to the Cairo ``i<bits>`` types.
    Negative values are encoded as ``P - |x|``.
    """

    def __init__(self, bits: int):
        if bits not in (8, 16, 32, 64, 128):
            raise ValueError(f"Incorrect `int` bit size: {bits}")
        self._bits = bits

    @property
    def canonical_form(self) -> str:
        return f"i{self._bits}"

    def _in_range(self, int_val: int) -> bool:
        return -(2 ** (self._bits - 1)) <= int_val < 2 ** (self._bits - 1)

    def validate(self, val: Any) -> None:
        int_val = _to_integer(val, self.canonical_form)
        if not self._in_range(int_val):
            raise ValidationError(
                f"`{self.canonical_form}` must correspond to a signed integer "
                f"under {self._bits} bits, got {int_val}"
            )

    def _encode(self, val: Any) -> list[int]:
        return [_to_integer(val, self.canonical_form) % FIELD_PRIME]

    def decode(self, reader: FeltReader) -> int:
        value = reader.read()
        int_val = value - FIELD_PRIME if value > FIELD_PRIME // 2 else value
        if not self._in_range(int_val):
            raise ABIDecodingError(f"Value {value} does not fit into `{self.canonical_form}`")
        return int_val

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Int) and self._bits == other._bits

    def __hash__(self) -> int:
        return hash((Int, self._bits))


_U128_MASK = 2**128 - 1


class U256(Type):
    """
    Corresponds to the Cairo ``u256`` type (``Uint256`` in Cairo 0),
    which is serialized as two 128-bit limbs, the low one first.
    """

    @property
    def canonical_form(self) -> str:
        return "u256"

    def _to_int(self, val: Any) -> int:
        if isinstance(val, Mapping):
            if set(val) != {"low", "high"}:
                raise ValidationError(
                    f"`u256` as a mapping must have fields ['low', 'high'], got {list(val)}"
                )
            low = _to_integer(val["low"], "u128")
            high = _to_integer(val["high"], "u128")
            if low >> 128 != 0 or high >> 128 != 0:
                raise ValidationError("`u256` limbs must be under 128 bits")
            return low + (high << 128)
        return _to_integer(val, self.canonical_form)

    def validate(self, val: Any) -> None:
        int_val = self._to_int(val)
        if int_val < 0 or int_val >> 256 != 0:
            raise ValidationError(
                f"`u256` must correspond to an unsigned integer under 256 bits, got {int_val}"
            )

    def _encode(self, val: Any) -> list[int]:
        int_val = self._to_int(val)
        return [int_val & _U128_MASK, int_val >> 128]

    def decode(self, reader: FeltReader) -> int:
        low = reader.read()
        high = reader.read()
        if low >> 128 != 0 or high >> 128 != 0:
            raise ABIDecodingError(f"Invalid `u256` limbs: ({low}, {high})")
        return low + (high << 128)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, U256)

    def __hash__(self) -> int:
        return hash(U256)


class Bool(Type):
    """Corresponds to the Cairo ``bool`` type."""

    @property
    def canonical_form(self) -> str:
        return "bool"

    def validate(self, val: Any) -> None:
        if not isinstance(val, bool):
            raise ValidationError(
                f"`bool` must correspond to a `bool`-type value, got {type(val).__name__}"
            )

    def _encode(self, val: Any) -> list[int]:
        return [int(val)]

    def decode(self, reader: FeltReader) -> bool:
        value = reader.read()
        if value not in (0, 1):
            raise ABIDecodingError(f"`bool` must be encoded as 0 or 1, got {value}")
        return bool(value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bool)

    def __hash__(self) -> int:
        return hash(Bool)


class ContractAddress(Type):
    """
    Corresponds to the Cairo ``ContractAddress`` and ``ClassHash`` types.
    Decoded values are lowercase ``0x``-prefixed hex strings.
    """

    @property
    def canonical_form(self) -> str:
        return "ContractAddress"

    def validate(self, val: Any) -> None:
        int_val = _to_integer(val, self.canonical_form)
        if int_val < 0 or int_val >= FIELD_PRIME:
            raise ValidationError(f"`ContractAddress` must be within [0, P), got {int_val}")

    def _encode(self, val: Any) -> list[int]:
        return [_to_integer(val, self.canonical_form)]

    def decode(self, reader: FeltReader) -> str:
        return hex(reader.read())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ContractAddress)

    def __hash__(self) -> int:
        return hash(ContractAddress)


class Bytes31(Type):
    """Corresponds to the Cairo ``bytes31`` type: up to 31 bytes packed into a felt."""

    @property
    def canonical_form(self) -> str:
        return "bytes31"

    def validate(self, val: Any) -> None:
        int_val = _to_integer(val, self.canonical_form)
        if int_val < 0 or int_val >> 248 != 0:
            raise ValidationError(f"`bytes31` must fit into 31 bytes, got {int_val}")

    def _encode(self, val: Any) -> list[int]:
        return [_to_integer(val, self.canonical_form)]

    def decode(self, reader: FeltReader) -> int:
        value = reader.read()
        if value >> 248 != 0:
            raise ABIDecodingError(f"Value {value} does not fit into `bytes31`")
        return value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bytes31)

    def __hash__(self) -> int:
        return hash(Bytes31)


class EthAddress(Type):
    """
    Corresponds to the Cairo ``EthAddress`` type (a 160-bit L1 address).
    Decoded values are lowercase ``0x``-prefixed hex strings.
    """

    @property
    def canonical_form(self) -> str:
        return "EthAddress"

    def validate(self, val: Any) -> None:
        int_val = _to_integer(val, self.canonical_form)
        if int_val < 0 or int_val >> 160 != 0:
            raise ValidationError(f"`EthAddress` must fit into 160 bits, got {int_val}")

    def _encode(self, val: Any) -> list[int]:
        return [_to_integer(val, self.canonical_form)]

    def decode(self, reader: FeltReader) -> str:
        value = reader.read()
        if value >> 160 != 0:
            raise ABIDecodingError(f"Value {value} does not fit into `EthAddress`")
        return hex(value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EthAddress)

    def __hash__(self) -> int:
        return hash(EthAddress)


class Array(Type):
    """
    Corresponds to Cairo arrays (``Array<T>``, ``Span<T>``, or a ``T*`` pointer
    with the accompanying ``_len`` argument in Cairo 0).
    Serialized as the length followed by the elements.
    """

    def __init__(self, element_type: Type):
        self._element_type = element_type

    @property
    def element_type(self) -> Type:
        return self._element_type

    @cached_property
    def canonical_form(self) -> str:
        return f"Array<{self._element_type.canonical_form}>"

    def validate(self, val: Any) -> None:
        if not isinstance(val, Sequence) or isinstance(val, str):
            raise ValidationError(f"Expected a sequence, got {type(val).__name__}")
        for item in val:
            self._element_type.validate(item)

    def _encode(self, val: Any) -> list[int]:
        result = [len(val)]
        for item in val:
            result.extend(self._element_type._encode(item))  # noqa: SLF001
        return result

    def decode(self, reader: FeltReader) -> list[Any]:
        length = reader.read()
        if length > reader.remaining:
            raise ABIDecodingError(
                f"Array length {length} exceeds the number of remaining felts ({reader.remaining})"
            )
        return [self._element_type.decode(reader) for _ in range(length)]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Array) and self._element_type == other._element_type

    def __hash__(self) -> int:
        return hash((Array, self._element_type))


class Tuple(Type):
    """
    Corresponds to Cairo tuples, ``(T1, T2)``,
    or Cairo 0 named tuples, ``(a: T1, b: T2)``.
    """

    def __init__(self, members: Sequence[tuple[str | None, Type]]):
        self._names = tuple(name for name, _tp in members)
        self._types = tuple(tp for _name, tp in members)
        self._named = bool(members) and all(name is not None for name in self._names)

    @cached_property
    def canonical_form(self) -> str:
        return (
            "("
            + ", ".join(
                (f"{name}: " if name is not None else "") + tp.canonical_form
                for name, tp in zip(self._names, self._types, strict=True)
            )
            + ")"
        )

    def _values(self, val: Any) -> Sequence[Any]:
        if self._named and isinstance(val, Mapping):
            if set(val) != set(self._names):
                raise ValidationError(f"Expected fields {list(self._names)}, got {list(val)}")
            return [val[name] for name in self._names]
        if not isinstance(val, Sequence) or isinstance(val, str):
            raise ValidationError(f"Expected a sequence, got {type(val).__name__}")
        if len(val) != len(self._types):
            raise ValidationError(f"Expected {len(self._types)} elements, got {len(val)}")
        return val

    def validate(self, val: Any) -> None:
        for item, tp in zip(self._values(val), self._types, strict=True):
            tp.validate(item)

    def _encode(self, val: Any) -> list[int]:
        result = []
        for item, tp in zip(self._values(val), self._types, strict=True):
            result.extend(tp._encode(item))  # noqa: SLF001
        return result

    def decode(self, reader: FeltReader) -> tuple[Any, ...] | dict[str, Any]:
        values = [tp.decode(reader) for tp in self._types]
        if self._named:
            return dict(zip(self._names, values, strict=True))
        return tuple(values)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Tuple)
            and self._names == other._names
            and self._types == other._types
        )

    def __hash__(self) -> int:
        return hash((Tuple, self._names, self._types))


class Struct(Type):
    """Corresponds to a Cairo struct declared in the ABI."""

    def __init__(self, name: str, fields: Mapping[str, Type]):
        self._name = name
        self._fields = fields

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> Mapping[str, Type]:
        return self._fields

    @property
    def canonical_form(self) -> str:
        return self._name

    def _values(self, val: Any) -> Sequence[Any]:
        if isinstance(val, Mapping):
            if set(val) != set(self._fields):
                raise ValidationError(
                    f"`{self._name}`: expected fields {list(self._fields)}, got {list(val)}"
                )
            return [val[name] for name in self._fields]
        if not isinstance(val, Sequence) or isinstance(val, str):
            raise ValidationError(
                f"`{self._name}` must correspond to a mapping or a sequence, "
                f"got {type(val).__name__}"
            )
        if len(val) != len(self._fields):
            raise ValidationError(
                f"`{self._name}`: expected {len(self._fields)} elements, got {len(val)}"
            )
        return val

    def validate(self, val: Any) -> None:
        for item, tp in zip(self._values(val), self._fields.values(), strict=True):
            tp.validate(item)

    def _encode(self, val: Any) -> list[int]:
        result = []
        for item, tp in zip(self._values(val), self._fields.values(), strict=True):
            result.extend(tp._encode(item))  # noqa: SLF001
        return result

    def decode(self, reader: FeltReader) -> dict[str, Any]:
        return {name: tp.decode(reader) for name, tp in self._fields.items()}

    def __str__(self) -> str:
        # Overriding the `Type`'s implementation because we want to show the field names too
        fields = ", ".join(f"{name}: {tp}" for name, tp in self._fields.items())
        return f"{self._name}({fields})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Struct)
            and self._name == other._name
            and list(self._fields.items()) == list(other._fields.items())
        )

    def __hash__(self) -> int:
        return hash((Struct, self._name))


UNIT = Tuple([])


class Enum(Type):
    """
    Corresponds to a Cairo enum declared in the ABI.
    Values are one-item mappings ``{variant_name: payload}``;
    the payload of a unit variant is ``None``.
    """

    def __init__(self, name: str, variants: Mapping[str, Type]):
        self._name = name
        self._variants = variants
        self._variant_names = list(variants)

    @property
    def canonical_form(self) -> str:
        return self._name

    def _variant(self, val: Any) -> tuple[int, Type, Any]:
        if not isinstance(val, Mapping) or len(val) != 1:
            raise ValidationError(
                f"`{self._name}` must correspond to a mapping with a single variant, got {val!r}"
            )
        ((variant, payload),) = val.items()
        if variant not in self._variants:
            raise ValidationError(
                f"`{self._name}` has no variant `{variant}` (available: {self._variant_names})"
            )
        tp = self._variants[variant]
        if tp == UNIT and payload is None:
            payload = ()
        return self._variant_names.index(variant), tp, payload

    def validate(self, val: Any) -> None:
        _index, tp, payload = self._variant(val)
        tp.validate(payload)

    def _encode(self, val: Any) -> list[int]:
        index, tp, payload = self._variant(val)
        return [index, *tp._encode(payload)]  # noqa: SLF001

    def decode(self, reader: FeltReader) -> dict[str, Any]:
        index = reader.read()
        if index >= len(self._variant_names):
            raise ABIDecodingError(f"`{self._name}` has no variant with index {index}")
        variant = self._variant_names[index]
        tp = self._variants[variant]
        payload = tp.decode(reader)
        return {variant: None if tp == UNIT else payload}

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Enum)
            and self._name == other._name
            and list(self._variants.items()) == list(other._variants.items())
        )

    def __hash__(self) -> int:
        return hash((Enum, self._name))


class Unsupported(Type):
    """
    Stands in for an ABI type that has no codec.
    The ABI can still be bound, but any use of the type fails.
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def canonical_form(self) -> str:
        return self._name

    def validate(self, val: Any) -> None:
        raise ValidationError(f"Type `{self._name}` is not supported")

    def _encode(self, val: Any) -> list[int]:
        raise ValidationError(f"Type `{self._name}` is not supported")

    def decode(self, reader: FeltReader) -> Any:
        raise ABIDecodingError(f"Type `{self._name}` is not supported")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Unsupported) and self._name == other._name

    def __hash__(self) -> int:
        return hash((Unsupported, self._name))


_BUILTINS: dict[str, Type] = {
    "felt": Felt(),
    "core::felt252": Felt(),
    "core::integer::u8": UInt(8),
    "core::integer::u16": UInt(16),
    "core::integer::u32": UInt(32),
    "core::integer::u64": UInt(64),
    "core::integer::u128": UInt(128),
    "core::integer::usize": UInt(32),
    "core::integer::i8": Int(8),
    "core::integer::i16": Int(16),
    "core::integer::i32": Int(32),
    "core::integer::i64": Int(64),
    "core::integer::i128": Int(128),
    "Uint256": U256(),
    "core::integer::u256": U256(),
    "core::bool": Bool(),
    "core::starknet::contract_address::ContractAddress": ContractAddress(),
    "core::starknet::class_hash::ClassHash": ContractAddress(),
    "core::bytes_31::bytes31": Bytes31(),
    "core::starknet::eth_address::EthAddress": EthAddress(),
}

_GENERIC_ARRAY_RE = re.compile(r"^core::array::(?:Array|Span)::<(.+)>$")

# Cairo 0 named tuple members, `name: type`; `core::...` paths must not match.
_NAMED_MEMBER_RE = re.compile(r"^(\w+)\s*:(?!:)\s*(.+)$")


def _split_top_level(type_list: str) -> list[str]:
    parts = []
    depth = 0
    current = []
    for char in type_list:
        if char in "(<":
            depth += 1
        elif char in ")>":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def type_from_abi_string(type_str: str, resolve_named: Callable[[str], Type | None]) -> Type:
    """
    Builds a type object from the ABI type string.

    ``resolve_named`` is queried for the names of structs and enums declared in the ABI
    and must return ``None`` for unknown names.
    Types without a codec become :py:class:`Unsupported`.
    """
    type_str = type_str.strip()

    if type_str in _BUILTINS:
        return _BUILTINS[type_str]

    if type_str.endswith("*"):
        return Array(type_from_abi_string(type_str[:-1], resolve_named))

    if match := _GENERIC_ARRAY_RE.match(type_str):
        return Array(type_from_abi_string(match.group(1), resolve_named))

    if type_str.startswith("(") and type_str.endswith(")"):
        members: list[tuple[str | None, Type]] = []
        for part in _split_top_level(type_str[1:-1]):
            if match := _NAMED_MEMBER_RE.match(part):
                member_type = type_from_abi_string(match.group(2), resolve_named)
                members.append((match.group(1), member_type))
            else:
                members.append((None, type_from_abi_string(part, resolve_named)))
        return Tuple(members)

    named = resolve_named(type_str)
    if named is not None:
        return named

    return Unsupported(type_str)
