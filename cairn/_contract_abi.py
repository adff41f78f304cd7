from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from enum import Enum
from functools import cached_property
from types import MappingProxyType
from typing import Any, Generic, TypeVar, cast

from ._cairo_types import (
    ABIDecodingError,
    FeltReader,
    Struct,
    Type,
    ValidationError,
    type_from_abi_string,
)
from ._cairo_types import Enum as EnumType

ABI_JSON = None | bool | int | float | str | Sequence["ABI_JSON"] | Mapping[str, "ABI_JSON"]
"""Values serializable to JSON."""

# Cairo 0 passes arrays as a `<name>_len` argument followed by a `<name>` pointer.
_LEN_SUFFIX = "_len"

# ABI entries that do not take part in binding.
_SKIPPED_ENTRY_TYPES = {"impl", "event", "l1_handler"}

NamedTypeResolver = Callable[[str], Type | None]


class FieldValues:
    """
    A container for decoded values of function outputs.

    Cairo 1 outputs are anonymous, so a dictionary cannot handle all the possibilities;
    the values can also be accessed by position.
    """

    def __init__(self, values: Sequence[tuple[str | None, Any]]):
        names = [name for name, _value in values if name is not None]
        if len(names) != len(set(names)):
            raise ValueError("The values cannot have repeating names")

        self._values_seq = values
        self._values_dict = {name: value for name, value in values if name is not None}
        self._representable_as_dict = len(names) == len(self._values_seq)

    @property
    def as_dict(self) -> dict[str, Any]:
        """
        Returns the equivalent dictionary representation.

        Raises ``ValueError`` if there are anonymous fields present.
        """
        if not self._representable_as_dict:
            raise ValueError(
                "This structure has some anonymous fields "
                "and therefore is not representable as a `dict`"
            )
        return self._values_dict

    @cached_property
    def as_tuple(self) -> tuple[Any, ...]:
        """
        Returns the equivalent tuple representation
        (a tuple of the values with the field names omitted).
        """
        return tuple(item for _name, item in self._values_seq)

    @property
    def names(self) -> tuple[str | None, ...]:
        return tuple(name for name, _item in self._values_seq)

    def __getitem__(self, key: str | int) -> Any:
        """Returns the value with the given name or at the given position."""
        if isinstance(key, int):
            return self.as_tuple[key]
        return self._values_dict[key]

    def __getattr__(self, name: str) -> Any:
        """Returns the value with the given name."""
        try:
            return self.__dict__["_values_dict"][name]
        except KeyError as exc:
            raise AttributeError(name) from exc

    def __len__(self) -> int:
        return len(self._values_seq)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FieldValues) and self._values_seq == other._values_seq

    def __repr__(self) -> str:
        return f"FieldValues({self._values_seq!r})"


class Fields:
    """
    Describes a sequence of optionally named typed values.
    These can be function inputs or outputs.
    """

    names: tuple[str | None, ...]
    """Field names."""

    types: tuple[Type, ...]
    """Field types."""

    @classmethod
    def from_json(cls, entries: ABI_JSON, resolve_named: NamedTypeResolver) -> "Fields":
        """
        Creates this object from a list of JSON ABI parameters.

        Cairo 0 pairs of ``x_len: felt`` and ``x: T*`` are merged into a single ``x`` array.
        """
        entries_typed = cast("Sequence[Mapping[str, str]]", entries)

        fields: list[tuple[str | None, Type]] = []
        idx = 0
        while idx < len(entries_typed):
            entry = entries_typed[idx]
            name = entry.get("name") or None
            next_entry = entries_typed[idx + 1] if idx + 1 < len(entries_typed) else None
            if (
                name is not None
                and name.endswith(_LEN_SUFFIX)
                and next_entry is not None
                and next_entry.get("name") == name[: -len(_LEN_SUFFIX)]
                and next_entry["type"].endswith("*")
            ):
                # The length is emitted by the array itself.
                idx += 1
                continue

            fields.append((name, type_from_abi_string(entry["type"], resolve_named)))
            idx += 1

        return cls(fields)

    def __init__(self, fields: Mapping[str, Type] | Sequence[tuple[str | None, Type]]):
        if isinstance(fields, Mapping):
            names: tuple[str | None, ...] = tuple(fields)
            types = tuple(fields.values())
        else:
            names = tuple(name for name, _tp in fields)
            types = tuple(tp for _name, tp in fields)

        self.names = names
        self.types = types

    @cached_property
    def named_fields(self) -> set[str]:
        return {name for name in self.names if name is not None}

    def _ordered(self, values: Sequence[Any] | Mapping[str, Any]) -> Sequence[Any]:
        if isinstance(values, Mapping):
            if set(values) != self.named_fields or len(self.named_fields) != len(self.names):
                raise ValidationError(
                    f"Expected arguments {list(self.names)}, got {list(values)}"
                )
            return [values[name] for name in cast("tuple[str, ...]", self.names)]
        if len(values) != len(self.types):
            raise ValidationError(
                f"Invalid number of arguments, expected {len(self.types)} arguments, "
                f"but got {len(values)}"
            )
        return values

    def validate(self, values: Sequence[Any] | Mapping[str, Any]) -> None:
        """Checks the number and the shapes of the values against field types."""
        for tp, value in zip(self.types, self._ordered(values), strict=True):
            tp.validate(value)

    def encode(self, values: Sequence[Any] | Mapping[str, Any]) -> list[int]:
        """
        Encodes the given values into a flat list of felts according to field types.
        ``values`` can be given in the declaration order or keyed by field names.
        """
        result = []
        for tp, value in zip(self.types, self._ordered(values), strict=True):
            result.extend(tp.encode(value))
        return result

    def decode(self, felts: Sequence[int]) -> FieldValues:
        """
        Decodes the flat list of felts into a list of pairs
        of the original field name and the value.
        """
        reader = FeltReader(felts)
        values = [tp.decode(reader) for tp in self.types]
        if reader.remaining != 0:
            raise ABIDecodingError(
                f"{reader.remaining} felts left over after decoding {self}"
            )
        return FieldValues(list(zip(self.names, values, strict=True)))

    def __len__(self) -> int:
        return len(self.types)

    def __str__(self) -> str:
        fields = ", ".join(
            ((name + ": ") if name is not None else "") + tp.canonical_form
            for name, tp in zip(self.names, self.types, strict=True)
        )
        return f"({fields})"


class Mutability(Enum):
    """Possible states of a contract's function mutability."""

    VIEW = "view"
    """Reads the contract state only; dispatched as a call."""

    EXTERNAL = "external"
    """May change the contract state; dispatched as a transaction."""

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "Mutability":
        """
        Reads the mutability from a function entry.
        Both ``stateMutability`` (Cairo 0) and ``state_mutability`` (Cairo 1) are recognized;
        anything other than ``view`` is treated as state-changing.
        """
        if Mutability.VIEW.value in (entry.get("stateMutability"), entry.get("state_mutability")):
            return Mutability.VIEW
        return Mutability.EXTERNAL

    @property
    def mutating(self) -> bool:
        return self == Mutability.EXTERNAL


class Function:
    """A contract function."""

    name: str
    """The name of this function."""

    inputs: Fields
    """The input signature of this function."""

    outputs: Fields
    """The output signature of this function."""

    mutability: Mutability
    """Whether this function is a view or may change the state."""

    @classmethod
    def from_json(cls, entry: ABI_JSON, resolve_named: NamedTypeResolver) -> "Function":
        """Creates this object from a JSON ABI function entry."""
        entry_typed = cast("Mapping[str, Any]", entry)

        if entry_typed["type"] != "function":
            raise ValueError(
                "Function object must be created from a JSON entry with type='function'"
            )

        return cls(
            name=entry_typed["name"],
            inputs=Fields.from_json(entry_typed.get("inputs", []), resolve_named),
            outputs=Fields.from_json(entry_typed.get("outputs", []), resolve_named),
            mutability=Mutability.from_json(entry_typed),
        )

    def __init__(
        self,
        name: str,
        mutability: Mutability,
        inputs: Fields | Mapping[str, Type] | Sequence[tuple[str | None, Type]],
        outputs: None | Fields | Mapping[str, Type] | Sequence[tuple[str | None, Type]] = None,
    ):
        self.name = name
        self.mutability = mutability
        self.inputs = inputs if isinstance(inputs, Fields) else Fields(inputs)
        if outputs is None:
            outputs = []
        self.outputs = outputs if isinstance(outputs, Fields) else Fields(outputs)

    @property
    def mutating(self) -> bool:
        return self.mutability.mutating

    def __str__(self) -> str:
        returns = "" if not self.outputs.names else f" -> {self.outputs}"
        return f"fn {self.name}{self.inputs}{returns} {self.mutability.value}"


class Constructor:
    """Contract constructor."""

    inputs: Fields
    """Input signature."""

    @classmethod
    def from_json(cls, entry: ABI_JSON, resolve_named: NamedTypeResolver) -> "Constructor":
        """Creates this object from a JSON ABI constructor entry."""
        entry_typed = cast("Mapping[str, Any]", entry)
        if entry_typed["type"] != "constructor":
            raise ValueError(
                "Constructor object must be created from a JSON entry with type='constructor'"
            )
        return cls(Fields.from_json(entry_typed.get("inputs", []), resolve_named))

    def __init__(self, inputs: Fields | Mapping[str, Type] | Sequence[tuple[str | None, Type]]):
        self.inputs = inputs if isinstance(inputs, Fields) else Fields(inputs)

    def __str__(self) -> str:
        return f"constructor{self.inputs}"


MethodType = TypeVar("MethodType")


class Methods(Generic[MethodType]):
    """
    Bases: ``Generic`` [``MethodType``].

    A read-only holder for named methods which can be accessed as attributes,
    by name, or iterated over.
    """

    def __init__(self, methods_dict: Mapping[str, MethodType]):
        self._methods_dict = MappingProxyType(dict(methods_dict))

    def __getattr__(self, method_name: str) -> MethodType:
        """Returns the method by name."""
        try:
            return self.__dict__["_methods_dict"][method_name]
        except KeyError as exc:
            raise AttributeError(method_name) from exc

    def __getitem__(self, method_name: str) -> MethodType:
        """Returns the method by name."""
        return self._methods_dict[method_name]

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._methods_dict

    def __len__(self) -> int:
        return len(self._methods_dict)

    def __iter__(self) -> Iterator[MethodType]:
        """Returns the iterator over all methods."""
        return iter(self._methods_dict.values())

    def names(self) -> list[str]:
        """Returns the method names in the declaration order."""
        return list(self._methods_dict)


def _flatten_entries(json_abi: Iterable[Mapping[str, Any]]) -> Iterator[Mapping[str, Any]]:
    for entry in json_abi:
        # Cairo 1 ABIs group functions into interfaces.
        if entry["type"] == "interface":
            yield from _flatten_entries(entry.get("items", []))
        else:
            yield entry


def get_abi_structs(json_abi: ABI_JSON) -> dict[str, Mapping[str, Any]]:
    """
    Returns the struct declarations of a JSON ABI indexed by name.
    If a name is declared more than once, the first declaration is kept.
    """
    json_abi_typed = cast("Sequence[Mapping[str, Any]]", json_abi)
    structs: dict[str, Mapping[str, Any]] = {}
    for entry in _flatten_entries(json_abi_typed):
        if entry["type"] == "struct":
            structs.setdefault(entry["name"], entry)
    return structs


def get_abi_enums(json_abi: ABI_JSON) -> dict[str, Mapping[str, Any]]:
    """Returns the enum declarations of a JSON ABI indexed by name (first declaration wins)."""
    json_abi_typed = cast("Sequence[Mapping[str, Any]]", json_abi)
    enums: dict[str, Mapping[str, Any]] = {}
    for entry in _flatten_entries(json_abi_typed):
        if entry["type"] == "enum":
            enums.setdefault(entry["name"], entry)
    return enums


class _NamedTypeResolver:
    """Builds struct and enum types on demand, so that declaration order does not matter."""

    def __init__(
        self,
        struct_entries: Mapping[str, Mapping[str, Any]],
        enum_entries: Mapping[str, Mapping[str, Any]],
    ):
        self._struct_entries = struct_entries
        self._enum_entries = enum_entries
        self._resolved: dict[str, Type] = {}

    def __call__(self, name: str) -> Type | None:
        if name in self._resolved:
            return self._resolved[name]

        tp: Type
        if name in self._struct_entries:
            members = self._struct_entries[name].get("members", [])
            tp = Struct(
                name,
                {member["name"]: type_from_abi_string(member["type"], self) for member in members},
            )
        elif name in self._enum_entries:
            variants = self._enum_entries[name].get("variants", [])
            tp = EnumType(
                name,
                {
                    variant["name"]: type_from_abi_string(variant["type"], self)
                    for variant in variants
                },
            )
        else:
            return None

        self._resolved[name] = tp
        return tp


class ContractABI:
    """
    A wrapper for contract ABI.

    Lookups of functions and structs by name are constant-time.
    """

    constructor: Constructor
    """Contract's constructor."""

    function: Methods[Function]
    """Contract's functions."""

    structs: Mapping[str, Struct]
    """Contract's structs."""

    @classmethod
    def from_json(cls, json_abi: ABI_JSON) -> "ContractABI":
        """
        Creates this object from a JSON ABI (e.g. generated by the Cairo compiler).

        If several functions share a name, the first one is used.
        """
        json_abi_typed = cast("Sequence[Mapping[str, Any]]", json_abi)

        struct_entries = get_abi_structs(json_abi_typed)
        resolve_named = _NamedTypeResolver(struct_entries, get_abi_enums(json_abi_typed))

        constructor = None
        functions: dict[str, Function] = {}

        for entry in _flatten_entries(json_abi_typed):
            entry_type = entry["type"]
            if entry_type == "function":
                if entry["name"] not in functions:
                    functions[entry["name"]] = Function.from_json(entry, resolve_named)

            elif entry_type == "constructor":
                if constructor:
                    raise ValueError("JSON ABI contains more than one constructor declarations")
                constructor = Constructor.from_json(entry, resolve_named)

            elif entry_type in ("struct", "enum") or entry_type in _SKIPPED_ENTRY_TYPES:
                continue

            else:
                raise ValueError(f"Unknown ABI entry type: {entry_type}")

        structs = {}
        for name in struct_entries:
            struct = resolve_named(name)
            if isinstance(struct, Struct):
                structs[name] = struct

        return cls(constructor=constructor, functions=functions.values(), structs=structs)

    def __init__(
        self,
        constructor: None | Constructor = None,
        functions: None | Iterable[Function] = None,
        structs: None | Mapping[str, Struct] = None,
    ):
        if constructor is None:
            constructor = Constructor(inputs=[])

        self.constructor = constructor

        functions_dict: dict[str, Function] = {}
        for function in functions or []:
            functions_dict.setdefault(function.name, function)
        self.function = Methods(functions_dict)
        self.structs = MappingProxyType(dict(structs or {}))

    def __str__(self) -> str:
        indent = "    "
        items = [str(self.constructor), *(str(function) for function in self.function)]
        return "{\n" + "\n".join(indent + item for item in items) + "\n}"
