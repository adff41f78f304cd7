"""Starknet JSON RPC schema."""

from collections.abc import Generator
from types import MappingProxyType, NoneType, UnionType
from typing import Any, TypeVar, Union, cast

from compages import (
    StructureDictIntoDataclass,
    Structurer,
    StructuringError,
    UnstructureDataclassToDict,
    Unstructurer,
    simple_structure,
    simple_typechecked_unstructure,
    structure_into_int,
    structure_into_list,
    structure_into_none,
    structure_into_str,
    structure_into_union,
    unstructure_as_list,
    unstructure_as_none,
    unstructure_as_str,
    unstructure_as_union,
)

from ._entities import InvokeTransaction
from ._provider import RPC_JSON, ErrorCode, ErrorData
from ._utils import FIELD_PRIME


@simple_structure
def _structure_into_felt(val: Any) -> int:
    if not isinstance(val, str) or not val.startswith("0x"):
        raise StructuringError("The value must be a 0x-prefixed hex-encoded felt")
    try:
        felt = int(val, 16)
    except ValueError as exc:
        raise StructuringError(str(exc)) from exc
    if felt >= FIELD_PRIME:
        raise StructuringError(f"The value must be within [0, P), got {val}")
    return felt


@simple_structure
def _structure_as_is(val: Any) -> Any:
    return val


def _unstructure_invoke_tx(
    unstructurer: Unstructurer, _unstructure_as: type[InvokeTransaction], obj: InvokeTransaction
) -> Generator[InvokeTransaction, dict[str, RPC_JSON], RPC_JSON]:
    json = yield obj
    json["type"] = "INVOKE"
    json["version"] = unstructurer.unstructure_as(int, 0)
    return json


@simple_typechecked_unstructure
def _unstructure_int_to_hex(obj: int) -> str:
    return hex(obj)


def _field_name(name: str, _metadata: MappingProxyType[Any, Any]) -> str:
    # Starknet RPC uses snake case, same as the dataclass fields
    return name


STRUCTURER = Structurer(
    {
        ErrorCode: structure_into_int,
        ErrorData: _structure_as_is,
        int: _structure_into_felt,
        str: structure_into_str,
        list: structure_into_list,
        UnionType: structure_into_union,
        Union: structure_into_union,
        NoneType: structure_into_none,
    },
    [StructureDictIntoDataclass(_field_name)],
)

UNSTRUCTURER = Unstructurer(
    {
        InvokeTransaction: _unstructure_invoke_tx,
        int: _unstructure_int_to_hex,
        str: unstructure_as_str,
        NoneType: unstructure_as_none,
        list: unstructure_as_list,
        UnionType: unstructure_as_union,
        Union: unstructure_as_union,
    },
    [UnstructureDataclassToDict(_field_name)],
)


_T = TypeVar("_T")


def structure(structure_into: type[_T], obj: RPC_JSON) -> _T:
    """Structures incoming JSON data."""
    return STRUCTURER.structure_into(structure_into, obj)


def unstructure(obj: Any, unstructure_as: Any = None) -> RPC_JSON:
    """Unstructures data into JSON-serializable values."""
    return cast(RPC_JSON, UNSTRUCTURER.unstructure_as(unstructure_as or type(obj), obj))
