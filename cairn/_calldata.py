from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any, overload

from ._cairo_types import ValidationError
from ._contract_abi import ABI_JSON, ContractABI, Fields, FieldValues, get_abi_structs
from ._utils import decode_short_string, parse_felt_string

CONSTRUCTOR_NAME = "constructor"


def _to_felt(value: Any) -> int:
    # `bool` is a subclass of `int`, but it is not a felt
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return parse_felt_string(value)
        except ValueError as exc:
            raise ValidationError(f"Expected a felt, got {value!r}") from exc
    raise ValidationError(
        f"Calldata must consist of integers or numeric strings, got {type(value).__name__}"
    )


class Calldata(Sequence[int]):
    """
    Compiled calldata: a flat sequence of felts.

    Being an instance of this class marks the data as already compiled,
    so it is passed to the backend as is and never compiled again.
    Items must be integers or numeric strings, otherwise :py:class:`ValidationError` is raised.
    """

    def __init__(self, felts: Iterable[int | str] = ()):
        self._felts = tuple(_to_felt(felt) for felt in felts)

    @overload
    def __getitem__(self, index: int) -> int: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[int, ...]: ...

    def __getitem__(self, index: int | slice) -> int | tuple[int, ...]:
        return self._felts[index]

    def __len__(self) -> int:
        return len(self._felts)

    def __iter__(self) -> Iterator[int]:
        return iter(self._felts)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Calldata) and self._felts == other._felts

    def __hash__(self) -> int:
        return hash((Calldata, self._felts))

    def __repr__(self) -> str:
        return f"Calldata({list(self._felts)!r})"


Args = Sequence[Any] | Mapping[str, Any] | Calldata
"""
Function arguments: positional values, values keyed by input names,
or already compiled :py:class:`Calldata`.
"""


class ValidateType(Enum):
    """The kind of request the arguments are validated for."""

    CALL = "CALL"
    INVOKE = "INVOKE"
    DEPLOY = "DEPLOY"


class Format(Enum):
    """Target representations for :py:meth:`CallData.format`."""

    INT = "int"
    """An integer."""

    HEX = "hex"
    """A ``0x``-prefixed lowercase hex string."""

    STRING = "string"
    """A decoded short string (a list of felts is decoded and concatenated)."""

    BOOL = "bool"
    """A boolean."""


FormatMap = Mapping[str, Any]
"""
Output name to a :py:class:`Format` (or its string value);
struct members are formatted with nested mappings,
array elements with a one-element list.
"""


def _as_int(value: Any) -> int:
    if isinstance(value, str):
        return parse_felt_string(value)
    return int(value)


def _apply_format(value: Any, fmt: Any) -> Any:
    if isinstance(fmt, Mapping):
        if not isinstance(value, Mapping):
            raise ValueError(f"A nested format requires a struct value, got {value!r}")
        return {
            name: _apply_format(item, fmt[name]) if name in fmt else item
            for name, item in value.items()
        }

    if isinstance(fmt, list | tuple):
        if len(fmt) != 1:
            raise ValueError("An array format must contain exactly one element format")
        if not isinstance(value, list):
            raise ValueError(f"An array format requires an array value, got {value!r}")
        return [_apply_format(item, fmt[0]) for item in value]

    kind = Format(fmt)
    if kind == Format.STRING:
        if isinstance(value, list):
            return "".join(decode_short_string(_as_int(item)) for item in value)
        return decode_short_string(_as_int(value))
    if kind == Format.HEX:
        return hex(_as_int(value))
    if kind == Format.BOOL:
        return bool(_as_int(value))
    return _as_int(value)


class CallData:
    """
    Validates and compiles function arguments into calldata,
    and parses function results, according to the contract ABI.
    """

    abi: ContractABI
    """The contract ABI."""

    def __init__(self, abi: ContractABI | ABI_JSON):
        self.abi = abi if isinstance(abi, ContractABI) else ContractABI.from_json(abi)

    @staticmethod
    def get_abi_structs(json_abi: ABI_JSON) -> dict[str, Mapping[str, Any]]:
        """Returns the struct declarations of a JSON ABI indexed by name."""
        return get_abi_structs(json_abi)

    def _inputs(self, method: str) -> Fields:
        if method == CONSTRUCTOR_NAME:
            return self.abi.constructor.inputs
        if method not in self.abi.function:
            raise ValidationError(f"Function `{method}` not found in the ABI")
        return self.abi.function[method].inputs

    def _outputs(self, method: str) -> Fields:
        if method not in self.abi.function:
            raise ValidationError(f"Function `{method}` not found in the ABI")
        return self.abi.function[method].outputs

    def validate(
        self, validate_type: ValidateType, method: str, args: Sequence[Any] | Mapping[str, Any]
    ) -> None:
        """
        Checks the number and the shapes of the arguments against the function inputs
        (or the constructor inputs for :py:attr:`ValidateType.DEPLOY`).
        Raises :py:class:`ValidationError` on a mismatch.
        """
        if validate_type == ValidateType.DEPLOY:
            inputs = self.abi.constructor.inputs
        else:
            inputs = self._inputs(method)
        inputs.validate(args)

    def compile(self, method: str, args: Sequence[Any] | Mapping[str, Any]) -> Calldata:
        """Compiles the arguments of the function (or the ``"constructor"``) into calldata."""
        return self.compile_fields(self._inputs(method), args)

    @staticmethod
    def compile_fields(fields: Fields, args: Sequence[Any] | Mapping[str, Any]) -> Calldata:
        """Compiles the arguments against an explicit list of inputs."""
        return Calldata(fields.encode(args))

    def parse(self, method: str, result: Sequence[int | str]) -> FieldValues:
        """Decodes the raw function result into the declared outputs."""
        return self._outputs(method).decode([_to_felt(felt) for felt in result])

    def format(
        self, method: str, result: Sequence[int | str], format_map: FormatMap
    ) -> FieldValues:
        """
        Decodes the raw function result and converts the outputs named in ``format_map``
        into the requested representations.
        """
        parsed = self.parse(method, result)

        unknown = set(format_map) - {name for name in parsed.names if name is not None}
        if unknown:
            raise ValueError(f"Format map refers to unknown outputs: {sorted(unknown)}")

        return FieldValues(
            [
                (name, _apply_format(value, format_map[name]) if name in format_map else value)
                for name, value in zip(parsed.names, parsed.as_tuple, strict=True)
            ]
        )
