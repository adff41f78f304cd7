from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ._calldata import Calldata


class BlockTag(Enum):
    """Block labels understood by Starknet nodes."""

    LATEST = "latest"
    """The latest accepted block."""

    PENDING = "pending"
    """The block currently being built."""


BlockIdentifier = BlockTag | int | str
"""A block tag, a block number, or a ``0x``-prefixed block hash."""


@dataclass(frozen=True)
class Call:
    """A request to execute a contract function, not yet sent anywhere."""

    contract_address: None | str
    """The contract address (lowercase hex)."""

    entrypoint: str
    """The name of the function."""

    calldata: Calldata
    """Compiled function arguments."""


@dataclass(frozen=True)
class Invocation:
    """An unsigned function invocation with an explicitly provided signature."""

    call: Call

    signature: Sequence[int] = ()


@dataclass(frozen=True)
class InvocationDetails:
    """Transaction parameters overriding the ones the backend would pick."""

    max_fee: None | int = None

    nonce: None | int = None


@dataclass(frozen=True)
class CallContractResponse:
    result: list[int]
    """The raw function result."""


@dataclass(frozen=True)
class InvokeFunctionResponse:
    transaction_hash: int


@dataclass(frozen=True)
class EstimateFeeResponse:
    overall_fee: int

    gas_consumed: None | int = None

    gas_price: None | int = None


@dataclass(frozen=True)
class DeclareDeployParams:
    """Parameters for declaring (if necessary) and deploying a contract class."""

    contract: Mapping[str, Any]
    """The compiled contract (Sierra program and ABI, or a Cairo 0 contract class)."""

    constructor_calldata: Calldata = field(default_factory=Calldata)

    casm: None | Mapping[str, Any] = None
    """The compiled CASM, for Cairo 1 contracts."""

    class_hash: None | int = None

    compiled_class_hash: None | int = None

    salt: None | int = None


@dataclass(frozen=True)
class DeclareContractResponse:
    class_hash: int

    transaction_hash: None | int = None


@dataclass(frozen=True)
class DeployContractResponse:
    contract_address: None | str
    """The address of the new contract; empty if the backend could not report it."""

    transaction_hash: int


@dataclass(frozen=True)
class DeclareAndDeployResponse:
    declare: DeclareContractResponse

    deploy: DeployContractResponse


@dataclass(frozen=True)
class FunctionCall:
    """The function call as sent to ``starknet_call``."""

    contract_address: str

    entry_point_selector: int

    calldata: list[int]


@dataclass(frozen=True)
class InvokeTransaction:
    """
    A version 0 invoke transaction as sent to ``starknet_addInvokeTransaction``
    (the ``type`` and ``version`` fields are added on serialization).
    """

    contract_address: str

    entry_point_selector: int

    calldata: list[int]

    max_fee: int

    signature: list[int]

    nonce: None | int = None


@dataclass(frozen=True)
class TransactionReceipt:
    """The fields of a transaction receipt that decide whether the transaction failed."""

    execution_status: None | str = None

    finality_status: None | str = None

    status: None | str = None
    """Set by older nodes instead of the two fields above."""

    revert_reason: None | str = None
