"""Async Starknet contract bindings."""

from . import abi
from ._cairo_types import ABIDecodingError, ValidationError
from ._calldata import Args, Calldata, CallData, Format, ValidateType
from ._contract import (
    CALL_OPTIONS,
    DEPLOY_OPTIONS,
    INVOKE_OPTIONS,
    BoundCall,
    BoundEstimate,
    BoundInvoke,
    BoundPopulate,
    CapabilityError,
    Contract,
    PostconditionError,
    PreconditionError,
    UncheckedRequestWarning,
    UnsignedInvocationWarning,
    split_args_and_options,
)
from ._contract_abi import (
    ABI_JSON,
    Constructor,
    ContractABI,
    Fields,
    FieldValues,
    Function,
    Methods,
    Mutability,
    get_abi_structs,
)
from ._contract_factory import ContractFactory
from ._entities import (
    BlockIdentifier,
    BlockTag,
    Call,
    CallContractResponse,
    DeclareAndDeployResponse,
    DeclareContractResponse,
    DeclareDeployParams,
    DeployContractResponse,
    EstimateFeeResponse,
    Invocation,
    InvocationDetails,
    InvokeFunctionResponse,
)
from ._provider import (
    Account,
    InvalidResponse,
    ProtocolError,
    Provider,
    ProviderError,
    RPCError,
    TransactionFailed,
    Unreachable,
)
from ._utils import (
    FIELD_PRIME,
    decode_short_string,
    encode_short_string,
    get_selector_from_name,
)
from .http_provider import HTTPError, HTTPProvider

__all__ = [
    "ABIDecodingError",
    "ABI_JSON",
    "Account",
    "Args",
    "BlockIdentifier",
    "BlockTag",
    "BoundCall",
    "BoundEstimate",
    "BoundInvoke",
    "BoundPopulate",
    "CALL_OPTIONS",
    "Call",
    "CallContractResponse",
    "CallData",
    "Calldata",
    "CapabilityError",
    "Constructor",
    "Contract",
    "ContractABI",
    "ContractFactory",
    "DEPLOY_OPTIONS",
    "DeclareAndDeployResponse",
    "DeclareContractResponse",
    "DeclareDeployParams",
    "DeployContractResponse",
    "EstimateFeeResponse",
    "FIELD_PRIME",
    "FieldValues",
    "Fields",
    "Format",
    "Function",
    "HTTPError",
    "HTTPProvider",
    "INVOKE_OPTIONS",
    "InvalidResponse",
    "Invocation",
    "InvocationDetails",
    "InvokeFunctionResponse",
    "Methods",
    "Mutability",
    "PostconditionError",
    "PreconditionError",
    "ProtocolError",
    "Provider",
    "ProviderError",
    "RPCError",
    "TransactionFailed",
    "UncheckedRequestWarning",
    "Unreachable",
    "UnsignedInvocationWarning",
    "ValidateType",
    "ValidationError",
    "abi",
    "decode_short_string",
    "encode_short_string",
    "get_abi_structs",
    "get_selector_from_name",
]
