from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, NewType

from ._entities import (
    BlockIdentifier,
    Call,
    CallContractResponse,
    DeclareAndDeployResponse,
    DeclareDeployParams,
    EstimateFeeResponse,
    Invocation,
    InvocationDetails,
    InvokeFunctionResponse,
)

if TYPE_CHECKING:  # pragma: no cover
    from ._contract_abi import ContractABI

RPC_JSON = None | bool | int | float | str | Sequence["RPC_JSON"] | Mapping[str, "RPC_JSON"]
"""RPC requests and responses serializable to JSON."""

ErrorCode = NewType("ErrorCode", int)
"""A JSON RPC error code (a plain integer, unlike the hex-encoded felts)."""

ErrorData = NewType("ErrorData", object)
"""Arbitrary JSON attached to a JSON RPC error."""


class InvalidResponse(Exception):
    """Raised when the remote server's response is not of an expected format."""


class Unreachable(Exception):
    """Raised when there is a problem connecting to the provider."""


class ProtocolError(ABC, Exception):
    """
    A transport-level failure that carries no node error,
    e.g. :py:class:`~cairn.http_provider.HTTPError` for a non-200 HTTP status.
    """


@dataclass
class RPCError(Exception):
    """An error returned by the node in the ``"error"`` field of a JSON RPC response."""

    code: ErrorCode
    """The error code."""

    message: str
    """The error message."""

    data: None | ErrorData = None
    """Additional error data."""

    def __str__(self) -> str:
        return f"RPC error {self.code}: {self.message}" + (
            f" ({self.data})" if self.data is not None else ""
        )


@dataclass
class ProviderError(Exception):
    """Describes an error on the provider's side."""

    error: RPCError | Unreachable | InvalidResponse | ProtocolError
    """The specific error."""

    def __str__(self) -> str:
        return f"Provider error: {self.error}"


class TransactionFailed(Exception):
    """Raised when a transaction was accepted by the node, but its execution was reverted."""


class Provider(ABC):
    """
    The base class for backends able to query contracts
    and submit unsigned invocations.

    Backends are free to raise their own exceptions;
    they are passed to the caller unchanged.
    """

    @abstractmethod
    async def call_contract(
        self, call: Call, block_identifier: None | BlockIdentifier = None
    ) -> CallContractResponse:
        """Executes the call without creating a transaction and returns the raw result."""
        ...

    @abstractmethod
    async def invoke_function(
        self, invocation: Invocation, details: InvocationDetails
    ) -> InvokeFunctionResponse:
        """Submits the invocation as is, with the signature provided by the caller."""
        ...

    @abstractmethod
    async def wait_for_transaction(self, transaction_hash: int) -> None:
        """Waits until the transaction is accepted."""
        ...


class Account(Provider):
    """
    The base class for backends holding an account:
    they can sign and send transactions, estimate fees, and deploy contracts.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Returns the account contract address."""

    @abstractmethod
    async def execute(
        self,
        calls: Sequence[Call],
        abis: None | Sequence["ContractABI"] = None,
        details: InvocationDetails = InvocationDetails(),  # noqa: B008
    ) -> InvokeFunctionResponse:
        """Signs the calls and sends them as a single transaction."""
        ...

    @abstractmethod
    async def estimate_invoke_fee(self, call: Call) -> EstimateFeeResponse:
        """Estimates the fee for invoking the call from this account."""
        ...

    @abstractmethod
    async def declare_and_deploy(self, params: DeclareDeployParams) -> DeclareAndDeployResponse:
        """Declares the contract class (if it is not declared yet) and deploys an instance."""
        ...
