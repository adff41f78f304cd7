"""Starknet JSON RPC provider based on `httpx`."""

import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import asynccontextmanager, contextmanager
from http import HTTPStatus
from json import JSONDecodeError
from typing import Any, TypeVar, cast

import anyio
import httpx
from compages import StructuringError

from ._entities import (
    BlockIdentifier,
    BlockTag,
    Call,
    CallContractResponse,
    FunctionCall,
    Invocation,
    InvocationDetails,
    InvokeFunctionResponse,
    InvokeTransaction,
    TransactionReceipt,
)
from ._provider import (
    RPC_JSON,
    InvalidResponse,
    ProtocolError,
    Provider,
    ProviderError,
    RPCError,
    TransactionFailed,
    Unreachable,
)
from ._serialization import structure, unstructure
from ._utils import get_selector_from_name

__all__ = ["HTTPError", "HTTPProvider"]

logger = logging.getLogger(__name__)

TXN_HASH_NOT_FOUND = 29
"""The RPC error code returned for transactions the node does not know (yet)."""

_HEX_BLOCK_HASH_PREFIX = "0x"


class HTTPError(ProtocolError):
    """A non-200 HTTP response from the node without a JSON RPC ``"error"`` object."""

    status: HTTPStatus
    """The HTTP status returned by the node."""

    message: str
    """The raw body of the response."""

    def __init__(self, status_code: int, message: str):
        try:
            status = HTTPStatus(status_code)
        except ValueError:  # pragma: no cover
            # Non-standard status codes
            status = HTTPStatus.INTERNAL_SERVER_ERROR

        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"HTTP status {self.status}: {self.message}"


@contextmanager
def convert_errors(method: str) -> Iterator[None]:
    try:
        yield
    except StructuringError as exc:
        raise ProviderError(InvalidResponse(f"{method}: {exc}")) from exc


def _encode_block_id(block_identifier: None | BlockIdentifier) -> RPC_JSON:
    if block_identifier is None:
        return BlockTag.PENDING.value
    if isinstance(block_identifier, BlockTag):
        return block_identifier.value
    if isinstance(block_identifier, int):
        return {"block_number": block_identifier}
    if block_identifier.startswith(_HEX_BLOCK_HASH_PREFIX):
        return {"block_hash": block_identifier}
    # Let the node decide whether the tag is valid
    return block_identifier


RetType = TypeVar("RetType")


class HTTPProvider(Provider):
    """
    A provider for Starknet JSON RPC via HTTP(S).

    If ``http_client`` is given, it is used for all requests (and not closed).
    Otherwise one client is kept open within :py:meth:`session`
    (and while waiting for a transaction), and outside of it
    a new client is opened for every request.
    Receipts are polled every ``poll_latency`` seconds when waiting for transactions.
    """

    def __init__(
        self,
        url: str,
        *,
        poll_latency: float = 1.0,
        http_client: None | httpx.AsyncClient = None,
    ):
        self._url = url
        self._poll_latency = poll_latency
        self._http_client = http_client

    @asynccontextmanager
    async def session(self) -> AsyncIterator["HTTPProvider"]:
        """
        Keeps a single HTTP client open for the requests made within the context.
        Nested sessions reuse the outer one.
        """
        if self._http_client is not None:
            yield self
            return

        async with httpx.AsyncClient() as client:
            self._http_client = client
            try:
                yield self
            finally:
                self._http_client = None

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient() as client:
                yield client

    def _prepare_request(self, method: str, *args: RPC_JSON) -> RPC_JSON:
        return {"jsonrpc": "2.0", "method": method, "params": args, "id": 0}

    async def rpc(self, method: str, *args: RPC_JSON) -> RPC_JSON:
        """Sends a JSON RPC request with JSON-ready ``args`` and returns its ``result``."""
        json = self._prepare_request(method, *args)
        logger.debug("RPC request: %s", method)
        async with self._client() as client:
            try:
                response = await client.post(self._url, json=json)
            except httpx.ConnectError as exc:
                raise ProviderError(Unreachable(str(exc))) from exc

        status = response.status_code

        try:
            response_json = response.json()
        except JSONDecodeError as exc:
            content = response.content.decode()
            raise ProviderError(
                InvalidResponse(f"Expected a JSON response, got HTTP status {status}: {content}")
            ) from exc

        if not isinstance(response_json, Mapping):
            raise ProviderError(
                InvalidResponse(f"RPC response must be a dictionary, got: {response_json}")
            )
        response_json = cast("Mapping[str, RPC_JSON]", response_json)

        # Node-side errors (e.g. a reverted call) come with HTTP 200.
        if "error" in response_json:
            try:
                error = structure(RPCError, response_json["error"])
            except StructuringError as exc:
                raise ProviderError(
                    InvalidResponse(f"Failed to parse an error response: {response_json}")
                ) from exc

            raise ProviderError(error)

        if status == HTTPStatus.OK:
            if "result" in response_json:
                return response_json["result"]
            raise ProviderError(
                InvalidResponse(f"`result` is not present in the response: {response_json}")
            )

        raise ProviderError(HTTPError(status, response.content.decode()))

    async def _rpc_call(self, method: str, ret_type: type[RetType], *args: Any) -> RetType:
        with convert_errors(method):
            result = await self.rpc(method, *args)
            return structure(ret_type, result)

    async def call_contract(
        self, call: Call, block_identifier: None | BlockIdentifier = None
    ) -> CallContractResponse:
        if call.contract_address is None:
            raise ValueError("The call must have a contract address")
        function_call = FunctionCall(
            contract_address=call.contract_address,
            entry_point_selector=get_selector_from_name(call.entrypoint),
            calldata=list(call.calldata),
        )
        result = await self._rpc_call(
            "starknet_call",
            list[int],
            unstructure(function_call),
            _encode_block_id(block_identifier),
        )
        return CallContractResponse(result=result)

    async def invoke_function(
        self, invocation: Invocation, details: InvocationDetails
    ) -> InvokeFunctionResponse:
        call = invocation.call
        if call.contract_address is None:
            raise ValueError("The call must have a contract address")
        transaction = InvokeTransaction(
            contract_address=call.contract_address,
            entry_point_selector=get_selector_from_name(call.entrypoint),
            calldata=list(call.calldata),
            max_fee=details.max_fee or 0,
            signature=list(invocation.signature),
            nonce=details.nonce,
        )
        return await self._rpc_call(
            "starknet_addInvokeTransaction", InvokeFunctionResponse, unstructure(transaction)
        )

    async def wait_for_transaction(self, transaction_hash: int) -> None:
        """
        Polls the transaction receipt until the node knows the transaction.

        Raises :py:class:`TransactionFailed` if the transaction was reverted or rejected.
        """
        async with self.session():
            while True:
                try:
                    receipt = await self._rpc_call(
                        "starknet_getTransactionReceipt",
                        TransactionReceipt,
                        unstructure(transaction_hash),
                    )
                except ProviderError as exc:
                    if isinstance(exc.error, RPCError) and exc.error.code == TXN_HASH_NOT_FOUND:
                        await anyio.sleep(self._poll_latency)
                        continue
                    raise
                break

        if receipt.execution_status == "REVERTED" or receipt.status == "REJECTED":
            raise TransactionFailed(
                f"Transaction {hex(transaction_hash)} failed: "
                f"{receipt.revert_reason or 'no reason given'}"
            )
