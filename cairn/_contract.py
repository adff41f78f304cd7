import logging
import warnings
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from typing import Any, cast

from ._cairo_types import ValidationError
from ._calldata import Args, Calldata, CallData, FormatMap, ValidateType
from ._contract_abi import ABI_JSON, ContractABI, Function, Methods
from ._entities import (
    BlockIdentifier,
    Call,
    EstimateFeeResponse,
    Invocation,
    InvocationDetails,
    InvokeFunctionResponse,
)
from ._provider import Account, Provider
from ._utils import normalize_address

logger = logging.getLogger(__name__)


class PreconditionError(Exception):
    """
    Raised when a request cannot be made in the current state
    (e.g. the contract is not bound to an address).
    """


class CapabilityError(Exception):
    """Raised when the connected backend cannot perform the requested operation."""


class PostconditionError(Exception):
    """Raised when the backend reported success, but its response is unusable."""


class UncheckedRequestWarning(UserWarning):
    """Issued when raw arguments are sent without being validated and compiled."""


class UnsignedInvocationWarning(UserWarning):
    """Issued when a function is invoked without an account."""


CALL_OPTIONS = frozenset(
    {
        "block_identifier",
        "parse_request",
        "parse_response",
        "format_response",
        "max_fee",
        "nonce",
        "signature",
    }
)
"""Option names recognized in the trailing argument of a call."""

INVOKE_OPTIONS = frozenset({"max_fee", "nonce", "signature", "parse_request"})
"""Option names recognized in the trailing argument of an invocation."""

DEPLOY_OPTIONS = frozenset({"parse_request", "address_salt"})
"""Option names recognized in the trailing argument of a deployment."""

# The options `Contract.call()` actually takes; the rest of `CALL_OPTIONS` is ignored.
_CALL_KEYWORDS = frozenset(
    {"block_identifier", "parse_request", "parse_response", "format_response"}
)


def split_args_and_options(
    args: Sequence[Any], vocabulary: AbstractSet[str]
) -> tuple[list[Any], dict[str, Any]]:
    """
    Separates the trailing options mapping from positional arguments.

    Only the last argument is inspected: it is treated as options
    if it is a mapping with at least one key from ``vocabulary``.
    """
    if args and isinstance(args[-1], Mapping) and any(key in vocabulary for key in args[-1]):
        return list(args[:-1]), dict(args[-1])
    return list(args), {}


def merge_options(
    trailing: Mapping[str, Any],
    keywords: Mapping[str, Any],
    vocabulary: AbstractSet[str],
    accepted: AbstractSet[str],
) -> dict[str, Any]:
    """
    Merges the options from the trailing mapping and from keyword arguments
    (the latter take precedence), keeping only the ones in ``accepted``.
    """
    unknown = set(keywords) - vocabulary
    if unknown:
        raise TypeError(f"Unexpected keyword arguments: {sorted(unknown)}")
    options = {**trailing, **keywords}
    return {key: value for key, value in options.items() if key in accepted}


def positional_args(args: Sequence[Any]) -> Args:
    # A single compiled argument is passed through as is
    if len(args) == 1 and isinstance(args[0], Calldata):
        return args[0]
    return list(args)


def resolve_calldata(
    call_data: CallData,
    validate_type: ValidateType,
    method: str,
    args: Args,
    *,
    parse_request: bool,
) -> Calldata:
    """
    Returns compiled calldata for the arguments:
    already compiled ones as is, the rest validated and compiled,
    or, if ``parse_request`` is ``False``, taken as raw felts (with a warning).
    Raw arguments must be a flat sequence of integers or numeric strings;
    anything else raises :py:class:`ValidationError`.
    """
    if isinstance(args, Calldata):
        return args
    if parse_request:
        call_data.validate(validate_type, method, args)
        return call_data.compile(method, args)
    warnings.warn(
        f"`{method}`: parsing skipped, but raw arguments were provided; "
        "the request may be malformed",
        UncheckedRequestWarning,
        stacklevel=3,
    )
    if isinstance(args, Mapping):
        raise ValidationError(f"`{method}`: raw arguments must be positional felts")
    return Calldata(cast("Sequence[int | str]", args))


class BoundCall:
    """A function bound to a contract, dispatched as a read-only call."""

    def __init__(self, contract: "Contract", function: Function):
        self._contract = contract
        self._function = function

    @property
    def function(self) -> Function:
        return self._function

    async def __call__(self, *args: Any, **options: Any) -> Any:
        """
        Calls the function with the given arguments.
        Options of :py:meth:`Contract.call` can be given as keyword arguments,
        or as a mapping in the last positional argument.
        """
        args_list, trailing = split_args_and_options(args, CALL_OPTIONS)
        call_options = merge_options(trailing, options, CALL_OPTIONS, _CALL_KEYWORDS)
        return await self._contract.call(
            self._function.name, positional_args(args_list), **call_options
        )


class BoundInvoke:
    """A function bound to a contract, dispatched as a state-changing invocation."""

    def __init__(self, contract: "Contract", function: Function):
        self._contract = contract
        self._function = function

    @property
    def function(self) -> Function:
        return self._function

    async def __call__(self, *args: Any, **options: Any) -> InvokeFunctionResponse:
        """
        Invokes the function with the given arguments.
        Options of :py:meth:`Contract.invoke` can be given as keyword arguments,
        or as a mapping in the last positional argument.
        """
        args_list, trailing = split_args_and_options(args, INVOKE_OPTIONS)
        invoke_options = merge_options(trailing, options, INVOKE_OPTIONS, INVOKE_OPTIONS)
        return await self._contract.invoke(
            self._function.name, positional_args(args_list), **invoke_options
        )


class BoundPopulate:
    """A function bound to a contract, building an unsent :py:class:`Call`."""

    def __init__(self, contract: "Contract", function: Function):
        self._contract = contract
        self._function = function

    def __call__(self, *args: Any) -> Call:
        return self._contract.populate(self._function.name, positional_args(args))


class BoundEstimate:
    """A function bound to a contract, estimating the fee of its invocation."""

    def __init__(self, contract: "Contract", function: Function):
        self._contract = contract
        self._function = function

    async def __call__(self, *args: Any) -> EstimateFeeResponse:
        return await self._contract.estimate(self._function.name, positional_args(args))


class Contract:
    """
    A contract bound to an address and a backend.

    Every ABI function is available as:

    - ``contract.functions.<name>`` (also ``contract.<name>``, unless the name
      is taken by an attribute of this class): called if the function is a view,
      invoked otherwise;
    - ``contract.call_static.<name>``: always called;
    - ``contract.populate_transaction.<name>``: returns an unsent :py:class:`Call`;
    - ``contract.estimate_fee.<name>``: estimates the invocation fee.
    """

    abi: ContractABI
    """Contract's ABI."""

    address: None | str
    """Contract's address (lowercase hex), or ``None`` if not bound yet."""

    deploy_transaction_hash: None | int
    """The hash of the deployment transaction that was not confirmed yet."""

    functions: Methods[BoundCall | BoundInvoke]
    """Functions dispatched according to their mutability."""

    call_static: Methods[BoundCall]
    """Functions dispatched as read-only calls."""

    populate_transaction: Methods[BoundPopulate]
    """Functions returning unsent calls."""

    estimate_fee: Methods[BoundEstimate]
    """Functions estimating the invocation fee."""

    def __init__(
        self,
        abi: ContractABI | ABI_JSON,
        address: None | int | str,
        provider: Provider,
    ):
        self.abi = abi if isinstance(abi, ContractABI) else ContractABI.from_json(abi)
        self.address = None if address is None else normalize_address(address)
        self.deploy_transaction_hash = None
        self._call_data = CallData(self.abi)
        self.connect(provider)

        self._functions: dict[str, BoundCall | BoundInvoke] = {}
        self._call_static: dict[str, BoundCall] = {}
        self._populate_transaction: dict[str, BoundPopulate] = {}
        self._estimate_fee: dict[str, BoundEstimate] = {}
        self._bind_functions(self.abi.function)

    def _bind_functions(self, functions: Methods[Function]) -> None:
        # Existing entries are never replaced.
        for function in functions:
            name = function.name
            if name not in self._functions:
                self._functions[name] = (
                    BoundInvoke(self, function) if function.mutating else BoundCall(self, function)
                )
            if name not in self._call_static:
                self._call_static[name] = BoundCall(self, function)
            if name not in self._populate_transaction:
                self._populate_transaction[name] = BoundPopulate(self, function)
            if name not in self._estimate_fee:
                self._estimate_fee[name] = BoundEstimate(self, function)

        self.functions = Methods(self._functions)
        self.call_static = Methods(self._call_static)
        self.populate_transaction = Methods(self._populate_transaction)
        self.estimate_fee = Methods(self._estimate_fee)

    def __getattr__(self, name: str) -> BoundCall | BoundInvoke:
        # Only reached if the regular lookup failed,
        # so the bound functions never shadow the attributes of this class.
        functions = self.__dict__.get("_functions", {})
        if not name.startswith("_") and name in functions:
            return functions[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    @property
    def provider(self) -> Provider:
        """The backend the requests are sent to."""
        return self._provider

    @property
    def account(self) -> None | Account:
        """The backend, if it holds an account."""
        return self._account

    @property
    def call_data(self) -> CallData:
        """The calldata compiler for this contract's ABI."""
        return self._call_data

    def attach(self, address: int | str) -> None:
        """Binds this contract to another address."""
        self.address = normalize_address(address)

    def connect(self, provider: Provider) -> None:
        """Binds this contract to another backend."""
        self._provider = provider
        self._account = provider if isinstance(provider, Account) else None

    async def deployed(self) -> "Contract":
        """Waits for the deployment transaction to be accepted, if there is one pending."""
        if self.deploy_transaction_hash is not None:
            await self._provider.wait_for_transaction(self.deploy_transaction_hash)
            self.deploy_transaction_hash = None
        return self

    def _require_address(self) -> str:
        if self.address is None:
            raise PreconditionError("The contract is not connected to an address")
        return self.address

    async def call(
        self,
        method: str,
        args: Args = (),
        *,
        parse_request: bool = True,
        parse_response: bool = True,
        format_response: None | FormatMap = None,
        block_identifier: None | BlockIdentifier = None,
    ) -> Any:
        """
        Calls the function without creating a transaction.

        Returns the raw result if ``parse_response`` is ``False``,
        the result reshaped according to ``format_response`` if it is given,
        and the parsed :py:class:`FieldValues` otherwise.
        """
        address = self._require_address()
        calldata = resolve_calldata(
            self._call_data, ValidateType.CALL, method, args, parse_request=parse_request
        )
        call = Call(contract_address=address, entrypoint=method, calldata=calldata)

        logger.debug("Calling `%s` at %s", method, address)
        response = await self._provider.call_contract(call, block_identifier)

        if not parse_response:
            return response.result
        if format_response is not None:
            return self._call_data.format(method, response.result, format_response)
        return self._call_data.parse(method, response.result)

    async def invoke(
        self,
        method: str,
        args: Args = (),
        *,
        parse_request: bool = True,
        max_fee: None | int = None,
        nonce: None | int = None,
        signature: None | Sequence[int] = None,
    ) -> InvokeFunctionResponse:
        """
        Sends a transaction invoking the function.

        If the backend holds an account, the transaction is signed and sent by it.
        Otherwise the invocation is sent as is, with the given ``signature``;
        ``nonce`` is required in this case.
        """
        address = self._require_address()
        calldata = resolve_calldata(
            self._call_data, ValidateType.INVOKE, method, args, parse_request=parse_request
        )
        call = Call(contract_address=address, entrypoint=method, calldata=calldata)
        details = InvocationDetails(max_fee=max_fee, nonce=nonce)

        if self._account is not None:
            logger.debug(
                "Executing `%s` at %s via account %s", method, address, self._account.address
            )
            return await self._account.execute([call], None, details)

        if nonce is None:
            raise PreconditionError("Nonce is required when invoking a function without an account")

        warnings.warn(
            f"Invoking `{method}` without an account. This will not work on a public node.",
            UnsignedInvocationWarning,
            stacklevel=2,
        )
        logger.debug("Invoking `%s` at %s without an account", method, address)
        return await self._provider.invoke_function(
            Invocation(call=call, signature=tuple(signature or ())), details
        )

    async def estimate(self, method: str, args: Args = ()) -> EstimateFeeResponse:
        """Estimates the fee of invoking the function; requires an account backend."""
        self._require_address()

        if not isinstance(args, Calldata):
            self._call_data.validate(ValidateType.INVOKE, method, args)

        call = self.populate(method, args)
        if self._account is None:
            raise CapabilityError("Contract must be connected to an account to estimate the fee")

        logger.debug("Estimating the fee of `%s` at %s", method, call.contract_address)
        return await self._account.estimate_invoke_fee(call)

    def populate(self, method: str, args: Args = ()) -> Call:
        """Returns the call to the function with compiled arguments, without sending it."""
        calldata = args if isinstance(args, Calldata) else self._call_data.compile(method, args)
        return Call(contract_address=self.address, entrypoint=method, calldata=calldata)
