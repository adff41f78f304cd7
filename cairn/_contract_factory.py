import json
import logging
from collections.abc import Mapping
from typing import Any, cast

from ._calldata import CONSTRUCTOR_NAME, CallData, ValidateType
from ._contract import (
    DEPLOY_OPTIONS,
    Contract,
    PostconditionError,
    merge_options,
    positional_args,
    resolve_calldata,
    split_args_and_options,
)
from ._contract_abi import ABI_JSON, ContractABI
from ._entities import DeclareDeployParams
from ._provider import Account

logger = logging.getLogger(__name__)


def _abi_from_compiled(compiled_contract: Mapping[str, Any]) -> ABI_JSON:
    abi = compiled_contract["abi"]
    # Sierra artifacts may carry the ABI as a serialized JSON string.
    if isinstance(abi, str):
        return cast("ABI_JSON", json.loads(abi))
    return cast("ABI_JSON", abi)


class ContractFactory:
    """Declares and deploys contracts of one compiled class."""

    compiled_contract: Mapping[str, Any]
    """The compiled contract (Sierra program and ABI, or a Cairo 0 contract class)."""

    account: Account
    """The account used for declaration and deployment."""

    abi: ContractABI
    """The ABI the deployed contracts are bound with."""

    def __init__(
        self,
        compiled_contract: Mapping[str, Any],
        account: Account,
        *,
        casm: None | Mapping[str, Any] = None,
        class_hash: None | int = None,
        compiled_class_hash: None | int = None,
        abi: None | ContractABI | ABI_JSON = None,
    ):
        if abi is None:
            abi = _abi_from_compiled(compiled_contract)
        self.compiled_contract = compiled_contract
        self.account = account
        self.casm = casm
        self.class_hash = class_hash
        self.compiled_class_hash = compiled_class_hash
        self.abi = abi if isinstance(abi, ContractABI) else ContractABI.from_json(abi)
        self._call_data = CallData(self.abi)

    async def deploy(self, *args: Any, **options: Any) -> Contract:
        """
        Declares the class if it is not declared yet, deploys a contract passing ``args``
        to the constructor, and returns the contract bound to the new address.

        Options (``parse_request``, ``address_salt``) can be given as keyword arguments,
        or as a mapping in the last positional argument.
        The returned contract's :py:meth:`~Contract.deployed` waits for the deployment.
        """
        args_list, trailing = split_args_and_options(args, DEPLOY_OPTIONS)
        deploy_options = merge_options(trailing, options, DEPLOY_OPTIONS, DEPLOY_OPTIONS)

        constructor_calldata = resolve_calldata(
            self._call_data,
            ValidateType.DEPLOY,
            CONSTRUCTOR_NAME,
            positional_args(args_list),
            parse_request=deploy_options.get("parse_request", True),
        )

        response = await self.account.declare_and_deploy(
            DeclareDeployParams(
                contract=self.compiled_contract,
                constructor_calldata=constructor_calldata,
                casm=self.casm,
                class_hash=self.class_hash,
                compiled_class_hash=self.compiled_class_hash,
                salt=deploy_options.get("address_salt"),
            )
        )

        contract_address = response.deploy.contract_address
        if not contract_address:
            raise PostconditionError("Deployment of the contract failed")

        logger.debug(
            "Deployed a contract at %s (transaction %s)",
            contract_address,
            hex(response.deploy.transaction_hash),
        )
        contract = Contract(self.abi, contract_address, self.account)
        contract.deploy_transaction_hash = response.deploy.transaction_hash
        return contract

    def connect(self, account: Account) -> "ContractFactory":
        """Switches to another account; returns this factory."""
        self.account = account
        return self

    def attach(self, address: int | str) -> Contract:
        """Returns a contract of this class bound to the given address."""
        return Contract(self.abi, address, self.account)
