from collections.abc import Mapping, Sequence

from cairn import (
    Account,
    BlockIdentifier,
    Call,
    CallContractResponse,
    ContractABI,
    DeclareAndDeployResponse,
    DeclareContractResponse,
    DeclareDeployParams,
    DeployContractResponse,
    EstimateFeeResponse,
    Invocation,
    InvocationDetails,
    InvokeFunctionResponse,
    Provider,
)


class MockProvider(Provider):
    """
    Records every request. Calls return the canned result for the entrypoint if there is one,
    and echo the calldata back otherwise.
    """

    def __init__(self, results: None | Mapping[str, Sequence[int]] = None):
        self.results = dict(results or {})
        self.calls: list[tuple[Call, None | BlockIdentifier]] = []
        self.invocations: list[tuple[Invocation, InvocationDetails]] = []
        self.waited: list[int] = []

    async def call_contract(
        self, call: Call, block_identifier: None | BlockIdentifier = None
    ) -> CallContractResponse:
        self.calls.append((call, block_identifier))
        if call.entrypoint in self.results:
            return CallContractResponse(result=list(self.results[call.entrypoint]))
        return CallContractResponse(result=list(call.calldata))

    async def invoke_function(
        self, invocation: Invocation, details: InvocationDetails
    ) -> InvokeFunctionResponse:
        self.invocations.append((invocation, details))
        return InvokeFunctionResponse(transaction_hash=0x123)

    async def wait_for_transaction(self, transaction_hash: int) -> None:
        self.waited.append(transaction_hash)


class MockAccount(MockProvider, Account):
    def __init__(self, results: None | Mapping[str, Sequence[int]] = None):
        super().__init__(results)
        self.executed: list[tuple[list[Call], InvocationDetails]] = []
        self.estimated: list[Call] = []
        self.deployments: list[DeclareDeployParams] = []
        self.deploy_address: None | str = "0xdead"

    @property
    def address(self) -> str:
        return "0xacc"

    async def execute(
        self,
        calls: Sequence[Call],
        abis: None | Sequence[ContractABI] = None,  # noqa: ARG002
        details: InvocationDetails = InvocationDetails(),  # noqa: B008
    ) -> InvokeFunctionResponse:
        self.executed.append((list(calls), details))
        return InvokeFunctionResponse(transaction_hash=0x456)

    async def estimate_invoke_fee(self, call: Call) -> EstimateFeeResponse:
        self.estimated.append(call)
        return EstimateFeeResponse(overall_fee=1000, gas_consumed=10, gas_price=100)

    async def declare_and_deploy(self, params: DeclareDeployParams) -> DeclareAndDeployResponse:
        self.deployments.append(params)
        return DeclareAndDeployResponse(
            declare=DeclareContractResponse(class_hash=0x1),
            deploy=DeployContractResponse(
                contract_address=self.deploy_address, transaction_hash=0x789
            ),
        )
