import pytest

from cairn import FIELD_PRIME, InvokeFunctionResponse, RPCError
from cairn._entities import FunctionCall, InvokeTransaction, TransactionReceipt
from cairn._serialization import StructuringError, structure, unstructure


def test_structure_into_felt() -> None:
    assert structure(int, "0x123") == 0x123
    assert structure(list[int], ["0x1", "0x0"]) == [1, 0]

    with pytest.raises(StructuringError, match="The value must be a 0x-prefixed hex-encoded felt"):
        structure(int, "123")
    with pytest.raises(StructuringError, match="The value must be a 0x-prefixed hex-encoded felt"):
        structure(int, 123)
    with pytest.raises(StructuringError, match=r"The value must be within \[0, P\)"):
        structure(int, hex(FIELD_PRIME))


def test_structure_responses() -> None:
    assert structure(
        InvokeFunctionResponse, {"transaction_hash": "0x1234"}
    ) == InvokeFunctionResponse(transaction_hash=0x1234)

    # Error codes are plain integers, and the data is kept as is
    error = structure(RPCError, {"code": 29, "message": "Not found", "data": {"a": [1]}})
    assert error == RPCError(code=29, message="Not found", data={"a": [1]})
    assert structure(RPCError, {"code": -32600, "message": "x"}).data is None
    with pytest.raises(StructuringError):
        structure(RPCError, {"code": "0x1d", "message": "x"})

    # Only the fields deciding the outcome are kept
    receipt = structure(
        TransactionReceipt,
        {"transaction_hash": "0x1", "execution_status": "REVERTED", "revert_reason": "Oops"},
    )
    assert receipt == TransactionReceipt(execution_status="REVERTED", revert_reason="Oops")
    with pytest.raises(StructuringError):
        structure(TransactionReceipt, ["REVERTED"])


def test_unstructure_requests() -> None:
    assert unstructure(
        FunctionCall(contract_address="0xabc", entry_point_selector=16, calldata=[1, 255])
    ) == {"contract_address": "0xabc", "entry_point_selector": "0x10", "calldata": ["0x1", "0xff"]}

    transaction = InvokeTransaction(
        contract_address="0xabc",
        entry_point_selector=16,
        calldata=[],
        max_fee=100,
        signature=[1, 2],
        nonce=3,
    )
    assert unstructure(transaction) == {
        "type": "INVOKE",
        "version": "0x0",
        "contract_address": "0xabc",
        "entry_point_selector": "0x10",
        "calldata": [],
        "max_fee": "0x64",
        "signature": ["0x1", "0x2"],
        "nonce": "0x3",
    }
