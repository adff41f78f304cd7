from typing import Any

import pytest
from mock_backends import MockAccount, MockProvider

from cairn import ABI_JSON


CAIRO1_ABI: list[dict[str, Any]] = [
    {"type": "impl", "name": "CounterImpl", "interface_name": "test::ICounter"},
    {
        "type": "struct",
        "name": "core::integer::u256",
        "members": [
            {"name": "low", "type": "core::integer::u128"},
            {"name": "high", "type": "core::integer::u128"},
        ],
    },
    {
        "type": "struct",
        "name": "test::Point",
        "members": [
            {"name": "x", "type": "core::felt252"},
            {"name": "y", "type": "core::felt252"},
        ],
    },
    {
        "type": "struct",
        "name": "test::Segment",
        "members": [
            {"name": "start", "type": "test::Point"},
            {"name": "end", "type": "test::Point"},
            {"name": "weight", "type": "core::integer::u256"},
        ],
    },
    {
        "type": "enum",
        "name": "core::option::Option::<core::felt252>",
        "variants": [
            {"name": "Some", "type": "core::felt252"},
            {"name": "None", "type": "()"},
        ],
    },
    {
        "type": "interface",
        "name": "test::ICounter",
        "items": [
            {
                "type": "function",
                "name": "get_counter",
                "inputs": [],
                "outputs": [{"type": "core::felt252"}],
                "state_mutability": "view",
            },
            {
                "type": "function",
                "name": "increase",
                "inputs": [{"name": "amount", "type": "core::felt252"}],
                "outputs": [],
                "state_mutability": "external",
            },
            {
                "type": "function",
                "name": "echo_segment",
                "inputs": [{"name": "segment", "type": "test::Segment"}],
                "outputs": [{"type": "test::Segment"}],
                "state_mutability": "view",
            },
            {
                "type": "function",
                "name": "echo_many",
                "inputs": [
                    {"name": "values", "type": "core::array::Array::<core::integer::u64>"},
                    {"name": "flag", "type": "core::bool"},
                    {
                        "name": "owner",
                        "type": "core::starknet::contract_address::ContractAddress",
                    },
                ],
                "outputs": [
                    {"type": "core::array::Array::<core::integer::u64>"},
                    {"type": "core::bool"},
                    {"type": "core::starknet::contract_address::ContractAddress"},
                ],
                "state_mutability": "view",
            },
            {
                "type": "function",
                "name": "echo_option",
                "inputs": [{"name": "value", "type": "core::option::Option::<core::felt252>"}],
                "outputs": [{"type": "core::option::Option::<core::felt252>"}],
                "state_mutability": "view",
            },
            {
                "type": "function",
                "name": "attach",
                "inputs": [],
                "outputs": [],
                "state_mutability": "external",
            },
            # Shadowed by the first declaration
            {
                "type": "function",
                "name": "get_counter",
                "inputs": [{"name": "x", "type": "core::felt252"}],
                "outputs": [],
                "state_mutability": "external",
            },
        ],
    },
    {
        "type": "constructor",
        "name": "constructor",
        "inputs": [
            {"name": "initial", "type": "core::felt252"},
            {"name": "owner", "type": "core::starknet::contract_address::ContractAddress"},
        ],
    },
    {"type": "event", "name": "test::Counter::Event", "kind": "enum", "variants": []},
]


CAIRO0_ABI: list[dict[str, Any]] = [
    {
        "type": "struct",
        "name": "Uint256",
        "size": 2,
        "members": [
            {"name": "low", "offset": 0, "type": "felt"},
            {"name": "high", "offset": 1, "type": "felt"},
        ],
    },
    {
        "type": "struct",
        "name": "Pair",
        "size": 2,
        "members": [
            {"name": "key", "offset": 0, "type": "felt"},
            {"name": "value", "offset": 1, "type": "felt"},
        ],
    },
    {
        "type": "constructor",
        "name": "constructor",
        "inputs": [{"name": "name", "type": "felt"}, {"name": "supply", "type": "Uint256"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "felt"}],
        "outputs": [{"name": "balance", "type": "Uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "recipient", "type": "felt"}, {"name": "amount", "type": "Uint256"}],
        "outputs": [{"name": "success", "type": "felt"}],
    },
    {
        "type": "function",
        "name": "store_pairs",
        "inputs": [{"name": "pairs_len", "type": "felt"}, {"name": "pairs", "type": "Pair*"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "echo_pairs",
        "inputs": [{"name": "pairs_len", "type": "felt"}, {"name": "pairs", "type": "Pair*"}],
        "outputs": [{"name": "pairs_len", "type": "felt"}, {"name": "pairs", "type": "Pair*"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "name",
        "inputs": [],
        "outputs": [{"name": "name", "type": "felt"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "get_tuple",
        "inputs": [],
        "outputs": [{"name": "t", "type": "(a: felt, b: felt)"}],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "Transfer",
        "keys": [],
        "data": [{"name": "to", "type": "felt"}],
    },
    {
        "type": "l1_handler",
        "name": "deposit",
        "inputs": [{"name": "from_address", "type": "felt"}],
        "outputs": [],
    },
]


@pytest.fixture
def cairo1_abi() -> ABI_JSON:
    return CAIRO1_ABI


@pytest.fixture
def cairo0_abi() -> ABI_JSON:
    return CAIRO0_ABI


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def account() -> MockAccount:
    return MockAccount()
