import pytest

from cairn import (
    ABI_JSON,
    ABIDecodingError,
    Constructor,
    ContractABI,
    Fields,
    FieldValues,
    Function,
    Methods,
    Mutability,
    ValidationError,
    abi,
    get_abi_structs,
)


def test_field_values() -> None:
    vals = FieldValues([("a", 1), ("b", 2)])
    assert vals.as_dict == dict(a=1, b=2)
    assert vals.as_tuple == (1, 2)
    assert vals["b"] == 2
    assert vals[0] == 1
    assert vals.b == 2
    assert len(vals) == 2
    assert vals.names == ("a", "b")
    assert repr(vals) == "FieldValues([('a', 1), ('b', 2)])"

    with pytest.raises(AttributeError):
        _ = vals.c

    with pytest.raises(ValueError, match="The values cannot have repeating names"):
        FieldValues([("a", 1), ("a", 2)])


def test_field_values_partially_named() -> None:
    vals = FieldValues([("a", 1), (None, 2)])
    with pytest.raises(
        ValueError,
        match="This structure has some anonymous fields "
        "and therefore is not representable as a `dict`",
    ):
        _ = vals.as_dict

    assert vals.as_tuple == (1, 2)
    assert vals.a == 1
    assert vals["a"] == 1
    assert vals[1] == 2


def test_fields_from_dict() -> None:
    fields = Fields(dict(a=abi.uint(8), b=abi.bool))
    assert str(fields) == "(a: u8, b: bool)"
    assert fields.encode([1, True]) == [1, 1]
    assert fields.encode(dict(b=True, a=1)) == [1, 1]
    assert fields.decode(fields.encode([1, True])).as_dict == dict(b=True, a=1)
    assert fields.decode(fields.encode([1, True])).as_tuple == (1, True)


def test_fields_from_list() -> None:
    fields = Fields([("a", abi.uint(8)), (None, abi.bool)])
    assert str(fields) == "(a: u8, bool)"
    assert len(fields) == 2
    assert fields.decode(fields.encode([1, True])).as_tuple == (1, True)

    # Cannot be keyed by names if some of them are missing
    with pytest.raises(ValidationError, match=r"Expected arguments \['a', None\]"):
        fields.encode(dict(a=1))


def test_fields_errors() -> None:
    fields = Fields(dict(a=abi.felt, b=abi.felt))

    with pytest.raises(
        ValidationError,
        match="Invalid number of arguments, expected 2 arguments, but got 1",
    ):
        fields.validate([1])

    with pytest.raises(ValidationError, match=r"Expected arguments \['a', 'b'\], got \['a', 'c'\]"):
        fields.validate(dict(a=1, c=2))

    with pytest.raises(ABIDecodingError, match="1 felts left over after decoding"):
        fields.decode([1, 2, 3])

    with pytest.raises(ABIDecodingError, match="Unexpected end of data"):
        fields.decode([1])


def test_fields_merge_array_length() -> None:
    fields = Fields.from_json(
        [
            {"name": "owner", "type": "felt"},
            {"name": "values_len", "type": "felt"},
            {"name": "values", "type": "felt*"},
            # Not followed by the matching pointer, so stays a separate field
            {"name": "count_len", "type": "felt"},
        ],
        lambda _name: None,
    )
    assert fields.names == ("owner", "values", "count_len")
    assert fields.types == (abi.felt, abi.array(abi.felt), abi.felt)
    assert fields.encode([1, [5, 6], 7]) == [1, 2, 5, 6, 7]


def test_mutability() -> None:
    assert Mutability.from_json({"stateMutability": "view"}) == Mutability.VIEW
    assert Mutability.from_json({"state_mutability": "view"}) == Mutability.VIEW
    assert Mutability.from_json({"state_mutability": "external"}) == Mutability.EXTERNAL
    assert Mutability.from_json({}) == Mutability.EXTERNAL
    assert not Mutability.VIEW.mutating
    assert Mutability.EXTERNAL.mutating


def test_function() -> None:
    func = Function(
        "transfer",
        Mutability.EXTERNAL,
        inputs=dict(recipient=abi.felt, amount=abi.u256),
        outputs=[(None, abi.bool)],
    )
    assert func.mutating
    assert str(func) == "fn transfer(recipient: felt252, amount: u256) -> (bool) external"

    view = Function("get", Mutability.VIEW, inputs=[])
    assert not view.mutating
    assert len(view.outputs) == 0
    assert str(view) == "fn get() view"

    with pytest.raises(ValueError, match="type='function'"):
        Function.from_json({"type": "constructor", "inputs": []}, lambda _name: None)


def test_constructor() -> None:
    constructor = Constructor.from_json(
        {"type": "constructor", "inputs": [{"name": "a", "type": "felt"}]}, lambda _name: None
    )
    assert str(constructor) == "constructor(a: felt252)"

    with pytest.raises(ValueError, match="type='constructor'"):
        Constructor.from_json({"type": "function", "inputs": []}, lambda _name: None)


def test_methods() -> None:
    first = Function("first", Mutability.VIEW, inputs=[])
    second = Function("second", Mutability.EXTERNAL, inputs=[])
    methods = Methods(dict(first=first, second=second))

    assert methods.first is first
    assert methods["second"] is second
    assert "first" in methods
    assert "third" not in methods
    assert len(methods) == 2
    assert list(methods) == [first, second]
    assert methods.names() == ["first", "second"]

    with pytest.raises(AttributeError):
        _ = methods.third
    with pytest.raises(KeyError):
        _ = methods["third"]


def test_contract_abi_cairo1(cairo1_abi: ABI_JSON) -> None:
    cabi = ContractABI.from_json(cairo1_abi)

    assert cabi.function.names() == [
        "get_counter",
        "increase",
        "echo_segment",
        "echo_many",
        "echo_option",
        "attach",
    ]

    # The first declaration wins
    assert len(cabi.function.get_counter.inputs) == 0
    assert cabi.function.get_counter.mutability == Mutability.VIEW
    assert cabi.function.increase.mutability == Mutability.EXTERNAL

    assert cabi.constructor.inputs.names == ("initial", "owner")
    assert cabi.constructor.inputs.types == (abi.felt, abi.address)

    point = abi.struct("test::Point", x=abi.felt, y=abi.felt)
    assert cabi.structs["test::Point"] == point
    assert cabi.structs["test::Segment"] == abi.struct(
        "test::Segment", start=point, end=point, weight=abi.u256
    )

    # Outputs of Cairo 1 functions are anonymous
    assert cabi.function.echo_segment.outputs.names == (None,)
    assert cabi.function.echo_option.inputs.types == (
        abi.enum("core::option::Option::<core::felt252>", {"Some": abi.felt, "None": abi.unit}),
    )


def test_contract_abi_cairo0(cairo0_abi: ABI_JSON) -> None:
    cabi = ContractABI.from_json(cairo0_abi)

    assert cabi.function.names() == [
        "balanceOf",
        "transfer",
        "store_pairs",
        "echo_pairs",
        "name",
        "get_tuple",
    ]
    assert cabi.function.balanceOf.mutability == Mutability.VIEW
    # No mutability declared
    assert cabi.function.transfer.mutability == Mutability.EXTERNAL

    pair = abi.struct("Pair", key=abi.felt, value=abi.felt)
    assert cabi.function.store_pairs.inputs.names == ("pairs",)
    assert cabi.function.store_pairs.inputs.types == (abi.array(pair),)
    assert cabi.function.echo_pairs.outputs.names == ("pairs",)
    assert cabi.function.balanceOf.outputs.types == (abi.u256,)
    assert cabi.constructor.inputs.types == (abi.felt, abi.u256)


def test_contract_abi_errors() -> None:
    constructor = {"type": "constructor", "name": "constructor", "inputs": []}
    with pytest.raises(ValueError, match="more than one constructor"):
        ContractABI.from_json([constructor, constructor])

    with pytest.raises(ValueError, match="Unknown ABI entry type: something"):
        ContractABI.from_json([{"type": "something", "name": "x"}])

    # Unknown types do not prevent the ABI from being built
    cabi = ContractABI.from_json(
        [{"type": "function", "name": "f", "inputs": [{"name": "a", "type": "Missing"}]}]
    )
    assert str(cabi.function.f) == "fn f(a: Missing) external"


def test_contract_abi_defaults() -> None:
    cabi = ContractABI()
    assert len(cabi.constructor.inputs) == 0
    assert len(cabi.function) == 0
    assert str(cabi) == "{\n    constructor()\n}"


def test_struct_declaration_order() -> None:
    # Structs can refer to the ones declared later
    cabi = ContractABI.from_json(
        [
            {"type": "struct", "name": "Outer", "members": [{"name": "inner", "type": "Inner"}]},
            {"type": "struct", "name": "Inner", "members": [{"name": "a", "type": "felt"}]},
        ]
    )
    inner = abi.struct("Inner", a=abi.felt)
    assert cabi.structs["Outer"] == abi.struct("Outer", inner=inner)


def test_get_abi_structs(cairo0_abi: ABI_JSON, cairo1_abi: ABI_JSON) -> None:
    assert list(get_abi_structs(cairo0_abi)) == ["Uint256", "Pair"]
    # Declarations inside interfaces are found too
    assert list(get_abi_structs(cairo1_abi)) == [
        "core::integer::u256",
        "test::Point",
        "test::Segment",
    ]

    first = {"type": "struct", "name": "A", "members": [{"name": "a", "type": "felt"}]}
    second = {"type": "struct", "name": "A", "members": []}
    assert get_abi_structs([first, second])["A"] is first
