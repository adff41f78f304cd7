import pytest

from cairn import FIELD_PRIME, decode_short_string, encode_short_string, get_selector_from_name
from cairn._utils import normalize_address, parse_felt_string


def test_selector() -> None:
    assert (
        get_selector_from_name("transfer")
        == 0x83AFD3F4CAEDC6EEBF44246FE54E38C95E3179A5EC9EA81740ECA5B482D12E
    )
    selector = get_selector_from_name("get_counter")
    assert 0 <= selector < 2**250
    assert selector != get_selector_from_name("get_counter_")


def test_short_strings() -> None:
    assert encode_short_string("hello") == 0x68656C6C6F
    assert encode_short_string("") == 0
    assert decode_short_string(0x68656C6C6F) == "hello"
    assert decode_short_string(0) == ""

    longest = "x" * 31
    assert encode_short_string(longest) < FIELD_PRIME
    assert decode_short_string(encode_short_string(longest)) == longest

    with pytest.raises(ValueError, match="at most 31 characters, got 32"):
        encode_short_string("x" * 32)
    with pytest.raises(ValueError, match="must be ASCII"):
        encode_short_string("€")
    with pytest.raises(ValueError, match="Not a felt"):
        decode_short_string(FIELD_PRIME)


def test_parse_felt_string() -> None:
    assert parse_felt_string("0x1f") == 31
    assert parse_felt_string("0X1F") == 31
    assert parse_felt_string("31") == 31

    with pytest.raises(ValueError):
        parse_felt_string("0xzz")


def test_normalize_address() -> None:
    assert normalize_address(0xABC) == "0xabc"
    assert normalize_address("0xABC") == "0xabc"
