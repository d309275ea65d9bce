"""Tests for the query parameter codec."""

from dataclasses import dataclass, field
from decimal import Decimal

import pytest

from tradewire.enums import OrderSide
from tradewire.errors import InvalidInputError
from tradewire.params import encode_params, param, to_params


class TestToParams:
    """Tests for to_params."""

    @pytest.mark.parametrize("value", [123, "symbol", {"a": "b"}, None])
    def test_rejects_non_records(self, value):
        with pytest.raises(InvalidInputError):
            to_params(value)

    def test_rejects_dataclass_type(self):
        @dataclass
        class Empty:
            pass

        with pytest.raises(InvalidInputError):
            to_params(Empty)

    def test_empty_record(self):
        @dataclass
        class Empty:
            pass

        assert to_params(Empty()) == {}

    def test_private_fields_skipped(self):
        @dataclass
        class Record:
            _private: str = "privateField"
            public: str = "publicField"

        assert to_params(Record()) == {"public": "publicField"}

    def test_dash_name_always_omitted(self):
        @dataclass
        class Record:
            omit_me: str = param("-", default="whoops...")
            show_me: str = "someValue"

        assert to_params(Record()) == {"show_me": "someValue"}

    def test_aliasing(self):
        @dataclass
        class Record:
            some_name: str = param("anothername", default="someValue")

        assert to_params(Record()) == {"anothername": "someValue"}

    def test_non_string_values(self):
        @dataclass
        class Record:
            big: Decimal = Decimal("1.25")
            count: int = 1234
            ratio: float = 2.5
            flag: bool = True
            side: OrderSide = OrderSide.BUY

        assert to_params(Record()) == {
            "big": "1.25",
            "count": "1234",
            "ratio": "2.5",
            "flag": "true",
            "side": "BUY",
        }

    def test_decimal_rendered_without_exponent(self):
        @dataclass
        class Record:
            small: Decimal = Decimal("1E-8")
            large: Decimal = Decimal("1E+3")
            trailing: Decimal = Decimal("0.10")

        assert to_params(Record()) == {
            "small": "0.00000001",
            "large": "1000",
            "trailing": "0.10",
        }

    def test_omitempty(self):
        @dataclass
        class Record:
            empty_int: int = param("EmptyInt", omitempty=True, default=0)
            empty_decimal: Decimal | None = param("EmptyDecimal", omitempty=True)
            empty_string: str = param("EmptyString", omitempty=True, default="")
            empty_bool: bool = param("EmptyBool", omitempty=True, default=False)
            non_empty_int: int = param("NonEmptyInt", omitempty=True, default=1)
            non_empty_decimal: Decimal | None = param("NonEmptyDecimal", omitempty=True, default=Decimal(2))
            non_empty_string: str = param("NonEmptyString", omitempty=True, default="three")

        assert to_params(Record()) == {
            "NonEmptyInt": "1",
            "NonEmptyDecimal": "2",
            "NonEmptyString": "three",
        }

    def test_zero_values_without_omitempty(self):
        @dataclass
        class Record:
            empty_int: int = param("EmptyInt", default=0)
            empty_decimal: Decimal | None = param("EmptyDecimal")
            empty_string: str = param("EmptyString", default="")
            empty_bool: bool = param("EmptyBool", default=False)

        assert to_params(Record()) == {
            "EmptyInt": "0",
            "EmptyDecimal": "",
            "EmptyString": "",
            "EmptyBool": "false",
        }

    def test_zero_value_with_empty_value_override(self):
        @dataclass
        class Record:
            empty_decimal: Decimal | None = param("EmptyDecimal", empty_value="someString")
            filled: str = param("Filled", empty_value="unused", default="value")

        assert to_params(Record()) == {"EmptyDecimal": "someString", "Filled": "value"}

    def test_omitempty_wins_over_empty_value(self):
        @dataclass
        class Record:
            value: str = param("value", omitempty=True, empty_value="x", default="")

        assert to_params(Record()) == {}

    def test_plain_dataclass_field_metadata_ignored(self):
        @dataclass
        class Record:
            tags: str = field(default="a", metadata={"other": 1})

        assert to_params(Record()) == {"tags": "a"}

    def test_deterministic(self):
        @dataclass
        class Record:
            symbol: str = "LTCBTC"
            price: Decimal = Decimal("0.1")

        assert to_params(Record()) == to_params(Record())
        assert encode_params(to_params(Record())) == encode_params(to_params(Record()))


class TestEncodeParams:
    """Tests for encode_params."""

    def test_sorted_by_key(self):
        assert encode_params({"timestamp": "1", "recvWindow": "2", "a": "3"}) == "a=3&recvWindow=2&timestamp=1"

    def test_escaping(self):
        assert encode_params({"id": "a b&c=d"}) == "id=a+b%26c%3Dd"

    def test_empty(self):
        assert encode_params({}) == ""
