"""
Tests for input coercion helpers and the error taxonomy.
"""

from decimal import Decimal

import pytest

from storefront.validation import (
    BusinessRuleError,
    CommerceError,
    NotFoundError,
    StateError,
    StoreUnavailableError,
    MAX_PRICE,
    ValidationError,
    check_price_range,
    parse_currency,
    require_positive_int,
    round_half_away,
    to_int,
    to_text,
)


class TestRoundHalfAway:

    @pytest.mark.parametrize("value, expected", [
        (2.5, 3),
        (3.5, 4),
        (-2.5, -3),
        (2.4, 2),
        (Decimal("89999.5"), 90000),
        (0, 0),
    ])
    def test_rounding(self, value, expected):
        assert round_half_away(value) == expected


class TestParseCurrency:

    @pytest.mark.parametrize("value, expected", [
        (1200, 1200),
        ("1,200,000 VND", 1200000),
        ("$45.50", 46),
        ("VND 1 200 000", 1200000),
        ("USD 12", 12),
        ("  80 ", 80),
        (99.4, 99),
        ("-15", -15),
    ])
    def test_parses_decorated_values(self, value, expected):
        assert parse_currency(value) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", "VND", True, "1.2.3"])
    def test_unreadable_values(self, value):
        assert parse_currency(value) is None

    @pytest.mark.parametrize("value", ["1e5", "12abc34", "1 000 x 2", "price: 5 each"])
    def test_letters_inside_the_number_are_rejected(self, value):
        # "1e5" must not collapse to 15
        assert parse_currency(value) is None


class TestCheckPriceRange:

    def test_missing_price_passes_through(self):
        assert check_price_range(None, "cost_price") is None

    @pytest.mark.parametrize("value", [0, 1, MAX_PRICE])
    def test_bounds_are_inclusive(self, value):
        assert check_price_range(value, "cost_price") == value

    @pytest.mark.parametrize("value", [-1, MAX_PRICE + 1, 10 ** 20])
    def test_out_of_range_rejected_with_details(self, value):
        with pytest.raises(ValidationError) as exc:
            check_price_range(value, "selling_price", details={"row": 3})
        assert exc.value.details == {"row": 3, "selling_price": value}

    def test_custom_error_class(self):
        with pytest.raises(BusinessRuleError):
            check_price_range(-5, "cost_price", BusinessRuleError)


class TestCoercion:

    @pytest.mark.parametrize("value, expected", [
        ("12", 12),
        (" 7 ", 7),
        (3.0, 3),
        ("4.0", 4),
        (1.5, None),
        ("abc", None),
        ("", None),
        (None, None),
        (False, None),
    ])
    def test_to_int(self, value, expected):
        assert to_int(value) == expected

    def test_to_text(self):
        assert to_text("  hi ") == "hi"
        assert to_text("   ") is None
        assert to_text(None) is None
        assert to_text(5) == "5"

    def test_require_positive_int(self):
        assert require_positive_int("3", "quantity") == 3
        with pytest.raises(ValidationError) as exc:
            require_positive_int(0, "quantity")
        assert exc.value.message == "quantity must be a positive integer"
        with pytest.raises(StateError):
            require_positive_int(-1, "quantity", error_cls=StateError)


class TestErrorTaxonomy:

    @pytest.mark.parametrize("cls, status", [
        (NotFoundError, 404),
        (ValidationError, 400),
        (StateError, 409),
        (BusinessRuleError, 422),
        (StoreUnavailableError, 503),
    ])
    def test_status_codes(self, cls, status):
        err = cls("boom")
        assert isinstance(err, CommerceError)
        assert err.status_code == status

    def test_to_dict_includes_details_only_when_present(self):
        assert ValidationError("bad").to_dict() == {"error": "bad"}
        assert NotFoundError("gone", details={"id": 3}).to_dict() == {"error": "gone", "details": {"id": 3}}
