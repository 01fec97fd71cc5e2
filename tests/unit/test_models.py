"""Unit tests for instruments, options and the response model."""

import pytest

from payment_adapters.models import (
    Address,
    CreditCard,
    ErrorKind,
    OperationOptions,
    Response,
    StoredToken,
    UnsupportedCurrency,
)


class TestCreditCard:
    """Tests for CreditCard."""

    def test_repr_hides_number_and_cvv(self, credit_card):
        """Test that card data never shows up in repr."""
        text = repr(credit_card)

        assert "4005550000000019" not in text
        assert "123" not in text
        assert "Longbob" in text

    def test_normalizes_fields(self):
        card = CreditCard(number="4242 4242 4242 4242", month="9", year=27, verification_value=415)

        assert card.number == "4242424242424242"
        assert card.month == 9
        assert card.year == 2027
        assert card.verification_value == "415"

    @pytest.mark.parametrize(
        "number, brand",
        [
            ("4242424242424242", "visa"),
            ("5555555555554444", "master"),
            ("2223003122003222", "master"),
            ("378282246310005", "american_express"),
            ("6011111111111117", "discover"),
            ("3056930009020004", "unknown"),
        ],
    )
    def test_brand(self, number, brand):
        assert CreditCard(number=number, month=1, year=2030).brand == brand

    def test_expiry_formats(self, credit_card):
        assert credit_card.expiry("YYMM") == "3502"
        assert credit_card.expiry("MM/YYYY") == "02/2035"
        assert credit_card.two_digit_month() == "02"
        assert credit_card.two_digit_year() == "35"

    def test_unknown_expiry_format(self, credit_card):
        with pytest.raises(ValueError):
            credit_card.expiry("YYYY-MM")

    def test_sensitive_values(self, credit_card):
        assert credit_card.sensitive_values() == ("4005550000000019", "123")
        assert CreditCard(number="4242424242424242", month=1, year=2030).sensitive_values() == (
            "4242424242424242",
        )

    def test_last_four_and_name(self, credit_card):
        assert credit_card.last_four == "0019"
        assert credit_card.name == "Longbob Longsen"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"number": "4242abcd42424242", "month": 1, "year": 2030},
            {"number": "42424242", "month": 1, "year": 2030},
            {"number": "4242424242424242", "month": 13, "year": 2030},
            {"number": "4242424242424242", "month": 1, "year": 2030, "verification_value": "12"},
        ],
    )
    def test_invalid_cards(self, kwargs):
        with pytest.raises(ValueError):
            CreditCard(**kwargs)

    def test_stored_token_requires_value(self):
        with pytest.raises(ValueError):
            StoredToken(token="")
        assert StoredToken(token="8519371934460009").sensitive_values() == ()


class TestOperationOptions:
    """Tests for OperationOptions."""

    def test_from_none(self):
        options = OperationOptions.from_mapping(None)

        assert options.order_id is None
        assert options.currency is None
        assert options.apply_3d_secure is False

    def test_recognized_keys(self):
        options = OperationOptions.from_mapping(
            {
                "order_id": 1,
                "currency": "usd",
                "description": "Store Purchase",
                "billing_address": {"name": "Jim Smith", "address1": "456 My Street", "zip": "K1C2N6"},
            }
        )

        assert options.order_id == "1"
        assert options.currency == "USD"
        assert options.description == "Store Purchase"
        assert options.billing_address == Address(name="Jim Smith", address1="456 My Street", zip="K1C2N6")

    def test_unknown_keys_are_kept_opaque(self):
        """Test that mapping values become extensions and scalars land in extra."""
        options = OperationOptions.from_mapping(
            {
                "merchant_return_url": "http://localhost/index.html",
                "passenger_itinerary_data": {"FlightNumber_1": "111111"},
            }
        )

        assert options.get("merchant_return_url") == "http://localhost/index.html"
        assert options.extension("passenger_itinerary_data") == {"FlightNumber_1": "111111"}
        assert options.get("missing", "default") == "default"

    @pytest.mark.parametrize("value, expected", [("1", True), (True, True), ("true", True), ("0", False), (None, False)])
    def test_apply_3d_secure(self, value, expected):
        assert OperationOptions.from_mapping({"apply_3d_secure": value}).apply_3d_secure is expected

    def test_from_options_instance_is_identity(self):
        options = OperationOptions(order_id="1")

        assert OperationOptions.from_mapping(options) is options

    def test_bad_currency_raises(self):
        with pytest.raises(UnsupportedCurrency):
            OperationOptions.from_mapping({"currency": "dollars"})

    def test_merge(self):
        """Test that merge replaces known fields and adds unknown ones."""
        options = OperationOptions.from_mapping({"order_id": "1"}).merge(
            currency="USD",
            shipping_address={"name": "Jim", "phone": "555"},
            terminal_id="2",
        )

        assert options.order_id == "1"
        assert options.currency == "USD"
        assert options.shipping_address.phone == "555"
        assert options.get("terminal_id") == "2"

    def test_extra_is_read_only(self):
        options = OperationOptions.from_mapping({"foo": "bar"})

        with pytest.raises(TypeError):
            options.extra["foo"] = "baz"


class TestAddress:
    """Tests for Address."""

    def test_phone_number_takes_precedence(self):
        address = Address.from_mapping({"phone": "(555)555-5555", "phone_number": "000-000-00-000"})

        assert address.phone == "000-000-00-000"

    def test_split_name(self):
        assert Address(name="Jim van Smith").split_name() == ("Jim", "van Smith")
        assert Address(name="Cher").split_name() == ("Cher", None)
        assert Address().split_name() == (None, None)


class TestResponse:
    """Tests for Response validation."""

    def test_success_requires_success_kind(self):
        with pytest.raises(ValueError):
            Response(success=True, message="Succeeded", error_kind=ErrorKind.DECLINED)

    def test_failure_requires_failure_kind(self):
        with pytest.raises(ValueError):
            Response(success=False, message="Declined")

    def test_defaults(self):
        response = Response(success=True, message="Succeeded")

        assert response.params == {}
        assert response.authorization is None
        assert response.error_code is None
        assert response.test is False
