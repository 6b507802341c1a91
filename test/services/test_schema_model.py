import pytest
import uuid
from datetime import datetime, timezone

from app.models.schemas import Column
from app.services.schema_model import COERCERS, is_complete, validate


def column(type_, **kwargs):
    return Column(name="value", type=type_, **kwargs)


class TestValidate:
    """Coercion rules per column type"""

    @pytest.mark.parametrize(
        "type_, raw, expected",
        [
            ("int", "42", 42),
            ("int", 7.0, 7),
            ("bigint", "9000000000", 9000000000),
            ("decimal", "9.99", 9.99),
            ("decimal", 3, 3.0),
            ("boolean", "yes", True),
            ("boolean", "FALSE", False),
            ("boolean", 1, True),
            ("varchar", 12, "12"),
            ("text", "long text", "long text"),
            ("json", '{"a": [1, 2]}', {"a": [1, 2]}),
            ("json", [1, "two"], [1, "two"]),
        ],
    )
    def test_coerces_valid_values(self, type_, raw, expected):
        value, ok = validate(column(type_), raw)
        assert ok is True
        assert value == expected
        assert type(value) is type(expected)

    @pytest.mark.parametrize(
        "type_, raw",
        [
            ("int", "abc"),
            ("int", 1.5),
            ("int", True),
            ("int", 2**31),
            ("decimal", "nan"),
            ("decimal", "1e400"),
            ("decimal", "-1e400"),
            ("decimal", False),
            ("boolean", "maybe"),
            ("boolean", 2),
            ("varchar", {"a": 1}),
            ("datetime", "not a date"),
            ("json", "{broken"),
            ("json", float("nan")),
            ("uuid", "not-a-uuid"),
        ],
    )
    def test_rejects_invalid_values(self, type_, raw):
        value, ok = validate(column(type_), raw)
        assert ok is False
        assert value is None

    def test_bigint_accepts_values_beyond_int_range(self):
        assert validate(column("bigint"), 2**31) == (2**31, True)
        assert validate(column("bigint"), 2**63)[1] is False

    def test_varchar_length_limit(self):
        short = column("varchar", length=3)
        assert validate(short, "abc") == ("abc", True)
        assert validate(short, "abcd") == (None, False)

    def test_decimal_precision_rounds(self):
        price = column("decimal", precision=2)
        assert validate(price, "19.999") == (20.0, True)
        assert validate(price, 9.99) == (9.99, True)

    def test_datetime_normalizes_to_iso(self):
        value, ok = validate(column("datetime"), "2024-05-01T10:00:00Z")
        assert ok is True
        assert value == "2024-05-01T10:00:00+00:00"

        moment = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert validate(column("datetime"), moment) == (moment.isoformat(), True)
        assert validate(column("datetime"), 0) == ("1970-01-01T00:00:00+00:00", True)

    def test_uuid_is_canonicalized(self):
        raw = uuid.uuid4()
        assert validate(column("uuid"), str(raw).upper()) == (str(raw), True)
        assert validate(column("uuid"), raw) == (str(raw), True)

    def test_absent_value_uses_default(self):
        flagged = column("boolean", default_value="true")
        assert validate(flagged, None) == (True, True)
        assert validate(flagged, "") == (True, True)

    def test_absent_value_without_default_is_none(self):
        assert validate(column("int"), None) == (None, True)
        assert validate(column("varchar"), "") == (None, True)

    def test_never_raises_on_odd_input(self):
        for type_ in COERCERS:
            value, ok = validate(column(type_), object())
            assert ok is False


class TestIsComplete:
    """Required-column completeness checks"""

    def test_required_column_needs_value(self):
        required = column("varchar", required=True)
        assert is_complete(required, "x") is True
        assert is_complete(required, None) is False
        assert is_complete(required, "") is False

    def test_optional_column_is_always_complete(self):
        assert is_complete(column("int"), None) is True

    def test_generated_column_is_always_complete(self):
        serial = column("int", required=True, primary_key=True, auto_increment=True)
        assert is_complete(serial, None) is True

    def test_false_and_zero_count_as_values(self):
        assert is_complete(column("boolean", required=True), False) is True
        assert is_complete(column("int", required=True), 0) is True


class TestDecimalRange:
    """Decimals must fit the stored float form"""

    def test_huge_value_with_precision_is_rejected(self):
        assert validate(column("decimal", precision=2), "1e400") == (None, False)

    def test_largest_float_is_kept(self):
        value, ok = validate(column("decimal"), "1e308")
        assert ok is True
        assert value == 1e308
