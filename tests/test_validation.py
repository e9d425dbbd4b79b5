import pytest

from backend.app.utils.error_handlers import ValidationError
from backend.app.utils.validation import (
    validate_id_list,
    validate_integer_field,
    validate_string_field,
    validate_weights,
)


class TestWeights:
    def test_exact_hundred(self):
        out = validate_weights({"a": 30, "b": 20, "c": 30, "d": 15, "e": 5})
        assert out == {"a": 30.0, "b": 20.0, "c": 30.0, "d": 15.0, "e": 5.0}

    def test_decimal_sum_is_exact(self):
        validate_weights({"a": 0.1, "b": 0.2, "c": 99.7})

    def test_sum_of_ninety_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_weights({"a": 30, "b": 20, "c": 20, "d": 15, "e": 5})
        assert exc.value.status_code == 400
        assert exc.value.details == {"total": 90.0}

    @pytest.mark.parametrize("bad", [-1, 101, None, "abc", True])
    def test_invalid_weight_values(self, bad):
        with pytest.raises(ValidationError):
            validate_weights({"a": bad, "b": 100})


class TestIdList:
    def test_dedupes_keeping_order(self):
        assert validate_id_list([3, 1, 3, 2, 1]) == ([3, 1, 2], [])

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            validate_id_list([])

    def test_malformed_entries_are_set_aside(self):
        ids, invalid = validate_id_list([1, 0, -1, "abc", None, 1, -1, "7"])
        assert ids == [1, 7]
        assert invalid == [0, -1, "abc", None]


def test_integer_field():
    assert validate_integer_field("5", "Count") == 5
    assert validate_integer_field(None, "Count", required=False) is None
    with pytest.raises(ValidationError):
        validate_integer_field(0, "Count", min_value=1)


def test_string_field():
    assert validate_string_field("  Interview  ", "Status", max_length=50) == "Interview"
    with pytest.raises(ValidationError):
        validate_string_field("", "Status", min_length=1)
