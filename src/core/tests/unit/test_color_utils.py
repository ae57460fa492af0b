import numpy as np
import pytest
from pgvlift_core.color_utils import (
    color_name_to_hex,
    color_names_to_hex,
    colors_to_numeric,
    hex_to_numeric,
    numeric_to_hex,
)
from pgvlift_core.errors import FormatError


class TestHexToNumeric:
    @pytest.mark.parametrize(
        "color,expected",
        [("#FF0000", 16711680.0), ("00FF00", 65280.0), ("#0000ff", 255.0), ("#000000", 0.0), ("#FFFFFF", 16777215.0)],
    )
    def test_hex_to_numeric(self, color, expected):
        assert hex_to_numeric(color) == expected

    def test_not_hex(self):
        with pytest.raises(FormatError):
            hex_to_numeric("red")

    def test_not_a_string(self):
        with pytest.raises(FormatError):
            hex_to_numeric(None)

    def test_inverse(self):
        for value in (0, 255, 65280, 1193046, 16777215):
            assert hex_to_numeric(numeric_to_hex(value)) == value
        assert numeric_to_hex(65280) == "#00FF00"


class TestColorsToNumeric:
    def test_bad_values_become_nan(self):
        result = colors_to_numeric(["#FF0000", None, np.nan, "not-a-color", "0000FF"])
        assert result[0] == 16711680.0
        assert np.isnan(result[1:4]).all()
        assert result[4] == 255.0

    def test_empty(self):
        assert len(colors_to_numeric([])) == 0


class TestColorNames:
    def test_color_name_to_hex(self):
        assert color_name_to_hex("red") == "#FF0000"
        assert color_name_to_hex("blue") == "#0000FF"

    def test_unknown_name(self):
        with pytest.raises(FormatError):
            color_name_to_hex("no-such-color")

    def test_bulk(self):
        assert color_names_to_hex(["red", "blue", "red"]) == ["#FF0000", "#0000FF", "#FF0000"]
