"""Tests for ParameterDriver."""

import math

import pytest

from propjax.parameters import ParameterDriver


class TestParameterDriver:
    def test_defaults(self):
        driver = ParameterDriver("M2", 0.0, 2.0**-32)
        assert driver.value == 0.0
        assert not driver.selected
        assert driver.min_value == -math.inf

    def test_value_clipped_to_bounds(self):
        driver = ParameterDriver("GM", 3.986e14, 2.0**32, min_value=0.0)
        driver.value = -1.0
        assert driver.value == 0.0

    def test_normalized_value(self):
        driver = ParameterDriver("p", 10.0, 2.0)
        driver.value = 14.0
        assert driver.normalized_value == pytest.approx(2.0)
        driver.normalized_value = -1.0
        assert driver.value == pytest.approx(8.0)

    def test_reset_value(self):
        driver = ParameterDriver("p", 1.0, 1.0)
        driver.value = 3.0
        driver.reset_value()
        assert driver.value == 1.0

    @pytest.mark.parametrize("scale", [0.0, -1.0, math.nan])
    def test_invalid_scale(self, scale):
        with pytest.raises(ValueError, match="strictly positive scale"):
            ParameterDriver("p", 0.0, scale)

    def test_empty_name(self):
        with pytest.raises(ValueError, match="must not be empty"):
            ParameterDriver("", 0.0, 1.0)

    def test_inverted_bounds(self):
        with pytest.raises(ValueError, match="inverted bounds"):
            ParameterDriver("p", 0.0, 1.0, min_value=1.0, max_value=0.0)

    def test_repr(self):
        assert "M2" in repr(ParameterDriver("M2", 0.0, 1.0))
