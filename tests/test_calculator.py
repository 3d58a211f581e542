import warnings

import pytest

from ubcalc import core
from ubcalc.calculator import ActualCalculation, PropagationCalculation, calculate
from ubcalc.precision import RoundingOverride


# ------------------------------------------------------------
# Uncertainty mode
# ------------------------------------------------------------


def test_rows_add_to_decimal_places():
    calc = calculate([[0, "4.5", "0.3", 0], "+", [0, "2", "0.1", 0]], mode="uncertainty")
    assert isinstance(calc, PropagationCalculation)
    assert str(calc) == "6.5 ± 0.4"
    assert calc.precision.precision_type == "1 decimal place"
    assert calc.display_min == pytest.approx(6.1)
    assert calc.display_max == pytest.approx(6.9)


def test_multiply_by_exact_value():
    calc = calculate("10±1*2±0")
    assert str(calc) == "20 ± 2"
    assert calc.precision.precision == 2


def test_multiply_two_measurements():
    assert str(calculate("2±0.1*3±0.2")) == "6.0 ± 0.7"


def test_bracketed_sum_times_exact_value():
    calc = calculate("(2±0.1+3±0.2)*4±0")
    assert str(calc) == "20 ± 1"
    assert calc.expression == "(2±0.1+3±0.2)*4±0"


def test_mixed_expression_reason():
    calc = calculate("2±0.1*3±0.2+1±0.1")
    assert calc.reason.startswith("Mixed operations")
    assert calc.precision.use_decimal_place is False


def test_override_forces_decimal_places():
    calc = calculate("2±0.1*3±0.2", override=RoundingOverride.decimal_places(2))
    assert str(calc) == "6.00 ± 0.70"


def test_propagation_also_reports_extremes():
    calc = calculate("10±1 - 2±0.5")
    assert calc.extremes.max == pytest.approx(9.5)


# ------------------------------------------------------------
# Actual mode
# ------------------------------------------------------------


def test_actual_mode_range():
    calc = calculate("10±1 - 2±0.5", mode="actual")
    assert isinstance(calc, ActualCalculation)
    assert str(calc) == "8 ± 2"
    assert calc.formatted_min.value == "7"
    assert calc.formatted_max.value == "10"
    assert calc.precision.use_decimal_place


def test_mode_is_case_insensitive():
    assert isinstance(calculate("1±0.1+1±0.1", mode=" Actual "), ActualCalculation)


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        calculate("1±0.1", mode="quadrature")


# ------------------------------------------------------------
# Failure channels
# ------------------------------------------------------------


def test_empty_input_warns_about_nan():
    with pytest.warns(RuntimeWarning):
        calc = calculate("")
    assert str(calc) == "NaN ± NaN"


def test_division_by_exact_zero_warns():
    with pytest.warns(RuntimeWarning):
        calculate("5±0.5/0")


def test_nan_warning_can_be_disabled():
    core.set_config(warn_on_nan=False)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        calc = calculate("")
    assert calc.final.value == "NaN"


def test_invalid_rows_raise():
    with pytest.raises(ValueError):
        calculate([[0, "1", "-1", 0]])


# ------------------------------------------------------------
# Exact results
# ------------------------------------------------------------


def test_all_exact_expressions_keep_their_value():
    assert calculate("1±0/3±0").final.value == "0.3333333333333333"
    assert str(calculate("2×3÷4")) == "1.5 ± 0"


def test_tiny_exact_product_is_not_rounded_away():
    assert str(calculate("0.000000123*2.00")) == "0.000000246 ± 0"
