import math

import pytest

from ubcalc import core
from ubcalc.core import (
    EXACT_SIGFIGS,
    Figure,
    Operand,
    debug_number,
    decimal_place,
    js_div,
    js_round,
    number_text,
    places_from_str,
    significant_figures,
    sigfigs_from_str,
    to_fixed,
    to_precision,
)


# ------------------------------------------------------------
# Number rendering
# ------------------------------------------------------------


@pytest.mark.parametrize(
    "x, expected",
    [
        (6.0, "6"),
        (1.5, "1.5"),
        (-0.25, "-0.25"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1e21, "1e+21"),
        (0.1 + 0.2, "0.30000000000000004"),
        (math.nan, "NaN"),
        (-math.inf, "-Infinity"),
    ],
)
def test_number_text(x, expected):
    assert number_text(x) == expected


@pytest.mark.parametrize(
    "x, p, expected",
    [
        (20, 2, "20"),
        (1234, 2, "1.2e+3"),
        (9.99, 2, "10"),
        (2.5, 1, "3"),
        (0, 3, "0.00"),
        (100, 1, "1e+2"),
        (6, 2, "6.0"),
        (0.000123, 2, "0.00012"),
    ],
)
def test_to_precision(x, p, expected):
    assert to_precision(x, p) == expected


def test_to_fixed_rounds_the_stored_binary_value():
    assert to_fixed(1.005, 2) == "1.00"
    assert to_fixed(2.5, 0) == "3"
    assert to_fixed(-1.25, 1) == "-1.3"
    assert to_fixed(-0.0, 1) == "0.0"
    assert to_fixed(1e21, 2) == "1e+21"


def test_js_round_and_division():
    assert js_round(2.5) == 3
    assert js_round(-2.5) == -2
    assert js_round(0.49999999999999994) == 0
    assert js_round(-0.5) == 0
    assert js_div(1.0, 0.0) == math.inf
    assert js_div(-1.0, 0.0) == -math.inf
    assert js_div(1.0, -0.0) == -math.inf
    assert math.isnan(js_div(0.0, 0.0))


def test_debug_number_drops_float_noise():
    assert debug_number(3.8999999999999995) == "3.9"
    assert debug_number(0.1 + 0.2) == "0.3"
    assert debug_number("abc") == "NaN"


def test_debug_number_uses_configured_digits():
    core.set_config(debug_digits=3)
    assert debug_number(3.14159) == "3.14"


# ------------------------------------------------------------
# Significant figures and decimal places
# ------------------------------------------------------------


def test_significant_figures_with_zero_uncertainty():
    assert significant_figures("5.00", "0") == 3
    assert significant_figures("500", "0") == EXACT_SIGFIGS


def test_significant_figures_from_uncertainty():
    assert significant_figures("10", "1") == 2
    assert significant_figures("2", "0.1") == 2
    assert significant_figures("0", "0.1") == 1


def test_sigfigs_from_str_counts_conventionally():
    assert sigfigs_from_str("0.05") == 1
    assert sigfigs_from_str("1200") == 4
    assert sigfigs_from_str("2.50") == 3
    assert sigfigs_from_str("1.50e3") == 3
    assert sigfigs_from_str("0.0") == 1


def test_decimal_place_without_uncertainty():
    assert decimal_place("9000") == -3
    assert decimal_place("0.45", None) == 2
    assert decimal_place("450") == -1
    assert decimal_place("7") == 0


def test_decimal_place_from_uncertainty():
    assert decimal_place("5", "200") == -2
    assert decimal_place("5", "0.15") == 1
    assert decimal_place("4.5", "0.3") == 1
    assert decimal_place("3.1", "0.05") == 2


def test_places_from_str_edge_cases():
    assert places_from_str("0") == -1
    assert places_from_str("1.5e3") == -2
    assert places_from_str("2.50") == 2


# ------------------------------------------------------------
# Value types
# ------------------------------------------------------------


def test_figure_keeps_written_digits():
    f = Figure.from_text(" 2.50 ")
    assert f.digits == "2.50"
    assert f.magnitude == 2.5
    assert str(Figure.from_number(6.0)) == "6"


def test_operand_from_value_bound():
    op = Operand.from_value_bound("4.5", "0.3", open_parens=1)
    assert op.text() == "4.5±0.3"
    assert op.bracketed() == "(4.5±0.3"
    assert op.high == pytest.approx(4.8)
    assert op.low == pytest.approx(4.2)
    assert not op.is_exact


def test_operand_blank_bound_is_exact():
    op = Operand.from_value_bound("2", "")
    assert op.is_exact
    assert op.text() == "2±0"


@pytest.mark.parametrize(
    "value, bound",
    [("", "0"), ("abc", "0"), ("5", "-1"), ("5", "x")],
)
def test_operand_rejects_bad_fields(value, bound):
    with pytest.raises(ValueError):
        Operand.from_value_bound(value, bound)


# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------


def test_set_config_keeps_unset_fields():
    core.set_config(debug_digits=4)
    assert core.CONFIG.debug_digits == 4
    assert core.CONFIG.max_bracket_iterations == 50
    core.reset_config()
    assert core.CONFIG.debug_digits == 10


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_bracket_iterations": 0},
        {"debug_digits": 18},
        {"rounding_mode": "banker"},
        {"rounding_digits": -1},
    ],
)
def test_set_config_validates(kwargs):
    with pytest.raises(ValueError):
        core.set_config(**kwargs)
