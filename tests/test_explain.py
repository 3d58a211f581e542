import pytest

from ubcalc import core
from ubcalc.calculator import calculate
from ubcalc.explain import StepBlock, explain, explain_str


def titles(calc):
    return [b.title for b in calc.steps]


# ------------------------------------------------------------
# Propagation steps
# ------------------------------------------------------------


def test_addition_steps():
    calc = calculate("4.5±0.3+2±0.1")
    assert titles(calc) == ["Expression", "Addition", "Rounding", "Final Result"]
    addition = calc.steps[1]
    assert addition.lines == (
        "4.5 ± 0.3 + 2 ± 0.1",
        "Value: 4.5 + 2 = 6.5",
        "Uncertainty: 0.3 + 0.1 = 0.4",
        "Result: 6.5 ± 0.4",
    )
    assert calc.steps[2].lines[0] == (
        "Rounding rule: Addition/Subtraction detected → use decimal places. "
        "Chosen precision: 1 (1 decimal place)."
    )
    assert calc.steps[-1].lines == ("6.5 ± 0.4",)


def test_multiplication_steps_show_relative_uncertainty():
    calc = calculate("2±0.1*3±0.2")
    lines = calc.steps[1].lines
    assert calc.steps[1].title == "Multiplication"
    assert "Relative uncertainty: (0.1/2) + (0.2/3) = 0.0500 + 0.0667 = 0.1167" in lines
    assert any(line.startswith("Absolute uncertainty: |6| × 0.1167 = 0.7") for line in lines)


def test_bracket_steps():
    calc = calculate("(2±0.1+3±0.2)*4±0")
    assert titles(calc) == [
        "Expression",
        "Solving inside brackets",
        "Addition",
        "Expression after brackets",
        "Multiplication",
        "Rounding",
        "Final Result",
    ]
    assert calc.steps[1].lines == ("(2±0.1+3±0.2)",)


def test_bracket_cap_adds_error_step():
    core.set_config(max_bracket_iterations=1)
    with pytest.warns(RuntimeWarning):
        calc = calculate("((1±0+1±0)+1±0)")
    assert "Error" in titles(calc)


# ------------------------------------------------------------
# Actual-mode steps
# ------------------------------------------------------------


def test_actual_steps():
    calc = calculate("10±1 - 2±0.5", mode="actual")
    assert titles(calc) == [
        "Expression",
        "Find Input Ranges of Values and their impact in expression",
        "Min-Max Expressions",
        "Rounding",
        "Uncertainty",
    ]
    ranges = calc.steps[1].lines
    assert ranges[:6] == (
        "Value 1 = 10",
        "Uncertainty = 1",
        "HIGH = 11",
        "Impact on expression: makes it larger",
        "LOW = 9",
        "Impact on expression: makes it smaller",
    )
    minmax = calc.steps[2].lines
    assert minmax[0] == "Minimum-case expression: 9-2.5"
    assert minmax[1] == "Maximum-case expression: 11-1.5"
    assert any(line.startswith("Interval-arithmetic bound") for line in minmax)
    assert calc.steps[3].lines[2] == "Range after rounding: 7 to 10"
    assert calc.steps[4].lines[-1] == "Rounded: 8 ± 2"


def test_actual_steps_mark_exact_values():
    calc = calculate("2±0.5*3", mode="actual")
    assert "Exact value: nominal used in both cases" in calc.steps[1].lines


# ------------------------------------------------------------
# Text rendering
# ------------------------------------------------------------


def test_explain_str_numbers_blocks():
    text = explain_str([StepBlock("Expression", ("1±0",)), StepBlock("Final Result", ("1 ± 0",))])
    assert text == "Step 1: Expression\n   1±0\n\nStep 2: Final Result\n   1 ± 0"


def test_explain_str_accepts_calculations():
    text = explain_str(calculate("4.5±0.3+2±0.1"))
    assert text.startswith("Step 1: Expression\n   4.5±0.3+2±0.1")
    assert "Step 4: Final Result" in text


def test_explain_prints(capsys):
    explain(calculate("1±0.1+1±0.1"))
    assert "Step 1: Expression" in capsys.readouterr().out


def test_explain_str_rejects_other_objects():
    with pytest.raises(TypeError):
        explain_str(42)
