from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union
import math
import warnings

from . import core
from .evaluator import ExtremalResult, evaluate_extremes
from .explain import StepBlock, Trace, build_actual_steps, build_propagation_steps
from .parser import TokenStream, form_expression, parse, parse_rows
from .precision import Precision, RoundingOverride, determine_precision, rounding_reason
from .rounding import FormattedPair, RangeRounding, round_range, round_result
from .solver import PropagationResult, solve

MODES = ("uncertainty", "actual")

Source = Union[str, Sequence[Any]]


@dataclass
class PropagationCalculation:
    expression: str
    tokens: TokenStream
    result: PropagationResult
    trace: Trace
    final: FormattedPair
    precision: Precision
    reason: str
    steps: List[StepBlock] = field(default_factory=list)
    display_min: float = math.nan
    display_max: float = math.nan
    extremes: Optional[ExtremalResult] = None

    def __str__(self) -> str:
        return str(self.final)


@dataclass
class ActualCalculation:
    expression: str
    tokens: TokenStream
    metadata: PropagationResult
    extremes: ExtremalResult
    rounding: RangeRounding
    precision: Precision
    reason: str
    steps: List[StepBlock] = field(default_factory=list)

    @property
    def formatted_min(self) -> FormattedPair:
        return self.rounding.formatted_min

    @property
    def formatted_max(self) -> FormattedPair:
        return self.rounding.formatted_max

    @property
    def formatted_mid(self) -> FormattedPair:
        return self.rounding.formatted_mid

    def __str__(self) -> str:
        return str(self.rounding.formatted_mid)


def _prepare(source: Source) -> Tuple[TokenStream, str]:
    tokens = parse(source) if isinstance(source, str) else parse_rows(source)
    return tokens, form_expression(tokens)


def _as_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return math.nan


def _warn_nan(pair: FormattedPair, expression: str) -> None:
    if core.CONFIG.warn_on_nan and ("NaN" in pair.value or "NaN" in pair.uncertainty):
        warnings.warn(f"Calculation of '{expression}' produced NaN.", RuntimeWarning, stacklevel=3)


def calculate_propagation(source: Source, override: Optional[RoundingOverride] = None) -> PropagationCalculation:
    """
    Formal propagation: fold the expression with the error rules, pick the
    precision from the operations used and round.
    """
    tokens, expression = _prepare(source)
    trace: Trace = []
    result = solve(expression, tokens, trace)
    precision = determine_precision(result, override, tokens)
    final = round_result(result.total, result.uncertainty, precision.precision, precision.use_decimal_place)
    reason = rounding_reason(result)
    steps = build_propagation_steps(expression, trace, result, final, precision, reason)

    value, unc = _as_float(final.value), _as_float(final.uncertainty)
    _warn_nan(final, expression)
    return PropagationCalculation(
        expression=expression,
        tokens=tokens,
        result=result,
        trace=trace,
        final=final,
        precision=precision,
        reason=reason,
        steps=steps,
        display_min=value - unc,
        display_max=value + unc,
        extremes=evaluate_extremes(tokens),
    )


def calculate_actual_values(source: Source, override: Optional[RoundingOverride] = None) -> ActualCalculation:
    """
    Actual-value mode: tight min/max from directional bounds, reported as
    midpoint ± half range. Precision still follows the operations a
    propagation solve would use.
    """
    tokens, expression = _prepare(source)
    trace: Trace = []
    extremes = evaluate_extremes(tokens, trace)
    metadata = solve(expression, tokens)
    precision = determine_precision(metadata, override, tokens)
    rounding = round_range(extremes, precision.precision, precision.use_decimal_place)
    reason = rounding_reason(metadata)
    steps = build_actual_steps(expression, extremes, rounding, reason)

    _warn_nan(rounding.formatted_mid, expression)
    return ActualCalculation(
        expression=expression,
        tokens=tokens,
        metadata=metadata,
        extremes=extremes,
        rounding=rounding,
        precision=precision,
        reason=reason,
        steps=steps,
    )


def calculate(
    source: Source,
    mode: str = "uncertainty",
    override: Optional[RoundingOverride] = None,
) -> Union[PropagationCalculation, ActualCalculation]:
    """
    Run one calculation on free text ("4.5±0.3+2±0.1") or form rows.

    mode is "uncertainty" (propagation) or "actual" (min/max range).
    """
    m = (mode or "").strip().lower()
    if m not in MODES:
        raise ValueError(f"Unknown mode '{mode}'. Choose from: {list(MODES)}")
    if m == "actual":
        return calculate_actual_values(source, override)
    return calculate_propagation(source, override)
