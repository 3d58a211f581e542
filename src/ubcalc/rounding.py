from dataclasses import dataclass
from decimal import Decimal
from typing import Any
import math

from .core import (
    EXACT_SIGFIGS,
    Figure,
    StrOrNum,
    decimal_place,
    js_round,
    number_text,
    to_fixed,
    to_precision,
)


@dataclass(frozen=True)
class FormattedPair:
    """Display-ready value and uncertainty strings."""

    value: str
    uncertainty: str

    def __str__(self) -> str:
        return f"{self.value} ± {self.uncertainty}"


@dataclass(frozen=True)
class RangeRounding:
    formatted_max: FormattedPair
    formatted_min: FormattedPair
    formatted_mid: FormattedPair
    pseudo_uncertainty: float
    midpoint: float


def _round_places(value: float, uncertainty: float, places: int) -> FormattedPair:
    p = min(max(int(places), -300), 100)
    scale = 10.0 ** p
    v = js_round(value * scale) / scale
    u = js_round(uncertainty * scale) / scale
    if p < 0:
        return FormattedPair(number_text(js_round(v)), number_text(js_round(u)))
    return FormattedPair(to_fixed(v, p), to_fixed(u, p))


def _at_place(x: float, place: int) -> str:
    if place < 0:
        return number_text(js_round(x))
    return to_fixed(x, place)


def round_result(
    value: StrOrNum,
    uncertainty: StrOrNum,
    precision: int,
    use_decimal_place: bool,
) -> FormattedPair:
    """
    Round value ± uncertainty for display.

    With use_decimal_place both are rounded to `precision` decimals (negative
    precision rounds to tens, hundreds, ...). Otherwise `precision` is a
    significant-figure count for the value, while the uncertainty keeps its own
    leading-digit place and the value is aligned to it. EXACT_SIGFIGS leaves
    the value unrounded apart from that alignment, and fully unrounded when the
    uncertainty is zero. Never raises; bad input renders as "NaN".
    """
    v = Figure.from_text(value).magnitude
    unc = Figure.from_text(uncertainty)
    u = unc.magnitude

    if use_decimal_place:
        return _round_places(v, u, precision)

    unc_place = decimal_place(unc, unc)
    if precision >= EXACT_SIGFIGS:
        rounded = v
        # Exact result: nothing to align to, keep every digit.
        formatted = number_text(v) if u == 0 else _at_place(v, unc_place)
    else:
        formatted = to_precision(v, precision)
        rounded = float(formatted) if math.isfinite(v) else v

    formatted_unc = _at_place(u, unc_place)
    if unc_place >= 0 and math.isfinite(v):
        formatted = to_fixed(v, unc_place)

    # Exponent form is only kept for large magnitudes.
    if "e" in formatted.lower() and math.isfinite(rounded) and abs(rounded) < 1000:
        if u == 0:
            formatted = format(Decimal(formatted), "f")
        else:
            formatted = _at_place(rounded, unc_place)

    return FormattedPair(formatted, formatted_unc)


def round_range(extremes: Any, precision: int, use_decimal_place: bool) -> RangeRounding:
    """
    Format an actual-mode range: max, min and midpoint, each paired with half
    the spread as its uncertainty.
    """
    lo, hi = float(extremes.min), float(extremes.max)
    pseudo = abs(hi - lo) / 2
    midpoint = (lo + hi) / 2
    return RangeRounding(
        formatted_max=round_result(hi, pseudo, precision, use_decimal_place),
        formatted_min=round_result(lo, pseudo, precision, use_decimal_place),
        formatted_mid=round_result(midpoint, pseudo, precision, use_decimal_place),
        pseudo_uncertainty=pseudo,
        midpoint=midpoint,
    )
