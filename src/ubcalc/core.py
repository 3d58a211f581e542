from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Optional, Union
import math

Number = Union[int, float]
StrOrNum = Union[str, Number]

# Sentinel sig-fig count for exact values (no decimal point, zero uncertainty).
EXACT_SIGFIGS = 999

ROUNDING_MODES = ("auto", "sigfig", "decimals")


@dataclass(frozen=True)
class CalcConfig:
    max_bracket_iterations: int = 50
    debug_digits: int = 10
    rounding_mode: str = "auto"
    rounding_digits: Optional[int] = None
    interval_bound: bool = True
    warn_on_nan: bool = True


CONFIG = CalcConfig()


def set_config(
    *,
    max_bracket_iterations: Optional[int] = None,
    debug_digits: Optional[int] = None,
    rounding_mode: Optional[str] = None,
    rounding_digits: Optional[int] = None,
    interval_bound: Optional[bool] = None,
    warn_on_nan: Optional[bool] = None,
) -> None:
    """Update global CONFIG flags."""
    global CONFIG
    if max_bracket_iterations is not None and max_bracket_iterations < 1:
        raise ValueError("max_bracket_iterations must be >= 1")
    if debug_digits is not None and not 1 <= debug_digits <= 17:
        raise ValueError("debug_digits must be between 1 and 17")
    if rounding_mode is not None and rounding_mode not in ROUNDING_MODES:
        raise ValueError(f"Unknown rounding mode '{rounding_mode}'. Choose from: {list(ROUNDING_MODES)}")
    if rounding_digits is not None and rounding_digits < 0:
        raise ValueError("rounding_digits must be >= 0")
    CONFIG = CalcConfig(
        max_bracket_iterations=CONFIG.max_bracket_iterations
        if max_bracket_iterations is None
        else max_bracket_iterations,
        debug_digits=CONFIG.debug_digits if debug_digits is None else debug_digits,
        rounding_mode=CONFIG.rounding_mode if rounding_mode is None else rounding_mode,
        rounding_digits=CONFIG.rounding_digits if rounding_digits is None else rounding_digits,
        interval_bound=CONFIG.interval_bound if interval_bound is None else interval_bound,
        warn_on_nan=CONFIG.warn_on_nan if warn_on_nan is None else warn_on_nan,
    )


def reset_config() -> None:
    """Restore the default CONFIG."""
    global CONFIG
    CONFIG = CalcConfig()


def parse_number(text: StrOrNum) -> float:
    """Parse a literal to float; anything unparseable becomes nan."""
    if isinstance(text, Figure):
        return text.magnitude
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        try:
            return float(text)
        except OverflowError:
            return math.copysign(math.inf, text)
    try:
        return float(str(text).strip())
    except (TypeError, ValueError):
        return math.nan


def number_text(x: Number) -> str:
    """
    Shortest round-trip rendering of a float, laid out like Number#toString:
    integers without '.0', plain decimals for 1e-7 < |x| < 1e21, otherwise
    exponent form such as '1e-7' or '1.5e+21'.
    """
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    _sign, digit_tuple, exp = Decimal(repr(abs(x))).normalize().as_tuple()
    s = "".join(str(d) for d in digit_tuple)
    k = len(s)
    n = exp + k
    if k <= n <= 21:
        out = s + "0" * (n - k)
    elif 0 < n <= 21:
        out = s[:n] + "." + s[n:]
    elif -6 < n <= 0:
        out = "0." + "0" * (-n) + s
    else:
        e = n - 1
        out = s[0] + ("." + s[1:] if k > 1 else "") + "e" + ("+" if e >= 0 else "-") + str(abs(e))
    return "-" + out if x < 0 else out


def to_precision(x: Number, precision: int) -> str:
    """Round to `precision` significant digits, half away from zero, keeping trailing zeros."""
    x = float(x)
    if not math.isfinite(x):
        return number_text(x)
    p = min(max(int(precision), 1), 100)
    if x == 0:
        return "0" if p == 1 else "0." + "0" * (p - 1)
    with localcontext() as ctx:
        ctx.prec = 200
        d = Decimal(x)
        e = d.adjusted()
        q = d.quantize(Decimal(1).scaleb(e - p + 1), rounding=ROUND_HALF_UP)
        if q.adjusted() > e:
            e += 1
            q = d.quantize(Decimal(1).scaleb(e - p + 1), rounding=ROUND_HALF_UP)
        if e < -6 or e >= p:
            mant = format(q.scaleb(-e), "f")
            return f"{mant}e{'+' if e >= 0 else '-'}{abs(e)}"
        return format(q, "f")


def to_fixed(x: Number, digits: int) -> str:
    """Render with exactly `digits` decimals, half away from zero."""
    x = float(x)
    if not math.isfinite(x) or abs(x) >= 1e21:
        return number_text(x)
    f = min(max(int(digits), 0), 100)
    if x == 0:
        x = 0.0
    with localcontext() as ctx:
        ctx.prec = 200
        q = Decimal(x).quantize(Decimal(1).scaleb(-f), rounding=ROUND_HALF_UP)
        return format(q, "f")


def js_round(x: Number) -> float:
    """Round half up (towards +inf); non-finite values pass through."""
    x = float(x)
    if not math.isfinite(x):
        return x
    r = math.floor(x)
    return float(r + (x - r >= 0.5))


def js_div(a: float, b: float) -> float:
    """IEEE division: x/0 -> +-inf, 0/0 -> nan."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def debug_number(n: StrOrNum, digits: Optional[int] = None) -> str:
    """Float for narrative text, trimmed to CONFIG.debug_digits significant digits."""
    x = parse_number(n)
    if not math.isfinite(x):
        return number_text(x)
    d = CONFIG.debug_digits if digits is None else digits
    return number_text(float(to_precision(x, d)))


@dataclass(frozen=True)
class Figure:
    """A numeric magnitude together with the digit string it is written as."""

    digits: str
    magnitude: float

    @staticmethod
    def from_text(text: StrOrNum) -> "Figure":
        if isinstance(text, Figure):
            return text
        if isinstance(text, str):
            s = text.strip()
            return Figure(s, parse_number(s))
        return Figure.from_number(text)

    @staticmethod
    def from_number(x: Number) -> "Figure":
        x = float(x)
        return Figure(number_text(x), x)

    def __str__(self) -> str:
        return self.digits


EXACT = Figure("0", 0.0)


@dataclass(frozen=True)
class Operand:
    """
    One measured quantity: value ± uncertainty, with the brackets opened
    before it and closed after it. Uncertainty "0" marks an exact value.
    """

    value: Figure
    uncertainty: Figure = EXACT
    open_parens: int = 0
    close_parens: int = 0

    @staticmethod
    def from_value_bound(
        value: StrOrNum,
        bound: Optional[StrOrNum] = "0",
        open_parens: int = 0,
        close_parens: int = 0,
    ) -> "Operand":
        """
        Create value ± bound from user-entered fields.

        A blank or missing bound means an exact value.
        """
        if isinstance(value, str) and not value.strip():
            raise ValueError("value is required.")
        v = Figure.from_text(value)
        if math.isnan(v.magnitude):
            raise ValueError(f"value {value!r} is not a valid number.")

        if bound is None or (isinstance(bound, str) and not bound.strip()):
            b = EXACT
        else:
            b = Figure.from_text(bound)
        if math.isnan(b.magnitude):
            raise ValueError(f"bound {bound!r} is not a valid number. Leave it blank for exact values.")
        if b.magnitude < 0:
            raise ValueError("bound must be >= 0")
        if open_parens < 0 or close_parens < 0:
            raise ValueError("bracket counts must be >= 0")
        return Operand(value=v, uncertainty=b, open_parens=open_parens, close_parens=close_parens)

    @property
    def nominal(self) -> float:
        return self.value.magnitude

    @property
    def error(self) -> float:
        return self.uncertainty.magnitude

    @property
    def is_exact(self) -> bool:
        return self.error == 0

    @property
    def high(self) -> float:
        return self.nominal + self.error

    @property
    def low(self) -> float:
        return self.nominal - self.error

    def text(self) -> str:
        return f"{self.value}±{self.uncertainty}"

    def bracketed(self) -> str:
        return "(" * self.open_parens + self.text() + ")" * self.close_parens

    def sigfigs(self) -> int:
        return significant_figures(self.value, self.uncertainty)

    def place(self) -> int:
        return decimal_place(self.value, self.uncertainty)


def _text(x: StrOrNum) -> str:
    if isinstance(x, Figure):
        return x.digits
    if isinstance(x, str):
        return x.strip()
    return number_text(x)


def _given(x: Optional[StrOrNum]) -> bool:
    return x is not None and _text(x) != ""


def order10(x: float) -> int:
    if x == 0:
        return 0
    return int(math.floor(math.log10(abs(x))))


def sigfigs_from_str(s: str) -> int:
    """Leading zeros never count; trailing zeros always do (integers included)."""
    s = s.strip().lower().lstrip("+-")
    mant = s.split("e", 1)[0]
    digits = "".join(c for c in mant if c.isdigit())
    if not digits:
        return 1
    significant = digits.lstrip("0")
    if not significant:
        if "." in mant:
            return max(1, len(mant.split(".", 1)[1]))
        return 1
    return len(significant)


def places_from_str(s: str) -> int:
    """
    Decimal place of the last written digit.

    "0.45" -> 2, "7" -> 0, "450" -> -1, "9000" -> -3, "1.5e3" -> -2.
    A bare "0" counts its zero as trailing (-1).
    """
    s = s.strip().lower().lstrip("+-")
    mant, _, exp = s.partition("e")
    try:
        shift = int(exp) if exp else 0
    except ValueError:
        shift = 0
    if "." in mant:
        return len(mant.split(".", 1)[1]) - shift
    digits = "".join(c for c in mant if c.isdigit())
    trailing = len(digits) - len(digits.rstrip("0"))
    return -trailing - shift


def significant_figures(value: StrOrNum, uncertainty: Optional[StrOrNum] = None) -> int:
    """
    Significant figures of `value`.

    With a positive uncertainty the count comes from the orders of magnitude
    of value and uncertainty. With zero uncertainty an integer literal is
    exact (EXACT_SIGFIGS) and a decimal literal keeps its written digits.
    """
    text = _text(value)
    counted = sigfigs_from_str(text)
    if not _given(uncertainty):
        return counted
    u = parse_number(uncertainty)
    if u == 0:
        return counted if "." in text else EXACT_SIGFIGS
    if u > 0 and math.isfinite(u):
        v = parse_number(text)
        if v == 0 or not math.isfinite(v):
            v = 0.1
        return max(1, order10(v) - order10(u) + 1)
    return counted


def _uncertainty_place(u: float) -> int:
    with localcontext() as ctx:
        ctx.prec = 50
        d = Decimal(repr(u))
        order = d.adjusted()
        coefficient = float(d.scaleb(-order))
    rounded = js_round(coefficient)
    final_order = order + (math.log10(coefficient) - math.log10(rounded))
    return -int(js_round(final_order))


def decimal_place(value: StrOrNum, uncertainty: Optional[StrOrNum] = None) -> int:
    """
    Decimal place a value is known to: positive = digits after the point,
    negative = rounding unit above the ones place (-2 is the hundreds place).

    A positive uncertainty decides it from its leading digit (0.3 -> 1,
    200 -> -2); otherwise the written digits of `value` do.
    """
    if _given(uncertainty):
        u = parse_number(uncertainty)
        if u > 0:
            if not math.isfinite(u):
                return 0
            return _uncertainty_place(u)
    return places_from_str(_text(value))
