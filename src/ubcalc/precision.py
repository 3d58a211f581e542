from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from . import core
from .core import Operand

_PLACE_NAMES = [
    "ones",
    "tens",
    "hundreds",
    "thousands",
    "ten-thousands",
    "hundred-thousands",
    "millions",
]

SIGFIG_LABEL = "significant figures"


@dataclass(frozen=True)
class Precision:
    use_decimal_place: bool
    precision: int
    precision_type: str


@dataclass(frozen=True)
class RoundingOverride:
    """Caller-forced rounding policy. Only applied when `override` is set."""

    override: bool = False
    use_decimal_place: bool = False
    precision: int = 0
    precision_type: str = ""

    @staticmethod
    def significant_figures(n: int) -> "RoundingOverride":
        if n < 1:
            raise ValueError("significant figures must be >= 1")
        label = f"{n} significant figure{'' if n == 1 else 's'}"
        return RoundingOverride(True, False, n, label)

    @staticmethod
    def decimal_places(n: int) -> "RoundingOverride":
        return RoundingOverride(True, True, n, place_label(n))

    @staticmethod
    def from_config() -> "RoundingOverride":
        """Override from the CONFIG rounding preference ("auto" means none)."""
        cfg = core.CONFIG
        if cfg.rounding_mode == "auto" or cfg.rounding_digits is None:
            return RoundingOverride()
        if cfg.rounding_mode == "sigfig":
            return RoundingOverride.significant_figures(max(1, cfg.rounding_digits))
        return RoundingOverride.decimal_places(cfg.rounding_digits)


def place_label(places: int) -> str:
    """'2 decimal places', '1 decimal place', 'the hundreds place', 'the 10^9 place'."""
    if places >= 0:
        return f"{places} decimal place{'' if places == 1 else 's'}"
    n = -places
    if n < len(_PLACE_NAMES):
        return f"the {_PLACE_NAMES[n]} place"
    return f"the 10^{n} place"


def _operand_list(operands: Iterable[Any]) -> List[Operand]:
    return [op for op in operands if isinstance(op, Operand)]


def determine_precision(
    metadata: Any,
    override: Optional[RoundingOverride] = None,
    operands: Iterable[Any] = (),
) -> Precision:
    """
    Pick the rounding policy from the operation classes a solve used.

    Any multiplication or division means significant figures (also in mixed
    expressions); pure addition/subtraction means decimal places. Missing
    metadata falls back to the least precise operand. An active override
    replaces the result.
    """
    ops = _operand_list(operands)
    sigs = [op.sigfigs() for op in ops]
    decs = [op.place() for op in ops]
    used_mult_div = bool(getattr(metadata, "used_mult_div", False))
    used_add_sub = bool(getattr(metadata, "used_add_sub", False))

    if used_mult_div:
        sigfig = getattr(metadata, "sigfig", None)
        if sigfig is None:
            sigfig = min(sigs) if sigs else 1
        chosen = Precision(False, sigfig, SIGFIG_LABEL)
    elif used_add_sub:
        place = getattr(metadata, "decimal_place", None)
        if place is None:
            place = min(decs) if decs else 0
        chosen = Precision(True, place, place_label(place))
    else:
        chosen = Precision(False, min(sigs) if sigs else 1, SIGFIG_LABEL)

    if override is None:
        override = RoundingOverride.from_config()
    if override.override:
        chosen = Precision(override.use_decimal_place, override.precision, override.precision_type)
    return chosen


def rounding_reason(metadata: Any) -> str:
    used_mult_div = bool(getattr(metadata, "used_mult_div", False))
    used_add_sub = bool(getattr(metadata, "used_add_sub", False))
    if used_mult_div and used_add_sub:
        return "Mixed operations: multiplication/division takes precedence → use significant figures."
    if used_mult_div:
        return "Multiplication/Division detected → use significant figures."
    if used_add_sub:
        return "Addition/Subtraction detected → use decimal places."
    return "Default: use significant figures."
