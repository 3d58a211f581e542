from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from .core import Figure, debug_number, number_text, to_fixed

_SYMBOLS = {"multiplication": "×", "division": "÷", "addition": "+", "subtraction": "-"}


@dataclass(frozen=True)
class ExpressionStep:
    expression: str
    after_brackets: bool = False


@dataclass(frozen=True)
class BracketStep:
    inside: str


@dataclass(frozen=True)
class NoteStep:
    message: str


@dataclass(frozen=True)
class OperationStep:
    """
    One binary operation of the propagation fold.

    relative/sigfig are set for multiplication and division, decimal_place
    for addition and subtraction.
    """

    kind: str
    left: Tuple[Figure, Figure]
    right: Tuple[Figure, Figure]
    total: Figure
    uncertainty: Figure
    relative: Optional[Tuple[float, float]] = None
    sigfig: Optional[int] = None
    decimal_place: Optional[int] = None

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self.kind]

    @property
    def title(self) -> str:
        return self.kind.capitalize()

    def lines(self) -> List[str]:
        (v1, u1), (v2, u2) = self.left, self.right
        sym = self.symbol
        out = [
            f"{v1} ± {u1} {sym} {v2} ± {u2}",
            f"Value: {v1} {sym} {v2} = {self.total}",
        ]
        if self.relative is not None:
            r1, r2 = self.relative
            out.append(
                f"Relative uncertainty: ({u1}/{number_text(abs(v1.magnitude))}) + "
                f"({u2}/{number_text(abs(v2.magnitude))}) = "
                f"{to_fixed(r1, 4)} + {to_fixed(r2, 4)} = {to_fixed(r1 + r2, 4)}"
            )
            out.append(f"Absolute uncertainty: |{self.total}| × {to_fixed(r1 + r2, 4)} = {self.uncertainty}")
        else:
            out.append(f"Uncertainty: {u1} + {u2} = {self.uncertainty}")
        out.append(f"Result: {self.total} ± {self.uncertainty}")
        return out


@dataclass(frozen=True)
class DirectionStep:
    """How raising one operand moves the whole expression (actual mode)."""

    index: int
    nominal: float
    uncertainty: float
    expr_high: str = ""
    val_high: float = float("nan")
    expr_low: str = ""
    val_low: float = float("nan")
    pick_high: Optional[bool] = None


Step = Union[ExpressionStep, BracketStep, NoteStep, OperationStep, DirectionStep]
Trace = List[Step]


@dataclass(frozen=True)
class StepBlock:
    title: str
    lines: Tuple[str, ...] = ()


def build_propagation_steps(
    expression: str,
    trace: Sequence[Step],
    result: Any,
    final: Any,
    precision: Any,
    reason: str,
) -> List[StepBlock]:
    blocks = [StepBlock("Expression", (expression,))]
    for rec in trace:
        if isinstance(rec, ExpressionStep):
            if rec.after_brackets:
                blocks.append(StepBlock("Expression after brackets", (rec.expression,)))
        elif isinstance(rec, BracketStep):
            blocks.append(StepBlock("Solving inside brackets", (f"({rec.inside})",)))
        elif isinstance(rec, OperationStep):
            blocks.append(StepBlock(rec.title, tuple(rec.lines())))
        elif isinstance(rec, NoteStep):
            blocks.append(StepBlock("Error", (rec.message,)))
    blocks.append(
        StepBlock(
            "Rounding",
            (
                f"Rounding rule: {reason} Chosen precision: {precision.precision} ({precision.precision_type}).",
                f"Before rounding: {debug_number(result.total)} ± {debug_number(result.uncertainty)}",
                f"After rounding: {final}",
            ),
        )
    )
    blocks.append(StepBlock("Final Result", (str(final),)))
    return blocks


def build_actual_steps(expression: str, extremes: Any, rounding: Any, reason: str) -> List[StepBlock]:
    g = debug_number
    blocks = [StepBlock("Expression", (expression,))]

    ranges: List[str] = []
    for d in extremes.directions:
        ranges.append(f"Value {d.index} = {g(d.nominal)}")
        ranges.append(f"Uncertainty = {g(d.uncertainty)}")
        if d.pick_high is None and d.uncertainty == 0:
            ranges.append("Exact value: nominal used in both cases")
        elif d.pick_high is None:
            ranges.append(f"HIGH = {g(d.nominal + d.uncertainty)}")
            ranges.append(f"LOW = {g(d.nominal - d.uncertainty)}")
            ranges.append("Impact on expression: undefined, nominal used in both cases")
        else:
            ranges.append(f"HIGH = {g(d.nominal + d.uncertainty)}")
            ranges.append(f"Impact on expression: makes it {'larger' if d.pick_high else 'smaller'}")
            ranges.append(f"LOW = {g(d.nominal - d.uncertainty)}")
            ranges.append(f"Impact on expression: makes it {'smaller' if d.pick_high else 'larger'}")
        ranges.append("")
    while ranges and ranges[-1] == "":
        ranges.pop()
    blocks.append(StepBlock("Find Input Ranges of Values and their impact in expression", tuple(ranges)))

    minmax = [
        f"Minimum-case expression: {extremes.expr_min}",
        f"Maximum-case expression: {extremes.expr_max}",
        f"Minimum-case value: {g(extremes.eval_min)}",
        f"Maximum-case value: {g(extremes.eval_max)}",
    ]
    if extremes.has_bound:
        minmax.append(f"Interval-arithmetic bound (worst case): {g(extremes.bound_min)} to {g(extremes.bound_max)}")
    blocks.append(StepBlock("Min-Max Expressions", tuple(minmax)))

    blocks.append(
        StepBlock(
            "Rounding",
            (
                reason,
                f"Range before rounding: {g(extremes.min)} to {g(extremes.max)}",
                f"Range after rounding: {rounding.formatted_min.value} to {rounding.formatted_max.value}",
            ),
        )
    )

    mid = rounding.midpoint
    blocks.append(
        StepBlock(
            "Uncertainty",
            (
                f"Middle of range: ({g(extremes.min)}+{g(extremes.max)})/2 = {g(mid)}",
                f"Uncertainty: {g(mid)} - {g(extremes.min)} = {g(abs(mid - extremes.min))}",
                f"Rounded: {rounding.formatted_mid}",
            ),
        )
    )
    return blocks


def explain_str(x: Any) -> str:
    """Return the numbered explanation as a string (no printing)."""
    blocks = getattr(x, "steps", x)
    if not isinstance(blocks, (list, tuple)) or not all(isinstance(b, StepBlock) for b in blocks):
        raise TypeError("explain_str(x) requires a calculation or a list of StepBlock")

    lines: List[str] = []
    for n, block in enumerate(blocks, 1):
        if n > 1:
            lines.append("")
        lines.append(f"Step {n}: {block.title}")
        for line in block.lines:
            lines.append(f"   {line}" if line else "")
    return "\n".join(lines)


def explain(x: Any) -> None:
    """Print the explanation."""
    print(explain_str(x))
