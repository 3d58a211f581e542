from dataclasses import dataclass, replace
from typing import Optional, Tuple
import math
import warnings

from . import core
from .core import Figure, Operand, StrOrNum, decimal_place, js_div, significant_figures
from .explain import BracketStep, ExpressionStep, NoteStep, OperationStep, Trace
from .parser import TokenStream, form_expression, parse

_NAN = Figure.from_number(math.nan)


@dataclass(frozen=True)
class PropagationResult:
    """
    Folded value ± uncertainty plus the metadata used for rounding.

    sigfig / decimal_place come from the last operation of their class.
    """

    total: Figure
    uncertainty: Figure
    used_mult_div: bool = False
    used_add_sub: bool = False
    sigfig: Optional[int] = None
    decimal_place: Optional[int] = None
    operations: int = 0

    def text(self) -> str:
        return f"{self.total}±{self.uncertainty}"


def mult_div(
    op: str,
    value1: StrOrNum,
    uncertainty1: StrOrNum,
    value2: StrOrNum,
    uncertainty2: StrOrNum,
    trace: Optional[Trace] = None,
) -> OperationStep:
    """
    Multiply or divide two measurements.

    Relative uncertainties add linearly; the sig-fig count is that of the
    less precise factor.
    """
    v1, u1, v2, u2 = (Figure.from_text(x) for x in (value1, uncertainty1, value2, uncertainty2))
    sigfig = min(significant_figures(v1, u1), significant_figures(v2, u2))

    if op == "*":
        total = v1.magnitude * v2.magnitude
        kind = "multiplication"
    elif op == "/":
        total = js_div(v1.magnitude, v2.magnitude)
        kind = "division"
    else:
        raise ValueError(f"Invalid operator: {op}")

    rel1 = js_div(u1.magnitude, abs(v1.magnitude))
    rel2 = js_div(u2.magnitude, abs(v2.magnitude))
    uncertainty = abs(total) * (rel1 + rel2)

    step = OperationStep(
        kind=kind,
        left=(v1, u1),
        right=(v2, u2),
        total=Figure.from_number(total),
        uncertainty=Figure.from_number(uncertainty),
        relative=(rel1, rel2),
        sigfig=sigfig,
    )
    if trace is not None:
        trace.append(step)
    return step


def add_sub(
    op: str,
    value1: StrOrNum,
    uncertainty1: StrOrNum,
    value2: StrOrNum,
    uncertainty2: StrOrNum,
    trace: Optional[Trace] = None,
) -> OperationStep:
    """
    Add or subtract two measurements.

    Absolute uncertainties add linearly. An exact operand does not lower the
    decimal place of an uncertain one; otherwise the coarser place wins.
    """
    v1, u1, v2, u2 = (Figure.from_text(x) for x in (value1, uncertainty1, value2, uncertainty2))
    place1 = decimal_place(v1, u1)
    place2 = decimal_place(v2, u2)

    if op == "+":
        total = v1.magnitude + v2.magnitude
        kind = "addition"
    elif op == "-":
        total = v1.magnitude - v2.magnitude
        kind = "subtraction"
    else:
        raise ValueError(f"Invalid operator: {op}")

    uncertainty = u1.magnitude + u2.magnitude

    if u1.magnitude == 0 and u2.magnitude > 0:
        place = place2
    elif u2.magnitude == 0 and u1.magnitude > 0:
        place = place1
    else:
        place = min(place1, place2)

    step = OperationStep(
        kind=kind,
        left=(v1, u1),
        right=(v2, u2),
        total=Figure.from_number(total),
        uncertainty=Figure.from_number(uncertainty),
        decimal_place=place,
    )
    if trace is not None:
        trace.append(step)
    return step


def find_innermost_brackets(expr: str) -> Tuple[int, int, int]:
    """
    Return (start, end, depth) of the leftmost bracket pair that encloses no
    other bracket; start is -1 when there is none. An unterminated '(' comes
    back with end == start.
    """
    max_depth = 0
    depth = 0
    start = -1
    end = -1
    for i, ch in enumerate(expr):
        if ch == "(":
            depth += 1
            if depth > max_depth:
                max_depth = depth
                start = i
                end = i
        elif ch == ")" and depth == max_depth and max_depth > 0:
            end = i
            break
        elif ch == ")":
            depth -= 1
    return start, end, max_depth


def _is_operand(tok: object) -> bool:
    return isinstance(tok, Operand)


def solve_simple(tokens: TokenStream, trace: Optional[Trace] = None) -> PropagationResult:
    """Fold a bracket-free token stream: * and / left to right, then + and -."""
    work = list(tokens)
    used_mult_div = False
    used_add_sub = False
    sigfig: Optional[int] = None
    place: Optional[int] = None
    operations = 0

    while True:
        for i in range(1, len(work) - 1):
            tok = work[i]
            if isinstance(tok, str) and tok in ("*", "/") and _is_operand(work[i - 1]) and _is_operand(work[i + 1]):
                left, right = work[i - 1], work[i + 1]
                step = mult_div(tok, left.value, left.uncertainty, right.value, right.uncertainty, trace)
                used_mult_div = True
                sigfig = step.sigfig
                operations += 1
                work[i - 1:i + 2] = [Operand(step.total, step.uncertainty)]
                break
        else:
            break

    while len(work) >= 3:
        left, op, right = work[0], work[1], work[2]
        if not (_is_operand(left) and isinstance(op, str) and _is_operand(right)):
            break
        step = add_sub(op, left.value, left.uncertainty, right.value, right.uncertainty, trace)
        used_add_sub = True
        place = step.decimal_place
        operations += 1
        work[0:3] = [Operand(step.total, step.uncertainty)]

    if not work or not _is_operand(work[0]):
        return PropagationResult(total=_NAN, uncertainty=_NAN, operations=operations)
    last = work[0]
    return PropagationResult(
        total=last.value,
        uncertainty=last.uncertainty,
        used_mult_div=used_mult_div,
        used_add_sub=used_add_sub,
        sigfig=sigfig,
        decimal_place=place,
        operations=operations,
    )


def solve(
    expression: Optional[str],
    tokens: Optional[TokenStream] = None,
    trace: Optional[Trace] = None,
) -> PropagationResult:
    """
    Propagate uncertainty through a bracketed expression such as
    "(2±0.1+3±0.2)*4±0".

    Innermost brackets are folded first and substituted back as value±error
    text. When the outer level is a lone operand, the operation metadata of
    the last bracket is kept so precision inference still applies.
    """
    if trace is None:
        trace = []
    if not expression and tokens:
        expression = form_expression(tokens)
    expression = expression or ""
    trace.append(ExpressionStep(expression))

    limit = core.CONFIG.max_bracket_iterations
    iterations = 0
    last_bracket: Optional[PropagationResult] = None
    while True:
        start, end, _depth = find_innermost_brackets(expression)
        if start == -1:
            break
        iterations += 1
        if iterations > limit:
            trace.append(NoteStep("Too many bracket iterations, possible infinite loop"))
            warnings.warn(
                f"Bracket resolution stopped after {limit} iterations; remaining: {expression}",
                RuntimeWarning,
                stacklevel=2,
            )
            break
        inside = expression[start + 1:end]
        trace.append(BracketStep(inside))
        last_bracket = solve_simple(parse(inside), trace)
        expression = expression[:start] + last_bracket.text() + expression[end + 1:]

    if last_bracket is not None:
        trace.append(ExpressionStep(expression, after_brackets=True))

    simplified = parse(expression)
    result = solve_simple(simplified, trace)
    if len(simplified) == 1 and last_bracket is not None and result.operations == 0:
        result = replace(
            result,
            used_mult_div=last_bracket.used_mult_div,
            used_add_sub=last_bracket.used_add_sub,
            sigfig=last_bracket.sigfig,
            decimal_place=last_bracket.decimal_place,
        )
    return result
