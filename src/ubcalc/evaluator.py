from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import ast
import math
import operator

from mpmath import iv

from . import core
from .core import Operand, debug_number, js_div
from .explain import DirectionStep, Trace
from .parser import TokenStream, parse

Direction = DirectionStep

_BINARY: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
}

_EVAL_ERRORS = (SyntaxError, ValueError, TypeError, OverflowError, ZeroDivisionError, RecursionError)


def _eval_node(node: ast.AST, env: Dict[str, Any], divide: Callable[[Any, Any], Any]) -> Any:
    """Walk a parsed expression allowing only numbers, names from env, + - * / and signs."""
    if isinstance(node, ast.Expression):
        return _eval_node(node.body, env, divide)
    if isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return float(node.value)
        raise ValueError(f"Unsupported constant {node.value!r}.")
    if isinstance(node, ast.Name):
        if node.id in env:
            return env[node.id]
        raise ValueError(f"Unknown name '{node.id}'.")
    if isinstance(node, ast.UnaryOp):
        operand = _eval_node(node.operand, env, divide)
        if isinstance(node.op, ast.USub):
            return -operand
        if isinstance(node.op, ast.UAdd):
            return operand
    if isinstance(node, ast.BinOp):
        left = _eval_node(node.left, env, divide)
        right = _eval_node(node.right, env, divide)
        if isinstance(node.op, ast.Div):
            return divide(left, right)
        fn = _BINARY.get(type(node.op))
        if fn is not None:
            return fn(left, right)
    raise ValueError("Unsupported or unsafe expression component found.")


def evaluate(expr: str) -> float:
    """
    Evaluate a plain numeric expression ("11-(2-0.5)*3") to a float with the
    usual precedence. Anything malformed gives nan instead of raising.
    """
    text = (expr or "").replace("×", "*").replace("÷", "/").strip()
    try:
        tree = ast.parse(text, mode="eval")
        return float(_eval_node(tree, {}, js_div))
    except _EVAL_ERRORS:
        return math.nan


def evaluate_interval(tokens: Union[str, TokenStream]) -> Tuple[float, float]:
    """
    Worst-case enclosure of the expression with every operand widened to
    [value - u, value + u] (mpmath.iv interval arithmetic).

    Returns (nan, nan) when the expression cannot be evaluated.
    """
    if isinstance(tokens, str):
        tokens = parse(tokens)
    env: Dict[str, Any] = {}
    parts: List[str] = []
    for tok in tokens:
        if isinstance(tok, Operand):
            lo, hi = tok.nominal - _spread(tok), tok.nominal + _spread(tok)
            if math.isnan(lo) or math.isnan(hi):
                return math.nan, math.nan
            name = f"x{len(env)}"
            env[name] = iv.mpf([min(lo, hi), max(lo, hi)])
            parts.append("(" * tok.open_parens + name + ")" * tok.close_parens)
        else:
            parts.append(tok)
    if not env:
        return math.nan, math.nan
    try:
        I = _eval_node(ast.parse("".join(parts), mode="eval"), env, operator.truediv)
        return float(I.a), float(I.b)
    except _EVAL_ERRORS:
        return math.nan, math.nan


@dataclass(frozen=True)
class ExtremalResult:
    """
    Tight min/max of an expression from per-operand directional choices.

    min/max are the sorted pair of eval_min/eval_max. bound_min/bound_max
    hold the worst-case interval enclosure when it was computed.
    """

    expr_max: str
    expr_min: str
    eval_max: float
    eval_min: float
    min: float
    max: float
    directions: Tuple[DirectionStep, ...] = ()
    bound_min: float = math.nan
    bound_max: float = math.nan

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    @property
    def half_range(self) -> float:
        return abs(self.max - self.min) / 2

    @property
    def has_bound(self) -> bool:
        return not (math.isnan(self.bound_min) or math.isnan(self.bound_max))


def _spread(tok: Operand) -> float:
    return 0.0 if math.isnan(tok.error) else tok.error


def _build_expression(tokens: TokenStream, choices: Dict[int, str]) -> str:
    parts: List[str] = []
    for i, tok in enumerate(tokens):
        if isinstance(tok, Operand):
            choice = choices.get(i)
            if choice == "high":
                chosen = tok.nominal + _spread(tok)
            elif choice == "low":
                chosen = tok.nominal - _spread(tok)
            else:
                chosen = tok.nominal
            parts.append("(" * tok.open_parens + debug_number(chosen) + ")" * tok.close_parens)
        else:
            parts.append(tok)
    return "".join(parts)


def evaluate_extremes(
    tokens_or_expr: Union[str, TokenStream],
    trace: Optional[Trace] = None,
) -> ExtremalResult:
    """
    Min/max of an expression without trying all 2^n bound combinations.

    Each uncertain operand is pushed alone to its high and its low bound; the
    bound giving the larger value is used for the maximum and the other one
    for the minimum. Exact operands, and operands whose trial evaluations are
    nan, stay nominal in both. Assumes each operand's effect keeps its sign
    over its range.
    """
    tokens = parse(tokens_or_expr) if isinstance(tokens_or_expr, str) else list(tokens_or_expr)
    positions = [i for i, tok in enumerate(tokens) if isinstance(tok, Operand)]

    directions: List[DirectionStep] = []
    for n, i in enumerate(positions, 1):
        tok = tokens[i]
        spread = _spread(tok)
        if spread == 0:
            step = DirectionStep(index=n, nominal=tok.nominal, uncertainty=0.0)
        else:
            expr_high = _build_expression(tokens, {i: "high"})
            expr_low = _build_expression(tokens, {i: "low"})
            val_high = evaluate(expr_high)
            val_low = evaluate(expr_low)
            pick_high: Optional[bool] = None
            if not (math.isnan(val_high) or math.isnan(val_low)):
                pick_high = val_high >= val_low
            step = DirectionStep(
                index=n,
                nominal=tok.nominal,
                uncertainty=spread,
                expr_high=expr_high,
                val_high=val_high,
                expr_low=expr_low,
                val_low=val_low,
                pick_high=pick_high,
            )
        directions.append(step)
        if trace is not None:
            trace.append(step)

    max_choices: Dict[int, str] = {}
    min_choices: Dict[int, str] = {}
    for i, d in zip(positions, directions):
        if d.pick_high is None:
            continue
        max_choices[i] = "high" if d.pick_high else "low"
        min_choices[i] = "low" if d.pick_high else "high"

    expr_max = _build_expression(tokens, max_choices)
    expr_min = _build_expression(tokens, min_choices)
    eval_max = evaluate(expr_max)
    eval_min = evaluate(expr_min)
    if math.isnan(eval_max) or math.isnan(eval_min):
        lo = hi = math.nan
    else:
        lo, hi = min(eval_min, eval_max), max(eval_min, eval_max)

    bound_min = bound_max = math.nan
    if core.CONFIG.interval_bound and positions:
        bound_min, bound_max = evaluate_interval(tokens)

    return ExtremalResult(
        expr_max=expr_max,
        expr_min=expr_min,
        eval_max=eval_max,
        eval_min=eval_min,
        min=lo,
        max=hi,
        directions=tuple(directions),
        bound_min=bound_min,
        bound_max=bound_max,
    )
