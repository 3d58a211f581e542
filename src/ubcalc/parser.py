from dataclasses import replace
from typing import Any, List, Mapping, Sequence, Union
import re

from .core import EXACT, Figure, Operand

Token = Union[Operand, str]
TokenStream = List[Token]

OPERATORS = ("+", "-", "*", "/")
_ALIASES = {"×": "*", "÷": "/"}

_NUM = r"(?:\d*\.?\d+(?:[eE][+\-]?\d+)?|Infinity|NaN)"
LITERAL_RE = re.compile(rf"(?P<value>[+\-]?{_NUM})(?:\s*±\s*(?P<bound>{_NUM}))?")


def parse(text: str) -> TokenStream:
    """
    Tokenize free text such as "(4.5±0.3 + 2±0.1) × 3".

    Brackets are folded into the paren counts of the neighbouring operands.
    A sign belongs to a literal only where no operand precedes it. Anything
    unrecognized is skipped, so the result always alternates operand,
    operator, operand and never ends with an operator.
    """
    tokens: TokenStream = []
    pending_open = 0
    i = 0
    while i < len(text):
        ch = text[i]
        after_operand = bool(tokens) and isinstance(tokens[-1], Operand)

        if not (after_operand and ch in "+-"):
            m = LITERAL_RE.match(text, i)
            if m:
                i = m.end()
                if after_operand:
                    pending_open = 0
                    continue
                bound = m.group("bound")
                tokens.append(
                    Operand(
                        value=Figure.from_text(m.group("value")),
                        uncertainty=Figure.from_text(bound) if bound else EXACT,
                        open_parens=pending_open,
                    )
                )
                pending_open = 0
                continue

        ch = _ALIASES.get(ch, ch)
        if ch in OPERATORS:
            if after_operand:
                tokens.append(ch)
        elif ch == "(":
            pending_open += 1
        elif ch == ")" and after_operand:
            last = tokens[-1]
            tokens[-1] = replace(last, close_parens=last.close_parens + 1)
        i += 1

    if tokens and not isinstance(tokens[-1], Operand):
        tokens.pop()
    return tokens


def _row_operand(row: Any) -> Operand:
    if isinstance(row, Operand):
        return row
    if isinstance(row, Mapping):
        return Operand.from_value_bound(
            row.get("value", ""),
            row.get("uncertainty"),
            int(row.get("open_parens", 0)),
            int(row.get("close_parens", 0)),
        )
    if isinstance(row, (list, tuple)):
        if len(row) != 4:
            raise TypeError("Value rows must be (open_parens, value, uncertainty, close_parens).")
        open_parens, value, uncertainty, close_parens = row
        return Operand.from_value_bound(value, uncertainty, int(open_parens), int(close_parens))
    raise TypeError(f"Unsupported row {row!r}: expected a value row or an operator string.")


def parse_rows(rows: Sequence[Any]) -> TokenStream:
    """
    Build a token stream from form rows:
      [[0, "4.5", "0.3", 0], "+", [0, "2", "0.1", 0]]

    A blank uncertainty means an exact value.
    """
    tokens: TokenStream = []
    for row in rows:
        if isinstance(row, str):
            op = _ALIASES.get(row.strip(), row.strip())
            if op not in OPERATORS:
                raise ValueError(f"Invalid operator: {row!r}")
            if not tokens or not isinstance(tokens[-1], Operand):
                raise ValueError(f"Operator {row!r} must follow a value row.")
            tokens.append(op)
            continue
        operand = _row_operand(row)
        if tokens and isinstance(tokens[-1], Operand):
            raise ValueError("Missing operator between value rows.")
        tokens.append(operand)
    if tokens and not isinstance(tokens[-1], Operand):
        raise ValueError("Rows cannot end with an operator.")
    return tokens


def form_expression(tokens: Sequence[Token]) -> str:
    """Render tokens back to bracketed text, e.g. "(4.5±0.3+2±0.1)*3±0"."""
    return "".join(t.bracketed() if isinstance(t, Operand) else t for t in tokens)


def operands_of(tokens: Sequence[Token]) -> List[Operand]:
    return [t for t in tokens if isinstance(t, Operand)]
