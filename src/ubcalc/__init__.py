from .core import (
    CONFIG,
    CalcConfig,
    Figure,
    Operand,
    decimal_place,
    reset_config,
    set_config,
    significant_figures,
)
from .parser import form_expression, parse, parse_rows
from .evaluator import ExtremalResult, evaluate, evaluate_extremes, evaluate_interval
from .solver import PropagationResult, solve
from .precision import RoundingOverride, determine_precision
from .rounding import FormattedPair, round_range, round_result
from .explain import explain, explain_str
from .calculator import (
    ActualCalculation,
    PropagationCalculation,
    calculate,
    calculate_actual_values,
    calculate_propagation,
)
