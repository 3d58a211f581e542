from typing import List, Optional
import argparse
import sys

from .calculator import MODES, calculate
from .explain import explain_str

HELP = """\
Enter an expression such as 4.5±0.3 + 2±0.1 (× and ÷ also work).
  :mode uncertainty|actual   switch calculation mode
  :steps                     toggle the step-by-step explanation
  exit                       quit"""


def _run(expr: str, mode: str, steps: bool) -> str:
    calc = calculate(expr, mode)
    out = str(calc)
    if mode == "actual":
        out += f"  (range {calc.formatted_min.value} to {calc.formatted_max.value})"
    if steps:
        out += "\n" + explain_str(calc)
    return out


def _arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ubcalc",
        description="Uncertainty calculator. Without an expression an interactive prompt starts.",
    )
    parser.add_argument("expression", nargs="*", help="expression to evaluate once, e.g. \"10±1*2±0\"")
    parser.add_argument("--actual", action="store_true", help="min/max range instead of error propagation")
    parser.add_argument("--steps", action="store_true", help="print the step-by-step explanation")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _arg_parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    mode = "actual" if args.actual else "uncertainty"
    steps = args.steps

    if args.expression:
        print(_run(" ".join(args.expression), mode, steps))
        return 0

    print(HELP)
    eval_count = 1
    while True:
        try:
            expr = input(f"In [{eval_count}]: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if not expr:
            continue
        if expr in ("exit", "quit"):
            return 0
        if expr.startswith(":mode"):
            choice = expr[len(":mode"):].strip().lower()
            if choice in MODES:
                mode = choice
                print(f"mode: {mode}")
            else:
                print(f"Unknown mode '{choice}'. Choose from: {list(MODES)}")
            continue
        if expr == ":steps":
            steps = not steps
            print(f"steps: {'on' if steps else 'off'}")
            continue
        print(f"Out [{eval_count}]: {_run(expr, mode, steps)}")
        eval_count += 1


if __name__ == "__main__":
    sys.exit(main())
