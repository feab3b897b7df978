# cli/cmd_evaluate.py
from __future__ import annotations
import argparse
from ..config import EXAMPLE_VALUES
from ..errors import PartialPredictionFailure, SurrogateError
from ..evaluator import SurrogateEvaluator
from .utils import add_model_args, config_from_args, format_value, parse_values

def _handle(args: argparse.Namespace) -> None:
    values = parse_values(args.values) if args.values else list(EXAMPLE_VALUES)
    with SurrogateEvaluator(config=config_from_args(args)) as evaluator:
        try:
            results = evaluator.evaluate(values)
        except PartialPredictionFailure as e:
            for i, v in enumerate(e.results, start=1):
                print(f"Objective {i} : {format_value(v)}")
            raise SystemExit(str(e))
        except SurrogateError as e:
            raise SystemExit(f"{type(e).__name__}: {e}")
    for i, v in enumerate(results, start=1):
        print(f"Objective {i} : {format_value(v)}")

def register_evaluate(subparsers):
    p = subparsers.add_parser("evaluate", help="Predict the QoS of one configuration")
    p.add_argument("values", nargs="*",
                   help="Predictor values in order ID Hops Orchestrators DevFast DevMedium DevSlow "
                        "LoadSmall LoadMedium LoadBig (default: example configuration)")
    add_model_args(p)
    p.set_defaults(_handler=_handle)
