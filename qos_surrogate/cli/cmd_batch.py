# cli/cmd_batch.py
from __future__ import annotations
import argparse
from typing import Dict, List, Sequence

from ..errors import PartialPredictionFailure, SurrogateError
from ..evaluator import SurrogateEvaluator
from ..files import read_predictor_rows, write_results_csv
from .utils import add_model_args, config_from_args

def run_batch(evaluator: SurrogateEvaluator, rows: Sequence[Sequence[int]]) -> List[Dict[str, object]]:
    """Evaluate every row with one session; failures are recorded per row."""
    records = []
    for values in rows:
        record: Dict[str, object] = dict(zip(evaluator.predictor_names, values))
        results, failed, error = None, [], ""
        try:
            results = evaluator.evaluate(values)
        except PartialPredictionFailure as e:
            results, failed, error = e.results, e.failed_indices, str(e)
        except (SurrogateError, TypeError) as e:
            error = f"{type(e).__name__}: {e}"
        for i in range(1, evaluator.objectives + 1):
            record[f"QoS{i}"] = None if results is None or i in failed else float(results[i - 1])
        record["failed"] = ",".join(str(i) for i in failed)
        record["error"] = error
        records.append(record)
    return records

def _handle(args: argparse.Namespace) -> None:
    with SurrogateEvaluator(config=config_from_args(args)) as evaluator:
        try:
            rows = read_predictor_rows(args.input, evaluator.predictor_names)
        except (FileNotFoundError, ValueError) as e:
            raise SystemExit(str(e))
        if not rows:
            raise SystemExit(f"No predictor rows in {args.input}")
        records = run_batch(evaluator, rows)
    df = write_results_csv(records, args.output)
    n_failed = int((df["error"].fillna("") != "").sum())
    print(f"Wrote {len(df)} predictions to {args.output} ({n_failed} with failures).")

def register_batch(subparsers):
    p = subparsers.add_parser("batch", help="Predict the QoS of every configuration in a CSV")
    p.add_argument("input", help="CSV with one predictor column per name")
    p.add_argument("--output", default="results.csv", help="Destination CSV")
    add_model_args(p)
    p.set_defaults(_handler=_handle)
