# cli/utils.py
from __future__ import annotations
import argparse
from typing import List

from ..config import CONFIG, MODEL_FAMILIES


def add_model_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--model", choices=MODEL_FAMILIES, default=CONFIG["model_family"],
                   help="Surrogate model family")
    p.add_argument("--objectives", type=int, default=CONFIG["objectives"],
                   help="Number of QoS objectives to predict")
    p.add_argument("--resources", default=CONFIG["resources_dir"],
                   help="Directory holding build<MODEL>.R and the training set")
    p.add_argument("--training-set", default=CONFIG["training_set"], help="Training set CSV")
    p.add_argument("--r-binary", default=CONFIG["r_binary"], help="R executable (default: R_HOME or PATH)")
    p.add_argument("--r-package", action="append", dest="r_packages", default=None,
                   help="R package that must be installed (repeatable)")
    p.add_argument("--timeout", type=float, default=None,
                   help="Per-call timeout in seconds for predictions")
    p.add_argument("--quiet", action="store_true", help="Only print results")


def config_from_args(args: argparse.Namespace) -> dict:
    cfg = {
        "model_family": args.model,
        "objectives": args.objectives,
        "resources_dir": args.resources,
        "training_set": args.training_set,
        "r_binary": args.r_binary,
        "verbose": not args.quiet,
    }
    if args.r_packages:
        cfg["r_packages"] = list(args.r_packages)
    if args.timeout is not None:
        cfg["predict_timeout"] = args.timeout
    return cfg


def parse_values(raw: List[str]) -> List[int]:
    values: list[int] = []
    for token in raw:
        for part in token.replace(",", " ").split():
            try:
                values.append(int(part))
            except ValueError:
                raise SystemExit(f"Invalid predictor value '{part}'. Expected an integer.")
    return values


def format_value(v: float) -> str:
    return "failed" if v != v else f"{v:.6g}"
