"""Configuration for the QoS surrogate evaluator."""
from pathlib import Path

RESOURCES_DIR = Path("resources")
EXCHANGE_DIR = None

import os
OVERRIDE = os.getenv("QOS_SURROGATE_RESOURCES")
if OVERRIDE:
    RESOURCES_DIR = Path(OVERRIDE)
EXCHANGE_OVERRIDE = os.getenv("QOS_SURROGATE_EXCHANGE")
if EXCHANGE_OVERRIDE:
    EXCHANGE_DIR = Path(EXCHANGE_OVERRIDE)

# Column order of the exchange row; the trained models depend on it.
PREDICTOR_NAMES = (
    "ID", "Hops", "Orchestrators",
    "DevFast", "DevMedium", "DevSlow",
    "LoadSmall", "LoadMedium", "LoadBig",
)

MODEL_FAMILIES = ("LR", "MARS", "CART", "RF")

# Example composition used by the `evaluate` command when no values are given.
EXAMPLE_VALUES = [1, 22, 2, 3, 2, 3, 4, 6, 3]

CONFIG = {
    "resources_dir": str(RESOURCES_DIR),
    "training_set": "trainingSet.csv",
    "model_family": os.getenv("QOS_SURROGATE_MODEL", "LR"),
    "objectives": 3,
    "engine": "r",
    "r_binary": os.getenv("QOS_SURROGATE_R"),
    "r_args": ["--vanilla", "--slave"],
    "r_packages": [],
    "start_timeout": 30.0,
    "load_timeout": 120.0,
    "predict_timeout": 30.0,
    "exchange_dir": str(EXCHANGE_DIR) if EXCHANGE_DIR else None,
    "verbose": True,
}
