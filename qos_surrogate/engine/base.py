#base.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict


class StatisticalEngine:
    """Typed request/response contract to an external statistical engine.

    Backends raise ``EngineUnavailable`` from ``start``, ``EngineError`` for
    faults reported while evaluating a request and ``EngineTimeout`` when no
    answer arrives in time. ``ModelSession`` turns these into session-level
    errors.
    """
    name = "base"

    def start(self, timeout: float) -> None:
        raise NotImplementedError

    def load(self, definition_path: Path, training_set_path: Path, timeout: float) -> None:
        """Bind the training data location and materialize the model definition."""
        raise NotImplementedError

    def predict(self, exchange_path: Path, objective: int, timeout: float) -> float:
        """Score the exchange row with the model of one objective."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    @property
    def pid(self) -> int | None:
        return None

    def usage(self) -> Dict[str, Any]:
        return {}
