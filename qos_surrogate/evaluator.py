"""Public entry point: score a service-composition configuration with a surrogate model."""
from __future__ import annotations
from typing import Callable, Dict, Sequence

import numpy as np

from .config import CONFIG, PREDICTOR_NAMES
from .engine.base import StatisticalEngine
from .engine.factory import engine_kwargs, make_engine
from .engine.session import ModelSession, SessionState
from .errors import (
    EngineTimeout, PartialPredictionFailure, PredictionError,
    SurrogateError,
)
from .exchange import ExchangeCodec
from .path_resolver import normalize_family
from .predictors import PredictorTuple


class SurrogateEvaluator:
    """Predicts QoS objectives (delay, network latency, success ratio, energy)
    of a candidate configuration with one of the LR, MARS, CART or RF models.

    The model session is started and loaded lazily on the first ``evaluate``
    and reused afterwards; ``terminate`` releases it.
    """

    def __init__(self, config: dict | None = None,
                 engine_factory: Callable[[], StatisticalEngine] | None = None,
                 codec: ExchangeCodec | None = None,
                 **overrides):
        cfg = dict(CONFIG)
        cfg.update(config or {})
        cfg.update(overrides)
        self.config = cfg
        self.predictor_names = tuple(cfg.get("predictor_names") or PREDICTOR_NAMES)
        self.verbose = bool(cfg.get("verbose", True))

        self.model_family = "LR"
        self.objectives = 3
        self.configure(cfg.get("model_family") or "LR", cfg.get("objectives", 3))

        self._engine_factory = engine_factory or (
            lambda: make_engine(cfg.get("engine", "r"), **engine_kwargs(cfg))
        )
        self.codec = codec or ExchangeCodec(cfg.get("exchange_dir"))
        self.session: ModelSession | None = None
        self.load_count = 0

    # ---------------------------------------------------------------------
    def configure(self, model_family: str = "LR", objective_count: int = 3) -> None:
        family = normalize_family(model_family)
        if isinstance(objective_count, bool) or int(objective_count) != objective_count or objective_count < 1:
            raise ValueError(f"objective_count must be a positive integer, got {objective_count!r}")
        self.model_family = family
        self.objectives = int(objective_count)

    def evaluate(self, values: Sequence[int]) -> np.ndarray:
        """One prediction per objective, in objective order.

        Raises ``PartialPredictionFailure`` carrying the partial vector (NaN in
        failed slots) when any objective could not be predicted.
        """
        pred = PredictorTuple(self.predictor_names, values)
        row = self.codec.encode(pred)
        session = self._ensure_session()

        results = np.full(self.objectives, np.nan, dtype=float)
        failures: Dict[int, SurrogateError] = {}
        with self.codec.staged(row) as exchange_path:
            for objective in range(1, self.objectives + 1):
                try:
                    results[objective - 1] = session.predict(exchange_path, objective)
                except (PredictionError, EngineTimeout) as e:
                    failures[objective] = e
                    if self.verbose:
                        print(f"Warning: objective {objective} failed: {e}")

        if failures:
            raise PartialPredictionFailure(results, failures)
        return results

    def terminate(self) -> None:
        session, self.session = self.session, None
        if session is not None:
            session.shutdown()

    # ---------------------------------------------------------------------
    def _new_session(self) -> ModelSession:
        cfg = self.config
        return ModelSession(
            self._engine_factory(),
            resources_dir=cfg.get("resources_dir"),
            training_set=cfg.get("training_set") or "trainingSet.csv",
            start_timeout=cfg.get("start_timeout", 30.0),
            load_timeout=cfg.get("load_timeout", 120.0),
            predict_timeout=cfg.get("predict_timeout", 30.0),
            verbose=self.verbose,
        )

    def _ensure_session(self) -> ModelSession:
        if self.session is not None and self.session.corrupted:
            # terminate() is the owner's consent to open a fresh session
            last = self.session.last_timeout
            raise EngineTimeout(
                last.operation if last else "predict",
                last.timeout if last else self.session.predict_timeout,
                last.objective if last else None,
            )
        if self.session is None or self.session.state is SessionState.TERMINATED:
            session = self._new_session()
            session.start()
            self.session = session
        if self.session.load(self.model_family):
            self.load_count += 1
        return self.session

    def describe(self) -> dict:
        return {
            "model_family": self.model_family,
            "objectives": self.objectives,
            "load_count": self.load_count,
            "session": self.session.describe() if self.session else None,
        }

    def __enter__(self) -> "SurrogateEvaluator":
        return self

    def __exit__(self, *exc) -> None:
        self.terminate()
