"""Lifecycle of one loaded surrogate model family on a statistical engine."""
from __future__ import annotations
import math
import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from .base import StatisticalEngine
from ..errors import (
    EngineError, EngineTimeout, EngineUnavailable, FamilyConflict,
    ModelLoadError, PredictionError, SessionStateError,
)
from ..files import read_model_definition, stage_copy, stage_text
from ..path_resolver import model_definition_path, normalize_family, training_set_path


class SessionState(str, Enum):
    UNSTARTED = "unstarted"
    STARTED = "started"
    LOADED = "loaded"
    TERMINATED = "terminated"


class ModelSession:
    """Owns one engine process and at most one loaded model family.

    ``UNSTARTED -> STARTED -> LOADED -> TERMINATED``; ``shutdown`` is valid
    from any state. A timeout marks the session corrupted: further
    predictions are refused until the owner starts a new session.
    """

    def __init__(self, engine: StatisticalEngine,
                 resources_dir: str | Path | None = None,
                 training_set: str | Path = "trainingSet.csv",
                 start_timeout: float = 30.0,
                 load_timeout: float = 120.0,
                 predict_timeout: float = 30.0,
                 verbose: bool = True):
        self.engine = engine
        self.resources_dir = resources_dir
        self.training_set = training_set
        self.start_timeout = float(start_timeout)
        self.load_timeout = float(load_timeout)
        self.predict_timeout = float(predict_timeout)
        self.verbose = verbose

        self.state = SessionState.UNSTARTED
        self.family: str | None = None
        self.corrupted = False
        self.last_timeout: EngineTimeout | None = None
        self.load_calls = 0
        self._staging: Path | None = None

    # ---------------------------------------------------------------------
    def start(self) -> None:
        if self.state in (SessionState.STARTED, SessionState.LOADED):
            return
        if self.state is SessionState.TERMINATED:
            raise SessionStateError("Session has been terminated; create a new one")

        self._staging = Path(tempfile.mkdtemp(prefix="qos_surrogate_"))
        try:
            self.engine.start(self.start_timeout)
        except EngineError as e:
            self.shutdown()
            raise EngineUnavailable(str(e)) from e
        except (EngineUnavailable, EngineTimeout):
            self.shutdown()
            raise
        self.state = SessionState.STARTED
        if self.verbose:
            print(f"Started {self.engine.name} engine (pid {self.engine.pid})")

    def load(self, family: str, training_set: str | Path | None = None) -> bool:
        """Load ``family`` once; returns False when it was already loaded."""
        family = normalize_family(family)
        if self.state is SessionState.LOADED:
            if family == self.family:
                return False
            raise FamilyConflict(self.family, family)
        if self.state is not SessionState.STARTED:
            raise SessionStateError(f"Cannot load a model in state '{self.state.value}'")
        if self.corrupted:
            raise SessionStateError("Session timed out earlier; start a new session")

        definition = model_definition_path(family, self.resources_dir)
        training = training_set_path(training_set or self.training_set, self.resources_dir)
        try:
            staged_def = stage_text(read_model_definition(definition), self._staging, suffix=".R")
            staged_set = stage_copy(training, self._staging)
        except FileNotFoundError as e:
            raise ModelLoadError(family, str(e)) from e

        if self.verbose:
            print(f"Loading {family} surrogate model ({definition.name}, training set {training})")
        try:
            self.engine.load(staged_def, staged_set, self.load_timeout)
        except EngineError as e:
            raise ModelLoadError(family, str(e)) from e
        except EngineTimeout as e:
            self.corrupted = True
            self.last_timeout = e
            raise

        self.family = family
        self.state = SessionState.LOADED
        self.load_calls += 1
        return True

    def predict(self, exchange_path: str | Path, objective: int) -> float:
        if self.state is SessionState.TERMINATED:
            raise PredictionError("Engine connection is closed", objective)
        if self.state is not SessionState.LOADED:
            raise PredictionError("No model loaded in this session", objective)
        if self.corrupted:
            raise PredictionError("Session timed out earlier and is no longer trusted", objective)
        if objective < 1:
            raise PredictionError(f"Objective index must be >= 1, got {objective}", objective)

        try:
            value = self.engine.predict(Path(exchange_path), objective, self.predict_timeout)
        except EngineError as e:
            raise PredictionError(f"Objective {objective}: {e}", objective) from e
        except EngineTimeout as e:
            self.corrupted = True
            self.last_timeout = EngineTimeout("predict", e.timeout, objective)
            raise self.last_timeout from e

        value = float(value)
        if not math.isfinite(value):
            raise PredictionError(f"Objective {objective}: model returned {value}", objective)
        return value

    def shutdown(self) -> None:
        if self.state is SessionState.TERMINATED:
            return
        self.state = SessionState.TERMINATED
        try:
            self.engine.close()
        finally:
            if self._staging is not None:
                shutil.rmtree(self._staging, ignore_errors=True)
                self._staging = None
            if self.verbose:
                print(f"{self.engine.name} engine stopped.")

    # ---------------------------------------------------------------------
    def describe(self) -> Dict[str, Any]:
        return {
            "engine": self.engine.name,
            "state": self.state.value,
            "family": self.family,
            "corrupted": self.corrupted,
            "load_calls": self.load_calls,
            "pid": self.engine.pid,
            "usage": self.engine.usage(),
        }

    def __enter__(self) -> "ModelSession":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
