"""Error kinds raised by the surrogate evaluator and its sessions."""
from __future__ import annotations
from typing import Dict, Sequence

from .config import MODEL_FAMILIES


class SurrogateError(Exception):
    """Base class for every failure surfaced by this package."""


class ShapeMismatch(SurrogateError, ValueError):
    def __init__(self, message: str, expected: int | None = None, got: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.got = got


class UnknownModelFamily(SurrogateError, ValueError):
    def __init__(self, family):
        super().__init__(f"Unknown model family '{family}'. Available: {', '.join(MODEL_FAMILIES)}")
        self.family = family


class TransformError(SurrogateError, ValueError):
    def __init__(self, field: str, value, reason: str):
        super().__init__(f"Cannot transform predictor '{field}'={value}: {reason}")
        self.field = field
        self.value = value


class EngineUnavailable(SurrogateError):
    """The statistical engine could not be launched or initialized."""


class EngineError(SurrogateError):
    """Fault reported by the engine while evaluating a request."""


class EngineTimeout(SurrogateError):
    def __init__(self, operation: str, timeout: float, objective: int | None = None):
        where = f" (objective {objective})" if objective is not None else ""
        super().__init__(f"Engine did not answer '{operation}'{where} within {timeout:g}s")
        self.operation = operation
        self.timeout = timeout
        self.objective = objective


class SessionStateError(SurrogateError):
    pass


class ModelLoadError(SurrogateError):
    def __init__(self, family: str, reason: str):
        super().__init__(f"Failed to load model family {family}: {reason}")
        self.family = family


class FamilyConflict(SurrogateError):
    def __init__(self, loaded: str, requested: str):
        super().__init__(
            f"Session already holds model family {loaded}; cannot load {requested}. "
            "Terminate the session and start a new one to switch families."
        )
        self.loaded = loaded
        self.requested = requested


class PredictionError(SurrogateError):
    def __init__(self, message: str, objective: int | None = None):
        super().__init__(message)
        self.objective = objective


class PartialPredictionFailure(SurrogateError):
    """Some objective slots failed; ``results`` keeps the ones that did not (NaN elsewhere)."""

    def __init__(self, results: Sequence[float], failures: Dict[int, SurrogateError]):
        self.results = results
        self.failures = dict(failures)
        details = "; ".join(f"objective {i}: {e}" for i, e in sorted(self.failures.items()))
        super().__init__(f"{len(self.failures)} of {len(results)} objective predictions failed ({details})")

    @property
    def failed_indices(self):
        return sorted(self.failures)

    @property
    def succeeded(self) -> Dict[int, float]:
        return {
            i + 1: float(v) for i, v in enumerate(self.results)
            if (i + 1) not in self.failures
        }
