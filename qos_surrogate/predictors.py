"""Immutable predictor vector scored by the surrogate models."""
from __future__ import annotations
from dataclasses import dataclass
from numbers import Integral
from typing import Dict, Sequence, Tuple

from .config import PREDICTOR_NAMES
from .errors import ShapeMismatch


@dataclass(frozen=True)
class PredictorTuple:
    names: Tuple[str, ...]
    values: Tuple[int, ...]

    def __init__(self, names: Sequence[str], values: Sequence[int]):
        names = tuple(str(n) for n in names)
        values = tuple(values)
        if len(names) != len(values):
            raise ShapeMismatch(
                f"Expected {len(names)} predictor values ({', '.join(names)}), got {len(values)}",
                expected=len(names), got=len(values),
            )
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ShapeMismatch(f"Duplicate predictor names: {', '.join(dupes)}")
        for name, v in zip(names, values):
            if isinstance(v, bool) or not isinstance(v, Integral):
                raise TypeError(f"Predictor '{name}' must be an integer, got {v!r}")
        object.__setattr__(self, "names", names)
        object.__setattr__(self, "values", tuple(int(v) for v in values))

    @classmethod
    def from_values(cls, values: Sequence[int]) -> "PredictorTuple":
        return cls(PREDICTOR_NAMES, values)

    def __len__(self) -> int:
        return len(self.names)

    def value_of(self, name: str) -> int:
        return self.values[self.names.index(name)]

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(self.names, self.values))
