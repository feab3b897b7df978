"""Row-oriented exchange format between predictor tuples and the engine."""
from __future__ import annotations
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np
import pandas as pd

from .errors import TransformError
from .files import write_predictors_csv
from .path_resolver import exchange_dir
from .predictors import PredictorTuple

# The trained models expect log(Hops); Hops is the second column.
TRANSFORM_COLUMN = 1


@dataclass(frozen=True, eq=False)
class ExchangeRow:
    frame: pd.DataFrame
    transformed: bool = False

    @property
    def names(self):
        return list(self.frame.columns)

    @property
    def values(self):
        return self.frame.iloc[0].tolist()


class ExchangeCodec:
    def __init__(self, folder: str | Path | None = None):
        self.folder = folder

    def encode(self, pred: PredictorTuple, transform: bool = True) -> ExchangeRow:
        """Single-row table in tuple order; ``transform`` applies the log rescale."""
        frame = pd.DataFrame([list(pred.values)], columns=list(pred.names))
        row = ExchangeRow(frame)
        return self.apply_feature_transform(row) if transform else row

    def decode(self, row: ExchangeRow) -> PredictorTuple:
        if row.transformed:
            raise ValueError("Cannot decode a transformed exchange row")
        return PredictorTuple(row.names, [int(v) for v in row.values])

    def apply_feature_transform(self, row: ExchangeRow) -> ExchangeRow:
        if row.transformed:
            return row
        frame = row.frame.copy()
        column = frame.columns[TRANSFORM_COLUMN]
        value = frame.iat[0, TRANSFORM_COLUMN]
        if not np.isfinite(value) or value <= 0:
            raise TransformError(column, value, "natural logarithm requires a positive value")
        frame[column] = np.log(frame[column].astype(float))
        return ExchangeRow(frame, transformed=True)

    @contextmanager
    def staged(self, row: ExchangeRow) -> Iterator[Path]:
        """Write ``row`` to a uniquely named CSV that is removed on exit."""
        path = write_predictors_csv(row.frame, exchange_dir(self.folder))
        try:
            yield path
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
