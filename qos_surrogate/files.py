"""Functions for reading model definitions and writing exchange/result files"""

import shutil
import uuid
import numpy as np
import pandas as pd
from pathlib import Path
from typing import List, Mapping, Sequence, Union


def read_model_definition(path: Union[str, Path]) -> str:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing model definition: {path}")
    return path.read_text(encoding="utf-8")


def stage_text(text: str, folder: Union[str, Path], suffix: str = ".R") -> Path:
    """Write ``text`` to a uniquely named file in ``folder``."""
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    target = folder / f"stage_{uuid.uuid4().hex}{suffix}"
    target.write_text(text, encoding="utf-8")
    return target


def stage_copy(src: Union[str, Path], folder: Union[str, Path]) -> Path:
    src = Path(src)
    if not src.exists():
        raise FileNotFoundError(f"Missing file: {src}")
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    target = folder / f"stage_{uuid.uuid4().hex}{src.suffix}"
    shutil.copyfile(src, target)
    return target


def write_predictors_csv(frame: pd.DataFrame, folder: Union[str, Path]) -> Path:
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    target = folder / f"predictors_{uuid.uuid4().hex}.csv"
    frame.to_csv(target, index=False, float_format="%.17g")
    return target


def read_predictor_rows(path: Union[str, Path], names: Sequence[str]) -> List[List[int]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    df = pd.read_csv(path)
    missing = [n for n in names if n not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing predictor columns: {', '.join(missing)}")
    subset = df[list(names)]
    for column in subset.columns:
        cells = pd.to_numeric(subset[column], errors="coerce")
        bad = ~np.isfinite(cells) | (cells != cells.round())
        if bad.any():
            i = int(bad.idxmax())
            raise ValueError(
                f"{path}: predictor '{column}' in data row {i + 1} must be an integer, "
                f"got {subset[column].iloc[i]!r}"
            )
    return subset.astype(float).astype(int).values.tolist()


def write_results_csv(
        rows: Sequence[Mapping[str, object]],
        output_path: Union[str, Path]) -> pd.DataFrame:
    if not rows:
        raise ValueError("No results to write")
    df = pd.DataFrame(list(rows))
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    return df
