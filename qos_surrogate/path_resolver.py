"""Path resolver logic for model definitions, training data and exchange rows"""

from __future__ import annotations
import tempfile
from pathlib import Path
from .config import RESOURCES_DIR, EXCHANGE_DIR, MODEL_FAMILIES
from .errors import UnknownModelFamily


def normalize_family(family: str) -> str:
    key = str(family).strip().upper()
    if key not in MODEL_FAMILIES:
        raise UnknownModelFamily(family)
    return key

def model_definition_path(family: str, resources_dir: str | Path | None = None) -> Path:
    """``build<FAMILY>.R`` inside the resources directory."""
    base = Path(resources_dir) if resources_dir else RESOURCES_DIR
    return base / f"build{normalize_family(family)}.R"

def training_set_path(
    training_set: str | Path = "trainingSet.csv",
    resources_dir: str | Path | None = None,
) -> Path:
    p = Path(training_set)
    # Bare file names live in the resources directory; anything else is used as given.
    if p.is_absolute() or p.parent != Path("."):
        return p
    base = Path(resources_dir) if resources_dir else RESOURCES_DIR
    return base / p

def exchange_dir(folder: str | Path | None = None) -> Path:
    if folder:
        path = Path(folder)
    elif EXCHANGE_DIR:
        path = Path(EXCHANGE_DIR)
    else:
        path = Path(tempfile.gettempdir()) / "qos_surrogate"
    path.mkdir(parents=True, exist_ok=True)
    return path
