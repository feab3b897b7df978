from .r_process import RProcessEngine
from .base import StatisticalEngine


def make_engine(kind: str, **kwargs) -> StatisticalEngine:
    if kind in ("r", "R", "rscript"):
        return RProcessEngine(**kwargs)
    raise ValueError(f"Unknown engine kind: {kind}")


def engine_kwargs(config: dict) -> dict:
    """Engine constructor arguments taken from an evaluator config."""
    return {
        "binary": config.get("r_binary"),
        "args": config.get("r_args") or ["--vanilla", "--slave"],
        "packages": config.get("r_packages") or [],
    }
