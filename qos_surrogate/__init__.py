"""QoS surrogate evaluator package."""

# The evaluator is imported lazily so that ``--help`` and the error/config
# modules do not pull in pandas and psutil.

__all__ = ["SurrogateEvaluator", "PredictorTuple"]


def __getattr__(name):
    if name == "SurrogateEvaluator":
        from .evaluator import SurrogateEvaluator
        return SurrogateEvaluator
    if name == "PredictorTuple":
        from .predictors import PredictorTuple
        return PredictorTuple
    raise AttributeError(name)
