import math

import numpy as np
import pytest

from qos_surrogate.config import EXAMPLE_VALUES
from qos_surrogate.engine.session import SessionState
from qos_surrogate.errors import (
    EngineTimeout, EngineUnavailable, FamilyConflict, PartialPredictionFailure,
    PredictionError, ShapeMismatch, TransformError, UnknownModelFamily,
)

ROW_SUM = 1 + math.log(22) + sum(EXAMPLE_VALUES[2:])


def test_defaults(make_evaluator):
    ev = make_evaluator()
    assert ev.model_family == "LR"
    assert ev.objectives == 3
    assert ev.session is None


def test_example_configuration_scores_three_objectives(make_evaluator):
    ev = make_evaluator()
    ev.configure("LR", 3)
    results = ev.evaluate([1, 22, 2, 3, 2, 3, 4, 6, 3])
    assert isinstance(results, np.ndarray)
    assert results.shape == (3,)
    assert results == pytest.approx([ROW_SUM, 2 * ROW_SUM, 3 * ROW_SUM])


@pytest.mark.parametrize("count", [1, 2, 4, 7])
def test_result_length_matches_objective_count(make_evaluator, count):
    ev = make_evaluator()
    ev.configure("RF", count)
    assert len(ev.evaluate(EXAMPLE_VALUES)) == count


def test_session_is_loaded_once_and_reused(make_evaluator):
    ev = make_evaluator()
    ev.evaluate(EXAMPLE_VALUES)
    first = ev.session
    ev.evaluate([2, 5, 1, 1, 1, 1, 1, 1, 1])
    ev.evaluate(EXAMPLE_VALUES)
    assert ev.session is first
    assert ev.load_count == 1
    assert len(ev.engines) == 1
    assert ev.engines[0].calls.count("load") == 1
    assert ev.engines[0].calls.count("start") == 1


def test_predictions_issued_in_objective_order(make_evaluator):
    ev = make_evaluator()
    ev.configure("LR", 4)
    ev.evaluate(EXAMPLE_VALUES)
    predicts = [c for c in ev.engines[0].calls if isinstance(c, tuple)]
    assert predicts == [("predict", 1), ("predict", 2), ("predict", 3), ("predict", 4)]


def test_exchange_artifact_does_not_outlive_evaluate(make_evaluator, exchange_dir, fake_engine_cls):
    ev = make_evaluator(engine=fake_engine_cls(fail_objectives={1}))
    with pytest.raises(PartialPredictionFailure):
        ev.evaluate(EXAMPLE_VALUES)
    assert list(exchange_dir.iterdir()) == []


def test_wrong_length_fails_without_engine(make_evaluator):
    ev = make_evaluator()
    with pytest.raises(ShapeMismatch):
        ev.evaluate([1, 22, 2])
    assert ev.session is None
    assert ev.engines == []


def test_wrong_length_leaves_loaded_session_untouched(make_evaluator):
    ev = make_evaluator()
    ev.evaluate(EXAMPLE_VALUES)
    calls_before = list(ev.engines[0].calls)
    with pytest.raises(ShapeMismatch):
        ev.evaluate(EXAMPLE_VALUES[:-1])
    assert ev.engines[0].calls == calls_before
    assert ev.session.state is SessionState.LOADED


def test_negative_hops_fails_before_engine(make_evaluator):
    ev = make_evaluator()
    with pytest.raises(TransformError) as info:
        ev.evaluate([1, -5, 2, 3, 2, 3, 4, 6, 3])
    assert info.value.field == "Hops"
    assert "Hops" in str(info.value)
    assert ev.engines == []


def test_partial_failure_keeps_other_slots(make_evaluator, fake_engine_cls):
    ev = make_evaluator(engine=fake_engine_cls(fail_objectives={2}))
    ev.configure("LR", 3)
    with pytest.raises(PartialPredictionFailure) as info:
        ev.evaluate(EXAMPLE_VALUES)
    err = info.value
    assert err.failed_indices == [2]
    assert isinstance(err.failures[2], PredictionError)
    assert err.failures[2].objective == 2
    assert len(err.results) == 3
    assert err.results[0] == pytest.approx(ROW_SUM)
    assert math.isnan(err.results[1])
    assert err.results[2] == pytest.approx(3 * ROW_SUM)
    assert err.succeeded == {1: pytest.approx(ROW_SUM), 3: pytest.approx(3 * ROW_SUM)}


def test_all_slots_failing_is_still_reported_per_slot(make_evaluator, fake_engine_cls):
    ev = make_evaluator(engine=fake_engine_cls(fail_objectives={1, 2}))
    ev.configure("CART", 2)
    with pytest.raises(PartialPredictionFailure) as info:
        ev.evaluate(EXAMPLE_VALUES)
    assert info.value.failed_indices == [1, 2]
    assert np.isnan(info.value.results).all()


def test_family_switch_requires_new_session(make_evaluator):
    ev = make_evaluator()
    ev.evaluate(EXAMPLE_VALUES)
    ev.configure("MARS", 3)
    with pytest.raises(FamilyConflict):
        ev.evaluate(EXAMPLE_VALUES)
    assert ev.session.family == "LR"

    ev.terminate()
    assert len(ev.evaluate(EXAMPLE_VALUES)) == 3
    assert ev.session.family == "MARS"
    assert ev.load_count == 2
    assert len(ev.engines) == 2


def test_timeout_blocks_reuse_until_terminate(make_evaluator, fake_engine_cls):
    ev = make_evaluator(engine=fake_engine_cls(timeout_objectives={2}), predict_timeout=1.0)
    with pytest.raises(PartialPredictionFailure) as info:
        ev.evaluate(EXAMPLE_VALUES)
    assert isinstance(info.value.failures[2], EngineTimeout)
    # objective 3 is refused by the corrupted session rather than sent
    assert isinstance(info.value.failures[3], PredictionError)
    assert ("predict", 3) not in ev.engines[0].calls

    with pytest.raises(EngineTimeout) as again:
        ev.evaluate(EXAMPLE_VALUES)
    assert (again.value.operation, again.value.objective) == ("predict", 2)
    assert again.value.timeout == 1.0

    ev.terminate()
    assert len(ev.evaluate(EXAMPLE_VALUES)) == 3


def test_engine_unavailable_is_not_retried(make_evaluator, fake_engine_cls):
    ev = make_evaluator(engine=fake_engine_cls(fail_start=True))
    with pytest.raises(EngineUnavailable):
        ev.evaluate(EXAMPLE_VALUES)
    assert ev.session is None
    assert len(ev.engines) == 1


def test_configure_validates_synchronously(make_evaluator):
    ev = make_evaluator()
    with pytest.raises(UnknownModelFamily):
        ev.configure("SVM", 3)
    with pytest.raises(ValueError):
        ev.configure("LR", 0)
    assert (ev.model_family, ev.objectives) == ("LR", 3)
    assert ev.engines == []


def test_zero_objectives_in_config_is_rejected(make_evaluator):
    with pytest.raises(ValueError, match="objective_count"):
        make_evaluator(objectives=0)
    assert make_evaluator(objectives=2).objectives == 2


def test_terminate_before_evaluate_is_noop(make_evaluator):
    ev = make_evaluator()
    ev.terminate()
    ev.terminate()
    assert ev.session is None


def test_terminate_twice_after_evaluate(make_evaluator):
    ev = make_evaluator()
    ev.evaluate(EXAMPLE_VALUES)
    session = ev.session
    ev.terminate()
    ev.terminate()
    assert session.state is SessionState.TERMINATED
    assert ev.engines[0].closed == 1


def test_context_manager_terminates(make_evaluator):
    with make_evaluator() as ev:
        ev.evaluate(EXAMPLE_VALUES)
        session = ev.session
    assert session.state is SessionState.TERMINATED
    assert ev.session is None
