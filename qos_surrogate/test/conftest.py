from __future__ import annotations
from pathlib import Path

import pandas as pd
import pytest

from qos_surrogate.engine.base import StatisticalEngine
from qos_surrogate.errors import EngineError, EngineTimeout, EngineUnavailable


class FakeEngine(StatisticalEngine):
    """In-process stand-in for R: objective i predicts i * sum(exchange row)."""
    name = "fake"

    def __init__(self, fail_objectives=(), timeout_objectives=(), fail_start=False, fail_load=False):
        self.fail_objectives = set(fail_objectives)
        self.timeout_objectives = set(timeout_objectives)
        self.fail_start = fail_start
        self.fail_load = fail_load
        self.calls = []
        self.loaded = []
        self.seen_rows = []
        self.running = False
        self.closed = 0

    def start(self, timeout):
        self.calls.append("start")
        if self.fail_start:
            raise EngineUnavailable("R executable not found")
        self.running = True

    def load(self, definition_path, training_set_path, timeout):
        self.calls.append("load")
        if self.fail_load:
            raise EngineError("could not find function \"earth\"")
        self.loaded.append((Path(definition_path).read_text(), Path(training_set_path).read_text()))

    def predict(self, exchange_path, objective, timeout):
        self.calls.append(("predict", objective))
        if objective in self.timeout_objectives:
            raise EngineTimeout("predict", timeout)
        if objective in self.fail_objectives:
            raise EngineError(f"object 'modelQoS{objective}' not found")
        row = pd.read_csv(exchange_path)
        self.seen_rows.append(row)
        return float(row.iloc[0].sum()) * objective

    def close(self):
        self.calls.append("close")
        self.running = False
        self.closed += 1

    @property
    def pid(self):
        return 4242 if self.running else None


@pytest.fixture
def resources(tmp_path):
    folder = tmp_path / "resources"
    folder.mkdir()
    for family in ("LR", "MARS", "CART", "RF"):
        (folder / f"build{family}.R").write_text(f"# {family} model definition\n", encoding="utf-8")
    (folder / "trainingSet.csv").write_text("ID,Hops,QoS1\n1,22,0.5\n", encoding="utf-8")
    return folder


@pytest.fixture
def exchange_dir(tmp_path):
    folder = tmp_path / "exchange"
    folder.mkdir()
    return folder


@pytest.fixture
def make_evaluator(resources, exchange_dir):
    from qos_surrogate.evaluator import SurrogateEvaluator

    created = []

    def _make(engine=None, **overrides):
        engines = []

        def factory():
            e = engine if engine is not None and not engines else FakeEngine()
            engines.append(e)
            return e

        cfg = {
            "resources_dir": str(resources),
            "exchange_dir": str(exchange_dir),
            "verbose": False,
        }
        cfg.update(overrides)
        ev = SurrogateEvaluator(config=cfg, engine_factory=factory)
        ev.engines = engines
        created.append(ev)
        return ev

    yield _make
    for ev in created:
        ev.terminate()


@pytest.fixture
def fake_engine_cls():
    return FakeEngine
