import numpy as np
import pytest

from detector_rl.engine.specs import DetectionSpecTable
from detector_rl.engine.types import DetectableObjectSpec, DetectionEvent, ObjectId


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def crate_spec():
    return DetectableObjectSpec(tag="crate", base_reward=1.0, spawn_probability=1.0)


@pytest.fixture
def spec_table(crate_spec):
    return DetectionSpecTable([
        crate_spec,
        DetectableObjectSpec(tag="barrel", base_reward=0.5, spawn_probability=0.0,
                             debug_color=(0.0, 0.0, 1.0, 1.0)),
    ])


@pytest.fixture
def make_event(crate_spec):
    def _make(object_id=1, distance=10.0, position=(10.0, 0.0, 0.5), spec=None):
        return DetectionEvent(
            object_id=ObjectId(object_id),
            position=np.array(position, dtype=float),
            distance=distance,
            spec=spec or crate_spec
        )
    return _make
