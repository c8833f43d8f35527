import numpy as np
import pytest

from detector_rl.engine.episode import EpisodePhase, EpisodeState
from detector_rl.engine.types import ObjectId


class TestEpisodeLifecycle:

    def test_starts_not_started(self):
        state = EpisodeState()
        assert state.phase is EpisodePhase.NOT_STARTED
        assert not state.is_active()
        assert not state.is_ended()

    def test_begin_activates(self):
        state = EpisodeState()
        state.begin()
        assert state.is_active()
        assert state.elapsed == 0.0

    def test_timeout_transition(self):
        state = EpisodeState(timeout=30.0)
        state.begin()
        assert not state.advance(10.0)
        assert not state.advance(10.0)
        assert state.advance(10.0)
        assert state.is_ended()

    def test_just_below_timeout_keeps_running(self):
        state = EpisodeState(timeout=30.0)
        state.begin()
        assert not state.advance(29.99)
        assert state.is_active()

    def test_many_small_steps_reach_timeout(self):
        state = EpisodeState(timeout=30.0)
        state.begin()
        steps = 0
        while not state.advance(0.1):
            steps += 1
        assert steps + 1 == 300

    def test_external_end(self):
        state = EpisodeState()
        state.begin()
        state.end()
        assert state.is_ended()

    def test_ended_episode_rejects_mutation(self, crate_spec):
        state = EpisodeState()
        state.begin()
        state.end()

        elapsed = state.elapsed
        state.advance(5.0)
        assert state.elapsed == elapsed
        assert not state.record_detection(ObjectId(1), np.zeros(3), crate_spec)
        state.add_reward(3.0)
        assert state.detections == {}
        assert state.cumulative_reward == 0.0

    def test_not_started_rejects_detections(self, crate_spec):
        state = EpisodeState()
        assert not state.record_detection(ObjectId(1), np.zeros(3), crate_spec)
        assert state.detection_count == 0

    def test_begin_clears_previous_episode(self, crate_spec):
        state = EpisodeState()
        state.begin()
        state.advance(12.0)
        state.record_detection(ObjectId(1), np.zeros(3), crate_spec)
        state.record_detection(ObjectId(2), np.ones(3), crate_spec)
        state.add_reward(4.2)
        state.end()

        state.begin()
        assert state.is_active()
        assert state.detections == {}
        assert state.detection_count == 0
        assert state.elapsed == 0.0
        assert state.cumulative_reward == 0.0
        assert state.episode_index == 2


class TestDetectionRecords:

    def test_first_detection_creates_record(self, crate_spec):
        state = EpisodeState()
        state.begin()
        state.advance(2.0)

        assert state.record_detection(ObjectId(9), np.array([1.0, 2.0, 0.5]), crate_spec)
        record = state.detections[ObjectId(9)]
        assert record.spec is crate_spec
        assert record.first_detected_at == pytest.approx(2.0)
        assert state.detection_count == 1

    def test_repeat_detection_updates_in_place(self, crate_spec):
        state = EpisodeState()
        state.begin()
        state.record_detection(ObjectId(9), np.array([1.0, 2.0, 0.5]), crate_spec)
        record = state.detections[ObjectId(9)]

        state.advance(1.0)
        assert not state.record_detection(ObjectId(9), np.array([4.0, 4.0, 0.5]), crate_spec)

        assert state.detections[ObjectId(9)] is record
        np.testing.assert_allclose(record.position, [4.0, 4.0, 0.5])
        assert record.last_detected_at == pytest.approx(1.0)
        assert record.sightings == 2
        assert state.detection_count == 1
        assert len(state.detections) == 1

    def test_record_keeps_its_own_copy_of_position(self, crate_spec):
        state = EpisodeState()
        state.begin()
        position = np.array([1.0, 1.0, 0.5])
        state.record_detection(ObjectId(3), position, crate_spec)
        position[0] = 99.0
        assert state.detections[ObjectId(3)].position[0] == 1.0
