import numpy as np
import pytest

from detector_rl.config.config import RewardConfig
from detector_rl.engine.episode import EpisodeState
from detector_rl.engine.rewards import RewardShaper
from detector_rl.engine.types import AgentState, ObjectId


@pytest.fixture
def shaper():
    return RewardShaper(RewardConfig(), ray_distance=20.0)


@pytest.fixture
def episode():
    state = EpisodeState()
    state.begin()
    return state


class TestRewardShaper:

    def test_first_fast_detection(self, shaper, episode, make_event):
        reward = shaper.score(make_event(distance=10.0), None, episode,
                              ray_distance=20.0, speed_ratio=0.9)
        # 1.0 base + 0.5 * 0.1 distance + 0.2 speed + 0.5 novelty
        assert reward == pytest.approx(1.75)
        assert episode.detection_count == 1
        assert episode.cumulative_reward == pytest.approx(1.75)

    def test_novelty_bonus_awarded_once(self, shaper, episode, make_event):
        first = shaper.score(make_event(), None, episode, speed_ratio=0.0)
        second = shaper.score(make_event(), None, episode, speed_ratio=0.0)
        third = shaper.score(make_event(position=(2.0, 3.0, 0.5)), None, episode, speed_ratio=0.0)

        assert first - second == pytest.approx(0.5)
        assert second == pytest.approx(third)
        assert episode.detection_count == 1
        assert len(episode.detections) == 1
        np.testing.assert_allclose(episode.detections[ObjectId(1)].position, [2.0, 3.0, 0.5])

    def test_distinct_objects_each_get_novelty(self, shaper, episode, make_event):
        shaper.score(make_event(object_id=1), None, episode, speed_ratio=0.0)
        reward = shaper.score(make_event(object_id=2), None, episode, speed_ratio=0.0)
        assert reward == pytest.approx(1.0 + 0.05 + 0.5)
        assert episode.detection_count == 2

    def test_speed_threshold_is_exclusive(self, shaper, episode, make_event):
        at_threshold = shaper.breakdown(make_event(), None, episode, speed_ratio=0.8)
        above = shaper.breakdown(make_event(), None, episode, speed_ratio=0.81)
        assert at_threshold.speed == 0.0
        assert above.speed == pytest.approx(0.2)

    def test_speed_ratio_defaults_to_agent(self, shaper, episode, make_event):
        agent = AgentState(position=np.zeros(3), velocity=np.array([4.5, 0.0, 0.0]), max_speed=5.0)
        terms = shaper.breakdown(make_event(), agent, episode)
        assert terms.speed == pytest.approx(0.2)

    def test_distance_term(self, shaper, episode, make_event):
        close = shaper.breakdown(make_event(distance=0.0), None, episode)
        edge = shaper.breakdown(make_event(distance=20.0), None, episode)
        assert close.distance == pytest.approx(0.1)
        assert edge.distance == pytest.approx(0.0)

    def test_non_positive_ray_distance_drops_distance_term(self, shaper, episode, make_event):
        terms = shaper.breakdown(make_event(), None, episode, ray_distance=0.0)
        assert terms.distance == 0.0

    def test_breakdown_does_not_mutate(self, shaper, episode, make_event):
        terms = shaper.breakdown(make_event(), None, episode, speed_ratio=1.0)
        assert terms.total == pytest.approx(1.0 + 0.05 + 0.2 + 0.5)
        assert episode.detection_count == 0
        assert episode.detections == {}

    def test_inactive_episode_scores_nothing(self, shaper, make_event):
        state = EpisodeState()
        state.begin()
        state.end()
        assert shaper.score(make_event(), None, state, speed_ratio=1.0) == 0.0
        assert state.detection_count == 0

    def test_false_positive_penalty_exposed(self, shaper):
        assert shaper.false_positive_penalty == pytest.approx(-0.2)
