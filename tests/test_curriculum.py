import numpy as np
import pytest

from detector_rl.config.config import CurriculumConfig
from detector_rl.engine.curriculum import CurriculumScheduler
from detector_rl.engine.errors import ConfigurationError
from detector_rl.envs.detection_env import ObjectDetectionEnv


class TestCurriculumScheduler:

    @pytest.fixture
    def scheduler(self):
        return CurriculumScheduler()

    def test_start_of_training(self, scheduler):
        profile = scheduler.update(0.0)
        assert profile.min_distance == pytest.approx(5.0)
        assert profile.max_distance == pytest.approx(20.0)
        assert profile.min_count == 3
        assert profile.max_count == 15
        assert profile.level == 0

    def test_end_of_training(self, scheduler):
        profile = scheduler.update(1.0)
        assert profile.min_distance == pytest.approx(2.0)
        assert profile.max_distance == pytest.approx(30.0)
        assert profile.min_count == 10
        assert profile.max_count == 30
        assert profile.level == 4

    def test_midpoint_counts_are_floored(self, scheduler):
        profile = scheduler.update(0.5)
        assert profile.min_distance == pytest.approx(3.5)
        assert profile.max_distance == pytest.approx(25.0)
        assert profile.min_count == 6
        assert profile.max_count == 22
        assert profile.level == 2

    @pytest.mark.parametrize("progress, level", [
        (0.0, 0), (0.19, 0), (0.2, 1), (0.45, 2), (0.79, 3), (0.8, 4), (0.99, 4), (1.0, 4),
    ])
    def test_level_index(self, scheduler, progress, level):
        assert scheduler.update(progress).level == level

    @pytest.mark.parametrize("progress, clamped", [(-0.5, 0.0), (1.7, 1.0), (float("nan"), 0.0)])
    def test_out_of_range_progress_is_clamped(self, scheduler, progress, clamped):
        assert scheduler.update(progress) == scheduler.update(clamped)

    def test_update_is_deterministic(self, scheduler):
        first = scheduler.update(0.37)
        scheduler.update(0.9)
        assert scheduler.update(0.37) == first

    def test_difficulty_grows_with_progress(self, scheduler):
        profiles = [scheduler.update(p) for p in np.linspace(0.0, 1.0, 51)]
        for easier, harder in zip(profiles, profiles[1:]):
            assert easier.min_distance >= harder.min_distance
            assert easier.max_distance <= harder.max_distance
            assert easier.min_count <= harder.min_count
            assert easier.max_count <= harder.max_count
            assert easier.level <= harder.level

    def test_min_never_exceeds_max(self, scheduler):
        for p in np.linspace(0.0, 1.0, 21):
            profile = scheduler.update(p)
            assert profile.min_distance <= profile.max_distance
            assert profile.min_count <= profile.max_count

    def test_last_profile_is_kept(self, scheduler):
        profile = scheduler.update(0.6)
        assert scheduler.profile is profile

    def test_custom_endpoints(self):
        config = CurriculumConfig(n_levels=2, min_count_start=1, min_count_end=1,
                                  max_count_start=2, max_count_end=4)
        profile = CurriculumScheduler(config).update(1.0)
        assert profile.level == 1
        assert (profile.min_count, profile.max_count) == (1, 4)

    def test_sample_object_count_is_inclusive(self, scheduler, rng):
        profile = scheduler.update(0.0)
        counts = {profile.sample_object_count(rng) for _ in range(2000)}
        assert min(counts) == profile.min_count
        assert max(counts) == profile.max_count


class TestCurriculumValidation:

    @pytest.mark.parametrize("overrides", [
        {"min_count_end": 40.0},
        {"min_count_start": 16.0},
        {"min_distance_end": 31.0},
        {"min_distance_start": -1.0},
        {"n_levels": 0},
    ])
    def test_invalid_endpoints_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            CurriculumScheduler(CurriculumConfig(**overrides))

    def test_env_rejects_invalid_curriculum(self, spec_table):
        with pytest.raises(ConfigurationError):
            ObjectDetectionEnv(
                curriculum_config=CurriculumConfig(min_count_end=40.0),
                spec_table=spec_table
            )
