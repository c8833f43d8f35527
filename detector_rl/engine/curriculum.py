"""Curriculum scheduler mapping training progress to spawn difficulty."""

import math
from typing import Optional

from ..config.config import CurriculumConfig
from .errors import ConfigurationError
from .types import DifficultyProfile


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def validate_curriculum(config: CurriculumConfig) -> None:
    """Check that every interpolated range stays non-empty.

    Ranges are linear in progress, so min <= max at both endpoints holds
    everywhere in between.

    Raises:
        ConfigurationError: On a non-positive level count or an inverted range
    """
    if config.n_levels < 1:
        raise ConfigurationError(f"n_levels must be at least 1, got {config.n_levels}")

    pairs = [
        ("distance", "start", config.min_distance_start, config.max_distance_start),
        ("distance", "end", config.min_distance_end, config.max_distance_end),
        ("count", "start", config.min_count_start, config.max_count_start),
        ("count", "end", config.min_count_end, config.max_count_end),
    ]
    for name, endpoint, low, high in pairs:
        if low > high:
            raise ConfigurationError(
                f"min_{name}_{endpoint} ({low}) exceeds max_{name}_{endpoint} ({high})"
            )
        if low < 0:
            raise ConfigurationError(f"min_{name}_{endpoint} must be non-negative, got {low}")


class CurriculumScheduler:
    """Maps a progress value in [0, 1] to a DifficultyProfile.

    Higher progress means objects may spawn closer and farther away and in
    larger numbers. The scheduler keeps the last profile it computed for
    inspection only; ``update`` is a pure function of its input.

    Example:
        scheduler = CurriculumScheduler()
        profile = scheduler.update(0.5)
        profile.level  # 2
    """

    def __init__(self, config: Optional[CurriculumConfig] = None):
        self.config = config or CurriculumConfig()
        validate_curriculum(self.config)
        self.profile: DifficultyProfile = self.update(0.0)

    @staticmethod
    def clamp_progress(progress: float) -> float:
        """Clamp progress into [0, 1]; non-finite values count as no progress."""
        progress = float(progress)
        if not math.isfinite(progress):
            return 0.0
        return min(1.0, max(0.0, progress))

    def update(self, progress: float) -> DifficultyProfile:
        """Compute the difficulty profile for a training progress value.

        Args:
            progress: Training progress, clamped into [0, 1]

        Returns:
            The new DifficultyProfile
        """
        cfg = self.config
        p = self.clamp_progress(progress)

        level = min(cfg.n_levels - 1, max(0, math.floor(p * cfg.n_levels)))

        self.profile = DifficultyProfile(
            min_distance=_lerp(cfg.min_distance_start, cfg.min_distance_end, p),
            max_distance=_lerp(cfg.max_distance_start, cfg.max_distance_end, p),
            min_count=math.floor(_lerp(cfg.min_count_start, cfg.min_count_end, p)),
            max_count=math.floor(_lerp(cfg.max_count_start, cfg.max_count_end, p)),
            level=level,
            progress=p,
        )
        return self.profile
