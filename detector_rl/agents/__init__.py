"""Reinforcement learning agents and training scripts."""

from .train_ppo import train_ppo, create_env
from .callbacks import CurriculumCallback, TrainingProgressCallback, PerformanceTracker

__all__ = [
    "train_ppo",
    "create_env",
    "CurriculumCallback",
    "TrainingProgressCallback",
    "PerformanceTracker"
]
