"""Curriculum-Driven Object Detection Reinforcement Learning Environment.

A procedurally populated environment for training RL agents to detect
tagged objects, with curriculum-scaled difficulty, multi-sensor detection
fusion, and shaped detection rewards.
"""

__version__ = "1.0.0"

# Make key components easily importable
from .envs.detection_env import ObjectDetectionEnv
from .engine import (
    CurriculumScheduler,
    SpatialSampler,
    DetectionFusion,
    RewardShaper,
    EpisodeState,
    EnvironmentComposer,
    DetectionSpecTable,
    load_detection_specs
)
from .config.config import (
    WorldConfig,
    AgentConfig,
    CurriculumConfig,
    TrainingConfig,
    RewardConfig,
    EvaluationConfig,
    get_default_config
)

__all__ = [
    "ObjectDetectionEnv",
    "CurriculumScheduler",
    "SpatialSampler",
    "DetectionFusion",
    "RewardShaper",
    "EpisodeState",
    "EnvironmentComposer",
    "DetectionSpecTable",
    "load_detection_specs",
    "WorldConfig",
    "AgentConfig",
    "CurriculumConfig",
    "TrainingConfig",
    "RewardConfig",
    "EvaluationConfig",
    "get_default_config"
]
