"""Configuration module for world, agent, curriculum, reward and training parameters."""

from .config import (
    WorldConfig,
    AgentConfig,
    CurriculumConfig,
    TrainingConfig,
    RewardConfig,
    EvaluationConfig,
    DEFAULT_WORLD_CONFIG,
    DEFAULT_AGENT_CONFIG,
    DEFAULT_CURRICULUM_CONFIG,
    DEFAULT_TRAINING_CONFIG,
    DEFAULT_REWARD_CONFIG,
    DEFAULT_EVAL_CONFIG,
    DEFAULT_DETECTION_SPECS,
    get_default_config
)

__all__ = [
    "WorldConfig",
    "AgentConfig",
    "CurriculumConfig",
    "TrainingConfig",
    "RewardConfig",
    "EvaluationConfig",
    "DEFAULT_WORLD_CONFIG",
    "DEFAULT_AGENT_CONFIG",
    "DEFAULT_CURRICULUM_CONFIG",
    "DEFAULT_TRAINING_CONFIG",
    "DEFAULT_REWARD_CONFIG",
    "DEFAULT_EVAL_CONFIG",
    "DEFAULT_DETECTION_SPECS",
    "get_default_config"
]
