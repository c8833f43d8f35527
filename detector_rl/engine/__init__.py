"""Curriculum-driven detection and reward engine."""

from .errors import DetectorError, ConfigurationError, NoValidPositionError, PlacementWarning
from .types import (
    ObjectId,
    DetectableObjectSpec,
    DifficultyProfile,
    Hit,
    DetectionEvent,
    DetectionRecord,
    AgentState,
    PlannedObject,
    PlannedObstacle,
    SpawnPlan
)
from .specs import DetectionSpecTable, load_detection_specs
from .curriculum import CurriculumScheduler
from .sampler import Bounds, SpatialSampler
from .detection import DetectionFusion, RaySensor, ViewportSensor, AreaSensor
from .episode import EpisodeState, EpisodePhase
from .rewards import RewardShaper, RewardBreakdown
from .composer import EnvironmentComposer

__all__ = [
    "DetectorError",
    "ConfigurationError",
    "NoValidPositionError",
    "PlacementWarning",
    "ObjectId",
    "DetectableObjectSpec",
    "DifficultyProfile",
    "Hit",
    "DetectionEvent",
    "DetectionRecord",
    "AgentState",
    "PlannedObject",
    "PlannedObstacle",
    "SpawnPlan",
    "DetectionSpecTable",
    "load_detection_specs",
    "CurriculumScheduler",
    "Bounds",
    "SpatialSampler",
    "DetectionFusion",
    "RaySensor",
    "ViewportSensor",
    "AreaSensor",
    "EpisodeState",
    "EpisodePhase",
    "RewardShaper",
    "RewardBreakdown",
    "EnvironmentComposer"
]
