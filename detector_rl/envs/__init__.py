"""Simulated world and Gymnasium environment for detection training."""

from .world import DetectionWorld, AgentSensingContext
from .detection_env import ObjectDetectionEnv

__all__ = [
    "DetectionWorld",
    "AgentSensingContext",
    "ObjectDetectionEnv"
]
