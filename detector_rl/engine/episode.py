"""Per-agent episode state and lifecycle."""

from enum import Enum
from typing import Dict, Optional

import numpy as np

from .types import DetectableObjectSpec, DetectionRecord, ObjectId

DEFAULT_EPISODE_TIMEOUT = 30.0

# Absorbs float drift from summing many small step durations
_TIME_EPSILON = 1e-9


class EpisodePhase(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"


class EpisodeState:
    """Mutable state of one agent's episode.

    Lifecycle: ``NOT_STARTED -> ACTIVE -> ENDED``. ``begin()`` starts a fresh
    episode from any phase. While ACTIVE, ``advance(dt)`` accumulates time
    and ends the episode once the timeout is reached; ``end()`` ends it on an
    external terminal signal. Mutations outside ACTIVE are ignored.

    An EpisodeState belongs to exactly one agent and must only be mutated by
    that agent's step.
    """

    def __init__(self, timeout: float = DEFAULT_EPISODE_TIMEOUT):
        self.timeout = timeout
        self.phase = EpisodePhase.NOT_STARTED
        self.elapsed: float = 0.0
        self.detection_count: int = 0
        self.cumulative_reward: float = 0.0
        self.detections: Dict[ObjectId, DetectionRecord] = {}
        self.episode_index: int = 0

    def begin(self) -> None:
        """Start a new episode, clearing everything from the previous one."""
        self.elapsed = 0.0
        self.detection_count = 0
        self.cumulative_reward = 0.0
        self.detections.clear()
        self.episode_index += 1
        self.phase = EpisodePhase.ACTIVE

    def advance(self, dt: float) -> bool:
        """Advance the episode timer.

        Args:
            dt: Elapsed simulated time for this step

        Returns:
            True if the episode has ended
        """
        if self.phase is not EpisodePhase.ACTIVE:
            return self.is_ended()

        self.elapsed += dt
        if self.elapsed >= self.timeout - _TIME_EPSILON:
            self.phase = EpisodePhase.ENDED
        return self.is_ended()

    def end(self) -> None:
        """End the episode on an external terminal signal."""
        if self.phase is EpisodePhase.ACTIVE:
            self.phase = EpisodePhase.ENDED

    def is_active(self) -> bool:
        return self.phase is EpisodePhase.ACTIVE

    def is_ended(self) -> bool:
        return self.phase is EpisodePhase.ENDED

    def has_detected(self, object_id: ObjectId) -> bool:
        return object_id in self.detections

    def record_detection(
        self,
        object_id: ObjectId,
        position: np.ndarray,
        spec: DetectableObjectSpec
    ) -> bool:
        """Insert or refresh the record for ``object_id``.

        Returns:
            True if this is the first detection of the object this episode
        """
        if not self.is_active():
            return False

        position = np.asarray(position, dtype=float).copy()
        record: Optional[DetectionRecord] = self.detections.get(object_id)
        if record is not None:
            record.position = position
            record.last_detected_at = self.elapsed
            record.sightings += 1
            return False

        self.detections[object_id] = DetectionRecord(
            object_id=object_id,
            position=position,
            spec=spec,
            first_detected_at=self.elapsed,
            last_detected_at=self.elapsed
        )
        self.detection_count += 1
        return True

    def add_reward(self, reward: float) -> None:
        if self.is_active():
            self.cumulative_reward += reward
