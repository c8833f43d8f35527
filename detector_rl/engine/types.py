"""Shared data types and collaborator interfaces for the detection engine.

Positions are 3D numpy arrays ``[x, y, z]`` where ``x``/``y`` span the
horizontal ground plane and ``z`` is the vertical axis. Types holding
position arrays compare and hash by identity.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, NewType, Optional, Protocol, Sequence, Tuple

import numpy as np

# Identity assigned by the environment (spawner) to every live object
ObjectId = NewType("ObjectId", int)

Color = Tuple[float, float, float, float]
ObstacleCheck = Callable[[np.ndarray], bool]


@dataclass(frozen=True)
class DetectableObjectSpec:
    """Per-category configuration of a detectable object."""

    tag: str  # Category tag matched against sensor hits
    base_reward: float  # Reward granted for every detection of this category
    spawn_probability: float = 0.5  # Chance to spawn per spawn round, [0, 1]
    object_scale: float = 1.0  # Uniform size scale of spawned objects
    debug_color: Color = (1.0, 1.0, 1.0, 1.0)  # Display only


@dataclass(frozen=True)
class DifficultyProfile:
    """Spawn and distance parameters derived from curriculum progress."""

    min_distance: float
    max_distance: float
    min_count: int
    max_count: int
    level: int
    progress: float = 0.0

    def sample_object_count(self, rng: np.random.Generator) -> int:
        """Draw a spawn round count uniformly in [min_count, max_count]."""
        return int(rng.integers(self.min_count, self.max_count + 1))


@dataclass(eq=False)
class Hit:
    """A single sensing result reported by the physical world."""

    object_id: ObjectId
    tag: str
    point: np.ndarray  # Hit point (casts) or object position (area query)
    distance: float = 0.0


@dataclass(frozen=True, eq=False)
class DetectionEvent:
    """A hit that matched a detectable category."""

    object_id: ObjectId
    position: np.ndarray
    distance: float
    spec: DetectableObjectSpec
    modality: str = "ray"


@dataclass(eq=False)
class DetectionRecord:
    """Episode-scoped memory of one detected object."""

    object_id: ObjectId
    position: np.ndarray
    spec: DetectableObjectSpec
    first_detected_at: float = 0.0
    last_detected_at: float = 0.0
    sightings: int = 1


@dataclass(eq=False)
class AgentState:
    """Kinematic state of a simulated agent."""

    position: np.ndarray
    yaw: float = 0.0  # degrees, counter-clockwise from +x
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    max_speed: float = 5.0

    @property
    def forward(self) -> np.ndarray:
        rad = np.deg2rad(self.yaw)
        return np.array([np.cos(rad), np.sin(rad), 0.0])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def speed_ratio(self) -> float:
        """Current speed relative to the configured maximum speed."""
        if self.max_speed <= 0:
            return 0.0
        return self.speed / self.max_speed


@dataclass(eq=False)
class PlannedObject:
    spec: DetectableObjectSpec
    position: np.ndarray
    agent_index: int = 0  # Agent whose surroundings the object was placed in


@dataclass(eq=False)
class PlannedObstacle:
    position: np.ndarray
    yaw: float = 0.0
    scale: float = 1.0


@dataclass(eq=False)
class SpawnPlan:
    """Everything the spawner has to instantiate for one episode."""

    objects: List[PlannedObject] = field(default_factory=list)
    agents: List[np.ndarray] = field(default_factory=list)
    obstacles: List[PlannedObstacle] = field(default_factory=list)
    profile: Optional[DifficultyProfile] = None


class SensingContext(Protocol):
    """Sensing capabilities available to an agent during one step."""

    origin: np.ndarray
    forward: np.ndarray

    def ray_cast(self, origin: np.ndarray, direction: np.ndarray,
                 max_distance: float) -> Optional[Hit]:
        ...

    def viewport_cast(self, center_fraction: Tuple[float, float],
                      max_distance: float) -> Optional[Hit]:
        ...

    def area_query(self, center: np.ndarray, radius: float) -> Sequence[Hit]:
        ...


class Spawner(Protocol):
    """Scene management capability consuming a SpawnPlan."""

    def instantiate(self, item: Any, position: np.ndarray) -> ObjectId:
        ...

    def destroy(self, object_id: ObjectId) -> None:
        ...


class DetectionSink(Protocol):
    """Fire-and-forget receiver for detection markers."""

    def __call__(self, event: DetectionEvent, color: Color) -> None:
        ...
