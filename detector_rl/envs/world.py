"""Simulated 2D world providing sensing and spawning to the detection engine.

All bodies are circles on the horizontal ground plane. The world answers ray
casts, viewport casts and overlap queries with exact ray/circle geometry and
hands out a fresh ObjectId for every instantiated body.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..config.config import AgentConfig, WorldConfig
from ..engine.detection import rotate_yaw
from ..engine.types import (
    AgentState,
    DetectableObjectSpec,
    Hit,
    ObjectId,
    PlannedObstacle,
    SpawnPlan,
)

OBSTACLE_TAG = "obstacle"
AGENT_TAG = "agent"
AGENT_RADIUS = 0.5


@dataclass
class Body:
    """A circular body in the world."""

    object_id: ObjectId
    tag: str
    position: np.ndarray
    radius: float
    detectable: bool = False


class DetectionWorld:
    """Physical world collaborator: bodies, casts, overlap queries and spawning.

    Implements the spawner capability (``instantiate``/``destroy``) and the
    queries used by ``AgentSensingContext``.
    """

    def __init__(self, world_config: Optional[WorldConfig] = None):
        self.world_config = world_config or WorldConfig()
        self.bodies: Dict[ObjectId, Body] = {}
        self._next_id = 1

    # Spawner capability

    def instantiate(self, item: Any, position: np.ndarray) -> ObjectId:
        """Create a body for a spec, a planned obstacle or an agent.

        Args:
            item: DetectableObjectSpec, PlannedObstacle, or the string "agent"
            position: World position [x, y, z]

        Returns:
            The new body's ObjectId
        """
        cfg = self.world_config
        if isinstance(item, DetectableObjectSpec):
            tag, radius, detectable = item.tag, cfg.object_radius * item.object_scale, True
        elif isinstance(item, PlannedObstacle):
            tag, radius, detectable = OBSTACLE_TAG, cfg.obstacle_radius * item.scale, False
        elif item == AGENT_TAG:
            tag, radius, detectable = AGENT_TAG, AGENT_RADIUS, False
        else:
            raise TypeError(f"Cannot instantiate {item!r}")

        object_id = ObjectId(self._next_id)
        self._next_id += 1
        self.bodies[object_id] = Body(
            object_id=object_id,
            tag=tag,
            position=np.asarray(position, dtype=float).copy(),
            radius=radius,
            detectable=detectable
        )
        return object_id

    def destroy(self, object_id: ObjectId) -> None:
        self.bodies.pop(object_id, None)

    def clear(self) -> None:
        """Destroy every body. Object ids are never reused."""
        for object_id in list(self.bodies):
            self.destroy(object_id)

    def apply_plan(self, plan: SpawnPlan) -> Tuple[List[ObjectId], List[ObjectId]]:
        """Instantiate everything in a SpawnPlan.

        Returns:
            (agent_ids, object_ids) in plan order
        """
        for obstacle in plan.obstacles:
            self.instantiate(obstacle, obstacle.position)
        agent_ids = [self.instantiate(AGENT_TAG, position) for position in plan.agents]
        object_ids = [self.instantiate(planned.spec, planned.position) for planned in plan.objects]
        return agent_ids, object_ids

    # Queries

    def obstacle_check(self, position: np.ndarray, radius: Optional[float] = None) -> bool:
        """True if no body overlaps a circle of ``radius`` around ``position``."""
        radius = self.world_config.obstacle_clearance if radius is None else radius
        position = np.asarray(position, dtype=float)
        for body in self.bodies.values():
            if np.linalg.norm(body.position[:2] - position[:2]) < body.radius + radius:
                return False
        return True

    def ray_cast(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        ignore: Iterable[ObjectId] = ()
    ) -> Optional[Hit]:
        """Return the nearest body hit by a ray, or None.

        Bodies containing the ray origin are not hit, matching physics
        engines that ignore colliders a ray starts inside.
        """
        origin = np.asarray(origin, dtype=float)
        d = np.asarray(direction, dtype=float)[:2]
        norm = np.linalg.norm(d)
        if norm == 0:
            return None
        d = d / norm
        ignore = set(ignore)

        best: Optional[Tuple[float, Body]] = None
        for body in self.bodies.values():
            if body.object_id in ignore:
                continue

            # Solve ||origin + t*d - center||^2 = r^2 for t
            m = origin[:2] - body.position[:2]
            b = np.dot(m, d)
            c = np.dot(m, m) - body.radius ** 2
            if c < 0:
                continue
            discriminant = b * b - c
            if discriminant < 0:
                continue
            t = -b - np.sqrt(discriminant)
            if t < 0 or t > max_distance:
                continue
            if best is None or t < best[0]:
                best = (t, body)

        if best is None:
            return None

        t, body = best
        point = origin.copy()
        point[:2] = origin[:2] + d * t
        return Hit(object_id=body.object_id, tag=body.tag, point=point, distance=float(t))

    def area_query(
        self,
        center: np.ndarray,
        radius: float,
        ignore: Iterable[ObjectId] = ()
    ) -> List[Hit]:
        """Return every detectable body overlapping a circle around ``center``."""
        center = np.asarray(center, dtype=float)
        ignore = set(ignore)
        hits = []
        for body in self.bodies.values():
            if not body.detectable or body.object_id in ignore:
                continue
            distance = float(np.linalg.norm(body.position[:2] - center[:2]))
            if distance <= radius + body.radius:
                hits.append(Hit(
                    object_id=body.object_id,
                    tag=body.tag,
                    point=body.position.copy(),
                    distance=distance
                ))
        return hits

    # Agent motion

    def move_agent(
        self,
        agent_id: ObjectId,
        agent: AgentState,
        move: float,
        rotate: float,
        dt: float,
        agent_config: AgentConfig
    ) -> None:
        """Apply a (move, rotate) action with smoothed velocity.

        No collision response is simulated; agents pass through bodies.
        """
        move = float(np.clip(move, -1.0, 1.0))
        rotate = float(np.clip(rotate, -1.0, 1.0))

        target_velocity = agent.forward * move * agent_config.move_speed
        blend = min(1.0, dt * agent_config.velocity_smoothing)
        agent.velocity = agent.velocity + (target_velocity - agent.velocity) * blend
        agent.position = agent.position + agent.velocity * dt
        agent.yaw = float((agent.yaw + rotate * agent_config.rotation_speed * dt) % 360.0)

        body = self.bodies.get(agent_id)
        if body is not None:
            body.position = agent.position.copy()


class AgentSensingContext:
    """Sensing capabilities of one agent for one step.

    Args:
        world: The world to query
        agent_id: The agent's own body, excluded from every query
        agent: The agent's kinematic state
        camera_fov: Horizontal field of view for viewport casts, in degrees
    """

    def __init__(self, world: DetectionWorld, agent_id: ObjectId, agent: AgentState,
                 camera_fov: float = 60.0):
        self.world = world
        self.agent_id = agent_id
        self.origin = agent.position.copy()
        self.forward = agent.forward
        self.camera_fov = camera_fov

    def ray_cast(self, origin: np.ndarray, direction: np.ndarray,
                 max_distance: float) -> Optional[Hit]:
        return self.world.ray_cast(origin, direction, max_distance, ignore=(self.agent_id,))

    def viewport_cast(self, center_fraction: Sequence[float],
                      max_distance: float) -> Optional[Hit]:
        # Viewport x grows to the right, yaw grows counter-clockwise
        offset = (0.5 - center_fraction[0]) * self.camera_fov
        direction = rotate_yaw(self.forward, offset)
        return self.ray_cast(self.origin, direction, max_distance)

    def area_query(self, center: np.ndarray, radius: float) -> List[Hit]:
        return self.world.area_query(center, radius, ignore=(self.agent_id,))
