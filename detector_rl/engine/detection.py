"""Multi-modal detection fusion.

Three sensing strategies report hits each step:

- ``RaySensor``: ``ray_count`` rays spread evenly over 360 degrees
- ``ViewportSensor``: one cast through a fixed point of the camera viewport
- ``AreaSensor``: every detectable overlapping a sphere around the agent

``DetectionFusion`` resolves every hit against the category table and
concatenates the surviving events. The same object may be reported once per
modality in a single step; novelty is tracked per episode by the reward
shaper, not here.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .specs import DetectionSpecTable
from .types import DetectionEvent, Hit, SensingContext


def rotate_yaw(direction: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate a direction vector about the vertical axis."""
    rad = np.deg2rad(degrees)
    c, s = np.cos(rad), np.sin(rad)
    x, y = direction[0], direction[1]
    return np.array([c * x - s * y, s * x + c * y, direction[2]])


class RaySensor:
    """Radial ray casts evenly distributed around the agent."""

    modality = "ray"

    def __init__(self, ray_count: int = 8, max_distance: float = 20.0):
        if ray_count <= 0:
            raise ValueError(f"ray_count must be positive, got {ray_count}")
        self.ray_count = ray_count
        self.max_distance = max_distance

    @property
    def angle_step(self) -> float:
        return 360.0 / self.ray_count

    def directions(self, forward: np.ndarray) -> List[np.ndarray]:
        return [rotate_yaw(forward, i * self.angle_step) for i in range(self.ray_count)]

    def sense(self, context: SensingContext) -> List[Hit]:
        hits = []
        for direction in self.directions(np.asarray(context.forward, dtype=float)):
            hit = context.ray_cast(context.origin, direction, self.max_distance)
            if hit is not None:
                hits.append(hit)
        return hits


class ViewportSensor:
    """Single cast through a fixed viewport point of the agent's camera."""

    modality = "viewport"

    def __init__(self, center_fraction: Tuple[float, float] = (0.5, 0.5),
                 max_distance: float = 20.0):
        self.center_fraction = tuple(center_fraction)
        self.max_distance = max_distance

    def sense(self, context: SensingContext) -> List[Hit]:
        hit = context.viewport_cast(self.center_fraction, self.max_distance)
        return [] if hit is None else [hit]


class AreaSensor:
    """Overlap query returning every detectable within a radius."""

    modality = "area"

    def __init__(self, radius: float = 20.0):
        self.radius = radius

    def sense(self, context: SensingContext) -> List[Hit]:
        origin = np.asarray(context.origin, dtype=float)
        hits = []
        for hit in context.area_query(origin, self.radius):
            point = np.asarray(hit.point, dtype=float)
            hits.append(Hit(
                object_id=hit.object_id,
                tag=hit.tag,
                point=point,
                distance=float(np.linalg.norm(point - origin))
            ))
        return hits


class DetectionFusion:
    """Merges sensor hits into detection events for one step.

    Args:
        spec_table: Detectable category table
        sensors: Sensing strategies, queried in order
    """

    def __init__(self, spec_table: DetectionSpecTable, sensors: Sequence = ()):
        self.spec_table = spec_table
        self.sensors = list(sensors)

    @classmethod
    def with_default_sensors(
        cls,
        spec_table: DetectionSpecTable,
        ray_distance: float = 20.0,
        ray_count: int = 8,
        use_ray_sensor: bool = True,
        use_camera_sensor: bool = True,
        use_grid_sensor: bool = True,
        viewport_center: Tuple[float, float] = (0.5, 0.5)
    ) -> "DetectionFusion":
        """Build a fusion with the standard ray, viewport and area sensors."""
        sensors = []
        if use_ray_sensor:
            sensors.append(RaySensor(ray_count, ray_distance))
        if use_camera_sensor:
            sensors.append(ViewportSensor(viewport_center, ray_distance))
        if use_grid_sensor:
            sensors.append(AreaSensor(ray_distance))
        return cls(spec_table, sensors)

    def resolve(self, hit: Hit, modality: str) -> Optional[DetectionEvent]:
        """Turn a hit into an event, or None if its tag is not detectable."""
        spec = self.spec_table.match(hit.tag)
        if spec is None:
            return None
        return DetectionEvent(
            object_id=hit.object_id,
            position=np.asarray(hit.point, dtype=float),
            distance=float(hit.distance),
            spec=spec,
            modality=modality
        )

    def collect(self, context: SensingContext) -> List[DetectionEvent]:
        """Query every sensor and return the matched detection events in order."""
        events = []
        for sensor in self.sensors:
            for hit in sensor.sense(context):
                event = self.resolve(hit, sensor.modality)
                if event is not None:
                    events.append(event)
        return events
