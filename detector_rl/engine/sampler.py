"""Rejection-sampling placement of objects and agents on the ground plane."""

import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import NoValidPositionError, PlacementWarning
from .types import ObstacleCheck


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle on the ground plane."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def centered(cls, center: Sequence[float], half_x: float, half_y: float) -> "Bounds":
        return cls(center[0] - half_x, center[1] - half_y, center[0] + half_x, center[1] + half_y)

    @property
    def center(self) -> np.ndarray:
        return np.array([(self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0])

    def contains(self, position: Sequence[float]) -> bool:
        return (self.min_x <= position[0] <= self.max_x and
                self.min_y <= position[1] <= self.max_y)


def _always_clear(position: np.ndarray) -> bool:
    return True


class SpatialSampler:
    """Samples placements subject to spacing and obstacle constraints.

    By default placement is permissive: when ``find_valid_agent_position``
    runs out of attempts it returns the last sampled position anyway and
    issues a ``PlacementWarning``. Pass ``strict=True`` to raise
    ``NoValidPositionError`` instead.
    """

    def __init__(self, max_attempts: int = 100, strict: bool = False):
        self.max_attempts = max_attempts
        self.strict = strict

    @staticmethod
    def sample_point(
        center: Sequence[float],
        angle_range: Tuple[float, float],
        distance_range: Tuple[float, float],
        rng: np.random.Generator,
        height: Optional[float] = None
    ) -> np.ndarray:
        """Sample a point at a random bearing and distance around a center.

        Args:
            center: Center position [x, y, z]
            angle_range: (low, high) bearing range in degrees
            distance_range: (low, high) radial distance range
            rng: Random generator
            height: Vertical coordinate of the result (defaults to center's)

        Returns:
            Sampled position [x, y, z]
        """
        center = np.asarray(center, dtype=float)
        angle = np.deg2rad(rng.uniform(angle_range[0], angle_range[1]))
        distance = rng.uniform(distance_range[0], distance_range[1])

        point = center + np.array([np.cos(angle), np.sin(angle), 0.0]) * distance
        if height is not None:
            point[2] = height
        return point

    @staticmethod
    def sample_in_bounds(bounds: Bounds, rng: np.random.Generator,
                         height: float = 0.0) -> np.ndarray:
        """Sample a uniform point inside ``bounds`` at the given height."""
        return np.array([
            rng.uniform(bounds.min_x, bounds.max_x),
            rng.uniform(bounds.min_y, bounds.max_y),
            height
        ])

    @staticmethod
    def is_spaced(position: np.ndarray, existing_positions: Sequence[np.ndarray],
                  min_spacing: float) -> bool:
        """True if ``position`` is at least ``min_spacing`` from every existing one."""
        for other in existing_positions:
            if np.linalg.norm(position - np.asarray(other, dtype=float)) < min_spacing:
                return False
        return True

    def find_valid_agent_position(
        self,
        bounds: Bounds,
        existing_positions: Sequence[np.ndarray],
        min_spacing: float,
        obstacle_check: Optional[ObstacleCheck],
        rng: np.random.Generator,
        max_attempts: Optional[int] = None,
        height: float = 0.0,
        strict: Optional[bool] = None
    ) -> np.ndarray:
        """Find a position inside ``bounds`` that respects spacing and obstacles.

        Args:
            bounds: Area to sample from
            existing_positions: Positions the result must keep clear of
            min_spacing: Minimum distance to every existing position
            obstacle_check: Predicate returning True when a position is clear
            rng: Random generator
            max_attempts: Number of samples before giving up
            height: Vertical coordinate of sampled positions
            strict: Override the sampler's strict mode for this call

        Returns:
            The first valid sample, or the last sample when attempts run out
            in permissive mode

        Raises:
            NoValidPositionError: In strict mode when attempts run out
        """
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        strict = self.strict if strict is None else strict
        obstacle_check = obstacle_check or _always_clear

        position = None
        for _ in range(max(1, max_attempts)):
            position = self.sample_in_bounds(bounds, rng, height)
            if (self.is_spaced(position, existing_positions, min_spacing) and
                    obstacle_check(position)):
                return position

        if strict:
            raise NoValidPositionError(max_attempts, position)

        warnings.warn(
            f"No valid position found after {max_attempts} attempts; "
            f"using last sample {position.tolist()}",
            PlacementWarning,
            stacklevel=2
        )
        return position

    def place_agents(
        self,
        n_agents: int,
        bounds: Bounds,
        min_spacing: float,
        obstacle_check: Optional[ObstacleCheck],
        rng: np.random.Generator,
        existing_positions: Sequence[np.ndarray] = (),
        height: float = 0.0
    ) -> List[np.ndarray]:
        """Place agents one after another, each becoming a constraint for the next."""
        placed = [np.asarray(p, dtype=float) for p in existing_positions]
        new_positions = []
        for _ in range(n_agents):
            position = self.find_valid_agent_position(
                bounds, placed, min_spacing, obstacle_check, rng, height=height
            )
            placed.append(position)
            new_positions.append(position)
        return new_positions
