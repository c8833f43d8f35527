"""Episode setup: turns a difficulty profile into a SpawnPlan.

The composer only plans. Instantiating the planned objects, agents and
obstacles is left to a spawner (see ``detector_rl.envs.world``).
"""

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..config.config import WorldConfig
from .sampler import Bounds, SpatialSampler
from .specs import DetectionSpecTable
from .types import (
    DifficultyProfile,
    ObstacleCheck,
    PlannedObject,
    PlannedObstacle,
    SpawnPlan,
)


class EnvironmentComposer:
    """Plans obstacle, agent and object placement for an episode.

    Args:
        spec_table: Detectable category table
        world_config: World layout parameters
        spawn_categories: Tags to spawn (defaults to every tag in the table)
        sampler: Placement sampler (defaults to one built from world_config)

    Raises:
        ConfigurationError: If a spawn category has no spec in the table
    """

    def __init__(
        self,
        spec_table: DetectionSpecTable,
        world_config: Optional[WorldConfig] = None,
        spawn_categories: Optional[Iterable[str]] = None,
        sampler: Optional[SpatialSampler] = None
    ):
        self.spec_table = spec_table
        self.world_config = world_config or WorldConfig()

        if spawn_categories is None:
            spawn_categories = self.world_config.spawn_categories or spec_table.tags
        self.spawn_categories = list(spawn_categories)
        spec_table.require(self.spawn_categories)
        self.spawn_specs = [spec_table[tag] for tag in self.spawn_categories]

        self.sampler = sampler or SpatialSampler(
            max_attempts=self.world_config.placement_attempts,
            strict=self.world_config.strict_placement
        )

    # Environment layout

    def environments_needed(self, n_agents: int) -> int:
        """Number of environment tiles required to host ``n_agents``."""
        return max(1, math.ceil(n_agents / self.world_config.agents_per_environment))

    def environment_index(self, agent_index: int) -> int:
        return agent_index // self.world_config.agents_per_environment

    def environment_origin(self, environment_index: int) -> np.ndarray:
        """Environment tiles are laid out side by side along x."""
        return np.array([environment_index * self.world_config.environment_size[0], 0.0, 0.0])

    def environment_bounds(self, environment_index: int = 0) -> Bounds:
        size_x, size_y = self.world_config.environment_size
        return Bounds.centered(self.environment_origin(environment_index), size_x / 2.0, size_y / 2.0)

    def agent_spawn_bounds(self, environment_index: int = 0) -> Bounds:
        half = self.world_config.agent_spawn_half_extent
        return Bounds.centered(self.environment_origin(environment_index), half, half)

    # Planning steps

    def plan_obstacles(self, bounds: Bounds, rng: np.random.Generator) -> List[PlannedObstacle]:
        """Scatter a random number of obstacles uniformly inside ``bounds``."""
        cfg = self.world_config
        low, high = cfg.obstacle_count_range
        count = int(rng.integers(low, high + 1))

        obstacles = []
        for _ in range(count):
            obstacles.append(PlannedObstacle(
                position=SpatialSampler.sample_in_bounds(bounds, rng),
                yaw=float(rng.uniform(0.0, 360.0)),
                scale=float(rng.uniform(*cfg.obstacle_scale_range))
            ))
        return obstacles

    def obstacle_clearance_check(self, obstacles: Sequence[PlannedObstacle]) -> ObstacleCheck:
        """Predicate reporting a position clear of every planned obstacle."""
        clearance = self.world_config.obstacle_clearance
        base_radius = self.world_config.obstacle_radius

        def check(position: np.ndarray) -> bool:
            for obstacle in obstacles:
                gap = np.linalg.norm(position[:2] - obstacle.position[:2])
                if gap < clearance + base_radius * obstacle.scale:
                    return False
            return True

        return check

    def plan_agents(
        self,
        n_agents: int,
        bounds: Bounds,
        obstacle_check: Optional[ObstacleCheck],
        rng: np.random.Generator,
        existing_positions: Sequence[np.ndarray] = ()
    ) -> List[np.ndarray]:
        cfg = self.world_config
        return self.sampler.place_agents(
            n_agents,
            bounds,
            cfg.min_agent_spacing,
            obstacle_check,
            rng,
            existing_positions=existing_positions,
            height=cfg.agent_height
        )

    def plan_objects(
        self,
        profile: DifficultyProfile,
        center: np.ndarray,
        rng: np.random.Generator,
        agent_index: int = 0
    ) -> List[PlannedObject]:
        """Plan detectable objects around ``center``.

        ``profile.sample_object_count`` spawn rounds are drawn; in every
        round each spawn category appears with its spawn probability at a
        random bearing and a distance in the profile's distance range.
        """
        rounds = profile.sample_object_count(rng)
        objects = []
        for _ in range(rounds):
            for spec in self.spawn_specs:
                if rng.random() < spec.spawn_probability:
                    position = self.sampler.sample_point(
                        center,
                        (0.0, 360.0),
                        (profile.min_distance, profile.max_distance),
                        rng
                    )
                    objects.append(PlannedObject(spec=spec, position=position, agent_index=agent_index))
        return objects

    def _clearance(
        self,
        obstacles: Sequence[PlannedObstacle],
        obstacle_check: Optional[ObstacleCheck]
    ) -> ObstacleCheck:
        """Combine planned obstacle clearance with an external predicate."""
        planned_clear = self.obstacle_clearance_check(obstacles)

        def is_clear(position: np.ndarray) -> bool:
            if not planned_clear(position):
                return False
            return obstacle_check is None or obstacle_check(position)

        return is_clear

    def compose(
        self,
        profile: DifficultyProfile,
        rng: np.random.Generator,
        n_agents: int = 1,
        obstacle_check: Optional[ObstacleCheck] = None,
        environment_index: int = 0
    ) -> SpawnPlan:
        """Plan a full episode inside one environment tile.

        Args:
            profile: Current curriculum difficulty
            rng: Random generator
            n_agents: Agents sharing this environment
            obstacle_check: Extra clearance predicate from the physical world
            environment_index: Environment tile to plan in

        Returns:
            SpawnPlan with obstacles, agents and their surrounding objects
        """
        obstacles = []
        if self.world_config.spawn_obstacles:
            obstacles = self.plan_obstacles(self.environment_bounds(environment_index), rng)
        is_clear = self._clearance(obstacles, obstacle_check)

        agents = self.plan_agents(n_agents, self.agent_spawn_bounds(environment_index), is_clear, rng)

        objects = []
        for agent_index, agent_position in enumerate(agents):
            objects.extend(self.plan_objects(profile, agent_position, rng, agent_index))

        return SpawnPlan(objects=objects, agents=agents, obstacles=obstacles, profile=profile)

    def compose_all(
        self,
        profile: DifficultyProfile,
        rng: np.random.Generator,
        n_agents: Optional[int] = None,
        obstacle_check: Optional[ObstacleCheck] = None
    ) -> SpawnPlan:
        """Plan an episode for every agent across as many tiles as needed.

        Agent ``i`` spawns in tile ``environment_index(i)``. Agents are
        placed one after another, each one spaced from every agent placed
        before it, in any tile.

        Args:
            profile: Current curriculum difficulty
            rng: Random generator
            n_agents: Total agents (defaults to ``world_config.number_of_agents``)
            obstacle_check: Extra clearance predicate from the physical world

        Returns:
            SpawnPlan covering every tile
        """
        cfg = self.world_config
        n_agents = cfg.number_of_agents if n_agents is None else n_agents
        n_environments = self.environments_needed(n_agents)

        obstacles = []
        if cfg.spawn_obstacles:
            for environment_index in range(n_environments):
                obstacles.extend(self.plan_obstacles(self.environment_bounds(environment_index), rng))
        is_clear = self._clearance(obstacles, obstacle_check)

        agents: List[np.ndarray] = []
        for agent_index in range(n_agents):
            bounds = self.agent_spawn_bounds(self.environment_index(agent_index))
            agents.append(self.sampler.find_valid_agent_position(
                bounds,
                agents,
                cfg.min_agent_spacing,
                is_clear,
                rng,
                height=cfg.agent_height
            ))

        objects = []
        for agent_index, agent_position in enumerate(agents):
            objects.extend(self.plan_objects(profile, agent_position, rng, agent_index))

        return SpawnPlan(objects=objects, agents=agents, obstacles=obstacles, profile=profile)
