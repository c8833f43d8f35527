"""Object Detection Gymnasium Environment.

This module implements a reinforcement learning environment where an agent
moves around a procedurally populated arena and is rewarded for detecting
tagged objects with its ray, camera and area sensors. Object counts and
distances follow a curriculum driven by training progress.
"""

import gymnasium as gym
import numpy as np
from typing import Optional, Tuple, Dict, Any, List

from ..config.config import AgentConfig, CurriculumConfig, RewardConfig, WorldConfig
from ..engine.composer import EnvironmentComposer
from ..engine.curriculum import CurriculumScheduler
from ..engine.detection import DetectionFusion, RaySensor
from ..engine.episode import EpisodeState
from ..engine.rewards import RewardShaper
from ..engine.specs import DetectionSpecTable, load_detection_specs
from ..engine.types import AgentState, DetectionEvent, DetectionSink, ObjectId
from .world import AgentSensingContext, DetectionWorld


class ObjectDetectionEnv(gym.Env):
    """Single-agent object detection environment.

    Observation Space (7 + 2 * num_rays):
        - Agent position relative to the environment center [x, y, z]
        - Agent yaw in degrees
        - Episode timer in seconds
        - Unique detections this episode
        - Curriculum level (0-4)
        - Per ray: hit distance / ray_distance (1.0 when nothing is hit)
        - Per ray: 1.0 if the ray hits a detectable object, else 0.0

    Action Space (2D):
        - a[0]: Forward movement [-1, 1] scaled by move_speed
        - a[1]: Rotation [-1, 1] scaled by rotation_speed

    Rewards:
        Every detection event this step is scored by RewardShaper: the
        category's base reward plus distance, speed and first-detection terms.

    Episodes are truncated after ``world_config.episode_timeout`` seconds of
    simulated time. The curriculum progress set through
    ``set_curriculum_progress`` (or ``options["curriculum_progress"]``) is
    applied at the next reset.
    """

    metadata = {
        'render_modes': [],
    }

    def __init__(
        self,
        world_config: Optional[WorldConfig] = None,
        agent_config: Optional[AgentConfig] = None,
        reward_config: Optional[RewardConfig] = None,
        curriculum_config: Optional[CurriculumConfig] = None,
        spec_table: Optional[DetectionSpecTable] = None,
        detection_sink: Optional[DetectionSink] = None,
        curriculum_progress: float = 0.0
    ):
        """Initialize the detection environment.

        Args:
            world_config: World configuration parameters
            agent_config: Agent motion and sensing parameters
            reward_config: Reward configuration parameters
            curriculum_config: Curriculum interpolation endpoints
            spec_table: Detectable categories (defaults to DEFAULT_DETECTION_SPECS)
            detection_sink: Optional marker callback receiving every event
            curriculum_progress: Initial training progress in [0, 1]
        """
        super().__init__()

        # Load configurations
        self.world_config = world_config or WorldConfig()
        self.agent_config = agent_config or AgentConfig()
        self.reward_config = reward_config or RewardConfig()
        self.spec_table = spec_table or load_detection_specs()
        self.detection_sink = detection_sink

        self.dt = self.world_config.dt
        self.ray_distance = self.agent_config.ray_distance

        # Engine components
        self.curriculum = CurriculumScheduler(curriculum_config)
        self.curriculum_progress = CurriculumScheduler.clamp_progress(curriculum_progress)
        self.composer = EnvironmentComposer(self.spec_table, self.world_config)
        self.fusion = DetectionFusion.with_default_sensors(
            self.spec_table,
            ray_distance=self.ray_distance,
            ray_count=self.agent_config.num_rays,
            use_ray_sensor=self.agent_config.use_ray_sensor,
            use_camera_sensor=self.agent_config.use_camera_sensor,
            use_grid_sensor=self.agent_config.use_grid_sensor,
            viewport_center=self.agent_config.viewport_center
        )
        self.reward_shaper = RewardShaper(self.reward_config, ray_distance=self.ray_distance)
        self.episode = EpisodeState(timeout=self.world_config.episode_timeout)
        self.world = DetectionWorld(self.world_config)

        # Observation rays are independent of the sensor toggles
        self._observation_rays = RaySensor(self.agent_config.num_rays, self.ray_distance)

        n_obs = 7 + 2 * self.agent_config.num_rays
        self.observation_space = gym.spaces.Box(
            low=-np.inf,
            high=np.inf,
            shape=(n_obs,),
            dtype=np.float32
        )
        self.action_space = gym.spaces.Box(
            low=np.array([-1.0, -1.0]),
            high=np.array([1.0, 1.0]),
            dtype=np.float32
        )

        # Initialize state variables
        self.agent: Optional[AgentState] = None
        self.agent_id: Optional[ObjectId] = None
        self.object_ids: List[ObjectId] = []
        self.step_count: int = 0

    def set_curriculum_progress(self, progress: float) -> None:
        """Set the training progress applied at the next reset."""
        self.curriculum_progress = CurriculumScheduler.clamp_progress(progress)

    @property
    def curriculum_level(self) -> int:
        return self.curriculum.profile.level

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """Reset the environment and populate a new episode.

        Args:
            seed: Random seed for reproducibility
            options: Optional ``curriculum_progress`` override

        Returns:
            observation: Initial observation
            info: Additional information dictionary
        """
        super().reset(seed=seed)

        if options and "curriculum_progress" in options:
            self.set_curriculum_progress(options["curriculum_progress"])

        profile = self.curriculum.update(self.curriculum_progress)

        # Repopulate the world
        self.world.clear()
        plan = self.composer.compose(profile, self.np_random, n_agents=1)
        agent_ids, self.object_ids = self.world.apply_plan(plan)
        self.agent_id = agent_ids[0]

        self.agent = AgentState(
            position=plan.agents[0].copy(),
            yaw=float(self.np_random.uniform(0.0, 360.0)),
            max_speed=self.agent_config.move_speed
        )

        self.episode.begin()
        self.step_count = 0

        obs = self._get_observation()
        info = {
            'curriculum_level': profile.level,
            'curriculum_progress': profile.progress,
            'n_objects': len(plan.objects),
            'n_obstacles': len(plan.obstacles)
        }
        return obs, info

    def _sensing_context(self) -> AgentSensingContext:
        return AgentSensingContext(
            self.world,
            self.agent_id,
            self.agent,
            camera_fov=self.agent_config.camera_fov
        )

    def _get_observation(self) -> np.ndarray:
        """Construct the observation vector described in the class docstring."""
        origin = self.composer.environment_origin(0)
        local_position = self.agent.position - origin

        context = self._sensing_context()
        ray_features = []
        ray_flags = []
        for direction in self._observation_rays.directions(context.forward):
            hit = context.ray_cast(context.origin, direction, self.ray_distance)
            if hit is None:
                ray_features.append(1.0)
                ray_flags.append(0.0)
            else:
                ray_features.append(hit.distance / self.ray_distance)
                ray_flags.append(1.0 if hit.tag in self.spec_table else 0.0)

        obs = np.concatenate([
            local_position,
            [self.agent.yaw,
             self.episode.elapsed,
             self.episode.detection_count,
             self.curriculum_level],
            ray_features,
            ray_flags
        ]).astype(np.float32)
        return obs

    def _emit(self, event: DetectionEvent) -> None:
        if self.detection_sink is not None:
            self.detection_sink(event, event.spec.debug_color)

    def step(self, action: np.ndarray) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        """Execute one timestep of the environment.

        Args:
            action: 2D action vector [move, rotate]

        Returns:
            observation: New observation after the step
            reward: Sum of detection rewards this step
            terminated: Always False, episodes only end by timeout here
            truncated: Whether the episode timer reached the timeout
            info: Additional information
        """
        self.step_count += 1

        # 1. Move the agent
        self.world.move_agent(
            self.agent_id,
            self.agent,
            move=action[0],
            rotate=action[1],
            dt=self.dt,
            agent_config=self.agent_config
        )

        # 2. Sense and score detections
        detections_before = self.episode.detection_count
        events = self.fusion.collect(self._sensing_context())
        reward = 0.0
        for event in events:
            reward += self.reward_shaper.score(event, self.agent, self.episode)
            self._emit(event)

        # 3. Advance episode time
        truncated = self.episode.advance(self.dt)

        obs = self._get_observation()
        info = {
            'step': self.step_count,
            'elapsed': self.episode.elapsed,
            'detection_events': len(events),
            'new_detections': self.episode.detection_count - detections_before,
            'detections_this_episode': self.episode.detection_count,
            'episode_reward': self.episode.cumulative_reward,
            'curriculum_level': self.curriculum_level,
            'speed_ratio': self.agent.speed_ratio
        }
        return obs, float(reward), False, truncated, info

    def close(self):
        """Clean up resources."""
        self.world.clear()
