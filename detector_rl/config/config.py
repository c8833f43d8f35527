"""Configuration module for the object detection RL environment.

This module contains all configurable parameters for the detection engine,
the simulated world, training, and evaluation, organized in dataclasses for
clean access.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class WorldConfig:
    """Configuration parameters for the simulated world and episode setup."""

    # Environment tiles
    environment_size: Tuple[float, float] = (40.0, 40.0)  # meters, x by y
    agents_per_environment: int = 4  # agents sharing one environment tile
    number_of_agents: int = 10  # total agents when composing several tiles

    # Agent placement
    min_agent_spacing: float = 5.0  # meters between agents in one tile
    agent_spawn_half_extent: float = 10.0  # agents spawn within ±10 m of tile center
    agent_height: float = 0.5  # meters, vertical offset of agents and objects
    placement_attempts: int = 100  # rejection sampling attempts per agent
    strict_placement: bool = False  # raise instead of accepting the last sample

    # Obstacles
    spawn_obstacles: bool = True
    obstacle_count_range: Tuple[int, int] = (5, 15)  # inclusive
    obstacle_scale_range: Tuple[float, float] = (0.8, 1.2)
    obstacle_radius: float = 1.0  # meters, before scaling
    obstacle_clearance: float = 1.0  # meters, free radius required around agents

    # Objects
    object_radius: float = 0.5  # meters, before scaling by object_scale
    spawn_categories: Optional[List[str]] = None  # None spawns every configured tag

    # Time settings
    dt: float = 0.1  # seconds, simulation timestep
    episode_timeout: float = 30.0  # seconds of simulated time per episode

    @property
    def max_steps(self) -> int:
        """Number of steps before the episode times out."""
        return int(round(self.episode_timeout / self.dt))


@dataclass
class AgentConfig:
    """Configuration for agent motion and sensing."""

    # Motion
    move_speed: float = 5.0  # m/s, maximum forward speed
    rotation_speed: float = 100.0  # degrees/s
    velocity_smoothing: float = 5.0  # velocity approaches target at dt * smoothing

    # Sensing
    ray_distance: float = 20.0  # meters, range of all sensors
    num_rays: int = 8  # rays spread over 360 degrees
    use_ray_sensor: bool = True
    use_camera_sensor: bool = True
    use_grid_sensor: bool = True
    viewport_center: Tuple[float, float] = (0.5, 0.5)  # viewport fraction for camera casts
    camera_fov: float = 60.0  # degrees, horizontal field of view


@dataclass
class CurriculumConfig:
    """Interpolation endpoints of the curriculum (progress 0 -> progress 1)."""

    n_levels: int = 5

    min_distance_start: float = 5.0
    min_distance_end: float = 2.0
    max_distance_start: float = 20.0
    max_distance_end: float = 30.0

    min_count_start: float = 3.0
    min_count_end: float = 10.0
    max_count_start: float = 15.0
    max_count_end: float = 30.0


@dataclass
class RewardConfig:
    """Configuration for the detection reward function.

    Every detection earns the category's base reward plus shaping terms:
    - closer detections earn up to distance_multiplier extra
    - moving faster than speed_threshold of max speed earns speed_bonus
    - the first detection of an object in an episode earns unique_detection_bonus
    """

    distance_multiplier: float = 0.1
    speed_bonus: float = 0.2
    speed_threshold: float = 0.8  # fraction of max speed
    unique_detection_bonus: float = 0.5

    # Reserved, not applied to fused sensor events
    accuracy_bonus: float = 0.3
    false_positive_penalty: float = -0.2


@dataclass
class TrainingConfig:
    """Configuration for PPO training."""

    total_timesteps: int = 1_000_000

    # PPO hyperparameters
    n_steps: int = 2048  # Number of steps to run for each environment per update
    batch_size: int = 64  # Minibatch size
    n_epochs: int = 10  # Number of epochs when optimizing the surrogate loss
    learning_rate: float = 3e-4
    gamma: float = 0.99  # Discount factor
    gae_lambda: float = 0.95  # GAE lambda for advantage estimation
    clip_range: float = 0.2  # Clipping parameter for PPO
    ent_coef: float = 0.01  # Entropy coefficient for exploration
    vf_coef: float = 0.5  # Value function coefficient in the loss
    max_grad_norm: float = 0.5  # Maximum norm for gradient clipping

    # Network architecture
    net_arch: list = None  # If None, uses default [128, 128]

    # Environment settings
    n_envs: int = 4  # Number of parallel environments for training
    normalize_observations: bool = True  # Whether to use VecNormalize
    normalize_rewards: bool = True  # Whether to normalize rewards
    use_curriculum: bool = True  # Push training progress into the environments

    # Logging and saving
    save_freq: int = 50000  # Save model every n steps
    log_interval: int = 10  # Log training stats every n updates
    metrics_log_freq: int = 20  # Report performance metrics every n episodes
    verbose: int = 1  # Verbosity level (0: none, 1: info, 2: debug)

    # Model paths
    model_save_path: str = "detector_rl/models/detector_ppo"
    model_name: str = "detector_ppo.zip"

    def __post_init__(self):
        """Initialize network architecture if not provided."""
        if self.net_arch is None:
            self.net_arch = [dict(pi=[128, 128], vf=[128, 128])]


@dataclass
class EvaluationConfig:
    """Configuration for evaluation."""

    n_eval_episodes: int = 10  # Number of episodes to evaluate
    deterministic: bool = True  # Use deterministic actions
    curriculum_progress: float = 1.0  # Difficulty to evaluate at


# Default detectable categories, as plain configuration data
DEFAULT_DETECTION_SPECS = [
    {
        "tag": "target_primary",
        "base_reward": 1.0,
        "spawn_probability": 0.5,
        "object_scale": 1.0,
        "debug_color": (1.0, 0.0, 0.0, 1.0),
    },
    {
        "tag": "target_secondary",
        "base_reward": 0.5,
        "spawn_probability": 0.3,
        "object_scale": 0.7,
        "debug_color": (0.0, 0.0, 1.0, 1.0),
    },
    {
        "tag": "target_rare",
        "base_reward": 2.0,
        "spawn_probability": 0.1,
        "object_scale": 0.5,
        "debug_color": (1.0, 0.8, 0.0, 1.0),
    },
]


# Default configuration instances
DEFAULT_WORLD_CONFIG = WorldConfig()
DEFAULT_AGENT_CONFIG = AgentConfig()
DEFAULT_CURRICULUM_CONFIG = CurriculumConfig()
DEFAULT_TRAINING_CONFIG = TrainingConfig()
DEFAULT_REWARD_CONFIG = RewardConfig()
DEFAULT_EVAL_CONFIG = EvaluationConfig()


def get_default_config():
    """Get all default configurations as a single object."""
    return {
        'world': DEFAULT_WORLD_CONFIG,
        'agent': DEFAULT_AGENT_CONFIG,
        'curriculum': DEFAULT_CURRICULUM_CONFIG,
        'training': DEFAULT_TRAINING_CONFIG,
        'reward': DEFAULT_REWARD_CONFIG,
        'evaluation': DEFAULT_EVAL_CONFIG,
        'detectables': DEFAULT_DETECTION_SPECS
    }
