"""PPO training script for the object detection environment.

This module implements training using Proximal Policy Optimization (PPO)
from Stable-Baselines3, with a training-progress curriculum, configurable
hyperparameters and automatic model saving.
"""

from pathlib import Path
from typing import Optional

import torch.nn as nn
from stable_baselines3 import PPO
from stable_baselines3.common.env_util import make_vec_env
from stable_baselines3.common.vec_env import DummyVecEnv, VecNormalize
from stable_baselines3.common.callbacks import CheckpointCallback, CallbackList
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.logger import configure

from detector_rl.envs.detection_env import ObjectDetectionEnv
from detector_rl.engine.specs import DetectionSpecTable, load_detection_specs
from detector_rl.config.config import (
    AgentConfig,
    CurriculumConfig,
    TrainingConfig,
    WorldConfig,
    RewardConfig,
    DEFAULT_TRAINING_CONFIG
)
from detector_rl.agents.callbacks import CurriculumCallback, TrainingProgressCallback
from detector_rl.agents.wandb_callback import WandbCallback


def create_env(
    world_config: Optional[WorldConfig] = None,
    agent_config: Optional[AgentConfig] = None,
    reward_config: Optional[RewardConfig] = None,
    curriculum_config: Optional[CurriculumConfig] = None,
    spec_table: Optional[DetectionSpecTable] = None,
    curriculum_progress: float = 0.0
) -> Monitor:
    """Create a single detection environment instance wrapped in a Monitor.

    Args:
        world_config: World configuration
        agent_config: Agent configuration
        reward_config: Reward configuration
        curriculum_config: Curriculum configuration
        spec_table: Detectable categories
        curriculum_progress: Initial curriculum progress

    Returns:
        Configured environment instance
    """
    env = ObjectDetectionEnv(
        world_config=world_config,
        agent_config=agent_config,
        reward_config=reward_config,
        curriculum_config=curriculum_config,
        spec_table=spec_table,
        curriculum_progress=curriculum_progress
    )

    # Wrap with Monitor for logging
    return Monitor(env)


def train_ppo(
    training_config: Optional[TrainingConfig] = None,
    world_config: Optional[WorldConfig] = None,
    agent_config: Optional[AgentConfig] = None,
    reward_config: Optional[RewardConfig] = None,
    curriculum_config: Optional[CurriculumConfig] = None,
    spec_table: Optional[DetectionSpecTable] = None,
    seed: Optional[int] = 42,
    load_checkpoint: Optional[str] = None,
    use_wandb: bool = False,
    wandb_project: str = "detector-rl",
    wandb_entity: Optional[str] = None,
    wandb_run_name: Optional[str] = None,
    wandb_tags: Optional[list] = None
) -> PPO:
    """Train a PPO agent on the object detection environment.

    Args:
        training_config: Training configuration
        world_config: World configuration
        agent_config: Agent configuration
        reward_config: Reward configuration
        curriculum_config: Curriculum configuration
        spec_table: Detectable categories (defaults to DEFAULT_DETECTION_SPECS)
        seed: Random seed for reproducibility
        load_checkpoint: Path to checkpoint to resume from
        use_wandb: Log metrics to Weights & Biases

    Returns:
        Trained PPO model
    """
    # Use default configs if not provided
    training_config = training_config or DEFAULT_TRAINING_CONFIG
    world_config = world_config or WorldConfig()
    agent_config = agent_config or AgentConfig()
    reward_config = reward_config or RewardConfig()
    curriculum_config = curriculum_config or CurriculumConfig()
    spec_table = spec_table or load_detection_specs()

    print("=" * 50)
    print("PPO Training for Object Detection Environment")
    print("=" * 50)
    print(f"\nTraining Configuration:")
    print(f"  Total timesteps: {training_config.total_timesteps:,}")
    print(f"  Learning rate: {training_config.learning_rate}")
    print(f"  Batch size: {training_config.batch_size}")
    print(f"  N steps: {training_config.n_steps}")
    print(f"  N environments: {training_config.n_envs}")
    print(f"  Curriculum: {'enabled' if training_config.use_curriculum else 'disabled'}")
    print(f"\nWorld Configuration:")
    print(f"  Environment size: {world_config.environment_size[0]}m x {world_config.environment_size[1]}m")
    print(f"  Episode timeout: {world_config.episode_timeout}s ({world_config.max_steps} steps)")
    print(f"  Detectable categories: {', '.join(spec_table.tags)}")
    print(f"\nAgent Configuration:")
    print(f"  Move speed: {agent_config.move_speed} m/s")
    print(f"  Rays: {agent_config.num_rays} x {agent_config.ray_distance}m")
    print(f"\nReward Configuration:")
    print(f"  Distance multiplier: {reward_config.distance_multiplier}")
    print(f"  Speed bonus: {reward_config.speed_bonus}")
    print(f"  Unique detection bonus: {reward_config.unique_detection_bonus}")
    print("=" * 50)

    # Create vectorized environments
    print("\nCreating training environments...")

    # Without a curriculum, train at full difficulty
    initial_progress = 0.0 if training_config.use_curriculum else 1.0

    def env_fn():
        return create_env(
            world_config, agent_config, reward_config, curriculum_config,
            spec_table, curriculum_progress=initial_progress
        )

    vec_env = make_vec_env(
        env_fn,
        n_envs=training_config.n_envs,
        seed=seed,
        vec_env_cls=DummyVecEnv
    )

    # Optionally normalize observations and rewards
    if training_config.normalize_observations or training_config.normalize_rewards:
        vec_env = VecNormalize(
            vec_env,
            norm_obs=training_config.normalize_observations,
            norm_reward=training_config.normalize_rewards,
            clip_obs=10.0,
            clip_reward=10.0,
            gamma=training_config.gamma
        )
        print(f"  Applied normalization - Obs: {training_config.normalize_observations}, "
              f"Reward: {training_config.normalize_rewards}")

    # Set up model save directory
    model_dir = Path(training_config.model_save_path).parent
    model_dir.mkdir(parents=True, exist_ok=True)

    # Set up tensorboard logging
    log_dir = model_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    new_logger = configure(str(log_dir), ["stdout", "csv", "tensorboard"])

    # Create or load PPO model
    if load_checkpoint:
        print(f"\nLoading model from checkpoint: {load_checkpoint}")
        model = PPO.load(
            load_checkpoint,
            env=vec_env,
            tensorboard_log=str(log_dir)
        )
    else:
        print("\nCreating new PPO model...")
        model = PPO(
            policy="MlpPolicy",
            env=vec_env,
            learning_rate=training_config.learning_rate,
            n_steps=training_config.n_steps,
            batch_size=training_config.batch_size,
            n_epochs=training_config.n_epochs,
            gamma=training_config.gamma,
            gae_lambda=training_config.gae_lambda,
            clip_range=training_config.clip_range,
            ent_coef=training_config.ent_coef,
            vf_coef=training_config.vf_coef,
            max_grad_norm=training_config.max_grad_norm,
            policy_kwargs={
                "net_arch": training_config.net_arch[0] if training_config.net_arch else None,
                "activation_fn": nn.ReLU
            },
            tensorboard_log=str(log_dir),
            verbose=training_config.verbose,
            seed=seed
        )
    model.set_logger(new_logger)

    # Create callbacks
    callbacks = []

    if training_config.use_curriculum:
        callbacks.append(CurriculumCallback(
            total_timesteps=training_config.total_timesteps,
            verbose=training_config.verbose
        ))

    if use_wandb:
        wandb_config = {
            "algorithm": "PPO",
            "total_timesteps": training_config.total_timesteps,
            "learning_rate": training_config.learning_rate,
            "n_steps": training_config.n_steps,
            "batch_size": training_config.batch_size,
            "n_epochs": training_config.n_epochs,
            "gamma": training_config.gamma,
            "gae_lambda": training_config.gae_lambda,
            "clip_range": training_config.clip_range,
            "ent_coef": training_config.ent_coef,
            "n_envs": training_config.n_envs,
            "use_curriculum": training_config.use_curriculum,
            "episode_timeout": world_config.episode_timeout,
            "num_rays": agent_config.num_rays,
            "ray_distance": agent_config.ray_distance,
            "distance_multiplier": reward_config.distance_multiplier,
            "speed_bonus": reward_config.speed_bonus,
            "unique_detection_bonus": reward_config.unique_detection_bonus,
            "detectables": spec_table.tags,
        }
        callbacks.append(WandbCallback(
            project=wandb_project,
            entity=wandb_entity,
            name=wandb_run_name,
            tags=wandb_tags,
            config=wandb_config,
            log_freq=training_config.metrics_log_freq,
            verbose=training_config.verbose
        ))
        print("\nWeights & Biases logging enabled")
        print(f"   Project: {wandb_project}")
        if wandb_entity:
            print(f"   Entity: {wandb_entity}")

    # Checkpoint callback for periodic saves
    callbacks.append(CheckpointCallback(
        save_freq=max(1, training_config.save_freq // training_config.n_envs),
        save_path=str(model_dir / "checkpoints"),
        name_prefix="detector_ppo_checkpoint",
        save_vecnormalize=True,
        verbose=1
    ))

    # Progress logging callback
    progress_callback = TrainingProgressCallback(
        verbose=training_config.verbose,
        log_freq=training_config.metrics_log_freq
    )
    callbacks.append(progress_callback)

    callback = CallbackList(callbacks)

    # Train the model
    print(f"\nStarting training for {training_config.total_timesteps:,} timesteps...")
    print("You can monitor progress with TensorBoard:")
    print(f"  tensorboard --logdir {log_dir}")
    print("\n" + "=" * 50)

    final_model_path = str(model_dir / training_config.model_name)
    try:
        model.learn(
            total_timesteps=training_config.total_timesteps,
            callback=callback,
            log_interval=training_config.log_interval,
            progress_bar=True,
            reset_num_timesteps=False if load_checkpoint else True
        )
    except KeyboardInterrupt:
        print("\n\nTraining interrupted by user!")
    finally:
        print(f"\nSaving final model to: {final_model_path}")
        model.save(final_model_path)

        # Save normalization statistics if using VecNormalize
        if isinstance(vec_env, VecNormalize):
            vec_norm_path = str(model_dir / "vec_normalize.pkl")
            vec_env.save(vec_norm_path)
            print(f"Saved normalization statistics to: {vec_norm_path}")

    print("\nTraining completed!")
    print(f"Total episodes completed: {progress_callback.n_episodes}")
    if progress_callback.n_episodes > 0:
        print(progress_callback.tracker.format(), end="")

    return model


def main():
    """Main entry point for training."""
    import argparse

    parser = argparse.ArgumentParser(description="Train PPO agent for object detection")
    parser.add_argument(
        "--timesteps",
        type=int,
        default=1_000_000,
        help="Total number of training timesteps"
    )
    parser.add_argument(
        "--n-envs",
        type=int,
        default=4,
        help="Number of parallel environments"
    )
    parser.add_argument(
        "--lr",
        type=float,
        default=3e-4,
        help="Learning rate"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--checkpoint",
        type=str,
        default=None,
        help="Path to checkpoint to resume training from"
    )
    parser.add_argument(
        "--detectables",
        type=str,
        default=None,
        help="JSON file with detectable categories (default: built-in categories)"
    )
    parser.add_argument(
        "--no-curriculum",
        action="store_true",
        help="Train at full difficulty instead of following the curriculum"
    )
    parser.add_argument(
        "--no-normalize",
        action="store_true",
        help="Disable observation and reward normalization"
    )
    parser.add_argument(
        "--wandb",
        action="store_true",
        help="Enable Weights & Biases logging"
    )
    parser.add_argument(
        "--wandb-project",
        type=str,
        default="detector-rl",
        help="W&B project name (default: detector-rl)"
    )
    parser.add_argument(
        "--wandb-entity",
        type=str,
        default=None,
        help="W&B entity (username or team)"
    )
    parser.add_argument(
        "--wandb-run-name",
        type=str,
        default=None,
        help="W&B run name (auto-generated if not specified)"
    )

    args = parser.parse_args()

    training_config = TrainingConfig(
        total_timesteps=args.timesteps,
        n_envs=args.n_envs,
        learning_rate=args.lr,
        normalize_observations=not args.no_normalize,
        normalize_rewards=not args.no_normalize,
        use_curriculum=not args.no_curriculum
    )

    train_ppo(
        training_config=training_config,
        spec_table=load_detection_specs(args.detectables),
        seed=args.seed,
        load_checkpoint=args.checkpoint,
        use_wandb=args.wandb,
        wandb_project=args.wandb_project,
        wandb_entity=args.wandb_entity,
        wandb_run_name=args.wandb_run_name
    )


if __name__ == "__main__":
    main()
