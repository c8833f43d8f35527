"""Weights & Biases integration for training monitoring.

This module provides a callback that logs detection metrics, curriculum
progress and run configuration to Weights & Biases for experiment tracking.
"""

import numpy as np
from typing import Optional, Dict, Any

import wandb
from stable_baselines3.common.callbacks import BaseCallback

from .callbacks import PerformanceTracker


class WandbCallback(BaseCallback):
    """Callback for logging training progress to Weights & Biases.

    Logs:
    - Episode metrics (detections, rewards, episode length)
    - Curriculum level of the training environments
    - Hyperparameters and config

    Example:
        wandb_callback = WandbCallback(
            project="detector-rl",
            name="curriculum-ppo",
            log_freq=20
        )
        model.learn(total_timesteps=1000000, callback=wandb_callback)
    """

    def __init__(
        self,
        project: str = "detector-rl",
        entity: Optional[str] = None,
        name: Optional[str] = None,
        tags: Optional[list] = None,
        config: Optional[Dict[str, Any]] = None,
        log_freq: int = 20,  # Log metrics every N episodes
        verbose: int = 1,
        sync_tensorboard: bool = True,
        save_code: bool = True,
    ):
        """Initialize the wandb callback.

        Args:
            project: W&B project name
            entity: W&B entity (username or team name)
            name: Run name (auto-generated if None)
            tags: List of tags for the run
            config: Configuration dict to log
            log_freq: Log metrics every N episodes
            verbose: Verbosity level
            sync_tensorboard: Sync TensorBoard logs to W&B
            save_code: Save code to W&B
        """
        super().__init__(verbose)

        self.project = project
        self.entity = entity
        self.run_name = name
        self.tags = tags or ["curriculum", "ppo"]
        self.config = config or {}
        self.log_freq = log_freq
        self.sync_tensorboard = sync_tensorboard
        self.save_code = save_code

        self.tracker = PerformanceTracker()
        self.episode_levels = []

        # Wandb run (initialized in _on_training_start)
        self.run = None

    def _on_training_start(self) -> None:
        """Called at the beginning of training."""
        self.run = wandb.init(
            project=self.project,
            entity=self.entity,
            name=self.run_name,
            tags=self.tags,
            config=self.config,
            sync_tensorboard=self.sync_tensorboard,
            save_code=self.save_code,
            reinit=True
        )

        if self.verbose > 0:
            print(f"\n{'='*60}")
            print(f"Weights & Biases logging initialized")
            print(f"Project: {self.project}")
            print(f"Run: {self.run.name}")
            print(f"URL: {self.run.url}")
            print(f"{'='*60}\n")

    def _on_step(self) -> bool:
        """Called at each step during training."""
        for i, done in enumerate(self.locals.get('dones', [])):
            if not done:
                continue

            info = self.locals.get('infos', [{}])[i]
            self.tracker.record_episode(
                detections=info.get('detections_this_episode', 0),
                reward=info.get('episode_reward', 0.0),
                length=info.get('elapsed', 0.0)
            )
            self.episode_levels.append(info.get('curriculum_level', 0))

            if self.tracker.n_episodes % self.log_freq == 0:
                self._log_metrics()

        return True

    def _log_metrics(self) -> None:
        """Log accumulated metrics to wandb."""
        if self.tracker.n_episodes == 0:
            return

        summary = self.tracker.summary(self.log_freq)
        wandb.log({
            "episode/mean_detections": summary["Average Detections"],
            "episode/mean_reward": summary["Average Reward"],
            "episode/mean_length": summary["Average Episode Length"],
            "episode/total_episodes": self.tracker.n_episodes,
            "curriculum/level": self.episode_levels[-1],
        }, step=self.num_timesteps)

        if self.verbose > 1:
            print(f"Episodes: {self.tracker.n_episodes} | "
                  f"Mean Detections: {summary['Average Detections']:.2f} | "
                  f"Mean Reward: {summary['Average Reward']:.3f} | "
                  f"Timesteps: {self.num_timesteps}")

    def _on_training_end(self) -> None:
        """Called at the end of training."""
        if self.tracker.n_episodes > 0:
            summary = self.tracker.summary()
            wandb.log({
                "final/total_episodes": self.tracker.n_episodes,
                "final/mean_detections": summary["Average Detections"],
                "final/mean_reward": summary["Average Reward"],
                "final/max_curriculum_level": int(np.max(self.episode_levels)),
            }, step=self.num_timesteps)

        if self.run is not None:
            self.run.finish()

        if self.verbose > 0:
            print(f"\n{'='*60}")
            print("Weights & Biases logging finished")
            print(f"{'='*60}\n")
