"""Custom callbacks for curriculum scheduling and training monitoring.

This module provides callbacks for Stable-Baselines3 training that push the
training progress into every environment's curriculum and report detection
performance metrics at regular intervals.
"""

import numpy as np
from typing import Dict, List

from stable_baselines3.common.callbacks import BaseCallback


class PerformanceTracker:
    """Aggregates per-episode detection statistics.

    Tracks the same metrics reported across all training agents: average
    detections, average reward and average episode length.
    """

    def __init__(self):
        self.detections: List[int] = []
        self.rewards: List[float] = []
        self.lengths: List[float] = []

    def record_episode(self, detections: int, reward: float, length: float) -> None:
        self.detections.append(detections)
        self.rewards.append(reward)
        self.lengths.append(length)

    @property
    def n_episodes(self) -> int:
        return len(self.rewards)

    def summary(self, window: int = 0) -> Dict[str, float]:
        """Average metrics over the last ``window`` episodes (0 for all)."""
        if self.n_episodes == 0:
            return {
                "Average Detections": 0.0,
                "Average Reward": 0.0,
                "Average Episode Length": 0.0
            }

        start = -window if window > 0 else 0
        return {
            "Average Detections": float(np.mean(self.detections[start:])),
            "Average Reward": float(np.mean(self.rewards[start:])),
            "Average Episode Length": float(np.mean(self.lengths[start:]))
        }

    def format(self, window: int = 0) -> str:
        metrics = "Training Performance:\n"
        for key, value in self.summary(window).items():
            metrics += f"{key}: {value:.2f}\n"
        return metrics


class CurriculumCallback(BaseCallback):
    """Pushes training progress into every environment's curriculum.

    Progress is ``num_timesteps / total_timesteps``. Environments apply it at
    their next reset, so difficulty changes only between episodes.

    Example:
        callback = CurriculumCallback(total_timesteps=1_000_000)
        model.learn(total_timesteps=1_000_000, callback=callback)
    """

    def __init__(self, total_timesteps: int, update_freq: int = 1000, verbose: int = 0):
        """Initialize the callback.

        Args:
            total_timesteps: Timesteps corresponding to progress 1.0
            update_freq: Push progress every n timesteps
            verbose: Verbosity level
        """
        super().__init__(verbose)
        self.total_timesteps = max(1, total_timesteps)
        self.update_freq = update_freq
        self.last_update_timestep = 0
        self.last_level = None

    @property
    def progress(self) -> float:
        return min(1.0, self.num_timesteps / self.total_timesteps)

    def _push_progress(self) -> None:
        self.training_env.env_method("set_curriculum_progress", self.progress)
        levels = self.training_env.get_attr("curriculum_level")
        level = int(max(levels))

        if self.logger is not None:
            self.logger.record("curriculum/progress", self.progress)
            self.logger.record("curriculum/level", level)

        if self.verbose > 0 and level != self.last_level:
            print(f"\n[Curriculum] Progress: {self.progress:.2%} | Level: {level}")
        self.last_level = level

    def _on_training_start(self) -> None:
        self._push_progress()

    def _on_step(self) -> bool:
        if self.num_timesteps - self.last_update_timestep >= self.update_freq:
            self._push_progress()
            self.last_update_timestep = self.num_timesteps
        return True


class TrainingProgressCallback(BaseCallback):
    """Tracks and logs detection statistics for finished episodes."""

    def __init__(self, verbose: int = 1, log_freq: int = 20):
        """Initialize the callback.

        Args:
            verbose: Verbosity level
            log_freq: Log progress every n episodes
        """
        super().__init__(verbose)
        self.tracker = PerformanceTracker()
        self.log_freq = log_freq

    @property
    def n_episodes(self) -> int:
        return self.tracker.n_episodes

    def _on_step(self) -> bool:
        """Called at each step of the environment.

        Returns:
            True to continue training
        """
        for i, done in enumerate(self.locals.get('dones', [])):
            if not done:
                continue

            info = self.locals.get('infos', [{}])[i]
            self.tracker.record_episode(
                detections=info.get('detections_this_episode', 0),
                reward=info.get('episode_reward', 0.0),
                length=info.get('elapsed', 0.0)
            )

            if self.tracker.n_episodes % self.log_freq == 0:
                summary = self.tracker.summary(self.log_freq)
                if self.logger is not None:
                    self.logger.record("train/episodes", self.tracker.n_episodes)
                    self.logger.record("train/mean_detections", summary["Average Detections"])
                    self.logger.record("train/mean_episode_reward", summary["Average Reward"])
                    self.logger.record("train/mean_episode_length", summary["Average Episode Length"])

                if self.verbose > 0:
                    print(f"\n[Training Progress] "
                          f"Episodes: {self.tracker.n_episodes} | "
                          f"Timesteps: {self.num_timesteps:,}")
                    print(self.tracker.format(self.log_freq), end="")

        return True
