"""Evaluation script for trained detection agents.

This module loads a trained PPO model, runs it for a number of episodes at a
fixed curriculum progress, and reports detection statistics.
"""

import os
from typing import Optional, Dict, Any

import numpy as np
from stable_baselines3 import PPO
from stable_baselines3.common.vec_env import VecNormalize, DummyVecEnv
from stable_baselines3.common.monitor import Monitor

from detector_rl.envs.detection_env import ObjectDetectionEnv
from detector_rl.engine.specs import DetectionSpecTable, load_detection_specs
from detector_rl.config.config import (
    AgentConfig,
    CurriculumConfig,
    WorldConfig,
    RewardConfig,
    EvaluationConfig,
    DEFAULT_EVAL_CONFIG
)


def create_eval_env(
    world_config: Optional[WorldConfig] = None,
    agent_config: Optional[AgentConfig] = None,
    reward_config: Optional[RewardConfig] = None,
    curriculum_config: Optional[CurriculumConfig] = None,
    spec_table: Optional[DetectionSpecTable] = None,
    curriculum_progress: float = 1.0
) -> ObjectDetectionEnv:
    """Create the environment a model is evaluated in.

    The configs should match the ones used for training, curriculum
    endpoints included, so the evaluated difficulty is the trained one.
    """
    return ObjectDetectionEnv(
        world_config=world_config,
        agent_config=agent_config,
        reward_config=reward_config,
        curriculum_config=curriculum_config,
        spec_table=spec_table or load_detection_specs(),
        curriculum_progress=curriculum_progress
    )


def evaluate_agent(
    model_path: str,
    world_config: Optional[WorldConfig] = None,
    agent_config: Optional[AgentConfig] = None,
    reward_config: Optional[RewardConfig] = None,
    eval_config: Optional[EvaluationConfig] = None,
    spec_table: Optional[DetectionSpecTable] = None,
    vec_normalize_path: Optional[str] = None,
    seed: Optional[int] = 42,
    verbose: int = 1,
    curriculum_config: Optional[CurriculumConfig] = None
) -> Dict[str, Any]:
    """Evaluate a trained agent.

    Args:
        model_path: Path to the trained model
        world_config: World configuration
        agent_config: Agent configuration
        reward_config: Reward configuration
        eval_config: Evaluation configuration
        spec_table: Detectable categories
        vec_normalize_path: Path to VecNormalize statistics (if used in training)
        seed: Random seed for reproducibility
        verbose: Verbosity level
        curriculum_config: Curriculum endpoints used during training

    Returns:
        Dictionary containing evaluation statistics

    Raises:
        FileNotFoundError: If the model file does not exist
    """
    eval_config = eval_config or DEFAULT_EVAL_CONFIG

    if verbose > 0:
        print("=" * 50)
        print("Evaluating Trained Detection Agent")
        print("=" * 50)
        print(f"\nModel path: {model_path}")
        print(f"Episodes to evaluate: {eval_config.n_eval_episodes}")
        print(f"Curriculum progress: {eval_config.curriculum_progress}")
        print(f"Deterministic actions: {eval_config.deterministic}")
        print("=" * 50 + "\n")

    if not os.path.exists(model_path):
        raise FileNotFoundError(f"Model not found at: {model_path}")

    model = PPO.load(model_path)

    env = create_eval_env(
        world_config=world_config,
        agent_config=agent_config,
        reward_config=reward_config,
        curriculum_config=curriculum_config,
        spec_table=spec_table,
        curriculum_progress=eval_config.curriculum_progress
    )
    vec_env = DummyVecEnv([lambda: Monitor(env)])
    vec_env.seed(seed)

    # Apply VecNormalize if it was used during training
    if vec_normalize_path and os.path.exists(vec_normalize_path):
        if verbose > 0:
            print(f"Loading normalization statistics from: {vec_normalize_path}")
        vec_env = VecNormalize.load(vec_normalize_path, vec_env)
        vec_env.training = False
        vec_env.norm_reward = False

    all_rewards = []
    all_detections = []
    all_lengths = []

    for episode_idx in range(eval_config.n_eval_episodes):
        obs = vec_env.reset()
        done = False
        episode_reward = 0.0
        info = {}

        while not done:
            action, _ = model.predict(obs, deterministic=eval_config.deterministic)
            obs, reward, dones, infos = vec_env.step(action)
            episode_reward += float(reward[0])
            done = bool(dones[0])
            info = infos[0]

        all_rewards.append(episode_reward)
        all_detections.append(info.get('detections_this_episode', 0))
        all_lengths.append(info.get('elapsed', 0.0))

        if verbose > 0:
            print(f"Episode {episode_idx + 1}/{eval_config.n_eval_episodes}: "
                  f"Reward={episode_reward:.2f}, "
                  f"Detections={all_detections[-1]}, "
                  f"Level={info.get('curriculum_level', 0)}")

    vec_env.close()

    results = {
        'mean_reward': float(np.mean(all_rewards)),
        'std_reward': float(np.std(all_rewards)),
        'mean_detections': float(np.mean(all_detections)),
        'max_detections': int(np.max(all_detections)),
        'mean_episode_length': float(np.mean(all_lengths)),
        'episode_rewards': all_rewards,
        'episode_detections': all_detections
    }

    if verbose > 0:
        print(f"\nEvaluation Results:")
        print(f"  Mean Reward: {results['mean_reward']:.3f} ± {results['std_reward']:.3f}")
        print(f"  Mean Detections: {results['mean_detections']:.2f} "
              f"(max {results['max_detections']})")
        print(f"  Mean Episode Length: {results['mean_episode_length']:.1f}s")

    return results


def main():
    """Main entry point for evaluation."""
    import argparse

    parser = argparse.ArgumentParser(description="Evaluate a trained detection agent")
    parser.add_argument(
        "--model",
        type=str,
        default="detector_rl/models/detector_ppo.zip",
        help="Path to trained model"
    )
    parser.add_argument(
        "--vec-normalize",
        type=str,
        default="detector_rl/models/vec_normalize.pkl",
        help="Path to VecNormalize statistics"
    )
    parser.add_argument(
        "--episodes",
        type=int,
        default=10,
        help="Number of evaluation episodes"
    )
    parser.add_argument(
        "--progress",
        type=float,
        default=1.0,
        help="Curriculum progress to evaluate at (0-1)"
    )
    parser.add_argument(
        "--detectables",
        type=str,
        default=None,
        help="JSON file with detectable categories"
    )
    parser.add_argument(
        "--stochastic",
        action="store_true",
        help="Use stochastic actions"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed"
    )

    args = parser.parse_args()

    eval_config = EvaluationConfig(
        n_eval_episodes=args.episodes,
        deterministic=not args.stochastic,
        curriculum_progress=args.progress
    )

    evaluate_agent(
        model_path=args.model,
        eval_config=eval_config,
        spec_table=load_detection_specs(args.detectables),
        vec_normalize_path=args.vec_normalize,
        seed=args.seed
    )


if __name__ == "__main__":
    main()
