"""Reward shaping for detection events."""

from typing import NamedTuple, Optional

from ..config.config import RewardConfig
from .episode import EpisodeState
from .types import AgentState, DetectionEvent


class RewardBreakdown(NamedTuple):
    """Individual reward terms of one detection event."""

    base: float
    distance: float
    speed: float
    novelty: float

    @property
    def total(self) -> float:
        return self.base + self.distance + self.speed + self.novelty


class RewardShaper:
    """Scores detection events.

    reward = base_reward
           + (1 - distance / ray_distance) * distance_multiplier
           + speed_bonus             if speed_ratio > speed_threshold
           + unique_detection_bonus  on the first detection of an object

    Scoring a novel object also registers it in the episode state and bumps
    the episode's detection count; repeat detections only refresh the stored
    position.
    """

    def __init__(self, config: Optional[RewardConfig] = None, ray_distance: float = 20.0):
        self.config = config or RewardConfig()
        self.ray_distance = ray_distance

    @property
    def false_positive_penalty(self) -> float:
        """Penalty reserved for detections of non-detectable objects.

        Fused sensor events are always matched against the category table,
        so scoring never applies it.
        """
        return self.config.false_positive_penalty

    def breakdown(
        self,
        event: DetectionEvent,
        agent_state: Optional[AgentState],
        episode_state: EpisodeState,
        ray_distance: Optional[float] = None,
        speed_ratio: Optional[float] = None
    ) -> RewardBreakdown:
        """Compute the reward terms for ``event`` without touching any state."""
        cfg = self.config
        ray_distance = self.ray_distance if ray_distance is None else ray_distance
        if speed_ratio is None:
            speed_ratio = agent_state.speed_ratio if agent_state is not None else 0.0

        distance_term = 0.0
        if ray_distance > 0:
            distance_term = (1.0 - event.distance / ray_distance) * cfg.distance_multiplier

        speed_term = cfg.speed_bonus if speed_ratio > cfg.speed_threshold else 0.0

        novelty_term = 0.0
        if not episode_state.has_detected(event.object_id):
            novelty_term = cfg.unique_detection_bonus

        return RewardBreakdown(
            base=event.spec.base_reward,
            distance=distance_term,
            speed=speed_term,
            novelty=novelty_term
        )

    def score(
        self,
        event: DetectionEvent,
        agent_state: Optional[AgentState],
        episode_state: EpisodeState,
        ray_distance: Optional[float] = None,
        speed_ratio: Optional[float] = None
    ) -> float:
        """Score a detection event and record it in the episode state.

        Args:
            event: Detection event to score
            agent_state: Detecting agent, used for the default speed ratio
            episode_state: The agent's current episode
            ray_distance: Normalising sensor range (defaults to the shaper's)
            speed_ratio: Current speed / max speed (defaults to the agent's)

        Returns:
            The reward, or 0.0 if the episode is not active
        """
        if not episode_state.is_active():
            return 0.0

        terms = self.breakdown(event, agent_state, episode_state, ray_distance, speed_ratio)
        episode_state.record_detection(event.object_id, event.position, event.spec)

        reward = terms.total
        episode_state.add_reward(reward)
        return reward
