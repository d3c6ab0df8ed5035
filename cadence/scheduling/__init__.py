"""
Scheduling Module - Policy variants and the due predicate.

One SchedulingPolicy is selected per deployment:
- stability_difficulty: forgetting-curve scheduler (default)
- ease_factor: interval x ease factor
- mastery_score: ease factor plus a 0-100 retirement score
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cadence.scheduling.base import ReviewLog, Schedule, SchedulerConfig, SchedulingPolicy
from cadence.scheduling.due import is_due, recall_stability, select_due
from cadence.scheduling.ease_factor import EaseFactorPolicy
from cadence.scheduling.mastery_score import MasteryScorePolicy
from cadence.scheduling.stability_difficulty import StabilityDifficultyPolicy

if TYPE_CHECKING:
    from cadence.config import Settings

POLICIES: dict[str, type[SchedulingPolicy]] = {
    StabilityDifficultyPolicy.name: StabilityDifficultyPolicy,
    EaseFactorPolicy.name: EaseFactorPolicy,
    MasteryScorePolicy.name: MasteryScorePolicy,
}


def get_policy(name: str, config: SchedulerConfig | None = None) -> SchedulingPolicy:
    """
    Instantiate a scheduling policy by name.

    Raises:
        ValueError: if the name is not a known policy
    """
    try:
        policy_cls = POLICIES[name]
    except KeyError:
        known = ", ".join(sorted(POLICIES))
        raise ValueError(f"Unknown scheduling policy {name!r} (known: {known})") from None
    return policy_cls(config)


def policy_from_settings(settings: Settings) -> SchedulingPolicy:
    """The deployment's policy, configured from settings."""
    return get_policy(settings.scheduling_policy, SchedulerConfig.from_settings(settings))


__all__ = [
    "SchedulingPolicy",
    "SchedulerConfig",
    "Schedule",
    "ReviewLog",
    "StabilityDifficultyPolicy",
    "EaseFactorPolicy",
    "MasteryScorePolicy",
    "POLICIES",
    "get_policy",
    "policy_from_settings",
    "is_due",
    "recall_stability",
    "select_due",
]
