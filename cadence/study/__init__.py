"""
Study Module - Session pools and collection statistics.
"""

from cadence.study.pool import GradeOutcome, PoolConfig, StudyPool
from cadence.study.stats import StudyStats, aggregate

__all__ = [
    "StudyPool",
    "PoolConfig",
    "GradeOutcome",
    "StudyStats",
    "aggregate",
]
