"""Exceptions raised by the scheduling engine."""

from __future__ import annotations


class CadenceError(Exception):
    """Base class for engine errors."""


class InvalidGradeError(CadenceError, ValueError):
    """A grade outside again/hard/good/easy was supplied."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid grade {value!r}; expected again, hard, good or easy")


class ComputationFault(CadenceError, ArithmeticError):
    """
    A scheduling formula produced a non-finite or out-of-range value.

    Raised inside policies only. SchedulingPolicy.review catches it and
    switches to the fallback schedule.
    """
