"""
Unit tests for the stability/difficulty scheduling policy.

Tests:
- First review, lapse and fallback scenarios
- Difficulty update and clamping
- Interval derivation (ceil, difficulty dampening, caps)
- Preview and review log
"""

import math
from dataclasses import replace
from datetime import timedelta

import pytest

from cadence.core.card_state import (
    MAX_DIFFICULTY,
    MAX_STABILITY,
    MIN_STABILITY,
    CardState,
    CardStatus,
    Grade,
    new_card,
)
from cadence.core.errors import InvalidGradeError
from cadence.scheduling.base import SchedulerConfig
from cadence.scheduling.stability_difficulty import (
    INITIAL_STABILITY,
    StabilityDifficultyPolicy,
)


@pytest.fixture
def policy():
    return StabilityDifficultyPolicy()


class TestFirstReview:
    def test_new_card_graded_good(self, policy, now):
        card = CardState(card_id="a", due=now, stability=0.0, difficulty=1.0)

        result = policy.update(card, Grade.GOOD, now)

        assert result.state is CardStatus.LEARNING
        assert result.due > now
        assert result.reps == 1
        assert result.lapses == 0
        assert result.stability == pytest.approx(INITIAL_STABILITY[Grade.GOOD])
        assert result.scheduled_days == 1
        assert result.last_review == now
        assert result.last_grade is Grade.GOOD

    @pytest.mark.parametrize("grade", list(Grade))
    def test_first_grade_of_any_kind_leaves_new(self, policy, now, grade):
        result = policy.update(new_card("a", now), grade, now)
        assert result.state is CardStatus.LEARNING

    def test_initial_stability_grows_with_grade(self, policy, now):
        card = new_card("a", now)
        stabilities = [policy.update(card, grade, now).stability for grade in Grade]
        assert stabilities == sorted(stabilities)

    def test_input_state_is_untouched(self, policy, now):
        card = new_card("a", now)
        policy.update(card, Grade.EASY, now)
        assert card == new_card("a", now)


class TestLapse:
    def test_review_card_graded_again(self, policy, now):
        card = CardState(
            card_id="b",
            due=now,
            stability=10.0,
            difficulty=5.0,
            reps=4,
            lapses=1,
            state=CardStatus.REVIEW,
            last_review=now - timedelta(days=5),
        )

        result = policy.update(card, Grade.AGAIN, now)

        expected = 10.0 * (1 - 0.6 * math.exp(-0.5))
        assert result.stability == pytest.approx(expected)
        assert MIN_STABILITY <= result.stability < 10.0
        assert result.scheduled_days == 1
        assert result.due == now + timedelta(days=1)
        assert result.state is CardStatus.RELEARNING
        assert result.lapses == 2
        assert result.reps == 0
        assert result.difficulty == pytest.approx(6.0)

    def test_again_resets_interval_regardless_of_stability(self, policy, make_review_card, now):
        card = make_review_card("c", stability=600.0, interval=60, difficulty=1.0)
        result = policy.update(card, Grade.AGAIN, now)
        assert result.scheduled_days == 1

    def test_again_on_learning_card_stays_learning(self, policy, now):
        learning = policy.update(new_card("a", now), Grade.GOOD, now)
        result = policy.update(learning, Grade.AGAIN, now + timedelta(days=1))
        assert result.state is CardStatus.LEARNING
        assert result.lapses == 1

    def test_stability_floor_holds_for_tiny_stability(self, policy, make_review_card, now):
        card = make_review_card("c", stability=MIN_STABILITY, interval=0)
        result = policy.update(card, Grade.AGAIN, now)
        assert result.stability == MIN_STABILITY


class TestComputationFault:
    def test_fallback_on_hard_with_two_reps(self, policy, make_review_card, now, log_messages):
        card = make_review_card("c", stability=float("nan"), reps=2)

        result, log = policy.review(card, Grade.HARD, now)

        assert log.used_fallback is True
        assert result.scheduled_days == 7  # ceil(3 * 1.5 ** 2)
        assert result.due == now + timedelta(days=7)
        assert result.reps == 3
        assert result.lapses == 0
        assert math.isfinite(result.stability)
        assert MIN_STABILITY <= result.stability <= MAX_STABILITY
        assert any("fallback" in message for message in log_messages)

    def test_fallback_on_again_keeps_lapse_semantics(self, policy, make_review_card, now):
        card = make_review_card("c", stability=float("inf"), reps=5, lapses=2)

        result, log = policy.review(card, Grade.AGAIN, now)

        assert log.used_fallback is True
        assert result.scheduled_days == 1
        assert result.reps == 0
        assert result.lapses == 3
        assert result.state is CardStatus.RELEARNING

    def test_non_finite_difficulty_falls_back_to_valid_range(self, policy, make_review_card, now):
        card = make_review_card("c", difficulty=float("nan"))

        result, log = policy.review(card, Grade.GOOD, now)

        assert log.used_fallback is True
        assert 1.0 <= result.difficulty <= MAX_DIFFICULTY

    def test_arithmetic_error_inside_formula_is_contained(self, policy, make_review_card, now, monkeypatch):
        def broken(*args, **kwargs):
            raise ZeroDivisionError("division by zero")

        monkeypatch.setattr(policy, "_schedule", broken)
        card = make_review_card("c", reps=2)

        result, log = policy.review(card, Grade.EASY, now)

        assert log.used_fallback is True
        assert result.scheduled_days == math.ceil(14 * 1.5**2)

    def test_fallback_interval_is_capped(self, policy, make_review_card, now):
        card = make_review_card("c", stability=float("nan"), reps=500)
        result = policy.update(card, Grade.EASY, now)
        assert result.scheduled_days == int(MAX_STABILITY)


class TestDifficulty:
    def test_again_raises_and_easy_lowers(self, policy, make_review_card, now):
        card = make_review_card("c", difficulty=5.0)

        assert policy.update(card, Grade.AGAIN, now).difficulty == pytest.approx(6.0)
        assert policy.update(card, Grade.HARD, now).difficulty == pytest.approx(5.5)
        assert policy.update(card, Grade.GOOD, now).difficulty == pytest.approx(5.0)
        assert policy.update(card, Grade.EASY, now).difficulty == pytest.approx(4.5)

    def test_difficulty_clamped_high(self, policy, make_review_card, now):
        card = make_review_card("c", difficulty=9.5)
        assert policy.update(card, Grade.AGAIN, now).difficulty == MAX_DIFFICULTY

    def test_difficulty_clamped_low(self, policy, now):
        result = policy.update(new_card("a", now), Grade.EASY, now)
        assert result.difficulty == 1.0


class TestIntervals:
    def test_grade_ordering_on_review_card(self, policy, make_review_card, now):
        card = make_review_card("c", stability=10.0, difficulty=5.0, interval=10)

        hard = policy.update(card, Grade.HARD, now)
        good = policy.update(card, Grade.GOOD, now)
        easy = policy.update(card, Grade.EASY, now)

        assert hard.stability < good.stability < easy.stability
        assert hard.scheduled_days <= good.scheduled_days <= easy.scheduled_days
        assert (hard.scheduled_days, good.scheduled_days, easy.scheduled_days) == (2, 4, 6)

    def test_harder_items_get_shorter_intervals(self, policy, make_review_card, now):
        easy_item = make_review_card("e", stability=100.0, difficulty=1.0, interval=10)
        hard_item = make_review_card("h", stability=100.0, difficulty=9.0, interval=10)

        easy_result = policy.update(easy_item, Grade.HARD, now)
        hard_result = policy.update(hard_item, Grade.HARD, now)

        assert easy_result.stability == pytest.approx(hard_result.stability)
        assert easy_result.scheduled_days == 13
        assert hard_result.scheduled_days == 11

    def test_interval_is_ceil_of_retention_scaled_stability(self, policy, now):
        result = policy.update(new_card("a", now), Grade.EASY, now)
        expected = math.ceil(INITIAL_STABILITY[Grade.EASY] * -math.log(0.9))
        assert result.scheduled_days == expected

    def test_stability_capped_at_maximum(self, policy, make_review_card, now):
        card = make_review_card("c", stability=700.0, difficulty=1.0, interval=300)

        result = policy.update(card, Grade.EASY, now)

        assert result.stability == MAX_STABILITY
        assert result.scheduled_days == math.ceil(MAX_STABILITY * -math.log(0.9))
        assert policy.is_mastered(result)

    def test_lower_retention_target_spaces_reviews_further(self, make_review_card, now):
        card = make_review_card("c", stability=50.0, difficulty=1.0, interval=20)
        strict = StabilityDifficultyPolicy(SchedulerConfig(desired_retention=0.95))
        relaxed = StabilityDifficultyPolicy(SchedulerConfig(desired_retention=0.8))

        assert (
            strict.update(card, Grade.GOOD, now).scheduled_days
            < relaxed.update(card, Grade.GOOD, now).scheduled_days
        )


class TestStateMachine:
    def test_learning_graduates_after_two_successes(self, policy, now):
        first = policy.update(new_card("a", now), Grade.GOOD, now)
        second = policy.update(first, Grade.HARD, first.due)

        assert first.state is CardStatus.LEARNING
        assert second.state is CardStatus.REVIEW
        assert second.reps == 2

    def test_relearning_graduates_after_two_successes(self, policy, make_review_card, now):
        lapsed = policy.update(make_review_card("c"), Grade.AGAIN, now)
        once = policy.update(lapsed, Grade.GOOD, lapsed.due)
        twice = policy.update(once, Grade.GOOD, once.due)

        assert lapsed.state is CardStatus.RELEARNING
        assert once.state is CardStatus.RELEARNING
        assert twice.state is CardStatus.REVIEW

    def test_again_on_relearning_stays_relearning(self, policy, make_review_card, now):
        lapsed = policy.update(make_review_card("c"), Grade.AGAIN, now)
        again = policy.update(lapsed, Grade.AGAIN, lapsed.due)
        assert again.state is CardStatus.RELEARNING
        assert again.lapses == lapsed.lapses + 1

    def test_graduation_threshold_is_configurable(self, now):
        policy = StabilityDifficultyPolicy(SchedulerConfig(graduation_reps=3))
        card = new_card("a", now)
        for _ in range(2):
            card = policy.update(card, Grade.GOOD, card.due)
        assert card.state is CardStatus.LEARNING
        card = policy.update(card, Grade.GOOD, card.due)
        assert card.state is CardStatus.REVIEW


class TestPreviewAndLog:
    def test_preview_covers_every_grade(self, policy, make_review_card, now):
        card = make_review_card("c")

        preview = policy.preview(card, now)

        assert set(preview) == set(Grade)
        assert preview[Grade.AGAIN].scheduled_days == 1
        assert preview[Grade.EASY].scheduled_days >= preview[Grade.GOOD].scheduled_days
        assert preview[Grade.GOOD] == policy.update(card, Grade.GOOD, now)

    def test_review_log_records_before_and_after(self, policy, make_review_card, now):
        card = make_review_card("c", stability=10.0, difficulty=5.0, interval=5)

        result, log = policy.review(card, "good", now)

        assert log.card_id == "c"
        assert log.grade is Grade.GOOD
        assert log.reviewed_at == now
        assert log.status_before is CardStatus.REVIEW
        assert log.status_after is result.state
        assert log.elapsed_days == pytest.approx(5.0)
        assert log.retrievability == pytest.approx(math.exp(-0.5))
        assert log.stability_before == 10.0
        assert log.stability_after == result.stability
        assert log.scheduled_days == result.scheduled_days
        assert log.used_fallback is False
        assert result.elapsed_days == pytest.approx(5.0)

    def test_invalid_grade_rejected_before_scheduling(self, policy, now):
        with pytest.raises(InvalidGradeError):
            policy.update(new_card("a", now), "perfect", now)

    def test_mastery_threshold(self, policy, make_review_card):
        assert not policy.is_mastered(make_review_card("c", stability=100.0))
        assert policy.is_mastered(make_review_card("c", stability=400.0))

    def test_priority_prefers_lowest_retrievability(self, policy, make_review_card, now):
        fresh = make_review_card("fresh", days_overdue=0)
        stale = make_review_card("stale", days_overdue=20)
        ordered = sorted([fresh, stale], key=lambda c: policy.priority_key(c, now))
        assert [c.card_id for c in ordered] == ["stale", "fresh"]

    def test_due_is_never_before_review_time(self, policy, make_review_card, now):
        card = replace(make_review_card("c"), due=now + timedelta(days=30))
        for grade in Grade:
            assert policy.update(card, grade, now).due >= now
