"""
Tests for the trial / subscription access policy.

CRITICAL: These tests verify that:
1. An active subscription always allows access
2. A missing trial row never blocks (default 14-day trial)
3. The warning window and the block point sit exactly where the product says
"""

from datetime import datetime, timedelta, timezone

import pytest

from agencyapp.access.models import (
    AccessDecision,
    SubscriptionRecord,
    TrialRecord,
    Verdict,
    ensure_utc,
)
from agencyapp.access.policy import days_until, evaluate_access, latest_subscription


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


JAN_TRIAL = TrialRecord(trial_start=utc(2024, 1, 1), trial_end=utc(2024, 1, 15))

VERDICT_ORDER = {Verdict.ALLOW: 0, Verdict.WARN: 1, Verdict.BLOCK: 2}


def subscription(end: datetime, start: datetime = None) -> SubscriptionRecord:
    return SubscriptionRecord(
        user_id="user-ama",
        start_date=start or end - timedelta(days=30),
        end_date=end,
        amount_paid=10,
    )


# ============================================================================
# TEST SUITE: SCENARIOS
# ============================================================================

class TestJanuaryScenarios:
    """Trial from 2024-01-01 to 2024-01-15."""

    def test_two_days_left_warns(self):
        decision = evaluate_access(utc(2024, 1, 13), JAN_TRIAL, [])

        assert decision == AccessDecision(
            verdict=Verdict.WARN,
            days_left_in_trial=2,
            has_active_subscription=False,
        )

    def test_after_trial_end_blocks(self):
        decision = evaluate_access(utc(2024, 1, 16), JAN_TRIAL, [])

        assert decision == AccessDecision(
            verdict=Verdict.BLOCK,
            days_left_in_trial=0,
            has_active_subscription=False,
        )

    def test_active_subscription_allows_after_trial_end(self):
        decision = evaluate_access(utc(2024, 1, 16), JAN_TRIAL, [subscription(utc(2024, 6, 1))])

        assert decision == AccessDecision(
            verdict=Verdict.ALLOW,
            days_left_in_trial=None,
            has_active_subscription=True,
        )


# ============================================================================
# TEST SUITE: SUBSCRIPTION OVERRIDE
# ============================================================================

class TestSubscriptionOverride:
    """Any subscription ending after now wins over trial state."""

    @pytest.mark.parametrize("trial", [None, JAN_TRIAL])
    @pytest.mark.parametrize("now", [utc(2023, 12, 1), utc(2024, 1, 14), utc(2024, 3, 1)])
    def test_active_subscription_always_allows(self, trial, now):
        decision = evaluate_access(now, trial, [subscription(utc(2024, 6, 1))])

        assert decision.verdict == Verdict.ALLOW
        assert decision.has_active_subscription is True
        assert decision.days_left_in_trial is None

    def test_one_active_among_expired_subscriptions_allows(self):
        subs = [
            subscription(utc(2023, 2, 1)),
            subscription(utc(2024, 6, 1)),
            subscription(utc(2023, 8, 1)),
        ]

        decision = evaluate_access(utc(2024, 3, 1), JAN_TRIAL, subs)

        assert decision.verdict == Verdict.ALLOW
        assert decision.has_active_subscription is True

    def test_subscription_ending_exactly_now_is_not_active(self):
        now = utc(2024, 3, 1)

        decision = evaluate_access(now, JAN_TRIAL, [subscription(now)])

        assert decision.verdict == Verdict.BLOCK
        assert decision.has_active_subscription is False

    def test_expired_subscription_falls_back_to_trial(self):
        decision = evaluate_access(utc(2024, 1, 13), JAN_TRIAL, [subscription(utc(2024, 1, 10))])

        assert decision.verdict == Verdict.WARN
        assert decision.days_left_in_trial == 2


# ============================================================================
# TEST SUITE: MISSING TRIAL
# ============================================================================

class TestMissingTrial:
    """Users with no trial row get a fresh 14-day trial."""

    @pytest.mark.parametrize("now", [utc(2020, 2, 29, 23, 59), utc(2024, 1, 1), utc(2031, 7, 4, 12, 30)])
    def test_absent_trial_gives_fourteen_days(self, now):
        decision = evaluate_access(now, None, [])

        assert decision.verdict == Verdict.ALLOW
        assert decision.days_left_in_trial == 14
        assert decision.has_active_subscription is False

    def test_default_trial_record_spans_fourteen_days(self):
        now = utc(2024, 1, 1, 9, 30)

        trial = TrialRecord.default(now)

        assert trial.trial_start == now
        assert trial.trial_end - trial.trial_start == timedelta(days=14)


# ============================================================================
# TEST SUITE: BOUNDARIES
# ============================================================================

class TestBoundaries:
    """Warning and block thresholds."""

    NOW = utc(2024, 5, 10, 8, 0)

    def _trial_ending(self, delta: timedelta) -> TrialRecord:
        end = self.NOW + delta
        return TrialRecord(trial_start=end - timedelta(days=14), trial_end=end)

    def test_three_days_left_warns(self):
        decision = evaluate_access(self.NOW, self._trial_ending(timedelta(days=3)), [])

        assert decision.verdict == Verdict.WARN
        assert decision.days_left_in_trial == 3

    def test_ending_now_blocks(self):
        decision = evaluate_access(self.NOW, self._trial_ending(timedelta(0)), [])

        assert decision.verdict == Verdict.BLOCK
        assert decision.days_left_in_trial == 0

    def test_four_days_left_allows(self):
        decision = evaluate_access(self.NOW, self._trial_ending(timedelta(days=4)), [])

        assert decision.verdict == Verdict.ALLOW
        assert decision.days_left_in_trial == 4

    def test_partial_day_rounds_up(self):
        decision = evaluate_access(self.NOW, self._trial_ending(timedelta(days=3, seconds=1)), [])

        assert decision.verdict == Verdict.ALLOW
        assert decision.days_left_in_trial == 4

    def test_one_second_left_warns_with_one_day(self):
        decision = evaluate_access(self.NOW, self._trial_ending(timedelta(seconds=1)), [])

        assert decision.verdict == Verdict.WARN
        assert decision.days_left_in_trial == 1

    def test_long_past_trial_clamps_to_zero(self):
        decision = evaluate_access(self.NOW, self._trial_ending(-timedelta(days=90)), [])

        assert decision.verdict == Verdict.BLOCK
        assert decision.days_left_in_trial == 0


# ============================================================================
# TEST SUITE: PROPERTIES
# ============================================================================

class TestPolicyProperties:
    """Monotonicity and purity."""

    def test_days_left_non_increasing_and_verdict_only_escalates(self):
        now = utc(2023, 12, 25)
        previous = None
        while now < utc(2024, 1, 20):
            decision = evaluate_access(now, JAN_TRIAL, [subscription(utc(2023, 11, 1))])
            if previous is not None:
                assert decision.days_left_in_trial <= previous.days_left_in_trial
                assert VERDICT_ORDER[decision.verdict] >= VERDICT_ORDER[previous.verdict]
            previous = decision
            now += timedelta(hours=7)

        assert previous.verdict == Verdict.BLOCK

    def test_same_inputs_same_output(self):
        now = utc(2024, 1, 13, 17, 45)
        subs = (subscription(utc(2023, 12, 1)),)

        assert evaluate_access(now, JAN_TRIAL, subs) == evaluate_access(now, JAN_TRIAL, subs)

    def test_subscription_list_is_not_mutated(self):
        subs = [
            subscription(utc(2023, 12, 1)),
            subscription(utc(2024, 6, 1)),
            subscription(utc(2023, 11, 1)),
        ]
        before = list(subs)

        evaluate_access(utc(2024, 1, 16), JAN_TRIAL, subs)
        evaluate_access(utc(2024, 7, 1), JAN_TRIAL, subs)

        assert subs == before
        assert [s.end_date for s in subs] == [utc(2023, 12, 1), utc(2024, 6, 1), utc(2023, 11, 1)]

    def test_generator_of_subscriptions_is_accepted(self):
        decision = evaluate_access(
            utc(2024, 1, 16),
            JAN_TRIAL,
            (subscription(end) for end in [utc(2024, 6, 1)]),
        )

        assert decision.verdict == Verdict.ALLOW

    def test_naive_now_is_treated_as_utc(self):
        aware = evaluate_access(utc(2024, 1, 13), JAN_TRIAL, [])
        naive = evaluate_access(datetime(2024, 1, 13), JAN_TRIAL, [])

        assert aware == naive


# ============================================================================
# TEST SUITE: HELPERS AND RECORDS
# ============================================================================

class TestHelpers:
    """days_until, latest_subscription and record validation."""

    def test_days_until_rounds_partial_days_up(self):
        now = utc(2024, 1, 1)

        assert days_until(now + timedelta(hours=36), now) == 2
        assert days_until(now + timedelta(days=2), now) == 2
        assert days_until(now - timedelta(hours=1), now) == 0

    def test_latest_subscription_picks_latest_end(self):
        early = subscription(utc(2024, 2, 1))
        late = subscription(utc(2024, 9, 1))

        assert latest_subscription([early, late]) is late
        assert latest_subscription([]) is None

    def test_trial_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            TrialRecord(trial_start=utc(2024, 1, 15), trial_end=utc(2024, 1, 1))

    def test_subscription_requires_user_id(self):
        with pytest.raises(ValueError):
            SubscriptionRecord(user_id="  ", start_date=utc(2024, 1, 1), end_date=utc(2024, 2, 1))

    def test_ensure_utc_rejects_non_datetime(self):
        with pytest.raises(TypeError):
            ensure_utc(None)

    def test_block_decision_redirects_to_subscription_page(self):
        decision = evaluate_access(utc(2024, 1, 16), JAN_TRIAL, [])

        assert decision.to_dict() == {
            "verdict": "BLOCK",
            "days_left_in_trial": 0,
            "has_active_subscription": False,
            "redirect_to": "/dashboard/subscription",
        }

    def test_non_block_decision_has_no_redirect(self):
        assert evaluate_access(utc(2024, 1, 2), JAN_TRIAL, []).redirect_to is None
