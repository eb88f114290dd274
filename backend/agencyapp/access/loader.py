"""
Loads trial and subscription records for the access policy.

This is the boundary between the schemaless-ish database rows and the typed
records the policy consumes. Rows are validated here; the policy never sees
raw ORM objects.

Failure handling: if the rows cannot be read at all, the user is treated as
being inside a fresh 14-day trial (degraded=True) so a transient database
problem never locks an agent out.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyapp.access.models import AccessRecords, SubscriptionRecord, TrialRecord
from agencyapp.models.profile import Profile
from agencyapp.models.subscription import Subscription
from agencyapp.monitoring.access_alerts import emit_record_fetch_failure

logger = logging.getLogger(__name__)


def trial_from_profile(profile: Optional[Profile]) -> Optional[TrialRecord]:
    """Build a TrialRecord from a profile row, or None if the row has no usable trial."""
    if profile is None:
        return None
    if profile.trial_start_date is None or profile.trial_end_date is None:
        logger.info(
            "Profile has no trial dates; default trial applies",
            extra={"user_id": profile.id},
        )
        return None
    try:
        return TrialRecord(
            trial_start=profile.trial_start_date,
            trial_end=profile.trial_end_date,
        )
    except (TypeError, ValueError) as e:
        logger.warning(
            "Malformed trial row; default trial applies",
            extra={"user_id": profile.id, "error": str(e)},
        )
        return None


def subscription_from_row(row: Subscription) -> Optional[SubscriptionRecord]:
    """Build a SubscriptionRecord from a row, or None if the row is malformed."""
    try:
        return SubscriptionRecord(
            user_id=row.user_id,
            start_date=row.start_date,
            end_date=row.end_date,
            amount_paid=row.amount_paid if row.amount_paid is not None else 0,
            status=row.status or "active",
        )
    except (TypeError, ValueError, ArithmeticError) as e:
        logger.warning(
            "Skipping malformed subscription row",
            extra={"subscription_id": row.id, "user_id": row.user_id, "error": str(e)},
        )
        return None


class AccessRecordLoader:
    """Fetches the records evaluate_access needs for a user."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def load(self, user_id: str) -> AccessRecords:
        """
        Load trial and subscription records for a user.

        Args:
            user_id: Authenticated user id

        Returns:
            AccessRecords; degraded=True when the database could not be read
        """
        try:
            profile = self.db.query(Profile).filter(Profile.id == user_id).first()
            rows = (
                self.db.query(Subscription)
                .filter(Subscription.user_id == user_id)
                .order_by(Subscription.end_date.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            emit_record_fetch_failure(user_id, e)
            return AccessRecords(degraded=True)

        subscriptions: List[SubscriptionRecord] = []
        for row in rows:
            record = subscription_from_row(row)
            if record is not None:
                subscriptions.append(record)

        return AccessRecords(
            trial=trial_from_profile(profile),
            subscriptions=tuple(subscriptions),
            profile_exists=profile is not None,
            profile_subscribed=bool(profile.has_active_subscription) if profile else False,
        )
