"""
Trial Service for provisioning the 14-day free trial at signup.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agencyapp.access.models import ensure_utc
from agencyapp.config.access import TRIAL_LENGTH_DAYS
from agencyapp.models.profile import Profile

logger = logging.getLogger(__name__)


def split_full_name(full_name: Optional[str]) -> Tuple[str, str]:
    """Split "Ama Serwaa Mensah" into ("Ama", "Serwaa Mensah")."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def build_trial_profile(
    user_id: str,
    now: datetime,
    full_name: Optional[str] = None,
    company: Optional[str] = None,
    phone_number: Optional[str] = None,
    has_active_subscription: bool = False,
) -> Profile:
    """Build (but do not persist) a profile with a trial starting at now."""
    start = ensure_utc(now)
    first_name, last_name = split_full_name(full_name)
    return Profile(
        id=user_id,
        trial_start_date=start,
        trial_end_date=start + timedelta(days=TRIAL_LENGTH_DAYS),
        has_active_subscription=has_active_subscription,
        full_name=full_name or "",
        first_name=first_name,
        last_name=last_name,
        company=company or "",
        phone_number=phone_number or "",
    )


class TrialService:
    """
    Service for managing agent trial periods.

    The trial row is written once. Users without a row are still served by
    the access policy's default trial, so a failed write is not fatal.
    """

    def __init__(self, db: Session):
        self.db = db

    def start_trial(
        self,
        user_id: str,
        now: datetime,
        full_name: Optional[str] = None,
        company: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional[Profile]:
        """
        Create the user's profile with a 14-day trial.

        Args:
            user_id: Authenticated user id
            now: Trial start time
            full_name: Optional full name, split into first/last
            company: Optional agency name
            phone_number: Optional contact number

        Returns:
            The existing or newly created Profile, or None if it could not be written
        """
        try:
            existing = self.db.query(Profile).filter(Profile.id == user_id).first()
            if existing is not None:
                logger.info("Trial already provisioned", extra={"user_id": user_id})
                return existing

            profile = build_trial_profile(
                user_id,
                now,
                full_name=full_name,
                company=company,
                phone_number=phone_number,
            )
            self.db.add(profile)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "Failed to provision trial; default trial will apply",
                extra={"user_id": user_id, "error": str(e)},
            )
            return None

        logger.info(
            "Trial provisioned",
            extra={"user_id": user_id, "trial_end_date": profile.trial_end_date.isoformat()},
        )
        return profile
