"""
Signup follow-up routes.

Handles:
- POST /api/auth/trial: Provision the 14-day trial for a newly signed-up agent
- POST /api/auth/logout: Sign the agent out; the current token stops working

Sign-in itself happens against the hosted auth service; these routes only
see the resulting session token.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from agencyapp.access.models import Identity, TrialRecord, ensure_utc
from agencyapp.api.dependencies.request_db import get_request_db_session
from agencyapp.middleware.inactivity import get_inactivity_tracker
from agencyapp.platform.session import get_identity
from agencyapp.services.trial_service import TrialService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class StartTrialRequest(BaseModel):
    """Signup details captured on the registration form."""
    full_name: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)


class StartTrialResponse(BaseModel):
    """Trial window for the agent. provisioned is False when the default trial applies."""
    user_id: str
    trial_start_date: datetime
    trial_end_date: datetime
    provisioned: bool


@router.post("/trial", response_model=StartTrialResponse, status_code=status.HTTP_201_CREATED)
async def start_trial(
    trial_request: StartTrialRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_request_db_session),
):
    """
    Create the agent's profile with a 14-day trial.

    Calling it again returns the existing trial unchanged. If the profile
    cannot be written the agent still gets the default trial, so the
    response reports the window that will actually apply.
    """
    now = datetime.now(timezone.utc)
    profile = TrialService(db).start_trial(
        user_id=identity.user_id,
        now=now,
        full_name=trial_request.full_name,
        company=trial_request.company,
        phone_number=trial_request.phone_number,
    )

    if profile is None:
        default = TrialRecord.default(now)
        return StartTrialResponse(
            user_id=identity.user_id,
            trial_start_date=default.trial_start,
            trial_end_date=default.trial_end,
            provisioned=False,
        )

    return StartTrialResponse(
        user_id=identity.user_id,
        trial_start_date=ensure_utc(profile.trial_start_date),
        trial_end_date=ensure_utc(profile.trial_end_date),
        provisioned=True,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(identity: Identity = Depends(get_identity)):
    """Sign the agent out. Tokens issued before now are refused from here on."""
    get_inactivity_tracker().sign_out(identity.user_id)
    logger.info("Agent signed out", extra={"user_id": identity.user_id})
