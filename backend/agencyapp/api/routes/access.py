"""
Access status route.

Lets the client render the trial banner or the "trial expired" screen. It
reports the decision without enforcing it, so it answers even when blocked.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from agencyapp.api.dependencies.access import AccessContext, get_access_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/access", tags=["access"])


class AccessStatusResponse(BaseModel):
    """Current access decision for the authenticated agent."""
    verdict: str
    days_left_in_trial: Optional[int]
    has_active_subscription: bool
    redirect_to: Optional[str]
    degraded: bool


@router.get("", response_model=AccessStatusResponse)
async def get_access_status(ctx: AccessContext = Depends(get_access_context)):
    """Return ALLOW / WARN / BLOCK with the trial countdown."""
    decision = ctx.decision
    return AccessStatusResponse(
        verdict=decision.verdict.value,
        days_left_in_trial=decision.days_left_in_trial,
        has_active_subscription=decision.has_active_subscription,
        redirect_to=decision.redirect_to,
        degraded=ctx.records.degraded,
    )
