"""
Policy API routes.

Protected by the access guard like the client routes. Policies are always
scoped to the authenticated agent; client_id must name one of their clients.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from agencyapp.access.models import ensure_utc
from agencyapp.api.dependencies.access import AccessContext, require_access
from agencyapp.api.dependencies.request_db import get_request_db_session
from agencyapp.services.policy_service import PolicyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/policies", tags=["policies"])


class CreatePolicyRequest(BaseModel):
    client_id: str = Field(..., min_length=1)
    policy_type: str = Field(..., description="Motor, Fire and Burglary, Travel, ...")
    premium: Decimal = Field(..., description="Premium in GHS")
    commission_rate: Decimal = Field(..., description="Commission percent, 0-100")
    start_date: date
    end_date: date
    policy_number: Optional[str] = Field(None, max_length=64, description="Generated when omitted")


class PolicyResponse(BaseModel):
    id: str
    client_id: str
    policy_number: str
    policy_type: str
    premium: float
    commission_rate: float
    commission_amount: float
    start_date: date
    end_date: date
    created_at: Optional[datetime]


class PolicyListResponse(BaseModel):
    policies: List[PolicyResponse]
    count: int


def _to_response(policy) -> PolicyResponse:
    return PolicyResponse(
        id=policy.id,
        client_id=policy.client_id,
        policy_number=policy.policy_number,
        policy_type=policy.policy_type,
        premium=float(policy.premium),
        commission_rate=float(policy.commission_rate),
        commission_amount=float(policy.commission_amount),
        start_date=policy.start_date,
        end_date=policy.end_date,
        created_at=ensure_utc(policy.created_at) if policy.created_at else None,
    )


@router.get("", response_model=PolicyListResponse)
async def list_policies(
    client_id: Optional[str] = Query(None, description="Only policies for this client"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    """List the agent's policies, newest first."""
    policies = PolicyService(db, ctx.identity.user_id).list_policies(
        client_id=client_id, limit=limit, offset=offset,
    )
    return PolicyListResponse(policies=[_to_response(p) for p in policies], count=len(policies))


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    policy_request: CreatePolicyRequest,
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    policy = PolicyService(db, ctx.identity.user_id).create_policy(
        client_id=policy_request.client_id,
        policy_type=policy_request.policy_type,
        premium=policy_request.premium,
        commission_rate=policy_request.commission_rate,
        start_date=policy_request.start_date,
        end_date=policy_request.end_date,
        policy_number=policy_request.policy_number,
    )
    return _to_response(policy)


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: str,
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    """Fetch one policy. Another agent's policy is reported as not found."""
    return _to_response(PolicyService(db, ctx.identity.user_id).get_policy(policy_id))
