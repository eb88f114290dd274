"""
Client API routes.

Every route here is protected by the access guard: a BLOCKed agent gets
402 TRIAL_EXPIRED and a WARNed agent gets the trial warning headers.
Results are always scoped to the authenticated agent, including the claims
filed under a client.
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
from agencyapp.services.claim_service import ClaimService
from agencyapp.services.client_service import ClientService
from agencyapp.utils.phone import format_phone_number

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])


class CreateClientRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = None


class ClientResponse(BaseModel):
    id: str
    name: str
    email: Optional[str]
    phone_number: Optional[str]
    address: Optional[str]
    created_at: Optional[datetime]


class ClientListResponse(BaseModel):
    clients: List[ClientResponse]
    count: int


def _to_response(client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        email=client.email,
        phone_number=format_phone_number(client.phone_number or "") or None,
        address=client.address,
        created_at=ensure_utc(client.created_at) if client.created_at else None,
    )


@router.get("", response_model=ClientListResponse)
async def list_clients(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    """List the agent's clients, newest first."""
    clients = ClientService(db, ctx.identity.user_id).list_clients(limit=limit, offset=offset)
    return ClientListResponse(
        clients=[_to_response(c) for c in clients],
        count=len(clients),
    )


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_request: CreateClientRequest,
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    client = ClientService(db, ctx.identity.user_id).create_client(
        name=client_request.name,
        email=client_request.email,
        phone_number=client_request.phone_number,
        address=client_request.address,
    )
    return _to_response(client)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    """Fetch one client. Another agent's client is reported as not found."""
    return _to_response(ClientService(db, ctx.identity.user_id).get_client(client_id))


class CreateClaimRequest(BaseModel):
    claim_type: str = Field(..., description="Motor Accident, Fire Damage, Theft, ...")
    claim_date: date
    location: str = Field(..., max_length=255)
    description: str
    amount: Decimal = Field(..., description="Amount involved in GHS")


class ClaimResponse(BaseModel):
    id: str
    client_id: str
    claim_type: str
    claim_date: date
    location: str
    description: str
    amount: float
    created_at: Optional[datetime]


class ClaimListResponse(BaseModel):
    claims: List[ClaimResponse]
    count: int


def _claim_response(claim) -> ClaimResponse:
    return ClaimResponse(
        id=claim.id,
        client_id=claim.client_id,
        claim_type=claim.claim_type,
        claim_date=claim.claim_date,
        location=claim.location,
        description=claim.description,
        amount=float(claim.amount),
        created_at=ensure_utc(claim.created_at) if claim.created_at else None,
    )


@router.get("/{client_id}/claims", response_model=ClaimListResponse)
async def list_claims(
    client_id: str,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    """Claims filed for one of the agent's clients, newest first."""
    claims = ClaimService(db, ctx.identity.user_id).list_claims(client_id, limit=limit, offset=offset)
    return ClaimListResponse(claims=[_claim_response(c) for c in claims], count=len(claims))


@router.post("/{client_id}/claims", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    client_id: str,
    claim_request: CreateClaimRequest,
    ctx: AccessContext = Depends(require_access),
    db: Session = Depends(get_request_db_session),
):
    claim = ClaimService(db, ctx.identity.user_id).create_claim(
        client_id=client_id,
        claim_type=claim_request.claim_type,
        claim_date=claim_request.claim_date,
        location=claim_request.location,
        description=claim_request.description,
        amount=claim_request.amount,
    )
    return _claim_response(claim)
