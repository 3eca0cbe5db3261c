"""
Access Request API Endpoints

A renter asks a listing owner for contact access; the owner answers once.
Every change notifies the other party.
"""
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.api.dependencies import get_current_user, get_db, get_request_notifier
from propfind.models.listing import Listing
from propfind.models.property_request import RequestStatus
from propfind.models.user import User
from propfind.schemas.property_request import (
    PropertyRequestCreate,
    PropertyRequestOut,
    PropertyRequestRespond,
)
from propfind.services import access_requests
from propfind.services.access_requests import (
    InvalidTransitionError,
    NotRequestOwnerError,
    RequestNotFoundError,
    SelfRequestError,
)
from propfind.services.notifications import RequestNotifier

router = APIRouter()


@router.post("/", response_model=PropertyRequestOut, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: PropertyRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: RequestNotifier = Depends(get_request_notifier),
):
    listing = await db.get(Listing, payload.property_id)
    if not listing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")

    try:
        return await access_requests.create_request(
            db,
            property_id=listing.id,
            requester_id=current_user.id,
            owner_id=listing.owner_id,
            message=payload.message,
            notifier=notifier,
        )
    except SelfRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/owner", response_model=List[PropertyRequestOut])
async def list_owner_requests(
    status_filter: Optional[Literal["pending", "approved", "rejected"]] = Query(None, alias="status"),
    property_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Requests addressed to the current user, newest first."""
    return await access_requests.list_for_owner(
        db,
        owner_id=current_user.id,
        status=RequestStatus(status_filter) if status_filter else None,
        property_id=property_id,
    )


@router.get("/mine", response_model=Optional[PropertyRequestOut])
async def get_my_request(
    property_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The current user's request for a listing; null when none exists yet."""
    return await access_requests.list_for_requester(db, requester_id=current_user.id, property_id=property_id)


@router.get("/{request_id}", response_model=PropertyRequestOut)
async def get_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        request = await access_requests.get_request(db, request_id)
    except RequestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if current_user.id not in (request.requester_id, request.owner_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    return request


@router.post("/{request_id}/respond", response_model=PropertyRequestOut)
async def respond_to_request(
    request_id: str,
    payload: PropertyRequestRespond,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: RequestNotifier = Depends(get_request_notifier),
):
    """
    Approve or reject a pending request. Only the listing owner may answer;
    an answered request cannot be answered again (409).
    """
    try:
        return await access_requests.respond(
            db,
            request_id=request_id,
            decision=RequestStatus(payload.decision),
            acting_user_id=current_user.id,
            response_message=payload.response_message,
            notifier=notifier,
        )
    except RequestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    except NotRequestOwnerError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the listing owner can respond")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
