"""
Access request workflow.

A requester asks a listing owner for contact access; the owner approves or
rejects exactly once. ``chat_enabled`` follows from the status and is never
written on its own.

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED

Any other transition raises ``InvalidTransitionError``.
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from propfind.logging import get_logger
from propfind.models.listing import Listing
from propfind.models.property_request import PropertyRequest, RequestStatus
from propfind.models.user import User
from propfind.services.notifications import RequestNotifier

logger = get_logger(__name__)


class AccessRequestError(Exception):
    pass


class RequestNotFoundError(AccessRequestError):
    pass


class NotRequestOwnerError(AccessRequestError):
    pass


class SelfRequestError(AccessRequestError):
    pass


class InvalidTransitionError(AccessRequestError):
    def __init__(self, current: RequestStatus, target: RequestStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move request from {current.value} to {target.value}")


def check_transition(current: RequestStatus, target: RequestStatus) -> None:
    if not current.can_transition_to(target):
        raise InvalidTransitionError(current, target)


def apply_decision(
    request: PropertyRequest,
    decision: RequestStatus,
    response_message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PropertyRequest:
    """Transition ``request`` to ``decision`` or raise InvalidTransitionError."""
    check_transition(RequestStatus(request.status), decision)
    request.status = decision.value
    request.response_message = response_message or ""
    request.responded_at = now or datetime.now(timezone.utc)
    return request


async def create_request(
    db: AsyncSession,
    property_id: int,
    requester_id: int,
    owner_id: int,
    message: str,
    notifier: Optional[RequestNotifier] = None,
) -> PropertyRequest:
    """
    Insert a pending request.

    Repeat requests for the same listing are allowed; the requester view
    shows the most recent one.
    """
    if requester_id == owner_id:
        raise SelfRequestError("Owners cannot request access to their own listing")

    request = PropertyRequest(
        property_id=property_id,
        requester_id=requester_id,
        owner_id=owner_id,
        status=RequestStatus.PENDING.value,
        message=message,
        requested_at=datetime.now(timezone.utc),
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info("Access request created", request_id=request.id, property_id=property_id)

    if notifier:
        owner = await db.get(User, owner_id)
        listing = await db.get(Listing, property_id)
        if owner and listing:
            notifier.request_created(request, owner.email, listing.title)
    return request


async def get_request(db: AsyncSession, request_id: str) -> PropertyRequest:
    request = await db.get(PropertyRequest, request_id)
    if not request:
        raise RequestNotFoundError(request_id)
    return request


async def respond(
    db: AsyncSession,
    request_id: str,
    decision: RequestStatus,
    acting_user_id: int,
    response_message: Optional[str] = None,
    notifier: Optional[RequestNotifier] = None,
) -> PropertyRequest:
    """
    Record the owner's decision. Only the listing owner may respond, and only once.

    The write is conditional on the row still being pending, so of two
    concurrent responses exactly one wins; the other raises
    InvalidTransitionError with the status the winner stored.
    """
    request = await get_request(db, request_id)
    if request.owner_id != acting_user_id:
        raise NotRequestOwnerError(request_id)
    check_transition(RequestStatus(request.status), decision)

    result = await db.execute(
        update(PropertyRequest)
        .where(
            PropertyRequest.id == request_id,
            PropertyRequest.status == RequestStatus.PENDING.value,
        )
        .values(
            status=decision.value,
            response_message=response_message or "",
            responded_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        await db.refresh(request)
        logger.warning("Concurrent response lost", request_id=request_id, status=request.status)
        raise InvalidTransitionError(RequestStatus(request.status), decision)

    await db.commit()
    await db.refresh(request)

    if decision == RequestStatus.APPROVED:
        logger.great("Access request approved", request_id=request.id)
    else:
        logger.info("Access request rejected", request_id=request.id)

    if notifier:
        requester = await db.get(User, request.requester_id)
        listing = await db.get(Listing, request.property_id)
        if requester and listing:
            notifier.request_responded(request, requester.email, listing.title)
    return request


async def list_for_owner(
    db: AsyncSession,
    owner_id: int,
    status: Optional[RequestStatus] = None,
    property_id: Optional[int] = None,
) -> List[PropertyRequest]:
    query = select(PropertyRequest).filter(PropertyRequest.owner_id == owner_id)
    if status:
        query = query.filter(PropertyRequest.status == status.value)
    if property_id:
        query = query.filter(PropertyRequest.property_id == property_id)
    query = query.order_by(PropertyRequest.requested_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_for_requester(db: AsyncSession, requester_id: int, property_id: int) -> Optional[PropertyRequest]:
    """The requester's latest request for a listing, if any."""
    result = await db.execute(
        select(PropertyRequest)
        .filter(
            PropertyRequest.requester_id == requester_id,
            PropertyRequest.property_id == property_id,
        )
        .order_by(PropertyRequest.requested_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
