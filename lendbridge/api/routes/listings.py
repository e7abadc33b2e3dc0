"""Listing Routes — publish, read, and get recommendations for listings.

Invariants:
    - Publishing a Borrow posts a timeline item AFTER the response (background task)
    - Recommendations delegate to RecommendationService (no ranking logic here)
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from lendbridge.api.deps import get_actor_id, get_uow
from lendbridge.config import get_settings
from lendbridge.core.domain_types import ListingKind, TimelineKind, UserId
from lendbridge.infrastructure.sql_stores import SqlUnitOfWork
from lendbridge.schemas.listing import BorrowCreate, LendCreate, ListingResponse
from lendbridge.services.listings import ListingService
from lendbridge.services.recommendation import RecommendationService
from lendbridge.services.timeline import publish_in_background

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


@router.post(
    "/borrow", response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_borrow(
    body: BorrowCreate,
    background_tasks: BackgroundTasks,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Publish a loan request."""
    listing = await ListingService(uow).publish(
        actor_id, ListingKind.BORROW,
        deadline=body.loan_deadline,
        max_amount=body.max_amount,
        max_rate=body.max_rate,
        city=body.city,
        project=body.project,
        reason=body.reason,
        risk_factor=body.risk_factor,
    )
    background_tasks.add_task(
        publish_in_background, actor_id,
        TimelineKind.BORROW_PUBLISHED.value, {"borrowId": str(listing.id)},
    )
    logger.info(
        "Borrow timeline post scheduled",
        extra={"actor_id": str(actor_id), "listing_id": str(listing.id)},
    )
    return ListingResponse.from_record(listing)


@router.post(
    "/lend", response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_lend(
    body: LendCreate,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Publish a loan offer."""
    listing = await ListingService(uow).publish(
        actor_id, ListingKind.LEND,
        deadline=body.loan_deadline,
        max_amount=body.max_amount,
    )
    return ListingResponse.from_record(listing)


@router.get("/mine", response_model=list[ListingResponse])
async def my_listings(
    kind: ListingKind | None = Query(None),
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Actor's own listings, optionally filtered by kind."""
    listings = await ListingService(uow).mine(actor_id, kind)
    return [ListingResponse.from_record(listing) for listing in listings]


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: str,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Listing details."""
    return ListingResponse.from_record(await ListingService(uow).get(listing_id))


@router.get("/{borrow_id}/recommendations", response_model=list[ListingResponse])
async def recommendations(
    borrow_id: str,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Top friends' offers for a Borrow listing."""
    service = RecommendationService(uow, get_settings().recommendation_limit)
    picks = await service.recommend(borrow_id, actor_id)
    return [ListingResponse.from_record(listing) for listing in picks]
