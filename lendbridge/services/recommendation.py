"""Recommendation Service — fetches candidates and the friend set, delegates ranking to core.

Invariants:
    - Read-only: never writes to any store
    - Friend set is the Borrow owner's, queried once per distinct candidate owner
"""

import logging

from lendbridge.core.domain_types import ListingId, ListingKind, UserId
from lendbridge.core.errors import InvalidInputError, ResourceNotFoundError
from lendbridge.core.records import Listing
from lendbridge.core.repository_protocols import UnitOfWork
from lendbridge.core.select_recommendations import (
    DEFAULT_RECOMMENDATION_LIMIT, select_recommendations,
)
from lendbridge.services.negotiation import require_ids

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(self, uow: UnitOfWork, limit: int = DEFAULT_RECOMMENDATION_LIMIT):
        self.uow = uow
        self.limit = limit

    async def recommend(self, borrow_id: object, actor_id: object) -> list[Listing]:
        """Up to `limit` friends' Lend offers that outlast the Borrow's deadline."""
        ids = require_ids(borrow_id=borrow_id, actor_id=actor_id)
        borrow = await self.uow.listings.get(ListingId(ids["borrow_id"]))
        if borrow is None:
            raise ResourceNotFoundError("Listing", str(ids["borrow_id"]))
        if borrow.kind != ListingKind.BORROW:
            raise InvalidInputError(
                f"listing '{borrow.id}' is not a borrow listing", "borrow_id",
            )

        candidates = await self.uow.listings.lends_due_on_or_after(borrow.deadline)
        friend_ids = set()
        for owner_id in {c.owner_id for c in candidates}:
            if owner_id != borrow.owner_id and await self.uow.friends.contains(
                borrow.owner_id, owner_id,
            ):
                friend_ids.add(UserId(owner_id))

        picks = select_recommendations(
            borrow, candidates, frozenset(friend_ids), self.limit,
        )
        logger.info(
            f"Recommended {len(picks)} of {len(candidates)} offers",
            extra={"listing_id": str(borrow.id), "actor_id": str(ids["actor_id"])},
        )
        return picks
