"""Listing Service — publish and read Borrow/Lend listings.

Invariants:
    - Publishing writes the listing and a Publish-* notice to the owner's mailbox together
    - Listings are immutable once published
"""

import logging
from uuid import uuid4

from lendbridge.core.domain_types import ListingId, ListingKind, MessageId, MessageType, UserId
from lendbridge.core.errors import ResourceNotFoundError
from lendbridge.core.records import Listing, Message
from lendbridge.core.repository_protocols import UnitOfWork
from lendbridge.services.negotiation import require_ids

logger = logging.getLogger(__name__)

PUBLISH_NOTICE = {
    ListingKind.BORROW: MessageType.PUBLISH_BORROW,
    ListingKind.LEND: MessageType.PUBLISH_LEND,
}


class ListingService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def publish(self, actor_id: object, kind: ListingKind, **fields) -> Listing:
        """Create a listing owned by the actor. `fields` map onto Listing attributes."""
        owner = UserId(require_ids(actor_id=actor_id)["actor_id"])
        listing = Listing(id=ListingId(uuid4()), kind=kind, owner_id=owner, **fields)
        notice = Message(
            id=MessageId(uuid4()),
            type=PUBLISH_NOTICE[kind],
            to_id=owner,
            listing_id=listing.id,
        )
        try:
            await self.uow.listings.create(listing)
            await self.uow.messages.create(notice)
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise
        logger.info(
            f"{kind.value} listing published",
            extra={"actor_id": str(owner), "listing_id": str(listing.id)},
        )
        return listing

    async def get(self, listing_id: object) -> Listing:
        lid = ListingId(require_ids(listing_id=listing_id)["listing_id"])
        listing = await self.uow.listings.get(lid)
        if listing is None:
            raise ResourceNotFoundError("Listing", str(lid))
        return listing

    async def mine(self, actor_id: object, kind: ListingKind | None = None) -> list[Listing]:
        owner = UserId(require_ids(actor_id=actor_id)["actor_id"])
        return await self.uow.listings.list_by_owner(owner, kind)
