"""Recommendation & Listing Services — in-memory store tests."""

from datetime import date
from uuid import uuid4

import pytest

from lendbridge.core.domain_types import ListingKind, MessageType, UserId
from lendbridge.core.errors import InvalidInputError, ResourceNotFoundError
from lendbridge.infrastructure.memory_stores import InMemoryUnitOfWork
from lendbridge.services.listings import ListingService
from lendbridge.services.recommendation import RecommendationService


DEADLINE = date(2027, 3, 1)


async def _seed(uow, *listings):
    for listing in listings:
        await uow.listings.create(listing)
    await uow.commit()


async def test_recommends_friends_offers_by_amount(memory_uow, make_listing, borrower):
    friends = [UserId(uuid4()) for _ in range(4)]
    stranger = UserId(uuid4())
    for friend in friends:
        memory_uow.state.befriend(borrower, friend)
    borrow = make_listing(ListingKind.BORROW, borrower, deadline=DEADLINE)
    lends = [
        make_listing(ListingKind.LEND, f, deadline=DEADLINE, amount=amount)
        for f, amount in zip(friends, ["50", "700", "300", "900"])
    ]
    await _seed(
        memory_uow, borrow, *lends,
        make_listing(ListingKind.LEND, stranger, deadline=DEADLINE, amount="99999"),
    )

    picks = await RecommendationService(memory_uow).recommend(borrow.id, borrower)

    assert [p.max_amount for p in picks] == [900, 700, 300]


async def test_friend_set_is_the_borrow_owners(memory_uow, make_listing, borrower, lender):
    viewer = UserId(uuid4())
    memory_uow.state.befriend(viewer, lender)
    borrow = make_listing(ListingKind.BORROW, borrower, deadline=DEADLINE)
    lend = make_listing(ListingKind.LEND, lender, deadline=DEADLINE)
    await _seed(memory_uow, borrow, lend)

    assert await RecommendationService(memory_uow).recommend(borrow.id, viewer) == []


async def test_no_candidates_is_empty(memory_uow, make_listing, borrower):
    borrow = make_listing(ListingKind.BORROW, borrower, deadline=DEADLINE)
    await _seed(memory_uow, borrow)

    assert await RecommendationService(memory_uow).recommend(borrow.id, borrower) == []


async def test_limit_comes_from_service(memory_uow, make_listing, borrower, lender):
    memory_uow.state.befriend(borrower, lender)
    borrow = make_listing(ListingKind.BORROW, borrower, deadline=DEADLINE)
    lends = [make_listing(ListingKind.LEND, lender, deadline=DEADLINE) for _ in range(4)]
    await _seed(memory_uow, borrow, *lends)

    picks = await RecommendationService(memory_uow, limit=2).recommend(borrow.id, borrower)

    assert len(picks) == 2


async def test_unknown_borrow_is_not_found(memory_uow, borrower):
    with pytest.raises(ResourceNotFoundError):
        await RecommendationService(memory_uow).recommend(uuid4(), borrower)


async def test_lend_listing_is_rejected(memory_uow, make_listing, lender):
    lend = make_listing(ListingKind.LEND, lender)
    await _seed(memory_uow, lend)

    with pytest.raises(InvalidInputError):
        await RecommendationService(memory_uow).recommend(lend.id, lender)


# ─── Listing publishing ──────────────────────────────────────────

async def test_publish_writes_listing_and_owner_notice(memory_uow, borrower, find_message):
    service = ListingService(memory_uow)

    listing = await service.publish(
        borrower, ListingKind.BORROW,
        deadline=DEADLINE, max_amount=500, city="Seoul", reason="tuition",
    )

    assert await service.get(listing.id) == listing
    notice = await find_message(memory_uow, borrower, MessageType.PUBLISH_BORROW)
    assert notice.listing_id == listing.id


async def test_mine_filters_by_kind(borrower):
    service = ListingService(InMemoryUnitOfWork())
    await service.publish(borrower, ListingKind.BORROW, deadline=DEADLINE, max_amount=1)
    await service.publish(borrower, ListingKind.LEND, deadline=DEADLINE, max_amount=2)

    lends = await service.mine(borrower, ListingKind.LEND)

    assert [listing.kind for listing in lends] == [ListingKind.LEND]
    assert len(await service.mine(borrower)) == 2


async def test_get_unknown_listing_is_not_found(memory_uow):
    with pytest.raises(ResourceNotFoundError):
        await ListingService(memory_uow).get(uuid4())
