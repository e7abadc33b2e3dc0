"""Recommendation Matching — pure filter + sort + limit over candidate Lend listings.

Invariants:
    - Never returns a Lend owned by the borrower, even if listed as their own friend
    - Only friends' offers whose deadline >= the Borrow's deadline qualify
    - Ordered by max_amount descending; equal amounts keep candidate order
      (stable sort, no secondary key promised)
    - At most `limit` results

Design Decisions:
    - Friend set resolved by the shell and passed in: core stays free of async IO
"""

from collections.abc import Iterable

from lendbridge.core.domain_types import ListingKind, UserId
from lendbridge.core.records import Listing


DEFAULT_RECOMMENDATION_LIMIT: int = 3


def is_eligible(borrow: Listing, lend: Listing, friend_ids: frozenset[UserId]) -> bool:
    return (
        lend.kind == ListingKind.LEND
        and lend.owner_id != borrow.owner_id
        and lend.owner_id in friend_ids
        and lend.deadline >= borrow.deadline
    )


def select_recommendations(
    borrow: Listing,
    candidates: Iterable[Listing],
    friend_ids: frozenset[UserId],
    limit: int = DEFAULT_RECOMMENDATION_LIMIT,
) -> list[Listing]:
    """Top `limit` eligible offers by amount. `candidates` must be in store order."""
    eligible = [c for c in candidates if is_eligible(borrow, c, friend_ids)]
    eligible.sort(key=lambda lend: lend.max_amount, reverse=True)
    return eligible[:limit]
