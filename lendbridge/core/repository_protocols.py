"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - compare_and_set_* report whether the expected value matched AT WRITE TIME
    - Writes through a UnitOfWork are all-or-nothing: rollback() discards every
      write since the last commit()
    - MessageStore.create rejects a second BorrowContract-Sent for one transaction

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these records are never async themselves —
      the shell orchestrates the async calls around the pure logic
"""

from datetime import date
from typing import Protocol

from lendbridge.core.domain_types import (
    ListingId, ListingKind, MessageId, MessageType, TransactionId,
    TransactionStatus, UserId,
)
from lendbridge.core.records import Listing, Message, Transaction


class ListingStore(Protocol):
    """Read side of the listing collaborator (plus publish)."""
    async def get(self, listing_id: ListingId) -> Listing | None: ...
    async def create(self, listing: Listing) -> ListingId: ...
    async def list_by_owner(
        self, owner_id: UserId, kind: ListingKind | None = None,
    ) -> list[Listing]: ...
    async def lends_due_on_or_after(self, deadline: date) -> list[Listing]: ...


class FriendGraph(Protocol):
    """Social graph predicate — friend management lives elsewhere."""
    async def contains(self, user_id: UserId, candidate_id: UserId) -> bool: ...


class MessageStore(Protocol):
    """Append-mostly message collection with mailbox delivery."""
    async def create(self, message: Message) -> MessageId: ...
    async def get(self, message_id: MessageId) -> Message | None: ...
    async def compare_and_set_type(
        self, message_id: MessageId, expected: MessageType, new: MessageType,
    ) -> bool: ...
    async def exists_where(
        self, message_type: MessageType, transaction_id: TransactionId,
    ) -> bool: ...
    async def list_for_mailbox(self, user_id: UserId) -> list[Message]: ...


class TransactionStore(Protocol):
    """Transaction aggregate collection."""
    async def create(self, transaction: Transaction) -> TransactionId: ...
    async def get(self, transaction_id: TransactionId) -> Transaction | None: ...
    async def compare_and_set_status(
        self,
        transaction_id: TransactionId,
        expected: TransactionStatus,
        new: TransactionStatus,
    ) -> bool: ...


class UnitOfWork(Protocol):
    """Stores sharing one atomic write scope."""
    listings: ListingStore
    friends: FriendGraph
    messages: MessageStore
    transactions: TransactionStore

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class TimelineSink(Protocol):
    """Fire-and-forget feed writer, called after a successful operation."""
    async def publish(self, actor_id: UserId, kind: str, info: dict) -> None: ...
