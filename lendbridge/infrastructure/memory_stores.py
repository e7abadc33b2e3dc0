"""In-Memory Stores — reference implementation of the boundary protocols.

Invariants:
    - Dicts preserve insertion order: that order is the "store order" for ties
    - Every write appends an undo step; rollback() replays them newest-first
    - compare_and_set_* check and write with no await in between, so they are
      atomic on a single event loop
    - At most one BorrowContract-Sent message per transaction

Design Decisions:
    - Undo journal over copy-on-write snapshots: O(writes) rollback, no deep copies
    - Used by service tests and local demos; production wiring uses sql_stores
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from lendbridge.core.domain_types import (
    ListingId, ListingKind, MessageId, MessageType, TransactionId,
    TransactionStatus, UserId,
)
from lendbridge.core.errors import DuplicateSubmissionError
from lendbridge.core.records import Listing, Message, Transaction


@dataclass
class InMemoryState:
    """Shared backing collections — one per simulated database."""
    listings: dict[ListingId, Listing] = field(default_factory=dict)
    friendships: set[tuple[UserId, UserId]] = field(default_factory=set)
    messages: dict[MessageId, Message] = field(default_factory=dict)
    transactions: dict[TransactionId, Transaction] = field(default_factory=dict)
    timeline: list[dict] = field(default_factory=list)

    def befriend(self, user_id: UserId, friend_id: UserId) -> None:
        self.friendships.add((user_id, friend_id))
        self.friendships.add((friend_id, user_id))


class _Journal:
    def __init__(self):
        self._undo: list[Callable[[], None]] = []

    def record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def clear(self) -> None:
        self._undo.clear()

    def unwind(self) -> None:
        while self._undo:
            self._undo.pop()()


class InMemoryListingStore:
    def __init__(self, state: InMemoryState, journal: _Journal):
        self._state = state
        self._journal = journal

    async def get(self, listing_id: ListingId) -> Listing | None:
        return self._state.listings.get(listing_id)

    async def create(self, listing: Listing) -> ListingId:
        self._state.listings[listing.id] = listing
        self._journal.record(lambda: self._state.listings.pop(listing.id, None))
        return listing.id

    async def list_by_owner(
        self, owner_id: UserId, kind: ListingKind | None = None,
    ) -> list[Listing]:
        return [
            listing for listing in self._state.listings.values()
            if listing.owner_id == owner_id and (kind is None or listing.kind == kind)
        ]

    async def lends_due_on_or_after(self, deadline: date) -> list[Listing]:
        return [
            listing for listing in self._state.listings.values()
            if listing.kind == ListingKind.LEND and listing.deadline >= deadline
        ]


class InMemoryFriendGraph:
    def __init__(self, state: InMemoryState):
        self._state = state

    async def contains(self, user_id: UserId, candidate_id: UserId) -> bool:
        return (user_id, candidate_id) in self._state.friendships


class InMemoryMessageStore:
    def __init__(self, state: InMemoryState, journal: _Journal):
        self._state = state
        self._journal = journal

    async def create(self, message: Message) -> MessageId:
        if message.type == MessageType.CONTRACT_SENT and self._exists(
            MessageType.CONTRACT_SENT, message.transaction_id,
        ):
            raise DuplicateSubmissionError(str(message.transaction_id))
        self._state.messages[message.id] = message
        self._journal.record(lambda: self._state.messages.pop(message.id, None))
        return message.id

    async def get(self, message_id: MessageId) -> Message | None:
        return self._state.messages.get(message_id)

    async def compare_and_set_type(
        self, message_id: MessageId, expected: MessageType, new: MessageType,
    ) -> bool:
        current = self._state.messages.get(message_id)
        if current is None or current.type != expected:
            return False
        self._state.messages[message_id] = current.with_type(new)
        self._journal.record(
            lambda: self._state.messages.__setitem__(message_id, current),
        )
        return True

    async def exists_where(
        self, message_type: MessageType, transaction_id: TransactionId,
    ) -> bool:
        return self._exists(message_type, transaction_id)

    async def list_for_mailbox(self, user_id: UserId) -> list[Message]:
        return [m for m in self._state.messages.values() if user_id in m.mailbox_ids]

    def _exists(self, message_type: MessageType, transaction_id: TransactionId | None) -> bool:
        return any(
            m.type == message_type and m.transaction_id == transaction_id
            for m in self._state.messages.values()
        )


class InMemoryTransactionStore:
    def __init__(self, state: InMemoryState, journal: _Journal):
        self._state = state
        self._journal = journal

    async def create(self, transaction: Transaction) -> TransactionId:
        self._state.transactions[transaction.id] = transaction
        self._journal.record(
            lambda: self._state.transactions.pop(transaction.id, None),
        )
        return transaction.id

    async def get(self, transaction_id: TransactionId) -> Transaction | None:
        return self._state.transactions.get(transaction_id)

    async def compare_and_set_status(
        self,
        transaction_id: TransactionId,
        expected: TransactionStatus,
        new: TransactionStatus,
    ) -> bool:
        current = self._state.transactions.get(transaction_id)
        if current is None or current.status != expected:
            return False
        self._state.transactions[transaction_id] = current.with_status(new)
        self._journal.record(
            lambda: self._state.transactions.__setitem__(transaction_id, current),
        )
        return True


class InMemoryUnitOfWork:
    """All four stores over one InMemoryState with a shared undo journal."""

    def __init__(self, state: InMemoryState | None = None):
        self.state = state or InMemoryState()
        self._journal = _Journal()
        self.listings = InMemoryListingStore(self.state, self._journal)
        self.friends = InMemoryFriendGraph(self.state)
        self.messages = InMemoryMessageStore(self.state, self._journal)
        self.transactions = InMemoryTransactionStore(self.state, self._journal)

    async def commit(self) -> None:
        self._journal.clear()

    async def rollback(self) -> None:
        self._journal.unwind()


class InMemoryTimeline:
    def __init__(self, state: InMemoryState):
        self._state = state

    async def publish(self, actor_id: UserId, kind: str, info: dict) -> None:
        self._state.timeline.append({"from": actor_id, "type": kind, "info": info})
