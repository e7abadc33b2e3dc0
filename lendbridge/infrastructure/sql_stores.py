"""SQL Stores — SQLAlchemy async implementations of the boundary protocols.

Invariants:
    - All stores of one SqlUnitOfWork share one AsyncSession (one DB transaction)
    - compare_and_set_* are single conditional UPDATEs; rowcount decides the winner,
      so the expected value is checked at write time, not at an earlier read
    - Reads use populate_existing so a CAS earlier in the same session is visible
    - A duplicate BorrowContract-Sent insert surfaces as DuplicateSubmissionError
    - Mailbox order is (created_at, id): messages of one transition share created_at,
      so id breaks the tie and repeated reads return the same order

Design Decisions:
    - Rows translated to frozen records at the boundary: core never sees ORM objects
    - Conditional UPDATE over SELECT ... FOR UPDATE: optimistic, no lock held
      across the read-validate-write sequence
"""

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lendbridge.core.domain_types import (
    ListingId, ListingKind, MessageId, MessageType, TransactionId,
    TransactionStatus, UserId,
)
from lendbridge.core.errors import DuplicateSubmissionError
from lendbridge.core.records import Listing, Message, Transaction
from lendbridge.models.friendship import FriendshipModel
from lendbridge.models.listing import ListingModel
from lendbridge.models.loan_transaction import LoanTransactionModel
from lendbridge.models.message import MailboxEntryModel, MessageModel
from lendbridge.models.timeline_item import TimelineItemModel

logger = logging.getLogger(__name__)


# ─── Row <-> record ──────────────────────────────────────────────

def listing_from_row(row: ListingModel) -> Listing:
    return Listing(
        id=ListingId(row.id),
        kind=ListingKind(row.kind),
        owner_id=UserId(row.owner_id),
        deadline=row.deadline,
        max_amount=row.max_amount,
        max_rate=row.max_rate,
        city=row.city,
        project=row.project,
        reason=row.reason,
        risk_factor=row.risk_factor,
        created_at=row.created_at,
    )


def transaction_from_row(row: LoanTransactionModel) -> Transaction:
    return Transaction(
        id=TransactionId(row.id),
        initiator_id=UserId(row.initiator_id),
        borrow_id=ListingId(row.borrow_id),
        lend_id=ListingId(row.lend_id),
        status=TransactionStatus(row.status),
        created_at=row.created_at,
    )


def message_from_row(row: MessageModel) -> Message:
    deliveries = sorted(row.deliveries, key=lambda d: d.position)
    return Message(
        id=MessageId(row.id),
        type=MessageType(row.type),
        to_id=UserId(row.to_id) if row.to_id else None,
        from_id=UserId(row.from_id) if row.from_id else None,
        transaction_id=TransactionId(row.transaction_id) if row.transaction_id else None,
        listing_id=ListingId(row.listing_id) if row.listing_id else None,
        mailbox_ids=tuple(UserId(d.user_id) for d in deliveries),
        created_at=row.created_at,
    )


# ─── Stores ──────────────────────────────────────────────────────

class SqlListingStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, listing_id: ListingId) -> Listing | None:
        row = await self.db.get(ListingModel, listing_id)
        return listing_from_row(row) if row else None

    async def create(self, listing: Listing) -> ListingId:
        self.db.add(ListingModel(
            id=listing.id,
            kind=listing.kind.value,
            owner_id=listing.owner_id,
            deadline=listing.deadline,
            max_amount=listing.max_amount,
            max_rate=listing.max_rate,
            city=listing.city,
            project=listing.project,
            reason=listing.reason,
            risk_factor=listing.risk_factor,
            created_at=listing.created_at,
        ))
        await self.db.flush()
        return listing.id

    async def list_by_owner(
        self, owner_id: UserId, kind: ListingKind | None = None,
    ) -> list[Listing]:
        query = (
            select(ListingModel)
            .where(ListingModel.owner_id == owner_id)
            .order_by(ListingModel.created_at)
        )
        if kind is not None:
            query = query.where(ListingModel.kind == kind.value)
        result = await self.db.execute(query)
        return [listing_from_row(row) for row in result.scalars().all()]

    async def lends_due_on_or_after(self, deadline: date) -> list[Listing]:
        result = await self.db.execute(
            select(ListingModel)
            .where(ListingModel.kind == ListingKind.LEND.value)
            .where(ListingModel.deadline >= deadline)
            .order_by(ListingModel.created_at)
        )
        return [listing_from_row(row) for row in result.scalars().all()]


class SqlFriendGraph:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def contains(self, user_id: UserId, candidate_id: UserId) -> bool:
        result = await self.db.execute(
            select(FriendshipModel.friend_id)
            .where(FriendshipModel.user_id == user_id)
            .where(FriendshipModel.friend_id == candidate_id)
        )
        return result.scalar_one_or_none() is not None


class SqlMessageStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, message: Message) -> MessageId:
        row = MessageModel(
            id=message.id,
            type=message.type.value,
            from_id=message.from_id,
            to_id=message.to_id,
            transaction_id=message.transaction_id,
            listing_id=message.listing_id,
            created_at=message.created_at,
        )
        row.deliveries = [
            MailboxEntryModel(user_id=user_id, position=position)
            for position, user_id in enumerate(message.mailbox_ids)
        ]
        self.db.add(row)
        try:
            await self.db.flush()
        except IntegrityError:
            if message.type != MessageType.CONTRACT_SENT:
                raise
            logger.warning(
                f"Duplicate contract insert rejected for {message.transaction_id}",
                extra={"transaction_id": str(message.transaction_id)},
            )
            raise DuplicateSubmissionError(str(message.transaction_id))
        return message.id

    async def get(self, message_id: MessageId) -> Message | None:
        result = await self.db.execute(
            select(MessageModel)
            .where(MessageModel.id == message_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return message_from_row(row) if row else None

    async def compare_and_set_type(
        self, message_id: MessageId, expected: MessageType, new: MessageType,
    ) -> bool:
        result = await self.db.execute(
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .where(MessageModel.type == expected.value)
            .values(type=new.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def exists_where(
        self, message_type: MessageType, transaction_id: TransactionId,
    ) -> bool:
        result = await self.db.execute(
            select(MessageModel.id)
            .where(MessageModel.type == message_type.value)
            .where(MessageModel.transaction_id == transaction_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_for_mailbox(self, user_id: UserId) -> list[Message]:
        result = await self.db.execute(
            select(MessageModel)
            .join(MailboxEntryModel, MailboxEntryModel.message_id == MessageModel.id)
            .where(MailboxEntryModel.user_id == user_id)
            .order_by(MessageModel.created_at, MessageModel.id)
            .execution_options(populate_existing=True)
        )
        return [message_from_row(row) for row in result.scalars().all()]


class SqlTransactionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, transaction: Transaction) -> TransactionId:
        self.db.add(LoanTransactionModel(
            id=transaction.id,
            initiator_id=transaction.initiator_id,
            borrow_id=transaction.borrow_id,
            lend_id=transaction.lend_id,
            status=transaction.status.value,
            created_at=transaction.created_at,
        ))
        await self.db.flush()
        return transaction.id

    async def get(self, transaction_id: TransactionId) -> Transaction | None:
        result = await self.db.execute(
            select(LoanTransactionModel)
            .where(LoanTransactionModel.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return transaction_from_row(row) if row else None

    async def compare_and_set_status(
        self,
        transaction_id: TransactionId,
        expected: TransactionStatus,
        new: TransactionStatus,
    ) -> bool:
        result = await self.db.execute(
            update(LoanTransactionModel)
            .where(LoanTransactionModel.id == transaction_id)
            .where(LoanTransactionModel.status == expected.value)
            .values(status=new.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SqlUnitOfWork:
    """All four stores bound to one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.listings = SqlListingStore(db)
        self.friends = SqlFriendGraph(db)
        self.messages = SqlMessageStore(db)
        self.transactions = SqlTransactionStore(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()


class SqlTimeline:
    """Writes feed entries in its own session (runs after the response)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def publish(self, actor_id: UserId, kind: str, info: dict) -> None:
        self.db.add(TimelineItemModel(from_id=actor_id, type=kind, info=info))
        await self.db.commit()
