"""Negotiation Protocol Enforcement — pure state transitions for a loan deal.

Invariants:
    - All planners are PURE: no IO, no async, no DB. They return a TransitionEffect
      descriptor or raise a LendBridgeError; the shell applies the effect
    - The stage is read from the presented message's type, never from the transaction
    - Recipient check (actor in message.mailbox_ids) runs before the stage check
    - A consumed message is only ever rewritten from its live type to type + "&Accepted"
    - Transaction status only moves Requested -> Progressing -> Completed

Design Decisions:
    - Fixed-shape effect (0-1 new transaction, 0-2 new messages, 0-1 consumption,
      0-1 status change) over ad hoc parallel writes: the shell applies every
      transition with the same code path
    - Duplicate-contract lookup is IO, so the shell passes its result in as a flag
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from lendbridge.core.domain_types import (
    ListingKind, MessageId, MessageType, TransactionId, TransactionStatus, UserId,
)
from lendbridge.core.errors import (
    DuplicateSubmissionError, ErrorContext, InvalidInputError, InvalidStateError,
    SelfRequestRejectedError, UnauthorizedError,
)
from lendbridge.core.records import Listing, Message, Transaction, utcnow


MAX_NEW_MESSAGES: int = 2

NEXT_STATUS: dict[TransactionStatus, TransactionStatus] = {
    TransactionStatus.REQUESTED: TransactionStatus.PROGRESSING,
    TransactionStatus.PROGRESSING: TransactionStatus.COMPLETED,
}


@dataclass(frozen=True)
class MessageConsumption:
    """Compare-and-set on the presented message's type."""
    message_id: MessageId
    expected: MessageType
    new: MessageType


@dataclass(frozen=True)
class StatusChange:
    """Compare-and-set on the transaction's status."""
    transaction_id: TransactionId
    expected: TransactionStatus
    new: TransactionStatus

    def __post_init__(self):
        if NEXT_STATUS.get(self.expected) != self.new:
            raise ValueError(
                f"illegal status transition {self.expected.value} -> {self.new.value}",
            )


@dataclass(frozen=True)
class TransitionEffect:
    """Everything one protocol step writes. Applied as a single unit by the shell."""
    operation: str
    transaction_id: TransactionId
    new_messages: tuple[Message, ...] = ()
    consumed: MessageConsumption | None = None
    status_change: StatusChange | None = None
    new_transaction: Transaction | None = None

    def __post_init__(self):
        if len(self.new_messages) > MAX_NEW_MESSAGES:
            raise ValueError(
                f"a transition emits at most {MAX_NEW_MESSAGES} messages",
            )


# ─── Request ─────────────────────────────────────────────────────

def plan_request(
    actor_id: UserId, borrow: Listing, lend: Listing, now: datetime | None = None,
) -> TransitionEffect:
    """Borrower asks a lender for a loan: opens a Requested transaction."""
    ctx = ErrorContext(actor_id=str(actor_id))
    if borrow.kind != ListingKind.BORROW:
        raise InvalidInputError(
            f"listing '{borrow.id}' is not a borrow listing", "borrow_id", ctx,
        )
    if lend.kind != ListingKind.LEND:
        raise InvalidInputError(
            f"listing '{lend.id}' is not a lend listing", "lend_id", ctx,
        )
    if borrow.owner_id == lend.owner_id:
        raise SelfRequestRejectedError(ctx)
    if borrow.owner_id != actor_id:
        raise UnauthorizedError("Only the borrow listing owner can request a loan", ctx)

    now = now or utcnow()
    transaction = Transaction(
        id=TransactionId(uuid4()),
        initiator_id=actor_id,
        borrow_id=borrow.id,
        lend_id=lend.id,
        status=TransactionStatus.REQUESTED,
        created_at=now,
    )
    return TransitionEffect(
        operation="request",
        transaction_id=transaction.id,
        new_transaction=transaction,
        new_messages=(
            _message(MessageType.REQUEST_RECEIVED, lend.owner_id, actor_id, transaction.id, now),
            _message(MessageType.REQUEST_SENT, actor_id, None, transaction.id, now),
        ),
    )


# ─── Accept request ──────────────────────────────────────────────

def plan_accept_request(
    actor_id: UserId, message: Message, now: datetime | None = None,
) -> TransitionEffect:
    """Lender accepts a request: Requested -> Progressing."""
    _check_stage(actor_id, message, MessageType.REQUEST_RECEIVED)
    now = now or utcnow()
    return TransitionEffect(
        operation="accept_request",
        transaction_id=message.transaction_id,
        consumed=_consume(message),
        new_messages=(
            _message(
                MessageType.REQUEST_ACCEPTED, message.from_id, actor_id,
                message.transaction_id, now,
            ),
        ),
        status_change=StatusChange(
            message.transaction_id,
            TransactionStatus.REQUESTED, TransactionStatus.PROGRESSING,
        ),
    )


# ─── Send contract ───────────────────────────────────────────────

def plan_send_contract(
    actor_id: UserId,
    message: Message,
    contract_already_sent: bool,
    now: datetime | None = None,
) -> TransitionEffect:
    """Borrower sends the contract to the lender. Status stays Progressing."""
    _check_stage(actor_id, message, MessageType.REQUEST_ACCEPTED)
    if contract_already_sent:
        raise DuplicateSubmissionError(
            str(message.transaction_id), _context(actor_id, message),
        )
    now = now or utcnow()
    return TransitionEffect(
        operation="send_contract",
        transaction_id=message.transaction_id,
        new_messages=(
            _message(
                MessageType.CONTRACT_RECEIVED, message.from_id, actor_id,
                message.transaction_id, now,
            ),
            _message(MessageType.CONTRACT_SENT, actor_id, None, message.transaction_id, now),
        ),
    )


# ─── Accept contract ─────────────────────────────────────────────

def plan_accept_contract(
    actor_id: UserId, message: Message, now: datetime | None = None,
) -> TransitionEffect:
    """Lender signs the contract: Progressing -> Completed, completion broadcast."""
    _check_stage(actor_id, message, MessageType.CONTRACT_RECEIVED)
    now = now or utcnow()
    borrower_id = message.from_id
    completed = Message(
        id=MessageId(uuid4()),
        type=MessageType.COMPLETED,
        to_id=None,
        transaction_id=message.transaction_id,
        mailbox_ids=(borrower_id, actor_id),
        created_at=now,
    )
    return TransitionEffect(
        operation="accept_contract",
        transaction_id=message.transaction_id,
        consumed=_consume(message),
        new_messages=(
            _message(
                MessageType.CONTRACT_ACCEPTED, borrower_id, actor_id,
                message.transaction_id, now,
            ),
            completed,
        ),
        status_change=StatusChange(
            message.transaction_id,
            TransactionStatus.PROGRESSING, TransactionStatus.COMPLETED,
        ),
    )


# ─── Helpers ─────────────────────────────────────────────────────

def _check_stage(actor_id: UserId, message: Message, required: MessageType) -> None:
    ctx = _context(actor_id, message)
    if actor_id not in message.mailbox_ids:
        raise UnauthorizedError("Message is not in the acting user's mailbox", ctx)
    if message.type != required or message.transaction_id is None:
        raise InvalidStateError(required.value, message.type.value, ctx)


def _consume(message: Message) -> MessageConsumption:
    return MessageConsumption(message.id, message.type, message.type.consumed())


def _message(
    msg_type: MessageType,
    to_id: UserId,
    from_id: UserId | None,
    transaction_id: TransactionId,
    now: datetime,
) -> Message:
    return Message(
        id=MessageId(uuid4()),
        type=msg_type,
        to_id=to_id,
        from_id=from_id,
        transaction_id=transaction_id,
        created_at=now,
    )


def _context(actor_id: UserId, message: Message) -> ErrorContext:
    return ErrorContext(
        actor_id=str(actor_id),
        message_id=str(message.id),
        transaction_id=str(message.transaction_id) if message.transaction_id else None,
    )
