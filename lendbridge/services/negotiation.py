"""Negotiation Service — imperative shell around the pure protocol planners.

Invariants:
    - Read, validate, plan, THEN write: no store write happens before every
      precondition (ids, existence, recipient, stage, duplicates) has passed
    - The consumed-message CAS is the first write; losing it means nothing was written
    - Every write of one transition is committed together or rolled back together
    - No retries here: ConcurrencyConflictError goes straight back to the caller

Design Decisions:
    - Service holds no mutable state; everything lives behind the UnitOfWork
    - Timeline fan-out is NOT done here (caller's job after a successful result)
"""

import logging

from lendbridge.core.domain_types import (
    MAILBOX_TYPE_PREFIXES, ListingId, MessageId, MessageType, TransactionId, UserId,
)
from lendbridge.core.enforce_negotiation import (
    TransitionEffect, plan_accept_contract, plan_accept_request, plan_request,
    plan_send_contract,
)
from lendbridge.core.errors import (
    ConcurrencyConflictError, ErrorContext, InvalidInputError, LendBridgeError,
    ResourceNotFoundError, UnauthorizedError,
)
from lendbridge.core.records import Listing, Message, Transaction
from lendbridge.core.repository_protocols import UnitOfWork
from lendbridge.core.validate_input import first_error, validate_identifier

logger = logging.getLogger(__name__)


def require_ids(**raw: object) -> dict:
    """Validate every identifier; raise InvalidInputError for the first bad one."""
    results = [validate_identifier(value, name) for name, value in raw.items()]
    failed = first_error(*results)
    if failed:
        raise InvalidInputError(failed.error, failed.field)
    return {r.field: r.value for r in results}


class NegotiationService:
    """request -> accept_request -> send_contract -> accept_contract."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # ─── Protocol operations ─────────────────────────────────────

    async def request(
        self, actor_id: object, borrow_id: object, lend_id: object,
    ) -> TransactionId:
        ids = require_ids(actor_id=actor_id, borrow_id=borrow_id, lend_id=lend_id)
        actor = UserId(ids["actor_id"])
        borrow = await self._listing_or_404(ListingId(ids["borrow_id"]))
        lend = await self._listing_or_404(ListingId(ids["lend_id"]))
        effect = self._plan("request", actor, plan_request, actor, borrow, lend)
        await self._apply(effect, actor)
        return effect.transaction_id

    async def accept_request(self, actor_id: object, message_id: object) -> TransactionId:
        actor, message = await self._presented_message(actor_id, message_id)
        effect = self._plan(
            "accept_request", actor, plan_accept_request, actor, message,
        )
        await self._apply(effect, actor)
        return effect.transaction_id

    async def send_contract(self, actor_id: object, message_id: object) -> TransactionId:
        actor, message = await self._presented_message(actor_id, message_id)
        already_sent = (
            message.transaction_id is not None
            and await self.uow.messages.exists_where(
                MessageType.CONTRACT_SENT, message.transaction_id,
            )
        )
        effect = self._plan(
            "send_contract", actor, plan_send_contract, actor, message, already_sent,
        )
        await self._apply(effect, actor)
        return effect.transaction_id

    async def accept_contract(self, actor_id: object, message_id: object) -> TransactionId:
        actor, message = await self._presented_message(actor_id, message_id)
        effect = self._plan(
            "accept_contract", actor, plan_accept_contract, actor, message,
        )
        await self._apply(effect, actor)
        return effect.transaction_id

    # ─── Reads ───────────────────────────────────────────────────

    async def related_messages(
        self, actor_id: object,
    ) -> list[tuple[Message, Transaction | None]]:
        """Actor's negotiation mailbox, each message paired with its transaction."""
        actor = UserId(require_ids(actor_id=actor_id)["actor_id"])
        messages = await self.uow.messages.list_for_mailbox(actor)
        related = []
        for message in messages:
            if not message.type.value.startswith(MAILBOX_TYPE_PREFIXES):
                continue
            transaction = None
            if message.transaction_id is not None:
                transaction = await self.uow.transactions.get(message.transaction_id)
            related.append((message, transaction))
        return related

    async def get_transaction(
        self, actor_id: object, transaction_id: object,
    ) -> Transaction:
        """Transaction visible to its two parties only."""
        ids = require_ids(actor_id=actor_id, transaction_id=transaction_id)
        actor = UserId(ids["actor_id"])
        transaction = await self.uow.transactions.get(TransactionId(ids["transaction_id"]))
        if transaction is None:
            raise ResourceNotFoundError("Transaction", str(ids["transaction_id"]))
        lend = await self.uow.listings.get(transaction.lend_id)
        parties = {transaction.initiator_id, lend.owner_id if lend else None}
        if actor not in parties:
            raise UnauthorizedError(
                "Only the borrower and lender can view this transaction",
                ErrorContext(actor_id=str(actor), transaction_id=str(transaction.id)),
            )
        return transaction

    # ─── Helpers ─────────────────────────────────────────────────

    async def _listing_or_404(self, listing_id: ListingId) -> Listing:
        listing = await self.uow.listings.get(listing_id)
        if listing is None:
            raise ResourceNotFoundError("Listing", str(listing_id))
        return listing

    async def _presented_message(
        self, actor_id: object, message_id: object,
    ) -> tuple[UserId, Message]:
        ids = require_ids(actor_id=actor_id, message_id=message_id)
        message = await self.uow.messages.get(MessageId(ids["message_id"]))
        if message is None:
            raise ResourceNotFoundError("Message", str(ids["message_id"]))
        return UserId(ids["actor_id"]), message

    def _plan(self, operation: str, actor: UserId, planner, *args) -> TransitionEffect:
        try:
            return planner(*args)
        except LendBridgeError as e:
            logger.warning(
                f"{operation} rejected: {e.message}",
                extra={
                    "operation": operation, "error_code": e.code,
                    "actor_id": str(actor), "message_id": e.context.message_id,
                },
            )
            raise

    async def _apply(self, effect: TransitionEffect, actor: UserId) -> None:
        """Apply one transition atomically: CAS first, creates, status CAS, commit."""
        ctx = ErrorContext(actor_id=str(actor), transaction_id=str(effect.transaction_id))
        try:
            if effect.consumed:
                won = await self.uow.messages.compare_and_set_type(
                    effect.consumed.message_id,
                    effect.consumed.expected, effect.consumed.new,
                )
                if not won:
                    ctx.message_id = str(effect.consumed.message_id)
                    raise ConcurrencyConflictError(
                        "Message", effect.consumed.expected.value, ctx,
                    )
            if effect.new_transaction:
                await self.uow.transactions.create(effect.new_transaction)
            for message in effect.new_messages:
                await self.uow.messages.create(message)
            if effect.status_change:
                won = await self.uow.transactions.compare_and_set_status(
                    effect.status_change.transaction_id,
                    effect.status_change.expected, effect.status_change.new,
                )
                if not won:
                    raise ConcurrencyConflictError(
                        "Transaction", effect.status_change.expected.value, ctx,
                    )
            await self.uow.commit()
        except ConcurrencyConflictError as e:
            await self.uow.rollback()
            logger.warning(
                f"{effect.operation} lost a race: {e.message}",
                extra={
                    "operation": effect.operation, "error_code": e.code,
                    "actor_id": str(actor), "transaction_id": str(effect.transaction_id),
                },
            )
            raise
        except Exception:
            await self.uow.rollback()
            raise
        logger.info(
            f"{effect.operation} committed",
            extra={
                "operation": effect.operation,
                "actor_id": str(actor),
                "transaction_id": str(effect.transaction_id),
            },
        )
