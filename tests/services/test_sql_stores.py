"""SQL Stores — SqlUnitOfWork against in-memory SQLite.

Tests cover:
    - conditional UPDATE compare-and-set: winner gets True, stale expected gets False
    - partial unique index turns a second contract insert into DuplicateSubmissionError
    - shared completion record lands in both mailboxes
    - messages sharing a timestamp list in a stable (created_at, id) order
    - rollback discards every write of an uncommitted transition
    - full protocol run through NegotiationService on the SQL stores
"""

from datetime import date
from uuid import uuid4

import pytest

from lendbridge.core.domain_types import (
    ListingKind, MessageId, MessageType, TransactionId, TransactionStatus, UserId,
)
from lendbridge.core.errors import DuplicateSubmissionError
from lendbridge.core.records import Message, Transaction, utcnow
from lendbridge.infrastructure.sql_stores import SqlUnitOfWork
from lendbridge.services.negotiation import NegotiationService
from lendbridge.services.recommendation import RecommendationService


@pytest.fixture
def uow(test_db):
    return SqlUnitOfWork(test_db)


@pytest.fixture
async def sql_deal(uow, make_listing, borrower, lender, befriend):
    borrow = make_listing(ListingKind.BORROW, borrower)
    lend = make_listing(ListingKind.LEND, lender, deadline=date(2027, 6, 1))
    await uow.listings.create(borrow)
    await uow.listings.create(lend)
    await uow.commit()
    await befriend(borrower, lender)
    return borrow, lend


async def _open_transaction(uow, borrow, lend) -> Transaction:
    txn = Transaction(
        id=TransactionId(uuid4()),
        initiator_id=borrow.owner_id,
        borrow_id=borrow.id,
        lend_id=lend.id,
    )
    await uow.transactions.create(txn)
    await uow.commit()
    return txn


def _message(message_type, to_id, txn_id, **kwargs) -> Message:
    return Message(
        id=MessageId(uuid4()), type=message_type, to_id=to_id,
        transaction_id=txn_id, **kwargs,
    )


async def test_status_compare_and_set(uow, sql_deal):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)

    assert await uow.transactions.compare_and_set_status(
        txn.id, TransactionStatus.REQUESTED, TransactionStatus.PROGRESSING,
    )
    assert not await uow.transactions.compare_and_set_status(
        txn.id, TransactionStatus.REQUESTED, TransactionStatus.PROGRESSING,
    )
    await uow.commit()

    assert (await uow.transactions.get(txn.id)).status == TransactionStatus.PROGRESSING


async def test_message_compare_and_set_is_visible_to_reads(uow, sql_deal, lender):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)
    message = _message(MessageType.REQUEST_RECEIVED, lender, txn.id)
    await uow.messages.create(message)
    await uow.commit()
    await uow.messages.get(message.id)

    won = await uow.messages.compare_and_set_type(
        message.id, MessageType.REQUEST_RECEIVED, MessageType.REQUEST_RECEIVED_CONSUMED,
    )

    assert won
    assert (await uow.messages.get(message.id)).type == (
        MessageType.REQUEST_RECEIVED_CONSUMED
    )
    assert not await uow.messages.compare_and_set_type(
        message.id, MessageType.REQUEST_RECEIVED, MessageType.REQUEST_RECEIVED_CONSUMED,
    )


async def test_second_contract_sent_violates_unique_index(uow, sql_deal, borrower):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)
    await uow.messages.create(_message(MessageType.CONTRACT_SENT, borrower, txn.id))
    await uow.commit()

    with pytest.raises(DuplicateSubmissionError):
        await uow.messages.create(_message(MessageType.CONTRACT_SENT, borrower, txn.id))
    await uow.rollback()

    assert await uow.messages.exists_where(MessageType.CONTRACT_SENT, txn.id)


async def test_shared_record_delivered_to_both_mailboxes(uow, sql_deal, borrower, lender):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)
    completed = _message(
        MessageType.COMPLETED, None, txn.id, mailbox_ids=(borrower, lender),
    )
    await uow.messages.create(completed)
    await uow.commit()

    for user in (borrower, lender):
        mailbox = await uow.messages.list_for_mailbox(user)
        assert [m.id for m in mailbox] == [completed.id]
    stored = await uow.messages.get(completed.id)
    assert stored.mailbox_ids == (borrower, lender)
    assert stored.to_id is None


async def test_same_instant_messages_list_in_id_order(uow, sql_deal, borrower):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)
    now = utcnow()
    accepted = _message(
        MessageType.CONTRACT_ACCEPTED, borrower, txn.id, created_at=now,
    )
    completed = _message(
        MessageType.COMPLETED, None, txn.id, mailbox_ids=(borrower,), created_at=now,
    )
    await uow.messages.create(accepted)
    await uow.messages.create(completed)
    await uow.commit()

    first = [m.id for m in await uow.messages.list_for_mailbox(borrower)]
    second = [m.id for m in await uow.messages.list_for_mailbox(borrower)]

    assert first == sorted([accepted.id, completed.id])
    assert first == second


async def test_rollback_discards_uncommitted_writes(uow, sql_deal, lender):
    borrow, lend = sql_deal
    txn = await _open_transaction(uow, borrow, lend)

    await uow.messages.create(_message(MessageType.REQUEST_RECEIVED, lender, txn.id))
    await uow.transactions.compare_and_set_status(
        txn.id, TransactionStatus.REQUESTED, TransactionStatus.PROGRESSING,
    )
    await uow.rollback()

    assert await uow.messages.list_for_mailbox(lender) == []
    assert (await uow.transactions.get(txn.id)).status == TransactionStatus.REQUESTED


async def test_friend_graph_is_directed_rows(uow, sql_deal, borrower, lender):
    assert await uow.friends.contains(borrower, lender)
    assert await uow.friends.contains(lender, borrower)
    assert not await uow.friends.contains(borrower, UserId(uuid4()))


async def test_protocol_completes_on_sql_stores(uow, sql_deal, borrower, lender, find_message):
    borrow, lend = sql_deal
    service = NegotiationService(uow)

    txn_id = await service.request(borrower, borrow.id, lend.id)
    received = await find_message(uow, lender, MessageType.REQUEST_RECEIVED)
    await service.accept_request(lender, received.id)
    accepted = await find_message(uow, borrower, MessageType.REQUEST_ACCEPTED)
    await service.send_contract(borrower, accepted.id)
    with pytest.raises(DuplicateSubmissionError):
        await service.send_contract(borrower, accepted.id)
    contract = await find_message(uow, lender, MessageType.CONTRACT_RECEIVED)
    await service.accept_contract(lender, contract.id)

    assert (await uow.transactions.get(txn_id)).status == TransactionStatus.COMPLETED
    shared = await find_message(uow, borrower, MessageType.COMPLETED)
    assert shared.id == (await find_message(uow, lender, MessageType.COMPLETED)).id


async def test_recommendations_on_sql_stores(uow, sql_deal, borrower, make_listing):
    borrow, lend = sql_deal
    stranger_offer = make_listing(
        ListingKind.LEND, UserId(uuid4()), deadline=date(2027, 6, 1), amount="5000",
    )
    await uow.listings.create(stranger_offer)
    await uow.commit()

    picks = await RecommendationService(uow).recommend(borrow.id, borrower)

    assert [p.id for p in picks] == [lend.id]
