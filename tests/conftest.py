"""Root conftest — shared test configuration and record factories."""

import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

# Ensure tests never touch a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("LOG_FORMAT", "text")

from lendbridge.core.domain_types import (  # noqa: E402
    ListingId, ListingKind, MessageType, UserId,
)
from lendbridge.core.records import Listing  # noqa: E402
from lendbridge.infrastructure.memory_stores import InMemoryUnitOfWork  # noqa: E402
from lendbridge.services.negotiation import NegotiationService  # noqa: E402


@pytest.fixture
def make_listing():
    """Factory: make_listing(kind, owner, deadline=..., amount=...) -> Listing."""
    def _make(
        kind: ListingKind,
        owner: UserId,
        deadline: date = date(2027, 1, 1),
        amount: str = "1000",
    ) -> Listing:
        return Listing(
            id=ListingId(uuid4()),
            kind=kind,
            owner_id=owner,
            deadline=deadline,
            max_amount=Decimal(amount),
        )
    return _make


@pytest.fixture
def borrower() -> UserId:
    return UserId(uuid4())


@pytest.fixture
def lender() -> UserId:
    return UserId(uuid4())


@pytest.fixture
def memory_uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
async def deal(memory_uow, make_listing, borrower, lender):
    """Borrower and lender (friends) each with one committed listing."""
    borrow = make_listing(ListingKind.BORROW, borrower)
    lend = make_listing(ListingKind.LEND, lender, deadline=date(2027, 6, 1))
    await memory_uow.listings.create(borrow)
    await memory_uow.listings.create(lend)
    await memory_uow.commit()
    memory_uow.state.befriend(borrower, lender)
    return SimpleNamespace(
        uow=memory_uow,
        service=NegotiationService(memory_uow),
        borrower=borrower,
        lender=lender,
        borrow=borrow,
        lend=lend,
    )


@pytest.fixture
def find_message():
    """Factory: find_message(uow, user, type) -> newest matching Message in user's mailbox."""
    async def _find(uow, user_id: UserId, message_type: MessageType):
        matches = [
            m for m in await uow.messages.list_for_mailbox(user_id)
            if m.type == message_type
        ]
        assert matches, f"no {message_type.value} in mailbox"
        return matches[-1]
    return _find
