"""Negotiation Routes — the four protocol steps plus mailbox and transaction reads.

Invariants:
    - Routes never decide legality: NegotiationService raises LendBridgeError,
      the global handler turns it into the error envelope
    - Timeline fan-out on completion happens only after a successful result
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from lendbridge.api.deps import get_actor_id, get_uow
from lendbridge.core.domain_types import TimelineKind, UserId
from lendbridge.infrastructure.sql_stores import SqlUnitOfWork
from lendbridge.schemas.negotiation import (
    ActionResponse, LoanRequest, MessageAction, MessageResponse, TransactionResponse,
)
from lendbridge.services.negotiation import NegotiationService
from lendbridge.services.timeline import publish_in_background

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["negotiation"])


@router.post(
    "/negotiations/request", response_model=ActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_loan(
    body: LoanRequest,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Borrower requests a loan against a Lend offer."""
    transaction_id = await NegotiationService(uow).request(
        actor_id, body.borrow_id, body.lend_id,
    )
    return ActionResponse(transaction_id=transaction_id)


@router.post("/negotiations/accept-request", response_model=ActionResponse)
async def accept_request(
    body: MessageAction,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Lender accepts a BorrowRequest-Received message."""
    transaction_id = await NegotiationService(uow).accept_request(
        actor_id, body.message_id,
    )
    return ActionResponse(transaction_id=transaction_id)


@router.post("/negotiations/send-contract", response_model=ActionResponse)
async def send_contract(
    body: MessageAction,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Borrower sends the contract after a BorrowRequest-Accepted message."""
    transaction_id = await NegotiationService(uow).send_contract(
        actor_id, body.message_id,
    )
    return ActionResponse(transaction_id=transaction_id)


@router.post("/negotiations/accept-contract", response_model=ActionResponse)
async def accept_contract(
    body: MessageAction,
    background_tasks: BackgroundTasks,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Lender accepts the contract; the deal completes."""
    transaction_id = await NegotiationService(uow).accept_contract(
        actor_id, body.message_id,
    )
    background_tasks.add_task(
        publish_in_background, actor_id,
        TimelineKind.LOAN_COMPLETED.value, {"transactionId": str(transaction_id)},
    )
    logger.info(
        "Loan-Completed timeline post scheduled",
        extra={"actor_id": str(actor_id), "transaction_id": str(transaction_id)},
    )
    return ActionResponse(transaction_id=transaction_id)


@router.get("/messages", response_model=list[MessageResponse])
async def related_messages(
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Actor's negotiation mailbox, oldest first."""
    related = await NegotiationService(uow).related_messages(actor_id)
    return [MessageResponse.from_record(m, t) for m, t in related]


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    actor_id: UserId = Depends(get_actor_id),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Transaction details, for its borrower and lender."""
    transaction = await NegotiationService(uow).get_transaction(actor_id, transaction_id)
    return TransactionResponse.from_record(transaction)
