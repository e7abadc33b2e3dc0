"""HTTP Surface — full negotiation over the API, error envelopes, timeline fan-out."""

import logging
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select

from lendbridge.models.timeline_item import TimelineItemModel


def _as(user_id) -> dict:
    return {"X-User-Id": str(user_id)}


async def _publish(client, user_id, kind: str, deadline: str, amount: str = "1000") -> dict:
    resp = await client.post(
        f"/api/v1/listings/{kind}",
        json={"max_amount": amount, "loan_deadline": deadline},
        headers=_as(user_id),
    )
    assert resp.status_code == 201
    return resp.json()


async def _mailbox_message(client, user_id, message_type: str) -> dict:
    resp = await client.get("/api/v1/messages", headers=_as(user_id))
    assert resp.status_code == 200
    matches = [m for m in resp.json() if m["type"] == message_type]
    assert matches, f"no {message_type} for {user_id}"
    return matches[-1]


async def test_missing_actor_header_is_401(client):
    resp = await client.get("/api/v1/messages")
    assert resp.status_code == 401


async def test_full_negotiation_over_http(client, test_db, borrower, lender, caplog):
    caplog.set_level(logging.INFO, logger="lendbridge.api.routes")
    borrow = await _publish(client, borrower, "borrow", "2027-01-01")
    lend = await _publish(client, lender, "lend", "2027-06-01")

    resp = await client.post(
        "/api/v1/negotiations/request",
        json={"borrow_id": borrow["id"], "lend_id": lend["id"]},
        headers=_as(borrower),
    )
    assert resp.status_code == 201
    txn_id = resp.json()["transaction_id"]

    received = await _mailbox_message(client, lender, "BorrowRequest-Received")
    assert received["transaction"]["status"] == "Requested"
    resp = await client.post(
        "/api/v1/negotiations/accept-request",
        json={"message_id": received["id"]}, headers=_as(lender),
    )
    assert resp.status_code == 200

    accepted = await _mailbox_message(client, borrower, "BorrowRequest-Accepted")
    resp = await client.post(
        "/api/v1/negotiations/send-contract",
        json={"message_id": accepted["id"]}, headers=_as(borrower),
    )
    assert resp.status_code == 200

    contract = await _mailbox_message(client, lender, "BorrowContract-Received")
    resp = await client.post(
        "/api/v1/negotiations/accept-contract",
        json={"message_id": contract["id"]}, headers=_as(lender),
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "transaction_id": txn_id}

    resp = await client.get(f"/api/v1/transactions/{txn_id}", headers=_as(borrower))
    assert resp.json()["status"] == "Completed"
    done = await _mailbox_message(client, borrower, "Borrow-Completed")
    assert done["id"] == (await _mailbox_message(client, lender, "Borrow-Completed"))["id"]

    result = await test_db.execute(select(TimelineItemModel.type))
    assert sorted(result.scalars().all()) == ["Borrow", "Loan-Completed"]
    scheduled = [
        r.getMessage() for r in caplog.records
        if r.name.startswith("lendbridge.api.routes")
    ]
    assert scheduled == [
        "Borrow timeline post scheduled", "Loan-Completed timeline post scheduled",
    ]


async def test_double_accept_is_409_envelope(client, borrower, lender):
    borrow = await _publish(client, borrower, "borrow", "2027-01-01")
    lend = await _publish(client, lender, "lend", "2027-06-01")
    await client.post(
        "/api/v1/negotiations/request",
        json={"borrow_id": borrow["id"], "lend_id": lend["id"]},
        headers=_as(borrower),
    )
    received = await _mailbox_message(client, lender, "BorrowRequest-Received")
    body = {"message_id": received["id"]}
    first = await client.post(
        "/api/v1/negotiations/accept-request", json=body, headers=_as(lender),
    )

    second = await client.post(
        "/api/v1/negotiations/accept-request", json=body, headers=_as(lender),
    )

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "INVALID_STATE"


async def test_self_request_is_400(client, borrower):
    borrow = await _publish(client, borrower, "borrow", "2027-01-01")
    own_lend = await _publish(client, borrower, "lend", "2027-06-01")

    resp = await client.post(
        "/api/v1/negotiations/request",
        json={"borrow_id": borrow["id"], "lend_id": own_lend["id"]},
        headers=_as(borrower),
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "SELF_REQUEST_REJECTED"


async def test_unknown_message_is_404(client, lender):
    resp = await client.post(
        "/api/v1/negotiations/accept-contract",
        json={"message_id": str(uuid4())}, headers=_as(lender),
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_missing_message_id_is_400(client, lender):
    resp = await client.post(
        "/api/v1/negotiations/accept-request", json={}, headers=_as(lender),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_INPUT"


async def test_non_positive_amount_fails_validation(client, borrower):
    resp = await client.post(
        "/api/v1/listings/lend",
        json={"max_amount": "0", "loan_deadline": "2027-01-01"},
        headers=_as(borrower),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_recommendations_endpoint(client, befriend, borrower, lender):
    borrow = await _publish(client, borrower, "borrow", "2027-03-01")
    small = await _publish(client, lender, "lend", "2027-03-01", amount="100")
    large = await _publish(client, lender, "lend", "2027-04-01", amount="900")
    await _publish(client, lender, "lend", "2027-02-01", amount="5000")
    await befriend(borrower, lender)

    resp = await client.get(
        f"/api/v1/listings/{borrow['id']}/recommendations", headers=_as(borrower),
    )

    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [large["id"], small["id"]]
    assert Decimal(resp.json()[0]["max_amount"]) == Decimal("900")


async def test_my_listings_filtered_by_kind(client, borrower):
    await _publish(client, borrower, "borrow", "2027-03-01")
    lend = await _publish(client, borrower, "lend", "2027-03-01")

    resp = await client.get(
        "/api/v1/listings/mine", params={"kind": "lend"}, headers=_as(borrower),
    )

    assert [r["id"] for r in resp.json()] == [lend["id"]]
