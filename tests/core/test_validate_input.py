"""Input Validation — identifier checks return typed results, never raise."""

from uuid import uuid4

from lendbridge.core.validate_input import first_error, validate_identifier


def test_accepts_uuid_instance():
    uid = uuid4()
    result = validate_identifier(uid, "message_id")
    assert result.ok
    assert result.value == uid


def test_accepts_uuid_string_with_whitespace():
    uid = uuid4()
    result = validate_identifier(f"  {uid} ", "message_id")
    assert result.ok
    assert result.value == uid


def test_missing_identifier():
    for raw in (None, ""):
        result = validate_identifier(raw, "borrow_id")
        assert not result.ok
        assert result.error == "borrow_id required"
        assert result.value is None


def test_malformed_identifier():
    for raw in ("not-an-id", 42, ["x"]):
        result = validate_identifier(raw, "lend_id")
        assert not result.ok
        assert result.error == "invalid lend_id"


def test_first_error_returns_first_failure_in_order():
    good = validate_identifier(uuid4(), "actor_id")
    bad_a = validate_identifier("x", "borrow_id")
    bad_b = validate_identifier(None, "lend_id")
    assert first_error(good, bad_a, bad_b) is bad_a
    assert first_error(good) is None
