import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from feedsync.exceptions import (
    AuthenticationRequired,
    NotFoundError,
    PermissionDenied,
    TransientNetworkError,
    ValidationError,
    classify_error,
    is_permission_denied,
)

RLS_MESSAGE = 'new row violates row-level security policy for table "likes"'

def test_row_level_security_message_is_permission_denied():
    error = classify_error(IntegrityError("INSERT INTO likes ...", {}, Exception(RLS_MESSAGE)))
    assert isinstance(error, PermissionDenied)
    assert error.status_code == 403

def test_marker_match_is_case_insensitive():
    assert is_permission_denied(RLS_MESSAGE.upper())
    assert not is_permission_denied("duplicate key value violates unique constraint")
    assert not is_permission_denied(None)

def test_custom_marker():
    assert is_permission_denied("policy check failed", marker="policy check")
    error = classify_error(RuntimeError(RLS_MESSAGE), marker="policy check")
    assert isinstance(error, TransientNetworkError)

@pytest.mark.parametrize("exc", [
    OperationalError("SELECT 1", {}, Exception("could not connect to server")),
    ConnectionResetError("connection reset by peer"),
    TimeoutError(),
])
def test_other_failures_are_transient(exc):
    error = classify_error(exc)
    assert isinstance(error, TransientNetworkError)
    assert error.status_code == 503
    assert error.message

def test_classified_errors_pass_through():
    original = NotFoundError("No such post")
    assert classify_error(original) is original

def test_error_defaults():
    assert ValidationError().message == "Invalid input"
    assert ValidationError("Too short", field="username").field == "username"
    assert AuthenticationRequired().status_code == 401
    assert isinstance(AuthenticationRequired(), PermissionDenied)

@pytest.mark.parametrize("message", [
    "UNIQUE constraint failed: profiles.username",
    'duplicate key value violates unique constraint "profiles_username_key"',
])
def test_unique_violation_is_validation_error(message):
    error = classify_error(IntegrityError("UPDATE profiles ...", {}, Exception(message)))
    assert isinstance(error, ValidationError)
    assert error.status_code == 422
