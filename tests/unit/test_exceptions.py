"""Tests for exception codes and HTTP mapping."""

import pytest

from neo_authz.core.exceptions import (
    AuthenticationRequiredError,
    CacheBackendError,
    InvalidIdentifierError,
    InvalidRequirementError,
    NeoAuthzError,
    PermissionDeniedError,
    StoreError,
    StoreQueryError,
    StoreUnavailableError,
    create_error_response,
    get_http_status_code,
)


@pytest.mark.parametrize("exception,status", [
    (AuthenticationRequiredError(), 401),
    (PermissionDeniedError(["users.read"]), 403),
    (InvalidIdentifierError("a b", "column"), 400),
    (InvalidRequirementError("bad"), 500),
    (StoreUnavailableError(), 503),
    (StoreQueryError(), 500),
    (CacheBackendError(), 503),
    (NeoAuthzError("unmapped"), 500),
    (ValueError("not ours"), 500),
])
def test_http_status(exception, status):
    assert get_http_status_code(exception) == status


def test_subclass_uses_nearest_mapping():
    class ReplicaLagError(StoreUnavailableError):
        pass

    assert get_http_status_code(ReplicaLagError()) == 503


def test_store_errors_share_a_base():
    assert isinstance(StoreUnavailableError(), StoreError)
    assert isinstance(StoreQueryError(), StoreError)


def test_permission_denied_any_mode():
    error = PermissionDeniedError(["users.read", "users.list"], mode="any", missing_permissions=["users.read"])

    assert error.message == "Access denied. Required permission: users.read or users.list"
    assert "missing_permissions" not in error.details


def test_permission_denied_all_mode():
    error = PermissionDeniedError(["a.read", "b.read"], mode="all", missing_permissions=["b.read"])

    assert error.message == "Access denied. Required permission: a.read and b.read"
    assert error.details["missing_permissions"] == ["b.read"]


def test_error_response_hides_driver_detail():
    response = create_error_response(StoreUnavailableError(operation="fetch_user_role_names"))

    assert response == {
        "error": {
            "code": "STORE_UNAVAILABLE",
            "message": "Permission store unavailable",
            "details": {"operation": "fetch_user_role_names"},
            "type": "StoreUnavailableError",
        }
    }


def test_error_code_defaults_to_class_name():
    assert NeoAuthzError("x").error_code == "NeoAuthzError"
