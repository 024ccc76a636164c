"""Tests for admin authorization, login auditing and role lookup"""
import pytest

from docrequest.domain.errors import (
    IdentityServiceUnavailableError,
    NotAuthorizedError,
    NotFoundError,
    PolicyNotConfiguredError,
    RateLimitError,
    SchemaError,
)
from docrequest.services.admin_auth_service import normalize_admin_error

from tests.helpers import ADMIN_ACTOR, ADMIN_EMAIL, ADMIN_TOKEN, audit_records


class TestNormalizeAdminError:
    def test_pass_through(self):
        denied = NotAuthorizedError("ALLOWLIST_DENIED")
        limited = RateLimitError("slow down", retry_after_seconds=60)
        policy = PolicyNotConfiguredError("no policy")
        assert normalize_admin_error(denied) is denied
        assert normalize_admin_error(limited) is limited
        assert normalize_admin_error(policy) is policy

    def test_not_found_gets_a_fixed_message(self):
        error = normalize_admin_error(NotFoundError("row 7 missing"))
        assert isinstance(error, NotFoundError)
        assert error.message == "Request not found"

    def test_other_domain_errors_become_not_authorized(self):
        error = normalize_admin_error(IdentityServiceUnavailableError("down"))
        assert isinstance(error, NotAuthorizedError)
        assert error.reason_code == "GOOGLE_VERIFY_UNAVAILABLE"
        assert error.http_status == 403

    def test_unknown_exceptions_become_not_authorized(self):
        error = normalize_admin_error(KeyError("boom"))
        assert isinstance(error, NotAuthorizedError)
        assert error.reason_code == "INTERNAL_ERROR"


class TestVerifyAdminContext:
    def test_authorized_admin(self, admin_container):
        context = admin_container.admin_auth.verify_admin_context(ADMIN_ACTOR, ADMIN_TOKEN, "admin_me")
        assert context.email == ADMIN_EMAIL
        assert context.role == "admin"
        assert context.from_cache is False

    @pytest.mark.parametrize("actor,token", [("", ADMIN_TOKEN), (ADMIN_ACTOR, ""), ("  ", "  ")])
    def test_missing_inputs(self, admin_container, actor, token):
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.verify_admin_context(actor, token, "admin_me")
        assert exc_info.value.reason_code == "MISSING_ADMIN_AUTH"

    def test_expired_token_stops_before_allow_list(self, admin_container, identity, clock, monkeypatch):
        identity.register("expired", email=ADMIN_EMAIL, email_verified="true", exp=int(clock()) - 5)

        def fail_lookup(owner_id):
            raise AssertionError("allow-list must not be consulted")

        monkeypatch.setattr(admin_container.admins, "get_entry", fail_lookup)
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.verify_admin_context(ADMIN_ACTOR, "expired", "admin_me")
        assert exc_info.value.reason_code == "TOKEN_EXPIRED"

    def test_unlisted_actor(self, admin_container):
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.verify_admin_context("U_STRANGER", ADMIN_TOKEN, "admin_me")
        assert exc_info.value.reason_code == "ALLOWLIST_DENIED"
        assert exc_info.value.details["verified_email"] == ADMIN_EMAIL

    def test_inactive_entry(self, admin_container):
        admin_container.admins.add_entry("U_OLD", ADMIN_EMAIL, is_active=False)
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.verify_admin_context("U_OLD", ADMIN_TOKEN, "admin_me")
        assert exc_info.value.reason_code == "ALLOWLIST_DENIED"

    def test_email_bound_to_another_account(self, admin_container):
        admin_container.admins.add_entry("U_OTHER", "someone.else@example.com")
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.verify_admin_context("U_OTHER", ADMIN_TOKEN, "admin_me")
        assert exc_info.value.reason_code == "ALLOWLIST_EMAIL_MISMATCH"

    def test_active_entry_wins_over_earlier_inactive_one(self, admin_container):
        admin_container.admins.add_entry("U_TWICE", ADMIN_EMAIL, is_active=False)
        admin_container.admins.add_entry("U_TWICE", ADMIN_EMAIL, role="Lead")
        context = admin_container.admin_auth.verify_admin_context("U_TWICE", ADMIN_TOKEN, "admin_me")
        assert context.role == "lead"

    def test_rate_limited_per_action(self, admin_container):
        for _ in range(20):
            admin_container.admin_auth.verify_admin_context(ADMIN_ACTOR, ADMIN_TOKEN, "admin_me")
        with pytest.raises(RateLimitError):
            admin_container.admin_auth.verify_admin_context(ADMIN_ACTOR, ADMIN_TOKEN, "admin_me")
        admin_container.admin_auth.verify_admin_context(ADMIN_ACTOR, ADMIN_TOKEN, "admin_list_requests")

    def test_schema_failure_surfaces(self, make_container, identity, clock, monkeypatch):
        container = make_container()
        identity.register(ADMIN_TOKEN, email=ADMIN_EMAIL, email_verified="true", exp=int(clock()) + 3600)

        def broken(table):
            raise RuntimeError("store offline")

        monkeypatch.setattr(container.store, "table_exists", broken)
        with pytest.raises(SchemaError):
            container.admin_auth.verify_admin_context(ADMIN_ACTOR, ADMIN_TOKEN, "admin_me")


class TestLogin:
    def test_success_is_audited(self, admin_container):
        result = admin_container.admin_auth.login(ADMIN_ACTOR, ADMIN_TOKEN, client_ts="2024-05-01T00:00:00Z")

        assert result == {
            "is_admin": True,
            "email": ADMIN_EMAIL,
            "name": "Office Admin",
            "picture": "https://example.com/a.png",
            "role": "admin",
        }
        record = audit_records(admin_container, "admin_login_success")[0]
        assert record["actor_id"] == ADMIN_ACTOR
        assert record["meta"]["error_code"] == "ADMIN_LOGIN_SUCCESS"
        assert record["meta"]["extra"]["email"] == ADMIN_EMAIL
        assert record["meta"]["extra"]["verify_mode"] == "tokeninfo"
        assert ADMIN_TOKEN not in record["meta_json"]

    def test_failure_is_audited_with_reason(self, admin_container):
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.login("U_STRANGER", ADMIN_TOKEN)
        assert exc_info.value.error_code == "NOT_AUTHORIZED"

        record = audit_records(admin_container, "admin_login_fail")[0]
        assert record["meta"]["error_code"] == "ALLOWLIST_DENIED"
        assert "client_ts" not in record["meta"].get("extra", {})

    def test_unknown_failure_is_normalized(self, admin_container, monkeypatch):
        def crash(token):
            raise ValueError("unexpected")

        monkeypatch.setattr(admin_container.verifier, "verify", crash)
        with pytest.raises(NotAuthorizedError) as exc_info:
            admin_container.admin_auth.login(ADMIN_ACTOR, ADMIN_TOKEN)
        assert exc_info.value.reason_code == "INTERNAL_ERROR"


class TestMeAndRole:
    def test_me(self, admin_container):
        assert admin_container.admin_auth.me(ADMIN_ACTOR, ADMIN_TOKEN) == {
            "actor_id": ADMIN_ACTOR,
            "is_admin": True,
            "role": "admin",
            "email": ADMIN_EMAIL,
        }

    def test_role_of(self, admin_container):
        assert admin_container.admin_auth.role_of(ADMIN_ACTOR) == {"role": "admin", "is_admin": True}
        assert admin_container.admin_auth.role_of("U_CUSTOMER") == {"role": "customer", "is_admin": False}
        assert admin_container.admin_auth.role_of("") == {"role": "unknown", "is_admin": False}
