"""
Audit recorder tests.

Verifies:
- Exactly one audit row per successful guarded call
- A failing audit write never changes the response
- PINs, passwords and other credentials never reach audit_logs
- Financial actions keep the canonical snapshot, enriched from packages
- The PIN-verified staff member is recorded as the actor
"""

import json

import pytest

from gymadmin.errors import StorageUnavailable
from gymadmin.models import AuditLog
from gymadmin.services import audit_service, credential_store
from gymadmin.services.audit_service import AuditOutcome


def outcome(**overrides):
    values = {
        "action": "CREATE_NOTE",
        "resource_type": "note",
        "user_id": "u-1",
        "user_email": "u1@gym.test",
        "status_code": 200,
        "method": "POST",
        "path": "/api/test/notes",
        "body": {"text": "hello"},
        "response_body": {"status": "success", "data": {"id": "note-1"}},
    }
    values.update(overrides)
    return AuditOutcome(**values)


class TestSanitizeRequestData:

    def test_credentials_removed_at_any_depth(self):
        body = {
            "pin": "1234",
            "profile": {"password": "hunter2", "national_id": "X123", "name": "Ada"},
            "contacts": [{"staffPin": "9999", "phone": "555"}],
            "Token": "abc",
        }

        stripped = audit_service.strip_credentials(body)

        assert stripped == {"profile": {"name": "Ada"}, "contacts": [{"phone": "555"}]}
        assert "1234" not in json.dumps(stripped)

    @pytest.mark.parametrize("key", [
        "newPassword", "confirm_password", "current-password", "passwd", "client_secret",
        "sessionToken", "refresh_token", "currentPin", "staff_pin", "PIN", "pin_hash", "apiKey",
    ])
    def test_password_like_keys_removed(self, key):
        assert audit_service.strip_credentials({key: "hunter2", "name": "Ada"}) == {"name": "Ada"}

    @pytest.mark.parametrize("key", ["staffId", "staff_id", "branchId", "spinClass", "package_id"])
    def test_ordinary_keys_kept(self, key):
        assert audit_service.strip_credentials({key: "x"}) == {key: "x"}

    def test_generic_action_keeps_only_key_summary(self):
        data = audit_service.sanitize_request_data({"pin": "1234", "name": "x", "password": "p"}, "CREATE_NOTE")

        assert data == {
            "operation_type": "CREATE_NOTE",
            "resource_count": 1,
            "has_sensitive_data": True,
            "data_keys": ["name"],
        }

    def test_list_body_counts_resources(self):
        data = audit_service.sanitize_request_data([{"a": 1}, {"a": 2}], "BULK_IMPORT")
        assert data["resource_count"] == 2
        assert data["data_keys"] == []

    def test_none_body(self):
        assert audit_service.sanitize_request_data(None, "CREATE_NOTE") is None

    def test_financial_synonyms_normalised(self, db_session):
        body = {
            "firstName": "Ada",
            "last_name": "Lovelace",
            "email": "ada@gym.test",
            "amountPaid": 120,
            "payment_method": "card",
            "packageType": "silver",
            "durationMonths": 3,
            "branchId": "B1",
            "staffId": "S1",
            "staffPin": "1234",
            "startDate": "2026-10-01",
            "expiryDate": "2027-01-01",
        }

        data = audit_service.sanitize_request_data(body, "CREATE_MEMBER")

        assert data["package_price"] == 120
        assert data["total_amount"] == 120
        assert data["payment_method"] == "card"
        assert data["package_name"] == "Unknown Package"
        assert data["package_type"] == "silver"
        assert data["duration_months"] == 3
        assert data["member_first_name"] == "Ada"
        assert data["member_last_name"] == "Lovelace"
        assert data["member_email"] == "ada@gym.test"
        assert data["staff_id"] == "S1"
        assert data["staff_pin_provided"] == "YES"
        assert "\"1234\"" not in json.dumps(data)

    def test_financial_snapshot_enriched_from_package(self, db_session, package):
        data = audit_service.sanitize_request_data(
            {"packageId": package.id, "customPrice": 550, "package_name": "typed by hand"},
            "PROCESS_MEMBER_RENEWAL",
        )

        assert data["package_id"] == package.id
        assert data["package_name"] == "Gold 12 Months"
        assert data["package_type"] == "gold"
        assert data["member_type"] == "gold"
        assert data["package_price"] == 550
        assert data["staff_pin_provided"] == "NO"

    def test_package_lookup_failure_does_not_break_snapshot(self, db_session, monkeypatch):
        def broken(_package_id):
            raise StorageUnavailable()

        monkeypatch.setattr(credential_store, "get_package", broken)

        data = audit_service.sanitize_request_data({"packageId": "p-1", "packageName": "Silver"}, "CREATE_MEMBER")
        assert data["package_name"] == "Silver"


class TestSanitizeResponseData:

    def test_financial_response_summary(self):
        payload = {
            "status": "success",
            "message": "ok",
            "data": {"member": {"id": "m-1", "first_name": "Ada", "last_name": "L", "expiry_date": "2027-01-01"}},
        }

        data = audit_service.sanitize_response_data(payload, "PROCESS_MEMBER_RENEWAL")

        assert data["member_id"] == "m-1"
        assert data["member_name"] == "Ada L"
        assert data["new_expiry_date"] == "2027-01-01"
        assert data["transaction_successful"] is True

    def test_generic_response_never_copies_data(self):
        payload = {"status": "success", "data": {"sessionToken": "secret-token"}}

        data = audit_service.sanitize_response_data(payload, "STAFF_LOGIN")

        assert data["record_count"] == 1
        assert "secret-token" not in json.dumps(data)

    def test_non_json_response(self):
        assert audit_service.sanitize_response_data(None, "CREATE_NOTE") is None


class TestRecord:

    def test_writes_one_row(self, db_session):
        assert audit_service.record(outcome()) is True

        rows = db_session.query(AuditLog).all()
        assert len(rows) == 1
        assert rows[0].user_id == "u-1"
        assert rows[0].success is True
        assert rows[0].request_data["path"] == "/api/test/notes"

    @pytest.mark.parametrize("user_id,user_email", [(None, "a@gym.test"), ("u-1", None), (None, None)])
    def test_missing_actor_skips_write(self, db_session, user_id, user_email):
        assert audit_service.record(outcome(user_id=user_id, user_email=user_email)) is False
        assert db_session.query(AuditLog).count() == 0

    def test_error_status_skips_write(self, db_session):
        assert audit_service.record(outcome(status_code=422)) is False
        assert db_session.query(AuditLog).count() == 0

    def test_store_failure_is_swallowed(self, db_session, monkeypatch):
        def broken(_record):
            raise StorageUnavailable()

        monkeypatch.setattr(credential_store, "insert_audit_record", broken)

        assert audit_service.record(outcome()) is False


class TestAuditedRoutes:

    def member_body(self, staff, package, **extra):
        body = {
            "staffId": staff.id,
            "staffPin": "1234",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@gym.test",
            "packageId": package.id,
            "paymentMethod": "cash",
            "amountPaid": 599,
            "password": "member-portal-password",
        }
        body.update(extra)
        return body

    def test_exactly_one_record_per_call(self, client, db_session, manager, manager_headers, package):
        resp = client.post(
            f"/api/test/branches/{manager.branch_id}/members",
            json=self.member_body(manager, package, staffPin="4821"),
            headers=manager_headers,
            buffered=True,
        )

        assert resp.status_code == 201
        rows = db_session.query(AuditLog).all()
        assert len(rows) == 1
        row = rows[0]
        assert row.action == "CREATE_MEMBER"
        assert row.resource_type == "member"
        assert row.branch_id == manager.branch_id
        assert row.status_code == 201
        assert row.request_data["body"]["package_name"] == "Gold 12 Months"
        assert row.response_data["member_id"] == "member-1"
        assert row.response_data["member_name"] == "Ada Lovelace"

    def test_verified_staff_is_the_actor(self, client, db_session, manager, senior_staff, package, open_session):
        # Manager's terminal, senior staff confirms the renewal with their own PIN
        resp = client.post(
            "/api/test/renewals",
            json={**self.member_body(senior_staff, package), "branchId": manager.branch_id},
            headers=open_session(manager),
            buffered=True,
        )

        assert resp.status_code == 200
        row = db_session.query(AuditLog).one()
        assert row.user_id == senior_staff.id
        assert row.user_email == senior_staff.email
        assert row.action == "PROCESS_MEMBER_RENEWAL"

    def test_pin_and_password_never_persisted(self, client, db_session, manager, manager_headers, package):
        client.post(
            f"/api/test/branches/{manager.branch_id}/members",
            json=self.member_body(manager, package, staffPin="4821", pin="4821"),
            headers=manager_headers,
            buffered=True,
        )
        client.post(
            "/api/test/notes",
            json={"pin": "4821", "password": "member-portal-password", "text": "hi"},
            headers=manager_headers,
            buffered=True,
        )

        rows = db_session.query(AuditLog).all()
        assert len(rows) == 2
        for row in rows:
            stored = json.dumps([row.request_data, row.response_data])
            assert "\"4821\"" not in stored
            assert "member-portal-password" not in stored

    def test_store_failure_does_not_change_response(self, client, db_session, manager_headers, monkeypatch):
        def broken(_record):
            raise StorageUnavailable()

        monkeypatch.setattr(credential_store, "insert_audit_record", broken)

        resp = client.post("/api/test/notes", json={"text": "hi"}, headers=manager_headers, buffered=True)

        assert resp.status_code == 200
        assert resp.json == {"status": "success", "data": {"id": "note-1"}}
        assert db_session.query(AuditLog).count() == 0

    def test_error_responses_not_audited(self, client, db_session, manager_headers):
        resp = client.post("/api/test/failing-notes", json={"text": "x"}, headers=manager_headers, buffered=True)

        assert resp.status_code == 422
        assert db_session.query(AuditLog).count() == 0

    def test_rejected_requests_not_audited(self, client, db_session, manager, manager_headers, package):
        resp = client.post(
            f"/api/test/branches/{manager.branch_id}/members",
            json=self.member_body(manager, package, staffPin="0000"),
            headers=manager_headers,
            buffered=True,
        )

        assert resp.status_code == 401
        assert resp.json["error"] == "InvalidPin"
        assert db_session.query(AuditLog).count() == 0

    def test_credentials_in_query_string_never_persisted(self, client, db_session, manager_headers):
        resp = client.post(
            "/api/test/notes?newPassword=hunter2&currentPin=4821&confirm_password=hunter2&topic=desk",
            json={"text": "hi"},
            headers=manager_headers,
            buffered=True,
        )

        assert resp.status_code == 200
        row = db_session.query(AuditLog).one()
        assert row.request_data["query"] == {"topic": "desk"}
        stored = json.dumps(row.request_data)
        assert "hunter2" not in stored
        assert "\"4821\"" not in stored

    def test_staff_id_view_arg_becomes_resource_id(self, client, db_session, manager, legacy_staff, manager_headers):
        resp = client.put(
            f"/api/staff/{legacy_staff.id}/pin",
            json={"pin": "5830"},
            headers=manager_headers,
            buffered=True,
        )

        assert resp.status_code == 200
        row = db_session.query(AuditLog).one()
        assert row.action == "SET_STAFF_PIN"
        assert row.resource_id == legacy_staff.id
        assert row.user_id == manager.id
        assert "\"5830\"" not in json.dumps(row.request_data)

    def test_named_resource_id_arg(self, client, db_session, associate, manager_headers):
        resp = client.delete(f"/api/staff/{associate.id}/pin", headers=manager_headers, buffered=True)

        assert resp.status_code == 200
        row = db_session.query(AuditLog).one()
        assert row.action == "CLEAR_STAFF_PIN"
        assert row.resource_id == associate.id
