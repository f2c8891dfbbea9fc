"""
Pytest fixtures for the gym admin access core.

Provides an in-memory database, two branches with staff, platform accounts
served by an httpx.MockTransport, and a test blueprint whose routes stack the
access decorators the way business routes do.
"""

from decimal import Decimal

import httpx
import pytest
from flask import Blueprint, jsonify

from gymadmin import create_app
from gymadmin.decorators import (
    audit_log,
    require_auth,
    require_branch_access,
    require_permission,
    require_pin,
)
from gymadmin.extensions import db
from gymadmin.models import Branch, BranchStaff, Package, UserProfile
from gymadmin.permissions import Permission
from gymadmin.services import pin_service, session_service
from gymadmin.services.platform_identity import PlatformIdentityClient


PLATFORM_URL = "https://platform.test"

# bearer token -> platform user payload
PLATFORM_USERS = {
    "admin-token": {"id": "auth-admin", "email": "owner@gym.test"},
    "manager-token": {"id": "auth-manager", "email": "platform.manager@gym.test"},
    "member-token": {"id": "auth-member", "email": "member@gym.test"},
    "janitor-token": {"id": "auth-janitor", "email": "janitor@gym.test"},
}

OUTAGE_TOKEN = "outage-token"

STAFF_PIN = "1234"
MANAGER_PIN = "4821"


def platform_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path != "/auth/v1/user":
        return httpx.Response(404)

    token = request.headers.get("Authorization", "").replace("Bearer ", "", 1)
    if token == OUTAGE_TOKEN:
        raise httpx.ConnectError("platform unreachable", request=request)

    user = PLATFORM_USERS.get(token)
    if not user:
        return httpx.Response(401, json={"msg": "invalid JWT"})
    return httpx.Response(200, json=user)


def make_platform_client() -> PlatformIdentityClient:
    return PlatformIdentityClient(
        PLATFORM_URL,
        "service-key",
        transport=httpx.MockTransport(platform_handler),
    )


def register_test_routes(app):
    """Business-style routes guarded by the access decorators."""
    bp = Blueprint("test_routes", __name__, url_prefix="/api/test")

    @bp.get("/branches/<branch_id>/members")
    @require_auth
    @require_branch_access(Permission.MEMBERS_READ)
    @require_permission(Permission.MEMBERS_READ)
    def list_members(branch_id):
        return jsonify({"status": "success", "data": []})

    @bp.post("/branches/<branch_id>/members")
    @require_auth
    @require_branch_access(Permission.MEMBERS_WRITE)
    @require_permission(Permission.MEMBERS_WRITE)
    @require_pin
    @audit_log("CREATE_MEMBER", "member")
    def create_member(branch_id):
        return jsonify({
            "status": "success",
            "message": "Member created",
            "data": {"id": "member-1", "firstName": "Ada", "lastName": "Lovelace"},
        }), 201

    @bp.post("/renewals")
    @require_auth
    @require_branch_access(Permission.RENEWALS_PROCESS)
    @require_permission(Permission.RENEWALS_PROCESS)
    @require_pin
    @audit_log("PROCESS_MEMBER_RENEWAL", "renewal")
    def process_renewal():
        return jsonify({
            "status": "success",
            "data": {"renewal": {"id": "renewal-1"}, "member": {"id": "member-1", "expiry_date": "2027-01-01"}},
        })

    @bp.post("/notes")
    @require_auth
    @audit_log("CREATE_NOTE", "note")
    def create_note():
        return jsonify({"status": "success", "data": {"id": "note-1"}})

    @bp.post("/failing-notes")
    @require_auth
    @audit_log("CREATE_NOTE", "note")
    def create_failing_note():
        return jsonify({"status": "error", "error": "Validation failed"}), 422

    app.register_blueprint(bp)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTH_MODE': 'strict',
        'APP_ENV': 'test',
        'PLATFORM_AUTH_URL': PLATFORM_URL,
        'PLATFORM_IDENTITY_CLIENT': make_platform_client(),
    })
    register_test_routes(app)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost keeps the suite fast; verification logic is unchanged."""
    monkeypatch.setattr(pin_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def branch_1(db_session):
    branch = Branch(name="Downtown")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def branch_2(db_session):
    branch = Branch(name="Uptown")
    db_session.add(branch)
    db_session.commit()
    return branch


def make_staff(db_session, branch, *, role="associate", pin=STAFF_PIN, email=None, first_name="Sam"):
    staff = BranchStaff(
        branch_id=branch.id,
        first_name=first_name,
        last_name="Staff",
        email=email or f"{first_name.lower()}.{role}@gym.test",
        role=role,
        pin_hash=pin_service.hash_pin(pin) if pin else None,
    )
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def associate(db_session, branch_1):
    """Associate S1 at branch B1."""
    return make_staff(db_session, branch_1, role="associate", first_name="Sam")


@pytest.fixture(scope='function')
def manager(db_session, branch_1):
    return make_staff(db_session, branch_1, role="manager", pin=MANAGER_PIN, first_name="Morgan")


@pytest.fixture(scope='function')
def senior_staff(db_session, branch_1):
    return make_staff(db_session, branch_1, role="senior_staff", first_name="Sky")


@pytest.fixture(scope='function')
def legacy_staff(db_session, branch_1):
    """Staff member whose PIN was never hashed."""
    return make_staff(db_session, branch_1, role="associate", pin=None, first_name="Lee")


@pytest.fixture(scope='function')
def platform_profiles(db_session):
    profiles = [
        UserProfile(auth_user_id="auth-admin", email="owner@gym.test", role="super_admin"),
        UserProfile(auth_user_id="auth-manager", email="platform.manager@gym.test", role="manager"),
        UserProfile(auth_user_id="auth-janitor", email="janitor@gym.test", role="janitor"),
    ]
    db_session.add_all(profiles)
    db_session.commit()
    return profiles


@pytest.fixture(scope='function')
def package(db_session):
    pkg = Package(name="Gold 12 Months", type="gold", price=Decimal("599.00"), duration_months=12)
    db_session.add(pkg)
    db_session.commit()
    return pkg


def session_headers(staff) -> dict:
    """Open a branch session for `staff` and return its request headers."""
    _session, token = session_service.create_session(staff)
    return {'X-Session-Token': token}


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def associate_headers(associate):
    return session_headers(associate)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return session_headers(manager)


@pytest.fixture(scope='function')
def admin_headers(platform_profiles):
    return auth_headers("admin-token")


@pytest.fixture(scope='function')
def open_session(db_session):
    """Factory: open a branch session for a staff member, return request headers."""
    return session_headers


@pytest.fixture(scope='function')
def staff_factory(db_session):
    """Factory: create a staff member at a branch (PIN 1234 unless given)."""
    def _make(branch, **kwargs):
        return make_staff(db_session, branch, **kwargs)
    return _make
