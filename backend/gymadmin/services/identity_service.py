# Overview: Turns request credentials into exactly one Principal (or none).

"""
Identity Resolution

WHY: Two kinds of callers reach the API. Front-desk staff carry a branch
session token (X-Session-Token) issued after a PIN login; admins and members
carry a bearer token issued by the hosted auth platform. Both must end up as
the same Principal shape so permission and branch checks never care which
credential was used.

RESOLUTION ORDER:
1. BranchSessionResolver   (X-Session-Token)
2. PlatformTokenResolver   (Authorization: Bearer ...)
3. DevelopmentBypassResolver (only when AUTH_MODE=development_bypass)

Each strategy returns a tagged result:
- Resolved(principal): stop, this is the caller
- NotApplicable: the credential this strategy reads is absent
- Failed(reason): the credential is present but invalid

A failed session token does not end resolution: a request carrying both a
stale session token and a valid bearer token resolves through the bearer
token. Storage failures raise StorageUnavailable and are never turned into
"try next".
"""

from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass
from typing import Sequence, Union

from ..config import AuthMode
from ..errors import Unauthenticated
from . import credential_store, session_service
from .platform_identity import PlatformIdentityClient

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_ROLE = "member"
BYPASS_PRINCIPAL_ID = "development-bypass"


class SessionKind(str, enum.Enum):
    PLATFORM_TOKEN = "platform_token"
    BRANCH_SESSION = "branch_session"
    DEVELOPMENT_BYPASS = "development_bypass"


class ResolutionMode(str, enum.Enum):
    REQUIRED = "required"
    # Public endpoints only: no credential means "anonymous", never 401
    OPTIONAL = "optional"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of one request. Never persisted."""
    id: str
    role: str
    session_kind: SessionKind
    email: str | None = None
    branch_id: str | None = None
    staff_id: str | None = None
    is_synthetic: bool = False

    @property
    def is_branch_session(self) -> bool:
        return self.session_kind is SessionKind.BRANCH_SESSION

    def to_dict(self) -> dict:
        data = asdict(self)
        data["session_kind"] = self.session_kind.value
        return data


@dataclass(frozen=True)
class RequestCredentials:
    session_token: str | None = None
    bearer_token: str | None = None


@dataclass(frozen=True)
class Resolved:
    principal: Principal


@dataclass(frozen=True)
class Failed:
    reason: str


class NotApplicable:
    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = NotApplicable()

ResolutionResult = Union[Resolved, NotApplicable, Failed]


class BranchSessionResolver:
    name = "branch_session"
    applies_when_optional = True

    def resolve(self, credentials: RequestCredentials) -> ResolutionResult:
        if not credentials.session_token:
            return NOT_APPLICABLE

        session = session_service.lookup_session(credentials.session_token)
        if not session:
            return Failed("Invalid or expired session token")

        staff = credential_store.get_staff(session.staff_id)
        if not staff or not staff.is_active:
            return Failed("Session belongs to an inactive staff member")

        credential_store.touch_staff_last_active(staff.id)
        credential_store.touch_session(session.id)

        return Resolved(Principal(
            id=staff.id,
            email=staff.email,
            role=staff.role,
            session_kind=SessionKind.BRANCH_SESSION,
            # Scope comes from the session record, never from the request
            branch_id=session.branch_id,
            staff_id=staff.id,
        ))


class PlatformTokenResolver:
    name = "platform_token"
    applies_when_optional = True

    def __init__(self, client: PlatformIdentityClient):
        self.client = client

    def resolve(self, credentials: RequestCredentials) -> ResolutionResult:
        if not credentials.bearer_token:
            return NOT_APPLICABLE

        user = self.client.get_user(credentials.bearer_token)
        if not user:
            return Failed("Invalid bearer token")

        role = credential_store.get_profile_role(user.id) or DEFAULT_PLATFORM_ROLE

        return Resolved(Principal(
            id=user.id,
            email=user.email,
            role=role,
            session_kind=SessionKind.PLATFORM_TOKEN,
        ))


class DevelopmentBypassResolver:
    """
    Last-resort strategy for local development.

    The principal is synthetic and labelled as such; it has no email, so the
    audit recorder never writes records on its behalf.
    """
    name = "development_bypass"
    applies_when_optional = False

    def __init__(self, role: str = DEFAULT_PLATFORM_ROLE):
        self.role = role

    def resolve(self, credentials: RequestCredentials) -> ResolutionResult:
        logger.warning("Development bypass: issuing synthetic principal with role %r", self.role)
        return Resolved(Principal(
            id=BYPASS_PRINCIPAL_ID,
            role=self.role,
            session_kind=SessionKind.DEVELOPMENT_BYPASS,
            is_synthetic=True,
        ))


class IdentityResolver:
    def __init__(self, strategies: Sequence):
        self.strategies = tuple(strategies)

    def resolve(
        self,
        credentials: RequestCredentials,
        mode: ResolutionMode = ResolutionMode.REQUIRED,
    ) -> Principal | None:
        """
        Run the strategies in order and return the first resolved principal.

        REQUIRED mode raises Unauthenticated when nothing resolves.
        OPTIONAL mode returns None instead.
        """
        failures = []
        for strategy in self.strategies:
            if mode is ResolutionMode.OPTIONAL and not strategy.applies_when_optional:
                continue

            result = strategy.resolve(credentials)
            if isinstance(result, Resolved):
                return result.principal
            if isinstance(result, Failed):
                failures.append(f"{strategy.name}: {result.reason}")

        if failures:
            logger.info("Identity resolution failed (%s)", "; ".join(failures))

        if mode is ResolutionMode.OPTIONAL:
            return None

        # One message for every failure: never reveal which credential was close
        raise Unauthenticated()


def build_identity_resolver(
    auth_mode: AuthMode,
    platform_client: PlatformIdentityClient,
    bypass_role: str = DEFAULT_PLATFORM_ROLE,
) -> IdentityResolver:
    strategies = [
        BranchSessionResolver(),
        PlatformTokenResolver(platform_client),
    ]
    if auth_mode is AuthMode.DEVELOPMENT_BYPASS:
        strategies.append(DevelopmentBypassResolver(bypass_role))
    return IdentityResolver(strategies)


def extract_credentials(request) -> RequestCredentials:
    session_token = (request.headers.get("X-Session-Token") or "").strip() or None

    bearer_token = None
    auth_header = request.headers.get("Authorization") or ""
    if auth_header.startswith("Bearer "):
        bearer_token = auth_header.split(" ", 1)[1].strip() or None

    return RequestCredentials(session_token=session_token, bearer_token=bearer_token)
