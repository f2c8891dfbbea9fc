# Overview: Request decorators for API routes: identity, permissions, branch
# isolation, PIN step-up and audit logging.

"""
Decorator contract

Stack them outermost first, in this order:

    @require_auth
    @require_branch_access(Permission.MEMBERS_WRITE)
    @require_permission(Permission.MEMBERS_WRITE)
    @require_pin
    @audit_log("CREATE_MEMBER", "member")
    def create_member(...): ...

Branch isolation runs before the permission check: a caller acting on a
branch it is not assigned to gets BranchAccessDenied, whatever its role holds.

Flask g attributes set along the way:
- g.principal: the resolved Principal (or None under optional_auth)
- g.permissions: frozenset of the principal's permission codes
- g.verified_staff: the BranchStaff record confirmed by require_pin

Rejections are raised as AccessError subclasses and rendered as JSON by the
handlers in errors.py.
"""

from functools import wraps

from flask import current_app, g, request

from .errors import BadRequest, BranchAccessDenied, PermissionDenied, Unauthenticated
from .permissions import EMPTY_PERMISSIONS, PermissionRegistry
from .services import audit_service, branch_guard, step_up_service
from .services.branch_guard import BranchDecision
from .services.identity_service import ResolutionMode, extract_credentials


def get_registry() -> PermissionRegistry:
    return current_app.extensions["permission_registry"]


def get_identity_resolver():
    return current_app.extensions["identity_resolver"]


def _client_info() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _set_principal(principal) -> None:
    g.principal = principal
    if principal is None:
        g.permissions = EMPTY_PERMISSIONS
    else:
        g.permissions = get_registry().permissions_for(principal.role)


def _current_principal():
    principal = getattr(g, "principal", None)
    if principal is None:
        raise Unauthenticated()
    return principal


def require_auth(f):
    """
    Resolve the caller's identity; 401 if no credential resolves.

    StorageUnavailable from the credential store propagates as 503.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        credentials = extract_credentials(request)
        principal = get_identity_resolver().resolve(credentials, ResolutionMode.REQUIRED)
        _set_principal(principal)
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Resolve identity if a credential is present. Public endpoints only."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        credentials = extract_credentials(request)
        principal = get_identity_resolver().resolve(credentials, ResolutionMode.OPTIONAL)
        _set_principal(principal)
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission (system:admin always passes)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = _current_principal()

            if not PermissionRegistry.has(g.permissions, permission_code):
                current_app.logger.info(
                    "Permission denied: %s (role=%s) lacks %s on %s",
                    principal.id, principal.role, permission_code, request.path,
                )
                raise PermissionDenied(required=permission_code, userRole=principal.role)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = _current_principal()

            if not PermissionRegistry.has_any(g.permissions, permission_codes):
                current_app.logger.info(
                    "Permission denied: %s (role=%s) lacks any of %s on %s",
                    principal.id, principal.role, ", ".join(permission_codes), request.path,
                )
                raise PermissionDenied(required=list(permission_codes), userRole=principal.role)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def get_target_branch_id(kwargs) -> str | None:
    """Branch targeted by the request: view arg, then JSON body, then query string."""
    branch_id = kwargs.get("branch_id")
    if not branch_id:
        body = _json_body()
        branch_id = body.get("branchId") or body.get("branch_id")
    if not branch_id:
        branch_id = request.args.get("branchId") or request.args.get("branch_id")
    return str(branch_id) if branch_id else None


def enforce_branch_access(target_branch_id, permission_code: str | None = None) -> None:
    """
    Raise BranchAccessDenied unless the current principal may act on the branch.

    A deferred decision (platform-token principal without manage_all) passes
    only when permission_code is given and the principal holds it.
    """
    principal = _current_principal()

    try:
        decision = branch_guard.check_branch_access(principal, g.permissions, target_branch_id)
    except BranchAccessDenied as e:
        branch_guard.record_branch_denial(principal, e, **_client_info())
        raise

    if decision is BranchDecision.DEFER:
        if not permission_code or not PermissionRegistry.has(g.permissions, permission_code):
            raise BranchAccessDenied(principal.branch_id, target_branch_id)


def require_branch_access(permission_code: str | None = None):
    """Enforce branch isolation for a branch-parameterised route (400 without a branch id)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            target_branch_id = get_target_branch_id(kwargs)
            if not target_branch_id:
                _current_principal()
                raise BadRequest("Branch ID required")

            enforce_branch_access(target_branch_id, permission_code)

            g.branch_id = target_branch_id
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_pin(f):
    """
    PIN step-up: the JSON body must carry staffId and staffPin.

    Sets g.verified_staff to the confirmed BranchStaff record.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        body = _json_body()
        staff = step_up_service.require_valid_pin(
            body.get("staffId"),
            body.get("staffPin"),
            **_client_info(),
        )
        g.verified_staff = staff
        return f(*args, **kwargs)

    return decorated_function


def _audit_actor() -> tuple:
    staff = getattr(g, "verified_staff", None)
    if staff is not None:
        return staff.id, staff.email

    principal = getattr(g, "principal", None)
    if principal is not None:
        return principal.id, principal.email

    return None, None


def _resource_id(kwargs, body, resource_id_arg):
    if resource_id_arg:
        return kwargs.get(resource_id_arg)
    if kwargs.get("id"):
        return kwargs["id"]
    # branch_id is recorded in its own column
    for name, value in kwargs.items():
        if name.endswith("_id") and name != "branch_id":
            return value
    return body.get("id") if isinstance(body, dict) else None


def audit_log(action: str, resource_type: str, resource_id_arg: str | None = None):
    """
    Record an audit row for every successful response of the wrapped route.

    The resource id is taken from the view arg named by resource_id_arg, else
    from an `id` or other `*_id` view arg, else from the JSON body.

    The row is written after the response is delivered; a failed write never
    changes the response.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            response = current_app.make_response(f(*args, **kwargs))

            if response.status_code >= 400:
                return response

            try:
                body = request.get_json(silent=True)
                user_id, user_email = _audit_actor()
                outcome = audit_service.AuditOutcome(
                    action=action,
                    resource_type=resource_type,
                    user_id=user_id,
                    user_email=user_email,
                    status_code=response.status_code,
                    method=request.method,
                    path=request.path,
                    resource_id=_resource_id(kwargs, body, resource_id_arg),
                    branch_id=get_target_branch_id(kwargs),
                    content_type=request.headers.get("Content-Type"),
                    view_args=dict(kwargs),
                    query=request.args.to_dict(),
                    body=body,
                    response_body=response.get_json(silent=True),
                    **_client_info(),
                )
                audit_service.schedule_on_close(response, outcome)
            except Exception:
                current_app.logger.exception("Failed to schedule audit record for %s", action)

            return response

        return decorated_function
    return decorator
