# Overview: Flask CLI command groups for staff PINs, branch sessions and permission inspection.

# backend/gymadmin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Staff:
# - python -m flask staff list --branch-id <uuid>
#   List staff (optionally one branch) with role and PIN status.
# - python -m flask staff set-pin <staff-id>
#   Set a staff PIN (prompts, hidden input). Revokes open branch sessions.
# - python -m flask staff lockout <staff-id>
#   Show PIN lockout status.
#
# Branch sessions:
# - python -m flask sessions cleanup
#   Delete expired and deactivated branch sessions. Safe to schedule.
#
# Permission inspection:
# - python -m flask perms list [--role manager] [--category STAFF]
#   List permissions, optionally for one role or category.
# - python -m flask perms check associate members:write
#   Check whether a role holds a permission.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import AccessError
from .extensions import db
from .models import BranchStaff
from .permissions import (
    PERMISSION_DEFINITIONS,
    PermissionRegistry,
    get_permissions_by_category,
    validate_permission_code,
)
from .services import session_service, step_up_service
from .time_utils import to_utc_z


@click.group('staff')
def staff_group():
    """Branch staff and PIN commands."""


@staff_group.command('list')
@click.option('--branch-id', help='Filter by branch ID')
@with_appcontext
def list_staff(branch_id):
    """List staff with role, PIN status and last activity."""
    query = db.session.query(BranchStaff)
    if branch_id:
        query = query.filter_by(branch_id=branch_id)

    staff = query.order_by(BranchStaff.branch_id, BranchStaff.last_name).all()

    if not staff:
        click.echo("No staff found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<38} {'Name':<25} {'Role':<14} {'PIN':<6} {'Active':<8} {'Branch'}")
    click.echo("="*110)

    for s in staff:
        pin_str = "set" if s.pin_hash else "NONE"
        active_str = "Yes" if s.is_active else "No"
        click.echo(f"{s.id:<38} {s.full_name:<25} {s.role:<14} {pin_str:<6} {active_str:<8} {s.branch_id}")

    click.echo("="*110 + "\n")


@staff_group.command('set-pin')
@click.argument('staff_id')
@click.option('--pin', prompt=True, hide_input=True, confirmation_prompt=True, help='New 4-digit PIN')
@with_appcontext
def set_pin(staff_id, pin):
    """Set a staff PIN (weak PINs are rejected)."""
    try:
        staff = step_up_service.set_staff_pin(staff_id, pin, changed_by="cli")
    except AccessError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS PIN set for {staff.full_name} ({staff.id}); open sessions revoked")


@staff_group.command('lockout')
@click.argument('staff_id')
@with_appcontext
def lockout_status(staff_id):
    """Show PIN lockout status for a staff member."""
    status = step_up_service.get_lockout_status(staff_id)

    click.echo(f"Attempts in window: {status['attempts']}/{status['max_attempts']}")
    if status["locked"]:
        click.echo(f"LOCKED until {to_utc_z(status['locked_until'])} ({status['seconds_until_unlock']}s)")
    else:
        click.echo("Not locked")


@click.group('sessions')
def sessions_group():
    """Branch session maintenance commands."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    """Delete expired and deactivated branch sessions."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} expired or inactive sessions")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List all permissions, optionally filtered by role or category."""
    registry = current_app.extensions["permission_registry"]

    definitions = PERMISSION_DEFINITIONS
    if role:
        if role not in registry.roles:
            click.echo(f"FAIL Role '{role}' not found")
            return
        granted = registry.permissions_for(role)
        definitions = [perm for perm in definitions if perm[0] in granted]
        click.echo(f"\nPermissions for role: {role.upper()}")

    if category:
        in_category = set(get_permissions_by_category(category))
        definitions = [perm for perm in definitions if perm[0] in in_category]

    click.echo(f"\n{'Code':<25} {'Name':<30} {'Category'}")
    click.echo("-"*70)
    for code, name, _description, perm_category in definitions:
        click.echo(f"{code:<25} {name:<30} {perm_category}")
    click.echo(f"\nTotal: {len(definitions)} permissions\n")


@perms_group.command('check')
@click.argument('role')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(role, permission_code):
    """Check whether a role holds a permission."""
    if not validate_permission_code(permission_code):
        click.echo(f"FAIL Unknown permission '{permission_code}'")
        return

    registry = current_app.extensions["permission_registry"]
    if PermissionRegistry.has(registry.permissions_for(role), permission_code):
        click.echo(f"PASS Role '{role}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL Role '{role}' DOES NOT HAVE permission '{permission_code}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(staff_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(perms_group)
