# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/restopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--restaurant "Name"]
#   Idempotent bootstrap: creates tables, the restaurant profile and default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email admin@restopos.local --password "Password123!" --role admin
#   Create a user (prompts if options are omitted).
#
# Inventory:
# - python -m flask inventory low-stock
#   Print active, tracked products at or below their threshold.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, USER_ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.inventory_service import get_low_stock_products
from .services.restaurant_service import get_restaurant, upsert_restaurant
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = (
    ("admin@restopos.local", "admin", "Admin"),
    ("manager@restopos.local", "manager", "Manager"),
    ("staff@restopos.local", "staff", "Staff"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--restaurant', 'restaurant_name', default='My Restaurant', help='Restaurant name')
@click.option('--timezone', 'tz_name', default=None, help='Business timezone, e.g. Europe/Berlin')
@with_appcontext
def init_system(restaurant_name, tz_name):
    """
    Initialize the system: schema, restaurant profile and default users.

    Creates:
    - All tables (if missing)
    - Restaurant profile (if none exists)
    - Users: admin@restopos.local, manager@restopos.local, staff@restopos.local
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing restopos...")

    db.create_all()

    restaurant = get_restaurant()
    if restaurant is None:
        patch = {"name": restaurant_name}
        if tz_name:
            patch["timezone"] = tz_name
        restaurant = upsert_restaurant(patch)
        click.echo(f"PASS Created restaurant: {restaurant.name} (ID: {restaurant.id})")
    else:
        click.echo(f"PASS Using existing restaurant: {restaurant.name} (ID: {restaurant.id})")

    for email, role, first_name in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"SKIP User exists: {email}")
            continue
        create_user(email, DEFAULT_PASSWORD, role=role, first_name=first_name)
        click.echo(f"PASS Created user: {email} ({role})")

    click.echo(f"DONE Default password for new users: {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), prompt=True, help='Role')
@click.option('--first-name', default=None, help='First name')
@click.option('--last-name', default=None, help='Last name')
@with_appcontext
def create_user_cli(email, password, role, first_name, last_name):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email, password, role=role, first_name=first_name, last_name=last_name)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<10} {'Active':<8}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<10} {active_str:<8}")

    click.echo("="*80 + "\n")


@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock():
    """Print products at or below their low-stock threshold."""
    products = get_low_stock_products()
    if not products:
        click.echo("No low-stock products.")
        return

    click.echo(f"{'ID':<5} {'Name':<30} {'Stock':>7} {'Threshold':>10}")
    for p in products:
        click.echo(f"{p.id:<5} {p.name:<30} {p.stock_quantity:>7} {p.low_stock_threshold:>10}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
