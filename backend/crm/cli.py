# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/crm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store "Store Name"] [--code "MAIN"]
#   Idempotent bootstrap: default store, floors, categories, and one user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Store inspection:
# - python -m flask stores list
#   List stores with floor and user counts.
#
# User inspection/bootstrap:
# - python -m flask users list [--store-id 1]
#   List users with role, floor, and active status.
# - python -m flask users create --store-id 1 --name "Asha" --email asha@jewelcrm.local --password "Password123!" --role SALESPERSON
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Floor, Store, User
from .permissions import Role
from .services.auth_service import create_user, PasswordValidationError
from .validation import ConflictError, ValidationError

DEFAULT_PASSWORD = "Password123!"

DEFAULT_FLOORS = [
    (0, "Ground Floor - Gold"),
    (1, "First Floor - Diamond"),
    (2, "Second Floor - Silver & Platinum"),
]

DEFAULT_CATEGORIES = ["Rings", "Necklaces", "Earrings", "Bangles", "Pendants"]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store', 'store_name', default='Main Showroom', help='Store name')
@click.option('--code', 'store_code', default='MAIN', help='Store code')
@with_appcontext
def init_system(store_name, store_code):
    """
    Initialize a usable Jewel CRM store.

    MULTI-TENANT: The store is the tenant root; floors, categories and
    users below are created inside it.

    Creates:
    - Default store (if no store with the code exists)
    - Floors 0-2 and a starter category set
    - Users: admin@jewelcrm.local (BUSINESS_ADMIN),
      manager@jewelcrm.local (FLOOR_MANAGER, floor 0),
      sales@jewelcrm.local (SALESPERSON, floor 0)
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Jewel CRM...")

    store = db.session.query(Store).filter_by(code=store_code).first()
    if not store:
        store = Store(name=store_name, code=store_code, is_active=True)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created store: {store.name} (ID: {store.id}, Code: {store.code})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    floors = {}
    for number, name in DEFAULT_FLOORS:
        floor = db.session.query(Floor).filter_by(store_id=store.id, number=number).first()
        if not floor:
            floor = Floor(store_id=store.id, number=number, name=name, is_active=True)
            db.session.add(floor)
        floors[number] = floor
    for name in DEFAULT_CATEGORIES:
        if not db.session.query(Category).filter_by(store_id=store.id, name=name).first():
            db.session.add(Category(store_id=store.id, name=name, is_active=True))
    db.session.commit()
    click.echo(f"PASS Floors: {len(floors)}, categories: {len(DEFAULT_CATEGORIES)}")

    default_users = [
        ("Store Admin", "admin@jewelcrm.local", Role.BUSINESS_ADMIN.value, None),
        ("Floor Manager", "manager@jewelcrm.local", Role.FLOOR_MANAGER.value, floors[0].id),
        ("Salesperson", "sales@jewelcrm.local", Role.SALESPERSON.value, floors[0].id),
    ]

    click.echo("\nUSERS Creating default users...")
    for name, email, role, floor_id in default_users:
        existing = db.session.query(User).filter_by(store_id=store.id, email=email).first()
        if existing:
            click.echo(f"WARN  User '{email}' already exists in store, skipping...")
            continue
        try:
            create_user(
                name=name,
                email=email,
                password=DEFAULT_PASSWORD,
                store_id=store.id,
                role=role,
                floor_id=floor_id,
            )
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except (PasswordValidationError, ValidationError, ConflictError) as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    click.echo("\n" + "="*60)
    click.echo("DONE Jewel CRM Initialized Successfully!")
    click.echo("="*60)
    click.echo(f"\nStore: {store.name} (ID: {store.id})")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   admin   -> admin@jewelcrm.local   / {DEFAULT_PASSWORD}")
    click.echo(f"   manager -> manager@jewelcrm.local / {DEFAULT_PASSWORD}")
    click.echo(f"   sales   -> sales@jewelcrm.local   / {DEFAULT_PASSWORD}")
    click.echo("")


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


# =============================================================================
# STORE COMMANDS
# =============================================================================

@click.group('stores')
def stores_group():
    """Store (tenant) inspection commands."""


@stores_group.command('list')
@with_appcontext
def list_stores():
    """List all stores."""
    stores = db.session.query(Store).order_by(Store.id).all()

    if not stores:
        click.echo("No stores found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<12} {'Active':<8} {'Floors':<8} {'Users'}")
    click.echo("="*80)

    for store in stores:
        floor_count = db.session.query(Floor).filter_by(store_id=store.id).count()
        user_count = db.session.query(User).filter_by(store_id=store.id).count()
        active_str = "Yes" if store.is_active else "No"

        click.echo(f"{store.id:<5} {store.name:<30} {store.code or '-':<12} {active_str:<8} {floor_count:<8} {user_count}")

    click.echo("="*80 + "\n")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--store-id', type=int, help='Store ID (uses the first store if not specified)')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True, help='Role')
@click.option('--floor-id', type=int, help='Floor ID')
@with_appcontext
def create_user_cli(store_id, name, email, password, role, floor_id):
    """
    Create a new user interactively.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    if store_id:
        store = db.session.get(Store, store_id)
        if not store:
            click.echo(f"FAIL Store ID {store_id} not found")
            return
    else:
        store = db.session.query(Store).order_by(Store.id).first()
        if not store:
            click.echo("FAIL No store found. Run 'python -m flask system init' first.")
            return

    try:
        user = create_user(
            name=name,
            email=email,
            password=password,
            store_id=store.id,
            role=role,
            floor_id=floor_id,
        )
        click.echo(f"PASS Created user: {user.email} with role '{role}' (ID: {user.id})")
        click.echo(f"     Store: {store.name} (ID: {store.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except PasswordValidationError as e:
        db.session.rollback()
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@click.option('--store-id', type=int, help='Filter by store ID')
@with_appcontext
def list_users(store_id):
    """List all users with their roles."""
    query = db.session.query(User)

    if store_id:
        query = query.filter_by(store_id=store_id)

    users = query.order_by(User.store_id, User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Store':<6} {'Name':<20} {'Email':<30} {'Active':<8} {'Floor':<6} {'Role'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        floor_str = str(user.floor_id) if user.floor_id is not None else "-"
        click.echo(f"{user.id:<5} {user.store_id:<6} {user.name:<20} {user.email:<30} {active_str:<8} {floor_str:<6} {user.role}")

    click.echo("="*100 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
