# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

MULTI-TENANT: Users belong to exactly one store. Email uniqueness is
store-scoped, so login may need the store to disambiguate.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, mixed case, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re

from ..extensions import db
from ..models import User, Store, Floor
from ..permissions import validate_role
from ..validation import ConflictError, ValidationError
from crm.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Malformed hashes (e.g. seeded placeholders) never verify.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    name: str,
    email: str,
    password: str,
    store_id: int,
    role: str = "SALESPERSON",
    floor_id: int | None = None,
    commit: bool = True,
) -> User:
    """
    Create new user with bcrypt password hashing.

    commit=False only flushes, so callers can audit in the same transaction.

    Raises:
        ValidationError: unknown role, inactive store, floor outside the store
        ConflictError: email already used in this store
        PasswordValidationError: weak password
    """
    store = db.session.get(Store, store_id)
    if not store or not store.is_active:
        raise ValidationError("Store not found or inactive")

    if not validate_role(role):
        raise ValidationError(f"Unknown role: {role}")

    if floor_id is not None:
        floor = db.session.get(Floor, floor_id)
        if not floor or floor.store_id != store_id:
            raise ValidationError("Floor not found in store")

    email = email.strip().lower()
    existing = db.session.query(User).filter_by(store_id=store_id, email=email).first()
    if existing:
        raise ConflictError(f"Email '{email}' already exists in this store")

    user = User(
        store_id=store_id,
        floor_id=floor_id,
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def authenticate(email: str, password: str, store_id: int | None = None) -> User | None:
    """
    Authenticate by email + password.

    When the same email exists in several stores, store_id is required;
    without it the login is refused rather than guessing a tenant.
    """
    query = db.session.query(User).filter_by(email=email.strip().lower(), is_active=True)
    if store_id is not None:
        query = query.filter_by(store_id=store_id)
    candidates = query.all()
    if len(candidates) != 1:
        return None

    user = candidates[0]
    if not user.store or not user.store.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
