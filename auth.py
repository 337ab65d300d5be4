"""
auth.py - Author Accounts
Snippet Catalog

Provides password hashing and the user records kept in the snippet store.
"""

import re
import sqlite3
from typing import Optional

import bcrypt

from database import get_db, row_to_dict

# Security configuration
BCRYPT_COST_FACTOR = 12  # bcrypt work factor (higher = more secure but slower)
PASSWORD_MIN_LENGTH = 8
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')


class AuthError(Exception):
    """Custom exception for account errors."""
    pass


class UserExistsError(AuthError):
    """Raised when trying to create a user that already exists."""
    pass


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain-text password

    Returns:
        str: bcrypt hash of the password

    Raises:
        AuthError: If the password is too short
    """
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise AuthError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_COST_FACTOR))
    return hashed.decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Returns:
        bool: True if password matches hash, False otherwise
    """
    return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))


def validate_username(username: str) -> None:
    """
    Validate username format.

    Raises:
        AuthError: If username is invalid
    """
    if not username or len(username) < 3:
        raise AuthError("Username must be at least 3 characters")
    if len(username) > 30:
        raise AuthError("Username must be 30 characters or less")
    if not USERNAME_PATTERN.match(username):
        raise AuthError("Username can only contain letters, numbers, underscores, and hyphens")


def create_user(username: str, password: str) -> dict:
    """
    Create a new author account.

    Returns:
        dict: User data excluding password_hash

    Raises:
        UserExistsError: If username already exists
        AuthError: If username or password is invalid
    """
    validate_username(username)
    password_hash = hash_password(password)

    with get_db() as db:
        try:
            db.execute(
                "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                (username, password_hash)
            )
        except sqlite3.IntegrityError:
            raise UserExistsError(f"Username '{username}' is already taken")
        db.execute(
            "SELECT id, username, created_at FROM users WHERE id = ?",
            (db.lastrowid,)
        )
        return row_to_dict(db.fetchone())


def get_user(user_id: int) -> Optional[dict]:
    """Get user data by ID, without password_hash."""
    with get_db() as db:
        db.execute("SELECT id, username, created_at FROM users WHERE id = ?", (user_id,))
        return row_to_dict(db.fetchone())


def get_user_by_username(username: str) -> Optional[dict]:
    """Get user data by username, without password_hash."""
    with get_db() as db:
        db.execute("SELECT id, username, created_at FROM users WHERE username = ?", (username,))
        return row_to_dict(db.fetchone())


def check_credentials(username: str, password: str) -> Optional[dict]:
    """
    Check a username/password pair.

    Returns:
        dict: User data if the password matches, None otherwise
    """
    with get_db() as db:
        db.execute(
            "SELECT id, username, password_hash, created_at FROM users WHERE username = ?",
            (username,)
        )
        user = db.fetchone()

    if user is None or not verify_password(password, user['password_hash']):
        return None

    return {
        'id': user['id'],
        'username': user['username'],
        'created_at': user['created_at'],
    }
