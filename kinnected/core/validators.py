import re
import uuid

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
EMAIL_PATTERN = re.compile(r"^\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*(?:\.\w{2,3})+$", re.ASCII)
PASSWORD_SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8
FULL_NAME_MIN_LENGTH = 2
FULL_NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254


def validate_username(username: str) -> str:
    if len(username) < USERNAME_MIN_LENGTH or len(username) > USERNAME_MAX_LENGTH:
        raise ValueError("Username must be between 3 and 30 characters")
    if not USERNAME_PATTERN.fullmatch(username):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return username


def validate_email(email: str) -> str:
    email = email.strip().lower()
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email address")
    return email


def validate_password(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")
    if not PASSWORD_SPECIAL_CHARACTERS.search(password):
        raise ValueError("Password must contain at least one special character")
    return password


def validate_full_name(full_name: str) -> str:
    full_name = full_name.strip()
    if len(full_name) < FULL_NAME_MIN_LENGTH or len(full_name) > FULL_NAME_MAX_LENGTH:
        raise ValueError("Full name must be between 2 and 50 characters")
    return full_name


def is_valid_id(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
