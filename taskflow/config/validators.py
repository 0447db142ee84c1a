from typing import List, Optional

MIN_PASSWORD_LENGTH = 6

def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase an email address"""
    return email.strip().lower()

def validate_password(password: str, confirm_password: Optional[str] = None) -> tuple[bool, Optional[List[str]]]:
    """
    Validate a new password

    Password Rules:
    - At least 6 characters long
    - Equal to the confirmation, when a confirmation is given

    Rules are checked in order and only the first failure is reported.

    Returns:
        tuple: (is_valid, list_of_error_messages)
    """
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    elif confirm_password and password != confirm_password:
        errors.append("Passwords do not match")

    is_valid = len(errors) == 0
    return is_valid, errors if not is_valid else None
