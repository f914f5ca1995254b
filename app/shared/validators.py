"""Shared validation utilities"""

import re
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Keeps a leading "+" and the digits; separators such as spaces, dashes,
    dots and parentheses are dropped.

    Raises:
        ValueError: If the number has fewer than 7 or more than 15 digits
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)

    if len(digits) < 7 or len(digits) > 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_verification_code(code: Optional[str]) -> Optional[str]:
    """Six numeric digits, surrounding whitespace ignored"""
    if code is None:
        return code
    code = code.strip()
    if not re.fullmatch(r"\d{6}", code):
        raise ValueError("Verification code must be 6 digits")
    return code


DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


def validate_filename(filename: str, max_length: int = 255) -> str:
    """Reject path traversal attempts and overlong names"""
    for char in DANGEROUS_FILENAME_CHARS:
        if char in filename:
            raise ValueError(f"Invalid filename - contains dangerous character '{char}'")
    if len(filename) > max_length:
        raise ValueError(f"Filename too long - maximum {max_length} characters")
    return filename
