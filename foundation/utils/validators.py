"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • Syntax checks; returns sanitized lowercased value.
- validate_username(username)
  • 3-50 characters of letters, digits, dot, underscore or dash.
- validate_password_strength(password)
  • Enforce minimum length plus letters and digits.
- validate_mpin(mpin)
  • Exactly four digits.
- validate_phone(phone)
  • Philippine mobile format, returned without spaces or dashes.
- validate_verification_status(status)
  • One of pending/verified/rejected.
- parse_id_list(ids)
  • Coerce bulk-operation ids to positive ints.
- parse_date(value), parse_int(value), parse_positive_int(value),
  parse_float(value), parse_bool(value)
  • Lenient conversions for request bodies.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.
- build_full_name(first, middle, last, extension)
"""

import math
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional
from dataclasses import dataclass
from .errors import ValidationError


VERIFICATION_STATUSES = ('pending', 'verified', 'rejected')

TRUE_STRINGS = ('true', '1', 'yes', 'on')
FALSE_STRINGS = ('false', '0', 'no', 'off', '')


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[Any] = None


class InputValidator:
    """Request field validation shared by the route modules"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9._-]{3,50}$')

    MPIN_PATTERN = re.compile(r'^\d{4}$')

    PHONE_PATTERN = re.compile(r'^(\+?63|0)[0-9]{10}$')

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email must be a non-empty string")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email cannot be empty")

        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")

        if not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.split('@')
        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "Invalid email format")
        if '.' not in domain:
            return ValidationResult(False, "Invalid email format")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_username(cls, username: str) -> ValidationResult:
        if not username or not isinstance(username, str) or not username.strip():
            return ValidationResult(False, "Username is required")

        username = username.strip()
        if not cls.USERNAME_PATTERN.match(username):
            return ValidationResult(
                False,
                "Username must be 3-50 characters of letters, numbers, '.', '_' or '-'"
            )
        return ValidationResult(True, sanitized_value=username)

    @classmethod
    def validate_password_strength(cls, password: str) -> ValidationResult:
        """
        Validate password strength requirements

        Args:
            password: Password to validate

        Returns:
            ValidationResult with validation status
        """
        if not password or not isinstance(password, str):
            return ValidationResult(False, "Password must be a non-empty string")

        if len(password) < 8:
            return ValidationResult(False, "Password must be at least 8 characters long")

        if len(password) > 128:
            return ValidationResult(False, "Password too long (max 128 characters)")

        has_alpha = any(c.isalpha() for c in password)
        has_digit = any(c.isdigit() for c in password)
        if not (has_alpha and has_digit):
            return ValidationResult(False, "Password must contain letters and numbers")

        return ValidationResult(True)

    @classmethod
    def validate_mpin(cls, mpin) -> ValidationResult:
        mpin = '' if mpin is None else str(mpin).strip()
        if not cls.MPIN_PATTERN.match(mpin):
            return ValidationResult(False, "MPIN must be exactly 4 digits")
        return ValidationResult(True, sanitized_value=mpin)

    @classmethod
    def validate_phone(cls, phone) -> ValidationResult:
        """Philippine mobile number: +639XXXXXXXXX or 09XXXXXXXXX, spaces and dashes ignored."""
        if not phone or not isinstance(phone, str):
            return ValidationResult(False, "Contact number is required")
        cleaned = re.sub(r'[\s-]', '', phone)
        if not cls.PHONE_PATTERN.match(cleaned):
            return ValidationResult(
                False, "Invalid phone number format. Use +639XXXXXXXXX or 09XXXXXXXXX"
            )
        return ValidationResult(True, sanitized_value=cleaned)

    @classmethod
    def validate_verification_status(cls, status: str) -> ValidationResult:
        if status not in VERIFICATION_STATUSES:
            return ValidationResult(
                False, f"Status must be one of: {', '.join(VERIFICATION_STATUSES)}"
            )
        return ValidationResult(True, sanitized_value=status)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize free text input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()
        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]
        sanitized = sanitized.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')
        return sanitized


def validate_email(email: str) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email)


def validate_username(username: str) -> ValidationResult:
    """Validate username"""
    return InputValidator.validate_username(username)


def validate_password_strength(password: str) -> ValidationResult:
    """Validate password strength"""
    return InputValidator.validate_password_strength(password)


def validate_mpin(mpin) -> ValidationResult:
    """Validate a 4-digit MPIN"""
    return InputValidator.validate_mpin(mpin)


def validate_phone(phone) -> ValidationResult:
    return InputValidator.validate_phone(phone)


def validate_verification_status(status: str) -> ValidationResult:
    return InputValidator.validate_verification_status(status)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)


def parse_id_list(ids: Iterable) -> List[int]:
    """Coerce ids from a bulk request, dropping anything that is not a positive int."""
    parsed = []
    for raw in ids or []:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            continue
        if value > 0 and value not in parsed:
            parsed.append(value)
    return parsed


def parse_int(value, default=0) -> int:
    """Integer conversion that falls back to `default` for blanks and junk."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_bool(value, default=False) -> bool:
    """Read a JSON or form flag; strings such as "false" and "0" are False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValidationError(f"Invalid boolean value: {value}")


def parse_positive_int(value) -> Optional[int]:
    """Whole numbers above zero ("3", 3, 3.0); anything else gives None."""
    if isinstance(value, bool):
        return None
    number = parse_float(value)
    if number is None or number <= 0 or number != int(number):
        return None
    return int(number)


def parse_float(value, default=None) -> Optional[float]:
    """Float conversion; blanks, junk, NaN and infinities give `default`."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_date(value) -> Optional[date]:
    """Accept a date, datetime or ISO string (YYYY-MM-DD, optionally with time)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def build_full_name(first_name=None, middle_name=None, last_name=None, extension=None) -> str:
    """Join the non-empty name parts with single spaces."""
    parts = [first_name, middle_name, last_name, extension]
    return ' '.join(p.strip() for p in parts if p and str(p).strip())
