"""Input validation for entries, accounts and goal settings.

Validators collect every problem rather than stopping at the first one, so
the CLI can show the user a complete list.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

MIN_WEIGHT_EXCLUSIVE = 0.0
MAX_WEIGHT = 1000.0
WEIGHT_DECIMAL_PLACES = 2

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

EMAIL_MAX_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class ValidationResult:
    """Outcome of a validation check."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _decimal_places(value: float) -> int:
    try:
        exponent = Decimal(str(value)).as_tuple().exponent
    except InvalidOperation:
        return 0
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def validate_weight(weight: Union[str, float, int, None]) -> ValidationResult:
    """Check a weight value typed in by the user or read from a photo."""
    result = ValidationResult()

    if weight is None or (isinstance(weight, str) and weight.strip() == ""):
        result.errors.append("Weight is required")
        return result

    try:
        value = float(weight)
    except (TypeError, ValueError):
        value = math.nan

    if math.isnan(value):
        result.errors.append("Weight must be a valid number")
        return result

    if value <= MIN_WEIGHT_EXCLUSIVE:
        result.errors.append("Weight must be greater than 0")
    if value > MAX_WEIGHT:
        result.errors.append("Weight must be less than 1000")
    if _decimal_places(value) > WEIGHT_DECIMAL_PLACES:
        result.errors.append("Weight can have at most 2 decimal places")

    return result


def validate_password(password: Optional[str]) -> ValidationResult:
    result = ValidationResult()

    if not password or password.strip() == "":
        result.errors.append("Password is required")
        return result

    if len(password) < PASSWORD_MIN_LENGTH:
        result.errors.append("Password must be at least 8 characters long")
    if len(password) > PASSWORD_MAX_LENGTH:
        result.errors.append("Password must be less than 128 characters")
    if not re.search(r"[A-Z]", password):
        result.errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        result.errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        result.errors.append("Password must contain at least one number")

    return result


def validate_username(username: Optional[str]) -> ValidationResult:
    result = ValidationResult()

    if not username or username.strip() == "":
        result.errors.append("Username is required")
        return result

    if len(username) < USERNAME_MIN_LENGTH:
        result.errors.append("Username must be at least 3 characters long")
    if len(username) > USERNAME_MAX_LENGTH:
        result.errors.append("Username must be less than 30 characters")
    if not USERNAME_PATTERN.match(username):
        result.errors.append(
            "Username can only contain letters, numbers, and underscores"
        )

    return result


def validate_email(email: Optional[str]) -> ValidationResult:
    result = ValidationResult()

    if not email or email.strip() == "":
        result.errors.append("Email is required")
        return result

    if len(email) > EMAIL_MAX_LENGTH:
        result.errors.append("Email must be less than 254 characters")
    if not EMAIL_PATTERN.match(email):
        result.errors.append("Email must be a valid email address")

    return result


def validate_settings(
    weight_goal: Optional[float] = None,
    loss_rate: Optional[float] = None,
    buffer_value: Optional[float] = None,
    carb_fat_ratio: Optional[float] = None,
) -> ValidationResult:
    """
    Check goal settings. Fields left as None are not checked.

    The three rates must lie strictly between 0 and 1.
    """
    result = ValidationResult()

    if weight_goal is not None:
        if weight_goal <= 0:
            result.errors.append("Weight goal must be greater than 0")
        if weight_goal > MAX_WEIGHT:
            result.errors.append("Weight goal must be less than 1000")

    if loss_rate is not None and not 0 < loss_rate < 1:
        result.errors.append("Loss rate must be between 0 and 1")

    if buffer_value is not None and not 0 < buffer_value < 1:
        result.errors.append("Buffer value must be between 0 and 1")

    if carb_fat_ratio is not None and not 0 < carb_fat_ratio < 1:
        result.errors.append("Carb fat ratio must be between 0 and 1")

    return result


def format_validation_errors(errors: list[str]) -> str:
    """Join errors for display: single message as-is, several numbered."""
    if not errors:
        return ""
    if len(errors) == 1:
        return errors[0]
    return "\n".join(f"{i}. {error}" for i, error in enumerate(errors, start=1))
