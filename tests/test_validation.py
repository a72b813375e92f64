"""Tests for input validation."""

from __future__ import annotations

import pytest

from scaletrack.validation import (
    format_validation_errors,
    validate_email,
    validate_password,
    validate_settings,
    validate_username,
    validate_weight,
)


class TestValidateWeight:
    @pytest.mark.parametrize("value", [82.4, "82.45", 1000, 0.1, 70])
    def test_valid(self, value) -> None:
        assert validate_weight(value).is_valid

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_required(self, value) -> None:
        result = validate_weight(value)
        assert result.errors == ["Weight is required"]

    def test_not_a_number(self) -> None:
        assert validate_weight("heavy").errors == ["Weight must be a valid number"]

    def test_bounds(self) -> None:
        assert "Weight must be greater than 0" in validate_weight(0).errors
        assert "Weight must be greater than 0" in validate_weight(-3).errors
        assert "Weight must be less than 1000" in validate_weight(1000.5).errors

    def test_decimal_places(self) -> None:
        assert validate_weight(82.456).errors == ["Weight can have at most 2 decimal places"]


class TestValidatePassword:
    def test_valid(self) -> None:
        assert validate_password("Secret123").is_valid

    def test_required(self) -> None:
        assert validate_password("").errors == ["Password is required"]

    def test_collects_every_problem(self) -> None:
        errors = validate_password("abc").errors
        assert "Password must be at least 8 characters long" in errors
        assert "Password must contain at least one uppercase letter" in errors
        assert "Password must contain at least one number" in errors
        assert "Password must contain at least one lowercase letter" not in errors

    def test_too_long(self) -> None:
        assert "Password must be less than 128 characters" in validate_password("Aa1" * 50).errors


class TestValidateUsername:
    def test_valid(self) -> None:
        assert validate_username("scale_fan_42").is_valid

    def test_length_and_characters(self) -> None:
        assert "Username must be at least 3 characters long" in validate_username("ab").errors
        assert "Username must be less than 30 characters" in validate_username("a" * 31).errors
        assert (
            "Username can only contain letters, numbers, and underscores"
            in validate_username("bad name!").errors
        )


class TestValidateEmail:
    def test_valid(self) -> None:
        assert validate_email("me@example.com").is_valid

    @pytest.mark.parametrize("email", ["me@example", "me example.com", "@example.com"])
    def test_invalid(self, email) -> None:
        assert not validate_email(email).is_valid


class TestValidateSettings:
    def test_defaults_are_valid(self) -> None:
        assert validate_settings(
            weight_goal=80, loss_rate=0.0055, buffer_value=0.0075, carb_fat_ratio=0.6
        ).is_valid

    def test_unset_fields_skipped(self) -> None:
        assert validate_settings().is_valid

    def test_rates_must_be_strictly_inside_unit_interval(self) -> None:
        errors = validate_settings(loss_rate=0, buffer_value=1, carb_fat_ratio=-0.1).errors
        assert errors == [
            "Loss rate must be between 0 and 1",
            "Buffer value must be between 0 and 1",
            "Carb fat ratio must be between 0 and 1",
        ]

    def test_goal_bounds(self) -> None:
        assert validate_settings(weight_goal=0).errors == ["Weight goal must be greater than 0"]
        assert validate_settings(weight_goal=1001).errors == ["Weight goal must be less than 1000"]


class TestFormatValidationErrors:
    def test_empty(self) -> None:
        assert format_validation_errors([]) == ""

    def test_single(self) -> None:
        assert format_validation_errors(["Weight is required"]) == "Weight is required"

    def test_numbered(self) -> None:
        assert format_validation_errors(["a", "b"]) == "1. a\n2. b"
