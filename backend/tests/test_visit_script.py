"""Tests for visitor script config parsing helpers."""

import pytest

from scripts import visit_site as visit_script


def test_parse_non_negative_float_accepts_zero() -> None:
    parsed = visit_script._parse_non_negative_float(
        "0",
        default=12.0,
        label="VISIT_SUBMIT_AFTER_SECONDS",
    )
    assert parsed == 0


def test_parse_non_negative_float_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        visit_script._parse_non_negative_float(
            "-1",
            default=12.0,
            label="VISIT_SUBMIT_AFTER_SECONDS",
        )


def test_parse_positive_float_rejects_zero() -> None:
    with pytest.raises(ValueError):
        visit_script._parse_positive_float(
            "0",
            default=12.0,
            label="VISIT_DURATION_SECONDS",
        )


def test_parse_positive_float_uses_default_for_blank_values() -> None:
    assert visit_script._parse_positive_float(" ", default=12.5, label="VISIT_DURATION_SECONDS") == 12.5


def test_parse_positive_float_rejects_non_numbers() -> None:
    with pytest.raises(ValueError, match="must be a number"):
        visit_script._parse_positive_float("soon", default=12.0, label="VISIT_DURATION_SECONDS")
