"""Tests for domain-name and test-email form validation."""

from __future__ import annotations

import pytest

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domains.validation import TestEmailForm, format_sender, validate_domain


class TestValidateDomain:
    @pytest.mark.parametrize(
        "value",
        [
            "example.com",
            "mail.example.co.uk",
            "my-company.io",
            "a1.b2.example.org",
            "  padded.com  ",
        ],
    )
    def test_accepts(self, value: str) -> None:
        assert validate_domain(value) == value.strip()

    @pytest.mark.parametrize(
        "value",
        [
            "localhost",
            "-bad.com",
            "bad-.com",
            "example.c",
            "example.123",
            "exa mple.com",
            "example..com",
            "ex_ample.com",
            "http://example.com",
            ("a" * 64) + ".com",
        ],
    )
    def test_rejects(self, value: str) -> None:
        with pytest.raises(ValidationError, match="Invalid domain format") as exc_info:
            validate_domain(value)

        assert exc_info.value.field == "domain"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_required(self, value: str | None) -> None:
        with pytest.raises(ValidationError, match="Domain is required"):
            validate_domain(value)


class TestTestEmailForm:
    def test_valid_form(self) -> None:
        form = TestEmailForm.validate(
            from_user=" hello ", to=" bob@example.com ", subject="Hi", message="Line 1\nLine 2"
        )

        assert form.from_user == "hello"
        assert form.to == "bob@example.com"
        assert form.html() == "<p>Line 1<br>Line 2</p>"

    @pytest.mark.parametrize(
        ("fields", "message", "field"),
        [
            ({"to": "not-an-email"}, "Invalid email address", "to"),
            ({"from_user": ""}, "From user is required", "from_user"),
            ({"from_user": "hello world"}, "Invalid email username format", "from_user"),
            ({"subject": "  "}, "Subject is required", "subject"),
            ({"message": ""}, "Message is required", "message"),
        ],
    )
    def test_invalid_fields(self, fields: dict[str, str], message: str, field: str) -> None:
        values = {"from_user": "hello", "to": "bob@example.com", "subject": "Hi", "message": "Yo"}
        values.update(fields)

        with pytest.raises(ValidationError, match=message) as exc_info:
            TestEmailForm.validate(**values)

        assert exc_info.value.field == field


class TestFormatSender:
    def test_capitalizes_name(self) -> None:
        assert format_sender("hello@example.com", "hello") == "Hello <hello@example.com>"

    def test_bare_address_without_name(self) -> None:
        assert format_sender("hello@example.com", None) == "hello@example.com"
        assert format_sender("hello@example.com", "") == "hello@example.com"
