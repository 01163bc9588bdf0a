"""Tests for listing request validation and age formatting."""

import pytest
from pydantic import ValidationError

from pickmypit.posts.schemas import PostCreateRequest, PostUpdateRequest, contains_contact_details, format_age

VALID = {
    "title": "Playful beagle",
    "description": "Vaccinated, house trained and great with kids.",
    "category": "Beagle",
    "species": "Dog",
}


class TestFormatAge:
    @pytest.mark.parametrize(
        ("value", "unit", "expected"),
        [
            (1, "months", "1 month old"),
            (3, "years", "3 years old"),
            (1, "days", "1 day old"),
            (2, "weeks", "2 weeks old"),
            (None, "years", ""),
            (0, "years", ""),
            (2, None, ""),
        ],
    )
    def test_format(self, value, unit, expected):
        assert format_age(value, unit) == expected


class TestContactDetails:
    @pytest.mark.parametrize(
        "text",
        ["Call 9876543210", "call +91 987 654 3210", "see http://example.com/pets", "HTTPS://EXAMPLE.COM"],
    )
    def test_detected(self, text):
        assert contains_contact_details(text)

    def test_plain_text_allowed(self):
        assert not contains_contact_details("Two year old labrador, loves walks")


class TestCreateRequest:
    def test_valid(self):
        body = PostCreateRequest(**VALID)
        assert body.type == "free"
        assert body.images == []

    def test_phone_in_title_rejected(self):
        with pytest.raises(ValidationError, match="phone numbers or links"):
            PostCreateRequest(**{**VALID, "title": "Call 9876543210"})

    def test_link_in_description_rejected(self):
        with pytest.raises(ValidationError, match="phone numbers or links"):
            PostCreateRequest(**{**VALID, "description": "More photos at https://example.com/dog"})

    def test_short_description_rejected(self):
        with pytest.raises(ValidationError):
            PostCreateRequest(**{**VALID, "description": "too short"})

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            PostCreateRequest(**{**VALID, "amount": -1})

    def test_unknown_age_unit_rejected(self):
        with pytest.raises(ValidationError):
            PostCreateRequest(**{**VALID, "age": {"value": 2, "unit": "decades"}})


class TestUpdateRequest:
    def test_status_is_not_accepted(self):
        body = PostUpdateRequest(status="available", title="New title here")
        assert "status" not in body.model_dump()

    def test_contact_check_applies(self):
        with pytest.raises(ValidationError):
            PostUpdateRequest(title="Visit https://spam.example")
