"""
Tests for request parsing
"""
import pytest

from allergy_card.models import AllergyCardRequest


def test_from_body_trims_and_normalizes():
    request = AllergyCardRequest.from_body({
        "email": " a@b.com ",
        "name": "Jo",
        "contact_name": "Sam",
        "contact_phone": 5550100,
        "language": "ES",
        "allergens": "Tree Nuts, gluten",
    })
    assert request.email == "a@b.com"
    assert request.contact_phone == "5550100"
    assert request.language == "es"
    assert request.allergens == {"tree_nuts"}


def test_missing_values_are_empty_strings():
    request = AllergyCardRequest.from_body({"email": "a@b.com", "name": None})
    assert request.name == ""
    assert request.contact_name == ""
    assert request.language == "en"
    assert request.allergens == frozenset()


def test_missing_fields():
    assert AllergyCardRequest(email="").missing_fields() == ["email"]
    assert AllergyCardRequest(email="").missing_fields(require_name=True) == ["email", "name"]
    assert AllergyCardRequest(email="a@b.com", name="Jo").missing_fields(require_name=True) == []


def test_log_dict_hides_personal_fields():
    request = AllergyCardRequest(email="a@b.com", name="Jo", contact_phone="555", allergens=frozenset({"soy"}))
    data = request.to_log_dict()
    assert data == {"language": "en", "allergens": ["soy"], "has_contact": True}


def test_free_text_fields_are_single_line():
    request = AllergyCardRequest.from_body({
        "email": "a@b.com",
        "name": "Jo\nSmith",
        "contact_name": "Sam\r\n Lee",
        "contact_phone": "555\n0100",
    })
    assert request.name == "Jo Smith"
    assert request.contact_name == "Sam Lee"
    assert request.contact_phone == "555 0100"


@pytest.mark.parametrize("value", [
    "a@b.com, victim@evil.org",
    "a@b.com;victim@evil.org",
    "a@b.com victim@evil.org",
    "Jo <a@b.com>",
    "a@b.com\nBcc: victim@evil.org",
    "not-an-address",
    "a@b",
    "@b.com",
    ["a@b.com, victim@evil.org"],
])
def test_email_must_be_one_address(value):
    request = AllergyCardRequest.from_body({"email": value})
    assert request.email == ""
    assert request.missing_fields() == ["email"]


@pytest.mark.parametrize("value", ["a@b.com", " jo.smith+cards@mail.example.org ", ["a@b.com"]])
def test_single_address_accepted(value):
    assert AllergyCardRequest.from_body({"email": value}).email in ("a@b.com", "jo.smith+cards@mail.example.org")
