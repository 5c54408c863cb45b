import csv
import io

import pytest
from werkzeug.datastructures import MultiDict

from jdigital.errors import ValidationFailed
from jdigital.forms import AuditLeadForm, LeadForm, PasswordChangeForm, PortfolioForm, build_formdata, validate_payload
from jdigital.repository import paginate
from jdigital.storage import build_object_path
from jdigital.utils import escape_like, normalize_industry, nullable, parse_list, sanitize_html, slugify, to_csv_cell


def test_slugify_collapses_punctuation_and_case():
    assert slugify("MetroBuild Prime!!") == "metrobuild-prime"
    assert slugify("  Business / E-Commerce  ") == "business-e-commerce"
    assert slugify("") == ""
    assert slugify(None) == ""


def test_parse_list_trims_and_drops_blank_lines():
    assert parse_list("Design\n\n  SEO  \r\nHosting\n") == ["Design", "SEO", "Hosting"]
    assert parse_list("") == []
    assert parse_list(None) == []


def test_normalize_industry_collapses_whitespace():
    assert normalize_industry("  Real   Estate ") == "real estate"
    assert normalize_industry(None) == ""


def test_nullable_and_escape_like():
    assert nullable("   ") is None
    assert nullable(" value ") == "value"
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_sanitize_html_strips_scripts_and_keeps_formatting():
    cleaned = sanitize_html('<p>Hello <strong>there</strong><script>alert(1)</script></p>')
    assert "<script>" not in cleaned
    assert "<strong>there</strong>" in cleaned


def test_csv_cells_survive_a_csv_reader():
    values = ['He said "hi"', "line one\nline two", None, "a,b", 42]
    line = ",".join(to_csv_cell(value) for value in values)
    assert to_csv_cell(None) == ""
    assert to_csv_cell('x"y') == '"x""y"'

    row = next(csv.reader(io.StringIO(line)))
    assert row == ['He said "hi"', "line one\nline two", "", "a,b", "42"]


def test_paginate_clamps_bad_input():
    assert paginate(1, 10) == {"take": 10, "skip": 0, "page": 1, "page_size": 10}
    assert paginate(3, 12)["skip"] == 24
    assert paginate("-4", "x") == {"take": 10, "skip": 0, "page": 1, "page_size": 10}


def test_build_object_path_replaces_unsafe_characters():
    assert build_object_path("My Logo (final).PNG", now_ms=1700000000000) == "uploads/1700000000000-my-logo--final-.png"


def test_build_formdata_joins_lists_and_skips_none():
    formdata = build_formdata({"tags": ["A", "B"], "skip": None, "title": "X"})
    assert formdata.get("tags") == "A\nB"
    assert "skip" not in formdata
    original = MultiDict({"title": "Y"})
    assert build_formdata(original) is original


def test_build_formdata_converts_scalars_to_text():
    formdata = build_formdata({"position": 3, "price": 19999.5, "is_active": True, "is_popular": False})
    assert formdata.get("position") == "3"
    assert formdata.get("price") == "19999.5"
    assert formdata.get("is_active") == "y"
    assert formdata.get("is_popular") == ""


def test_lead_form_accepts_complete_payload(lead_payload):
    data = validate_payload(LeadForm, lead_payload)
    assert data["full_name"] == "Maria Santos"
    assert data["preferred_contact_value"] == "maria@example.com"


def test_lead_form_reports_first_invalid_field(lead_payload):
    lead_payload["email"] = "not-an-email"
    lead_payload["message_goals"] = ""
    with pytest.raises(ValidationFailed) as excinfo:
        validate_payload(LeadForm, lead_payload)
    assert set(excinfo.value.errors) == {"email", "message_goals"}
    assert excinfo.value.message == "Email: Invalid email address."
    assert excinfo.value.errors["message_goals"] == ["Please enter your message or goals."]


def test_audit_form_rejects_invalid_link():
    with pytest.raises(ValidationFailed) as excinfo:
        validate_payload(AuditLeadForm, {
            "full_name": "Jo Cruz",
            "email": "jo@example.com",
            "business_name": "Cruz Dental",
            "website_or_facebook_link": "not a link",
        })
    assert excinfo.value.errors["website_or_facebook_link"] == ["Please provide a valid website or Facebook link."]


def test_password_change_requires_matching_confirmation():
    with pytest.raises(ValidationFailed) as excinfo:
        validate_payload(PasswordChangeForm, {
            "current_password": "admin-pass-123",
            "new_password": "brand-new-pass-1",
            "confirm_password": "brand-new-pass-2",
        })
    assert excinfo.value.errors["confirm_password"] == ["Passwords do not match"]


def test_portfolio_form_keeps_default_position_for_blank_input():
    data = validate_payload(PortfolioForm, {
        "title": "Harbor Cafe",
        "industry": "Restaurant & Cafe",
        "cover_image": "/placeholders/project-1.svg",
        "status": "DEMO",
        "position": "",
    })
    assert data["position"] == 0
    assert data["status"] == "DEMO"
