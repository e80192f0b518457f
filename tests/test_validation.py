from datetime import date
from decimal import Decimal

import pytest

from src.integrations.contracts.interfaces import ContractVariant
from src.pipeline.validation import (
    ContractValidationError,
    build_contract_request,
    extract_interaction_payload,
    extract_view_values,
    normalize_contract_type,
    parse_amount,
)

TODAY = date(2026, 10, 19)


def test_valid_payload_is_normalized(valid_payload):
    request = build_contract_request(valid_payload, today=TODAY)

    assert request.contract_type == ContractVariant.SPRINT1
    assert request.client_email == "john@acme.com"
    assert request.amount == Decimal("5000")
    assert request.effective_date == TODAY
    assert request.client_name == "John Doe"
    assert request.file_name == "Sprint1_AcmeCorp_MSA_SOW.docx"


def test_missing_field_names_first_missing(valid_payload):
    payload = dict(valid_payload, client_title="  ", amount="")

    with pytest.raises(ContractValidationError) as exc_info:
        build_contract_request(payload, today=TODAY)

    err = exc_info.value
    assert err.message == "Incomplete submission - missing field: client_title"
    assert err.field_errors == {"client_title": "Title is missing", "amount": "Amount is missing"}


def test_unknown_contract_type_defaults_to_sprint1(valid_payload):
    request = build_contract_request(dict(valid_payload, contract_type="enterprise"), today=TODAY)
    assert request.contract_type == ContractVariant.SPRINT1


def test_unknown_contract_type_rejected_when_strict(valid_payload):
    with pytest.raises(ContractValidationError) as exc_info:
        build_contract_request(dict(valid_payload, contract_type="enterprise"), today=TODAY, strict_contract_type=True)

    assert "contract_type" in exc_info.value.field_errors
    assert exc_info.value.message.startswith("Validation failed: ")


def test_bad_email_and_amount_are_collected(valid_payload):
    payload = dict(valid_payload, client_email="not-an-email", amount="-5")

    with pytest.raises(ContractValidationError) as exc_info:
        build_contract_request(payload, today=TODAY)

    assert set(exc_info.value.field_errors) == {"client_email", "amount"}
    assert len(exc_info.value.error_lines()) == 2


def test_explicit_date_and_deliverable_fallback(valid_payload):
    payload = dict(valid_payload, date="2026-12-01", deliverable="Full AEO audit")
    request = build_contract_request(payload, today=TODAY)

    assert request.effective_date == date(2026, 12, 1)
    assert request.scope == "Full AEO audit"


def test_invalid_date_is_rejected(valid_payload):
    with pytest.raises(ContractValidationError) as exc_info:
        build_contract_request(dict(valid_payload, date="19/10/2026"), today=TODAY)
    assert "date" in exc_info.value.field_errors


def test_scope_required_when_asked(valid_payload):
    with pytest.raises(ContractValidationError) as exc_info:
        build_contract_request(valid_payload, today=TODAY, require_scope=True)
    assert exc_info.value.field_errors == {"scope": "Scope of Work is missing"}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Sprint 1", ContractVariant.SPRINT1),
        ("P2", ContractVariant.PHASE2),
        ("phase2", ContractVariant.PHASE2),
        ("retainer", None),
        (None, None),
    ],
)
def test_normalize_contract_type(raw, expected):
    assert normalize_contract_type(raw) == expected


def test_parse_amount():
    assert parse_amount("$5,000.50") == Decimal("5000.50")
    assert parse_amount("0") is None
    assert parse_amount("abc") is None
    assert parse_amount("NaN") is None


def test_extract_view_values_handles_select_and_text():
    state = {
        "values": {
            "contract_type": {"value": {"type": "static_select", "selected_option": {"value": "phase2"}}},
            "client_company": {"value": {"type": "plain_text_input", "value": "Acme Corp"}},
            "scope": {"value": {"type": "plain_text_input", "value": None}},
        }
    }

    assert extract_view_values(state) == {"contract_type": "phase2", "client_company": "Acme Corp"}


def test_extract_interaction_payload():
    assert extract_interaction_payload({"payload": '{"type": "view_submission"}'}) == {"type": "view_submission"}
    assert extract_interaction_payload({"payload": "not json"}) is None
    assert extract_interaction_payload({"type": "block_actions"}) == {"type": "block_actions"}
    assert extract_interaction_payload({}) is None
