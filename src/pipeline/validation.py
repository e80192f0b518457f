"""Intake validation for contract submissions.

Every intake adapter (JSON webhook, Slack modal, Workflow Builder webhook)
hands a flat dictionary to `build_contract_request`. It either returns a
normalized `ContractRequest` or raises `ContractValidationError` with
per-field messages, before any external system is touched.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from src.integrations.contracts.interfaces import ContractRequest, ContractVariant

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "contract_type",
    "client_company",
    "client_first",
    "client_last",
    "client_title",
    "client_email",
    "amount",
)

FIELD_LABELS = {
    "contract_type": "Contract Type",
    "client_company": "Company Name",
    "client_first": "First Name",
    "client_last": "Last Name",
    "client_title": "Title",
    "client_email": "Email",
    "amount": "Amount",
    "scope": "Scope of Work",
    "date": "Date",
}

_CONTRACT_TYPE_ALIASES = {
    "sprint1": ContractVariant.SPRINT1,
    "sprint 1": ContractVariant.SPRINT1,
    "s1": ContractVariant.SPRINT1,
    "phase2": ContractVariant.PHASE2,
    "phase 2": ContractVariant.PHASE2,
    "p2": ContractVariant.PHASE2,
}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_AMOUNT_NOISE_RE = re.compile(r"[$,\s]")


@dataclass
class ContractValidationError(Exception):
    """Exception raised for invalid contract submissions.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: top-level message; names the first missing field when one is missing.
    """

    field_errors: Dict[str, str] = field(default_factory=dict)
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def error_lines(self) -> List[str]:
        return list(self.field_errors.values())


def _strip(v: Any) -> str:
    return "" if v is None else str(v).strip()


def add_error(errors: Dict[str, str], field_name: str, message: str) -> None:
    if field_name not in errors:
        errors[field_name] = message


def normalize_contract_type(raw: Any) -> Optional[ContractVariant]:
    """Map a free-form contract type to a variant, or None when unrecognized."""
    return _CONTRACT_TYPE_ALIASES.get(_strip(raw).lower())


def parse_amount(raw: Any) -> Optional[Decimal]:
    """``"$5,000"`` -> ``Decimal("5000")``. None unless the result is a positive number."""
    cleaned = _AMOUNT_NOISE_RE.sub("", _strip(raw))
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def build_contract_request(
    payload: Mapping[str, Any],
    *,
    today: date,
    strict_contract_type: bool = False,
    require_scope: bool = False,
) -> ContractRequest:
    errors: Dict[str, str] = {}

    required = REQUIRED_FIELDS + (("scope",) if require_scope else ())
    missing = [name for name in required if not _strip(payload.get(name))]
    for name in missing:
        add_error(errors, name, f"{FIELD_LABELS[name]} is missing")

    raw_type = _strip(payload.get("contract_type"))
    contract_type = normalize_contract_type(raw_type)
    if raw_type and contract_type is None:
        if strict_contract_type:
            add_error(errors, "contract_type", f'Contract Type "{raw_type}" must be "Sprint 1" or "Phase 2"')
        else:
            logger.warning("Unrecognized contract_type %r, defaulting to %s", raw_type, ContractVariant.SPRINT1.value)
            contract_type = ContractVariant.SPRINT1

    email = _strip(payload.get("client_email")).lower()
    if email and not _EMAIL_RE.match(email):
        add_error(errors, "client_email", f'Email "{email}" doesn\'t look like a valid email')

    raw_amount = _strip(payload.get("amount"))
    amount = parse_amount(raw_amount)
    if raw_amount and amount is None:
        add_error(errors, "amount", f'Amount "{raw_amount}" must be a positive number')

    effective_date = today
    raw_date = _strip(payload.get("date"))
    if raw_date:
        try:
            effective_date = date.fromisoformat(raw_date)
        except ValueError:
            add_error(errors, "date", f'Date "{raw_date}" must be YYYY-MM-DD')

    if errors:
        if missing:
            message = f"Incomplete submission - missing field: {missing[0]}"
        else:
            message = "Validation failed: " + "; ".join(errors.values())
        raise ContractValidationError(field_errors=errors, message=message)

    scope = _strip(payload.get("scope")) or _strip(payload.get("deliverable"))
    return ContractRequest(
        contract_type=contract_type,
        client_company=_strip(payload.get("client_company")),
        client_first=_strip(payload.get("client_first")),
        client_last=_strip(payload.get("client_last")),
        client_title=_strip(payload.get("client_title")),
        client_email=email,
        amount=amount,
        effective_date=effective_date,
        scope=scope,
    )


def extract_view_values(view_state: Mapping[str, Any]) -> Dict[str, str]:
    """Flatten Slack modal state into ``{block_id: value}``."""
    result: Dict[str, str] = {}
    values = (view_state or {}).get("values") or {}
    for block_id, actions in values.items():
        if not isinstance(actions, dict) or not actions:
            continue
        action = actions.get("value") or next(iter(actions.values()))
        if not isinstance(action, dict):
            continue
        if action.get("type") == "static_select":
            selected = action.get("selected_option") or {}
            if selected.get("value") is not None:
                result[block_id] = selected["value"]
        elif action.get("value") is not None:
            result[block_id] = action["value"]
    return result


def extract_interaction_payload(form: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Slack posts interactions as a form with a JSON ``payload`` field."""
    raw = form.get("payload") if form else None
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Slack interaction payload is not valid JSON")
            return None
        return parsed if isinstance(parsed, dict) else None
    if form and form.get("type"):
        return dict(form)
    return None
