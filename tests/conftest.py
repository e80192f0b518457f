"""Pytest fixtures shared by the contract pipeline tests."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.integrations.contracts.interfaces import ContractRequest, ContractVariant
from src.utils.config_loader import load_settings

FIXED_NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sprint_request():
    return ContractRequest(
        contract_type=ContractVariant.SPRINT1,
        client_company="Acme Corp",
        client_first="John",
        client_last="Doe",
        client_title="CEO",
        client_email="john@acme.com",
        amount=Decimal("5000"),
        effective_date=date(2026, 10, 19),
    )


@pytest.fixture
def phase2_request():
    return ContractRequest(
        contract_type=ContractVariant.PHASE2,
        client_company="Globex, Inc.",
        client_first="Jane",
        client_last="Smith",
        client_title="VP Marketing",
        client_email="jane@globex.com",
        amount=Decimal("2500.50"),
        effective_date=date(2026, 11, 1),
        scope="SEO authority link building - 10 links/month",
    )


@pytest.fixture
def mock_settings():
    return load_settings({"INTEGRATIONS_MODE": "mock"})


@pytest.fixture
def valid_payload():
    return {
        "contract_type": "sprint1",
        "client_company": "Acme Corp",
        "client_first": "John",
        "client_last": "Doe",
        "client_title": "CEO",
        "client_email": "John@Acme.com",
        "amount": "$5,000",
    }
