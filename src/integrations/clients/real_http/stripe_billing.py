"""
Real Stripe billing client.

Sprint 1 contracts are billed once through a finalized invoice; Phase 2
contracts start a monthly subscription whose first invoice is returned.
The ``api`` argument defaults to the ``stripe`` module and can be swapped in
tests for an object exposing the same resource classes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe

from src.integrations.contracts.interfaces import (
    BillingMode,
    BillingProvider,
    ContractRequest,
    ContractVariant,
    InvoiceResult,
)
from src.integrations.policy.response_wrappers import ProviderError, normalize_stripe_invoice

logger = logging.getLogger(__name__)

DAYS_UNTIL_DUE = 30
# One-time invoices are paid by bank transfer into the customer balance only
BANK_TRANSFER_PAYMENT_SETTINGS = {
    "payment_method_types": ["customer_balance"],
    "payment_method_options": {
        "customer_balance": {
            "funding_type": "bank_transfer",
            "bank_transfer": {"type": "us_bank_transfer"},
        },
    },
}
CURRENCY = "usd"


def invoice_description(request: ContractRequest) -> str:
    if request.contract_type == ContractVariant.SPRINT1:
        return "AI Visibility Sprint"
    return f"Phase 2 Retainer - {request.scope}"


class StripeBillingClient(BillingProvider):
    def __init__(self, api_key: str, api: Any = stripe) -> None:
        self.api_key = api_key
        self.api = api

    def create_invoice(self, request: ContractRequest) -> InvoiceResult:
        if not self.api_key:
            raise ProviderError("stripe", "STRIPE_SECRET_KEY not set")

        try:
            customer_id = self.find_or_create_customer(
                request.client_email, request.client_name, request.client_company
            )
            if request.billing_mode == BillingMode.RECURRING:
                return self._create_subscription(request, customer_id)
            return self._create_one_time_invoice(request, customer_id)
        except stripe.StripeError as exc:
            raise ProviderError(
                "stripe",
                exc.user_message or str(exc),
                status_code=getattr(exc, "http_status", None),
                code=getattr(exc, "code", None),
            ) from exc

    def find_or_create_customer(self, email: str, name: str, company: str) -> str:
        existing = self.api.Customer.list(email=email, limit=1, api_key=self.api_key)
        data = existing["data"] if existing else []
        if data:
            customer_id = data[0]["id"]
            logger.info("STRIPE: Reusing customer %s for %s", customer_id, email)
            return customer_id

        customer = self.api.Customer.create(
            email=email,
            name=name,
            metadata={"company": company},
            api_key=self.api_key,
        )
        logger.info("STRIPE: Customer created: %s", customer["id"])
        return customer["id"]

    def _create_one_time_invoice(self, request: ContractRequest, customer_id: str) -> InvoiceResult:
        logger.info("STRIPE: Creating invoice for %d cents", request.amount_cents)
        invoice = self.api.Invoice.create(
            customer=customer_id,
            collection_method="send_invoice",
            days_until_due=DAYS_UNTIL_DUE,
            auto_advance=True,
            payment_settings=BANK_TRANSFER_PAYMENT_SETTINGS,
            metadata={"company": request.client_company, "contract_type": request.contract_type.value},
            api_key=self.api_key,
        )
        self.api.InvoiceItem.create(
            customer=customer_id,
            invoice=invoice["id"],
            amount=request.amount_cents,
            currency=CURRENCY,
            description=invoice_description(request),
            api_key=self.api_key,
        )
        finalized = normalize_stripe_invoice(self.api.Invoice.finalize_invoice(invoice["id"], api_key=self.api_key))
        logger.info("STRIPE: Invoice %s finalized, status: %s", finalized.id, finalized.status)

        return InvoiceResult(
            customer_id=customer_id,
            invoice_id=finalized.id,
            invoice_url=finalized.hosted_invoice_url,
            invoice_pdf=finalized.invoice_pdf,
            mode=BillingMode.ONE_TIME,
        )

    def _create_subscription(self, request: ContractRequest, customer_id: str) -> InvoiceResult:
        description = invoice_description(request)
        logger.info("STRIPE: Creating monthly price for %d cents", request.amount_cents)
        price = self.api.Price.create(
            unit_amount=request.amount_cents,
            currency=CURRENCY,
            recurring={"interval": "month"},
            product_data={"name": description},
            api_key=self.api_key,
        )
        subscription = self.api.Subscription.create(
            customer=customer_id,
            items=[{"price": price["id"]}],
            collection_method="send_invoice",
            days_until_due=DAYS_UNTIL_DUE,
            metadata={"company": request.client_company, "contract_type": request.contract_type.value},
            api_key=self.api_key,
        )
        logger.info("STRIPE: Subscription created: %s", subscription["id"])

        latest = self._latest_invoice(subscription)
        if latest is None:
            raise ProviderError("stripe", f"Subscription {subscription['id']} has no invoice")

        return InvoiceResult(
            customer_id=customer_id,
            invoice_id=latest.id,
            invoice_url=latest.hosted_invoice_url,
            invoice_pdf=latest.invoice_pdf,
            subscription_id=subscription["id"],
            mode=BillingMode.RECURRING,
        )

    def _latest_invoice(self, subscription: Dict[str, Any]):
        latest: Optional[Any] = subscription.get("latest_invoice")
        if not latest:
            return None
        if isinstance(latest, str):
            latest = self.api.Invoice.retrieve(latest, api_key=self.api_key)

        invoice = normalize_stripe_invoice(latest)
        if invoice.status == "draft":
            invoice = normalize_stripe_invoice(self.api.Invoice.finalize_invoice(invoice.id, api_key=self.api_key))
        return invoice
