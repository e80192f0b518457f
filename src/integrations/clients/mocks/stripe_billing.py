"""
Stripe — MOCK billing client.

⚠️  Mock implementation for development and testing. Returns realistic
    looking invoice and subscription ids without calling Stripe.
"""

import logging
from typing import List, Optional

from src.integrations.contracts.interfaces import BillingMode, BillingProvider, ContractRequest, InvoiceResult
from src.integrations.policy.response_wrappers import ProviderError

logger = logging.getLogger(__name__)


class StripeMockClient(BillingProvider):
    def __init__(self, fail_with: Optional[str] = None):
        self._fail_with = fail_with
        self._counter = 0
        self.requests: List[ContractRequest] = []

    def create_invoice(self, request: ContractRequest) -> InvoiceResult:
        self.requests.append(request)
        if self._fail_with:
            raise ProviderError("stripe", self._fail_with)

        self._counter += 1
        invoice_id = f"in_mock{self._counter:06d}"
        recurring = request.billing_mode == BillingMode.RECURRING
        logger.info("[STRIPE MOCK] %s for %s: %d cents",
                    "Subscription" if recurring else "Invoice", request.client_email, request.amount_cents)
        return InvoiceResult(
            customer_id=f"cus_mock{self._counter:06d}",
            invoice_id=invoice_id,
            invoice_url=f"https://invoice.stripe.mock/i/{invoice_id}",
            invoice_pdf=f"https://invoice.stripe.mock/i/{invoice_id}/pdf",
            subscription_id=f"sub_mock{self._counter:06d}" if recurring else None,
            mode=request.billing_mode,
        )
