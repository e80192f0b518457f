"""
Integrations layer.
This package contains all code used to communicate with external systems:
- SignNow (document upload, signature fields, signing links)
- Stripe (customers, invoices, subscriptions)
- ClickUp (tracking tasks)
- Slack (channel summaries, modals, direct messages)

Key rule:
- Pipeline stages MUST NOT call external APIs directly.
- The orchestrator calls integration clients (under src/integrations/clients).
- We use MOCK clients during development and swap to REAL_HTTP clients when credentials exist.

Switching implementations:
- The selection of mock vs real clients happens in src/pipeline/orchestrator.build_pipeline
  (and src/api/dependencies.get_workspace_client for the read-only diagnostics).
"""

from .contracts.interfaces import (
    BillingMode,
    BillingProvider,
    ContractNotifier,
    ContractRequest,
    ContractVariant,
    ESignatureProvider,
    InvoiceResult,
    PipelineResult,
    PipelineStage,
    SigningLink,
    StageError,
    TaskResult,
    TaskTracker,
)
from .policy.response_wrappers import IntegrationResponseError, ProviderError

__all__ = [
    # interfaces
    "BillingMode", "BillingProvider", "ContractNotifier", "ContractRequest",
    "ContractVariant", "ESignatureProvider", "TaskTracker",
    # results
    "InvoiceResult", "PipelineResult", "PipelineStage", "SigningLink",
    "StageError", "TaskResult",
    # errors
    "IntegrationResponseError", "ProviderError",
]
