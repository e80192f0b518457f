"""
Contract pipeline orchestrator.

Render → Authenticate → Upload → Metadata → PlaceFields is the fatal chain:
the first provider failure stops the run. The signing link falls back to the
viewer URL, and the invite, invoice and task stages are best-effort. Their
failures are recorded on the result and the run continues.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from src.documents.assets import load_assets
from src.documents.renderer import ContractRenderer, utc_now
from src.integrations.clients.mocks.clickup import ClickUpMockClient
from src.integrations.clients.mocks.signnow import SignNowMockClient
from src.integrations.clients.mocks.stripe_billing import StripeMockClient
from src.integrations.clients.real_http.clickup import ClickUpClient
from src.integrations.clients.real_http.signnow import SignNowClient
from src.integrations.clients.real_http.stripe_billing import StripeBillingClient
from src.integrations.contracts.interfaces import (
    BillingProvider,
    ContractNotifier,
    ContractRequest,
    ESignatureProvider,
    InvoiceResult,
    PipelineResult,
    PipelineStage,
    StageError,
    TaskTracker,
)
from src.integrations.policy.response_wrappers import ProviderError
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.notifier import SlackContractNotifier
from src.utils.config_loader import Settings

logger = logging.getLogger(__name__)


class ContractPipeline:
    def __init__(
        self,
        renderer: ContractRenderer,
        esign: ESignatureProvider,
        billing: BillingProvider,
        tasks: TaskTracker,
        notifier: Optional[ContractNotifier] = None,
    ):
        self.renderer = renderer
        self.esign = esign
        self.billing = billing
        self.tasks = tasks
        self.notifier = notifier

    def run(self, request: ContractRequest) -> PipelineResult:
        result = PipelineResult(
            success=False,
            contract_type=request.contract_type,
            client=request.client_name,
            company=request.client_company,
            amount=request.formatted_amount,
        )
        logger.info("Generating %s contract for %s at %s",
                    request.contract_type.value, request.client_name, request.client_company)

        stage = PipelineStage.RENDER
        try:
            content = self.renderer.render(request)

            stage = PipelineStage.AUTHENTICATE
            self.esign.authenticate()

            stage = PipelineStage.UPLOAD
            result.document_id = self.esign.upload_document(content, request.file_name)

            stage = PipelineStage.METADATA
            page_count = self.esign.get_page_count(result.document_id)

            stage = PipelineStage.PLACE_FIELDS
            self.esign.add_signature_fields(result.document_id, page_count, request.effective_date)
        except ProviderError as exc:
            logger.error("Pipeline stopped at %s: %s", stage.value, exc)
            result.stage = stage
            result.error = str(exc)
            result.message = f"Contract pipeline failed at {stage.value}"
            self._report(request, result)
            return result

        link = self.esign.create_signing_link(result.document_id, request.client_email)
        result.signing_link = link.url
        result.signing_link_error = link.error

        try:
            result.invite_sent = self.esign.send_invite(
                result.document_id, request.client_email, request.client_name
            )
        except Exception as exc:
            logger.error("SignNow invite failed for %s: %s", result.document_id, exc)
            result.invite_error = str(exc)

        try:
            result.stripe = self.billing.create_invoice(request)
            logger.info("STRIPE: Success - Invoice URL: %s", result.stripe.invoice_url)
        except Exception as exc:
            logger.error("STRIPE ERROR: %s", exc)
            result.stripe = StageError(error=str(exc), code=getattr(exc, "code", None))

        invoice_url = result.stripe.invoice_url if isinstance(result.stripe, InvoiceResult) else None
        try:
            result.clickup = self.tasks.create_task(request, result.document_id, invoice_url)
            logger.info("CLICKUP: Success - Task ID: %s", result.clickup.id)
        except Exception as exc:
            logger.error("CLICKUP ERROR: %s", exc)
            result.clickup = StageError(error=str(exc), code=getattr(exc, "code", None))

        result.success = True
        result.message = "Contract generated, uploaded to SignNow"
        if result.invoice_ok:
            result.message += ", Stripe invoice created"
        if result.task_ok:
            result.message += ", ClickUp task created"

        self._report(request, result)
        return result

    def _report(self, request: ContractRequest, result: PipelineResult) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.report(request, result)
        except Exception as exc:
            logger.error("Reporting failed for %s: %s", request.client_company, exc)

    def close(self) -> None:
        self.esign.close()
        self.tasks.close()


def build_pipeline(settings: Settings, clock: Callable = utc_now) -> ContractPipeline:
    """Wire real or mock providers, following INTEGRATIONS_MODE."""
    provider = settings.provider
    renderer = ContractRenderer(
        assets=load_assets(provider.signature_base64, provider.logo_base64),
        clock=clock,
        provider=provider,
    )

    notifier = None
    if settings.slack.configured:
        notifier = SlackContractNotifier(SlackChatService(settings.slack.bot_token, settings.slack.channel_id))

    if not settings.use_real_integrations():
        logger.info("Using mock integrations")
        return ContractPipeline(
            renderer=renderer,
            esign=SignNowMockClient(send_invite=settings.signnow.send_invite, app_url=settings.signnow.app_url),
            billing=StripeMockClient(),
            tasks=ClickUpMockClient(),
            notifier=notifier,
        )

    return ContractPipeline(
        renderer=renderer,
        esign=SignNowClient(
            settings.signnow,
            send_invite=settings.signnow.send_invite,
            timeout_seconds=settings.http_timeout_seconds,
            company=provider.company,
        ),
        billing=StripeBillingClient(settings.stripe.secret_key),
        tasks=ClickUpClient(settings.clickup, timeout_seconds=settings.http_timeout_seconds),
        notifier=notifier,
    )
