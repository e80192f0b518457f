from src.documents.renderer import ContractRenderer
from src.integrations.clients.mocks.clickup import ClickUpMockClient
from src.integrations.clients.mocks.signnow import SignNowMockClient
from src.integrations.clients.mocks.stripe_billing import StripeMockClient
from src.integrations.contracts.interfaces import BillingMode, ContractNotifier, PipelineStage, StageError
from src.pipeline.orchestrator import ContractPipeline, build_pipeline
from src.pipeline.notifier import SlackContractNotifier
from src.utils.config_loader import load_settings


class FakeRenderer:
    def __init__(self):
        self.rendered = []

    def render(self, request):
        self.rendered.append(request)
        return b"PK-docx"


class RecordingNotifier(ContractNotifier):
    def __init__(self, fail=False):
        self.reports = []
        self.fail = fail

    def report(self, request, result):
        self.reports.append(result)
        if self.fail:
            raise RuntimeError("slack down")


def _pipeline(esign=None, billing=None, tasks=None, notifier=None):
    return ContractPipeline(
        renderer=FakeRenderer(),
        esign=esign or SignNowMockClient(),
        billing=billing or StripeMockClient(),
        tasks=tasks or ClickUpMockClient(),
        notifier=notifier,
    )


def test_full_run_succeeds(sprint_request):
    esign = SignNowMockClient()
    tasks = ClickUpMockClient()
    notifier = RecordingNotifier()

    result = _pipeline(esign=esign, tasks=tasks, notifier=notifier).run(sprint_request)

    assert result.success is True
    assert result.message == "Contract generated, uploaded to SignNow, Stripe invoice created, ClickUp task created"
    assert result.document_id == "mockdoc000001"
    assert result.signing_link == "https://signnow.mock/s/mockdoc000001"
    assert result.invite_sent is False
    assert result.stripe.mode == BillingMode.ONE_TIME
    assert [name for name, _ in esign.calls] == [
        "authenticate", "upload_document", "get_page_count", "add_signature_fields", "create_signing_link",
    ]
    assert esign.calls[3][1] == ("mockdoc000001", 8, "2026-10-19")
    assert tasks.tasks[0]["invoice_url"] == result.stripe.invoice_url
    assert notifier.reports == [result]


def test_fatal_stage_stops_the_run(sprint_request):
    billing = StripeMockClient()
    notifier = RecordingNotifier()

    result = _pipeline(esign=SignNowMockClient(fail_at="get_page_count"), billing=billing, notifier=notifier).run(
        sprint_request
    )

    assert result.success is False
    assert result.stage == PipelineStage.METADATA
    assert result.document_id == "mockdoc000001"
    assert "get_page_count" in result.error
    assert billing.requests == []
    assert notifier.reports == [result]
    assert result.to_response() == {
        "success": False,
        "error": result.error,
        "stage": "metadata",
        "document_id": "mockdoc000001",
    }


def test_upload_failure_skips_invoice_and_task(sprint_request):
    billing = StripeMockClient()
    tasks = ClickUpMockClient()

    result = _pipeline(esign=SignNowMockClient(fail_at="upload_document"), billing=billing, tasks=tasks).run(
        sprint_request
    )

    assert result.success is False
    assert result.stage == PipelineStage.UPLOAD
    assert result.document_id is None
    assert billing.requests == []
    assert tasks.tasks == []
    body = result.to_response()
    assert body["stage"] == "upload"
    assert "document_id" not in body


def test_auth_failure_has_no_document(sprint_request):
    result = _pipeline(esign=SignNowMockClient(fail_at="authenticate")).run(sprint_request)

    assert result.stage == PipelineStage.AUTHENTICATE
    assert "document_id" not in result.to_response()


def test_best_effort_stages_do_not_stop_the_run(sprint_request):
    esign = SignNowMockClient(send_invite=True, fail_at="send_invite", link_fails=True)
    tasks = ClickUpMockClient(fail_with="List not found", error_code="ITEM_013")

    result = _pipeline(esign=esign, billing=StripeMockClient(fail_with="card_declined"), tasks=tasks).run(
        sprint_request
    )

    assert result.success is True
    assert result.message == "Contract generated, uploaded to SignNow"
    assert result.signing_link.endswith("/webapp/document/mockdoc000001")
    assert result.signing_link_error
    assert result.invite_sent is False
    assert "send_invite" in result.invite_error
    assert isinstance(result.stripe, StageError)

    body = result.to_response()
    assert body["stripe"] == {"error": "card_declined"}
    assert body["clickup"] == {"error": "List not found", "ECODE": "ITEM_013"}


def test_task_gets_no_invoice_url_when_billing_fails(sprint_request):
    tasks = ClickUpMockClient()
    _pipeline(billing=StripeMockClient(fail_with="boom"), tasks=tasks).run(sprint_request)
    assert tasks.tasks[0]["invoice_url"] is None


def test_invite_sent_when_enabled(phase2_request):
    result = _pipeline(esign=SignNowMockClient(send_invite=True)).run(phase2_request)

    assert result.invite_sent is True
    assert result.stripe.mode == BillingMode.RECURRING
    assert result.amount == "2,500.50"


def test_notifier_failure_is_swallowed(sprint_request):
    result = _pipeline(notifier=RecordingNotifier(fail=True)).run(sprint_request)
    assert result.success is True


def test_build_pipeline_uses_mocks_and_slack_when_configured(clock):
    settings = load_settings({
        "INTEGRATIONS_MODE": "mock",
        "SLACK_BOT_TOKEN": "xoxb-test",
        "SLACK_CHANNEL_ID": "C1",
        "SIGNNOW_SEND_INVITE": "true",
    })

    pipeline = build_pipeline(settings, clock)

    assert isinstance(pipeline.renderer, ContractRenderer)
    assert isinstance(pipeline.esign, SignNowMockClient)
    assert pipeline.esign.send_invite_enabled is True
    assert isinstance(pipeline.billing, StripeMockClient)
    assert isinstance(pipeline.notifier, SlackContractNotifier)


def test_build_pipeline_without_slack_has_no_notifier(mock_settings, clock):
    assert build_pipeline(mock_settings, clock).notifier is None


def test_stages_cover_only_the_fatal_chain():
    assert [stage.value for stage in PipelineStage] == [
        "render", "authenticate", "upload", "metadata", "place_fields",
    ]
