import json
import time

import pytest
from fastapi.testclient import TestClient
from slack_sdk.signature import SignatureVerifier

from src.api.dependencies import get_clock, get_pipeline_builder, get_settings, get_slack_service
from src.api.main import app
from src.documents.renderer import ContractRenderer
from src.integrations.clients.mocks.clickup import ClickUpMockClient
from src.integrations.clients.mocks.signnow import SignNowMockClient
from src.integrations.clients.mocks.stripe_billing import StripeMockClient
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.notifier import MODAL_CALLBACK_ID, SlackContractNotifier
from src.pipeline.orchestrator import ContractPipeline
from src.utils.config_loader import load_settings

AUTH = {"Authorization": "Bearer secret-key"}


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeSlackClient:
    def __init__(self):
        self.messages = []
        self.views = []

    def chat_postMessage(self, channel, text, blocks=None):
        self.messages.append({"channel": channel, "text": text, "blocks": blocks})
        return FakeResponse({"ok": True})

    def views_open(self, trigger_id, view):
        self.views.append({"trigger_id": trigger_id, "view": view})
        return FakeResponse({"ok": True})


@pytest.fixture
def env():
    return {"INTEGRATIONS_MODE": "mock", "API_KEY": "secret-key", "SLACK_CHANNEL_ID": "C1"}


@pytest.fixture
def fake_slack():
    return FakeSlackClient()


@pytest.fixture
def client(env, fake_slack, clock):
    service = SlackChatService(token="xoxb-test", channel="C1", client=fake_slack)
    app.dependency_overrides[get_settings] = lambda: load_settings(env)
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_slack_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _modal_submission(values, user_id="U42"):
    state = {"values": {}}
    for block_id, value in values.items():
        if block_id == "contract_type":
            state["values"][block_id] = {"value": {"type": "static_select", "selected_option": {"value": value}}}
        else:
            state["values"][block_id] = {"value": {"type": "plain_text_input", "value": value}}
    return {
        "type": "view_submission",
        "user": {"id": user_id},
        "view": {"callback_id": MODAL_CALLBACK_ID, "state": state},
    }


def test_health(client):
    assert client.get("/").json()["service"] == "Contract Pipeline API"
    assert client.get("/health").json()["status"] == "healthy"


def test_generate_and_send_requires_api_key(client, valid_payload):
    assert client.post("/api/generate-and-send", json=valid_payload).status_code == 401
    response = client.post("/api/generate-and-send", json=valid_payload, headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


def test_generate_and_send_rejects_get(client):
    assert client.get("/api/generate-and-send", headers=AUTH).status_code == 405


def test_incomplete_submission_is_skipped(client, valid_payload):
    built = []
    app.dependency_overrides[get_pipeline_builder] = lambda: lambda settings, clock: built.append(settings)
    del valid_payload["client_email"]

    response = client.post("/api/generate-and-send", json=valid_payload, headers=AUTH)

    assert built == []

    assert response.status_code == 200
    body = response.json()
    assert body["skipped"] is True
    assert body["success"] is False
    assert body["message"] == "Incomplete submission - missing field: client_email"


def test_generate_and_send_end_to_end(client, valid_payload):
    response = client.post("/api/generate-and-send", json=valid_payload, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["document_id"] == "mockdoc000001"
    assert body["signing_link"] == "https://signnow.mock/s/mockdoc000001"
    assert body["company"] == "Acme Corp"
    assert body["client"] == "John Doe"
    assert body["amount"] == "5,000"
    assert body["contract_type"] == "sprint1"
    assert body["invite_sent"] is False
    assert body["stripe"]["mode"] == "one_time"
    assert body["clickup"]["id"] == "mock00001"


def test_fatal_failure_returns_500(client, valid_payload):
    def builder(settings, clock):
        return ContractPipeline(
            ContractRenderer(clock=clock),
            SignNowMockClient(fail_at="upload_document"),
            StripeMockClient(),
            ClickUpMockClient(),
        )

    app.dependency_overrides[get_pipeline_builder] = lambda: builder
    response = client.post("/api/generate-and-send", json=valid_payload, headers=AUTH)

    assert response.status_code == 500
    assert response.json()["stage"] == "upload"


def test_open_when_api_key_unset(client, env, valid_payload):
    env.pop("API_KEY")
    assert client.post("/api/generate-and-send", json=valid_payload).status_code == 200


def test_slash_command_opens_modal(client, fake_slack):
    response = client.post("/api/slack-command", data={"trigger_id": "trig-1", "user_name": "ops"})

    assert response.status_code == 200
    assert fake_slack.views[0]["trigger_id"] == "trig-1"
    assert fake_slack.views[0]["view"]["callback_id"] == MODAL_CALLBACK_ID


def test_slash_command_without_bot_token(client):
    app.dependency_overrides[get_slack_service] = lambda: None
    response = client.post("/api/slack-command", data={"trigger_id": "trig-1"})

    assert response.json() == {
        "response_type": "ephemeral",
        "text": "Error: SLACK_BOT_TOKEN not configured. Contact admin.",
    }


def test_slash_command_without_trigger(client):
    assert "No trigger_id" in client.post("/api/slack-command", data={}).json()["text"]


def test_slack_signature_is_enforced(client, env, fake_slack):
    env["SLACK_SIGNING_SECRET"] = "shh"
    body = "trigger_id=trig-1&user_name=ops"

    rejected = client.post(
        "/api/slack-command",
        content=body,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert rejected.status_code == 401

    timestamp = str(int(time.time()))
    signature = SignatureVerifier("shh").generate_signature(timestamp=timestamp, body=body)
    accepted = client.post(
        "/api/slack-command",
        content=body,
        headers={
            "Content-Type": "application/x-www-form-urlencoded",
            "X-Slack-Request-Timestamp": timestamp,
            "X-Slack-Signature": signature,
        },
    )
    assert accepted.status_code == 200
    assert fake_slack.views[0]["trigger_id"] == "trig-1"


def test_modal_submission_runs_pipeline_in_background(client, fake_slack):
    service = SlackChatService(token="xoxb-test", channel="C1", client=fake_slack)

    def builder(settings, clock):
        return ContractPipeline(
            ContractRenderer(clock=clock),
            SignNowMockClient(),
            StripeMockClient(),
            ClickUpMockClient(),
            notifier=SlackContractNotifier(service),
        )

    app.dependency_overrides[get_pipeline_builder] = lambda: builder
    submission = _modal_submission({
        "contract_type": "phase2",
        "client_company": "Acme Corp",
        "client_first": "John",
        "client_last": "Doe",
        "client_title": "CEO",
        "client_email": "john@acme.com",
        "amount": "3000",
        "scope": "Monthly AEO optimization",
    })

    response = client.post("/api/slack-interact", data={"payload": json.dumps(submission)})

    assert response.json() == {"response_action": "clear"}
    texts = [m["text"] for m in fake_slack.messages]
    assert texts[0].startswith(":hourglass_flowing_sand: *Generating contract for Acme Corp...*")
    assert texts[1] == "New contract created for Acme Corp"
    assert fake_slack.messages[2]["channel"] == "U42"
    assert "is ready" in texts[2]


def test_modal_submission_with_errors_stays_open(client, fake_slack):
    submission = _modal_submission({
        "contract_type": "sprint1",
        "client_company": "Acme Corp",
        "client_first": "John",
        "client_last": "Doe",
        "client_title": "CEO",
        "client_email": "not-an-email",
        "amount": "5000",
    })

    body = client.post("/api/slack-interact", data={"payload": json.dumps(submission)}).json()

    assert body["response_action"] == "errors"
    assert set(body["errors"]) == {"client_email"}
    assert fake_slack.messages == []


def test_other_interactions_are_acknowledged(client):
    response = client.post("/api/slack-interact", data={"payload": json.dumps({"type": "block_actions"})})

    assert response.status_code == 200
    assert response.content == b""


def test_workflow_contract_validation_failure(client, fake_slack, valid_payload):
    response = client.post("/api/slack-contract", json=valid_payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == ["Scope of Work is missing"]
    assert body["message"] == "Validation failed: Scope of Work is missing"
    assert fake_slack.messages[0]["text"] == "Contract form had validation errors"


def test_workflow_contract_success(client, valid_payload):
    valid_payload["scope"] = "Full AEO audit"

    body = client.post("/api/slack-contract", json=valid_payload).json()

    assert body["success"] is True
    assert body["document_id"] == "mockdoc000001"


def test_workflow_contract_crash_is_reported(client, fake_slack, valid_payload):
    def builder(settings, clock):
        raise RuntimeError("renderer exploded")

    app.dependency_overrides[get_pipeline_builder] = lambda: builder
    valid_payload["scope"] = "Full AEO audit"

    response = client.post("/api/slack-contract", json=valid_payload)

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Pipeline call failed: renderer exploded"}
    assert "crashed for *Acme Corp*" in fake_slack.messages[0]["text"]


def test_debug_is_public(client):
    body = client.get("/api/debug").json()
    assert body["status"] == "ok"
    assert body["version"] == "v2"
    assert body["mods"] == ["200-for-incomplete", "signnow-invite-flag"]


def test_debug_credentials_are_masked(client, env):
    env["STRIPE_SECRET_KEY"] = "sk_test_abcdefghijkl"
    assert client.get("/api/debug/credentials").status_code == 401

    body = client.get("/api/debug/credentials", headers=AUTH).json()

    assert body["integrations_mode"] == "mock"
    assert body["stripe"] == {"configured": True, "secret_key": "sk_te..."}
    assert body["signnow"]["client_id"] == "EMPTY"


def test_debug_clickup_in_mock_mode(client):
    body = client.get("/api/debug/clickup", headers=AUTH).json()

    assert body["configured_list_id"] is None
    assert body["teams"][0]["name"] == "Mock Workspace"
