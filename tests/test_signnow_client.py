import json
from datetime import date

import httpx
import pytest

from src.integrations.clients.real_http.signnow import SignNowClient, short_date
from src.integrations.policy.response_wrappers import ProviderError
from src.utils.config_loader import SignNowConfig

CONFIG = SignNowConfig(
    client_id="cid",
    client_secret="secret",
    email="ops@aeolabs.com",
    password="pw",
    api_url="https://api.signnow.test",
    app_url="https://app.signnow.test",
)

DOCUMENT = {
    "id": "doc123",
    "document_name": "Sprint1_AcmeCorp_MSA_SOW",
    "page_count": "9",
    "roles": [{"unique_id": "role-1", "name": "Client", "signing_order": 1}],
}


class FakeSignNow:
    """Routes requests to canned SignNow responses and records them."""

    def __init__(self, overrides=None):
        self.requests = []
        self.routes = {
            ("POST", "/oauth2/token"): (200, {"access_token": "tok", "token_type": "bearer"}),
            ("POST", "/document"): (200, {"id": "doc123"}),
            ("GET", "/document/doc123"): (200, DOCUMENT),
            ("PUT", "/document/doc123"): (200, {"id": "doc123"}),
            ("POST", "/v2/documents/doc123/embedded-invites"): (201, {"data": [{"id": "inv-1"}]}),
            ("POST", "/v2/documents/doc123/embedded-invites/inv-1/link"): (
                201,
                {"data": {"link": "https://app.signnow.test/embedded/abc"}},
            ),
            ("POST", "/document/doc123/invite"): (200, {"status": "success"}),
        }
        self.routes.update(overrides or {})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"error": "not found"}))
        return httpx.Response(status, json=body)

    def find(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]


def _client(fake, **kwargs):
    http = httpx.Client(base_url=CONFIG.api_url, transport=httpx.MockTransport(fake))
    return SignNowClient(CONFIG, http_client=http, **kwargs)


def test_upload_chain_places_fields_on_last_page():
    fake = FakeSignNow()
    client = _client(fake)

    assert client.authenticate() == "tok"
    document_id = client.upload_document(b"docx-bytes", "Sprint1_AcmeCorp_MSA_SOW.docx")
    page_count = client.get_page_count(document_id)
    client.add_signature_fields(document_id, page_count, date(2026, 10, 19))

    assert document_id == "doc123"
    assert page_count == 9

    token_request = fake.find("POST", "/oauth2/token")[0]
    assert token_request.headers["Authorization"].startswith("Basic ")
    assert b"grant_type=password" in token_request.content

    upload = fake.find("POST", "/document")[0]
    assert upload.headers["Authorization"] == "Bearer tok"
    assert b"Sprint1_AcmeCorp_MSA_SOW.docx" in upload.content

    fields = json.loads(fake.find("PUT", "/document/doc123")[0].content)["fields"]
    assert [f["type"] for f in fields] == ["signature", "text"]
    assert {f["page_number"] for f in fields} == {8}
    assert fields[1]["prefilled_text"] == "Oct 19, 2026"


def test_authenticate_requires_credentials():
    client = SignNowClient(SignNowConfig(), http_client=httpx.Client(transport=httpx.MockTransport(FakeSignNow())))
    with pytest.raises(ProviderError, match="not configured"):
        client.authenticate()


def test_authenticate_failure_surfaces_provider_message():
    fake = FakeSignNow({("POST", "/oauth2/token"): (200, {"error": "invalid_client"})})
    with pytest.raises(ProviderError, match="SignNow auth failed: invalid_client"):
        _client(fake).authenticate()


def test_http_error_is_wrapped():
    fake = FakeSignNow({("POST", "/document"): (500, {"error": "boom"})})
    client = _client(fake)
    client.authenticate()

    with pytest.raises(ProviderError) as exc_info:
        client.upload_document(b"x", "a.docx")
    assert exc_info.value.status_code == 500


def test_field_errors_are_fatal():
    fake = FakeSignNow({("PUT", "/document/doc123"): (200, {"errors": [{"message": "bad field"}]})})
    client = _client(fake)
    client.authenticate()

    with pytest.raises(ProviderError, match="field error"):
        client.add_signature_fields("doc123", 9, date(2026, 10, 19))


def test_signing_link_uses_embedded_invite():
    fake = FakeSignNow()
    client = _client(fake)
    client.authenticate()

    link = client.create_signing_link("doc123", "john@acme.com")

    assert link.url == "https://app.signnow.test/embedded/abc"
    assert link.is_fallback is False
    invite = json.loads(fake.find("POST", "/v2/documents/doc123/embedded-invites")[0].content)
    assert invite["invites"][0] == {"email": "john@acme.com", "role_id": "role-1", "order": 1, "auth_method": "none"}
    link_request = json.loads(fake.find("POST", "/v2/documents/doc123/embedded-invites/inv-1/link")[0].content)
    assert link_request == {"auth_method": "none", "link_expiration": 45}


def test_signing_link_falls_back_to_viewer_url():
    fake = FakeSignNow({("POST", "/v2/documents/doc123/embedded-invites"): (400, {"errors": ["nope"]})})
    client = _client(fake)
    client.authenticate()

    link = client.create_signing_link("doc123", "john@acme.com")

    assert link.url == "https://app.signnow.test/webapp/document/doc123"
    assert link.is_fallback is True
    assert "400" in link.error


def test_signing_link_falls_back_when_role_missing():
    fake = FakeSignNow({("GET", "/document/doc123"): (200, {"id": "doc123", "page_count": 2, "roles": []})})
    client = _client(fake)
    client.authenticate()

    link = client.create_signing_link("doc123", "john@acme.com")
    assert link.is_fallback is True
    assert not fake.find("POST", "/v2/documents/doc123/embedded-invites")


def test_invite_disabled_sends_nothing():
    fake = FakeSignNow()
    client = _client(fake)
    client.authenticate()

    assert client.send_invite("doc123", "john@acme.com", "John Doe") is False
    assert not fake.find("POST", "/document/doc123/invite")


def test_invite_enabled_posts_invite():
    fake = FakeSignNow()
    client = _client(fake, send_invite=True, company="AEO Labs")
    client.authenticate()

    assert client.send_invite("doc123", "john@acme.com", "John Doe") is True
    body = json.loads(fake.find("POST", "/document/doc123/invite")[0].content)
    assert body["from"] == "ops@aeolabs.com"
    assert body["to"][0]["email"] == "john@acme.com"
    assert "John Doe" in body["to"][0]["message"]


def test_short_date():
    assert short_date(date(2026, 1, 5)) == "Jan 5, 2026"
