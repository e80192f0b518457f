"""
Real SignNow HTTP Client.

Used when SignNow credentials are configured. Covers the fatal upload chain
(auth, upload, metadata, field placement), the embedded signing link with its
viewer-URL fallback, and the optional e-mail invite.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

import httpx

from src.integrations.contracts.interfaces import ESignatureProvider, SigningLink
from src.integrations.policy.response_wrappers import (
    ProviderError,
    SignNowDocumentModel,
    normalize_signnow_document,
    normalize_signnow_token,
    normalize_signnow_upload,
)
from src.utils.config_loader import SignNowConfig

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
SIGNER_ROLE = "Client"
LINK_EXPIRATION_MINUTES = 45


def short_date(value: date) -> str:
    """``Oct 19, 2026``, as shown in the prefilled date field."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


class SignNowClient(ESignatureProvider):
    def __init__(
        self,
        config: SignNowConfig,
        http_client: Optional[httpx.Client] = None,
        send_invite: bool = False,
        timeout_seconds: float = 55.0,
        company: str = "AEO Labs",
    ) -> None:
        self.config = config
        self.send_invite_enabled = send_invite
        self.company = company
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=config.api_url, timeout=timeout_seconds)
        self._token: Optional[str] = None

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _auth_headers(self) -> Dict[str, str]:
        if not self._token:
            raise ProviderError("signnow", "SignNow client is not authenticated")
        return {"Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderError("signnow", f"SignNow request failed: {exc}") from exc

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {"raw": response.text[:200]}

        if response.is_error:
            raise ProviderError(
                "signnow",
                f"SignNow {method} {path} returned {response.status_code}: {data}",
                status_code=response.status_code,
                payload=data if isinstance(data, dict) else {"body": data},
            )
        if not isinstance(data, dict):
            return {"data": data}
        return data

    # ------------------------------------------------------------------
    # Fatal chain
    # ------------------------------------------------------------------

    def authenticate(self) -> str:
        if not self.config.configured:
            raise ProviderError("signnow", "SignNow credentials are not configured")

        data = self._request(
            "POST",
            "/oauth2/token",
            auth=(self.config.client_id, self.config.client_secret),
            data={
                "username": self.config.email,
                "password": self.config.password,
                "grant_type": "password",
                "scope": "*",
            },
        )
        self._token = normalize_signnow_token(data).access_token
        logger.info("SignNow authenticated")
        return self._token

    def upload_document(self, content: bytes, file_name: str) -> str:
        data = self._request(
            "POST",
            "/document",
            headers=self._auth_headers(),
            files={"file": (file_name, content, DOCX_MIME)},
        )
        document_id = normalize_signnow_upload(data)
        logger.info("Uploaded to SignNow: %s", document_id)
        return document_id

    def get_document(self, document_id: str) -> SignNowDocumentModel:
        data = self._request("GET", f"/document/{document_id}", headers=self._auth_headers())
        return normalize_signnow_document(data, fallback_id=document_id)

    def get_page_count(self, document_id: str) -> int:
        page_count = self.get_document(document_id).page_count
        logger.info("Document %s has %d pages", document_id, page_count)
        return page_count

    def add_signature_fields(self, document_id: str, page_count: int, signed_on: date) -> None:
        last_page = max(page_count, 1) - 1
        payload = {
            "fields": [
                {
                    "x": 55, "y": 270, "width": 220, "height": 35,
                    "type": "signature", "page_number": last_page,
                    "required": True, "role": SIGNER_ROLE, "label": "Signature",
                },
                {
                    "x": 55, "y": 340, "width": 180, "height": 25,
                    "type": "text", "page_number": last_page,
                    "required": True, "role": SIGNER_ROLE, "label": "Date",
                    "prefilled_text": short_date(signed_on),
                },
            ]
        }
        data = self._request("PUT", f"/document/{document_id}", headers=self._auth_headers(), json=payload)
        if data.get("errors"):
            raise ProviderError("signnow", f"SignNow field error: {data}", payload=data)
        logger.info("Client signature fields added to %s (page %d)", document_id, last_page)

    # ------------------------------------------------------------------
    # Signing link (never fatal)
    # ------------------------------------------------------------------

    def viewer_url(self, document_id: str) -> str:
        return f"{self.config.app_url}/webapp/document/{document_id}"

    def create_signing_link(self, document_id: str, signer_email: str) -> SigningLink:
        try:
            role_id = self.get_document(document_id).role_id(SIGNER_ROLE)
            if not role_id:
                raise ProviderError("signnow", f"Role '{SIGNER_ROLE}' not found on document {document_id}")

            invite = self._request(
                "POST",
                f"/v2/documents/{document_id}/embedded-invites",
                headers=self._auth_headers(),
                json={
                    "invites": [
                        {"email": signer_email, "role_id": role_id, "order": 1, "auth_method": "none"}
                    ]
                },
            )
            invites = invite.get("data") or []
            invite_id = invites[0].get("id") if invites and isinstance(invites[0], dict) else None
            if not invite_id:
                raise ProviderError("signnow", f"Embedded invite returned no id: {invite}", payload=invite)

            link = self._request(
                "POST",
                f"/v2/documents/{document_id}/embedded-invites/{invite_id}/link",
                headers=self._auth_headers(),
                json={"auth_method": "none", "link_expiration": LINK_EXPIRATION_MINUTES},
            )
            url = (link.get("data") or {}).get("link")
            if not url:
                raise ProviderError("signnow", f"Signing link missing from response: {link}", payload=link)
        except Exception as exc:
            logger.error("Signing link failed for %s, falling back to viewer URL: %s", document_id, exc)
            return SigningLink(url=self.viewer_url(document_id), is_fallback=True, error=str(exc))

        logger.info("Signing link created for %s", document_id)
        return SigningLink(url=url)

    # ------------------------------------------------------------------
    # Email invite
    # ------------------------------------------------------------------

    def send_invite(self, document_id: str, signer_email: str, signer_name: str) -> bool:
        if not self.send_invite_enabled:
            logger.info("[SIGNNOW] Invite sending disabled, skipping %s", document_id)
            return False

        recipient: Dict[str, Any] = {
            "email": signer_email,
            "role": SIGNER_ROLE,
            "role_id": "",
            "order": 1,
            "reassign": "0",
            "decline_by_signature": "0",
            "reminder": 3,
            "expiration_days": 30,
            "subject": f"{self.company} - Contract Ready for Your Signature",
            "message": (
                f"Hi {signer_name}, your contract with {self.company} is ready for signature. "
                "Please review and sign at your convenience."
            ),
        }
        if self.config.redirect_url:
            recipient["redirect_uri"] = self.config.redirect_url

        data = self._request(
            "POST",
            f"/document/{document_id}/invite",
            headers=self._auth_headers(),
            json={
                "to": [recipient],
                "from": self.config.invite_from or self.config.email,
                "subject": f"{self.company} - Contract for Signature",
                "message": "Please review and sign the attached contract.",
            },
        )
        if data.get("errors"):
            raise ProviderError("signnow", f"SignNow invite error: {data}", payload=data)
        logger.info("Invite sent to %s for %s", signer_email, document_id)
        return True

