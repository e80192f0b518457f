"""
SignNow — MOCK client.

⚠️  Mock implementation for development and testing.
    No network calls are made. Document ids are derived from an in-memory
    counter so runs are reproducible, and each stage can be told to fail via
    the constructor.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from src.integrations.contracts.interfaces import ESignatureProvider, SigningLink
from src.integrations.policy.response_wrappers import ProviderError

logger = logging.getLogger(__name__)


class SignNowMockClient(ESignatureProvider):
    """
    Mock SignNow client.

    Parameters
    ----------
    fail_at : str, optional
        Name of the method that should raise ProviderError
        ("authenticate", "upload_document", "get_page_count",
        "add_signature_fields", "send_invite").
    send_invite : bool
        Whether e-mail invites are switched on. Default False.
    link_fails : bool
        If True, create_signing_link returns the viewer URL fallback.
    page_count : int
        Page count reported for uploaded documents. Default 9.
    """

    def __init__(
        self,
        fail_at: Optional[str] = None,
        send_invite: bool = False,
        link_fails: bool = False,
        page_count: int = 9,
        app_url: str = "https://app.signnow.com",
    ):
        self._fail_at = fail_at
        self.send_invite_enabled = send_invite
        self._link_fails = link_fails
        self._page_count = page_count
        self._app_url = app_url.rstrip("/")
        self._counter = 0

        self.documents: Dict[str, Tuple[str, int]] = {}
        self.calls: List[Tuple[str, Any]] = []

        logger.info("[SIGNNOW MOCK] Client initialised")

    def _record(self, operation: str, detail: Any = None) -> None:
        self.calls.append((operation, detail))
        if self._fail_at == operation:
            raise ProviderError("signnow", f"[SIGNNOW MOCK] Simulated failure in {operation}")

    def authenticate(self) -> str:
        self._record("authenticate")
        return "mock-access-token"

    def upload_document(self, content: bytes, file_name: str) -> str:
        self._record("upload_document", file_name)
        self._counter += 1
        document_id = f"mockdoc{self._counter:06d}"
        self.documents[document_id] = (file_name, len(content))
        logger.info("[SIGNNOW MOCK] Uploaded %s (%d bytes) as %s", file_name, len(content), document_id)
        return document_id

    def get_page_count(self, document_id: str) -> int:
        self._record("get_page_count", document_id)
        return self._page_count

    def add_signature_fields(self, document_id: str, page_count: int, signed_on: date) -> None:
        self._record("add_signature_fields", (document_id, page_count - 1, signed_on.isoformat()))

    def create_signing_link(self, document_id: str, signer_email: str) -> SigningLink:
        self.calls.append(("create_signing_link", (document_id, signer_email)))
        viewer = f"{self._app_url}/webapp/document/{document_id}"
        if self._link_fails:
            return SigningLink(url=viewer, is_fallback=True, error="[SIGNNOW MOCK] Simulated signing link failure")
        return SigningLink(url=f"https://signnow.mock/s/{document_id}")

    def send_invite(self, document_id: str, signer_email: str, signer_name: str) -> bool:
        if not self.send_invite_enabled:
            return False
        self._record("send_invite", (document_id, signer_email, signer_name))
        logger.info("[SIGNNOW MOCK] Invite sent to %s", signer_email)
        return True
