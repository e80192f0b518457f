import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ContractVariant(str, Enum):
    SPRINT1 = "sprint1"                  # one-time 60-day engagement
    PHASE2 = "phase2"                    # monthly retainer


class BillingMode(str, Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class PipelineStage(str, Enum):
    RENDER = "render"
    AUTHENTICATE = "authenticate"
    UPLOAD = "upload"
    METADATA = "metadata"
    PLACE_FIELDS = "place_fields"


_VARIANT_LABELS = {
    ContractVariant.SPRINT1: "Sprint 1",
    ContractVariant.PHASE2: "Phase 2",
}

_BILLING_MODES = {
    ContractVariant.SPRINT1: BillingMode.ONE_TIME,
    ContractVariant.PHASE2: BillingMode.RECURRING,
}


# ---------------------------------------------------------------------------
# Pipeline input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContractRequest:
    """Normalized contract submission. Built once per request by the intake validators."""
    contract_type: ContractVariant
    client_company: str
    client_first: str
    client_last: str
    client_title: str
    client_email: str
    amount: Decimal                      # USD, always > 0
    effective_date: date
    scope: str = ""                      # deliverable (sprint1) or scope of services (phase2)

    @property
    def client_name(self) -> str:
        return f"{self.client_first} {self.client_last}"

    @property
    def billing_mode(self) -> BillingMode:
        return _BILLING_MODES[self.contract_type]

    @property
    def variant_label(self) -> str:
        return _VARIANT_LABELS[self.contract_type]

    @property
    def amount_cents(self) -> int:
        return int((self.amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @property
    def formatted_amount(self) -> str:
        if self.amount == self.amount.to_integral_value():
            return f"{int(self.amount):,}"
        return format(self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), ",.2f")

    @property
    def formatted_date(self) -> str:
        d = self.effective_date
        return f"{d.strftime('%B')} {d.day}, {d.year}"

    @property
    def file_name(self) -> str:
        prefix = "Phase2" if self.contract_type == ContractVariant.PHASE2 else "Sprint1"
        company = re.sub(r"[^a-zA-Z0-9]", "", self.client_company)
        return f"{prefix}_{company}_MSA_SOW.docx"


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------

@dataclass
class StageError:
    """Failure of a best-effort stage, kept on the result instead of raised."""
    error: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.error}
        if self.code:
            out["ECODE"] = self.code
        return out


@dataclass
class SigningLink:
    url: str
    is_fallback: bool = False
    error: Optional[str] = None


@dataclass
class InvoiceResult:
    customer_id: str
    invoice_id: str
    invoice_url: Optional[str]
    mode: BillingMode
    invoice_pdf: Optional[str] = None
    subscription_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["mode"] = self.mode.value
        return out


@dataclass
class TaskResult:
    id: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url}


@dataclass
class PipelineResult:
    """Aggregate outcome of one pipeline run. Each stage result is independently nullable."""
    success: bool
    message: str = ""
    stage: Optional[PipelineStage] = None
    error: Optional[str] = None
    document_id: Optional[str] = None
    signing_link: Optional[str] = None
    signing_link_error: Optional[str] = None
    invite_sent: bool = False
    invite_error: Optional[str] = None
    contract_type: Optional[ContractVariant] = None
    client: Optional[str] = None
    company: Optional[str] = None
    amount: Optional[str] = None
    stripe: Union[InvoiceResult, StageError, None] = None
    clickup: Union[TaskResult, StageError, None] = None

    @property
    def invoice_ok(self) -> bool:
        return isinstance(self.stripe, InvoiceResult)

    @property
    def task_ok(self) -> bool:
        return isinstance(self.clickup, TaskResult)

    def to_response(self) -> Dict[str, Any]:
        if not self.success:
            body: Dict[str, Any] = {"success": False, "error": self.error or self.message}
            if self.stage:
                body["stage"] = self.stage.value
            if self.document_id:
                body["document_id"] = self.document_id
            return body

        return {
            "success": True,
            "message": self.message,
            "document_id": self.document_id,
            "signing_link": self.signing_link,
            "signing_link_error": self.signing_link_error,
            "invite_sent": self.invite_sent,
            "invite_error": self.invite_error,
            "contract_type": self.contract_type.value if self.contract_type else None,
            "client": self.client,
            "company": self.company,
            "amount": self.amount,
            "stripe": self.stripe.to_dict() if self.stripe else {"skipped": True},
            "clickup": self.clickup.to_dict() if self.clickup else {"skipped": True},
        }


# ---------------------------------------------------------------------------
# Abstract provider interfaces
# ---------------------------------------------------------------------------

class ESignatureProvider(ABC):
    """Every e-signature client must implement this interface, in call order."""

    @abstractmethod
    def authenticate(self) -> str:
        """Exchange stored credentials for a bearer token."""

    @abstractmethod
    def upload_document(self, content: bytes, file_name: str) -> str:
        """Upload the rendered document and return its identifier."""

    @abstractmethod
    def get_page_count(self, document_id: str) -> int:
        """Number of pages of an uploaded document."""

    @abstractmethod
    def add_signature_fields(self, document_id: str, page_count: int, signed_on: date) -> None:
        """Place the client signature and date fields on the last page."""

    @abstractmethod
    def create_signing_link(self, document_id: str, signer_email: str) -> SigningLink:
        """Direct signing URL, or the viewer URL when the link cannot be created. Never raises."""

    @abstractmethod
    def send_invite(self, document_id: str, signer_email: str, signer_name: str) -> bool:
        """Trigger the provider's own e-mail invitation. False when invites are switched off."""

    def close(self) -> None:
        """Release transport resources."""


class BillingProvider(ABC):

    @abstractmethod
    def create_invoice(self, request: ContractRequest) -> InvoiceResult:
        """Collect payment for the contract, one-time or recurring."""


class TaskTracker(ABC):

    @abstractmethod
    def create_task(
        self, request: ContractRequest, document_id: Optional[str], invoice_url: Optional[str]
    ) -> TaskResult:
        """Log a tracking task summarizing the contract."""

    def close(self) -> None:
        """Release transport resources."""


class ContractNotifier(ABC):

    @abstractmethod
    def report(self, request: ContractRequest, result: PipelineResult) -> None:
        """Post the pipeline outcome to the team."""
