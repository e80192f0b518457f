from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError


class ProviderError(Exception):
    """An outbound call to a third-party provider failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.status_code = status_code
        self.code = code
        self.payload = payload or {}

    def __str__(self) -> str:
        return self.message


class IntegrationResponseError(ProviderError, ValueError):
    """The provider answered, but the body does not have the expected shape."""

    def __init__(self, message: str, *, provider: str = "unknown", payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(provider, message, payload=payload)


class SignNowTokenModel(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class SignNowRoleModel(BaseModel):
    unique_id: str
    name: str
    signing_order: Optional[int] = None


class SignNowDocumentModel(BaseModel):
    id: str
    document_name: str = ""
    page_count: int = Field(default=1, ge=1)
    roles: List[SignNowRoleModel] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict)

    def role_id(self, name: str) -> Optional[str]:
        for role in self.roles:
            if role.name == name:
                return role.unique_id
        return None


class StripeInvoiceModel(BaseModel):
    id: str
    status: str = "draft"
    hosted_invoice_url: Optional[str] = None
    invoice_pdf: Optional[str] = None


class ClickUpTaskModel(BaseModel):
    id: str
    url: Optional[str] = None
    name: str = ""


def normalize_signnow_token(raw: Dict[str, Any]) -> SignNowTokenModel:
    token = _first_non_empty(raw, "access_token", provider="signnow", default="")
    if not token:
        detail = _first_non_empty(raw, "error_description", "error", "message", provider="signnow", default="no access_token")
        raise IntegrationResponseError(f"SignNow auth failed: {detail}", provider="signnow", payload=raw)
    return _build_model(
        SignNowTokenModel,
        {
            "access_token": str(token),
            "token_type": str(raw.get("token_type") or "bearer"),
            "expires_in": raw.get("expires_in"),
        },
        raw,
        provider="signnow",
    )


def normalize_signnow_upload(raw: Dict[str, Any]) -> str:
    document_id = _first_non_empty(raw, "id", "document_id", provider="signnow", default="")
    if not document_id:
        raise IntegrationResponseError(f"SignNow upload failed: {raw}", provider="signnow", payload=raw)
    return str(document_id)


def normalize_signnow_document(raw: Dict[str, Any], *, fallback_id: str = "") -> SignNowDocumentModel:
    pages = raw.get("pages") if isinstance(raw.get("pages"), list) else []
    page_count = raw.get("page_count")
    try:
        page_count = int(page_count)
    except (TypeError, ValueError):
        page_count = len(pages)
    if page_count < 1:
        page_count = 1

    roles = raw.get("roles") if isinstance(raw.get("roles"), list) else []
    return _build_model(
        SignNowDocumentModel,
        {
            "id": str(_first_non_empty(raw, "id", provider="signnow", default=fallback_id)),
            "document_name": str(raw.get("document_name") or ""),
            "page_count": page_count,
            "roles": [r for r in roles if isinstance(r, dict) and r.get("unique_id")],
            "raw": raw,
        },
        raw,
        provider="signnow",
    )


def normalize_stripe_invoice(raw: Any) -> StripeInvoiceModel:
    data = _as_dict(raw)
    return _build_model(
        StripeInvoiceModel,
        {
            "id": str(_first_non_empty(data, "id", provider="stripe")),
            "status": str(data.get("status") or "draft"),
            "hosted_invoice_url": data.get("hosted_invoice_url"),
            "invoice_pdf": data.get("invoice_pdf"),
        },
        data,
        provider="stripe",
    )


def normalize_clickup_task(raw: Dict[str, Any]) -> ClickUpTaskModel:
    if raw.get("err"):
        raise ProviderError(
            "clickup",
            f"ClickUp error: {raw.get('err')}",
            code=raw.get("ECODE"),
            payload=raw,
        )
    return _build_model(
        ClickUpTaskModel,
        {
            "id": str(_first_non_empty(raw, "id", provider="clickup")),
            "url": raw.get("url"),
            "name": str(raw.get("name") or ""),
        },
        raw,
        provider="clickup",
    )


def _as_dict(raw: Any) -> Dict[str, Any]:
    # Stripe objects are dict subclasses; tests pass plain dicts
    if isinstance(raw, dict):
        return dict(raw)
    raise IntegrationResponseError(f"Expected an object, got {type(raw).__name__}", provider="stripe")


def _first_non_empty(data: Dict[str, Any], *keys: str, provider: str = "unknown", default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(
        f"Missing required field. Checked keys: {', '.join(keys)}",
        provider=provider,
        payload=data,
    )


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any], *, provider: str = "unknown"):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", provider=provider, payload=raw) from exc
