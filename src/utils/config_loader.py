"""
Configuration loader for the contract pipeline.

Every value comes from the process environment (a local ``.env`` is loaded by
``src.api.main``). Settings are rebuilt on each request through
``load_settings()`` so rotated secrets are picked up without a restart.
"""

from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


class SignNowConfig(BaseModel):
    """SignNow credentials and e-signature behaviour"""

    client_id: str = ""
    client_secret: str = ""
    email: str = ""
    password: str = ""
    api_url: str = "https://api.signnow.com"
    app_url: str = "https://app.signnow.com"
    send_invite: bool = False
    invite_from: str = ""
    redirect_url: str = ""

    @property
    def configured(self) -> bool:
        return all([self.client_id, self.client_secret, self.email, self.password])


class StripeConfig(BaseModel):
    secret_key: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)


class ClickUpConfig(BaseModel):
    api_token: str = ""
    list_id: str = ""
    api_url: str = "https://api.clickup.com/api/v2"

    @property
    def configured(self) -> bool:
        return bool(self.api_token and self.list_id)


class SlackConfig(BaseModel):
    bot_token: str = ""
    channel_id: str = ""
    signing_secret: str = ""
    dm_submitter: bool = True

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.channel_id)


class ProviderIdentity(BaseModel):
    """Party that issues the contract and signs it in advance"""

    company: str = "AEO Labs LLC"
    signer_name: str = "Jeffrey Peroutka"
    signer_title: str = "COO"
    signature_base64: str = ""
    logo_base64: str = ""


class Settings(BaseModel):
    """Complete service configuration"""

    api_key: str = ""
    integrations_mode: str = ""
    strict_contract_type: bool = False
    http_timeout_seconds: float = Field(default=55.0, gt=0, le=300)
    app_version: str = "v2"
    app_build_tags: List[str] = Field(default_factory=lambda: ["200-for-incomplete", "signnow-invite-flag"])
    signnow: SignNowConfig = Field(default_factory=SignNowConfig)
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    clickup: ClickUpConfig = Field(default_factory=ClickUpConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    provider: ProviderIdentity = Field(default_factory=ProviderIdentity)

    def use_real_integrations(self) -> bool:
        mode = self.integrations_mode.strip().lower()
        if mode in {"real", "live"}:
            return True
        if mode in {"mock", "test"}:
            return False
        return self.signnow.configured


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    if raw:
        logger.warning("Ignoring unrecognised boolean %s=%r", name, raw)
    return default


def _env_list(env: Mapping[str, str], name: str) -> Optional[List[str]]:
    raw = env.get(name)
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build validated settings from environment variables

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        Validated Settings object

    Raises:
        ValidationError: If a value doesn't match the schema
    """
    env = os.environ if environ is None else environ

    def get(name: str, default: str = "") -> str:
        return (env.get(name) or default).strip()

    signnow_email = get("SIGNNOW_EMAIL")
    data = {
        "api_key": get("API_KEY"),
        "integrations_mode": get("INTEGRATIONS_MODE"),
        "strict_contract_type": _env_bool(env, "STRICT_CONTRACT_TYPE", False),
        "http_timeout_seconds": get("HTTP_TIMEOUT_SECONDS", "55"),
        "app_version": get("APP_VERSION", "v2"),
        "signnow": {
            "client_id": get("SIGNNOW_CLIENT_ID"),
            "client_secret": get("SIGNNOW_CLIENT_SECRET"),
            "email": signnow_email,
            "password": env.get("SIGNNOW_PASSWORD") or "",
            "api_url": get("SIGNNOW_API_URL", "https://api.signnow.com").rstrip("/"),
            "app_url": get("SIGNNOW_APP_URL", "https://app.signnow.com").rstrip("/"),
            "send_invite": _env_bool(env, "SIGNNOW_SEND_INVITE", False),
            "invite_from": get("SIGNNOW_INVITE_FROM", signnow_email),
            "redirect_url": get("SIGNNOW_REDIRECT_URL"),
        },
        "stripe": {"secret_key": get("STRIPE_SECRET_KEY")},
        "clickup": {
            "api_token": get("CLICKUP_API_TOKEN"),
            "list_id": get("CLICKUP_LIST_ID"),
        },
        "slack": {
            "bot_token": get("SLACK_BOT_TOKEN"),
            "channel_id": get("SLACK_CHANNEL_ID"),
            "signing_secret": get("SLACK_SIGNING_SECRET"),
            "dm_submitter": _env_bool(env, "SLACK_DM_SUBMITTER", True),
        },
        "provider": {
            "company": get("PROVIDER_COMPANY", "AEO Labs LLC"),
            "signer_name": get("PROVIDER_SIGNER_NAME", "Jeffrey Peroutka"),
            "signer_title": get("PROVIDER_SIGNER_TITLE", "COO"),
            "signature_base64": get("PROVIDER_SIGNATURE_BASE64"),
            "logo_base64": get("PROVIDER_LOGO_BASE64"),
        },
    }
    build_tags = _env_list(env, "APP_BUILD_TAGS")
    if build_tags is not None:
        data["app_build_tags"] = build_tags

    try:
        return Settings(**data)
    except ValidationError as e:
        logger.error(f"Settings validation failed: {e}")
        raise


def mask_secret(value: str, visible: int = 5) -> str:
    """Show only the first few characters of a secret"""
    if not value:
        return "EMPTY"
    return value[:visible] + "..."
