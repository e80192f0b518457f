import hmac
import logging
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from slack_sdk.signature import SignatureVerifier

from src.documents.renderer import utc_now
from src.integrations.clients.mocks.clickup import ClickUpMockClient
from src.integrations.clients.real_http.clickup import ClickUpClient
from src.integrations.slack.slack_chat_service import SlackChatService
from src.pipeline.orchestrator import build_pipeline
from src.utils.config_loader import Settings, load_settings

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    # Rebuilt per request so env changes are picked up without a restart
    return load_settings()


def get_clock() -> Callable:
    return utc_now


def get_pipeline_builder() -> Callable:
    return build_pipeline


def get_slack_service(settings: Settings = Depends(get_settings)) -> Optional[SlackChatService]:
    if not settings.slack.bot_token:
        return None
    return SlackChatService(settings.slack.bot_token, settings.slack.channel_id)


def get_workspace_client(settings: Settings = Depends(get_settings)):
    if not settings.use_real_integrations():
        return ClickUpMockClient()
    return ClickUpClient(settings.clickup, timeout_seconds=settings.http_timeout_seconds)


async def verify_api_key(
    authorization: str = Header(default=None),
    settings: Settings = Depends(get_settings),
):
    """Bearer check against API_KEY. Open when API_KEY is unset."""
    if not settings.api_key:
        return

    expected = f"Bearer {settings.api_key}"
    if not hmac.compare_digest((authorization or "").encode(), expected.encode()):
        logger.warning("Rejected request with invalid or missing API key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def verify_slack_request(request: Request, settings: Settings) -> None:
    """Check Slack's request signature when SLACK_SIGNING_SECRET is configured.

    Reads the raw body; Starlette caches it so ``request.form()`` still works afterwards.
    """
    if not settings.slack.signing_secret:
        return

    body = await request.body()
    verifier = SignatureVerifier(settings.slack.signing_secret)
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Slack signature")
